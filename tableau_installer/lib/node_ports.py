from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

import yaml

from ..errors import RuntimeStateError

logger = logging.getLogger(__name__)


GATEWAY_PORT_KEY = "worker0.gateway.port"
CONTROLLER_PORT_KEY = "worker0.tabadmincontroller.port"


def load_ports_file(path: str | Path) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise RuntimeStateError(f"Ports file not found: {p}")

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise RuntimeStateError(f"{p} is not valid YAML: {e}")
    except (OSError, UnicodeDecodeError) as e:
        raise RuntimeStateError(f"Cannot read ports file {p}: {e}")
    if not isinstance(raw, dict):
        raise RuntimeStateError(f"{p} must contain a mapping of key: value lines")
    return raw


def read_port(path: str | Path, key: str) -> int:
    """Return the numeric port stored under ``key`` in the ports file."""

    value = load_ports_file(path).get(key)
    if value is None:
        raise RuntimeStateError(f"{key} not present in {path}")
    try:
        port = int(str(value).strip())
    except ValueError:
        raise RuntimeStateError(f"{key} in {path} is not a port number: {value!r}")
    logger.info("%s = %d (from %s)", key, port, path)
    return port
