from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, List, Tuple

from .lib.command import mask_secrets
from .lib.env import PATHS

logger = logging.getLogger(__name__)

DEFAULT_LOG_PATH = PATHS.log_default
FALLBACK_LOG_NAME = "tableau-automated-installer.log"


class SecretFilter(logging.Filter):
    """Masks every registered secret in the rendered message of a record.

    Attached to the installer's handlers, so it also covers records that do
    not come from run_cmd (step messages, error text, third-party loggers).
    """

    def __init__(self) -> None:
        super().__init__()
        self.secrets: List[str] = []

    def register(self, values: Iterable[str]) -> None:
        for v in values:
            if v and v not in self.secrets:
                self.secrets.append(v)

    def clear(self) -> None:
        self.secrets.clear()

    def filter(self, record: logging.LogRecord) -> bool:
        if self.secrets:
            message = record.getMessage()
            masked = mask_secrets(message, self.secrets)
            if masked != message:
                record.msg = masked
                record.args = None
        return True


SECRET_FILTER = SecretFilter()

# Handlers installed by configure_logging; replaced on every call.
_installed: List[logging.Handler] = []


def register_secrets(values: Iterable[str]) -> None:
    SECRET_FILTER.register(values)


def _open_log_file(log_path: str) -> Tuple[logging.Handler, str]:
    try:
        Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_path), log_path
    except OSError:
        fallback = str(Path.cwd() / FALLBACK_LOG_NAME)
        return logging.FileHandler(fallback), fallback


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    *,
    verbose: bool = False,
    also_console: bool = True,
) -> str:
    """Send the installer's log to ``log_path`` (and the console).

    The level is DEBUG with ``verbose`` (``-v``), otherwise INFO. Calling
    this again replaces the handlers from the previous call, so the level
    can be raised once the command line has been parsed. If ``log_path``
    cannot be written, a file in the working directory is used instead.

    Returns the path actually written.
    """

    root = logging.getLogger()
    for h in _installed:
        root.removeHandler(h)
        h.close()
    _installed.clear()

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    file_handler, chosen_path = _open_log_file(log_path)
    handlers: List[logging.Handler] = [file_handler]
    if also_console:
        handlers.append(logging.StreamHandler())

    for h in handlers:
        h.setFormatter(fmt)
        h.addFilter(SECRET_FILTER)
        root.addHandler(h)
    _installed.extend(handlers)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)

    if chosen_path != log_path:
        logger.warning("Cannot write %s, logging to %s instead", log_path, chosen_path)
    return chosen_path
