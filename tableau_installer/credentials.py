from __future__ import annotations

import getpass
import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Dict

from .config import SECRETS_TEMPLATE
from .errors import PreconditionError
from .lib.env import split_shell_words

logger = logging.getLogger(__name__)


KNOWN_KEYS = (
    "tsm_admin_user",
    "tsm_admin_pass",
    "tableau_server_admin_user",
    "tableau_server_admin_pass",
)

PROMPTS = {
    "tsm_admin_pass": "TSM administrator password: ",
    "tableau_server_admin_pass": "Tableau Server administrator password: ",
}


@dataclass(frozen=True)
class Secrets:
    tsm_admin_user: str = ""
    tsm_admin_pass: str = ""
    tableau_server_admin_user: str = ""
    tableau_server_admin_pass: str = ""

    def __repr__(self) -> str:
        return (
            f"Secrets(tsm_admin_user={self.tsm_admin_user!r}, tsm_admin_pass='***', "
            f"tableau_server_admin_user={self.tableau_server_admin_user!r}, "
            f"tableau_server_admin_pass='***')"
        )

    @property
    def passwords(self) -> tuple[str, ...]:
        return tuple(p for p in (self.tsm_admin_pass, self.tableau_server_admin_pass) if p)


def parse_secrets_text(text: str, *, source: str = "<secrets>") -> Dict[str, str]:
    """Parse ``key=value`` assignments. The content is never executed.

    Only the four known keys are accepted; an ``export`` prefix, shell-style
    quotes, blank lines and ``#`` comments are tolerated. Anything else is
    rejected with the offending line number (never the value).
    """

    values: Dict[str, str] = {}
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()

        key, sep, raw = line.partition("=")
        key = key.strip()
        if not sep:
            raise PreconditionError(
                f"{source}:{lineno}: expected key=value",
                remediation=f"See {SECRETS_TEMPLATE} for the expected format.",
            )
        if key not in KNOWN_KEYS:
            raise PreconditionError(
                f"{source}:{lineno}: unknown key {key!r}",
                remediation=f"Only {', '.join(KNOWN_KEYS)} are allowed.",
            )
        try:
            parts = split_shell_words(raw)
        except ValueError:
            raise PreconditionError(f"{source}:{lineno}: unbalanced quotes in value for {key}")
        if len(parts) > 1:
            raise PreconditionError(
                f"{source}:{lineno}: value for {key} must be a single word or quoted"
            )
        values[key] = parts[0] if parts else ""
    return values


def load_secrets_file(path: str) -> Secrets:
    p = Path(path)
    if not p.is_file():
        raise PreconditionError(
            f"Secrets file not found: {path}",
            remediation=f"Create it from {SECRETS_TEMPLATE} and pass it with -s.",
        )
    try:
        text = p.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        raise PreconditionError(
            f"Secrets file {path} is not valid UTF-8 text",
            remediation=f"Recreate it from {SECRETS_TEMPLATE} and pass it with -s.",
        )
    except OSError as e:
        raise PreconditionError(
            f"Cannot read secrets file {path}: {e.strerror or e}",
            remediation=f"Check its permissions, or pass another file with -s (see {SECRETS_TEMPLATE}).",
        )
    return Secrets(**parse_secrets_text(text, source=path))


def resolve_secrets(secrets: Secrets, *, prompt=getpass.getpass) -> Secrets:
    """Prompt (without echo) for missing passwords, then require all four fields."""

    updates: Dict[str, str] = {}
    for key, text in PROMPTS.items():
        if not getattr(secrets, key):
            logger.info("%s not set in secrets file, prompting", key)
            updates[key] = prompt(text)
    if updates:
        secrets = replace(secrets, **updates)

    for f in fields(secrets):
        if not getattr(secrets, f.name):
            raise PreconditionError(
                f"Required secret {f.name} is empty.",
                remediation=f"Set {f.name} in the secrets file passed with -s (see {SECRETS_TEMPLATE}).",
            )
    return secrets


def load_and_resolve(path: str) -> Secrets:
    return resolve_secrets(load_secrets_file(path), prompt=getpass.getpass)
