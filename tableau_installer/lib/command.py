from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from typing import Iterable, Sequence

from ..errors import DelegatedToolError

logger = logging.getLogger(__name__)

MASK = "********"


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def dquote(value: str) -> str:
    """Quote a value for a double-quoted shell context.

    ``"``, ``\\``, ``$`` and backticks are backslash-escaped so the value can
    neither terminate the quotes nor trigger expansion.
    """

    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("$", "\\$")
        .replace("`", "\\`")
    )
    return f'"{escaped}"'


def dquote_join(argv: Sequence[str]) -> str:
    return " ".join(dquote(a) for a in argv)


def mask_secrets(text: str, secrets: Iterable[str]) -> str:
    """Replace each secret, raw or in its ``dquote`` escaped form, with MASK."""
    for s in secrets:
        if not s:
            continue
        # Longest forms first so the raw value never survives inside an escaped one.
        for form in sorted({dquote(s)[1:-1], s}, key=len, reverse=True):
            text = text.replace(form, MASK)
    return text


def _fmt_argv(argv: Sequence[str], secrets: Iterable[str] = ()) -> str:
    secrets = list(secrets)
    return " ".join(shlex.quote(mask_secrets(a, secrets)) for a in argv)


def run_cmd(
    argv: Sequence[str],
    *,
    check: bool = True,
    timeout: float | None = None,
    secrets: Sequence[str] = (),
) -> CmdResult:
    """Run a command with consistent logging.

    - Always logs the command, with every value in ``secrets`` masked.
    - Captures stdout/stderr into the returned CmdResult.
    - With ``check`` a non-zero exit raises DelegatedToolError.
    """

    argv_list = list(argv)
    shown = _fmt_argv(argv_list, secrets)
    logger.info("CMD %s", shown)

    try:
        p = subprocess.run(
            argv_list,
            text=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise DelegatedToolError(f"Command not found: {argv_list[0]}") from e
    except subprocess.TimeoutExpired as e:
        raise DelegatedToolError(f"Command timed out after {timeout}s: {shown}") from e

    if p.stdout:
        logger.debug("STDOUT %s", mask_secrets(p.stdout.strip(), secrets))
    if p.stderr:
        logger.debug("STDERR %s", mask_secrets(p.stderr.strip(), secrets))

    result = CmdResult(argv=argv_list, returncode=p.returncode, stdout=p.stdout or "", stderr=p.stderr or "")

    if check and p.returncode != 0:
        raise DelegatedToolError(
            f"Command failed ({p.returncode}): {shown}\n{mask_secrets(result.stderr, secrets)}",
            result=result,
        )

    return result
