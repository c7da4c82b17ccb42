from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Paths:
    install_root: str = "/opt/tableau/tableau_server"
    environment_file: str = "/etc/opt/tableau/tableau_server/environment.bash"
    data_dir_default: str = "/var/opt/tableau/tableau_server"
    log_default: str = "/var/log/tableau-automated-installer.log"

    def initialize_tsm(self, version: str) -> str:
        return f"{self.install_root}/packages/scripts.{version}/initialize-tsm"

    def tsm(self, version: str) -> str:
        return f"{self.install_root}/packages/customer-bin.{version}/tsm"

    def tabcmd(self, version: str) -> str:
        return f"{self.install_root}/packages/bin.{version}/tabcmd"


PATHS = Paths()


def _strip_trailing_comment(raw: str) -> str:
    # ``#`` opens a comment only outside quotes and at the start of a word.
    quote = ""
    escaped = False
    for i, ch in enumerate(raw):
        if escaped:
            escaped = False
        elif ch == "\\" and quote != "'":
            escaped = True
        elif quote:
            if ch == quote:
                quote = ""
        elif ch in "'\"":
            quote = ch
        elif ch == "#" and (i == 0 or raw[i - 1].isspace()):
            return raw[:i]
    return raw


def split_shell_words(raw: str) -> List[str]:
    """Split the right-hand side of a shell assignment into words.

    Quotes are honoured and a trailing `` # comment`` is dropped, but a ``#``
    inside a word (``abc#def``) is kept. Raises ValueError on unbalanced
    quotes.
    """

    lex = shlex.shlex(_strip_trailing_comment(raw), posix=True)
    lex.whitespace_split = True
    lex.commenters = ""
    return list(lex)


def load_environment_file(path: str) -> Dict[str, str]:
    """Read a shell-style environment file without executing it.

    Accepts ``KEY=value`` and ``export KEY="value"`` lines; anything else
    (functions, conditionals, command substitutions on their own line) is
    skipped.
    """

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(path)

    env: Dict[str, str] = {}
    for line in p.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        key, sep, raw = line.partition("=")
        if not sep or not key.isidentifier():
            continue
        try:
            parts = split_shell_words(raw)
        except ValueError:
            logger.warning("Skipping unparsable line for %s in %s", key, path)
            continue
        env[key] = " ".join(parts)
    return env
