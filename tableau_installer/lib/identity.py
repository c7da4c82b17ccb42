from __future__ import annotations

import logging
import os
import pwd
from typing import List, Mapping, Optional, Sequence

from ..errors import PreconditionError
from .command import dquote, dquote_join
from .env import PATHS, load_environment_file

logger = logging.getLogger(__name__)


SUPERUSER = "root"
DEFAULT_UNPRIVILEGED_USER = "tableau"


def _login_name() -> str:
    try:
        return os.getlogin()
    except OSError:
        return ""


def resolve_running_user(
    override: str = "",
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """Pick the account that delegated tsm/tabcmd commands run as.

    Probed in order: explicit override, the sudo invoker, the login name, then
    $USER. The superuser is never chosen.
    """

    env = os.environ if environ is None else environ
    candidates = [
        ("override", override),
        ("SUDO_USER", env.get("SUDO_USER", "")),
        ("login name", _login_name()),
        ("USER", env.get("USER", "")),
    ]
    for source, name in candidates:
        if name and name != SUPERUSER:
            logger.info("Running delegated commands as %s (from %s)", name, source)
            return name

    raise PreconditionError(
        "Could not determine a non-root user to run tsm as.",
        remediation="Run the installer through sudo from a regular account, or pass -a <username>.",
    )


def unprivileged_user_from_environment(
    environment_file: str = PATHS.environment_file,
    fallback: str = "",
) -> str:
    """Read the unprivileged service account initialize-tsm recorded."""

    try:
        env = load_environment_file(environment_file)
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(
            "Cannot read %s (%s), assuming unprivileged user %s",
            environment_file, e, fallback or DEFAULT_UNPRIVILEGED_USER,
        )
        env = {}
    return env.get("TABLEAU_SERVER_UNPRIVILEGED_USER") or fallback or DEFAULT_UNPRIVILEGED_USER


def home_dir(user: str) -> str:
    try:
        return pwd.getpwnam(user).pw_dir
    except KeyError:
        raise PreconditionError(f"Unprivileged account {user!r} does not exist")


def user_config_dir(config_slug: str, *, unprivileged_user: str) -> str:
    return f"{home_dir(unprivileged_user)}/.config/systemd/{config_slug}.conf.d"


def as_user_argv(user: str, argv: Sequence[str], *, env_dir: str = "") -> List[str]:
    """Wrap argv so it runs as ``user`` in a login shell.

    Every ``*.conf`` file in ``env_dir`` is sourced first so the tool sees the
    service environment. Arguments and ``env_dir`` are double-quoted with
    shell metacharacters escaped; only ``*.conf`` is left for the shell to
    expand.
    """

    script = dquote_join(argv)
    if env_dir:
        script = f'for f in {dquote(env_dir)}/*.conf; do [ -r "$f" ] && . "$f"; done; {script}'
    return ["su", "--login", user, "--command", script]
