from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass, fields
from typing import List, Optional, Sequence

from .config import PORT_FLAGS, InstallConfig
from .credentials import Secrets
from .lib.command import CmdResult, run_cmd
from .lib.env import PATHS
from .lib.identity import as_user_argv
from .lib.node_ports import CONTROLLER_PORT_KEY, read_port

logger = logging.getLogger(__name__)


START_REQUEST_TIMEOUT = 2300


class ServerStatus(enum.Enum):
    RUNNING = "RUNNING"
    DEGRADED = "DEGRADED"
    STARTING = "STARTING"
    STOPPING = "STOPPING"
    STOPPED = "STOPPED"
    ERROR = "ERROR"
    UNLICENSED = "UNLICENSED"
    UNKNOWN = "UNKNOWN"


_STATUS_RE = re.compile(r"^\s*Status:\s*([A-Za-z_]+)", re.MULTILINE)


def parse_server_status(output: str) -> ServerStatus:
    """Translate ``tsm status`` output into a ServerStatus.

    This is the only place that knows the tool's text format.
    """

    m = _STATUS_RE.search(output)
    if not m:
        return ServerStatus.UNKNOWN
    try:
        return ServerStatus(m.group(1).upper())
    except ValueError:
        return ServerStatus.UNKNOWN


def build_initialize_argv(cfg: InstallConfig, secrets: Optional[Secrets] = None) -> List[str]:
    """Translate an InstallConfig into an initialize-tsm command line."""

    argv = [PATHS.initialize_tsm(cfg.version), "--accepteula"]
    if cfg.force:
        argv.append("-f")
    if not cfg.verbose:
        argv.append("-q")
    if cfg.skip_group:
        argv.append("-g")
    if cfg.config_name:
        argv += ["-c", cfg.config_name]
    if cfg.data_dir:
        argv += ["-d", cfg.data_dir]
    if cfg.group_username:
        argv += ["-a", cfg.group_username]

    for f in fields(cfg.ports):
        value = getattr(cfg.ports, f.name)
        if value:
            argv += [PORT_FLAGS[f.name], str(value)]

    if cfg.disable_port_remapping:
        argv.append("--disable-port-remapping")
    if cfg.unprivileged_user:
        argv.append(f"--unprivileged-user={cfg.unprivileged_user}")
    if cfg.tsm_authorized_group:
        argv.append(f"--tsm-authorized-group={cfg.tsm_authorized_group}")
    if cfg.disable_account_creation:
        argv.append("--disable-account-creation")
    if cfg.debug:
        argv.append("--debug")

    if cfg.bootstrap_file:
        if secrets is None:
            raise ValueError("joining a cluster requires the TSM administrator credentials")
        argv += ["-b", cfg.bootstrap_file, "-u", secrets.tsm_admin_user, "-p", secrets.tsm_admin_pass]
    return argv


def initialize_tsm(cfg: InstallConfig, secrets: Secrets) -> CmdResult:
    mode = "fresh install" if cfg.is_fresh_install else f"join cluster via {cfg.bootstrap_file}"
    logger.info("Initializing TSM (%s)", mode)
    return run_cmd(build_initialize_argv(cfg, secrets), secrets=secrets.passwords)


@dataclass
class TsmClient:
    """Runs tsm and tabcmd as the running user against the local controller."""

    cfg: InstallConfig
    running_user: str
    env_dir: str = ""
    controller_port: int = 0

    def resolve_controller_port(self) -> int:
        # Only read the ports file when the operator did not pass -o.
        if not self.controller_port:
            self.controller_port = self.cfg.ports.controller or read_port(
                self.cfg.ports_file, CONTROLLER_PORT_KEY
            )
        return self.controller_port

    def _run(self, argv: Sequence[str], *, secrets: Sequence[str] = (), check: bool = True) -> CmdResult:
        return run_cmd(
            as_user_argv(self.running_user, argv, env_dir=self.env_dir),
            secrets=secrets,
            check=check,
        )

    def tsm(self, *args: str, check: bool = True) -> CmdResult:
        server = f"https://localhost:{self.resolve_controller_port()}"
        return self._run([PATHS.tsm(self.cfg.version), *args, "--server", server], check=check)

    def tabcmd(self, *args: str, secrets: Sequence[str] = ()) -> CmdResult:
        return self._run([PATHS.tabcmd(self.cfg.version), *args], secrets=secrets)

    def status(self) -> ServerStatus:
        # tsm status exits non-zero for some unhealthy states; the text decides.
        r = self.tsm("status", check=False)
        return parse_server_status(r.stdout)
