from __future__ import annotations

import argparse
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Sequence

from .errors import PreconditionError, UsageError
from .lib.command import run_cmd
from .lib.env import PATHS

logger = logging.getLogger(__name__)


PACKAGE_NAME_PREFIX = "tableau-server-"
DEFAULT_CONFIG_NAME = "Tableau Server"

PKG_RPM = "rpm"
PKG_DEB = "deb"
SUPPORTED_PACKAGE_TYPES = {".rpm": PKG_RPM, ".deb": PKG_DEB}

SECRETS_TEMPLATE = "secrets.template"
CONFIG_TEMPLATE = "config.template.json"
REGISTRATION_TEMPLATE = "registration.template.json"


@dataclass(frozen=True)
class Ports:
    """Network ports handed to initialize-tsm. 0 leaves the tool's default."""

    coordination_client: int = 0
    coordination_peer: int = 0
    coordination_leader: int = 0
    license_vendor_daemon: int = 0
    agent_filetransfer: int = 0
    controller: int = 0
    range_min: int = 0
    range_max: int = 0


# Short flag for each Ports field, in the order initialize-tsm receives them.
PORT_FLAGS: Dict[str, str] = {
    "coordination_client": "-i",
    "coordination_peer": "-e",
    "coordination_leader": "-m",
    "license_vendor_daemon": "-t",
    "agent_filetransfer": "-n",
    "controller": "-o",
    "range_min": "-l",
    "range_max": "-x",
}


@dataclass(frozen=True)
class InstallConfig:
    package_file: str
    package_type: str
    package_name: str
    version: str
    secrets_file: str
    config_file: str
    registration_file: str
    data_dir: str = ""
    config_name: str = ""
    license_key: str = ""
    bootstrap_file: str = ""
    accept_eula: bool = False
    force: bool = False
    verbose: bool = False
    debug: bool = False
    skip_group: bool = False
    group_username: str = ""
    ports: Ports = field(default_factory=Ports)
    disable_port_remapping: bool = False
    unprivileged_user: str = ""
    tsm_authorized_group: str = ""
    disable_account_creation: bool = False
    log_path: str = PATHS.log_default

    @property
    def is_fresh_install(self) -> bool:
        return not self.bootstrap_file

    @property
    def effective_data_dir(self) -> str:
        return self.data_dir or PATHS.data_dir_default

    @property
    def config_slug(self) -> str:
        return (self.config_name or DEFAULT_CONFIG_NAME).strip().lower().replace(" ", "_")

    @property
    def ports_file(self) -> Path:
        """Per-node ports file written by initialize-tsm."""
        return (
            Path(self.effective_data_dir)
            / "data/tabsvc/config"
            / f"tabadminagent_0.{self.version}"
            / f"ports.{self.config_slug}.yml"
        )


class _Parser(argparse.ArgumentParser):
    def error(self, message: str):  # type: ignore[override]
        raise UsageError(f"{message}\n{self.format_usage().strip()}")


def _port(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}")
    if not 0 <= n <= 65535:
        raise argparse.ArgumentTypeError(f"port out of range: {n}")
    return n


def build_parser() -> argparse.ArgumentParser:
    p = _Parser(
        prog="tableau-automated-installer",
        description="Install, initialize and configure a Tableau Server node.",
        allow_abbrev=False,
    )
    p.add_argument("-s", dest="secrets_file", metavar="FILE", default="", help="Secrets file (see secrets.template)")
    p.add_argument("-f", dest="config_file", metavar="FILE", default="", help="Configuration/topology JSON file")
    p.add_argument("-r", dest="registration_file", metavar="FILE", default="", help="Registration JSON file")
    p.add_argument("-d", dest="data_dir", metavar="DIR", default="", help="Data directory")
    p.add_argument("-c", dest="config_name", metavar="NAME", default="", help="Service configuration name")
    p.add_argument("-k", dest="license_key", metavar="KEY", default="", help="License key (omit for a trial)")
    p.add_argument("-g", dest="skip_group", action="store_true", help="Do not add the user to the TSM authorized group")
    p.add_argument("-a", dest="group_username", metavar="USER", default="", help="User to add to the TSM authorized group")
    p.add_argument("-b", dest="bootstrap_file", metavar="FILE", default="", help="Bootstrap file (join an existing cluster)")
    p.add_argument("-v", dest="verbose", action="store_true", help="Verbose output")
    p.add_argument("-i", dest="coordination_client", type=_port, default=0, metavar="PORT")
    p.add_argument("-e", dest="coordination_peer", type=_port, default=0, metavar="PORT")
    p.add_argument("-m", dest="coordination_leader", type=_port, default=0, metavar="PORT")
    p.add_argument("-t", dest="license_vendor_daemon", type=_port, default=0, metavar="PORT")
    p.add_argument("-n", dest="agent_filetransfer", type=_port, default=0, metavar="PORT")
    p.add_argument("-o", dest="controller", type=_port, default=0, metavar="PORT")
    p.add_argument("-l", dest="range_min", type=_port, default=0, metavar="PORT")
    p.add_argument("-x", dest="range_max", type=_port, default=0, metavar="PORT")
    p.add_argument("--accepteula", dest="accept_eula", action="store_true", help="Accept the End User License Agreement")
    p.add_argument("--force", action="store_true", help="Bypass initialize-tsm warnings")
    p.add_argument("--disable-port-remapping", action="store_true")
    p.add_argument("--unprivileged-user", default="", metavar="NAME")
    p.add_argument("--tsm-authorized-group", default="", metavar="NAME")
    p.add_argument("--disable-account-creation", action="store_true")
    p.add_argument("--debug", action="store_true")
    p.add_argument("--log", dest="log_path", default=PATHS.log_default, metavar="PATH", help="Installer log file")
    p.add_argument("package", nargs="*", help="Tableau Server .rpm or .deb package")
    return p


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = build_parser()
    args, extras = parser.parse_known_args(list(argv))
    for extra in extras:
        if extra.startswith("-"):
            raise UsageError(f"unknown option: {extra}\n{parser.format_usage().strip()}")
    args.package = list(args.package) + [e for e in extras if not e.startswith("-")]
    return args


def require_root() -> None:
    if os.geteuid() != 0:
        raise PreconditionError(
            "This installer must be run with elevated privileges.",
            remediation="Re-run it with sudo or as root.",
        )


def _require_file(path: str, *, flag: str, what: str, template: str) -> None:
    if not path:
        raise PreconditionError(
            f"No {what} supplied.",
            remediation=f"Pass it with {flag} <file>; {template} shows the expected content.",
        )
    if not Path(path).is_file():
        raise PreconditionError(
            f"{what.capitalize()} not found: {path}",
            remediation=f"Create it from {template} and pass it with {flag}.",
        )


def package_type_of(path: str) -> str:
    ext = Path(path).suffix.lower()
    if ext not in SUPPORTED_PACKAGE_TYPES:
        raise PreconditionError(
            f"Unsupported package type: {path}",
            remediation="Supply a Tableau Server .rpm or .deb package.",
        )
    return SUPPORTED_PACKAGE_TYPES[ext]


def query_package_name(path: str, package_type: str) -> str:
    if package_type == PKG_RPM:
        r = run_cmd(["rpm", "-qp", "--queryformat", "%{NAME}", path])
    else:
        r = run_cmd(["dpkg-deb", "--field", path, "Package"])
    return r.stdout.strip()


def version_from_package_name(name: str) -> str:
    if name.startswith(PACKAGE_NAME_PREFIX):
        return name[len(PACKAGE_NAME_PREFIX):]
    return name


def load_install_config(argv: Sequence[str]) -> InstallConfig:
    """Parse and validate the command line into an InstallConfig.

    Raises UsageError for malformed flags and PreconditionError for anything
    that must be fixed on disk or on the command line before installing.
    Nothing is mutated on the host before this returns.
    """

    args = parse_args(argv)

    if not args.accept_eula:
        raise PreconditionError(
            "The End User License Agreement has not been accepted.",
            remediation="Read the EULA and re-run with --accepteula.",
        )

    packages: List[str] = args.package
    if len(packages) != 1:
        raise UsageError(
            f"Expected exactly one package file, got {len(packages)}\n"
            f"{build_parser().format_usage().strip()}"
        )
    package_file = packages[0]
    if not Path(package_file).is_file():
        raise PreconditionError(f"Package file not found: {package_file}")
    package_type = package_type_of(package_file)

    _require_file(args.secrets_file, flag="-s", what="secrets file", template=SECRETS_TEMPLATE)
    _require_file(args.config_file, flag="-f", what="config file", template=CONFIG_TEMPLATE)
    _require_file(args.registration_file, flag="-r", what="registration file", template=REGISTRATION_TEMPLATE)

    if args.bootstrap_file and not Path(args.bootstrap_file).is_file():
        raise PreconditionError(
            f"Bootstrap file not found: {args.bootstrap_file}",
            remediation="Generate one on the initial node with 'tsm topology nodes get-bootstrap-file'.",
        )

    if args.skip_group and args.group_username:
        logger.warning(
            "-g and -a were both given; forwarding both to initialize-tsm unchanged"
        )

    package_name = query_package_name(package_file, package_type)
    version = version_from_package_name(package_name)
    if not version:
        raise PreconditionError(f"Could not determine the product version of {package_file}")

    ports = Ports(
        coordination_client=args.coordination_client,
        coordination_peer=args.coordination_peer,
        coordination_leader=args.coordination_leader,
        license_vendor_daemon=args.license_vendor_daemon,
        agent_filetransfer=args.agent_filetransfer,
        controller=args.controller,
        range_min=args.range_min,
        range_max=args.range_max,
    )

    cfg = InstallConfig(
        package_file=package_file,
        package_type=package_type,
        package_name=package_name,
        version=version,
        secrets_file=args.secrets_file,
        config_file=args.config_file,
        registration_file=args.registration_file,
        data_dir=args.data_dir,
        config_name=args.config_name,
        license_key=args.license_key,
        bootstrap_file=args.bootstrap_file,
        accept_eula=args.accept_eula,
        force=args.force,
        verbose=args.verbose,
        debug=args.debug,
        skip_group=args.skip_group,
        group_username=args.group_username,
        ports=ports,
        disable_port_remapping=args.disable_port_remapping,
        unprivileged_user=args.unprivileged_user,
        tsm_authorized_group=args.tsm_authorized_group,
        disable_account_creation=args.disable_account_creation,
        log_path=args.log_path,
    )
    logger.info(
        "Package %s (%s), version %s, mode %s",
        cfg.package_file,
        cfg.package_type,
        cfg.version,
        "fresh install" if cfg.is_fresh_install else "join cluster",
    )
    return cfg
