from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from .config import InstallConfig, load_install_config, require_root
from .credentials import Secrets, load_and_resolve
from .errors import EXIT_OK, InstallerError
from .lib.env import PATHS
from .lib.identity import resolve_running_user, unprivileged_user_from_environment, user_config_dir
from .lib.pkg import install_package
from .logging_utils import configure_logging, register_secrets
from .pipeline import PipelineResult, SetupCtx, run_pipeline
from .steps import (
    ActivateLicenseStep,
    ApplyPendingChangesStep,
    CheckStatusStep,
    CreateAdminUserStep,
    DiscoverGatewayPortStep,
    ImportConfigStep,
    InitializeStartStep,
    PropagationDelayStep,
    RegisterStep,
)
from .tsm import TsmClient, initialize_tsm

logger = logging.getLogger(__name__)


def build_steps():
    return [
        ActivateLicenseStep(),
        RegisterStep(),
        ImportConfigStep(),
        ApplyPendingChangesStep(),
        InitializeStartStep(),
        CheckStatusStep(),
        PropagationDelayStep(),
        DiscoverGatewayPortStep(),
        CreateAdminUserStep(),
    ]


def build_tsm_client(cfg: InstallConfig) -> TsmClient:
    running_user = resolve_running_user(cfg.group_username)
    unprivileged = unprivileged_user_from_environment(PATHS.environment_file, fallback=cfg.unprivileged_user)
    env_dir = user_config_dir(cfg.config_slug, unprivileged_user=unprivileged)
    return TsmClient(cfg=cfg, running_user=running_user, env_dir=env_dir)


def run_setup(cfg: InstallConfig, secrets: Secrets) -> PipelineResult:
    ctx = SetupCtx(cfg=cfg, secrets=secrets, tsm=build_tsm_client(cfg))
    result = run_pipeline(ctx=ctx, steps=build_steps())
    for w in ctx.warnings:
        logger.warning("Setup finished with warning: %s", w)
    return result


def run(argv: Sequence[str]) -> Optional[PipelineResult]:
    """Install, initialize and (for a fresh install) configure this node.

    Returns the setup pipeline result, or None when joining a cluster.
    """

    require_root()
    cfg = load_install_config(argv)
    if cfg.verbose:
        configure_logging(log_path=cfg.log_path, verbose=True)

    secrets = load_and_resolve(cfg.secrets_file)
    register_secrets(secrets.passwords)

    if install_package(cfg.package_file, package_type=cfg.package_type, package_name=cfg.package_name):
        logger.info("Installed %s", cfg.package_file)

    initialize_tsm(cfg, secrets)

    if not cfg.is_fresh_install:
        logger.info("Node joined the cluster; run remaining configuration from the initial node")
        return None

    result = run_setup(cfg, secrets)
    logger.info("Tableau Server %s is installed and configured (steps: %s)", cfg.version, ", ".join(result.ran_steps))
    return result


def _log_path(argv: Sequence[str]) -> str:
    p = argparse.ArgumentParser(add_help=False, allow_abbrev=False)
    p.add_argument("--log", dest="log_path", default=PATHS.log_default)
    args, _ = p.parse_known_args(list(argv))
    return args.log_path


def main(argv: Optional[list[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    configure_logging(log_path=_log_path(argv))

    try:
        run(argv)
    except InstallerError as e:
        logger.error("%s", e)
        return e.exit_code
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
