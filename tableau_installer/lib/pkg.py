from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from .command import run_cmd

logger = logging.getLogger(__name__)


GDEBI_PACKAGE = "gdebi-core"


def rpm_is_installed(name: str) -> bool:
    return run_cmd(["rpm", "-q", name], check=False).ok


def yum_install(package_file: str) -> None:
    run_cmd(["yum", "install", "-y", package_file])


def dpkg_is_installed(name: str) -> bool:
    """Return True if dpkg has the package registered as installed."""
    r = run_cmd(["dpkg", "-s", name], check=False)
    if not r.ok:
        return False
    # Removed-but-not-purged packages still answer dpkg -s.
    return "Status: install ok installed" in r.stdout


def apt_update() -> None:
    run_cmd(["apt-get", "update"])


def apt_install(packages: Sequence[str]) -> None:
    if not packages:
        return
    run_cmd(["apt-get", "install", "-y", *packages])


def ensure_gdebi() -> None:
    if dpkg_is_installed(GDEBI_PACKAGE):
        return
    logger.info("%s missing, installing it", GDEBI_PACKAGE)
    apt_update()
    apt_install([GDEBI_PACKAGE])


def gdebi_install(package_file: str) -> None:
    run_cmd(["gdebi", "-n", package_file])


def install_rpm(package_file: str) -> bool:
    name = Path(package_file).name[: -len(".rpm")]
    if rpm_is_installed(name):
        logger.info("%s is already installed, skipping", name)
        return False
    yum_install(package_file)
    return True


def install_deb(package_file: str, package_name: str) -> bool:
    ensure_gdebi()
    if dpkg_is_installed(package_name):
        logger.info("%s is already installed, skipping", package_name)
        return False
    gdebi_install(package_file)
    return True


def install_package(package_file: str, *, package_type: str, package_name: str) -> bool:
    """Install the Tableau Server package once. Returns False if it was already there."""

    if package_type == "rpm":
        return install_rpm(package_file)
    if package_type == "deb":
        return install_deb(package_file, package_name)
    raise ValueError(f"unsupported package type: {package_type}")
