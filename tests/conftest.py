from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import pytest

from tableau_installer.config import InstallConfig
from tableau_installer.logging_utils import SECRET_FILTER

Response = Tuple[int, str]


class FakeRunner:
    """Stands in for subprocess.run and records every argv it sees.

    Rules are (predicate, (returncode, stdout)) pairs matched against the
    command joined with spaces; the first match wins, otherwise (0, "").
    """

    def __init__(self) -> None:
        self.calls: List[List[str]] = []
        self.rules: List[Tuple[Callable[[str], bool], Response]] = []

    def on(self, needle: str, returncode: int = 0, stdout: str = "") -> "FakeRunner":
        self.rules.insert(0, (lambda cmd: needle in cmd, (returncode, stdout)))
        return self

    def __call__(self, argv, **kwargs):
        argv = list(argv)
        self.calls.append(argv)
        cmd = " ".join(argv)
        rc, out = 0, ""
        for pred, resp in self.rules:
            if pred(cmd):
                rc, out = resp
                break
        return subprocess.CompletedProcess(argv, rc, out, "")

    def commands(self) -> List[str]:
        return [" ".join(c) for c in self.calls]

    def find(self, needle: str) -> Optional[List[str]]:
        for c in self.calls:
            if needle in " ".join(c):
                return c
        return None

    def count(self, needle: str) -> int:
        return sum(1 for c in self.commands() if needle in c)


@pytest.fixture(autouse=True)
def forget_secrets():
    yield
    SECRET_FILTER.clear()


@pytest.fixture
def runner(monkeypatch) -> FakeRunner:
    fake = FakeRunner()
    monkeypatch.setattr("tableau_installer.lib.command.subprocess.run", fake)
    return fake


@pytest.fixture
def input_files(tmp_path: Path):
    """A package plus secrets, config and registration files on disk."""

    pkg = tmp_path / "server-10.0.0.rpm"
    pkg.write_bytes(b"rpm")
    secrets = tmp_path / "secrets"
    secrets.write_text(
        'tsm_admin_user="tsmadmin"\n'
        'tsm_admin_pass="tsm-pass"\n'
        'tableau_server_admin_user="admin"\n'
        'tableau_server_admin_pass=\'pa"ss\'\n',
        encoding="utf-8",
    )
    config = tmp_path / "config.json"
    config.write_text("{}", encoding="utf-8")
    registration = tmp_path / "registration.json"
    registration.write_text("{}", encoding="utf-8")
    return {
        "package": str(pkg),
        "secrets": str(secrets),
        "config": str(config),
        "registration": str(registration),
        "data_dir": str(tmp_path / "data"),
    }


@pytest.fixture
def make_cfg(input_files):
    def _make(**overrides) -> InstallConfig:
        values = dict(
            package_file=input_files["package"],
            package_type="rpm",
            package_name="tableau-server-10.0.0",
            version="10.0.0",
            secrets_file=input_files["secrets"],
            config_file=input_files["config"],
            registration_file=input_files["registration"],
            data_dir=input_files["data_dir"],
            accept_eula=True,
        )
        values.update(overrides)
        return InstallConfig(**values)

    return _make


def write_ports_file(cfg: InstallConfig, gateway: int = 8080, controller: int = 8850) -> Path:
    p = cfg.ports_file
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(
        f"worker0.gateway.port: {gateway}\n"
        f"worker0.tabadmincontroller.port: {controller}\n"
        "worker0.vizportal.port: 8600\n",
        encoding="utf-8",
    )
    return p


@pytest.fixture
def write_ports():
    return write_ports_file
