from __future__ import annotations

import logging

import pytest

from tableau_installer import logging_utils
from tableau_installer.lib.command import MASK
from tableau_installer.logging_utils import SECRET_FILTER, configure_logging, register_secrets


@pytest.fixture
def clean_root():
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    yield root
    for h in list(logging_utils._installed):
        root.removeHandler(h)
        h.close()
    logging_utils._installed.clear()
    SECRET_FILTER.clear()
    for h in list(root.handlers):
        if h not in saved_handlers:
            root.removeHandler(h)
    root.setLevel(saved_level)


def flush(root):
    for h in root.handlers:
        h.flush()


def test_writes_requested_file(clean_root, tmp_path):
    path = tmp_path / "logs" / "installer.log"
    assert configure_logging(log_path=str(path), also_console=False) == str(path)
    logging.getLogger("x").info("hello")
    flush(clean_root)
    assert "hello" in path.read_text(encoding="utf-8")


def test_verbose_sets_debug_level(clean_root, tmp_path):
    path = tmp_path / "installer.log"
    configure_logging(log_path=str(path), also_console=False)
    assert clean_root.level == logging.INFO

    configure_logging(log_path=str(path), verbose=True, also_console=False)
    assert clean_root.level == logging.DEBUG
    logging.getLogger("x").debug("detail")
    flush(clean_root)
    assert "detail" in path.read_text(encoding="utf-8")


def test_second_call_replaces_handlers(clean_root, tmp_path):
    first = str(tmp_path / "installer.log")
    configure_logging(log_path=first, also_console=False)
    count = len(clean_root.handlers)

    second = str(tmp_path / "other.log")
    assert configure_logging(log_path=second, also_console=False) == second
    assert len(clean_root.handlers) == count

    logging.getLogger("x").info("only once")
    flush(clean_root)
    assert "only once" not in (tmp_path / "installer.log").read_text(encoding="utf-8")
    assert "only once" in (tmp_path / "other.log").read_text(encoding="utf-8")


def test_falls_back_to_cwd(clean_root, tmp_path, monkeypatch):
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    chosen = configure_logging(log_path=str(blocker / "sub" / "x.log"), also_console=False)

    assert chosen == str(tmp_path / "tableau-automated-installer.log")
    flush(clean_root)
    assert "logging to" in (tmp_path / "tableau-automated-installer.log").read_text(encoding="utf-8")


def test_registered_secrets_are_masked_in_any_record(clean_root, tmp_path):
    path = tmp_path / "installer.log"
    configure_logging(log_path=str(path), also_console=False)
    register_secrets(["hunter2", 'pa"ss', ""])

    log = logging.getLogger("tableau_installer.steps")
    log.info("password is %s", "hunter2")
    log.warning('tool said: --password "pa\\"ss"')
    log.info("nothing secret %d", 42)
    flush(clean_root)

    text = path.read_text(encoding="utf-8")
    assert "hunter2" not in text
    assert "pa" + '"ss' not in text
    assert 'pa\\"ss' not in text
    assert f"password is {MASK}" in text
    assert "nothing secret 42" in text
