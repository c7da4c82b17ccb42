from __future__ import annotations

import pytest

from tableau_installer.credentials import (
    Secrets,
    load_and_resolve,
    load_secrets_file,
    parse_secrets_text,
    resolve_secrets,
)
from tableau_installer.errors import PreconditionError


FULL = Secrets(
    tsm_admin_user="tsmadmin",
    tsm_admin_pass="tsm-pass",
    tableau_server_admin_user="admin",
    tableau_server_admin_pass="admin-pass",
)


def test_parse_accepts_quotes_comments_and_export():
    values = parse_secrets_text(
        "# comment\n"
        "\n"
        "tsm_admin_user=tsmadmin\n"
        "export tsm_admin_pass='p a$s'\n"
        'tableau_server_admin_user="admin"  # trailing\n'
        "tableau_server_admin_pass=\n"
    )
    assert values == {
        "tsm_admin_user": "tsmadmin",
        "tsm_admin_pass": "p a$s",
        "tableau_server_admin_user": "admin",
        "tableau_server_admin_pass": "",
    }


@pytest.mark.parametrize(
    "line,value",
    [
        ("tsm_admin_pass=abc#def", "abc#def"),
        ('tsm_admin_pass="a#b"  # note', "a#b"),
        ("tsm_admin_pass='#lead'", "#lead"),
        ("tsm_admin_pass=x\\#y", "x#y"),
        ("tsm_admin_pass=   # empty", ""),
    ],
)
def test_hash_is_a_comment_only_at_word_start(line, value):
    assert parse_secrets_text(line + "\n")["tsm_admin_pass"] == value


def test_parse_never_executes_command_substitution():
    values = parse_secrets_text("tsm_admin_pass='$(touch /tmp/pwned)'\n")
    assert values["tsm_admin_pass"] == "$(touch /tmp/pwned)"


@pytest.mark.parametrize(
    "text,match",
    [
        ("rm -rf /\n", "expected key=value"),
        ("PATH=/tmp\n", "unknown key"),
        ("tsm_admin_user='unterminated\n", "unbalanced quotes"),
        ("tsm_admin_user=two words\n", "single word"),
    ],
)
def test_parse_rejects_anything_else(text, match):
    with pytest.raises(PreconditionError, match=match):
        parse_secrets_text(text)


def test_rejection_does_not_echo_value():
    with pytest.raises(PreconditionError) as e:
        parse_secrets_text("tsm_admin_pass=hunter2 hunter3\n")
    assert "hunter2" not in str(e.value)


def test_load_secrets_file(input_files):
    s = load_secrets_file(input_files["secrets"])
    assert s.tsm_admin_user == "tsmadmin"
    assert s.tableau_server_admin_pass == 'pa"ss'


def test_load_missing_file(tmp_path):
    with pytest.raises(PreconditionError, match="secrets.template"):
        load_secrets_file(str(tmp_path / "nope"))


def test_resolve_does_not_prompt_when_complete():
    def prompt(text):
        raise AssertionError("should not prompt")

    assert resolve_secrets(FULL, prompt=prompt) == FULL


def test_resolve_prompts_only_for_missing_passwords():
    asked = []

    def prompt(text):
        asked.append(text)
        return "typed"

    partial = Secrets(
        tsm_admin_user="tsmadmin",
        tsm_admin_pass="",
        tableau_server_admin_user="admin",
        tableau_server_admin_pass="kept",
    )
    s = resolve_secrets(partial, prompt=prompt)
    assert asked == ["TSM administrator password: "]
    assert s.tsm_admin_pass == "typed"
    assert s.tableau_server_admin_pass == "kept"


def test_resolve_fails_when_prompt_returns_empty():
    partial = Secrets(tsm_admin_user="u", tableau_server_admin_user="a", tableau_server_admin_pass="p")
    with pytest.raises(PreconditionError, match="tsm_admin_pass"):
        resolve_secrets(partial, prompt=lambda text: "")


def test_resolve_fails_on_missing_user_without_prompting():
    partial = Secrets(tsm_admin_pass="p", tableau_server_admin_user="a", tableau_server_admin_pass="p")
    with pytest.raises(PreconditionError) as e:
        resolve_secrets(partial, prompt=lambda text: pytest.fail("prompted"))
    assert "tsm_admin_user" in str(e.value)
    assert "-s" in str(e.value)


def test_load_and_resolve_uses_getpass(tmp_path, monkeypatch):
    p = tmp_path / "secrets"
    p.write_text("tsm_admin_user=u\ntableau_server_admin_user=a\n", encoding="utf-8")
    monkeypatch.setattr("getpass.getpass", lambda prompt: "secret")
    s = load_and_resolve(str(p))
    assert s.tsm_admin_pass == "secret"
    assert s.tableau_server_admin_pass == "secret"


def test_repr_hides_passwords():
    text = repr(FULL)
    assert "tsm-pass" not in text
    assert "admin-pass" not in text
    assert "tsmadmin" in text


def test_passwords_property():
    assert FULL.passwords == ("tsm-pass", "admin-pass")


def test_load_non_utf8_file(tmp_path):
    p = tmp_path / "secrets"
    p.write_bytes(b"tsm_admin_pass=\xff\xfe\n")
    with pytest.raises(PreconditionError) as e:
        load_secrets_file(str(p))
    assert "UTF-8" in str(e.value)
    assert "-s" in str(e.value)
    assert "secrets.template" in str(e.value)


def test_load_unreadable_file(tmp_path, monkeypatch):
    p = tmp_path / "secrets"
    p.write_text("tsm_admin_user=u\n", encoding="utf-8")

    def denied(self, *a, **kw):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr("pathlib.Path.read_text", denied)
    with pytest.raises(PreconditionError, match="Permission denied") as e:
        load_secrets_file(str(p))
    assert "secrets.template" in str(e.value)
