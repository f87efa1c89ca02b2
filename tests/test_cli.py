"""
Tests for the command-line front end
"""

import json

import pytest
from unittest.mock import AsyncMock, MagicMock

from wellnest_client import cli
from wellnest_client.client import WellNestClient
from wellnest_client.config import Settings, set_settings
from wellnest_client.models import Role
from wellnest_client.storage import FileSessionStorage
from tests.factories import make_auth_payload, make_session


@pytest.fixture
def session_file(tmp_path, monkeypatch):
    """Fresh settings, no logging handlers, session kept under tmp_path"""
    set_settings(Settings())
    monkeypatch.setattr(cli, "setup_logging", MagicMock())
    yield str(tmp_path / "session.json")
    set_settings(None)


def sign_in(path, role=Role.USER):
    session = make_session(role)
    FileSessionStorage(path).write(session.token, session.identity_record())
    return session


def test_open_root_while_signed_out(session_file, capsys):
    assert cli.main(["--session-file", session_file, "open", "/"]) == 0
    assert capsys.readouterr().out.strip() == "/ -> /login"


def test_open_admin_page_as_user(session_file, capsys):
    sign_in(session_file)
    assert cli.main(["--session-file", session_file, "open", "/admin/dashboard"]) == 0
    assert capsys.readouterr().out.strip() == "/admin/dashboard -> /dashboard"


def test_open_renders_allowed_page(session_file, capsys):
    sign_in(session_file, Role.TRAINER)
    cli.main(["--session-file", session_file, "open", "/trainer-dashboard"])
    assert capsys.readouterr().out.strip() == "/trainer-dashboard"


def test_whoami(session_file, capsys):
    assert cli.main(["--session-file", session_file, "whoami"]) == 1
    assert "Not signed in." in capsys.readouterr().out

    sign_in(session_file, Role.ADMIN)
    assert cli.main(["--session-file", session_file, "whoami"]) == 0
    assert "role=ADMIN" in capsys.readouterr().out


def test_login_and_logout(session_file, capsys, monkeypatch):
    login = AsyncMock(return_value=make_auth_payload())
    monkeypatch.setattr(WellNestClient, "login", login)

    code = cli.main(["--session-file", session_file, "login", "alice", "--password", "secret1"])

    assert code == 0
    login.assert_awaited_once_with("alice", "secret1")
    assert "[ok] Welcome back, Alice Smith!" in capsys.readouterr().out
    with open(session_file) as f:
        assert json.load(f)["token"] == "tok-123"

    assert cli.main(["--session-file", session_file, "logout"]) == 0
    assert "[i] You have been signed out" in capsys.readouterr().out
    assert FileSessionStorage(session_file).read() == {}


def test_remote_error_is_reported(session_file, capsys):
    # No session: the client refuses before touching the network
    assert cli.main(["--session-file", session_file, "trainers", "list"]) == 1
    assert "[x] You must be signed in to do that" in capsys.readouterr().err


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args([])
