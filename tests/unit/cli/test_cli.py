"""Tests for the session-sharing command line tool."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from src.cli import app
from tests.utils import identity_claims, make_token

runner = CliRunner()

_SECRET = "cli-secret"


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(
        "config:\n"
        "  database:\n"
        f"    url: sqlite:///{tmp_path / 'forum.db'}\n"
        "  session_sharing:\n"
        "    name: demo\n"
        f"    secret: {_SECRET}\n"
    )
    return path


@pytest.fixture
def unconfigured_file(tmp_path: Path) -> Path:
    path = tmp_path / "empty.yaml"
    path.write_text("config:\n  session_sharing:\n    name: demo\n")
    return path


def test_init_db_creates_tables(config_file: Path, tmp_path: Path):
    result = runner.invoke(app, ["init-db", "--config", str(config_file)])

    assert result.exit_code == 0, result.output
    assert (tmp_path / "forum.db").exists()


def test_check_config_ready(config_file: Path):
    result = runner.invoke(app, ["check-config", "--config", str(config_file)])

    assert result.exit_code == 0, result.output
    assert "demo:uid" in result.output
    assert _SECRET not in result.output


def test_check_config_without_secret(unconfigured_file: Path):
    result = runner.invoke(app, ["check-config", "--config", str(unconfigured_file)])

    assert result.exit_code == 1
    assert "not ready" in result.output


def test_verify_token(config_file: Path):
    token = make_token(identity_claims(username="carol"), _SECRET)

    result = runner.invoke(app, ["verify-token", token, "--config", str(config_file)])

    assert result.exit_code == 0, result.output
    assert "ext-42" in result.output
    assert "carol" in result.output


def test_verify_token_rejects_bad_signature(config_file: Path):
    token = make_token(identity_claims(), "other-secret")

    result = runner.invoke(app, ["verify-token", token, "--config", str(config_file)])

    assert result.exit_code == 1
    assert "token-invalid" in result.output


def test_verify_token_rejects_invalid_payload(config_file: Path):
    token = make_token(identity_claims(id=""), _SECRET)

    result = runner.invoke(app, ["verify-token", token, "--config", str(config_file)])

    assert result.exit_code == 1
    assert "payload-invalid" in result.output


def test_verify_token_writes_nothing(config_file: Path, tmp_path: Path):
    token = make_token(identity_claims(), _SECRET)

    result = runner.invoke(app, ["verify-token", token, "--config", str(config_file)])

    assert result.exit_code == 0, result.output
    assert not (tmp_path / "forum.db").exists()


def test_check_config_with_invalid_blacklist(tmp_path: Path):
    path = tmp_path / "broken.yaml"
    path.write_text(
        "config:\n"
        "  session_sharing:\n"
        f"    secret: {_SECRET}\n"
        "    asset_blacklist: \"(\"\n"
    )

    result = runner.invoke(app, ["check-config", "--config", str(path)])

    assert result.exit_code == 1
    assert "asset blacklist" in result.output
