from pathlib import Path
from unittest.mock import MagicMock

import pytest
from click.testing import CliRunner

from LearningAssistantApp import cli as cli_module
from LearningAssistantApp.cli import cli


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the CLI from reconfiguring the root logger during tests."""
    monkeypatch.setattr(cli_module, "configure_logging", MagicMock())


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'learning.db'}"


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def invoke(runner: CliRunner, database_url: str, *args: str, **kwargs):
    return runner.invoke(cli, ["--database-url", database_url, *args], **kwargs)


def test_init_db_seeds_allowlist(runner, database_url):
    result = invoke(runner, database_url, "init-db")
    assert result.exit_code == 0, result.output
    assert "4 allowlisted identifiers" in result.output

    again = invoke(runner, database_url, "init-db")
    assert "4 allowlisted identifiers" in again.output


def test_add_valid_id_then_signup(runner, database_url):
    added = invoke(runner, database_url, "add-valid-id", "unst00000042", "--role", "student", "--level", "l3")
    assert added.exit_code == 0, added.output
    assert "Allowlisted UNST00000042 as student" in added.output

    duplicate = invoke(runner, database_url, "add-valid-id", "UNST00000042", "--role", "student")
    assert duplicate.exit_code == 1
    assert "already allowlisted" in duplicate.output

    signed_up = invoke(
        runner, database_url, "signup",
        "--matricule", "unst00000042", "--role", "student", "--name", "Lina", "--password", "s3cret"
    )
    assert signed_up.exit_code == 0, signed_up.output
    assert "Registered Lina (UNST00000042)" in signed_up.output


def test_signup_prompts_for_password(runner, database_url):
    result = invoke(
        runner, database_url, "signup", "--matricule", "UNTS00000001", "--role", "teacher", "--name", "Prof",
        input="pw\npw\n"
    )
    assert result.exit_code == 0, result.output
    assert "Registered Prof" in result.output


def test_signup_failure_reason_is_reported(runner, database_url):
    result = invoke(
        runner, database_url, "signup",
        "--matricule", "UNST77777777", "--role", "student", "--name", "Nobody", "--password", "pw"
    )
    assert result.exit_code == 1
    assert "Signup failed: not_allowlisted" in result.output


def test_add_valid_id_rejects_wrong_prefix(runner, database_url):
    result = invoke(runner, database_url, "add-valid-id", "UNST00000050", "--role", "teacher")
    assert result.exit_code == 2
    assert "UNTS" in result.output


def test_stats(runner, database_url):
    invoke(runner, database_url, "signup", "--matricule", "UNST00000001", "--role", "student",
           "--name", "Amina", "--password", "p@ss1")

    result = invoke(runner, database_url, "stats", "--exercise-id", "1", "--teacher-id", "1")
    assert result.exit_code == 0, result.output
    assert "Students: 1" in result.output
    assert "Exercise 1: 0.0%" in result.output
    assert "courses: 0" in result.output


def test_unreachable_database(runner, tmp_path):
    result = invoke(runner, f"sqlite:///{tmp_path / 'missing' / 'dir' / 'x.db'}", "init-db")
    assert result.exit_code == 1
    assert "Could not open the database" in result.output
