from __future__ import annotations

from typer.testing import CliRunner

from reltool import __version__
from reltool.cli.app import app

runner = CliRunner()


def test_version() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.output.strip() == __version__


def test_commands_registered() -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for name in ("merge", "build", "sign"):
        assert name in result.output


def test_invalid_version_exit_code() -> None:
    result = runner.invoke(app, ["merge", "1.2"])
    assert result.exit_code == 1


def test_sign_requires_files() -> None:
    result = runner.invoke(app, ["sign", "1.2.3"])
    assert result.exit_code != 0
