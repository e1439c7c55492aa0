"""Smoke tests: public API imports work, CLI --help works."""

from click.testing import CliRunner

from mermaid_sync.__main__ import main


def test_import():
    from mermaid_sync import DiagramSession, generate, parse

    assert DiagramSession is not None
    assert generate is not None
    assert parse is not None


def test_cli_help():
    runner = CliRunner()
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "Mermaid ER" in result.output
