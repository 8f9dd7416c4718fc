from typer.testing import CliRunner

import plotsmith
from plotsmith.ui.cli import app


def test_get_version_matches_public_api() -> None:
    assert plotsmith.get_version() == plotsmith.__version__
    assert isinstance(plotsmith.__version__, str)


def test_cli_version_flag() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0, result.stdout
    assert result.stdout.strip() == f"plotsmith {plotsmith.get_version()}"
