"""Tests for Strata CLI commands."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

from typer.testing import CliRunner

from strata.cli import app

runner = CliRunner()


class TestCLICommands:
    """Test suite for CLI commands."""

    def test_version_command(self) -> None:
        """Test version command."""
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "Strata version" in result.stdout

    def test_info_command(self) -> None:
        """Test info command."""
        result = runner.invoke(app, ["info"])

        assert result.exit_code == 0
        assert "tiered conversational memory" in result.stdout
        assert "fast, balanced, deep" in result.stdout
        assert "cost-tracker" in result.stdout

    def test_modes_command(self) -> None:
        """Test modes command lists every mode."""
        result = runner.invoke(app, ["modes"])

        assert result.exit_code == 0
        assert "lite:" in result.stdout
        assert "standard:" in result.stdout
        assert "Vector index: duckdb" in result.stdout

    def test_chat_invalid_mode(self) -> None:
        """Test an unknown mode exits with an error."""
        result = runner.invoke(app, ["chat", "--mode", "turbo"])

        assert result.exit_code == 1
        assert "Unknown mode" in result.output

    def test_chat_missing_world_file(self, tmp_path: Path) -> None:
        with patch("strata.main.StrataApplication") as mock_app:
            mock_app.return_value = MagicMock()
            result = runner.invoke(app, ["chat", "--world", str(tmp_path / "nope.yaml")])

        assert result.exit_code == 1
        assert "World data file not found" in result.output

    @patch("strata.cli.asyncio.run")
    @patch("strata.main.StrataApplication")
    def test_chat_loads_world_data(self, mock_app: MagicMock, mock_run: MagicMock, tmp_path: Path) -> None:
        """Test world data is read from YAML and the chat loop is started."""
        world = tmp_path / "world.yaml"
        world.write_text("kingdom: Arendelle\nruler: Elsa\n")

        result = runner.invoke(app, ["chat", "--world", str(world), "--session", "s42"])

        assert result.exit_code == 0
        mock_run.assert_called_once()
        mock_run.call_args.args[0].close()
        config = mock_app.call_args.args[0]
        assert config.mode == "lite"
