"""Tests for nightswatch.cli module."""

import sys
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from nightswatch import cli
from nightswatch.cli import main, parse_args
from nightswatch.errors import NotificationFacilityError


class TestParseArgs:
    """Tests for parse_args function."""

    def test_parse_args_default(self):
        """Test default arguments."""
        with patch.object(sys, "argv", ["nightswatch"]):
            args = parse_args()
            assert args.config == "./nightswatch.toml"
            assert args.debug is False

    def test_parse_args_custom_config_short_flag(self):
        """Test custom config with -c flag."""
        with patch.object(sys, "argv", ["nightswatch", "-c", "custom.toml"]):
            args = parse_args()
            assert args.config == "custom.toml"

    def test_parse_args_custom_config_long_flag(self):
        """Test custom config with --config flag."""
        with patch.object(sys, "argv", ["nightswatch", "--config", "custom.toml"]):
            args = parse_args()
            assert args.config == "custom.toml"

    @pytest.mark.parametrize("flag", ["-v", "--version"])
    def test_parse_args_version_flag(self, flag, capsys):
        """Test version flags exit with version."""
        with patch.object(sys, "argv", ["nightswatch", flag]):
            with pytest.raises(SystemExit) as exc_info:
                parse_args()
            assert exc_info.value.code == 0
        assert "nightswatch 0.1.0" in capsys.readouterr().out

    @pytest.mark.parametrize("flag", ["-h", "--help"])
    def test_parse_args_help_flag(self, flag, capsys):
        """Test help flags exit with help."""
        with patch.object(sys, "argv", ["nightswatch", flag]):
            with pytest.raises(SystemExit) as exc_info:
                parse_args()
            assert exc_info.value.code == 0
        assert "--config" in capsys.readouterr().out


class TestMain:
    """Tests for main function."""

    def test_main_missing_config_exits_1(self, tmp_path, caplog):
        """A missing config file is fatal."""
        with patch.object(sys, "argv", ["nightswatch", "-c", str(tmp_path / "none.toml")]):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 1
        assert "Config file not found" in caplog.text

    def test_main_runs_watcher(self, tmp_path):
        """A valid config starts the watcher."""
        config_path = tmp_path / "nightswatch.toml"
        config_path.write_text('path = "."\n')
        watcher = MagicMock()
        watcher.run = AsyncMock(return_value=None)

        with (
            patch.object(sys, "argv", ["nightswatch", "-c", str(config_path)]),
            patch.object(cli, "Watcher", return_value=watcher) as watcher_cls,
        ):
            main()

        config = watcher_cls.call_args.args[0]
        assert config.root_path == tmp_path / "."
        watcher.run.assert_awaited_once()

    def test_main_runtime_error_exits_1(self, tmp_path, caplog):
        """An error from the event source ends the process non-zero."""
        config_path = tmp_path / "nightswatch.toml"
        config_path.write_text('path = "."\n')
        watcher = MagicMock()
        watcher.run = AsyncMock(side_effect=NotificationFacilityError("queue overflow"))

        with (
            patch.object(sys, "argv", ["nightswatch", "-c", str(config_path)]),
            patch.object(cli, "Watcher", return_value=watcher),
            pytest.raises(SystemExit) as exc_info,
        ):
            main()

        assert exc_info.value.code == 1
        assert "queue overflow" in caplog.text

    def test_main_keyboard_interrupt_exits_130(self, tmp_path):
        config_path = tmp_path / "nightswatch.toml"
        config_path.write_text('path = "."\n')
        watcher = MagicMock()
        watcher.run = AsyncMock(side_effect=KeyboardInterrupt)

        with (
            patch.object(sys, "argv", ["nightswatch", "-c", str(config_path)]),
            patch.object(cli, "Watcher", return_value=watcher),
            pytest.raises(SystemExit) as exc_info,
        ):
            main()

        assert exc_info.value.code == 130
