# Tests for contentsync.cli
# CLI commands using Click testing

from pathlib import Path
from unittest.mock import MagicMock, patch

import yaml
from click.testing import CliRunner

from contentsync.cli import cli
from contentsync.sync.engine import SourceSyncResult, SyncResult


def _mock_engine(result: SyncResult, source_ids=("site",)) -> MagicMock:
    engine = MagicMock()
    sources = []
    for source_id in source_ids:
        source = MagicMock()
        source.id = source_id
        sources.append(source)
    engine.sources = sources
    engine.start.return_value = result
    return engine


class TestCliGroup:
    """Tests for main CLI group."""

    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "ContentSync" in result.output
        assert "Workflow" in result.output

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "contentsync" in result.output


class TestSyncCommand:
    """Tests for sync command."""

    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["sync", "--help"])
        assert result.exit_code == 0
        assert "Synchronize" in result.output

    @patch("contentsync.cli.load_config", side_effect=FileNotFoundError("No config"))
    def test_missing_config(self, mock_load):
        runner = CliRunner()
        result = runner.invoke(cli, ["sync"])
        assert result.exit_code == 1
        assert "No config" in result.output

    @patch("contentsync.cli.load_config")
    @patch("contentsync.cli.ContentSync")
    def test_success(self, mock_engine_cls, mock_load, make_config):
        mock_load.return_value = make_config()
        result = SyncResult(success=True, sources={"site": SourceSyncResult("site", success=True, documents=2)})
        mock_engine_cls.return_value = _mock_engine(result)

        runner = CliRunner()
        output = runner.invoke(cli, ["sync"])

        assert output.exit_code == 0
        assert "Sync completed" in output.output

    @patch("contentsync.cli.load_config")
    @patch("contentsync.cli.ContentSync")
    def test_failure_exits_nonzero(self, mock_engine_cls, mock_load, make_config):
        mock_load.return_value = make_config()
        result = SyncResult(success=False, sources={"site": SourceSyncResult("site", error="boom")})
        mock_engine_cls.return_value = _mock_engine(result)

        runner = CliRunner()
        output = runner.invoke(cli, ["sync"])

        assert output.exit_code == 1
        assert "Sync failed" in output.output

    @patch("contentsync.cli.load_config")
    @patch("contentsync.cli.ContentSync")
    def test_source_filter(self, mock_engine_cls, mock_load, make_config):
        mock_load.return_value = make_config()
        engine = _mock_engine(SyncResult(success=True), source_ids=("site", "blog"))
        mock_engine_cls.return_value = engine

        runner = CliRunner()
        result = runner.invoke(cli, ["sync", "--source", "blog"])

        assert result.exit_code == 0
        started = engine.start.call_args.args[0]
        assert [source.id for source in started] == ["blog"]

    @patch("contentsync.cli.load_config")
    @patch("contentsync.cli.ContentSync")
    def test_unknown_source(self, mock_engine_cls, mock_load, make_config):
        mock_load.return_value = make_config()
        engine = _mock_engine(SyncResult(success=True))
        mock_engine_cls.return_value = engine

        runner = CliRunner()
        result = runner.invoke(cli, ["sync", "-s", "nope"])

        assert result.exit_code == 1
        assert "Unknown source(s): nope" in result.output
        engine.start.assert_not_called()

    @patch("contentsync.cli.load_config")
    @patch("contentsync.cli.ContentSync")
    def test_interrupt_aborts(self, mock_engine_cls, mock_load, make_config):
        mock_load.return_value = make_config()
        engine = _mock_engine(SyncResult(success=True))
        engine.start.side_effect = KeyboardInterrupt
        mock_engine_cls.return_value = engine

        runner = CliRunner()
        result = runner.invoke(cli, ["sync"])

        assert result.exit_code == 130
        engine.abort.assert_called_once()


class TestClearCommand:
    """Tests for clear command."""

    @patch("contentsync.cli.load_config")
    @patch("contentsync.cli.ContentSync")
    def test_clear_defaults(self, mock_engine_cls, mock_load, make_config):
        mock_load.return_value = make_config()
        engine = MagicMock()
        mock_engine_cls.return_value = engine

        runner = CliRunner()
        result = runner.invoke(cli, ["clear", "-s", "site"])

        assert result.exit_code == 0
        engine.clear.assert_called_once_with(["site"], temp=True, backups=True, downloads=False)

    @patch("contentsync.cli.load_config")
    def test_clear_downloads_needs_confirmation(self, mock_load, make_config, temp_dir: Path):
        mock_load.return_value = make_config()
        data = temp_dir / "downloads" / "site" / "a.json"
        data.parent.mkdir(parents=True)
        data.write_text("{}")

        runner = CliRunner()
        result = runner.invoke(cli, ["clear", "--downloads"], input="n\n")

        assert result.exit_code == 0
        assert "Clear cancelled" in result.output
        assert data.exists()

    @patch("contentsync.cli.load_config")
    def test_clear_downloads(self, mock_load, make_config, temp_dir: Path):
        mock_load.return_value = make_config()
        data = temp_dir / "downloads" / "site" / "a.json"
        data.parent.mkdir(parents=True)
        data.write_text("{}")

        runner = CliRunner()
        result = runner.invoke(cli, ["clear", "--downloads", "--yes"])

        assert result.exit_code == 0
        assert not data.exists()


class TestConfigCommands:
    """Tests for config subcommands."""

    def test_init(self, temp_dir: Path):
        config_path = temp_dir / "contentsync.yaml"
        runner = CliRunner()

        result = runner.invoke(cli, ["config", "init", "-c", str(config_path)])
        assert result.exit_code == 0
        assert "Created configuration" in result.output
        assert config_path.exists()

        result = runner.invoke(cli, ["config", "init", "-c", str(config_path)])
        assert "already exists" in result.output

    def test_validate_valid(self, config_file: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["config", "validate", "-c", str(config_file)])
        assert result.exit_code == 0
        assert "Configuration is valid" in result.output

    def test_validate_invalid(self, temp_dir: Path):
        config_path = temp_dir / "bad.yaml"
        config_path.write_text(yaml.dump({"content_transforms": {"$.body": "shout"}, "sources": [{"id": "a"}]}))

        runner = CliRunner()
        result = runner.invoke(cli, ["config", "validate", "-c", str(config_path)])

        assert result.exit_code == 1
        assert "Configuration is invalid" in result.output

    def test_show(self, config_file: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["config", "show", "-c", str(config_file)])
        assert result.exit_code == 0
        assert "articles" in result.output
        assert "Sources: 2" in result.output

    def test_show_invalid_config(self, temp_dir: Path):
        config_path = temp_dir / "bad.yaml"
        config_path.write_text(yaml.dump({"max_concurrent": "many"}))

        runner = CliRunner()
        result = runner.invoke(cli, ["config", "show", "-c", str(config_path)])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
