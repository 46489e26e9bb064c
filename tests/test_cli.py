"""Tests for the command line interface."""

import json
from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

from src.cli import cli
from src.models.config import RunConfig
from src.reporter.json_report import load_error_report


class TestInitCommand:
    """Tests for `ai-tester init`."""

    def test_creates_config(self, tmp_path: Path):
        config_path = tmp_path / "ai-tester.yaml"
        result = CliRunner().invoke(cli, ["init", "-t", "https://example.com", "-c", str(config_path)])

        assert result.exit_code == 0, result.output
        config = RunConfig.load(config_path)
        assert config.apps[0].url == "https://example.com"
        assert [a.type for a in config.actions] == ["navigate", "wait", "screenshot"]

    def test_keeps_existing_config_when_declined(self, tmp_path: Path):
        config_path = tmp_path / "ai-tester.yaml"
        config_path.write_text("name: Mine\n")
        result = CliRunner().invoke(
            cli, ["init", "-t", "https://example.com", "-c", str(config_path)], input="n\n",
        )

        assert result.exit_code == 0
        assert config_path.read_text() == "name: Mine\n"


class TestDetectCommand:
    """Tests for `ai-tester detect`."""

    def test_log_file(self, tmp_path: Path):
        log = tmp_path / "run.log"
        log.write_text("Connection timeout occurred\n\nall fine\n")
        out = tmp_path / "out"

        result = CliRunner().invoke(cli, ["detect", str(log), "-o", str(out)])

        assert result.exit_code == 0, result.output
        summary, errors = load_error_report(out / "smart_error_report.json")
        assert summary["total_errors"] == 1
        assert errors[0].name == "NetworkTimeout"
        assert errors[0].source == "run.log"
        assert (out / "smart_error_report.md").exists()

    def test_page_state_file(self, page_state_dict, tmp_path: Path):
        state_file = tmp_path / "state.json"
        state_file.write_text(json.dumps(page_state_dict))
        out = tmp_path / "out"

        result = CliRunner().invoke(cli, ["detect", str(state_file), "-o", str(out)])

        assert result.exit_code == 0, result.output
        summary, _ = load_error_report(out / "smart_error_report.json")
        assert summary["total_errors"] == 5

    def test_malformed_page_state(self, tmp_path: Path):
        state_file = tmp_path / "state.json"
        state_file.write_text("[1, 2, 3]")

        result = CliRunner().invoke(cli, ["detect", str(state_file), "-o", str(tmp_path)])

        assert result.exit_code == 1
        assert "invalid page state format" in result.output


class TestGenerateCommand:
    """Tests for `ai-tester generate`."""

    def test_writes_runnable_config(self, page_state_dict, tmp_path: Path):
        state_file = tmp_path / "state.json"
        state_file.write_text(json.dumps(page_state_dict))
        output = tmp_path / "generated.yaml"

        result = CliRunner().invoke(cli, ["generate", str(state_file), "-o", str(output)])

        assert result.exit_code == 0, result.output
        config = RunConfig.load(output)
        assert len(config.actions) == 4


class TestRunCommand:
    """Tests for `ai-tester run`."""

    def test_missing_config(self, tmp_path: Path):
        result = CliRunner().invoke(cli, ["run", "-c", str(tmp_path / "missing.yaml")])
        assert result.exit_code == 1
        assert "Config file not found" in result.output

    def test_run_with_mocked_platform(self, temp_config_file: Path, mock_platform):
        with patch("src.orchestrator.create_platform", return_value=mock_platform), \
                patch.dict("os.environ", {"ANTHROPIC_API_KEY": ""}):
            result = CliRunner().invoke(cli, ["run", "-c", str(temp_config_file)])

        assert result.exit_code == 0, result.output
        assert "AI-Enhanced Testing Complete" in result.output
        config = RunConfig.load(temp_config_file)
        assert (Path(config.output) / "ai_enhanced_testing_report.md").exists()
