"""Tests for JSON / YAML report generation and test export."""

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest
import yaml

from src.models.ai_result import AIResult
from src.models.config import RunConfig
from src.models.generated_test import SuggestedAction
from src.reporter.json_report import (
    load_error_report,
    save_error_report,
    save_testing_report,
    save_tests,
    severity_summary,
)


class TestSeveritySummary:
    """Tests for severity_summary."""

    def test_counts(self, detected_errors):
        assert severity_summary(detected_errors) == {
            "total_errors": 4,
            "critical_errors": 1,
            "high_severity": 2,
            "medium_severity": 0,
            "low_severity": 1,
        }

    def test_empty(self):
        assert severity_summary([])["total_errors"] == 0


class TestErrorReport:
    """Tests for save_error_report / load_error_report."""

    def test_save_json(self, detected_errors, tmp_path: Path):
        """Test the JSON report carries header, summary and errors."""
        path = save_error_report(detected_errors, tmp_path / "errors.json")

        with open(path) as f:
            data = json.load(f)

        assert data["report_type"] == "error_analysis"
        assert data["ai_version"] == "1.0.0"
        assert "generated_at" in data
        assert data["summary"]["total_errors"] == 4
        assert data["errors"][0]["name"] == "NetworkTimeout"

    def test_save_yaml_by_suffix(self, detected_errors, tmp_path: Path):
        path = save_error_report(detected_errors, tmp_path / "errors.yaml")
        data = yaml.safe_load(path.read_text())
        assert data["summary"]["critical_errors"] == 1

    @pytest.mark.parametrize("suffix", [".json", ".yaml"])
    def test_reload(self, detected_errors, tmp_path: Path, suffix):
        """Test a saved report loads back with the same findings."""
        path = save_error_report(detected_errors, tmp_path / f"errors{suffix}")
        summary, errors = load_error_report(path)
        assert summary["total_errors"] == len(detected_errors)
        assert [e.name for e in errors] == [e.name for e in detected_errors]
        assert errors[2].severity == "critical"

    def test_load_missing(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_error_report(tmp_path / "nope.json")

    def test_creates_parent_dirs(self, detected_errors, tmp_path: Path):
        path = save_error_report(detected_errors, tmp_path / "a" / "b" / "errors.json")
        assert path.exists()


class TestTestingReport:
    """Tests for save_testing_report."""

    def test_from_result(self, run_config: RunConfig, tmp_path: Path):
        result = AIResult(config=run_config, start_time=datetime(2024, 1, 15, tzinfo=timezone.utc))
        path = save_testing_report(result, tmp_path / "run.json")

        data = json.loads(path.read_text())
        assert data["report_type"] == "ai_enhanced_testing"
        assert data["results"]["config"]["name"] == "Login Smoke Test"
        assert "pattern_recognition" in data["summary"]["features_used"]

    def test_from_dict(self, tmp_path: Path):
        path = save_testing_report({"status": "completed"}, tmp_path / "run.json")
        assert json.loads(path.read_text())["results"] == {"status": "completed"}


class TestSaveTests:
    """Tests for exporting suggested actions as a run config."""

    def test_export_is_loadable_config(self, tmp_path: Path):
        tests = [
            SuggestedAction(name="nav", type="navigate", value="https://example.com/app", confidence=0.9),
            SuggestedAction(name="click", type="click", selector="#go", confidence=0.85),
        ]
        path = save_tests(tests, tmp_path / "generated.yaml")

        data = yaml.safe_load(path.read_text())
        assert data["name"] == "AI Generated Tests"
        assert data["settings"]["headless"] is True
        assert "selector" not in data["actions"][0]

        config = RunConfig.load(path)
        assert config.apps[0].url == "https://example.com/app"
        assert config.actions[1].selector == "#go"

    def test_default_url_without_navigation(self, tmp_path: Path):
        path = save_tests([SuggestedAction(name="shot", type="screenshot", value="x.png")],
                          tmp_path / "generated.json")
        assert json.loads(path.read_text())["apps"][0]["url"] == "https://example.com"
