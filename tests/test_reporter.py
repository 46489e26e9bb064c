"""Tests for reporter module: markdown reports and reporter orchestration."""

from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import Mock

import pytest

from src.detection.classifier import ErrorPatternClassifier
from src.generation.test_generator import TestGenerator as Generator
from src.models.ai_result import (
    AIRecommendation,
    AIResult,
    ExecutionResult,
    Phase,
    PhaseRecord,
    TestEnhancement as Enhancement,
)
from src.models.generated_test import GeneratedTest, TestStep as Step
from src.reporter.markdown_report import (
    average_confidence,
    count_by_priority,
    element_type_counts,
    generate_smart_error_report,
    generate_test_generation_report,
    generate_testing_report,
)
from src.reporter.reporter import Reporter


# ============================================================================
# Helpers
# ============================================================================

def _make_result(run_config, **kwargs) -> AIResult:
    return AIResult(
        config=run_config,
        start_time=datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc),
        end_time=datetime(2024, 1, 15, 10, 1, tzinfo=timezone.utc),
        duration_seconds=60.0,
        **kwargs,
    )


def _make_test(name: str, priority: str, confidence: float, test_type: str = "form") -> GeneratedTest:
    return GeneratedTest(
        name=name,
        type=test_type,
        priority=priority,
        confidence=confidence,
        steps=[Step(action="fill", target="input", value="x")],
        elements=["textfield"],
    )


# ============================================================================
# Markdown helpers
# ============================================================================


class TestMarkdownHelpers:
    """Tests for report helper functions."""

    def test_count_by_priority(self):
        tests = [_make_test("a", "high", 0.8), _make_test("b", "high", 0.7), _make_test("c", "low", 0.6)]
        assert count_by_priority(tests, "high") == 2
        assert count_by_priority(tests, "medium") == 0

    def test_average_confidence(self):
        assert average_confidence([]) == 0.0
        tests = [_make_test("a", "high", 0.8), _make_test("b", "low", 0.6)]
        assert average_confidence(tests) == pytest.approx(0.7)

    def test_element_type_counts(self, mixed_elements):
        assert element_type_counts(mixed_elements + mixed_elements[:1]) == {
            "button": 2, "textfield": 1, "link": 1, "image": 1,
        }


class TestSmartErrorReport:
    """Tests for smart_error_report.md."""

    def test_sections(self, detected_errors, tmp_path: Path):
        analysis = ErrorPatternClassifier().analyze_errors(detected_errors)
        path = generate_smart_error_report(detected_errors, analysis, tmp_path)
        content = path.read_text()

        assert path.name == "smart_error_report.md"
        assert "# Smart Error Detection Report" in content
        assert "- **Total Errors Detected**: 4" in content
        assert "### Network Errors (2)" in content
        assert "## Critical Errors (1)" in content
        assert "### High Priority Recommendations" in content
        assert "- **Recommended**: Network connectivity tests" in content

    def test_empty(self, tmp_path: Path):
        analysis = ErrorPatternClassifier().analyze_errors([])
        content = generate_smart_error_report([], analysis, tmp_path).read_text()
        assert "- **Total Errors Detected**: 0" in content
        assert "## Critical Errors" not in content
        assert "## Test Coverage Gaps" not in content


class TestTestGenerationReport:
    """Tests for ai_test_generation_report.md."""

    def test_grouped_by_type(self, form_elements, tmp_path: Path):
        generator = Generator()
        tests = generator.generate_tests_from_elements(form_elements)
        analysis = generator.analyze_elements(form_elements)

        content = generate_test_generation_report(tests, analysis, tmp_path).read_text()

        assert "# AI-Powered Test Generation Report" in content
        assert f"## Generated Tests ({len(tests)})" in content
        assert "### Error Handling Tests (1)" in content
        assert "#### 1. Form Fill and Submit Test" in content
        assert "### Form Testing Recommendations" in content


class TestTestingReport:
    """Tests for ai_enhanced_testing_report.md."""

    def test_full_report(self, run_config, tmp_path: Path):
        result = _make_result(
            run_config,
            generated_tests=[_make_test("a", "high", 0.8)],
            execution_result=ExecutionResult(actions_executed=4, actions_failed=1, success_rate=0.75),
            enhancements=[Enhancement(
                type="recovery",
                description="AI-generated recovery for network errors",
                confidence=0.75,
                parameters={"max_retries": "3"},
            )],
            recommendations=[AIRecommendation(
                category="test", priority="medium", title="AI-Generated Test Implementation",
                description="Implement 1 AI-generated tests", action_items=["Review generated test cases"],
            )],
            phase_trail=[PhaseRecord(phase=Phase.VISION, status="skipped", reason="vision analysis disabled")],
            ai_summary="All good.",
        )
        analysis = ErrorPatternClassifier().analyze_errors([])

        content = generate_testing_report(result, analysis, tmp_path).read_text()

        assert "- **Test Name**: Login Smoke Test" in content
        assert "## Summary" in content
        assert "| vision | skipped | vision analysis disabled |" in content
        assert "- **Success Rate**: 75.0%" in content
        assert "- **High Priority Tests**: 1" in content
        assert "### 1. Recovery Enhancement" in content
        assert "  - max_retries: 3" in content
        assert "  1. Review generated test cases" in content


# ============================================================================
# Reporter orchestration
# ============================================================================


class TestReporter:
    """Tests for the Reporter class."""

    def test_basic_summary(self, run_config, detected_errors):
        result = _make_result(
            run_config,
            execution_result=ExecutionResult(actions_executed=4, actions_failed=1, success_rate=0.75),
            errors=detected_errors,
        )
        analysis = ErrorPatternClassifier().analyze_errors(detected_errors)

        summary = Reporter._generate_basic_summary(result, analysis)

        assert summary.startswith("Ran 'Login Smoke Test' in 60.0s.")
        assert "4 executed, 1 failed (75% success)" in summary
        assert "Detected 4 errors (1 critical, 2 high)" in summary
        assert "Most frequent category: network." in summary

    def test_generate_reports_without_errors(self, run_config, tmp_path: Path):
        result = _make_result(run_config)
        analysis = ErrorPatternClassifier().analyze_errors([])

        reports = Reporter().generate_reports(result, analysis, tmp_path)

        assert set(reports) == {"markdown", "json"}
        assert result.ai_summary

    def test_generate_reports_with_tests(self, run_config, form_elements, detected_errors, tmp_path: Path):
        generator = Generator()
        result = _make_result(
            run_config,
            generated_tests=generator.generate_tests_from_elements(form_elements),
            errors=detected_errors,
        )
        analysis = ErrorPatternClassifier().analyze_errors(detected_errors)

        reports = Reporter().generate_reports(
            result, analysis, tmp_path, test_analysis=generator.analyze_elements(form_elements),
        )

        assert set(reports) == {"markdown", "json", "error_markdown", "error_json", "tests_markdown"}
        assert all(Path(p).exists() for p in reports.values())

    def test_ai_summary(self, run_config, tmp_path: Path):
        ai_client = Mock()
        ai_client.complete.return_value = "  The run passed.  "
        result = _make_result(run_config)
        analysis = ErrorPatternClassifier().analyze_errors([])

        Reporter(ai_client=ai_client).generate_reports(result, analysis, tmp_path)

        assert result.ai_summary == "The run passed."
        kwargs = ai_client.complete.call_args.kwargs
        assert kwargs["max_tokens"] == run_config.settings.ai_max_summary_tokens
        assert "Login Smoke Test" in kwargs["user_message"]

    def test_ai_summary_falls_back(self, run_config, tmp_path: Path):
        ai_client = Mock()
        ai_client.complete.side_effect = RuntimeError("API down")
        result = _make_result(run_config)
        analysis = ErrorPatternClassifier().analyze_errors([])

        Reporter(ai_client=ai_client).generate_reports(result, analysis, tmp_path)

        assert result.ai_summary.startswith("Ran 'Login Smoke Test'")

    def test_existing_summary_kept(self, run_config, tmp_path: Path):
        ai_client = Mock()
        result = _make_result(run_config, ai_summary="Already written.")
        analysis = ErrorPatternClassifier().analyze_errors([])

        Reporter(ai_client=ai_client).generate_reports(result, analysis, tmp_path)

        ai_client.complete.assert_not_called()
        assert result.ai_summary == "Already written."
