"""Markdown reports for error detection, test generation and whole runs."""

from __future__ import annotations

import logging
from pathlib import Path

from src.models.ai_result import AIResult
from src.models.elements import ElementInfo
from src.models.errors import DetectedError, ErrorAnalysis, ErrorRecommendation
from src.models.generated_test import GeneratedTest, TestAnalysis

logger = logging.getLogger(__name__)

SMART_ERROR_REPORT = "smart_error_report.md"
TEST_GENERATION_REPORT = "ai_test_generation_report.md"
TESTING_REPORT = "ai_enhanced_testing_report.md"


def _format_counts(counts: dict[str, int]) -> str:
    return "[" + ", ".join(f"{k}({v})" for k, v in counts.items()) + "]"


def _write(output_dir: str | Path, filename: str, lines: list[str]) -> Path:
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / filename
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def count_by_priority(tests: list[GeneratedTest], priority: str) -> int:
    return sum(1 for t in tests if t.priority == priority)


def average_confidence(tests: list[GeneratedTest]) -> float:
    if not tests:
        return 0.0
    return sum(t.confidence for t in tests) / len(tests)


def element_type_counts(elements: list[ElementInfo]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for elem in elements:
        counts[elem.type] = counts.get(elem.type, 0) + 1
    return counts


# ---------------------------------------------------------------------------
# smart_error_report.md
# ---------------------------------------------------------------------------


def _error_block(index: int, error: DetectedError) -> list[str]:
    lines = [
        f"#### {index}. {error.name}",
        "",
        f"- **Message**: {error.message}",
        f"- **Severity**: {error.severity}",
        f"- **Confidence**: {error.confidence:.2f}",
        f"- **Source**: {error.source}",
        f"- **Timestamp**: {error.timestamp.isoformat()}",
        f"- **Position**: {error.position.type} ({error.position.value})",
    ]
    if error.suggestions:
        lines.append("- **Suggestions**:")
        lines.extend(f"  - {s}" for s in error.suggestions)
    if error.tags:
        lines.append(f"- **Tags**: {', '.join(error.tags)}")
    lines.append("")
    return lines


def _recommendation_section(recommendations: list[ErrorRecommendation]) -> list[str]:
    lines = ["## AI-Generated Recommendations", ""]
    for priority in ("high", "medium", "low"):
        group = [r for r in recommendations if r.priority == priority]
        if not group:
            continue
        lines.extend([f"### {priority.title()} Priority Recommendations", ""])
        for i, rec in enumerate(group, start=1):
            lines.extend([
                f"#### {i}. {rec.type}",
                "",
                f"- **Priority**: {rec.priority}",
                f"- **Description**: {rec.description}",
                f"- **Suggestion**: {rec.suggestion}",
                f"- **Impact**: {rec.impact}",
                f"- **Effort**: {rec.effort}",
            ])
            if rec.steps:
                lines.append("- **Steps**:")
                lines.extend(f"  {j}. {step}" for j, step in enumerate(rec.steps, start=1))
            lines.append("")
    return lines


def generate_smart_error_report(
    errors: list[DetectedError],
    analysis: ErrorAnalysis,
    output_dir: str | Path,
) -> Path:
    """Write the per-category error report and return its path."""
    logger.info("Generating smart error report with %d errors", len(errors))
    lines = [
        "# Smart Error Detection Report",
        "",
        "## Error Analysis Summary",
        f"- **Total Errors Detected**: {analysis.total_errors}",
        f"- **Error Categories**: {_format_counts(analysis.error_categories)}",
        f"- **Severity Levels**: {_format_counts(analysis.severity_levels)}",
        f"- **Critical Errors**: {len(analysis.critical_errors)}",
        f"- **High Risk Errors**: {len(analysis.high_risk_errors)}",
        "",
        "## Error Category Distribution",
        "",
    ]

    for category, count in analysis.error_categories.items():
        lines.extend([f"### {category.title()} Errors ({count})", ""])
        in_category = [e for e in errors if e.category == category]
        for i, error in enumerate(in_category, start=1):
            lines.extend(_error_block(i, error))

    if analysis.critical_errors:
        lines.extend([f"## Critical Errors ({len(analysis.critical_errors)})", ""])
        for i, error in enumerate(analysis.critical_errors, start=1):
            lines.extend([
                f"### {i}. {error.name}",
                "",
                f"- **Message**: {error.message}",
                f"- **Source**: {error.source}",
                f"- **Timestamp**: {error.timestamp.isoformat()}",
                f"- **Suggestions**: {', '.join(error.suggestions)}",
                "",
            ])

    lines.extend(_recommendation_section(analysis.recommendations))

    if analysis.test_coverage:
        lines.extend(["## Test Coverage Gaps", ""])
        lines.extend(f"- **Recommended**: {gap}" for gap in analysis.test_coverage)
        lines.append("")

    return _write(output_dir, SMART_ERROR_REPORT, lines)


# ---------------------------------------------------------------------------
# ai_test_generation_report.md
# ---------------------------------------------------------------------------


def _test_recommendations(analysis: TestAnalysis, tests: list[GeneratedTest]) -> list[str]:
    lines = [
        "## AI Recommendations",
        "",
        "### Test Priority Distribution",
        "",
        f"- **High Priority**: {count_by_priority(tests, 'high')} tests (executed first)",
        f"- **Medium Priority**: {count_by_priority(tests, 'medium')} tests (executed after high priority)",
        f"- **Low Priority**: {count_by_priority(tests, 'low')} tests (executed if time permits)",
        "",
    ]
    if "textfield" in analysis.element_types and "button" in analysis.element_types:
        lines.extend([
            "### Form Testing Recommendations",
            "",
            "- Form interaction tests are included",
            "- Consider adding validation tests for form fields",
            "- Consider adding negative test cases",
            "",
        ])
    if len(analysis.element_types) > 5:
        lines.extend([
            "### Complexity Recommendations",
            "",
            "- High application complexity detected",
            "- Consider breaking tests into smaller test suites",
            "- Allocate more time for comprehensive testing",
            "",
        ])
    return lines


def generate_test_generation_report(
    tests: list[GeneratedTest],
    analysis: TestAnalysis,
    output_dir: str | Path,
) -> Path:
    """Write the generated-tests report grouped by test type."""
    logger.info("Generating AI test generation report with %d tests", len(tests))
    lines = [
        "# AI-Powered Test Generation Report",
        "",
        "## Test Analysis Summary",
        f"- **Total Elements Analyzed**: {analysis.total_elements}",
        f"- **Element Types**: {_format_counts(analysis.element_types)}",
        f"- **Application Complexity**: {analysis.complexity}",
        f"- **Risk Level**: {analysis.risk_level}",
        f"- **Test Coverage Areas**: {', '.join(analysis.test_coverage)}",
        "",
        f"## Generated Tests ({len(tests)})",
        "",
    ]

    groups: dict[str, list[GeneratedTest]] = {}
    for test in tests:
        groups.setdefault(test.type, []).append(test)

    for test_type, group in groups.items():
        lines.extend([f"### {test_type.replace('_', ' ').title()} Tests ({len(group)})", ""])
        for i, test in enumerate(group, start=1):
            lines.extend([
                f"#### {i}. {test.name}",
                "",
                f"- **Type**: {test.type}",
                f"- **Priority**: {test.priority}",
                f"- **Confidence**: {test.confidence:.2f}",
                f"- **Description**: {test.description}",
                f"- **Duration**: {test.estimated_duration} seconds",
                f"- **Elements**: {', '.join(test.elements)}",
            ])
            if test.steps:
                lines.append("- **Steps**:")
                for j, step in enumerate(test.steps, start=1):
                    line = f"  {j}. {step.action} {step.target}".rstrip()
                    if step.value:
                        line += f" with value '{step.value}'"
                    if step.parameters:
                        params = ", ".join(f"{k}={v}" for k, v in step.parameters.items())
                        line += f" (params: {params})"
                    lines.append(line)
            lines.append("")

    lines.extend(_test_recommendations(analysis, tests))
    return _write(output_dir, TEST_GENERATION_REPORT, lines)


# ---------------------------------------------------------------------------
# ai_enhanced_testing_report.md
# ---------------------------------------------------------------------------


def generate_testing_report(
    result: AIResult,
    analysis: ErrorAnalysis,
    output_dir: str | Path,
) -> Path:
    """Write the whole-run report: summary, enhancements and recommendations."""
    end = result.end_time.isoformat() if result.end_time else ""
    lines = [
        "# AI-Enhanced Testing Report",
        "",
        "## Execution Summary",
        f"- **Test Name**: {result.config.name}",
        f"- **Start Time**: {result.start_time.isoformat()}",
        f"- **End Time**: {end}",
        f"- **Duration**: {result.duration_seconds:.1f}s",
        f"- **Visual Elements Detected**: {len(result.visual_elements)}",
        f"- **AI Tests Generated**: {len(result.generated_tests)}",
        f"- **Errors Detected**: {len(result.errors)}",
        f"- **Enhancements Generated**: {len(result.enhancements)}",
        "",
    ]

    if result.ai_summary:
        lines.extend(["## Summary", "", result.ai_summary, ""])

    if result.phase_trail:
        lines.extend(["## Phases", "", "| Phase | Status | Note |", "|---|---|---|"])
        for record in result.phase_trail:
            lines.append(f"| {record.phase.value} | {record.status} | {record.reason} |")
        lines.append("")

    if result.execution_result is not None:
        ex = result.execution_result
        lines.extend([
            "## Action Execution",
            f"- **Actions Executed**: {ex.actions_executed}",
            f"- **Actions Failed**: {ex.actions_failed}",
            f"- **Success Rate**: {ex.success_rate * 100:.1f}%",
            "",
        ])

    lines.extend([
        "## AI Analysis Results",
        "",
        "### Vision Analysis",
        f"- **Element Types**: {_format_counts(element_type_counts(result.visual_elements))}",
        "",
        "### AI Test Generation",
        f"- **High Priority Tests**: {count_by_priority(result.generated_tests, 'high')}",
        f"- **Medium Priority Tests**: {count_by_priority(result.generated_tests, 'medium')}",
        f"- **Low Priority Tests**: {count_by_priority(result.generated_tests, 'low')}",
        f"- **Average Confidence**: {average_confidence(result.generated_tests):.2f}",
        "",
        "### Smart Error Detection",
        f"- **Total Errors**: {analysis.total_errors}",
        f"- **Critical Errors**: {len(analysis.critical_errors)}",
        f"- **High Severity Errors**: {len(analysis.high_risk_errors)}",
        f"- **Error Categories**: {_format_counts(analysis.error_categories)}",
        "",
        "## Test Enhancements",
        "",
    ])

    for i, enhancement in enumerate(result.enhancements, start=1):
        lines.extend([
            f"### {i}. {enhancement.type.title()} Enhancement",
            "",
            f"- **Type**: {enhancement.type}",
            f"- **Description**: {enhancement.description}",
            f"- **Original Test**: {enhancement.original_test}",
            f"- **Enhanced Test**: {enhancement.enhanced_test}",
            f"- **Reasoning**: {enhancement.reasoning}",
            f"- **Confidence**: {enhancement.confidence:.2f}",
            f"- **Impact**: {enhancement.impact}",
        ])
        if enhancement.parameters:
            lines.append("- **Parameters**:")
            lines.extend(f"  - {k}: {v}" for k, v in enhancement.parameters.items())
        lines.append("")

    lines.extend(["## AI Recommendations", ""])
    for i, rec in enumerate(result.recommendations, start=1):
        lines.extend([
            f"### {i}. {rec.title}",
            "",
            f"- **Category**: {rec.category}",
            f"- **Priority**: {rec.priority}",
            f"- **Description**: {rec.description}",
            f"- **Benefit**: {rec.benefit}",
            f"- **Effort**: {rec.effort}",
        ])
        if rec.action_items:
            lines.append("- **Action Items**:")
            lines.extend(f"  {j}. {item}" for j, item in enumerate(rec.action_items, start=1))
        lines.append("")

    path = _write(output_dir, TESTING_REPORT, lines)
    logger.info("AI-enhanced testing report written to %s", path)
    return path
