"""Report generation orchestration."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from src.ai.client import AIClient
from src.ai.prompts.summary import SUMMARY_SYSTEM_PROMPT, build_summary_prompt
from src.models.ai_result import AIResult
from src.models.config import Settings
from src.models.errors import ErrorAnalysis
from src.models.generated_test import TestAnalysis

from .json_report import save_error_report, save_testing_report
from .markdown_report import (
    generate_smart_error_report,
    generate_test_generation_report,
    generate_testing_report,
)

logger = logging.getLogger(__name__)


class Reporter:
    """Writes every report for a finished run."""

    def __init__(self, settings: Optional[Settings] = None, ai_client: AIClient | None = None):
        self.settings = settings or Settings()
        self.ai_client = ai_client

    def generate_reports(
        self,
        result: AIResult,
        analysis: ErrorAnalysis,
        output_dir: str | Path,
        test_analysis: TestAnalysis | None = None,
    ) -> dict[str, str]:
        """Generate all reports. Returns report kind -> file path.

        Write failures propagate to the caller.
        """
        out_dir = Path(output_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        logger.debug("Report output directory: %s", out_dir)

        if not result.ai_summary:
            result.ai_summary = self._generate_summary(result, analysis)

        generated = {
            "markdown": str(generate_testing_report(result, analysis, out_dir)),
            "json": str(save_testing_report(result, out_dir / "ai_enhanced_testing_report.json")),
        }

        if result.errors:
            generated["error_markdown"] = str(generate_smart_error_report(result.errors, analysis, out_dir))
            generated["error_json"] = str(save_error_report(result.errors, out_dir / "smart_error_report.json"))

        if result.generated_tests and test_analysis is not None:
            generated["tests_markdown"] = str(
                generate_test_generation_report(result.generated_tests, test_analysis, out_dir)
            )

        for kind, path in generated.items():
            logger.info("%s report: %s", kind, path)
        return generated

    def _generate_summary(self, result: AIResult, analysis: ErrorAnalysis) -> str:
        """Generate an AI-written summary, falling back to a basic one."""
        if not self.ai_client:
            return self._generate_basic_summary(result, analysis)

        try:
            ex = result.execution_result
            results_summary = {
                "name": result.config.name,
                "duration": result.duration_seconds,
                "actions_executed": ex.actions_executed if ex else 0,
                "actions_failed": ex.actions_failed if ex else 0,
                "generated_tests": [t.name for t in result.generated_tests][:20],
                "errors": [
                    {"name": e.name, "category": e.category, "severity": e.severity, "message": e.message}
                    for e in result.errors
                ][:20],
                "recommendations": [r.title for r in result.recommendations],
            }
            error_summary = (
                f"{analysis.total_errors} errors; categories: {analysis.error_categories}; "
                f"severities: {analysis.severity_levels}"
            )
            summary = self.ai_client.complete(
                system_prompt=SUMMARY_SYSTEM_PROMPT,
                user_message=build_summary_prompt(json.dumps(results_summary, indent=2), error_summary),
                max_tokens=self.settings.ai_max_summary_tokens,
            )
            return summary.strip()
        except Exception as e:
            logger.warning("AI summary generation failed: %s", e)
            return self._generate_basic_summary(result, analysis)

    @staticmethod
    def _generate_basic_summary(result: AIResult, analysis: ErrorAnalysis) -> str:
        """Generate a basic summary without AI."""
        ex = result.execution_result
        parts = [f"Ran '{result.config.name}' in {result.duration_seconds:.1f}s."]
        if ex is not None:
            parts.append(
                f"Actions: {ex.actions_executed} executed, {ex.actions_failed} failed "
                f"({ex.success_rate * 100:.0f}% success)."
            )
        parts.append(
            f"Detected {analysis.total_errors} errors "
            f"({len(analysis.critical_errors)} critical, {len(analysis.high_risk_errors)} high)."
        )
        if result.generated_tests:
            parts.append(f"Generated {len(result.generated_tests)} candidate tests.")
        if analysis.error_categories:
            top = max(analysis.error_categories.items(), key=lambda item: item[1])[0]
            parts.append(f"Most frequent category: {top}.")
        return " ".join(parts)
