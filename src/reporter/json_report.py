"""Structured (JSON / YAML) report output and generated-test export."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

import yaml

from src.models.ai_result import AIResult
from src.models.errors import DetectedError
from src.models.generated_test import SuggestedAction

logger = logging.getLogger(__name__)

REPORT_VERSION = "1.0.0"

_SEVERITY_KEYS = {
    "critical": "critical_errors",
    "high": "high_severity",
    "medium": "medium_severity",
    "low": "low_severity",
}


def _is_yaml(path: Path) -> bool:
    return path.suffix.lower() in (".yaml", ".yml")


def _dump(data: dict, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        if _is_yaml(path):
            yaml.safe_dump(data, f, sort_keys=False)
        else:
            json.dump(data, f, indent=2, default=str)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def severity_summary(errors: Iterable[DetectedError]) -> dict[str, int]:
    errors = list(errors)
    summary = {"total_errors": len(errors), **{key: 0 for key in _SEVERITY_KEYS.values()}}
    for error in errors:
        summary[_SEVERITY_KEYS[error.severity]] += 1
    return summary


def save_error_report(errors: list[DetectedError], path: str | Path) -> Path:
    """Write an error report with severity counts. Format follows the suffix."""
    path = Path(path)
    logger.debug("Saving %d errors to %s...", len(errors), path)
    report = {
        "report_type": "error_analysis",
        "generated_at": _now(),
        "ai_version": REPORT_VERSION,
        "summary": severity_summary(errors),
        "errors": [e.model_dump(mode="json") for e in errors],
    }
    _dump(report, path)
    logger.info("Saved error report with %d errors to %s", len(errors), path)
    return path


def load_error_report(path: str | Path) -> tuple[dict[str, int], list[DetectedError]]:
    """Read a report written by :func:`save_error_report`.

    Raises:
        FileNotFoundError: if the report does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Error report not found: {path}")
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) if _is_yaml(path) else json.load(f)
    errors = [DetectedError.model_validate(e) for e in data.get("errors", [])]
    return data.get("summary", {}), errors


def save_testing_report(result: AIResult | dict[str, Any], path: str | Path) -> Path:
    """Write the machine-readable whole-run report."""
    path = Path(path)
    logger.debug("Saving testing report to %s...", path)
    results = result.model_dump(mode="json") if isinstance(result, AIResult) else result
    report = {
        "report_type": "ai_enhanced_testing",
        "generated_at": _now(),
        "ai_version": REPORT_VERSION,
        "results": results,
        "summary": {
            "report_description": "AI-enhanced testing execution report",
            "features_used": [
                "pattern_recognition",
                "error_prediction",
                "performance_analysis",
                "automated_insights",
            ],
        },
    }
    _dump(report, path)
    logger.info("Saved AI-enhanced testing report to %s", path)
    return path


def save_tests(tests: list[SuggestedAction], path: str | Path) -> Path:
    """Export suggested actions as a runnable config (YAML or JSON by suffix)."""
    path = Path(path)
    logger.debug("Saving %d tests to %s...", len(tests), path)
    url = next((t.value for t in tests if t.type == "navigate" and t.value), "https://example.com")
    config = {
        "name": "AI Generated Tests",
        "description": "Automatically generated test cases",
        "generated_at": _now(),
        "ai_version": REPORT_VERSION,
        "apps": [{"name": "AI Generated Test App", "type": "web", "url": url}],
        "actions": [t.model_dump(exclude_none=True) for t in tests],
        "settings": {
            "screenshot_format": "png",
            "video_format": "webm",
            "headless": True,
            "log_level": "info",
        },
    }
    _dump(config, path)
    logger.info("Saved %d tests to %s", len(tests), path)
    return path
