"""Pattern-based error classifier: turns diagnostic text into structured findings."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Iterable

from src.detection.patterns import contains_error_indicator, error_patterns
from src.models.errors import (
    DetectedError,
    ErrorAnalysis,
    ErrorMessage,
    ErrorPattern,
    ErrorPosition,
    ErrorRecommendation,
    ErrorTrend,
    clamp_confidence,
)

logger = logging.getLogger(__name__)

INDICATOR_CONFIDENCE_BOOST = 0.10
CATEGORY_RECOMMENDATION_THRESHOLD = 5

_UNKNOWN_SUGGESTIONS = [
    "Review error message for details",
    "Check application logs",
    "Verify application state",
    "Contact support if issue persists",
]

_COVERAGE_GAPS: dict[str, tuple[str, str]] = {
    "ui": ("UI automation tests", "Element locator testing"),
    "network": ("Network connectivity tests", "API endpoint tests"),
    "authentication": ("Authentication flow tests", "Session management tests"),
    "validation": ("Form validation tests", "Input boundary testing"),
    "performance": ("Performance tests", "Load testing"),
}


def _stringify_context(context: dict[str, Any]) -> dict[str, str]:
    return {key: value if isinstance(value, str) else str(value) for key, value in context.items()}


def extract_position(context: dict[str, Any]) -> ErrorPosition:
    """Derive where an error happened from a message's context."""
    position = ErrorPosition()

    selector = context.get("selector")
    if isinstance(selector, str):
        position.type = "selector"
        position.value = selector

    x, y = context.get("x"), context.get("y")
    if isinstance(x, int) and not isinstance(x, bool):
        position.x = x
    if isinstance(y, int) and not isinstance(y, bool):
        position.y = y

    element = context.get("element")
    if isinstance(element, str):
        position.element = element

    if position.type == "unknown" and position.x > 0 and position.y > 0:
        position.type = "coordinates"
        position.value = f"({position.x}, {position.y})"

    return position


def _hour_bucket(ts: datetime) -> datetime:
    return ts.replace(minute=0, second=0, microsecond=0)


def _modal(values: Iterable[str]) -> str:
    # most_common is stable, so ties go to the first value seen.
    counts = Counter(values)
    return counts.most_common(1)[0][0] if counts else ""


class ErrorPatternClassifier:
    """Classifies free-text messages against the shared error pattern catalog."""

    def __init__(self, enabled: bool = True):
        self._enabled = enabled
        self._patterns = error_patterns()

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        self._enabled = False

    @property
    def patterns(self) -> tuple[ErrorPattern, ...]:
        return self._patterns

    # ------------------------------------------------------------------
    # Detection
    # ------------------------------------------------------------------

    def detect_errors(self, messages: Iterable[ErrorMessage]) -> list[DetectedError]:
        """Classify each message; one finding per pattern match."""
        if not self._enabled:
            return []

        messages = list(messages)
        detected: list[DetectedError] = []
        for msg in messages:
            detected.extend(self._analyze_message(msg))

        logger.info("Detected %d errors from %d messages", len(detected), len(messages))
        return detected

    def _analyze_message(self, msg: ErrorMessage) -> list[DetectedError]:
        context = _stringify_context(msg.context)
        position = extract_position(msg.context)
        found: list[DetectedError] = []

        for pattern in self._patterns:
            for match in pattern.pattern.finditer(msg.message):
                logger.debug("Pattern %s matched '%s' in: %s",
                             pattern.name, match.group(0), msg.message)
                found.append(DetectedError(
                    name=pattern.name,
                    category=pattern.category,
                    message=msg.message,
                    severity=pattern.severity,
                    confidence=pattern.confidence,
                    timestamp=msg.timestamp,
                    source=msg.source,
                    position=position.model_copy(),
                    suggestions=list(pattern.suggestions),
                    tags=list(pattern.tags),
                    context={**context, "match": match.group(0)},
                ))

        if not found and contains_error_indicator(msg.message):
            found.append(DetectedError(
                name="UnknownError",
                category="general",
                message=msg.message,
                severity="medium",
                confidence=0.50,
                timestamp=msg.timestamp,
                source=msg.source,
                position=position,
                suggestions=list(_UNKNOWN_SUGGESTIONS),
                tags=["unknown", "general"],
                context=context,
            ))

        return found

    def detect_in_content(self, content: str, source: str = "content_analysis") -> list[DetectedError]:
        """Scan a raw text blob, boosting confidence when generic indicators appear."""
        if not self._enabled:
            return []

        boost = INDICATOR_CONFIDENCE_BOOST if contains_error_indicator(content) else 0.0
        now = datetime.now(timezone.utc)
        detections: list[DetectedError] = []

        for pattern in self._patterns:
            for match in pattern.pattern.finditer(content):
                detections.append(DetectedError(
                    name=pattern.name,
                    category=pattern.category,
                    message=match.group(0),
                    severity=pattern.severity,
                    confidence=clamp_confidence(pattern.confidence + boost),
                    timestamp=now,
                    source=source,
                    position=ErrorPosition(type="content", value="content"),
                    suggestions=list(pattern.suggestions),
                    tags=list(pattern.tags),
                    context={"pattern": pattern.name},
                ))

        logger.debug("Content scan found %d matches", len(detections))
        return detections

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def analyze_errors(self, errors: list[DetectedError]) -> ErrorAnalysis:
        """Aggregate a batch of findings into counts, trends and recommendations."""
        analysis = ErrorAnalysis(total_errors=len(errors))

        for error in errors:
            analysis.error_categories[error.category] = analysis.error_categories.get(error.category, 0) + 1
            analysis.severity_levels[error.severity] = analysis.severity_levels.get(error.severity, 0) + 1
            if error.severity == "critical":
                analysis.critical_errors.append(error)
            elif error.severity == "high":
                analysis.high_risk_errors.append(error)

        analysis.error_trends = self._generate_trends(errors)
        analysis.recommendations = self._generate_recommendations(analysis)
        analysis.test_coverage = self._determine_test_coverage(analysis.error_categories)
        analysis.detected_patterns = self._extract_detected_patterns(errors)
        return analysis

    def _generate_trends(self, errors: list[DetectedError]) -> list[ErrorTrend]:
        windows: dict[datetime, list[DetectedError]] = {}
        for error in errors:
            windows.setdefault(_hour_bucket(error.timestamp), []).append(error)

        return [
            ErrorTrend(
                timestamp=bucket,
                error_count=len(window),
                category=_modal(e.category for e in window),
                severity=_modal(e.severity for e in window),
            )
            for bucket, window in sorted(windows.items(), key=lambda item: item[0])
        ]

    def _generate_recommendations(self, analysis: ErrorAnalysis) -> list[ErrorRecommendation]:
        recommendations: list[ErrorRecommendation] = []

        if analysis.critical_errors:
            recommendations.append(ErrorRecommendation(
                type="fix",
                priority="high",
                description="Critical errors detected requiring immediate attention",
                suggestion="Address critical errors immediately to prevent system failure",
                steps=[
                    "Review critical error details",
                    "Implement emergency fixes",
                    "Add monitoring for critical issues",
                    "Schedule immediate testing",
                ],
                impact="Prevents system failures and data loss",
                effort="High - Requires immediate resources",
                tags=["critical", "urgent", "fix"],
            ))

        if analysis.high_risk_errors:
            recommendations.append(ErrorRecommendation(
                type="fix",
                priority="high",
                description="High severity errors require prompt resolution",
                suggestion="Prioritize high severity error fixes in next release",
                steps=[
                    "Analyze high severity error patterns",
                    "Implement targeted fixes",
                    "Add automated error detection",
                    "Schedule regression testing",
                ],
                impact="Reduces system instability and user impact",
                effort="Medium - Can be addressed in next sprint",
                tags=["high", "priority", "fix"],
            ))

        for category, count in analysis.error_categories.items():
            if count > CATEGORY_RECOMMENDATION_THRESHOLD:
                recommendations.append(ErrorRecommendation(
                    type="improve",
                    priority="medium",
                    description=f"High number of {category} errors detected",
                    suggestion=f"Investigate and fix root causes of {category} errors",
                    steps=[
                        f"Analyze {category} error patterns",
                        f"Review {category}-related code",
                        "Implement comprehensive testing",
                        "Add error prevention measures",
                    ],
                    impact=f"Reduces {category}-related errors and improves reliability",
                    effort="Medium - Requires focused investigation",
                    tags=[category, "improve", "reliability"],
                ))

        return recommendations

    @staticmethod
    def _determine_test_coverage(categories: dict[str, int]) -> list[str]:
        coverage: list[str] = []
        for category, gaps in _COVERAGE_GAPS.items():
            if categories.get(category, 0) > 0:
                coverage.extend(gaps)
        return coverage

    def _extract_detected_patterns(self, errors: list[DetectedError]) -> list[ErrorPattern]:
        triggered = {error.name for error in errors}
        return [p for p in self._patterns if p.name in triggered]
