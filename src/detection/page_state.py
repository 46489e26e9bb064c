"""Structural error checks over a page state snapshot."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from src.models.errors import DetectedError, ErrorPosition
from src.models.page_state import PageState

logger = logging.getLogger(__name__)

SLOW_PAGE_LOAD_MS = 5000.0

_SOURCE = "page_state"


def coerce_page_state(page_state: Any) -> PageState:
    """Validate a page state given as a model or a mapping.

    Raises:
        ValueError: if the input is missing or has the wrong shape.
    """
    if isinstance(page_state, PageState):
        return page_state
    if not isinstance(page_state, dict):
        raise ValueError("invalid page state format")
    try:
        return PageState.model_validate(page_state)
    except ValidationError as e:
        raise ValueError("invalid page state format") from e


def _severity(value: str) -> str:
    return value if value in ("low", "medium", "high", "critical") else "medium"


def detect_page_state_errors(page_state: Any) -> list[DetectedError]:
    """Report JS errors, broken images, empty required fields, slow loads and a11y issues."""
    state = coerce_page_state(page_state)
    logger.debug("Detecting errors in page state for %s", state.url or "(no url)")
    errors: list[DetectedError] = []

    for js in state.javascript_errors:
        errors.append(DetectedError(
            name="JavaScriptError",
            category="javascript",
            message=js.message or "JavaScript error detected in page",
            severity="high",
            confidence=0.95,
            source=_SOURCE,
            suggestions=["Check browser console for details", "Debug JavaScript code"],
            tags=["javascript", "runtime"],
            context={"line": str(js.line), "column": str(js.column)},
        ))

    for elem in state.elements:
        if elem.type in ("img", "image") and elem.broken:
            errors.append(DetectedError(
                name="BrokenImage",
                category="ui",
                message=f"Broken image detected: {elem.src or elem.selector}",
                severity="medium",
                confidence=0.90,
                source=_SOURCE,
                position=ErrorPosition(type="selector", value=elem.selector, element="img"),
                suggestions=["Verify image URL", "Check static asset hosting"],
                tags=["ui", "image", "broken"],
                context={"src": elem.src},
            ))

        if elem.required and elem.empty:
            errors.append(DetectedError(
                name="RequiredFieldMissing",
                category="validation",
                message=f"Required field is empty: {elem.name or elem.selector}",
                severity="medium",
                confidence=0.85,
                source=_SOURCE,
                position=ErrorPosition(type="selector", value=elem.selector, element=elem.type),
                suggestions=["Fill all required fields", "Mark required fields clearly"],
                tags=["form", "validation", "required"],
                context={"field_name": elem.name},
            ))

    if state.load_time is not None and state.load_time > SLOW_PAGE_LOAD_MS:
        errors.append(DetectedError(
            name="SlowPageLoad",
            category="performance",
            message=(
                f"Page load time {state.load_time:.2f}ms exceeds "
                f"recommended {SLOW_PAGE_LOAD_MS:.0f}ms"
            ),
            severity="low",
            confidence=0.80,
            source=_SOURCE,
            suggestions=["Optimize page resources", "Check server response time"],
            tags=["performance", "load"],
            context={"load_time": str(state.load_time)},
        ))

    for issue in state.accessibility:
        errors.append(DetectedError(
            name="AccessibilityIssue",
            category="accessibility",
            message=issue.description or f"Accessibility rule '{issue.rule}' violated",
            severity=_severity(issue.severity),
            confidence=0.90,
            source=_SOURCE,
            position=ErrorPosition(type="selector", value=issue.selector),
            suggestions=["Review accessibility guidelines for this rule"],
            tags=["accessibility", issue.rule] if issue.rule else ["accessibility"],
            context={"rule": issue.rule},
        ))

    logger.info("Detected %d errors in page state", len(errors))
    return errors
