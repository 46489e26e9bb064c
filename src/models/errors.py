"""Error detection data structures produced by the pattern classifier."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Every category a catalog pattern can produce, plus the fallback bucket.
ERROR_CATEGORIES = frozenset({
    "network", "ui", "authentication", "validation", "performance",
    "javascript", "database", "filesystem", "navigation", "accessibility",
    "general",
})

Severity = Literal["low", "medium", "high", "critical"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def clamp_confidence(value: float) -> float:
    return min(max(float(value), 0.0), 1.0)


def as_utc(ts: datetime) -> datetime:
    """Naive timestamps are taken to be UTC; aware ones are converted to it."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


class ErrorPattern(BaseModel):
    """Immutable catalog entry describing one known error signature."""

    model_config = ConfigDict(frozen=True)

    name: str
    category: str
    pattern: re.Pattern
    severity: Severity
    confidence: float
    description: str = ""
    suggestions: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp(cls, v: float) -> float:
        return clamp_confidence(v)


class ErrorPosition(BaseModel):
    type: str = "unknown"  # selector, coordinates, action, content, unknown
    value: str = ""
    x: int = 0
    y: int = 0
    element: str = ""


class ErrorMessage(BaseModel):
    """A free-text diagnostic handed to the classifier."""
    message: str
    source: str = ""
    timestamp: datetime = Field(default_factory=_utcnow)
    level: str = ""
    context: dict[str, Any] = Field(default_factory=dict)

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class DetectedError(BaseModel):
    name: str
    category: str
    message: str
    severity: Severity
    confidence: float
    timestamp: datetime = Field(default_factory=_utcnow)
    source: str = ""
    position: ErrorPosition = Field(default_factory=ErrorPosition)
    suggestions: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    context: dict[str, str] = Field(default_factory=dict)

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp(cls, v: float) -> float:
        return clamp_confidence(v)

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    @field_validator("category")
    @classmethod
    def _known_category(cls, v: str) -> str:
        if v not in ERROR_CATEGORIES:
            raise ValueError(f"Unknown error category: {v}")
        return v


class ErrorTrend(BaseModel):
    timestamp: datetime
    error_count: int
    category: str
    severity: str


class ErrorRecommendation(BaseModel):
    type: str  # fix, improve, prevent
    priority: str  # high, medium, low
    description: str
    suggestion: str = ""
    steps: list[str] = Field(default_factory=list)
    impact: str = ""
    effort: str = ""
    tags: list[str] = Field(default_factory=list)


class ErrorAnalysis(BaseModel):
    total_errors: int = 0
    error_categories: dict[str, int] = Field(default_factory=dict)
    severity_levels: dict[str, int] = Field(default_factory=dict)
    critical_errors: list[DetectedError] = Field(default_factory=list)
    high_risk_errors: list[DetectedError] = Field(default_factory=list)
    error_trends: list[ErrorTrend] = Field(default_factory=list)
    recommendations: list[ErrorRecommendation] = Field(default_factory=list)
    test_coverage: list[str] = Field(default_factory=list)
    detected_patterns: list[ErrorPattern] = Field(default_factory=list)
