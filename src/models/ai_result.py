"""Result data structures produced by one AI-enhanced test run."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from src.models.config import RunConfig
from src.models.elements import ElementInfo
from src.models.errors import DetectedError, clamp_confidence
from src.models.generated_test import GeneratedTest


class Phase(str, Enum):
    IDLE = "idle"
    VISION = "vision"
    GENERATE = "generate"
    EXECUTE = "execute"
    DETECT = "detect"
    ENHANCE = "enhance"
    PRIORITIZE = "prioritize"
    REPORT = "report"
    DONE = "done"


class PhaseRecord(BaseModel):
    phase: Phase
    status: str  # completed, skipped, failed
    reason: str = ""
    duration_seconds: float = 0.0


class ActionOutcome(BaseModel):
    index: int
    name: str = ""
    action_type: str
    target: str = ""  # selector or URL the action addressed
    status: str = "pass"  # pass, fail, invalid
    error_message: Optional[str] = None


class ExecutionResult(BaseModel):
    actions_executed: int = 0
    actions_failed: int = 0
    success_rate: float = 1.0
    outcomes: list[ActionOutcome] = Field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def failure_messages(self) -> list[str]:
        return [o.error_message for o in self.outcomes if o.status == "fail" and o.error_message]


class TestEnhancement(BaseModel):
    type: str  # recovery, optimization, addition
    description: str
    original_test: str = ""
    enhanced_test: str = ""
    reasoning: str = ""
    confidence: float = 0.0
    impact: str = ""
    parameters: dict[str, str] = Field(default_factory=dict)

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp(cls, v: float) -> float:
        return clamp_confidence(v)


class AIRecommendation(BaseModel):
    category: str  # error, test, coverage, optimization
    priority: str  # high, medium, low
    title: str
    description: str
    action_items: list[str] = Field(default_factory=list)
    benefit: str = ""
    effort: str = ""


class AIResult(BaseModel):
    config: RunConfig
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_seconds: float = 0.0
    visual_elements: list[ElementInfo] = Field(default_factory=list)
    generated_tests: list[GeneratedTest] = Field(default_factory=list)
    execution_result: Optional[ExecutionResult] = None
    errors: list[DetectedError] = Field(default_factory=list)
    enhancements: list[TestEnhancement] = Field(default_factory=list)
    recommendations: list[AIRecommendation] = Field(default_factory=list)
    phase_trail: list[PhaseRecord] = Field(default_factory=list)
    ai_summary: str = ""

    def phase_status(self, phase: Phase) -> Optional[str]:
        for record in self.phase_trail:
            if record.phase == phase:
                return record.status
        return None
