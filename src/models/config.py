"""Configuration models for AI-enhanced test runs."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator

from src.models.errors import clamp_confidence


class AppConfig(BaseModel):
    name: str = ""
    type: str = "web"  # web, desktop, mobile
    url: str = ""
    path: str = ""
    platform: str = ""  # ios, android, windows, macos, linux
    emulator: bool = False
    device: str = ""
    timeout: int = 30
    environment: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Actions, one variant per action type, discriminated on ``type``
# ---------------------------------------------------------------------------


class _BaseAction(BaseModel):
    name: str = ""
    parameters: dict[str, str] = Field(default_factory=dict)


class NavigateAction(_BaseAction):
    type: Literal["navigate"] = "navigate"
    value: str = ""  # target URL


class ClickAction(_BaseAction):
    type: Literal["click"] = "click"
    selector: str = ""


class FillAction(_BaseAction):
    type: Literal["fill"] = "fill"
    selector: str = ""
    value: str = ""


class SubmitAction(_BaseAction):
    type: Literal["submit"] = "submit"
    selector: str = ""


class WaitAction(_BaseAction):
    type: Literal["wait"] = "wait"
    wait_time: float = 0  # seconds


class ScreenshotAction(_BaseAction):
    type: Literal["screenshot"] = "screenshot"
    value: str = ""  # file name, relative to the run output dir


class RecordAction(_BaseAction):
    type: Literal["record"] = "record"
    value: str = ""  # file name, relative to the run output dir
    duration: int = 5  # seconds


Action = Annotated[
    Union[
        NavigateAction, ClickAction, FillAction, SubmitAction,
        WaitAction, ScreenshotAction, RecordAction,
    ],
    Field(discriminator="type"),
]


class AIConfig(BaseModel):
    enable_error_detection: bool = True
    enable_test_generation: bool = True
    enable_vision_analysis: bool = True
    auto_generate_tests: bool = False
    smart_error_recovery: bool = True
    adaptive_test_priority: bool = True
    confidence_threshold: float = 0.7
    max_generated_tests: int = Field(default=20, ge=0)
    enable_learning: bool = False  # reserved

    @field_validator("confidence_threshold", mode="before")
    @classmethod
    def _clamp_threshold(cls, v: float) -> float:
        return clamp_confidence(v)

    @property
    def any_enabled(self) -> bool:
        return (
            self.enable_error_detection
            or self.enable_test_generation
            or self.enable_vision_analysis
        )


class Settings(BaseModel):
    screenshot_format: str = "png"
    video_format: str = "webm"
    headless: bool = True
    window_width: int = 1280
    window_height: int = 720
    log_level: str = "info"

    # Narrative summary model (used only when ANTHROPIC_API_KEY is set)
    ai_model: str = "claude-sonnet-4-20250514"
    ai_max_summary_tokens: int = 500

    ai_testing: AIConfig = Field(default_factory=AIConfig)


class RunConfig(BaseModel):
    name: str
    output: str = "./output"
    apps: list[AppConfig] = Field(default_factory=list)
    actions: list[Action] = Field(default_factory=list)
    settings: Settings = Field(default_factory=Settings)

    @property
    def app_type(self) -> str:
        return self.apps[0].type if self.apps else "web"

    @property
    def primary_app(self) -> Optional[AppConfig]:
        return self.apps[0] if self.apps else None

    @classmethod
    def load(cls, path: str | Path) -> "RunConfig":
        """Load config from a JSON or YAML file (chosen by suffix)."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            if path.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(f) or {}
            else:
                data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config as JSON or YAML (chosen by suffix)."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = self.model_dump(mode="json")
        with open(path, "w") as f:
            if path.suffix.lower() in (".yaml", ".yml"):
                yaml.safe_dump(data, f, sort_keys=False)
            else:
                json.dump(data, f, indent=2)
