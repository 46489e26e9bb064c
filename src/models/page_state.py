"""Page state snapshot returned by a platform's page-state accessor."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class PageElement(BaseModel):
    type: str = ""  # button, input, img, a, ...
    selector: str = ""
    name: str = ""
    text: str = ""
    src: str = ""
    broken: bool = False
    required: bool = False
    empty: bool = False


class JavaScriptError(BaseModel):
    message: str = ""
    line: int = 0
    column: int = 0


class AccessibilityIssue(BaseModel):
    rule: str = ""
    selector: str = ""
    severity: str = "medium"
    description: str = ""


class PageState(BaseModel):
    url: str = ""
    title: str = ""
    content: str = ""
    elements: list[PageElement] = Field(default_factory=list)
    resources: list[str] = Field(default_factory=list)
    console_logs: list[str] = Field(default_factory=list)
    javascript_errors: list[JavaScriptError] = Field(default_factory=list)
    load_time: Optional[float] = None  # milliseconds
    accessibility: list[AccessibilityIssue] = Field(default_factory=list)
