"""Pytest configuration and shared fixtures."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest
from PIL import Image
from playwright.async_api import Page

from src.models.config import (
    AIConfig,
    AppConfig,
    ClickAction,
    FillAction,
    NavigateAction,
    RunConfig,
    Settings,
    WaitAction,
)
from src.models.elements import ElementInfo, Point, Size
from src.models.errors import DetectedError, ErrorMessage
from src.platforms.base import Platform


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def app_config() -> AppConfig:
    """Create a test web app configuration."""
    return AppConfig(name="web-app", type="web", url="https://example.com", timeout=30)


@pytest.fixture
def ai_config() -> AIConfig:
    """Create an AI config with every feature on."""
    return AIConfig(
        enable_error_detection=True,
        enable_test_generation=True,
        enable_vision_analysis=True,
        smart_error_recovery=True,
        adaptive_test_priority=True,
        confidence_threshold=0.7,
        max_generated_tests=20,
    )


@pytest.fixture
def run_config(app_config: AppConfig, ai_config: AIConfig, tmp_path: Path) -> RunConfig:
    """Create a test run configuration writing into a temp dir."""
    return RunConfig(
        name="Login Smoke Test",
        output=str(tmp_path / "output"),
        apps=[app_config],
        actions=[
            NavigateAction(name="open_login", value="https://example.com/login"),
            FillAction(name="enter_email", selector="input[name='email']", value="test@example.com"),
            ClickAction(name="submit_login", selector="button[type='submit']"),
            WaitAction(name="settle", wait_time=0),
        ],
        settings=Settings(ai_testing=ai_config),
    )


@pytest.fixture
def temp_config_file(run_config: RunConfig, tmp_path: Path) -> Path:
    """Create a temporary YAML config file."""
    config_file = tmp_path / "ai-tester.yaml"
    run_config.save(config_file)
    return config_file


# ============================================================================
# Element and Error Fixtures
# ============================================================================


def make_element(element_type: str, x: int = 0, y: int = 0, text: str = "") -> ElementInfo:
    return ElementInfo(
        type=element_type,
        selector=f"{element_type}[{x},{y}]",
        text=text,
        confidence=0.75,
        position=Point(x=x, y=y),
        size=Size(width=80, height=30),
    )


@pytest.fixture
def form_elements() -> list[ElementInfo]:
    """Two text fields and a button, enough for every form strategy."""
    return [
        make_element("textfield", 20, 20),
        make_element("textfield", 20, 60),
        make_element("button", 20, 100, text="Submit"),
    ]


@pytest.fixture
def mixed_elements() -> list[ElementInfo]:
    """One element of every detectable type."""
    return [
        make_element("button", 20, 20, text="Sign in"),
        make_element("textfield", 120, 20),
        make_element("link", 20, 80, text="Forgot password?"),
        make_element("image", 200, 200),
    ]


@pytest.fixture
def error_message() -> ErrorMessage:
    """Create a diagnostic message that matches exactly one pattern."""
    return ErrorMessage(
        message="Connection timeout occurred",
        source="test_runner",
        level="error",
        context={"selector": "#login"},
    )


@pytest.fixture
def detected_errors() -> list[DetectedError]:
    """A small mixed-severity batch of findings in the same hour."""
    ts = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
    return [
        DetectedError(name="NetworkTimeout", category="network", message="Request timeout",
                      severity="high", confidence=0.85, timestamp=ts),
        DetectedError(name="ConnectionRefused", category="network", message="Connection refused",
                      severity="high", confidence=0.90, timestamp=ts),
        DetectedError(name="DatabaseError", category="database", message="SQL error",
                      severity="critical", confidence=0.80, timestamp=ts),
        DetectedError(name="ValidationError", category="validation", message="Invalid input",
                      severity="low", confidence=0.65, timestamp=ts),
    ]


# ============================================================================
# Page State Fixtures
# ============================================================================


@pytest.fixture
def page_state_dict() -> dict[str, Any]:
    """A page snapshot with one of every structural problem."""
    return {
        "url": "https://example.com/login",
        "title": "Login",
        "elements": [
            {"type": "input", "selector": "#email", "name": "email", "required": True, "empty": True},
            {"type": "button", "selector": "#submit", "text": "Sign in"},
            {"type": "img", "selector": "#logo", "src": "/logo.png", "broken": True},
        ],
        "javascript_errors": [{"message": "Uncaught TypeError: x is undefined", "line": 12, "column": 4}],
        "load_time": 6500.0,
        "accessibility": [
            {"rule": "image-alt", "selector": "#logo", "severity": "high",
             "description": "Images must have alternate text"},
        ],
    }


# ============================================================================
# Mock Fixtures
# ============================================================================


def write_screenshot(path: str, color: int = 255, size: tuple[int, int] = (200, 120)) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    Image.new("L", size, color=color).save(path)


@pytest.fixture
def mock_platform() -> AsyncMock:
    """Create a mock platform whose screenshots are real (white) PNG files."""
    platform = AsyncMock(spec=Platform)
    platform.screenshot.side_effect = lambda path: write_screenshot(path)
    platform.get_metrics = Mock(return_value={})
    return platform


@pytest.fixture
def mock_anthropic_client() -> Mock:
    """Create a mock Anthropic client."""
    mock_client = Mock()
    mock_response = Mock()
    mock_response.content = [Mock(text="The run passed with minor issues.")]
    mock_response.stop_reason = "end_turn"
    mock_client.messages.create.return_value = mock_response
    return mock_client


@pytest.fixture
def mock_page() -> AsyncMock:
    """Create a mock Playwright page."""
    page = AsyncMock(spec=Page)
    page.url = "https://example.com"
    page.goto = AsyncMock()
    page.screenshot = AsyncMock()
    page.content = AsyncMock(return_value="<html></html>")
    page.evaluate = AsyncMock()
    page.wait_for_load_state = AsyncMock()
    locator = AsyncMock()
    page.locator = Mock(return_value=Mock(first=locator))
    return page
