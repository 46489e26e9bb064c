"""Tests for page state error detection and test suggestion."""

import pytest

from src.detection.page_state import coerce_page_state, detect_page_state_errors
from src.generation.page_state import generate_tests_from_page_state
from src.models.page_state import PageElement, PageState


class TestCoercePageState:
    """Tests for page state validation."""

    def test_model_passthrough(self):
        state = PageState(url="https://example.com")
        assert coerce_page_state(state) is state

    def test_dict_is_validated(self, page_state_dict):
        state = coerce_page_state(page_state_dict)
        assert state.url == "https://example.com/login"
        assert len(state.elements) == 3

    @pytest.mark.parametrize("bad", [None, "not a dict", 42, ["a"]])
    def test_wrong_type_rejected(self, bad):
        with pytest.raises(ValueError, match="invalid page state format"):
            coerce_page_state(bad)

    def test_wrong_shape_rejected(self):
        with pytest.raises(ValueError, match="invalid page state format"):
            coerce_page_state({"elements": "nope"})


class TestDetectPageStateErrors:
    """Tests for structural page checks."""

    def test_detects_every_problem(self, page_state_dict):
        errors = detect_page_state_errors(page_state_dict)
        names = [e.name for e in errors]
        assert names == [
            "JavaScriptError",
            "RequiredFieldMissing",
            "BrokenImage",
            "SlowPageLoad",
            "AccessibilityIssue",
        ]

    def test_javascript_error_fields(self, page_state_dict):
        error = detect_page_state_errors(page_state_dict)[0]
        assert error.category == "javascript"
        assert error.severity == "high"
        assert error.confidence == pytest.approx(0.95)
        assert error.message == "Uncaught TypeError: x is undefined"
        assert error.context == {"line": "12", "column": "4"}

    def test_slow_page_load_message(self, page_state_dict):
        slow = [e for e in detect_page_state_errors(page_state_dict) if e.name == "SlowPageLoad"][0]
        assert slow.category == "performance"
        assert slow.severity == "low"
        assert "6500.00ms" in slow.message

    def test_load_time_at_threshold_is_fine(self):
        assert detect_page_state_errors({"load_time": 5000}) == []

    def test_accessibility_severity_carried(self, page_state_dict):
        issue = [e for e in detect_page_state_errors(page_state_dict) if e.name == "AccessibilityIssue"][0]
        assert issue.category == "accessibility"
        assert issue.severity == "high"
        assert issue.position.value == "#logo"

    def test_clean_page(self):
        state = PageState(url="https://example.com", elements=[PageElement(type="button", selector="#ok")])
        assert detect_page_state_errors(state) == []

    def test_invalid_input(self):
        with pytest.raises(ValueError):
            detect_page_state_errors("<html>")


class TestGenerateTestsFromPageState:
    """Tests for config-style action suggestions."""

    def test_action_order(self, page_state_dict):
        actions = generate_tests_from_page_state(page_state_dict)
        assert [a.name for a in actions] == [
            "AI_Generated_Navigation_Test",
            "AI_Generated_Input_Fill_1",
            "AI_Generated_Button_Click_2",
            "AI_Generated_Screenshot_Documentation",
        ]

    def test_action_fields(self, page_state_dict):
        navigate, fill, click, screenshot = generate_tests_from_page_state(page_state_dict)
        assert navigate.type == "navigate"
        assert navigate.value == "https://example.com/login"
        assert navigate.confidence == pytest.approx(0.90)
        assert fill.type == "fill"
        assert fill.selector == "#email"
        assert fill.value == "test_input_value"
        assert click.type == "click"
        assert click.selector == "#submit"
        assert screenshot.value == "page_documentation.png"
        assert all(a.auto_generated for a in (navigate, fill, click, screenshot))

    def test_no_url_skips_navigation(self):
        actions = generate_tests_from_page_state({"elements": []})
        assert [a.type for a in actions] == ["screenshot"]

    def test_elements_without_selector_skipped(self):
        actions = generate_tests_from_page_state({"elements": [{"type": "button"}]})
        assert [a.type for a in actions] == ["screenshot"]

    def test_invalid_input(self):
        with pytest.raises(ValueError, match="invalid page state format"):
            generate_tests_from_page_state(None)
