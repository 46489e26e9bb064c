"""Suggest config-style actions from a page state snapshot."""

from __future__ import annotations

import logging
from typing import Any

from src.detection.page_state import coerce_page_state
from src.models.generated_test import SuggestedAction

logger = logging.getLogger(__name__)

DEFAULT_INPUT_VALUE = "test_input_value"


def generate_tests_from_page_state(page_state: Any) -> list[SuggestedAction]:
    """Build navigate / click / fill / screenshot actions for a page.

    Navigation comes first when the page has a URL, then one click per button
    and one fill per input (in element order), then a documentation
    screenshot.

    Raises:
        ValueError: if ``page_state`` is not a page state or a mapping of one.
    """
    state = coerce_page_state(page_state)
    actions: list[SuggestedAction] = []

    if state.url:
        actions.append(SuggestedAction(
            name="AI_Generated_Navigation_Test",
            type="navigate",
            value=state.url,
            description="AI-generated navigation test",
            confidence=0.90,
        ))

    for i, elem in enumerate(state.elements, start=1):
        if not elem.selector:
            continue
        if elem.type == "button":
            actions.append(SuggestedAction(
                name=f"AI_Generated_Button_Click_{i}",
                type="click",
                selector=elem.selector,
                description=f"AI-generated test for clicking button: {elem.selector}",
                confidence=0.85,
            ))
        elif elem.type == "input":
            actions.append(SuggestedAction(
                name=f"AI_Generated_Input_Fill_{i}",
                type="fill",
                selector=elem.selector,
                value=DEFAULT_INPUT_VALUE,
                description=f"AI-generated test for filling input: {elem.selector}",
                confidence=0.80,
            ))

    actions.append(SuggestedAction(
        name="AI_Generated_Screenshot_Documentation",
        type="screenshot",
        value="page_documentation.png",
        description="AI-generated screenshot for page documentation",
        confidence=0.95,
    ))

    logger.info("Generated %d AI test cases from page state", len(actions))
    return actions
