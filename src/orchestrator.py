"""AI-enhanced test orchestrator: vision, generate, execute, detect, enhance, prioritize, report."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from src.ai.client import AIClient, set_debug_dir
from src.detection.classifier import ErrorPatternClassifier
from src.detection.page_state import detect_page_state_errors
from src.generation.page_state import generate_tests_from_page_state
from src.generation.test_generator import TestGenerator
from src.models.ai_result import (
    ActionOutcome,
    AIRecommendation,
    AIResult,
    ExecutionResult,
    Phase,
    PhaseRecord,
    TestEnhancement,
)
from src.models.config import (
    AIConfig,
    ClickAction,
    FillAction,
    NavigateAction,
    RecordAction,
    RunConfig,
    ScreenshotAction,
    SubmitAction,
    WaitAction,
)
from src.models.errors import DetectedError, ErrorAnalysis, ErrorMessage, ErrorPosition, clamp_confidence
from src.models.generated_test import GeneratedTest, SuggestedAction
from src.platforms.base import Platform
from src.platforms.web import create_platform
from src.reporter import json_report
from src.reporter.reporter import Reporter
from src.vision.pool import DetectorPool, default_pool

logger = logging.getLogger(__name__)

ENHANCEMENT_MIN_ERRORS = 2
VISUAL_COVERAGE_THRESHOLD = 20
_SOURCE = "ai_enhanced_tester"

# Remediation parameters attached to recovery enhancements, per error category.
_RECOVERY_STRATEGIES: dict[str, tuple[str, str, dict[str, str]]] = {
    "ui": (
        "Standard UI interaction",
        "AI-enhanced UI interaction with element detection",
        {"use_vision_detection": "true", "retry_mechanism": "adaptive", "element_timeout": "increased"},
    ),
    "network": (
        "Direct network calls",
        "Network calls with retry and fallback",
        {"max_retries": "3", "retry_delay": "exponential", "fallback_strategy": "cached_response"},
    ),
    "performance": (
        "Standard timing",
        "Adaptive timing with performance monitoring",
        {"adaptive_waits": "true", "performance_thresholds": "dynamic", "resource_monitoring": "enabled"},
    ),
}


class AITestingDisabledError(RuntimeError):
    """Raised when a run is requested with every AI feature turned off."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def adjust_test_priorities(tests: list[GeneratedTest], errors: list[DetectedError]) -> None:
    """Raise priority and confidence in place for tests that target observed trouble.

    error_handling tests follow high-severity errors, form tests follow
    validation errors, performance tests follow performance errors.
    """
    high_severity = sum(1 for e in errors if e.severity == "high")
    categories = {e.category for e in errors}

    for test in tests:
        if test.type == "error_handling" and high_severity > 0:
            test.priority = "high"
            test.confidence = clamp_confidence(test.confidence + 0.10)
        elif test.type == "form" and "validation" in categories:
            test.priority = "high"
            test.confidence = clamp_confidence(test.confidence + 0.15)
        elif test.type == "performance" and "performance" in categories:
            test.priority = "medium"
            test.confidence = clamp_confidence(test.confidence + 0.10)


class AIEnhancedTester:
    """Runs one configured action sequence through the full AI-enhanced pipeline.

    Instances hold no per-run state beyond the current phase, so a tester can
    be reused for consecutive runs; every run gets its own ``AIResult``.
    """

    def __init__(
        self,
        config: Optional[AIConfig] = None,
        classifier: Optional[ErrorPatternClassifier] = None,
        generator: Optional[TestGenerator] = None,
        detector_pool: Optional[DetectorPool] = None,
        ai_client: AIClient | None = None,
    ):
        self.classifier = classifier or ErrorPatternClassifier()
        self.generator = generator or TestGenerator()
        self.detector_pool = detector_pool or default_pool()
        self.ai_client = ai_client
        self.phase = Phase.IDLE
        self.set_config(config or AIConfig())

    def set_config(self, config: AIConfig) -> None:
        self.config = config
        self.enabled = config.any_enabled

    # ------------------------------------------------------------------
    # Full pipeline
    # ------------------------------------------------------------------

    def run(self, config: RunConfig, platform: Optional[Platform] = None) -> AIResult:
        """Synchronous entry point. Builds and tears down a platform when none is given."""
        return asyncio.run(self._run_with_platform(config, platform))

    async def _run_with_platform(self, config: RunConfig, platform: Optional[Platform]) -> AIResult:
        if platform is not None:
            return await self.execute(config, platform)

        platform = create_platform(
            config.app_type,
            settings=config.settings,
            video_dir=Path(config.output) / "videos",
        )
        app = config.primary_app
        if app is None:
            raise ValueError("run config has no apps to test")
        try:
            await platform.initialize(app)
            return await self.execute(config, platform)
        finally:
            await platform.close()

    async def execute(self, config: RunConfig, platform: Platform) -> AIResult:
        """Run every phase in order and return the run's aggregate result.

        Raises:
            AITestingDisabledError: if vision, generation and detection are all off.
        """
        if not self.enabled:
            raise AITestingDisabledError("AI-enhanced testing is disabled")

        logger.info("=== Starting AI-enhanced testing for %s ===", config.name)
        result = AIResult(config=config, start_time=_utcnow())
        output_dir = Path(config.output)
        self.phase = Phase.IDLE

        await self._run_phase(
            result, Phase.VISION,
            None if self.config.enable_vision_analysis else "vision analysis disabled",
            lambda: self._vision_phase(result, platform, output_dir),
        )

        generate_skip = None
        if not self.config.enable_test_generation:
            generate_skip = "test generation disabled"
        elif not result.visual_elements:
            generate_skip = "no visual elements detected"
        await self._run_phase(result, Phase.GENERATE, generate_skip,
                              lambda: self._generate_phase(result, config))

        await self._run_phase(result, Phase.EXECUTE, None,
                              lambda: self._execute_phase(result, config, platform, output_dir))

        await self._run_phase(
            result, Phase.DETECT,
            None if self.config.enable_error_detection else "error detection disabled",
            lambda: self._detect_phase(result),
        )

        enhance_skip = None
        if not self.config.smart_error_recovery:
            enhance_skip = "smart error recovery disabled"
        elif not result.errors:
            enhance_skip = "no errors detected"
        await self._run_phase(result, Phase.ENHANCE, enhance_skip,
                              lambda: self._enhance_phase(result))

        await self._run_phase(
            result, Phase.PRIORITIZE,
            None if self.config.adaptive_test_priority else "adaptive test priority disabled",
            lambda: self._prioritize_phase(result),
        )

        await self._run_phase(result, Phase.REPORT, None,
                              lambda: self._report_phase(result, platform, output_dir))

        self.phase = Phase.DONE
        result.end_time = _utcnow()
        result.duration_seconds = (result.end_time - result.start_time).total_seconds()
        logger.info("=== AI-enhanced testing completed in %.1fs (%d errors, %d tests) ===",
                    result.duration_seconds, len(result.errors), len(result.generated_tests))
        return result

    async def _run_phase(
        self,
        result: AIResult,
        phase: Phase,
        skip_reason: Optional[str],
        step: Callable[[], Awaitable[None]],
    ) -> None:
        self.phase = phase
        if skip_reason:
            logger.info("--- Phase %s skipped: %s ---", phase.value, skip_reason)
            result.phase_trail.append(PhaseRecord(phase=phase, status="skipped", reason=skip_reason))
            return

        logger.info("--- Phase %s ---", phase.value)
        phase_start = time.time()
        try:
            await step()
        except Exception as e:
            logger.warning("Phase %s failed: %s", phase.value, e)
            result.phase_trail.append(PhaseRecord(
                phase=phase, status="failed", reason=str(e),
                duration_seconds=time.time() - phase_start,
            ))
            return

        duration = time.time() - phase_start
        logger.debug("Phase %s completed in %.2fs", phase.value, duration)
        result.phase_trail.append(PhaseRecord(phase=phase, status="completed", duration_seconds=duration))

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    async def _vision_phase(self, result: AIResult, platform: Platform, output_dir: Path) -> None:
        output_dir.mkdir(parents=True, exist_ok=True)
        screenshot_path = output_dir / f"vision_analysis_{int(time.time())}.png"
        await platform.screenshot(str(screenshot_path))

        with self.detector_pool.borrowed() as detector:
            elements = detector.detect_elements(screenshot_path)
            detector.write_visual_report(elements, output_dir)
        result.visual_elements = elements
        logger.info("Detected %d visual elements", len(elements))

    async def _generate_phase(self, result: AIResult, config: RunConfig) -> None:
        tests = self.generator.generate_tests_from_elements(result.visual_elements, config.app_type)
        filtered = self.filter_tests_by_confidence(tests)
        result.generated_tests = filtered[:self.config.max_generated_tests]
        logger.info("Generated %d AI-enhanced tests (%d above confidence %.2f)",
                    len(result.generated_tests), len(filtered), self.config.confidence_threshold)

    async def _execute_phase(
        self, result: AIResult, config: RunConfig, platform: Platform, output_dir: Path,
    ) -> None:
        logger.info("Executing %d configured actions", len(config.actions))
        execution = ExecutionResult(started_at=_utcnow())
        result.execution_result = execution

        for index, action in enumerate(config.actions):
            name = action.name or f"{action.type}_{index + 1}"
            outcome = ActionOutcome(index=index, name=name, action_type=action.type)
            execution.outcomes.append(outcome)
            execution.actions_executed += 1

            preflight = self._preflight_error(action, name)
            if preflight is not None:
                logger.warning("Action '%s' is invalid: %s", name, preflight.message)
                result.errors.append(preflight)
                outcome.status = "invalid"
                outcome.error_message = preflight.message
                execution.actions_failed += 1
                continue

            logger.debug("Executing action [%d/%d]: %s (%s)",
                         index + 1, len(config.actions), name, action.type)
            outcome.target = getattr(action, "selector", "") or getattr(action, "value", "")
            try:
                outcome.target = await self._dispatch(action, platform, output_dir, index)
            except Exception as e:
                logger.warning("Action '%s' (%s) failed: %s", name, action.type, e)
                outcome.status = "fail"
                outcome.error_message = f"Action '{name}' ({action.type}) failed: {e}"
                execution.actions_failed += 1

        execution.completed_at = _utcnow()
        if execution.actions_executed:
            passed = execution.actions_executed - execution.actions_failed
            execution.success_rate = passed / execution.actions_executed
        logger.info("Executed %d actions, %d failed", execution.actions_executed, execution.actions_failed)

    @staticmethod
    def _preflight_error(action: Any, name: str) -> Optional[DetectedError]:
        if isinstance(action, ClickAction) and not action.selector:
            return DetectedError(
                name="MissingSelector",
                category="ui",
                message=f"Click action '{name}' missing selector",
                severity="medium",
                confidence=0.9,
                source=_SOURCE,
                position=ErrorPosition(type="action", value=name),
                suggestions=["Add CSS selector", "Use XPath selector", "Specify element ID"],
                tags=["click", "selector", "missing"],
            )
        if isinstance(action, NavigateAction) and not action.value:
            return DetectedError(
                name="MissingURL",
                category="navigation",
                message=f"Navigate action '{name}' missing URL",
                severity="high",
                confidence=0.95,
                source=_SOURCE,
                position=ErrorPosition(type="action", value=name),
                suggestions=["Add target URL", "Verify URL format", "Check URL accessibility"],
                tags=["navigate", "url", "missing"],
            )
        return None

    @staticmethod
    async def _dispatch(action: Any, platform: Platform, output_dir: Path, index: int) -> str:
        """Send one action to the platform; returns the selector, URL or path it addressed."""
        if isinstance(action, NavigateAction):
            await platform.navigate(action.value)
            return action.value
        if isinstance(action, ClickAction):
            await platform.click(action.selector)
            return action.selector
        if isinstance(action, FillAction):
            await platform.fill(action.selector, action.value)
            return action.selector
        if isinstance(action, SubmitAction):
            await platform.submit(action.selector)
            return action.selector
        if isinstance(action, WaitAction):
            await asyncio.sleep(action.wait_time)
            return ""
        if isinstance(action, ScreenshotAction):
            path = str(output_dir / (action.value or f"screenshot_{index + 1}.png"))
            await platform.screenshot(path)
            return path
        if isinstance(action, RecordAction):
            path = str(output_dir / (action.value or f"recording_{index + 1}.webm"))
            await platform.start_recording(path)
            await asyncio.sleep(action.duration)
            await platform.stop_recording()
            return path
        raise ValueError(f"unsupported action type: {action.type}")

    async def _detect_phase(self, result: AIResult) -> None:
        messages = self.collect_execution_messages(result)
        detected = self.classifier.detect_errors(messages)
        result.errors.extend(detected)
        if detected:
            logger.info("Detected %d additional errors through AI analysis", len(detected))

    async def _enhance_phase(self, result: AIResult) -> None:
        result.enhancements.extend(self.generate_error_recovery_enhancements(result.errors))
        logger.info("Generated %d recovery enhancements", len(result.enhancements))

    async def _prioritize_phase(self, result: AIResult) -> None:
        adjust_test_priorities(result.generated_tests, result.errors)

    async def _report_phase(self, result: AIResult, platform: Platform, output_dir: Path) -> None:
        analysis = self.classifier.analyze_errors(result.errors)
        result.recommendations = self.generate_recommendations(result, analysis)
        logger.info("Synthesized %d recommendations", len(result.recommendations))

        if self.config.auto_generate_tests:
            page_state = await platform.get_page_state()
            suggestions = self.generate_tests(page_state)
            self.save_tests(suggestions, output_dir / "ai_generated_tests.yaml")

    # ------------------------------------------------------------------
    # Building blocks
    # ------------------------------------------------------------------

    def filter_tests_by_confidence(
        self, tests: list[GeneratedTest], threshold: Optional[float] = None,
    ) -> list[GeneratedTest]:
        """Keep tests with confidence >= threshold, in their original order."""
        if threshold is None:
            threshold = self.config.confidence_threshold
        return [t for t in tests if t.confidence >= threshold]

    @staticmethod
    def collect_execution_messages(result: AIResult) -> list[ErrorMessage]:
        """Turn accumulated errors and action failures into classifier input."""
        messages = [
            ErrorMessage(
                message=error.message,
                source=error.source,
                timestamp=error.timestamp,
                level=error.severity,
                context={"category": error.category, "position": error.position.value},
            )
            for error in result.errors
        ]

        execution = result.execution_result
        if execution is None:
            return messages

        for outcome in execution.outcomes:
            if outcome.status != "fail" or not outcome.error_message:
                continue
            context: dict[str, Any] = {"action": outcome.name, "action_type": outcome.action_type}
            if outcome.action_type in ("click", "fill", "submit") and outcome.target:
                context["selector"] = outcome.target
            messages.append(ErrorMessage(
                message=outcome.error_message,
                source="execution_engine",
                level="error",
                context=context,
            ))

        if execution.success_rate < 1.0:
            messages.append(ErrorMessage(
                message=f"Test execution success rate: {execution.success_rate * 100:.2f}%",
                source="execution_engine",
                level="warn",
                context={
                    "actions_executed": execution.actions_executed,
                    "actions_failed": execution.actions_failed,
                    "success_rate": execution.success_rate,
                },
            ))
        return messages

    @staticmethod
    def generate_error_recovery_enhancements(errors: list[DetectedError]) -> list[TestEnhancement]:
        by_category: dict[str, list[DetectedError]] = {}
        for error in errors:
            by_category.setdefault(error.category, []).append(error)

        enhancements = []
        for category, group in by_category.items():
            if len(group) <= ENHANCEMENT_MIN_ERRORS:
                continue
            original, enhanced, parameters = _RECOVERY_STRATEGIES.get(category, ("", "", {}))
            enhancements.append(TestEnhancement(
                type="recovery",
                description=f"AI-generated recovery for {category} errors",
                original_test=original,
                enhanced_test=enhanced,
                reasoning=f"Detected {len(group)} {category}-related errors, implementing recovery strategy",
                confidence=0.75,
                impact="high",
                parameters=dict(parameters),
            ))
        return enhancements

    @staticmethod
    def generate_recommendations(result: AIResult, analysis: ErrorAnalysis) -> list[AIRecommendation]:
        recommendations = []

        if analysis.critical_errors:
            recommendations.append(AIRecommendation(
                category="error",
                priority="high",
                title="Critical Error Resolution",
                description=f"Address {len(analysis.critical_errors)} critical errors detected during testing",
                action_items=[
                    "Review and fix critical error sources",
                    "Implement automated error detection",
                    "Add error prevention measures",
                    "Schedule immediate regression testing",
                ],
                benefit="Prevents system failures and improves reliability",
                effort="High - Requires immediate attention",
            ))

        if result.generated_tests:
            recommendations.append(AIRecommendation(
                category="test",
                priority="medium",
                title="AI-Generated Test Implementation",
                description=f"Implement {len(result.generated_tests)} AI-generated tests for comprehensive coverage",
                action_items=[
                    "Review generated test cases",
                    "Integrate high-priority tests first",
                    "Customize test parameters",
                    "Schedule automated execution",
                ],
                benefit="Improves test coverage and detects edge cases",
                effort="Medium - Can be implemented incrementally",
            ))

        if len(result.visual_elements) > VISUAL_COVERAGE_THRESHOLD:
            recommendations.append(AIRecommendation(
                category="coverage",
                priority="medium",
                title="Visual Element Coverage",
                description=f"Comprehensive visual analysis detected {len(result.visual_elements)} UI elements",
                action_items=[
                    "Implement element-specific tests",
                    "Add accessibility testing",
                    "Create responsive design tests",
                    "Implement visual regression testing",
                ],
                benefit="Ensures comprehensive UI testing and accessibility",
                effort="Medium - Requires test case development",
            ))

        if result.enhancements:
            recommendations.append(AIRecommendation(
                category="optimization",
                priority="medium",
                title="AI-Enhanced Test Implementation",
                description=f"Implement {len(result.enhancements)} AI-generated test enhancements",
                action_items=[
                    "Integrate error recovery mechanisms",
                    "Implement adaptive timing strategies",
                    "Add intelligent retry logic",
                    "Enable smart element detection",
                ],
                benefit="Improves test reliability and reduces false failures",
                effort="Low to Medium - Depends on complexity",
            ))

        return recommendations

    # ------------------------------------------------------------------
    # Page-state entry points and persistence
    # ------------------------------------------------------------------

    def generate_tests(self, page_state: Any) -> list[SuggestedAction]:
        """Suggest config actions for a page. Raises ValueError on malformed input."""
        return generate_tests_from_page_state(page_state)

    def detect_errors(self, page_state: Any) -> list[DetectedError]:
        """Structural checks on a page. Raises ValueError on malformed input."""
        return detect_page_state_errors(page_state)

    def save_tests(self, tests: list[SuggestedAction], path: str | Path) -> Path:
        return json_report.save_tests(tests, path)

    def save_error_report(self, errors: list[DetectedError], path: str | Path) -> Path:
        return json_report.save_error_report(errors, path)

    def save_testing_report(self, result: AIResult, path: str | Path) -> Path:
        return json_report.save_testing_report(result, path)

    def generate_report(self, result: AIResult, output_dir: str | Path) -> dict[str, str]:
        """Write every report for a finished run into ``output_dir``."""
        if self.ai_client is not None:
            set_debug_dir(Path(output_dir) / "debug")
        analysis = self.classifier.analyze_errors(result.errors)
        if not result.recommendations:
            result.recommendations = self.generate_recommendations(result, analysis)
        reporter = Reporter(result.config.settings, self.ai_client)
        return reporter.generate_reports(
            result, analysis, output_dir,
            test_analysis=self.generator.analyze_elements(result.visual_elements),
        )
