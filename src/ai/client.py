"""Claude API client used for the optional narrative run summary."""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Optional

import anthropic

logger = logging.getLogger(__name__)

# Set by the orchestrator to <output>/debug at the start of a run
_debug_dir: Path | None = None


def set_debug_dir(path: Path) -> None:
    """Set the directory AI exchange logs are written to."""
    global _debug_dir
    _debug_dir = Path(path)
    _debug_dir.mkdir(parents=True, exist_ok=True)


def _get_debug_dir() -> Path:
    global _debug_dir
    if _debug_dir is None:
        _debug_dir = Path("./output") / "debug"
    _debug_dir.mkdir(parents=True, exist_ok=True)
    return _debug_dir


def ai_available() -> bool:
    return bool(os.environ.get("ANTHROPIC_API_KEY"))


class AIClient:
    """Thin wrapper around the Anthropic Messages API."""

    def __init__(self, model: str = "claude-sonnet-4-20250514", max_tokens: int = 500):
        api_key = os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            raise EnvironmentError(
                "ANTHROPIC_API_KEY environment variable is not set. "
                "Set it to enable AI-written run summaries."
            )
        self.client = anthropic.Anthropic(api_key=api_key, timeout=120.0)
        self.model = model
        self.max_tokens = max_tokens
        self._call_count = 0

    @property
    def call_count(self) -> int:
        return self._call_count

    def complete(
        self,
        system_prompt: str,
        user_message: str,
        max_tokens: Optional[int] = None,
        temperature: float = 0.3,
    ) -> str:
        """Send a completion request to Claude and return the text response."""
        self._call_count += 1
        tokens = max_tokens or self.max_tokens
        logger.info("Calling AI (call #%d, model=%s, max_tokens=%d)...",
                    self._call_count, self.model, tokens)
        logger.debug("AI prompt length: system=%d chars, user=%d chars",
                     len(system_prompt), len(user_message))

        try:
            call_start = time.time()
            response = self.client.messages.create(
                model=self.model,
                max_tokens=tokens,
                temperature=temperature,
                system=system_prompt,
                messages=[{"role": "user", "content": user_message}],
            )
            text = response.content[0].text
            logger.info("AI response received in %.1fs (%d chars)",
                        time.time() - call_start, len(text))
            if response.stop_reason == "max_tokens":
                logger.warning("AI response was truncated at max_tokens (%d)", tokens)

            self._save_exchange_log(self._call_count, system_prompt, user_message, text, None)
            return text
        except anthropic.APIError as e:
            logger.error("Claude API error: %s", e)
            self._save_exchange_log(self._call_count, system_prompt, user_message, "", str(e))
            raise

    @staticmethod
    def _save_exchange_log(
        call_number: int,
        system_prompt: str,
        user_message: str,
        response_text: str,
        error: str | None,
    ) -> None:
        """Save the full AI exchange (prompt + response) to a log file."""
        try:
            ts = time.strftime("%Y%m%d_%H%M%S")
            log_file = _get_debug_dir() / f"ai_call_{ts}_{call_number:03d}.log"
            with open(log_file, "w", encoding="utf-8") as f:
                f.write(f"=== AI CALL #{call_number} at {time.strftime('%Y-%m-%d %H:%M:%S')} ===\n\n")
                f.write(f"=== SYSTEM PROMPT ({len(system_prompt)} chars) ===\n{system_prompt}")
                f.write(f"\n\n=== USER MESSAGE ({len(user_message)} chars) ===\n{user_message}")
                f.write(f"\n\n=== RESPONSE ({len(response_text)} chars) ===\n")
                f.write(response_text or "(empty)")
                if error:
                    f.write(f"\n\n=== ERROR ===\n{error}\n")
            logger.debug("AI exchange logged to %s", log_file)
        except OSError as log_err:
            logger.debug("Failed to save AI exchange log: %s", log_err)
