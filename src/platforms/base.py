"""Platform interface the orchestrator drives actions through."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from src.models.config import AppConfig
from src.models.page_state import PageState


class Platform(ABC):
    """An application under test that can be driven and observed.

    Every method may raise; the orchestrator records the exception text as a
    failed action and keeps going.
    """

    @abstractmethod
    async def initialize(self, app: AppConfig) -> None: ...

    @abstractmethod
    async def navigate(self, url: str) -> None: ...

    @abstractmethod
    async def click(self, selector: str) -> None: ...

    @abstractmethod
    async def fill(self, selector: str, value: str) -> None: ...

    @abstractmethod
    async def submit(self, selector: str) -> None: ...

    @abstractmethod
    async def wait(self, seconds: float) -> None: ...

    @abstractmethod
    async def screenshot(self, path: str) -> None: ...

    @abstractmethod
    async def start_recording(self, path: str) -> None: ...

    @abstractmethod
    async def stop_recording(self) -> None: ...

    @abstractmethod
    def get_metrics(self) -> dict[str, Any]: ...

    @abstractmethod
    async def get_page_state(self) -> PageState: ...

    @abstractmethod
    async def close(self) -> None: ...
