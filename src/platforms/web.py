"""Web platform backed by Playwright's async API."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Any, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from src.models.config import AppConfig, Settings
from src.models.page_state import JavaScriptError, PageElement, PageState
from src.platforms.base import Platform

logger = logging.getLogger(__name__)

PAGE_SETTLE_SECONDS = 0.5

# Collects the element and timing facts the page-state checks look at.
_PAGE_STATE_SCRIPT = """
() => {
    const cssPath = (el) => {
        if (el.id) return '#' + el.id;
        if (el.name) return el.tagName.toLowerCase() + '[name="' + el.name + '"]';
        const parent = el.parentElement;
        if (!parent) return el.tagName.toLowerCase();
        const idx = Array.from(parent.children).indexOf(el) + 1;
        return cssPath(parent) + ' > ' + el.tagName.toLowerCase() + ':nth-child(' + idx + ')';
    };
    const elements = [];
    document.querySelectorAll('button, input[type=submit], input[type=button]').forEach(el => {
        elements.push({type: 'button', selector: cssPath(el), text: (el.innerText || el.value || '').trim()});
    });
    document.querySelectorAll('input:not([type=submit]):not([type=button]):not([type=hidden]), textarea').forEach(el => {
        elements.push({
            type: 'input', selector: cssPath(el), name: el.name || '',
            required: el.required, empty: !el.value,
        });
    });
    document.querySelectorAll('img').forEach(el => {
        elements.push({
            type: 'img', selector: cssPath(el), src: el.currentSrc || el.src || '',
            broken: el.complete && el.naturalWidth === 0,
        });
    });
    document.querySelectorAll('a[href]').forEach(el => {
        elements.push({type: 'a', selector: cssPath(el), text: (el.innerText || '').trim()});
    });
    const nav = performance.getEntriesByType('navigation')[0];
    return {
        title: document.title,
        elements: elements,
        resources: performance.getEntriesByType('resource').map(r => r.name),
        load_time: nav ? nav.loadEventEnd - nav.startTime : null,
    };
}
"""


class WebPlatform(Platform):
    """Drives a Chromium page. Videos need ``video_dir`` set before ``initialize``."""

    def __init__(self, settings: Optional[Settings] = None, video_dir: str | Path | None = None):
        self.settings = settings or Settings()
        self.video_dir = Path(video_dir) if video_dir else None
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        self._console_logs: list[str] = []
        self._js_errors: list[JavaScriptError] = []
        self._recording_file: Optional[str] = None
        self._recording_started: Optional[float] = None
        self.metrics: dict[str, Any] = {
            "click_actions": [],
            "fill_actions": [],
            "submit_actions": [],
            "navigate_actions": [],
            "screenshots_taken": [],
            "videos_taken": [],
            "start_time": time.time(),
        }

    @property
    def page(self) -> Page:
        if self._page is None:
            raise RuntimeError("web page not initialized")
        return self._page

    async def initialize(self, app: AppConfig) -> None:
        if app.timeout <= 0:
            raise ValueError("timeout must be greater than 0")

        self.metrics["start_time"] = time.time()
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.settings.headless,
            args=["--disable-blink-features=AutomationControlled"],
        )

        context_kwargs: dict = {
            "viewport": {"width": self.settings.window_width, "height": self.settings.window_height},
        }
        if self.video_dir:
            self.video_dir.mkdir(parents=True, exist_ok=True)
            context_kwargs["record_video_dir"] = str(self.video_dir)
        self._context = await self._browser.new_context(**context_kwargs)
        self._context.set_default_timeout(app.timeout * 1000)
        await self._open_page()
        logger.info("Browser launched (headless=%s)", self.settings.headless)

    async def _open_page(self) -> None:
        self._page = await self._context.new_page()
        self._page.on("console", lambda msg: self._console_logs.append(f"[{msg.type}] {msg.text}"))
        self._page.on("pageerror", lambda err: self._js_errors.append(JavaScriptError(message=str(err))))

    async def navigate(self, url: str) -> None:
        if not url:
            raise ValueError("URL cannot be empty")
        self.metrics["navigation_start"] = time.time()
        await self.page.goto(url, wait_until="load")
        self.metrics["navigation_complete"] = time.time()
        self.metrics["url"] = url
        self.metrics["navigate_actions"].append(url)

    async def click(self, selector: str) -> None:
        if not selector:
            raise ValueError("selector cannot be empty")
        self.metrics["click_actions"].append(selector)
        locator = self.page.locator(selector).first
        await locator.scroll_into_view_if_needed()
        await locator.click()
        await asyncio.sleep(PAGE_SETTLE_SECONDS)

    async def fill(self, selector: str, value: str) -> None:
        if not selector:
            raise ValueError("selector cannot be empty")
        await self.page.locator(selector).first.fill(value)
        self.metrics["fill_actions"].append({"selector": selector, "value": value})

    async def submit(self, selector: str) -> None:
        if not selector:
            raise ValueError("selector cannot be empty")
        self.metrics["submit_actions"].append(selector)
        # Submits the enclosing form whether the selector names the form or a control in it.
        await self.page.locator(selector).first.evaluate(
            "el => { const f = el.tagName === 'FORM' ? el : el.form; "
            "if (f) { f.requestSubmit ? f.requestSubmit() : f.submit(); } else { el.click(); } }"
        )
        await self.page.wait_for_load_state("load")

    async def wait(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    async def screenshot(self, path: str) -> None:
        if not path:
            raise ValueError("filename cannot be empty")
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        await self.page.screenshot(path=path, full_page=True)
        self.metrics["screenshots_taken"].append(path)

    async def start_recording(self, path: str) -> None:
        if not path:
            raise ValueError("filename cannot be empty")
        if self.video_dir is None:
            raise RuntimeError("video recording is not enabled for this platform")
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        self._recording_file = path
        self._recording_started = time.time()
        self.metrics["videos_taken"].append(path)
        self.metrics["recording_started"] = self._recording_started

    async def stop_recording(self) -> None:
        if self._recording_file is None:
            raise RuntimeError("no recording in progress")

        # Playwright finalizes a page's video only once the page is closed.
        page = self.page
        url = page.url
        video = page.video
        await page.close()
        if video is not None:
            await video.save_as(self._recording_file)
            self.metrics["video_saved"] = True

        self.metrics["recording_duration"] = time.time() - self._recording_started
        self._recording_file = None
        self._recording_started = None

        await self._open_page()
        if url and url != "about:blank":
            await self._page.goto(url)

    def get_metrics(self) -> dict[str, Any]:
        self.metrics["end_time"] = time.time()
        self.metrics["total_duration"] = self.metrics["end_time"] - self.metrics["start_time"]
        return self.metrics

    async def get_page_state(self) -> PageState:
        page = self.page
        snapshot = await page.evaluate(_PAGE_STATE_SCRIPT)
        return PageState(
            url=page.url,
            title=snapshot.get("title", ""),
            content=await page.content(),
            elements=[PageElement(**e) for e in snapshot.get("elements", [])],
            resources=snapshot.get("resources", []),
            console_logs=list(self._console_logs),
            javascript_errors=list(self._js_errors),
            load_time=snapshot.get("load_time"),
        )

    async def close(self) -> None:
        if self._context:
            await self._context.close()
        if self._browser:
            await self._browser.close()
        if self._playwright:
            await self._playwright.stop()
        self._page = self._context = self._browser = self._playwright = None


def create_platform(app_type: str, **kwargs: Any) -> Platform:
    """Build the platform adapter for an app type.

    Raises:
        ValueError: for app types without an adapter.
    """
    if app_type == "web":
        return WebPlatform(**kwargs)
    raise ValueError(f"unsupported platform type: {app_type}")
