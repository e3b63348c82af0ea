"""Render surfaces backed by a headless Chromium driven through Playwright."""

from __future__ import annotations

import asyncio
import logging
import os
import subprocess
import sys
from typing import Any

from luogu_saver.core.diagnostics import DiagnosticEmitter
from luogu_saver.core.exceptions import CaptureFailure
from luogu_saver.core.user_dir import get_user_dir


logger = logging.getLogger(__name__)

_PLAYWRIGHT_APT_PACKAGES: tuple[str, ...] = (
    "libglib2.0-0",
    "libnspr4",
    "libnss3",
    "libatk1.0-0",
    "libatk-bridge2.0-0",
    "libcups2",
    "libxkbcommon0",
    "libxcomposite1",
    "libxdamage1",
    "libxrandr2",
    "libgbm1",
    "libpango-1.0-0",
    "libasound2",
)

DEFAULT_LAUNCH_ARGS: tuple[str, ...] = (
    "--disable-gpu",
    "--disable-dev-shm-usage",
    "--no-sandbox",
)


def _playwright_dependency_hint() -> str:
    packages = " ".join(_PLAYWRIGHT_APT_PACKAGES)
    return (
        "Install Playwright browser dependencies with `playwright install-deps` "
        f"(Debian/Ubuntu: `sudo apt-get install {packages}`)."
    )


def _wrap_playwright_error(exc: Exception, emitter: DiagnosticEmitter | None = None) -> CaptureFailure:
    """Return a structured error with guidance for missing Playwright deps."""
    base_message = str(exc).strip() or exc.__class__.__name__
    hint = _playwright_dependency_hint()
    if emitter is not None:
        emitter.warning(hint)
    return CaptureFailure(f"Playwright backend failed: {base_message}. {hint}")


def _prepare_environment() -> None:
    browser_cache = get_user_dir().cache_dir("playwright", "browsers")
    # Playwright reads PLAYWRIGHT_BROWSERS_PATH during startup, so set it before start().
    os.environ.setdefault("PLAYWRIGHT_BROWSERS_PATH", str(browser_cache))
    existing_node_opts = os.environ.get("NODE_OPTIONS", "")
    if "--no-deprecation" not in existing_node_opts:
        os.environ["NODE_OPTIONS"] = (existing_node_opts + " --no-deprecation").strip()


def _install_chromium() -> None:
    subprocess.run(
        [sys.executable, "-m", "playwright", "install", "chromium"],
        env=os.environ,
        check=True,
    )


class PlaywrightSurface:
    """One isolated browser context holding a single page."""

    def __init__(self, browser: Any) -> None:
        self._browser = browser
        self._context: Any = None
        self._page: Any = None

    @property
    def page(self) -> Any:
        if self._page is None:
            raise CaptureFailure("Render surface has no page; configure the viewport first.")
        return self._page

    async def set_viewport(self, width: int, height: int, scale: float) -> None:
        if self._context is None:
            # The pixel ratio is fixed per context, so the context is built lazily here.
            self._context = await self._browser.new_context(
                viewport={"width": width, "height": height},
                device_scale_factor=scale,
                service_workers="block",
                accept_downloads=False,
            )
            self._page = await self._context.new_page()
            return
        await self.page.set_viewport_size({"width": width, "height": height})

    async def load_content(self, html: str, *, timeout: float) -> None:
        from playwright.async_api import TimeoutError as PlaywrightTimeoutError

        try:
            await self.page.set_content(html, wait_until="networkidle", timeout=timeout * 1000)
        except PlaywrightTimeoutError as exc:
            raise TimeoutError(str(exc)) from exc

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        return await self.page.evaluate(script, arg)

    async def wait_for_function(self, predicate: str, *, timeout: float) -> None:
        from playwright.async_api import TimeoutError as PlaywrightTimeoutError

        try:
            await self.page.wait_for_function(predicate, timeout=timeout * 1000)
        except PlaywrightTimeoutError as exc:
            raise TimeoutError(str(exc)) from exc

    async def screenshot(self, *, full_page: bool = True) -> bytes:
        return await self.page.screenshot(full_page=full_page, type="png")

    async def close(self) -> None:
        context, self._context, self._page = self._context, None, None
        if context is not None:
            await context.close()


class PlaywrightBackend:
    """Keep one Chromium instance alive and hand out fresh contexts from it."""

    def __init__(
        self,
        *,
        headless: bool = True,
        launch_args: tuple[str, ...] = DEFAULT_LAUNCH_ARGS,
        auto_install: bool = True,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        self.headless = headless
        self.launch_args = launch_args
        self.auto_install = auto_install
        self.emitter = emitter
        self._playwright: Any = None
        self._browser: Any = None
        self._lock = asyncio.Lock()

    async def start(self) -> None:
        async with self._lock:
            if self._browser is not None:
                return
            try:
                from playwright.async_api import Error as PlaywrightError, async_playwright
            except ModuleNotFoundError as exc:  # pragma: no cover - optional dependency
                raise CaptureFailure(
                    "Playwright is required to render documents; install the 'playwright' package."
                ) from exc

            _prepare_environment()
            try:
                self._playwright = await async_playwright().start()
            except PlaywrightError as exc:
                raise _wrap_playwright_error(exc, self.emitter) from exc

            try:
                self._browser = await self._launch()
            except PlaywrightError as exc:
                message = str(exc)
                if self.auto_install and (
                    "Executable doesn't exist" in message or "Failed to launch" in message
                ):
                    logger.info("Chromium missing, installing it through Playwright.")
                    await asyncio.to_thread(_install_chromium)
                    self._browser = await self._launch()
                else:
                    await self._playwright.stop()
                    self._playwright = None
                    raise _wrap_playwright_error(exc, self.emitter) from exc
            logger.debug("Chromium started (headless=%s).", self.headless)

    async def _launch(self) -> Any:
        return await self._playwright.chromium.launch(
            headless=self.headless, args=list(self.launch_args)
        )

    async def new_surface(self) -> PlaywrightSurface:
        if self._browser is None:
            await self.start()
        return PlaywrightSurface(self._browser)

    async def close(self) -> None:
        async with self._lock:
            browser, self._browser = self._browser, None
            driver, self._playwright = self._playwright, None
            try:
                if browser is not None:
                    await browser.close()
            finally:
                if driver is not None:
                    await driver.stop()


__all__ = ["DEFAULT_LAUNCH_ARGS", "PlaywrightBackend", "PlaywrightSurface"]
