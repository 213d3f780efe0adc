# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Playwright render engine: Jinja2 template -> HTML page on disk -> screenshot -> base64.

One Chromium process serves every capture; each capture gets its own page.
Concurrency is gated by ``asyncio.Semaphore`` (``RuntimeConfig.max_pages``).

Lifecycle follows the ``AsyncContextManager`` pattern::

    async with PlaywrightRenderEngine(config) as engine:
        image = await engine.capture("demo/card", data)

Dependencies: config.py, errors.py, render.py constants only.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import sys
from contextlib import suppress
from pathlib import Path
from types import TracebackType
from typing import Any

import jinja2
from playwright.async_api import Browser, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from .config import RuntimeConfig
from .errors import RenderEngineError
from .render import HTML_DIR, WAIT_UNTIL

logger = logging.getLogger(__name__)

# Element screenshotted when present; falls back to <body>
CONTAINER_SELECTOR = "#container"
DEFAULT_VIEWPORT = {"width": 800, "height": 600}

_AUTO_INSTALL_TIMEOUT = 300  # seconds, Chromium is a ~140MB download
_chromium_install_attempted = False


def chromium_launch_args() -> list[str]:
    """Chromium flags for rendering trusted local templates."""
    return [
        "--disable-extensions",
        "--disable-dev-shm-usage",
        "--disable-background-networking",
        "--disable-sync",
        "--disable-gpu",
        "--no-first-run",
        "--disable-breakpad",
        "--no-pings",
        "--disable-component-update",
        "--noerrdialogs",
        # templates reference ../../plugins/... resources over file://
        "--allow-file-access-from-files",
    ]


async def _auto_install_chromium() -> bool:
    """Run ``playwright install chromium`` once per process."""
    global _chromium_install_attempted  # noqa: PLW0603
    if _chromium_install_attempted:
        return False
    _chromium_install_attempted = True

    logger.info("Chromium not found — running 'playwright install chromium' …")
    try:
        proc = await asyncio.create_subprocess_exec(
            sys.executable,
            "-m",
            "playwright",
            "install",
            "chromium",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        _, stderr = await asyncio.wait_for(proc.communicate(), timeout=_AUTO_INSTALL_TIMEOUT)
        if proc.returncode == 0:
            logger.info("Chromium installed successfully")
            return True
        logger.warning(
            "playwright install chromium failed (rc=%d): %s",
            proc.returncode,
            stderr.decode(errors="replace")[:500],
        )
        return False
    except TimeoutError:
        logger.warning("Chromium install timed out after %ds", _AUTO_INSTALL_TIMEOUT)
        return False
    except Exception:
        logger.warning("Chromium auto-install failed", exc_info=True)
        return False


class PlaywrightRenderEngine:
    """Headless Chromium screenshot engine for plugin HTML templates."""

    def __init__(self, config: RuntimeConfig | None = None) -> None:
        self.config = config or RuntimeConfig()
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._semaphore = asyncio.Semaphore(self.config.max_pages)
        self._jinja = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(self.config.root_dir)),
            autoescape=jinja2.select_autoescape(["html"]),
        )

    @property
    def started(self) -> bool:
        return self._browser is not None

    # ── AsyncContextManager ──────────────────────────────────────────

    async def start(self) -> None:
        """Launch Chromium, auto-installing on first 'executable not found' error."""
        self._playwright = await async_playwright().start()
        args = chromium_launch_args()
        try:
            self._browser = await self._playwright.chromium.launch(headless=self.config.headless, args=args)
        except Exception as exc:
            if "executable doesn't exist" in str(exc).lower() and await _auto_install_chromium():
                self._browser = await self._playwright.chromium.launch(headless=self.config.headless, args=args)
            else:
                await self._playwright.stop()
                self._playwright = None
                raise
        logger.info("Render engine started (headless=%s, max_pages=%d)", self.config.headless, self.config.max_pages)

    async def stop(self) -> None:
        """Close browser and playwright. Safe to call twice or on a crashed browser."""
        if self._browser:
            with suppress(Exception):
                await self._browser.close()
            self._browser = None
        if self._playwright:
            with suppress(Exception):
                await self._playwright.stop()
            self._playwright = None
        logger.info("Render engine stopped")

    async def __aenter__(self) -> PlaywrightRenderEngine:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.stop()

    # ── Rendering ────────────────────────────────────────────────────

    def page_path(self, target_key: str, data: dict[str, Any]) -> Path:
        """Where the rendered HTML for *target_key* is written (inside the provisioned dir)."""
        save_id = str(data.get("save_id") or "index").replace("/", "_")
        return self.config.resolved_data_dir / HTML_DIR / target_key / f"{save_id}.html"

    def render_html(self, data: dict[str, Any]) -> str:
        """Render ``data["tpl_file"]`` (relative to the root dir) with *data* as context."""
        tpl_file = str(data.get("tpl_file", "")).removeprefix("./")
        template = self._jinja.get_template(tpl_file)
        return template.render(**data)

    async def capture(self, target_key: str, data: dict[str, Any]) -> str | None:
        """Screenshot *target_key* rendered with *data*; ``None`` on any render failure.

        Raises:
            RenderEngineError: called before :meth:`start`.
        """
        if self._browser is None:
            raise RenderEngineError("Render engine not started. Use async with or call start().")

        try:
            html = self.render_html(data)
            page_file = self.page_path(target_key, data)
            page_file.write_text(html, encoding="utf-8")
        except Exception:
            logger.warning("Template render failed for %s", target_key, exc_info=True)
            return None

        goto_params = data.get("page_goto_params") or {}
        wait_until = goto_params.get("wait_until", WAIT_UNTIL)

        async with self._semaphore:
            page = None
            try:
                page = await self._browser.new_page(viewport=DEFAULT_VIEWPORT)
                await page.goto(
                    page_file.resolve().as_uri(),
                    wait_until=wait_until,
                    timeout=self.config.page_timeout_ms,
                )
                element = await page.query_selector(CONTAINER_SELECTOR) or await page.query_selector("body")
                if element is None:
                    logger.warning("Nothing to capture on %s", target_key)
                    return None
                shot_kwargs: dict[str, Any] = {"type": self.config.image_type}
                if self.config.image_type == "jpeg":
                    shot_kwargs["quality"] = self.config.image_quality
                image = await element.screenshot(**shot_kwargs)
            except (PlaywrightError, TimeoutError):
                logger.warning("Screenshot failed for %s", target_key, exc_info=True)
                return None
            finally:
                if page is not None:
                    with suppress(Exception):
                        await page.close()

        logger.debug("Captured %s (%d bytes)", target_key, len(image))
        return base64.b64encode(image).decode("ascii")
