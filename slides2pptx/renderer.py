#!/usr/bin/env python3
"""
Single-slide renderer: HTML document -> one-page PDF through headless Chromium.

Every attempt launches its own browser and closes it before the next attempt
starts, so a crashed or hung browser never leaks into another attempt or
another slide. Render faults never escape :meth:`SlideRenderer.render`; they
come back as a :class:`~slides2pptx.models.RenderFailure`.
"""
import asyncio
import logging
import uuid
from pathlib import Path
from typing import Awaitable, Callable, Optional

from pyppeteer import launch

from .config import AttemptState, RetryPolicy
from .errors import RenderAttemptError, RenderExhaustedError
from .models import (
    Job,
    PageGeometry,
    RenderFailure,
    RenderResult,
    RenderSuccess,
    Viewport,
    ceil_px,
)
from .transformer import DocumentTransformer

logger = logging.getLogger(__name__)

BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
]

# Seconds to wait for a browser to shut down before giving up on it
CLOSE_TIMEOUT = 10

# Measures the slide container, or the body when the slide has none
CONTENT_HEIGHT_SCRIPT = """
() => {
    const el = document.querySelector('.slide-container') || document.body;
    return Math.ceil(el.scrollHeight || el.getBoundingClientRect().height);
}
"""


class SlideRenderer:
    """
    Render transformed slide documents to PDF.

    Parameters
    ----------
    transformer
        Rewrites each slide before it is loaded in the browser.
    retry_policy
        Attempt bound and backoff between attempts.
    load_timeout_ms
        Navigation timeout; only the initial DOM parse is awaited.
    settle_delay
        Seconds to wait after navigation for fonts and images.
    launcher
        Coroutine function returning a browser. Defaults to
        :func:`pyppeteer.launch`.
    executable_path
        Chromium binary to use instead of pyppeteer's bundled one.
    attempt_timeout
        Seconds one attempt may take from launch to printed PDF. A hung
        browser counts as a failed attempt.
    """

    def __init__(
        self,
        transformer: DocumentTransformer,
        *,
        retry_policy: RetryPolicy = RetryPolicy(),
        load_timeout_ms: int = 10000,
        settle_delay: float = 1.0,
        launcher: Optional[Callable[..., Awaitable]] = None,
        executable_path: Optional[str] = None,
        attempt_timeout: float = 60.0,
        debug: bool = False,
    ):
        self.transformer = transformer
        self.retry_policy = retry_policy
        self.load_timeout_ms = load_timeout_ms
        self.settle_delay = settle_delay
        self.launcher = launcher or launch
        self.executable_path = executable_path
        self.attempt_timeout = attempt_timeout
        self.debug = debug

    async def render(self, job: Job, viewport: Viewport, output_path: Path) -> RenderResult:
        """
        Transform and render ``job`` into ``output_path``.

        Returns a :class:`RenderResult`; this method does not raise for
        transform, browser or file errors.
        """
        output_path = Path(output_path)
        try:
            document = self.transformer.transform(job.source_document)
            temp_path = self._write_temp_document(job, document)
        except Exception as e:
            logger.error("❌ Could not prepare %s: %s", job.slide_id, e)
            return RenderResult(job.sequence_index, job.slide_id, RenderFailure(str(e), 0))

        try:
            outcome = await self._render_with_retries(job.slide_id, temp_path, viewport, output_path)
        finally:
            try:
                temp_path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning("⚠️ Could not remove temporary file %s: %s", temp_path, e)

        return RenderResult(job.sequence_index, job.slide_id, outcome)

    async def _render_with_retries(self, slide_id, document_path, viewport, output_path):
        policy = self.retry_policy
        last_error = None
        attempt = 1
        while True:
            try:
                geometry = await self.render_attempt(document_path, viewport, output_path)
            except Exception as e:
                last_error = RenderAttemptError(slide_id, attempt, e)
                state = policy.next_state(attempt, succeeded=False)
                logger.warning("⚠️ %s", last_error)
            else:
                state = policy.next_state(attempt, succeeded=True)

            if state is AttemptState.SUCCEEDED:
                if self.debug:
                    logger.debug(
                        "📄 %s rendered on attempt %d at %dx%dpx",
                        slide_id, attempt, geometry.requested_width, geometry.effective_height,
                    )
                return RenderSuccess(output_path, geometry.requested_width, geometry.effective_height)

            if state is AttemptState.EXHAUSTED:
                exhausted = RenderExhaustedError(slide_id, attempt, last_error.cause)
                logger.error("❌ %s", exhausted)
                return RenderFailure(str(exhausted), attempt)

            await asyncio.sleep(policy.backoff_seconds)
            attempt += 1

    async def render_attempt(self, document_path: Path, viewport: Viewport, output_path: Path) -> PageGeometry:
        """
        One browser session: load, settle, measure, print, close.

        The whole session is bounded by ``attempt_timeout``. Raises whatever
        the browser raises (or :class:`asyncio.TimeoutError`); the caller
        decides about retries.
        """
        launched = []
        try:
            return await asyncio.wait_for(
                self._print_session(launched, document_path, viewport, output_path),
                self.attempt_timeout,
            )
        except asyncio.TimeoutError as e:
            raise asyncio.TimeoutError(
                f"Render attempt exceeded {self.attempt_timeout:g}s"
            ) from e
        finally:
            for browser in launched:
                await self._close(browser)

    async def _print_session(self, launched, document_path, viewport, output_path) -> PageGeometry:
        options = {"headless": True, "args": list(BROWSER_ARGS)}
        if self.executable_path:
            options["executablePath"] = self.executable_path
        browser = await self.launcher(**options)
        launched.append(browser)

        page = await browser.newPage()
        await page.setViewport({"width": viewport.width, "height": viewport.height})
        await page.goto(
            Path(document_path).resolve().as_uri(),
            {"waitUntil": "domcontentloaded", "timeout": self.load_timeout_ms},
        )
        await asyncio.sleep(self.settle_delay)

        measured = ceil_px(await page.evaluate(CONTENT_HEIGHT_SCRIPT))
        geometry = PageGeometry(viewport.width, viewport.height, measured)
        if geometry.needs_resize:
            await page.setViewport({"width": viewport.width, "height": geometry.effective_height})

        await page.pdf({
            "path": str(output_path),
            "width": f"{geometry.width_inches}in",
            "height": f"{geometry.height_inches}in",
            "printBackground": True,
            "margin": {"top": "0", "right": "0", "bottom": "0", "left": "0"},
            "preferCSSPageSize": False,
            "pageRanges": "1",
            "scale": 1,
        })
        return geometry

    async def _close(self, browser) -> None:
        try:
            await asyncio.wait_for(browser.close(), CLOSE_TIMEOUT)
        except Exception as e:
            # The attempt's own outcome is what gets reported
            logger.debug("Browser close failed: %s", e)

    def _write_temp_document(self, job: Job, document: str) -> Path:
        """Write next to the source so relative asset paths keep working."""
        source = Path(job.source_path)
        temp_path = source.parent / f".temp_{uuid.uuid4().hex[:12]}_{source.name}"
        temp_path.write_text(document, encoding="utf-8")
        return temp_path
