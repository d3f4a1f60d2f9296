"""
Browser recording module using Playwright.
Records a scripted demo and writes the timing metadata used for narration sync.
"""
import time
import logging
from pathlib import Path
from typing import Optional
from dataclasses import dataclass

from playwright.async_api import async_playwright, Page, Browser, BrowserContext
from playwright.async_api import Error as PlaywrightError

from config.settings import (
    VIDEO_WIDTH, VIDEO_HEIGHT, HEADLESS, NAVIGATION_TIMEOUT_MS,
    RAW_RECORDING_NAME, TIMING_FILE_NAME, get_project_path
)
from .script import Script, load_script
from .timing import TimingMetadata
from .diagnostics import Diagnostics
from .overlay import OverlayRenderer
from .actions import ActionExecutor
from .scheduler import TimelineScheduler

logger = logging.getLogger(__name__)


class RecordingError(RuntimeError):
    """The browser session could not be started."""


@dataclass
class RecordingResult:
    """Outputs of one recording session."""
    timing: TimingMetadata
    video_path: str
    timing_path: str
    diagnostics: Diagnostics
    wall_clock_ms: int


class DemoRecorder:
    """Records a demo script in a real browser."""

    def __init__(self, headless: bool = HEADLESS,
                 navigation_timeout_ms: int = NAVIGATION_TIMEOUT_MS):
        self.headless = headless
        self.navigation_timeout_ms = navigation_timeout_ms
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None

    async def record(self, script: Script, output_dir,
                     resolution: tuple[int, int] = (VIDEO_WIDTH, VIDEO_HEIGHT)) -> RecordingResult:
        """
        Record a script.

        Args:
            script: Script to perform
            output_dir: Directory for the raw capture and timing file
            resolution: Viewport and video size as (width, height)

        Returns:
            RecordingResult with timing metadata and file paths
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        size = {"width": resolution[0], "height": resolution[1]}

        logger.info("Starting recording: %dx%d, %d sections -> %s",
                    size["width"], size["height"], len(script.sections), output_dir)

        async with async_playwright() as p:
            try:
                await self._open_session(p, script, size, output_dir)
                page = self.page

                overlay = OverlayRenderer()
                try:
                    await overlay.attach(page)
                except PlaywrightError as e:
                    logger.warning("Overlay unavailable on start page, highlights will be skipped: %s", e)

                executor = ActionExecutor(page, overlay=overlay,
                                          navigation_timeout_ms=self.navigation_timeout_ms)
                scheduler = TimelineScheduler(executor, overlay)

                started = time.monotonic()
                timing = await scheduler.run(script)
                wall_clock_ms = int((time.monotonic() - started) * 1000)

                await overlay.destroy()

                # Video is only complete once the context closes
                video_path = await page.video.path() if page.video else None
                await self.context.close()
                self.context = None

            finally:
                await self._close_session()

        final_video = output_dir / RAW_RECORDING_NAME
        if video_path and Path(video_path).exists():
            Path(video_path).replace(final_video)
        else:
            logger.warning("Browser produced no video file")

        timing_path = timing.save(output_dir / TIMING_FILE_NAME)

        logger.info("Recording complete: %s (timeline %dms, wall clock %dms)",
                    final_video, timing.total_duration_ms, wall_clock_ms)
        if scheduler.diagnostics.degraded:
            logger.warning("Recording finished with degraded steps: %s",
                           scheduler.diagnostics.summary())

        return RecordingResult(
            timing=timing,
            video_path=str(final_video),
            timing_path=str(timing_path),
            diagnostics=scheduler.diagnostics,
            wall_clock_ms=wall_clock_ms,
        )

    async def _open_session(self, p, script: Script, size: dict, output_dir: Path):
        """Launch the browser and load the first page of the script."""
        try:
            self.browser = await p.chromium.launch(headless=self.headless)
            self.context = await self.browser.new_context(
                viewport=size,
                record_video_dir=str(output_dir),
                record_video_size=size,
                # The overlay painter is injected as an inline script
                bypass_csp=True,
            )
            self.page = await self.context.new_page()

            start_url = script.find_start_url()
            if start_url:
                await self.page.goto(start_url, wait_until="networkidle",
                                     timeout=self.navigation_timeout_ms)
        except PlaywrightError as e:
            raise RecordingError(f"Browser session failed to start: {e}") from e

    async def _close_session(self):
        """Release whatever is still open. Errors here are logged, not raised."""
        for resource in (self.context, self.browser):
            if resource is None:
                continue
            try:
                await resource.close()
            except PlaywrightError as e:
                logger.debug("Cleanup failed: %s", e)

        self.browser = None
        self.context = None
        self.page = None


async def record_demo(script_file: str, project_id: str,
                      version: Optional[str] = None,
                      resolution: tuple[int, int] = (VIDEO_WIDTH, VIDEO_HEIGHT)) -> RecordingResult:
    """
    Convenience function to record a demo.

    Args:
        script_file: JSON or YAML script
        project_id: Unique project identifier
        version: Optional script version (teaser, standard, full)
        resolution: Video size

    Returns:
        RecordingResult
    """
    script = load_script(script_file).for_version(version)
    paths = get_project_path(project_id)
    script.save(paths["script"])

    recorder = DemoRecorder()
    return await recorder.record(script, paths["recording_dir"], resolution)
