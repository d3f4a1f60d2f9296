"""
Executes scripted browser actions.

Every action is best-effort: a missing target or a failed interaction is
reported as a StepResult and never raised into the scheduler.
"""
import re
import asyncio
import logging
from typing import Callable, Optional

from playwright.async_api import Page, TimeoutError as PlaywrightTimeoutError

from config.settings import (
    ELEMENT_TIMEOUT_MS, NAVIGATION_TIMEOUT_MS,
    DEFAULT_WAIT_MS, DEFAULT_SCROLL_PX, SCROLL_SETTLE_MS
)
from .script import Action, ActionType
from .diagnostics import StepResult
from .overlay import OverlayRenderer

logger = logging.getLogger(__name__)


def parse_int(value: Optional[str], default: int) -> int:
    """Leading integer of a value like "1500" or "1500ms", else the default."""
    if value is None:
        return default
    match = re.match(r"\s*(-?\d+)", str(value))
    return int(match.group(1)) if match else default


class ActionExecutor:
    """Performs one action at a time against the recorded page."""

    def __init__(self, page: Page, overlay: Optional[OverlayRenderer] = None,
                 element_timeout_ms: int = ELEMENT_TIMEOUT_MS,
                 navigation_timeout_ms: int = NAVIGATION_TIMEOUT_MS,
                 sleep: Callable = asyncio.sleep):
        self.page = page
        self.overlay = overlay
        self.element_timeout_ms = element_timeout_ms
        self.navigation_timeout_ms = navigation_timeout_ms
        self._sleep = sleep
        self._handlers = {
            ActionType.CLICK: self._click,
            ActionType.HOVER: self._hover,
            ActionType.TYPE: self._type,
            ActionType.SCROLL: self._scroll,
            ActionType.WAIT: self._wait,
            ActionType.NAVIGATE: self._navigate,
        }

    async def run(self, action: Action) -> StepResult:
        name = action.type.value
        try:
            return await self._handlers[action.type](action)
        except Exception as e:
            reason = str(e).strip().splitlines()[0] if str(e).strip() else type(e).__name__
            return StepResult.failed("action", name, action.selector, reason)

    async def _wait_visible(self, selector: str) -> bool:
        try:
            await self.page.wait_for_selector(selector, state="visible",
                                              timeout=self.element_timeout_ms)
            return True
        except PlaywrightTimeoutError:
            return False

    async def _target_missing(self, action: Action) -> Optional[StepResult]:
        name = action.type.value
        if not action.selector:
            return StepResult.skipped("action", name, None, "no selector")
        if not await self._wait_visible(action.selector):
            return StepResult.skipped("action", name, action.selector, "target not found")
        return None

    async def _click(self, action: Action) -> StepResult:
        missing = await self._target_missing(action)
        if missing:
            return missing
        await self.page.click(action.selector, timeout=self.element_timeout_ms)
        return StepResult.ok("action", "click", action.selector)

    async def _hover(self, action: Action) -> StepResult:
        missing = await self._target_missing(action)
        if missing:
            return missing
        await self.page.hover(action.selector, timeout=self.element_timeout_ms)
        return StepResult.ok("action", "hover", action.selector)

    async def _type(self, action: Action) -> StepResult:
        if action.value is None:
            return StepResult.skipped("action", "type", action.selector, "no value")
        missing = await self._target_missing(action)
        if missing:
            return missing
        await self.page.fill(action.selector, action.value, timeout=self.element_timeout_ms)
        return StepResult.ok("action", "type", action.selector)

    async def _scroll(self, action: Action) -> StepResult:
        amount = parse_int(action.value, DEFAULT_SCROLL_PX)
        await self.page.evaluate("y => window.scrollBy({top: y, behavior: 'smooth'})", amount)
        # Smooth scrolling keeps animating after scrollBy returns
        await self._sleep(SCROLL_SETTLE_MS / 1000)
        return StepResult.ok("action", "scroll")

    async def _wait(self, action: Action) -> StepResult:
        wait_ms = max(0, parse_int(action.value, DEFAULT_WAIT_MS))
        await self._sleep(wait_ms / 1000)
        return StepResult.ok("action", "wait")

    async def _navigate(self, action: Action) -> StepResult:
        if not action.value:
            return StepResult.skipped("action", "navigate", None, "no url")

        try:
            await self.page.goto(action.value, wait_until="networkidle",
                                 timeout=self.navigation_timeout_ms)
        finally:
            # The old document took the overlay surface with it
            await self._reattach_overlay()

        logger.info("Navigated to %s", action.value)
        return StepResult.ok("action", "navigate", action.value)

    async def _reattach_overlay(self):
        if self.overlay is None or self.page.is_closed():
            return
        try:
            await self.overlay.attach(self.page)
        except Exception as e:
            logger.warning("Overlay re-attach failed after navigation: %s", e)
