"""
Overlay effects drawn over the page while recording.

Each effect is a pure function of elapsed time and the target's box that
returns a frame description. The renderer resolves the target, then pushes one
frame per tick to the painter injected into the page (assets/overlay.js) until
the effect's duration has elapsed.
"""
import math
import time
import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional
from dataclasses import dataclass

from playwright.async_api import Page, Error as PlaywrightError

from config.settings import OVERLAY_FPS, OVERLAY_COLOR, DEFAULT_HIGHLIGHT_DURATION_MS
from .script import HighlightStyle
from .diagnostics import StepResult

logger = logging.getLogger(__name__)

OVERLAY_SCRIPT = Path(__file__).parent / "assets" / "overlay.js"
CLEAR_EXPRESSION = "() => window.__demoreelOverlay && window.__demoreelOverlay.clear()"

ARROW_LENGTH = 64
ARROW_GAP = 8
ARROW_FADE_MS = 200
SPOTLIGHT_PADDING = 8
SPOTLIGHT_MAX_OPACITY = 0.65
BOX_PADDING = 6
BOX_REVEAL_SHARE = 0.5          # border finishes drawing halfway through
BOX_LABEL_THRESHOLD = 0.3
RING_MARGIN = 12
RING_PERIOD_MS = 1200


@dataclass(frozen=True)
class TargetBox:
    """Viewport-relative bounding box of a target element."""
    x: float
    y: float
    width: float
    height: float

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2


@dataclass(frozen=True)
class EffectOptions:
    duration_ms: int = DEFAULT_HIGHLIGHT_DURATION_MS
    color: str = OVERLAY_COLOR
    label: Optional[str] = None
    pulse: bool = True


def _ramp(t_ms: float, span_ms: float) -> float:
    if span_ms <= 0:
        return 1.0
    return max(0.0, min(1.0, t_ms / span_ms))


def arrow_frame(t_ms: float, box: TargetBox, opts: EffectOptions) -> dict:
    """Pointer aimed at the target, pulsing when enabled."""
    scale = 1 + 0.1 * math.sin(t_ms / 150) if opts.pulse else 1.0

    # Point from the left when there is room, otherwise from above
    if box.x >= ARROW_LENGTH + ARROW_GAP:
        direction, tip_x, tip_y = "right", box.x - ARROW_GAP, box.center_y
    else:
        direction, tip_x, tip_y = "down", box.center_x, box.y - ARROW_GAP

    return {
        "effect": "arrow",
        "direction": direction,
        "tipX": tip_x,
        "tipY": tip_y,
        "length": ARROW_LENGTH * scale,
        "color": opts.color,
        "opacity": _ramp(t_ms, ARROW_FADE_MS),
    }


def spotlight_frame(t_ms: float, box: TargetBox, opts: EffectOptions) -> dict:
    """Darkening layer with a cut-out around the target."""
    return {
        "effect": "spotlight",
        "x": box.x - SPOTLIGHT_PADDING,
        "y": box.y - SPOTLIGHT_PADDING,
        "width": box.width + 2 * SPOTLIGHT_PADDING,
        "height": box.height + 2 * SPOTLIGHT_PADDING,
        "radius": 8,
        "opacity": SPOTLIGHT_MAX_OPACITY * _ramp(t_ms, opts.duration_ms / 2),
    }


def box_frame(t_ms: float, box: TargetBox, opts: EffectOptions) -> dict:
    """Border revealed progressively, label fading in once it is under way."""
    progress = _ramp(t_ms, opts.duration_ms * BOX_REVEAL_SHARE)
    label_opacity = 0.0
    if opts.label and progress > BOX_LABEL_THRESHOLD:
        label_opacity = (progress - BOX_LABEL_THRESHOLD) / (1 - BOX_LABEL_THRESHOLD)

    return {
        "effect": "box",
        "x": box.x - BOX_PADDING,
        "y": box.y - BOX_PADDING,
        "width": box.width + 2 * BOX_PADDING,
        "height": box.height + 2 * BOX_PADDING,
        "progress": progress,
        "color": opts.color,
        "label": opts.label,
        "labelOpacity": label_opacity,
    }


def zoom_frame(t_ms: float, box: TargetBox, opts: EffectOptions) -> dict:
    """Ring around the target that expands and contracts."""
    base = max(box.width, box.height) / 2 + RING_MARGIN
    phase = math.sin(2 * math.pi * t_ms / RING_PERIOD_MS)
    return {
        "effect": "zoom",
        "cx": box.center_x,
        "cy": box.center_y,
        "radius": base * (1 + 0.15 * phase),
        "color": opts.color,
        "opacity": 0.9,
    }


FRAME_BUILDERS: dict[HighlightStyle, Callable[[float, TargetBox, EffectOptions], dict]] = {
    HighlightStyle.ARROW: arrow_frame,
    HighlightStyle.SPOTLIGHT: spotlight_frame,
    HighlightStyle.BOX: box_frame,
    HighlightStyle.ZOOM: zoom_frame,
}


def build_frame(style: HighlightStyle, t_ms: float, box: TargetBox,
                opts: EffectOptions) -> dict:
    """Frame for a style at elapsed time t_ms (clamped to the duration)."""
    t_ms = max(0.0, min(float(t_ms), float(opts.duration_ms)))
    return FRAME_BUILDERS[HighlightStyle(style)](t_ms, box, opts)


class OverlayRenderer:
    """
    Owns the single drawing surface injected into the recorded page.

    The surface lives inside the page, so navigating away destroys it;
    call attach() again after every navigation.
    """

    def __init__(self, fps: int = OVERLAY_FPS, color: str = OVERLAY_COLOR,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable = asyncio.sleep):
        self.fps = fps
        self.color = color
        self.page: Optional[Page] = None
        self._clock = clock
        self._sleep = sleep
        self._generation = 0

    @property
    def attached(self) -> bool:
        return self.page is not None

    async def attach(self, page: Page):
        """Inject the painter and mount a fresh surface on the current document."""
        self._generation += 1
        self.page = None
        await page.add_script_tag(path=str(OVERLAY_SCRIPT))
        await page.evaluate("color => window.__demoreelOverlay.mount(color)", self.color)
        self.page = page
        logger.debug("Overlay attached to %s", page.url)

    async def run(self, style: HighlightStyle, selector: str,
                  options: Optional[EffectOptions] = None) -> StepResult:
        """Animate one effect over the target, resolving once its duration elapses."""
        style = HighlightStyle(style)
        opts = options or EffectOptions(color=self.color)

        if style == HighlightStyle.NONE:
            return StepResult.skipped("overlay", style.value, selector, "no highlight")
        if not self.page or self.page.is_closed():
            return StepResult.skipped("overlay", style.value, selector, "no document attached")

        page = self.page
        generation = self._generation
        try:
            box = await self._resolve(page, selector)
            if box is None:
                return StepResult.skipped("overlay", style.value, selector, "target not found")

            frame_interval = 1 / self.fps
            start = self._clock()
            while True:
                elapsed_ms = (self._clock() - start) * 1000
                await page.evaluate("frame => window.__demoreelOverlay.draw(frame)",
                                    build_frame(style, elapsed_ms, box, opts))
                if elapsed_ms >= opts.duration_ms:
                    break

                await self._sleep(frame_interval)
                if generation != self._generation:
                    return StepResult.skipped("overlay", style.value, selector, "overlay detached")

                box = await self._resolve(page, selector)
                if box is None:
                    return StepResult.skipped("overlay", style.value, selector, "target removed")

            await self.clear()
            return StepResult.ok("overlay", style.value, selector)

        except PlaywrightError:
            if page.is_closed():
                return StepResult.skipped("overlay", style.value, selector, "page closed")
            await self._clear_quietly(page)
            raise

    async def _resolve(self, page: Page, selector: str) -> Optional[TargetBox]:
        handle = await page.query_selector(selector)
        if handle is None:
            return None
        rect = await handle.bounding_box()
        if not rect:
            return None
        return TargetBox(rect["x"], rect["y"], rect["width"], rect["height"])

    async def clear(self):
        if self.page and not self.page.is_closed():
            await self.page.evaluate(CLEAR_EXPRESSION)

    async def _clear_quietly(self, page: Page):
        """Wipe a half-drawn effect so it does not linger in the capture."""
        try:
            await page.evaluate(CLEAR_EXPRESSION)
        except PlaywrightError as e:
            logger.debug("Overlay clear failed: %s", e)

    async def destroy(self):
        """Cancel any running effect and remove the surface. Never raises."""
        self._generation += 1
        page, self.page = self.page, None
        if page is None:
            return

        try:
            if not page.is_closed():
                await page.evaluate("() => window.__demoreelOverlay && window.__demoreelOverlay.destroy()")
        except PlaywrightError as e:
            logger.debug("Overlay cleanup failed: %s", e)
