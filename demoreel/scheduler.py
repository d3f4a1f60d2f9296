"""
Timeline scheduler.

Walks the script section by section, pacing each action against its offset
from the section start, and produces the timing metadata that audio alignment
and captioning are built on.

Section windows come from the script's declared pacing, not from the wall
clock: an action occupies its offset plus its highlight duration (1s when it
has none), and a section lasts at least its nominal duration. The scheduler
sleeps so the recording keeps pace with that timeline.
"""
import asyncio
import logging
from typing import Callable, Optional

from config.settings import DEFAULT_HIGHLIGHT_DURATION_MS, DEFAULT_ACTION_DURATION_MS
from .script import Action, Script, Section
from .timing import SectionTiming, TimingMetadata
from .diagnostics import Diagnostics, StepResult
from .overlay import OverlayRenderer, EffectOptions

logger = logging.getLogger(__name__)


class TimelineScheduler:
    """Runs a script against a live page and records when each section happened."""

    def __init__(self, executor, overlay: Optional[OverlayRenderer] = None,
                 sleep: Callable = asyncio.sleep):
        self.executor = executor
        self.overlay = overlay
        self.diagnostics = Diagnostics()
        self._sleep = sleep

    async def run(self, script: Script) -> TimingMetadata:
        """
        Execute every section in order.

        Args:
            script: Script to perform

        Returns:
            TimingMetadata with back-to-back section windows
        """
        self.diagnostics = Diagnostics()
        timings = []
        cursor_ms = 0

        for i, section in enumerate(script.sections):
            logger.info("Recording section %d/%d: %s", i + 1, len(script.sections),
                        section.name or section.id)
            timing, cursor_ms = await self.run_section(section, cursor_ms)
            timings.append(timing)
            logger.info("Section complete: %s (%dms)", section.id, timing.duration_ms)

        return TimingMetadata(sections=tuple(timings))

    async def run_section(self, section: Section, cursor_ms: int) -> tuple[SectionTiming, int]:
        """Run one section starting at cursor_ms; returns its timing and the new cursor."""
        section_start = cursor_ms
        last_action_end = section_start

        for action in section.actions:
            wait_ms = action.timing_offset_ms - (last_action_end - section_start)
            if wait_ms > 0:
                await self._pause(wait_ms)

            if action.highlighted:
                self.diagnostics.record((await self._highlight(action)).in_section(section.id))

            result = await self.executor.run(action)
            self.diagnostics.record(result.in_section(section.id))

            last_action_end = section_start + action.timing_offset_ms + self._action_span(action)
            cursor_ms = max(cursor_ms, last_action_end)

        # Sparse sections still last as long as the script says
        section_floor = section_start + section.nominal_duration_ms
        if cursor_ms < section_floor:
            await self._pause(section_floor - cursor_ms)
            cursor_ms = section_floor

        timing = SectionTiming(
            id=section.id,
            start_ms=section_start,
            end_ms=cursor_ms,
            narration=section.narration,
        )
        return timing, cursor_ms

    @staticmethod
    def _action_span(action: Action) -> int:
        if action.highlight_duration_ms is not None:
            return action.highlight_duration_ms
        return DEFAULT_ACTION_DURATION_MS

    async def _highlight(self, action: Action) -> StepResult:
        style = action.highlight_style.value
        if self.overlay is None:
            return StepResult.skipped("overlay", style, action.selector, "no overlay renderer")

        duration = action.highlight_duration_ms
        if duration is None:
            duration = DEFAULT_HIGHLIGHT_DURATION_MS
        options = EffectOptions(duration_ms=duration, color=self.overlay.color,
                                label=action.highlight_label)
        try:
            return await self.overlay.run(action.highlight_style, action.selector, options)
        except Exception as e:
            return StepResult.failed("overlay", style, action.selector, str(e) or type(e).__name__)

    async def _pause(self, ms: int):
        await self._sleep(ms / 1000)
