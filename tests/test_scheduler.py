import asyncio

from conftest import FakeClock, FakeExecutor, FakeOverlay, FakePage

from demoreel.script import Script
from demoreel.scheduler import TimelineScheduler
from demoreel.actions import ActionExecutor
from demoreel.overlay import OverlayRenderer
from demoreel.diagnostics import StepStatus


def _script(*sections):
    return Script.from_dict({"sections": list(sections)})


def _run(scheduler, script):
    return asyncio.run(scheduler.run(script))


def test_example_section_without_actions_lasts_its_nominal_duration():
    clock = FakeClock()
    scheduler = TimelineScheduler(FakeExecutor(), sleep=clock.sleep)
    script = _script({"id": "s1", "narration": "Hello world this is a test", "duration": 5, "actions": []})

    timing = _run(scheduler, script)

    assert [(s.id, s.start_ms, s.end_ms) for s in timing.sections] == [("s1", 0, 5000)]
    assert timing.total_duration_ms == 5000
    assert timing.sections[0].narration == "Hello world this is a test"
    assert clock.sleeps == [5.0]


def test_actions_are_paced_against_their_offsets():
    clock = FakeClock()
    executor = FakeExecutor()
    overlay = FakeOverlay()
    scheduler = TimelineScheduler(executor, overlay, sleep=clock.sleep)
    script = _script({
        "id": "s1", "duration": 0, "actions": [
            {"type": "click", "selector": "#a", "timing": 0},
            {"type": "click", "selector": "#b", "timing": 3000,
             "highlightStyle": "box", "highlightDuration": 1500},
        ],
    })

    timing = _run(scheduler, script)

    # 1000ms default span for the first click, then wait until 3000
    assert clock.sleeps == [2.0]
    assert [a.selector for a in executor.actions] == ["#a", "#b"]
    assert timing.sections[0].end_ms == 4500

    style, selector, options = overlay.runs[0]
    assert selector == "#b"
    assert options.duration_ms == 1500
    assert options.color == overlay.color


def test_overlay_defaults_to_two_seconds_but_timing_to_one():
    clock = FakeClock()
    overlay = FakeOverlay()
    scheduler = TimelineScheduler(FakeExecutor(), overlay, sleep=clock.sleep)
    script = _script({
        "id": "s1", "duration": 0, "actions": [
            {"type": "hover", "selector": "#a", "timing": 0, "highlightStyle": "arrow"},
        ],
    })

    timing = _run(scheduler, script)

    assert overlay.runs[0][2].duration_ms == 2000
    assert timing.total_duration_ms == 1000


def test_overlapping_offsets_do_not_wait():
    clock = FakeClock()
    scheduler = TimelineScheduler(FakeExecutor(), sleep=clock.sleep)
    script = _script({
        "id": "s1", "duration": 0, "actions": [
            {"type": "click", "selector": "#a", "timing": 0, "highlightDuration": 4000},
            {"type": "click", "selector": "#b", "timing": 1000},
        ],
    })

    timing = _run(scheduler, script)

    assert clock.sleeps == []
    # Second action ends at 2000 but the cursor never moves backwards
    assert timing.total_duration_ms == 4000


def test_sections_are_back_to_back():
    clock = FakeClock()
    scheduler = TimelineScheduler(FakeExecutor(), sleep=clock.sleep)
    script = _script(
        {"id": "a", "duration": 2, "actions": [{"type": "click", "selector": "#x", "timing": 0}]},
        {"id": "b", "duration": 1, "actions": [{"type": "click", "selector": "#x", "timing": 2500}]},
        {"id": "c", "duration": 0, "actions": []},
        {"id": "d", "duration": 3.5, "actions": []},
    )

    timing = _run(scheduler, script)
    sections = timing.sections

    assert [(s.start_ms, s.end_ms) for s in sections] == [
        (0, 2000), (2000, 5500), (5500, 5500), (5500, 9000)
    ]
    for prev, nxt in zip(sections, sections[1:]):
        assert prev.end_ms == nxt.start_ms
    assert timing.total_duration_ms == sections[-1].end_ms


def test_rerun_gives_identical_timing():
    script = _script(
        {"id": "a", "duration": 1, "actions": [
            {"type": "scroll", "timing": 200, "value": "400"},
            {"type": "click", "selector": "#cta", "timing": 900, "highlightStyle": "zoom", "highlightDuration": 700},
        ]},
        {"id": "b", "duration": 4, "narration": "Done.", "actions": []},
    )

    results = []
    for _ in range(2):
        clock = FakeClock()
        scheduler = TimelineScheduler(FakeExecutor(), FakeOverlay(), sleep=clock.sleep)
        results.append(_run(scheduler, script))

    assert results[0] == results[1]


def test_missing_targets_are_skipped_and_time_still_advances():
    clock = FakeClock()
    page = FakePage()
    overlay = OverlayRenderer(fps=10, clock=clock, sleep=clock.sleep)
    asyncio.run(overlay.attach(page))
    executor = ActionExecutor(page, overlay=overlay, sleep=clock.sleep)
    scheduler = TimelineScheduler(executor, overlay, sleep=clock.sleep)
    script = _script({
        "id": "s1", "duration": 0, "actions": [
            {"type": "click", "selector": "#gone", "timing": 0,
             "highlightStyle": "spotlight", "highlightDuration": 2500},
            {"type": "type", "selector": "#also-gone", "value": "hi", "timing": 3000},
        ],
    })

    timing = _run(scheduler, script)

    assert timing.total_duration_ms == 4000
    skipped = scheduler.diagnostics.with_status(StepStatus.SKIPPED)
    assert [(r.kind, r.selector) for r in skipped] == [
        ("overlay", "#gone"), ("action", "#gone"), ("action", "#also-gone")
    ]
    assert all(r.section_id == "s1" for r in skipped)
    assert scheduler.diagnostics.degraded


def test_overlay_errors_are_recorded_not_raised():
    class BrokenOverlay(FakeOverlay):
        async def run(self, style, selector, options=None):
            raise RuntimeError("canvas exploded")

    executor = FakeExecutor()
    scheduler = TimelineScheduler(executor, BrokenOverlay(), sleep=FakeClock().sleep)
    script = _script({
        "id": "s1", "duration": 0, "actions": [
            {"type": "click", "selector": "#a", "timing": 0, "highlightStyle": "box"},
        ],
    })

    timing = _run(scheduler, script)

    failed = scheduler.diagnostics.with_status(StepStatus.FAILED)
    assert len(failed) == 1
    assert failed[0].reason == "canvas exploded"
    assert len(executor.actions) == 1
    assert timing.total_duration_ms == 1000


def test_navigate_reattaches_overlay_before_next_highlight(page):
    clock = FakeClock()
    overlay = FakeOverlay()
    executor = ActionExecutor(page, overlay=overlay, sleep=clock.sleep)
    scheduler = TimelineScheduler(executor, overlay, sleep=clock.sleep)
    script = _script({
        "id": "s1", "duration": 0, "actions": [
            {"type": "navigate", "value": "https://acme.test/pricing", "timing": 0},
            {"type": "click", "selector": "#cta", "timing": 1000, "highlightStyle": "arrow"},
        ],
    })

    _run(scheduler, script)

    assert page.url == "https://acme.test/pricing"
    assert overlay.attached_to == [page]
    assert len(overlay.runs) == 1
