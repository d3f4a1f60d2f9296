import json

import pytest

from demoreel.timing import SectionTiming, TimingMetadata, load_timing


def test_total_duration_is_last_section_end():
    timing = TimingMetadata(sections=(
        SectionTiming("a", 0, 4000, "one"),
        SectionTiming("b", 4000, 9500, "two"),
    ))
    assert timing.total_duration_ms == 9500
    assert timing.section("b").duration_ms == 5500
    assert timing.section("zzz") is None


def test_empty_timing_has_zero_duration():
    assert TimingMetadata().total_duration_ms == 0


def test_section_cannot_end_before_it_starts():
    with pytest.raises(ValueError):
        SectionTiming("a", 500, 100)


def test_saved_file_uses_external_field_names(tmp_path):
    timing = TimingMetadata(sections=(SectionTiming("s1", 0, 5000, "Hello"),))
    path = timing.save(tmp_path / "nested" / "timing.json")

    data = json.loads(path.read_text())
    assert data == {
        "sections": [{"id": "s1", "startTime": 0, "endTime": 5000, "narration": "Hello"}],
        "totalDuration": 5000,
    }
    assert load_timing(path) == timing
