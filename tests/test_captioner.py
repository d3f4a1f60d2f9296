import math

import pytest

from demoreel.captioner import (
    CaptionSegmenter, format_srt_time, format_vtt_time, generate_captions, to_srt, to_vtt
)
from demoreel.script import Script
from demoreel.timing import SectionTiming, TimingMetadata


def _script(*sections):
    return Script.from_dict({"sections": [
        {"id": sid, "narration": text, "duration": 5, "actions": []} for sid, text in sections
    ]})


def _words(n):
    return " ".join(f"w{i}" for i in range(n))


def test_short_narration_is_one_cue_spanning_the_section():
    script = _script(("s1", "Hello world this is a test"))
    timing = TimingMetadata(sections=(SectionTiming("s1", 0, 5000, "Hello world this is a test"),))

    cues = CaptionSegmenter().segment(script, timing)

    assert len(cues) == 1
    assert cues[0].text == "Hello world this is a test"
    assert to_srt(cues) == "1\n00:00:00,000 --> 00:00:05,000\nHello world this is a test\n\n"


@pytest.mark.parametrize("n_words", [1, 12, 13, 25, 40])
def test_cues_tile_the_section_window(n_words):
    text = _words(n_words)
    script = _script(("s1", text))
    timing = TimingMetadata(sections=(SectionTiming("s1", 2000, 9000, text),))

    cues = CaptionSegmenter(words_per_chunk=12).segment(script, timing)

    assert len(cues) == math.ceil(n_words / 12)
    assert cues[0].start_ms == 2000
    assert cues[-1].end_ms == 9000
    for prev, nxt in zip(cues, cues[1:]):
        assert prev.end_ms == pytest.approx(nxt.start_ms)
    assert " ".join(c.text for c in cues) == text
    assert all(len(c.text.split()) <= 12 for c in cues)


def test_chunks_get_equal_share_of_the_window():
    text = _words(36)
    script = _script(("s1", text))
    timing = TimingMetadata(sections=(SectionTiming("s1", 0, 10000, text),))

    cues = CaptionSegmenter().segment(script, timing)

    assert [(round(c.start_ms), round(c.end_ms)) for c in cues] == [
        (0, 3333), (3333, 6667), (6667, 10000)
    ]
    assert "00:00:03,333 --> 00:00:06,667" in to_srt(cues)


def test_indices_run_across_sections_and_skip_silent_ones():
    script = _script(("a", _words(13)), ("quiet", ""), ("b", "Last words."))
    timing = TimingMetadata(sections=(
        SectionTiming("a", 0, 4000, _words(13)),
        SectionTiming("quiet", 4000, 6000, ""),
        SectionTiming("b", 6000, 8000, "Last words."),
    ))

    cues = CaptionSegmenter().segment(script, timing)

    assert [c.index for c in cues] == [1, 2, 3]
    assert cues[2].start_ms == 6000
    assert cues[2].text == "Last words."


def test_sections_missing_from_script_are_skipped():
    script = _script(("a", "Only this one."))
    timing = TimingMetadata(sections=(
        SectionTiming("ghost", 0, 3000, "Not in the script."),
        SectionTiming("a", 3000, 5000, "Only this one."),
    ))

    cues = CaptionSegmenter().segment(script, timing)

    assert [(c.index, c.text) for c in cues] == [(1, "Only this one.")]


def test_empty_inputs_give_no_cues():
    assert CaptionSegmenter().segment(_script(), TimingMetadata()) == []
    assert to_srt([]) == ""


def test_chunk_size_must_be_positive():
    with pytest.raises(ValueError):
        CaptionSegmenter(words_per_chunk=0)


@pytest.mark.parametrize("ms,expected", [
    (0, "00:00:00,000"),
    (999.6, "00:00:01,000"),
    (61_005, "00:01:01,005"),
    (3_723_456, "01:02:03,456"),
])
def test_format_srt_time(ms, expected):
    assert format_srt_time(ms) == expected


def test_vtt_output():
    script = _script(("s1", "Hello there."))
    timing = TimingMetadata(sections=(SectionTiming("s1", 1500, 4000, "Hello there."),))
    cues = CaptionSegmenter().segment(script, timing)

    assert format_vtt_time(1500) == "00:00:01.500"
    assert to_vtt(cues) == "WEBVTT\n\n1\n00:00:01.500 --> 00:00:04.000\nHello there.\n\n"


def test_generate_captions_picks_format_from_suffix(tmp_path):
    script = _script(("s1", "Hello there."))
    timing = TimingMetadata(sections=(SectionTiming("s1", 0, 2000, "Hello there."),))

    srt = generate_captions(script, timing, str(tmp_path / "out" / "captions.srt"))
    vtt = generate_captions(script, timing, str(tmp_path / "out" / "captions.vtt"))

    assert open(srt).read().startswith("1\n00:00:00,000")
    assert open(vtt).read().startswith("WEBVTT")
