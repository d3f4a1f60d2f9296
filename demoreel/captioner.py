"""
Caption generation from narration text.
Splits each section's narration into fixed-size word chunks and spreads them
evenly across the section's recorded window.
"""
from pathlib import Path
from dataclasses import dataclass

from config.settings import CAPTION_WORDS_PER_CHUNK
from .script import Script
from .timing import TimingMetadata


@dataclass(frozen=True)
class CaptionCue:
    """A single caption with timing."""
    index: int
    start_ms: float
    end_ms: float
    text: str


class CaptionSegmenter:
    """Generates caption cues from narration and timing metadata."""

    def __init__(self, words_per_chunk: int = CAPTION_WORDS_PER_CHUNK):
        """
        Initialize caption segmenter.

        Args:
            words_per_chunk: Max words per caption (default 12)
        """
        if words_per_chunk < 1:
            raise ValueError("words_per_chunk must be at least 1")
        self.words_per_chunk = words_per_chunk

    def segment(self, script: Script, timing: TimingMetadata) -> list[CaptionCue]:
        """
        Build cues for every narrated section.

        Cue indices run across the whole script. Sections without narration,
        or without a matching script section, produce no cues.
        """
        cues = []
        index = 1

        for section_timing in timing.sections:
            if not section_timing.narration.strip():
                continue
            section = script.section(section_timing.id)
            if section is None:
                continue

            words = section.narration.split()
            if not words:
                continue

            chunks = [
                words[i:i + self.words_per_chunk]
                for i in range(0, len(words), self.words_per_chunk)
            ]
            chunk_duration = section_timing.duration_ms / len(chunks)

            for i, chunk in enumerate(chunks):
                start = section_timing.start_ms + i * chunk_duration
                # Last cue closes the window exactly
                if i == len(chunks) - 1:
                    end = section_timing.end_ms
                else:
                    end = section_timing.start_ms + (i + 1) * chunk_duration

                cues.append(CaptionCue(
                    index=index,
                    start_ms=start,
                    end_ms=end,
                    text=" ".join(chunk)
                ))
                index += 1

        return cues


def format_srt_time(ms: float) -> str:
    """Format milliseconds to SRT timestamp (HH:MM:SS,mmm)."""
    total = int(round(max(0, ms)))
    hours, rest = divmod(total, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    secs, millis = divmod(rest, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{millis:03d}"


def format_vtt_time(ms: float) -> str:
    return format_srt_time(ms).replace(",", ".")


def to_srt(cues: list[CaptionCue]) -> str:
    lines = []

    for cue in cues:
        lines.append(str(cue.index))
        lines.append(f"{format_srt_time(cue.start_ms)} --> {format_srt_time(cue.end_ms)}")
        lines.append(cue.text)
        lines.append("")

    return "\n".join(lines) + ("\n" if lines else "")


def to_vtt(cues: list[CaptionCue]) -> str:
    """WebVTT captions (alternative format)."""
    lines = ["WEBVTT", ""]

    for cue in cues:
        lines.append(str(cue.index))
        lines.append(f"{format_vtt_time(cue.start_ms)} --> {format_vtt_time(cue.end_ms)}")
        lines.append(cue.text)
        lines.append("")

    return "\n".join(lines) + "\n"


def write_captions(cues: list[CaptionCue], output) -> Path:
    """Write cues as SRT, or WebVTT when the path ends in .vtt."""
    output = Path(output)
    output.parent.mkdir(parents=True, exist_ok=True)
    content = to_vtt(cues) if output.suffix == ".vtt" else to_srt(cues)
    output.write_text(content, encoding="utf-8")
    return output


def generate_captions(script: Script, timing: TimingMetadata, output: str,
                      words_per_chunk: int = CAPTION_WORDS_PER_CHUNK) -> str:
    """
    Convenience function to generate captions.

    Args:
        script: Script the recording was made from
        timing: Timing metadata from the recording
        output: Caption file path (.srt or .vtt)
        words_per_chunk: Max words per caption

    Returns:
        Path to caption file as string
    """
    segmenter = CaptionSegmenter(words_per_chunk=words_per_chunk)
    return str(write_captions(segmenter.segment(script, timing), output))
