"""
Audio alignment using FFmpeg.
Places each narration clip at its section's actual start time and mixes them
into one track that lines up with the raw recording.
"""
import logging
from pathlib import Path
from dataclasses import dataclass

from config.settings import AUDIO_CODEC, AUDIO_SAMPLE_RATE, AUDIO_CHANNEL_LAYOUT
from .timing import TimingMetadata
from .voice import AudioSegment
from .media import FFmpegError, run_ffmpeg

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlacedSegment:
    """A clip and the offset it starts at on the recording timeline."""
    segment: AudioSegment
    delay_ms: int

    @property
    def end_ms(self) -> int:
        return self.delay_ms + self.segment.duration_ms


class AudioAligner:
    """Builds the narration track for a recording."""

    def __init__(self, sample_rate: int = AUDIO_SAMPLE_RATE,
                 channel_layout: str = AUDIO_CHANNEL_LAYOUT,
                 codec: str = AUDIO_CODEC):
        self.sample_rate = sample_rate
        self.channel_layout = channel_layout
        self.codec = codec

    def align(self, segments: list[AudioSegment], timing: TimingMetadata, output) -> Path:
        """
        Mix narration clips onto the recording timeline.

        Clips for sections missing from the timing are dropped. When nothing is
        left to mix, or the mix itself fails, the result is silence spanning the
        whole recording so the merge step still has an audio input.

        Args:
            segments: Narration clips, one per section
            timing: Timing metadata from the recording
            output: Path for the mixed track

        Returns:
            Path to the mixed track
        """
        output = Path(output)
        output.parent.mkdir(parents=True, exist_ok=True)

        placed = self.place(segments, timing)
        if not placed:
            logger.info("No narration to mix, writing %dms of silence", timing.total_duration_ms)
            return self.silence(timing.total_duration_ms, output)

        try:
            run_ffmpeg(self.build_mix_command(placed, output, timing.total_duration_ms),
                       "Mix narration")
        except FFmpegError as e:
            logger.warning("Narration mix failed, falling back to silence: %s", e)
            return self.silence(timing.total_duration_ms, output)

        logger.info("Mixed %d narration clips into %s", len(placed), output)
        return output

    def place(self, segments: list[AudioSegment], timing: TimingMetadata) -> list[PlacedSegment]:
        """Pair each clip with its section's start time."""
        placed = []
        for segment in segments:
            section = timing.section(segment.section_id)
            if section is None:
                logger.warning("No timing for section %s, dropping its narration", segment.section_id)
                continue
            placed.append(PlacedSegment(segment, section.start_ms))
        return placed

    def build_mix_command(self, placed: list[PlacedSegment], output: Path,
                          total_ms: int = 0) -> list[str]:
        """
        FFmpeg command delaying every clip to its offset and mixing them.

        Each delayed stream is padded with silence to at least total_ms so the
        mix spans the whole recording, not just the last clip.
        """
        cmd = ["ffmpeg", "-y"]
        for p in placed:
            cmd.extend(["-i", p.segment.clip_path])

        pad = f"{max(0, total_ms) / 1000:.3f}"
        filter_parts = []
        labels = []
        for i, p in enumerate(placed):
            # Normalize layout first so every channel gets the same delay
            filter_parts.append(
                f"[{i}:a]aformat=sample_rates={self.sample_rate}:channel_layouts={self.channel_layout},"
                f"adelay={p.delay_ms}|{p.delay_ms},apad=whole_dur={pad}[a{i}]"
            )
            labels.append(f"[a{i}]")

        filter_parts.append(
            f"{''.join(labels)}amix=inputs={len(labels)}:duration=longest:normalize=0[aout]"
        )

        cmd.extend([
            "-filter_complex", ";".join(filter_parts),
            "-map", "[aout]",
            "-c:a", self.codec,
            "-ar", str(self.sample_rate),
            str(output)
        ])
        return cmd

    def silence(self, duration_ms: int, output) -> Path:
        """Write a silent track of the given length."""
        output = Path(output)
        cmd = [
            "ffmpeg", "-y",
            "-f", "lavfi",
            "-i", f"anullsrc=r={self.sample_rate}:cl={self.channel_layout}",
            "-t", f"{max(0, duration_ms) / 1000:.3f}",
            "-c:a", self.codec,
            str(output)
        ]
        run_ffmpeg(cmd, "Generate silent track")
        return output


def align_audio(segments: list[AudioSegment], timing: TimingMetadata, output: str) -> str:
    """Convenience function to build the narration track."""
    return str(AudioAligner().align(segments, timing, output))
