"""
Video assembly module using FFmpeg.
Combines the raw recording and the aligned narration track into the final video.
"""
import logging
from pathlib import Path

from config.settings import VIDEO_CODEC, AUDIO_CODEC, AUDIO_SAMPLE_RATE
from .media import FFmpegError, check_ffmpeg, run_ffmpeg

logger = logging.getLogger(__name__)


class MergeError(RuntimeError):
    """The final video could not be produced."""


class StreamMerger:
    """Muxes recording and audio into one file."""

    def __init__(self):
        try:
            check_ffmpeg()
        except FFmpegError as e:
            raise MergeError(str(e)) from e

    def merge(self, recording, audio, output) -> Path:
        """
        Merge the recording with its narration track.

        The output stops at the end of the shorter stream; neither input is
        padded or looped.

        Args:
            recording: Raw screen capture
            audio: Aligned narration track
            output: Path for the final video

        Returns:
            Path to the final video

        Raises:
            MergeError: If an input is missing or FFmpeg fails
        """
        recording, audio, output = Path(recording), Path(audio), Path(output)

        if not recording.exists():
            raise MergeError(f"Recording not found: {recording}")
        if not audio.exists():
            raise MergeError(f"Audio not found: {audio}")

        output.parent.mkdir(parents=True, exist_ok=True)
        try:
            run_ffmpeg(self.build_command(recording, audio, output), "Merge recording and audio")
        except FFmpegError as e:
            raise MergeError(str(e)) from e

        logger.info("Final video written: %s", output)
        return output

    def build_command(self, recording: Path, audio: Path, output: Path) -> list[str]:
        """Build FFmpeg command for the merge."""
        return [
            "ffmpeg", "-y",
            "-i", str(recording),
            "-i", str(audio),
            "-map", "0:v:0",
            "-map", "1:a:0",
            "-c:v", VIDEO_CODEC,
            "-c:a", AUDIO_CODEC,
            "-ar", str(AUDIO_SAMPLE_RATE),
            "-pix_fmt", "yuv420p",
            "-shortest",  # End when shortest stream ends
            "-preset", "medium",
            "-crf", "23",
            "-movflags", "+faststart",
            str(output)
        ]


def merge_streams(recording: str, audio: str, output: str) -> str:
    """Convenience function to produce the final video."""
    return str(StreamMerger().merge(recording, audio, output))
