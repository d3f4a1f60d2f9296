"""
FFmpeg / FFprobe helpers.
"""
import shutil
import logging
import subprocess
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class FFmpegError(RuntimeError):
    """An ffmpeg invocation exited with an error."""


def check_ffmpeg():
    """Verify FFmpeg is available."""
    if not shutil.which("ffmpeg"):
        raise FFmpegError("FFmpeg not found. Please install FFmpeg.")


def run_ffmpeg(cmd: list[str], description: str) -> subprocess.CompletedProcess:
    """Run an ffmpeg command, raising FFmpegError with the tail of stderr on failure."""
    logger.debug("%s: %s", description, " ".join(cmd))
    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as e:
        raise FFmpegError(f"{description} failed: {e}") from e

    if result.returncode != 0:
        tail = (result.stderr or result.stdout or "")[-1200:]
        raise FFmpegError(f"{description} failed: {tail}")
    return result


def probe_duration_ms(file_path) -> Optional[int]:
    """Media duration in milliseconds, or None if ffprobe can't tell."""
    cmd = [
        "ffprobe",
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        str(Path(file_path))
    ]

    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=True)
        return int(round(float(result.stdout.strip()) * 1000))
    except (subprocess.CalledProcessError, OSError, ValueError):
        return None
