"""
Central configuration for DemoReel.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Base paths
BASE_DIR = Path(__file__).parent.parent
OUTPUT_DIR = Path(os.getenv("DEMOREEL_OUTPUT_DIR", BASE_DIR / "output"))

# Output subdirectories
RECORDINGS_DIR = OUTPUT_DIR / "recordings"
AUDIO_DIR = OUTPUT_DIR / "audio"
CAPTIONS_DIR = OUTPUT_DIR / "captions"
RENDERS_DIR = OUTPUT_DIR / "renders"

# Ensure directories exist
for dir_path in [RECORDINGS_DIR, AUDIO_DIR, CAPTIONS_DIR, RENDERS_DIR]:
    dir_path.mkdir(parents=True, exist_ok=True)

# API Keys
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")

# Video settings
VIDEO_WIDTH = 1920
VIDEO_HEIGHT = 1080
VIDEO_CODEC = "libx264"
AUDIO_CODEC = "aac"
AUDIO_SAMPLE_RATE = 44100
AUDIO_CHANNEL_LAYOUT = "stereo"

# TTS settings
TTS_MODEL = "tts-1-hd"
TTS_VOICE = os.getenv("DEMOREEL_TTS_VOICE", "onyx")
DEFAULT_CLIP_DURATION_MS = 5000  # assumed when ffprobe can't read a clip

# Browser settings
HEADLESS = os.getenv("DEMOREEL_HEADLESS", "true").lower() not in ("0", "false", "no")
NAVIGATION_TIMEOUT_MS = int(os.getenv("DEMOREEL_NAVIGATION_TIMEOUT_MS", "60000"))
ELEMENT_TIMEOUT_MS = 5000
RAW_RECORDING_NAME = "raw-recording.webm"
TIMING_FILE_NAME = "timing.json"

# Action pacing
DEFAULT_HIGHLIGHT_DURATION_MS = 2000
DEFAULT_ACTION_DURATION_MS = 1000
DEFAULT_WAIT_MS = 1000
DEFAULT_SCROLL_PX = 300
SCROLL_SETTLE_MS = 500

# Overlay settings
OVERLAY_FPS = 30
OVERLAY_COLOR = os.getenv("DEMOREEL_OVERLAY_COLOR", "#3B82F6")

# Caption settings
CAPTION_WORDS_PER_CHUNK = 12


def validate_api_keys():
    """Check that required API keys are configured."""
    missing = []
    if not OPENAI_API_KEY:
        missing.append("OPENAI_API_KEY")
    return missing


def get_project_path(project_id: str) -> dict:
    """Get all paths for a project."""
    recording_dir = RECORDINGS_DIR / project_id
    return {
        "recording_dir": recording_dir,
        "recording": recording_dir / RAW_RECORDING_NAME,
        "timing": recording_dir / TIMING_FILE_NAME,
        "script": recording_dir / "script.json",
        "audio_dir": AUDIO_DIR / project_id,
        "segments": AUDIO_DIR / project_id / "segments.json",
        "audio": AUDIO_DIR / project_id / "aligned.m4a",
        "captions": CAPTIONS_DIR / f"{project_id}.srt",
        "captions_vtt": CAPTIONS_DIR / f"{project_id}.vtt",
        "render_dir": RENDERS_DIR / project_id,
        "video": RENDERS_DIR / project_id / "demo.mp4",
    }
