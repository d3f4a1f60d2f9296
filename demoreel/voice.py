"""
Voice generation module using OpenAI TTS.
Synthesizes one narration clip per section and measures how long it runs.
"""
import json
import logging
from pathlib import Path
from typing import Optional
from dataclasses import dataclass, asdict
import openai

from config.settings import (
    OPENAI_API_KEY, TTS_MODEL, TTS_VOICE, DEFAULT_CLIP_DURATION_MS
)
from .timing import TimingMetadata, load_timing
from .media import probe_duration_ms

logger = logging.getLogger(__name__)

SEGMENTS_FILE_NAME = "segments.json"


@dataclass(frozen=True)
class AudioSegment:
    """Narration clip for one section. Its length is whatever the voice took."""
    section_id: str
    clip_path: str
    duration_ms: int


class NarrationSynthesizer:
    """Generates per-section narration audio using OpenAI TTS."""

    def __init__(self, client: Optional[openai.OpenAI] = None,
                 model: str = TTS_MODEL, voice: str = TTS_VOICE):
        self.client = client or openai.OpenAI(api_key=OPENAI_API_KEY)
        self.model = model
        self.voice = voice

    def synthesize(self, timing: TimingMetadata, output_dir,
                   voice: Optional[str] = None) -> list[AudioSegment]:
        """
        Generate a clip for every section that has narration.

        A section whose synthesis fails is left out; the others still get audio.

        Args:
            timing: Timing metadata carrying each section's narration
            output_dir: Directory for the clips
            voice: Voice override

        Returns:
            List of AudioSegment in section order
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        voice = voice or self.voice

        segments = []
        for section in timing.sections:
            text = section.narration.strip()
            if not text:
                continue

            clip = output_dir / f"{section.id}.mp3"
            try:
                self._generate_audio(text, clip, voice)
            except (openai.OpenAIError, OSError) as e:
                logger.warning("Narration for section %s dropped: %s", section.id, e)
                continue

            duration = probe_duration_ms(clip)
            if duration is None:
                logger.warning("Could not probe %s, assuming %dms", clip, DEFAULT_CLIP_DURATION_MS)
                duration = DEFAULT_CLIP_DURATION_MS

            segments.append(AudioSegment(
                section_id=section.id,
                clip_path=str(clip),
                duration_ms=duration,
            ))

        save_segments(segments, output_dir / SEGMENTS_FILE_NAME)
        return segments

    def _generate_audio(self, text: str, output_path: Path, voice: str):
        """Generate audio file using OpenAI TTS."""
        with self.client.audio.speech.with_streaming_response.create(
            model=self.model,
            voice=voice,
            input=text,
            response_format="mp3"
        ) as response:
            response.stream_to_file(output_path)


def save_segments(segments: list[AudioSegment], path) -> Path:
    path = Path(path)
    with open(path, "w") as f:
        json.dump([asdict(s) for s in segments], f, indent=2)
    return path


def load_segments(path) -> list[AudioSegment]:
    """Load segment metadata written by synthesize()."""
    with open(path) as f:
        return [AudioSegment(**item) for item in json.load(f)]


def generate_narration(timing_file: str, output_dir: str,
                       voice: Optional[str] = None) -> list[AudioSegment]:
    """
    Convenience function to synthesize narration for a recording.

    Args:
        timing_file: Timing metadata JSON from a recording
        output_dir: Directory for the clips
        voice: Optional voice override

    Returns:
        List of AudioSegment
    """
    synthesizer = NarrationSynthesizer()
    return synthesizer.synthesize(load_timing(timing_file), output_dir, voice)
