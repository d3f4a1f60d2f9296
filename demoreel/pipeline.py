"""
Render pipeline: narration -> aligned audio -> captions -> final video.
"""
import logging
from pathlib import Path
from typing import Optional
from dataclasses import dataclass

import openai

from .script import Script
from .timing import TimingMetadata
from .voice import AudioSegment, NarrationSynthesizer
from .aligner import AudioAligner
from .captioner import CaptionSegmenter, write_captions
from .assembler import StreamMerger

logger = logging.getLogger(__name__)


@dataclass
class RenderOptions:
    raw_video_path: str
    timing: TimingMetadata
    script: Script
    output_dir: str
    voice: Optional[str] = None
    segments: Optional[list[AudioSegment]] = None   # skip synthesis when given
    caption_format: str = "srt"


@dataclass
class RenderResult:
    video_path: str
    subtitles_path: str
    audio_path: str
    segments: list[AudioSegment]


def render_demo(options: RenderOptions,
                synthesizer: Optional[NarrationSynthesizer] = None,
                aligner: Optional[AudioAligner] = None,
                segmenter: Optional[CaptionSegmenter] = None,
                merger: Optional[StreamMerger] = None) -> RenderResult:
    """
    Turn a raw recording into the final narrated video plus a caption file.

    Audio problems degrade to missing narration; only a failed merge raises.
    """
    output_dir = Path(options.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    merger = merger or StreamMerger()

    logger.info("Rendering %s -> %s", options.raw_video_path, output_dir)

    segments = options.segments
    if segments is None:
        segments = _synthesize(options, synthesizer, output_dir / "narration")

    aligner = aligner or AudioAligner()
    audio_path = aligner.align(segments, options.timing, output_dir / "narration.m4a")

    segmenter = segmenter or CaptionSegmenter()
    cues = segmenter.segment(options.script, options.timing)
    subtitles_path = write_captions(cues, output_dir / f"subtitles.{options.caption_format}")
    logger.info("Wrote %d caption cues to %s", len(cues), subtitles_path)

    video_path = merger.merge(options.raw_video_path, audio_path, output_dir / "demo.mp4")

    return RenderResult(
        video_path=str(video_path),
        subtitles_path=str(subtitles_path),
        audio_path=str(audio_path),
        segments=list(segments),
    )


def _synthesize(options: RenderOptions, synthesizer: Optional[NarrationSynthesizer],
                clips_dir: Path) -> list[AudioSegment]:
    try:
        synthesizer = synthesizer or NarrationSynthesizer()
    except openai.OpenAIError as e:
        logger.warning("Narration unavailable, rendering without voice: %s", e)
        return []
    return synthesizer.synthesize(options.timing, clips_dir, options.voice)
