#!/usr/bin/env python3
"""
DemoReel - CLI Orchestrator

Records a scripted product demo in the browser, then narrates, captions and
assembles it into a finished video.
Workflow: record -> narrate -> align -> captions -> merge
"""
import asyncio
import logging
import sys
from pathlib import Path
from datetime import datetime

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from config.settings import VIDEO_WIDTH, VIDEO_HEIGHT, get_project_path
from demoreel import __version__

console = Console()


def generate_project_id() -> str:
    """Generate unique project ID based on timestamp."""
    return datetime.now().strftime("demo_%Y%m%d_%H%M%S")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("openai").setLevel(logging.WARNING)


def _require(path: Path, hint: str) -> Path:
    if not path.exists():
        console.print(f"[bold red]Missing:[/bold red] {path}\n{hint}")
        raise SystemExit(1)
    return path


def _print_recording(project_id: str, result) -> None:
    table = Table(title="Recording Complete")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    summary = result.diagnostics.summary()
    table.add_row("Project ID", project_id)
    table.add_row("Recording", result.video_path)
    table.add_row("Timing", result.timing_path)
    table.add_row("Timeline", f"{result.timing.total_duration_ms / 1000:.1f}s")
    table.add_row("Wall clock", f"{result.wall_clock_ms / 1000:.1f}s")
    table.add_row("Sections", str(len(result.timing.sections)))
    table.add_row("Steps", f"{summary['ok']} ok, {summary['skipped']} skipped, {summary['failed']} failed")

    console.print(table)


def _record(script_file: str, project_id: str, version: str, width: int, height: int):
    from demoreel.recorder import record_demo, RecordingError

    try:
        return asyncio.run(record_demo(
            script_file=script_file,
            project_id=project_id,
            version=version,
            resolution=(width, height),
        ))
    except RecordingError as e:
        console.print(f"[bold red]Recording failed:[/bold red] {e}")
        raise SystemExit(1)


def _render(project_id: str, voice: str, caption_format: str):
    from demoreel.script import load_script
    from demoreel.timing import load_timing
    from demoreel.pipeline import RenderOptions, render_demo
    from demoreel.assembler import MergeError

    paths = get_project_path(project_id)
    timing_file = _require(paths["timing"], "Run 'record' first.")
    script_file = _require(paths["script"], "Run 'record' first.")
    recording = _require(paths["recording"], "Run 'record' first.")

    options = RenderOptions(
        raw_video_path=str(recording),
        timing=load_timing(timing_file),
        script=load_script(script_file),
        output_dir=str(paths["render_dir"]),
        voice=voice,
        caption_format=caption_format,
    )

    try:
        return render_demo(options)
    except MergeError as e:
        console.print(f"[bold red]Render failed:[/bold red] {e}")
        raise SystemExit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """DemoReel - Turn demo scripts into narrated screen recordings."""
    _setup_logging(verbose)


@cli.command()
@click.option("--script", "script_file", required=True, type=click.Path(exists=True), help="JSON or YAML demo script")
@click.option("--project-id", default=None, help="Custom project ID (auto-generated if not provided)")
@click.option("--script-version", "version", default=None, help="Script version to record (teaser, standard, full)")
@click.option("--width", default=VIDEO_WIDTH, help="Viewport width")
@click.option("--height", default=VIDEO_HEIGHT, help="Viewport height")
def record(script_file: str, project_id: str, version: str, width: int, height: int):
    """Record a demo script in the browser."""
    if not project_id:
        project_id = generate_project_id()

    console.print(Panel(f"[bold blue]Recording Demo[/bold blue]\nScript: {script_file}\nProject: {project_id}"))

    result = _record(script_file, project_id, version, width, height)
    _print_recording(project_id, result)

    console.print(f"\n[yellow]Next step:[/yellow] demoreel render --project {project_id}")


@cli.command()
@click.option("--project", required=True, help="Project ID")
@click.option("--voice", default=None, help="TTS voice override")
def narrate(project: str, voice: str):
    """Synthesize narration clips for a recorded project."""
    from demoreel.voice import generate_narration
    from config.settings import validate_api_keys

    missing = validate_api_keys()
    if missing:
        console.print(f"[bold red]Missing API keys:[/bold red] {', '.join(missing)}")
        raise SystemExit(1)

    paths = get_project_path(project)
    timing_file = _require(paths["timing"], "Run 'record' first.")

    with console.status("Generating narration..."):
        segments = generate_narration(str(timing_file), str(paths["audio_dir"]), voice)

    table = Table(title="Narration")
    table.add_column("Section", style="cyan")
    table.add_column("Clip", style="green")
    table.add_column("Duration", style="yellow")
    for seg in segments:
        table.add_row(seg.section_id, seg.clip_path, f"{seg.duration_ms / 1000:.1f}s")
    console.print(table)


@cli.command()
@click.option("--project", required=True, help="Project ID")
def align(project: str):
    """Mix narration clips onto the recording timeline."""
    from demoreel.timing import load_timing
    from demoreel.voice import load_segments
    from demoreel.aligner import align_audio

    paths = get_project_path(project)
    timing = load_timing(_require(paths["timing"], "Run 'record' first."))
    segments = load_segments(paths["segments"]) if paths["segments"].exists() else []

    output = align_audio(segments, timing, str(paths["audio"]))
    console.print(f"[green]Aligned audio:[/green] {output}")


@cli.command()
@click.option("--project", required=True, help="Project ID")
@click.option("--format", "fmt", type=click.Choice(["srt", "vtt"]), default="srt", help="Caption format")
@click.option("--words", default=None, type=int, help="Words per caption")
def captions(project: str, fmt: str, words: int):
    """Generate captions from narration and timing."""
    from demoreel.script import load_script
    from demoreel.timing import load_timing
    from demoreel.captioner import generate_captions
    from config.settings import CAPTION_WORDS_PER_CHUNK

    paths = get_project_path(project)
    timing = load_timing(_require(paths["timing"], "Run 'record' first."))
    script = load_script(_require(paths["script"], "Run 'record' first."))

    output = paths["captions_vtt"] if fmt == "vtt" else paths["captions"]
    result = generate_captions(script, timing, str(output), words or CAPTION_WORDS_PER_CHUNK)
    console.print(f"[green]Captions:[/green] {result}")


@cli.command()
@click.option("--project", required=True, help="Project ID")
def merge(project: str):
    """Merge the recording with the aligned audio."""
    from demoreel.assembler import merge_streams, MergeError

    paths = get_project_path(project)
    recording = _require(paths["recording"], "Run 'record' first.")
    audio = _require(paths["audio"], "Run 'align' first.")

    try:
        output = merge_streams(str(recording), str(audio), str(paths["video"]))
    except MergeError as e:
        console.print(f"[bold red]Merge failed:[/bold red] {e}")
        raise SystemExit(1)

    console.print(f"[green]Video:[/green] {output}")


@cli.command()
@click.option("--project", required=True, help="Project ID")
@click.option("--voice", default=None, help="TTS voice override")
@click.option("--format", "fmt", type=click.Choice(["srt", "vtt"]), default="srt", help="Caption format")
def render(project: str, voice: str, fmt: str):
    """Narrate, caption and assemble a recorded project."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console
    ) as progress:
        task = progress.add_task("Rendering video...", total=None)
        result = _render(project, voice, fmt)
        progress.update(task, completed=True)

    console.print(Panel(
        f"[bold green]Video Rendered![/bold green]\n\n"
        f"Video: {result.video_path}\n"
        f"Subtitles: {result.subtitles_path}\n"
        f"Narrated sections: {len(result.segments)}",
        title="Complete",
        border_style="green"
    ))


@cli.command()
@click.option("--script", "script_file", required=True, type=click.Path(exists=True), help="JSON or YAML demo script")
@click.option("--script-version", "version", default=None, help="Script version to record (teaser, standard, full)")
@click.option("--voice", default=None, help="TTS voice override")
def create(script_file: str, version: str, voice: str):
    """Full pipeline: record -> narrate -> captions -> assemble."""
    project_id = generate_project_id()

    console.print(Panel(
        f"[bold blue]Creating Demo Video[/bold blue]\n"
        f"Script: {script_file}\n"
        f"Project: {project_id}"
    ))

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console
    ) as progress:
        task1 = progress.add_task("[1/2] Recording demo...", total=None)
        record_result = _record(script_file, project_id, version, VIDEO_WIDTH, VIDEO_HEIGHT)
        progress.update(task1, completed=True, description="[1/2] Demo recorded")

        task2 = progress.add_task("[2/2] Rendering video...", total=None)
        render_result = _render(project_id, voice, "srt")
        progress.update(task2, completed=True, description="[2/2] Video rendered")

    _print_recording(project_id, record_result)
    console.print(Panel(
        f"[bold green]Video Created Successfully![/bold green]\n\n"
        f"Duration: {record_result.timing.total_duration_ms / 1000:.1f}s\n"
        f"Video: {render_result.video_path}\n"
        f"Subtitles: {render_result.subtitles_path}",
        title="Complete",
        border_style="green"
    ))


def _chromium_path():
    """Executable of the Playwright-managed Chromium, or None if it isn't installed."""
    from playwright.async_api import async_playwright, Error as PlaywrightError

    async def lookup():
        async with async_playwright() as p:
            return p.chromium.executable_path

    try:
        path = asyncio.run(lookup())
    except PlaywrightError:
        return None
    return path if path and Path(path).exists() else None


def _status(ok: bool, missing: str = "[red]Missing[/red]") -> str:
    return "[green]OK[/green]" if ok else missing


@cli.command()
def check():
    """Check the browser, FFmpeg and narration setup."""
    import shutil
    from config.settings import (
        HEADLESS, NAVIGATION_TIMEOUT_MS, OUTPUT_DIR, TTS_MODEL, TTS_VOICE, validate_api_keys
    )

    table = Table(title="DemoReel Check")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Details", style="yellow")

    chromium = _chromium_path()
    table.add_row("Chromium", _status(bool(chromium)), chromium or "Run: playwright install chromium")
    table.add_row(
        "Browser mode", "[green]OK[/green]",
        f"{'headless' if HEADLESS else 'headed'}, navigation timeout {NAVIGATION_TIMEOUT_MS / 1000:.0f}s"
    )

    # Merge and alignment shell out to ffmpeg; clip lengths come from ffprobe
    for tool, hint in (("ffmpeg", "Install: apt install ffmpeg"), ("ffprobe", "Ships with FFmpeg")):
        path = shutil.which(tool)
        table.add_row(tool, _status(bool(path)), path or hint)

    has_key = "OPENAI_API_KEY" not in validate_api_keys()
    table.add_row(
        "Narration",
        _status(has_key, "[yellow]Silent[/yellow]"),
        f"{TTS_MODEL} / {TTS_VOICE}" if has_key else "Set OPENAI_API_KEY (videos render without voice)"
    )
    table.add_row("Output", "[green]OK[/green]", str(OUTPUT_DIR))

    console.print(table)


if __name__ == "__main__":
    cli()
