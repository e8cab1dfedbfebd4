#!/usr/bin/env python3
"""
clip-creator command line

    clip-creator create --category "Science & Technology" --tone "Friendly/Casual" --topic "Black holes"
    clip-creator batch --count 5 --max-concurrent 2 --config defaults.yaml
    clip-creator list-categories -v
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from . import __version__
from .automation.batch_controller import BatchController
from .automation.task_runner import SubprocessTaskRunner
from .content_generation.prompt_templates import CATEGORY_DESCRIPTIONS, TONE_DESCRIPTIONS
from .errors import ClipCreatorError
from .pipeline import PipelineStage, VideoPipeline, validate_pipeline_config
from .utils.config import (
    CATEGORIES, TONES, BatchSettings, PartialPipelineConfig, PipelineConfig, merge_config
)
from .utils.logger import setup_logging

console = Console()
err_console = Console(stderr=True)

SECRET_FIELDS = {"groq_key", "pexels_key", "freesound_key"}


def add_config_arguments(parser: argparse.ArgumentParser) -> None:
    """Options mirroring every PipelineConfig field"""
    keys = parser.add_argument_group("API keys")
    keys.add_argument("--groq-key", type=str, help="GROQ API key (env: GROQ_API_KEY)")
    keys.add_argument("--pexels-key", type=str, help="Pexels API key (env: PEXELS_API_KEY)")
    keys.add_argument("--freesound-key", type=str, help="FreeSound API key (env: FREESOUND_API_KEY)")

    content = parser.add_argument_group("Content")
    content.add_argument("--category", type=str, help="Video category, see list-categories")
    content.add_argument("--tone", type=str, help="Narrative tone, see list-tones")
    content.add_argument("--topic", type=str, help="Main topic of the video")
    content.add_argument("--duration", type=int, help="Total duration in seconds, a multiple of 5")
    content.add_argument("--key-terms", type=str, help="Comma separated terms to include, or a JSON array")
    content.add_argument("--require-fact-checking", action="store_true", default=None,
                         help="Ask the model to stick to verifiable facts")
    content.add_argument("--model-name", type=str, help="Chat completion model")

    output = parser.add_argument_group("Output")
    output.add_argument("--output-dir", type=str, help="Directory for generated files")
    output.add_argument("--volume", type=float, help="Background music volume (0-1)")
    output.add_argument("--fade-in-duration", type=float, help="Audio fade in, seconds")
    output.add_argument("--fade-out-duration", type=float, help="Audio fade out, seconds")
    output.add_argument("--width", type=int, help="Frame width in pixels")
    output.add_argument("--height", type=int, help="Frame height in pixels")
    output.add_argument("--fps", type=int, help="Frames per second")
    output.add_argument("--font", type=str, help="Path to a .ttf font for the text overlay")
    output.add_argument("--font-size", type=int, help="Overlay font size")
    output.add_argument("--ffmpeg-binary", type=str, help="ffmpeg executable")
    output.add_argument("--ffprobe-binary", type=str, help="ffprobe executable")

    parser.add_argument("--config", type=str, help="YAML file with default values")
    parser.add_argument("--batch-runner", action="store_true",
                        help="Treat the given options as the complete configuration (used by batch)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="clip-creator",
                                     description="Automated short-form video generation")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging level")
    parser.add_argument("--log-file", type=str, help="Also write logs to this rotating file")

    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create", help="Generate one video")
    add_config_arguments(create)

    batch = subparsers.add_parser("batch", help="Generate several videos in parallel")
    add_config_arguments(batch)
    batch.add_argument("--count", type=int, required=True, help="Number of videos")
    batch.add_argument("--max-concurrent", type=int, help="Videos generated at the same time")
    batch.add_argument("--task-timeout", type=float, help="Seconds before a video task is killed")

    for name, help_text in (("list-categories", "Show available categories"),
                            ("list-tones", "Show available tones")):
        listing = subparsers.add_parser(name, help=help_text)
        listing.add_argument("-v", "--verbose", action="store_true", help="Include descriptions")

    return parser


def resolve_config(args: argparse.Namespace) -> PipelineConfig:
    """Command line over config file over environment, unless running as a batch task"""
    cli_values = {field: getattr(args, field, None) for field in PartialPipelineConfig.model_fields}
    cli_config = PartialPipelineConfig(**cli_values)

    if args.batch_runner:
        return merge_config(cli_config)

    sources = [cli_config]
    if args.config:
        sources.append(PartialPipelineConfig.load(args.config))
    sources.append(PartialPipelineConfig.from_env())
    return merge_config(*sources)


def _mask(value: str) -> str:
    if not value:
        return "[red]missing[/red]"
    return "****" + value[-4:] if len(value) > 4 else "****"


def print_config_table(config: PipelineConfig) -> None:
    table = Table(title="Video configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key, value in config.model_dump().items():
        if key in SECRET_FIELDS:
            shown = _mask(value)
        elif isinstance(value, list):
            shown = ", ".join(value) or "-"
        else:
            shown = "-" if value is None or value == "" else str(value)
        table.add_row(key, shown)
    console.print(table)


async def run_create(config: PipelineConfig, quiet: bool) -> Path:
    if quiet:
        return await VideoPipeline(config).run()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=False
    ) as progress:
        task = progress.add_task("[cyan]Starting...", total=None)

        def on_progress(stage: PipelineStage, message: str) -> None:
            progress.update(task, description=f"[cyan]{stage.value}[/cyan] {message}")

        pipeline = VideoPipeline(config, progress_callback=on_progress)
        video_path = await pipeline.run()

    timings = ", ".join(f"{stage} {seconds:.1f}s" for stage, seconds in pipeline.stage_timings.items())
    console.print(f"[green]✓[/green] Stage timings: {timings}")
    return video_path


def cmd_create(args: argparse.Namespace) -> int:
    config = resolve_config(args)
    if not args.batch_runner:
        print_config_table(config)

    video_path = asyncio.run(run_create(config, quiet=args.batch_runner))
    if not args.batch_runner:
        console.print(f"[bold green]🎉 Video saved:[/bold green] {video_path}")
    # Last stdout line is the video path, batch runs read it back
    print(video_path, flush=True)
    return 0


def cmd_batch(args: argparse.Namespace) -> int:
    config = resolve_config(args)
    validate_pipeline_config(config)
    settings = BatchSettings(**{
        key: value for key, value in (("max_concurrent", args.max_concurrent),
                                      ("task_timeout", args.task_timeout))
        if value is not None
    })

    controller = BatchController(SubprocessTaskRunner(task_timeout=settings.task_timeout),
                                 max_concurrent=settings.max_concurrent)
    controller.on("progress", lambda r: console.print(
        f"[green]✓[/green] Task {r.task_id} finished in {r.duration}s: {r.output}"))
    controller.on("error", lambda e: console.print(
        f"[red]✖[/red] Task {e.task_id} failed after {e.duration}s: {e.error}"))

    console.print(f"[blue]🎬[/blue] Generating {args.count} videos, "
                  f"{settings.max_concurrent} at a time")
    summary = asyncio.run(controller.process(config, args.count))

    table = Table(title=f"Batch {summary.batch_id}")
    table.add_column("Task", style="cyan")
    table.add_column("Status")
    table.add_column("Duration (s)", justify="right")
    table.add_column("Output / Error")
    for result in summary.results:
        table.add_row(result.task_id, "[green]completed[/green]", f"{result.duration}", result.output or "")
    for error in summary.errors:
        table.add_row(error.task_id, "[red]failed[/red]", f"{error.duration}", error.error)
    console.print(table)
    console.print(f"[green]✓ Successfully completed: {summary.success_count} videos[/green]")
    console.print(f"⏱️  Total processing time: {summary.total_duration}s")
    if summary.failure_count:
        console.print(f"[red]✖ Failed: {summary.failure_count} videos[/red]")
        return 1
    return 0


def cmd_list(names: List[str], descriptions, verbose: bool, title: str) -> int:
    if not verbose:
        for name in names:
            console.print(name, highlight=False)
        return 0

    table = Table(title=title)
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    for name in names:
        table.add_row(name, descriptions.get(name, ""))
    console.print(table)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level, args.log_file)

    try:
        if args.command == "create":
            return cmd_create(args)
        if args.command == "batch":
            return cmd_batch(args)
        if args.command == "list-categories":
            return cmd_list(CATEGORIES, CATEGORY_DESCRIPTIONS, args.verbose, "Categories")
        if args.command == "list-tones":
            return cmd_list(TONES, TONE_DESCRIPTIONS, args.verbose, "Tones")
    except KeyboardInterrupt:
        console.print("\n[yellow]⏹️[/yellow] Stopped by user")
        return 130
    except ClipCreatorError as e:
        err_console.print(f"[red]❌[/red] Error: {e}", highlight=False)
        return 1

    parser.error(f"Unknown command {args.command}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
