"""Joins rendered segment clips with xfade transitions"""

import logging
import re
import uuid
from pathlib import Path
from typing import List, Optional, Sequence

from ..content_generation.content_models import VideoSegment
from ..errors import FilterGraphError, StitchInputError
from ..utils.logger import LoggerMixin
from .ffmpeg_engine import FFmpegEngine
from .video_models import TRANSITION_DURATION, FilterGraph, FrameSettings, resolve_transition

logger = logging.getLogger(__name__)

_LABEL_RE = re.compile(r"^\[[^\[\]]+\]")


def _fmt(value: float) -> str:
    return f"{value:g}"


def build_filter_graph(durations: Sequence[float],
                       transitions: Sequence[Optional[str]],
                       width: int, height: int, fps: int,
                       transition_duration: float = TRANSITION_DURATION) -> FilterGraph:
    """Filter chain normalizing every clip and joining consecutive clips with xfade.

    The join between clip i-1 and clip i uses the transition requested by
    segment i-1, so the last segment's transition is never used.
    """
    filters: List[str] = []
    accumulated_durations: List[float] = []
    accumulated = 0.0
    previous = ""

    for index, duration in enumerate(durations):
        filters.append(
            f"[{index}:v]trim=duration={_fmt(duration)},"
            f"fps=fps={fps},"
            f"scale=w={width}:h={height}:force_original_aspect_ratio=decrease,"
            f"pad={width}:{height}:(ow-iw)/2:(oh-ih)/2,setsar=1,"
            f"format=yuv420p[vid{index}]"
        )

        if index == 0:
            previous = f"vid{index}"
            accumulated = float(duration)
        else:
            transition = resolve_transition(transitions[index - 1])
            offset = accumulated - transition_duration
            if offset < 0:
                logger.warning(f"Negative offset clamped to 0 for segment {index}")
                offset = 0.0

            filters.append(
                f"[{previous}][vid{index}]"
                f"xfade=transition={transition}:"
                f"duration={_fmt(transition_duration)}:"
                f"offset={_fmt(offset)}[xfade{index}]"
            )
            previous = f"xfade{index}"
            accumulated += duration - transition_duration

        accumulated_durations.append(accumulated)

    filters.append(f"[{previous}]format=yuv420p[outv]")
    return FilterGraph(
        filters=filters,
        output_label="outv",
        total_duration=accumulated,
        accumulated_durations=accumulated_durations,
    )


def validate_filter_graph(filters: Sequence[str]) -> None:
    """Every filter starts with an input label and has balanced brackets"""
    for f in filters:
        if not _LABEL_RE.match(f):
            raise FilterGraphError(f"Invalid filter syntax: {f}")
        depth = 0
        for char in f:
            if char == "[":
                depth += 1
            elif char == "]":
                depth -= 1
            if depth < 0 or depth > 1:
                raise FilterGraphError(f"Unbalanced brackets in filter: {f}")
        if depth != 0:
            raise FilterGraphError(f"Unbalanced brackets in filter: {f}")


class TransitionStitcher(LoggerMixin):
    """Combines segment clips into one video"""

    def __init__(self, temp_dir: Path, frame: Optional[FrameSettings] = None,
                 engine: Optional[FFmpegEngine] = None,
                 transition_duration: float = TRANSITION_DURATION):
        self.temp_dir = Path(temp_dir)
        self.frame = frame or FrameSettings()
        self.engine = engine or FFmpegEngine()
        self.transition_duration = transition_duration

        self.temp_dir.mkdir(parents=True, exist_ok=True)

    def build_command_args(self, clip_paths: Sequence[Path], graph: FilterGraph,
                           output_path: Path) -> List[str]:
        args: List[str] = []
        for clip in clip_paths:
            args.extend(['-i', str(clip)])
        args.extend([
            '-filter_complex', graph.as_filter_complex(),
            '-map', f"[{graph.output_label}]",
            '-t', _fmt(graph.total_duration),
            '-movflags', '+faststart',
            '-c:v', 'libx264',
            '-r', str(self.frame.fps),
            str(output_path),
        ])
        return args

    async def combine_videos_with_transitions(self, clip_paths: Sequence[Path],
                                              segments: Sequence[VideoSegment]) -> Path:
        if not clip_paths:
            raise StitchInputError("At least one clip is required to combine videos")
        if len(clip_paths) != len(segments):
            raise StitchInputError(
                f"Segment count ({len(segments)}) must match clip count ({len(clip_paths)})"
            )

        self.logger.info(f"Applying transitions to combine {len(clip_paths)} segments")
        graph = build_filter_graph(
            [segment.duration for segment in segments],
            [segment.transition for segment in segments],
            self.frame.width, self.frame.height, self.frame.fps,
            self.transition_duration,
        )
        validate_filter_graph(graph.filters)
        self.logger.debug("Final filter graph:\n" + "\n".join(graph.filters))

        output_path = self.temp_dir / f"with_transitions_{uuid.uuid4().hex}.mp4"
        await self.engine.run(self.build_command_args(clip_paths, graph, output_path),
                              description='transition stitching')

        self.logger.info(f"Successfully combined {len(clip_paths)} segments ({graph.total_duration:g}s)")
        return output_path
