"""Renders a full video from a script and a processed audio track"""

import asyncio
import uuid
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from ..content_generation.content_models import VideoSegment
from ..utils.config import PipelineConfig
from ..utils.logger import LoggerMixin
from .ffmpeg_engine import FFmpegEngine
from .muxer import Muxer
from .segment_compositor import SegmentCompositor
from .transitions import TransitionStitcher
from .video_models import FrameSettings


class VideoGenerator(LoggerMixin):
    """Segment fan-out, transition stitching and muxing for one script"""

    def __init__(self, config: PipelineConfig,
                 engine: Optional[FFmpegEngine] = None,
                 compositor: Optional[SegmentCompositor] = None,
                 stitcher: Optional[TransitionStitcher] = None,
                 muxer: Optional[Muxer] = None,
                 max_parallel_segments: int = 3):
        self.config = config
        self.output_dir = Path(config.output_dir)
        self.temp_dir = config.temp_dir
        for directory in (self.output_dir, self.temp_dir):
            directory.mkdir(parents=True, exist_ok=True)

        frame = FrameSettings(
            width=config.width,
            height=config.height,
            fps=config.fps,
            font=config.font,
            font_size=config.font_size,
        )
        self.engine = engine or FFmpegEngine(config.ffmpeg_binary, config.ffprobe_binary)
        self.compositor = compositor or SegmentCompositor(config.pexels_key, self.temp_dir, frame, self.engine)
        self.stitcher = stitcher or TransitionStitcher(self.temp_dir, frame, self.engine)
        self.muxer = muxer or Muxer(self.engine)
        self.max_parallel_segments = max(1, max_parallel_segments)

    def _cleanup(self, paths: Iterable[Path]) -> None:
        for path in paths:
            try:
                Path(path).unlink(missing_ok=True)
            except OSError as e:
                self.logger.warning(f"Could not remove intermediate file {path}: {e}")

    async def create_segments(self, segments: Sequence[VideoSegment]) -> List[Path]:
        """Render every segment; all must succeed before stitching"""
        semaphore = asyncio.Semaphore(self.max_parallel_segments)

        async def render(segment: VideoSegment) -> Path:
            async with semaphore:
                return await self.compositor.create_segment(segment)

        async with self.compositor:
            results = await asyncio.gather(*(render(s) for s in segments), return_exceptions=True)

        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            self._cleanup(r for r in results if isinstance(r, Path))
            for failure in failures:
                self.logger.error(f"Segment rendering failed: {failure}")
            raise failures[0]
        return list(results)

    async def generate_video(self, segments: Sequence[VideoSegment], audio_path: Path,
                             output_path: Optional[Path] = None) -> Path:
        """Path of the final muxed video"""
        output_path = Path(output_path or self.output_dir / f"final_{uuid.uuid4().hex}.mp4")

        self.logger.info(f"Searching stock footage and rendering {len(segments)} segments")
        segment_paths = await self.create_segments(segments)

        intermediates: List[Path] = list(segment_paths)
        try:
            with_transitions = await self.stitcher.combine_videos_with_transitions(segment_paths, segments)
            intermediates.append(with_transitions)
            await self.muxer.combine_video_and_audio(audio_path, with_transitions, output_path)
        finally:
            self._cleanup(intermediates)

        return output_path
