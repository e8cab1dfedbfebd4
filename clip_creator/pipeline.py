"""
Pipeline Orchestrator

Validates a configuration, then runs script generation, audio generation
and video generation in order for one video.
"""

import time
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional

from .content_generation.script_generator import ScriptGenerator
from .errors import ConfigurationError
from .media_generation.audio_provider import AudioProvider
from .media_generation.media_models import AudioSettings
from .utils.config import PipelineConfig
from .utils.logger import LoggerMixin
from .video_assembly.ffmpeg_engine import FFmpegEngine
from .video_assembly.video_generator import VideoGenerator

# Display name of every required value, in reporting order
REQUIRED_FIELDS = (
    ("freesound_key", "FreeSound API Key"),
    ("groq_key", "GROQ API Key"),
    ("pexels_key", "Pexels API Key"),
    ("category", "Category"),
    ("tone", "Tone"),
    ("topic", "Topic"),
)

ProgressCallback = Callable[["PipelineStage", str], None]


class PipelineStage(str, Enum):
    """Orchestrator state"""
    VALIDATING = "validating"
    SCRIPT_GENERATION = "script_generation"
    AUDIO_GENERATION = "audio_generation"
    VIDEO_GENERATION = "video_generation"
    DONE = "done"
    FAILED = "failed"


def validate_pipeline_config(config: PipelineConfig) -> None:
    """Report every missing required value at once"""
    missing = [label for field, label in REQUIRED_FIELDS if not str(getattr(config, field) or "").strip()]
    if missing:
        raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")


class VideoPipeline(LoggerMixin):
    """Runs one video generation end to end"""

    def __init__(self, config: PipelineConfig,
                 progress_callback: Optional[ProgressCallback] = None,
                 script_generator: Optional[ScriptGenerator] = None,
                 audio_provider: Optional[AudioProvider] = None,
                 video_generator: Optional[VideoGenerator] = None):
        self.config = config
        self.progress_callback = progress_callback
        self.stage = PipelineStage.VALIDATING
        self.stage_timings: Dict[str, float] = {}

        # Components are built lazily, after validation
        self._script_generator = script_generator
        self._audio_provider = audio_provider
        self._video_generator = video_generator

    def _report(self, stage: PipelineStage, message: str) -> None:
        self.stage = stage
        self.logger.info(f"[{stage.value}] {message}")
        if self.progress_callback:
            self.progress_callback(stage, message)

    def _build_components(self) -> None:
        config = self.config
        if self._script_generator is None:
            self._script_generator = ScriptGenerator(config.groq_key, config.model_name)
        if self._audio_provider is None:
            settings = AudioSettings(
                volume=config.volume,
                fade_in_duration=config.fade_in_duration,
                fade_out_duration=config.fade_out_duration,
            )
            engine = FFmpegEngine(config.ffmpeg_binary, config.ffprobe_binary)
            self._audio_provider = AudioProvider(config.freesound_key, config.audio_dir, settings, engine)
        if self._video_generator is None:
            self._video_generator = VideoGenerator(config)

    async def _timed(self, stage: PipelineStage, message: str, operation):
        self._report(stage, message)
        started = time.monotonic()
        try:
            return await operation()
        finally:
            self.stage_timings[stage.value] = round(time.monotonic() - started, 2)

    async def run(self) -> Path:
        """Final video path; any stage error is re-raised unchanged"""
        try:
            self._report(PipelineStage.VALIDATING, "Validating configuration")
            validate_pipeline_config(self.config)
            self._build_components()

            script = await self._timed(
                PipelineStage.SCRIPT_GENERATION, "Generating script",
                lambda: self._script_generator.generate_script(self.config),
            )
            audio_path = await self._timed(
                PipelineStage.AUDIO_GENERATION, "Looking up audio on FreeSound",
                lambda: self._audio_provider.generate_music(self.config.category),
            )
            video_path = await self._timed(
                PipelineStage.VIDEO_GENERATION, "Searching Pexels and rendering segments",
                lambda: self._video_generator.generate_video(script.segments, audio_path),
            )
        except Exception as e:
            self.stage = PipelineStage.FAILED
            self.logger.error(f"Video generation failed: {e}")
            if self.progress_callback:
                self.progress_callback(PipelineStage.FAILED, str(e))
            raise

        self._report(PipelineStage.DONE, f"Video saved: {video_path}")
        return video_path


async def create_video(config: PipelineConfig,
                       progress_callback: Optional[ProgressCallback] = None) -> Path:
    """Generate one video and return its path"""
    return await VideoPipeline(config, progress_callback).run()
