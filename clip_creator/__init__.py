"""
clip-creator: automated short-form video generation

Script from a chat completion model, background music from FreeSound and
stock footage from Pexels, composited into one MP4 with ffmpeg.
"""

__version__ = "1.0.0"

from .pipeline import PipelineStage, VideoPipeline, create_video
from .utils.config import PartialPipelineConfig, PipelineConfig, merge_config

__all__ = [
    '__version__',
    'PipelineStage',
    'VideoPipeline',
    'create_video',
    'PartialPipelineConfig',
    'PipelineConfig',
    'merge_config',
]
