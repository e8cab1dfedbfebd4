"""
Video assembly: per-segment compositing, transition stitching and muxing
"""

from .ffmpeg_engine import FFmpegEngine
from .muxer import Muxer
from .segment_compositor import SegmentCompositor, wrap_text
from .transitions import TransitionStitcher, build_filter_graph, validate_filter_graph
from .video_generator import VideoGenerator
from .video_models import (
    TRANSITION_DURATION, TRANSITION_MAPPING, FilterGraph, FrameSettings,
    StockVideoMatch, resolve_transition
)

__all__ = [
    'FFmpegEngine',
    'Muxer',
    'SegmentCompositor',
    'wrap_text',
    'TransitionStitcher',
    'build_filter_graph',
    'validate_filter_graph',
    'VideoGenerator',
    'TRANSITION_DURATION',
    'TRANSITION_MAPPING',
    'FilterGraph',
    'FrameSettings',
    'StockVideoMatch',
    'resolve_transition',
]
