"""
Video Assembly Data Models

Pydantic models and lookup tables for the compositing, stitching and
muxing steps.
"""

from pathlib import Path
from types import MappingProxyType
from typing import List, Optional

from pydantic import BaseModel, Field

TRANSITION_DURATION = 0.5  # seconds
DEFAULT_TRANSITION = "fade"

# Script transition name -> ffmpeg xfade transition
TRANSITION_MAPPING = MappingProxyType({
    "fade": "fade",
    "dissolve": "fadeblack",
    "slideLeft": "slideleft",
    "slideRight": "slideright",
    "circleWipe": "circleopen",
    "pixelize": "pixelize",
})


def resolve_transition(name: Optional[str]) -> str:
    """xfade transition for a script transition, 'fade' when unknown"""
    key = getattr(name, "value", name)
    return TRANSITION_MAPPING.get(key, DEFAULT_TRANSITION) if key else DEFAULT_TRANSITION


class FrameSettings(BaseModel):
    """Output frame geometry and text styling"""
    width: int = Field(default=720, gt=0)
    height: int = Field(default=1280, gt=0)
    fps: int = Field(default=30, gt=0, le=60)
    font: Optional[Path] = None
    font_size: int = Field(default=48, gt=0)

    @property
    def orientation(self) -> str:
        return "landscape" if self.width >= self.height else "portrait"


class StockVideoMatch(BaseModel):
    """Selected stock video file for one segment"""
    video_id: int
    query: str
    url: str
    width: Optional[int] = None
    height: Optional[int] = None


class FilterGraph(BaseModel):
    """Filter graph for joining clips with xfade transitions"""
    filters: List[str]
    output_label: str
    total_duration: float
    accumulated_durations: List[float]

    def as_filter_complex(self) -> str:
        return ";".join(self.filters)
