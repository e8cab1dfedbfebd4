"""Data models for script generation"""

from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field, model_validator

SEGMENT_DURATION = 5  # Seconds per segment
MIN_SEGMENTS = 3


class TransitionType(str, Enum):
    """Transitions a script may request between segments"""
    FADE = "fade"
    SLIDE_LEFT = "slideLeft"
    SLIDE_RIGHT = "slideRight"
    DISSOLVE = "dissolve"
    CIRCLE_WIPE = "circleWipe"
    PIXELIZE = "pixelize"


class VideoSegment(BaseModel):
    """One fixed-length section of the final video"""
    model_config = ConfigDict(frozen=True)

    id: int = Field(gt=0)
    text: str = Field(min_length=10)
    duration: float = Field(default=SEGMENT_DURATION, ge=SEGMENT_DURATION, le=SEGMENT_DURATION)
    description: str = Field(min_length=5)
    transition: TransitionType = TransitionType.FADE


class ScriptResult(BaseModel):
    """Ordered list of segments returned by the script generator"""
    segments: List[VideoSegment] = Field(min_length=MIN_SEGMENTS)

    @model_validator(mode="after")
    def check_dense_ids(self) -> "ScriptResult":
        ids = [segment.id for segment in self.segments]
        if ids != list(range(1, len(ids) + 1)):
            raise ValueError(f"Segment ids must run 1..{len(ids)} in order, got {ids}")
        return self

    @property
    def total_duration(self) -> float:
        return float(sum(segment.duration for segment in self.segments))


class ScriptRequest(BaseModel):
    """Inputs the script generator needs from the pipeline configuration"""
    duration: int = 0
    category: str = ""
    tone: str = ""
    topic: str = ""
    key_terms: List[str] = []
    require_fact_checking: bool = False

    @classmethod
    def from_config(cls, config) -> "ScriptRequest":
        return cls(
            duration=config.duration,
            category=config.category,
            tone=config.tone,
            topic=config.topic,
            key_terms=list(config.key_terms),
            require_fact_checking=config.require_fact_checking,
        )

    @property
    def segment_count(self) -> int:
        return self.duration // SEGMENT_DURATION


# JSON schema applied to the raw model output before it is parsed into models
SCRIPT_SCHEMA = {
    "type": "object",
    "required": ["segments"],
    "properties": {
        "segments": {
            "type": "array",
            "minItems": MIN_SEGMENTS,
            "items": {
                "type": "object",
                "required": ["id", "text", "duration", "description", "transition"],
                "properties": {
                    "id": {"type": "integer", "minimum": 1},
                    "text": {"type": "string", "minLength": 10},
                    "duration": {"const": SEGMENT_DURATION},
                    "description": {"type": "string", "minLength": 5},
                    "transition": {"enum": [t.value for t in TransitionType]},
                },
            },
        }
    },
}
