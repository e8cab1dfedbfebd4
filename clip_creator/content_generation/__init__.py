"""Script generation for short videos"""

from .content_models import (
    SEGMENT_DURATION, ScriptRequest, ScriptResult, TransitionType, VideoSegment
)
from .script_generator import LLM_ERROR_MESSAGE, ScriptGenerator

__all__ = [
    'SEGMENT_DURATION',
    'ScriptRequest',
    'ScriptResult',
    'TransitionType',
    'VideoSegment',
    'LLM_ERROR_MESSAGE',
    'ScriptGenerator',
]
