"""Background music lookup and processing"""

from .audio_provider import AudioProvider, get_search_terms, search_term_for
from .media_models import AudioSettings, AudioTrackInfo

__all__ = [
    'AudioProvider',
    'AudioSettings',
    'AudioTrackInfo',
    'get_search_terms',
    'search_term_for',
]
