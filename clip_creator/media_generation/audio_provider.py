"""Background music lookup and processing using the FreeSound API"""

import asyncio
import random
import uuid
from pathlib import Path
from types import MappingProxyType
from typing import List, Optional

import aiohttp

from ..errors import AudioGenerationError, AudioSearchError, EngineError
from ..utils.logger import LoggerMixin
from ..video_assembly.ffmpeg_engine import FFmpegEngine
from .media_models import AudioSettings, AudioTrackInfo

FREESOUND_API_URL = "https://freesound.org/apiv2/search/text/"
MAX_ATTEMPTS = 3

DEFAULT_SEARCH_TERMS = ("background music", "cinematic instrumental")

CATEGORY_SEARCH_TERMS = MappingProxyType({
    "Science & Technology": ("electronic futuristic", "ambient digital"),
    "Sports & Fitness": ("energetic workout", "upbeat sports", "motivational rock"),
    "Government & Politics": ("serious news", "dramatic orchestral"),
    "Entertainment & Celebrities": ("pop upbeat", "modern pop instrumental"),
    "Education & Learning": ("study focus", "calm piano", "soft ambient"),
    "Video Games & Esports": ("gaming action", "chiptune", "electronic intense"),
    "Travel & Tourism": ("adventure travel", "world music", "uplifting acoustic"),
    "Health & Wellness": ("relaxing meditation", "calm ambient"),
    "World News": ("global news background", "news theme"),
    "Business & Finance": ("corporate background", "corporate inspiring"),
    "Lifestyle & Culture": ("modern lifestyle", "chill lounge"),
    "Art & Design": ("inspirational creative", "ambient piano"),
    "Environment & Sustainability": ("nature ambient", "peaceful acoustic"),
    "Food & Cooking": ("cozy kitchen", "happy acoustic", "light jazz"),
})


def get_search_terms(category: str) -> List[str]:
    """Search phrasings for a category, the generic ones when unknown"""
    return list(CATEGORY_SEARCH_TERMS.get(category, DEFAULT_SEARCH_TERMS))


def search_term_for(category: str, attempt: int) -> str:
    """Term to use on a given zero-based attempt, the last one repeats"""
    terms = get_search_terms(category)
    return terms[min(attempt, len(terms) - 1)]


class AudioProvider(LoggerMixin):
    """Finds a royalty-free track for a category and prepares it for mixing"""

    def __init__(self, api_key: str, output_dir: Path,
                 settings: Optional[AudioSettings] = None,
                 engine: Optional[FFmpegEngine] = None,
                 retry_delay: float = 1.0,
                 request_timeout: float = 30.0):
        if not api_key:
            raise AudioGenerationError("FreeSound API key is required")
        self.api_key = api_key
        self.output_dir = Path(output_dir)
        self.settings = settings or AudioSettings()
        self.engine = engine or FFmpegEngine()
        self.retry_delay = retry_delay
        self.request_timeout = request_timeout

        self.output_dir.mkdir(parents=True, exist_ok=True)

    def get_search_terms(self, category: str) -> List[str]:
        return get_search_terms(category)

    async def search_tracks(self, session: aiohttp.ClientSession, query: str) -> List[AudioTrackInfo]:
        """Run one FreeSound text search"""
        params = {
            'query': query,
            'token': self.api_key,
            'filter': 'duration:[60 TO *]',
            'sort': 'rating_desc',
            'fields': 'id,name,previews,duration,username',
        }
        async with session.get(FREESOUND_API_URL, params=params) as response:
            if response.status != 200:
                raise AudioSearchError(f"API request failed: {response.status}")
            data = await response.json()

        results = [AudioTrackInfo(**item) for item in data.get('results') or []]
        if not results:
            raise AudioSearchError(f"No music found for search term '{query}'")
        return results

    async def download_preview(self, session: aiohttp.ClientSession, track: AudioTrackInfo,
                               destination: Path) -> Path:
        url = track.preview_url
        if not url:
            raise AudioSearchError(f"Track {track.id} has no mp3 preview")

        async with session.get(url) as response:
            if response.status != 200:
                raise AudioSearchError(f"Audio download failed: {response.status}")
            with open(destination, 'wb') as f:
                async for chunk in response.content.iter_chunked(64 * 1024):
                    f.write(chunk)
        return destination

    async def process_audio(self, raw_path: Path, output_path: Path) -> Path:
        """Apply fades and volume, then re-encode"""
        settings = self.settings
        duration = await self.engine.probe_duration(raw_path)
        fade_out_start = max(0.0, duration - settings.fade_out_duration)

        audio_filter = ','.join([
            f"afade=t=in:st=0:d={settings.fade_in_duration}",
            f"afade=t=out:st={fade_out_start}:d={settings.fade_out_duration}",
            f"volume={settings.volume}",
        ])
        await self.engine.run([
            '-i', str(raw_path),
            '-af', audio_filter,
            '-c:a', settings.codec,
            '-ar', str(settings.sample_rate),
            '-ac', str(settings.channels),
            '-f', settings.output_format,
            str(output_path),
        ], description='audio processing')
        return output_path

    def _backoff(self, attempt: int) -> float:
        return (attempt + 1) * self.retry_delay

    def _remove_file(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            self.logger.warning(f"Could not remove temporary audio {path}: {e}")

    async def _attempt(self, session: aiohttp.ClientSession, category: str, attempt: int) -> Path:
        search_term = search_term_for(category, attempt)
        self.logger.info(f"Looking up audio on FreeSound for '{search_term}'")

        tracks = await self.search_tracks(session, search_term)
        track = random.choice(tracks)
        self.logger.info(f"Audio found: '{track.name}' by {track.username}")

        music_id = uuid.uuid4().hex
        raw_path = self.output_dir / f"{music_id}_raw.{self.settings.output_format}"
        output_path = self.output_dir / f"{music_id}.{self.settings.output_format}"
        try:
            await self.download_preview(session, track, raw_path)
            return await self.process_audio(raw_path, output_path)
        except Exception:
            self._remove_file(output_path)
            raise
        finally:
            self._remove_file(raw_path)

    async def generate_music(self, category: str) -> Path:
        """Path to a processed track for the category"""
        timeout = aiohttp.ClientTimeout(total=self.request_timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            for attempt in range(MAX_ATTEMPTS):
                try:
                    output_path = await self._attempt(session, category, attempt)
                    self.logger.info(f"Audio ready: {output_path}")
                    return output_path
                except (AudioSearchError, EngineError, aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
                    self.logger.error(f"Attempt {attempt + 1} failed: {e}")
                    if attempt < MAX_ATTEMPTS - 1:
                        await asyncio.sleep(self._backoff(attempt))

        raise AudioGenerationError("Max retries reached. Failed to generate music.")
