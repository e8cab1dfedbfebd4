"""
Segment Compositor

Turns one script segment into a short clip: finds stock footage on Pexels,
trims it to the segment length and burns the segment text into the frame.
"""

import asyncio
import uuid
from pathlib import Path
from typing import Iterable, List, Optional

import aiohttp

from ..content_generation.content_models import VideoSegment
from ..errors import MediaDownloadError, NoSuitableMediaError
from ..utils.logger import LoggerMixin
from .ffmpeg_engine import FFmpegEngine
from .video_models import FrameSettings, StockVideoMatch

PEXELS_VIDEO_SEARCH_URL = "https://api.pexels.com/videos/search"
FALLBACK_QUERIES = ("background", "nature", "landscape", "abstract", "minimalist")


def wrap_text(text: str, font_size: int, frame_width: int,
              char_width_ratio: float = 0.6, text_width_margin: float = 0.9) -> str:
    """Split text into two lines at the midpoint word boundary when it will not fit"""
    estimated_width = len(text) * font_size * char_width_ratio
    if estimated_width <= frame_width * text_width_margin:
        return text

    words = text.split()
    if len(words) < 2:
        return text

    # Word boundary whose prefix length is closest to half the text
    midpoint = len(text) / 2
    best_index, best_distance = 1, None
    consumed = 0
    for i, word in enumerate(words[:-1], start=1):
        consumed += len(word) + (1 if i > 1 else 0)
        distance = abs(consumed - midpoint)
        if best_distance is None or distance < best_distance:
            best_index, best_distance = i, distance

    return " ".join(words[:best_index]) + "\n" + " ".join(words[best_index:])


def _escape_filter_value(value: str) -> str:
    return str(value).replace("\\", "/").replace(":", "\\:").replace("'", "\\'")


class SegmentCompositor(LoggerMixin):
    """Creates a captioned clip for each script segment"""

    def __init__(self, api_key: str, temp_dir: Path,
                 frame: Optional[FrameSettings] = None,
                 engine: Optional[FFmpegEngine] = None,
                 char_width_ratio: float = 0.6,
                 text_width_margin: float = 0.9,
                 request_timeout: float = 60.0):
        self.api_key = api_key
        self.temp_dir = Path(temp_dir)
        self.frame = frame or FrameSettings()
        self.engine = engine or FFmpegEngine()
        self.char_width_ratio = char_width_ratio
        self.text_width_margin = text_width_margin
        self.request_timeout = request_timeout
        self.session: Optional[aiohttp.ClientSession] = None

        self.temp_dir.mkdir(parents=True, exist_ok=True)

    async def __aenter__(self):
        """Async context manager entry"""
        self.session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.request_timeout),
            headers={'Authorization': self.api_key}
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        if self.session:
            await self.session.close()
            self.session = None

    def _require_session(self) -> aiohttp.ClientSession:
        if self.session is None:
            raise RuntimeError("SegmentCompositor must be used as an async context manager")
        return self.session

    @staticmethod
    def search_queries(segment: VideoSegment) -> List[str]:
        queries = [segment.description, segment.text, *FALLBACK_QUERIES]
        return [q.strip() for q in queries if q and q.strip()]

    async def search_videos(self, query: str) -> List[dict]:
        """One Pexels video search"""
        params = {
            'query': query,
            'orientation': self.frame.orientation,
            'per_page': 5,
        }
        async with self._require_session().get(PEXELS_VIDEO_SEARCH_URL, params=params) as response:
            if response.status != 200:
                raise MediaDownloadError(f"Pexels search failed with status {response.status}")
            data = await response.json()
        return data.get('videos') or []

    def select_video_file(self, videos: Iterable[dict], query: str) -> Optional[StockVideoMatch]:
        """First video that offers an hd file, preferring one as wide as the frame"""
        for video in videos:
            hd_files = [f for f in video.get('video_files', []) if f.get('quality') == 'hd' and f.get('link')]
            if not hd_files:
                continue
            exact = [f for f in hd_files if f.get('width') == self.frame.width]
            chosen = (exact or hd_files)[0]
            return StockVideoMatch(
                video_id=video.get('id', 0),
                query=query,
                url=chosen['link'],
                width=chosen.get('width'),
                height=chosen.get('height'),
            )
        return None

    async def find_suitable_video(self, segment: VideoSegment) -> StockVideoMatch:
        for query in self.search_queries(segment):
            try:
                videos = await self.search_videos(query)
            except (MediaDownloadError, aiohttp.ClientError, asyncio.TimeoutError) as e:
                self.logger.warning(f"Search failed for query '{query}': {e}")
                continue

            match = self.select_video_file(videos, query)
            if match:
                self.logger.info(f"Segment {segment.id}: using Pexels video {match.video_id} for '{query}'")
                return match

        raise NoSuitableMediaError("No suitable media found after multiple search attempts")

    async def download_video(self, url: str, destination: Path) -> Path:
        """Stream a stock clip to disk, transport failures become MediaDownloadError"""
        # Large files: bound each read, not the whole transfer
        timeout = aiohttp.ClientTimeout(total=None, sock_connect=self.request_timeout,
                                        sock_read=self.request_timeout)
        try:
            async with self._require_session().get(url, timeout=timeout) as response:
                if response.status != 200:
                    raise MediaDownloadError(f"Video download failed: {response.status}")
                with open(destination, 'wb') as f:
                    async for chunk in response.content.iter_chunked(256 * 1024):
                        f.write(chunk)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            raise MediaDownloadError(f"Video download failed: {e!r}") from e
        return destination

    def build_drawtext_filter(self, text_file: Path, duration: float) -> str:
        frame = self.frame
        options = [
            f"textfile={_escape_filter_value(text_file)}",
            f"fontsize={frame.font_size}",
            "fontcolor=white",
            "x=(w-text_w)/2",
            "y=(h-text_h)/2",
            "borderw=2",
            "bordercolor=black",
            "expansion=none",
            "box=1",
            "boxcolor=black@0.5",
            f"boxborderw={max(1, int(frame.height * 0.02))}",
            f"enable='between(t,0,{duration})'",
        ]
        if frame.font:
            options.insert(1, f"fontfile={_escape_filter_value(Path(frame.font).resolve())}")
        return "drawtext=" + ":".join(options)

    def _cleanup(self, paths: Iterable[Path]) -> None:
        for path in paths:
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                self.logger.warning(f"Could not remove temporary file {path}: {e}")

    async def create_segment(self, segment: VideoSegment) -> Path:
        """Render one captioned clip, returns its path"""
        match = await self.find_suitable_video(segment)

        temp_video = self.temp_dir / f"temp_{uuid.uuid4().hex}.mp4"
        text_file = self.temp_dir / f"text_{uuid.uuid4().hex}.txt"
        output_path = self.temp_dir / f"segment_{uuid.uuid4().hex}.mp4"

        try:
            await self.download_video(match.url, temp_video)

            text = wrap_text(segment.text, self.frame.font_size, self.frame.width,
                             self.char_width_ratio, self.text_width_margin)
            text_file.write_text(text, encoding='utf-8')

            await self.engine.run([
                '-i', str(temp_video),
                '-t', str(segment.duration),
                '-vf', self.build_drawtext_filter(text_file, segment.duration),
                '-c:v', 'libx264',
                '-preset', 'medium',
                '-crf', '23',
                '-an',
                str(output_path),
            ], description=f"segment {segment.id}")
        except Exception:
            self._cleanup([output_path])
            raise
        finally:
            self._cleanup([temp_video, text_file])

        self.logger.info(f"Segment {segment.id} rendered: {output_path}")
        return output_path
