"""Combines the stitched video track with the background music"""

from pathlib import Path
from typing import List, Optional, Union

import ffmpeg

from ..errors import EngineError, InvalidMediaFormatError, MediaNotFoundError, MuxError
from ..utils.logger import LoggerMixin
from .ffmpeg_engine import FFmpegEngine

PathLike = Union[str, Path]

EXPECTED_EXTENSIONS = {
    'video': '.mp4',
    'audio': '.mp3',
}


def validate_media_path(path: Optional[PathLike], media_type: str) -> Path:
    """Extension check first (no filesystem access), then existence"""
    if not path or not str(path).lower().endswith(EXPECTED_EXTENSIONS[media_type]):
        raise InvalidMediaFormatError(f"Invalid {media_type} file format")
    path = Path(path)
    if not path.exists():
        raise MediaNotFoundError(f"{media_type.capitalize()} file not found: {path}")
    return path


class Muxer(LoggerMixin):
    """Puts the audio track under the video without re-encoding the picture"""

    def __init__(self, engine: Optional[FFmpegEngine] = None):
        self.engine = engine or FFmpegEngine()

    def build_command(self, audio_path: PathLike, video_path: PathLike,
                      output_path: PathLike) -> List[str]:
        video = ffmpeg.input(str(video_path))
        audio = ffmpeg.input(str(audio_path))
        stream = (
            ffmpeg
            .output(video['v'], audio['a'], str(output_path),
                    shortest=None, movflags='+faststart', **{'c:v': 'copy', 'c:a': 'aac'})
            .global_args('-hide_banner', '-loglevel', 'error')
            .overwrite_output()
        )
        return stream.compile(cmd=self.engine.ffmpeg_binary)

    async def combine_video_and_audio(self, audio_path: PathLike, video_path: PathLike,
                                      output_path: PathLike) -> PathLike:
        """Mux audio under video, returns output_path as given"""
        video = validate_media_path(video_path, 'video')
        audio = validate_media_path(audio_path, 'audio')

        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        self.logger.info(f"Combining {video.name} with {audio.name}")

        try:
            await self.engine.run_command(self.build_command(audio, video, output_path),
                                          description='muxing')
        except EngineError as e:
            raise MuxError(f"{e}\nStderr: {e.stderr}") from e

        self.logger.info(f"Final video saved to {output_path}")
        return output_path
