"""Thin async wrapper around the ffmpeg and ffprobe binaries"""

import asyncio
import logging
from pathlib import Path
from typing import List, Sequence, Union

import ffmpeg

from ..errors import EngineError

logger = logging.getLogger(__name__)

BASE_OPTIONS = ['-hide_banner', '-loglevel', 'error', '-y']


class FFmpegEngine:
    """Runs ffmpeg command lines and probes media files"""

    def __init__(self, ffmpeg_binary: str = 'ffmpeg', ffprobe_binary: str = 'ffprobe'):
        self.ffmpeg_binary = ffmpeg_binary
        self.ffprobe_binary = ffprobe_binary

    def build_command(self, args: Sequence[str]) -> List[str]:
        return [self.ffmpeg_binary, *BASE_OPTIONS, *[str(a) for a in args]]

    async def run(self, args: Sequence[str], description: str = 'ffmpeg') -> None:
        """Run ffmpeg with the given arguments (binary and base options are added)"""
        await self.run_command(self.build_command(args), description)

    async def run_command(self, cmd: Sequence[str], description: str = 'ffmpeg') -> None:
        """Run an already complete command line"""
        logger.debug(f"{description}: {' '.join(str(c) for c in cmd)}")

        process = await asyncio.create_subprocess_exec(
            *[str(c) for c in cmd],
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE
        )
        stdout, stderr = await process.communicate()

        if process.returncode != 0:
            error_output = stderr.decode(errors='replace').strip()
            logger.error(f"{description} failed: {error_output}")
            raise EngineError(
                f"FFmpeg error: {description} exited with code {process.returncode}",
                returncode=process.returncode,
                stderr=error_output,
            )

    async def probe_duration(self, media_path: Union[str, Path]) -> float:
        """Duration of a media file in seconds"""
        try:
            probe = await asyncio.to_thread(ffmpeg.probe, str(media_path), cmd=self.ffprobe_binary)
        except ffmpeg.Error as e:
            error_msg = e.stderr.decode(errors='replace') if e.stderr else str(e)
            raise EngineError(f"FFmpeg error: probe failed for {media_path}", stderr=error_msg) from e

        duration = probe.get('format', {}).get('duration')
        if duration is None:
            streams = probe.get('streams') or [{}]
            duration = streams[0].get('duration')
        if duration is None:
            raise EngineError(f"FFmpeg error: no duration reported for {media_path}")
        return float(duration)
