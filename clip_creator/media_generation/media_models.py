"""Data models for audio track lookup"""

from typing import Dict, Optional

from pydantic import BaseModel, Field


class AudioTrackInfo(BaseModel):
    """One search result from the FreeSound text search"""
    id: int
    name: str = ""
    username: str = ""
    duration: float = 0.0
    previews: Dict[str, str] = Field(default_factory=dict)

    @property
    def preview_url(self) -> Optional[str]:
        """High quality mp3 preview, falling back to low quality"""
        return self.previews.get("preview-hq-mp3") or self.previews.get("preview-lq-mp3")


class AudioSettings(BaseModel):
    """Post-processing applied to the downloaded track"""
    volume: float = Field(default=0.3, ge=0.0, le=1.0)
    fade_in_duration: float = Field(default=2.0, ge=0.0)
    fade_out_duration: float = Field(default=4.0, ge=0.0)
    sample_rate: int = 44100
    channels: int = 2
    codec: str = "libmp3lame"
    output_format: str = "mp3"
