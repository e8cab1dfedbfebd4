"""Configuration management for the clip creation pipeline"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import ConfigurationError


CATEGORIES = [
    "Science & Technology",
    "Sports & Fitness",
    "Government & Politics",
    "Entertainment & Celebrities",
    "Education & Learning",
    "Video Games & Esports",
    "Travel & Tourism",
    "Health & Wellness",
    "World News",
    "Business & Finance",
    "Lifestyle & Culture",
    "Art & Design",
    "Environment & Sustainability",
    "Food & Cooking",
]

TONES = [
    "Professional/Formal",
    "Friendly/Casual",
    "Inspirational/Motivational",
    "Humorous/Witty",
    "Empathetic/Compassionate",
    "Analytical/Data-Driven",
    "Persuasive/Argumentative",
    "Informative/Educational",
    "Storytelling/Narrative",
    "Neutral/Objective",
    "Authoritative/Expert",
    "Curious/Exploratory",
]

DEFAULT_OUTPUT_DIR = "./clip-creator-generated"
DEFAULT_MODEL = "llama-3.3-70b-versatile"

ENV_KEYS = {
    "groq_key": "GROQ_API_KEY",
    "pexels_key": "PEXELS_API_KEY",
    "freesound_key": "FREESOUND_API_KEY",
}


def _split_terms(value: Any) -> Any:
    """Comma separated terms, or a JSON array when a term itself holds a comma"""
    if not isinstance(value, str):
        return value
    if value.lstrip().startswith("["):
        try:
            terms = json.loads(value)
        except json.JSONDecodeError:
            terms = None
        if isinstance(terms, list):
            return [str(t).strip() for t in terms if str(t).strip()]
    return [t.strip() for t in value.split(",") if t.strip()]


class PipelineConfig(BaseModel):
    """Fully resolved configuration for one video"""

    model_config = ConfigDict(protected_namespaces=())

    # Required (checked by the orchestrator before any external call)
    groq_key: str = ""
    pexels_key: str = ""
    freesound_key: str = ""
    category: str = ""
    tone: str = ""
    topic: str = ""

    # Script
    duration: int = Field(default=30, gt=0)
    key_terms: List[str] = Field(default_factory=list)
    require_fact_checking: bool = False
    model_name: str = DEFAULT_MODEL

    # Output
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)

    # Audio
    volume: float = Field(default=0.3, ge=0.0, le=1.0)
    fade_in_duration: float = Field(default=2.0, ge=0.0)
    fade_out_duration: float = Field(default=4.0, ge=0.0)

    # Video
    width: int = Field(default=720, gt=0)
    height: int = Field(default=1280, gt=0)
    fps: int = Field(default=30, gt=0, le=60)
    font: Optional[Path] = None
    font_size: int = Field(default=48, gt=0)

    # Engine
    ffmpeg_binary: str = "ffmpeg"
    ffprobe_binary: str = "ffprobe"

    @field_validator("key_terms", mode="before")
    @classmethod
    def split_key_terms(cls, value):
        return _split_terms(value)

    @property
    def temp_dir(self) -> Path:
        return self.output_dir / "temp"

    @property
    def audio_dir(self) -> Path:
        return self.output_dir / "audio"

    @property
    def orientation(self) -> str:
        return "landscape" if self.width >= self.height else "portrait"


class PartialPipelineConfig(BaseModel):
    """Configuration from a single source where every field may be absent"""

    model_config = ConfigDict(extra="forbid", protected_namespaces=())

    groq_key: Optional[str] = None
    pexels_key: Optional[str] = None
    freesound_key: Optional[str] = None
    category: Optional[str] = None
    tone: Optional[str] = None
    topic: Optional[str] = None
    duration: Optional[int] = None
    key_terms: Optional[List[str]] = None
    require_fact_checking: Optional[bool] = None
    model_name: Optional[str] = None
    output_dir: Optional[Path] = None
    volume: Optional[float] = None
    fade_in_duration: Optional[float] = None
    fade_out_duration: Optional[float] = None
    width: Optional[int] = None
    height: Optional[int] = None
    fps: Optional[int] = None
    font: Optional[Path] = None
    font_size: Optional[int] = None
    ffmpeg_binary: Optional[str] = None
    ffprobe_binary: Optional[str] = None

    @field_validator("key_terms", mode="before")
    @classmethod
    def split_key_terms(cls, value):
        return _split_terms(value)

    @classmethod
    def load(cls, config_path: str) -> "PartialPipelineConfig":
        """Load defaults from a YAML (or JSON) file"""
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        with open(config_file, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        if not isinstance(config_data, dict):
            raise ConfigurationError(f"Configuration file must contain a mapping: {config_path}")

        invalid_keys = sorted(set(config_data) - set(cls.model_fields))
        if invalid_keys:
            raise ConfigurationError(
                f"Invalid keys provided in config for these keys: {', '.join(invalid_keys)}"
            )

        try:
            return cls(**config_data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration file {config_path}: {e}") from e

    @classmethod
    def from_env(cls) -> "PartialPipelineConfig":
        """Read API credentials from the environment (.env and .env.local included)"""
        load_dotenv(dotenv_path=Path.cwd() / ".env")
        load_dotenv(dotenv_path=Path.cwd() / ".env.local")
        return cls(**{field: os.getenv(var) or None for field, var in ENV_KEYS.items()})

    def defined(self) -> Dict[str, Any]:
        """Fields that carry a value"""
        return {k: v for k, v in self.model_dump().items() if v is not None}


def merge_config(*sources: PartialPipelineConfig) -> PipelineConfig:
    """Resolve a full configuration, the first source defining a field wins.

    Sources are given most specific first (direct arguments, then file
    defaults, then environment). Fields nobody defines keep the
    PipelineConfig default.
    """
    values: Dict[str, Any] = {}
    for source in sources:
        for key, value in source.defined().items():
            values.setdefault(key, value)
    try:
        return PipelineConfig(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


class BatchSettings(BaseModel):
    """Settings for batch runs"""
    max_concurrent: int = Field(default_factory=lambda: max(1, (os.cpu_count() or 1) - 1), ge=1)
    task_timeout: float = Field(default=900.0, gt=0)
