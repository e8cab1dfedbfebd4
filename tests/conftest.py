import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from clip_creator.utils.config import PipelineConfig


@pytest.fixture
def pipeline_config(tmp_path):
    """Complete configuration writing into a temporary directory"""
    return PipelineConfig(
        groq_key="groq-test-key",
        pexels_key="pexels-test-key",
        freesound_key="freesound-test-key",
        category="Food & Cooking",
        tone="Friendly/Casual",
        topic="Street food in Bangkok",
        duration=30,
        output_dir=tmp_path / "generated",
    )


@pytest.fixture
def mock_engine():
    """FFmpegEngine stand-in that never spawns a process"""
    engine = MagicMock()
    engine.ffmpeg_binary = "ffmpeg"
    engine.ffprobe_binary = "ffprobe"
    engine.run = AsyncMock()
    engine.run_command = AsyncMock()
    engine.probe_duration = AsyncMock(return_value=120.0)
    return engine


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep real API keys and .env files out of the tests"""
    for var in ("GROQ_API_KEY", "PEXELS_API_KEY", "FREESOUND_API_KEY",
                "CLIP_CREATOR_LLM_MODEL", "CLIP_CREATOR_LLM_BASE_URL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def restore_logging():
    """main() reconfigures the package logger, undo it after each test"""
    logger = logging.getLogger("clip_creator")
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
