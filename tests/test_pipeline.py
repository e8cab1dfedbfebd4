"""
Unit tests for the pipeline orchestrator
Every stage component is mocked
"""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from clip_creator.content_generation.content_models import ScriptResult
from clip_creator.errors import AudioGenerationError, ConfigurationError
from clip_creator.pipeline import PipelineStage, VideoPipeline, validate_pipeline_config
from clip_creator.utils.config import PipelineConfig
from tests.helpers import script_payload


@pytest.fixture
def components():
    script_generator = MagicMock()
    script_generator.generate_script = AsyncMock(
        return_value=ScriptResult.model_validate(script_payload(6))
    )
    audio_provider = MagicMock()
    audio_provider.generate_music = AsyncMock(return_value=Path("/tmp/audio/music.mp3"))
    video_generator = MagicMock()
    video_generator.generate_video = AsyncMock(return_value=Path("/tmp/final_abc.mp4"))
    return {
        "script_generator": script_generator,
        "audio_provider": audio_provider,
        "video_generator": video_generator,
    }


class TestValidation:

    def test_reports_every_missing_field_in_order(self):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_pipeline_config(PipelineConfig(tone="Friendly/Casual"))

        assert str(exc_info.value) == (
            "Missing required configuration: FreeSound API Key, GROQ API Key, "
            "Pexels API Key, Category, Topic"
        )

    def test_whitespace_counts_as_missing(self, pipeline_config):
        config = pipeline_config.model_copy(update={"topic": "   "})
        with pytest.raises(ConfigurationError, match="Topic"):
            validate_pipeline_config(config)

    @pytest.mark.asyncio
    async def test_invalid_config_touches_nothing(self, components):
        callback = MagicMock()
        pipeline = VideoPipeline(PipelineConfig(), callback, **components)

        with patch("clip_creator.pipeline.ScriptGenerator") as script_cls, \
                patch("clip_creator.pipeline.AudioProvider") as audio_cls, \
                patch("clip_creator.pipeline.VideoGenerator") as video_cls:
            with pytest.raises(ConfigurationError):
                await pipeline.run()

        script_cls.assert_not_called()
        audio_cls.assert_not_called()
        video_cls.assert_not_called()
        components["script_generator"].generate_script.assert_not_called()
        components["audio_provider"].generate_music.assert_not_called()
        assert pipeline.stage == PipelineStage.FAILED
        assert callback.call_args.args[0] == PipelineStage.FAILED


class TestRun:

    @pytest.mark.asyncio
    async def test_stages_run_in_order(self, pipeline_config, components):
        callback = MagicMock()
        pipeline = VideoPipeline(pipeline_config, callback, **components)

        result = await pipeline.run()

        assert result == Path("/tmp/final_abc.mp4")
        stages = [call.args[0] for call in callback.call_args_list]
        assert stages == [
            PipelineStage.VALIDATING,
            PipelineStage.SCRIPT_GENERATION,
            PipelineStage.AUDIO_GENERATION,
            PipelineStage.VIDEO_GENERATION,
            PipelineStage.DONE,
        ]
        assert pipeline.stage == PipelineStage.DONE
        assert set(pipeline.stage_timings) == {"script_generation", "audio_generation", "video_generation"}

    @pytest.mark.asyncio
    async def test_outputs_flow_between_stages(self, pipeline_config, components):
        await VideoPipeline(pipeline_config, **components).run()

        components["script_generator"].generate_script.assert_awaited_once_with(pipeline_config)
        components["audio_provider"].generate_music.assert_awaited_once_with("Food & Cooking")
        segments, audio_path = components["video_generator"].generate_video.call_args.args
        assert len(segments) == 6
        assert audio_path == Path("/tmp/audio/music.mp3")

    @pytest.mark.asyncio
    async def test_stage_error_is_reraised_unchanged(self, pipeline_config, components):
        error = AudioGenerationError("Max retries reached. Failed to generate music.")
        components["audio_provider"].generate_music.side_effect = error
        callback = MagicMock()
        pipeline = VideoPipeline(pipeline_config, callback, **components)

        with pytest.raises(AudioGenerationError) as exc_info:
            await pipeline.run()

        assert exc_info.value is error
        assert pipeline.stage == PipelineStage.FAILED
        callback.assert_called_with(PipelineStage.FAILED, str(error))
        components["video_generator"].generate_video.assert_not_called()
        assert "audio_generation" in pipeline.stage_timings
