"""
Unit tests for VideoGenerator
Compositor, stitcher and muxer are mocked
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from clip_creator.errors import MuxError, NoSuitableMediaError
from clip_creator.video_assembly.video_generator import VideoGenerator
from tests.helpers import make_segments


def make_compositor(side_effect):
    compositor = MagicMock()
    compositor.__aenter__ = AsyncMock(return_value=compositor)
    compositor.__aexit__ = AsyncMock(return_value=False)
    compositor.create_segment = AsyncMock(side_effect=side_effect)
    return compositor


@pytest.fixture
def rendered(pipeline_config):
    """create_segment stand-in that writes a clip per segment id"""
    async def render(segment):
        path = pipeline_config.temp_dir / f"segment_{segment.id}.mp4"
        path.write_bytes(b"clip")
        return path
    return render


@pytest.fixture
def stitcher(pipeline_config):
    async def stitch(paths, segments):
        path = pipeline_config.temp_dir / "with_transitions_test.mp4"
        path.write_bytes(b"stitched")
        return path

    mock = MagicMock()
    mock.combine_videos_with_transitions = AsyncMock(side_effect=stitch)
    return mock


@pytest.fixture
def muxer():
    mock = MagicMock()
    mock.combine_video_and_audio = AsyncMock()
    return mock


class TestVideoGenerator:

    @pytest.mark.asyncio
    async def test_generates_final_video_and_cleans_intermediates(self, pipeline_config, rendered,
                                                                  stitcher, muxer, mock_engine, tmp_path):
        compositor = make_compositor(rendered)
        generator = VideoGenerator(pipeline_config, engine=mock_engine, compositor=compositor,
                                   stitcher=stitcher, muxer=muxer)
        segments = make_segments(["fade", "dissolve", "pixelize"])
        audio = tmp_path / "music.mp3"

        output = await generator.generate_video(segments, audio)

        assert output.parent == pipeline_config.output_dir
        assert output.name.startswith("final_")
        compositor.__aenter__.assert_awaited_once()
        compositor.__aexit__.assert_awaited_once()

        clip_paths, passed_segments = stitcher.combine_videos_with_transitions.call_args.args
        assert [p.name for p in clip_paths] == ["segment_1.mp4", "segment_2.mp4", "segment_3.mp4"]
        assert passed_segments == segments

        muxer.combine_video_and_audio.assert_awaited_once_with(
            audio, pipeline_config.temp_dir / "with_transitions_test.mp4", output
        )
        assert list(pipeline_config.temp_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_explicit_output_path(self, pipeline_config, rendered, stitcher, muxer, mock_engine, tmp_path):
        generator = VideoGenerator(pipeline_config, engine=mock_engine, compositor=make_compositor(rendered),
                                   stitcher=stitcher, muxer=muxer)
        target = tmp_path / "mine.mp4"

        assert await generator.generate_video(make_segments(["fade"] * 3), tmp_path / "a.mp3", target) == target

    @pytest.mark.asyncio
    async def test_segment_failure_aborts_before_stitching(self, pipeline_config, rendered,
                                                           stitcher, muxer, mock_engine, tmp_path):
        async def render_or_fail(segment):
            if segment.id == 2:
                raise NoSuitableMediaError("No suitable media found after multiple search attempts")
            return await rendered(segment)

        generator = VideoGenerator(pipeline_config, engine=mock_engine, compositor=make_compositor(render_or_fail),
                                   stitcher=stitcher, muxer=muxer)

        with pytest.raises(NoSuitableMediaError):
            await generator.generate_video(make_segments(["fade"] * 3), tmp_path / "music.mp3")

        stitcher.combine_videos_with_transitions.assert_not_called()
        muxer.combine_video_and_audio.assert_not_called()
        assert list(pipeline_config.temp_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_mux_failure_still_cleans_intermediates(self, pipeline_config, rendered,
                                                          stitcher, muxer, mock_engine, tmp_path):
        muxer.combine_video_and_audio.side_effect = MuxError("FFmpeg error: muxing exited with code 1")
        generator = VideoGenerator(pipeline_config, engine=mock_engine, compositor=make_compositor(rendered),
                                   stitcher=stitcher, muxer=muxer)

        with pytest.raises(MuxError):
            await generator.generate_video(make_segments(["fade"] * 3), tmp_path / "music.mp3")

        assert list(pipeline_config.temp_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_parallelism_is_bounded(self, pipeline_config, stitcher, muxer, mock_engine):
        running = 0
        peak = 0

        async def slow_render(segment):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1
            return pipeline_config.temp_dir / f"segment_{segment.id}.mp4"

        generator = VideoGenerator(pipeline_config, engine=mock_engine, compositor=make_compositor(slow_render),
                                   stitcher=stitcher, muxer=muxer, max_parallel_segments=2)

        paths = await generator.create_segments(make_segments(["fade"] * 6))

        assert len(paths) == 6
        assert peak <= 2
