"""
Unit tests for SegmentCompositor
Pexels and ffmpeg are mocked
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from clip_creator.errors import EngineError, MediaDownloadError, NoSuitableMediaError
from clip_creator.video_assembly.segment_compositor import SegmentCompositor, wrap_text
from clip_creator.video_assembly.video_models import FrameSettings
from tests.helpers import make_segments


def pexels_video(video_id, *files):
    return {
        "id": video_id,
        "video_files": [
            {"quality": quality, "width": width, "height": 1280, "link": f"http://pexels.test/{video_id}/{width}"}
            for quality, width in files
        ],
    }


@pytest.fixture
def compositor(tmp_path, mock_engine):
    return SegmentCompositor("pexels-key", tmp_path / "temp", engine=mock_engine)


class TestWrapText:

    def test_short_text_is_unchanged(self):
        assert wrap_text("Hello world", 48, 720) == "Hello world"

    def test_long_text_splits_near_the_middle(self):
        text = "one two three four five six seven eight"
        assert wrap_text(text, 48, 720) == "one two three four\nfive six seven eight"

    def test_single_word_is_never_split(self):
        word = "Supercalifragilisticexpialidocious"
        assert wrap_text(word, 48, 720) == word

    def test_ratio_is_tunable(self):
        text = "one two three four five six seven eight"
        assert "\n" not in wrap_text(text, 48, 720, char_width_ratio=0.1)


class TestSelectVideoFile:

    def test_prefers_frame_width(self, compositor):
        videos = [pexels_video(7, ("sd", 360), ("hd", 1080), ("hd", 720))]

        match = compositor.select_video_file(videos, "coffee")

        assert match.video_id == 7
        assert match.width == 720
        assert match.query == "coffee"

    def test_any_hd_file_when_width_differs(self, compositor):
        match = compositor.select_video_file([pexels_video(3, ("hd", 1080))], "tea")
        assert match.url == "http://pexels.test/3/1080"

    def test_skips_videos_without_hd(self, compositor):
        videos = [pexels_video(1, ("sd", 360)), pexels_video(2, ("hd", 1080))]
        assert compositor.select_video_file(videos, "q").video_id == 2

    def test_no_hd_at_all(self, compositor):
        assert compositor.select_video_file([pexels_video(1, ("sd", 360))], "q") is None


class TestFindSuitableVideo:

    @pytest.mark.asyncio
    async def test_falls_through_to_generic_queries(self, compositor, caplog):
        segment = make_segments(["fade"])[0]
        compositor.search_videos = AsyncMock(side_effect=[
            MediaDownloadError("Pexels search failed with status 500"),
            [],
            [pexels_video(9, ("hd", 720))],
        ])

        match = await compositor.find_suitable_video(segment)

        queries = [call.args[0] for call in compositor.search_videos.call_args_list]
        assert queries == ["city skyline 1", "Segment number 1 narration", "background"]
        assert match.query == "background"
        assert "Search failed for query 'city skyline 1'" in caplog.text

    @pytest.mark.asyncio
    async def test_exhausted_queries(self, compositor):
        segment = make_segments(["fade"])[0]
        compositor.search_videos = AsyncMock(return_value=[])

        with pytest.raises(NoSuitableMediaError, match="No suitable media found"):
            await compositor.find_suitable_video(segment)

        assert compositor.search_videos.call_count == len(compositor.search_queries(segment))

    @pytest.mark.asyncio
    async def test_search_needs_open_session(self, compositor):
        with pytest.raises(RuntimeError):
            await compositor.search_videos("anything")


class TestCreateSegment:

    @pytest.fixture
    def stubbed(self, compositor):
        compositor.find_suitable_video = AsyncMock(
            return_value=compositor.select_video_file([pexels_video(5, ("hd", 720))], "q")
        )

        async def fake_download(url, destination):
            destination.write_bytes(b"stock footage")
            return destination

        compositor.download_video = AsyncMock(side_effect=fake_download)
        return compositor

    @pytest.mark.asyncio
    async def test_renders_and_cleans_temporaries(self, stubbed, mock_engine):
        captured = {}

        async def fake_run(args, description=None):
            vf = args[args.index("-vf") + 1]
            text_path = vf.split("textfile=")[1].split(":")[0]
            captured["vf"] = vf
            captured["text"] = open(text_path.replace("\\", ""), encoding="utf-8").read()

        mock_engine.run.side_effect = fake_run
        segment = make_segments(["fade"])[0]

        output = await stubbed.create_segment(segment)

        assert output.parent == stubbed.temp_dir
        assert output.name.startswith("segment_")
        assert captured["text"] == "Segment number\n1 narration"
        assert "boxborderw=25" in captured["vf"]
        assert "enable='between(t,0,5" in captured["vf"]
        assert list(stubbed.temp_dir.glob("temp_*")) == []
        assert list(stubbed.temp_dir.glob("text_*")) == []

    @pytest.mark.asyncio
    async def test_engine_failure_cleans_everything(self, stubbed, mock_engine):
        async def failing_run(args, description=None):
            open(args[-1], "wb").close()
            raise EngineError("FFmpeg error: segment 1 exited with code 1", 1, "bad input")

        mock_engine.run.side_effect = failing_run

        with pytest.raises(EngineError):
            await stubbed.create_segment(make_segments(["fade"])[0])

        assert list(stubbed.temp_dir.iterdir()) == []

    def test_drawtext_uses_font_when_configured(self, tmp_path, mock_engine):
        frame = FrameSettings(font="fonts/Bold.ttf")
        compositor = SegmentCompositor("key", tmp_path / "temp", frame=frame, engine=mock_engine)

        drawtext = compositor.build_drawtext_filter(tmp_path / "text.txt", 5)

        assert drawtext.startswith("drawtext=textfile=")
        assert "fontfile=" in drawtext
        assert "fontsize=48" in drawtext
        assert "box=1" in drawtext

    @pytest.mark.asyncio
    async def test_caption_text_is_not_expanded(self, stubbed, mock_engine):
        captured = {}

        async def fake_run(args, description=None):
            captured["vf"] = args[args.index("-vf") + 1]
            text_path = captured["vf"].split("textfile=")[1].split(":")[0]
            captured["text"] = open(text_path.replace("\\", ""), encoding="utf-8").read()

        mock_engine.run.side_effect = fake_run
        segment = make_segments(["fade"])[0].model_copy(update={"text": "Over 50% of chefs use C:\\salt"})

        await stubbed.create_segment(segment)

        assert "expansion=none" in captured["vf"]
        assert "50%" in captured["text"]
        assert "C:\\salt" in captured["text"]


def streaming_session(status=200, chunks=(b"stock ", b"footage"), error=None):
    """aiohttp session stand-in whose get() streams the given chunks"""
    async def iter_chunked(size):
        for chunk in chunks:
            yield chunk
        if error is not None:
            raise error

    response = MagicMock()
    response.status = status
    response.content.iter_chunked = iter_chunked

    request = MagicMock()
    request.__aenter__ = AsyncMock(return_value=response)
    request.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock()
    session.get = MagicMock(return_value=request)
    return session


class TestDownloadVideo:

    @pytest.mark.asyncio
    async def test_streams_to_destination(self, compositor, tmp_path):
        compositor.session = streaming_session()
        destination = tmp_path / "clip.mp4"

        assert await compositor.download_video("http://pexels.test/1", destination) == destination
        assert destination.read_bytes() == b"stock footage"

    @pytest.mark.asyncio
    async def test_read_timeout_instead_of_total(self, compositor, tmp_path):
        compositor.session = streaming_session()

        await compositor.download_video("http://pexels.test/1", tmp_path / "clip.mp4")

        timeout = compositor.session.get.call_args.kwargs["timeout"]
        assert timeout.total is None
        assert timeout.sock_read == compositor.request_timeout

    @pytest.mark.asyncio
    async def test_bad_status(self, compositor, tmp_path):
        compositor.session = streaming_session(status=404)

        with pytest.raises(MediaDownloadError, match="404"):
            await compositor.download_video("http://pexels.test/1", tmp_path / "clip.mp4")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        aiohttp.ClientPayloadError("connection dropped"),
        asyncio.TimeoutError(),
    ])
    async def test_transport_errors_are_wrapped(self, compositor, tmp_path, error):
        compositor.session = streaming_session(error=error)

        with pytest.raises(MediaDownloadError) as exc_info:
            await compositor.download_video("http://pexels.test/1", tmp_path / "clip.mp4")

        assert exc_info.value.__cause__ is error

    @pytest.mark.asyncio
    async def test_search_timeout_moves_to_next_query(self, compositor):
        compositor.search_videos = AsyncMock(side_effect=[asyncio.TimeoutError(), [pexels_video(4, ("hd", 720))]])

        match = await compositor.find_suitable_video(make_segments(["fade"])[0])

        assert match.video_id == 4
