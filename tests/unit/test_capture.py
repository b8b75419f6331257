"""
Unit tests for the frame capture backends.

Only the paths that need no real video are covered here: backend
selection, the mock, and availability checks on missing files.
"""

import asyncio

import pytest

from src.core.analysis.errors import CaptureUnavailableError, FrameCaptureError
from src.core.analysis.models import VideoResource
from src.infrastructure.video.capture import (
    PLACEHOLDER_JPEG,
    FFmpegFrameCapture,
    MockFrameCapture,
    OpenCVFrameCapture,
    create_frame_capture,
)


class TestCreateFrameCapture:
    @pytest.mark.parametrize("backend, expected", [
        ("ffmpeg", FFmpegFrameCapture),
        ("opencv", OpenCVFrameCapture),
        ("mock", MockFrameCapture),
    ])
    def test_known_backends(self, backend, expected):
        assert isinstance(create_frame_capture(backend), expected)

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown capture backend"):
            create_frame_capture("gstreamer")


class TestMockFrameCapture:
    def test_returns_placeholder_and_records(self):
        capture = MockFrameCapture()
        video = VideoResource(uri="clip.mp4")

        data = asyncio.run(capture.capture_frame(video, 1500))

        assert data == PLACEHOLDER_JPEG
        assert data.startswith(b"\xff\xd8")
        assert capture.requested == [1500]

    def test_failing_timestamp(self):
        capture = MockFrameCapture(failing_timestamps=(1500,))

        with pytest.raises(FrameCaptureError):
            asyncio.run(capture.capture_frame(VideoResource(uri="clip.mp4"), 1500))


class TestAvailability:
    @pytest.mark.parametrize("capture", [FFmpegFrameCapture(), OpenCVFrameCapture()])
    def test_missing_file_is_unavailable(self, capture, tmp_path):
        video = VideoResource(uri=str(tmp_path / "missing.mp4"))

        with pytest.raises(CaptureUnavailableError, match="not found"):
            asyncio.run(capture.ensure_available(video))

    def test_file_uri_scheme_is_stripped(self, tmp_path):
        video = VideoResource(uri=f"file://{tmp_path}/missing.mp4")

        with pytest.raises(CaptureUnavailableError) as exc_info:
            asyncio.run(FFmpegFrameCapture().ensure_available(video))

        assert "file://" not in str(exc_info.value)

    def test_missing_ffmpeg_binary(self, tmp_path):
        video_path = tmp_path / "clip.mp4"
        video_path.write_bytes(b"\x00")
        capture = FFmpegFrameCapture(ffmpeg_path=str(tmp_path / "no-ffmpeg"))

        with pytest.raises(CaptureUnavailableError, match="FFmpeg not found"):
            asyncio.run(capture.ensure_available(VideoResource(uri=str(video_path))))
