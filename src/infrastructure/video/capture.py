"""
Frame capture backends.

Two interchangeable ways to grab a still from a local video:

- FFmpegFrameCapture: asks ffmpeg for a single-frame thumbnail at a
  timestamp, through a temporary file.
- OpenCVFrameCapture: opens the video with OpenCV, seeks, grabs and
  re-encodes the frame in memory.

Both satisfy core.analysis.frames.FrameCapture and produce JPEG bytes.
Which one is used is decided once, at configuration time, by
create_frame_capture(); the sampler never branches on it.
"""

import asyncio
import logging
import os
import subprocess
import tempfile
from pathlib import Path

import cv2

from src.core.analysis.errors import CaptureUnavailableError, FrameCaptureError
from src.core.analysis.models import VideoResource

logger = logging.getLogger(__name__)


def _local_path(video: VideoResource) -> Path:
    """Strip a file:// scheme; everything else is taken as a path."""
    uri = video.uri
    if uri.startswith("file://"):
        uri = uri[len("file://"):]
    return Path(uri)


def _check_readable(path: Path) -> None:
    if not path.exists():
        raise CaptureUnavailableError(f"Video file not found: {path}")
    if not os.access(path, os.R_OK):
        raise CaptureUnavailableError(f"Permission denied reading video: {path}")


class FFmpegFrameCapture:
    """
    Frame capture using the ffmpeg binary.

    Each frame is written to a temporary directory, read back, and the
    directory is removed whether or not ffmpeg succeeded.
    """

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        quality: int = 2,  # 2-31, lower is better
        width: int = 640,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._ffmpeg = ffmpeg_path
        self._quality = quality
        self._width = width
        self._timeout = timeout_seconds

    async def ensure_available(self, video: VideoResource) -> None:
        _check_readable(_local_path(video))

        try:
            result = await asyncio.to_thread(
                subprocess.run,
                [self._ffmpeg, "-version"],
                capture_output=True,
                timeout=5,
            )
        except FileNotFoundError:
            raise CaptureUnavailableError(
                "FFmpeg not found. Install with: apt-get install ffmpeg"
            )
        except subprocess.TimeoutExpired:
            raise CaptureUnavailableError("FFmpeg did not respond")

        if result.returncode != 0:
            raise CaptureUnavailableError("FFmpeg not working properly")

    async def capture_frame(self, video: VideoResource, timestamp_ms: int) -> bytes:
        video_path = _local_path(video)

        with tempfile.TemporaryDirectory() as output_dir:
            output_path = os.path.join(output_dir, f"frame_{timestamp_ms}.jpg")

            # -ss before -i for fast seeking
            cmd = [
                self._ffmpeg,
                "-ss", f"{timestamp_ms / 1000:.3f}",
                "-i", str(video_path),
                "-frames:v", "1",
                "-vf", f"scale={self._width}:-2",
                "-q:v", str(self._quality),
                "-y",
                output_path,
            ]

            try:
                result = await asyncio.to_thread(
                    subprocess.run,
                    cmd,
                    capture_output=True,
                    timeout=self._timeout,
                )
            except subprocess.TimeoutExpired:
                raise FrameCaptureError(f"ffmpeg timed out at {timestamp_ms}ms")

            if result.returncode != 0 or not os.path.exists(output_path):
                stderr = result.stderr.decode(errors="replace").strip()
                raise FrameCaptureError(
                    f"ffmpeg failed at {timestamp_ms}ms: {stderr[-200:]}"
                )

            with open(output_path, "rb") as f:
                return f.read()


class OpenCVFrameCapture:
    """
    Frame capture using OpenCV.

    Seeks by position in milliseconds, draws the frame into a fixed
    size and encodes it as JPEG in memory. No temporary files.
    """

    def __init__(self, width: int = 640, height: int = 360, jpeg_quality: int = 70) -> None:
        self._size = (width, height)
        self._jpeg_quality = jpeg_quality

    async def ensure_available(self, video: VideoResource) -> None:
        path = _local_path(video)
        _check_readable(path)
        opened = await asyncio.to_thread(self._can_open, str(path))
        if not opened:
            raise CaptureUnavailableError(f"OpenCV cannot open video: {path}")

    async def capture_frame(self, video: VideoResource, timestamp_ms: int) -> bytes:
        return await asyncio.to_thread(self._grab, str(_local_path(video)), timestamp_ms)

    @staticmethod
    def _can_open(path: str) -> bool:
        cap = cv2.VideoCapture(path)
        try:
            return cap.isOpened()
        finally:
            cap.release()

    def _grab(self, path: str, timestamp_ms: int) -> bytes:
        cap = cv2.VideoCapture(path)
        try:
            if not cap.isOpened():
                raise FrameCaptureError(f"Cannot open video: {path}")
            cap.set(cv2.CAP_PROP_POS_MSEC, float(timestamp_ms))
            ok, frame = cap.read()
            if not ok or frame is None:
                raise FrameCaptureError(f"No frame decoded at {timestamp_ms}ms")

            frame = cv2.resize(frame, self._size)
            ok, buffer = cv2.imencode(
                ".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), self._jpeg_quality]
            )
            if not ok:
                raise FrameCaptureError(f"JPEG encoding failed at {timestamp_ms}ms")
            return buffer.tobytes()
        finally:
            cap.release()


# JPEG start/end markers around a marker payload, enough for anything
# that sniffs magic bytes
PLACEHOLDER_JPEG = b"\xff\xd8\xff\xe0" + b"surfcoach-mock-frame" + b"\xff\xd9"


class MockFrameCapture:
    """
    Capture backend for local development and tests.

    Returns a placeholder JPEG for every timestamp, except the ones
    listed in failing_timestamps. Requested timestamps are recorded in
    order so callers can assert on them.
    """

    def __init__(
        self,
        failing_timestamps: tuple[int, ...] = (),
        unavailable: bool = False,
    ) -> None:
        self.failing_timestamps = set(failing_timestamps)
        self.unavailable = unavailable
        self.requested: list[int] = []
        logger.info("Initialized mock frame capture")

    async def ensure_available(self, video: VideoResource) -> None:
        if self.unavailable:
            raise CaptureUnavailableError("Mock capture marked unavailable")

    async def capture_frame(self, video: VideoResource, timestamp_ms: int) -> bytes:
        self.requested.append(timestamp_ms)
        if timestamp_ms in self.failing_timestamps:
            raise FrameCaptureError(f"Mock failure at {timestamp_ms}ms")
        return PLACEHOLDER_JPEG


CAPTURE_BACKENDS = ("ffmpeg", "opencv", "mock")


def create_frame_capture(backend: str = "ffmpeg", ffmpeg_path: str = "ffmpeg"):
    """
    Factory function for frame capture.

    Args:
        backend: "ffmpeg", "opencv" or "mock"
        ffmpeg_path: Path to the ffmpeg binary, used by the ffmpeg backend
    """
    if backend == "ffmpeg":
        return FFmpegFrameCapture(ffmpeg_path=ffmpeg_path)
    if backend == "opencv":
        return OpenCVFrameCapture()
    if backend == "mock":
        return MockFrameCapture()
    raise ValueError(f"Unknown capture backend: {backend!r}")
