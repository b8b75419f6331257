"""
Video frame capture infrastructure.

Implements the FrameCapture protocol from core.analysis.frames with
FFmpeg or OpenCV, plus a mock for development.
"""

from .capture import (
    CAPTURE_BACKENDS,
    FFmpegFrameCapture,
    MockFrameCapture,
    OpenCVFrameCapture,
    create_frame_capture,
)

__all__ = [
    "CAPTURE_BACKENDS",
    "FFmpegFrameCapture",
    "MockFrameCapture",
    "OpenCVFrameCapture",
    "create_frame_capture",
]
