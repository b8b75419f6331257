"""
Video frame sampling.

The sampler picks N evenly spaced positions in a video and turns each one
into a base64 JPEG. Positions are i/(N+1) for i in 1..N, so the very first
and last instants (black frames, fades, transitions) are never sampled.

How a frame is actually grabbed depends on the platform, so it is a
capability passed in from outside (see infrastructure.video.capture).
The sampling algorithm below is the same whichever capture is plugged in.
"""

import asyncio
import base64
import logging
from typing import Protocol

from .errors import FrameCaptureError
from .models import SampledFrame, VideoResource

logger = logging.getLogger(__name__)

DEFAULT_FRAME_COUNT = 4
FALLBACK_DURATION_MS = 10_000


class FrameCapture(Protocol):
    """
    Interface for platform frame grabbers.

    ensure_available() raises CaptureUnavailableError when the video
    cannot be captured at all. capture_frame() raises FrameCaptureError
    when one timestamp fails.
    """

    async def ensure_available(self, video: VideoResource) -> None:
        ...

    async def capture_frame(self, video: VideoResource, timestamp_ms: int) -> bytes:
        """Return encoded JPEG bytes of the frame at timestamp_ms."""
        ...


def compute_sample_ratios(frame_count: int) -> list[float]:
    """Normalized positions in (0, 1) for frame_count evenly spaced frames."""
    if frame_count < 1:
        raise ValueError("frame_count must be at least 1")
    return [i / (frame_count + 1) for i in range(1, frame_count + 1)]


def compute_sample_timestamps(duration_ms: int, frame_count: int) -> list[int]:
    """
    Absolute timestamps in milliseconds, floored.

    Integer arithmetic keeps floor(duration * i / (N+1)) exact, which
    float ratios would not for values like 0.6 * 12000.
    """
    if frame_count < 1:
        raise ValueError("frame_count must be at least 1")
    return [
        (duration_ms * i) // (frame_count + 1)
        for i in range(1, frame_count + 1)
    ]


class FrameSampler:
    """
    Collects evenly spaced frames from a video, best effort.

    Captures happen one after the other, in time order, because the
    output order must equal time order. A failed or timed out capture
    is logged and skipped; the result may therefore be shorter than
    requested, or empty.
    """

    def __init__(
        self,
        capture: FrameCapture,
        fallback_duration_ms: int = FALLBACK_DURATION_MS,
        capture_timeout_seconds: float | None = 15.0,
    ) -> None:
        if fallback_duration_ms <= 0:
            raise ValueError("fallback_duration_ms must be positive")
        self._capture = capture
        self._fallback_duration_ms = fallback_duration_ms
        self._capture_timeout = capture_timeout_seconds

    def resolve_duration(self, video: VideoResource) -> int:
        if video.duration_known:
            return int(video.duration_ms)
        logger.info(
            "Video duration unknown, using fallback",
            extra={"uri": video.uri, "fallback_ms": self._fallback_duration_ms},
        )
        return self._fallback_duration_ms

    async def sample(
        self,
        video: VideoResource,
        frame_count: int = DEFAULT_FRAME_COUNT,
    ) -> list[SampledFrame]:
        """
        Sample frame_count frames from the video.

        CaptureUnavailableError from the capture capability propagates
        before any sampling starts. Per-frame failures of any kind are
        logged and skipped.
        """
        ratios = compute_sample_ratios(frame_count)
        duration_ms = self.resolve_duration(video)
        timestamps = compute_sample_timestamps(duration_ms, frame_count)

        await self._capture.ensure_available(video)

        frames: list[SampledFrame] = []
        for i, (ratio, timestamp_ms) in enumerate(zip(ratios, timestamps)):
            try:
                image = await asyncio.wait_for(
                    self._capture.capture_frame(video, timestamp_ms),
                    timeout=self._capture_timeout,
                )
            except FrameCaptureError as e:
                logger.warning(
                    f"Failed to capture frame at {ratio:.3f}: {e}",
                    extra={"uri": video.uri, "timestamp_ms": timestamp_ms},
                )
                continue
            except asyncio.TimeoutError:
                logger.warning(
                    f"Timed out capturing frame at {ratio:.3f}",
                    extra={"uri": video.uri, "timestamp_ms": timestamp_ms},
                )
                continue
            except Exception as e:
                # decoder crashes, cv2.error, OSError: still one bad frame
                logger.warning(
                    f"Unexpected error capturing frame at {ratio:.3f}: {e}",
                    extra={"uri": video.uri, "timestamp_ms": timestamp_ms},
                    exc_info=True,
                )
                continue

            frames.append(SampledFrame(
                index=i,
                ratio=ratio,
                timestamp_ms=timestamp_ms,
                data=base64.b64encode(image).decode("ascii"),
            ))

        logger.info(
            "Sampled video frames",
            extra={
                "uri": video.uri,
                "requested": frame_count,
                "captured": len(frames),
                "duration_ms": duration_ms,
            },
        )

        return frames
