#!/usr/bin/env python3
"""
Run one surf analysis from the command line.

Samples frames from a local video, sends them to the SurfCoach backend
and prints the result as JSON. Cosmetic progress delays are skipped.

Usage:
    python scripts/analyze_video.py path/to/video.mp4 --duration-ms 12000
    python scripts/analyze_video.py clip.mov --spot "Banzai Pipeline" --lang en

Requires:
    - .env file (or environment) with BACKEND_URL and, for a logged-in
      session, SESSION_STORE_PATH pointing at a saved session
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Add project root to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from src.config.settings import get_settings
from src.core.analysis.frames import FrameSampler
from src.core.analysis.models import OutcomeStatus, ProgressEvent, VideoResource
from src.core.analysis.orchestrator import AnalysisOrchestrator, OrchestratorConfig
from src.infrastructure.backend.client import create_backend_client
from src.infrastructure.storage.session_store import create_session_store
from src.infrastructure.video.capture import CAPTURE_BACKENDS, create_frame_capture


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Analyze a surf video with the AI coach.")
    parser.add_argument("video", help="Path to a local video file")
    parser.add_argument("--duration-ms", type=float, default=None,
                        help="Video duration in ms (fallback duration if omitted)")
    parser.add_argument("--frames", type=int, default=settings.frame_count,
                        help="Number of frames to sample")
    parser.add_argument("--spot", default="", help="Surf spot name")
    parser.add_argument("--lang", default=settings.analysis_language, help="Language tag")
    parser.add_argument("--capture", choices=CAPTURE_BACKENDS, default=settings.capture_backend,
                        help="Frame capture backend")
    return parser.parse_args(argv)


def print_progress(event: ProgressEvent) -> None:
    print(f"[{event.step_index + 1}/{event.total_steps}] {event.label}", file=sys.stderr)


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()

    store = create_session_store(settings.session_store_path)
    client = create_backend_client(
        session_store=store,
        base_url=settings.backend_url,
        timeout_seconds=settings.backend_timeout_seconds,
    )
    sampler = FrameSampler(
        create_frame_capture(args.capture, ffmpeg_path=settings.ffmpeg_path),
        fallback_duration_ms=settings.fallback_duration_ms,
        capture_timeout_seconds=settings.capture_timeout_seconds,
    )
    orchestrator = AnalysisOrchestrator(
        sampler=sampler,
        analysis_service=client,
        quota_provider=client,
        config=OrchestratorConfig(
            frame_count=args.frames,
            transition_delay_seconds=0,
            finalize_delay_seconds=0,
            analysis_timeout_seconds=settings.backend_timeout_seconds,
            language=args.lang,
        ),
        on_progress=print_progress,
    )

    orchestrator.select_video(VideoResource(
        uri=args.video,
        duration_ms=args.duration_ms,
        filename=Path(args.video).name,
    ))
    outcome = await orchestrator.start(spot_name=args.spot)

    if outcome.status == OutcomeStatus.COMPLETE:
        print(json.dumps(outcome.result.to_dict(), indent=2, ensure_ascii=False))
        return 0

    print(f"ERROR ({outcome.error_kind.value}): {outcome.message}", file=sys.stderr)
    return 2 if outcome.status == OutcomeStatus.QUOTA_EXCEEDED else 1


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=get_settings().log_level.upper(),
    )
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
