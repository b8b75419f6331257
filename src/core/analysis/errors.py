"""
Exceptions raised by the analysis pipeline.

Infrastructure code translates library errors (subprocess, OpenCV,
requests) into these so the orchestrator never has to know which
capture strategy or HTTP stack produced them.
"""


class AnalysisError(Exception):
    """Base class for analysis pipeline errors."""
    pass


class CaptureUnavailableError(AnalysisError):
    """
    The capture capability cannot be used at all for this video.

    Missing permission, unreadable file, missing binary. Fatal for the
    attempt and raised before any frame is sampled.
    """
    pass


class FrameCaptureError(AnalysisError):
    """A single frame could not be captured. Not fatal on its own."""
    pass


class RemoteAnalysisError(AnalysisError):
    """
    The remote analysis call failed.

    message is meant for the user: it carries the server's own message
    when the server sent one.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AnalysisInProgressError(AnalysisError):
    """start() or select_video() called while an attempt is running."""
    pass


class NoVideoSelectedError(AnalysisError):
    """start() called before a video was selected."""
    pass
