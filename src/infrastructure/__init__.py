"""
Infrastructure layer - external service integrations.

Each subdirectory wraps an external dependency:
- video: Frame capture (FFmpeg, OpenCV)
- backend: SurfCoach REST API (requests)
- storage: Local session persistence

These wrappers translate between external formats and our domain models.
"""
