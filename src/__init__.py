"""
SurfCoach AI - client-side core of an AI surf coaching app.

This package contains:
- core: Frame sampling and analysis orchestration (framework-agnostic)
- infrastructure: Frame capture backends, backend HTTP client, session storage
- api: Local FastAPI surface for the presentation layer
- config: Application configuration
"""

__version__ = "0.1.0"
