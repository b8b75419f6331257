"""
Application configuration using Pydantic settings.

Configuration comes from environment variables or a .env file.
The mock capture backend allows running without FFmpeg or OpenCV.
"""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
