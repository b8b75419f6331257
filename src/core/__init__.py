"""
Core business logic for surf coaching.

This module is framework-agnostic - it doesn't import FastAPI, requests,
OpenCV or any infrastructure concerns. Capture and network access come in
through small protocols, so the pipeline can be tested with fakes.
"""
