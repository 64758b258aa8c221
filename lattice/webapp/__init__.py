"""
HTTP API for the content pipeline.
Provides FastAPI endpoints for submitting videos and browsing derived content.
"""

from webapp.api import create_app

__all__ = ["create_app"]
