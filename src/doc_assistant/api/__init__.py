"""
API Module

FastAPI application exposing chat, document ingestion and Slack diagnostics.
"""

from .app import create_app
from .routes import router

__all__ = ["create_app", "router"]
