"""
FastAPI Backend for the Tax Engine

Provides REST API endpoints for tax, penalty and liability calculations.
"""

from .main import app

__all__ = ["app"]
