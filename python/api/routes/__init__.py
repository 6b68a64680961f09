"""
API Routes Package

Contains the route modules for the tax engine API.
"""

from .tax import router as tax_router

__all__ = [
    "tax_router",
]
