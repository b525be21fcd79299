"""
API route modules.
"""

from registrar.api.routes.duplicates import router as duplicates_router

__all__ = [
    "duplicates_router",
]
