"""
app/api/routers package marker.
"""

from app.api.routers.pricing_files import router as pricing_files_router

__all__ = [
    "pricing_files_router",
]
