"""
app/api/routers package marker.
"""

from app.api.routers.datasets import router as datasets_router

__all__ = [
    "datasets_router",
]
