# backend/modules/analytics/routers/__init__.py

from .bi_router import router as bi_router

__all__ = ["bi_router"]
