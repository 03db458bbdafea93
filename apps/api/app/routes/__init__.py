"""Route modules."""

from .auth import router as auth_router
from .health import router as health_router
from .news import router as news_router

__all__ = ["auth_router", "health_router", "news_router"]
