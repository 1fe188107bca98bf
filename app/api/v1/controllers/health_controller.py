from app.core.config import settings


async def health_check():
    """Liveness probe with the active store backend."""
    return {
        "status": "ok",
        "store_backend": settings.STORE_BACKEND,
        "adaptation_strategy": settings.ADAPTATION_STRATEGY
    }
