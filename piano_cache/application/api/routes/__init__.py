from piano_cache.application.api.routes.cache_admin import router as cache_admin_router

__all__ = ["cache_admin_router"]
