"""
FastAPI Dependency Injection Module
===================================

Reusable dependencies for route handlers.

The cache service is a process-wide singleton created by init_cache() in the
application lifespan. Routes receive it through CacheServiceDep, so tests can
swap it with app.dependency_overrides[get_cache] without touching globals.

Example:
    @router.get("/stats")
    async def stats(cache: CacheServiceDep):
        return cache.stats()
"""

from typing import Annotated

from fastapi import Depends

from piano_cache.core.config.settings import Settings, get_settings
from piano_cache.infrastructure.cache.cache_manager import CacheService, get_cache_service


def get_cache() -> CacheService:
    """
    Retrieve the CacheService singleton.

    When the lifespan did not run (plain TestClient without a context
    manager) the singleton is created here and initializes lazily on first use.
    """
    return get_cache_service()


# Use these in route signatures; FastAPI resolves them once per request
CacheServiceDep = Annotated[CacheService, Depends(get_cache)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
