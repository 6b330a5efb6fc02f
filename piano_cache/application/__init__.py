"""Application layer: FastAPI admin API over the cache service."""
