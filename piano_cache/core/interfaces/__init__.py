from piano_cache.core.interfaces.cache import RemoteStore

__all__ = ["RemoteStore"]
