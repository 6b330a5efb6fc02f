from piano_cache.core.resilience.connection_state import ConnectionStateMachine
from piano_cache.core.resilience.retry import create_retry_decorator

__all__ = ["ConnectionStateMachine", "create_retry_decorator"]
