"""
Integration tests.

These run against a real Redis server and are skipped unless USE_REAL_REDIS=1 and REDIS_TOKEN is set.
REDIS_URL (default redis://localhost:6379/0) and REDIS_TOKEN select the server.
"""
