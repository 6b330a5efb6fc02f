"""
Retry policy for remote store calls.

A failed remote call is retried a bounded number of times with exponential
jittered backoff (tenacity) before the failure is handed to the facade, which
then falls back to the in-process store.
"""

import logging

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from piano_cache.core.exceptions import AdapterError


def create_retry_decorator(
    max_attempts: int = 2,
    base_delay: float = 0.05,
    max_delay: float = 0.5,
    retry_exceptions: tuple = (AdapterError,),
):
    """
    Build a tenacity retry decorator for async remote calls.

    Jitter is bounded by base_delay so that base_delay=0 means no waiting at all.
    """
    std_logger = logging.getLogger(__name__)  # Tenacity needs std lib logger

    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential_jitter(initial=base_delay, max=max_delay, jitter=base_delay),
        retry=retry_if_exception_type(retry_exceptions),
        before_sleep=before_sleep_log(std_logger, logging.WARNING),
        reraise=True,
    )
