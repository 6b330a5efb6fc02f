"""
Connection State Machine for the Remote Cache Store.

This module tracks whether cache operations may go to the remote store or must
be served from the in-process fallback store.

MECHANISM OF ACTION:
-------------------
1.  **States**:
    - **CONNECTED**: The remote store was validated. Operations go remote.
      - On Failure: transition to DEGRADED, stamp the failure time.

    - **DEGRADED**: Operations are served from the fallback store.
      - LATCH policy: stay here for the life of the service.
      - PROBE policy: once `recovery_interval` seconds have passed since the
        last failure, the next caller moves the machine to PROBING_RECOVERY
        and pings the remote store.

    - **PROBING_RECOVERY**: ONE probe is in flight.
      - Other callers see this state and keep using the fallback store.
      - On Success: transition to CONNECTED.
      - On Failure: back to DEGRADED, and the interval timer restarts.

2.  **Atomicity**:
    Every transition is a plain synchronous method. The facade performs
    "check state, claim the probe" without an `await` in between, so on a
    single event loop exactly one caller can own a probe.

Invariant: `use_memory_fallback == not is_connected`.
"""

import time
from collections.abc import Callable
from typing import Any

from piano_cache.core.config.constants import ConnectionState, RecoveryPolicy, Stage
from piano_cache.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)


class ConnectionStateMachine:
    """
    Tracks remote store availability for one cache service.

    Usage:
        machine = ConnectionStateMachine(RecoveryPolicy.PROBE, recovery_interval=30)
        machine.mark_connected()

        if machine.is_connected:
            ...  # go remote
        elif machine.begin_probe(has_client=True):
            ok = await adapter.ping()
            machine.record_success() if ok else machine.record_failure("probe failed")
    """

    def __init__(
        self,
        policy: RecoveryPolicy = RecoveryPolicy.LATCH,
        recovery_interval: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._policy = RecoveryPolicy(policy)
        self._recovery_interval = recovery_interval
        self._clock = clock

        # Nothing has been validated yet: serve from memory until init() says otherwise
        self._state = ConnectionState.DEGRADED
        self._last_failure_at: float | None = None
        self._last_error: str | None = None
        self._failure_count = 0
        self._recoveries = 0

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def policy(self) -> RecoveryPolicy:
        return self._policy

    @property
    def is_connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED

    @property
    def use_memory_fallback(self) -> bool:
        return not self.is_connected

    def snapshot(self) -> dict[str, Any]:
        """Point-in-time view of the machine for health checks."""
        return {
            "state": self._state.value,
            "policy": self._policy.value,
            "failure_count": self._failure_count,
            "recoveries": self._recoveries,
            "last_error": self._last_error,
        }

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def mark_connected(self) -> None:
        """Remote store validated (initial connect or successful probe)."""
        previous = self._state
        self._state = ConnectionState.CONNECTED
        if previous != ConnectionState.CONNECTED:
            log_stage(logger, Stage.STATE, "Remote cache store connected", previous=previous.value)

    def mark_degraded(self, reason: str) -> None:
        """
        Enter DEGRADED without counting a failure.

        Used at init when the remote store is not configured or disabled.
        """
        self._state = ConnectionState.DEGRADED
        self._last_error = reason
        log_stage(logger, Stage.STATE, "Cache running on memory fallback", level="warning", reason=reason)

    def record_failure(self, error: str) -> None:
        """
        A remote call (or probe) failed.

        CONNECTED -> DEGRADED, PROBING_RECOVERY -> DEGRADED.
        """
        previous = self._state
        self._state = ConnectionState.DEGRADED
        self._last_failure_at = self._clock()
        self._last_error = error
        self._failure_count += 1

        if previous == ConnectionState.PROBING_RECOVERY:
            log_stage(
                logger, Stage.STATE, "Recovery probe failed, staying degraded",
                level="warning", error=error,
            )
        elif previous == ConnectionState.CONNECTED:
            log_stage(
                logger, Stage.STATE, "Remote cache store failed, switching to memory fallback",
                level="warning", error=error, policy=self._policy.value,
            )

    def record_success(self) -> bool:
        """
        A probe succeeded: PROBING_RECOVERY -> CONNECTED.

        Returns:
            True if the machine is now CONNECTED. False when a failure
            recorded during the probe has already moved it to DEGRADED.
        """
        if self._state == ConnectionState.PROBING_RECOVERY:
            self._recoveries += 1
            log_stage(logger, Stage.STATE, "Remote cache store recovered", recoveries=self._recoveries)
            self._state = ConnectionState.CONNECTED
            self._last_error = None
        return self._state == ConnectionState.CONNECTED

    def begin_probe(self, has_client: bool) -> bool:
        """
        Claim a recovery probe if one is due.

        Returns True (and moves to PROBING_RECOVERY) only when the policy is
        PROBE, a client exists, the machine is DEGRADED after a real failure,
        and the recovery interval has elapsed.
        """
        if self._policy != RecoveryPolicy.PROBE or not has_client:
            return False
        if self._state != ConnectionState.DEGRADED or self._last_failure_at is None:
            return False
        if self._clock() - self._last_failure_at < self._recovery_interval:
            return False

        self._state = ConnectionState.PROBING_RECOVERY
        log_stage(logger, Stage.STATE, "Probing remote cache store", level="debug")
        return True
