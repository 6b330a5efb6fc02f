"""
Unit Tests for the Connection State Machine

Tests state transitions for both recovery policies.
"""

import pytest

from piano_cache.core.config.constants import ConnectionState, RecoveryPolicy
from piano_cache.core.resilience.connection_state import ConnectionStateMachine
from tests.test_fixtures.cache_factory import FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.mark.unit
class TestInitialState:
    """Test the state before any connection attempt."""

    def test_starts_degraded(self):
        """Test that nothing is trusted before init."""
        machine = ConnectionStateMachine()

        assert machine.state == ConnectionState.DEGRADED
        assert machine.is_connected is False
        assert machine.use_memory_fallback is True

    def test_policy_accepts_string(self):
        """Test that policy strings from settings are accepted."""
        assert ConnectionStateMachine(policy="probe").policy == RecoveryPolicy.PROBE


@pytest.mark.unit
class TestLatchPolicy:
    """Test that LATCH stays degraded after a failure."""

    def test_failure_latches(self, clock):
        """Test CONNECTED -> DEGRADED and no probe ever."""
        machine = ConnectionStateMachine(RecoveryPolicy.LATCH, recovery_interval=1, clock=clock)
        machine.mark_connected()

        machine.record_failure("connection refused")
        clock.advance(3600)

        assert machine.state == ConnectionState.DEGRADED
        assert machine.begin_probe(has_client=True) is False

    def test_fallback_flag_is_inverse_of_connected(self, clock):
        """Test use_memory_fallback == not is_connected in every state."""
        machine = ConnectionStateMachine(RecoveryPolicy.PROBE, recovery_interval=0, clock=clock)

        machine.mark_connected()
        assert machine.use_memory_fallback is (not machine.is_connected)

        machine.record_failure("boom")
        assert machine.use_memory_fallback is (not machine.is_connected)

        machine.begin_probe(has_client=True)
        assert machine.state == ConnectionState.PROBING_RECOVERY
        assert machine.use_memory_fallback is True


@pytest.mark.unit
class TestProbePolicy:
    """Test periodic recovery probing."""

    def test_probe_waits_for_interval(self, clock):
        """Test that no probe is claimed before the interval elapses."""
        machine = ConnectionStateMachine(RecoveryPolicy.PROBE, recovery_interval=30, clock=clock)
        machine.mark_connected()
        machine.record_failure("boom")

        clock.advance(29)
        assert machine.begin_probe(has_client=True) is False

        clock.advance(1)
        assert machine.begin_probe(has_client=True) is True
        assert machine.state == ConnectionState.PROBING_RECOVERY

    def test_only_one_probe_claimed(self, clock):
        """Test that a second caller cannot claim an in-flight probe."""
        machine = ConnectionStateMachine(RecoveryPolicy.PROBE, recovery_interval=0, clock=clock)
        machine.record_failure("boom")

        assert machine.begin_probe(has_client=True) is True
        assert machine.begin_probe(has_client=True) is False

    def test_successful_probe_reconnects(self, clock):
        """Test PROBING_RECOVERY -> CONNECTED."""
        machine = ConnectionStateMachine(RecoveryPolicy.PROBE, recovery_interval=0, clock=clock)
        machine.record_failure("boom")
        machine.begin_probe(has_client=True)

        assert machine.record_success() is True
        assert machine.is_connected is True
        assert machine.snapshot()["recoveries"] == 1
        assert machine.snapshot()["last_error"] is None

    def test_failure_during_recovery_wins_over_success(self, clock):
        """Test that a remote failure recorded during recovery is not overwritten."""
        machine = ConnectionStateMachine(RecoveryPolicy.PROBE, recovery_interval=0, clock=clock)
        machine.record_failure("boom")
        machine.begin_probe(has_client=True)

        machine.record_failure("concurrent get failed")

        assert machine.record_success() is False
        assert machine.state == ConnectionState.DEGRADED
        assert machine.snapshot()["recoveries"] == 0

    def test_failed_probe_restarts_interval(self, clock):
        """Test PROBING_RECOVERY -> DEGRADED with a fresh failure stamp."""
        machine = ConnectionStateMachine(RecoveryPolicy.PROBE, recovery_interval=30, clock=clock)
        machine.record_failure("boom")
        clock.advance(30)
        machine.begin_probe(has_client=True)

        machine.record_failure("probe failed")

        assert machine.state == ConnectionState.DEGRADED
        clock.advance(10)
        assert machine.begin_probe(has_client=True) is False
        clock.advance(20)
        assert machine.begin_probe(has_client=True) is True

    def test_no_probe_without_client(self, clock):
        """Test that a service without a client never probes."""
        machine = ConnectionStateMachine(RecoveryPolicy.PROBE, recovery_interval=0, clock=clock)
        machine.record_failure("boom")

        assert machine.begin_probe(has_client=False) is False

    def test_no_probe_when_degraded_without_failure(self, clock):
        """Test that unconfigured deployments never probe."""
        machine = ConnectionStateMachine(RecoveryPolicy.PROBE, recovery_interval=0, clock=clock)
        machine.mark_degraded("remote store not configured")

        assert machine.begin_probe(has_client=True) is False

    def test_record_success_outside_probe_is_noop(self, clock):
        """Test that success without a claimed probe changes nothing."""
        machine = ConnectionStateMachine(RecoveryPolicy.PROBE, clock=clock)
        assert machine.record_success() is False

        assert machine.state == ConnectionState.DEGRADED


@pytest.mark.unit
class TestSnapshot:
    """Test the health snapshot."""

    def test_snapshot_counts_failures(self, clock):
        """Test failure counting and last error."""
        machine = ConnectionStateMachine(RecoveryPolicy.LATCH, clock=clock)
        machine.mark_connected()
        machine.record_failure("first")
        machine.record_failure("second")

        assert machine.snapshot() == {
            "state": "degraded",
            "policy": "latch",
            "failure_count": 2,
            "recoveries": 0,
            "last_error": "second",
        }
