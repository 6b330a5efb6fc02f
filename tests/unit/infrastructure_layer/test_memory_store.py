"""
Unit Tests for MemoryFallbackStore

Tests lazy expiry, overwrite semantics, prefix deletion and the sweeper.
"""

import asyncio

import pytest

from piano_cache.infrastructure.cache.memory_store import MemoryFallbackStore
from tests.test_fixtures.cache_factory import FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return MemoryFallbackStore(clock=clock)


@pytest.mark.unit
class TestBasicOperations:
    """Test get/set/delete."""

    def test_set_then_get(self, store):
        """Test round trip of a stored value."""
        store.set("clients:count", "42", ttl_seconds=60)
        assert store.get("clients:count") == "42"

    def test_missing_key_returns_none(self, store):
        """Test miss behavior."""
        assert store.get("never:written") is None

    def test_overwrite_replaces_value_and_ttl(self, store, clock):
        """Test that a second set fully replaces value and expiry."""
        store.set("k", "old", ttl_seconds=10)
        clock.advance(5)
        store.set("k", "new", ttl_seconds=100)
        clock.advance(50)

        assert store.get("k") == "new"

    def test_delete(self, store):
        """Test delete reports whether an entry was removed."""
        store.set("k", "v", ttl_seconds=60)

        assert store.delete("k") is True
        assert store.delete("k") is False
        assert store.get("k") is None

    def test_delete_matching(self, store):
        """Test prefix deletion."""
        store.set("forecast:1", "a", ttl_seconds=60)
        store.set("forecast:2", "b", ttl_seconds=60)
        store.set("clients:1", "c", ttl_seconds=60)

        assert store.delete_matching("forecast:") == 2
        assert store.keys() == ["clients:1"]

    def test_clear(self, store):
        """Test clear empties the store."""
        store.set("a", "1", ttl_seconds=60)
        store.clear()
        assert store.size() == 0


@pytest.mark.unit
class TestLazyExpiry:
    """Test expiry semantics."""

    def test_expired_entry_reads_as_absent(self, store, clock):
        """Test that a read past expiry returns None and removes the entry."""
        store.set("k", "v", ttl_seconds=10)
        clock.advance(10.5)

        assert store.get("k") is None
        assert store.size() == 0

    def test_entry_at_exact_expiry_is_absent(self, store, clock):
        """Test that expiry is inclusive of the boundary."""
        store.set("k", "v", ttl_seconds=10)
        clock.advance(10)

        assert store.get("k") is None

    def test_size_counts_unread_expired_entries(self, store, clock):
        """Test that size() is an upper bound until entries are touched."""
        store.set("a", "1", ttl_seconds=1)
        store.set("b", "2", ttl_seconds=100)
        clock.advance(5)

        assert store.size() == 2
        store.get("a")
        assert store.size() == 1

    def test_purge_expired(self, store, clock):
        """Test bulk purge of expired entries."""
        store.set("a", "1", ttl_seconds=1)
        store.set("b", "2", ttl_seconds=1)
        store.set("c", "3", ttl_seconds=100)
        clock.advance(2)

        assert store.purge_expired() == 2
        assert store.keys() == ["c"]


@pytest.mark.unit
class TestSweeper:
    """Test the optional background sweeper."""

    @pytest.mark.asyncio
    async def test_sweeper_purges_periodically(self, store, clock):
        """Test that the sweeper removes expired entries without reads."""
        store.set("a", "1", ttl_seconds=1)
        clock.advance(2)

        store.start_sweeper(0.01)
        assert store.sweeper_running is True
        await asyncio.sleep(0.05)

        assert store.size() == 0
        await store.stop_sweeper()
        assert store.sweeper_running is False

    @pytest.mark.asyncio
    async def test_start_is_idempotent_and_stop_without_start_is_safe(self, store):
        """Test sweeper lifecycle edge cases."""
        await store.stop_sweeper()

        store.start_sweeper(10)
        first = store._sweeper
        store.start_sweeper(10)

        assert store._sweeper is first
        await store.stop_sweeper()


@pytest.mark.unit
class TestRealClockExpiry:
    """Expiry with the default monotonic clock."""

    @pytest.mark.asyncio
    async def test_value_expires_after_ttl(self):
        """Test a 1-second TTL against real time."""
        store = MemoryFallbackStore()
        store.set("short:lived", "v", ttl_seconds=1)

        assert store.get("short:lived") == "v"
        await asyncio.sleep(1.2)
        assert store.get("short:lived") is None
