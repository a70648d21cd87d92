"""
Test the per-venue Redis lock.
"""
import pytest

from eventflow.core.errors import VenueBusyError
from eventflow.services.bookings import venue_lock


class TestVenueLock:
    """Test the venue_lock context manager."""

    @pytest.fixture(autouse=True)
    def no_waiting(self, monkeypatch):
        monkeypatch.setattr("eventflow.services.bookings.get_venue_lock_timeouts", lambda: (10, 0))

    def test_lock_is_held_inside(self, redis_client):
        """Test that the venue key is locked while the block runs."""
        with venue_lock(7):
            assert redis_client.get("venue_lock:7") is not None
            assert redis_client.lock("venue_lock:7", timeout=5).acquire(blocking=False) is False

        assert redis_client.get("venue_lock:7") is None

    def test_contended_lock_raises(self, redis_client):
        held = redis_client.lock("venue_lock:3", timeout=10)
        assert held.acquire(blocking=False) is True

        with pytest.raises(VenueBusyError) as exc:
            with venue_lock(3):
                pass
        assert exc.value.details == {"venue_id": 3}
        assert exc.value.status_code == 409

        held.release()

    def test_locks_are_per_venue(self, redis_client):
        with venue_lock(1):
            with venue_lock(2):
                assert redis_client.get("venue_lock:1") is not None
                assert redis_client.get("venue_lock:2") is not None

    def test_lock_released_on_error(self, redis_client):
        """Test that an exception inside the block still frees the venue."""
        with pytest.raises(RuntimeError):
            with venue_lock(5):
                raise RuntimeError("boom")

        assert redis_client.get("venue_lock:5") is None

    def test_expired_lock_is_tolerated(self, redis_client):
        """Test that losing the lock before release is logged, not raised."""
        with venue_lock(9):
            redis_client.delete("venue_lock:9")

        assert redis_client.get("venue_lock:9") is None
