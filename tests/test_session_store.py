# ================================
# CONVERSATION STATE TESTS (test_session_store.py)
# ================================

from datetime import timedelta

import pytest

from app.services.session_store import DatabaseSessionStore, InMemorySessionStore


@pytest.fixture(params=["memory", "database"])
def store(request, clock, session_factory):
    if request.param == "memory":
        return InMemorySessionStore(clock=clock, max_age=timedelta(hours=24))
    return DatabaseSessionStore(session_factory, clock=clock, max_age=timedelta(hours=24))


class TestSessionStore:
    """Both backends behave the same."""

    def test_empty(self, store):
        assert store.get(1) is None
        assert store.advance(1, "awaiting_guests") is None

    def test_start_and_advance(self, store):
        store.start_flow(1, "booking", "awaiting_dates", {"apartment_id": 3})
        store.advance(1, "awaiting_guests", check_in="2025-02-01", check_out="2025-02-04")

        state = store.get(1)
        assert state.flow == "booking"
        assert state.step == "awaiting_guests"
        assert state.data == {"apartment_id": 3, "check_in": "2025-02-01", "check_out": "2025-02-04"}

    def test_new_flow_supersedes_previous(self, store):
        store.start_flow(1, "booking", "awaiting_dates", {"apartment_id": 3})
        store.start_flow(1, "owner_pin", "awaiting_pin", {"booking_code": "ABJ-00000001"})

        state = store.get(1)
        assert state.flow == "owner_pin"
        assert state.data == {"booking_code": "ABJ-00000001"}

    def test_chats_are_independent(self, store):
        store.start_flow(1, "booking", "awaiting_dates")
        store.start_flow(2, "search", "awaiting_location")
        store.clear(1)

        assert store.get(1) is None
        assert store.get(2).flow == "search"

    def test_stale_state_expires(self, store, clock):
        store.start_flow(1, "booking", "awaiting_dates")
        clock.advance(hours=24, seconds=1)

        assert store.get(1) is None

    def test_evict_older_than(self, store, clock):
        store.start_flow(1, "booking", "awaiting_dates")
        clock.advance(hours=2)
        store.start_flow(2, "search", "awaiting_location")

        assert store.evict_older_than(timedelta(hours=1)) == 1
        assert store.get(1) is None
        assert store.get(2) is not None
