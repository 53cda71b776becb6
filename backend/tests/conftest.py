"""Shared fixtures for CarShare tests."""

import os
import tempfile
from datetime import datetime

import pytest

# Use a temporary database for testing
test_db = tempfile.NamedTemporaryFile(suffix='.db', delete=False)
os.environ["DATABASE_URL"] = f"sqlite:///{test_db.name}"

from carshare.models import Trip, User  # noqa: E402
from carshare.database import get_db_manager  # noqa: E402


@pytest.fixture
def roster():
    """Four users A, B, C, D in roster order."""
    return (
        User(id="a", name="A"),
        User(id="b", name="B"),
        User(id="c", name="C"),
        User(id="d", name="D"),
    )


@pytest.fixture
def make_trip():
    """Factory for trips with a given price and participant ids."""
    counter = {"n": 0}

    def _make(total_price, participant_ids, **kwargs):
        counter["n"] += 1
        fields = dict(
            id=f"trip-{counter['n']}",
            car_id="roy",
            date=datetime(2024, 5, counter["n"] % 28 + 1, 12, 0),
            kilometers=10.0,
            participant_ids=frozenset(participant_ids),
            total_price=total_price,
        )
        fields.update(kwargs)
        return Trip(**fields)

    return _make


def _clear(db_manager):
    db_manager.delete_all_trips()
    for location in db_manager.get_favorite_locations():
        db_manager.remove_favorite_location(location.id)


@pytest.fixture
def store():
    """The store, emptied before and after each test."""
    db_manager = get_db_manager()
    _clear(db_manager)
    yield db_manager
    _clear(db_manager)
