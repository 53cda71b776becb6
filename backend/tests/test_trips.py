"""Unit tests for trip registration, editing and storage."""

from datetime import datetime, timedelta, timezone

import pytest

from carshare.models import Location, TripCreate, TripUpdate
from carshare.config import settings
from carshare.services.pricing import ZoneTablePricingEngine, get_pricing_engine
from carshare.services.trips import TripValidationError, edit_trip, register_trip


def create_request(**overrides):
    fields = dict(
        car_id="roy",
        date=datetime(2024, 6, 1, 9, 30),
        kilometers=25.0,
        description="Handling",
        participant_ids=["charlotte", "julius"],
        is_oslo_area=True,
    )
    fields.update(overrides)
    return TripCreate(**fields)


class TestRegistration:
    """Test trip registration."""

    def test_price_is_stamped(self):
        trip = register_trip(create_request())
        assert trip.total_price == pytest.approx(112.5)
        assert trip.zone.name == "0-50km (Oslo + Bærum)"
        assert trip.participant_ids == frozenset({"charlotte", "julius"})
        assert not trip.is_using_route

    def test_ids_are_unique(self):
        assert register_trip(create_request()).id != register_trip(create_request()).id

    def test_route_distance_takes_precedence(self):
        trip = register_trip(create_request(
            kilometers=None,
            route_distance_m=120_000,
            is_oslo_area=False,
            start_location=Location(name="Schweigaards gate 88", latitude=59.91124, longitude=10.76663),
            end_location=Location(name="Lundevegen 12, Åmot", latitude=59.45056, longitude=7.94944),
        ))
        assert trip.kilometers == pytest.approx(120.0)
        assert trip.total_price == pytest.approx(300.0)
        assert trip.is_using_route
        assert trip.end_location.name == "Lundevegen 12, Åmot"

    def test_missing_distance(self):
        with pytest.raises(TripValidationError):
            register_trip(create_request(kilometers=None))

    def test_unknown_car(self):
        with pytest.raises(TripValidationError, match="car"):
            register_trip(create_request(car_id="tesla"))

    def test_unknown_participant(self):
        with pytest.raises(TripValidationError, match="Unknown participants"):
            register_trip(create_request(participant_ids=["charlotte", "nobody"]))

    def test_empty_participants_fail_schema(self):
        with pytest.raises(ValueError):
            create_request(participant_ids=[])

    def test_duplicate_participants_fail_schema(self):
        with pytest.raises(ValueError):
            create_request(participant_ids=["pal", "pal"])

    def test_trip_is_immutable(self):
        trip = register_trip(create_request())
        with pytest.raises(ValueError):
            trip.total_price = 0.0


class TestEdit:
    """Test editing as full replacement."""

    def test_edit_keeps_id_and_car_and_reprices(self):
        original = register_trip(create_request())
        update = TripUpdate(
            date=original.date,
            kilometers=300.0,
            participant_ids=["pal"],
            is_oslo_area=False,
        )
        edited = edit_trip(original, update, get_pricing_engine())
        assert edited.id == original.id
        assert edited.car_id == original.car_id
        assert edited.total_price == pytest.approx(660.0)
        assert edited.zone.name == "250-500km"
        assert edited.participant_ids == frozenset({"pal"})

    def test_edit_rejects_unknown_participant(self):
        original = register_trip(create_request())
        with pytest.raises(TripValidationError):
            edit_trip(original, TripUpdate(kilometers=5, participant_ids=["ghost"]))


class TestTripStore:
    """Test the SQLite trip store."""

    def test_round_trip(self, store):
        trip = register_trip(create_request(
            start_location=Location(name="Trondheimsveien 89", latitude=59.92824, longitude=10.77231),
        ))
        store.add_trip(trip)
        loaded = store.get_trip(trip.id)
        assert loaded == trip
        assert store.count_trips() == 1

    def test_unknown_trip(self, store):
        assert store.get_trip("missing") is None
        assert store.replace_trip(register_trip(create_request())) is None
        assert store.delete_trip("missing") is False

    def test_newest_first(self, store):
        older = register_trip(create_request(date=datetime(2024, 1, 1)))
        newer = register_trip(create_request(date=datetime(2024, 3, 1)))
        store.add_trip(older)
        store.add_trip(newer)
        assert [t.id for t in store.get_all_trips()] == [newer.id, older.id]

    def test_replace_by_id(self, store):
        original = store.add_trip(register_trip(create_request()))
        edited = edit_trip(original, TripUpdate(
            date=original.date, kilometers=10, participant_ids=["johanne"], is_oslo_area=False,
        ))
        assert store.replace_trip(edited) == edited
        assert store.get_trip(original.id).total_price == pytest.approx(30.0)
        assert store.count_trips() == 1

    def test_bulk_delete(self, store):
        trips = [store.add_trip(register_trip(create_request())) for _ in range(3)]
        assert store.delete_trips([trips[0].id, trips[2].id, "missing"]) == 2
        assert [t.id for t in store.get_all_trips()] == [trips[1].id]
        assert store.delete_trip(trips[1].id) is True
        assert store.delete_all_trips() == 0

    def test_offset_date_round_trip(self, store):
        oslo_summer = timezone(timedelta(hours=2))
        trip = register_trip(create_request(date=datetime(2024, 6, 1, 9, 30, tzinfo=oslo_summer)))
        assert trip.date == datetime(2024, 6, 1, 7, 30)

        store.add_trip(trip)
        assert store.get_trip(trip.id) == trip

    def test_newest_first_across_offsets(self, store):
        oslo_summer = timezone(timedelta(hours=2))
        earlier = register_trip(create_request(date=datetime(2024, 6, 1, 9, 30, tzinfo=oslo_summer)))
        later = register_trip(create_request(date=datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc)))
        store.add_trip(earlier)
        store.add_trip(later)
        assert [t.id for t in store.get_all_trips()] == [later.id, earlier.id]


class TestFavoriteLocations:
    """Test saved favorite locations."""

    def test_add_list_remove(self, store):
        first = store.add_favorite_location(settings.get_common_locations()[0])
        second = store.add_favorite_location(settings.get_common_locations()[2])
        assert first.is_favorite
        assert first.name == "Schweigaards gate 88"

        assert [loc.name for loc in store.get_favorite_locations()] == [
            "Schweigaards gate 88", "Lundevegen 12, Åmot",
        ]
        assert store.remove_favorite_location(first.id) is True
        assert store.remove_favorite_location(first.id) is False
        assert store.get_favorite_locations() == [second]


class SurchargePricingEngine(ZoneTablePricingEngine):
    """Adds a flat surcharge on top of the zone price."""

    def price(self, kilometers, is_oslo_area):
        return super().price(kilometers, is_oslo_area) + 10.0


class TestPriceStamping:
    """Test that trip prices come from the pricing engine's price()."""

    def test_registration_uses_engine_price(self):
        engine = SurchargePricingEngine(settings.get_zone_table(), settings.SMALL_BRACKET_THRESHOLD_KM)
        trip = register_trip(create_request(), engine)
        assert trip.total_price == pytest.approx(122.5)

    def test_edit_uses_engine_price(self):
        engine = SurchargePricingEngine(settings.get_zone_table(), settings.SMALL_BRACKET_THRESHOLD_KM)
        original = register_trip(create_request())
        edited = edit_trip(original, TripUpdate(kilometers=10, participant_ids=["pal"]), engine)
        assert edited.total_price == pytest.approx(40.0)
