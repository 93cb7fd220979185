"""Tests for record and position model parsing."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from busbeacon.models import BusRecord, Position, TrackingMode, TrackingSession, TrackingState, parse_coordinates


class TestPosition:
    def test_aliases_and_coercion(self) -> None:
        position = Position.model_validate(
            {"lat": "52.5", "lon": 4.9, "track": "180", "speed": "", "time": 1_700_000_000_000}
        )
        assert position.coordinates == (52.5, 4.9)
        assert position.heading == 180.0
        assert position.speed is None
        assert position.timestamp == datetime.fromtimestamp(1_700_000_000, tz=UTC)
        assert position.raw["lat"] == "52.5"

    @pytest.mark.parametrize(
        "payload",
        [
            {"lat": 91.0, "lon": 0.0},
            {"lat": 0.0, "lon": -180.5},
            {"lat": float("nan"), "lon": 0.0},
            {"lon": 0.0},
        ],
    )
    def test_invalid_coordinates_rejected(self, payload: dict) -> None:
        with pytest.raises(ValidationError):
            Position.model_validate(payload)

    def test_frozen(self) -> None:
        position = Position(latitude=1.0, longitude=2.0)
        with pytest.raises(ValidationError):
            position.latitude = 3.0  # type: ignore[misc]


class TestBusRecord:
    def test_missing_name_defaults(self) -> None:
        bus = BusRecord.from_document({"name": "projects/p/databases/(default)/documents/buses/X"})
        assert bus.id == "X"
        assert bus.name == "Unknown Bus"
        assert not bus.has_position
        assert bus.updated_at is None

    def test_non_string_name_is_coerced(self) -> None:
        bus = BusRecord.from_document({"name": "x/buses/7", "fields": {"name": {"integerValue": "7"}}})
        assert bus.name == "7"

    def test_document_id_wins_over_id_field(self) -> None:
        bus = BusRecord.from_document({"name": "x/buses/real", "fields": {"id": {"stringValue": "fake"}}})
        assert bus.id == "real"
        assert bus.raw == {"id": "fake"}


class TestParseCoordinates:
    def test_valid_text(self) -> None:
        assert parse_coordinates(" 10.5 ", "-20") == (10.5, -20.0)

    @pytest.mark.parametrize(
        ("lat", "lon"),
        [("abc", "1"), ("1", ""), ("nan", "1"), ("inf", "1"), ("90.1", "0"), ("0", "180.1")],
    )
    def test_invalid(self, lat: str, lon: str) -> None:
        with pytest.raises(ValueError):
            parse_coordinates(lat, lon)


class TestTrackingSession:
    def test_state_follows_mode_and_active_flag(self) -> None:
        session = TrackingSession()
        assert session.state is TrackingState.INACTIVE

        session.active = True
        assert session.state is TrackingState.ACTIVE_LIVE

        session.mode = TrackingMode.MANUAL
        assert session.state is TrackingState.ACTIVE_MANUAL
        assert session.manual_coordinates == (37.7749, -122.4194)
