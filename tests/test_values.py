from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta, timezone

import pytest

from busbeacon._api._values import decode_fields, decode_value, encode_value, parse_timestamp


class TestEncode:
    def test_scalars(self) -> None:
        assert encode_value(None) == {"nullValue": None}
        assert encode_value(True) == {"booleanValue": True}
        assert encode_value(7) == {"integerValue": "7"}
        assert encode_value(1.5) == {"doubleValue": 1.5}
        assert encode_value("bus") == {"stringValue": "bus"}

    def test_special_doubles(self) -> None:
        assert encode_value(math.nan) == {"doubleValue": "NaN"}
        assert encode_value(-math.inf) == {"doubleValue": "-Infinity"}

    def test_timestamp_is_utc(self) -> None:
        local = datetime(2024, 1, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
        assert encode_value(local) == {"timestampValue": "2024-01-01T12:00:00Z"}

    def test_nested(self) -> None:
        encoded = encode_value({"stops": [1, "x"]})
        assert encoded == {
            "mapValue": {
                "fields": {
                    "stops": {"arrayValue": {"values": [{"integerValue": "1"}, {"stringValue": "x"}]}},
                }
            }
        }

    def test_unsupported_type(self) -> None:
        with pytest.raises(TypeError):
            encode_value(object())


class TestDecode:
    def test_fields(self) -> None:
        decoded = decode_fields(
            {
                "name": {"stringValue": "Bus 1"},
                "seats": {"integerValue": "40"},
                "lat": {"doubleValue": 1.25},
                "depot": {"geoPointValue": {"latitude": 1.0, "longitude": 2.0}},
                "tags": {"arrayValue": {}},
                "meta": {"mapValue": {"fields": {"ok": {"booleanValue": True}}}},
                "gone": {"nullValue": None},
            }
        )
        assert decoded == {
            "name": "Bus 1",
            "seats": 40,
            "lat": 1.25,
            "depot": {"latitude": 1.0, "longitude": 2.0},
            "tags": [],
            "meta": {"ok": True},
            "gone": None,
        }

    def test_special_double(self) -> None:
        assert math.isinf(decode_value({"doubleValue": "Infinity"}))

    def test_unknown_type(self) -> None:
        with pytest.raises(ValueError):
            decode_value({"vectorValue": {}})


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("2024-05-01T12:00:00Z", datetime(2024, 5, 1, 12, tzinfo=UTC)),
        ("2024-05-01T12:00:00.5Z", datetime(2024, 5, 1, 12, 0, 0, 500000, tzinfo=UTC)),
        ("2024-05-01T12:00:00.987654321Z", datetime(2024, 5, 1, 12, 0, 0, 987654, tzinfo=UTC)),
        ("2024-05-01T14:00:00.000000001+02:00", datetime(2024, 5, 1, 12, tzinfo=UTC)),
    ],
)
def test_parse_timestamp(text: str, expected: datetime) -> None:
    assert parse_timestamp(text) == expected
