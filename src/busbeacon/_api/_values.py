"""Firestore typed-value codec.

The REST API wraps every field in a single-key object naming its type
(``{"doubleValue": 1.5}``, ``{"stringValue": "A"}``, ...). These helpers
convert between that representation and plain Python values.

It is internal to busbeacon and may change at any time.
"""

from __future__ import annotations

import base64
import math
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

_SPECIAL_DOUBLES: dict[str, float] = {
    "NaN": math.nan,
    "Infinity": math.inf,
    "-Infinity": -math.inf,
}


def format_timestamp(value: datetime) -> str:
    """Format a datetime as an RFC 3339 UTC timestamp string."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp with up to nanosecond precision."""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    # Python parses at most microseconds; Firestore sends nanoseconds.
    if "." in text:
        head, _, rest = text.partition(".")
        digits = ""
        for index, char in enumerate(rest):
            if not char.isdigit():
                text = f"{head}.{digits[:6].ljust(6, '0')}{rest[index:]}"
                break
            digits += char
        else:
            text = f"{head}.{digits[:6].ljust(6, '0')}"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def encode_value(value: Any) -> dict[str, Any]:
    """Encode a Python value as a Firestore ``Value`` object."""
    if value is None:
        return {"nullValue": None}
    # bool must be checked before int
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        if math.isnan(value):
            return {"doubleValue": "NaN"}
        if math.isinf(value):
            return {"doubleValue": "Infinity" if value > 0 else "-Infinity"}
        return {"doubleValue": value}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, bytes):
        return {"bytesValue": base64.b64encode(value).decode("ascii")}
    if isinstance(value, datetime):
        return {"timestampValue": format_timestamp(value)}
    if isinstance(value, Mapping):
        return {"mapValue": {"fields": encode_fields(value)}}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(item) for item in value]}}
    raise TypeError(f"Cannot encode {type(value).__name__} as a Firestore value")


def encode_fields(values: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
    """Encode a mapping as a Firestore ``fields`` object."""
    return {str(key): encode_value(value) for key, value in values.items()}


def decode_value(value: Mapping[str, Any]) -> Any:
    """Decode a Firestore ``Value`` object into a Python value.

    ``geoPointValue`` decodes to a ``{"latitude", "longitude"}`` dict and
    ``referenceValue`` to its document name string.
    """
    if not value:
        return None
    kind, raw = next(iter(value.items()))
    if kind == "nullValue":
        return None
    if kind == "booleanValue":
        return bool(raw)
    if kind == "integerValue":
        return int(raw)
    if kind == "doubleValue":
        if isinstance(raw, str) and raw in _SPECIAL_DOUBLES:
            return _SPECIAL_DOUBLES[raw]
        return float(raw)
    if kind in ("stringValue", "referenceValue"):
        return str(raw)
    if kind == "bytesValue":
        return base64.b64decode(raw)
    if kind == "timestampValue":
        return parse_timestamp(str(raw))
    if kind == "geoPointValue":
        point = raw if isinstance(raw, Mapping) else {}
        return {
            "latitude": float(point.get("latitude", 0.0)),
            "longitude": float(point.get("longitude", 0.0)),
        }
    if kind == "mapValue":
        fields = raw.get("fields", {}) if isinstance(raw, Mapping) else {}
        return decode_fields(fields)
    if kind == "arrayValue":
        items = raw.get("values", []) if isinstance(raw, Mapping) else []
        return [decode_value(item) for item in items]
    raise ValueError(f"Unsupported Firestore value type: {kind}")


def decode_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Decode a Firestore ``fields`` object into a plain dict."""
    return {str(key): decode_value(value) for key, value in fields.items() if isinstance(value, Mapping)}
