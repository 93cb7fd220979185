"""Bus collection endpoints.

Endpoints:
  - GET  documents/{collection}          (list, paged)
  - GET  documents/{collection}/{id}     (single document)
  - POST documents:commit                (position update)
"""

from __future__ import annotations

import logging
from typing import Any

from busbeacon._api._common import collection_path, document_path, raise_for_error
from busbeacon._api._values import encode_value, parse_timestamp
from busbeacon._constants import LATITUDE_FIELD, LIST_PAGE_SIZE, LONGITUDE_FIELD, UPDATED_AT_FIELD
from busbeacon._transport import Transport
from busbeacon.config import BeaconConfig
from busbeacon.models.bus import BusRecord, PositionUpdate

_logger = logging.getLogger(__name__)


async def fetch_buses(
    config: BeaconConfig,
    transport: Transport,
    *,
    page_size: int = LIST_PAGE_SIZE,
) -> list[BusRecord]:
    """Fetch every document of the bus collection, following page tokens."""
    endpoint = collection_path(config)
    buses: list[BusRecord] = []
    page_token: str | None = None
    while True:
        params: list[tuple[str, str]] = [("pageSize", str(page_size))]
        if page_token:
            params.append(("pageToken", page_token))
        response = await transport.request_json("GET", endpoint, params=params)
        raise_for_error(response, endpoint=endpoint)

        documents = response.get("documents")
        if isinstance(documents, list):
            buses.extend(BusRecord.from_document(doc) for doc in documents if isinstance(doc, dict))

        next_token = response.get("nextPageToken")
        if not isinstance(next_token, str) or not next_token or next_token == page_token:
            break
        page_token = next_token

    _logger.debug("Fetched %d bus records from %s", len(buses), endpoint)
    return buses


async def fetch_bus(config: BeaconConfig, transport: Transport, bus_id: str) -> BusRecord:
    """Fetch a single bus document."""
    endpoint = document_path(config, bus_id)
    response = await transport.request_json("GET", endpoint)
    raise_for_error(response, endpoint=endpoint)
    return BusRecord.from_document(response)


def build_position_commit(config: BeaconConfig, bus_id: str, latitude: float, longitude: float) -> dict[str, Any]:
    """Build the commit body for a position update.

    The write only touches ``lat``/``lon`` (update mask), requires the
    document to exist, and stamps ``updatedAt`` with the server's request
    time.
    """
    return {
        "writes": [
            {
                "update": {
                    "name": document_path(config, bus_id),
                    "fields": {
                        LATITUDE_FIELD: encode_value(float(latitude)),
                        LONGITUDE_FIELD: encode_value(float(longitude)),
                    },
                },
                "updateMask": {"fieldPaths": [LATITUDE_FIELD, LONGITUDE_FIELD]},
                "updateTransforms": [
                    {"fieldPath": UPDATED_AT_FIELD, "setToServerValue": "REQUEST_TIME"},
                ],
                "currentDocument": {"exists": True},
            }
        ]
    }


def _parse_commit_response(response: dict[str, Any], bus_id: str, latitude: float, longitude: float) -> PositionUpdate:
    updated_at = None
    commit_time = None
    results = response.get("writeResults")
    if isinstance(results, list) and results and isinstance(results[0], dict):
        transforms = results[0].get("transformResults")
        if isinstance(transforms, list) and transforms and isinstance(transforms[0], dict):
            stamp = transforms[0].get("timestampValue")
            if isinstance(stamp, str):
                updated_at = parse_timestamp(stamp)
    raw_commit = response.get("commitTime")
    if isinstance(raw_commit, str):
        commit_time = parse_timestamp(raw_commit)
    return PositionUpdate(
        bus_id=bus_id,
        latitude=float(latitude),
        longitude=float(longitude),
        updated_at=updated_at or commit_time,
        commit_time=commit_time,
    )


async def update_bus_position(
    config: BeaconConfig,
    transport: Transport,
    bus_id: str,
    latitude: float,
    longitude: float,
) -> PositionUpdate:
    """Write *latitude*/*longitude* to the bus document with a server timestamp."""
    endpoint = f"{config.documents_path}:commit"
    body = build_position_commit(config, bus_id, latitude, longitude)
    response = await transport.request_json("POST", endpoint, payload=body)
    raise_for_error(response, endpoint=endpoint)
    result = _parse_commit_response(response, bus_id, latitude, longitude)
    _logger.debug("Updated bus=%s lat=%.6f lon=%.6f at=%s", bus_id, latitude, longitude, result.updated_at)
    return result
