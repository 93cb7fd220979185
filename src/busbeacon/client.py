"""High-level async client for the bus record store."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import aiohttp

from busbeacon._api import buses as _buses_api
from busbeacon._transport import FirestoreTransport, Transport
from busbeacon.config import BeaconConfig
from busbeacon.exceptions import BeaconError
from busbeacon.models.bus import BusRecord, PositionUpdate

_logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    """The two record-store operations tracking depends on."""

    async def list_buses(self) -> list[BusRecord]:
        ...

    async def update_bus_position(self, bus_id: str, latitude: float, longitude: float) -> PositionUpdate:
        ...


class BeaconClient:
    """Async client for the Firestore bus collection.

    Usage::

        async with BeaconClient(config) as client:
            buses = await client.list_buses()
            await client.update_bus_position(buses[0].id, 52.37, 4.89)
    """

    def __init__(
        self,
        config: BeaconConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport

    @property
    def config(self) -> BeaconConfig:
        return self._config

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> BeaconClient:
        self._config.validate()
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = FirestoreTransport(self._config, self._http_session)
        _logger.debug(
            "Opened record store project=%s collection=%s emulator=%s",
            self._config.project_id,
            self._config.collection,
            self._config.emulator_host or "-",
        )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise BeaconError("Client not initialized. Use 'async with BeaconClient(...) as client:'")
        return self._transport

    # ------------------------------------------------------------------
    # Record store operations
    # ------------------------------------------------------------------

    async def list_buses(self) -> list[BusRecord]:
        """Fetch all bus records."""
        return await _buses_api.fetch_buses(self._config, self._require_transport())

    async def get_bus(self, bus_id: str) -> BusRecord:
        """Fetch a single bus record.

        Raises
        ------
        BeaconNotFoundError
            If no document with *bus_id* exists.
        """
        return await _buses_api.fetch_bus(self._config, self._require_transport(), bus_id)

    async def update_bus_position(self, bus_id: str, latitude: float, longitude: float) -> PositionUpdate:
        """Write a position to an existing bus record.

        ``updatedAt`` is assigned by the server. The document is never
        created: updating a missing bus raises
        :class:`~busbeacon.exceptions.BeaconNotFoundError`.
        """
        return await _buses_api.update_bus_position(
            self._config,
            self._require_transport(),
            bus_id,
            latitude,
            longitude,
        )
