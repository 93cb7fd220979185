"""Replay location source.

Emits a fixed sequence of fixes at a fixed interval, for simulations and
demos without GPS hardware. Service and permission state are plain
attributes so device situations (service off, permission denied) can be
reproduced.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter

from busbeacon.exceptions import LocationPermissionError, LocationServiceDisabledError, LocationUnavailableError
from busbeacon.location.base import (
    ErrorCallback,
    LocationSubscription,
    PermissionStatus,
    PositionCallback,
    start_subscription,
)
from busbeacon.models.position import Position

_logger = logging.getLogger(__name__)

_ROUTE_ADAPTER = TypeAdapter(list[Position])


class ReplayLocationSource:
    """Location source that plays back a route."""

    def __init__(
        self,
        positions: Sequence[Position],
        *,
        interval: float = 1.0,
        loop: bool = False,
        enabled: bool = True,
        permission: PermissionStatus = PermissionStatus.GRANTED,
        enable_on_request: bool = True,
        grant_on_request: bool = True,
    ) -> None:
        self._positions = list(positions)
        self._interval = interval
        self._loop = loop
        self.enabled = enabled
        self.permission = permission
        self._enable_on_request = enable_on_request
        self._grant_on_request = grant_on_request
        self._last: Position | None = None

    @classmethod
    def load_route(cls, path: str | Path, **kwargs: Any) -> ReplayLocationSource:
        """Load a JSON route file: a list of ``{"lat": ..., "lon": ...}`` objects."""
        positions = _ROUTE_ADAPTER.validate_json(Path(path).read_bytes())
        _logger.debug("Loaded %d route points from %s", len(positions), path)
        return cls(positions, **kwargs)

    async def is_enabled(self) -> bool:
        return self.enabled

    async def request_enable(self) -> bool:
        if self._enable_on_request:
            self.enabled = True
        return self.enabled

    async def has_permission(self) -> PermissionStatus:
        return self.permission

    async def request_permission(self) -> PermissionStatus:
        if self.permission is PermissionStatus.DENIED and self._grant_on_request:
            self.permission = PermissionStatus.GRANTED
        return self.permission

    def _check_access(self) -> None:
        if not self.enabled:
            raise LocationServiceDisabledError("location service is disabled")
        if self.permission is not PermissionStatus.GRANTED:
            raise LocationPermissionError(f"location permission is {self.permission}")

    async def get_current(self) -> Position:
        self._check_access()
        if self._last is not None:
            return self._last
        if not self._positions:
            raise LocationUnavailableError("route is empty")
        return self._positions[0]

    async def positions(self) -> AsyncIterator[Position]:
        self._check_access()
        first = True
        while True:
            for position in self._positions:
                if not first and self._interval > 0:
                    await asyncio.sleep(self._interval)
                first = False
                self._last = position
                yield position
            if not self._loop or not self._positions:
                return

    def subscribe(
        self,
        on_update: PositionCallback,
        on_error: ErrorCallback | None = None,
    ) -> LocationSubscription:
        return start_subscription(self.positions(), on_update, on_error)
