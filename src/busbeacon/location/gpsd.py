"""gpsd location source.

Speaks the gpsd JSON protocol over TCP: after the ``VERSION`` banner the
client sends ``?WATCH={"enable":true,"json":true};`` and the daemon streams
one JSON report per line. ``TPV`` (time-position-velocity) reports with a
2D or 3D fix become :class:`Position` objects.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from collections.abc import AsyncIterator
from typing import Any

from pydantic import ValidationError

from busbeacon._constants import GPSD_HOST, GPSD_PORT, GPSD_WATCH_COMMAND
from busbeacon.config import BeaconConfig
from busbeacon.exceptions import LocationServiceDisabledError, LocationUnavailableError
from busbeacon.location.base import (
    ErrorCallback,
    LocationSubscription,
    PermissionStatus,
    PositionCallback,
    start_subscription,
)
from busbeacon.models.position import Position

_logger = logging.getLogger(__name__)

# gpsd TPV "mode": 0 unknown, 1 no fix, 2 2D, 3 3D
_MODE_2D = 2


def _horizontal_error(report: dict[str, Any]) -> Any:
    eph = report.get("eph")
    if eph is not None:
        return eph
    errors = [value for value in (report.get("epx"), report.get("epy")) if isinstance(value, (int, float))]
    return max(errors) if errors else None


def parse_report(line: bytes | str, *, min_mode: int = _MODE_2D) -> Position | None:
    """Parse one gpsd report line.

    Returns ``None`` for non-TPV reports, fixes below *min_mode* and
    malformed lines.
    """
    try:
        report = json.loads(line)
    except (json.JSONDecodeError, UnicodeDecodeError):
        _logger.debug("Ignoring malformed gpsd line: %r", line[:120])
        return None
    if not isinstance(report, dict) or report.get("class") != "TPV":
        return None
    mode = report.get("mode")
    if not isinstance(mode, int) or mode < min_mode:
        return None
    if report.get("lat") is None or report.get("lon") is None:
        return None

    payload = dict(report)
    payload["accuracy"] = _horizontal_error(report)
    try:
        return Position.model_validate(payload)
    except ValidationError:
        _logger.debug("Ignoring invalid TPV report: %s", report, exc_info=True)
        return None


class GpsdLocationSource:
    """Location source backed by a gpsd daemon.

    gpsd has no permission model, so permission is always granted.
    "Enabled" means the daemon accepts connections; a client cannot start
    it, so :meth:`request_enable` only re-checks reachability.
    """

    def __init__(
        self,
        host: str = GPSD_HOST,
        port: int = GPSD_PORT,
        *,
        connect_timeout: float = 5.0,
        fix_timeout: float = 30.0,
        min_mode: int = _MODE_2D,
    ) -> None:
        self._host = host
        self._port = port
        self._connect_timeout = connect_timeout
        self._fix_timeout = fix_timeout
        self._min_mode = min_mode

    @classmethod
    def from_config(cls, config: BeaconConfig, **kwargs: Any) -> GpsdLocationSource:
        return cls(config.gpsd_host, config.gpsd_port, **kwargs)

    def __repr__(self) -> str:
        return f"GpsdLocationSource({self._host}:{self._port})"

    async def _connect(self) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        try:
            return await asyncio.wait_for(
                asyncio.open_connection(self._host, self._port),
                self._connect_timeout,
            )
        except (OSError, TimeoutError) as exc:
            raise LocationServiceDisabledError(f"gpsd not reachable at {self._host}:{self._port}: {exc}") from exc

    async def is_enabled(self) -> bool:
        try:
            _reader, writer = await self._connect()
        except LocationServiceDisabledError:
            _logger.debug("gpsd at %s:%d is not reachable", self._host, self._port)
            return False
        writer.close()
        with contextlib.suppress(OSError):
            await writer.wait_closed()
        return True

    async def request_enable(self) -> bool:
        return await self.is_enabled()

    async def has_permission(self) -> PermissionStatus:
        return PermissionStatus.GRANTED

    async def request_permission(self) -> PermissionStatus:
        return PermissionStatus.GRANTED

    async def positions(self) -> AsyncIterator[Position]:
        """Yield fixes until the daemon closes the connection.

        Raises
        ------
        LocationServiceDisabledError
            If gpsd cannot be reached.
        LocationUnavailableError
            If the connection drops mid-stream.
        """
        reader, writer = await self._connect()
        try:
            writer.write(GPSD_WATCH_COMMAND)
            await writer.drain()
            _logger.debug("Watching gpsd at %s:%d", self._host, self._port)
            while True:
                try:
                    line = await reader.readline()
                except OSError as exc:
                    raise LocationUnavailableError(f"gpsd connection failed: {exc}") from exc
                except (ValueError, asyncio.LimitOverrunError, asyncio.IncompleteReadError) as exc:
                    # Lines over the stream buffer limit.
                    raise LocationUnavailableError(f"unreadable gpsd report: {exc}") from exc
                if not line:
                    raise LocationUnavailableError("gpsd closed the connection")
                position = parse_report(line, min_mode=self._min_mode)
                if position is not None:
                    yield position
        finally:
            writer.close()
            with contextlib.suppress(OSError):
                await writer.wait_closed()

    async def get_current(self) -> Position:
        """Return the first fix gpsd reports within ``fix_timeout`` seconds."""
        try:
            async with asyncio.timeout(self._fix_timeout), contextlib.aclosing(self.positions()) as stream:
                async for position in stream:
                    return position
        except TimeoutError as exc:
            raise LocationUnavailableError(f"no GPS fix within {self._fix_timeout}s") from exc
        raise LocationUnavailableError("gpsd stream ended without a fix")

    def subscribe(
        self,
        on_update: PositionCallback,
        on_error: ErrorCallback | None = None,
    ) -> LocationSubscription:
        return start_subscription(self.positions(), on_update, on_error)
