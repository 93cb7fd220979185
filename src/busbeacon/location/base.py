"""Location source interface.

Every source exposes the same six operations: service and permission
checks (with their "request" counterparts), a one-shot fix, and a
cancellable push subscription.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from enum import StrEnum
from typing import Protocol

from busbeacon.exceptions import BeaconLocationError, LocationUnavailableError
from busbeacon.models.position import Position

_logger = logging.getLogger(__name__)

PositionCallback = Callable[[Position], None]
ErrorCallback = Callable[[BeaconLocationError], None]


class PermissionStatus(StrEnum):
    GRANTED = "granted"
    DENIED = "denied"
    DENIED_FOREVER = "denied-forever"


class LocationSubscription:
    """Handle for a running position stream.

    Cancelling is unconditional and idempotent.
    """

    def __init__(self, task: asyncio.Task[None]) -> None:
        self._task = task

    @property
    def active(self) -> bool:
        return not self._task.done()

    def cancel(self) -> None:
        if not self._task.done():
            self._task.cancel()

    async def wait_closed(self) -> None:
        """Wait until the stream task has finished (after cancel or end of stream)."""
        try:
            await self._task
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise


class LocationSource(Protocol):
    """Structural interface for device location providers."""

    async def is_enabled(self) -> bool:
        ...

    async def request_enable(self) -> bool:
        ...

    async def has_permission(self) -> PermissionStatus:
        ...

    async def request_permission(self) -> PermissionStatus:
        ...

    async def get_current(self) -> Position:
        ...

    def subscribe(
        self,
        on_update: PositionCallback,
        on_error: ErrorCallback | None = None,
    ) -> LocationSubscription:
        ...


async def _pump(
    stream: AsyncIterator[Position],
    on_update: PositionCallback,
    on_error: ErrorCallback | None,
) -> None:
    try:
        async for position in stream:
            try:
                on_update(position)
            except Exception:
                _logger.warning("Position callback failed", exc_info=True)
    except BeaconLocationError as exc:
        _logger.debug("Position stream ended: %s", exc)
        if on_error is not None:
            on_error(exc)
    except Exception as exc:
        _logger.warning("Position stream failed", exc_info=True)
        if on_error is not None:
            error = LocationUnavailableError(f"location stream failed: {exc}")
            error.__cause__ = exc
            on_error(error)


def start_subscription(
    stream: AsyncIterator[Position],
    on_update: PositionCallback,
    on_error: ErrorCallback | None = None,
) -> LocationSubscription:
    """Drive *stream* in a background task, delivering each fix to *on_update*.

    Must be called from a running event loop.
    """
    task = asyncio.get_running_loop().create_task(_pump(stream, on_update, on_error))
    return LocationSubscription(task)
