"""Shared helpers for Firestore endpoint modules.

This module centralizes the most repeated patterns:
- building document and collection resource paths
- mapping Firestore error bodies onto typed exceptions

It is internal to busbeacon and may change at any time.
"""

from __future__ import annotations

from typing import Any

from busbeacon.config import BeaconConfig
from busbeacon.exceptions import (
    BeaconApiError,
    BeaconAuthenticationError,
    BeaconNotFoundError,
    BeaconPermissionDeniedError,
)

_STATUS_ERRORS: dict[str, type[BeaconApiError]] = {
    "UNAUTHENTICATED": BeaconAuthenticationError,
    "PERMISSION_DENIED": BeaconPermissionDeniedError,
    "NOT_FOUND": BeaconNotFoundError,
}


def collection_path(config: BeaconConfig) -> str:
    """Relative REST path of the bus collection."""
    return f"{config.documents_path}/{config.collection}"


def document_path(config: BeaconConfig, bus_id: str) -> str:
    """Relative REST path of a single bus document."""
    doc_id = bus_id.strip()
    if not doc_id or "/" in doc_id:
        raise ValueError(f"invalid bus id: {bus_id!r}")
    return f"{collection_path(config)}/{doc_id}"


def raise_for_error(response: dict[str, Any], *, endpoint: str) -> None:
    """Raise a typed exception if *response* is a Firestore error body."""
    error = response.get("error")
    if not isinstance(error, dict):
        return
    status = str(error.get("status", "") or error.get("code", ""))
    message = str(error.get("message", ""))
    exc_cls = _STATUS_ERRORS.get(status, BeaconApiError)
    # A failed ``exists`` precondition on update means the document is gone.
    if status == "FAILED_PRECONDITION" and "no entity to update" in message.lower():
        exc_cls = BeaconNotFoundError
    raise exc_cls(
        f"{endpoint} failed: status={status} message={message}",
        code=status,
        endpoint=endpoint,
    )
