"""HTTP transport for the Firestore REST API."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

import aiohttp

from busbeacon._constants import EMULATOR_TOKEN, USER_AGENT
from busbeacon._redact import redact_for_log
from busbeacon.config import BeaconConfig
from busbeacon.exceptions import BeaconTransportError

_logger = logging.getLogger(__name__)

QueryParams = Sequence[tuple[str, str]]


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles/mocks while
    keeping the production implementation (`FirestoreTransport`) concrete.
    """

    async def request_json(
        self,
        method: str,
        path: str,
        *,
        params: QueryParams | None = None,
        payload: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        ...


class FirestoreTransport:
    """JSON-over-HTTP transport that handles auth headers and error bodies.

    Successful (2xx) responses are returned decoded. Non-2xx responses that
    carry a Firestore ``{"error": {...}}`` body are returned as-is so the
    endpoint layer can map ``error.status`` onto typed exceptions; anything
    else raises :class:`BeaconTransportError`.
    """

    def __init__(
        self,
        config: BeaconConfig,
        http_session: aiohttp.ClientSession,
    ) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    def _build_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }
        token = EMULATOR_TOKEN if self._config.emulator_host else self._config.auth_token
        if token:
            headers["authorization"] = f"Bearer {token}"
        return headers

    def _build_params(self, params: QueryParams | None) -> list[tuple[str, str]]:
        query = list(params or ())
        if self._config.api_key and not self._config.emulator_host:
            query.append(("key", self._config.api_key))
        return query

    async def request_json(
        self,
        method: str,
        path: str,
        *,
        params: QueryParams | None = None,
        payload: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send one REST call and return the decoded JSON object.

        *path* is relative to the REST base URL (e.g.
        ``projects/p/databases/(default)/documents/buses``).
        """
        url = f"{self._config.rest_base_url}/{path.lstrip('/')}"
        query = self._build_params(params)
        headers = self._build_headers()
        body: str | None = None
        if payload is not None:
            body = json.dumps(payload, separators=(",", ":"))
            headers["content-type"] = "application/json; charset=UTF-8"

        _logger.debug(
            "%s %s params=%s payload=%s",
            method,
            url,
            redact_for_log(dict(query)),
            redact_for_log(payload),
        )

        try:
            async with self._http.request(
                method,
                url,
                params=query,
                data=body,
                headers=headers,
                timeout=self._timeout,
                ssl=self._config.verify_ssl,
            ) as resp:
                status = resp.status
                text = await resp.text()
        except aiohttp.ClientError as exc:
            raise BeaconTransportError(
                f"Request to {path} failed: {exc}",
                endpoint=path,
            ) from exc
        except TimeoutError as exc:
            raise BeaconTransportError(
                f"Request to {path} timed out after {self._config.request_timeout}s",
                endpoint=path,
            ) from exc

        try:
            decoded = json.loads(text) if text.strip() else {}
        except json.JSONDecodeError as exc:
            raise BeaconTransportError(
                f"Invalid JSON from {path} (HTTP {status}): {text[:200]}",
                status_code=status,
                endpoint=path,
            ) from exc

        if not isinstance(decoded, dict):
            raise BeaconTransportError(
                f"Unexpected JSON payload from {path} (HTTP {status})",
                status_code=status,
                endpoint=path,
            )

        if not 200 <= status < 300:
            if isinstance(decoded.get("error"), dict):
                _logger.debug("HTTP %d from %s: %s", status, path, redact_for_log(decoded))
                return decoded
            raise BeaconTransportError(
                f"HTTP {status} from {path}: {text[:200]}",
                status_code=status,
                endpoint=path,
            )

        return decoded
