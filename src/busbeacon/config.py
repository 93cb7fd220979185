"""Client configuration for busbeacon."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from busbeacon._constants import (
    DEFAULT_COLLECTION,
    DEFAULT_DATABASE,
    DEFAULT_LATITUDE,
    DEFAULT_LONGITUDE,
    FIRESTORE_BASE_URL,
    GPSD_HOST,
    GPSD_PORT,
)
from busbeacon.exceptions import BeaconConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class BeaconConfig:
    """Client configuration.

    Parameters
    ----------
    project_id : str
        Google Cloud / Firebase project that hosts the Firestore database.
    database : str
        Firestore database id. Defaults to ``"(default)"``.
    collection : str
        Collection holding the bus documents.
    base_url : str
        Firestore REST base URL. Ignored when ``emulator_host`` is set.
    emulator_host : str or None
        ``host:port`` of a Firestore emulator. When set, requests go over
        plain HTTP and authenticate with the emulator admin token.
    api_key : str or None
        Firebase web API key, sent as the ``key`` query parameter.
    auth_token : str or None
        OAuth2 access token or Firebase ID token sent as a bearer token.
    request_timeout : float
        Total timeout in seconds for a single REST call.
    verify_ssl : bool
        Verify TLS certificates.
    gpsd_host : str
        Host of the gpsd daemon used for live tracking.
    gpsd_port : int
        Port of the gpsd daemon.
    default_latitude : float
        Manual-mode latitude used on start and on reset.
    default_longitude : float
        Manual-mode longitude used on start and on reset.
    """

    project_id: str = ""
    database: str = DEFAULT_DATABASE
    collection: str = DEFAULT_COLLECTION
    base_url: str = FIRESTORE_BASE_URL
    emulator_host: str | None = None
    api_key: str | None = None
    auth_token: str | None = None
    request_timeout: float = 15.0
    verify_ssl: bool = True
    gpsd_host: str = GPSD_HOST
    gpsd_port: int = GPSD_PORT
    default_latitude: float = DEFAULT_LATITUDE
    default_longitude: float = DEFAULT_LONGITUDE

    @property
    def rest_base_url(self) -> str:
        """Base URL for REST calls, honouring the emulator setting."""
        if self.emulator_host:
            return f"http://{self.emulator_host}/v1"
        return self.base_url.rstrip("/")

    @property
    def documents_path(self) -> str:
        """Resource path of the database's document root."""
        return f"projects/{self.project_id}/databases/{self.database}/documents"

    def validate(self) -> None:
        """Raise :class:`BeaconConfigError` when the configuration is unusable."""
        if not self.project_id.strip():
            raise BeaconConfigError("project_id is required (set BEACON_PROJECT_ID)")
        if not self.collection.strip() or "/" in self.collection:
            raise BeaconConfigError(f"invalid collection name: {self.collection!r}")
        if self.request_timeout <= 0:
            raise BeaconConfigError("request_timeout must be positive")

    @classmethod
    def from_env(cls, **overrides: Any) -> BeaconConfig:
        """Create configuration from environment variables.

        Reads ``BEACON_*`` variables plus the standard
        ``FIRESTORE_EMULATOR_HOST``. Explicit keyword arguments override
        environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        BeaconConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "BEACON_PROJECT_ID": "project_id",
            "BEACON_DATABASE": "database",
            "BEACON_COLLECTION": "collection",
            "BEACON_BASE_URL": "base_url",
            "FIRESTORE_EMULATOR_HOST": "emulator_host",
            "BEACON_API_KEY": "api_key",
            "BEACON_AUTH_TOKEN": "auth_token",
            "BEACON_GPSD_HOST": "gpsd_host",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val:
                config_kwargs[field_name] = val

        # Numeric fields, handled separately
        _ENV_NUMERIC_MAP = {
            "BEACON_REQUEST_TIMEOUT": ("request_timeout", float),
            "BEACON_GPSD_PORT": ("gpsd_port", int),
            "BEACON_DEFAULT_LATITUDE": ("default_latitude", float),
            "BEACON_DEFAULT_LONGITUDE": ("default_longitude", float),
        }
        for env_key, (field_name, convert) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = convert(val)
            except ValueError as exc:
                raise BeaconConfigError(f"{env_key} is not a valid number: {val!r}") from exc

        if "verify_ssl" not in overrides:
            config_kwargs["verify_ssl"] = _env_bool(env.get("BEACON_VERIFY_SSL"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
