from __future__ import annotations

import pytest

from busbeacon.config import BeaconConfig
from busbeacon.exceptions import BeaconConfigError

_ENV_KEYS = (
    "BEACON_PROJECT_ID",
    "BEACON_DATABASE",
    "BEACON_COLLECTION",
    "BEACON_BASE_URL",
    "FIRESTORE_EMULATOR_HOST",
    "BEACON_API_KEY",
    "BEACON_AUTH_TOKEN",
    "BEACON_GPSD_HOST",
    "BEACON_GPSD_PORT",
    "BEACON_REQUEST_TIMEOUT",
    "BEACON_DEFAULT_LATITUDE",
    "BEACON_DEFAULT_LONGITUDE",
    "BEACON_VERIFY_SSL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_from_env_reads_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BEACON_PROJECT_ID", "fleet")
    monkeypatch.setenv("BEACON_COLLECTION", "shuttles")
    monkeypatch.setenv("BEACON_GPSD_PORT", "3000")
    monkeypatch.setenv("BEACON_DEFAULT_LATITUDE", "51.5")
    monkeypatch.setenv("BEACON_VERIFY_SSL", "off")

    config = BeaconConfig.from_env()

    assert config.project_id == "fleet"
    assert config.collection == "shuttles"
    assert config.gpsd_port == 3000
    assert config.default_latitude == 51.5
    assert config.verify_ssl is False
    assert config.documents_path == "projects/fleet/databases/(default)/documents"


def test_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BEACON_PROJECT_ID", "fleet")
    monkeypatch.setenv("BEACON_REQUEST_TIMEOUT", "3")

    config = BeaconConfig.from_env(project_id="other", request_timeout=9.0)

    assert config.project_id == "other"
    assert config.request_timeout == 9.0


def test_bad_number_raises_config_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BEACON_GPSD_PORT", "gps")
    with pytest.raises(BeaconConfigError):
        BeaconConfig.from_env()


def test_emulator_host_switches_base_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FIRESTORE_EMULATOR_HOST", "localhost:8080")
    config = BeaconConfig.from_env(project_id="demo")
    assert config.rest_base_url == "http://localhost:8080/v1"


@pytest.mark.parametrize(
    "config",
    [
        BeaconConfig(),
        BeaconConfig(project_id="p", collection="a/b"),
        BeaconConfig(project_id="p", request_timeout=0),
    ],
)
def test_validate_rejects_unusable_config(config: BeaconConfig) -> None:
    with pytest.raises(BeaconConfigError):
        config.validate()
