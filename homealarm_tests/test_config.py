"""Test loading broker credentials."""

import json
from pathlib import Path

import pytest

from homealarm.config import Credentials, load_credentials


def _write(tmp_path: Path, data: object) -> Path:
    path = tmp_path / "creds.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_load_credentials(tmp_path: Path) -> None:
    """Check all credential fields are read."""
    path = _write(
        tmp_path, {"user": "alarm", "pass": "secret", "broker": "mqtt", "port": 1884}
    )
    assert load_credentials(path) == Credentials(
        broker="mqtt", port=1884, username="alarm", password="secret"
    )


def test_load_credentials_defaults(tmp_path: Path) -> None:
    """Check port and login are optional."""
    path = _write(tmp_path, {"broker": "mqtt"})
    assert load_credentials(path) == Credentials(broker="mqtt")


@pytest.mark.parametrize(
    "data",
    [
        {"user": "alarm"},
        {"broker": "mqtt", "port": "1883"},
        {"broker": "mqtt", "port": True},
        ["mqtt"],
    ],
)
def test_load_credentials_invalid(tmp_path: Path, data: object) -> None:
    """Check incomplete credential files are rejected."""
    with pytest.raises(ValueError, match=r"Credentials file"):
        load_credentials(_write(tmp_path, data))


def test_load_credentials_missing_file(tmp_path: Path) -> None:
    """Check a missing file is reported as a ValueError."""
    with pytest.raises(ValueError, match=r"Failed to read credentials file"):
        load_credentials(tmp_path / "missing.json")
