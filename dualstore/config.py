"""
Configuration for dualstore.

Settings come from three places, later ones winning:

1. Defaults on ``StoreConfig``
2. A YAML settings file (``~/.dualstore/settings.yaml`` by default)
3. Environment variables

Settings file format:

```yaml
dualstore:
  api_url: "https://api.example.com/api"
  sqlite_path: "~/.dualstore/items.db"
  request_timeout: 10
```

Environment Variables:
    DUALSTORE_API_URL: Base URL of the remote document API
    DUALSTORE_SQLITE_PATH: Path of the local SQLite database
    DUALSTORE_CHOICE_PATH: Path of the persisted backend choice
    DUALSTORE_REQUEST_TIMEOUT: Timeout in seconds for remote CRUD calls
    DUALSTORE_PROBE_TIMEOUT: Timeout in seconds for the connectivity probe
    DUALSTORE_POSTAL_URL: Base URL of the postal-code service
    DUALSTORE_POSTAL_TIMEOUT: Timeout in seconds for postal-code lookups
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_HOME = Path.home() / ".dualstore"
DEFAULT_API_URL = "http://10.0.2.2:3000/api"
DEFAULT_POSTAL_URL = "https://viacep.com.br/ws"

_ENV_VARS = {
    "api_url": "DUALSTORE_API_URL",
    "sqlite_path": "DUALSTORE_SQLITE_PATH",
    "choice_path": "DUALSTORE_CHOICE_PATH",
    "request_timeout": "DUALSTORE_REQUEST_TIMEOUT",
    "probe_timeout": "DUALSTORE_PROBE_TIMEOUT",
    "postal_url": "DUALSTORE_POSTAL_URL",
    "postal_timeout": "DUALSTORE_POSTAL_TIMEOUT",
}

_FLOAT_FIELDS = {"request_timeout", "probe_timeout", "postal_timeout"}


@dataclass
class StoreConfig:
    """Top-level settings for a DualStore instance.

    Attributes:
        api_url: Base URL of the remote document API (resources live below it)
        sqlite_path: Local database file, or ":memory:"
        choice_path: JSON file holding the backend choice; None keeps it in memory
        request_timeout: Seconds before a remote CRUD call fails
        probe_timeout: Seconds before the connectivity probe reports unreachable
        postal_url: Base URL of the postal-code lookup service
        postal_timeout: Seconds before a postal-code lookup gives up
    """

    api_url: str = DEFAULT_API_URL
    sqlite_path: str = str(DEFAULT_HOME / "items.db")
    choice_path: str | None = str(DEFAULT_HOME / "database_choice.json")
    request_timeout: float = 10.0
    probe_timeout: float = 5.0
    postal_url: str = DEFAULT_POSTAL_URL
    postal_timeout: float = 8.0

    @classmethod
    def from_env(cls) -> StoreConfig:
        """Create config from defaults plus environment variables."""
        return cls(**_env_overrides())

    @classmethod
    def from_file(cls, path: str | Path | None = None) -> StoreConfig:
        """Create config from a YAML settings file plus environment variables.

        A missing file is not an error; the defaults apply.

        Raises:
            ValidationError: If the file is not valid YAML or has unknown keys
        """
        path = Path(path).expanduser() if path else DEFAULT_HOME / "settings.yaml"
        values: dict[str, Any] = {}

        if path.exists():
            try:
                with open(path, encoding="utf-8") as f:
                    document = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValidationError("settings", f"invalid YAML in {path}: {e}") from e

            section = (document.get("dualstore") if isinstance(document, dict) else None) or {}
            if not isinstance(section, dict):
                raise ValidationError("settings", f"dualstore section in {path} must be a mapping")
            known = {f.name for f in fields(cls)}
            unknown = set(section) - known
            if unknown:
                raise ValidationError("settings", f"unknown keys: {', '.join(sorted(unknown))}")
            values.update(section)
            logger.debug(f"Loaded settings from {path}")

        values.update(_env_overrides())
        for name in _FLOAT_FIELDS & set(values):
            values[name] = _as_float(name, values[name])
        for name in ("sqlite_path", "choice_path"):
            if values.get(name) and values[name] != ":memory:":
                values[name] = str(Path(values[name]).expanduser())
        return cls(**values)


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for name, var in _ENV_VARS.items():
        value = os.environ.get(var)
        if value is None:
            continue
        overrides[name] = _as_float(name, value) if name in _FLOAT_FIELDS else value
    return overrides


def _as_float(name: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(name, "must be a number", str(value)) from e
