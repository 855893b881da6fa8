"""Settings store and provider credential handling.

Credentials live in a key/value settings store under snake_case keys. When
the store has no value for a key, the matching environment variable is
used instead.
"""

import json
import logging
import os
import threading
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)

# Settings key -> environment variable consulted when the key is unset.
CREDENTIAL_ENV_VARS: dict[str, str] = {
    "pexels_api_key": "PEXELS_API_KEY",
    "pixabay_api_key": "PIXABAY_API_KEY",
    "unsplash_api_key": "UNSPLASH_ACCESS_KEY",
    "google_api_key": "GOOGLE_API_KEY",
    "google_search_engine_id": "GOOGLE_SEARCH_ENGINE_ID",
}


class SettingsStore(Protocol):
    """Key/value store for user settings."""

    def get(self, key: str) -> Any | None:
        """Return the stored value, or None if unset."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``."""
        ...


class InMemorySettingsStore:
    """Dict-backed settings store."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any | None:
        return self._values.get(key)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value


class JsonFileSettingsStore:
    """Settings persisted to a single JSON object on disk.

    The file is read once on construction and rewritten on every ``set``.
    A missing file is treated as empty.

    Args:
        path: Location of the JSON file.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.Lock()
        self._values: dict[str, Any] = {}
        if path.exists():
            data = json.loads(path.read_text())
            if not isinstance(data, dict):
                raise ValueError(f"Settings file {path} must contain a JSON object")
            self._values = data

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> Any | None:
        with self._lock:
            return self._values.get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._values[key] = value
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(self._values, indent=2, sort_keys=True))


@dataclass(frozen=True)
class ProviderCredentials:
    """API keys for the sources that need them. None means not configured."""

    pexels_api_key: str | None = None
    pixabay_api_key: str | None = None
    unsplash_api_key: str | None = None
    google_api_key: str | None = None
    google_search_engine_id: str | None = None

    def configured(self) -> list[str]:
        """Names of the credential fields that hold a value."""
        return [f.name for f in fields(self) if getattr(self, f.name)]


def load_credentials(
    store: SettingsStore | None = None,
    *,
    use_env: bool = True,
) -> ProviderCredentials:
    """Read provider credentials from ``store``, falling back to the environment.

    Args:
        store: Settings store to read from. None reads only the environment.
        use_env: Whether to consult environment variables for unset keys.
    """
    values: dict[str, str | None] = {}
    for key, env_var in CREDENTIAL_ENV_VARS.items():
        value = store.get(key) if store is not None else None
        if not value and use_env:
            value = os.environ.get(env_var)
        values[key] = str(value) if value else None

    credentials = ProviderCredentials(**values)
    logger.debug(f"Loaded credentials for: {credentials.configured()}")
    return credentials


def save_credentials(store: SettingsStore, credentials: ProviderCredentials) -> None:
    """Write every configured credential to ``store``; unset fields are skipped."""
    for key, value in asdict(credentials).items():
        if value:
            store.set(key, value)
