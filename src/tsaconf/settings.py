"""Filesystem-backed key-value settings store.

Settings are kept as one JSON document per application id. Values flagged
as sensitive are encrypted with a Fernet key that is generated on first use
and kept next to the settings with owner-only permissions.

Directory layout::

    ~/.tsaconf/
    ├── secret.key          # Fernet key for sensitive values (0600)
    └── config/
        └── <app-id>.json   # {"<key>": {"value": "...", "sensitive": false}}
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional, Protocol

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger("tsaconf.settings")

DEFAULT_TSACONF_DIR = Path.home() / ".tsaconf"


class SettingsStore(Protocol):
    """String key-value settings keyed by application id."""

    def get_value(self, app_id: str, key: str, default: str = "") -> str: ...

    def set_value(
        self, app_id: str, key: str, value: str, sensitive: bool = False
    ) -> None: ...

    def delete_key(self, app_id: str, key: str) -> None: ...

    def is_sensitive(self, app_id: str, key: str) -> bool: ...


class FileSettingsStore:
    """JSON settings on disk with encrypted sensitive values.

    Args:
        base_dir: Root directory for settings data.
    """

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self.base = base_dir or DEFAULT_TSACONF_DIR
        self._config_dir = self.base / "config"
        self._key_path = self.base / "secret.key"
        self._fernet: Optional[Fernet] = None

        self._config_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_value(self, app_id: str, key: str, default: str = "") -> str:
        """Read a setting.

        Args:
            app_id: Application the setting belongs to.
            key: Setting name.
            default: Returned when the setting is unset.

        Returns:
            The stored value, decrypted if it was stored as sensitive.
        """
        entry = self._load(app_id).get(key)
        if entry is None:
            return default
        if entry.get("sensitive"):
            return self._decrypt(entry["value"])
        return entry["value"]

    def set_value(
        self, app_id: str, key: str, value: str, sensitive: bool = False
    ) -> None:
        """Write a setting.

        Writing a value identical to the stored one leaves the file untouched.

        Args:
            app_id: Application the setting belongs to.
            key: Setting name.
            value: String value to store.
            sensitive: Encrypt the value at rest.
        """
        data = self._load(app_id)
        current = data.get(key)
        if (
            current is not None
            and bool(current.get("sensitive")) == sensitive
            and self.get_value(app_id, key) == value
        ):
            return

        stored = self._encrypt(value) if sensitive else value
        data[key] = {"value": stored, "sensitive": sensitive}
        self._dump(app_id, data)
        logger.info("Stored setting %s/%s%s", app_id, key, " (sensitive)" if sensitive else "")

    def delete_key(self, app_id: str, key: str) -> None:
        """Remove a setting. Missing settings are ignored."""
        data = self._load(app_id)
        if key in data:
            del data[key]
            self._dump(app_id, data)
            logger.info("Deleted setting %s/%s", app_id, key)

    def is_sensitive(self, app_id: str, key: str) -> bool:
        """Return True if the setting is stored encrypted."""
        entry = self._load(app_id).get(key)
        return bool(entry and entry.get("sensitive"))

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _path(self, app_id: str) -> Path:
        return self._config_dir / f"{app_id}.json"

    def _load(self, app_id: str) -> dict:
        path = self._path(app_id)
        if not path.exists():
            return {}
        return json.loads(path.read_text(encoding="utf-8"))

    def _dump(self, app_id: str, data: dict) -> None:
        path = self._path(app_id)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        tmp.replace(path)

    # ------------------------------------------------------------------
    # Encryption
    # ------------------------------------------------------------------

    def _get_fernet(self) -> Fernet:
        if self._fernet is None:
            if self._key_path.exists():
                key = self._key_path.read_bytes()
            else:
                key = Fernet.generate_key()
                fd = os.open(self._key_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
                with os.fdopen(fd, "wb") as f:
                    f.write(key)
                logger.info("Generated settings encryption key at %s", self._key_path)
            self._fernet = Fernet(key)
        return self._fernet

    def _encrypt(self, value: str) -> str:
        return self._get_fernet().encrypt(value.encode("utf-8")).decode("ascii")

    def _decrypt(self, token: str) -> str:
        try:
            return self._get_fernet().decrypt(token.encode("ascii")).decode("utf-8")
        except InvalidToken as exc:
            raise RuntimeError(
                f"Cannot decrypt sensitive setting with key {self._key_path}"
            ) from exc
