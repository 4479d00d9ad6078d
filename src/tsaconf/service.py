"""Persistence of the TSA configuration.

The configuration is not stored as one record: each of the seven
``tsa_*`` keys is an independent setting in a :class:`SettingsStore`.
Saving is a partial update, except for the credentials that the chosen
auth method makes meaningless, which are always cleared. The PKCS#12
keystore lives in the application's ``signature`` folder and is removed
together with the settings.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Mapping, Optional, Union

from .appdata import AppData, NotFoundError
from .models import (
    CONFIG_KEYS,
    SENSITIVE_KEYS,
    AuthMethod,
    TSAConfig,
    TSASettings,
    as_settings,
)
from .settings import SettingsStore

logger = logging.getLogger("tsaconf.service")


class InvalidSettingKeyError(ValueError):
    """Raised when a key outside the TSA setting keys is requested."""


class TSAConfigStore:
    """Save, read and wipe the TSA configuration.

    Args:
        settings_store: Key-value store for the ``tsa_*`` settings.
        app_data: Application storage holding the PKCS#12 keystore.
        settings: Deployment settings (app id, folder and file names).
    """

    def __init__(
        self,
        settings_store: SettingsStore,
        app_data: AppData,
        settings: Optional[TSASettings] = None,
    ) -> None:
        self.settings_store = settings_store
        self.app_data = app_data
        self.settings = settings or TSASettings()

    @property
    def app_id(self) -> str:
        return self.settings.app_id

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def save(self, config: Union[TSAConfig, Mapping[str, Any]]) -> None:
        """Normalize and persist a configuration.

        Credentials that do not belong to the selected auth method are
        deleted first. Recognized keys present in ``config`` are then
        written; keys absent from it keep their stored value.

        Args:
            config: A :class:`TSAConfig` or a mapping keyed by setting names.
        """
        data = as_settings(config)
        self._apply_auth_method_rules(data.get("tsa_auth_method"))
        self._store_settings(data)

    def get_value(self, key: str) -> str:
        """Read one TSA setting.

        Args:
            key: One of :data:`~tsaconf.models.CONFIG_KEYS`.

        Returns:
            The stored value, or an empty string if unset.

        Raises:
            InvalidSettingKeyError: If ``key`` is not a TSA setting key.
        """
        if key not in CONFIG_KEYS:
            raise InvalidSettingKeyError(f"Invalid TSA setting key: {key}")
        return self.settings_store.get_value(self.app_id, key)

    def get_config(self) -> TSAConfig:
        """Read the stored settings back into a :class:`TSAConfig`.

        Unset keys stay unset on the returned model.
        """
        stored = {key: self.get_value(key) for key in CONFIG_KEYS}
        return TSAConfig.model_validate({k: v for k, v in stored.items() if v})

    def delete(self) -> None:
        """Remove every TSA setting and the PKCS#12 keystore, if any."""
        for key in CONFIG_KEYS:
            self.settings_store.delete_key(self.app_id, key)

        folder = self.app_data.get_or_create_folder(self.settings.folder_name)
        try:
            folder.delete_file(self.settings.p12_filename)
        except NotFoundError:
            pass
        logger.info("Deleted TSA configuration for %s", self.app_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _apply_auth_method_rules(self, auth_method: Any) -> None:
        if auth_method == AuthMethod.PKCS12.value:
            self.settings_store.delete_key(self.app_id, "tsa_username")
        elif auth_method != AuthMethod.BASIC.value:
            self.settings_store.delete_key(self.app_id, "tsa_username")
            self.settings_store.delete_key(self.app_id, "tsa_password")

    def _store_settings(self, data: Mapping[str, Any]) -> None:
        for key in CONFIG_KEYS:
            value = data.get(key)
            if value is None:
                continue
            self.settings_store.set_value(
                self.app_id,
                key,
                str(value.value if isinstance(value, Enum) else value),
                sensitive=key in SENSITIVE_KEYS,
            )
        logger.info("Saved TSA configuration for %s", self.app_id)
