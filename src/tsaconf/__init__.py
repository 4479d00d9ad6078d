"""TSA connection settings for document signing.

Validates and persists the Time Stamping Authority configuration of a
signing application: endpoint URL, hash algorithm, policy OID and either
basic-auth credentials or a PKCS#12 keystore.
"""

from .appdata import AppData, NotFoundError
from .models import (
    AuthMethod,
    ErrorCode,
    HashAlgorithm,
    TSAConfig,
    TSASettings,
    ValidationIssue,
    messages,
)
from .service import InvalidSettingKeyError, TSAConfigStore
from .settings import FileSettingsStore, SettingsStore
from .validator import TSAConfigValidator

__version__ = "0.1.0"

__all__ = [
    "AppData",
    "AuthMethod",
    "ErrorCode",
    "FileSettingsStore",
    "HashAlgorithm",
    "InvalidSettingKeyError",
    "NotFoundError",
    "SettingsStore",
    "TSAConfig",
    "TSAConfigStore",
    "TSAConfigValidator",
    "TSASettings",
    "ValidationIssue",
    "messages",
]
