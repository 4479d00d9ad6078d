"""Pydantic models for TSA configuration.

These models describe the settings a signing application needs to reach a
Time Stamping Authority (TSA): the endpoint, the hash algorithm, an optional
policy OID and one of the supported authentication modes. They also define
the typed taxonomy of validation problems reported back to the caller.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

APP_ID = "libresign"

CONFIG_KEYS: tuple[str, ...] = (
    "tsa_url",
    "tsa_auth_method",
    "tsa_username",
    "tsa_password",
    "tsa_p12_password",
    "tsa_policy_oid",
    "tsa_hash_algorithm",
)

SENSITIVE_KEYS: frozenset[str] = frozenset({"tsa_password", "tsa_p12_password"})

P12_FOLDER = "signature"
P12_FILENAME = "tsa.p12"
PROBE_TIMEOUT_SECONDS = 10


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class HashAlgorithm(str, Enum):
    """Hash algorithms a TSA may be configured with."""

    SHA256 = "sha256"
    SHA384 = "sha384"
    SHA512 = "sha512"


VALID_HASH_ALGORITHMS: frozenset[str] = frozenset(h.value for h in HashAlgorithm)


class AuthMethod(str, Enum):
    """Authentication modes for the TSA endpoint.

    No authentication is expressed by leaving the method unset.
    """

    BASIC = "basic"
    PKCS12 = "pkcs12"


class ErrorCode(str, Enum):
    """Validation problems a TSA configuration can have."""

    URL_REQUIRED = "url_required"
    INVALID_URL = "invalid_url"
    INVALID_POLICY_OID = "invalid_policy_oid"
    UNSUPPORTED_HASH = "unsupported_hash"
    UNSUPPORTED_AUTH_METHOD = "unsupported_auth_method"
    P12_NOT_FOUND = "p12_not_found"
    P12_INVALID = "p12_invalid"
    AUTH_UNEXPECTED_STATUS = "auth_unexpected_status"
    AUTH_TRANSPORT = "auth_transport"
    REQUEST_GENERATION = "request_generation"


_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.URL_REQUIRED: "TSA URL is required",
    ErrorCode.INVALID_URL: "Invalid TSA URL",
    ErrorCode.INVALID_POLICY_OID: "Invalid TSA Policy OID",
    ErrorCode.UNSUPPORTED_HASH: "Unsupported hash algorithm",
    ErrorCode.UNSUPPORTED_AUTH_METHOD: "Unsupported authentication method.",
    ErrorCode.P12_NOT_FOUND: "The P12 file was not found.",
    ErrorCode.P12_INVALID: "The provided P12 password is incorrect or the file is invalid.",
    ErrorCode.AUTH_UNEXPECTED_STATUS: "Unable to authenticate to TSA: unexpected status code.",
    ErrorCode.AUTH_TRANSPORT: "Unable to authenticate to TSA: {detail}",
    ErrorCode.REQUEST_GENERATION: "Could not generate TSA request: {detail}",
}


# ---------------------------------------------------------------------------
# Validation issues
# ---------------------------------------------------------------------------


class ValidationIssue(BaseModel):
    """A single problem found while validating a TSA configuration.

    Attributes:
        code: Machine-checkable kind of problem.
        detail: Underlying message for codes that embed one (transport
            failures, request generation failures).
    """

    code: ErrorCode
    detail: Optional[str] = None

    @property
    def message(self) -> str:
        """Human-readable message for this issue."""
        return _MESSAGES[self.code].format(detail=self.detail or "")

    def __str__(self) -> str:
        return self.message

    model_config = {"frozen": True}


def messages(issues: list[ValidationIssue]) -> list[str]:
    """Render a list of issues to their messages, preserving order."""
    return [issue.message for issue in issues]


# ---------------------------------------------------------------------------
# Configuration record
# ---------------------------------------------------------------------------


class TSAConfig(BaseModel):
    """A TSA configuration as entered by an administrator.

    Field values are kept as plain strings so that unsupported values reach
    the validator instead of being rejected while parsing. Aliases are the
    persisted setting keys.

    Attributes:
        url: TSA endpoint URL.
        hash_algorithm: One of ``sha256``, ``sha384`` or ``sha512``.
        auth_method: ``basic``, ``pkcs12`` or unset for no authentication.
        username: Basic-auth user name.
        password: Basic-auth password (sensitive).
        p12_password: Password of the uploaded PKCS#12 keystore (sensitive).
        policy_oid: Dotted-decimal TSA policy OID.
    """

    url: Optional[str] = Field(default=None, alias="tsa_url")
    hash_algorithm: Optional[str] = Field(default=None, alias="tsa_hash_algorithm")
    auth_method: Optional[str] = Field(default=None, alias="tsa_auth_method")
    username: Optional[str] = Field(default=None, alias="tsa_username")
    password: Optional[str] = Field(default=None, alias="tsa_password")
    p12_password: Optional[str] = Field(default=None, alias="tsa_p12_password")
    policy_oid: Optional[str] = Field(default=None, alias="tsa_policy_oid")

    model_config = {"populate_by_name": True}

    def to_settings(self) -> dict[str, str]:
        """Return the non-empty fields keyed by their setting names."""
        return self.model_dump(by_alias=True, exclude_none=True)


def as_settings(config: Any) -> dict[str, Any]:
    """Normalize a ``TSAConfig`` or a mapping to a plain settings dict."""
    if isinstance(config, TSAConfig):
        return config.to_settings()
    return dict(config or {})


# ---------------------------------------------------------------------------
# Deployment settings
# ---------------------------------------------------------------------------


class TSASettings(BaseModel):
    """Deployment-level knobs for the validator and the config store.

    Attributes:
        app_id: Application id the settings are stored under.
        folder_name: AppData folder holding the PKCS#12 keystore.
        p12_filename: Name of the keystore file inside that folder.
        probe_timeout_seconds: Timeout of the basic-auth HTTP probe.
    """

    app_id: str = APP_ID
    folder_name: str = P12_FOLDER
    p12_filename: str = P12_FILENAME
    probe_timeout_seconds: int = PROBE_TIMEOUT_SECONDS
