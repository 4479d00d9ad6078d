"""TSA configuration validation.

Checks a configuration record field by field and, for credential-bearing
auth methods, actually tries the credentials: basic auth is probed with a
live POST of a dummy timestamp query, PKCS#12 auth is checked by opening the
uploaded keystore with the configured password.

Every rule runs on every call so the caller can show all problems at once.
Nothing raises: network and filesystem failures become
:class:`~tsaconf.models.ValidationIssue` entries.

Usage::

    from tsaconf.appdata import AppData
    from tsaconf.validator import TSAConfigValidator

    validator = TSAConfigValidator(AppData())
    issues = validator.validate({"tsa_url": "https://freetsa.org/tsr",
                                 "tsa_hash_algorithm": "sha256"})
    for issue in issues:
        print(issue.message)
"""

from __future__ import annotations

import logging
import re
import urllib.parse
from typing import Any, Mapping, Optional, Union

from .appdata import AppData, NotFoundError
from .models import (
    VALID_HASH_ALGORITHMS,
    AuthMethod,
    ErrorCode,
    TSAConfig,
    TSASettings,
    ValidationIssue,
    as_settings,
)
from .pkcs12 import Pkcs12Validator
from .probe import TSP_HEADERS, HTTPProbe, ProbeError
from .tsq import DummyTimestampRequestGenerator

logger = logging.getLogger("tsaconf.validator")

_OID_RE = re.compile(r"[0-9]+(\.[0-9]+)+")
_ALLOWED_SCHEMES = ("http", "https")
_FORBIDDEN_URL_CHARS = re.compile(r"[\x00-\x20\x7f]")


def is_valid_url(url: Any) -> bool:
    """Return True if ``url`` is an absolute http(s) URL with a host."""
    if not isinstance(url, str) or _FORBIDDEN_URL_CHARS.search(url):
        return False
    try:
        parts = urllib.parse.urlsplit(url)
        # Accessing .port validates it.
        parts.port
    except ValueError:
        return False
    return parts.scheme in _ALLOWED_SCHEMES and bool(parts.hostname)


def is_valid_policy_oid(oid: Any) -> bool:
    """Return True if ``oid`` is a dotted-decimal OID with two or more arcs."""
    return isinstance(oid, str) and _OID_RE.fullmatch(oid) is not None


class TSAConfigValidator:
    """Rule engine for TSA configuration records.

    Args:
        app_data: Application storage holding the PKCS#12 keystore.
        probe: HTTP client used for the basic-auth probe.
        pkcs12_validator: Keystore password checker.
        settings: Deployment settings (folder and file names, timeout).
    """

    def __init__(
        self,
        app_data: AppData,
        probe: Optional[HTTPProbe] = None,
        pkcs12_validator: Optional[Pkcs12Validator] = None,
        settings: Optional[TSASettings] = None,
    ) -> None:
        self.app_data = app_data
        self.probe = probe or HTTPProbe()
        self.pkcs12_validator = pkcs12_validator or Pkcs12Validator()
        self.settings = settings or TSASettings()

    def validate(
        self, config: Union[TSAConfig, Mapping[str, Any]]
    ) -> list[ValidationIssue]:
        """Validate a configuration record.

        Args:
            config: A :class:`TSAConfig` or a mapping keyed by setting names
                (``tsa_url``, ``tsa_hash_algorithm``...).

        Returns:
            The problems found, in rule order. Empty means valid.
        """
        data = as_settings(config)
        errors: list[ValidationIssue] = []

        url = data.get("tsa_url")
        if not url:
            errors.append(ValidationIssue(code=ErrorCode.URL_REQUIRED))
        elif not is_valid_url(url):
            errors.append(ValidationIssue(code=ErrorCode.INVALID_URL))

        oid = data.get("tsa_policy_oid")
        if oid and not is_valid_policy_oid(oid):
            errors.append(ValidationIssue(code=ErrorCode.INVALID_POLICY_OID))

        hash_algorithm = data.get("tsa_hash_algorithm")
        if not isinstance(hash_algorithm, str) or hash_algorithm not in VALID_HASH_ALGORITHMS:
            errors.append(ValidationIssue(code=ErrorCode.UNSUPPORTED_HASH))

        errors.extend(self._validate_auth(data))

        if errors:
            logger.info(
                "TSA configuration has %d problem(s): %s",
                len(errors),
                ", ".join(e.code.value for e in errors),
            )
        return errors

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def _validate_auth(self, data: Mapping[str, Any]) -> list[ValidationIssue]:
        method = data.get("tsa_auth_method")
        if method is None:
            return []

        if method == AuthMethod.PKCS12.value:
            return self._validate_pkcs12(data.get("tsa_p12_password") or "")
        if method == AuthMethod.BASIC.value:
            return self._validate_basic_auth(
                data.get("tsa_url") or "",
                data.get("tsa_username") or "",
                data.get("tsa_password") or "",
            )
        return [ValidationIssue(code=ErrorCode.UNSUPPORTED_AUTH_METHOD)]

    def _validate_pkcs12(self, password: str) -> list[ValidationIssue]:
        try:
            folder = self.app_data.get_or_create_folder(self.settings.folder_name)
            blob = folder.get_file(self.settings.p12_filename).get_content()
        except NotFoundError:
            return [ValidationIssue(code=ErrorCode.P12_NOT_FOUND)]
        except OSError as exc:
            logger.warning("Could not read TSA keystore: %s", exc)
            return [ValidationIssue(code=ErrorCode.P12_INVALID)]

        if not self.pkcs12_validator.is_valid(blob, str(password)):
            return [ValidationIssue(code=ErrorCode.P12_INVALID)]
        return []

    def _validate_basic_auth(
        self, url: str, username: str, password: str
    ) -> list[ValidationIssue]:
        generator = DummyTimestampRequestGenerator()
        dummy_request = generator.generate()
        if not dummy_request:
            # Generation already reported its own problem; no probe possible.
            return list(generator.errors)

        try:
            status = self.probe.post(
                str(url),
                dummy_request,
                headers=dict(TSP_HEADERS),
                auth=(str(username), str(password)),
                timeout=self.settings.probe_timeout_seconds,
            )
        except ProbeError as exc:
            return [ValidationIssue(code=ErrorCode.AUTH_TRANSPORT, detail=str(exc))]

        if status != 200:
            logger.warning("TSA %s rejected the credentials with status %d", url, status)
            return [ValidationIssue(code=ErrorCode.AUTH_UNEXPECTED_STATUS)]
        return []
