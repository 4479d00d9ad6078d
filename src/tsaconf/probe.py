"""Outbound HTTP probe used to check TSA credentials.

The probe performs a single POST with HTTP basic authentication and reports
the status code. Transport failures are raised as :class:`ProbeError` so
callers can tell "the server answered" apart from "the server could not be
reached".
"""

from __future__ import annotations

import base64
import http.client
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Optional

from .models import PROBE_TIMEOUT_SECONDS

logger = logging.getLogger("tsaconf.probe")

TSP_HEADERS: dict[str, str] = {
    "Content-Type": "application/timestamp-query",
    "Accept": "application/timestamp-reply",
}

_ALLOWED_SCHEMES = ("http", "https")


class ProbeError(Exception):
    """The TSA endpoint could not be reached (DNS, connection, timeout)."""


def basic_auth_header(username: str, password: str) -> str:
    """Build an ``Authorization`` header value for HTTP basic auth."""
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


class HTTPProbe:
    """Thin ``urllib`` client performing one authenticated POST."""

    def post(
        self,
        url: str,
        body: bytes,
        headers: Optional[dict[str, str]] = None,
        auth: Optional[tuple[str, str]] = None,
        timeout: float = PROBE_TIMEOUT_SECONDS,
    ) -> int:
        """POST ``body`` to ``url`` and return the HTTP status code.

        Args:
            url: Target endpoint; only ``http`` and ``https`` are accepted.
            body: Request payload.
            headers: Extra request headers.
            auth: ``(username, password)`` for HTTP basic auth.
            timeout: Socket timeout in seconds.

        Returns:
            The response status code, including error statuses such as 401.

        Raises:
            ProbeError: If no HTTP response could be obtained.
        """
        try:
            scheme = urllib.parse.urlsplit(url).scheme if isinstance(url, str) else ""
        except ValueError as exc:
            raise ProbeError(f"invalid URL {url!r}: {exc}") from exc
        if scheme not in _ALLOWED_SCHEMES:
            raise ProbeError(f"unsupported URL scheme for {url!r}")

        request_headers = dict(headers or {})
        try:
            if auth is not None:
                request_headers["Authorization"] = basic_auth_header(*auth)
        except UnicodeError as exc:
            raise ProbeError("credentials cannot be encoded as UTF-8") from exc

        try:
            req = urllib.request.Request(
                url,
                data=body,
                headers=request_headers,
                method="POST",
            )
            with urllib.request.urlopen(req, timeout=timeout) as resp:
                status = resp.status
        except urllib.error.HTTPError as exc:
            status = exc.code
            exc.close()
        except urllib.error.URLError as exc:
            logger.warning("TSA probe to %s failed: %s", url, exc.reason)
            raise ProbeError(str(exc.reason)) from exc
        except (OSError, ValueError, http.client.HTTPException) as exc:
            logger.warning("TSA probe to %s failed: %s", url, exc)
            raise ProbeError(str(exc)) from exc

        logger.debug("TSA probe to %s answered %d", url, status)
        return status
