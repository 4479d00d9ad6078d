"""Tests for the HTTP credential probe (urllib mocked)."""

from __future__ import annotations

import base64
import io
import socket
import urllib.error
from unittest.mock import patch

import pytest

from tsaconf.probe import TSP_HEADERS, HTTPProbe, ProbeError, basic_auth_header


URL = "https://tsa.example.coop/tsr"


def _http_error(code: int) -> urllib.error.HTTPError:
    return urllib.error.HTTPError(URL, code, "error", hdrs={}, fp=io.BytesIO(b""))


class TestBasicAuthHeader:

    def test_encodes_credentials(self):
        header = basic_auth_header("user", "pa:ss")
        assert header.startswith("Basic ")
        assert base64.b64decode(header[6:]) == b"user:pa:ss"

    def test_empty_credentials(self):
        assert basic_auth_header("", "") == "Basic Og=="


class TestHTTPProbe:
    """HTTPProbe.post() with urlopen patched."""

    def test_returns_status(self):
        with patch("urllib.request.urlopen") as urlopen:
            urlopen.return_value.__enter__.return_value.status = 200
            status = HTTPProbe().post(URL, b"\x30\x00", headers=TSP_HEADERS, auth=("u", "p"))
        assert status == 200

    def test_request_shape(self):
        with patch("urllib.request.urlopen") as urlopen:
            urlopen.return_value.__enter__.return_value.status = 200
            HTTPProbe().post(
                URL, b"\x30\x00", headers=TSP_HEADERS, auth=("user", "pass"), timeout=10
            )

        req = urlopen.call_args.args[0]
        assert req.get_method() == "POST"
        assert req.full_url == URL
        assert req.data == b"\x30\x00"
        assert req.get_header("Content-type") == "application/timestamp-query"
        assert req.get_header("Accept") == "application/timestamp-reply"
        assert req.get_header("Authorization") == basic_auth_header("user", "pass")
        assert urlopen.call_args.kwargs["timeout"] == 10

    def test_no_auth_header_without_auth(self):
        with patch("urllib.request.urlopen") as urlopen:
            urlopen.return_value.__enter__.return_value.status = 200
            HTTPProbe().post(URL, b"\x30\x00")
        assert urlopen.call_args.args[0].get_header("Authorization") is None

    @pytest.mark.parametrize("code", [401, 403, 500])
    def test_http_error_returns_code(self, code):
        with patch("urllib.request.urlopen", side_effect=_http_error(code)):
            assert HTTPProbe().post(URL, b"\x30\x00") == code

    def test_url_error_raises_probe_error(self):
        error = urllib.error.URLError("Name or service not known")
        with patch("urllib.request.urlopen", side_effect=error):
            with pytest.raises(ProbeError, match="Name or service not known"):
                HTTPProbe().post(URL, b"\x30\x00")

    def test_timeout_raises_probe_error(self):
        with patch("urllib.request.urlopen", side_effect=socket.timeout("timed out")):
            with pytest.raises(ProbeError, match="timed out"):
                HTTPProbe().post(URL, b"\x30\x00")

    @pytest.mark.parametrize("url", ["file:///etc/passwd", "ftp://tsa", "notaurl", ""])
    def test_non_http_scheme_refused(self, url):
        with patch("urllib.request.urlopen") as urlopen:
            with pytest.raises(ProbeError, match="unsupported URL scheme"):
                HTTPProbe().post(url, b"\x30\x00")
        urlopen.assert_not_called()

    def test_unparseable_url_raises_probe_error(self):
        with patch("urllib.request.urlopen") as urlopen:
            with pytest.raises(ProbeError, match="invalid URL"):
                HTTPProbe().post("http://[::1", b"\x30\x00")
        urlopen.assert_not_called()

    def test_unencodable_credentials_raise_probe_error(self):
        with patch("urllib.request.urlopen") as urlopen:
            with pytest.raises(ProbeError, match="UTF-8"):
                HTTPProbe().post(URL, b"\x30\x00", auth=("\ud800", "pw"))
        urlopen.assert_not_called()
