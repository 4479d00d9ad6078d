"""Shared fixtures for tsaconf tests."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import (
    BestAvailableEncryption,
    NoEncryption,
    pkcs12,
)
from cryptography.x509.oid import NameOID


P12_PASSWORD = "secure"


def _self_signed_pair():
    """Generate an EC key and a matching self-signed certificate."""
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "TSA Client")])
    now = datetime.now(timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=30))
        .sign(key, hashes.SHA256())
    )
    return key, cert


@pytest.fixture(scope="session")
def key_and_cert():
    return _self_signed_pair()


@pytest.fixture(scope="session")
def p12_bytes(key_and_cert) -> bytes:
    """Password-protected PKCS#12 with a key and a certificate."""
    key, cert = key_and_cert
    return pkcs12.serialize_key_and_certificates(
        name=b"tsa",
        key=key,
        cert=cert,
        cas=None,
        encryption_algorithm=BestAvailableEncryption(P12_PASSWORD.encode()),
    )


@pytest.fixture(scope="session")
def unencrypted_p12_bytes(key_and_cert) -> bytes:
    key, cert = key_and_cert
    return pkcs12.serialize_key_and_certificates(
        name=b"tsa",
        key=key,
        cert=cert,
        cas=None,
        encryption_algorithm=NoEncryption(),
    )


@pytest.fixture(scope="session")
def certs_only_p12_bytes(key_and_cert) -> bytes:
    """PKCS#12 carrying only a CA certificate, no key."""
    _, cert = key_and_cert
    return pkcs12.serialize_key_and_certificates(
        name=None,
        key=None,
        cert=None,
        cas=[cert],
        encryption_algorithm=NoEncryption(),
    )


@pytest.fixture
def settings_store(tmp_path):
    """Create a temporary FileSettingsStore."""
    from tsaconf.settings import FileSettingsStore

    return FileSettingsStore(base_dir=tmp_path / "settings")


@pytest.fixture
def app_data(tmp_path):
    """Create a temporary AppData root."""
    from tsaconf.appdata import AppData

    return AppData(base_dir=tmp_path / "appdata")


@pytest.fixture
def config_store(settings_store, app_data):
    from tsaconf.service import TSAConfigStore

    return TSAConfigStore(settings_store, app_data)


@pytest.fixture
def probe():
    """HTTP probe double answering 200 by default."""
    from tsaconf.probe import HTTPProbe

    mock = MagicMock(spec=HTTPProbe)
    mock.post.return_value = 200
    return mock


@pytest.fixture
def validator(app_data, probe):
    from tsaconf.validator import TSAConfigValidator

    return TSAConfigValidator(app_data, probe=probe)
