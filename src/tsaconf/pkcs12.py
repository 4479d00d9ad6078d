"""PKCS#12 keystore password check.

Decrypts an uploaded keystore with a candidate password and reports whether
it holds both a certificate and a private key. Nothing but a boolean leaves
this module: the parsed key objects are dropped immediately and passwords
are never logged.
"""

import logging

from cryptography.hazmat.primitives.serialization import pkcs12

logger = logging.getLogger("tsaconf.pkcs12")


class Pkcs12Validator:
    """Structural and password check for PKCS#12 blobs."""

    def is_valid(self, blob: bytes, password: str) -> bool:
        """Return True if ``password`` opens ``blob`` and it has a key and a cert.

        Args:
            blob: DER-encoded PKCS#12 keystore.
            password: Keystore password; empty means unencrypted.

        Returns:
            True only when both a private key and a certificate were found.
        """
        if not blob:
            return False
        try:
            secret = password.encode("utf-8") if password else None
            key, cert, _ = pkcs12.load_key_and_certificates(blob, secret)
        except Exception as exc:
            logger.warning("PKCS#12 keystore rejected: %s", type(exc).__name__)
            return False

        if key is None or cert is None:
            logger.warning(
                "PKCS#12 keystore is missing a %s",
                "private key" if key is None else "certificate",
            )
            return False
        return True
