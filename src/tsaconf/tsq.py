"""Dummy RFC 3161 timestamp query used as a credential probe.

The basic-auth check needs a syntactically valid request body so that the
TSA answers with its real authentication behaviour instead of rejecting a
malformed payload. The query is built in-process with ``asn1crypto``:

    TimeStampReq ::= SEQUENCE {
        version         INTEGER { v1(1) },
        messageImprint  MessageImprint,   -- SHA-256 of a fixed marker
        certReq         BOOLEAN TRUE
    }

No nonce is included, so the encoding is deterministic.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Optional

from asn1crypto import algos, tsp

from .models import ErrorCode, ValidationIssue

logger = logging.getLogger("tsaconf.tsq")

DUMMY_PAYLOAD = b"LibreSign Dummy"


def build_timestamp_query(
    data: bytes,
    hash_algorithm: str = "sha256",
    request_cert: bool = True,
) -> tsp.TimeStampReq:
    """Build a nonce-less ``TimeStampReq`` for ``data``.

    Args:
        data: Bytes whose digest becomes the message imprint.
        hash_algorithm: hashlib / asn1crypto digest name.
        request_cert: Ask the TSA to include its signing certificate.

    Returns:
        The request structure; call ``.dump()`` for DER bytes.
    """
    digest = hashlib.new(hash_algorithm, data).digest()
    return tsp.TimeStampReq(
        {
            "version": 1,
            "message_imprint": tsp.MessageImprint(
                {
                    "hash_algorithm": algos.DigestAlgorithm(
                        {"algorithm": hash_algorithm}
                    ),
                    "hashed_message": digest,
                }
            ),
            "cert_req": request_cert,
        }
    )


class DummyTimestampRequestGenerator:
    """Produce (once) the DER bytes of the dummy timestamp query.

    The result is memoized on the instance; create one generator per
    validation pass. Failures are soft: an issue is appended to
    :attr:`errors` and an empty result is returned.
    """

    def __init__(self, payload: bytes = DUMMY_PAYLOAD) -> None:
        self.payload = payload
        self.errors: list[ValidationIssue] = []
        self._cached: Optional[bytes] = None

    def generate(self) -> bytes:
        """Return the DER dummy request, building it on the first call only.

        The result is memoized on the instance, failures included.

        Returns:
            The DER-encoded ``TimeStampReq``, or ``b""`` if it could not be
            built. The reason is then recorded in :attr:`errors`.
        """
        if self._cached is not None:
            return self._cached

        try:
            tsq = build_timestamp_query(self.payload).dump()
        except Exception as exc:
            logger.warning("Dummy timestamp request generation failed: %s", exc)
            self.errors.append(
                ValidationIssue(code=ErrorCode.REQUEST_GENERATION, detail=str(exc))
            )
            tsq = b""
        else:
            if not tsq:
                self.errors.append(
                    ValidationIssue(
                        code=ErrorCode.REQUEST_GENERATION,
                        detail="empty timestamp request",
                    )
                )

        self._cached = tsq
        return tsq
