"""QR proof tokens.

A table's QR code is a URL carrying the plaintext coordinates
(restaurant, branch, table, table number) plus a short proof:

    {base}/request?r=<restaurant>&b=<branch>&t=<table>&n=<number>&h=<proof>

The proof is the first N characters of the URL-safe base64 SHA-256 digest
of "restaurant:branch:table:number". Verification recomputes it from the
claimed coordinates, so changing any one of them invalidates the proof.

Note: there is no secret in the digest. Anyone who knows the algorithm can
mint a valid proof for arbitrary coordinates, so this stops casual URL
tampering, not a determined forger.
"""

import base64
import hashlib
import secrets
from urllib.parse import urlencode

DELIMITER = ":"
DEFAULT_TOKEN_LENGTH = 16


def _canonical(restaurant_id, branch_id, table_id, table_number: int) -> str:
    # Empty ids hash like any other string; a missing one is a caller bug
    for part in (restaurant_id, branch_id, table_id):
        if part is None:
            raise TypeError("QR coordinates must not be None")
    return DELIMITER.join(
        [str(restaurant_id), str(branch_id), str(table_id), f"{table_number:d}"]
    )


def issue_proof(
    restaurant_id,
    branch_id,
    table_id,
    table_number: int,
    length: int = DEFAULT_TOKEN_LENGTH,
) -> str:
    """Return the proof token for a table. Deterministic, no I/O."""
    payload = _canonical(restaurant_id, branch_id, table_id, table_number)
    digest = hashlib.sha256(payload.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii")[:length]


def verify_proof(
    restaurant_id,
    branch_id,
    table_id,
    table_number: int,
    proof,
    length: int = DEFAULT_TOKEN_LENGTH,
) -> bool:
    """Check a presented proof against the claimed coordinates.

    Never raises: missing or malformed input is simply not a valid proof.
    """
    if not isinstance(proof, str) or len(proof) != length:
        return False
    try:
        expected = issue_proof(
            restaurant_id, branch_id, table_id, table_number, length=length
        )
        return secrets.compare_digest(expected, proof)
    except (TypeError, ValueError):
        return False


class QRCodec:
    """Issues table QR URLs and verifies the proofs they carry."""

    def __init__(self, base_url: str, token_length: int = DEFAULT_TOKEN_LENGTH):
        self.base_url = base_url.rstrip("/")
        self.token_length = token_length

    def issue(self, restaurant_id, branch_id, table_id, table_number: int) -> str:
        return issue_proof(
            restaurant_id, branch_id, table_id, table_number,
            length=self.token_length,
        )

    def verify(
        self, restaurant_id, branch_id, table_id, table_number: int, proof
    ) -> bool:
        return verify_proof(
            restaurant_id, branch_id, table_id, table_number, proof,
            length=self.token_length,
        )

    def table_url(
        self, restaurant_id, branch_id, table_id, table_number: int
    ) -> str:
        """Build the URL printed on the table's QR code."""
        query = urlencode({
            "r": str(restaurant_id),
            "b": str(branch_id),
            "t": str(table_id),
            "n": table_number,
            "h": self.issue(restaurant_id, branch_id, table_id, table_number),
        })
        return f"{self.base_url}/request?{query}"


def get_codec() -> QRCodec:
    """FastAPI dependency: codec configured from settings."""
    from tablecall.config import settings

    return QRCodec(settings.qr_base_url, settings.qr_token_length)
