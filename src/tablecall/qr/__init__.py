"""QR capability codec: proof tokens that bind a table to its restaurant."""

from tablecall.qr.codec import QRCodec, issue_proof, verify_proof

__all__ = ["QRCodec", "issue_proof", "verify_proof"]
