"""Request signature verification for Discord interaction webhooks."""

import time
from typing import Optional, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

SIGNATURE_HEADER = "X-Signature-Ed25519"
TIMESTAMP_HEADER = "X-Signature-Timestamp"


def load_public_key(public_key_hex: str) -> Optional[Ed25519PublicKey]:
    """Load a hex-encoded Ed25519 public key, or None if it is malformed."""
    try:
        return Ed25519PublicKey.from_public_bytes(bytes.fromhex(public_key_hex))
    except ValueError:
        return None


def verify_discord_signature(
    body: Union[bytes, str],
    timestamp: Optional[str],
    signature: Optional[str],
    public_key: Union[str, Ed25519PublicKey],
    max_age_seconds: Optional[int] = None
) -> bool:
    """Verify a Discord request signature using Ed25519.

    The signed message is the timestamp header followed by the raw body.
    Never raises: any missing header, malformed hex or bad signature
    yields False.
    """
    if not timestamp or not signature:
        return False

    if max_age_seconds is not None:
        try:
            request_time = int(timestamp)
        except ValueError:
            return False
        if abs(int(time.time()) - request_time) > max_age_seconds:
            return False

    if isinstance(public_key, str):
        public_key = load_public_key(public_key)
        if public_key is None:
            return False

    try:
        signature_bytes = bytes.fromhex(signature)
    except ValueError:
        return False
    if len(signature_bytes) != 64:
        return False

    if isinstance(body, str):
        body = body.encode("utf-8")

    try:
        public_key.verify(signature_bytes, timestamp.encode("utf-8") + body)
    except InvalidSignature:
        return False

    return True
