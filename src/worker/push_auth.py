"""Ed25519 verification of push deliveries."""
import base64
import binascii
import logging
from typing import Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from src.worker.errors import InvalidPushSignatureError

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Push-Signature"


def load_public_key(encoded: str) -> Ed25519PublicKey:
    """Decode a base64 raw Ed25519 public key.

    Raises:
        ValueError: Not valid base64 or not a 32-byte key.
    """
    try:
        return Ed25519PublicKey.from_public_bytes(base64.b64decode(encoded, validate=True))
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid push public key: {e}") from e


class PushVerifier:
    """Checks ``X-Push-Signature`` (base64 signature of the raw body).

    Without a configured key every delivery is accepted.
    """

    def __init__(self, public_key: Optional[Ed25519PublicKey] = None) -> None:
        self._public_key = public_key

    @classmethod
    def from_config(cls, encoded_key: str) -> "PushVerifier":
        return cls(load_public_key(encoded_key) if encoded_key else None)

    @property
    def enabled(self) -> bool:
        return self._public_key is not None

    def verify(self, body: bytes, signature_b64: Optional[str]) -> None:
        """Raises InvalidPushSignatureError unless the signature checks out."""
        if self._public_key is None:
            return
        if not signature_b64:
            raise InvalidPushSignatureError(f"Missing {SIGNATURE_HEADER} header")
        try:
            signature = base64.b64decode(signature_b64, validate=True)
            self._public_key.verify(signature, body)
        except (binascii.Error, ValueError, InvalidSignature) as e:
            logger.warning("Rejected push delivery with bad signature")
            raise InvalidPushSignatureError("Push signature verification failed") from e
