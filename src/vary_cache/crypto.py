"""
Cookie payload encryption using Fernet (AES-128-CBC + HMAC-SHA256).

The Fernet key is derived from the configured key material with
HKDF-SHA256, salted with the configured IV.
"""
import base64
import logging
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from .types import VaryCacheEncryptionError

logger = logging.getLogger(__name__)

_HKDF_INFO = b"vary-cache-cookie"


def _derive_fernet_key(key: str, iv: str) -> bytes:
    """Derive a URL-safe base64 encoded 32-byte Fernet key."""
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=32,
        salt=iv.encode("utf-8"),
        info=_HKDF_INFO,
    )
    return base64.urlsafe_b64encode(hkdf.derive(key.encode("utf-8")))


class CookieCipher:
    """
    Encrypts and decrypts cookie payloads.

    Example:
        cipher = CookieCipher("key-material", "iv-material")
        token = cipher.encrypt("dev-group_--_yes")
        cipher.decrypt(token)  # "dev-group_--_yes"
    """

    def __init__(self, key: Optional[str], iv: Optional[str]) -> None:
        if not key:
            raise VaryCacheEncryptionError(
                "Vary Cache encryption requires a non-empty auth cookie key"
            )
        if not iv:
            raise VaryCacheEncryptionError(
                "Vary Cache encryption requires a non-empty auth cookie IV"
            )
        self._fernet = Fernet(_derive_fernet_key(key, iv))

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a payload into a cookie-safe token (base64 padding stripped)."""
        token = self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")
        return token.rstrip("=")

    def decrypt(self, token: str) -> Optional[str]:
        """
        Decrypt a token.

        Returns:
            The plaintext, or None if the token is tampered, foreign or
            otherwise unreadable.
        """
        if not token:
            return None

        padded = token + "=" * (-len(token) % 4)
        try:
            return self._fernet.decrypt(padded.encode("ascii")).decode("utf-8")
        except (InvalidToken, ValueError, UnicodeError) as e:
            logger.debug(f"Discarding undecryptable vary cache cookie: {type(e).__name__}")
            return None
