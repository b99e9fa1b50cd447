import base64
import hashlib
from typing import Optional
from cryptography.fernet import Fernet, InvalidToken
from app.core.config import settings
from app.core.exceptions import ConfigurationError


class TokenCipher:
    """
    Opaque encrypt/decrypt capability for provider tokens at rest.

    Uses Fernet (AES-128-CBC + HMAC-SHA256) with a key derived from
    ENCRYPTION_KEY. Ciphertext is a url-safe base64 string and can be stored
    in a Text column as-is.
    """

    def __init__(self, secret: Optional[str] = None):
        self._secret = secret
        self._fernet: Optional[Fernet] = None

    def _get_fernet(self) -> Fernet:
        if self._fernet is None:
            secret = self._secret or settings.ENCRYPTION_KEY
            if not secret:
                if settings.is_production:
                    raise ConfigurationError("ENCRYPTION_KEY must be set in production")
                secret = settings.SECRET_KEY
            key_bytes = hashlib.sha256(secret.encode("utf-8")).digest()
            self._fernet = Fernet(base64.urlsafe_b64encode(key_bytes))
        return self._fernet

    def encrypt(self, plaintext: str) -> str:
        if not plaintext:
            return ""
        return self._get_fernet().encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt(self, ciphertext: str) -> str:
        if not ciphertext:
            return ""
        try:
            return self._get_fernet().decrypt(ciphertext.encode("utf-8")).decode("utf-8")
        except InvalidToken:
            # Stored with a different key
            raise ConfigurationError("Stored provider token could not be decrypted")


# Create singleton instance
token_cipher = TokenCipher()
