"""Cryptographic utilities for at-rest protection of the owner signing key.

Uses Fernet (AES-128-CBC with HMAC) for symmetric encryption.
"""

from cryptography.fernet import Fernet, InvalidToken


class SecretDecryptionError(Exception):
    """Raised when an encrypted secret cannot be decrypted."""


def generate_master_key() -> str:
    """Generate a new master encryption key.

    Returns:
        Base64-encoded 32-byte key suitable for Fernet
    """
    return Fernet.generate_key().decode()


class SecretCipher:
    """Encrypts and decrypts short secrets such as a signing key.

    Usage:
        cipher = SecretCipher(master_key)
        token = cipher.encrypt("0xabc...")
        plain = cipher.decrypt(token)
    """

    def __init__(self, master_key: str):
        """Initialize with master encryption key.

        Args:
            master_key: Base64-encoded Fernet key (32 bytes)
        """
        try:
            self._fernet = Fernet(master_key.encode())
        except (ValueError, TypeError) as e:
            raise SecretDecryptionError("invalid master key") from e

    def encrypt(self, secret: str) -> str:
        return self._fernet.encrypt(secret.encode()).decode()

    def decrypt(self, token: str) -> str:
        """Decrypt a token produced by encrypt().

        Raises:
            SecretDecryptionError: Wrong key or corrupted token
        """
        if not token:
            raise SecretDecryptionError("no encrypted value provided")
        try:
            return self._fernet.decrypt(token.encode()).decode()
        except InvalidToken as e:
            # Never include the token itself in the message
            raise SecretDecryptionError("wrong key or corrupted value") from e

    def rotate_key(self, new_key: str, token: str) -> str:
        """Re-encrypt a token under a new key."""
        return SecretCipher(new_key).encrypt(self.decrypt(token))
