import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

NONCE_SIZE = 12
ASSOCIATED_DATA = b"tweet-link-saver/api-key/v1"


class ApiKeyCipher:
    """AES-GCM encryption of stored provider API keys.

    ``key_b64`` is the ``ENCRYPTION_KEY`` setting: 32 random bytes, base64
    encoded (see ``generate_keys.py``). Ciphertexts are
    ``base64(nonce || ciphertext+tag)``.
    """

    def __init__(self, key_b64: str):
        if not key_b64:
            raise ValueError("ENCRYPTION_KEY is not set")
        try:
            key = base64.b64decode(key_b64, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("ENCRYPTION_KEY must be base64 encoded")
        if len(key) != 32:
            raise ValueError("ENCRYPTION_KEY must decode to 32 bytes")
        self._aesgcm = AESGCM(key)

    def encrypt(self, plaintext: str) -> str:
        nonce = os.urandom(NONCE_SIZE)
        ciphertext = self._aesgcm.encrypt(nonce, plaintext.encode('utf-8'), ASSOCIATED_DATA)
        return base64.b64encode(nonce + ciphertext).decode('ascii')

    def decrypt(self, token: str) -> str:
        try:
            blob = base64.b64decode(token, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("Stored API key is not valid base64")
        if len(blob) <= NONCE_SIZE:
            raise ValueError("Stored API key is truncated")
        try:
            plaintext = self._aesgcm.decrypt(blob[:NONCE_SIZE], blob[NONCE_SIZE:], ASSOCIATED_DATA)
        except InvalidTag:
            raise ValueError("Stored API key could not be decrypted")
        return plaintext.decode('utf-8')


def generate_encryption_key() -> str:
    """A fresh value for the ENCRYPTION_KEY setting"""
    return base64.b64encode(os.urandom(32)).decode('utf-8')
