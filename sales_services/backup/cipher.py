"""
Passphrase ciphers for backup artifacts.

``BytesCipher`` is the seam: the backup service only needs
``encrypt(bytes, passphrase) -> str`` and ``decrypt(str, passphrase) ->
bytes``.  The default ``OpenSSLAesCipher`` produces the OpenSSL
``Salted__`` envelope (AES-256-CBC, PKCS#7, key and IV from
EVP_BytesToKey with MD5, base64 text).  It is the format of
``openssl enc -aes-256-cbc -md md5 -a`` and of CryptoJS passphrase
encryption, which earlier releases used for ``.v360`` files.

A wrong passphrase is not detectable by the envelope itself: it surfaces
as a padding error or as plaintext that fails to decode downstream.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import os
from typing import Protocol, runtime_checkable

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

_MAGIC = b"Salted__"
_SALT_SIZE = 8
_KEY_SIZE = 32
_IV_SIZE = 16
_BLOCK_BITS = 128


@runtime_checkable
class BytesCipher(Protocol):
    def encrypt(self, plaintext: bytes, passphrase: str) -> str:
        ...

    def decrypt(self, token: str, passphrase: str) -> bytes:
        ...


def evp_bytes_to_key(passphrase: bytes, salt: bytes) -> tuple[bytes, bytes]:
    """OpenSSL EVP_BytesToKey (MD5, one iteration): (key, iv)."""
    derived = b""
    block = b""
    while len(derived) < _KEY_SIZE + _IV_SIZE:
        block = hashlib.md5(block + passphrase + salt, usedforsecurity=False).digest()
        derived += block
    return derived[:_KEY_SIZE], derived[_KEY_SIZE:_KEY_SIZE + _IV_SIZE]


class OpenSSLAesCipher:
    """AES-256-CBC in the OpenSSL salted envelope, base64 encoded."""

    def __init__(self, salt_source=os.urandom):
        self._salt_source = salt_source

    def encrypt(self, plaintext: bytes, passphrase: str) -> str:
        salt = self._salt_source(_SALT_SIZE)
        key, iv = evp_bytes_to_key(passphrase.encode("utf-8"), salt)

        padder = padding.PKCS7(_BLOCK_BITS).padder()
        padded = padder.update(plaintext) + padder.finalize()
        encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()

        return base64.b64encode(_MAGIC + salt + ciphertext).decode("ascii")

    def decrypt(self, token: str, passphrase: str) -> bytes:
        """
        Raises:
            ValueError: on malformed base64, a missing ``Salted__`` header,
                a truncated body, or bad padding.
        """
        try:
            raw = base64.b64decode("".join(token.split()), validate=True)
        except binascii.Error as exc:
            raise ValueError("Backup content is not valid base64") from exc

        if not raw.startswith(_MAGIC):
            raise ValueError("Backup content has no salted envelope header")
        salt = raw[len(_MAGIC):len(_MAGIC) + _SALT_SIZE]
        ciphertext = raw[len(_MAGIC) + _SALT_SIZE:]
        if len(salt) != _SALT_SIZE or not ciphertext or len(ciphertext) % (_BLOCK_BITS // 8):
            raise ValueError("Backup content is truncated")

        key, iv = evp_bytes_to_key(passphrase.encode("utf-8"), salt)
        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()

        unpadder = padding.PKCS7(_BLOCK_BITS).unpadder()
        return unpadder.update(padded) + unpadder.finalize()
