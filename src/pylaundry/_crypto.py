"""AES-CBC encryption for values kept on the durable medium.

Each ciphertext carries its own random 16-byte IV as a prefix.
"""

from __future__ import annotations

import os

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from pylaundry.exceptions import LaundryCryptoError

_IV_SIZE = 16


def parse_key_hex(value: str) -> bytes:
    """Decode a hex AES key, accepting 16, 24 or 32 byte keys."""
    text = value.strip()
    if text.startswith("0x") or text.startswith("0X"):
        text = text[2:]
    if not text:
        raise LaundryCryptoError("AES key is empty")
    if len(text) % 2 != 0:
        raise LaundryCryptoError(f"AES key hex length must be even (got {len(text)})")
    try:
        key = bytes.fromhex(text)
    except ValueError as exc:
        raise LaundryCryptoError("AES key must be hex-encoded") from exc
    if len(key) not in (16, 24, 32):
        raise LaundryCryptoError(f"AES key must be 16, 24 or 32 bytes (got {len(key)})")
    return key


def aes_encrypt(plaintext: bytes, key: bytes) -> bytes:
    """AES-CBC encrypt *plaintext*, returning ``iv + ciphertext``."""
    try:
        iv = os.urandom(_IV_SIZE)
        padder = padding.PKCS7(128).padder()
        padded = padder.update(plaintext) + padder.finalize()
        encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
        return iv + encryptor.update(padded) + encryptor.finalize()
    except Exception as exc:
        raise LaundryCryptoError(f"AES encryption failed: {exc}") from exc


def aes_decrypt(blob: bytes, key: bytes) -> bytes:
    """Reverse :func:`aes_encrypt`.

    Raises
    ------
    LaundryCryptoError
        If the blob is truncated, the key is wrong or the padding is invalid.
    """
    if len(blob) < 2 * _IV_SIZE or len(blob) % _IV_SIZE != 0:
        raise LaundryCryptoError(f"AES ciphertext has invalid length {len(blob)}")
    try:
        iv, ct = blob[:_IV_SIZE], blob[_IV_SIZE:]
        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ct) + decryptor.finalize()
        unpadder = padding.PKCS7(128).unpadder()
        return unpadder.update(padded) + unpadder.finalize()
    except Exception as exc:
        raise LaundryCryptoError(f"AES decryption failed: {exc}") from exc
