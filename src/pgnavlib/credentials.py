"""Password encryption for saved connections (AES-256-GCM)."""

from __future__ import annotations

import base64
import binascii
import os
from pathlib import Path
from typing import Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .errors import CredentialError

KEY_SIZE = 32
NONCE_SIZE = 12


def load_or_create_key(key_path: Path) -> bytes:
    """Return the 32-byte key stored at ``key_path``, generating it on first use."""
    if not key_path.exists():
        key_path.parent.mkdir(parents=True, exist_ok=True)
        key = AESGCM.generate_key(bit_length=256)
        fd = os.open(key_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, "wb") as f:
            f.write(key)
        return key

    data = key_path.read_bytes()
    if len(data) < KEY_SIZE:
        raise CredentialError(f"Key file is truncated: {key_path}")
    return data[:KEY_SIZE]


def encrypt_password(plain: str, key_path: Path) -> Tuple[str, str]:
    """Encrypt a password, returning base64 ``(ciphertext, nonce)``."""
    aead = AESGCM(load_or_create_key(key_path))
    nonce = os.urandom(NONCE_SIZE)
    ct = aead.encrypt(nonce, plain.encode("utf-8"), None)
    return base64.b64encode(ct).decode("ascii"), base64.b64encode(nonce).decode("ascii")


def decrypt_password(cipher_b64: str, nonce_b64: str, key_path: Path) -> str:
    if not key_path.exists():
        raise CredentialError(f"Key file not found: {key_path}")
    aead = AESGCM(load_or_create_key(key_path))
    try:
        nonce = base64.b64decode(nonce_b64, validate=True)
        ct = base64.b64decode(cipher_b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise CredentialError(f"Stored password is not valid base64: {e}") from e
    if len(nonce) != NONCE_SIZE:
        raise CredentialError("Stored password nonce has the wrong length")
    try:
        plain = aead.decrypt(nonce, ct, None)
    except InvalidTag as e:
        raise CredentialError("decryption failed") from e
    try:
        return plain.decode("utf-8")
    except UnicodeDecodeError as e:
        raise CredentialError("decrypted password is not valid UTF-8") from e
