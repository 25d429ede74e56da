"""Authenticated at-rest encryption for session payloads.

A session file written with a secret holds an :class:`EncryptedPayload`
instead of the encoded record.  Every payload carries its own random salt
(the per-message key is derived from the secret and that salt) and its own
random nonce, so two writes of the same record never produce the same
bytes.

Classes
-------
CipherConfig
    Algorithm and key-derivation parameters (pydantic model).
EncryptedPayload
    Immutable value object holding salt, nonce and ciphertext; serialises
    to/from a compact binary wire format.
SessionCipher
    Encrypts and decrypts byte strings with a key derived from a secret.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM, ChaCha20Poly1305
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt
from pydantic import BaseModel, ConfigDict

from session_file_store.errors import CipherError

# ---------------------------------------------------------------------------
# Wire-format and KDF constants
# ---------------------------------------------------------------------------

_WIRE_VERSION: str = "1"
_NONCE_LENGTH: int = 12  # 96-bit nonce for both AES-GCM and ChaCha20-Poly1305
_SALT_LENGTH: int = 16

_SCRYPT_N: int = 2**14
_SCRYPT_R: int = 8
_SCRYPT_P: int = 1
_PBKDF2_ITERATIONS: int = 100_000

_KEY_LENGTHS: dict[str, int] = {
    "aes-256-gcm": 32,
    "aes-128-gcm": 16,
    "chacha20-poly1305": 32,
}

_HASHES: dict[str, type[hashes.HashAlgorithm]] = {
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
}


# ---------------------------------------------------------------------------
# CipherConfig
# ---------------------------------------------------------------------------


class CipherConfig(BaseModel):
    """Cipher parameters used when a secret is configured.

    Parameters
    ----------
    algorithm:
        AEAD algorithm.  Default: ``"aes-256-gcm"``.
    hashing:
        Hash used by PBKDF2 when ``use_scrypt`` is False.
        Default: ``"sha512"``.
    use_scrypt:
        Derive keys with scrypt (default) instead of PBKDF2-HMAC.
    """

    model_config = ConfigDict(frozen=True)

    algorithm: Literal["aes-256-gcm", "aes-128-gcm", "chacha20-poly1305"] = "aes-256-gcm"
    hashing: Literal["sha256", "sha384", "sha512"] = "sha512"
    use_scrypt: bool = True


# ---------------------------------------------------------------------------
# EncryptedPayload
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EncryptedPayload:
    """Immutable holder for one encrypted session payload.

    Parameters
    ----------
    ciphertext:
        The encrypted bytes, including the 16-byte authentication tag
        appended by the AEAD primitive.
    nonce:
        The 12-byte nonce used during encryption.
    salt:
        Random salt the per-message key was derived with.
    version:
        Wire-format version string.
    """

    ciphertext: bytes
    nonce: bytes
    salt: bytes
    version: str = _WIRE_VERSION

    def to_bytes(self) -> bytes:
        """Serialise to the binary wire format.

        Wire layout::

            version_len (1 byte)
            version     (version_len bytes, UTF-8)
            salt_len    (1 byte)
            salt        (salt_len bytes)
            nonce_len   (1 byte)
            nonce       (nonce_len bytes)
            ciphertext  (remainder)
        """
        version_bytes = self.version.encode("utf-8")
        return (
            len(version_bytes).to_bytes(1, "big")
            + version_bytes
            + len(self.salt).to_bytes(1, "big")
            + self.salt
            + len(self.nonce).to_bytes(1, "big")
            + self.nonce
            + self.ciphertext
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> EncryptedPayload:
        """Deserialise bytes produced by :meth:`to_bytes`.

        Raises
        ------
        ValueError
            If *data* is truncated.
        """
        offset = 0
        fields: list[bytes] = []
        for name in ("version", "salt", "nonce"):
            if len(data) < offset + 1:
                raise ValueError(f"Payload truncated before {name} length")
            length = data[offset]
            offset += 1
            if len(data) < offset + length:
                raise ValueError(f"Payload truncated in {name} field")
            fields.append(data[offset : offset + length])
            offset += length
        version, salt, nonce = fields
        return cls(
            ciphertext=data[offset:],
            nonce=nonce,
            salt=salt,
            version=version.decode("utf-8"),
        )


# ---------------------------------------------------------------------------
# SessionCipher
# ---------------------------------------------------------------------------


class SessionCipher:
    """Encrypts and decrypts session payloads with a secret.

    Parameters
    ----------
    secret:
        Shared secret.  ``str`` secrets are UTF-8 encoded.
    config:
        Algorithm and key-derivation parameters.

    Raises
    ------
    CipherError
        If the configured algorithm or hash is not supported.
    """

    def __init__(self, secret: str | bytes, config: CipherConfig | None = None) -> None:
        self._config = config or CipherConfig()
        if self._config.algorithm not in _KEY_LENGTHS:
            raise CipherError(f"Unsupported cipher algorithm {self._config.algorithm!r}")
        if self._config.hashing not in _HASHES:
            raise CipherError(f"Unsupported hashing algorithm {self._config.hashing!r}")
        self._secret: bytes = secret.encode("utf-8") if isinstance(secret, str) else bytes(secret)
        self._key_length = _KEY_LENGTHS[self._config.algorithm]

    @property
    def config(self) -> CipherConfig:
        return self._config

    def _derive_key(self, salt: bytes) -> bytes:
        if self._config.use_scrypt:
            kdf: Scrypt | PBKDF2HMAC = Scrypt(
                salt=salt,
                length=self._key_length,
                n=_SCRYPT_N,
                r=_SCRYPT_R,
                p=_SCRYPT_P,
            )
        else:
            kdf = PBKDF2HMAC(
                algorithm=_HASHES[self._config.hashing](),
                length=self._key_length,
                salt=salt,
                iterations=_PBKDF2_ITERATIONS,
            )
        return kdf.derive(self._secret)

    def _aead(self, key: bytes) -> AESGCM | ChaCha20Poly1305:
        if self._config.algorithm == "chacha20-poly1305":
            return ChaCha20Poly1305(key)
        return AESGCM(key)

    # ------------------------------------------------------------------
    # Encrypt / decrypt
    # ------------------------------------------------------------------

    def encrypt(self, plaintext: bytes) -> bytes:
        """Encrypt *plaintext* and return the serialised payload.

        A fresh salt and nonce are generated for every call.
        """
        salt = os.urandom(_SALT_LENGTH)
        nonce = os.urandom(_NONCE_LENGTH)
        ciphertext = self._aead(self._derive_key(salt)).encrypt(nonce, plaintext, None)
        return EncryptedPayload(ciphertext=ciphertext, nonce=nonce, salt=salt).to_bytes()

    def decrypt(self, data: bytes) -> bytes:
        """Decrypt a payload produced by :meth:`encrypt`.

        Raises
        ------
        CipherError
            If the payload is malformed, was written with another secret or
            algorithm, or has been tampered with.
        """
        try:
            payload = EncryptedPayload.from_bytes(data)
        except (ValueError, UnicodeDecodeError) as exc:
            raise CipherError(f"Malformed encrypted payload: {exc}") from exc
        if payload.version != _WIRE_VERSION:
            raise CipherError(f"Unsupported encrypted payload version {payload.version!r}")
        try:
            return self._aead(self._derive_key(payload.salt)).decrypt(
                payload.nonce, payload.ciphertext, None
            )
        except (InvalidTag, ValueError) as exc:
            raise CipherError("Session payload failed authentication") from exc

    def __repr__(self) -> str:
        return f"SessionCipher(algorithm={self._config.algorithm!r})"


__all__ = ["CipherConfig", "EncryptedPayload", "SessionCipher"]
