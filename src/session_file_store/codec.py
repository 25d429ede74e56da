"""Record codec and path mapping.

Maps session ids to file paths (and file names back to ids) and turns
records into on-disk bytes and back.

Write path::

    record --encoder--> str/bytes --encoding--> bytes --cipher--> armoured bytes

Read path is the exact reverse.  Failures in the cipher steps raise
``CipherError``; failures in the text-decoding or decoder steps raise
``CorruptSessionError`` chained to the original exception.
"""
from __future__ import annotations

import base64
import binascii
import os
import re
import uuid
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from session_file_store.config import StoreOptions
from session_file_store.errors import CipherError, CorruptSessionError, InvalidSessionIdError

_TEMP_HEX_LEN = 12
_TEMP_NAME = re.compile(r"\..+\.[0-9a-f]{%d}~\Z" % _TEMP_HEX_LEN)

# ---------------------------------------------------------------------------
# Path mapping
# ---------------------------------------------------------------------------


def path_for(options: StoreOptions, session_id: str) -> Path:
    """Return ``<path>/<session_id><file_extension>``.

    Raises
    ------
    InvalidSessionIdError
        If ``session_id`` is empty, ``.``/``..``, or contains a path
        separator, any of which would place the file outside ``path``.
    """
    if (
        not session_id
        or session_id in (".", "..")
        or os.sep in session_id
        or (os.altsep is not None and os.altsep in session_id)
    ):
        raise InvalidSessionIdError(session_id)
    return options.path / f"{session_id}{options.file_extension}"


def id_for(options: StoreOptions, filename: str) -> str:
    """Return the session id stored in ``filename``.

    An empty extension maps every name to itself.  A name that does not
    end with the extension maps to ``""``, which callers treat as
    "not a session file".
    """
    if not options.file_extension:
        return filename
    session_id = options.file_pattern.sub("", filename, count=1)
    return "" if session_id == filename else session_id


def temp_path_for(path: Path) -> Path:
    """Return a unique sibling of ``path`` for an in-flight atomic write."""
    return path.with_name(f".{path.name}.{uuid.uuid4().hex[:_TEMP_HEX_LEN]}~")


def is_session_file(options: StoreOptions, filename: str) -> bool:
    """Return True for session file names.

    Names of in-flight writes (see :func:`temp_path_for`) never count,
    even when the extension is empty.
    """
    if _TEMP_NAME.match(filename):
        return False
    return options.file_pattern.search(filename) is not None


# ---------------------------------------------------------------------------
# Ciphertext armour
# ---------------------------------------------------------------------------


def _armour(options: StoreOptions, data: bytes) -> bytes:
    if options.encrypt_encoding == "hex":
        return data.hex().encode("ascii")
    if options.encrypt_encoding == "base64":
        return base64.b64encode(data)
    return data


def _unarmour(options: StoreOptions, data: bytes) -> bytes:
    try:
        if options.encrypt_encoding == "hex":
            return bytes.fromhex(data.decode("ascii"))
        if options.encrypt_encoding == "base64":
            return base64.b64decode(data, validate=True)
    except (ValueError, binascii.Error) as exc:
        raise CipherError(f"Encrypted payload is not valid {options.encrypt_encoding}") from exc
    return data


# ---------------------------------------------------------------------------
# Encode / decode
# ---------------------------------------------------------------------------


def encode_record(options: StoreOptions, record: Any) -> bytes:
    """Serialise ``record`` into the bytes written to disk."""
    encoded = options.encoder(record)
    data = encoded.encode(options.encoding or "utf-8") if isinstance(encoded, str) else encoded
    if options.cipher is not None:
        data = _armour(options, options.cipher.encrypt(data))
    return data


def decode_record(options: StoreOptions, raw: bytes, path: Path) -> Any:
    """Deserialise bytes read from ``path``.

    Raises
    ------
    CipherError
        If decryption fails.
    CorruptSessionError
        If the (decrypted) payload cannot be decoded, or does not decode
        to a mapping.
    """
    data = raw
    if options.cipher is not None:
        data = options.cipher.decrypt(_unarmour(options, data))
    try:
        payload: str | bytes = data.decode(options.encoding) if options.encoding else data
        record = options.decoder(payload)
    except Exception as exc:  # noqa: BLE001 decoders are user-supplied
        raise CorruptSessionError(path, str(exc)) from exc
    if not isinstance(record, Mapping):
        raise CorruptSessionError(path, f"expected a mapping, got {type(record).__name__}")
    return record


# ---------------------------------------------------------------------------
# Alternative codec
# ---------------------------------------------------------------------------


def yaml_encoder(record: Any) -> str:
    """Encode a record as YAML (pair with :func:`yaml_decoder`)."""
    return yaml.safe_dump(record, default_flow_style=False, allow_unicode=True, sort_keys=True)


def yaml_decoder(payload: str | bytes) -> Any:
    """Decode a YAML record.

    Raises
    ------
    ValueError
        If the document is not a mapping.
    """
    data = yaml.safe_load(payload)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a YAML mapping, got {type(data).__name__}")
    return data


__all__ = [
    "decode_record",
    "encode_record",
    "id_for",
    "is_session_file",
    "path_for",
    "temp_path_for",
    "yaml_decoder",
    "yaml_encoder",
]
