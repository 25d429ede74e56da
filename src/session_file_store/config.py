"""Store configuration.

``StoreOptions`` is the single resolved configuration value every other
component reads.  It is validated and normalised once, at construction;
derived values (the compiled file-name pattern and the optional cipher)
are computed there too and never re-derived per call.

Options accept both the Python field names (``reap_interval``) and their
camelCase aliases (``reapInterval``).

Classes
-------
- StoreOptions  — resolved store configuration

Functions
---------
- resolve_options       — merge user options with defaults
- file_pattern_for      — compile the match pattern for an extension
"""
from __future__ import annotations

import codecs
import json
import logging
import os
import re
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, Literal

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from session_file_store.encryption import CipherConfig, SessionCipher

REAP_DISABLED: float = -1
_DEFAULT_LOGGER_NAME = "session_file_store"


def file_pattern_for(file_extension: str) -> re.Pattern[str]:
    """Return a pattern matching names that end with ``file_extension``.

    The extension is escaped so it always matches literally.
    """
    return re.compile(re.escape(file_extension) + r"\Z")


class StoreOptions(BaseModel):
    """Resolved configuration of a file session store.

    Parameters
    ----------
    path:
        Directory holding one file per session.  Normalised for the host
        filesystem.  Default: ``sessions`` (relative to the working
        directory).
    ttl:
        Store-level time-to-live in seconds.  A record's
        ``cookie.originalMaxAge`` overrides it.  Default: 3600.
    file_extension:
        Suffix of every session file; also what ``list`` matches on.
        Default: ``".json"``.
    encoding:
        Text encoding of the encoded payload.  ``None`` hands raw bytes to
        the decoder (binary codecs).  Default: ``"utf-8"``.
    encoder, decoder:
        Serialisation pair.  Default: ``json.dumps`` / ``json.loads``.
    secret:
        Enables at-rest encryption when not ``None``.
    crypto:
        Cipher parameters used when ``secret`` is set.
    encrypt_encoding:
        Text armour for ciphertext on disk (``"hex"`` or ``"base64"``), or
        ``None`` to write raw bytes.  Default: ``"hex"``.
    retries:
        Read retries after the first attempt.  Default: 5.
    factor:
        Backoff multiplier between read attempts.  Default: 1.
    min_timeout, max_timeout:
        Backoff bounds in milliseconds.  Defaults: 50 and 100.
    reap_interval:
        Seconds between background reaps.  ``-1`` (or any value <= 0)
        disables reaping.  Default: 3600.
    reap_max_concurrent:
        Maximum in-flight items during reap and clear.  Default: 10.
    reap_async:
        Reap in a worker subprocess instead of in-process.
    reap_sync_fallback:
        Run an in-process reap when the worker subprocess fails.
    fallback_session_fn:
        Called with the session id when a read fails terminally; its
        return value is served as a fresh session instead of the error.
    logger:
        Sink for operational messages.  Also accepted as ``log`` or
        ``logFn``.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    path: Path = Path("sessions")
    ttl: float = Field(default=3600, ge=0)
    file_extension: str = ".json"
    encoding: str | None = "utf-8"
    encoder: Callable[[Any], str | bytes] = json.dumps
    decoder: Callable[[Any], Any] = json.loads
    secret: str | bytes | None = Field(default=None, repr=False)
    crypto: CipherConfig = Field(default_factory=CipherConfig)
    encrypt_encoding: Literal["hex", "base64"] | None = "hex"
    retries: int = Field(default=5, ge=0)
    factor: float = Field(default=1, gt=0)
    min_timeout: float = Field(default=50, gt=0)
    max_timeout: float = Field(default=100, gt=0)
    reap_interval: float = 3600
    reap_max_concurrent: int = Field(default=10, ge=1)
    reap_async: bool = False
    reap_sync_fallback: bool = False
    fallback_session_fn: Callable[[str], dict[str, Any]] | None = None
    logger: logging.Logger = Field(
        default_factory=lambda: logging.getLogger(_DEFAULT_LOGGER_NAME),
        validation_alias=AliasChoices("logger", "log", "logFn"),
    )

    _file_pattern: re.Pattern[str] = PrivateAttr()
    _cipher: SessionCipher | None = PrivateAttr(default=None)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @field_validator("path")
    @classmethod
    def _normalise_path(cls, value: Path) -> Path:
        return Path(os.path.normpath(value))

    @field_validator("encoding")
    @classmethod
    def _known_encoding(cls, value: str | None) -> str | None:
        if value is not None:
            try:
                codecs.lookup(value)
            except LookupError as exc:
                raise ValueError(f"Unknown text encoding {value!r}") from exc
        return value

    @model_validator(mode="after")
    def _timeouts_ordered(self) -> StoreOptions:
        if self.max_timeout < self.min_timeout:
            raise ValueError(
                f"max_timeout ({self.max_timeout}) must be >= "
                f"min_timeout ({self.min_timeout})"
            )
        return self

    def model_post_init(self, __context: Any) -> None:
        self._file_pattern = file_pattern_for(self.file_extension)
        if self.secret is not None:
            self._cipher = SessionCipher(self.secret, self.crypto)

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def file_pattern(self) -> re.Pattern[str]:
        """Compiled pattern matching session file names."""
        return self._file_pattern

    @property
    def cipher(self) -> SessionCipher | None:
        """The at-rest cipher, or ``None`` when no secret is configured."""
        return self._cipher

    @property
    def reap_enabled(self) -> bool:
        return self.reap_interval > 0


def resolve_options(
    options: StoreOptions | Mapping[str, Any] | None = None,
    **overrides: Any,
) -> StoreOptions:
    """Merge ``options`` and ``overrides`` over the defaults.

    Parameters
    ----------
    options:
        An existing ``StoreOptions``, a mapping of option names (snake_case
        or camelCase), or ``None`` for all defaults.
    **overrides:
        Individual options taking precedence over ``options``.

    Returns
    -------
    StoreOptions
        A freshly validated configuration.  An existing ``StoreOptions``
        without overrides is returned as is.

    Raises
    ------
    pydantic.ValidationError
        If any option is invalid.
    CipherError
        If a secret is set and the cipher cannot be constructed.
    """
    if isinstance(options, StoreOptions):
        if not overrides:
            return options
        data: dict[str, Any] = {
            name: getattr(options, name) for name in StoreOptions.model_fields
        }
    elif options is None:
        data = {}
    else:
        data = dict(options)
    data.update(overrides)
    return StoreOptions.model_validate(data)


__all__ = ["REAP_DISABLED", "StoreOptions", "file_pattern_for", "resolve_options"]
