"""Unit tests for session_file_store.codec."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from session_file_store.codec import (
    decode_record,
    encode_record,
    id_for,
    is_session_file,
    path_for,
    temp_path_for,
    yaml_decoder,
    yaml_encoder,
)
from session_file_store.config import StoreOptions
from session_file_store.errors import CipherError, CorruptSessionError, InvalidSessionIdError


@pytest.fixture()
def options() -> StoreOptions:
    return StoreOptions()


# ---------------------------------------------------------------------------
# Path mapping
# ---------------------------------------------------------------------------


class TestPathFor:
    def test_joins_path_id_and_extension(self, options: StoreOptions) -> None:
        assert path_for(options, "id") == Path("sessions/id.json")

    def test_custom_extension(self) -> None:
        options = StoreOptions(path="/tmp/s", file_extension=".cbor")
        assert path_for(options, "abc") == Path("/tmp/s/abc.cbor")

    @pytest.mark.parametrize("bad_id", ["", ".", "..", "../../etc/passwd", "a/b"])
    def test_rejects_ids_escaping_the_directory(self, options: StoreOptions, bad_id: str) -> None:
        with pytest.raises(InvalidSessionIdError):
            path_for(options, bad_id)


class TestIdFor:
    def test_strips_extension(self, options: StoreOptions) -> None:
        assert id_for(options, "id.json") == "id"

    def test_non_matching_name_gives_empty_id(self, options: StoreOptions) -> None:
        assert id_for(options, "id") == ""
        assert id_for(options, "id.json.bak") == ""

    def test_only_the_trailing_extension_is_stripped(self, options: StoreOptions) -> None:
        assert id_for(options, "a.json.json") == "a.json"

    def test_empty_extension_is_identity(self) -> None:
        options = StoreOptions(file_extension="")
        assert id_for(options, "whatever.txt") == "whatever.txt"

    @pytest.mark.parametrize("session_id", ["abc", "2o7sOpgMqMGWem0IxddjE0DkR3-jqUPx", "with.dots"])
    def test_inverse_of_path_for(self, options: StoreOptions, session_id: str) -> None:
        assert id_for(options, path_for(options, session_id).name) == session_id

    def test_is_session_file(self, options: StoreOptions) -> None:
        assert is_session_file(options, "x.json")
        assert not is_session_file(options, ".x.json.1234~")


# ---------------------------------------------------------------------------
# Encode / decode
# ---------------------------------------------------------------------------


class TestPlainCodec:
    def test_encode_is_json_bytes(self, options: StoreOptions) -> None:
        data = encode_record(options, {"views": 1})
        assert json.loads(data) == {"views": 1}

    def test_decode_round_trip(self, options: StoreOptions) -> None:
        data = encode_record(options, {"views": 1})
        assert decode_record(options, data, Path("x.json")) == {"views": 1}

    def test_decode_garbage_raises_corrupt(self, options: StoreOptions) -> None:
        with pytest.raises(CorruptSessionError) as info:
            decode_record(options, b"{not json", Path("x.json"))
        assert isinstance(info.value.__cause__, json.JSONDecodeError)
        assert info.value.path == Path("x.json")

    def test_invalid_utf8_raises_corrupt(self, options: StoreOptions) -> None:
        with pytest.raises(CorruptSessionError):
            decode_record(options, b"\xff\xfe\xfa", Path("x.json"))

    def test_binary_codec_receives_bytes(self) -> None:
        seen: list[object] = []

        def decoder(payload: object) -> dict[str, object]:
            seen.append(payload)
            return {}

        options = StoreOptions(encoding=None, encoder=lambda r: b"raw", decoder=decoder)
        assert encode_record(options, {}) == b"raw"
        decode_record(options, b"raw", Path("x"))
        assert seen == [b"raw"]

    def test_yaml_codec(self) -> None:
        options = StoreOptions(file_extension=".yaml", encoder=yaml_encoder, decoder=yaml_decoder)
        data = encode_record(options, {"views": 2, "cookie": {"path": "/"}})
        assert b"views: 2" in data
        assert decode_record(options, data, Path("x.yaml")) == {"views": 2, "cookie": {"path": "/"}}

    def test_yaml_decoder_rejects_scalars(self) -> None:
        with pytest.raises(ValueError):
            yaml_decoder("just a string")


class TestEncryptedCodec:
    def test_hex_armoured_ciphertext(self) -> None:
        options = StoreOptions(secret="squirrel")
        data = encode_record(options, {"views": 1})
        assert b"views" not in data
        bytes.fromhex(data.decode("ascii"))
        assert decode_record(options, data, Path("x.json")) == {"views": 1}

    def test_base64_armour(self) -> None:
        options = StoreOptions(secret="squirrel", encrypt_encoding="base64")
        data = encode_record(options, {"views": 1})
        assert decode_record(options, data, Path("x.json")) == {"views": 1}

    def test_raw_ciphertext(self) -> None:
        options = StoreOptions(secret="squirrel", encrypt_encoding=None)
        data = encode_record(options, {"views": 1})
        assert decode_record(options, data, Path("x.json")) == {"views": 1}

    def test_plaintext_file_under_secret_is_a_cipher_error(self) -> None:
        options = StoreOptions(secret="squirrel")
        with pytest.raises(CipherError):
            decode_record(options, b'{"views": 1}', Path("x.json"))


class TestNonMappingPayloads:
    @pytest.mark.parametrize("payload", [b"[1, 2]", b"42", b'"text"', b"null"])
    def test_non_mapping_is_corrupt(self, options: StoreOptions, payload: bytes) -> None:
        with pytest.raises(CorruptSessionError, match="expected a mapping"):
            decode_record(options, payload, Path("x.json"))


class TestTemporaryNames:
    def test_temp_path_is_a_hidden_sibling(self) -> None:
        tmp = temp_path_for(Path("/s/abc.json"))
        assert tmp.parent == Path("/s")
        assert tmp.name.startswith(".abc.json.")
        assert tmp.name.endswith("~")

    @pytest.mark.parametrize("extension", [".json", ""])
    def test_temp_names_are_never_session_files(self, extension: str) -> None:
        options = StoreOptions(file_extension=extension)
        tmp = temp_path_for(path_for(options, "abc"))
        assert not is_session_file(options, tmp.name)
        assert not is_session_file(options, ".abc.000000000000~")

    def test_empty_extension_still_matches_plain_names(self) -> None:
        options = StoreOptions(file_extension="")
        assert is_session_file(options, "abc")
        assert is_session_file(options, "notes~")
