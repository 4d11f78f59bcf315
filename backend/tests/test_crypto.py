import base64

import pytest

from teamauth.core.config import decode_encryption_key
from teamauth.core.crypto import KeyCodec

KEY = b"k" * 32


@pytest.fixture
def codec():
    return KeyCodec(KEY)


@pytest.mark.parametrize("plaintext", ["sk-abc", "a", "sk-" + "x" * 200, "ключ-🔑"])
def test_encrypt_then_decrypt_returns_original(codec, plaintext):
    assert codec.decrypt(codec.encrypt(plaintext)) == plaintext


def test_ciphertext_format_is_hex_iv_colon_hex_body(codec):
    token = codec.encrypt("sk-abc")
    iv_hex, body_hex = token.split(":")
    assert len(bytes.fromhex(iv_hex)) == 16
    assert len(bytes.fromhex(body_hex)) % 16 == 0


def test_each_encryption_uses_a_fresh_iv(codec):
    assert codec.encrypt("same") != codec.encrypt("same")


@pytest.mark.parametrize(
    "token",
    [
        "",
        "no-separator",
        "zz:zz",
        "00" * 8 + ":" + "00" * 16,  # 8-byte IV
        "00" * 16 + ":",
        "00" * 16 + ":" + "ab" * 5,  # not a block multiple
        "00" * 16 + ":" + "ab" * 16,  # garbage block, bad padding
    ],
)
def test_decrypt_of_malformed_input_returns_empty_string(codec, token):
    assert codec.decrypt(token) == ""


def test_decrypt_with_another_key_does_not_raise(codec):
    token = codec.encrypt("sk-abc")
    other = KeyCodec(b"o" * 32)
    assert other.decrypt(token) != "sk-abc"


def test_codec_rejects_wrong_key_length():
    with pytest.raises(ValueError):
        KeyCodec(b"short")


def test_key_can_be_raw_or_base64():
    raw = "r" * 32
    assert decode_encryption_key(raw) == raw.encode()

    encoded = base64.urlsafe_b64encode(KEY).decode()
    assert decode_encryption_key(encoded) == KEY


@pytest.mark.parametrize("bad", ["", "too-short", "x" * 33])
def test_key_of_wrong_length_fails_fast(bad):
    with pytest.raises(ValueError):
        decode_encryption_key(bad)
