"""
Pytest tests for the vault codec (AES-256-GCM "<ivHex>:<cipherHex>" blobs).
"""

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

TEST_KEY = bytes(range(32))


@settings(max_examples=50, deadline=None)
@given(st.binary(max_size=2048))
def test_open_inverts_seal(plaintext):
    """open(seal(p)) == p for arbitrary bytes."""
    from tradebot_agent.vault.codec import VaultCodec

    codec = VaultCodec(TEST_KEY)
    assert codec.open(codec.seal(plaintext)) == plaintext


def test_blob_format(codec):
    """Blob is 24 hex chars of IV, a colon, then ciphertext + 16-byte tag in hex."""
    blob = codec.seal(b"hello")
    iv_hex, sep, cipher_hex = blob.partition(":")
    assert sep == ":"
    assert len(iv_hex) == 24
    assert len(bytes.fromhex(cipher_hex)) == len(b"hello") + 16


def test_two_seals_differ(codec):
    """Fresh IV per seal: same plaintext never yields the same blob."""
    a = codec.seal(b"same payload")
    b = codec.seal(b"same payload")
    assert a != b
    assert a.split(":")[0] != b.split(":")[0]


def test_flipped_byte_fails(codec):
    """Any tampered ciphertext byte is detected."""
    from tradebot_agent.core.exceptions import DecryptionError

    iv_hex, _, cipher_hex = codec.seal(b'{"wallet": null}').partition(":")
    raw = bytearray(bytes.fromhex(cipher_hex))
    raw[0] ^= 0x01
    with pytest.raises(DecryptionError):
        codec.open(iv_hex + ":" + raw.hex())


def test_wrong_key_fails(codec):
    from tradebot_agent.core.exceptions import DecryptionError
    from tradebot_agent.vault.codec import VaultCodec

    blob = codec.seal(b"secret")
    other = VaultCodec(bytes(32))
    with pytest.raises(DecryptionError):
        other.open(blob)


@pytest.mark.parametrize(
    "blob",
    [
        "",
        "no-separator-here",
        "zz:00",
        "00112233:" + "00" * 32,
        "00" * 12 + ":" + "00" * 8,
        "00" * 12 + ":not-hex",
    ],
)
def test_malformed_blobs_fail(codec, blob):
    """Missing separator, bad hex, short IV or short ciphertext all raise DecryptionError."""
    from tradebot_agent.core.exceptions import DecryptionError

    with pytest.raises(DecryptionError):
        codec.open(blob)


def test_bad_key_length_is_configuration_error():
    from tradebot_agent.core.exceptions import ConfigurationError
    from tradebot_agent.vault.codec import VaultCodec

    with pytest.raises(ConfigurationError):
        VaultCodec(b"short")


def test_module_level_helpers():
    from tradebot_agent.vault import open_blob, seal

    assert open_blob(seal(b"abc", TEST_KEY), TEST_KEY) == b"abc"
