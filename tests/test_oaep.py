import pytest

from hashlab.errors import PreconditionError
from hashlab.primitives.oaep import SALT_LEN, max_message_len, oaep_decode, oaep_encode
from hashlab.primitives.sha256 import mgf1
from hashlab.primitives.util import xor_bytes


@pytest.mark.parametrize("modulus_len", [64, 128, 256])
def test_roundtrip(pool, modulus_len):
    message = b"session key material \x01"
    encoded = oaep_encode(message, modulus_len, rng=pool)
    assert len(encoded) == modulus_len
    assert oaep_decode(encoded) == message


def test_max_length_message(pool):
    message = b"\xff" * max_message_len(128)
    encoded = oaep_encode(message, 128, rng=pool)
    assert oaep_decode(encoded) == message


def test_message_too_long(pool):
    with pytest.raises(PreconditionError):
        oaep_encode(b"x" * (128 - SALT_LEN + 1), 128, rng=pool)


def test_modulus_too_small(pool):
    with pytest.raises(PreconditionError):
        oaep_encode(b"", SALT_LEN, rng=pool)
    with pytest.raises(PreconditionError):
        oaep_decode(bytes(SALT_LEN))


def test_salt_randomizes_encoding(pool):
    a = oaep_encode(b"same message", 128, rng=pool)
    b = oaep_encode(b"same message", 128, rng=pool)
    assert a != b
    assert oaep_decode(a) == oaep_decode(b) == b"same message"


def test_encoding_structure(pool):
    message = b"structure"
    encoded = oaep_encode(message, 96, rng=pool)
    db_len = 96 - SALT_LEN
    masked_db, masked_salt = encoded[:db_len], encoded[db_len:]
    salt = xor_bytes(masked_salt, mgf1(masked_db, SALT_LEN))
    db = xor_bytes(masked_db, mgf1(salt, db_len))
    assert db == message + bytes(db_len - len(message))


def test_trailing_zeros_are_lost(pool):
    encoded = oaep_encode(b"ends in zero\x00\x00", 64, rng=pool)
    assert oaep_decode(encoded) == b"ends in zero"
