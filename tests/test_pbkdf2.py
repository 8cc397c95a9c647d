import hashlib
import hmac

import pytest

from hashlab.errors import PreconditionError
from hashlab.primitives.pbkdf2 import hmac_sha256, pbkdf2
from hashlab.primitives.sha256 import Sha256Scratch


# ---------------------------------------------------------------------------
# RFC 4231 HMAC-SHA256
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("key,data,expected", [
    (
        b"\x0b" * 20,
        b"Hi There",
        "b0344c61d8db38535ca8afceaf0bf12b881dc200c9833da726e9376c2e32cff7",
    ),
    (
        b"Jefe",
        b"what do ya want for nothing?",
        "5bdcc146bf60754e6a042426089575c75a003f089d2739839dec58b964ec3843",
    ),
])
def test_rfc4231(key, data, expected):
    assert hmac_sha256(key, data).hex() == expected


@pytest.mark.parametrize("key_len", [0, 1, 63, 64, 65, 131])
def test_hmac_matches_stdlib(key_len):
    key = bytes((i * 13) & 0xFF for i in range(key_len))
    message = b"The quick brown fox jumps over the lazy dog" * 3
    assert hmac_sha256(key, message) == hmac.new(key, message, hashlib.sha256).digest()


# ---------------------------------------------------------------------------
# PBKDF2-HMAC-SHA256
# ---------------------------------------------------------------------------

SALT = bytes.fromhex("ea53adb53496dcddd9d8f1504c9dfb4d")


def test_pbkdf2_reference_parameters():
    derived = pbkdf2(b"testing123", SALT, 100, 64)
    assert len(derived) == 64
    assert derived == hashlib.pbkdf2_hmac("sha256", b"testing123", SALT, 100, 64)


@pytest.mark.parametrize("iterations,out_len", [(1, 1), (1, 32), (2, 33), (5, 20), (10, 100)])
def test_pbkdf2_matches_stdlib(iterations, out_len):
    derived = pbkdf2(b"password", b"salt", iterations, out_len)
    assert derived == hashlib.pbkdf2_hmac("sha256", b"password", b"salt", iterations, out_len)


def test_pbkdf2_long_password():
    password = b"p" * 100
    assert pbkdf2(password, SALT, 3, 40) == hashlib.pbkdf2_hmac("sha256", password, SALT, 3, 40)


def test_pbkdf2_output_prefix():
    long = pbkdf2(b"pw", SALT, 4, 64)
    assert pbkdf2(b"pw", SALT, 4, 16) == long[:16]


def test_pbkdf2_with_shared_scratch():
    scratch = Sha256Scratch()
    a = pbkdf2(b"pw", SALT, 3, 32, scratch=scratch)
    b = pbkdf2(b"pw", SALT, 3, 32)
    assert a == b


@pytest.mark.parametrize("iterations,out_len", [(0, 32), (-1, 32), (1, 0)])
def test_pbkdf2_preconditions(iterations, out_len):
    with pytest.raises(PreconditionError):
        pbkdf2(b"pw", SALT, iterations, out_len)
