import pytest

from hashlab.errors import AlignmentError, ContextStateError, IntegrityError, PreconditionError
from hashlab.primitives.aes import load_key
from hashlab.primitives.modes import (
    auth_decrypt,
    auth_encrypt,
    cbc_decrypt,
    cbc_encrypt,
    output_mac,
    verify_mac,
)
from hashlab.primitives.padding import pad, strip

# NIST SP 800-38A, F.2.1 / F.2.5
IV = bytes.fromhex("000102030405060708090a0b0c0d0e0f")
PT = bytes.fromhex(
    "6bc1bee22e409f96e93d7e117393172a"
    "ae2d8a571e03ac9c9eb76fac45af8e51"
    "30c81c46a35ce411e5fbc1191a0a52ef"
    "f69f2445df4f9b17ad2b417be66c3710"
)
CBC_VECTORS = [
    (
        "2b7e151628aed2a6abf7158809cf4f3c",
        "7649abac8119b246cee98e9b12e9197d"
        "5086cb9b507219ee95db113a917678b2"
        "73bed6b8e3c1743b7116e69e22229516"
        "3ff1caa1681fac09120eca307586e1a7",
    ),
    (
        "603deb1015ca71be2b73aef0857d77811f352c073b6108d72d9810a30914dff4",
        "f58c4c04d6e5f1ba779eabfb5f7bfbd6"
        "9cfc4e967edb808d679f777bc6702c7d"
        "39f23369a9d9bacfa530e26304231461"
        "b2eb05e2c39be9fcda6c19078c6a9d1b",
    ),
]

ENC_KEY = bytes(range(32))
MAC_KEY = bytes(range(100, 132))


@pytest.fixture
def schedules():
    with load_key(ENC_KEY) as ks_enc, load_key(MAC_KEY) as ks_mac:
        yield ks_enc, ks_mac


# ---------------------------------------------------------------------------
# CBC
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("key_hex,ct_hex", CBC_VECTORS)
def test_cbc_sp800_38a(key_hex, ct_hex):
    with load_key(bytes.fromhex(key_hex)) as ks:
        ct = cbc_encrypt(PT, ks, IV)
        assert isinstance(ct, bytearray)
        assert ct.hex() == ct_hex
        assert bytes(cbc_decrypt(ct, ks, IV)) == PT


def test_cbc_in_place():
    key_hex, ct_hex = CBC_VECTORS[0]
    buf = bytearray(PT)
    with load_key(bytes.fromhex(key_hex)) as ks:
        out = cbc_encrypt(buf, ks, IV, into=buf)
        assert isinstance(out, memoryview)
        assert buf.hex() == ct_hex
        cbc_decrypt(buf, ks, IV, into=buf)
    assert bytes(buf) == PT


def test_cbc_into_larger_buffer():
    key_hex, ct_hex = CBC_VECTORS[0]
    buf = bytearray(b"\xAA" * 80)
    with load_key(bytes.fromhex(key_hex)) as ks:
        out = cbc_encrypt(PT, ks, IV, into=buf)
    assert len(out) == 64
    assert bytes(out).hex() == ct_hex
    assert buf[64:] == b"\xAA" * 16


def test_cbc_rejects_misaligned(schedules):
    ks, _ = schedules
    with pytest.raises(AlignmentError):
        cbc_encrypt(b"x" * 17, ks, IV)
    with pytest.raises(AlignmentError):
        cbc_decrypt(b"x" * 15, ks, IV)


def test_cbc_rejects_bad_iv_and_small_output(schedules):
    ks, _ = schedules
    with pytest.raises(PreconditionError):
        cbc_encrypt(PT, ks, IV[:8])
    with pytest.raises(PreconditionError):
        cbc_encrypt(PT, ks, IV, into=bytearray(32))
    with pytest.raises(PreconditionError):
        cbc_encrypt(PT, ks, IV, into=bytes(64))


# ---------------------------------------------------------------------------
# CBC-MAC
# ---------------------------------------------------------------------------

def test_output_mac_is_last_cbc_block_with_zero_iv(schedules):
    _, ks_mac = schedules
    mac = output_mac(PT, ks_mac)
    assert mac == bytes(cbc_encrypt(PT, ks_mac, bytes(16))[-16:])


def test_verify_mac(schedules):
    _, ks_mac = schedules
    message = IV + PT
    sealed = message + output_mac(message, ks_mac)
    assert verify_mac(sealed, ks_mac)
    tampered = bytearray(sealed)
    tampered[20] ^= 0x01
    assert not verify_mac(tampered, ks_mac)
    assert not verify_mac(sealed[:-1], ks_mac)
    assert not verify_mac(sealed[:16], ks_mac)


# ---------------------------------------------------------------------------
# Authenticated encryption
# ---------------------------------------------------------------------------

def test_auth_layout(schedules):
    ks_enc, ks_mac = schedules
    padded = pad(b"attack at dawn", "pkcs7")
    sealed = auth_encrypt(padded, ks_enc, ks_mac, IV)
    assert len(sealed) == len(padded) + 32
    assert sealed[:16] == IV
    assert sealed[16:-16] == cbc_encrypt(padded, ks_enc, IV)
    assert bytes(sealed[-16:]) == output_mac(sealed[:-16], ks_mac)


@pytest.mark.parametrize("length", [0, 1, 15, 16, 17, 100])
def test_auth_roundtrip(schedules, length):
    ks_enc, ks_mac = schedules
    message = bytes((i * 7) & 0xFF for i in range(length))
    sealed = auth_encrypt(pad(message, "pkcs7"), ks_enc, ks_mac, IV)
    assert strip(auth_decrypt(sealed, ks_enc, ks_mac), "pkcs7") == message


def test_auth_tamper_detected_everywhere(schedules):
    ks_enc, ks_mac = schedules
    sealed = bytes(auth_encrypt(pad(b"x" * 40, "pkcs7"), ks_enc, ks_mac, IV))
    for i in range(len(sealed)):
        tampered = bytearray(sealed)
        tampered[i] ^= 0x80
        with pytest.raises(IntegrityError):
            auth_decrypt(tampered, ks_enc, ks_mac)


def test_auth_failure_leaves_output_untouched(schedules):
    ks_enc, ks_mac = schedules
    sealed = bytearray(auth_encrypt(pad(b"payload", "pkcs7"), ks_enc, ks_mac, IV))
    sealed[-1] ^= 0x01
    out = bytearray(b"\x5A" * 16)
    with pytest.raises(IntegrityError):
        auth_decrypt(sealed, ks_enc, ks_mac, into=out)
    assert out == bytearray(b"\x5A" * 16)


def test_auth_wrong_mac_key(schedules):
    ks_enc, ks_mac = schedules
    sealed = auth_encrypt(pad(b"payload", "pkcs7"), ks_enc, ks_mac, IV)
    with load_key(bytes(32)) as other:
        with pytest.raises(IntegrityError):
            auth_decrypt(sealed, ks_enc, other)


def test_auth_wrong_encryption_key_not_caught_by_mac(schedules):
    ks_enc, ks_mac = schedules
    message = b"attack at dawn"
    padded = pad(message, "pkcs7")
    sealed = auth_encrypt(padded, ks_enc, ks_mac, IV)
    with load_key(bytes(range(1, 33))) as wrong_enc:
        out = bytes(auth_decrypt(sealed, wrong_enc, ks_mac))
    # MAC covers IV || C only; the wrong key surfaces as garbage plaintext
    assert len(out) == len(padded)
    assert out != padded
    try:
        recovered = strip(out, "pkcs7")
    except PreconditionError:
        recovered = None
    assert recovered != message


def test_auth_decrypt_too_short(schedules):
    ks_enc, ks_mac = schedules
    with pytest.raises(AlignmentError):
        auth_decrypt(bytes(32), ks_enc, ks_mac)
    with pytest.raises(AlignmentError):
        auth_decrypt(bytes(50), ks_enc, ks_mac)


def test_auth_in_place(schedules):
    ks_enc, ks_mac = schedules
    padded = pad(b"in place please, no copies", "pkcs7")
    n = len(padded)
    expected = bytes(auth_encrypt(padded, ks_enc, ks_mac, IV))

    buf = bytearray(n + 32)
    buf[16:16 + n] = padded
    auth_encrypt(memoryview(buf)[16:16 + n], ks_enc, ks_mac, IV, into=buf)
    assert bytes(buf) == expected

    out = auth_decrypt(buf, ks_enc, ks_mac, into=buf)
    assert bytes(out) == padded
    assert bytes(buf[:n]) == padded


def test_auth_rejects_same_key():
    with load_key(ENC_KEY) as a, load_key(ENC_KEY) as b:
        padded = pad(b"data", "pkcs7")
        with pytest.raises(PreconditionError):
            auth_encrypt(padded, a, a, IV)
        with pytest.raises(PreconditionError):
            auth_encrypt(padded, a, b, IV)


def test_auth_same_key_allowed_when_disabled(monkeypatch):
    monkeypatch.setenv("HASHLAB_ENFORCE_DISTINCT_MAC_KEY", "0")
    with load_key(ENC_KEY) as ks:
        padded = pad(b"data", "pkcs7")
        sealed = auth_encrypt(padded, ks, ks, IV)
        assert bytes(auth_decrypt(sealed, ks, ks)) == padded


def test_auth_with_erased_schedules():
    a = load_key(ENC_KEY)
    b = load_key(MAC_KEY)
    a.erase()
    b.erase()
    padded = pad(b"data", "pkcs7")
    with pytest.raises(ContextStateError):
        auth_encrypt(padded, a, b, IV)
    with pytest.raises(ContextStateError):
        auth_decrypt(bytes(48), a, b)


def test_auth_with_erased_schedules_when_check_disabled(monkeypatch):
    monkeypatch.setenv("HASHLAB_ENFORCE_DISTINCT_MAC_KEY", "0")
    a = load_key(ENC_KEY)
    b = load_key(MAC_KEY)
    a.erase()
    b.erase()
    with pytest.raises(ContextStateError):
        auth_encrypt(pad(b"data", "pkcs7"), a, b, IV)
