import hashlab
from hashlab import (
    AlignmentError,
    ContextStateError,
    EntropyError,
    HashlabError,
    IntegrityError,
    PreconditionError,
)


def test_public_api_exports():
    for name in hashlab.__all__:
        assert hasattr(hashlab, name), name


def test_error_hierarchy():
    assert issubclass(PreconditionError, HashlabError)
    assert issubclass(PreconditionError, ValueError)
    assert issubclass(ContextStateError, PreconditionError)
    assert issubclass(AlignmentError, PreconditionError)
    assert issubclass(IntegrityError, HashlabError)
    assert not issubclass(IntegrityError, ValueError)
    assert issubclass(EntropyError, HashlabError)


def test_docstring_example(pool):
    with hashlab.load_key(hashlab.aes_keygen(pool, 256)) as ks_enc, \
            hashlab.load_key(hashlab.aes_keygen(pool, 256)) as ks_mac:
        ct = hashlab.auth_encrypt(hashlab.pad(b"secret"), ks_enc, ks_mac, pool.random_bytes(16))
        assert len(ct) == hashlab.auth_ciphertext_size(6)
        assert hashlab.strip(hashlab.auth_decrypt(ct, ks_enc, ks_mac)) == b"secret"
