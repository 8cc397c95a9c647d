"""Exception taxonomy for hashlab.

Every failure is local to the call that raised it. Nothing here is fatal to
the process, but an IntegrityError means that specific ciphertext must never
be trusted again.
"""
from __future__ import annotations


class HashlabError(Exception):
    """Base class for all hashlab failures."""


class PreconditionError(HashlabError, ValueError):
    """Invalid argument: bad key size, empty buffer, zero iterations..."""


class ContextStateError(PreconditionError):
    """A context was used outside its lifecycle (after final() or erase())."""


class AlignmentError(PreconditionError):
    """Data length is not a multiple of the AES block size."""


class IntegrityError(HashlabError):
    """MAC mismatch. No plaintext was emitted."""


class EntropyError(HashlabError):
    """No noise channel of sufficient entropy was found."""
