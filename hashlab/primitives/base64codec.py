"""Base64 (RFC 4648, standard alphabet, '=' padding)."""

from __future__ import annotations

import base64
import binascii
from typing import Optional, Union

from ..errors import PreconditionError
from .util import BytesLike


def b64encode(data: BytesLike) -> str:
    return base64.b64encode(bytes(data)).decode("ascii")


def b64decode(text: Union[str, bytes], *, length: Optional[int] = None) -> bytes:
    """Decode base64 text.

    Raises:
        PreconditionError: characters outside the alphabet, malformed
            padding, or a result whose size differs from `length`.
    """
    if isinstance(text, str):
        try:
            text = text.encode("ascii")
        except UnicodeEncodeError:
            raise PreconditionError("base64 input contains non-ASCII characters") from None
    if len(text) % 4 != 0:
        raise PreconditionError("base64 input length must be a multiple of 4")
    try:
        data = base64.b64decode(text, validate=True)
    except binascii.Error as e:
        raise PreconditionError(f"invalid base64 input: {e}") from None
    if length is not None and len(data) != length:
        raise PreconditionError(f"decoded {len(data)} bytes, expected {length}")
    return data
