"""
Short identifier generation.

Ids are random bytes from the OS CSPRNG encoded with the URL-safe base64
alphabet ([A-Za-z0-9_-]), padding stripped and truncated to the requested
length. Six characters give 64**6 (about 6.9e10) possible ids; stores
detect the rare collision on insert and ask for a fresh id.
"""

import base64
import secrets
from typing import Optional

from .base import GenerationError

DEFAULT_ID_LENGTH = 6


def generate_id(length: Optional[int] = None) -> str:
    """
    Return a random URL-safe id of `length` characters (6 unless given).

    Raises:
        GenerationError: If the entropy source is unavailable.
    """
    n = DEFAULT_ID_LENGTH if length is None else int(length)
    if n <= 0:
        raise ValueError("length must be positive")
    try:
        raw = secrets.token_bytes(n)
    except (OSError, NotImplementedError) as exc:
        raise GenerationError("entropy source unavailable") from exc
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")[:n]
