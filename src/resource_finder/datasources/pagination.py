"""
Opaque pagination cursors.

A cursor carries the continuation key (the relative path of the last
resource returned), the page size, and a fingerprint of the query that
produced it. Callers only ever echo the token back.
"""

import base64
import hashlib
import logging
from typing import Optional

from pydantic import BaseModel, Field, ValidationError


logger = logging.getLogger(__name__)


class PaginationCursor(BaseModel):
    """Decoded cursor state."""

    key: str = Field(..., description="Relative path of the last resource returned")
    page_size: int = Field(..., gt=0)
    fingerprint: str = Field(..., description="Fingerprint of the producing query")


def query_fingerprint(path: str, depth: Optional[int]) -> str:
    """Fingerprint of the listing parameters a cursor is valid for."""
    raw = f"{path}\x00{depth if depth is not None else '*'}"
    return hashlib.sha1(raw.encode('utf-8')).hexdigest()[:16]


def encode_cursor(key: str, page_size: int, fingerprint: str) -> str:
    """Serialize cursor state to an opaque URL-safe token."""
    cursor = PaginationCursor(key=key, page_size=page_size, fingerprint=fingerprint)
    return base64.urlsafe_b64encode(cursor.model_dump_json().encode('utf-8')).decode('ascii')


def decode_cursor(token: Optional[str], fingerprint: str,
                  log: Optional[logging.Logger] = None) -> Optional[PaginationCursor]:
    """
    Decode a cursor, rejecting tokens that do not belong to this query.

    Args:
        token: Token from a previous page (None for the first page)
        fingerprint: Fingerprint of the current query
        log: Logger used to report rejected tokens

    Returns:
        Cursor state, or None when the listing should start from the beginning
    """
    if not token:
        return None

    log = log or logger
    try:
        raw = base64.urlsafe_b64decode(token.encode('ascii'))
        cursor = PaginationCursor.model_validate_json(raw)
    except (ValueError, UnicodeError, ValidationError) as e:
        log.warning(f"Ignoring undecodable page token; restarting listing: {e}")
        return None

    if cursor.fingerprint != fingerprint:
        log.warning("Page token was issued for a different query; restarting listing")
        return None

    return cursor
