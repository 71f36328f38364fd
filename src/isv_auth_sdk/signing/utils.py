"""
Utility functions for request signing

This module provides helpers for ISV request signing: one-shot body
buffering, URL splitting, header name normalization, trace id generation
and base64 encoding.
"""

import base64
import uuid
from typing import List, Optional, Tuple
from urllib.parse import urlsplit, parse_qsl

from .types import (
    SigningError,
    SigningErrorCodes,
    RequestBody,
)

_NON_BREAKING_SPACES = frozenset("\u00a0\u2007\u202f\u0085")


def buffer_body(body: RequestBody) -> bytes:
    """
    Read a request body fully into memory, exactly once.

    Args:
        body: bytes, str, a readable stream, an iterable of byte chunks or None

    Returns:
        bytes: The complete body (empty when absent)

    Raises:
        SigningError: If the body type cannot be buffered
        OSError: Propagated unchanged when the underlying stream fails
    """
    if body is None:
        return b""

    if isinstance(body, bytes):
        return body

    if isinstance(body, (bytearray, memoryview)):
        return bytes(body)

    if isinstance(body, str):
        return body.encode('utf-8')

    if hasattr(body, 'read'):
        data = body.read()
        if isinstance(data, str):
            data = data.encode('utf-8')
        return data or b""

    if isinstance(body, dict):
        raise SigningError(
            "Mapping bodies must be serialized before signing",
            SigningErrorCodes.UNSUPPORTED_BODY,
            {"body_type": type(body).__name__}
        )

    try:
        chunks = iter(body)
    except TypeError:
        raise SigningError(
            f"Body must be bytes, str, a stream or an iterable of chunks, got {type(body)}",
            SigningErrorCodes.UNSUPPORTED_BODY,
            {"body_type": type(body).__name__}
        )

    parts = []
    for chunk in chunks:
        if isinstance(chunk, str):
            chunk = chunk.encode('utf-8')
        parts.append(bytes(chunk))
    return b"".join(parts)


def split_url(url: str) -> Tuple[str, List[Tuple[str, str]]]:
    """
    Split URL into the encoded path and the decoded, ordered query pairs.

    Args:
        url: Absolute URL to split

    Returns:
        tuple: (encoded path, list of (name, value) query pairs)

    Raises:
        SigningError: If the URL is missing or malformed
    """
    if not url or not isinstance(url, str):
        raise SigningError(
            "Request URL cannot be empty",
            SigningErrorCodes.INVALID_URL,
            {"url": url}
        )

    try:
        parsed = urlsplit(url)
    except ValueError as e:
        raise SigningError(
            f"Failed to parse URL: {e}",
            SigningErrorCodes.INVALID_URL,
            {"url": url, "original_error": str(e)}
        )

    if not parsed.scheme or not parsed.netloc:
        raise SigningError(
            f"Invalid URL format: {url}",
            SigningErrorCodes.INVALID_URL,
            {"url": url}
        )

    path = parsed.path or "/"
    query = parse_qsl(parsed.query, keep_blank_values=True)
    return path, query


def normalize_header_name(name: str) -> str:
    """
    Normalize header name to lowercase for consistent processing.

    Args:
        name: Header name to normalize

    Returns:
        str: Lowercase header name
    """
    return name.lower().strip()


def is_blank(value: Optional[str]) -> bool:
    """
    Return True for None, empty or whitespace-only strings.

    Non-breaking spaces and NEL count as content, so a server built on
    Java's ``Character.isWhitespace`` agrees on which tenant ids are blank.
    """
    if value is None:
        return True
    return all(ch.isspace() and ch not in _NON_BREAKING_SPACES for ch in str(value))


def encode_base64(data: bytes) -> str:
    """Standard, padded base64 as ASCII text."""
    return base64.b64encode(data).decode('ascii')


def generate_trace_id() -> str:
    """
    Generate a UUID v4 trace id for request correlation.

    Returns:
        str: UUID v4 string
    """
    return str(uuid.uuid4())
