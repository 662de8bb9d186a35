"""Source path encoding and URL signing."""

from __future__ import annotations

import base64
import hashlib
import hmac


def urlsafe_b64_no_pad(raw: bytes) -> str:
    """Base64url-encode bytes and strip the '=' padding."""
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _as_bytes(value: str | bytes) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


def encode_file_path(path: str) -> str:
    """Encode a source URL or file path as a single path segment.

    Args:
        path: Raw source identifier, e.g. "s3://bucket/img.jpg" or "/img.jpg"

    Returns:
        Base64url representation of the UTF-8 bytes, without padding.

    Examples:
        >>> encode_file_path("/img.jpg")
        'L2ltZy5qcGc'
    """
    return urlsafe_b64_no_pad(path.encode("utf-8"))


def generate_signature(message: str, key: str | bytes, salt: str | bytes) -> str:
    """Sign a processing path with HMAC-SHA256.

    The digest covers ``salt`` followed by ``message``. Key and salt are
    expected in raw form; hex-encoded values from the environment must be
    decoded first (see ``imgparams.config``).

    Args:
        message: Path to sign (modifier tokens plus file segment)
        key: HMAC secret
        salt: Salt prepended to the message

    Returns:
        Base64url digest without padding.
    """
    mac = hmac.new(_as_bytes(key), digestmod=hashlib.sha256)
    mac.update(_as_bytes(salt))
    mac.update(message.encode("utf-8"))
    return urlsafe_b64_no_pad(mac.digest())
