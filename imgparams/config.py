"""Environment configuration for signing and base URLs.

Reads the same variables the image service itself uses:

    IMGPROXY_KEY       hex-encoded signing key
    IMGPROXY_SALT      hex-encoded signing salt
    IMGPROXY_BASE_URL  host prefix, e.g. https://img.example.com
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from imgparams.builder import Signature


@dataclass(frozen=True)
class ImgproxyConfig:
    base_url: str | None = None
    key: bytes | None = None
    salt: bytes | None = None

    @property
    def signature(self) -> Signature | None:
        """Signature for BuildOptions, or None when signing is not configured."""
        if self.key is None or self.salt is None:
            return None
        return Signature(key=self.key, salt=self.salt)


def decode_hex(raw: str, *, name: str) -> bytes:
    """Decode a hex string, naming the setting in the error.

    Examples:
        >>> decode_hex("736563726574", name="IMGPROXY_KEY")
        b'secret'
    """
    try:
        return bytes.fromhex(raw.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be hex") from exc


def load_config(
    env: Mapping[str, str] | None = None,
    *,
    base_url: str | None = None,
    key: str | None = None,
    salt: str | None = None,
) -> ImgproxyConfig:
    """Load configuration from the environment.

    Explicit arguments (hex for key and salt) take precedence over the
    environment.

    Raises:
        ValueError: If only one of key/salt is set, or either is not hex
    """
    if env is None:
        env = os.environ

    base_url = (base_url or env.get("IMGPROXY_BASE_URL") or "").strip()
    key = (key or env.get("IMGPROXY_KEY") or "").strip()
    salt = (salt or env.get("IMGPROXY_SALT") or "").strip()

    if bool(key) != bool(salt):
        raise ValueError("IMGPROXY_KEY and IMGPROXY_SALT must be set together")

    return ImgproxyConfig(
        base_url=base_url.rstrip("/") or None,
        key=decode_hex(key, name="IMGPROXY_KEY") if key else None,
        salt=decode_hex(salt, name="IMGPROXY_SALT") if salt else None,
    )
