"""Modifier chain builder.

Collects modifier tokens in call order and finalizes them into a request
path or full URL for the image service:

    pb().resize("fit", 300, 200).quality(80).build(path="/a.png")
    -> "/rs:fit:300:200/q:80/L2EucG5n"

Each modifier kind may be used once per chain. Python cannot remove a
method from an instance's type after it is called, so reuse is rejected
at runtime with ModifierReuseError, and ``dir()`` hides used modifiers.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from imgparams import modifiers as mods
from imgparams.utils import encode_file_path, generate_signature

logger = logging.getLogger(__name__)

CHAIN_VERSION = 1


class ModifierReuseError(ValueError):
    """Raised when a modifier kind is applied twice to the same chain."""


@dataclass(frozen=True)
class Signature:
    """Raw (not hex-encoded) signing key and salt."""

    key: str | bytes
    salt: str | bytes

    @classmethod
    def coerce(cls, value: Any) -> Signature | None:
        if value is None or isinstance(value, Signature):
            return value
        if isinstance(value, Mapping):
            return cls(key=value["key"], salt=value["salt"])
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return cls(key=value[0], salt=value[1])
        raise ValueError(f"Invalid signature: expected (key, salt), got {value!r}")


@dataclass(frozen=True)
class BuildOptions:
    """Options for finalizing a chain.

    Attributes:
        path: Source file path or URL; without it only the bare chain is built
        base_url: Host prefix for a full URL, e.g. "https://img.example.com"
        plain: Insert the path literally as "plain/<path>" instead of encoding it
        signature: Key and salt used to sign the path
    """

    path: str | None = None
    base_url: str | None = None
    plain: bool = False
    signature: Signature | None = None

    @classmethod
    def coerce(cls, options: Any = None, **kwargs) -> BuildOptions:
        """Build options from an instance, a mapping, or keyword arguments.

        Keyword arguments override values from ``options``. Mapping keys may
        use ``baseUrl`` as an alias for ``base_url``.
        """
        if options is None:
            values: dict[str, Any] = {}
        elif isinstance(options, BuildOptions):
            values = {
                "path": options.path,
                "base_url": options.base_url,
                "plain": options.plain,
                "signature": options.signature,
            }
        elif isinstance(options, Mapping):
            values = dict(options)
            if "baseUrl" in values:
                values["base_url"] = values.pop("baseUrl")
        else:
            raise ValueError(f"Invalid build options: {options!r}")

        values.update(kwargs)
        unknown = set(values) - {"path", "base_url", "plain", "signature"}
        if unknown:
            raise ValueError(f"Unknown build options: {', '.join(sorted(unknown))}")

        return cls(
            path=values.get("path"),
            base_url=values.get("base_url"),
            plain=bool(values.get("plain", False)),
            signature=Signature.coerce(values.get("signature")),
        )


def _token_kind(token: str) -> str:
    prefix = token.split(":", 1)[0]
    return mods.PREFIXES.get(prefix, prefix)


class ParamBuilder:
    """Ordered, append-only chain of modifier tokens."""

    def __init__(self, initial_modifiers: list[str] | None = None) -> None:
        self._modifiers: list[str] = []
        for token in initial_modifiers or []:
            self.append(token)

    @property
    def modifiers(self) -> tuple[str, ...]:
        """Tokens in call order."""
        return tuple(self._modifiers)

    def used(self) -> set[str]:
        """Names of the modifier kinds already present in the chain."""
        return {_token_kind(token) for token in self._modifiers}

    def available(self) -> list[str]:
        """Names of the modifiers that can still be applied."""
        used = self.used()
        return [name for name in mods.MODIFIERS if name not in used]

    def append(self, token: str) -> ParamBuilder:
        """Append an encoded token and return this builder.

        The token's prefix identifies its modifier kind.

        Raises:
            ModifierReuseError: If the kind is already in the chain
            ValueError: If the token is empty or contains '/'
        """
        if not token or "/" in token:
            raise ValueError(f"Invalid modifier token: {token!r}")
        kind = _token_kind(token)
        if kind in self.used():
            raise ModifierReuseError(
                f"Modifier '{kind}' is already applied to this chain"
            )
        self._modifiers.append(token)
        logger.debug("Appended modifier token %s", token)
        return self

    def clone(self) -> ParamBuilder:
        """Return a new builder with an independent copy of the tokens."""
        return ParamBuilder(list(self._modifiers))

    def build(self, options: BuildOptions | Mapping | None = None, **kwargs) -> str:
        """Finalize the chain into a path or URL.

        Without a path, only the tokens joined by '/' are returned and any
        base URL or signature is ignored. With a path, the file segment is
        appended, the result is optionally signed, and it is prefixed with
        the base URL or a leading '/'.

        Args:
            options: BuildOptions or mapping; keyword arguments are merged in

        Returns:
            The assembled path or URL
        """
        opts = BuildOptions.coerce(options, **kwargs)
        if not opts.path:
            return "/".join(self._modifiers)

        parts = list(self._modifiers)
        if opts.plain:
            parts.extend(["plain", opts.path])
        else:
            parts.append(encode_file_path(opts.path))

        core = "/".join(parts)
        if opts.signature is not None:
            sig = generate_signature(core, opts.signature.key, opts.signature.salt)
            final = f"{sig}/{core}"
        else:
            final = core

        url = f"{opts.base_url}/{final}" if opts.base_url else f"/{final}"
        logger.debug("Built %s", url)
        return url

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_json(self) -> str:
        """Serialize the chain as {"version": 1, "modifiers": [...]}."""
        return json.dumps({"version": CHAIN_VERSION, "modifiers": self._modifiers})

    @classmethod
    def from_json(cls, json_str: str) -> ParamBuilder:
        """Deserialize a chain produced by ``to_json``."""
        data = json.loads(json_str)
        version = data.get("version")
        if version != CHAIN_VERSION:
            raise ValueError(
                f"Unsupported chain version: {version}. "
                f"Only version {CHAIN_VERSION} is supported."
            )
        return cls(list(data.get("modifiers", [])))

    # =========================================================================
    # Modifiers
    # =========================================================================

    def auto_rotate(self) -> ParamBuilder:
        """Rotate the image according to its EXIF orientation."""
        return self.append(mods.auto_rotate())

    def background(self, color) -> ParamBuilder:
        """Fill the background with a colour (hex, name, or RGB)."""
        return self.append(mods.background(color))

    def background_alpha(self, alpha: float) -> ParamBuilder:
        return self.append(mods.background_alpha(alpha))

    def blur(self, sigma: float) -> ParamBuilder:
        """Apply a gaussian blur."""
        return self.append(mods.blur(sigma))

    def cache_buster(self, value: str) -> ParamBuilder:
        return self.append(mods.cache_buster(value))

    def crop(self, width: int, height: int, gravity=None) -> ParamBuilder:
        """Crop the image, optionally around a gravity."""
        return self.append(mods.crop(width, height, gravity))

    def dpr(self, factor: float) -> ParamBuilder:
        """Multiply the dimensions by a device pixel ratio."""
        return self.append(mods.dpr(factor))

    def enlarge(self) -> ParamBuilder:
        return self.append(mods.enlarge())

    def filename(self, name: str) -> ParamBuilder:
        """Set the Content-Disposition filename."""
        return self.append(mods.filename(name))

    def format(self, extension: str) -> ParamBuilder:
        """Set the output format."""
        return self.append(mods.format(extension))

    def gravity(self, type: str, x: float | None = None, y: float | None = None) -> ParamBuilder:
        return self.append(mods.gravity(type, x, y))

    def max_bytes(self, count: int) -> ParamBuilder:
        """Limit the output file size (jpg, webp, heic and tiff only)."""
        return self.append(mods.max_bytes(count))

    def pad(
        self,
        top: int,
        right: int | None = None,
        bottom: int | None = None,
        left: int | None = None,
    ) -> ParamBuilder:
        return self.append(mods.pad(top, right, bottom, left))

    def preset(self, *names: str) -> ParamBuilder:
        """Apply one or more named presets."""
        return self.append(mods.preset(*names))

    def quality(self, percentage: int) -> ParamBuilder:
        return self.append(mods.quality(percentage))

    def resize(
        self,
        type: str | None = None,
        width: int | None = None,
        height: int | None = None,
        enlarge: bool | None = None,
        extend: bool | None = None,
    ) -> ParamBuilder:
        """Resize the image."""
        return self.append(mods.resize(type, width, height, enlarge, extend))

    def rotate(self, angle: int) -> ParamBuilder:
        """Rotate by 90, 180 or 270 degrees."""
        return self.append(mods.rotate(angle))

    def sharpen(self, sigma: float) -> ParamBuilder:
        return self.append(mods.sharpen(sigma))

    def strip_color_profile(self) -> ParamBuilder:
        return self.append(mods.strip_color_profile())

    def strip_metadata(self) -> ParamBuilder:
        return self.append(mods.strip_metadata())

    def trim(
        self,
        threshold: float,
        color: str | None = None,
        equal_hor: bool | None = None,
        equal_ver: bool | None = None,
    ) -> ParamBuilder:
        """Trim the image background."""
        return self.append(mods.trim(threshold, color, equal_hor, equal_ver))

    def watermark(
        self,
        opacity: float,
        position: str | None = None,
        x: int | None = None,
        y: int | None = None,
        scale: float | None = None,
    ) -> ParamBuilder:
        """Place the configured watermark."""
        return self.append(mods.watermark(opacity, position, x, y, scale))

    # =========================================================================
    # Python protocol
    # =========================================================================

    def __dir__(self) -> list[str]:
        used = self.used()
        return [name for name in super().__dir__() if name not in used]

    def __len__(self) -> int:
        return len(self._modifiers)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParamBuilder):
            return NotImplemented
        return self._modifiers == other._modifiers

    def __repr__(self) -> str:
        return f"ParamBuilder({self._modifiers!r})"


def pb() -> ParamBuilder:
    """Create an empty modifier chain."""
    return ParamBuilder()
