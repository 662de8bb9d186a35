"""Modifier encoders for imgparams.

Each encoder validates its arguments and returns one path token for the
image service, e.g. ``resize("fit", 300, 200)`` -> ``"rs:fit:300:200"``.
Encoders are pure and independent of each other.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, Callable

from imgparams.common import (
    escape_text,
    is_hex_color,
    normalize_hex,
    parse_color,
    stringify_options,
)

RESIZE_TYPES = ("fit", "fill", "fill-down", "force", "auto")

GRAVITY_TYPES = (
    "no", "so", "ea", "we",
    "noea", "nowe", "soea", "sowe",
    "ce", "sm", "fp",
)

WATERMARK_POSITIONS = (
    "ce", "no", "so", "ea", "we",
    "noea", "nowe", "soea", "sowe",
    "re",
)

FORMATS = (
    "png", "jpg", "jpeg", "webp", "avif", "gif",
    "ico", "svg", "heic", "bmp", "tiff", "best",
)

ROTATION_ANGLES = (90, 180, 270)


def _check_number(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value!r}")


def _check_integer(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")


def _check_range(name: str, value: Any, low: float, high: float) -> None:
    _check_number(name, value)
    if not low <= value <= high:
        raise ValueError(f"{name} must be between {low} and {high}, got {value}")


def _check_positive(name: str, value: Any) -> None:
    _check_number(name, value)
    if value <= 0:
        raise ValueError(f"{name} must be greater than 0, got {value}")


def _check_dimension(name: str, value: Any, required: bool = False) -> None:
    if value is None:
        if required:
            raise ValueError(f"{name} is required")
        return
    _check_integer(name, value)
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")


# =============================================================================
# Geometry
# =============================================================================


def _gravity_values(
    type: str, x: float | None = None, y: float | None = None
) -> list[Any]:
    """Validate a gravity record and return its ordered argument list."""
    if type not in GRAVITY_TYPES:
        raise ValueError(
            f"Unknown gravity type: {type!r}. Expected one of {', '.join(GRAVITY_TYPES)}"
        )
    if type == "fp":
        if x is None or y is None:
            raise ValueError("Focus point gravity requires both x and y")
        _check_range("Focus point x", x, 0, 1)
        _check_range("Focus point y", y, 0, 1)
    elif type == "sm" and (x is not None or y is not None):
        raise ValueError("Smart gravity does not accept offsets")
    else:
        if x is not None:
            _check_number("Gravity x offset", x)
        if y is not None:
            _check_number("Gravity y offset", y)
    return [type, x, y]


def _coerce_gravity(gravity: Any) -> list[Any]:
    """Accept a gravity as a type string, mapping or (type, x, y) tuple."""
    if isinstance(gravity, str):
        return _gravity_values(gravity)
    if isinstance(gravity, Mapping):
        return _gravity_values(gravity["type"], gravity.get("x"), gravity.get("y"))
    if isinstance(gravity, (list, tuple)):
        return _gravity_values(*gravity)
    raise ValueError(f"Invalid gravity: {gravity!r}")


def gravity(type: str, x: float | None = None, y: float | None = None) -> str:
    """Set the gravity used by cropping and resizing.

    Args:
        type: One of no, so, ea, we, noea, nowe, soea, sowe, ce, sm, fp
        x: X offset in pixels, or focus point x in [0, 1] for "fp"
        y: Y offset in pixels, or focus point y in [0, 1] for "fp"

    Returns:
        Gravity token, e.g. "g:noea:10:5"
    """
    return stringify_options("g", _gravity_values(type, x, y))


def resize(
    type: str | None = None,
    width: int | None = None,
    height: int | None = None,
    enlarge: bool | None = None,
    extend: bool | None = None,
) -> str:
    """Resize the image.

    Args:
        type: Resizing type (fit, fill, fill-down, force, auto)
        width: Target width, 0 to keep aspect ratio
        height: Target height, 0 to keep aspect ratio
        enlarge: Allow enlarging smaller images
        extend: Extend the canvas to the requested size

    Returns:
        Resize token, e.g. "rs:fit:300:200"
    """
    if type is not None and type not in RESIZE_TYPES:
        raise ValueError(
            f"Unknown resize type: {type!r}. Expected one of {', '.join(RESIZE_TYPES)}"
        )
    _check_dimension("Width", width)
    _check_dimension("Height", height)
    return stringify_options("rs", [type, width, height, enlarge, extend])


def crop(width: int, height: int, gravity: Any = None) -> str:
    """Crop the image before any other processing.

    Args:
        width: Crop width in pixels
        height: Crop height in pixels
        gravity: Optional gravity (type string, mapping or tuple)

    Returns:
        Crop token, e.g. "c:100:50:ce"
    """
    _check_dimension("Width", width, required=True)
    _check_dimension("Height", height, required=True)
    values: list[Any] = [width, height]
    if gravity is not None:
        values.extend(_coerce_gravity(gravity))
    return stringify_options("c", values)


def pad(
    top: int,
    right: int | None = None,
    bottom: int | None = None,
    left: int | None = None,
) -> str:
    """Add padding around the image (CSS order: top, right, bottom, left)."""
    for name, value in (("top", top), ("right", right), ("bottom", bottom), ("left", left)):
        _check_dimension(f"Padding {name}", value)
    return stringify_options("pd", [top, right, bottom, left])


def dpr(factor: float) -> str:
    """Multiply the resulting dimensions by a device pixel ratio."""
    _check_positive("Dpr", factor)
    return stringify_options("dpr", [factor])


def rotate(angle: int) -> str:
    """Rotate the image clockwise by 90, 180 or 270 degrees."""
    if angle not in ROTATION_ANGLES or isinstance(angle, bool):
        raise ValueError(f"Rotation angle must be one of 90, 180, 270, got {angle!r}")
    return stringify_options("rot", [angle])


def auto_rotate() -> str:
    """Rotate the image according to its EXIF orientation."""
    return stringify_options("ar", [True])


def enlarge() -> str:
    """Allow enlarging images smaller than the requested size."""
    return stringify_options("el", [True])


def trim(
    threshold: float,
    color: str | None = None,
    equal_hor: bool | None = None,
    equal_ver: bool | None = None,
) -> str:
    """Trim the image background.

    Args:
        threshold: Colour similarity tolerance
        color: Hex colour of the background to trim (autodetected if omitted)
        equal_hor: Cut equal amounts from left and right
        equal_ver: Cut equal amounts from top and bottom

    Returns:
        Trim token, e.g. "t:10:ffffff:1"
    """
    _check_number("Trim threshold", threshold)
    hex_color = normalize_hex(color) if color is not None else None
    return stringify_options("t", [threshold, hex_color, equal_hor, equal_ver])


# =============================================================================
# Colour and filters
# =============================================================================


def background(color: Any) -> str:
    """Fill transparent areas with a background colour.

    Supports:
        - (r, g, b) tuple or {"r": .., "g": .., "b": ..} mapping -> "bg:R:G:B"
        - hex string, '#' optional -> "bg:ff0000"
        - colour name such as "white" -> "bg:255:255:255"
    """
    if isinstance(color, str):
        if is_hex_color(color):
            return stringify_options("bg", [normalize_hex(color)])
        return stringify_options("bg", [parse_color(color)])

    if isinstance(color, Mapping):
        rgb = (color["r"], color["g"], color["b"])
    elif isinstance(color, (list, tuple)) and len(color) == 3:
        rgb = tuple(color)
    else:
        raise ValueError(f"Invalid background color: {color!r}")

    for channel, value in zip("RGB", rgb):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{channel} channel must be an integer, got {value!r}")
        _check_range(f"{channel} channel", value, 0, 255)
    return stringify_options("bg", [rgb])


def background_alpha(alpha: float) -> str:
    """Set the alpha of the background colour (0 to 1)."""
    _check_range("Background alpha", alpha, 0, 1)
    return stringify_options("bga", [alpha])


def blur(sigma: float) -> str:
    """Apply a gaussian blur with the given mask size."""
    _check_positive("Blur sigma", sigma)
    return stringify_options("blur", [sigma])


def sharpen(sigma: float) -> str:
    """Apply a sharpen filter with the given mask size."""
    _check_positive("Sharpen sigma", sigma)
    return stringify_options("sh", [sigma])


def watermark(
    opacity: float,
    position: str | None = None,
    x: int | None = None,
    y: int | None = None,
    scale: float | None = None,
) -> str:
    """Place the service's configured watermark on the image.

    Args:
        opacity: Watermark opacity between 0 and 1
        position: Gravity-like position, or "re" to replicate across the image
        x: Horizontal offset (spacing when replicated)
        y: Vertical offset (spacing when replicated)
        scale: Watermark size relative to the resulting image

    Returns:
        Watermark token, e.g. "wm:0.5:soea:10:10:0.2"
    """
    _check_range("Watermark opacity", opacity, 0, 1)
    if position is not None and position not in WATERMARK_POSITIONS:
        raise ValueError(
            f"Unknown watermark position: {position!r}. "
            f"Expected one of {', '.join(WATERMARK_POSITIONS)}"
        )
    if x is not None:
        _check_number("Watermark x offset", x)
    if y is not None:
        _check_number("Watermark y offset", y)
    if scale is not None:
        _check_range("Watermark scale", scale, 0, 1)
    return stringify_options("wm", [opacity, position, x, y, scale])


# =============================================================================
# Output
# =============================================================================


def quality(percentage: int) -> str:
    """Set the output quality (0-100, 0 uses the service default)."""
    _check_integer("Quality", percentage)
    _check_range("Quality", percentage, 0, 100)
    return stringify_options("q", [percentage])


def format(extension: str) -> str:
    """Set the output format by file extension."""
    extension = extension.lower().lstrip(".")
    if extension not in FORMATS:
        raise ValueError(
            f"Unknown format: {extension!r}. Expected one of {', '.join(FORMATS)}"
        )
    return stringify_options("f", [extension])


def max_bytes(count: int) -> str:
    """Limit the output file size (jpg, webp, heic and tiff only)."""
    if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
        raise ValueError(f"Max bytes must be a positive integer, got {count!r}")
    return stringify_options("mb", [count])


def strip_metadata() -> str:
    """Remove metadata (EXIF, IPTC, ...) from the output."""
    return stringify_options("sm", [True])


def strip_color_profile() -> str:
    """Remove the embedded colour profile from the output."""
    return stringify_options("scp", [True])


def preset(*names: str) -> str:
    """Apply one or more named presets configured on the service."""
    if not names:
        raise ValueError("preset requires at least one name")
    for name in names:
        if not name or any(c in name for c in "/:,"):
            raise ValueError(f"Invalid preset name: {name!r}")
    return stringify_options("pr", [",".join(names)])


def cache_buster(value: str) -> str:
    """Add an opaque cache-busting value to the request."""
    if not value:
        raise ValueError("Cache buster must be a non-empty string")
    return stringify_options("cb", [escape_text(str(value))])


def filename(name: str) -> str:
    """Set the filename of the Content-Disposition response header."""
    if not name:
        raise ValueError("Filename must be a non-empty string")
    return stringify_options("fn", [escape_text(name)])


# =============================================================================
# Modifiers Registry
# =============================================================================


MODIFIERS: dict[str, Callable[..., str]] = {
    # Geometry
    "resize": resize,
    "crop": crop,
    "gravity": gravity,
    "pad": pad,
    "dpr": dpr,
    "rotate": rotate,
    "auto_rotate": auto_rotate,
    "enlarge": enlarge,
    "trim": trim,
    # Colour and filters
    "background": background,
    "background_alpha": background_alpha,
    "blur": blur,
    "sharpen": sharpen,
    "watermark": watermark,
    # Output
    "quality": quality,
    "format": format,
    "max_bytes": max_bytes,
    "strip_metadata": strip_metadata,
    "strip_color_profile": strip_color_profile,
    "preset": preset,
    "cache_buster": cache_buster,
    "filename": filename,
}

# Token prefix -> modifier name
PREFIXES: dict[str, str] = {
    "rs": "resize",
    "c": "crop",
    "g": "gravity",
    "pd": "pad",
    "dpr": "dpr",
    "rot": "rotate",
    "ar": "auto_rotate",
    "el": "enlarge",
    "t": "trim",
    "bg": "background",
    "bga": "background_alpha",
    "blur": "blur",
    "sh": "sharpen",
    "wm": "watermark",
    "q": "quality",
    "f": "format",
    "mb": "max_bytes",
    "sm": "strip_metadata",
    "scp": "strip_color_profile",
    "pr": "preset",
    "cb": "cache_buster",
    "fn": "filename",
}


def encode_modifier(name: str, *args, **kwargs) -> str:
    """Encode a modifier by name (or token prefix).

    Raises:
        ValueError: If the modifier name is unknown
    """
    name = PREFIXES.get(name, name)
    if name not in MODIFIERS:
        raise ValueError(
            f"Unknown modifier: {name}. Available: {', '.join(MODIFIERS)}"
        )
    return MODIFIERS[name](*args, **kwargs)
