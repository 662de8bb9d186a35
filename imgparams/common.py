"""Shared option formatting for imgparams.

Every modifier token has the shape ``prefix:arg1:arg2:...``. The helpers
here render primitive values into that grammar so each modifier encoder
only has to decide which values go in which order.
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Any, Iterable
from urllib.parse import quote

from PIL import ImageColor

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")


def format_value(value: Any) -> str:
    """Render a single primitive in its canonical token form.

    Examples:
        >>> format_value(True)
        '1'
        >>> format_value(2.0)
        '2'
        >>> format_value(0.25)
        '0.25'
        >>> format_value(0.00001)
        '0.00001'
    """
    if value is None:
        return ""
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return format(Decimal(repr(value)), "f")
    return str(value)


def _flatten(values: Iterable[Any]) -> list[Any]:
    flat: list[Any] = []
    for value in values:
        if isinstance(value, (list, tuple)):
            flat.extend(_flatten(value))
        else:
            flat.append(value)
    return flat


def stringify_options(prefix: str, values: Iterable[Any]) -> str:
    """Build a modifier token from a prefix and its ordered arguments.

    Trailing ``None`` values are dropped so optional arguments at the end
    are omitted entirely. A ``None`` followed by a later value renders as
    an empty argument, which the service reads as "use the default".
    Nested lists and tuples are flattened positionally.

    Args:
        prefix: Short modifier key (e.g. "rs", "q")
        values: Ordered argument values

    Returns:
        Token string such as "rs:fit:300:200"

    Examples:
        >>> stringify_options("rs", ["fit", 300, 200, None, None])
        'rs:fit:300:200'
        >>> stringify_options("rs", [None, 300])
        'rs::300'
        >>> stringify_options("ar", [True])
        'ar:1'
    """
    args = _flatten(values)
    while args and args[-1] is None:
        args.pop()

    if not args:
        return prefix
    return ":".join([prefix] + [format_value(v) for v in args])


def is_hex_color(value: str) -> bool:
    """Check for a 3, 6 or 8 digit hex colour, with or without '#'."""
    return isinstance(value, str) and bool(_HEX_COLOR.match(value))


def normalize_hex(value: str) -> str:
    """Strip the leading '#' from a hex colour after validating it."""
    if not is_hex_color(value):
        raise ValueError(f"Invalid hex color: {value!r}")
    return value.lstrip("#").lower()


def parse_color(color: str) -> tuple[int, int, int]:
    """Resolve a colour name or CSS colour string to an RGB triple.

    Args:
        color: Colour name ("red"), "rgb(...)" form or hex

    Returns:
        (R, G, B) tuple with values 0-255
    """
    try:
        rgb = ImageColor.getrgb(color)
    except ValueError:
        raise ValueError(f"Invalid color: {color}")
    return rgb[0], rgb[1], rgb[2]


def escape_text(value: str) -> str:
    """Percent-escape free text so it cannot break the token grammar.

    Both '/' and ':' are escaped, along with anything else that is not
    URL-safe.

    Examples:
        >>> escape_text("a/b:c d")
        'a%2Fb%3Ac%20d'
    """
    return quote(value, safe="")
