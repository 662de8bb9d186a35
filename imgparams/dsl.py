"""DSL parser for imgparams programs.

Programs are sequences of modifier calls applied to a chain, one per
statement. Modifier names match the builder methods; token prefixes
(``rs``, ``q``, ...) are accepted as aliases.

Syntax:
    # Comments start with #
    resize fit 300 200      # Modifiers are words with arguments
    trim 10 equal_hor=true  # Keyword arguments use =
    quality 80; format webp # Semicolons separate modifiers on one line

Example program file (thumb.imgp):
    # Square webp thumbnail
    resize fill 256 256
    gravity sm
    format webp
"""

from __future__ import annotations

import shlex
from pathlib import Path

from imgparams.builder import ParamBuilder
from imgparams.modifiers import MODIFIERS, PREFIXES


def parse_program(text: str) -> list[tuple[str, tuple, dict]]:
    """Parse program text into a modifier call list.

    Comments are only recognized outside quotes, so a quoted
    ``'#ff0000'`` stays an argument.

    Args:
        text: Program text with statements separated by semicolons or newlines.

    Returns:
        List of (name, args, kwargs) tuples.

    Examples:
        >>> parse_program("resize fit 300 200; quality 80")
        [('resize', ('fit', 300, 200), {}), ('quality', (80,), {})]

        >>> parse_program("# comment\\nblur 2.5")
        [('blur', (2.5,), {})]

        >>> parse_program("background '#ff0000'  # red")
        [('background', ('#ff0000',), {})]
    """
    ops = []

    for line in text.split("\n"):
        lexer = shlex.shlex(line, posix=True, punctuation_chars=";")
        lexer.whitespace_split = True
        statement: list[str] = []
        for token in lexer:
            if token and set(token) == {";"}:
                if statement:
                    ops.append(_build_operation(statement))
                statement = []
            else:
                statement.append(token)
        if statement:
            ops.append(_build_operation(statement))

    return ops


def parse_operation(line: str) -> tuple[str, tuple, dict]:
    """Parse a single modifier statement.

    Examples:
        >>> parse_operation("resize fit 300 200")
        ('resize', ('fit', 300, 200), {})

        >>> parse_operation("watermark 0.5 position=soea scale=0.2")
        ('watermark', (0.5,), {'position': 'soea', 'scale': 0.2})
    """
    tokens = shlex.split(line, comments=True)
    if not tokens:
        raise ValueError(f"Empty statement: {line!r}")
    return _build_operation(tokens)


def _build_operation(tokens: list[str]) -> tuple[str, tuple, dict]:
    name = tokens[0]
    args = []
    kwargs = {}

    for token in tokens[1:]:
        if "=" in token:
            key, value = token.split("=", 1)
            kwargs[key] = parse_value(value)
        else:
            args.append(parse_value(token))

    return (name, tuple(args), kwargs)


def parse_value(s: str) -> str | int | float | bool:
    """Parse a value string into a typed value.

    Strings with a leading zero stay strings so hex colours like
    ``000000`` survive.

    Examples:
        >>> parse_value("true")
        True
        >>> parse_value("80")
        80
        >>> parse_value("0.5")
        0.5
        >>> parse_value("00ff00")
        '00ff00'
        >>> parse_value("000000")
        '000000'
    """
    if s.lower() == "true":
        return True
    if s.lower() == "false":
        return False

    if len(s) > 1 and s.startswith("0") and not s.startswith("0."):
        return s

    try:
        return int(s)
    except ValueError:
        pass

    try:
        return float(s)
    except ValueError:
        pass

    return s


def load_program(source: str) -> str:
    """Load a program from a file, or return the inline string.

    Examples:
        >>> load_program("quality 80; format webp")
        'quality 80; format webp'
    """
    if not source:
        return source
    path = Path(source)
    if path.is_file():
        return path.read_text()
    return source


# Positional index of colour arguments that must reach the encoder as text
COLOR_ARGUMENTS: dict[str, int] = {
    "background": 0,
    "trim": 1,
}


def _keep_color_text(method: str, args: tuple, kwargs: dict) -> tuple[tuple, dict]:
    """Turn all-digit hex colours parsed as ints (``112233``) back into text."""
    index = COLOR_ARGUMENTS.get(method)
    if index is None:
        return args, kwargs

    def as_text(value):
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    args = tuple(as_text(v) if i == index else v for i, v in enumerate(args))
    if "color" in kwargs:
        kwargs = {**kwargs, "color": as_text(kwargs["color"])}
    return args, kwargs


def apply_program(
    builder: ParamBuilder, ops: list[tuple[str, tuple, dict]]
) -> ParamBuilder:
    """Apply parsed modifier calls to a builder, in order.

    Raises:
        ValueError: If a modifier name is unknown or its arguments are invalid
    """
    for name, args, kwargs in ops:
        method = PREFIXES.get(name, name)
        if method not in MODIFIERS:
            raise ValueError(
                f"Unknown modifier: {name}. Available: {', '.join(MODIFIERS)}"
            )
        args, kwargs = _keep_color_text(method, args, kwargs)
        try:
            getattr(builder, method)(*args, **kwargs)
        except TypeError as e:
            raise ValueError(f"Invalid arguments for {method}: {e}") from e
    return builder
