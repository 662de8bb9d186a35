"""Centralized output handling for the imgparams CLI.

Chains travel between commands as JSON:
- JSON output when piped (or forced with -j)
- Token listing on TTY
"""

from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING

from imgparams.builder import ParamBuilder

if TYPE_CHECKING:
    import argparse


def read_chain_input() -> ParamBuilder | None:
    """Read a chain from stdin if one is piped in.

    Returns:
        ParamBuilder if valid JSON input, None otherwise.
    """
    if sys.stdin.isatty():
        return None

    data = sys.stdin.read()
    if not data.strip():
        return None
    try:
        return ParamBuilder.from_json(data)
    except (json.JSONDecodeError, AttributeError) as e:
        raise ValueError(f"Invalid chain on stdin: {e}") from e


def write_chain_output(builder: ParamBuilder) -> None:
    """Write a chain to stdout as JSON."""
    print(builder.to_json())


def print_listing(builder: ParamBuilder) -> None:
    """List the chain tokens on stderr."""
    if not len(builder):
        print("Empty chain (no modifiers)", file=sys.stderr)
        return
    print("Chain:", file=sys.stderr)
    for token in builder.modifiers:
        print(f"  {token}", file=sys.stderr)


def handle_output(builder: ParamBuilder, args: argparse.Namespace) -> None:
    """Decide output based on flags and TTY detection.

    Decision logic (in order):
        1. -j/--json flag -> JSON output (force even on TTY)
        2. stdout is TTY -> token listing and bare chain
        3. stdout is piped -> JSON output for the next command
    """
    if getattr(args, "json", False):
        write_chain_output(builder)
        return

    if sys.stdout.isatty():
        print_listing(builder)
        print(builder.build())
        print("Use -j to output as JSON, or pipe to 'imgparams build'", file=sys.stderr)
    else:
        write_chain_output(builder)
