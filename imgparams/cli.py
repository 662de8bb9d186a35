#!/usr/bin/env python3
"""imgparams - build image service URLs from the command line.

Modifier chains are piped between commands as JSON and only turned into a
URL by the terminal ``build`` command.

Single command:
    imgparams build /photos/cat.jpg -p "resize fit 300 200; quality 80"

Piped:
    imgparams chain "resize fit 300 200" | imgparams chain "format webp" \
        | imgparams build /photos/cat.jpg --base-url https://img.example.com

Reusable recipes:
    imgparams chain thumb.imgp -j > thumb.json
    imgparams apply thumb.json | imgparams build s3://bucket/cat.jpg
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from imgparams.builder import BuildOptions, ParamBuilder
from imgparams.config import load_config
from imgparams.dsl import apply_program, load_program, parse_program
from imgparams.output import handle_output, print_listing, read_chain_input


def get_or_create_chain() -> ParamBuilder:
    """Read a chain from stdin, or create a fresh one."""
    builder = read_chain_input()
    return builder if builder is not None else ParamBuilder()


# =============================================================================
# Command handlers
# =============================================================================


def cmd_chain(args: argparse.Namespace) -> ParamBuilder:
    """Append modifiers from a program (inline or file)."""
    builder = get_or_create_chain()
    return apply_program(builder, parse_program(load_program(args.program)))


def cmd_apply(args: argparse.Namespace) -> ParamBuilder:
    """Append the modifiers of a saved chain (JSON file)."""
    builder = get_or_create_chain()
    saved = ParamBuilder.from_json(Path(args.chain).read_text())
    for token in saved.modifiers:
        builder.append(token)
    return builder


def cmd_info(args: argparse.Namespace) -> None:
    """Show the piped chain (terminal command)."""
    builder = get_or_create_chain()
    print_listing(builder)
    if len(builder):
        print(f"Available: {', '.join(builder.available())}", file=sys.stderr)


def cmd_build(args: argparse.Namespace) -> None:
    """Assemble the final path or URL (terminal command)."""
    builder = get_or_create_chain()
    if args.program:
        apply_program(builder, parse_program(load_program(args.program)))

    config = load_config(base_url=args.base_url, key=args.key, salt=args.salt)
    options = BuildOptions(
        path=args.path,
        base_url=config.base_url,
        plain=args.plain,
        signature=None if args.unsigned else config.signature,
    )
    if not options.path and (options.base_url or options.signature):
        print("No path given: building the bare chain only", file=sys.stderr)
    print(builder.build(options))


# =============================================================================
# Parser
# =============================================================================


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="imgparams",
        description="Build processing URLs for an imgproxy-style image service",
        epilog=(
            "Examples:\n"
            "  imgparams build /cat.jpg -p 'resize fit 300 200; quality 80'\n"
            "\n"
            "  imgparams chain 'resize fit 300 200' | imgparams chain 'format webp' \\\n"
            "      | imgparams build /cat.jpg --base-url https://img.example.com\n"
            "\n"
            "  # Signing key and salt are read from IMGPROXY_KEY / IMGPROXY_SALT (hex)\n"
            "  IMGPROXY_KEY=... IMGPROXY_SALT=... imgparams build /cat.jpg -p 'blur 2'\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    output_parent = argparse.ArgumentParser(add_help=False)
    output_parent.add_argument("-j", "--json", action="store_true", help="Force JSON output (even on TTY)")

    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging on stderr")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # chain
    chain_parser = subparsers.add_parser(
        "chain", help="Append modifiers from a program", parents=[output_parent],
    )
    chain_parser.add_argument("program", help="Program file or inline text, e.g. 'resize fit 300 200; quality 80'")

    # apply
    apply_parser = subparsers.add_parser(
        "apply", help="Append a saved chain (JSON file)", parents=[output_parent],
    )
    apply_parser.add_argument("chain", help="JSON chain file path")

    # info
    subparsers.add_parser("info", help="Show the piped chain")

    # build
    build_parser = subparsers.add_parser("build", help="Assemble the final path or URL")
    build_parser.add_argument("path", nargs="?", default=None, help="Source file path or URL (omit for the bare chain)")
    build_parser.add_argument("-p", "--program", default=None, help="Modifiers to append before building")
    build_parser.add_argument("--plain", action="store_true", help="Insert the path as plain/<path> instead of encoding it")
    build_parser.add_argument("--base-url", default=None, help="Host prefix (default: $IMGPROXY_BASE_URL)")
    build_parser.add_argument("--key", default=None, help="Hex signing key (default: $IMGPROXY_KEY)")
    build_parser.add_argument("--salt", default=None, help="Hex signing salt (default: $IMGPROXY_SALT)")
    build_parser.add_argument("--unsigned", action="store_true", help="Do not sign even if a key is configured")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr)

    state_handlers = {
        "chain": cmd_chain,
        "apply": cmd_apply,
    }

    terminal_handlers = {
        "build": cmd_build,
        "info": cmd_info,
    }

    if not args.command:
        parser.print_help()
        return

    try:
        if args.command in terminal_handlers:
            terminal_handlers[args.command](args)
            return

        builder = state_handlers[args.command](args)
        handle_output(builder, args)

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
