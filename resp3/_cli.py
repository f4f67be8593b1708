"""RESP3 command-line interface.

Usage:
    printf '+OK\\r\\n' | python3 -m resp3 decode
    python3 -m resp3 decode --escaped --input reply.txt
    python3 -m resp3 decode --pipeline --input replies.bin
    python3 -m resp3 version
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import List, Optional

from . import (
    RespError,
    __version__,
    parse_message,
    parse_pipeline,
    value_to_json,
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="resp3",
        description="Decode RESP3 wire messages into tagged JSON",
    )
    sub = parser.add_subparsers(dest="command")

    # ── decode ──
    dec_p = sub.add_parser("decode", help="Decode one message (or a pipeline)")
    dec_p.add_argument("--input", "-i", metavar="FILE",
                       help="Read the message from FILE instead of stdin")
    dec_p.add_argument("--escaped", action="store_true",
                       help="Interpret backslash escapes such as \\r\\n in the input")
    dec_p.add_argument("--pipeline", action="store_true",
                       help="Decode back-to-back values and print a JSON list")
    dec_p.add_argument("--compact", action="store_true",
                       help="Print JSON on one line")

    # ── version ──
    sub.add_parser("version", help="Print version and exit")

    return parser


def _read_input(filepath: Optional[str]) -> bytes:
    """Read message bytes from a file or stdin."""
    if filepath:
        with open(filepath, "rb") as f:
            return f.read()
    if sys.stdin.isatty():
        print("resp3: reading from stdin (Ctrl-D to end)...", file=sys.stderr)
    return sys.stdin.buffer.read()


def _unescape(raw: bytes) -> bytes:
    # Typed input like "+OK\r\n" carries a literal backslash-r.  Trailing
    # shell newlines are not part of the message.  unicode_escape reads
    # other bytes as Latin-1, so encoding back to Latin-1 keeps them intact.
    return raw.rstrip(b"\n").decode("unicode_escape").encode("latin-1")


def _cmd_decode(args: argparse.Namespace) -> None:
    raw = _read_input(args.input)
    if args.escaped:
        raw = _unescape(raw)

    if args.pipeline:
        out = [value_to_json(v) for v in parse_pipeline(raw)]
    else:
        out = value_to_json(parse_message(raw))

    if args.compact:
        print(json.dumps(out, ensure_ascii=False, separators=(",", ":")))
    else:
        print(json.dumps(out, ensure_ascii=False, indent=2))


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "version":
        print(f"resp3 {__version__}")
        return

    try:
        if args.command == "decode":
            _cmd_decode(args)
    except RespError as e:
        print(f"resp3: error [{e.code}]: {e}", file=sys.stderr)
        sys.exit(2)
    except ValueError as e:
        # Dangling backslashes, or \u escapes past U+00FF.
        print(f"resp3: bad escape in input: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
