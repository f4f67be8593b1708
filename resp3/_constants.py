"""RESP3 constants — type markers, terminator, Null spellings, and limits."""

from __future__ import annotations

__protocol_version__ = "3"

# Every line-oriented production ends with CR LF.  Bare CR or bare LF
# never terminates anything.
CRLF = b"\r\n"

# ── Type markers (single leading byte each) ──────────────────
MARKER_SIMPLE_STRING: int = ord("+")
MARKER_SIMPLE_ERROR: int = ord("-")
MARKER_INTEGER: int = ord(":")
MARKER_BULK_STRING: int = ord("$")
MARKER_ARRAY: int = ord("*")
MARKER_NULL: int = ord("_")
MARKER_BOOLEAN: int = ord("#")
MARKER_DOUBLE: int = ord(",")
MARKER_BIG_NUMBER: int = ord("(")
MARKER_BULK_ERROR: int = ord("!")
MARKER_VERBATIM_STRING: int = ord("=")
MARKER_MAP: int = ord("%")
MARKER_SET: int = ord("~")
MARKER_PUSHES: int = ord(">")

# The three wire spellings that collapse to Null.  RESP2 null bulk
# string, RESP2 null array, RESP3 null.
NULL_SPELLINGS = (b"$-1\r\n", b"*-1\r\n", b"_\r\n")

# ── Numeric bounds ───────────────────────────────────────────
# Python ints are arbitrary-precision, so Integer payloads are
# range-checked explicitly.
INT64_MIN: int = -(2**63)
INT64_MAX: int = 2**63 - 1

# Length prefixes are unsigned 32-bit.
MAX_LENGTH: int = 0xFFFFFFFF

# Verbatim strings carry "xxx:" before the text: 3-byte tag + separator.
VERBATIM_ENCODING_LEN: int = 3
VERBATIM_PREFIX_LEN: int = VERBATIM_ENCODING_LEN + 1

# ── Safety limits ────────────────────────────────────────────
# Aggregates nest by recursion; bound it well below the interpreter's
# recursion limit so hostile input fails with ERR_LIMIT_DEPTH.
MAX_DEPTH: int = 128
