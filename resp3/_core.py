"""RESP3 decoder — recursive descent over one complete, buffered message.

Every production starts with a single marker byte, so dispatch is a
table lookup rather than trial-and-error alternation.  Productions:

    +text CRLF              SIMPLE_STRING
    -text CRLF              SIMPLE_ERROR
    :[+-]digits CRLF        INTEGER
    $len CRLF bytes CRLF    BULK_STRING     ($-1 CRLF is NULL)
    *len CRLF values...     ARRAY           (*-1 CRLF is NULL)
    _ CRLF                  NULL
    #t|f CRLF               BOOLEAN
    ,float CRLF             DOUBLE
    ([+-]digits CRLF        BIG_NUMBER
    !len CRLF bytes CRLF    BULK_ERROR
    =len CRLF enc:bytes CRLF  VERBATIM_STRING
    %len CRLF 2*len values  MAP
    ~len CRLF values...     SET
    >len CRLF values...     PUSHES

The grammar runs over UTF-8 bytes, so every declared length counts
bytes.  Text payloads are decoded to str as they are sliced out; the
resulting Values hold copies and do not keep the input alive.

There is no recovery mode: the first mismatch raises RespError and the
whole call yields nothing.
"""

from __future__ import annotations

import re
from typing import Callable, Dict, List, Tuple, Union

from ._constants import (
    CRLF,
    INT64_MAX,
    INT64_MIN,
    MARKER_ARRAY,
    MARKER_BIG_NUMBER,
    MARKER_BOOLEAN,
    MARKER_BULK_ERROR,
    MARKER_BULK_STRING,
    MARKER_DOUBLE,
    MARKER_INTEGER,
    MARKER_MAP,
    MARKER_NULL,
    MARKER_PUSHES,
    MARKER_SET,
    MARKER_SIMPLE_ERROR,
    MARKER_SIMPLE_STRING,
    MARKER_VERBATIM_STRING,
    MAX_DEPTH,
    MAX_LENGTH,
    VERBATIM_ENCODING_LEN,
    VERBATIM_PREFIX_LEN,
)
from ._errors import (
    ERR_GRAMMAR,
    ERR_LENGTH,
    ERR_LIMIT_DEPTH,
    ERR_TRAILING,
    ERR_UTF8,
    RespError,
)
from ._value import NULL, Kind, Value, render_double

Buffer = Union[str, bytes, bytearray, memoryview]

_LINE = re.compile(rb"[^\r\n]*")
_SIGNED_DIGITS = re.compile(rb"[+-]?[0-9]+")
_LENGTH = re.compile(rb"-?[0-9]+")
# Only the numeric form takes a sign in any case; the specials are "+inf",
# "-inf" exactly, or an unsigned nan/inf in any case.  "infinity" is not a
# spelling: the CRLF check fails on "inity".
_DOUBLE = re.compile(
    rb"\+inf|-inf"
    rb"|[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?"
    rb"|(?i:nan|inf)"
)

# Remainder after the marker for the two legacy Null spellings.
_NULL_LENGTH = b"-1" + CRLF


# ── Low-level readers ─────────────────────────────────────────
# All readers take (buf, off) and return the new offset last.

def _expect_crlf(buf: bytes, off: int) -> int:
    if buf[off:off + 2] != CRLF:
        raise RespError(ERR_GRAMMAR, "expected CRLF", off)
    return off + 2


def _utf8(raw: bytes, off: int) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        raise RespError(ERR_UTF8, "invalid utf-8 in payload", off)


def _read_line(buf: bytes, off: int) -> Tuple[bytes, int]:
    """Everything up to the first CR or LF, which must start a CRLF."""
    end = _LINE.match(buf, off).end()
    return buf[off:end], _expect_crlf(buf, end)


def _read_length(buf: bytes, off: int) -> Tuple[int, int]:
    """Unsigned 32-bit length prefix plus its CRLF."""
    m = _LENGTH.match(buf, off)
    if m is None:
        raise RespError(ERR_GRAMMAR, "malformed length prefix", off)
    token = m.group()
    # "-1" only means Null in the $ and * positions, which are checked
    # before we get here.  Everywhere else a negative length is an error.
    if token.startswith(b"-"):
        raise RespError(ERR_LENGTH, "negative length {}".format(token.decode("ascii")), off)
    n = int(token)
    if n > MAX_LENGTH:
        raise RespError(ERR_LENGTH, "length {} exceeds MAX_LENGTH".format(n), off)
    return n, _expect_crlf(buf, m.end())


def _read_exact(buf: bytes, off: int, n: int) -> Tuple[bytes, int]:
    """Exactly n payload bytes followed by CRLF.

    The payload may itself contain CR and LF; only the bytes right after
    it are checked.  A short buffer or a missing CRLF at that point means
    the declared length was wrong.
    """
    end = off + n
    if end > len(buf):
        raise RespError(ERR_LENGTH,
                        "payload shorter than declared length {}".format(n), off)
    if buf[end:end + 2] != CRLF:
        raise RespError(ERR_LENGTH,
                        "payload of declared length {} not followed by CRLF".format(n), end)
    return buf[off:end], end + 2


# ── Scalar productions ────────────────────────────────────────
# Signature: (buf, off_after_marker, depth, max_depth) -> (Value, off)

def _parse_simple_string(buf: bytes, off: int, depth: int, max_depth: int) -> Tuple[Value, int]:
    raw, end = _read_line(buf, off)
    return Value(Kind.SIMPLE_STRING, _utf8(raw, off)), end


def _parse_simple_error(buf: bytes, off: int, depth: int, max_depth: int) -> Tuple[Value, int]:
    raw, end = _read_line(buf, off)
    return Value(Kind.SIMPLE_ERROR, _utf8(raw, off)), end


def _parse_integer(buf: bytes, off: int, depth: int, max_depth: int) -> Tuple[Value, int]:
    m = _SIGNED_DIGITS.match(buf, off)
    if m is None:
        raise RespError(ERR_GRAMMAR, "malformed integer", off)
    n = int(m.group())
    if n < INT64_MIN or n > INT64_MAX:
        raise RespError(ERR_GRAMMAR, "integer outside int64 range", off)
    return Value(Kind.INTEGER, n), _expect_crlf(buf, m.end())


def _parse_bulk_string(buf: bytes, off: int, depth: int, max_depth: int) -> Tuple[Value, int]:
    if buf.startswith(_NULL_LENGTH, off):
        return NULL, off + len(_NULL_LENGTH)
    n, off = _read_length(buf, off)
    raw, end = _read_exact(buf, off, n)
    return Value(Kind.BULK_STRING, _utf8(raw, off)), end


def _parse_bulk_error(buf: bytes, off: int, depth: int, max_depth: int) -> Tuple[Value, int]:
    n, off = _read_length(buf, off)
    raw, end = _read_exact(buf, off, n)
    return Value(Kind.BULK_ERROR, _utf8(raw, off)), end


def _parse_null(buf: bytes, off: int, depth: int, max_depth: int) -> Tuple[Value, int]:
    return NULL, _expect_crlf(buf, off)


def _parse_boolean(buf: bytes, off: int, depth: int, max_depth: int) -> Tuple[Value, int]:
    flag = buf[off:off + 1]
    if flag == b"t":
        value = True
    elif flag == b"f":
        value = False
    else:
        raise RespError(ERR_GRAMMAR, "boolean must be 't' or 'f'", off)
    return Value(Kind.BOOLEAN, value), _expect_crlf(buf, off + 1)


def _parse_double(buf: bytes, off: int, depth: int, max_depth: int) -> Tuple[Value, int]:
    m = _DOUBLE.match(buf, off)
    if m is None:
        raise RespError(ERR_GRAMMAR, "malformed double", off)
    x = float(m.group().decode("ascii"))
    return Value(Kind.DOUBLE, render_double(x)), _expect_crlf(buf, m.end())


def _parse_big_number(buf: bytes, off: int, depth: int, max_depth: int) -> Tuple[Value, int]:
    # The sign is part of the stored text; the digits are never converted.
    m = _SIGNED_DIGITS.match(buf, off)
    if m is None:
        raise RespError(ERR_GRAMMAR, "malformed big number", off)
    return Value(Kind.BIG_NUMBER, m.group().decode("ascii")), _expect_crlf(buf, m.end())


def _parse_verbatim_string(buf: bytes, off: int, depth: int, max_depth: int) -> Tuple[Value, int]:
    n, off = _read_length(buf, off)
    if n < VERBATIM_PREFIX_LEN:
        raise RespError(ERR_LENGTH,
                        "verbatim length {} shorter than its encoding prefix".format(n), off)
    raw, end = _read_exact(buf, off, n)
    sep = VERBATIM_ENCODING_LEN
    if raw[sep:sep + 1] != b":":
        raise RespError(ERR_GRAMMAR, "expected ':' after verbatim encoding", off + sep)
    encoding = _utf8(raw[:sep], off)
    text = _utf8(raw[sep + 1:], off + sep + 1)
    return Value(Kind.VERBATIM_STRING, (encoding, text)), end


# ── Aggregate productions ─────────────────────────────────────
# Depth: the root starts at
# depth 0, entering an aggregate checks depth+1 against max_depth, and
# scalars never add depth.

def _read_elements(buf: bytes, off: int, count: int,
                   depth: int, max_depth: int) -> Tuple[List[Value], int]:
    if depth + 1 > max_depth:
        raise RespError(ERR_LIMIT_DEPTH,
                        "nesting exceeds max_depth {}".format(max_depth), off)
    items: List[Value] = []
    for _ in range(count):
        item, off = _decode_one(buf, off, depth + 1, max_depth)
        items.append(item)
    return items, off


def _parse_array(buf: bytes, off: int, depth: int, max_depth: int) -> Tuple[Value, int]:
    if buf.startswith(_NULL_LENGTH, off):
        return NULL, off + len(_NULL_LENGTH)
    n, off = _read_length(buf, off)
    items, off = _read_elements(buf, off, n, depth, max_depth)
    return Value(Kind.ARRAY, tuple(items)), off


def _parse_pushes(buf: bytes, off: int, depth: int, max_depth: int) -> Tuple[Value, int]:
    n, off = _read_length(buf, off)
    items, off = _read_elements(buf, off, n, depth, max_depth)
    return Value(Kind.PUSHES, tuple(items)), off


def _parse_map(buf: bytes, off: int, depth: int, max_depth: int) -> Tuple[Value, int]:
    # The prefix counts pairs; the wire carries key, value, key, value...
    n, off = _read_length(buf, off)
    flat, off = _read_elements(buf, off, 2 * n, depth, max_depth)
    return Value(Kind.MAP, (tuple(flat[0::2]), tuple(flat[1::2]))), off


def _parse_set(buf: bytes, off: int, depth: int, max_depth: int) -> Tuple[Value, int]:
    n, off = _read_length(buf, off)
    items, off = _read_elements(buf, off, n, depth, max_depth)
    return Value(Kind.SET, tuple(sorted(frozenset(items)))), off


_Parser = Callable[[bytes, int, int, int], Tuple[Value, int]]

_PARSERS: Dict[int, _Parser] = {
    MARKER_SIMPLE_STRING: _parse_simple_string,
    MARKER_SIMPLE_ERROR: _parse_simple_error,
    MARKER_INTEGER: _parse_integer,
    MARKER_BULK_STRING: _parse_bulk_string,
    MARKER_ARRAY: _parse_array,
    MARKER_NULL: _parse_null,
    MARKER_BOOLEAN: _parse_boolean,
    MARKER_DOUBLE: _parse_double,
    MARKER_BIG_NUMBER: _parse_big_number,
    MARKER_BULK_ERROR: _parse_bulk_error,
    MARKER_VERBATIM_STRING: _parse_verbatim_string,
    MARKER_MAP: _parse_map,
    MARKER_SET: _parse_set,
    MARKER_PUSHES: _parse_pushes,
}


def _decode_one(buf: bytes, off: int, depth: int, max_depth: int) -> Tuple[Value, int]:
    """Decode one value from buf at offset.  Returns (value, new_offset)."""
    if off >= len(buf):
        raise RespError(ERR_GRAMMAR, "unexpected end of input", off)
    parser = _PARSERS.get(buf[off])
    if parser is None:
        raise RespError(ERR_GRAMMAR, "unknown type marker {!r}".format(chr(buf[off])), off)
    return parser(buf, off + 1, depth, max_depth)


def _as_bytes(data: Buffer) -> bytes:
    if isinstance(data, str):
        try:
            return data.encode("utf-8")
        except UnicodeEncodeError:
            raise RespError(ERR_UTF8, "input contains surrogate code-points")
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    raise TypeError("expected str or bytes-like input, not {}".format(type(data).__name__))


# ── Public entry points ───────────────────────────────────────

def parse_value(data: Buffer, *, max_depth: int = MAX_DEPTH) -> Tuple[Buffer, Value]:
    """Decode the first value in data and return (remainder, value).

    The remainder is str when data is str, bytes otherwise.  It always
    starts right after a CRLF, so decoding a str remainder is safe.
    """
    buf = _as_bytes(data)
    value, end = _decode_one(buf, 0, 0, max_depth)
    rest = buf[end:]
    if isinstance(data, str):
        return rest.decode("utf-8"), value
    return rest, value


def parse_message(data: Buffer, *, max_depth: int = MAX_DEPTH) -> Value:
    """Decode exactly one value; any byte left over is ERR_TRAILING."""
    buf = _as_bytes(data)
    value, end = _decode_one(buf, 0, 0, max_depth)
    if end != len(buf):
        raise RespError(ERR_TRAILING, "trailing bytes after message", end)
    return value


def parse_pipeline(data: Buffer, *, max_depth: int = MAX_DEPTH) -> List[Value]:
    """Decode back-to-back complete values until the buffer is exhausted.

    Empty input yields an empty list.  One bad value fails the whole call.
    """
    buf = _as_bytes(data)
    values: List[Value] = []
    off = 0
    while off < len(buf):
        value, off = _decode_one(buf, off, 0, max_depth)
        values.append(value)
    return values
