"""RESP3 value model — one tagged Value type for every decodable shape.

The fourteen kinds mirror the wire productions one-to-one:

    SIMPLE_STRING   (+)  single-line text
    SIMPLE_ERROR    (-)  single-line text, error tag
    INTEGER         (:)  signed 64-bit
    BULK_STRING     ($)  length-prefixed text, may hold CR/LF
    ARRAY           (*)  ordered Values
    NULL            (_)  also spelled $-1 and *-1 on the wire
    BOOLEAN         (#)  t / f
    DOUBLE          (,)  canonical decimal text, see render_double()
    BIG_NUMBER      (()  sign + digits, kept as text
    BULK_ERROR      (!)  length-prefixed text, error tag
    VERBATIM_STRING (=)  (3-char encoding, text)
    MAP             (%)  parallel key / value tuples in wire order
    SET             (~)  sorted, duplicate-free tuple
    PUSHES          (>)  ordered Values, server push tag

Values are immutable.  Equality, hashing and ordering are structural:
kind first (declaration order of Kind), then payload, recursively through
aggregates.  That total order is what makes SET canonical.

Payloads are plain Python objects copied out of the input buffer, so a
Value never depends on the buffer it was decoded from.
"""

from __future__ import annotations

import enum
import functools
import math
import re
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional, Tuple

from ._constants import INT64_MAX, INT64_MIN, VERBATIM_ENCODING_LEN
from ._errors import (
    ERR_GRAMMAR,
    ERR_KEY_NOT_STRING,
    ERR_LENGTH,
    ERR_NOT_A_MAP,
    RespError,
    ToHashMapError,
)


class Kind(enum.IntEnum):
    """Variant tag.  Member order is the first key of the canonical order."""

    SIMPLE_STRING = 0
    SIMPLE_ERROR = 1
    INTEGER = 2
    BULK_STRING = 3
    ARRAY = 4
    NULL = 5
    BOOLEAN = 6
    DOUBLE = 7
    BIG_NUMBER = 8
    BULK_ERROR = 9
    VERBATIM_STRING = 10
    MAP = 11
    SET = 12
    PUSHES = 13


_STRING_LIKE = frozenset({
    Kind.SIMPLE_STRING,
    Kind.SIMPLE_ERROR,
    Kind.BULK_STRING,
    Kind.BULK_ERROR,
    Kind.DOUBLE,
    Kind.BIG_NUMBER,
    Kind.VERBATIM_STRING,
})

_ARRAY_LIKE = frozenset({Kind.ARRAY, Kind.PUSHES})

_BIG_NUMBER = re.compile(r"[+-]?[0-9]+\Z")


# ── Double canonical rendering ────────────────────────────────
# Equivalent input spellings ("inf", "+inf", "INF", "1e3", "1000.0")
# must land on one stored text.  Finite values use the shortest string
# that round-trips, written out positionally (never in exponent form)
# and without a redundant ".0".

def render_double(x: float) -> str:
    """Return the canonical text stored in a DOUBLE Value."""
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "inf" if x > 0 else "-inf"
    text = format(Decimal(repr(x)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _check_text(text: Any, what: str) -> str:
    if not isinstance(text, str):
        raise TypeError("{} payload must be str, not {}".format(what, type(text).__name__))
    return text


def _check_line(text: Any, what: str) -> str:
    _check_text(text, what)
    if "\r" in text or "\n" in text:
        raise RespError(ERR_GRAMMAR, "{} may not contain CR or LF".format(what))
    return text


def _check_values(items: Iterable[Any], what: str) -> Tuple["Value", ...]:
    out = tuple(items)
    for item in out:
        if not isinstance(item, Value):
            raise TypeError("{} elements must be Value, not {}".format(what, type(item).__name__))
    return out


@functools.total_ordering
class Value:
    """One decoded RESP3 value.

    Build instances with the per-kind classmethods (Value.bulk_string(),
    Value.map(), ...).  The decoder uses the raw (kind, payload)
    constructor directly because it has already validated the shape.
    """

    __slots__ = ("kind", "payload")

    def __init__(self, kind: Kind, payload: Any) -> None:
        object.__setattr__(self, "kind", Kind(kind))
        object.__setattr__(self, "payload", payload)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Value is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError("Value is immutable")

    # ── Constructors ─────────────────────────────────────────

    @classmethod
    def simple_string(cls, text: str) -> "Value":
        return cls(Kind.SIMPLE_STRING, _check_line(text, "simple string"))

    @classmethod
    def simple_error(cls, text: str) -> "Value":
        return cls(Kind.SIMPLE_ERROR, _check_line(text, "simple error"))

    @classmethod
    def integer(cls, n: int) -> "Value":
        # bool is an int subclass; True is not the INTEGER 1.
        if isinstance(n, bool) or not isinstance(n, int):
            raise TypeError("integer payload must be int, not {}".format(type(n).__name__))
        if n < INT64_MIN or n > INT64_MAX:
            raise RespError(ERR_GRAMMAR, "integer {} outside int64 range".format(n))
        return cls(Kind.INTEGER, n)

    @classmethod
    def bulk_string(cls, text: str) -> "Value":
        return cls(Kind.BULK_STRING, _check_text(text, "bulk string"))

    @classmethod
    def bulk_error(cls, text: str) -> "Value":
        return cls(Kind.BULK_ERROR, _check_text(text, "bulk error"))

    @classmethod
    def array(cls, items: Iterable["Value"]) -> "Value":
        return cls(Kind.ARRAY, _check_values(items, "array"))

    @classmethod
    def pushes(cls, items: Iterable["Value"]) -> "Value":
        return cls(Kind.PUSHES, _check_values(items, "pushes"))

    @classmethod
    def null(cls) -> "Value":
        return NULL

    @classmethod
    def boolean(cls, flag: bool) -> "Value":
        if not isinstance(flag, bool):
            raise TypeError("boolean payload must be bool, not {}".format(type(flag).__name__))
        return cls(Kind.BOOLEAN, flag)

    @classmethod
    def double(cls, x: float) -> "Value":
        if isinstance(x, bool) or not isinstance(x, (int, float)):
            raise TypeError("double payload must be float, not {}".format(type(x).__name__))
        try:
            x = float(x)
        except OverflowError:
            raise RespError(ERR_GRAMMAR, "double payload out of float range") from None
        return cls(Kind.DOUBLE, render_double(x))

    @classmethod
    def big_number(cls, digits: Any) -> "Value":
        """Accepts an int or its decimal text; the text is stored as given."""
        if isinstance(digits, bool):
            raise TypeError("big number payload must be int or str, not bool")
        if isinstance(digits, int):
            digits = str(digits)
        _check_text(digits, "big number")
        if not _BIG_NUMBER.match(digits):
            raise RespError(ERR_GRAMMAR, "malformed big number {!r}".format(digits))
        return cls(Kind.BIG_NUMBER, digits)

    @classmethod
    def verbatim_string(cls, encoding: str, text: str) -> "Value":
        _check_text(encoding, "verbatim encoding")
        _check_text(text, "verbatim string")
        if len(encoding.encode("utf-8")) != VERBATIM_ENCODING_LEN:
            raise RespError(ERR_GRAMMAR, "verbatim encoding must be 3 bytes: {!r}".format(encoding))
        return cls(Kind.VERBATIM_STRING, (encoding, text))

    @classmethod
    def map(cls, keys: Iterable["Value"], values: Iterable["Value"]) -> "Value":
        ks = _check_values(keys, "map key")
        vs = _check_values(values, "map value")
        if len(ks) != len(vs):
            raise RespError(ERR_LENGTH,
                            "map has {} keys but {} values".format(len(ks), len(vs)))
        return cls(Kind.MAP, (ks, vs))

    @classmethod
    def set(cls, items: Iterable["Value"]) -> "Value":
        """Duplicates (by structural equality) collapse; order is canonical."""
        return cls(Kind.SET, tuple(sorted(frozenset(_check_values(items, "set")))))

    # ── Structural identity ──────────────────────────────────

    def _key(self) -> Tuple[int, Any]:
        return (int(self.kind), self.payload)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        return self.kind == other.kind and self.payload == other.payload

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        kind = self.kind
        if kind is Kind.NULL:
            return "Value.null()"
        if kind is Kind.DOUBLE:
            return "Value.double(float({!r}))".format(self.payload)
        if kind is Kind.VERBATIM_STRING:
            return "Value.verbatim_string({!r}, {!r})".format(*self.payload)
        if kind is Kind.MAP:
            keys, values = self.payload
            return "Value.map({!r}, {!r})".format(list(keys), list(values))
        if kind in (Kind.ARRAY, Kind.PUSHES, Kind.SET):
            return "Value.{}({!r})".format(kind.name.lower(), list(self.payload))
        return "Value.{}({!r})".format(kind.name.lower(), self.payload)

    # ── Predicates ───────────────────────────────────────────

    def is_simple_string(self) -> bool:
        return self.kind is Kind.SIMPLE_STRING

    def is_simple_error(self) -> bool:
        return self.kind is Kind.SIMPLE_ERROR

    def is_integer(self) -> bool:
        return self.kind is Kind.INTEGER

    def is_bulk_string(self) -> bool:
        return self.kind is Kind.BULK_STRING

    def is_array(self) -> bool:
        return self.kind is Kind.ARRAY

    def is_null(self) -> bool:
        return self.kind is Kind.NULL

    def is_boolean(self) -> bool:
        return self.kind is Kind.BOOLEAN

    def is_double(self) -> bool:
        return self.kind is Kind.DOUBLE

    def is_big_number(self) -> bool:
        return self.kind is Kind.BIG_NUMBER

    def is_bulk_error(self) -> bool:
        return self.kind is Kind.BULK_ERROR

    def is_verbatim_string(self) -> bool:
        return self.kind is Kind.VERBATIM_STRING

    def is_map(self) -> bool:
        return self.kind is Kind.MAP

    def is_set(self) -> bool:
        return self.kind is Kind.SET

    def is_pushes(self) -> bool:
        return self.kind is Kind.PUSHES

    def is_string_like(self) -> bool:
        """True for both string kinds, both error kinds, DOUBLE, BIG_NUMBER and VERBATIM_STRING."""
        return self.kind in _STRING_LIKE

    def is_array_like(self) -> bool:
        """True for ARRAY and PUSHES."""
        return self.kind in _ARRAY_LIKE

    # ── Accessors ────────────────────────────────────────────
    # Each returns None when the kind doesn't match; none of them raise.

    def as_str(self) -> Optional[str]:
        """Text payload of any string-like kind.  VERBATIM_STRING yields its text, not the tag."""
        if self.kind is Kind.VERBATIM_STRING:
            return self.payload[1]
        if self.kind in _STRING_LIKE:
            return self.payload
        return None

    def as_i64(self) -> Optional[int]:
        if self.kind is Kind.INTEGER:
            return self.payload
        return None

    def as_f64(self) -> Optional[float]:
        if self.kind is not Kind.DOUBLE:
            return None
        try:
            return float(self.payload)
        except ValueError:
            return None

    def as_bool(self) -> Optional[bool]:
        if self.kind is Kind.BOOLEAN:
            return self.payload
        return None

    def as_array(self) -> Optional[Tuple["Value", ...]]:
        """Elements of an ARRAY or PUSHES, without telling the two apart."""
        if self.kind in _ARRAY_LIKE:
            return self.payload
        return None

    def as_map(self) -> Optional[Tuple[Tuple["Value", ...], Tuple["Value", ...]]]:
        if self.kind is Kind.MAP:
            return self.payload
        return None

    def as_set(self) -> Optional[Tuple["Value", ...]]:
        if self.kind is Kind.SET:
            return self.payload
        return None

    # ── Conversions ──────────────────────────────────────────

    def try_to_hashmap(self) -> Dict[str, "Value"]:
        """Narrow a MAP to a str-keyed dict.

        The wire grammar allows any Value as a map key; this succeeds only
        when every key is string-like.  Raises ToHashMapError with
        ERR_NOT_A_MAP, or with ERR_KEY_NOT_STRING and the first offending
        key attached as `.key`.  A repeated key keeps its last value.
        """
        if self.kind is not Kind.MAP:
            raise ToHashMapError(ERR_NOT_A_MAP,
                                 "value is not a map: {}".format(self.kind.name))
        out: Dict[str, Value] = {}
        keys, values = self.payload
        for key, value in zip(keys, values):
            text = key.as_str()
            if text is None:
                raise ToHashMapError(ERR_KEY_NOT_STRING,
                                     "map key is not a string: {!r}".format(key),
                                     key=key)
            out[text] = value
        return out

    def to_python(self) -> Any:
        """Plain Python rendering of the tree.

        Text kinds become str, DOUBLE becomes float, BIG_NUMBER becomes
        int, NULL becomes None, ARRAY / PUSHES / SET become lists.  A MAP
        becomes a dict when every converted key is hashable, otherwise a
        list of (key, value) pairs.  The kind tag is lost; use
        value_to_json() for a lossless rendering.
        """
        kind = self.kind
        if kind is Kind.DOUBLE:
            return float(self.payload)
        if kind is Kind.BIG_NUMBER:
            return int(self.payload)
        if kind is Kind.VERBATIM_STRING:
            return self.payload[1]
        if kind in (Kind.ARRAY, Kind.PUSHES, Kind.SET):
            return [item.to_python() for item in self.payload]
        if kind is Kind.MAP:
            keys, values = self.payload
            pairs = [(k.to_python(), v.to_python()) for k, v in zip(keys, values)]
            if any(isinstance(k, (list, dict)) for k, _ in pairs):
                return pairs
            return dict(pairs)
        return self.payload


NULL = Value(Kind.NULL, None)
