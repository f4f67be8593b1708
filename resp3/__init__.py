"""resp3 — RESP3 message decoder and value model.

Decode complete, buffered RESP2/RESP3 wire messages into immutable,
structurally comparable Value trees.

Quick start:
    >>> from resp3 import parse_message
    >>> v = parse_message("*2\\r\\n$5\\r\\nhello\\r\\n$5\\r\\nworld\\r\\n")
    >>> [item.as_str() for item in v.as_array()]
    ['hello', 'world']

All three Null spellings decode to the same value:
    >>> parse_message("$-1\\r\\n") == parse_message("*-1\\r\\n") == parse_message("_\\r\\n")
    True

String-keyed lookup on a MAP is an explicit, fallible narrowing:
    >>> m = parse_message("%2\\r\\n+first\\r\\n:1\\r\\n+second\\r\\n:2\\r\\n")
    >>> m.try_to_hashmap()["second"].as_i64()
    2
"""

from __future__ import annotations

from ._constants import MAX_DEPTH, MAX_LENGTH
from ._core import parse_message, parse_pipeline, parse_value
from ._errors import (
    ERR_GRAMMAR,
    ERR_KEY_NOT_STRING,
    ERR_LENGTH,
    ERR_LIMIT_DEPTH,
    ERR_NOT_A_MAP,
    ERR_TRAILING,
    ERR_UTF8,
    RespError,
    ToHashMapError,
)
from ._json_adapter import value_from_json, value_to_json
from ._value import NULL, Kind, Value, render_double

__version__ = "0.3.0"

__all__ = [
    # Decoder
    "parse_value",
    "parse_message",
    "parse_pipeline",
    # Value model
    "Kind",
    "Value",
    "NULL",
    "render_double",
    # Tagged JSON
    "value_to_json",
    "value_from_json",
    # Limits
    "MAX_DEPTH",
    "MAX_LENGTH",
    # Exceptions
    "RespError",
    "ToHashMapError",
    # Error codes
    "ERR_GRAMMAR",
    "ERR_LENGTH",
    "ERR_TRAILING",
    "ERR_UTF8",
    "ERR_LIMIT_DEPTH",
    "ERR_NOT_A_MAP",
    "ERR_KEY_NOT_STRING",
]
