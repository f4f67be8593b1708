"""Tagged-JSON rendering of Value trees.

A Value becomes {"type": <kind>, "value": <payload>} where <kind> is the
lower-case Kind name.  Payload mapping:

    simple_string, simple_error, bulk_string, bulk_error,
    double, big_number               → JSON string
    integer                          → JSON number
    boolean                          → JSON true / false
    null                             → JSON null
    array, pushes, set               → JSON array of tagged values
    map                              → {"keys": [...], "values": [...]}
    verbatim_string                  → {"encoding": ..., "text": ...}

DOUBLE stays a string so "inf", "-inf" and "NaN" survive json.dumps
without the non-standard Infinity / NaN tokens.  The rendering is
lossless: value_from_json(value_to_json(v)) == v.
"""

from __future__ import annotations

from typing import Any, Dict, List

from ._errors import ERR_GRAMMAR, RespError
from ._value import NULL, Kind, Value

_TEXT_KINDS = (
    Kind.SIMPLE_STRING,
    Kind.SIMPLE_ERROR,
    Kind.BULK_STRING,
    Kind.BULK_ERROR,
    Kind.DOUBLE,
    Kind.BIG_NUMBER,
)

_SEQUENCE_KINDS = (Kind.ARRAY, Kind.PUSHES, Kind.SET)

_KINDS_BY_NAME = {kind.name.lower(): kind for kind in Kind}


def value_to_json(value: Value) -> Dict[str, Any]:
    """Convert a Value to JSON-serializable tagged form."""
    kind = value.kind
    name = kind.name.lower()

    if kind in _SEQUENCE_KINDS:
        return {"type": name, "value": [value_to_json(v) for v in value.payload]}

    if kind is Kind.MAP:
        keys, values = value.payload
        return {
            "type": name,
            "value": {
                "keys": [value_to_json(k) for k in keys],
                "values": [value_to_json(v) for v in values],
            },
        }

    if kind is Kind.VERBATIM_STRING:
        encoding, text = value.payload
        return {"type": name, "value": {"encoding": encoding, "text": text}}

    # Text kinds, integer, boolean and null carry JSON-native payloads.
    return {"type": name, "value": value.payload}


def _tagged_list(obj: Any) -> List[Value]:
    if not isinstance(obj, list):
        raise RespError(ERR_GRAMMAR, "tagged JSON: expected a list of values")
    return [value_from_json(item) for item in obj]


def value_from_json(obj: Any) -> Value:
    """Rebuild a Value from its tagged-JSON form.

    Shape problems raise RespError(ERR_GRAMMAR).  The per-kind Value
    constructors run on the way back in, so payload checks (CR/LF in a
    simple string, int64 range, verbatim tag width) still apply.
    """
    if not isinstance(obj, dict) or "type" not in obj:
        raise RespError(ERR_GRAMMAR, "tagged JSON: expected an object with 'type'")
    kind = _KINDS_BY_NAME.get(obj["type"])
    if kind is None:
        raise RespError(ERR_GRAMMAR, "tagged JSON: unknown type {!r}".format(obj["type"]))
    payload = obj.get("value")

    try:
        if kind is Kind.NULL:
            return NULL
        if kind is Kind.ARRAY:
            return Value.array(_tagged_list(payload))
        if kind is Kind.PUSHES:
            return Value.pushes(_tagged_list(payload))
        if kind is Kind.SET:
            return Value.set(_tagged_list(payload))
        if kind is Kind.MAP:
            if not isinstance(payload, dict):
                raise RespError(ERR_GRAMMAR, "tagged JSON: map needs keys and values")
            return Value.map(_tagged_list(payload.get("keys")),
                             _tagged_list(payload.get("values")))
        if kind is Kind.VERBATIM_STRING:
            if not isinstance(payload, dict):
                raise RespError(ERR_GRAMMAR, "tagged JSON: verbatim needs encoding and text")
            return Value.verbatim_string(payload.get("encoding"), payload.get("text"))
        if kind is Kind.DOUBLE:
            # Already canonical text; re-render so hand-written vectors
            # like "1.50" or "+inf" still compare equal.
            if not isinstance(payload, (str, float)):
                raise TypeError("double payload must be text or float, not {}".format(type(payload).__name__))
            return Value.double(float(payload))
        if kind is Kind.INTEGER:
            return Value.integer(payload)
        if kind is Kind.BOOLEAN:
            return Value.boolean(payload)
        if kind is Kind.BIG_NUMBER:
            return Value.big_number(payload)
        if kind in _TEXT_KINDS:
            return getattr(Value, kind.name.lower())(payload)
    except (TypeError, ValueError, OverflowError) as e:
        raise RespError(ERR_GRAMMAR, "tagged JSON: bad {} payload: {}".format(kind.name.lower(), e))

    raise RespError(ERR_GRAMMAR, "tagged JSON: unhandled type {!r}".format(obj["type"]))
