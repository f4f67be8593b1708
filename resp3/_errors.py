"""RESP3 error codes and exception classes.

Decode failures are terminal: the first mismatch raises, and there is no
partial result.  The `.code` attribute groups failures into a small
taxonomy that callers can branch on; `.offset` points at the byte where
the mismatch was detected.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ._value import Value

# ── Decode-time codes ────────────────────────────────────────

ERR_GRAMMAR: str = "ERR_GRAMMAR"          # wrong marker, bad literal, bad terminator
ERR_LENGTH: str = "ERR_LENGTH"            # length prefix bad or not matched by payload
ERR_TRAILING: str = "ERR_TRAILING"        # bytes left after a complete message
ERR_UTF8: str = "ERR_UTF8"                # payload is not valid UTF-8
ERR_LIMIT_DEPTH: str = "ERR_LIMIT_DEPTH"  # aggregates nested deeper than max_depth

# ── Conversion codes (try_to_hashmap only) ───────────────────

ERR_NOT_A_MAP: str = "ERR_NOT_A_MAP"
ERR_KEY_NOT_STRING: str = "ERR_KEY_NOT_STRING"


class RespError(Exception):
    """Exception for RESP3 decode and conversion errors.

    The `.code` attribute is one of the ERR_* strings above and is what
    conformance tests compare against.
    """

    def __init__(self, code: str, msg: str = "", offset: Optional[int] = None) -> None:
        if offset is not None:
            msg = "{} at offset {}".format(msg or code, offset)
        super().__init__(msg or code)
        self.code = code
        self.offset = offset


class ToHashMapError(RespError):
    """Raised by Value.try_to_hashmap().

    For ERR_KEY_NOT_STRING, `.key` is the offending key Value.
    """

    def __init__(self, code: str, msg: str = "", key: Optional["Value"] = None) -> None:
        super().__init__(code, msg)
        self.key = key
