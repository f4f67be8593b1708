#!/usr/bin/env python3
# tools/fuzz_runner.py
#
# Seeded fuzzing for the resp3 decoder.
#
# Generates three fuzz categories:
#   A) random VALID Value trees -> wire text -> parse_message, must round-trip
#   B) truncated / extended wire text -> parse_message, may only raise RespError
#   C) random byte soup behind a random marker -> may only raise RespError
#
# Any violation prints a minimal repro payload and exits non-zero.

import os, sys, random
from typing import List

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from resp3 import NULL, Kind, RespError, Value, parse_message, parse_value

SEED = int(os.environ.get("RESP3_SEED", "4242"))
ROUNDS = int(os.environ.get("RESP3_FUZZ_ROUNDS", "5000"))
MAX_GEN_DEPTH = int(os.environ.get("RESP3_GEN_MAX_DEPTH", "5"))
MAX_ITEMS = int(os.environ.get("RESP3_GEN_MAX_ITEMS", "5"))

random.seed(SEED)

MARKERS = "+-:$*_#,(!=%~>"

# --- wire writer (test side only; the package does not encode) ---

def _bulk(marker: str, text: str) -> bytes:
    raw = text.encode("utf-8")
    return marker.encode("ascii") + str(len(raw)).encode("ascii") + b"\r\n" + raw + b"\r\n"

def _line(marker: str, text: str) -> bytes:
    return marker.encode("ascii") + text.encode("utf-8") + b"\r\n"

def _seq(marker: str, items) -> bytes:
    items = list(items)
    return (marker + str(len(items)) + "\r\n").encode("ascii") + b"".join(to_wire(v) for v in items)

def to_wire(v: Value) -> bytes:
    k = v.kind
    if k is Kind.SIMPLE_STRING:
        return _line("+", v.payload)
    if k is Kind.SIMPLE_ERROR:
        return _line("-", v.payload)
    if k is Kind.INTEGER:
        return _line(":", str(v.payload))
    if k is Kind.BULK_STRING:
        return _bulk("$", v.payload)
    if k is Kind.BULK_ERROR:
        return _bulk("!", v.payload)
    if k is Kind.NULL:
        return random.choice([b"_\r\n", b"$-1\r\n", b"*-1\r\n"])
    if k is Kind.BOOLEAN:
        return b"#t\r\n" if v.payload else b"#f\r\n"
    if k is Kind.DOUBLE:
        return _line(",", v.payload)
    if k is Kind.BIG_NUMBER:
        return _line("(", v.payload)
    if k is Kind.VERBATIM_STRING:
        return _bulk("=", "{}:{}".format(*v.payload))
    if k is Kind.ARRAY:
        return _seq("*", v.payload)
    if k is Kind.PUSHES:
        return _seq(">", v.payload)
    if k is Kind.SET:
        # Shuffle and repeat an element: the decoder must restore canonical form.
        items = list(v.payload)
        if items and random.random() < 0.5:
            items.append(random.choice(items))
        random.shuffle(items)
        return _seq("~", items)
    if k is Kind.MAP:
        keys, values = v.payload
        flat: List[Value] = []
        for key, val in zip(keys, values):
            flat.extend((key, val))
        body = b"".join(to_wire(x) for x in flat)
        return ("%" + str(len(keys)) + "\r\n").encode("ascii") + body
    raise AssertionError("unhandled kind {}".format(k))

# --- generators ---

def rand_text(nmax: int, allow_breaks: bool) -> str:
    out = []
    for _ in range(random.randint(0, nmax)):
        r = random.random()
        if allow_breaks and r < 0.1:
            out.append(random.choice(["\r", "\n", "\r\n"]))
        elif r < 0.8:
            out.append(chr(random.randint(0x20, 0x7E)))
        else:
            out.append(chr(random.randint(0xA0, 0xD7FF)))
    return "".join(out)

def rand_scalar() -> Value:
    r = random.randint(0, 9)
    if r == 0:
        return Value.simple_string(rand_text(12, False))
    if r == 1:
        return Value.simple_error(rand_text(12, False))
    if r == 2:
        return Value.integer(random.randint(-(2**63), 2**63 - 1))
    if r == 3:
        return Value.bulk_string(rand_text(20, True))
    if r == 4:
        return Value.bulk_error(rand_text(20, True))
    if r == 5:
        return NULL
    if r == 6:
        return Value.boolean(random.random() < 0.5)
    if r == 7:
        x = random.choice([float("inf"), float("-inf"), float("nan"), 0.0,
                           random.uniform(-1e6, 1e6), random.random() * 10 ** random.randint(-20, 20)])
        return Value.double(x)
    if r == 8:
        return Value.big_number(random.randint(-(10**60), 10**60))
    return Value.verbatim_string(random.choice(["txt", "mkd", "raw"]), rand_text(20, True))

def gen_value(depth: int) -> Value:
    if depth >= MAX_GEN_DEPTH or random.random() < 0.45:
        return rand_scalar()
    n = random.randint(0, MAX_ITEMS)
    r = random.randint(0, 3)
    if r == 0:
        return Value.array([gen_value(depth + 1) for _ in range(n)])
    if r == 1:
        return Value.pushes([gen_value(depth + 1) for _ in range(n)])
    if r == 2:
        return Value.set([gen_value(depth + 1) for _ in range(n)])
    return Value.map([gen_value(depth + 1) for _ in range(n)],
                     [gen_value(depth + 1) for _ in range(n)])

def fail(label: str, ctx: dict) -> None:
    print("FAIL:", label)
    for k, v in ctx.items():
        print("  {}: {!r}".format(k, v)[:4000])
    raise SystemExit(1)

def only_resp_errors(label: str, raw: bytes, i: int) -> None:
    try:
        parse_message(raw)
    except RespError:
        pass
    except Exception as e:  # anything else is a decoder bug
        fail(label, {"round": i, "input": raw, "exception": repr(e)})

def main() -> int:
    for i in range(ROUNDS):
        r = random.random()

        # A) valid trees must decode back to an equal Value
        if r < 0.5:
            tree = gen_value(0)
            raw = to_wire(tree)
            try:
                got = parse_message(raw)
            except RespError as e:
                fail("A decode rejected valid input", {"round": i, "input": raw, "err": e.code})
            if got != tree:
                fail("A round-trip mismatch", {"round": i, "input": raw, "want": tree, "got": got})
            rest, first = parse_value(raw + raw)
            if first != tree or rest != raw:
                fail("A parse_value remainder", {"round": i, "input": raw})
            continue

        # B) truncation and trailing garbage
        if r < 0.85:
            raw = to_wire(gen_value(0))
            if random.random() < 0.5 and len(raw) > 1:
                cut = random.randint(0, len(raw) - 1)
                only_resp_errors("B truncated", raw[:cut], i)
                try:
                    parse_message(raw[:cut])
                    fail("B truncated input accepted", {"round": i, "input": raw[:cut]})
                except RespError:
                    pass
            else:
                extra = raw + bytes(random.getrandbits(8) for _ in range(random.randint(1, 4)))
                try:
                    parse_message(extra)
                    fail("B trailing bytes accepted", {"round": i, "input": extra})
                except RespError:
                    pass
            continue

        # C) byte soup
        soup = random.choice(MARKERS).encode("ascii") + bytes(
            random.choice(b"0123456789-+.:\r\n abtfinx") for _ in range(random.randint(0, 16)))
        only_resp_errors("C soup", soup, i)

    print(f"OK: fuzz rounds={ROUNDS} seed={SEED} (no failures)")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
