"""Unit tests for the resp3 Value model: predicates, accessors, ordering,
constructors, and the narrowing / rendering conversions."""

from __future__ import annotations

import json
import math
import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from resp3 import (
    ERR_GRAMMAR,
    ERR_KEY_NOT_STRING,
    ERR_LENGTH,
    ERR_NOT_A_MAP,
    NULL,
    Kind,
    RespError,
    ToHashMapError,
    Value,
    parse_message,
    render_double,
    value_from_json,
    value_to_json,
)


def _one_of_each():
    """One Value per kind, keyed by kind."""
    return {
        Kind.SIMPLE_STRING: Value.simple_string("hello"),
        Kind.SIMPLE_ERROR: Value.simple_error("ERR oops"),
        Kind.INTEGER: Value.integer(42),
        Kind.BULK_STRING: Value.bulk_string("bulk"),
        Kind.ARRAY: Value.array([Value.integer(1)]),
        Kind.NULL: NULL,
        Kind.BOOLEAN: Value.boolean(True),
        Kind.DOUBLE: Value.double(1.5),
        Kind.BIG_NUMBER: Value.big_number("123456789012345678901234567890"),
        Kind.BULK_ERROR: Value.bulk_error("SYNTAX bad"),
        Kind.VERBATIM_STRING: Value.verbatim_string("txt", "verbatim"),
        Kind.MAP: Value.map([Value.simple_string("k")], [Value.integer(1)]),
        Kind.SET: Value.set([Value.integer(1), Value.integer(2)]),
        Kind.PUSHES: Value.pushes([Value.simple_string("message")]),
    }


# ── Predicates ────────────────────────────────────────────────

class TestPredicates(unittest.TestCase):
    PREDICATES = {
        Kind.SIMPLE_STRING: "is_simple_string",
        Kind.SIMPLE_ERROR: "is_simple_error",
        Kind.INTEGER: "is_integer",
        Kind.BULK_STRING: "is_bulk_string",
        Kind.ARRAY: "is_array",
        Kind.NULL: "is_null",
        Kind.BOOLEAN: "is_boolean",
        Kind.DOUBLE: "is_double",
        Kind.BIG_NUMBER: "is_big_number",
        Kind.BULK_ERROR: "is_bulk_error",
        Kind.VERBATIM_STRING: "is_verbatim_string",
        Kind.MAP: "is_map",
        Kind.SET: "is_set",
        Kind.PUSHES: "is_pushes",
    }

    def test_exactly_one_predicate_matches(self):
        values = _one_of_each()
        for kind, value in values.items():
            for other, name in self.PREDICATES.items():
                with self.subTest(value=kind.name, predicate=name):
                    self.assertEqual(getattr(value, name)(), kind is other)

    def test_string_like(self):
        expected = {
            Kind.SIMPLE_STRING, Kind.SIMPLE_ERROR, Kind.BULK_STRING, Kind.BULK_ERROR,
            Kind.DOUBLE, Kind.BIG_NUMBER, Kind.VERBATIM_STRING,
        }
        for kind, value in _one_of_each().items():
            with self.subTest(kind=kind.name):
                self.assertEqual(value.is_string_like(), kind in expected)

    def test_array_like(self):
        for kind, value in _one_of_each().items():
            with self.subTest(kind=kind.name):
                self.assertEqual(value.is_array_like(), kind in (Kind.ARRAY, Kind.PUSHES))


# ── Accessors ─────────────────────────────────────────────────

class TestAccessors(unittest.TestCase):
    def test_as_str(self):
        values = _one_of_each()
        self.assertEqual(values[Kind.SIMPLE_STRING].as_str(), "hello")
        self.assertEqual(values[Kind.BULK_ERROR].as_str(), "SYNTAX bad")
        self.assertEqual(values[Kind.DOUBLE].as_str(), "1.5")
        self.assertEqual(values[Kind.BIG_NUMBER].as_str(), "123456789012345678901234567890")
        # Verbatim: the text, not the encoding tag.
        self.assertEqual(values[Kind.VERBATIM_STRING].as_str(), "verbatim")
        for kind in (Kind.INTEGER, Kind.ARRAY, Kind.NULL, Kind.BOOLEAN,
                     Kind.MAP, Kind.SET, Kind.PUSHES):
            with self.subTest(kind=kind.name):
                self.assertIsNone(values[kind].as_str())

    def test_as_i64(self):
        self.assertEqual(Value.integer(-7).as_i64(), -7)
        self.assertIsNone(Value.simple_string("7").as_i64())
        self.assertIsNone(Value.boolean(True).as_i64())

    def test_as_f64(self):
        self.assertEqual(Value.double(2.25).as_f64(), 2.25)
        self.assertEqual(parse_message(",inf\r\n").as_f64(), math.inf)
        self.assertEqual(parse_message(",-inf\r\n").as_f64(), -math.inf)
        self.assertTrue(math.isnan(parse_message(",nan\r\n").as_f64()))
        self.assertIsNone(Value.integer(1).as_f64())
        self.assertIsNone(Value.bulk_string("1.5").as_f64())

    def test_as_f64_unparseable_payload(self):
        self.assertIsNone(Value(Kind.DOUBLE, "not-a-number").as_f64())

    def test_as_bool(self):
        self.assertIs(Value.boolean(False).as_bool(), False)
        self.assertIsNone(Value.integer(0).as_bool())

    def test_as_array_uniform_over_array_and_pushes(self):
        items = [Value.integer(1), Value.integer(2)]
        self.assertEqual(Value.array(items).as_array(), tuple(items))
        self.assertEqual(Value.pushes(items).as_array(), tuple(items))
        self.assertIsNone(Value.set(items).as_array())

    def test_as_map_and_as_set(self):
        values = _one_of_each()
        keys, vals = values[Kind.MAP].as_map()
        self.assertEqual(len(keys), len(vals))
        self.assertIsNone(values[Kind.ARRAY].as_map())
        self.assertEqual(values[Kind.SET].as_set(), (Value.integer(1), Value.integer(2)))
        self.assertIsNone(values[Kind.ARRAY].as_set())


# ── Structural identity ───────────────────────────────────────

class TestOrdering(unittest.TestCase):
    def test_kind_orders_first(self):
        self.assertLess(Value.simple_string("z"), Value.simple_error("a"))
        self.assertLess(Value.integer(10**9), Value.bulk_string(""))
        self.assertLess(NULL, Value.boolean(False))

    def test_payload_orders_second(self):
        self.assertLess(Value.integer(-1), Value.integer(1))
        self.assertLess(Value.bulk_string("a"), Value.bulk_string("b"))

    def test_aggregates_compare_recursively(self):
        a = Value.array([Value.integer(1), Value.integer(2)])
        b = Value.array([Value.integer(1), Value.integer(3)])
        c = Value.array([Value.integer(1)])
        self.assertLess(a, b)
        self.assertLess(c, a)

    def test_equality_and_hash_agree(self):
        a = parse_message("*2\r\n%1\r\n+k\r\n~2\r\n:2\r\n:1\r\n_\r\n")
        b = parse_message("*2\r\n%1\r\n$1\r\nk\r\n~1\r\n:1\r\n_\r\n")
        c = parse_message("*2\r\n%1\r\n+k\r\n~3\r\n:1\r\n:2\r\n:1\r\n$-1\r\n")
        self.assertNotEqual(a, b)
        self.assertEqual(a, c)
        self.assertEqual(hash(a), hash(c))
        self.assertEqual(len({a, b, c}), 2)

    def test_boolean_is_not_integer(self):
        self.assertNotEqual(Value.boolean(True), Value.integer(1))
        self.assertEqual(len({Value.boolean(True), Value.integer(1)}), 2)

    def test_not_equal_to_plain_python(self):
        self.assertNotEqual(Value.simple_string("OK"), "OK")
        self.assertNotEqual(Value.integer(1), 1)

    def test_set_is_canonical(self):
        s = Value.set([Value.bulk_string("b"), Value.integer(5), Value.bulk_string("a"),
                       Value.integer(5)])
        self.assertEqual(s.as_set(),
                         (Value.integer(5), Value.bulk_string("a"), Value.bulk_string("b")))

    def test_immutable(self):
        v = Value.integer(1)
        with self.assertRaises(AttributeError):
            v.payload = 2
        with self.assertRaises(AttributeError):
            del v.kind

    def test_repr_round_trips(self):
        for kind, value in _one_of_each().items():
            with self.subTest(kind=kind.name):
                self.assertEqual(eval(repr(value), {"Value": Value}), value)


# ── Constructors ──────────────────────────────────────────────

class TestConstructors(unittest.TestCase):
    def test_null_is_shared(self):
        self.assertIs(Value.null(), NULL)

    def test_simple_string_rejects_line_breaks(self):
        for text in ["a\r\nb", "a\nb", "a\rb"]:
            with self.subTest(text=text):
                with self.assertRaises(RespError) as ctx:
                    Value.simple_string(text)
                self.assertEqual(ctx.exception.code, ERR_GRAMMAR)

    def test_bulk_string_allows_line_breaks(self):
        self.assertEqual(Value.bulk_string("a\r\nb").as_str(), "a\r\nb")

    def test_integer_type_and_range(self):
        with self.assertRaises(TypeError):
            Value.integer(True)
        with self.assertRaises(TypeError):
            Value.integer("1")
        with self.assertRaises(RespError):
            Value.integer(2**63)

    def test_double_renders_canonically(self):
        self.assertEqual(Value.double(10.0).as_str(), "10")
        self.assertEqual(Value.double(float("inf")).as_str(), "inf")
        self.assertEqual(Value.double(float("nan")).as_str(), "NaN")
        self.assertEqual(Value.double(3), Value.double(3.0))

    def test_double_out_of_float_range(self):
        with self.assertRaises(RespError) as ctx:
            Value.double(10 ** 400)
        self.assertEqual(ctx.exception.code, ERR_GRAMMAR)

    def test_big_number(self):
        self.assertEqual(Value.big_number(-(10**40)).as_str(), "-1" + "0" * 40)
        with self.assertRaises(RespError):
            Value.big_number("12.5")
        with self.assertRaises(TypeError):
            Value.big_number(True)

    def test_verbatim_encoding_width(self):
        with self.assertRaises(RespError):
            Value.verbatim_string("text", "x")

    def test_map_lengths_must_match(self):
        with self.assertRaises(RespError) as ctx:
            Value.map([Value.integer(1)], [])
        self.assertEqual(ctx.exception.code, ERR_LENGTH)

    def test_aggregates_require_values(self):
        with self.assertRaises(TypeError):
            Value.array([1, 2])


class TestRenderDouble(unittest.TestCase):
    def test_cases(self):
        cases = [
            (0.0, "0"),
            (-0.0, "-0"),
            (1.0, "1"),
            (0.1, "0.1"),
            (123.456, "123.456"),
            (1e16, "10000000000000000"),
            (1.5e-7, "0.00000015"),
            (float("inf"), "inf"),
            (float("-inf"), "-inf"),
            (float("nan"), "NaN"),
        ]
        for x, text in cases:
            with self.subTest(x=x):
                self.assertEqual(render_double(x), text)

    def test_round_trips(self):
        for x in [0.1, 1 / 3, 2.5e-300, 1.7976931348623157e308]:
            with self.subTest(x=x):
                self.assertEqual(float(render_double(x)), x)


# ── try_to_hashmap ────────────────────────────────────────────

class TestTryToHashmap(unittest.TestCase):
    def test_string_keys(self):
        m = parse_message("%2\r\n+first\r\n:1\r\n$6\r\nsecond\r\n:2\r\n").try_to_hashmap()
        self.assertEqual(m, {"first": Value.integer(1), "second": Value.integer(2)})

    def test_all_string_like_keys_accepted(self):
        m = parse_message(
            "%3\r\n,1.5\r\n:1\r\n(99\r\n:2\r\n=7\r\ntxt:key\r\n:3\r\n"
        ).try_to_hashmap()
        self.assertEqual(sorted(m), ["1.5", "99", "key"])

    def test_not_a_map(self):
        for raw in ["*0\r\n", "+OK\r\n", "~0\r\n"]:
            with self.subTest(raw=raw):
                with self.assertRaises(ToHashMapError) as ctx:
                    parse_message(raw).try_to_hashmap()
                self.assertEqual(ctx.exception.code, ERR_NOT_A_MAP)

    def test_first_non_string_key_reported(self):
        v = parse_message("%3\r\n+ok\r\n:1\r\n:7\r\n:2\r\n#t\r\n:3\r\n")
        with self.assertRaises(ToHashMapError) as ctx:
            v.try_to_hashmap()
        self.assertEqual(ctx.exception.code, ERR_KEY_NOT_STRING)
        self.assertEqual(ctx.exception.key, Value.integer(7))
        self.assertIsInstance(ctx.exception, RespError)

    def test_empty_map(self):
        self.assertEqual(parse_message("%0\r\n").try_to_hashmap(), {})

    def test_repeated_key_keeps_last(self):
        m = parse_message("%2\r\n+k\r\n:1\r\n+k\r\n:2\r\n").try_to_hashmap()
        self.assertEqual(m, {"k": Value.integer(2)})


# ── to_python ─────────────────────────────────────────────────

class TestToPython(unittest.TestCase):
    def test_scalars(self):
        self.assertEqual(parse_message("+OK\r\n").to_python(), "OK")
        self.assertEqual(parse_message(":5\r\n").to_python(), 5)
        self.assertIsNone(parse_message("_\r\n").to_python())
        self.assertIs(parse_message("#t\r\n").to_python(), True)
        self.assertEqual(parse_message(",2.5\r\n").to_python(), 2.5)
        self.assertEqual(parse_message("(12345678901234567890123\r\n").to_python(),
                         12345678901234567890123)
        self.assertEqual(parse_message("=7\r\ntxt:abc\r\n").to_python(), "abc")

    def test_aggregates(self):
        self.assertEqual(parse_message("*2\r\n:1\r\n>1\r\n+a\r\n").to_python(), [1, ["a"]])
        self.assertEqual(parse_message("~2\r\n:2\r\n:1\r\n").to_python(), [1, 2])
        self.assertEqual(parse_message("%1\r\n+k\r\n:1\r\n").to_python(), {"k": 1})

    def test_map_with_unhashable_keys(self):
        v = parse_message("%1\r\n*1\r\n:1\r\n+v\r\n")
        self.assertEqual(v.to_python(), [([1], "v")])


# ── Tagged JSON ───────────────────────────────────────────────

class TestTaggedJson(unittest.TestCase):
    def test_round_trip_every_kind(self):
        for kind, value in _one_of_each().items():
            with self.subTest(kind=kind.name):
                text = json.dumps(value_to_json(value))
                self.assertEqual(value_from_json(json.loads(text)), value)

    def test_special_doubles_stay_strings(self):
        v = parse_message("*3\r\n,inf\r\n,-inf\r\n,nan\r\n")
        text = json.dumps(value_to_json(v), allow_nan=False)
        self.assertEqual(value_from_json(json.loads(text)), v)

    def test_map_shape(self):
        out = value_to_json(parse_message("%1\r\n+k\r\n:1\r\n"))
        self.assertEqual(out, {
            "type": "map",
            "value": {
                "keys": [{"type": "simple_string", "value": "k"}],
                "values": [{"type": "integer", "value": 1}],
            },
        })

    def test_malformed(self):
        bad = [
            None,
            {"value": 1},
            {"type": "nope", "value": 1},
            {"type": "array", "value": "x"},
            {"type": "map", "value": []},
            {"type": "integer", "value": "1"},
            {"type": "double", "value": "abc"},
            {"type": "double", "value": 10 ** 400},
            {"type": "double", "value": True},
            {"type": "double", "value": 3},
            {"type": "verbatim_string", "value": "txt:x"},
        ]
        for obj in bad:
            with self.subTest(obj=obj):
                with self.assertRaises(RespError) as ctx:
                    value_from_json(obj)
                self.assertEqual(ctx.exception.code, ERR_GRAMMAR)


if __name__ == "__main__":
    unittest.main()
