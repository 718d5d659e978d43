"""
Value interpreter tests (primitive coercion and the raw-value grammar).

Scope
- coerce: literals, numbers (int vs float, radix, whitespace, non-finite), strings.
- interpret: rule priority (empty, JSON, object literal, comma list, primitive).
- is_comma_list: bare comma text (JSON and object literals excluded).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from helmsman import Unset
from helmsman.values import coerce, interpret, is_comma_list, number, split


class TestCoerce(TestCase):
    """Primitive coercion of raw strings."""

    def testBooleanLiterals(self):
        self.assertIs(coerce("true"), True)
        self.assertIs(coerce("false"), False)

    def testNullAndUndefined(self):
        self.assertIsNone(coerce("null"))
        self.assertIs(coerce("undefined"), Unset)

    def testLiteralsAreCaseSensitive(self):
        self.assertEqual(coerce("True"), "True")
        self.assertEqual(coerce("NULL"), "NULL")

    def testIntegralNumbersAreInts(self):
        self.assertEqual(coerce("30"), 30)
        self.assertIsInstance(coerce("30"), int)
        self.assertEqual(coerce("-7"), -7)
        self.assertEqual(coerce("+7"), 7)

    def testFractionalNumbersAreFloats(self):
        self.assertEqual(coerce("1.5"), 1.5)
        self.assertEqual(coerce(".5"), 0.5)
        self.assertEqual(coerce("1e3"), 1000.0)
        self.assertIsInstance(coerce("1e3"), float)

    def testRadixLiterals(self):
        self.assertEqual(coerce("0x1F"), 31)
        self.assertEqual(coerce("0o17"), 15)
        self.assertEqual(coerce("0b101"), 5)

    def testSurroundingWhitespaceAccepted(self):
        self.assertEqual(coerce(" 42 "), 42)

    def testNonFiniteStaysString(self):
        self.assertEqual(coerce("1e999"), "1e999")
        self.assertEqual(coerce("Infinity"), "Infinity")
        self.assertEqual(coerce("NaN"), "NaN")

    def testNonNumericStaysString(self):
        self.assertEqual(coerce("John"), "John")
        self.assertEqual(coerce("1_000"), "1_000")
        self.assertEqual(coerce("12abc"), "12abc")
        self.assertEqual(coerce(""), "")

    def testNumberReturnsNoneForText(self):
        self.assertIsNone(number("abc"))
        self.assertIsNone(number("."))


class TestInterpret(TestCase):
    """Grammar rules in priority order."""

    def testEmptyIsTrue(self):
        self.assertEqual(interpret(""), (True, "primitive"))

    def testJsonObject(self):
        value, kind = interpret('{"name":"John","age":30}')
        self.assertEqual(value, {"name": "John", "age": 30})
        self.assertEqual(kind, "object")

    def testJsonArray(self):
        self.assertEqual(interpret("[1,2,3,4,5]"), ([1, 2, 3, 4, 5], "array"))

    def testInvalidJsonFallsThrough(self):
        # not JSON, but holds a comma: read as a comma list
        self.assertEqual(interpret("[a,b]"), (["[a", "b]"], "array"))

    def testObjectLiteral(self):
        value, kind = interpret("host=localhost,port=5432,database=test")
        self.assertEqual(value, {"host": "localhost", "port": 5432, "database": "test"})
        self.assertEqual(kind, "object")

    def testObjectLiteralDottedKeys(self):
        value, _ = interpret("db.host=x,db.port=5")
        self.assertEqual(value, {"db": {"host": "x", "port": 5}})

    def testObjectLiteralKeepsCommasInValues(self):
        value, _ = interpret("content=Hello, world,file=/tmp/a.txt")
        self.assertEqual(value, {"content": "Hello, world", "file": "/tmp/a.txt"})

    def testObjectLiteralTrimsAndSkipsEmptyKeys(self):
        value, _ = interpret(" a = 1 ,=2")
        self.assertEqual(value, {"a": 1})

    def testObjectLiteralWithoutPairsFallsThrough(self):
        self.assertEqual(interpret("=x"), ("=x", "primitive"))

    def testObjectLiteralDropsUndefinedMembers(self):
        self.assertEqual(interpret("b=undefined,c=1"), ({"c": 1}, "object"))
        self.assertEqual(interpret("b=undefined"), ({}, "object"))

    def testCommaList(self):
        self.assertEqual(interpret("frontend,backend,testing"), (["frontend", "backend", "testing"], "array"))
        self.assertEqual(interpret("1,2,3,4,5"), ([1, 2, 3, 4, 5], "array"))

    def testCommaListDropsEmptyPieces(self):
        self.assertEqual(interpret("a,,b, "), (["a", "b"], "array"))

    def testSinglePieceCommaListIsPrimitive(self):
        self.assertEqual(interpret("a,"), ("a,", "primitive"))

    def testPrimitive(self):
        self.assertEqual(interpret("John"), ("John", "primitive"))
        self.assertEqual(interpret("30"), (30, "primitive"))
        self.assertEqual(interpret("true"), (True, "primitive"))

    def testRejectsNonStrings(self):
        with self.assertRaises(TypeError):
            interpret(5)


class TestCommaList(TestCase):
    """is_comma_list: bare comma text, JSON and object literals excluded."""

    def testBareCommaList(self):
        self.assertTrue(is_comma_list("a,b"))
        self.assertTrue(is_comma_list("Hello, world"))

    def testSinglePieceCommaText(self):
        self.assertTrue(is_comma_list("a,"))
        self.assertTrue(is_comma_list(","))
        self.assertFalse(is_comma_list("a=1,"))

    def testNotCommaLists(self):
        self.assertFalse(is_comma_list(None))
        self.assertFalse(is_comma_list(""))
        self.assertFalse(is_comma_list("a"))
        self.assertFalse(is_comma_list("[1,2]"))
        self.assertFalse(is_comma_list("a=1,b=2"))

    def testSplit(self):
        self.assertEqual(split(" tag1 , tag2 ,"), ["tag1", "tag2"])
        self.assertEqual(split("1,x"), [1, "x"])


if __name__ == "__main__":
    unittest.main()
