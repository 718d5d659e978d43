"""
Tests for the internal helpers.

This module verifies semantic guarantees of helmsman.utils:
- Unset: singleton identity, falsy semantics, copying and pickling, finality.
- coalesce: only Unset is replaced.
- rename / mirror: stable names and read-only copies of private state.
- assign: dot-path assembly with object-wins merge rules.
- ordinal: word ordinals up to ten, numeric suffixes beyond.
"""
import copy
import pickle
import unittest
from typing import NamedTuple
from unittest import TestCase

from helmsman.utils import Unset, UnsetType, assign, coalesce, mirror, ordinal, rename


class Pair(NamedTuple):
    left: str
    right: tuple


class Holder:
    items = mirror("items")
    pair = mirror("pair")

    def __init__(self, items, pair=None):
        self._items = items
        self._pair = pair


class UnsetTest(TestCase):
    """
    Test suite for the `Unset` sentinel.
    """

    def setUp(self) -> None:
        self.unset: UnsetType = UnsetType()

    def testSingleton(self) -> None:
        """
        The constructor returns the module-level instance on every call.
        """
        self.assertIs(self.unset, Unset)
        self.assertIs(UnsetType(), UnsetType())

    def testFalsyButDistinct(self) -> None:
        """
        Unset is falsy without being equal to the other falsy values.
        """
        self.assertFalse(Unset)
        for other in (None, 0, "", [], False):
            self.assertIsNot(Unset, other)
            self.assertNotEqual(Unset, other)

    def testRepr(self) -> None:
        self.assertEqual(repr(Unset), "Unset")

    def testCopyPreservesIdentity(self) -> None:
        """
        copy, deepcopy and pickle round-trips yield the same object.
        """
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy([Unset])[0], Unset)
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testFinal(self) -> None:
        with self.assertRaises(TypeError):
            type("Subclass", (UnsetType,), {})

    def testUnion(self) -> None:
        self.assertIsInstance(Unset, str | Unset)
        self.assertNotIsInstance(5, str | Unset)


class CoalesceTest(TestCase):
    """
    Test suite for `coalesce`.
    """

    def testReplacesUnset(self) -> None:
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))

    def testPreservesFalsyValues(self) -> None:
        for value in (None, 0, "", []):
            self.assertIs(coalesce(value, "fallback"), value)


class RenameTest(TestCase):
    """
    Test suite for `rename` in both forms.
    """

    def testFunctionForm(self) -> None:
        def original():
            pass

        self.assertIs(rename(original, "renamed"), original)
        self.assertEqual((original.__name__, original.__qualname__), ("renamed", "renamed"))

    def testDecoratorForm(self) -> None:
        @rename("decorated")
        def original():
            pass

        self.assertEqual(original.__name__, "decorated")

    def testRejectsBadArguments(self) -> None:
        with self.assertRaises(TypeError):
            rename("not callable", "name")
        with self.assertRaises(TypeError):
            rename(print, 5)
        with self.assertRaises(TypeError):
            rename()


class MirrorTest(TestCase):
    """
    Test suite for `mirror` read-only properties.
    """

    def testReturnsCopies(self) -> None:
        """
        Mutating the mirrored value leaves the backing attribute intact.
        """
        holder = Holder([1, [2, 3]])
        items = holder.items
        items[1].append(4)
        self.assertEqual(holder.items, [1, [2, 3]])

    def testNamedTuplesKeepTheirType(self) -> None:
        holder = Holder((), Pair("a", ("b",)))
        self.assertIsInstance(holder.pair, Pair)
        self.assertEqual(holder.pair.right, ("b",))

    def testUnsetReadsAsNone(self) -> None:
        self.assertIsNone(Holder(Unset).items)

    def testReadOnly(self) -> None:
        with self.assertRaises(AttributeError):
            Holder([]).items = []

    def testPropertyName(self) -> None:
        self.assertEqual(Holder.items.fget.__name__, "items")


class AssignTest(TestCase):
    """
    Test suite for dot-path assembly.
    """

    def testCreatesIntermediateObjects(self) -> None:
        self.assertEqual(assign({}, "a.b.c", 1), {"a": {"b": {"c": 1}}})

    def testExtendsExistingObject(self) -> None:
        self.assertEqual(assign({"a": {"b": 1}}, "a.c", 2), {"a": {"b": 1, "c": 2}})

    def testScalarReplacedOnTheWay(self) -> None:
        self.assertEqual(assign({"a": 5}, "a.b", 1), {"a": {"b": 1}})

    def testObjectNotClobbered(self) -> None:
        self.assertEqual(assign({"a": {"b": 1}}, "a", 5), {"a": {"b": 1}})

    def testObjectsMerged(self) -> None:
        target = {"a": {"b": 1, "c": {"d": 2}}}
        assign(target, "a", {"c": {"e": 3}, "f": 4})
        self.assertEqual(target, {"a": {"b": 1, "c": {"d": 2, "e": 3}, "f": 4}})

    def testRejectsNonStringPath(self) -> None:
        with self.assertRaises(TypeError):
            assign({}, 5, 1)


class OrdinalTest(TestCase):
    """
    Test suite for `ordinal`.
    """

    def testWords(self) -> None:
        self.assertEqual(ordinal(1), "first")
        self.assertEqual(ordinal(2), "second")
        self.assertEqual(ordinal(10), "tenth")

    def testSuffixes(self) -> None:
        self.assertEqual(ordinal(11), "11th")
        self.assertEqual(ordinal(13), "13th")
        self.assertEqual(ordinal(21), "21st")
        self.assertEqual(ordinal(22), "22nd")
        self.assertEqual(ordinal(23), "23rd")
        self.assertEqual(ordinal(112), "112th")
        self.assertEqual(ordinal(101), "101st")


if __name__ == "__main__":
    unittest.main()
