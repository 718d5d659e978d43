"""
Token scanner tests (positional prefix and flag entries).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from helmsman.tokens import Entry, scan_flags, scan_positional, scan_token


class TestScanPositional(TestCase):
    """Leading positional run."""

    def testStopsAtFirstFlag(self):
        self.assertEqual(scan_positional(["mail", "send", "--to=a", "extra"]), ("mail", "send"))

    def testEmptyWhenFlagFirst(self):
        self.assertEqual(scan_positional(["--verbose", "mail"]), ())

    def testAllPositionals(self):
        self.assertEqual(scan_positional(["a", "b"]), ("a", "b"))

    def testSingleHyphenIsAFlag(self):
        self.assertEqual(scan_positional(["a", "-"]), ("a",))

    def testRejectsString(self):
        with self.assertRaises(TypeError):
            scan_positional("mail send")

    def testRejectsNonStringItems(self):
        with self.assertRaises(TypeError):
            scan_positional(["mail", 1])


class TestScanFlags(TestCase):
    """Flag entries in encounter order."""

    def testBareFlags(self):
        self.assertEqual(scan_flags(["--verbose", "-d"]), (
            Entry("verbose", True, "--verbose", "primitive"),
            Entry("d", True, "-d", "primitive"),
        ))

    def testKeyValue(self):
        entries = scan_flags(["--name=John", "--age=30", "--active=true"])
        self.assertEqual([(entry.key, entry.value) for entry in entries], [
            ("name", "John"), ("age", 30), ("active", True)
        ])
        self.assertEqual(entries[1].raw, "30")
        self.assertEqual(entries[1].original, "--age=30")

    def testSplitsOnFirstEqualsOnly(self):
        entry, = scan_flags(["--query=a=b"])
        self.assertEqual(entry.key, "query")
        self.assertEqual(entry.value, {"a": "b"})
        self.assertEqual(entry.kind, "object")

    def testDottedKeysKept(self):
        entry, = scan_flags(["--db.host=localhost"])
        self.assertEqual(entry.key, "db.host")

    def testSkipsPositionalsAnywhere(self):
        entries = scan_flags(["mail", "--to=a", "stray", "--cc=b"])
        self.assertEqual([entry.key for entry in entries], ["to", "cc"])

    def testSingleHyphenValue(self):
        self.assertEqual(scan_token("-n=5"), Entry("n", 5, "-n=5", "primitive", "5"))

    def testOnlyTwoHyphensStripped(self):
        self.assertEqual(scan_token("---x").key, "-x")

    def testEmptyValueIsTrue(self):
        self.assertEqual(scan_token("--flag=").value, True)

    def testArrayAndJsonKinds(self):
        tags, data = scan_flags(["--tags=frontend,backend", '--data={"key":"value"}'])
        self.assertEqual((tags.value, tags.kind), (["frontend", "backend"], "array"))
        self.assertEqual((data.value, data.kind), ({"key": "value"}, "object"))

    def testScanTokenRejectsPositional(self):
        with self.assertRaises(ValueError):
            scan_token("mail")


if __name__ == "__main__":
    unittest.main()
