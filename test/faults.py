"""
Faults module tests (codes, copying, pickling, rich rendering).

Conventions
- Test method names follow CamelCase per project convention.
- Rendering is captured with a rich console writing to StringIO, colors off.
"""

from __future__ import annotations

import copy
import io
import pickle
import unittest
from unittest import TestCase

from rich.console import Console
from rich.panel import Panel

from helmsman.faults import (
    CommandException,
    CommandNotFoundError,
    FaultCode,
    NoCommandSpecifiedError,
    ValidationFailureError,
)
from helmsman.schema import Violation
from helmsman.utils import Unset


def rendered(fault):
    console = Console(file=io.StringIO(), width=200, color_system=None)
    console.print(fault)
    return console.file.getvalue()


class TestFaultCode(TestCase):
    """Stable identifiers."""

    def testValues(self):
        self.assertEqual(FaultCode.NO_COMMAND, 11100)
        self.assertEqual(FaultCode.UNKNOWN_COMMAND, 11101)
        self.assertEqual(FaultCode.UNKNOWN_SUBCOMMAND, 11102)
        self.assertEqual(FaultCode.INVALID_OPTIONS, 11111)

    def testNormalizeDefaultsToNumber(self):
        self.assertEqual(FaultCode.INVALID_OPTIONS.normalize(), "11111")


class TestCommandException(TestCase):
    """Base fault contract."""

    def testDefaults(self):
        fault = NoCommandSpecifiedError()
        self.assertEqual(fault.message, "no command specified")
        self.assertEqual(fault.code, FaultCode.NO_COMMAND)
        self.assertEqual(str(fault), "no command specified")
        self.assertFalse(fault.options["colorful"])

    def testOptionsAreReadOnly(self):
        fault = CommandException("broken", hint="retry")
        with self.assertRaises(TypeError):
            fault.options["hint"] = "other"

    def testReplaceMergesOptions(self):
        fault = CommandNotFoundError("unknown command 'x'", tokens=("x",), index=0)
        replaced = copy.replace(fault, hint="try 'y'")
        self.assertIsInstance(replaced, CommandNotFoundError)
        self.assertEqual(replaced.message, fault.message)
        self.assertEqual(replaced.options["hint"], "try 'y'")
        self.assertEqual(replaced.tokens, ("x",))
        self.assertIs(fault.options["hint"], Unset)

    def testPickleRoundTrip(self):
        fault = CommandNotFoundError(
            "unknown subcommand 'z'", code=FaultCode.UNKNOWN_SUBCOMMAND, tokens=("a", "z"), index=1
        )
        restored = pickle.loads(pickle.dumps(fault))
        self.assertIsInstance(restored, CommandNotFoundError)
        self.assertEqual(restored.message, fault.message)
        self.assertEqual((restored.tokens, restored.index), (("a", "z"), 1))
        self.assertEqual(restored.code, FaultCode.UNKNOWN_SUBCOMMAND)


class TestRendering(TestCase):
    """rich integration."""

    def testHeaderAndHint(self):
        fault = CommandNotFoundError("unknown command 'x' at first position", program="prog", hint="did you mean 'y'?")
        output = rendered(fault)
        self.assertIn("[ prog — 11101 | Unknown Command ]", output)
        self.assertIn("unknown command 'x' at first position", output)
        self.assertIn(" → did you mean 'y'?", output)

    def testViolationsListed(self):
        fault = ValidationFailureError(
            'invalid options for command "send":',
            violations=(Violation("subject", "Field required"), Violation("db.port", "Input should be a valid integer")),
        )
        output = rendered(fault)
        self.assertIn('invalid options for command "send":', output)
        self.assertIn("  * --subject: Field required", output)
        self.assertIn("  * --db.port: Input should be a valid integer", output)
        self.assertEqual(len(fault.violations), 2)

    def testFancyUsesPanel(self):
        fault = ValidationFailureError("bad", fancy=True)
        self.assertIsInstance(fault.__rich__(), Panel)
        self.assertIn("Invalid Options", rendered(fault))


if __name__ == "__main__":
    unittest.main()
