"""
Helmsman faults (errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for all user-facing issues.
  Codes are grouped by domain to keep copy consistent and make logs/searches predictable.
- CommandException: base type that carries message + options and knows how to
  render itself in a friendly, lowercased, and actionable way (rich).
- NoCommandSpecifiedError / CommandNotFoundError / ValidationFailureError: the three
  recoverable faults of a resolve-and-validate cycle. The dispatcher catches them,
  renders them and turns them into help output or exit codes; they never escape
  helmsman.dispatch.

Host customization (read from __main__, like every other helmsman renderer)
- __prog__: program name shown in headers.
- __styles__: mapping of style keys to rich styles.
- __codes__: mapping of FaultCode to custom labels (see FaultCode.normalize).
"""
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the cli (stable identifiers).

    grouping (by high-level domain)
    - routing (1110x)
      • NO_COMMAND, UNKNOWN_COMMAND, UNKNOWN_SUBCOMMAND
    - options (1111x)
      • INVALID_OPTIONS

    rationale
    - codes are discoverable (searchable in logs and docs) and normalized to a string
      via normalize() so hosts can remap them if desired (e.g., to shorter labels).
    """
    # --- routing errors (11xxx) ---
    NO_COMMAND                  = 11100
    UNKNOWN_COMMAND             = 11101
    UNKNOWN_SUBCOMMAND          = 11102

    # --- options errors (11xxx) ---
    INVALID_OPTIONS             = 11111

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(sys.modules.get("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    """
    base class of every helmsman fault.

    contract
    - message: one lowercased sentence describing what happened.
    - options: read-only mapping of context (title, code, hint, program, colorful,
      fancy and fault-specific payload such as tokens or violations).
    - copy.replace(fault, **options) returns a copy with merged options.
    """
    __title__ = "command error"
    __faultcode__ = Unset

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = coalesce(message, type(self).__title__)
        super().__init__(self.message)
        self.options = MappingProxyType({
            "title": type(self).__title__,
            "code": type(self).__faultcode__,
            "hint": Unset,
            "program": Unset,
            "colorful": False,
            "fancy": False,
        } | options)

    @property
    def code(self):
        return self.options["code"]

    def _styles(self):
        return defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
            "violation-dot": "#FF4DA6 dim",
            "violation-path": "bold #FFD600",
            "violation-message": "#C8C8D0",
        } | getattr(sys.modules.get("__main__"), "__styles__", {}))

    def _text(self, fragment, style=""):
        if not fragment:
            return Text("")
        if not self.options["colorful"]:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), self._styles()[style])

    def _body(self):
        return [self._text(self.message, "error-message")]

    def __rich__(self):
        text = self._text
        main = sys.modules.get("__main__")
        prog = text(getattr(main, "__prog__", coalesce(self.options["program"], "")), "prog-name")

        parts = ["[ "]
        if prog:
            parts += [prog, " — "]
        if self.code is not Unset:
            parts += [text(self.code.normalize(), "code"), " | "]
        parts += [text(self.options["title"].title(), "error-title"), " ]"]
        header = Text.assemble(*parts)

        body = self._body()
        if self.options["hint"]:
            body.append(Text.assemble(text(" → ", "hint-arrow"), text(self.options["hint"], "hint")))

        if self.options["fancy"]:
            return Panel(Group(*body), title=header, title_align="left")
        return Group(header, *body)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        fault = type(self).__new__(type(self))
        CommandException.__init__(fault, self.message, **{**self.options, **overrides})
        return fault

    def __reduce__(self):
        return _restore, (type(self), self.message, dict(self.options))


def _restore(cls, message, options):
    fault = cls.__new__(cls)
    CommandException.__init__(fault, message, **options)
    return fault


class NoCommandSpecifiedError(CommandException):
    """
    no positional token was given, so there is nothing to route.
    """
    __title__ = "no command specified"
    __faultcode__ = FaultCode.NO_COMMAND


class CommandNotFoundError(CommandException):
    """
    a positional token has no matching command at its level.

    options
    - tokens: the positional tokens being resolved.
    - index: 0-based position of the token that did not match.
    """
    __title__ = "unknown command"
    __faultcode__ = FaultCode.UNKNOWN_COMMAND

    @property
    def tokens(self):
        return tuple(self.options.get("tokens", ()))

    @property
    def index(self):
        return self.options.get("index", 0)


class ValidationFailureError(CommandException):
    """
    the schema rejected the assembled options; every violation is carried.

    options
    - command: the resolved command.
    - violations: ordered helmsman.schema.Violation tuple.
    """
    __title__ = "invalid options"
    __faultcode__ = FaultCode.INVALID_OPTIONS

    @property
    def violations(self):
        return tuple(self.options.get("violations", ()))

    def _body(self):
        body = super()._body()
        for violation in self.violations:
            body.append(Text.assemble(
                self._text("  * ", "violation-dot"),
                self._text("--%s" % violation.path, "violation-path"),
                ": ",
                self._text(violation.message, "violation-message"),
            ))
        return body


__all__ = (
    "FaultCode",
    "CommandException",
    "NoCommandSpecifiedError",
    "CommandNotFoundError",
    "ValidationFailureError",
    "console",
)
