"""
Helmsman token scanner: split an argv-like token list into a command route and flags.

Token classes
- positional: does not start with '-' (part of the command route when leading).
- flag: starts with '-' or '--', optionally followed by '=value'.

Operations
- scan_positional(tokens): the leading run of positionals, stopping at the first flag.
- scan_flags(tokens): one Entry per flag token, wherever it appears.

Flag forms
    --verbose            → Entry("verbose", True, kind="primitive", raw=None)
    -v                   → Entry("v", True, ...)
    --name=John          → Entry("name", "John", ...)
    --query=a=b          → Entry("query", {"a": "b"}, ...)   (split on the first '=' only)
    --db.host=localhost  → Entry("db.host", "localhost", ...)
"""
from collections.abc import Iterable
from typing import NamedTuple, Literal

from .values import interpret


class Entry(NamedTuple):
    """
    One parsed flag occurrence.

    Fields
    - key: dotted field path ("db.host").
    - value: interpreted value (see helmsman.values).
    - original: the source token, unchanged.
    - kind: "primitive" | "array" | "object".
    - raw: text after the first '=' or None for a bare flag.
    """
    key: str
    value: object
    original: str
    kind: Literal["primitive", "array", "object"]
    raw: str | None = None


def _tokens(tokens):
    if isinstance(tokens, str) or not isinstance(tokens, Iterable):
        raise TypeError("scan argument must be an iterable of strings")
    for token in tokens:
        if not isinstance(token, str):
            raise TypeError("scan argument must be an iterable of strings")
        yield token


def scan_positional(tokens, /):
    """
    Return the maximal leading run of positional tokens as a tuple.
    """
    prefix = []
    for token in _tokens(tokens):
        if token.startswith("-"):
            break
        prefix.append(token)
    return tuple(prefix)


def scan_token(token, /):
    """
    Parse a single flag token into an Entry.

    Up to two leading hyphens are stripped. Without '=' the flag is boolean True;
    otherwise the text is split on the first '=' into key and raw value, and the raw
    value goes through the value interpreter.
    """
    if not token.startswith("-"):
        raise ValueError("scan_token() argument must start with '-'")
    name = token[2:] if token.startswith("--") else token[1:]
    key, separator, raw = name.partition("=")
    if not separator:
        return Entry(key, True, token, "primitive")
    value, kind = interpret(raw)
    return Entry(key, value, token, kind, raw)


def scan_flags(tokens, /):
    """
    Return one Entry per flag token, in encounter order, skipping positionals.
    """
    return tuple(scan_token(token) for token in _tokens(tokens) if token.startswith("-"))


__all__ = (
    "Entry",
    "scan_positional",
    "scan_flags",
    "scan_token",
)
