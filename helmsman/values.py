r"""
Helmsman value interpreter: one raw flag value in, one typed value out.

The interpreter is schema-blind on purpose: it only looks at the text after the
first '=' of a flag token and decides what that text spells. Whether the result
ends up as an array or a scalar in the final options is decided later by the
grouper, which is the only place that consults the schema.

Grammar (first matching rule wins)
1. ""                          → True                        (bare flag, e.g. "--verbose=")
2. {...} or [...] valid JSON   → the parsed JSON            (object or array)
3. contains '='                → object literal             ("host=x,port=5" → {"host": "x", "port": 5})
4. contains ','                → array of coerced pieces    ("1,2,3" → [1, 2, 3])
5. anything else               → coerce(raw)

Object literals
- The text is split on ','; a chunk holding '=' starts a new pair (split on its
  first '='), chunks without '=' that follow are glued back onto the pair's value
  with ',' so "content=Hello, world" keeps its comma.
- Pair keys are dotted paths: "db.host=x,db.port=5" → {"db": {"host": "x", "port": 5}}.
- Pairs whose value is "undefined" are left out; the literal is still an object.

Primitive coercion
- "true"/"false" → bool, "null" → None, "undefined" → Unset,
- numeric literals (decimal, exponent, 0x/0o/0b) with a finite value → int or float,
- everything else stays a string.
"""
import json
import math
import re
from typing import NamedTuple, Literal

from .utils import Unset, assign

_DECIMAL = re.compile(r"[+-]?(?:\d+(?P<fraction>\.\d*)?|(?P<bare>\.\d+))(?P<exponent>[eE][+-]?\d+)?")
_RADIX = re.compile(r"0(?:(?P<hex>[xX][0-9a-fA-F]+)|(?P<oct>[oO][0-7]+)|(?P<bin>[bB][01]+))")

_LITERALS = {
    "true": True,
    "false": False,
    "null": None,
    "undefined": Unset,
}


class Interpretation(NamedTuple):
    value: object
    kind: Literal["primitive", "array", "object"]


def number(raw, /):
    """
    Parse raw as a numeric literal, returning None when it is not one.

    Accepted
    - decimal integers and fractions, optional sign and exponent ("5", "-1.5", ".5", "1e3")
    - unsigned 0x/0o/0b integer literals
    - surrounding whitespace

    Integral decimal and radix literals produce int, everything else float. Values
    that overflow to infinity are rejected, so "1e999" stays a string upstream.
    """
    text = raw.strip()
    if match := _RADIX.fullmatch(text):
        return int(text, 0)
    if not (match := _DECIMAL.fullmatch(text)):
        return None
    if match["fraction"] is None and match["bare"] is None and match["exponent"] is None:
        return int(text)
    if not math.isfinite(value := float(text)):
        return None
    return value


def coerce(raw, /):
    """
    Coerce a raw string into a primitive: bool, None, Unset, int, float or the string itself.
    """
    try:
        return _LITERALS[raw]
    except KeyError:
        pass
    if (value := number(raw)) is not None:
        return value
    return raw


def _json(raw):
    if not (raw.startswith("{") and raw.endswith("}") or raw.startswith("[") and raw.endswith("]")):
        return None
    try:
        value = json.loads(raw)
    except ValueError:
        return None
    return Interpretation(value, "array" if isinstance(value, list) else "object")


def _object(raw):
    result, pairs = {}, 0
    chunks = raw.split(",")
    index = 0
    while index < len(chunks):
        chunk = chunks[index].strip()
        index += 1
        if "=" not in chunk:
            continue
        key, _, value = chunk.partition("=")
        # glue the following '=' free chunks back: they belong to this value
        while index < len(chunks) and "=" not in chunks[index]:
            value += "," + chunks[index]
            index += 1
        if not (key := key.strip()):
            continue
        pairs += 1
        # "undefined" members are left out like undefined flags
        if (value := coerce(value.strip())) is not Unset:
            assign(result, key, value)
    if not pairs:
        return None
    return Interpretation(result, "object")


def split(raw, /):
    """
    Split a comma list into coerced pieces, trimming and dropping empty pieces.
    """
    return [coerce(piece) for piece in map(str.strip, raw.split(",")) if piece]


def _array(raw):
    pieces = split(raw)
    if len(pieces) < 2:
        return None
    return Interpretation(pieces, "array")


def interpret(raw, /):
    """
    Interpret one raw flag value according to the grammar in the module docstring.

    Parameters
    - raw: str
      The text after the first '=' of a flag token (may be empty).

    Returns
    - Interpretation(value, kind) with kind in {"primitive", "array", "object"}.
    """
    if not isinstance(raw, str):
        raise TypeError("interpret() argument must be a string")
    if not raw:
        return Interpretation(True, "primitive")
    if result := _json(raw):
        return result
    if "=" in raw and (result := _object(raw)):
        return result
    if "," in raw and (result := _array(raw)):
        return result
    return Interpretation(coerce(raw), "primitive")


def is_comma_list(raw, /):
    """
    Tell whether raw is bare comma text: it holds a ',' and is neither JSON nor an
    object literal.

    Single-piece text such as "a," qualifies even though the grammar reads it as a
    primitive; the grouper re-splits it for array fields.
    """
    if not isinstance(raw, str) or "," not in raw or _json(raw):
        return False
    return not ("=" in raw and _object(raw))


__all__ = (
    "Interpretation",
    "interpret",
    "coerce",
    "number",
    "split",
    "is_comma_list",
)
