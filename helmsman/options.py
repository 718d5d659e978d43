"""
Helmsman options: group flag entries, assemble them by dotted path, validate.

Pipeline
    entries ──group by key──▶ {key: [entry, ...]} ──resolve──▶ {key: value}
            ──assign by dot path──▶ nested dict ──schema──▶ ValidationResult

Grouping rules (per key, encounter order preserved)
- one occurrence
  • a bare comma list ("--tags=a,b") becomes an array only when the schema says the
    field is an array; otherwise it stays the literal string ("--note=Hello, world").
  • any other value is taken as interpreted; for a plain array field (not a union)
    it is wrapped into a one-element list ("--tags=x" → ["x"]).
- several occurrences
  • array field (array, or a union with an array member): all values, in order.
  • anything else: the last occurrence wins, earlier ones are dropped silently.

Assembly
- Keys are dotted paths; objects along the way are created or extended, never
  replaced by a scalar given for a shorter prefix (see helmsman.utils.assign).
- Values equal to Unset (the literal "undefined") are not assigned at all.

Validation
- With a schema, the assembled dict goes through Schema.validate (pydantic).
- Without a schema, the assembled dict is the result.
"""
from collections import defaultdict

import structlog

from .schema import Schema, ValidationResult, compile, is_array_at, shape_at, unwrap
from .tokens import scan_flags
from .utils import Unset, assign
from .values import coerce, is_comma_list, split

logger = structlog.get_logger()


def _value(entry):
    # comma text alone never makes an array; the schema decides that
    if is_comma_list(entry.raw):
        return coerce(entry.raw)
    return entry.value


def _strict(schema, key):
    # a plain array field, as opposed to a union that also accepts a scalar
    return getattr(unwrap(shape_at(schema, key)), "kind", None) == "array"


def group(entries, /):
    """
    Group entries by key, preserving the encounter order of keys and of values.
    """
    groups = defaultdict(list)
    for entry in entries:
        groups[entry.key].append(entry)
    return dict(groups)


def resolve(key, entries, schema, /):
    """
    Resolve the final value of one key from its grouped entries.

    Parameters
    - key: dotted field path.
    - entries: non-empty list of entries for that key, in encounter order.
    - schema: Schema, Node, annotation or None.
    """
    array = schema is not None and is_array_at(schema, key)
    if len(entries) == 1:
        entry, = entries
        if array and is_comma_list(entry.raw):
            return split(entry.raw)
        value = _value(entry)
        if array and value is not Unset and not isinstance(value, list) and _strict(schema, key):
            return [value]
        return value
    if array:
        return [value for value in map(_value, entries) if value is not Unset]
    return _value(entries[-1])


def assemble(entries, schema=None, /):
    """
    Build the nested options dict from flag entries (no validation).
    """
    result = {}
    for key, occurrences in group(entries).items():
        if (value := resolve(key, occurrences, schema)) is Unset:
            continue
        assign(result, key, value)
    return result


def validate(entries, schema=None, /):
    """
    Group, assemble and validate flag entries against a schema.

    Parameters
    - entries: iterable of helmsman.tokens.Entry.
    - schema: Schema, or anything helmsman.schema.compile accepts, or None.

    Returns
    - ValidationResult(success=True, data=...) or ValidationResult(success=False, errors=(...)).
    """
    if schema is not None and not isinstance(schema, Schema):
        schema = compile(schema)
    data = assemble(entries, schema)
    if schema is None:
        return ValidationResult(True, data)
    result = schema.validate(data)
    if not result.success:
        logger.debug("options_rejected", schema=schema, violations=len(result.errors))
    return result


def parse(tokens, schema=None, /):
    """
    Scan flag tokens and validate them: validate(scan_flags(tokens), schema).
    """
    return validate(scan_flags(tokens), schema)


__all__ = (
    "assemble",
    "validate",
    "parse",
)
