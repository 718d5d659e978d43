"""
Helmsman utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the scanner, interpreter, grouper and the
  command layer so that all of them agree on the same semantics.

Overview
- UnsetType / Unset
  • Singleton sentinel to represent “value not provided” without conflating with None.
  • Also the parsed form of the literal "undefined": a flag whose value is Unset
    is left out of the assembled options, as if it had never been given.

- coalesce(value, default=None)
  • Replace Unset with a concrete default, but preserve legitimate falsey values like None/0/""/[].

- rename(callable, name) / @rename("name")
  • Assign stable __name__/__qualname__ to generated wrappers for clean tracebacks.

- mirror("attr")
  • Read-only property factory exposing a private backing field (self._attr) with copies
    for containers to discourage accidental mutation of public API state.

- assign(target, path, value)
  • Dot-path assembly into nested dicts ("a.b.c" → {"a": {"b": {"c": value}}}).

- ordinal(number)
  • "first", "second", ... for position-first messages.

Stability and contract
- Names not in __all__ are internal and may change without notice.
"""
import builtins
import functools
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset" for friendly diagnostics.
    - Non-subclassable: this type is sealed; do not subclass.
    - Singleton per process: UnsetType() always yields the same instance.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in annotations (e.g., str | UnsetType).
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        """
        Support reversed PEP 604 unions when UnsetType appears on the right.
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        """
        Ensure a single instance for this sentinel type.
        """
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self

    def __reduce__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        """
        Disallow subclassing to preserve sentinel semantics.
        """
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Resolve an internal Unset sentinel to a concrete default.

    Falsey values like None, 0, "", or [] are preserved as-is; only Unset is replaced.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(None, "fallback")   -> None   # None is preserved, not replaced
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - Function form: rename(callable, name) -> callable
    - Decorator form: rename(name) -> (decorator)
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _immortalize(object):
    """
    Recursively copy container values, processing nested items.

    Behavior
    - tuple: returns a new tuple of the same kind (named tuples keep their type).
    - Sequence (non-string): returns a new list with each element processed.
    - Mapping: returns a new dict with values processed; keys are preserved.
    - Set: returns a new set with each element processed.
    - Anything else: returned as-is.
    """
    if isinstance(object, tuple):
        items = map(_immortalize, object)
        return type(object)(*items) if hasattr(object, "_fields") else tuple(items)
    elif isinstance(object, Sequence) and not isinstance(object, str):
        return list(map(_immortalize, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_immortalize, object.values())))
    elif isinstance(object, Set):
        return set(map(_immortalize, object))
    else:
        return coalesce(object)


def mirror(name, /):
    """
    Define a read-only property that mirrors a private backing attribute.

    The generated property reads "_{name}" on the instance and returns a copy for
    container types, so callers cannot mutate internal state through it.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    return property(getter)


def assign(target, path, value, /):
    """
    Assign value into a nested dict by dotted path, creating objects on the way.

    Rules
    - Every segment but the last addresses a dict: an existing dict is extended,
      anything else found there (a scalar, a list, nothing) is replaced by a new dict.
    - The last segment receives the value, unless a dict was already built there:
      a dict value is merged into it, any other value is dropped.

    Returns the target for chaining.

    Examples
    - assign({}, "a.b", 1)               -> {"a": {"b": 1}}
    - assign({"a": {"b": 1}}, "a.c", 2)   -> {"a": {"b": 1, "c": 2}}
    - assign({"a": 5}, "a.b", 1)          -> {"a": {"b": 1}}
    - assign({"a": {"b": 1}}, "a", 5)     -> {"a": {"b": 1}}
    """
    if not isinstance(path, str):
        raise TypeError("assign() second argument must be a string")
    *parents, last = path.split(".")
    current = target
    for segment in parents:
        if not isinstance(current.get(segment), dict):
            current[segment] = {}
        current = current[segment]
    if not isinstance(current.get(last), dict):
        current[last] = value
    elif isinstance(value, dict):
        _merge(current[last], value)
    return target


def _merge(target, source):
    for key, object in source.items():
        if not isinstance(target.get(key), dict):
            target[key] = object
        elif isinstance(object, dict):
            _merge(target[key], object)


@functools.cache
def ordinal(number, /):
    """
    Return a human-friendly ordinal label for a 1-based position.

    - 1..10 are rendered as words ("first"…"tenth").
    - Other numbers use numeric ordinals with correct English suffixes.
    """
    try:
        return {
            1: "first",
            2: "second",
            3: "third",
            4: "fourth",
            5: "fifth",
            6: "sixth",
            7: "seventh",
            8: "eighth",
            9: "ninth",
            10: "tenth",
        }[number]
    except KeyError:
        pass

    # 11th, 12th, 13th (and 111th, 112th, 113th, …)
    if 10 < number % 100 < 20:
        return f"{number}th"

    return f'{number}%s' % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


Unset = UnsetType()
"""
Internal sentinel for “not provided”.

Use Unset as a default when None is a valid, user-meaningful value but you still
need to distinguish “no input” from “explicitly passed None”.
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "assign",
    "ordinal",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
