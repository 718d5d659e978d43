"""
Helmsman schema layer: a tagged-union view over option schemas, plus final validation.

What this module provides
- Node: a language-neutral description of a field's declared type
  (kind + kind-specific children). Nodes are immutable and built once.
- describe(annotation): the pydantic/typing adapter that turns a model, dataclass,
  TypedDict or plain annotation into a Node tree.
- shape_at(schema, path) / is_array_at(schema, path): the navigator used by the
  grouper to decide array-vs-overwrite semantics per dotted path.
- fields(schema): structured field descriptors (Descriptor) consumed by the help renderer.
- Schema: binds an annotation to its Node tree and a pydantic TypeAdapter, and
  runs the final validation stage (Schema.validate → ValidationResult).

Kinds
    string   str (and str subclasses)
    number   int, float, Decimal, Fraction
    boolean  bool
    array    list/tuple/set/frozenset/Sequence        → element
    object   BaseModel, dataclass, TypedDict          → shape (ordered name → Node)
    union    X | Y (None members excluded)            → options
    optional X | None                                 → inner
    enum     Literal[...] and Enum subclasses          → values
    any      Any, dict, Mapping and anything else

Navigation rules
- Every segment but the last must land on an object node; optional wrappers are
  transparent, unions are not (a union is a leaf for navigation).
- A path is array-typed when its final node (optional unwrapped) is an array or a
  union with at least one array member.
"""
import dataclasses
import decimal
import enum
import fractions
import functools
import types
import typing
from collections import abc
from types import MappingProxyType
from typing import Annotated, Any, Literal, NamedTuple, Union, get_args, get_origin

import pydantic
from pydantic import TypeAdapter, ValidationError
from pydantic.fields import PydanticUndefined

from .utils import Unset

_NUMBERS = (int, float, decimal.Decimal, fractions.Fraction)
_ARRAYS = (list, tuple, set, frozenset, abc.Sequence, abc.MutableSequence, abc.Set, abc.MutableSet, abc.Iterable, abc.Collection)


class Node(NamedTuple):
    """
    Tagged description of a field.

    Fields
    - kind: one of string/number/boolean/array/object/union/optional/enum/any.
    - element: Node of the items (array).
    - shape: read-only mapping of field name → Node (object).
    - options: tuple of member Nodes (union).
    - inner: wrapped Node (optional).
    - values: tuple of allowed values (enum).
    - descr: field description, when the schema carries one.
    - required: whether the enclosing object requires the field.
    - default: declared default, or Unset.
    - name: model/class name for object nodes.
    """
    kind: Literal["string", "number", "boolean", "array", "object", "union", "optional", "enum", "any"]
    element: "Node | None" = None
    shape: typing.Mapping[str, "Node"] | None = None
    options: tuple = ()
    inner: "Node | None" = None
    values: tuple = ()
    descr: str | None = None
    required: bool = True
    default: object = Unset
    name: str | None = None


class Descriptor(NamedTuple):
    """
    Help-oriented descriptor of one object field.

    - path: dotted path of the field from the schema root.
    - node: its Node.
    - descr: description or None.
    - required: whether the flag must be supplied.
    - typename: short type label ("string", "number[]", "{host:string, port:number}").
    - hint: one-line usage hint with an example flag.
    - example: example value text for the flag (may be empty).
    - fields: nested descriptors when the field is an object.
    """
    path: str
    node: Node
    descr: str | None
    required: bool
    typename: str
    hint: str
    example: str
    fields: tuple


class Violation(NamedTuple):
    """
    One violated constraint: dotted field path and a human-readable message.
    """
    path: str
    message: str

    def __str__(self):
        return "--%s: %s" % (self.path, self.message)


class ValidationResult(NamedTuple):
    """
    Outcome of the validation stage.

    - success: True when data is valid.
    - data: the typed value (model instance, dataclass, dict, ...) when successful.
    - errors: ordered violations when not successful.
    """
    success: bool
    data: object = None
    errors: tuple[Violation, ...] = ()


def _descriptor(node, /, **overrides):
    return node._replace(**overrides) if overrides else node


def _default(value):
    if value is dataclasses.MISSING or value is PydanticUndefined:
        return Unset
    return value


def _model(model, seen):
    shape = {}
    for name, info in model.model_fields.items():
        key = info.alias if isinstance(info.alias, str) else name
        shape[key] = describe(
            info.annotation,
            descr=info.description,
            required=info.is_required(),
            default=_default(info.default),
            _seen=seen
        )
    return Node("object", shape=MappingProxyType(shape), name=model.__name__)


def _dataclass(cls, seen):
    hints = typing.get_type_hints(cls, include_extras=True)
    shape = {}
    for field in dataclasses.fields(cls):
        if not field.init:
            continue
        required = field.default is dataclasses.MISSING and field.default_factory is dataclasses.MISSING
        shape[field.name] = describe(
            hints.get(field.name, Any),
            descr=field.metadata.get("description"),
            required=required,
            default=_default(field.default),
            _seen=seen
        )
    return Node("object", shape=MappingProxyType(shape), name=cls.__name__)


def _typeddict(cls, seen):
    hints = typing.get_type_hints(cls, include_extras=True)
    required = getattr(cls, "__required_keys__", frozenset(hints))
    shape = {
        name: describe(hint, required=name in required, _seen=seen)
        for name, hint in hints.items()
    }
    return Node("object", shape=MappingProxyType(shape), name=cls.__name__)


def describe(annotation, /, *, descr=None, required=True, default=Unset, _seen=()):
    """
    Build the Node tree for a Python/pydantic annotation.

    Parameters
    - annotation: a type or typing construct (BaseModel subclass, dataclass, TypedDict,
      list[int], str | list[str], Literal["a", "b"], Annotated[...], ...).
    - descr/required/default: field metadata recorded on the returned node.

    Notes
    - Annotated metadata is ignored for the shape; a pydantic Field description
      inside Annotated is picked up when no explicit descr is given.
    - Self-referencing models are cut at the second visit and described as "any".

    Returns
    - Node
    """
    metadata = dict(descr=descr, required=required, default=default)
    origin = get_origin(annotation)

    if origin is Annotated:
        inner, *extras = get_args(annotation)
        if descr is None:
            for extra in extras:
                if isinstance(getattr(extra, "description", None), str):
                    metadata["descr"] = extra.description
        return describe(inner, _seen=_seen, **metadata)

    if origin is Union or origin is types.UnionType:
        members = get_args(annotation)
        present = [member for member in members if member is not None and member is not types.NoneType]
        if len(present) == 1:
            node = describe(present[0], _seen=_seen)
        elif present:
            node = Node("union", options=tuple(describe(member, _seen=_seen) for member in present))
        else:
            node = Node("any")
        if len(present) < len(members):
            node = Node("optional", inner=node)
        return _descriptor(node, **metadata)

    if origin is Literal:
        return Node("enum", values=get_args(annotation), **metadata)

    if origin is not None and isinstance(origin, type) and issubclass(origin, _ARRAYS) and not issubclass(origin, (str, bytes, abc.Mapping)):
        arguments = [argument for argument in get_args(annotation) if argument is not Ellipsis]
        if not arguments:
            element = Node("any")
        elif len(set(arguments)) == 1:
            element = describe(arguments[0], _seen=_seen)
        else:
            element = Node("union", options=tuple(describe(argument, _seen=_seen) for argument in dict.fromkeys(arguments)))
        return Node("array", element=element, **metadata)

    if origin is not None or not isinstance(annotation, type):
        return Node("any", **metadata)

    if annotation in _seen:
        return Node("any", **metadata)

    if issubclass(annotation, enum.Enum):
        return Node("enum", values=tuple(member.value for member in annotation), name=annotation.__name__, **metadata)
    if issubclass(annotation, bool):
        return Node("boolean", **metadata)
    if issubclass(annotation, str):
        return Node("string", **metadata)
    if issubclass(annotation, _NUMBERS):
        return Node("number", **metadata)
    if issubclass(annotation, pydantic.BaseModel):
        return _descriptor(_model(annotation, (*_seen, annotation)), **metadata)
    if dataclasses.is_dataclass(annotation):
        return _descriptor(_dataclass(annotation, (*_seen, annotation)), **metadata)
    if typing.is_typeddict(annotation):
        return _descriptor(_typeddict(annotation, (*_seen, annotation)), **metadata)
    if issubclass(annotation, _ARRAYS) and not issubclass(annotation, (str, bytes, abc.Mapping)):
        return Node("array", element=Node("any"), **metadata)
    return Node("any", **metadata)


def unwrap(node, /):
    """
    Strip optional wrappers off a node (returns None for None).
    """
    while node is not None and node.kind == "optional":
        node = node.inner
    return node


def root(schema, /):
    """
    Return the root Node for a Schema, a Node, or a plain annotation.
    """
    if isinstance(schema, Node):
        return schema
    if isinstance(schema, Schema):
        return schema.root
    return compile(schema).root


def shape_at(schema, path, /):
    """
    Return the Node addressed by a dotted path, or None when the path does not resolve.

    Every segment is looked up in the shape of the current node; the current node
    (optional unwrapped) must be an object for that, otherwise the walk fails.
    """
    if not isinstance(path, str):
        raise TypeError("shape_at() second argument must be a string")
    node = root(schema)
    for segment in path.split("."):
        node = unwrap(node)
        if node is None or node.kind != "object" or segment not in node.shape:
            return None
        node = node.shape[segment]
    return node


def is_array_at(schema, path, /):
    """
    Tell whether the field at path is an array, or a union with an array member.
    """
    if (node := unwrap(shape_at(schema, path))) is None:
        return False
    if node.kind == "array":
        return True
    if node.kind == "union":
        return any(getattr(unwrap(option), "kind", None) == "array" for option in node.options)
    return False


def typename(node, /):
    """
    Short type label for help output.

    Examples
    - string, number, boolean, value
    - string[] for arrays of strings
    - "a" | "b" for enums
    - string | string[] for unions
    - {host:string, port:number} for objects
    """
    node = unwrap(node)
    match node.kind:
        case "string" | "number" | "boolean":
            return node.kind
        case "array":
            element = unwrap(node.element)
            if element.kind in ("string", "number", "boolean", "object"):
                return element.kind + "[]"
            return "value[]"
        case "object":
            return "{%s}" % ", ".join("%s:%s" % (name, _short(child)) for name, child in node.shape.items())
        case "enum":
            return " | ".join(map(str, node.values))
        case "union":
            return " | ".join(map(typename, node.options))
        case _:
            return "value"


def _short(node):
    node = unwrap(node)
    return node.kind if node.kind in ("string", "number", "boolean", "object", "array") else "value"


def _sample(node):
    node = unwrap(node)
    match node.kind:
        case "string":
            return "text"
        case "number":
            return "123"
        case "boolean":
            return "true"
        case "enum" if node.values:
            return str(node.values[0])
        case "object":
            return "key=value"
        case _:
            return "value"


def example(node, /, prefix=""):
    """
    Example value text for a node, suitable after "--key=".

    Objects render as a comma-object literal ("host=text,port=123"); with a prefix,
    nested keys are dotted ("db.host=text,db.port=123").
    """
    node = unwrap(node)
    if node.kind == "object":
        return ",".join("%s%s=%s" % (prefix, name, _sample(child)) for name, child in node.shape.items())
    return _sample(node)


def hint(key, node, /):
    """
    One-line usage hint for the flag --key whose schema is node.
    """
    optional = node.kind == "optional" or not node.required
    node = unwrap(node)
    match node.kind:
        case "string":
            text = "string value (e.g., --%s=value)" % key
        case "number":
            text = "number value (e.g., --%s=123)" % key
        case "boolean":
            text = "boolean flag (e.g., --%s or --%s=true)" % (key, key)
        case "array":
            text = "array of %s (e.g., --%s=value1 --%s=value2)" % (_plural(node.element), key, key)
        case "object":
            text = "object: %s (e.g., --%s=%s)" % (typename(node), key, example(node))
        case "enum":
            text = "%s value" % typename(node)
        case "union":
            text = "<%s>" % typename(node)
        case _:
            text = "value"
    return "optional " + text if optional and node.kind != "union" else text


def _plural(node):
    kind = unwrap(node).kind
    return {"string": "strings", "number": "numbers", "boolean": "booleans", "object": "objects"}.get(kind, "values")


def fields(schema, /, prefix=""):
    """
    Structured descriptors for every field of an object schema (empty for non-objects).

    Nested object fields are described recursively in Descriptor.fields with dotted paths.
    """
    node = unwrap(root(schema))
    if node is None or node.kind != "object":
        return ()
    descriptors = []
    for name, child in node.shape.items():
        path = prefix + name
        descriptors.append(Descriptor(
            path=path,
            node=child,
            descr=child.descr,
            required=child.required and child.kind != "optional",
            typename=typename(child),
            hint=hint(path, child),
            example=example(child, name + "." if unwrap(child).kind == "object" else ""),
            fields=fields(child, path + "."),
        ))
    return tuple(descriptors)


def _locate(node, loc):
    parts = []
    for item in loc:
        node = unwrap(node)
        if node is not None and node.kind == "union":
            # member tag inserted by pydantic, not a field of the input
            node = None
            continue
        parts.append(str(item))
        if node is None:
            continue
        if node.kind == "object" and isinstance(item, str):
            node = node.shape.get(item)
        elif node.kind == "array" and isinstance(item, int):
            node = node.element
        else:
            node = None
    return ".".join(parts)


class Schema:
    """
    An option schema: annotation + Node tree + pydantic TypeAdapter.

    Construction
    - Schema(annotation): annotation is anything pydantic can validate; typically a
      BaseModel subclass. The Node tree and adapter are built once.

    Validation
    - validate(data) runs pydantic in python (lax) mode and returns a
      ValidationResult; errors are translated into Violations whose paths follow
      the input layout (union member tags dropped).
    """
    __slots__ = ("_annotation", "_root", "_adapter")

    def __init__(self, annotation, /):
        if isinstance(annotation, Schema):
            raise TypeError("schema 'annotation' must not be a schema")
        try:
            self._adapter = TypeAdapter(annotation)
        except pydantic.PydanticSchemaGenerationError:
            raise TypeError("schema 'annotation' must be a type pydantic can validate") from None
        self._annotation = annotation
        self._root = describe(annotation)

    @property
    def annotation(self):
        return self._annotation

    @property
    def root(self):
        return self._root

    def validate(self, data, /):
        try:
            return ValidationResult(True, self._adapter.validate_python(data))
        except ValidationError as error:
            violations = dict.fromkeys(
                Violation(_locate(self._root, detail["loc"]), detail["msg"])
                for detail in error.errors(include_url=False)
            )
            return ValidationResult(False, errors=tuple(violations))

    def __repr__(self):
        return "schema(%r)" % (self._annotation,)


@functools.lru_cache(maxsize=256)
def _compile(annotation):
    return Schema(annotation)


def compile(annotation, /):
    """
    Return a Schema for annotation (a Schema is returned as-is).

    Hashable annotations are cached, so repeated calls with the same model reuse
    the same TypeAdapter.
    """
    if isinstance(annotation, Schema):
        return annotation
    try:
        return _compile(annotation)
    except TypeError as error:
        if "unhashable" not in str(error):
            raise
    return Schema(annotation)


__all__ = (
    "Node",
    "Descriptor",
    "Violation",
    "ValidationResult",
    "Schema",
    "describe",
    "compile",
    "unwrap",
    "root",
    "shape_at",
    "is_array_at",
    "typename",
    "example",
    "hint",
    "fields",
)
