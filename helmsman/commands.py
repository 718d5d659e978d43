"""
Helmsman command layer: declare commands, compose them into a forest, resolve routes.

What this module provides
- Command: wraps a handler callable into a routable command with:
  • a name and description (defaults: handler __name__ and docstring),
  • an optional options schema (a pydantic model or any annotation pydantic can
    validate; defaults to the annotation of the handler's first parameter),
  • an ordered list of child commands and usage examples.
- command(...): create a Command or a decorator that produces one.
- Registry: the explicit, immutable set of commands available to a program.
  The full set is the given commands plus all their descendants; the root
  listing excludes every command that is somebody's child.
- resolve(registry, tokens): walk positional tokens down the forest.

Quick start
    from pydantic import BaseModel
    from helmsman import command, Registry, run

    class SendOptions(BaseModel):
        to: str | list[str]
        subject: str

    @command(descr="mailbox tools")
    def mail():
        pass

    @mail.command
    async def send(options: SendOptions):
        ...
        return 0

    registry = Registry([mail], "postie")

    if __name__ == "__main__":
        raise SystemExit(run(registry))   # postie mail send --to=a@x.com --subject=hi

Resolution
- The first token is matched against the whole registered set (children
  included), the following ones against the current command's children only.
- Matching is exact and case-sensitive.
- No tokens → NoCommandSpecifiedError; a token without a match → CommandNotFoundError.
"""
import difflib
import functools
import inspect
import operator
import os.path
import re
import sys
import typing
from collections.abc import Iterable
from typing import NamedTuple

import structlog

from .faults import CommandNotFoundError, NoCommandSpecifiedError, FaultCode
from .schema import compile
from .utils import Unset, coalesce, mirror, ordinal, rename

logger = structlog.get_logger()


class Example(NamedTuple):
    """
    A usage example: a description and the flag tokens that follow the command route.
    """
    descr: str
    command: tuple[str, ...]


class CommandType(type):
    """
    Metaclass that gives commands read-only introspection.

    Responsibilities
    - Expose selected fields as read-only properties using mirror() for all names
      listed in __introspectable__.
    - Provide stable, readable __repr__/__rich_repr__ for diagnostics.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      for consistent, human-friendly labels in messages.
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__;
      otherwise __introspectable__ is used.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - command(name='send', descr='send a message', ...)
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _process_examples(cls, examples):
    """
    Normalize examples into a tuple of Example.

    Accepted items
    - Example instances,
    - (descr, command) pairs where command is a string or an iterable of strings.
    """
    if isinstance(examples, str) or not isinstance(examples, Iterable):
        raise TypeError(f"{cls.__typename__} 'examples' must be an iterable of (descr, command) pairs")
    result = []
    for item in examples:
        try:
            descr, tokens = item
        except (TypeError, ValueError):
            raise TypeError(f"{cls.__typename__} 'examples' must be an iterable of (descr, command) pairs") from None
        if not isinstance(descr, str):
            raise TypeError(f"{cls.__typename__} example description must be a string")
        tokens = (tokens,) if isinstance(tokens, str) else tuple(tokens)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError(f"{cls.__typename__} example command must be a string or an iterable of strings")
        result.append(Example(descr, tokens))
    return tuple(result)


def _process_options(cls, handler, options):
    """
    Materialize the options schema.

    - None → no schema (flags are assembled but not validated).
    - Unset → the annotation of the handler's first parameter, when there is one.
    - anything else → compiled with helmsman.schema.compile.
    """
    if options is None:
        return None
    if options is Unset:
        parameters = list(inspect.signature(handler).parameters.values())
        if not parameters or parameters[0].annotation is inspect.Parameter.empty:
            return None
        options = parameters[0].annotation
        if isinstance(options, str):
            options = typing.get_type_hints(handler)[parameters[0].name]
        if options is typing.Any:
            return None
    return compile(options)


class Command(metaclass=CommandType):
    """
    High-level command object that wraps a handler and its routing metadata.

    Lifecycle
    - Constructed from a handler (directly or through command()/@parent.command).
    - Children are attached with @parent.command or passed at construction.
    - Once a Registry includes the command, it is sealed: no more children.

    Calling
    - command(options) forwards to the handler. Handlers without parameters are
      called without arguments. The result is returned as-is (it may be awaitable).
    """
    __introspectable__ = (
        "name",
        "descr",
        "options",
        "children",
        "examples",
    )

    __displayable__ = (
        "name",
        "descr",
        "children",
    )

    def __init__(
            self,
            handler,
            /,
            name=Unset,
            descr=Unset,
            options=Unset,
            children=(),
            examples=(),
    ):
        """
        Parameters
        - handler: Callable
          Invoked with the validated options; may be a coroutine function. Returns an
          exit code (int) or None.
        - name: str | Unset
          Route token; defaults to handler.__name__ with underscores turned into hyphens.
        - descr: str | Unset
          Short description; defaults to the handler's docstring.
        - options: annotation | Schema | None | Unset
          Options schema (see _process_options).
        - children: Iterable[Command]
          Ordered child commands.
        - examples: Iterable[(str, str | Iterable[str])]
          Usage examples shown in help.
        """
        cls = type(self)
        if not callable(handler):
            raise TypeError(f"{cls.__typename__} 'handler' must be callable")

        name = coalesce(name, getattr(handler, "__name__", os.path.basename(sys.argv[0])).strip("_").replace("_", "-"))
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} 'name' must be a string")
        elif not name or name.startswith("-") or any(character.isspace() for character in name):
            raise ValueError(f"{cls.__typename__} 'name' must be a non-empty word not starting with '-'")

        descr = coalesce(descr, inspect.getdoc(handler))
        if descr is not None and not isinstance(descr, str):
            raise TypeError(f"{cls.__typename__} 'descr' must be a string")

        try:
            self._arity = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            raise TypeError(f"{cls.__typename__} 'handler' must be an inspectable callable") from None

        self._handler = handler
        self._name = name
        self._descr = descr.strip() if descr else None
        self._options = _process_options(cls, handler, options)
        self._examples = _process_examples(cls, examples)
        self._children = ()
        self._sealed = False

        if isinstance(children, str) or not isinstance(children, Iterable):
            raise TypeError(f"{cls.__typename__} 'children' must be an iterable of commands")
        for child in children:
            self.attach(child)

    @property
    def handler(self):
        return self._handler

    @property
    def sealed(self):
        return self._sealed

    def attach(self, child, /):
        """
        Append a child command, enforcing unique child names.

        Raises
        - TypeError: child is not a Command, or this command is sealed.
        - ValueError: a different child already uses that name.
        """
        if not isinstance(child, Command):
            raise TypeError(f"{type(self).__typename__} children must be commands")
        if self._sealed:
            raise TypeError(f"{type(self).__typename__} {self.name!r} is registered and cannot take new children")
        if child is self:
            raise ValueError(f"{type(self).__typename__} {self.name!r} cannot be its own child")
        if (existing := self.child(child.name)) is not None:
            if existing is child:
                return child
            raise ValueError(f"{type(self).__typename__} subcommand name {child.name!r} is already in use")
        self._children += (child,)
        return child

    def child(self, name, /):
        """
        Return the child whose name equals name (exact match), or None.
        """
        for child in self._children:
            if child.name == name:
                return child
        return None

    def command(self, source=Unset, /, *args, **kwargs):
        """
        Create a child command under this command (direct or decorator form).

        - self.command(handler, ...) → Command
        - @self.command / @self.command(name=..., ...) → decorator
        """
        @rename("command")
        def wrapper(source, /):
            return self.attach(command(source, *args, **kwargs))

        return wrapper(source) if source is not Unset else wrapper

    def _seal(self):
        self._sealed = True

    def __call__(self, options=None, /):
        if not self._arity:
            return self._handler()
        return self._handler(options)


def command(source=Unset, /, *args, **kwargs):
    """
    Create a Command or return a decorator to build it later.

    Invocation modes
    - Direct:     cmd = command(func, name="x", ...)
    - Decorator:  @command            or   @command(name="x", ...)

    Parameters
    - source: Unset | Callable | Command
      When Unset, a decorator is returned; a Command is returned unchanged when no
      overrides are given.
    - *args, **kwargs: forwarded to Command (name, descr, options, children, examples).
    """
    @rename("command")
    def wrapper(source, /):
        if isinstance(source, Command) and not args and not kwargs:
            return source
        if not callable(source):
            raise TypeError("@command() must be applied to a callable")
        return Command(source, *args, **kwargs)

    return wrapper(source) if source is not Unset else wrapper


def _walk(commands):
    seen = {}

    def visit(command):
        if id(command) in seen:
            return
        seen[id(command)] = command
        for child in command.children:
            visit(child)

    for command in commands:
        if not isinstance(command, Command):
            raise TypeError("registry 'commands' must be an iterable of commands")
        visit(command)
    return tuple(seen.values())


class Registry:
    """
    The explicit set of commands of a program.

    Construction
    - Registry(commands, program=Unset, *, version=None, colorful=False, fancy=False)
    - commands: iterable of Command; descendants are registered too, in depth-first
      order after their parent, each command once.
    - program: program name for usage lines and messages (default: basename of argv[0]).
    - version: version string printed by --version (None: no version flag).
    - colorful / fancy: rendering flags used by help and fault output.

    Every registered command is sealed; the registry itself is immutable.
    """
    __slots__ = ("_commands", "_roots", "_program", "_version", "_colorful", "_fancy")

    def __init__(self, commands, /, program=Unset, *, version=None, colorful=False, fancy=False):
        if isinstance(commands, Command) or not isinstance(commands, Iterable):
            raise TypeError("registry 'commands' must be an iterable of commands")
        program = coalesce(program, os.path.basename(sys.argv[0]) or "cli")
        if not isinstance(program, str):
            raise TypeError("registry 'program' must be a string")
        if version is not None and not isinstance(version, str):
            raise TypeError("registry 'version' must be a string")

        self._commands = _walk(commands)
        children = {id(child) for command in self._commands for child in command.children}
        self._roots = tuple(command for command in self._commands if id(command) not in children)
        self._program = program
        self._version = version
        self._colorful = bool(colorful)
        self._fancy = bool(fancy)

        for command in self._commands:
            command._seal()
            logger.debug("command_registered", program=program, command=command.name, children=len(command.children))

    @property
    def commands(self):
        return self._commands

    @property
    def roots(self):
        return self._roots

    @property
    def program(self):
        return self._program

    @property
    def version(self):
        return self._version

    @property
    def colorful(self):
        return self._colorful

    @property
    def fancy(self):
        return self._fancy

    def lookup(self, name, /):
        """
        Return the first registered command named name, or None.
        """
        for command in self._commands:
            if command.name == name:
                return command
        return None

    def resolve(self, tokens, /):
        return resolve(self, tokens)

    def __iter__(self):
        return iter(self._commands)

    def __len__(self):
        return len(self._commands)

    def __contains__(self, command):
        return any(command is candidate for candidate in self._commands)

    def __repr__(self):
        return "registry(program=%r, commands=%r)" % (self._program, [command.name for command in self._commands])


def _unknown(registry, tokens, index, candidates):
    input = tokens[index]
    route = " ".join((registry.program, *tokens[:index]))
    nested = index > 0
    suggestions = difflib.get_close_matches(input, candidates, 5)
    try:
        hint = "did you mean %r? you can also run '%s help' to see available %scommands" % (
            suggestions[0], route, "sub" * nested
        )
    except IndexError:
        hint = "run '%s help' to see available %scommands" % (route, "sub" * nested)
    return CommandNotFoundError(
        "unknown %scommand %r at %s position" % ("sub" * nested, input, ordinal(index + 1)),
        title="unknown %scommand" % ("sub" * nested),
        code=FaultCode.UNKNOWN_SUBCOMMAND if nested else FaultCode.UNKNOWN_COMMAND,
        tokens=tokens,
        index=index,
        suggestions=suggestions,
        hint=hint,
        program=registry.program,
    )


def resolve(registry, tokens, /):
    """
    Resolve positional tokens to the most specific command.

    Parameters
    - registry: Registry
    - tokens: Iterable[str], the positional prefix (see helmsman.tokens.scan_positional).

    Raises
    - NoCommandSpecifiedError: tokens is empty.
    - CommandNotFoundError: a token does not name a command at its level; the fault
      carries the tokens and the 0-based index of the offending one.
    """
    if not isinstance(registry, Registry):
        raise TypeError("resolve() first argument must be a registry")
    tokens = tuple(tokens)
    if not tokens:
        raise NoCommandSpecifiedError(
            "no command specified",
            hint="run '%s help' to see available commands" % registry.program,
            program=registry.program,
        )

    current = registry.lookup(tokens[0])
    if current is None:
        raise _unknown(registry, tokens, 0, [command.name for command in registry.roots])

    for index, token in enumerate(tokens[1:], 1):
        if (child := current.child(token)) is None:
            raise _unknown(registry, tokens, index, [child.name for child in current.children])
        current = child

    logger.debug("command_resolved", route=" ".join(tokens), command=current.name)
    return current


__all__ = (
    "Command",
    "Example",
    "Registry",
    "command",
    "resolve",
)
