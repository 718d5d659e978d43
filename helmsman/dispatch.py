"""
Helmsman dispatch: from argv to an exit code.

execute(argv, registry) runs one invocation:

    argv ─scan_positional─▶ route ─resolve─▶ command
         ─scan_flags─────▶ entries ─validate(command.options)─▶ options
         command(options) ─(await if needed)─▶ exit code

Outcomes
- unknown command: 'error: unknown command "<tokens>" for "<program>"' (skipped when
  the last token is "help"), then help for the tokens; exit code 0.
- no command: --version/-v prints the version when the registry has one,
  otherwise the general help is shown; exit code 0.
- a bare --help/-h the command's schema does not declare: the command's help; 0.
- invalid options: the ValidationFailureError is rendered; exit code 1.
- otherwise the handler's result: None → 0, an int (not a bool) is the exit code.

Handler exceptions are not caught.
"""
import asyncio
import inspect
import sys

import structlog
from rich.console import Console
from rich.text import Text

from . import faults, help
from .commands import Registry, resolve
from .faults import CommandNotFoundError, NoCommandSpecifiedError, ValidationFailureError
from .logs import configure
from .options import validate
from .schema import shape_at
from .tokens import scan_flags, scan_positional
from .utils import Unset, coalesce

logger = structlog.get_logger()


def _requested(entries, *names):
    return any(entry.key in names and entry.raw is None for entry in entries)


def _declared(command, *names):
    return command.options is not None and any(shape_at(command.options, name) is not None for name in names)


async def execute(argv, registry, /, *, console=Unset, errors=Unset):
    """
    Run one invocation and return its exit code.

    Parameters
    - argv: Iterable[str], the arguments without the program name.
    - registry: helmsman.commands.Registry
    - console: rich Console for help and notices (default: stdout).
    - errors: rich Console for faults (default: helmsman.faults.console, stderr).
    """
    if not isinstance(registry, Registry):
        raise TypeError("execute() second argument must be a registry")
    console = coalesce(console, Console())
    errors = coalesce(errors, faults.console)

    argv = tuple(argv)
    tokens = scan_positional(argv)
    entries = scan_flags(argv)

    try:
        command = resolve(registry, tokens)
    except CommandNotFoundError as fault:
        logger.debug("command_unknown", tokens=fault.tokens, index=fault.index)
        if tokens[-1].lower() != "help":
            console.print(help.unknown(registry, tokens))
        return help.show(registry, tokens, console=console)
    except NoCommandSpecifiedError:
        if registry.version is not None and _requested(entries, "version", "v"):
            console.print(Text("%s %s" % (registry.program, registry.version)))
            return 0
        return help.show(registry, console=console)

    if _requested(entries, "help", "h") and not _declared(command, "help", "h"):
        return help.show(registry, tokens, console=console)

    result = validate(entries, command.options)
    if not result.success:
        errors.print(ValidationFailureError(
            'invalid options for command "%s":' % command.name,
            command=command,
            violations=result.errors,
            hint="run '%s help' to see the expected options" % " ".join((registry.program, *tokens)),
            program=registry.program,
            colorful=registry.colorful,
            fancy=registry.fancy,
        ))
        return 1

    logger.debug("command_dispatched", command=command.name, route=" ".join(tokens))
    outcome = command(result.data)
    if inspect.isawaitable(outcome):
        outcome = await outcome

    if outcome is None:
        return 0
    if isinstance(outcome, bool) or not isinstance(outcome, int):
        raise TypeError("command %r handler must return an int or None, not %s" % (command.name, type(outcome).__name__))
    logger.debug("command_finished", command=command.name, code=int(outcome))
    return int(outcome)


def run(registry, argv=Unset, /):
    """
    Synchronous entry point: run execute() on a fresh event loop.

    Parameters
    - registry: helmsman.commands.Registry
    - argv: arguments without the program name (default: sys.argv[1:]).

    structlog is configured with helmsman.logs.configure unless the host already did.

    Usage
        if __name__ == "__main__":
            raise SystemExit(run(registry))
    """
    if not structlog.is_configured():
        configure()
    return asyncio.run(execute(coalesce(argv, sys.argv[1:]), registry))


__all__ = (
    "execute",
    "run",
)
