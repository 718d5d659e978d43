"""
Helmsman help: rich-rendered program and command help.

Views
- general help: usage line, the root commands table, the global flags.
- command help: usage line with the command route, description, child commands
  table, one line per option field (with type hint), object structures, examples.

Selection (see render)
- a trailing "help" token is ignored ("mail send help" ≡ "mail send").
- the longest prefix of the tokens that resolves to a command picks the view;
  when not even the first token resolves, the general help is shown.

Palette keys
- usage-label, program-name, usage-section, description-section
- children-title, children-table, children, children-description
- group-label, option-name, option-description, option-hint
- structure-label, structure-name, structure-type, structure-example
- examples-label, examples-dot, example-description, example-prompt, example
- panel-title, error-label, error

Customization
- Define a mapping named __styles__ in __main__ to override any palette entry.
- When the registry is not colorful, styling is suppressed.
"""
import sys
from collections import defaultdict

from rich.box import ROUNDED
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .schema import fields, unwrap
from .utils import Unset, coalesce


def _styles():
    return defaultdict(str, {
        # === Head sections ===
        "usage-label": "bold #00E6FF",  # CYAN → signature info color
        "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
        "usage-section": "bold #36C5F0",  # SKY-BLUE → softer than cyan
        "description-section": "italic #A3A3A3",  # Neutral gray

        # === Children table ===
        "children-title": "bold #FFFFFF",
        "children-table": "#4B5563",  # Slate border
        "children": "bold #36C5F0",  # Sky-blue subcommands
        "children-description": "#9CA3AF",

        # === Options ===
        "group-label": "bold #FFFFFF",  # Pure white headers
        "option-name": "bold #00E6FF",
        "option-description": "#D1D5DB",
        "option-hint": "#9CA3AF",

        # === Object structure ===
        "structure-label": "bold #9CA3AF",
        "structure-name": "bold #FFD600",  # AMBER for field names
        "structure-type": "#FF4D94",
        "structure-example": "#737373",

        # === Examples ===
        "examples-label": "bold #22C55E",  # Green examples
        "examples-dot": "#22C55E dim",
        "example-description": "#737373",
        "example-prompt": "#00E6FF",
        "example": "#E5E7EB",

        # === Errors / fancy panel ===
        "panel-title": "bold #FF4D94",
        "error-label": "bold #EF4444",
        "error": "#D1D5DB",
    } | getattr(sys.modules.get("__main__"), "__styles__", {}))


class _Painter:
    """
    Styled Text factory bound to a registry's colorful flag.
    """
    __slots__ = ("colorful", "styles")

    def __init__(self, colorful):
        self.colorful = colorful
        self.styles = _styles()

    def __call__(self, fragment, style=""):
        if fragment is None:
            return Text("")
        if isinstance(fragment, Text):
            return fragment
        if not self.colorful:
            return Text(str(fragment))
        return Text(str(fragment), self.styles[style])


def _strip(tokens):
    tokens = tuple(tokens)
    if tokens and tokens[-1] == "help":
        return tokens[:-1]
    return tokens


def _locate(registry, tokens):
    """
    Walk tokens down the command forest as far as they resolve.

    Returns (command, route) where route is the resolved prefix; (None, ()) when the
    first token is not a registered command.
    """
    if not tokens or (current := registry.lookup(tokens[0])) is None:
        return None, ()
    route = [tokens[0]]
    for token in tokens[1:]:
        if (child := current.child(token)) is None:
            break
        current = child
        route.append(token)
    return current, tuple(route)


def _usage(paint, program, route):
    usage = Text()
    usage.append(paint("usage", "usage-label")).append(": ")
    usage.append(paint(program, "program-name"))
    usage.append(" ")
    if route:
        usage.append(paint(" ".join(route), "usage-section")).append(" ")
        usage.append(paint("[options]", "usage-section"))
    else:
        usage.append(paint("[command] [options]", "usage-section"))
    return usage.append("\n")


def _table(paint, title, commands):
    table = Table(
        "name", "help",
        title=paint(title, "children-title"),
        box=ROUNDED,
        style=paint.styles["children-table"] if paint.colorful else "",
        header_style=paint.styles["children-title"] if paint.colorful else "",
    )
    for command in commands:
        table.add_row(
            paint(command.name, "children"),
            paint(command.descr or "no description", "children-description"),
        )
    return table


def _kind(node):
    kind = unwrap(node).kind
    return kind if kind in ("string", "number", "boolean", "object", "array") else "value"


def _structure(paint, key, descriptor, indent):
    """
    Lines describing the fields of an object option (one level, nested examples).
    """
    lines = [Text.assemble(" " * indent, paint("object structure", "structure-label"), ":")]
    for field in descriptor.fields:
        name = field.path.rpartition(".")[2]
        line = Text.assemble(
            " " * (indent + 2),
            paint(name, "structure-name"), ": ",
            paint(_kind(field.node), "structure-type"),
        )
        if field.descr:
            line.append(" - ").append(paint(field.descr, "option-description"))
        lines.append(line)
        if field.fields:
            lines.append(Text.assemble(
                " " * (indent + 4),
                paint("example: --%s=%s" % (key, field.example), "structure-example"),
            ))
    return lines


def _options(paint, command):
    descriptors = fields(command.options) if command.options is not None else ()
    if not descriptors:
        return None
    width = max(len(descriptor.path) + 2 for descriptor in descriptors) + 4
    section = [Text.assemble(paint("options", "group-label"), ":")]
    for descriptor in descriptors:
        line = Text("  ")
        line.append(paint("--" + descriptor.path, "option-name"))
        line.append(" " * (width - len(descriptor.path) - 2))
        if descriptor.descr:
            line.append(paint(descriptor.descr, "option-description")).append(" ")
        line.append(paint(descriptor.hint, "option-hint"))
        section.append(line)
        if descriptor.fields:
            section.extend(_structure(paint, descriptor.path, descriptor, 4))
    return Text("\n").join(section).append("\n")


def _examples(paint, program, route, command):
    if not command.examples:
        return None
    examples = Text()
    examples.append(paint("examples", "examples-label")).append(":\n")
    for example in command.examples:
        examples.append(paint(" # ", "examples-dot")).append(paint(example.descr, "example-description")).append("\n")
        examples.append(paint(" $ ", "example-prompt")).append(paint(" ".join((program, *route)), "example"))
        for token in example.command:
            examples.append(" \\\n     ").append(paint(token, "example"))
        examples.append("\n")
    return examples


def general(registry, /):
    """
    Build the general help renderable (root commands and global flags).
    """
    paint = _Painter(registry.colorful)
    renders = [_usage(paint, registry.program, ())]

    if registry.roots:
        renders.append(_table(paint, "commands", registry.roots))

    flags = [("-h, --help", "show help for %s" % registry.program)]
    if registry.version is not None:
        flags.append(("-v, --version", "show version for %s" % registry.program))
    section = Text("\n" if registry.roots else "")
    section.append(paint("options", "group-label")).append(":\n")
    for names, descr in flags:
        section.append("  ").append(paint(names, "option-name"))
        section.append(" " * (16 - len(names))).append(paint(descr, "option-description")).append("\n")
    section.rstrip()
    renders.append(section)
    return _frame(paint, registry, renders)


def specific(registry, command, route, /):
    """
    Build the help renderable of one command reached through route.
    """
    paint = _Painter(registry.colorful)
    renders = [_usage(paint, registry.program, route)]

    if command.descr:
        renders.append(paint(command.descr, "description-section").append("\n"))
    if command.children:
        renders.append(_table(paint, "subcommands", command.children))
    if (options := _options(paint, command)) is not None:
        renders.append(options)
    if (examples := _examples(paint, registry.program, route, command)) is not None:
        renders.append(examples)

    if isinstance(renders[-1], Text):
        renders[-1].rstrip()
    return _frame(paint, registry, renders)


def _frame(paint, registry, renders):
    renderable = Group(*renders)
    if registry.fancy:
        renderable = Panel(
            renderable,
            title=paint("[ %s HELP ]" % registry.program.upper(), "panel-title"),
            title_align="left",
        )
    return renderable


def render(registry, tokens=(), /):
    """
    Build the help renderable for the given positional tokens.

    Parameters
    - registry: helmsman.commands.Registry
    - tokens: positional tokens as typed by the user (a trailing "help" is ignored).
    """
    command, route = _locate(registry, _strip(tokens))
    if command is None:
        return general(registry)
    return specific(registry, command, route)


def unknown(registry, tokens, /):
    """
    The one-line unknown-command notice: error: unknown command "<tokens>" for "<program>".
    """
    paint = _Painter(registry.colorful)
    return Text.assemble(
        paint("error", "error-label"),
        paint(': unknown command "%s" for "%s"' % (" ".join(tokens), registry.program), "error"),
        "\n",
    )


def show(registry, tokens=(), /, *, console=Unset):
    """
    Print the help for tokens and return the exit code 0.
    """
    console = coalesce(console, Console())
    console.print(render(registry, tokens))
    return 0


__all__ = (
    "render",
    "general",
    "specific",
    "unknown",
    "show",
)
