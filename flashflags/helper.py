"""
Flashflags help and usage rendering.

Layout (plain text form)

    <description>

    Usage: <program> [options]

    Version: <version>

    Options:
      -p, --port INT              listen port (default: 8080) [REQUIRED]
      --tls-cert STRING           certificate path [depends on: enable-tls]

    <group>:
      ...

- Ungrouped flags come first under "Options:", then every group in the order its
  first flag was registered.
- Non-boolean flags show their kind and default; required flags and dependencies
  are marked.

Palette keys (colorful output)
- description, usage-label, program-name, version-label, group-label
- flag-name, kind, usage, default, required, depends
"""
from collections import defaultdict

from rich.console import Console, Group
from rich.text import Text

from .kinds import Kind, format_value

STYLES = {
    "description": "italic #A3A3A3",
    "usage-label": "bold #00E6FF",
    "program-name": "bold #FF4D94",
    "version-label": "bold #36C5F0",
    "group-label": "bold #FFFFFF",
    "flag-name": "bold #22C55E",
    "kind": "bold #FFD600",
    "usage": "#9CA3AF",
    "default": "#737373",
    "required": "bold #EF4444",
    "depends": "#F97316",
}

# column where flag descriptions start
COLUMN = 30


def _flag_line(flag, styler):
    line = Text("  ")
    if flag.short:
        line.append("-" + flag.short, styler("flag-name")).append(", ")
    line.append("--" + flag.name, styler("flag-name"))
    if flag.kind is not Kind.BOOL:
        line.append(" ").append(str(flag.kind).upper(), styler("kind"))

    if len(line) < COLUMN:
        line.append(" " * (COLUMN - len(line)))

    line.append(flag.usage, styler("usage"))
    if flag.kind is not Kind.BOOL:
        line.append(" (default: %s)" % format_value(flag.kind, flag.default), styler("default"))
    if flag.required:
        line.append(" [REQUIRED]", styler("required"))
    if flag.dependencies:
        line.append(" [depends on: %s]" % ", ".join(flag.dependencies), styler("depends"))
    return line


def render_help(name, flags, *, description="", version="", colorful=True, styles=None):
    """
    build the help screen as a list of rich Text lines.

    parameters
    - name: program name.
    - flags: Iterable[Flag] in registration order.
    - description / version: optional program metadata.
    - colorful: apply the palette (plain Text when False).
    - styles: palette overrides.
    """
    palette = defaultdict(str, STYLES | dict(styles or {}))

    def styler(style):
        return palette[style] if colorful else ""

    lines = []
    if description:
        lines.extend([Text(description, styler("description")), Text()])

    lines.append(Text.assemble(
        ("Usage:", styler("usage-label")), " ", (name, styler("program-name")), " [options]"
    ))
    lines.append(Text())

    if version:
        lines.append(Text.assemble(("Version:", styler("version-label")), " ", version))
        lines.append(Text())

    groups = {}
    ungrouped = []
    for flag in flags:
        if flag.group:
            groups.setdefault(flag.group, []).append(flag)
        else:
            ungrouped.append(flag)

    sections = ([("Options", ungrouped)] if ungrouped else []) + list(groups.items())
    for label, members in sections:
        lines.append(Text(label + ":", styler("group-label")))
        lines.extend(_flag_line(flag, styler) for flag in members)
        lines.append(Text())

    return lines


def help_text(name, flags, *, description="", version=""):
    """
    plain-text help screen (no styles).
    """
    lines = render_help(name, flags, description=description, version=version, colorful=False)
    return "".join(line.plain + "\n" for line in lines)


def usage_text(name, flags):
    """
    compact usage listing: one entry per flag with its kind.
    """
    text = "Usage of %s:\n" % name
    for flag in flags:
        text += "  --%s" % flag.name
        if flag.short:
            text += ", -%s" % flag.short
        text += "\n        %s (type: %s)\n" % (flag.usage, flag.kind)
    return text


def print_help(name, flags, *, description="", version="", console=None, colorful=True):
    """
    print the help screen to stdout (or the given console).
    """
    console = console or Console()
    lines = render_help(name, flags, description=description, version=version, colorful=colorful)
    console.print(Group(*lines), highlight=False, soft_wrap=True)


__all__ = (
    "STYLES",
    "render_help",
    "help_text",
    "usage_text",
    "print_help",
)
