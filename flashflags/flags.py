"""
Flashflags value store: one declared flag.

A Flag is the single authoritative cell for one flag's value. It is created by
FlagSet registration and handed back to the caller as a read-only handle:

- value / default / changed / source are properties without setters.
- Only the parser and the source mergers write, through Flag._assign().
- The caller may only Flag.reset() (or FlagSet.reset()).

Sources
- Source ranks where a value came from: CONFIG < ENVIRONMENT < COMMAND_LINE.
- A source never overwrites a value that came from a higher-ranked source, so
  the environment overrides the config file and the command line overrides both.

Quick example
    >>> flags = FlagSet("server")
    >>> port = flags.int_var("port", "p", 8080, "listen port")
    >>> flags.parse(["-p", "9000"])
    >>> port.value, port.changed, port.source
    (9000, True, <Source.COMMAND_LINE: 3>)
"""
import logging
from enum import IntEnum

from .faults import ValidationError
from .kinds import Kind, convert, convert_json
from .utils import mirror

logger = logging.getLogger(__name__)


class Source(IntEnum):
    """
    origin of a flag's value, ordered by priority (higher wins).
    """
    CONFIG = 1
    ENVIRONMENT = 2
    COMMAND_LINE = 3


class Flag:
    """
    one named, typed flag and its resolution state.

    read-only attributes
    - name, short, kind, usage
    - value: current value (list values are returned as copies)
    - default: registration value
    - changed: True once any source assigned a value
    - source: Source of the last assignment, or None
    - required, dependencies, group, envvar, validator
    """
    __slots__ = (
        "_name",
        "_short",
        "_kind",
        "_usage",
        "_value",
        "_default",
        "_source",
        "_validator",
        "_required",
        "_dependencies",
        "_group",
        "_envvar",
    )

    name = mirror("name")
    short = mirror("short")
    kind = mirror("kind")
    usage = mirror("usage")
    value = mirror("value")
    default = mirror("default")
    source = mirror("source")
    validator = mirror("validator")
    required = mirror("required")
    dependencies = mirror("dependencies")
    group = mirror("group")
    envvar = mirror("envvar")

    def __init__(self, name, kind, default, usage="", short=""):
        if not isinstance(name, str) or not name:
            raise ValueError("flag name must be a non-empty string")
        if not isinstance(short, str) or len(short) > 1:
            raise ValueError("short key of flag %r must be a single character" % name)
        kind = Kind(kind)
        if kind is Kind.FLOAT64 and isinstance(default, int) and not isinstance(default, bool):
            default = float(default)
        if kind is Kind.STRING_LIST and isinstance(default, tuple):
            default = list(default)
        if not isinstance(default, kind.pytype) or (kind is not Kind.BOOL and isinstance(default, bool)):
            raise TypeError("default of %s flag %r must be %s" % (kind, name, kind.pytype.__name__))
        if kind is Kind.STRING_LIST and not all(isinstance(item, str) for item in default):
            raise TypeError("default of %s flag %r must hold strings only" % (kind, name))

        self._name = name
        self._short = short
        self._kind = kind
        self._usage = usage
        self._default = list(default) if kind is Kind.STRING_LIST else default
        self._value = self._copy(self._default)
        self._source = None
        self._validator = None
        self._required = False
        self._dependencies = []
        self._group = ""
        self._envvar = ""

    def _copy(self, value):
        return list(value) if self._kind is Kind.STRING_LIST else value

    @property
    def changed(self):
        return self._source is not None

    def validate(self):
        """
        run the validator (if any) against the current value.

        raises
        - ValidationError: "validation failed for flag --<name>: <reason>"
        """
        if self._validator is None:
            return
        try:
            self._validator(self._copy(self._value))
        except Exception as error:
            raise ValidationError(
                "validation failed for flag --%s: %s" % (self._name, error),
                flag=self._name,
                value=self._copy(self._value),
                reason=error,
            ) from error

    def _assign(self, raw, source, /, *, decoded=False):
        """
        convert and store a value from a source, then run the validator.

        the conversion happens first; on failure nothing is touched. returns False
        without converting when a source of higher priority already set it; an equal
        source overwrites (the last `--port` of a command line wins).
        """
        if self._source is not None and self._source > source:
            return False
        if decoded:
            value = convert_json(self._kind, raw, flag=self._name)
        else:
            value = convert(self._kind, raw, flag=self._name)
        self._value = value
        self._source = Source(source)
        logger.debug("flag --%s set to %r from %s", self._name, value, self._source.name.lower())
        self.validate()
        return True

    def reset(self):
        """
        restore the default value and forget where the last value came from.
        """
        self._value = self._copy(self._default)
        self._source = None

    def __repr__(self):
        return "flag(name=%r, kind=%r, value=%r, changed=%r)" % (
            self._name, str(self._kind), self._value, self.changed
        )

    def __rich_repr__(self):
        yield "name", self._name
        if self._short:
            yield "short", self._short
        yield "kind", str(self._kind)
        yield "value", self._value
        yield "default", self._default
        yield "changed", self.changed


__all__ = (
    "Source",
    "Flag",
)
