"""
Flashflags faults (errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every parse outcome that is
  not a plain success. Codes are grouped by the stage that detects them, so logs
  and searches stay predictable.
- FlagError: base type carrying message + options; knows how to render itself
  with rich for the embedding CLI.
- One subclass per condition (unknown flag, missing value, conversion, ...).

Contract
- The core raises, it never prints. The first fault aborts the enclosing parse.
- Every message names the flag it is about, so callers can match on substrings
  when they prefer that over `fault.code`.
- HelpRequested is a FlagError too (single channel out of parse), but it is a
  clean-exit signal rather than a failure: help has already been printed.
"""
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping (by stage)
    - generic and help (100xx)
      • FLAG_ERROR
      • HELP_REQUESTED
    - tokenizer (111xx)
      • UNKNOWN_FLAG, MALFORMED_TOKEN, COMBINED_SEQUENCE, MISSING_VALUE
    - conversion and validators (112xx)
      • CONVERSION_FAILED, VALIDATION_FAILED
    - constraints (113xx)
      • REQUIRED_FLAG, UNMET_DEPENDENCY, MISSING_DEPENDENCY
    - sources (114xx)
      • CONFIG_FILE, ENVIRONMENT_VALUE
    - registry (115xx)
      • FLAG_NOT_FOUND
    """
    # --- generic and help (100xx) ---
    FLAG_ERROR          = 10000
    HELP_REQUESTED      = 10001

    # --- tokenizer (111xx) ---
    UNKNOWN_FLAG        = 11101
    MALFORMED_TOKEN     = 11102
    COMBINED_SEQUENCE   = 11103
    MISSING_VALUE       = 11104

    # --- conversion and validators (112xx) ---
    CONVERSION_FAILED   = 11201
    VALIDATION_FAILED   = 11202

    # --- constraints (113xx) ---
    REQUIRED_FLAG       = 11301
    UNMET_DEPENDENCY    = 11302
    MISSING_DEPENDENCY  = 11303

    # --- sources (114xx) ---
    CONFIG_FILE         = 11401
    ENVIRONMENT_VALUE   = 11402

    # --- registry (115xx) ---
    FLAG_NOT_FOUND      = 11501


class FlagError(Exception):
    """
    base class of every fault raised by flashflags.

    attributes
    - message: str, the human-readable message (also str(fault)).
    - code: FaultCode, stable discriminant of the condition.
    - title: short lowercase title used in rendered headers.
    - options: read-only mapping with context (flag, value, kind, path, hint, ...).
    """
    code = FaultCode.FLAG_ERROR
    title = "flag error"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = coalesce(message, self.title)
        self.options = MappingProxyType(options)
        super().__init__(self.message)

    def __str__(self):
        return self.message

    @property
    def flag(self):
        """
        name of the flag the fault is about, when there is one.
        """
        return self.options.get("flag")

    def __rich__(self):
        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | dict(self.options.get("styles", {})))

        colorful = self.options.get("colorful", True)

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            return Text(str(fragment), styles[style])

        header = Text.assemble(
            "[ ",
            text(self.options.get("prog", "flags"), "prog-name"),
            " — ",
            text(str(int(self.code)), "code"),
            " | ",
            text(self.title.title(), "error-title"),
            " ]"
        )
        message = text(self.message, "error-message")
        parts = [message]
        if hint := self.options.get("hint"):
            parts.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))

        if self.options.get("fancy", False):
            return Panel(Group(*parts), title=header, title_align="left")

        return Group(header, *parts)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class HelpRequested(FlagError):
    code = FaultCode.HELP_REQUESTED
    title = "help requested"


class UnknownFlagError(FlagError):
    code = FaultCode.UNKNOWN_FLAG
    title = "unknown flag"


class MalformedTokenError(FlagError):
    code = FaultCode.MALFORMED_TOKEN
    title = "malformed flag"


class CombinedSequenceError(FlagError):
    code = FaultCode.COMBINED_SEQUENCE
    title = "bad combined sequence"


class MissingValueError(FlagError):
    code = FaultCode.MISSING_VALUE
    title = "missing value"


class ConversionError(FlagError):
    code = FaultCode.CONVERSION_FAILED
    title = "invalid value"


class ValidationError(FlagError):
    code = FaultCode.VALIDATION_FAILED
    title = "validation failed"


class RequiredFlagError(FlagError):
    code = FaultCode.REQUIRED_FLAG
    title = "required flag missing"


class DependencyError(FlagError):
    code = FaultCode.UNMET_DEPENDENCY
    title = "unmet dependency"


class MissingDependencyError(FlagError):
    code = FaultCode.MISSING_DEPENDENCY
    title = "unknown dependency"


class ConfigFileError(FlagError):
    code = FaultCode.CONFIG_FILE
    title = "config file error"


class EnvironmentValueError(FlagError):
    code = FaultCode.ENVIRONMENT_VALUE
    title = "environment variable error"


class FlagNotFoundError(FlagError, LookupError):
    code = FaultCode.FLAG_NOT_FOUND
    title = "flag not found"


__all__ = (
    "FaultCode",
    "FlagError",
    "HelpRequested",
    "UnknownFlagError",
    "MalformedTokenError",
    "CombinedSequenceError",
    "MissingValueError",
    "ConversionError",
    "ValidationError",
    "RequiredFlagError",
    "DependencyError",
    "MissingDependencyError",
    "ConfigFileError",
    "EnvironmentValueError",
    "FlagNotFoundError",
)
