r"""
Flashflags kinds and value conversion.

Overview
- Kind: the closed set of value types a flag can hold.
  • STRING       → str
  • INT          → int
  • BOOL         → bool
  • FLOAT64      → float
  • DURATION     → datetime.timedelta
  • STRING_LIST  → list[str]

- convert(kind, raw): text from the command line or the environment → typed value.
- convert_json(kind, value): a decoded JSON value from a config file → typed value.

Grammar highlights
- INT: optional sign and ASCII digits only ("+8", "-3"); no blanks, no underscores.
- BOOL: 1 t T TRUE true True / 0 f F FALSE false False.
- FLOAT64: decimal or exponent notation, plus inf/infinity/nan (any case).
- DURATION: one or more <number><unit> parts with an optional leading sign,
  units ns, us (µs), ms, s, m, h; e.g. "1h30m", "250ms", "-1.5s". A bare "0" is valid.
- STRING_LIST: split on commas, empty segments dropped ("a,,b" → ["a", "b"], "" → []).

Failures
- Every failure raises ConversionError naming the flag, the raw value and the kind.
  Conversion is pure: nothing is assigned here, so a failure can never leave a flag
  half-written.
"""
import decimal
import re
from datetime import timedelta
from decimal import Decimal
from enum import StrEnum

from .faults import ConversionError
from .utils import Unset, coalesce


class Kind(StrEnum):
    STRING = "string"
    INT = "int"
    BOOL = "bool"
    FLOAT64 = "float64"
    DURATION = "duration"
    STRING_LIST = "stringSlice"

    @property
    def zero(self):
        """
        zero value of the kind (what getters return for unknown or mismatched flags).
        """
        return {
            Kind.STRING: "",
            Kind.INT: 0,
            Kind.BOOL: False,
            Kind.FLOAT64: 0.0,
            Kind.DURATION: timedelta(0),
            Kind.STRING_LIST: [],
        }[self]

    @property
    def pytype(self):
        """
        runtime representation of the kind.
        """
        return {
            Kind.STRING: str,
            Kind.INT: int,
            Kind.BOOL: bool,
            Kind.FLOAT64: float,
            Kind.DURATION: timedelta,
            Kind.STRING_LIST: list,
        }[self]


_BOOLEANS = {
    "1": True, "t": True, "T": True, "TRUE": True, "true": True, "True": True,
    "0": False, "f": False, "F": False, "FALSE": False, "false": False, "False": False,
}

_INTEGER = re.compile(r"[+-]?[0-9]+")

_FLOAT = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf(?:inity)?|nan)",
    re.IGNORECASE
)

_DURATION_PART = re.compile(r"(?P<number>[0-9]*(?:\.[0-9]*)?)(?P<unit>ns|us|µs|μs|ms|s|m|h)")

# nanoseconds per unit
_UNITS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,  # U+00B5 micro sign
    "μs": 1_000,  # U+03BC greek mu
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}


def parse_bool(raw, /):
    try:
        return _BOOLEANS[raw]
    except KeyError:
        raise ValueError("invalid boolean literal %r" % raw) from None


def parse_int(raw, /):
    if not _INTEGER.fullmatch(raw):
        raise ValueError("invalid integer literal %r" % raw)
    return int(raw)


def parse_float(raw, /):
    if not _FLOAT.fullmatch(raw):
        raise ValueError("invalid float literal %r" % raw)
    return float(raw)


def parse_duration(raw, /):
    """
    parse a compound duration such as "1h30m" or "250ms" into a timedelta.

    precision below one microsecond is truncated toward zero.
    """
    text = raw
    negative = False
    if text[:1] in ("-", "+"):
        negative = text[0] == "-"
        text = text[1:]

    if text == "0":
        return timedelta(0)
    if not text:
        raise ValueError("invalid duration %r" % raw)

    total = Decimal(0)
    position = 0
    while position < len(text):
        match = _DURATION_PART.match(text, position)
        # a part needs at least one digit on either side of the dot
        if not match or match["number"] in ("", "."):
            raise ValueError("invalid duration %r" % raw)
        total += Decimal(match["number"]) * _UNITS[match["unit"]]
        position = match.end()

    if negative:
        total = -total
    try:
        return timedelta(microseconds=int(total / 1000))
    except (OverflowError, decimal.InvalidOperation):
        raise ValueError("duration %r out of range" % raw) from None


def parse_list(raw, /):
    return [segment for segment in raw.split(",") if segment]


def format_duration(delta, /):
    """
    render a timedelta in duration grammar: "0s", "250ms", "1h30m0s", "1.5s".
    """
    micros = (delta.days * 86400 + delta.seconds) * 1_000_000 + delta.microseconds
    if micros == 0:
        return "0s"
    sign = "-" if micros < 0 else ""
    micros = abs(micros)

    def fraction(value, scale):
        whole, rest = divmod(value, scale)
        if not rest:
            return str(whole)
        return "%d.%s" % (whole, ("%0*d" % (len(str(scale)) - 1, rest)).rstrip("0"))

    if micros < 1_000:
        return sign + str(micros) + "µs"
    if micros < 1_000_000:
        return sign + fraction(micros, 1_000) + "ms"

    hours, rest = divmod(micros, 3600 * 1_000_000)
    minutes, rest = divmod(rest, 60 * 1_000_000)
    text = sign
    if hours:
        text += "%dh" % hours
    if hours or minutes:
        text += "%dm" % minutes
    return text + fraction(rest, 1_000_000) + "s"


def format_value(kind, value, /):
    """
    render a typed value the way it would be written on a command line.

    lists use the bracketed form "[a b]" of help output.
    """
    match Kind(kind):
        case Kind.BOOL:
            return "true" if value else "false"
        case Kind.DURATION:
            return format_duration(value)
        case Kind.STRING_LIST:
            return "[%s]" % " ".join(value)
        case Kind.FLOAT64:
            return repr(float(value))
        case _:
            return str(value)


_PARSERS = {
    Kind.STRING: str,
    Kind.INT: parse_int,
    Kind.BOOL: parse_bool,
    Kind.FLOAT64: parse_float,
    Kind.DURATION: parse_duration,
    Kind.STRING_LIST: parse_list,
}


def convert(kind, raw, /, *, flag=Unset):
    """
    convert command-line or environment text into the value of a kind.

    parameters
    - kind: Kind
    - raw: str, the text exactly as received (an empty string is a real value).
    - flag: str, the flag name used in the error message.

    raises
    - ConversionError: "invalid <kind> value for flag --<flag>: <raw>"
    """
    kind = Kind(kind)
    try:
        return _PARSERS[kind](raw)
    except ValueError as error:
        raise ConversionError(
            "invalid %s value for flag --%s: %s" % (kind, coalesce(flag, "?"), raw),
            flag=coalesce(flag, None),
            value=raw,
            kind=kind,
            hint=str(error),
        ) from None


def _number(value):
    # bool is an int subclass, but JSON true/false are not numbers
    return isinstance(value, int | float) and not isinstance(value, bool)


def convert_json(kind, value, /, *, flag=Unset):
    """
    convert a decoded JSON value into the value of a kind.

    accepted shapes
    - STRING: JSON string
    - INT: JSON number (fractions truncated toward zero)
    - BOOL: JSON boolean
    - FLOAT64: JSON number
    - DURATION: JSON string in duration grammar
    - STRING_LIST: JSON array whose every element is a string (no splitting)

    raises
    - ConversionError: "expected <shape> for <kind> flag <flag>, got <type> <value>"
    """
    kind = Kind(kind)
    name = coalesce(flag, "?")

    def mismatch(expected, got=value):
        return ConversionError(
            "expected %s for %s flag %s, got %s %r" % (expected, kind, name, type(got).__name__, got),
            flag=coalesce(flag, None),
            value=value,
            kind=kind,
        )

    match kind:
        case Kind.STRING:
            if not isinstance(value, str):
                raise mismatch("string")
            return value
        case Kind.INT:
            if not _number(value):
                raise mismatch("number")
            try:
                return int(value)
            except (OverflowError, ValueError):
                raise mismatch("finite number") from None
        case Kind.BOOL:
            if not isinstance(value, bool):
                raise mismatch("boolean")
            return value
        case Kind.FLOAT64:
            if not _number(value):
                raise mismatch("number")
            return float(value)
        case Kind.DURATION:
            if not isinstance(value, str):
                raise mismatch("duration string")
            return convert(kind, value, flag=flag)
        case Kind.STRING_LIST:
            if not isinstance(value, list):
                raise mismatch("array")
            for item in value:
                if not isinstance(item, str):
                    raise mismatch("string array", item)
            return list(value)


__all__ = (
    "Kind",
    "convert",
    "convert_json",
    "parse_bool",
    "parse_int",
    "parse_float",
    "parse_duration",
    "parse_list",
    "format_duration",
    "format_value",
)
