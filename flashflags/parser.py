r"""
Flashflags argument tokenizer and parser.

What this module provides
- Parser: walks command-line tokens once, left to right, and assigns each flag
  through the value store. Positional tokens are collected in order.

Token grammar (checked in this order)
- '--help' / '-h'         → print help, raise HelpRequested (clean exit signal).
- after '--'              → every token is positional, even '-x' or '--name'.
- '--'                    → end of flags marker (not a positional itself).
- 'name', '-'             → positional.
- '--name=value'          → value after the first '=' (may be empty).
- '--name value'          → the next token is the value unless it starts with '--'.
- '--name'                → boolean flags become true; others miss their value.
- '-x'                    → boolean short flags become true; others take the next token whole.
- '-x=value'              → value after '='; exactly one character may precede '='.
- '-abc'                  → combined booleans; only the last may take a value
                            (the next token whole).

Errors
- UnknownFlagError ("unknown flag: --name", "unknown flag: -x",
  "unknown flag in combined sequence: -abc")
- MalformedTokenError (e.g. '-xy=value')
- CombinedSequenceError ("... must be last in combined sequence")
- MissingValueError ("flag --name requires a value")
- ConversionError / ValidationError from the value store
"""
import functools
import logging
from collections import deque

from .faults import (
    CombinedSequenceError,
    HelpRequested,
    MalformedTokenError,
    MissingValueError,
    UnknownFlagError,
)
from .flags import Source
from .kinds import Kind

logger = logging.getLogger(__name__)


@functools.cache
def _ordinal(number):
    """
    Return a human-friendly ordinal label for a 1-based position.
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

    if 10 < number % 100 < 20:
        return f"{number}th"

    return f'{number}%s' % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


class Parser:
    """
    single-pass command-line parser over a flag registry.

    parameters
    - flags: Mapping[str, Flag], long name → flag.
    - shorts: Mapping[str, Flag], short key → flag (secondary index).
    - helper: callable printing help; invoked before HelpRequested is raised.

    usage
        parser = Parser(flags, shorts, helper=print_help)
        positionals = parser.parse(["-vp", "8080", "input.txt"])
    """

    def __init__(self, flags, shorts, *, helper=None):
        self._flags = flags
        self._shorts = shorts
        self._helper = helper
        self._tokens = deque()
        self._index = 0

    def _next(self):
        self._index += 1
        return self._tokens.popleft()

    def parse(self, tokens, positionals=None):
        """
        parse tokens and return the positional arguments in order.

        when `positionals` is given, positionals are appended to it as they are met,
        so the caller keeps what was collected even if a later token fails.
        """
        positionals = [] if positionals is None else positionals
        self._tokens = deque(tokens)
        self._index = 0
        terminated = False

        while self._tokens:
            token = self._next()

            if terminated:
                positionals.append(token)
                continue

            if token in ("--help", "-h"):
                if self._helper is not None:
                    self._helper()
                raise HelpRequested("help requested", flag=token.lstrip("-"), index=self._index)

            if token == "--":
                logger.debug("end of flags at %s token", _ordinal(self._index))
                terminated = True
                continue

            if not token.startswith("-") or token == "-":
                positionals.append(token)
                continue

            if token.startswith("--"):
                self._parse_long(token)
            else:
                self._parse_short(token)

        return positionals

    def _assign(self, flag, value):
        flag._assign(value, Source.COMMAND_LINE)

    def _unknown(self, token, input):
        return UnknownFlagError(
            "unknown flag: %s" % input,
            flag=input.lstrip("-"),
            token=token,
            index=self._index,
            hint="check the spelling of %r at %s position or run with --help" % (token, _ordinal(self._index)),
        )

    def _missing(self, flag, input):
        return MissingValueError(
            "flag %s requires a value" % input,
            flag=flag.name,
            index=self._index,
            kind=flag.kind,
            hint="pass it as %s=<value> or %s <value>" % (input, input),
        )

    def _parse_long(self, token):
        """
        handle '--name', '--name=value' and '--name value'.
        """
        body = token[2:]
        name, equals, value = body.partition("=")

        try:
            flag = self._flags[name]
        except KeyError:
            raise self._unknown(token, "--" + name) from None

        if not equals:
            # lookahead never swallows another long flag
            if self._tokens and not self._tokens[0].startswith("--"):
                value = self._next()
            elif flag.kind is Kind.BOOL:
                value = "true"
            else:
                raise self._missing(flag, "--" + name)

        self._assign(flag, value)

    def _parse_short(self, token):
        """
        handle '-x', '-x value', '-x=value' and combined '-abc [value]'.
        """
        body = token[1:]
        keys, equals, value = body.partition("=")

        if equals:
            if len(keys) != 1:
                raise MalformedTokenError(
                    "invalid short flag format: %s (exactly one character may precede '=')" % token,
                    flag=keys,
                    token=token,
                    index=self._index,
                    hint="use -x=value for a single short flag or --name=value",
                )
            try:
                flag = self._shorts[keys]
            except KeyError:
                raise self._unknown(token, "-" + keys) from None
            return self._assign(flag, value)

        if len(body) == 1:
            try:
                flag = self._shorts[body]
            except KeyError:
                raise self._unknown(token, "-" + body) from None
            return self._apply_short(flag, "-" + body)

        return self._parse_combined(token, body)

    def _apply_short(self, flag, input):
        if flag.kind is Kind.BOOL:
            return self._assign(flag, "true")
        if not self._tokens:
            raise self._missing(flag, input)
        # the value token is taken whole, even when it starts with '-'
        self._assign(flag, self._next())

    def _parse_combined(self, token, body):
        """
        expand '-abc' into '-a -b -c'; all but the last must be boolean.
        """
        flags = []
        for key in body:
            try:
                flags.append(self._shorts[key])
            except KeyError:
                raise UnknownFlagError(
                    "unknown flag in combined sequence: %s (-%s)" % (token, key),
                    flag=key,
                    token=token,
                    index=self._index,
                    hint="every character of %r must be a registered short flag" % token,
                ) from None

        *heads, last = flags
        for key, flag in zip(body, heads):
            if flag.kind is not Kind.BOOL:
                raise CombinedSequenceError(
                    "flag -%s (--%s) must be last in combined sequence %s" % (key, flag.name, token),
                    flag=flag.name,
                    token=token,
                    index=self._index,
                    hint="move -%s to the end of %r or pass it separately" % (key, token),
                )

        # every head is checked before any is assigned
        for flag in heads:
            self._assign(flag, "true")

        self._apply_short(last, "-" + body[-1])


__all__ = (
    "Parser",
)
