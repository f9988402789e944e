"""
Flashflags registry: FlagSet, the entry point of the package.

What this module provides
- FlagSet: owns every Flag of one program and resolves their values from
  defaults, a JSON config file, environment variables and the command line
  (ascending priority), then validates the result.

Lifecycle
- create → register flags → parse once → read values (any number of times)
  → optionally reset → parse again.
- Register everything before parse; do not parse from two threads at once.
  Reading values after parse returned is safe from any thread.

Quick start
    from flashflags import FlagSet, HelpRequested, FlagError

    flags = FlagSet("server")
    host = flags.string_var("host", "H", "localhost", "bind address")
    port = flags.int_var("port", "p", 8080, "listen port")
    verbose = flags.bool_var("verbose", "v", False, "chatty logs")
    flags.set_required("host")
    flags.set_env_prefix("SERVER")
    flags.add_config_path("./config")

    try:
        flags.parse(sys.argv[1:])
    except HelpRequested:
        sys.exit(0)
    except FlagError as error:
        rich.print(error)
        sys.exit(2)

    print(host.value, port.value, verbose.value, flags.args())

Registration
- string/int/bool/float64/duration/string_list(name, default, usage)
- *_var(name, short, default, usage) to add a single-character short key
- each returns the Flag (a read-only handle to the live value)
- registering a name twice replaces the earlier flag (last registration wins)
"""
import logging
import os

from rich.console import Console
from rich.text import Text

from . import helper
from .constraints import validate_all, validate_constraints, validate_dependencies, validate_required
from .faults import FlagNotFoundError
from .flags import Flag
from .kinds import Kind, format_value
from .parser import Parser
from .sources import ConfigLoader, EnvironmentLoader
from .utils import Unset, coalesce, mirror, rename

logger = logging.getLogger(__name__)


def _registrar(kind, /, *, short=False):
    """
    build a registration method for one kind, with or without a short key.
    """
    if short:
        @rename(str(kind.name).lower() + "_var")
        def register(self, name, short, default=Unset, usage=""):
            return self._register(name, kind, coalesce(default, kind.zero), usage, short)
        register.__doc__ = "register a %s flag with a short key and return it." % kind
    else:
        @rename(str(kind.name).lower())
        def register(self, name, default=Unset, usage=""):
            return self._register(name, kind, coalesce(default, kind.zero), usage, "")
        register.__doc__ = "register a %s flag and return it." % kind
    return register


class FlagSet:
    """
    registry of flags for one program invocation.

    parameters
    - name: program name (help header and config file discovery).
    - environ: mapping consulted for environment variables (default: os.environ).
    - console: rich Console help is printed to (default: stdout).
    - colorful: style help output.
    """
    name = mirror("name")
    description = mirror("description")
    version = mirror("version")

    def __init__(self, name, *, environ=None, console=None, colorful=True):
        self._name = name
        self._flags = {}
        self._shorts = {}
        self._args = []
        self._description = ""
        self._version = ""
        self._config_file = ""
        self._config_paths = []
        self._config_loaded = False
        self._env_prefix = ""
        self._env_lookup = False
        self._environ = os.environ if environ is None else environ
        self._console = console
        self._colorful = colorful

    # --- registration ---

    def _register(self, name, kind, default, usage, short):
        flag = Flag(name, kind, default, usage, short)
        if (previous := self._flags.get(name)) is not None:
            logger.debug("flag --%s registered again, replacing the previous one", name)
            if previous.short and self._shorts.get(previous.short) is previous:
                del self._shorts[previous.short]
        self._flags[name] = flag
        if short:
            # a short key resolves to exactly one flag; the displaced flag loses it
            if (displaced := self._shorts.get(short)) is not None and displaced is not flag:
                logger.debug("short key -%s moves from --%s to --%s", short, displaced.name, name)
                displaced._short = ""
            self._shorts[short] = flag
        return flag

    string = _registrar(Kind.STRING)
    string_var = _registrar(Kind.STRING, short=True)
    int = _registrar(Kind.INT)
    int_var = _registrar(Kind.INT, short=True)
    bool = _registrar(Kind.BOOL)
    bool_var = _registrar(Kind.BOOL, short=True)
    float64 = _registrar(Kind.FLOAT64)
    float64_var = _registrar(Kind.FLOAT64, short=True)
    duration = _registrar(Kind.DURATION)
    duration_var = _registrar(Kind.DURATION, short=True)
    string_list = _registrar(Kind.STRING_LIST)
    string_list_var = _registrar(Kind.STRING_LIST, short=True)

    # --- metadata ---

    def _require(self, name):
        try:
            return self._flags[name]
        except KeyError:
            raise FlagNotFoundError("flag not found: %s" % name, flag=name) from None

    def set_validator(self, name, validator):
        """
        attach a validator: a callable receiving the value and raising on bad input.
        """
        if validator is not None and not callable(validator):
            raise TypeError("validator of flag %r must be callable" % name)
        self._require(name)._validator = validator

    def set_required(self, name):
        self._require(name)._required = True

    def set_dependencies(self, name, *dependencies):
        """
        when --name is set, every flag in dependencies must be set too.

        unknown dependency names are reported by parse(), not here.
        """
        self._require(name)._dependencies = list(dependencies)

    def set_group(self, name, group):
        self._require(name)._group = group

    def set_envvar(self, name, variable):
        """
        read --name from this exact environment variable (no prefix applied).
        """
        self._require(name)._envvar = variable

    def set_description(self, description):
        self._description = description

    def set_version(self, version):
        self._version = version

    def set_config_file(self, path):
        self._config_file = path

    def add_config_path(self, path):
        self._config_paths.append(path)

    def set_env_prefix(self, prefix):
        """
        enable environment lookup with a prefix: "MYAPP" reads MYAPP_DB_HOST for --db-host.
        """
        self._env_prefix = prefix
        self._env_lookup = True

    def enable_env_lookup(self):
        """
        enable environment lookup without prefix: --db-host reads DB_HOST.
        """
        self._env_lookup = True

    # --- parsing ---

    def parse(self, args):
        """
        resolve every flag: config file → environment → command line → constraints.

        parameters
        - args: Sequence[str], conventionally sys.argv[1:].

        raises
        - HelpRequested after printing help for '--help' / '-h'.
        - FlagError subclasses for every other failure; the first one aborts.
        """
        self._args = []
        logger.debug("parsing %d arguments for %s", len(args), self._name)

        # config is opt-in: nothing is discovered until a file or a search path is set
        if not self._config_loaded and (self._config_file or self._config_paths):
            self._config_loaded = True
            ConfigLoader(
                self._name,
                file=self._config_file,
                paths=self._config_paths,
                home=self._environ.get("HOME"),
            ).load(self._flags)

        if self._env_lookup:
            EnvironmentLoader(prefix=self._env_prefix, environ=self._environ).load(self._flags)

        Parser(self._flags, self._shorts, helper=self.print_help).parse(args, self._args)
        validate_constraints(self._flags)

    def validate_required(self):
        validate_required(self._flags)

    def validate_dependencies(self):
        validate_dependencies(self._flags)

    def validate_all(self):
        validate_all(self._flags)

    def validate_constraints(self):
        validate_constraints(self._flags)

    def reset(self):
        """
        restore every flag's default, clear positionals and allow the config file to load again.
        """
        for flag in self._flags.values():
            flag.reset()
        self._args = []
        self._config_loaded = False

    def reset_flag(self, name):
        self._require(name).reset()

    # --- reading ---

    def lookup(self, name):
        """
        return the Flag registered under name, or None.
        """
        return self._flags.get(name)

    def visit_all(self, visitor):
        """
        call visitor(flag) for every flag, in registration order.
        """
        for flag in list(self._flags.values()):
            visitor(flag)

    def __iter__(self):
        return iter(list(self._flags.values()))

    def __len__(self):
        return len(self._flags)

    def __contains__(self, name):
        return name in self._flags

    def changed(self, name):
        """
        whether --name received a value from any source; False for unknown names.
        """
        flag = self._flags.get(name)
        return flag is not None and flag.changed

    def _get(self, name, kind):
        flag = self._flags.get(name)
        if flag is None or flag.kind is not kind:
            return kind.zero
        return flag.value

    def get_string(self, name):
        """
        value of a string flag; other kinds are rendered as text, unknown names give "".
        """
        flag = self._flags.get(name)
        if flag is None:
            return ""
        if flag.kind is Kind.STRING:
            return flag.value
        return format_value(flag.kind, flag.value)

    def get_int(self, name):
        return self._get(name, Kind.INT)

    def get_bool(self, name):
        return self._get(name, Kind.BOOL)

    def get_float64(self, name):
        return self._get(name, Kind.FLOAT64)

    def get_duration(self, name):
        return self._get(name, Kind.DURATION)

    def get_string_list(self, name):
        return self._get(name, Kind.STRING_LIST)

    def args(self):
        """
        positional arguments left after parsing, in order.
        """
        return list(self._args)

    def narg(self):
        return len(self._args)

    def arg(self, index):
        """
        the index-th positional argument, or "" when out of range.
        """
        if 0 <= index < len(self._args):
            return self._args[index]
        return ""

    # --- presentation ---

    def help(self):
        """
        the plain-text help screen.
        """
        return helper.help_text(
            self._name, self._flags.values(), description=self._description, version=self._version
        )

    def print_help(self):
        helper.print_help(
            self._name,
            self._flags.values(),
            description=self._description,
            version=self._version,
            console=self._console,
            colorful=self._colorful,
        )

    def print_usage(self):
        console = self._console or Console()
        console.print(Text(helper.usage_text(self._name, self._flags.values())), end="", soft_wrap=True)

    def __repr__(self):
        return "flag-set(name=%r, flags=%r)" % (self._name, list(self._flags))

    def __rich_repr__(self):
        yield "name", self._name
        yield "flags", list(self._flags.values())
        yield "args", list(self._args)


__all__ = (
    "FlagSet",
)
