"""
Flashflags source mergers: configuration file and environment variables.

Both mergers run before the command line is tokenized, config first. They write
through the value store with their own Source rank, so a value never overrides
one that came from a higher-ranked source (see flashflags.flags.Source).

ConfigLoader
- Path: an explicit file, or the first of <dir>/<name>.json, <dir>/<name>.config.json,
  <dir>/config.json over the search directories (default: '.', './config', $HOME).
- No file found is not an error; the config file is optional.
- Paths containing '..' and absolute paths outside the allowed roots are rejected
  before anything is opened.
- The file must hold one JSON object. Unknown keys are ignored, known keys are
  converted with convert_json() for the flag's kind.

EnvironmentLoader
- Variable name: the flag's own override, else PREFIX_NAME, else NAME
  (NAME is the flag name upper-cased with '-' replaced by '_').
- Missing and empty variables are skipped; present values that do not convert
  or validate are fatal.
- The environment is any mapping (os.environ by default), so tests can inject one.
"""
import json
import logging
import os

from .faults import ConfigFileError, ConversionError, EnvironmentValueError, ValidationError
from .flags import Source
from .utils import envname

logger = logging.getLogger(__name__)

# absolute config paths are only accepted under these roots (and the home directory)
ALLOWED_ROOTS = ("/tmp/", "/opt/", "/etc/")


def candidates(name, /):
    """
    candidate config filenames for a program name, in search order.
    """
    return [name + ".json", name + ".config.json", "config.json"]


def check_path(path, /, *, home=None):
    """
    reject config paths that try to escape the working tree.

    rules
    - any '..' in the path is rejected.
    - absolute paths must live under ALLOWED_ROOTS or the home directory.

    raises
    - ConfigFileError: "invalid config file path: <path>"
    """
    roots = ALLOWED_ROOTS
    if home:
        roots += (os.path.join(home, ""),)
    if ".." in path or (os.path.isabs(path) and not path.startswith(roots)):
        raise ConfigFileError(
            "invalid config file path: %s" % path,
            path=path,
            hint="use a relative path or one under %s" % ", ".join(roots),
        )
    return path


class ConfigLoader:
    """
    locate, decode and apply a JSON config file.

    parameters
    - name: program name, used for the candidate filenames.
    - file: explicit path ("" for auto-discovery).
    - paths: search directories (empty for the defaults).
    - home: home directory (default: $HOME from the environment mapping).
    """

    def __init__(self, name, *, file="", paths=(), home=None):
        self.name = name
        self.file = file
        self.paths = list(paths)
        self.home = home

    def find(self):
        """
        return the config path to load, or None when there is nothing to load.
        """
        if self.file:
            if os.path.isfile(self.file):
                return self.file
            logger.debug("config file %s not found", self.file)
            return None

        directories = self.paths or [".", os.path.join(".", "config"), self.home or ""]
        for directory in directories:
            if not directory:
                continue
            for filename in candidates(self.name):
                path = os.path.join(directory, filename)
                if os.path.isfile(path):
                    logger.debug("config file discovered at %s", path)
                    return path
        return None

    def read(self, path):
        """
        read and decode the config file at path into a dict.
        """
        check_path(path, home=self.home)
        try:
            with open(path, encoding="utf-8") as file:
                text = file.read()
        except OSError as error:
            raise ConfigFileError(
                "failed to read config file %s: %s" % (path, error),
                path=path,
            ) from error

        try:
            config = json.loads(text)
        except ValueError as error:
            raise ConfigFileError(
                "failed to parse config file %s: %s" % (path, error),
                path=path,
                hint="the config file must hold a single JSON object",
            ) from error

        if not isinstance(config, dict):
            raise ConfigFileError(
                "failed to parse config file %s: top level must be an object, got %s" % (
                    path, type(config).__name__
                ),
                path=path,
                hint="the config file must hold a single JSON object",
            )
        return config

    def load(self, flags):
        """
        apply the config file to the registry; returns the path used, or None.
        """
        if (path := self.find()) is None:
            return None
        self.apply(flags, self.read(path), path=path)
        return path

    def apply(self, flags, config, *, path=""):
        for name, value in config.items():
            try:
                flag = flags[name]
            except KeyError:
                logger.debug("ignoring unknown key %r in config file %s", name, path)
                continue
            try:
                flag._assign(value, Source.CONFIG, decoded=True)
            except (ConversionError, ValidationError) as error:
                raise ConfigFileError(
                    "failed to set flag %s from config: %s" % (name, error),
                    flag=name,
                    value=value,
                    kind=flag.kind,
                    path=path,
                    reason=error,
                ) from error


class EnvironmentLoader:
    """
    apply environment variables to flags.

    parameters
    - prefix: variable prefix ("" for none).
    - environ: mapping of variable names to values (default: os.environ).
    """

    def __init__(self, *, prefix="", environ=None):
        self.prefix = prefix
        self.environ = os.environ if environ is None else environ

    def variable(self, flag):
        """
        environment variable name consulted for a flag.
        """
        if flag.envvar:
            return flag.envvar
        return envname(flag.name, self.prefix)

    def load(self, flags):
        for name, flag in flags.items():
            variable = self.variable(flag)
            if not (value := self.environ.get(variable, "")):
                continue
            try:
                if flag._assign(value, Source.ENVIRONMENT):
                    logger.debug("flag --%s taken from $%s", name, variable)
            except (ConversionError, ValidationError) as error:
                raise EnvironmentValueError(
                    "invalid environment variable %s=%s: %s" % (variable, value, error),
                    flag=name,
                    value=value,
                    kind=flag.kind,
                    variable=variable,
                    reason=error,
                ) from error


__all__ = (
    "ALLOWED_ROOTS",
    "candidates",
    "check_path",
    "ConfigLoader",
    "EnvironmentLoader",
)
