"""
Source merging behavioral tests (config file and environment).

Scope
- Validate config file discovery, decoding and per-kind JSON conversion.
- Validate config path checks and the load-once latch.
- Validate environment variable naming (prefix, override, plain) and failures.
- Validate priority: command line > environment > config file > default.

Conventions
- Test method names follow CamelCase per project convention.
- Config files live in temporary directories under /tmp (an allowed root).
- The environment is always injected; os.environ is never read or modified.
"""

from __future__ import annotations

import io
import json
import os
import tempfile
import unittest
from datetime import timedelta
from unittest import TestCase

from rich.console import Console

from flashflags import (
    ConfigFileError,
    ConversionError,
    EnvironmentValueError,
    FaultCode,
    FlagSet,
    Source,
    ValidationError,
)
from flashflags.sources import ConfigLoader, EnvironmentLoader, candidates, check_path


def _flagset(environ=None):
    flags = FlagSet("app", environ={} if environ is None else environ, console=Console(file=io.StringIO()))
    flags.string("host", "localhost", "bind address")
    flags.int_var("port", "p", 8080, "listen port")
    flags.bool("verbose", False, "verbose output")
    flags.float64("rate", 1.0, "rate limit")
    flags.duration("timeout", timedelta(seconds=30), "request timeout")
    flags.string_list("tags", [], "tags")
    flags.string("db-host", "", "database host")
    return flags


class ConfigCase(TestCase):
    """Shared temporary directory for config files."""

    def setUp(self):
        self._directory = tempfile.TemporaryDirectory(dir="/tmp")
        self.directory = self._directory.name

    def tearDown(self):
        self._directory.cleanup()

    def write(self, filename, content):
        path = os.path.join(self.directory, filename)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as file:
            if isinstance(content, str):
                file.write(content)
            else:
                json.dump(content, file)
        return path


class TestConfigFile(ConfigCase):
    """Explicit config files and JSON conversion."""

    def testEveryKindFromJson(self):
        path = self.write("app.json", {
            "host": "db.internal",
            "port": 9000,
            "verbose": True,
            "rate": 2,
            "timeout": "1m30s",
            "tags": ["a", "b"],
        })
        flags = _flagset()
        flags.set_config_file(path)
        flags.parse([])
        self.assertEqual(flags.get_string("host"), "db.internal")
        self.assertEqual(flags.get_int("port"), 9000)
        self.assertIs(flags.get_bool("verbose"), True)
        self.assertEqual(flags.get_float64("rate"), 2.0)
        self.assertEqual(flags.get_duration("timeout"), timedelta(minutes=1, seconds=30))
        self.assertEqual(flags.get_string_list("tags"), ["a", "b"])
        self.assertTrue(flags.changed("port"))
        self.assertIs(flags.lookup("port").source, Source.CONFIG)
        self.assertFalse(flags.changed("db-host"))

    def testFractionalIntIsTruncated(self):
        flags = _flagset()
        flags.set_config_file(self.write("app.json", {"port": 9000.9}))
        flags.parse([])
        self.assertEqual(flags.get_int("port"), 9000)

    def testUnknownKeysAreIgnored(self):
        flags = _flagset()
        flags.set_config_file(self.write("app.json", {"nope": 1, "port": 1234}))
        with self.assertLogs("flashflags.sources", level="DEBUG") as logs:
            flags.parse([])
        self.assertTrue(any("'nope'" in line for line in logs.output))
        self.assertEqual(flags.get_int("port"), 1234)
        self.assertNotIn("nope", flags)

    def testMalformedJson(self):
        flags = _flagset()
        flags.set_config_file(self.write("app.json", "{ not json"))
        with self.assertRaises(ConfigFileError) as context:
            flags.parse([])
        self.assertIn("failed to parse config file", str(context.exception))
        self.assertEqual(context.exception.code, FaultCode.CONFIG_FILE)

    def testTopLevelMustBeObject(self):
        flags = _flagset()
        flags.set_config_file(self.write("app.json", [1, 2, 3]))
        with self.assertRaises(ConfigFileError):
            flags.parse([])

    def testTypeMismatchNamesFlag(self):
        flags = _flagset()
        flags.set_config_file(self.write("app.json", {"port": "eighty"}))
        with self.assertRaises(ConfigFileError) as context:
            flags.parse([])
        self.assertIn("port", str(context.exception))
        self.assertIn("eighty", str(context.exception))
        self.assertEqual(context.exception.flag, "port")
        self.assertIsInstance(context.exception.__cause__, ConversionError)

    def testListWithNonStringElement(self):
        flags = _flagset()
        flags.set_config_file(self.write("app.json", {"tags": ["a", 1]}))
        with self.assertRaises(ConfigFileError):
            flags.parse([])

    def testValidatorRejectsConfigValue(self):
        def positive(value):
            if value <= 0:
                raise ValueError("must be positive")

        flags = _flagset()
        flags.set_validator("port", positive)
        flags.set_config_file(self.write("app.json", {"port": -1}))
        with self.assertRaises(ConfigFileError) as context:
            flags.parse([])
        self.assertIsInstance(context.exception.__cause__, ValidationError)

    def testMissingExplicitFileIsNotAnError(self):
        flags = _flagset()
        flags.set_config_file(os.path.join(self.directory, "absent.json"))
        flags.parse([])
        self.assertEqual(flags.get_int("port"), 8080)

    def testParentSegmentIsRejected(self):
        self.write("app.json", {"port": 1})
        os.makedirs(os.path.join(self.directory, "sub"))
        flags = _flagset()
        flags.set_config_file(os.path.join(self.directory, "sub", "..", "app.json"))
        with self.assertRaises(ConfigFileError) as context:
            flags.parse([])
        self.assertIn("invalid config file path", str(context.exception))
        self.assertEqual(flags.get_int("port"), 8080)

    def testConfigLoadedOncePerReset(self):
        path = self.write("app.json", {"port": 1111})
        flags = _flagset()
        flags.set_config_file(path)
        flags.parse([])
        self.write("app.json", {"port": 2222})
        flags.parse([])
        self.assertEqual(flags.get_int("port"), 1111)
        flags.reset()
        flags.parse([])
        self.assertEqual(flags.get_int("port"), 2222)


class TestConfigDiscovery(ConfigCase):
    """Search directories and candidate filenames."""

    def testCandidateOrder(self):
        self.assertEqual(candidates("app"), ["app.json", "app.config.json", "config.json"])

    def testFirstCandidateWins(self):
        self.write("config.json", {"port": 3})
        self.write("app.config.json", {"port": 2})
        self.write("app.json", {"port": 1})
        flags = _flagset()
        flags.add_config_path(self.directory)
        flags.parse([])
        self.assertEqual(flags.get_int("port"), 1)

    def testFallsBackToGenericName(self):
        self.write("config.json", {"port": 3})
        flags = _flagset()
        flags.add_config_path(self.directory)
        flags.parse([])
        self.assertEqual(flags.get_int("port"), 3)

    def testSearchPathsInOrder(self):
        first = os.path.join(self.directory, "first")
        second = os.path.join(self.directory, "second")
        os.makedirs(first)
        self.write(os.path.join("second", "app.json"), {"port": 2})
        flags = _flagset()
        flags.add_config_path(first)
        flags.add_config_path(second)
        flags.parse([])
        self.assertEqual(flags.get_int("port"), 2)

    def testDiscoveryIsOptIn(self):
        self.write("config.json", {"port": 4242})
        self.write("app.json", {"port": "not-a-number"})
        previous = os.getcwd()
        os.chdir(self.directory)
        self.addCleanup(os.chdir, previous)
        flags = _flagset({"HOME": self.directory})
        flags.parse([])
        self.assertEqual(flags.get_int("port"), 8080)
        self.assertFalse(flags.changed("port"))
        os.remove("app.json")
        flags.add_config_path(".")
        flags.parse([])
        self.assertEqual(flags.get_int("port"), 4242)

    def testNothingFound(self):
        loader = ConfigLoader("app", paths=[self.directory])
        self.assertIsNone(loader.find())
        self.assertIsNone(loader.load({}))

    def testHomeDirectoryIsSearched(self):
        self.write("app.json", {"port": 4242})
        loader = ConfigLoader("app", home=self.directory)
        self.assertEqual(loader.find(), os.path.join(self.directory, "app.json"))


class TestCheckPath(TestCase):
    """Config path restrictions."""

    def testRelativePathsAccepted(self):
        self.assertEqual(check_path("app.json"), "app.json")
        self.assertEqual(check_path("./config/app.json"), "./config/app.json")

    def testAllowedRootsAccepted(self):
        for path in ("/tmp/app.json", "/opt/app/app.json", "/etc/app.json"):
            with self.subTest(path=path):
                self.assertEqual(check_path(path), path)

    def testParentSegmentRejected(self):
        for path in ("../app.json", "config/../../app.json", "/tmp/../etc/app.json"):
            with self.subTest(path=path), self.assertRaises(ConfigFileError):
                check_path(path)

    def testOtherAbsolutePathsRejected(self):
        for path in ("/var/app.json", "/home/user/app.json", "/tmpfoo/app.json"):
            with self.subTest(path=path), self.assertRaises(ConfigFileError):
                check_path(path)

    def testHomeIsAllowedRoot(self):
        self.assertEqual(check_path("/home/user/app.json", home="/home/user"), "/home/user/app.json")
        with self.assertRaises(ConfigFileError):
            check_path("/home/userx/app.json", home="/home/user")


class TestEnvironment(TestCase):
    """Environment variable lookup."""

    def testPrefixedNames(self):
        flags = _flagset({"APP_PORT": "7000", "APP_DB_HOST": "db", "APP_TAGS": "x,y"})
        flags.set_env_prefix("APP")
        flags.parse([])
        self.assertEqual(flags.get_int("port"), 7000)
        self.assertEqual(flags.get_string("db-host"), "db")
        self.assertEqual(flags.get_string_list("tags"), ["x", "y"])
        self.assertIs(flags.lookup("port").source, Source.ENVIRONMENT)

    def testPlainNamesWithoutPrefix(self):
        flags = _flagset({"DB_HOST": "db", "APP_PORT": "1"})
        flags.enable_env_lookup()
        flags.parse([])
        self.assertEqual(flags.get_string("db-host"), "db")
        self.assertEqual(flags.get_int("port"), 8080)

    def testOverrideIgnoresPrefix(self):
        flags = _flagset({"LISTEN_PORT": "5000", "APP_PORT": "6000"})
        flags.set_env_prefix("APP")
        flags.set_envvar("port", "LISTEN_PORT")
        flags.parse([])
        self.assertEqual(flags.get_int("port"), 5000)

    def testEmptyVariableIsSkipped(self):
        flags = _flagset({"APP_HOST": ""})
        flags.set_env_prefix("APP")
        flags.parse([])
        self.assertEqual(flags.get_string("host"), "localhost")
        self.assertFalse(flags.changed("host"))

    def testLookupDisabledByDefault(self):
        flags = _flagset({"PORT": "1", "HOST": "elsewhere"})
        flags.parse([])
        self.assertEqual(flags.get_int("port"), 8080)
        self.assertFalse(flags.changed("host"))

    def testInvalidValueIsFatal(self):
        flags = _flagset({"APP_PORT": "abc"})
        flags.set_env_prefix("APP")
        with self.assertRaises(EnvironmentValueError) as context:
            flags.parse([])
        self.assertIn("APP_PORT", str(context.exception))
        self.assertIn("abc", str(context.exception))
        self.assertEqual(context.exception.options["variable"], "APP_PORT")
        self.assertIsInstance(context.exception.__cause__, ConversionError)

    def testBooleanLiteral(self):
        flags = _flagset({"APP_VERBOSE": "T"})
        flags.set_env_prefix("APP")
        flags.parse([])
        self.assertIs(flags.get_bool("verbose"), True)

    def testVariableNames(self):
        flags = _flagset()
        loader = EnvironmentLoader(prefix="MYAPP", environ={})
        self.assertEqual(loader.variable(flags.lookup("db-host")), "MYAPP_DB_HOST")
        self.assertEqual(EnvironmentLoader(environ={}).variable(flags.lookup("db-host")), "DB_HOST")


class TestPriority(ConfigCase):
    """Command line > environment > config file > default."""

    def setUp(self):
        super().setUp()
        self.path = self.write("app.json", {"port": 9000, "host": "a"})

    def build(self, environ):
        flags = _flagset(environ)
        flags.set_config_file(self.path)
        flags.set_env_prefix("APP")
        return flags

    def testCommandLineWins(self):
        flags = self.build({"APP_PORT": "7000"})
        flags.parse(["--port", "3000"])
        self.assertEqual(flags.get_int("port"), 3000)
        self.assertIs(flags.lookup("port").source, Source.COMMAND_LINE)

    def testEnvironmentBeatsConfig(self):
        flags = self.build({"APP_PORT": "7000", "APP_HOST": "b"})
        flags.parse([])
        self.assertEqual(flags.get_int("port"), 7000)
        self.assertEqual(flags.get_string("host"), "b")

    def testConfigBeatsDefault(self):
        flags = self.build({})
        flags.parse([])
        self.assertEqual(flags.get_int("port"), 9000)
        self.assertEqual(flags.get_string("host"), "a")

    def testDefaultWhenNoSourceSetsIt(self):
        flags = self.build({})
        flags.parse([])
        self.assertEqual(flags.get_float64("rate"), 1.0)
        self.assertFalse(flags.changed("rate"))

    def testEnvironmentReappliedOnEveryParse(self):
        environ = {"APP_PORT": "7000"}
        flags = self.build(environ)
        flags.parse([])
        environ["APP_PORT"] = "7001"
        flags.parse([])
        self.assertEqual(flags.get_int("port"), 7001)


if __name__ == "__main__":
    unittest.main()
