import sys

from rich import print
from rich.pretty import pprint

from flashflags import *

flags = FlagSet("flashflags-demo")
flags.set_description("Resolve a few flags from config, environment and command line.")
flags.set_version("0.0.0")

host = flags.string_var("host", "H", "localhost", "bind address")
port = flags.int_var("port", "p", 8080, "listen port")
verbose = flags.bool_var("verbose", "v", False, "verbose output")
timeout = flags.duration("timeout", usage="request timeout")
tags = flags.string_list("tags", usage="comma separated tags")


def portrange(value):
    if not 0 < value < 65536:
        raise ValueError("port must be between 1 and 65535")


flags.set_validator("port", portrange)
flags.set_env_prefix("DEMO")
flags.set_group("timeout", "Tuning")


if __name__ == '__main__':
    try:
        flags.parse(sys.argv[1:])
    except HelpRequested:
        sys.exit(0)
    except FlagError as error:
        print(error)
        sys.exit(2)
    pprint(flags)
