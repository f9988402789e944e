"""
Flashflags constraint validation.

Runs once after every source was merged, in a fixed order; the first failure wins:

1. required     → RequiredFlagError ("required flag --name not provided")
2. dependencies → MissingDependencyError ("flag --a depends on non-existent flag --b")
                  DependencyError ("flag --a requires --b to be set")
3. validators   → ValidationError (validators re-run against the final values)

Flags are visited in registration order, so the reported flag is deterministic.
"""
from .faults import DependencyError, MissingDependencyError, RequiredFlagError


def validate_required(flags, /):
    for name, flag in flags.items():
        if flag.required and not flag.changed:
            raise RequiredFlagError(
                "required flag --%s not provided" % name,
                flag=name,
                hint="pass --%s on the command line, in the environment or in the config file" % name,
            )


def validate_dependencies(flags, /):
    for name, flag in flags.items():
        if not flag.changed:
            continue
        for dependency in flag.dependencies:
            try:
                target = flags[dependency]
            except KeyError:
                raise MissingDependencyError(
                    "flag --%s depends on non-existent flag --%s" % (name, dependency),
                    flag=name,
                    dependency=dependency,
                ) from None
            if not target.changed:
                raise DependencyError(
                    "flag --%s requires --%s to be set" % (name, dependency),
                    flag=name,
                    dependency=dependency,
                    hint="set --%s as well, or drop --%s" % (dependency, name),
                )


def validate_all(flags, /):
    for flag in flags.values():
        flag.validate()


def validate_constraints(flags, /):
    """
    run the required, dependency and validator checks, in that order.
    """
    validate_required(flags)
    validate_dependencies(flags)
    validate_all(flags)


__all__ = (
    "validate_required",
    "validate_dependencies",
    "validate_all",
    "validate_constraints",
)
