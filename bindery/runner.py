"""
Bindery runners: one-call binding for programs and console helpers.

What this module provides
- bind(instance, argv): tokenize and apply the cached schema of type(instance).
- run(instance, argv, *, strict, shell): bind with a caller-side policy on
  leftover arguments and shell-style fault reporting.
- usage(object): print the rich usage of a class or instance.
- configure_logging(verbose=...): route the "bindery" logger through rich.

Typical program
    from bindery import Argument, DefaultArgument, run

    class Options:
        name = DefaultArgument(required=True, descr="instance name")
        verbose: bool = Argument("verbose", descr="chatty output")

    if __name__ == "__main__":
        options = run(Options(), strict=True, shell=True)
"""
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler

from .faults import *
from .schema import Schema
from .tokens import tokenize
from .utils import *

logger = logging.getLogger(__name__)


def bind(instance, argv=Unset, /, intercepter=Unset):
    """
    Bind a command line onto `instance`.

    Parameters
    - instance: object of a class declaring Argument members.
    - argv: Unset | str | Iterable[str]; Unset reads sys.argv[1:].
    - intercepter: optional veto hook, see Schema.apply.

    Returns
    - list[Token] that were not bound.
    """
    tokens = tokenize(coalesce(argv, sys.argv[1:]))
    return Schema.of(type(instance)).apply(instance, tokens, intercepter)


def usage(object, /, *, console=Unset):
    """
    Print the usage of a class (or of an instance's class) to a rich console.
    """
    schema = Schema.of(object if isinstance(object, type) else type(object))
    coalesce(console, Console()).print(schema)


def run(instance, argv=Unset, /, intercepter=Unset, *, strict=False, shell=False):
    """
    Bind a command line onto `instance` and return the instance.

    Options
    - strict: leftover arguments raise UnmatchedArgumentsError (listing them in
      the 'arguments' option) instead of being ignored.
    - shell: the usage and then the fault are printed to stderr and the process
      exits with status 1 (a SchemaConflictError skips the usage); otherwise
      faults propagate to the caller.
    """
    try:
        unmatched = bind(instance, argv, intercepter)
        if strict and unmatched:
            raise UnmatchedArgumentsError(
                "unknown arguments %s" % ", ".join(
                    repr(value) if not key else repr("-%s" % key) for key, value in unmatched
                ),
                title="unknown arguments",
                code=FaultCode.UNMATCHED_ARGUMENTS,
                docs=getdoc(FaultCode.UNMATCHED_ARGUMENTS),
                hint="check the usage above for accepted arguments",
                arguments=tuple(unmatched),
            )
        if unmatched:
            logger.info("ignoring %d unmatched argument(s)", len(unmatched))
    except BindingException as exception:
        if not shell:
            raise
        # a conflicting class has no schema, hence no usage to print
        if not isinstance(exception, SchemaConflictError):
            usage(instance, console=Console(stderr=True))
        trigger(exception, shell=True)
    return instance


def configure_logging(*, verbose=False):
    """
    Send "bindery" log records to stderr through rich.

    verbose selects DEBUG (every bind, veto and leftover) instead of WARNING.
    Calling it again replaces the handler instead of stacking a second one.
    """
    package = logging.getLogger("bindery")
    for handler in list(package.handlers):
        if isinstance(handler, RichHandler):
            package.removeHandler(handler)

    handler = RichHandler(console=Console(stderr=True), show_path=False)
    package.addHandler(handler)
    package.setLevel(logging.DEBUG if verbose else logging.WARNING)
    return handler


__all__ = (
    "bind",
    "run",
    "usage",
    "configure_logging",
)
