"""
Bindery schema layer: discover bindable members, bind arguments, render usage.

What this module provides
- Schema: built once from a class that declares Argument/DefaultArgument members.
  • named: case-insensitive key -> Target (keys unique, declaration order).
  • positional: tuple of Targets in declaration order.
  • apply(): bind one stream of (key, value) arguments onto one instance.
  • usage / __rich__: synopsis plus an aligned description table.

Binding rules (one left-to-right pass)
- unnamed argument: goes to the positional target under the cursor when the
  cursor is in range and the intercepter accepts it; the cursor then moves on.
  Past the last positional target the argument is left over and the intercepter
  is not asked.
- named argument: looked up case-insensitively; bound when found and accepted.
  Unknown keys are left over without asking the intercepter.
- afterwards every required target that was never bound is a fault; the first
  one (named order, then positional order) is reported.
- leftovers are returned in input order; deciding whether they are an error
  belongs to the caller.

Quick start
    from bindery import Schema, Argument, DefaultArgument, Token

    class Options:
        name = DefaultArgument(required=True, descr="worker name")
        retries = Argument("retries", descr="retry count")

    options = Options()
    Schema.of(Options).apply(options, [Token(None, "worker1"), Token("retries", "3")])
    # options.name == "worker1", options.retries == "3"
"""
import functools
import inspect
import logging
import os.path
import sys
from collections import defaultdict

from rich.console import Group
from rich.table import Table
from rich.text import Text

from .faults import FaultCode, SchemaConflictError, MissingRequiredArgumentError, getdoc
from .targets import Argument
from .utils import *

logger = logging.getLogger(__name__)

_WIDTH = 20  # key column of the usage table
_CACHED = 256  # schemas kept by Schema.of


def _accept(name, value, /):
    return True


def _discover(type, /):
    """
    Collect the Argument specs visible on `type`, base classes first.

    A subclass redeclaring a member replaces the base spec in place; shadowing it
    with a non-Argument attribute removes it.
    """
    members = {}
    for cls in reversed(type.__mro__):
        for name, object in vars(cls).items():
            if isinstance(object, Argument):
                members[name] = object
            elif name in members:
                del members[name]
    return members


class Schema:
    """
    Immutable set of binding targets derived from one class.

    Construction
    - Schema(type) walks the class (see _discover) and binds a Target per member.
    - Schema.of(type) returns a cached Schema; schemas are read-only and can be
      shared by any number of binding sessions on instances of `type`.

    Raises
    - TypeError when `type` is not a class.
    - SchemaConflictError when two members declare the same key (ignoring case).
    """

    type = mirror("type")
    named = mirror("named")
    positional = mirror("positional")

    def __init__(self, type, /):
        if not inspect.isclass(type):
            raise TypeError("Schema() argument must be a class")

        self._type = type
        self._named = {}
        self._positional = []

        for name, spec in _discover(type).items():
            target = spec.bind(type)
            if target.positional:
                self._positional.append(target)
                continue
            if (folded := target.key.casefold()) in self._named:
                other = self._named[folded]
                raise SchemaConflictError(
                    "members %r and %r of %r both declare the key %r" % (
                        other.name, target.name, type.__name__, target.key
                    ),
                    title="duplicate key",
                    code=FaultCode.SCHEMA_CONFLICT,
                    docs=getdoc(FaultCode.SCHEMA_CONFLICT),
                    hint="keys are matched ignoring case; give each member its own key",
                    key=target.key,
                    name=target.name,
                    owner=type,
                )
            self._named[folded] = target

        self._positional = tuple(self._positional)
        logger.debug(
            "schema for %s: %d named, %d positional",
            type.__qualname__, len(self._named), len(self._positional)
        )

    @classmethod
    @functools.lru_cache(maxsize=_CACHED)
    def of(cls, type, /):
        """
        Return the shared Schema for `type`, building it on first use.

        The cache holds the most recently used classes only, so classes created
        at runtime are released once they fall out of it.
        """
        return cls(type)

    @property
    def targets(self):
        """
        Every target, named (map order) then positional (declaration order).
        """
        return (*self._named.values(), *self._positional)

    def __len__(self):
        return len(self._named) + len(self._positional)

    def __iter__(self):
        return iter(self.targets)

    def __getitem__(self, key):
        """
        Case-insensitive lookup of a named target.
        """
        return self._named[key.casefold()]

    def __contains__(self, key):
        return isinstance(key, str) and key.casefold() in self._named

    def __repr__(self):
        return "schema(type=%r, named=%r, positional=%r)" % (
            self._type.__qualname__,
            tuple(target.key for target in self._named.values()),
            tuple(target.name for target in self._positional),
        )

    def __rich_repr__(self):
        yield "type", self._type
        yield "named", self.named
        yield "positional", self.positional

    def apply(self, instance, arguments, intercepter=Unset, /):
        """
        Bind `arguments` onto `instance` and return the leftover arguments.

        Parameters
        - instance: object whose type is exactly the schema's type.
        - arguments: iterable of (key, value) pairs (e.g., Token); an empty or None
          key marks a positional argument.
        - intercepter: callable(member_name, raw_value) -> bool, asked once for each
          argument that has a matching target, before the write. False leaves the
          argument over and the target unbound. Defaults to accepting everything.

        Returns
        - list of the arguments that were not bound, in input order.

        Raises
        - TypeMismatchError, ValueCoercionError, SetterFailureError from the writes.
        - MissingRequiredArgumentError after the pass.
        Writes done before a fault are kept.
        """
        intercepter = coalesce(intercepter, _accept)

        pending = set(self.targets)
        unmatched = []
        cursor = 0

        for argument in arguments:
            key, value = argument

            if not key:
                # the intercepter and the write both see the target under the cursor
                if cursor < len(self._positional) and intercepter((target := self._positional[cursor]).name, value):
                    pending.discard(target)
                    cursor += 1
                    logger.debug("bound <%s> = %r", target.name, value)
                    target.apply(instance, value)
                    continue
                if cursor < len(self._positional):
                    logger.debug("intercepter refused %r for <%s>", value, target.name)
                else:
                    logger.debug("no positional target left for %r", value)
                unmatched.append(argument)

            elif (target := self._named.get(key.casefold())) is not None and intercepter(target.name, value):
                pending.discard(target)
                logger.debug("bound -%s = %r", target.key, value)
                target.apply(instance, value)

            else:
                logger.debug("left over -%s = %r", key, value)
                unmatched.append(argument)

        for target in self.targets:
            if target.required and target in pending:
                raise MissingRequiredArgumentError(
                    "argument %r is required" % target.label,
                    title="missing argument",
                    code=FaultCode.MISSING_REQUIRED_ARGUMENT,
                    docs=getdoc(FaultCode.MISSING_REQUIRED_ARGUMENT),
                    hint=(
                        "pass a value for <%s> as an unnamed argument" % target.name
                        if target.positional else
                        "pass it as '-%s:<value>'" % target.key
                    ),
                    key=target.key,
                    name=target.name,
                    owner=self._type,
                )

        return unmatched

    @property
    def usage(self):
        """
        Plain-text usage: the synopsis, a blank line, then one padded row per target.

        Synopsis tokens: "-key" / "[-key]" for named targets, "<Name>" / "[<Name>]"
        for positional ones (brackets mark optional targets). Table labels are the
        key for named targets and "<Name>" for positional ones.
        """
        synopsis = []
        rows = []
        for target in self.targets:
            label = "<%s>" % target.name if target.positional else target.key
            token = label if target.positional else "-" + label
            synopsis.append(token if target.required else "[%s]" % token)
            rows.append("%-*s%s\n" % (_WIDTH, label, target.descr or ""))
        return " ".join(synopsis) + "\n\n" + "".join(rows)

    def __rich__(self):
        """
        Styled usage for console output.

        Palette keys
        - usage-label, program-name, named, positional, optional-bracket, description

        Customization
        - Define a mapping named __styles__ in __main__ to override palette entries,
          and __prog__ to override the program name.
        """
        main = __import__("__main__")

        styles = defaultdict(str, {
            "usage-label": "bold #00E6FF",  # cyan usage header
            "program-name": "bold #FF4D94",  # magenta-pink program name
            "named": "bold #00E6FF",  # cyan keys
            "positional": "bold #FFD600",  # amber positional names
            "optional-bracket": "dim",
            "description": "#9CA3AF",  # muted gray
        } | getattr(main, "__styles__", {}))

        prog = getattr(main, "__prog__", os.path.basename(sys.argv[0]) or "bindery")

        synopsis = Text.assemble(("usage: ", styles["usage-label"]), (prog, styles["program-name"]))
        table = Table.grid(padding=(0, 0))
        table.add_column(min_width=_WIDTH, no_wrap=True)
        table.add_column()

        for target in self.targets:
            style = styles["positional"] if target.positional else styles["named"]
            label = "<%s>" % target.name if target.positional else target.key
            token = label if target.positional else "-" + label

            synopsis.append(" ")
            if target.required:
                synopsis.append(token, style)
            else:
                synopsis.append("[", styles["optional-bracket"])
                synopsis.append(token, style)
                synopsis.append("]", styles["optional-bracket"])

            descr = target.descr
            table.add_row(
                Text(label, style),
                descr if isinstance(descr, Text) else Text(descr or "", styles["description"]),
            )

        return Group(synopsis, Text(""), table)


__all__ = (
    "Schema",
)
