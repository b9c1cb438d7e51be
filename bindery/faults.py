"""
Bindery faults (binding errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every binding failure.
  Codes are grouped by the phase that detects them (schema construction,
  value application, session validation, caller policy).
- BindingException: base type carrying message + options that knows how to
  render itself through rich in a lowercased, actionable way.
- trigger(): central entry point to surface a fault (raise, or print and exit
  when running as a shell tool).
- getdoc(): optional description lookup for a code from the host application.

Taxonomy
- SchemaConflictError           two members declare the same key (construction)
- TypeMismatchError             target applied to an object of another type
- MissingRequiredArgumentError  a required target was never bound
- ValueCoercionError            malformed boolean literal
- SetterFailureError            the member write raised; original kept as __cause__
- UnmatchedArgumentsError       leftover arguments under the runner's strict policy

None of these are recovered internally; the binder performs no rollback, so
members written before a fault stay written.
"""
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the binder (stable identifiers).

    grouping
    - schema (211xx)
      • SCHEMA_CONFLICT
    - application (212xx / 214xx / 215xx)
      • TYPE_MISMATCH, VALUE_COERCION, SETTER_FAILURE
    - session (213xx)
      • MISSING_REQUIRED_ARGUMENT
    - caller policy (216xx)
      • UNMATCHED_ARGUMENTS

    normalize() lets the host remap numeric ids to friendlier labels while the
    numbers themselves stay stable.
    """
    # --- schema errors ---
    SCHEMA_CONFLICT             = 21101

    # --- application errors ---
    TYPE_MISMATCH               = 21201
    VALUE_COERCION              = 21401
    SETTER_FAILURE              = 21501

    # --- session errors ---
    MISSING_REQUIRED_ARGUMENT   = 21301

    # --- caller policy ---
    UNMATCHED_ARGUMENTS         = 21601

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__ to
        override numeric ids; without one the numeric value is used.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class BindingException(Exception):
    """
    base fault raised by schema construction and binding sessions.

    options
    - title, code, hint: presentation (header, stable code, one-line advice).
    - docs: longer help for the code (see getdoc), printed under the hint.
    - colorful, fancy: rendering switches (default colorful, plain layout).
    - shell: when triggered, print and exit instead of raising.
    - anything else is context (key, name, owner, value, arguments, ...).
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __getattr__(self, name):
        # context options double as read-only attributes (fault.key, fault.value, ...)
        try:
            return self.__dict__["options"][name]
        except KeyError:
            raise AttributeError(name) from None

    def __str__(self):
        return str(self.message) if self.message is not Unset else type(self).__name__

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
            "docs": "underline #00E5FF dim",  # code documentation footer
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", True)

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        prog = text(getattr(main, "__prog__", "bindery"), styler("prog-name"))

        code = self.options.get("code")
        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(code.normalize() if isinstance(code, FaultCode) else code, styler("code")),
            " | ",
            text(str(self.options.get("title", "binding error")).title(), styler("error-title")),
            " ]"
        )
        message = text(str(self), styler("error-message"))
        renders = [message]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))
        if docs := self.options.get("docs"):
            renders.append(text(docs, styler("docs")))

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        replaced = type(self)(self.message, **{**self.options, **overrides})
        replaced.__cause__ = self.__cause__
        return replaced


class SchemaConflictError(BindingException): ...
class TypeMismatchError(BindingException): ...
class MissingRequiredArgumentError(BindingException): ...
class ValueCoercionError(BindingException): ...
class SetterFailureError(BindingException): ...
class UnmatchedArgumentsError(BindingException): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see BindingException).
    - options are merged into a copy of the fault before triggering.
    - in shell mode the fault is rendered to stderr and the process exits with 1;
      otherwise the merged fault is raised.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ keyed by
    FaultCode; a missing entry yields None.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "BindingException",
    "SchemaConflictError",
    "TypeMismatchError",
    "MissingRequiredArgumentError",
    "ValueCoercionError",
    "SetterFailureError",
    "UnmatchedArgumentsError",
    "FaultCode",
    "trigger",
    "getdoc",
)
