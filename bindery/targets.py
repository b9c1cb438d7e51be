r"""
Bindery member specifications, decorators and bound targets.

Overview
- Specs (declared as class attributes, they are data descriptors)
  • Argument: a bindable member. With a key it is named (matched by "-key"),
    without one it is positional (matched by the next unnamed argument).
  • DefaultArgument: the "default" positional sub-kind; never takes a key.

- Decorators
  • @argument(...): build an Argument and bind a validating setter to it.
  • @default_argument(...): same for DefaultArgument.
  The setter receives (self, value), may raise to reject the value, and returns
  the value to store.

- Targets
  • Target: the immutable binding slot a Schema builds for each spec. It is bound
    to exactly one (owner, member name) pair and carries the write capability
    used by the binder (Target.apply).

Metadata (sanitized on construction)
- key: Unset | str without whitespace, ":" or a leading dash ("port", "log_level").
- required: bool.
- descr: Unset | str | Text (short help), non-empty when provided.
- type: Unset | bool | str. Unset defers to the member annotation, then to the
  decorated setter's value annotation, then to str.
- default: any value, returned by the descriptor until the member is bound.

Quick example:
    >>> from bindery import Argument, DefaultArgument, argument
    >>> class Options:
    ...     name = DefaultArgument(required=True, descr="service name")
    ...     verbose: bool = Argument("verbose", descr="chatty output")
    ...
    ...     @argument("port", descr="listening port")
    ...     def port(self, value):
    ...         if not value.isdigit():
    ...             raise ValueError("port must be numeric")
    ...         return value
"""
import functools
import inspect
import operator
import re

from rich.text import Text

from .faults import FaultCode, TypeMismatchError, ValueCoercionError, SetterFailureError, getdoc
from .utils import *


class ArgumentType(type):
    """
    Metaclass giving specs and targets a stable, introspectable surface.

    Responsibilities
    - Derive __typename__ from the class name (camel-case split with hyphens),
      used in messages ("default-argument 'descr' cannot be empty").
    - Expose every name listed in __introspectable__ as a read-only property
      mirroring the private "_{name}" field.
    - Provide stable __repr__/__rich_repr__ implementations for diagnostics.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - argument(key='port', required=False, descr=None, ...)
            """
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize and validate spec metadata.

    Rules
    - key: Unset or a non-empty string (trimmed) without whitespace or ':' and not
      starting with '-'; the leading dash belongs to the command line, not to the key.
    - required: must be a bool.
    - descr: Unset, or a non-empty str/Text after trimming. Unset becomes None.
    - type: Unset, bool or str. Anything else is outside the binder's coercions.

    Raises
    - TypeError: wrong metadata types.
    - ValueError: empty strings or malformed keys.

    Notes
    - Mutates the provided metadata dict in place.
    """
    if not isinstance(key := metadata["key"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'key' must be a string")
    elif isinstance(key, str):
        if not (key := key.strip()):
            raise ValueError(f"{cls.__typename__} 'key' cannot be empty")
        if not re.fullmatch(r"[^\s:-][^\s:]*", key):
            raise ValueError(
                f"{cls.__typename__} 'key' must not contain whitespace or ':' nor start with '-' "
                f"(got {key!r})"
            )
    metadata["key"] = coalesce(key)

    if not isinstance(metadata["required"], bool):
        raise TypeError(f"{cls.__typename__} 'required' must be a bool")

    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)

    if metadata["type"] is not Unset and metadata["type"] not in (bool, str):
        raise TypeError(f"{cls.__typename__} 'type' must be bool or str")


def _resolve_type(spec, /):
    """
    Internal: decide the value kind (bool or str) of a spec.

    Order: explicit 'type', the member annotation on the declaring class, the
    annotation of the decorated setter's value parameter, then str. Only bool
    is special; any other annotation binds the raw string unchanged.
    """
    if spec._type is not Unset:
        return spec._type

    candidates = []
    if spec._owner is not Unset:
        candidates.append(inspect.get_annotations(spec._owner).get(spec._name, Unset))
    if spec._callback is not Unset:
        parameters = list(inspect.signature(spec._callback).parameters.values())
        if len(parameters) >= 2:
            candidates.append(parameters[1].annotation)

    for annotation in candidates:
        if annotation is bool or annotation in ("bool", "builtins.bool"):
            return bool
        if annotation not in (Unset, inspect.Parameter.empty):
            return str
    return str


class Argument(metaclass=ArgumentType):
    """
    Bindable member specification (named or positional).

    An Argument is a data descriptor: reading it on an instance returns the bound
    value (or its default until bound), writing it stores the value, running the
    decorated setter first when one was attached through @argument(...).

    Highlights
    - key present: named member, matched case-insensitively by "-key".
    - key absent: positional member, matched in declaration order.
    - required members must be bound in every session.
    """

    __introspectable__ = (
        "key",
        "required",
        "descr",
        "type",
        "default",
        "name",
        "owner",
    )

    def __new__(
            cls,
            key=Unset,
            /,
            *,
            required=False,
            descr=Unset,
            type=Unset,
            default=None,
    ):
        """
        Construct an Argument spec.

        Parameters
        - key: Unset | str
          Command-line key without its dash. Omit for a positional member.
        - required: bool
          Whether every binding session must bind this member.
        - descr: Unset | str
          Short description for the usage table. Unset becomes None.
        - type: Unset | bool | str
          Value kind; Unset defers to annotations (see _resolve_type).
        - default: Any
          Value returned by the descriptor until the member is bound.
        """
        metadata = {
            "key": key,
            "required": required,
            "descr": descr,
            "type": type,
            "default": default,
        }
        _sanitize_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        self._name = Unset  # set by __set_name__
        self._owner = Unset
        self._callback = Unset  # bound by the decorators
        return self

    def __set_name__(self, owner, name):
        if self._name is not Unset and self._name != name:
            raise TypeError(
                f"{type(self).__typename__} cannot be bound twice ({self._name!r} and {name!r})"
            )
        self._name = name
        self._owner = owner

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return instance.__dict__.get(self._name, self._default)

    def __set__(self, instance, value):
        if self._callback is not Unset:
            value = self._callback(instance, value)
        instance.__dict__[self._name] = value

    def __delete__(self, instance):
        instance.__dict__.pop(self._name, None)

    def bind(self, owner, /):
        """
        Build the Target for this member as seen from `owner`.

        The target is bound to `owner` itself (the schema's type), so a schema built
        for a subclass accepts instances of that subclass only.
        """
        if self._name is Unset:
            raise TypeError(f"{type(self).__typename__} must be declared as a class attribute")
        return Target(
            key=self._key,
            required=self._required,
            descr=self._descr,
            type=_resolve_type(self),
            name=self._name,
            owner=owner,
            default=isinstance(self, DefaultArgument),
            setter=self.__set__,
        )


class DefaultArgument(Argument):
    """
    Default positional member specification.

    Behaves like a keyless Argument: it receives one unnamed argument in
    declaration order. The sub-kind is kept on the Target (Target.default).
    """

    def __new__(cls, *, required=False, descr=Unset, type=Unset, default=None):
        return super().__new__(cls, required=required, descr=descr, type=type, default=default)


class Target(metaclass=ArgumentType):
    """
    Immutable binding slot produced by a Schema for one member.

    Fields
    - key: str | None (None for positional targets)
    - required, descr, type, name, owner, default (see Argument)

    The write capability (setter) is private; Target.apply is the only way to use
    it, and it always checks the instance type first.
    """

    __introspectable__ = (
        "key",
        "required",
        "descr",
        "type",
        "name",
        "owner",
        "default",
    )
    __displayable__ = ("key", "name", "required", "type", "default")

    def __init__(self, *, key, required, descr, type, name, owner, default, setter):
        self._key = key
        self._required = required
        self._descr = descr
        self._type = type
        self._name = name
        self._owner = owner
        self._default = default
        self._setter = setter

    @property
    def positional(self):
        return self._key is None

    @property
    def label(self):
        """
        Identifier used in messages: the key for named targets, the member name otherwise.
        """
        return self._name if self._key is None else self._key

    def apply(self, instance, value, /):
        """
        Write a raw argument value onto `instance`.

        Steps
        - exact type check: type(instance) must be the target's owner (subclasses and
          unrelated types are rejected with TypeMismatchError);
        - coercion: bool targets accept "true"/"false" in any casing, anything else
          raises ValueCoercionError; str targets receive the value unchanged;
        - write through the member's setter; any exception it raises is wrapped in
          SetterFailureError with the original as __cause__.
        """
        if type(instance) is not self._owner:
            raise TypeMismatchError(
                "cannot set member %r of type %r on an object of type %r" % (
                    self._name, self._owner.__name__, type(instance).__name__
                ),
                title="type mismatch",
                code=FaultCode.TYPE_MISMATCH,
                docs=getdoc(FaultCode.TYPE_MISMATCH),
                hint="pass an instance of %r to apply() or build a schema for %r" % (
                    self._owner.__name__, type(instance).__name__
                ),
                name=self._name,
                owner=self._owner,
                value=value,
            )

        if self._type is bool:
            match value.lower() if isinstance(value, str) else value:
                case "true":
                    value = True
                case "false":
                    value = False
                case _:
                    raise ValueCoercionError(
                        "bad boolean %r for argument %r" % (value, self.label),
                        title="invalid boolean",
                        code=FaultCode.VALUE_COERCION,
                        docs=getdoc(FaultCode.VALUE_COERCION),
                        hint="use 'true' or 'false'",
                        key=self._key,
                        name=self._name,
                        value=value,
                    )

        try:
            self._setter(instance, value)
        except Exception as exception:
            raise SetterFailureError(
                "error setting member %r on object %r with value %r" % (
                    self._name, self._owner.__name__, value
                ),
                title="rejected value",
                code=FaultCode.SETTER_FAILURE,
                docs=getdoc(FaultCode.SETTER_FAILURE),
                hint=str(exception) or type(exception).__name__,
                key=self._key,
                name=self._name,
                owner=self._owner,
                value=value,
            ) from exception


def argument(*args, **kwargs):
    """
    Decorator/factory for a member with a validating setter.

    Usage
        @argument("port", required=True, descr="listening port")
        def port(self, value):
            if not value.isdigit():
                raise ValueError("port must be numeric")
            return value

    Behavior
    - Validates that it decorates a callable and enforces single application.
    - Binds the function as the Argument's setter and returns the Argument, which
      then takes the function's place in the class body.
    """
    argument = Argument(*args, **kwargs)

    @rename("argument")
    def wrapper(callback, /):
        if not callable(callback):
            raise TypeError("@argument() must be applied to a callable")
        if argument._callback is not Unset:
            raise TypeError("@argument() must be applied only once")
        argument._callback = callback
        return argument

    return wrapper


def default_argument(*args, **kwargs):
    """
    Decorator/factory for a default positional member with a validating setter.

    See argument(); the only difference is the DefaultArgument sub-kind.
    """
    argument = DefaultArgument(*args, **kwargs)

    @rename("default_argument")
    def wrapper(callback, /):
        if not callable(callback):
            raise TypeError("@default_argument() must be applied to a callable")
        if argument._callback is not Unset:
            raise TypeError("@default_argument() must be applied only once")
        argument._callback = callback
        return argument

    return wrapper


__all__ = (
    # Classes (specifications and bound slots)
    "Argument",
    "DefaultArgument",
    "Target",

    # Decorators
    "argument",
    "default_argument",
)

# The metaclass is an implementation detail of the specs.
del ArgumentType
