"""
Bindery input arguments and the boundary tokenizer.

The binder consumes (key, value) pairs and never looks at raw command-line text.
This module is the thin collaborator that produces those pairs:

- Token(key, value): one input argument; key is None for unnamed arguments.
- tokenize(argv): turn a command line into Tokens.

Token forms
- "-key:value"  -> Token("key", "value")   (value may be empty: "-key:")
- "-key"        -> Token("key", "true")    (bare switch, binds bool members)
- anything else -> Token(None, token)      ("file.txt", "-", "--", "-5", "")

Only the first ':' separates key and value, so "-path:C:\\tmp" keeps "C:\\tmp".
"""
import re
import shlex
from collections import namedtuple

Token = namedtuple("Token", ("key", "value"))
Token.__doc__ = """
one input argument: key is None (or empty) for unnamed arguments.
"""

_PATTERN = re.compile(r"-(?P<key>[^\W\d_][^:\s]*)(:(?P<value>.*))?", re.DOTALL)


def tokenize(argv, /):
    """
    Split a command line into Tokens.

    Parameters
    - argv: str | Iterable[str]
      a single string is split shell-style (shlex), an iterable is used as given
      (e.g., sys.argv[1:]).

    Returns
    - list[Token] in command-line order.
    """
    if isinstance(argv, str):
        argv = shlex.split(argv)

    tokens = []
    for token in argv:
        if not isinstance(token, str):
            raise TypeError("tokenize() arguments must be strings")
        if match := _PATTERN.fullmatch(token):
            value = match["value"]
            tokens.append(Token(match["key"], "true" if value is None else value))
        else:
            tokens.append(Token(None, token))
    return tokens


__all__ = (
    "Token",
    "tokenize",
)
