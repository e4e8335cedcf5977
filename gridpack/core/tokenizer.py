"""Tokenizer for free-form extra installer arguments.

Grammar
-------
- Tokens are separated by runs of whitespace.
- A double-quoted segment is copied verbatim, embedded whitespace
  included, without the surrounding quotes.  It joins with any unquoted
  characters directly next to it: ``--opt="a b"`` -> ``--opt=a b``.
- ``""`` on its own produces an empty token.
- There are no escape sequences; single quotes are ordinary characters.
- An unterminated double quote is an error.

Examples::

    >>> split_args('--index-url https://pkgs.example/simple --trusted-host pkgs.example')
    ['--index-url', 'https://pkgs.example/simple', '--trusted-host', 'pkgs.example']
    >>> split_args('--extra-index-url "https://mirror.example/my index"')
    ['--extra-index-url', 'https://mirror.example/my index']
"""

from __future__ import annotations

from gridpack.core.errors import InvalidRequest

_QUOTE = '"'


def split_args(text: str | None) -> list[str]:
    """Split *text* into installer arguments per the module grammar."""
    if not text:
        return []

    tokens: list[str] = []
    current: list[str] = []
    in_token = False
    in_quotes = False
    quote_start = -1

    for index, char in enumerate(text):
        if in_quotes:
            if char == _QUOTE:
                in_quotes = False
            else:
                current.append(char)
        elif char == _QUOTE:
            in_quotes = True
            in_token = True
            quote_start = index
        elif char.isspace():
            if in_token:
                tokens.append("".join(current))
                current = []
                in_token = False
        else:
            current.append(char)
            in_token = True

    if in_quotes:
        raise InvalidRequest(
            f"Unterminated double quote at offset {quote_start} in installer arguments",
            value=text,
        )
    if in_token:
        tokens.append("".join(current))
    return tokens
