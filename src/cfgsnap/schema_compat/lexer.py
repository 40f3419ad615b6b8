"""
Tokenizer for the FlatBuffers interface definition language.

Produces a flat list of ``Token`` objects: identifiers (dotted names are
split by ``.`` punctuation), integer/float literals, string literals and
single-character punctuation. Whitespace, ``//`` line comments and
``/* */`` block comments are dropped, so braces inside comments or strings
never reach the parser.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from cfgsnap.errors import SchemaParseError

PUNCTUATION = frozenset("{}()[]:;,=.<>")


class TokenKind(str, Enum):
    IDENT = "ident"
    NUMBER = "number"
    STRING = "string"
    PUNCT = "punct"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    line: int

    def is_punct(self, char: str) -> bool:
        return self.kind is TokenKind.PUNCT and self.text == char

    def is_ident(self, word: str | None = None) -> bool:
        if self.kind is not TokenKind.IDENT:
            return False
        return word is None or self.text == word


def _is_ident_start(ch: str) -> bool:
    return ch.isalpha() or ch == "_"


def _is_ident_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def tokenize(source: str) -> list[Token]:
    """Split schema source text into tokens.

    Raises:
        SchemaParseError: On an unterminated comment or string literal, or
            a character that cannot start any token.
    """
    tokens: list[Token] = []
    i = 0
    line = 1
    n = len(source)

    while i < n:
        ch = source[i]

        if ch == "\n":
            line += 1
            i += 1
            continue
        if ch.isspace():
            i += 1
            continue

        # Comments
        if source.startswith("//", i):
            end = source.find("\n", i)
            i = n if end == -1 else end
            continue
        if source.startswith("/*", i):
            end = source.find("*/", i + 2)
            if end == -1:
                raise SchemaParseError("unterminated block comment", line)
            line += source.count("\n", i, end)
            i = end + 2
            continue

        if ch == '"':
            start_line = line
            j = i + 1
            while j < n and source[j] != '"':
                if source[j] == "\\":
                    j += 1
                elif source[j] == "\n":
                    line += 1
                j += 1
            if j >= n:
                raise SchemaParseError("unterminated string literal", start_line)
            tokens.append(Token(TokenKind.STRING, source[i + 1:j], start_line))
            i = j + 1
            continue

        if _is_ident_start(ch):
            j = i + 1
            while j < n and _is_ident_char(source[j]):
                j += 1
            tokens.append(Token(TokenKind.IDENT, source[i:j], line))
            i = j
            continue

        # Numbers, including a leading sign, hex / float forms and signed inf / nan
        if ch.isdigit() or (
            ch in "+-"
            and i + 1 < n
            and (source[i + 1].isdigit() or _is_ident_start(source[i + 1]))
        ):
            j = i + 1
            while j < n and (source[j].isalnum() or source[j] in "._"):
                j += 1
            tokens.append(Token(TokenKind.NUMBER, source[i:j], line))
            i = j
            continue

        if ch in PUNCTUATION:
            tokens.append(Token(TokenKind.PUNCT, ch, line))
            i += 1
            continue

        raise SchemaParseError(f"unexpected character {ch!r}", line)

    return tokens


def parse_int(text: str) -> int | None:
    """Parse an integer literal (decimal or hex, optionally signed).

    Returns ``None`` for anything that is not an integer literal.
    """
    # base 0 rejects leading zeros ("010"), which flatc reads as decimal
    for base in (0, 10):
        try:
            return int(text, base)
        except ValueError:
            continue
    return None
