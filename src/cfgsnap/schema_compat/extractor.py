"""
Structural extraction of FlatBuffers schemas.

Walks the token stream from ``lexer.tokenize()`` and reduces the schema to
a ``StructuralSnapshot``:

- ``enum Name : type { A = 0, B, ... }`` -> ordered ``(name, value)`` entries.
  Implicit values continue from the previous entry (first entry 0); in
  ``(bit_flags)`` enums the position is a bit index.
- ``table`` / ``struct Name { field: type ...; }`` -> ordered field names.
- ``union Name { A, ns.B, Alias: C }`` -> ordered variant names.

Extraction is structural only: types are not resolved and cross-references
are not checked. Declarations that are not enums, records or unions are
skipped; anything the extractor cannot classify is skipped too and recorded
as an ambiguity (logged, never fatal). Only lexical breakage (unterminated
comment or string, unbalanced braces) raises ``SchemaParseError``.

Usage::

    from cfgsnap.schema_compat.extractor import extract_structure

    snapshot = extract_structure(Path("config_snapshot.fbs").read_text())
"""

from __future__ import annotations

import logging
from typing import Optional

from cfgsnap.errors import SchemaParseError
from cfgsnap.schema_compat.lexer import Token, TokenKind, parse_int, tokenize
from cfgsnap.schema_compat.schema import EnumEntry, StructuralSnapshot

logger = logging.getLogger(__name__)

RECORD_KEYWORDS = frozenset({"table", "struct"})

# Declarations that carry no wire structure; skipped without complaint
NON_STRUCTURAL_KEYWORDS = frozenset({
    "namespace",
    "include",
    "native_include",
    "attribute",
    "root_type",
    "file_identifier",
    "file_extension",
    "rpc_service",
})


class SchemaExtractor:
    """Single-use parser state; call ``extract()`` once per source text."""

    def __init__(self) -> None:
        self.ambiguities: list[str] = []
        self._tokens: list[Token] = []
        self._pos = 0
        self._enums: dict[str, list[EnumEntry]] = {}
        self._records: dict[str, list[str]] = {}
        self._unions: dict[str, list[str]] = {}

    def extract(self, source: str) -> StructuralSnapshot:
        """Extract the structural snapshot of *source*.

        Raises:
            SchemaParseError: If the source is lexically invalid.
        """
        self._tokens = tokenize(source)
        self._pos = 0

        while not self._at_end():
            tok = self._peek()
            if tok.is_ident("enum"):
                self._parse_enum()
            elif tok.kind is TokenKind.IDENT and tok.text in RECORD_KEYWORDS:
                self._parse_record()
            elif tok.is_ident("union"):
                self._parse_union()
            elif tok.kind is TokenKind.IDENT and tok.text in NON_STRUCTURAL_KEYWORDS:
                logger.debug("Skipping '%s' declaration at line %d", tok.text, tok.line)
                self._skip_declaration()
            else:
                self._ambiguous(tok, "unrecognised declaration")
                self._skip_declaration()

        return StructuralSnapshot(
            enums=self._enums,
            records=self._records,
            unions=self._unions,
        )

    # -- declarations ---------------------------------------------------------

    def _parse_enum(self) -> None:
        start = self._advance()
        name = self._declaration_name(start)
        if name is None:
            return

        if self._match(":"):
            self._read_dotted_name()
        attrs = self._read_metadata()
        if not self._expect_body(start, name):
            return

        bit_flags = "bit_flags" in attrs
        entries: list[EnumEntry] = []
        position = -1
        while not self._at_end() and not self._peek().is_punct("}"):
            tok = self._peek()
            if tok.kind is not TokenKind.IDENT:
                self._ambiguous(tok, f"enum {name}: unexpected entry")
                self._skip_list_item()
                continue
            entry_name = self._advance().text
            explicit: Optional[int] = None
            if self._match("="):
                literal = self._advance_or_fail(f"enum {name}")
                explicit = parse_int(literal.text)
                if explicit is None:
                    self._ambiguous(literal, f"enum {name}: non-integer value")
                    self._skip_list_item()
                    continue
            self._read_metadata()
            position = explicit if explicit is not None else position + 1
            value = (1 << position) if bit_flags else position
            entries.append(EnumEntry(name=entry_name, value=value))
            if not self._match(","):
                break

        self._close_body(name)
        self._store(self._enums, name, entries, start)

    def _parse_record(self) -> None:
        start = self._advance()
        name = self._declaration_name(start)
        if name is None:
            return
        self._read_metadata()
        if not self._expect_body(start, name):
            return

        fields: list[str] = []
        while not self._at_end() and not self._peek().is_punct("}"):
            tok = self._peek()
            nxt = self._peek(1)
            if tok.kind is TokenKind.IDENT and nxt is not None and nxt.is_punct(":"):
                fields.append(tok.text)
            else:
                self._ambiguous(tok, f"{start.text} {name}: unexpected field")
            self._skip_field()

        self._close_body(name)
        self._store(self._records, name, fields, start)

    def _parse_union(self) -> None:
        start = self._advance()
        name = self._declaration_name(start)
        if name is None:
            return
        self._read_metadata()
        if not self._expect_body(start, name):
            return

        variants: list[str] = []
        while not self._at_end() and not self._peek().is_punct("}"):
            tok = self._peek()
            if tok.kind is not TokenKind.IDENT:
                self._ambiguous(tok, f"union {name}: unexpected member")
                self._skip_list_item()
                continue
            member = self._read_dotted_name()
            if self._match(":"):
                # Alias: Type -- the alias is the member's identity
                self._read_dotted_name()
            if self._match("="):
                self._advance_or_fail(f"union {name}")
            self._read_metadata()
            variants.append(member)
            if not self._match(","):
                break

        self._close_body(name)
        self._store(self._unions, name, variants, start)

    # -- helpers --------------------------------------------------------------

    def _declaration_name(self, keyword: Token) -> Optional[str]:
        tok = self._peek()
        if tok is None or tok.kind is not TokenKind.IDENT:
            self._ambiguous(keyword, f"'{keyword.text}' without a name")
            self._skip_declaration()
            return None
        return self._advance().text

    def _expect_body(self, keyword: Token, name: str) -> bool:
        if self._match("{"):
            return True
        self._ambiguous(keyword, f"{keyword.text} {name} has no body")
        self._skip_declaration()
        return False

    def _close_body(self, name: str) -> None:
        if not self._match("}"):
            if self._at_end():
                raise SchemaParseError(f"unterminated body of '{name}'")
            tok = self._peek()
            self._ambiguous(tok, f"{name}: trailing tokens in body")
            self._skip_to_close()
        # Optional trailing ';' after a body is tolerated
        self._match(";")

    def _store(self, target: dict, name: str, entries: list, keyword: Token) -> None:
        if name in target:
            self._ambiguous(keyword, f"'{name}' declared more than once; keeping the last")
        target[name] = entries

    def _read_dotted_name(self) -> str:
        tok = self._peek()
        if tok is None or tok.kind is not TokenKind.IDENT:
            return ""
        parts = [self._advance().text]
        while self._peek_is(".") and self._peek(1) is not None and self._peek(1).kind is TokenKind.IDENT:
            self._advance()
            parts.append(self._advance().text)
        return ".".join(parts)

    def _read_metadata(self) -> set[str]:
        """Consume an optional ``( ... )`` group and return its identifiers."""
        names: set[str] = set()
        if not self._peek_is("("):
            return names
        depth = 0
        while not self._at_end():
            tok = self._advance()
            if tok.is_punct("("):
                depth += 1
            elif tok.is_punct(")"):
                depth -= 1
                if depth == 0:
                    return names
            elif tok.kind is TokenKind.IDENT:
                names.add(tok.text)
        raise SchemaParseError("unterminated attribute list")

    def _skip_declaration(self) -> None:
        """Skip to the end of the current declaration: a ``;`` or a balanced block."""
        depth = 0
        start_line = self._peek().line if not self._at_end() else None
        while not self._at_end():
            tok = self._advance()
            if tok.is_punct("{"):
                depth += 1
            elif tok.is_punct("}"):
                if depth == 0:
                    raise SchemaParseError("unmatched '}'", tok.line)
                depth -= 1
                if depth == 0:
                    self._match(";")
                    return
            elif tok.is_punct(";") and depth == 0:
                return
        if depth > 0:
            raise SchemaParseError("unbalanced braces", start_line)

    def _skip_field(self) -> None:
        """Skip a field declaration up to and including its ``;``."""
        depth = 0
        while not self._at_end():
            tok = self._peek()
            if tok.is_punct("}") and depth <= 0:
                return
            if tok.kind is TokenKind.PUNCT and tok.text in "([{":
                depth += 1
            elif tok.kind is TokenKind.PUNCT and tok.text in ")]}":
                depth -= 1
            elif tok.is_punct(";") and depth <= 0:
                self._advance()
                return
            self._advance()

    def _skip_list_item(self) -> None:
        """Skip an enum/union item up to and including its ``,``."""
        while not self._at_end():
            tok = self._peek()
            if tok.is_punct("}"):
                return
            self._advance()
            if tok.is_punct(","):
                return

    def _skip_to_close(self) -> None:
        depth = 0
        while not self._at_end():
            tok = self._peek()
            if tok.is_punct("{"):
                depth += 1
            elif tok.is_punct("}"):
                if depth == 0:
                    self._advance()
                    return
                depth -= 1
            self._advance()
        raise SchemaParseError("unbalanced braces")

    def _ambiguous(self, tok: Optional[Token], what: str) -> None:
        if tok is None:
            note = f"{what} at end of input"
        else:
            note = f"{what} near {tok.text!r} (line {tok.line})"
        self.ambiguities.append(note)
        logger.info("Schema extraction ambiguity: %s", note)

    # -- cursor -----------------------------------------------------------------

    def _at_end(self) -> bool:
        return self._pos >= len(self._tokens)

    def _peek(self, offset: int = 0) -> Optional[Token]:
        idx = self._pos + offset
        if idx < len(self._tokens):
            return self._tokens[idx]
        return None

    def _peek_is(self, char: str) -> bool:
        tok = self._peek()
        return tok is not None and tok.is_punct(char)

    def _advance(self) -> Token:
        tok = self._tokens[self._pos]
        self._pos += 1
        return tok

    def _advance_or_fail(self, context: str) -> Token:
        if self._at_end():
            raise SchemaParseError(f"unexpected end of input in {context}")
        return self._advance()

    def _match(self, char: str) -> bool:
        if self._peek_is(char):
            self._pos += 1
            return True
        return False


def extract_structure(source: str) -> StructuralSnapshot:
    """Convenience wrapper: extract with a fresh ``SchemaExtractor``."""
    return SchemaExtractor().extract(source)
