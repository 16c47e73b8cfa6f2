"""
Tokens

Rust Pattern: rustc_ast::token::Token
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from ..shared.source_location import SourceLocation


class TokenKind(Enum):
    KEYWORD = "keyword"
    IDENTIFIER = "identifier"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    CHAR = "char"
    OPERATOR = "operator"
    PUNCTUATION = "punctuation"
    EOF = "end of input"


KEYWORDS = frozenset({
    "as", "break", "const", "continue", "else", "enum", "false", "fn", "for",
    "if", "impl", "in", "let", "loop", "match", "mod", "move", "mut", "pub",
    "ref", "return", "self", "Self", "static", "struct", "trait", "true",
    "type", "use", "where", "while",
})

# Multi-character operators, longest first for greedy matching
MULTI_CHAR_OPERATORS = (
    "..=", "==", "!=", "<=", ">=", "&&", "||", "+=", "-=", "*=", "/=", "%=",
    "->", "=>", "::", "..",
)

SINGLE_CHAR_OPERATORS = frozenset("+-*/%<>!=&|.")

PUNCTUATION = frozenset("(){}[],;:#")

NUMERIC_SUFFIXES = (
    "i8", "i16", "i32", "i64", "i128", "isize",
    "u8", "u16", "u32", "u64", "u128", "usize",
    "f32", "f64",
)


@dataclass(frozen=True)
class Token:
    """
    A token with kind, raw source text and span.

    `value` is the decoded payload for literals (int, float or str) and
    `suffix` an explicit numeric type suffix.
    """
    kind: TokenKind
    text: str
    location: SourceLocation
    value: Optional[Union[int, float, str]] = None
    suffix: Optional[str] = field(default=None)

    def is_keyword(self, word: str) -> bool:
        return self.kind == TokenKind.KEYWORD and self.text == word

    def is_symbol(self, symbol: str) -> bool:
        return self.kind in (TokenKind.OPERATOR, TokenKind.PUNCTUATION) and self.text == symbol

    def describe(self) -> str:
        """Human-readable form for diagnostics."""
        if self.kind == TokenKind.EOF:
            return "end of input"
        return f"`{self.text}`"
