"""
Lexer

Rust Pattern: rustc_lexer::tokenize

Converts source text into a lazy, finite token sequence ending with a single
EOF token. Lexing is restartable from any character offset: `token_at(offset)`
depends only on the source text and the offset it is given, and each token's
`location.end` is the offset of the next lexing step.
"""

import bisect
import logging
from typing import Iterator, List, Tuple

from .tokens import (
    KEYWORDS,
    MULTI_CHAR_OPERATORS,
    NUMERIC_SUFFIXES,
    PUNCTUATION,
    SINGLE_CHAR_OPERATORS,
    Token,
    TokenKind,
)
from ..shared.errors import LexError
from ..shared.source_location import SourceLocation
from ..utils.config import DEFAULT_SOURCE_FILE

logger = logging.getLogger(__name__)

ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "0": "\0",
    "\\": "\\",
    '"': '"',
    "'": "'",
}

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF_")
_RADIX_DIGITS = {
    "x": (16, _HEX_DIGITS),
    "o": (8, frozenset("01234567_")),
    "b": (2, frozenset("01_")),
}


def _is_ident_start(c: str) -> bool:
    return c == "_" or c.isalpha()


def _is_ident_continue(c: str) -> bool:
    return c == "_" or c.isalnum()


class Lexer:
    """Source text → tokens. Holds no cursor: every call takes an explicit offset."""

    def __init__(self, source: str, source_file: str = DEFAULT_SOURCE_FILE):
        self.source = source
        self.source_file = source_file
        self._line_starts = [0]
        for index, ch in enumerate(source):
            if ch == "\n":
                self._line_starts.append(index + 1)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def tokens(self, offset: int = 0) -> Iterator[Token]:
        """Lazily yield tokens from `offset` through the EOF token."""
        while True:
            token = self.token_at(offset)
            yield token
            if token.kind == TokenKind.EOF:
                return
            offset = token.location.end

    def token_at(self, offset: int) -> Token:
        """Lex the single token that starts at or after `offset`."""
        src = self.source
        pos = self._skip_trivia(offset)
        if pos >= len(src):
            return Token(TokenKind.EOF, "", self._span(pos, pos))

        c = src[pos]
        if _is_ident_start(c):
            return self._lex_word(pos)
        if c.isdigit():
            return self._lex_number(pos)
        if c == '"':
            return self._lex_string(pos)
        if c == "'":
            return self._lex_char(pos)
        for op in MULTI_CHAR_OPERATORS:
            if src.startswith(op, pos):
                end = pos + len(op)
                kind = TokenKind.PUNCTUATION if op == "::" else TokenKind.OPERATOR
                return Token(kind, op, self._span(pos, end))
        if c in PUNCTUATION:
            return Token(TokenKind.PUNCTUATION, c, self._span(pos, pos + 1))
        if c in SINGLE_CHAR_OPERATORS:
            return Token(TokenKind.OPERATOR, c, self._span(pos, pos + 1))
        raise LexError(f"unknown start of token: {c!r}", self._span(pos, pos + 1), character=c)

    # ------------------------------------------------------------------
    # Positions
    # ------------------------------------------------------------------

    def _line_col(self, offset: int) -> Tuple[int, int]:
        line_index = bisect.bisect_right(self._line_starts, offset) - 1
        return line_index + 1, offset - self._line_starts[line_index] + 1

    def _span(self, start: int, end: int) -> SourceLocation:
        line, column = self._line_col(start)
        end_line, end_column = self._line_col(end)
        return SourceLocation(
            file=self.source_file,
            line=line,
            column=column,
            start=start,
            end=end,
            end_line=end_line,
            end_column=end_column,
        )

    # ------------------------------------------------------------------
    # Whitespace and comments
    # ------------------------------------------------------------------

    def _skip_trivia(self, pos: int) -> int:
        src = self.source
        while pos < len(src):
            c = src[pos]
            if c.isspace():
                pos += 1
            elif src.startswith("//", pos):
                newline = src.find("\n", pos)
                pos = len(src) if newline < 0 else newline + 1
            elif src.startswith("/*", pos):
                pos = self._skip_block_comment(pos)
            else:
                break
        return pos

    def _skip_block_comment(self, start: int) -> int:
        src = self.source
        depth = 0
        pos = start
        while pos < len(src):
            if src.startswith("/*", pos):
                depth += 1
                pos += 2
            elif src.startswith("*/", pos):
                depth -= 1
                pos += 2
                if depth == 0:
                    return pos
            else:
                pos += 1
        raise LexError("unterminated block comment", self._span(start, start + 2), character="/")

    # ------------------------------------------------------------------
    # Token rules
    # ------------------------------------------------------------------

    def _lex_word(self, start: int) -> Token:
        src = self.source
        pos = start + 1
        while pos < len(src) and _is_ident_continue(src[pos]):
            pos += 1
        word = src[start:pos]
        kind = TokenKind.KEYWORD if word in KEYWORDS else TokenKind.IDENTIFIER
        return Token(kind, word, self._span(start, pos))

    def _consume_digits(self, pos: int, allowed) -> int:
        src = self.source
        while pos < len(src) and src[pos] in allowed:
            pos += 1
        return pos

    def _lex_number(self, start: int) -> Token:
        src = self.source
        decimal = frozenset("0123456789_")

        if src[start] == "0" and start + 1 < len(src) and src[start + 1] in _RADIX_DIGITS:
            radix, digits = _RADIX_DIGITS[src[start + 1]]
            pos = self._consume_digits(start + 2, digits)
            body = src[start + 2:pos].replace("_", "")
            if not body:
                raise LexError("no valid digits found for number", self._span(start, pos), character=src[start])
            pos, suffix = self._lex_suffix(pos)
            if suffix and suffix.startswith("f"):
                raise LexError(f"invalid suffix `{suffix}` for integer literal", self._span(start, pos))
            return Token(TokenKind.INTEGER, src[start:pos], self._span(start, pos),
                         value=int(body, radix), suffix=suffix)

        pos = self._consume_digits(start, decimal)
        is_float = False
        if pos < len(src) and src[pos] == ".":
            following = src[pos + 1] if pos + 1 < len(src) else ""
            if following.isdigit():
                is_float = True
                pos = self._consume_digits(pos + 1, decimal)
                if pos + 1 < len(src) and src[pos] == "." and src[pos + 1].isdigit():
                    raise LexError("malformed numeric literal: more than one decimal point",
                                   self._span(pos, pos + 1), character=".")
            elif following != "." and not _is_ident_start(following):
                # `1.` is a float literal; `1..2` and `1.abs()` are not
                is_float = True
                pos += 1
        if pos < len(src) and src[pos] in "eE":
            exp = pos + 1
            if exp < len(src) and src[exp] in "+-":
                exp += 1
            if exp < len(src) and src[exp].isdigit():
                is_float = True
                pos = self._consume_digits(exp, decimal)

        digits_end = pos
        pos, suffix = self._lex_suffix(pos)
        if suffix and suffix.startswith("f"):
            is_float = True
        elif suffix and is_float:
            raise LexError(f"invalid suffix `{suffix}` for float literal", self._span(start, pos))

        text = src[start:digits_end].replace("_", "")
        if is_float:
            return Token(TokenKind.FLOAT, src[start:pos], self._span(start, pos), value=float(text), suffix=suffix)
        return Token(TokenKind.INTEGER, src[start:pos], self._span(start, pos), value=int(text), suffix=suffix)

    def _lex_suffix(self, pos: int):
        src = self.source
        if pos >= len(src) or not _is_ident_start(src[pos]):
            return pos, None
        end = pos
        while end < len(src) and _is_ident_continue(src[end]):
            end += 1
        suffix = src[pos:end]
        if suffix not in NUMERIC_SUFFIXES:
            raise LexError(f"invalid suffix `{suffix}` for number literal", self._span(pos, end),
                           character=src[pos], help="valid suffixes are `i32`, `u8`, `f64`, ...")
        return end, suffix

    def _lex_escape(self, pos: int, quote_start: int) -> Tuple[str, int]:
        """Decode the escape whose backslash is at `pos`."""
        src = self.source
        if pos + 1 >= len(src):
            raise self._unterminated(quote_start)
        ch = src[pos + 1]
        if ch not in ESCAPES:
            raise LexError(f"unknown character escape: `{ch}`", self._span(pos, pos + 2), character=ch,
                           help="supported escapes are \\\\ \\\" \\' \\n \\t \\r \\0")
        return ESCAPES[ch], pos + 2

    def _unterminated(self, start: int) -> LexError:
        quote = self.source[start]
        what = "double quote string" if quote == '"' else "character literal"
        return LexError(f"unterminated {what}", self._span(start, start + 1), character=quote)

    def _lex_string(self, start: int) -> Token:
        src = self.source
        pos = start + 1
        chars: List[str] = []
        while True:
            if pos >= len(src):
                raise self._unterminated(start)
            c = src[pos]
            if c == '"':
                pos += 1
                break
            if c == "\\":
                decoded, pos = self._lex_escape(pos, start)
                chars.append(decoded)
            else:
                chars.append(c)
                pos += 1
        return Token(TokenKind.STRING, src[start:pos], self._span(start, pos), value="".join(chars))

    def _lex_char(self, start: int) -> Token:
        src = self.source
        pos = start + 1
        if pos >= len(src):
            raise self._unterminated(start)
        c = src[pos]
        if c == "'":
            raise LexError("empty character literal", self._span(start, pos + 1), character="'")
        if c == "\\":
            decoded, pos = self._lex_escape(pos, start)
        else:
            decoded, pos = c, pos + 1
        if pos >= len(src) or src[pos] != "'":
            raise self._unterminated(start)
        pos += 1
        return Token(TokenKind.CHAR, src[start:pos], self._span(start, pos), value=decoded)


def tokenize(source: str, source_file: str = DEFAULT_SOURCE_FILE) -> List[Token]:
    """Lex the whole unit eagerly (tests and tooling)."""
    tokens = list(Lexer(source, source_file).tokens())
    logger.debug(f"Lexed {len(tokens)} tokens from {source_file}")
    return tokens
