"""
Source Location (Span)

Rust Pattern: rustc_span::Span
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SourceLocation:
    """
    Source location (Rust Span pattern).

    Rust Pattern: rustc_span::Span

    - File, 1-based line and column of the first character
    - 0-based character offsets `start`/`end` into the source text
    - Optional end line/column for multi-character spans
    - Immutable (frozen) for hashability
    """
    file: str
    line: int
    column: int
    start: int = 0
    end: int = 0
    end_line: int = 0
    end_column: int = 0

    def __str__(self) -> str:
        """Format as file:line:column (Rust pattern)"""
        return f"{self.file}:{self.line}:{self.column}"

    def to(self, other: "SourceLocation") -> "SourceLocation":
        """Span from the start of self to the end of other."""
        return SourceLocation(
            file=self.file,
            line=self.line,
            column=self.column,
            start=self.start,
            end=other.end,
            end_line=other.end_line or other.line,
            end_column=other.end_column or other.column,
        )
