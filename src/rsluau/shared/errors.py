"""
Error Reporting

Rust Pattern: rustc_errors::Diagnostic
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .source_location import SourceLocation
from ..utils.config import ERROR_POINTER_CHAR


# ---------------------------------------------------------------------------
# ANSI color helpers (callers decide whether to colour)
# ---------------------------------------------------------------------------

_BOLD   = "\033[1m"
_RED    = "\033[31m"
_BLUE   = "\033[34m"
_CYAN   = "\033[36m"
_RESET  = "\033[0m"

def _style(text: str, *codes: str, color: bool = True) -> str:
    if not color:
        return text
    prefix = "".join(codes)
    return f"{prefix}{text}{_RESET}" if prefix else text


# ---------------------------------------------------------------------------
# Error dataclass
# ---------------------------------------------------------------------------

@dataclass
class Error:
    """
    Structured compiler diagnostic.

    Rust Pattern: rustc_errors::Diagnostic

    `kind` is the failing stage: LexError, ParseError or GenError.
    """
    message: str
    location: Optional[SourceLocation]
    kind: Optional[str] = None
    help: Optional[str] = None
    note: Optional[str] = None
    label: Optional[str] = None


# ---------------------------------------------------------------------------
# Formatting engine
# ---------------------------------------------------------------------------

def _format_diagnostic(
    error: Error,
    source_files: Dict[str, str],
    color: bool = False,
) -> str:
    """
    Render a single diagnostic in rustc style.

    Example output (plain, no color)::

        error[ParseError]: expected `;`, found `let`
         --> main.rs:2:15
          |
        2 |     let x = 1 let y = 2;
          |               ^^^ expected `;`
          |
          = help: statements end with `;`
    """
    out: List[str] = []

    # ---- header -----------------------------------------------------------
    kind_str = f"[{error.kind}]" if error.kind else ""
    out.append(
        _style(f"error{kind_str}", _BOLD, _RED, color=color)
        + _style(f": {error.message}", _BOLD, color=color)
    )

    # ---- location arrow ---------------------------------------------------
    if error.location is None:
        out.append(_style(" --> ", _BOLD, _BLUE, color=color) + "<unknown location>")
        _append_annotations(out, error, 1, color)
        return "\n".join(out)

    loc = error.location

    # ---- source snippet ---------------------------------------------------
    source = source_files.get(loc.file)
    if source is None:
        out.append(
            _style(" --> ", _BOLD, _BLUE, color=color)
            + f"{loc.file}:{loc.line}:{loc.column}"
        )
        _append_annotations(out, error, 1, color)
        return "\n".join(out)

    src_lines = source.split("\n")

    err_line = loc.line
    err_col = max(loc.column, 1)
    # Multi-line spans are reported on their first line only
    same_line = not loc.end_line or loc.end_line == err_line
    err_end_col = loc.end_column if same_line and loc.end_column else 0

    gw = max(len(str(err_line)), 1)

    out.append(_style(" " * gw + "--> ", _BOLD, _BLUE, color=color) + f"{loc.file}:{loc.line}:{loc.column}")
    out.append(_style(" " * (gw + 1) + "|", _BOLD, _BLUE, color=color))

    idx = err_line - 1
    code_line = src_lines[idx] if 0 <= idx < len(src_lines) else ""
    out.append(_style(str(err_line).rjust(gw) + " | ", _BOLD, _BLUE, color=color) + code_line)

    col_start = err_col - 1
    if err_end_col > err_col:
        span_len = err_end_col - err_col
    else:
        span_len = _guess_span(code_line, col_start)
    carets = " " * col_start + ERROR_POINTER_CHAR * max(1, span_len)
    label_suffix = f" {error.label}" if error.label else ""
    out.append(
        _style(" " * (gw + 1) + "| ", _BOLD, _BLUE, color=color)
        + _style(carets + label_suffix, _BOLD, _RED, color=color)
    )

    _append_annotations(out, error, gw, color)

    return "\n".join(out)


def _guess_span(code_line: str, col_start: int) -> int:
    """Guess token length when end_column is unavailable."""
    if col_start >= len(code_line):
        return 1
    rest = code_line[col_start:]
    length = 0
    for ch in rest:
        if ch in (" ", "\t", ";", ",", ")", "]", "}"):
            break
        length += 1
    return max(1, length)


def _append_annotations(
    out: List[str],
    error: Error,
    gw: int,
    color: bool,
) -> None:
    has_ann = error.help or error.note
    if not has_ann:
        return
    out.append(_style(" " * (gw + 1) + "|", _BOLD, _BLUE, color=color))
    pad = " " * (gw + 1)
    if error.help:
        out.append(
            _style(f"{pad}= ", _BOLD, _CYAN, color=color)
            + _style("help: ", _BOLD, color=color)
            + error.help
        )
    if error.note:
        out.append(
            _style(f"{pad}= ", _BOLD, _CYAN, color=color)
            + _style("note: ", _BOLD, color=color)
            + error.note
        )


# ---------------------------------------------------------------------------
# ErrorReporter
# ---------------------------------------------------------------------------

class ErrorReporter:
    """
    Error reporter with Rust-style formatting.

    Rust Pattern: rustc_errors::Emitter
    """

    def __init__(self, source_files: Dict[str, str]):
        self.source_files = source_files
        self.errors: List[Error] = []

    def report(self, error: Error) -> None:
        self.errors.append(error)

    def report_error(
        self,
        message: str,
        location: Optional[SourceLocation],
        kind: Optional[str] = None,
        help: Optional[str] = None,
        note: Optional[str] = None,
        label: Optional[str] = None,
    ) -> None:
        self.report(Error(
            message=message,
            location=location,
            kind=kind,
            help=help,
            note=note,
            label=label,
        ))

    def format_error(self, error: Error, color: bool = False) -> str:
        return _format_diagnostic(error, self.source_files, color=color)

    def format_all_errors(self, color: bool = False) -> str:
        parts = [self.format_error(e, color=color) for e in self.errors]
        parts.append(self._summary(color))
        return "\n\n".join(parts)

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def _summary(self, color: bool) -> str:
        count = len(self.errors)
        summary = f"aborting due to {count} previous error{'s' if count != 1 else ''}"
        return (
            _style("error", _BOLD, _RED, color=color)
            + _style(f": {summary}", _BOLD, color=color)
        )


# ============================================================================
# Exception Classes
# ============================================================================

class RsLuauError(Exception):
    """Base exception for all rsluau errors"""
    def __init__(self, message: str, location: Optional[SourceLocation] = None):
        super().__init__(message)
        self.message = message
        self.location = location

    def __str__(self):
        if self.location:
            return f"{self.location}: {self.message}"
        return self.message


class CompileError(RsLuauError):
    """
    Error in the user's source program.

    Each pipeline stage raises its own subclass; the driver turns it into a
    structured `Error` diagnostic via `to_diagnostic()`.
    """
    kind = "CompileError"

    def __init__(self,
                 message: str,
                 location: Optional[SourceLocation] = None,
                 help: Optional[str] = None,
                 note: Optional[str] = None,
                 label: Optional[str] = None):
        super().__init__(message, location)
        self.help_text = help
        self.note_text = note
        self.label_text = label

    def __str__(self):
        prefix = f"{self.location}: " if self.location else ""
        return f"{prefix}{self.kind}: {self.message}"

    def to_diagnostic(self) -> Error:
        return Error(
            message=self.message,
            location=self.location,
            kind=self.kind,
            help=self.help_text,
            note=self.note_text,
            label=self.label_text,
        )


class LexError(CompileError):
    """Unrecognized character or malformed literal."""
    kind = "LexError"

    def __init__(self, message: str, location: Optional[SourceLocation] = None,
                 character: Optional[str] = None, help: Optional[str] = None):
        super().__init__(message, location, help=help)
        self.character = character


class ParseError(CompileError):
    """Token sequence violates the grammar."""
    kind = "ParseError"

    def __init__(self, message: str, location: Optional[SourceLocation] = None,
                 expected: Sequence[str] = (), found: Optional[str] = None,
                 help: Optional[str] = None):
        label = None
        if expected:
            label = "expected " + _join_expected(expected)
        super().__init__(message, location, help=help, label=label)
        self.expected: Tuple[str, ...] = tuple(expected)
        self.found = found


class GenError(CompileError):
    """AST construct with no defined lowering."""
    kind = "GenError"

    def __init__(self, message: str, location: Optional[SourceLocation] = None,
                 construct: Optional[str] = None, help: Optional[str] = None):
        super().__init__(message, location, help=help,
                         label=f"{construct} is not supported" if construct else None)
        self.construct = construct


def _join_expected(expected: Sequence[str]) -> str:
    items = [f"`{e}`" for e in expected]
    if len(items) == 1:
        return items[0]
    return ", ".join(items[:-1]) + f" or {items[-1]}"


class RsLuauImplementationError(Exception):
    """
    Error in Python implementation code (not the user's source program).

    Never use this for errors in user code - use a CompileError subclass instead.
    """
    def __init__(self, message: str, error_code: str = "E9999"):
        super().__init__(message)
        self.message = message
        self.error_code = error_code

    def __str__(self):
        return f"[{self.error_code}] {self.message}"
