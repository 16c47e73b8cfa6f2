"""
Indented line buffer for emitted Luau text.
"""

from contextlib import contextmanager
from typing import Iterator, List

from ..utils.config import INDENT_STRING


class IndentManager:
    """Tracks the current nesting level and collects indented lines."""

    def __init__(self, indent_str: str = INDENT_STRING):
        self.indent_str = indent_str
        self.level = 0
        self.lines: List[str] = []

    def increase(self) -> None:
        self.level += 1

    def decrease(self) -> None:
        if self.level > 0:
            self.level -= 1

    def get_indent(self) -> str:
        return self.indent_str * self.level

    @contextmanager
    def indented(self) -> Iterator[None]:
        self.increase()
        try:
            yield
        finally:
            self.decrease()

    def add_line(self, line: str) -> None:
        self.lines.append(f"{self.get_indent()}{line}" if line else "")

    def render(self) -> str:
        return "\n".join(self.lines) + "\n" if self.lines else ""
