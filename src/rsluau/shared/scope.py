"""
Scope resolution for code generation.

A stack of scopes, each scope is source name -> Binding in declaration order.
define = declare in the innermost scope (shadowing), lookup = innermost to
outermost. Each binding carries the name it is emitted under.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Generator, List, Optional

from .source_location import SourceLocation


class ScopeKind(Enum):
    MODULE = "module"
    FUNCTION = "function"
    BLOCK = "block"
    LOOP = "loop"
    BRANCH = "branch"
    ARM = "arm"


class BindingType(Enum):
    FUNCTION = "function"
    PARAMETER = "parameter"
    VARIABLE = "variable"
    LOOP_VARIABLE = "loop_variable"
    PATTERN = "pattern"


@dataclass
class Binding:
    """One name binding (value in scope dict)."""
    name: str
    binding_type: BindingType
    emitted_name: str
    scope: Scope
    location: Optional[SourceLocation] = None


@dataclass
class Scope:
    """
    One scope level.
    Single map: name -> Binding. define() overwrites (shadow); lookup() inner->outer.
    """

    parent: Optional[Scope]
    kind: ScopeKind
    _bindings: Dict[str, Binding] = field(default_factory=dict)

    def lookup(self, name: str) -> Optional[Binding]:
        """Innermost binding of name along the scope chain."""
        if name in self._bindings:
            return self._bindings[name]
        if self.parent is not None:
            return self.parent.lookup(name)
        return None

    def defined_in_this_scope(self, name: str) -> bool:
        return name in self._bindings

    def define(self, name: str, binding: Binding) -> None:
        """Set name in this scope; overwrites if present."""
        self._bindings[name] = binding


class ScopeManager:
    """
    Scope stack. enter_scope = push, exit_scope = pop.
    lookup/define operate on current (innermost) scope.
    """

    def __init__(self) -> None:
        self._stack: List[Scope] = []
        self._current: Optional[Scope] = None

    def enter_scope(self, kind: ScopeKind, parent: Optional[Scope] = None) -> Scope:
        p = parent if parent is not None else self._current
        scope = Scope(parent=p, kind=kind)
        self._stack.append(scope)
        self._current = scope
        return scope

    def exit_scope(self) -> None:
        if not self._stack:
            raise RuntimeError("Cannot exit scope: no active scope")
        self._stack.pop()
        self._current = self._stack[-1] if self._stack else None

    @contextmanager
    def scope(self, kind: ScopeKind, parent: Optional[Scope] = None) -> Generator[Scope, None, None]:
        """Context manager: enter on __enter__, exit on __exit__ (with self.scope())."""
        s = self.enter_scope(kind, parent)
        try:
            yield s
        finally:
            self.exit_scope()

    def current_scope(self) -> Optional[Scope]:
        return self._current

    def lookup(self, name: str) -> Optional[Binding]:
        """Resolve name in current scope chain."""
        if self._current is None:
            return None
        return self._current.lookup(name)

    def define(self, name: str, binding_type: BindingType, emitted_name: str,
               location: Optional[SourceLocation] = None) -> Binding:
        """Declare name in the innermost scope under emitted_name."""
        if self._current is None:
            raise RuntimeError("Cannot define: no active scope")
        binding = Binding(name, binding_type, emitted_name, self._current, location)
        self._current.define(name, binding)
        return binding
