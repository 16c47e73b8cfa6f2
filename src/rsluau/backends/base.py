"""
Backend Interface

Rust Pattern: rustc_codegen_ssa::traits::CodegenBackend
"""

from abc import ABC, abstractmethod

from ..shared.nodes import Program


class Backend(ABC):
    """
    Backend interface (Rust naming: rustc_codegen_ssa CodegenBackend).

    - Backend trusts the parsed AST and the analyses stored in TyCtxt
    - codegen is all-or-nothing: it returns the whole target text or raises
    """

    name: str = "backend"

    @abstractmethod
    def codegen(self, program: Program) -> str:
        """Generate target source text for a whole program."""
        raise NotImplementedError
