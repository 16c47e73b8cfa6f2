"""
Compiler Driver

Rust Pattern: rustc_driver::driver
"""

import logging
from typing import List, Optional

from ..backends.luau import LuauBackend
from ..frontend.parser import Parser
from ..passes.base import PassManager, TyCtxt
from ..passes.exhaustiveness import ExhaustivenessPass
from ..passes.identifier_collection import IdentifierCollectionPass
from ..shared.errors import CompileError, Error
from ..shared.nodes import Program
from ..utils.config import DEFAULT_SOURCE_FILE

logger = logging.getLogger(__name__)


class CompilationResult:
    """
    Compilation result.

    `output` is the Luau text and is None whenever `success` is False;
    `program` is the AST when parsing got that far.
    """
    def __init__(
        self,
        success: bool = False,
        output: Optional[str] = None,
        program: Optional[Program] = None,
        tcx: Optional[TyCtxt] = None,
    ):
        self.success = success
        self.output = output if success else None
        self.program = program
        self.tcx = tcx

    @property
    def diagnostics(self) -> List[Error]:
        if self.tcx is None:
            return []
        return list(self.tcx.reporter.errors)

    def has_errors(self) -> bool:
        """True if compilation reported errors."""
        if self.tcx and self.tcx.reporter:
            return self.tcx.reporter.has_errors()
        return not self.success

    def get_errors(self) -> List[str]:
        """Rendered diagnostics, one string per error."""
        if self.tcx is None:
            return []
        return [self.tcx.reporter.format_error(e) for e in self.tcx.reporter.errors]


class CompilerDriver:
    """
    Compiler driver (Rust naming: rustc_driver::driver).

    - Orchestrates lexing/parsing, AST analysis passes and Luau codegen
    - Turns every stage failure into a diagnostic on the TyCtxt reporter
    - All-or-nothing: no partial output on failure
    - Stateless between calls, so one instance may be shared
    """

    def __init__(self, dump_ast: bool = False):
        self.dump_ast = dump_ast
        self.pass_manager = PassManager()
        self._register_passes()

    def _register_passes(self) -> None:
        self.pass_manager.register_pass(IdentifierCollectionPass)
        self.pass_manager.register_pass(ExhaustivenessPass)

    def parse(self, source: str, source_file: str = DEFAULT_SOURCE_FILE) -> Program:
        """Phase 1 only (source -> AST); raises LexError / ParseError."""
        return Parser(source, source_file).parse()

    def compile(
        self,
        source: str,
        source_file: str = DEFAULT_SOURCE_FILE,
        call_main: bool = False,
    ) -> CompilationResult:
        """
        Compile one unit of source text to Luau.

        Rust Pattern: rustc_driver::driver::compile_input()

        Phases:
        1. Lexing + parsing (source -> AST)
        2. AST analysis passes (identifier collection, match exhaustiveness)
        3. Codegen (AST -> Luau text)
        """
        tcx = TyCtxt({source_file: source})
        program: Optional[Program] = None
        try:
            program = self.parse(source, source_file)
            logger.debug(f"Parsed {source_file}: {len(program.items)} items")

            program = self.pass_manager.run_all(program, tcx, dump_ast=self.dump_ast)

            output = LuauBackend(tcx, call_main=call_main).codegen(program)
        except CompileError as e:
            logger.debug(f"Compilation of {source_file} failed: {e}")
            tcx.reporter.report(e.to_diagnostic())
            return CompilationResult(success=False, program=program, tcx=tcx)

        return CompilationResult(success=True, output=output, program=program, tcx=tcx)
