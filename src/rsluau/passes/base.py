"""
Base Pass System

Rust Pattern: rustc_mir::transform::MirPass
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Set, Type

from ..shared.errors import ErrorReporter
from ..shared.nodes import Program

logger = logging.getLogger(__name__)


class TyCtxt:
    """
    Compilation context - single source of truth for per-compilation state
    (Rust naming: rustc_middle::ty::TyCtxt).

    - Analysis results stored here (not in passes), keyed by pass class
    - Passes read the AST and write only here; the AST is never rewritten
    - One TyCtxt per `compile()` call; nothing is shared between compilations
    """

    def __init__(self, source_files: Dict[str, str] = None):
        self.source_files: Dict[str, str] = dict(source_files or {})
        self.reporter: ErrorReporter = ErrorReporter(self.source_files)
        self._analysis_results: Dict[Type['BasePass'], Any] = {}

    def has_analysis(self, pass_class: Type['BasePass']) -> bool:
        return pass_class in self._analysis_results

    def get_analysis(self, pass_class: Type['BasePass']) -> Any:
        """Get analysis results from a pass"""
        if pass_class not in self._analysis_results:
            raise RuntimeError(f"Analysis {pass_class.__name__} not available")
        return self._analysis_results[pass_class]

    def set_analysis(self, pass_class: Type['BasePass'], results: Any) -> None:
        """Store analysis results"""
        self._analysis_results[pass_class] = results


class BasePass(ABC):
    """
    Base class for all AST analysis passes.

    Rust Pattern: rustc_mir::transform::MirPass

    - Explicit dependencies via `requires`
    - Pass results stored in TyCtxt (not in pass)
    - The program is returned unchanged; passes never mutate their input
    """
    requires: List[Type['BasePass']] = []  # Dependencies (empty by default)

    @abstractmethod
    def run(self, program: Program, tcx: TyCtxt) -> Program:
        raise NotImplementedError


class PassManager:
    """
    Pass manager with dependency resolution.

    Rust Pattern: rustc driver with pass scheduling

    - Automatic dependency resolution (topological sort)
    - Passes run in dependency order
    - Single TyCtxt shared across all passes
    """

    def __init__(self):
        self.passes: List[Type[BasePass]] = []
        self._dependency_graph: Dict[Type[BasePass], Set[Type[BasePass]]] = {}

    def register_pass(self, pass_class: Type[BasePass]) -> None:
        """Register a pass"""
        self.passes.append(pass_class)
        self._dependency_graph[pass_class] = set(pass_class.requires)

    def run_all(self, program: Program, tcx: TyCtxt, dump_ast: bool = False) -> Program:
        """
        Run all passes in dependency order.

        Args:
            program: Parsed program
            tcx: Compilation context
            dump_ast: If True, log the AST S-expression after each pass (DEBUG)
        """
        for pass_class in self._topological_sort():
            pass_name = pass_class.__name__
            logger.debug(f"Running {pass_name}")
            program = pass_class().run(program, tcx)
            if dump_ast:
                from ..shared.serialization import serialize_ast
                logger.debug(f"After {pass_name}:\n{serialize_ast(program)}")
        return program

    def _topological_sort(self) -> List[Type[BasePass]]:
        """Topological sort of passes by dependencies"""
        in_degree = {p: len(self._dependency_graph[p]) for p in self.passes}
        queue = [p for p, degree in in_degree.items() if degree == 0]
        result = []

        while queue:
            pass_class = queue.pop(0)
            result.append(pass_class)

            for other_pass in self.passes:
                if pass_class in self._dependency_graph[other_pass]:
                    in_degree[other_pass] -= 1
                    if in_degree[other_pass] == 0:
                        queue.append(other_pass)

        if len(result) != len(self.passes):
            raise RuntimeError("Circular dependency detected in passes")

        return result
