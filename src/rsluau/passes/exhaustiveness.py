"""
Exhaustiveness Checking Pass

Rust Pattern: Rust Exhaustiveness Checking

Decides, per match expression, whether the arms cover every value, and which
arm becomes the final `else` of the lowered if/elseif chain. Coverage is
recognized in two forms only: a catch-all arm (`_`, a binding, or an
or-pattern containing `_`), or boolean literal arms covering both `true` and
`false`. Every other match is treated as non-exhaustive and gets a runtime
error default branch.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from ..passes.base import BasePass, TyCtxt
from ..shared.nodes import (
    LiteralKind,
    MatchArm,
    MatchExpression,
    NodeType,
    Pattern,
    Program,
    is_catch_all,
    walk,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchCoverage:
    """
    Coverage result for one match expression.

    `else_index` is the arm lowered as the unconditional `else` branch (None
    when the match is not exhaustive); arms after it are unreachable.
    """
    else_index: Optional[int]
    arm_count: int

    @property
    def unreachable_arms(self) -> List[int]:
        if self.else_index is None:
            return []
        return list(range(self.else_index + 1, self.arm_count))


class ExhaustivenessResults:
    """Per-match coverage keyed by node identity (AST nodes are unhashable)."""

    def __init__(self) -> None:
        self._by_node: Dict[int, MatchCoverage] = {}

    def record(self, match_expr: MatchExpression, coverage: MatchCoverage) -> None:
        self._by_node[id(match_expr)] = coverage

    def coverage_for(self, match_expr: MatchExpression) -> MatchCoverage:
        coverage = self._by_node.get(id(match_expr))
        if coverage is None:
            # Matches built after the pass ran are checked on demand
            coverage = check_match(match_expr)
            self.record(match_expr, coverage)
        return coverage

    def __len__(self) -> int:
        return len(self._by_node)


class ExhaustivenessPass(BasePass):
    """
    Exhaustiveness checking pass.

    Checks if match expressions are exhaustive (cover all possible values).
    """
    requires = []

    def run(self, program: Program, tcx: TyCtxt) -> Program:
        results = ExhaustivenessResults()
        for node in walk(program):
            if node.node_type == NodeType.MATCH_EXPR:
                coverage = check_match(node)
                results.record(node, coverage)
                if coverage.unreachable_arms:
                    logger.debug(f"match at {node.location}: arms {coverage.unreachable_arms} are unreachable")
        tcx.set_analysis(ExhaustivenessPass, results)
        logger.debug(f"Checked {len(results)} match expressions")
        return program


def _bool_literals(pattern: Pattern) -> Set[bool]:
    if pattern.node_type == NodeType.LITERAL_PATTERN and pattern.literal.kind == LiteralKind.BOOL:
        return {bool(pattern.literal.value)}
    if pattern.node_type == NodeType.OR_PATTERN:
        out: Set[bool] = set()
        for alt in pattern.alternatives:
            out |= _bool_literals(alt)
        return out
    return set()


def check_match(match_expr: MatchExpression) -> MatchCoverage:
    """Coverage of one match expression, arms in source order."""
    arms: List[MatchArm] = match_expr.arms
    seen_bools: Set[bool] = set()
    for index, arm in enumerate(arms):
        if arm.guard is not None:
            # A guarded arm covers nothing for certain
            continue
        if is_catch_all(arm.pattern):
            return MatchCoverage(index, len(arms))
        seen_bools |= _bool_literals(arm.pattern)
        if seen_bools == {True, False}:
            return MatchCoverage(index, len(arms))
    return MatchCoverage(None, len(arms))
