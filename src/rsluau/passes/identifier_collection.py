"""
Identifier Collection Pass

Records every identifier spelled anywhere in the compilation unit, so the
generator can allocate temporaries and renamed bindings that never collide
with a source name.
"""

import logging
from typing import FrozenSet, Set

from ..passes.base import BasePass, TyCtxt
from ..shared.nodes import NodeType, Program, walk

logger = logging.getLogger(__name__)


class IdentifierCollectionPass(BasePass):
    requires = []

    def run(self, program: Program, tcx: TyCtxt) -> Program:
        names = collect_identifiers(program)
        tcx.set_analysis(IdentifierCollectionPass, names)
        logger.debug(f"Collected {len(names)} source identifiers")
        return program


def collect_identifiers(program: Program) -> FrozenSet[str]:
    names: Set[str] = set()
    for node in walk(program):
        kind = node.node_type
        if kind in (NodeType.IDENTIFIER, NodeType.IDENTIFIER_PATTERN, NodeType.LET_STMT):
            names.add(node.name)
        elif kind in (NodeType.FUNCTION_DEF, NodeType.CLOSURE_EXPR):
            if kind == NodeType.FUNCTION_DEF:
                names.add(node.name)
            names.update(p.name for p in node.parameters)
        elif kind == NodeType.FOR_STMT:
            names.add(node.variable)
        elif kind == NodeType.PATH_EXPR:
            names.update(node.segments)
        elif kind == NodeType.UNSUPPORTED_ITEM and node.name:
            names.add(node.name)
    return frozenset(names)
