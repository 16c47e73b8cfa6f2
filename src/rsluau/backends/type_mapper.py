"""
Type Mapper

Pure lookup from a source primitive (or the shape of a literal) to the target
representational kind. No inference: an expression that is not a literal has
no kind here, and the generator then emits no annotation.
"""

from typing import Dict, Optional

from ..shared.errors import GenError
from ..shared.nodes import Expression, LiteralKind, NodeType, TypeAnnotation
from ..shared.types import SourceType, TargetKind, UnaryOp

TYPE_MAP: Dict[SourceType, TargetKind] = {
    **{t: TargetKind.NUMBER for t in SourceType if t.is_integer or t.is_float},
    SourceType.BOOL: TargetKind.BOOLEAN,
    SourceType.CHAR: TargetKind.STRING,
    SourceType.STR: TargetKind.STRING,
    SourceType.STRING: TargetKind.STRING,
    SourceType.UNIT: TargetKind.NONE,
}

_LITERAL_KINDS: Dict[LiteralKind, TargetKind] = {
    LiteralKind.INTEGER: TargetKind.NUMBER,
    LiteralKind.FLOAT: TargetKind.NUMBER,
    LiteralKind.BOOL: TargetKind.BOOLEAN,
    LiteralKind.STRING: TargetKind.STRING,
    LiteralKind.CHAR: TargetKind.STRING,
    LiteralKind.UNIT: TargetKind.NONE,
}


def map_source_type(source_type: SourceType) -> TargetKind:
    return TYPE_MAP[source_type]


def map_annotation(annotation: Optional[TypeAnnotation]) -> TargetKind:
    """
    Target kind of a declared type. An absent annotation is the unit type.

    Raises GenError for any name outside the primitive set.
    """
    if annotation is None:
        return TargetKind.NONE
    primitive = annotation.primitive
    if primitive is None:
        raise GenError(
            f"unsupported type `{annotation.name}`",
            annotation.location,
            construct=f"type `{annotation.name}`",
            help="only primitive integer, float, bool, char, str and String types are supported",
        )
    return TYPE_MAP[primitive]


def infer_literal_kind(expr: Expression) -> Optional[TargetKind]:
    """Literal-shape heuristic for un-annotated `let`: literal or negated numeric literal."""
    if expr.node_type == NodeType.UNARY_OP and expr.operator == UnaryOp.NEG:
        operand = expr.operand
        if operand.node_type == NodeType.LITERAL and operand.kind in (LiteralKind.INTEGER, LiteralKind.FLOAT):
            return TargetKind.NUMBER
        return None
    if expr.node_type == NodeType.LITERAL:
        return _LITERAL_KINDS[expr.kind]
    return None


def luau_annotation(kind: Optional[TargetKind]) -> Optional[str]:
    """Annotation text for a kind; None when nothing should be written."""
    if kind is None or kind == TargetKind.NONE:
        return None
    return kind.value
