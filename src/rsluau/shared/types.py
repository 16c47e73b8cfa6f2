"""
Type System

Rust Pattern: rustc_middle::ty::Ty (primitive subset only)

Source types are the closed set of Rust primitives the compiler accepts in
annotations. Target kinds are what a Luau value can represent. The mapping
between the two lives in backends/type_mapper.py.
"""

from enum import Enum
from typing import Optional


class SourceType(Enum):
    """Source primitive types - closed enumeration"""
    I8 = "i8"
    I16 = "i16"
    I32 = "i32"
    I64 = "i64"
    I128 = "i128"
    ISIZE = "isize"
    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    U64 = "u64"
    U128 = "u128"
    USIZE = "usize"
    F32 = "f32"
    F64 = "f64"
    BOOL = "bool"
    CHAR = "char"
    STR = "str"
    STRING = "String"
    UNIT = "()"

    @property
    def is_integer(self) -> bool:
        return self in INTEGER_TYPES

    @property
    def is_float(self) -> bool:
        return self in FLOAT_TYPES


INTEGER_TYPES = frozenset({
    SourceType.I8, SourceType.I16, SourceType.I32, SourceType.I64, SourceType.I128, SourceType.ISIZE,
    SourceType.U8, SourceType.U16, SourceType.U32, SourceType.U64, SourceType.U128, SourceType.USIZE,
})

FLOAT_TYPES = frozenset({SourceType.F32, SourceType.F64})

_SOURCE_TYPES_BY_NAME = {t.value: t for t in SourceType}


def lookup_source_type(name: str) -> Optional[SourceType]:
    """Source primitive for a type name, or None when it is not a primitive."""
    return _SOURCE_TYPES_BY_NAME.get(name)


class TargetKind(Enum):
    """
    Target representational kinds.

    Luau has a single numeric representation, so every integer width and
    float collapses to NUMBER. NONE is the unit/no-value kind: it is never
    written as an annotation and never assigned.
    """
    NUMBER = "number"
    BOOLEAN = "boolean"
    STRING = "string"
    NONE = "nil"


# ============================================================================
# AST Operator Enums (for AST nodes, not type system)
# ============================================================================

class BinaryOp(Enum):
    """Binary operators - compile-time checked enum"""
    # Arithmetic
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"

    # Comparison
    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="

    # Logical
    AND = "&&"
    OR = "||"


class UnaryOp(Enum):
    """Unary operators - compile-time checked enum"""
    NOT = "!"
    NEG = "-"
    # Ownership operators, erased during generation
    REF = "&"
    REF_MUT = "&mut"
    DEREF = "*"


class AssignOp(Enum):
    """Assignment operators (statement level only)"""
    ASSIGN = "="
    ADD_ASSIGN = "+="
    SUB_ASSIGN = "-="
    MUL_ASSIGN = "*="
    DIV_ASSIGN = "/="
    MOD_ASSIGN = "%="
