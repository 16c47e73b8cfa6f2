#!/usr/bin/env python3
"""
Tests for the source type -> target kind mapping.
"""

import pytest
from rsluau.backends.type_mapper import (
    TYPE_MAP,
    infer_literal_kind,
    luau_annotation,
    map_annotation,
    map_source_type,
)
from rsluau.shared.errors import GenError
from rsluau.shared.nodes import Identifier, Literal, LiteralKind, TypeAnnotation, UnaryExpression
from rsluau.shared.types import SourceType, TargetKind, UnaryOp


class TestTypeMapper:
    """Every primitive maps to exactly one kind."""

    @pytest.mark.parametrize("name", ["i8", "i16", "i32", "i64", "i128", "isize",
                                      "u8", "u16", "u32", "u64", "u128", "usize", "f32", "f64"])
    def test_numbers(self, name):
        assert map_annotation(TypeAnnotation(name)) == TargetKind.NUMBER

    @pytest.mark.parametrize("name, kind", [
        ("bool", TargetKind.BOOLEAN),
        ("char", TargetKind.STRING),
        ("str", TargetKind.STRING),
        ("String", TargetKind.STRING),
        ("()", TargetKind.NONE),
    ])
    def test_other_primitives(self, name, kind):
        assert map_annotation(TypeAnnotation(name)) == kind

    def test_map_is_total_over_source_types(self):
        assert set(TYPE_MAP) == set(SourceType)
        assert map_source_type(SourceType.U64) == TargetKind.NUMBER

    def test_absent_annotation_is_unit(self):
        assert map_annotation(None) == TargetKind.NONE

    @pytest.mark.parametrize("name", ["Vec<i32>", "Option<u8>", "HashMap<String, i32>", "[i32; 3]", "Self", "MyType"])
    def test_unsupported(self, name):
        with pytest.raises(GenError) as exc_info:
            map_annotation(TypeAnnotation(name))
        assert exc_info.value.message == f"unsupported type `{name}`"
        assert exc_info.value.construct == f"type `{name}`"

    def test_annotation_text(self):
        assert luau_annotation(TargetKind.NUMBER) == "number"
        assert luau_annotation(TargetKind.BOOLEAN) == "boolean"
        assert luau_annotation(TargetKind.STRING) == "string"
        assert luau_annotation(TargetKind.NONE) is None
        assert luau_annotation(None) is None


class TestLiteralKinds:
    """Kinds inferred from the shape of an un-annotated initializer."""

    @pytest.mark.parametrize("literal, kind", [
        (Literal(1, LiteralKind.INTEGER), TargetKind.NUMBER),
        (Literal(1.5, LiteralKind.FLOAT), TargetKind.NUMBER),
        (Literal(True, LiteralKind.BOOL), TargetKind.BOOLEAN),
        (Literal("c", LiteralKind.CHAR), TargetKind.STRING),
        (Literal("s", LiteralKind.STRING), TargetKind.STRING),
        (Literal(None, LiteralKind.UNIT), TargetKind.NONE),
    ])
    def test_literals(self, literal, kind):
        assert infer_literal_kind(literal) == kind

    def test_negated_number(self):
        assert infer_literal_kind(UnaryExpression(UnaryOp.NEG, Literal(3, LiteralKind.INTEGER))) == TargetKind.NUMBER

    def test_non_literals_have_no_kind(self):
        assert infer_literal_kind(Identifier("x")) is None
        assert infer_literal_kind(UnaryExpression(UnaryOp.NOT, Literal(True, LiteralKind.BOOL))) is None
        assert infer_literal_kind(UnaryExpression(UnaryOp.NEG, Identifier("x"))) is None
