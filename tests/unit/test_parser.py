#!/usr/bin/env python3
"""
Tests for the parser: AST shapes, operator precedence, the value-position
flag, and ParseError reporting.
"""

import pytest
from tests.test_utils import first_function_body, parse
from rsluau.shared.errors import LexError, ParseError
from rsluau.shared.nodes import (
    BinaryExpression,
    BlockExpression,
    ExpressionStatement,
    FunctionCall,
    FunctionDefinition,
    Identifier,
    IfExpression,
    LetStatement,
    Literal,
    LiteralKind,
    LiteralPattern,
    MatchExpression,
    NodeType,
    OrPattern,
    RangeExpression,
    RangePattern,
    UnaryExpression,
    UnsupportedItem,
    WildcardPattern,
)
from rsluau.shared.types import AssignOp, BinaryOp, UnaryOp


def tail_of(source):
    return first_function_body(source).tail


def int_lit(value):
    return Literal(value, LiteralKind.INTEGER)


class TestItems:
    """Top-level items."""

    def test_function_signature(self):
        func = parse("fn add(a: i32, b: f64) -> bool { true }").items[0]
        assert isinstance(func, FunctionDefinition)
        assert func.name == "add"
        assert [p.name for p in func.parameters] == ["a", "b"]
        assert [p.type_annotation.name for p in func.parameters] == ["i32", "f64"]
        assert func.return_type.name == "bool"
        assert func.returns_value

    def test_unit_function(self):
        func = parse("fn main() {}").items[0]
        assert func.return_type is None
        assert not func.returns_value
        assert func.body == BlockExpression([], None)

    def test_explicit_unit_return_type(self):
        func = parse("fn f() -> () {}").items[0]
        assert func.return_type.name == "()"
        assert not func.returns_value

    def test_references_are_erased_from_types(self):
        func = parse("fn f(s: &str, t: &mut String) {}").items[0]
        assert [p.type_annotation.name for p in func.parameters] == ["str", "String"]

    def test_generic_type_kept_verbatim(self):
        func = parse("fn f(v: Vec<i32>) {}").items[0]
        assert func.parameters[0].type_annotation.name == "Vec<i32>"

    def test_pub_and_attributes(self):
        program = parse("#[inline]\npub(crate) fn f() {}\n#![allow(dead_code)]\npub fn g() {}")
        assert [(f.name, f.is_public) for f in program.items] == [("f", True), ("g", True)]

    def test_unsupported_items_are_recorded(self):
        program = parse("struct P { x: i32 }\nuse std::fmt;\nfn main() {}")
        assert program.items[0] == UnsupportedItem("struct", "P")
        assert program.items[1].kind == "use"
        assert program.items[2].name == "main"

    def test_statement_at_top_level(self):
        with pytest.raises(ParseError, match="expected item") as exc_info:
            parse("let x = 1;")
        assert "top level" in exc_info.value.help_text


class TestExpressions:
    """Precedence climbing and primary forms."""

    def test_multiplication_binds_tighter(self):
        assert tail_of("fn f() -> i32 { 1 + 2 * 3 }") == BinaryExpression(
            int_lit(1), BinaryOp.ADD, BinaryExpression(int_lit(2), BinaryOp.MUL, int_lit(3)))

    def test_left_associative(self):
        a, b, c = Identifier("a"), Identifier("b"), Identifier("c")
        assert tail_of("fn f() -> i32 { a - b - c }") == BinaryExpression(
            BinaryExpression(a, BinaryOp.SUB, b), BinaryOp.SUB, c)

    def test_logical_levels(self):
        a, b, c = Identifier("a"), Identifier("b"), Identifier("c")
        assert tail_of("fn f() -> bool { a || b && c }") == BinaryExpression(
            a, BinaryOp.OR, BinaryExpression(b, BinaryOp.AND, c))

    def test_comparison_below_arithmetic(self):
        expr = tail_of("fn f() -> bool { x + 1 < y * 2 }")
        assert expr.operator == BinaryOp.LT
        assert expr.left.operator == BinaryOp.ADD
        assert expr.right.operator == BinaryOp.MUL

    def test_parentheses_override(self):
        expr = tail_of("fn f() -> i32 { (1 + 2) * 3 }")
        assert expr.operator == BinaryOp.MUL
        assert expr.left.operator == BinaryOp.ADD

    def test_unary_operators(self):
        expr = tail_of("fn f() -> bool { !-x == &y }")
        assert expr.operator == BinaryOp.EQ
        assert expr.left == UnaryExpression(UnaryOp.NOT, UnaryExpression(UnaryOp.NEG, Identifier("x")))
        assert expr.right == UnaryExpression(UnaryOp.REF, Identifier("y"))

    def test_mutable_reference(self):
        assert tail_of("fn f() -> i32 { &mut x }").operator == UnaryOp.REF_MUT

    def test_call_and_macro(self):
        body = first_function_body('fn f() { g(1, x); println!("{}", 2); }')
        call, macro = (stmt.expr for stmt in body.statements)
        assert isinstance(call, FunctionCall) and not call.is_macro
        assert call.callee_name == "g"
        assert len(call.arguments) == 2
        assert macro.is_macro
        assert macro.callee_name == "println"

    def test_postfix_forms(self):
        body = first_function_body("fn f() { a.b; a.m(1); a[0]; std::mem::swap(x, y); }")
        assert [stmt.expr.node_type for stmt in body.statements] == [
            NodeType.FIELD_ACCESS, NodeType.METHOD_CALL, NodeType.INDEX_EXPR, NodeType.FUNCTION_CALL,
        ]
        assert body.statements[3].expr.callee.segments == ["std", "mem", "swap"]

    def test_ranges(self):
        assert tail_of("fn f() { 0..n }") == RangeExpression(int_lit(0), Identifier("n"))
        assert tail_of("fn f() { 1..=n + 1 }").inclusive
        assert tail_of("fn f() { a.. }") == RangeExpression(Identifier("a"), None)
        assert tail_of("fn f() { ..5 }") == RangeExpression(None, int_lit(5))

    def test_inclusive_range_needs_end(self):
        with pytest.raises(ParseError, match="inclusive range with no end"):
            parse("fn f() { for i in 0..= {} }")

    def test_closure(self):
        body = first_function_body("fn f() { let g = |a, b: i32| a + b; let h = || 1; }")
        assert body.statements[0].value.node_type == NodeType.CLOSURE_EXPR
        assert [p.name for p in body.statements[0].value.parameters] == ["a", "b"]
        assert body.statements[1].value.parameters == []

    def test_literal_kinds(self):
        body = first_function_body("fn f() { let a = 1; let b = 2.5; let c = true; let d = 'c'; let e = \"s\"; }")
        assert [s.value.kind for s in body.statements] == [
            LiteralKind.INTEGER, LiteralKind.FLOAT, LiteralKind.BOOL, LiteralKind.CHAR, LiteralKind.STRING,
        ]

    def test_unit_literal(self):
        body = first_function_body("fn f() { let u: () = (); g(()); }")
        assert body.statements[0].value == Literal(None, LiteralKind.UNIT)
        assert body.statements[1].expr.arguments == [Literal(None, LiteralKind.UNIT)]

    def test_unit_literal_with_inner_space(self):
        assert tail_of("fn f() { ( ) }") == Literal(None, LiteralKind.UNIT)

    def test_loop_in_expression_position(self):
        with pytest.raises(ParseError) as exc_info:
            parse("fn f() { let x = loop { break; }; }")
        assert "statements" in exc_info.value.help_text


class TestStatements:
    """Block entries: statements versus the tail expression."""

    def test_let_forms(self):
        stmt = first_function_body("fn f() { let mut x: i64 = 5; }").statements[0]
        assert (stmt.name, stmt.is_mutable, stmt.type_annotation.name) == ("x", True, "i64")
        assert stmt.value == int_lit(5)

    def test_let_requires_initializer(self):
        with pytest.raises(ParseError) as exc_info:
            parse("fn f() { let x; }")
        assert exc_info.value.expected == ("=",)
        assert "initializer" in exc_info.value.help_text

    def test_assignment_operators(self):
        body = first_function_body("fn f() { x = 1; x += 2; x %= 3 }")
        assert [s.operator for s in body.statements] == [AssignOp.ASSIGN, AssignOp.ADD_ASSIGN, AssignOp.MOD_ASSIGN]
        assert body.tail is None

    def test_invalid_assignment_target(self):
        with pytest.raises(ParseError, match="invalid left-hand side of assignment"):
            parse("fn f() { 1 = 2; }")

    def test_tail_versus_statement(self):
        body = first_function_body("fn f() -> i32 { g(); 1 }")
        assert isinstance(body.statements[0], ExpressionStatement)
        assert body.tail == int_lit(1)

    def test_block_like_statement_without_semicolon(self):
        body = first_function_body("fn f() -> i32 { if c { g(); } let x = 1; x }")
        assert isinstance(body.statements[0], ExpressionStatement)
        assert isinstance(body.statements[0].expr, IfExpression)
        assert isinstance(body.statements[1], LetStatement)

    def test_else_if_chain(self):
        expr = tail_of("fn f() -> i32 { if a { 1 } else if b { 2 } else { 3 } }")
        assert isinstance(expr.else_branch, IfExpression)
        assert isinstance(expr.else_branch.else_branch, BlockExpression)

    def test_loops(self):
        body = first_function_body("fn f() { for i in 0..3 {} while x < 3 { x += 1; } loop { break; } }")
        assert [s.node_type for s in body.statements] == [
            NodeType.FOR_STMT, NodeType.WHILE_STMT, NodeType.LOOP_STMT,
        ]

    def test_missing_semicolon(self):
        with pytest.raises(ParseError) as exc_info:
            parse("fn f() {\n    let x = 1 let y = 2;\n}")
        error = exc_info.value
        assert error.expected == (";",)
        assert error.found == "`let`"
        assert (error.location.line, error.location.column) == (2, 15)

    def test_unclosed_block(self):
        with pytest.raises(ParseError, match="found end of input"):
            parse("fn f() { let x = 1;")

    def test_if_let_rejected(self):
        with pytest.raises(ParseError) as exc_info:
            parse("fn f() { if let x = y {} }")
        assert "match" in exc_info.value.help_text

    def test_lex_error_propagates_through_parser(self):
        with pytest.raises(LexError):
            parse('fn main() { let s = "abc; }')


class TestControlFlowPlacement:
    """`return`, `break` and `continue` are checked against their context."""

    def test_return_inside_function(self):
        body = first_function_body("fn f() -> i32 { return 1; }")
        assert body.statements[0].node_type == NodeType.RETURN_STMT
        assert body.statements[0].value == int_lit(1)

    def test_bare_return(self):
        stmt = first_function_body("fn f() { return; }").statements[0]
        assert stmt.value is None

    def test_break_outside_loop(self):
        with pytest.raises(ParseError, match="`break` outside of a loop"):
            parse("fn f() { break; }")

    def test_continue_outside_loop(self):
        with pytest.raises(ParseError, match="`continue` outside of a loop"):
            parse("fn f() { if x { continue; } }")

    def test_break_in_nested_if_inside_loop(self):
        parse("fn f() { loop { if x { break; } } }")

    def test_closure_body_is_not_inside_the_loop(self):
        with pytest.raises(ParseError, match="`break` outside of a loop"):
            parse("fn f() { loop { let g = || { break; }; } }")

    def test_break_with_value(self):
        with pytest.raises(ParseError) as exc_info:
            parse("fn f() { loop { break 1; } }")
        assert "does not take a value" in exc_info.value.help_text


class TestMatch:
    """Match arms and patterns."""

    def test_arms_and_patterns(self):
        expr = tail_of("fn f(n: i32) -> i32 { match n { 0 => 1, 1 | 2 => 2, 3..=9 => 3, -1 => 4, _ => 5 } }")
        assert isinstance(expr, MatchExpression)
        patterns = [arm.pattern for arm in expr.arms]
        assert patterns[0] == LiteralPattern(int_lit(0))
        assert patterns[1] == OrPattern([LiteralPattern(int_lit(1)), LiteralPattern(int_lit(2))])
        assert patterns[2] == RangePattern(int_lit(3), int_lit(9), inclusive=True)
        assert patterns[3] == LiteralPattern(int_lit(-1))
        assert patterns[3].literal.raw == "-1"
        assert patterns[4] == WildcardPattern()

    def test_block_arm_comma_optional(self):
        expr = tail_of("fn f(n: i32) -> i32 { match n { 0 => { 1 } _ => { 2 }, } }")
        assert len(expr.arms) == 2

    def test_guard_is_parsed(self):
        expr = tail_of("fn f(n: i32) -> i32 { match n { x if x > 0 => 1, _ => 0 } }")
        assert expr.arms[0].guard.operator == BinaryOp.GT

    def test_empty_match(self):
        with pytest.raises(ParseError, match="at least one arm"):
            parse("fn f(n: i32) { match n {} }")

    def test_missing_arrow(self):
        with pytest.raises(ParseError) as exc_info:
            parse("fn f(n: i32) -> i32 { match n { 0 -> 1 } }")
        assert exc_info.value.expected == ("=>",)

    def test_return_arm_becomes_block(self):
        expr = tail_of("fn f(x: i32) -> i32 { match x { 1 => return 5, _ => 2 } }")
        body = expr.arms[0].body
        assert isinstance(body, BlockExpression)
        assert body.tail is None
        assert [s.node_type for s in body.statements] == [NodeType.RETURN_STMT]
        assert body.statements[0].value == int_lit(5)
        assert expr.arms[1].body == int_lit(2)

    def test_bare_return_and_loop_control_arms(self):
        source = "fn f() { loop { match g() { 0 => return, 1 => break, _ => continue } } }"
        loop = first_function_body(source).statements[0]
        arms = loop.body.tail.arms
        assert [arm.body.statements[0].node_type for arm in arms] == [
            NodeType.RETURN_STMT, NodeType.BREAK_STMT, NodeType.CONTINUE_STMT,
        ]
        assert arms[0].body.statements[0].value is None

    def test_jump_arm_needs_comma(self):
        with pytest.raises(ParseError) as exc_info:
            parse("fn f(x: i32) -> i32 { match x { 1 => return 5 _ => 2 } }")
        assert exc_info.value.expected == (",",)

    def test_break_arm_outside_loop(self):
        with pytest.raises(ParseError, match="`break` outside of a loop"):
            parse("fn f(x: i32) { match x { _ => break } }")


class TestValuePosition:
    """Each expression records whether its value is consumed."""

    def test_expression_statement_is_effect(self):
        call = first_function_body("fn f() { g(x); }").statements[0].expr
        assert call.is_value is False
        assert call.arguments[0].is_value is True

    def test_let_initializer_and_branch_tails_are_values(self):
        body = first_function_body("fn f() -> i32 { let y = if c { 1 } else { 2 }; y }")
        value = body.statements[0].value
        assert value.is_value
        assert value.then_block.tail.is_value
        assert value.else_branch.tail.is_value
        assert body.tail.is_value

    def test_unit_function_tail_is_effect(self):
        tail = tail_of("fn f() { if c { g() } else { h() } }")
        assert tail.is_value is False
        assert tail.then_block.tail.is_value is False
        assert tail.else_branch.tail.is_value is False

    def test_value_function_tail_is_value(self):
        tail = tail_of("fn f(b: bool) -> i32 { match b { true => 1, false => 2 } }")
        assert tail.is_value
        assert all(arm.body.is_value for arm in tail.arms)

    def test_loop_body_tail_is_effect(self):
        loop = first_function_body("fn f() -> i32 { for i in 0..3 { g(i) } 0 }").statements[0]
        assert loop.body.tail.is_value is False

    def test_block_like_statement_is_effect(self):
        stmt = first_function_body("fn f() -> i32 { match x { _ => { g() } }; 1 }").statements[0]
        assert stmt.expr.is_value is False
        assert stmt.expr.arms[0].body.tail.is_value is False

    def test_match_scrutinee_and_condition_are_values(self):
        stmt = first_function_body("fn f() { if a { } match b { _ => {} } }").statements[0]
        assert stmt.expr.condition.is_value


class TestNesting:
    """Nesting depth is bounded."""

    def test_deep_parentheses(self):
        source = "fn f() -> i32 { " + "(" * 2000 + "1" + ")" * 2000 + " }"
        with pytest.raises(ParseError, match="expression nested too deeply") as exc_info:
            parse(source)
        assert (exc_info.value.location.line, exc_info.value.location.column) == (1, 80)
        assert "64 levels" in exc_info.value.help_text

    def test_deep_blocks(self):
        with pytest.raises(ParseError, match="nested too deeply"):
            parse("fn main() " + "{" * 200 + "}" * 200)

    def test_deep_unary_chain(self):
        with pytest.raises(ParseError, match="nested too deeply"):
            parse("fn f() -> bool { " + "!" * 2000 + "true }")

    def test_moderate_nesting_is_accepted(self):
        tail = tail_of("fn f() -> i32 { " + "(" * 40 + "1" + ")" * 40 + " }")
        assert tail == int_lit(1)

    def test_long_operator_chain_is_not_nesting(self):
        tail = tail_of("fn f() -> i32 { " + " + ".join(["1"] * 500) + " }")
        assert tail.operator == BinaryOp.ADD
        assert tail.right == int_lit(1)
