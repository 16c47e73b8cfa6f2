#!/usr/bin/env python3
"""
Tests for match lowering: patterns become an if/elseif chain, exhaustive
matches end in a plain `else`, and every other match gets a runtime error
default branch.
"""

import logging

from tests.test_utils import compile_error, compile_ok, lines


class TestMatchLowering:
    """Pattern tests and the default branch."""

    def test_exhaustive_bool_match(self, compiler):
        out = compile_ok(compiler, "fn f(b: bool) -> i32 { match b { true => 1, false => 2 } }")
        assert out == (
            "local function f(b: boolean): number\n"
            "    local _tmp1\n"
            "    if b == true then\n"
            "        _tmp1 = 1\n"
            "    else\n"
            "        _tmp1 = 2\n"
            "    end\n"
            "    return _tmp1\n"
            "end\n"
        )
        assert "UnhandledMatchError" not in out

    def test_non_exhaustive_match_raises_at_runtime(self, compiler):
        out = compile_ok(compiler, "fn f(n: i32) -> i32 { match n { 1 => 10, 2 => 20 } }")
        assert lines(out)[1:-1] == [
            "local _tmp1",
            "if n == 1 then",
            "_tmp1 = 10",
            "elseif n == 2 then",
            "_tmp1 = 20",
            "else",
            'error("UnhandledMatchError: no match arm for value at <test>:1:23")',
            "end",
            "return _tmp1",
        ]

    def test_binding_catch_all(self, compiler):
        out = compile_ok(compiler, "fn f(n: i32) -> i32 { match n { 0 => 1, other => other * 2 } }")
        assert lines(out)[1:-1] == [
            "local _tmp1",
            "if n == 0 then",
            "_tmp1 = 1",
            "else",
            "local other = n",
            "_tmp1 = other * 2",
            "end",
            "return _tmp1",
        ]

    def test_or_and_range_patterns(self, compiler):
        out = compile_ok(compiler, (
            "fn f(n: i32) -> i32 { match n { 1 | 2 => 10, 3..=5 => 20, 6..9 => 30, 0 | 10..=12 => 40, _ => 0 } }"
        ))
        assert lines(out)[1:-2] == [
            "local _tmp1",
            "if n == 1 or n == 2 then",
            "_tmp1 = 10",
            "elseif n >= 3 and n <= 5 then",
            "_tmp1 = 20",
            "elseif n >= 6 and n < 9 then",
            "_tmp1 = 30",
            "elseif n == 0 or (n >= 10 and n <= 12) then",
            "_tmp1 = 40",
            "else",
            "_tmp1 = 0",
            "end",
        ]

    def test_negative_and_string_literals(self, compiler):
        out = compile_ok(compiler, 'fn f(n: i32, s: &str) -> i32 { match n { -1 => match s { "a" => 1, _ => 2 }, _ => 3 } }')
        assert "if n == -1 then" in lines(out)
        assert 'if s == "a" then' in lines(out)

    def test_complex_scrutinee_is_evaluated_once(self, compiler):
        out = compile_ok(compiler, "fn f(n: i32) -> i32 { match n % 3 { 0 => 1, 1 => 2, _ => 3 } }")
        assert lines(out)[1:5] == [
            "local _tmp1",
            "local _tmp2 = n % 3",
            "if _tmp2 == 0 then",
            "_tmp1 = 1",
        ]
        assert "elseif _tmp2 == 1 then" in lines(out)

    def test_block_arm_with_statements(self, compiler):
        out = compile_ok(compiler, "fn f(n: i32) -> i32 { match n { 0 => { let t = 5; t * 2 } _ => n } }")
        assert lines(out)[2:6] == ["if n == 0 then", "local t: number = 5", "_tmp1 = t * 2", "else"]

    def test_match_statement_has_no_temporary(self, compiler):
        out = compile_ok(compiler, "fn f(n: i32) { match n { 1 => print(1), _ => {} } }")
        assert lines(out)[1:-1] == ["if n == 1 then", "print(1)", "else", "end"]

    def test_non_exhaustive_statement_still_errors(self, compiler):
        out = compile_ok(compiler, "fn f(n: i32) { match n { 1 => print(1), } }")
        assert lines(out)[1:4] == ["if n == 1 then", "print(1)", "else"]
        assert lines(out)[4].startswith('error("UnhandledMatchError')

    def test_leading_catch_all(self, compiler, caplog):
        with caplog.at_level(logging.WARNING):
            out = compile_ok(compiler, "fn f(n: i32) -> i32 { match n { _ => 1, 2 => 3 } }")
        assert lines(out)[1:-1] == ["local _tmp1", "do", "_tmp1 = 1", "end", "return _tmp1"]
        assert "unreachable match arm" in caplog.text

    def test_arms_after_exhaustive_bools_are_dropped(self, compiler):
        out = compile_ok(compiler, "fn f(b: bool) -> i32 { match b { false => 1, true => 2, _ => 3 } }")
        assert "_tmp1 = 3" not in lines(out)
        assert "if b == false then" in lines(out)

    def test_arm_binding_is_scoped_to_its_arm(self, compiler):
        out = compile_ok(compiler, "fn f(n: i32) -> i32 { let x = 1; match n { 0 => x, x => x + 1 } }")
        assert "local x_1 = n" in lines(out)
        assert "_tmp1 = x" in lines(out)
        assert "_tmp1 = x_1 + 1" in lines(out)

    def test_guard_rejected(self, compiler):
        error = compile_error(compiler, "fn f(n: i32) -> i32 { match n { 0 if n > 1 => 1, _ => 0 } }", "GenError")
        assert error.message == "match guards are not supported"

    def test_binding_in_or_pattern_rejected(self, compiler):
        error = compile_error(compiler, "fn f(n: i32) -> i32 { match n { 1 | x => x, } }", "GenError")
        assert error.message == "bindings in or-patterns are not supported"

    def test_return_arm_in_value_match(self, compiler):
        out = compile_ok(compiler, "fn f(x: i32) -> i32 { match x { 1 => return 5, _ => 2 } }")
        assert lines(out)[1:-1] == [
            "local _tmp1",
            "if x == 1 then",
            "return 5",
            "else",
            "_tmp1 = 2",
            "end",
            "return _tmp1",
        ]

    def test_loop_control_arms(self, compiler):
        out = compile_ok(compiler, "fn f(n: i32) { loop { match n { 0 => return, 1 => break, _ => continue } } }")
        assert lines(out)[1:-1] == [
            "while true do",
            "if n == 0 then",
            "return",
            "elseif n == 1 then",
            "break",
            "else",
            "continue",
            "end",
            "end",
        ]

    def test_break_arm_outside_loop(self, compiler):
        error = compile_error(compiler, "fn f(n: i32) { match n { _ => break } }", "ParseError")
        assert error.message == "`break` outside of a loop"
