"""
Canonical source printer

Rust Pattern: rustc_ast_pretty::pprust

Re-serializes an AST to source text that parses back to an equal tree:
binary operands fully parenthesized, four-space indentation, `;` after every
non-tail statement and `,` after every match arm.
"""

from typing import Callable, Dict, List

from ..shared.errors import RsLuauImplementationError
from ..shared.nodes import (
    BLOCK_LIKE,
    ASTNode,
    BlockExpression,
    Expression,
    FunctionDefinition,
    Literal,
    LiteralKind,
    NodeType,
    Parameter,
    Pattern,
    Program,
    Statement,
)
from ..shared.types import UnaryOp
from ..utils.config import INDENT_STRING

# Operands of a binary, unary or postfix form that must be wrapped in parens
_NEEDS_GROUPING = frozenset({NodeType.UNARY_OP, NodeType.RANGE, NodeType.CLOSURE_EXPR}) | BLOCK_LIKE

_STRING_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\t": "\\t", "\r": "\\r", "\0": "\\0"}


def _escape(text: str, quote: str) -> str:
    out = []
    for ch in text:
        if ch == quote:
            out.append("\\" + ch)
        elif ch in _STRING_ESCAPES and ch != '"':
            out.append(_STRING_ESCAPES[ch])
        else:
            out.append(ch)
    return "".join(out)


def print_literal(literal: Literal) -> str:
    """Source spelling of a literal (as written when known)."""
    if literal.raw is not None:
        return literal.raw
    if literal.kind == LiteralKind.UNIT:
        return "()"
    suffix = literal.suffix or ""
    if literal.kind == LiteralKind.BOOL:
        return "true" if literal.value else "false"
    if literal.kind == LiteralKind.STRING:
        return '"' + _escape(literal.value, '"') + '"'
    if literal.kind == LiteralKind.CHAR:
        return "'" + _escape(literal.value, "'") + "'"
    if literal.kind == LiteralKind.FLOAT:
        return repr(float(literal.value)) + suffix
    return str(literal.value) + suffix


class SourcePrinter:
    """AST -> canonical source text; one dispatch table per node family."""

    def __init__(self) -> None:
        self._expressions: Dict[NodeType, Callable[[Expression, int], str]] = {
            NodeType.LITERAL: lambda e, d: print_literal(e),
            NodeType.IDENTIFIER: lambda e, d: e.name,
            NodeType.BINARY_OP: self._binary,
            NodeType.UNARY_OP: self._unary,
            NodeType.FUNCTION_CALL: self._call,
            NodeType.BLOCK_EXPR: self._block,
            NodeType.IF_EXPR: self._if,
            NodeType.MATCH_EXPR: self._match,
            NodeType.RANGE: self._range,
            NodeType.CLOSURE_EXPR: self._closure,
            NodeType.PATH_EXPR: lambda e, d: "::".join(e.segments),
            NodeType.FIELD_ACCESS: lambda e, d: f"{self._postfix_operand(e.object, d)}.{e.field_name}",
            NodeType.METHOD_CALL: lambda e, d: (
                f"{self._postfix_operand(e.receiver, d)}.{e.method}({self._arguments(e.arguments, d)})"
            ),
            NodeType.INDEX_EXPR: lambda e, d: f"{self._postfix_operand(e.base, d)}[{self.expression(e.index, d)}]",
            NodeType.ARRAY_LITERAL: lambda e, d: f"[{self._arguments(e.elements, d)}]",
        }
        self._statements: Dict[NodeType, Callable[[Statement, int], str]] = {
            NodeType.FUNCTION_DEF: self._function,
            NodeType.UNSUPPORTED_ITEM: lambda s, d: f"{s.kind} {s.name};" if s.name else f"{s.kind};",
            NodeType.LET_STMT: self._let,
            NodeType.EXPR_STMT: lambda s, d: self.expression(s.expr, d) + ";",
            NodeType.ASSIGN_STMT: lambda s, d: (
                f"{s.target.name} {s.operator.value} {self.expression(s.value, d)};"
            ),
            NodeType.FOR_STMT: lambda s, d: (
                f"for {s.variable} in {self.expression(s.iterable, d)} {self._block(s.body, d)}"
            ),
            NodeType.WHILE_STMT: lambda s, d: f"while {self.expression(s.condition, d)} {self._block(s.body, d)}",
            NodeType.LOOP_STMT: lambda s, d: f"loop {self._block(s.body, d)}",
            NodeType.RETURN_STMT: lambda s, d: (
                "return;" if s.value is None else f"return {self.expression(s.value, d)};"
            ),
            NodeType.BREAK_STMT: lambda s, d: "break;",
            NodeType.CONTINUE_STMT: lambda s, d: "continue;",
        }

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def program(self, program: Program) -> str:
        return "\n\n".join(self.statement(item, 0) for item in program.items) + "\n"

    def statement(self, stmt: Statement, depth: int) -> str:
        handler = self._statements.get(stmt.node_type)
        if handler is None:
            raise RsLuauImplementationError(f"no printer for statement {stmt.node_type}")
        return handler(stmt, depth)

    def expression(self, expr: Expression, depth: int) -> str:
        handler = self._expressions.get(expr.node_type)
        if handler is None:
            raise RsLuauImplementationError(f"no printer for expression {expr.node_type}")
        return handler(expr, depth)

    def pattern(self, pattern: Pattern) -> str:
        kind = pattern.node_type
        if kind == NodeType.LITERAL_PATTERN:
            return print_literal(pattern.literal)
        if kind == NodeType.IDENTIFIER_PATTERN:
            return pattern.name
        if kind == NodeType.WILDCARD_PATTERN:
            return "_"
        if kind == NodeType.RANGE_PATTERN:
            op = "..=" if pattern.inclusive else ".."
            return f"{print_literal(pattern.start)}{op}{print_literal(pattern.end)}"
        if kind == NodeType.OR_PATTERN:
            return " | ".join(self.pattern(alt) for alt in pattern.alternatives)
        raise RsLuauImplementationError(f"no printer for pattern {kind}")

    # ------------------------------------------------------------------
    # Items and statements
    # ------------------------------------------------------------------

    def _parameter(self, param: Parameter) -> str:
        if param.type_annotation is None:
            return param.name
        return f"{param.name}: {param.type_annotation.name}"

    def _function(self, func: FunctionDefinition, depth: int) -> str:
        params = ", ".join(self._parameter(p) for p in func.parameters)
        ret = f" -> {func.return_type.name}" if func.return_type is not None else ""
        vis = "pub " if func.is_public else ""
        return f"{vis}fn {func.name}({params}){ret} {self._block(func.body, depth)}"

    def _let(self, stmt, depth: int) -> str:
        mut = "mut " if stmt.is_mutable else ""
        ann = f": {stmt.type_annotation.name}" if stmt.type_annotation is not None else ""
        return f"let {mut}{stmt.name}{ann} = {self.expression(stmt.value, depth)};"

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _operand(self, expr: Expression, depth: int) -> str:
        text = self.expression(expr, depth)
        if expr.node_type in _NEEDS_GROUPING:
            return f"({text})"
        return text

    def _postfix_operand(self, expr: Expression, depth: int) -> str:
        return self._operand(expr, depth)

    def _arguments(self, arguments: List[Expression], depth: int) -> str:
        return ", ".join(self.expression(arg, depth) for arg in arguments)

    def _binary(self, expr, depth: int) -> str:
        left = self._operand(expr.left, depth)
        right = self._operand(expr.right, depth)
        return f"({left} {expr.operator.value} {right})"

    def _unary(self, expr, depth: int) -> str:
        op = "&mut " if expr.operator == UnaryOp.REF_MUT else expr.operator.value
        return f"{op}{self._operand(expr.operand, depth)}"

    def _call(self, expr, depth: int) -> str:
        bang = "!" if expr.is_macro else ""
        return f"{self._postfix_operand(expr.callee, depth)}{bang}({self._arguments(expr.arguments, depth)})"

    def _range(self, expr, depth: int) -> str:
        start = self._operand(expr.start, depth) if expr.start is not None else ""
        end = self._operand(expr.end, depth) if expr.end is not None else ""
        op = "..=" if expr.inclusive else ".."
        return f"{start}{op}{end}"

    def _closure(self, expr, depth: int) -> str:
        params = ", ".join(self._parameter(p) for p in expr.parameters)
        return f"|{params}| {self.expression(expr.body, depth)}"

    def _block(self, block: BlockExpression, depth: int) -> str:
        if not block.statements and block.tail is None:
            return "{}"
        inner = INDENT_STRING * (depth + 1)
        lines = [inner + self.statement(stmt, depth + 1) for stmt in block.statements]
        if block.tail is not None:
            lines.append(inner + self.expression(block.tail, depth + 1))
        return "{\n" + "\n".join(lines) + "\n" + INDENT_STRING * depth + "}"

    def _if(self, expr, depth: int) -> str:
        text = f"if {self.expression(expr.condition, depth)} {self._block(expr.then_block, depth)}"
        if expr.else_branch is not None:
            text += f" else {self.expression(expr.else_branch, depth)}"
        return text

    def _match(self, expr, depth: int) -> str:
        inner = INDENT_STRING * (depth + 1)
        lines = []
        for arm in expr.arms:
            guard = f" if {self.expression(arm.guard, depth + 1)}" if arm.guard is not None else ""
            body = self.expression(arm.body, depth + 1)
            lines.append(f"{inner}{self.pattern(arm.pattern)}{guard} => {body},")
        return (f"match {self.expression(expr.scrutinee, depth)} {{\n"
                + "\n".join(lines) + "\n" + INDENT_STRING * depth + "}")


def print_program(program: Program) -> str:
    """Canonical source text for a whole program."""
    return SourcePrinter().program(program)


def print_node(node: ASTNode) -> str:
    """Canonical source text for a single statement or expression."""
    printer = SourcePrinter()
    if isinstance(node, Expression):
        return printer.expression(node, 0)
    return printer.statement(node, 0)
