"""
Luau Backend

Rust Pattern: rustc_codegen_ssa::mir::codegen_mir (single-pass lowering)

Lowers the AST to Luau text in one pass with no backtracking. Luau branches
are statements, so every `if`, `match` or block whose value is used is
hoisted: a fresh temporary is declared, the construct is lowered to
statements that assign it on every path, and the temporary stands in for the
expression. Declarations that would shadow a live binding, or that are
spelled like a Luau reserved word or a host global the emitted code calls,
are emitted under a fresh name. Functions are chunk locals; one that is
referenced before its definition is forward-declared.
"""

import logging
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence, Set

from .base import Backend
from .indent import IndentManager
from .type_mapper import infer_literal_kind, luau_annotation, map_annotation
from ..passes.base import TyCtxt
from ..passes.exhaustiveness import ExhaustivenessPass, ExhaustivenessResults
from ..passes.identifier_collection import IdentifierCollectionPass, collect_identifiers
from ..shared.errors import GenError, RsLuauImplementationError
from ..shared.nodes import (
    BLOCK_LIKE,
    BlockExpression,
    Expression,
    FunctionCall,
    FunctionDefinition,
    IfExpression,
    Literal,
    LiteralKind,
    MatchArm,
    MatchExpression,
    NodeType,
    Pattern,
    Program,
    RangeExpression,
    Statement,
    iter_child_nodes,
    walk,
)
from ..shared.scope import BindingType, ScopeKind, ScopeManager
from ..shared.types import AssignOp, BinaryOp, TargetKind, UnaryOp
from ..utils.config import (
    ENTRY_POINT_NAME,
    FORMAT_MACRO,
    FORMAT_PLACEHOLDER,
    HOST_PRINT_FUNCTION,
    LUAU_HOST_GLOBALS,
    LUAU_RESERVED_WORDS,
    PRINT_MACROS,
    RENAME_SEPARATOR,
    TEMP_PREFIX,
    UNHANDLED_MATCH_MARKER,
)

logger = logging.getLogger(__name__)


# Luau operator precedence, lowest to highest
PREC_OR = 1
PREC_AND = 2
PREC_COMPARE = 3  # every comparison shares one level
PREC_CONCAT = 4   # right-associative
PREC_ADD = 5
PREC_MUL = 6
PREC_UNARY = 7
PREC_ATOM = 10

LUAU_BINARY_OPS = {
    BinaryOp.ADD: ("+", PREC_ADD),
    BinaryOp.SUB: ("-", PREC_ADD),
    BinaryOp.MUL: ("*", PREC_MUL),
    BinaryOp.DIV: ("/", PREC_MUL),
    BinaryOp.MOD: ("%", PREC_MUL),
    BinaryOp.EQ: ("==", PREC_COMPARE),
    BinaryOp.NE: ("~=", PREC_COMPARE),
    BinaryOp.LT: ("<", PREC_COMPARE),
    BinaryOp.LE: ("<=", PREC_COMPARE),
    BinaryOp.GT: (">", PREC_COMPARE),
    BinaryOp.GE: (">=", PREC_COMPARE),
    BinaryOp.AND: ("and", PREC_AND),
    BinaryOp.OR: ("or", PREC_OR),
}

LUAU_COMPOUND_ASSIGN = {
    AssignOp.ASSIGN: "=",
    AssignOp.ADD_ASSIGN: "+=",
    AssignOp.SUB_ASSIGN: "-=",
    AssignOp.MUL_ASSIGN: "*=",
    AssignOp.DIV_ASSIGN: "/=",
    AssignOp.MOD_ASSIGN: "%=",
}

_DIVERGING = frozenset({NodeType.RETURN_STMT, NodeType.BREAK_STMT, NodeType.CONTINUE_STMT})

_UNSUPPORTED_EXPRESSIONS = {
    NodeType.CLOSURE_EXPR: ("closures are not supported", "closure"),
    NodeType.PATH_EXPR: ("paths are not supported", "path"),
    NodeType.FIELD_ACCESS: ("field access is not supported", "field access"),
    NodeType.METHOD_CALL: ("method calls are not supported", "method call"),
    NodeType.INDEX_EXPR: ("indexing is not supported", "index expression"),
    NodeType.ARRAY_LITERAL: ("array literals are not supported", "array literal"),
    NodeType.RANGE: ("range expressions are only supported as `for` loop iterables", "range expression"),
}

_LUAU_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\t": "\\t", "\r": "\\r", "\0": "\\000"}


def luau_string(value: str) -> str:
    """Double-quoted Luau string literal."""
    out = ['"']
    for ch in value:
        if ch in _LUAU_ESCAPES:
            out.append(_LUAU_ESCAPES[ch])
        elif ord(ch) < 32 or ord(ch) == 127:
            out.append(f"\\{ord(ch):03d}")
        else:
            out.append(ch)
    out.append('"')
    return "".join(out)


def luau_literal(literal: Literal) -> str:
    kind = literal.kind
    if kind == LiteralKind.UNIT:
        return "nil"
    if kind == LiteralKind.BOOL:
        return "true" if literal.value else "false"
    if kind in (LiteralKind.STRING, LiteralKind.CHAR):
        return luau_string(literal.value)
    if kind == LiteralKind.FLOAT:
        raw = literal.raw
        if raw is None:
            return repr(float(literal.value))
        if literal.suffix and raw.endswith(literal.suffix):
            raw = raw[:-len(literal.suffix)]
        return raw.replace("_", "")
    return str(literal.value)


def _is_unit(expr: Expression) -> bool:
    return expr.node_type == NodeType.LITERAL and expr.kind == LiteralKind.UNIT


def _forward_references(functions: Sequence[FunctionDefinition]) -> Set[str]:
    """Names of functions referenced from the body of an earlier function."""
    later = {func.name for func in functions}
    forward: Set[str] = set()
    for func in functions:
        later.discard(func.name)
        for node in walk(func.body):
            if node.node_type == NodeType.IDENTIFIER and node.name in later:
                forward.add(node.name)
    return forward


class Emitted(NamedTuple):
    """Luau expression text and the precedence of its outermost operator."""
    text: str
    precedence: int


class NameAllocator:
    """
    Fresh names for temporaries and renamed bindings.

    A generated name never equals a source identifier, a Luau reserved word,
    a host global or another generated name.
    """

    def __init__(self, source_names: Set[str]):
        self._taken: Set[str] = set(source_names) | LUAU_RESERVED_WORDS | LUAU_HOST_GLOBALS
        self._counters: Dict[str, int] = {}

    def _next(self, stem: str) -> str:
        n = self._counters.get(stem, 0)
        while True:
            n += 1
            candidate = f"{stem}{n}"
            if candidate not in self._taken:
                self._counters[stem] = n
                self._taken.add(candidate)
                return candidate

    def temp(self) -> str:
        return self._next(TEMP_PREFIX)

    def rename(self, name: str) -> str:
        return self._next(name + RENAME_SEPARATOR)


class LuauBackend(Backend):
    """
    AST -> Luau source text.

    One instance per compilation: it owns the scope stack, the name
    allocator and the output buffer.
    """

    name = "luau"

    def __init__(self, tcx: TyCtxt, call_main: bool = False):
        self.tcx = tcx
        self.call_main = call_main
        self.scopes = ScopeManager()
        self.out = IndentManager()
        self.names: Optional[NameAllocator] = None
        if tcx.has_analysis(ExhaustivenessPass):
            self.coverage: ExhaustivenessResults = tcx.get_analysis(ExhaustivenessPass)
        else:
            self.coverage = ExhaustivenessResults()

        self._expression_handlers: Dict[NodeType, Callable[[Expression], Emitted]] = {
            NodeType.LITERAL: lambda e: Emitted(luau_literal(e), PREC_ATOM),
            NodeType.IDENTIFIER: self._identifier,
            NodeType.BINARY_OP: self._binary,
            NodeType.UNARY_OP: self._unary,
            NodeType.FUNCTION_CALL: self._call,
            NodeType.BLOCK_EXPR: self._hoist,
            NodeType.IF_EXPR: self._hoist,
            NodeType.MATCH_EXPR: self._hoist,
        }
        self._statement_handlers: Dict[NodeType, Callable[[Statement], None]] = {
            NodeType.LET_STMT: self._let,
            NodeType.EXPR_STMT: lambda s: self._emit_effect(s.expr),
            NodeType.ASSIGN_STMT: self._assign,
            NodeType.FOR_STMT: self._for,
            NodeType.WHILE_STMT: self._while,
            NodeType.LOOP_STMT: self._loop,
            NodeType.RETURN_STMT: self._return,
            NodeType.BREAK_STMT: lambda s: self.out.add_line("break"),
            NodeType.CONTINUE_STMT: lambda s: self.out.add_line("continue"),
            NodeType.FUNCTION_DEF: self._nested_item,
            NodeType.UNSUPPORTED_ITEM: self._unsupported_item,
        }

    # =========================================================================
    # Program and functions
    # =========================================================================

    def codegen(self, program: Program) -> str:
        if self.tcx.has_analysis(IdentifierCollectionPass):
            source_names = self.tcx.get_analysis(IdentifierCollectionPass)
        else:
            source_names = collect_identifiers(program)
        self.names = NameAllocator(set(source_names))

        with self.scopes.scope(ScopeKind.MODULE):
            functions: List[FunctionDefinition] = []
            for item in program.items:
                if item.node_type != NodeType.FUNCTION_DEF:
                    self._unsupported_item(item)
                functions.append(item)
            # Functions may be called before their definition
            module_scope = self.scopes.current_scope()
            for func in functions:
                if module_scope.defined_in_this_scope(func.name):
                    raise GenError(f"the name `{func.name}` is defined multiple times", func.location)
                self._declare(func.name, BindingType.FUNCTION, func.location)

            forward = _forward_references(functions)
            if forward:
                names = [self.scopes.lookup(f.name).emitted_name for f in functions if f.name in forward]
                self.out.add_line(f"local {', '.join(names)}")
                self.out.add_line("")

            for index, func in enumerate(functions):
                if index:
                    self.out.add_line("")
                self._function(func, forward_declared=func.name in forward)

            if self.call_main:
                self._entry_point_call(functions)

        logger.debug(f"Generated {len(functions)} functions, {len(self.out.lines)} lines")
        return self.out.render()

    def _entry_point_call(self, functions: List[FunctionDefinition]) -> None:
        entry = next((f for f in functions if f.name == ENTRY_POINT_NAME), None)
        if entry is None:
            logger.warning(f"no `{ENTRY_POINT_NAME}` function; entry point call not emitted")
            return
        if entry.parameters:
            logger.warning(f"`{ENTRY_POINT_NAME}` takes parameters; entry point call not emitted")
            return
        self.out.add_line("")
        self.out.add_line(f"{self.scopes.lookup(ENTRY_POINT_NAME).emitted_name}()")

    def _function(self, func: FunctionDefinition, forward_declared: bool = False) -> None:
        emitted = self.scopes.lookup(func.name).emitted_name
        return_annotation = luau_annotation(map_annotation(func.return_type))
        with self.scopes.scope(ScopeKind.FUNCTION):
            params = []
            for param in func.parameters:
                annotation = luau_annotation(map_annotation(param.type_annotation))
                param_name = self._declare(param.name, BindingType.PARAMETER, param.location)
                params.append(f"{param_name}: {annotation}" if annotation else param_name)
            # `function f` assigns the forward-declared local
            keyword = "function" if forward_declared else "local function"
            header = f"{keyword} {emitted}({', '.join(params)})"
            if return_annotation:
                header += f": {return_annotation}"
            self.out.add_line(header)
            with self.out.indented():
                try:
                    self._emit_block_body(func.body, return_tail=func.returns_value)
                except RecursionError:
                    # Long operator chains parse iteratively but lower recursively
                    raise GenError(f"function `{func.name}` is nested too deeply to compile", func.location,
                                   construct="deeply nested expression") from None
            self.out.add_line("end")
        logger.debug(f"Lowered function `{func.name}` as `{emitted}`")

    def _nested_item(self, item: FunctionDefinition) -> None:
        raise GenError("nested function definitions are not supported", item.location,
                       construct="nested function")

    def _unsupported_item(self, item) -> None:
        raise GenError(f"`{item.kind}` items are not supported", item.location,
                       construct=f"`{item.kind}` item",
                       help="only free functions over primitive types can be compiled")

    # =========================================================================
    # Names
    # =========================================================================

    def _declare(self, name: str, binding_type: BindingType, location=None) -> str:
        """Bind name in the innermost scope; returns the name it is emitted under."""
        emitted = name
        if name in LUAU_RESERVED_WORDS or name in LUAU_HOST_GLOBALS \
                or self.scopes.lookup(name) is not None:
            emitted = self.names.rename(name)
            logger.debug(f"Renamed `{name}` to `{emitted}`")
        self.scopes.define(name, binding_type, emitted, location)
        return emitted

    def _new_temp(self) -> str:
        temp = self.names.temp()
        self.out.add_line(f"local {temp}")
        return temp

    def _spill(self, value: Emitted) -> Emitted:
        temp = self.names.temp()
        self.out.add_line(f"local {temp} = {value.text}")
        return Emitted(temp, PREC_ATOM)

    # =========================================================================
    # Blocks and statements
    # =========================================================================

    def _statement(self, stmt: Statement) -> None:
        handler = self._statement_handlers.get(stmt.node_type)
        if handler is None:
            raise RsLuauImplementationError(f"no lowering for statement {stmt.node_type}")
        handler(stmt)

    def _emit_block_body(self, block: BlockExpression, target: Optional[str] = None,
                         return_tail: bool = False) -> None:
        """
        Emit a block's statements into the current scope, then its tail:
        assigned to `target`, returned (`return_tail`), or run for effect.
        """
        statements = block.statements
        for index, stmt in enumerate(statements):
            self._statement(stmt)
            if stmt.node_type in _DIVERGING:
                following = statements[index + 1] if index + 1 < len(statements) else block.tail
                if following is not None:
                    logger.warning(f"{following.location}: unreachable code after "
                                   f"`{stmt.node_type.value.replace('_stmt', '')}` not emitted")
                return

        tail = block.tail
        if target is not None:
            if tail is None:
                self.out.add_line(f"{target} = nil")
            else:
                self._emit_into(tail, target)
        elif tail is not None:
            if return_tail and tail.is_value:
                value = self._expr(tail)
                self.out.add_line(f"return {value.text}")
            else:
                self._emit_effect(tail)

    def _let(self, stmt) -> None:
        value = self._expr(stmt.value)
        if stmt.type_annotation is not None:
            kind = map_annotation(stmt.type_annotation)
        else:
            kind = infer_literal_kind(stmt.value)

        if stmt.name == "_":
            self.out.add_line(f"local _ = {value.text}")
            return
        if kind == TargetKind.NONE:
            self._discard(stmt.value, value)
            self.out.add_line(f"local {self._declare(stmt.name, BindingType.VARIABLE, stmt.location)}")
            return

        name = self._declare(stmt.name, BindingType.VARIABLE, stmt.location)
        annotation = luau_annotation(kind)
        if annotation:
            self.out.add_line(f"local {name}: {annotation} = {value.text}")
        else:
            self.out.add_line(f"local {name} = {value.text}")

    def _assign(self, stmt) -> None:
        value = self._expr(stmt.value)
        target = self._resolve(stmt.target.name, stmt.target.location)
        self.out.add_line(f"{target} {LUAU_COMPOUND_ASSIGN[stmt.operator]} {value.text}")

    def _return(self, stmt) -> None:
        if stmt.value is None or _is_unit(stmt.value):
            self.out.add_line("return")
            return
        value = self._expr(stmt.value)
        self.out.add_line(f"return {value.text}")

    def _for(self, stmt) -> None:
        iterable = stmt.iterable
        if iterable.node_type != NodeType.RANGE:
            raise GenError("`for` loops can only iterate over ranges", iterable.location,
                           construct="non-range `for` iterable",
                           help="write the loop as `for i in start..end`")
        start, end = self._range_bounds(iterable)
        with self.scopes.scope(ScopeKind.LOOP):
            variable = self._declare(stmt.variable, BindingType.LOOP_VARIABLE, stmt.location)
            self.out.add_line(f"for {variable} = {start}, {end} do")
            with self.out.indented(), self.scopes.scope(ScopeKind.BLOCK):
                self._emit_block_body(stmt.body)
            self.out.add_line("end")

    def _range_bounds(self, rng: RangeExpression):
        """Luau numeric-for bounds; the end bound is inclusive."""
        bounds = [b for b in (rng.start, rng.end) if b is not None]
        emitted = iter(self._operands(bounds))
        start = next(emitted).text if rng.start is not None else "0"
        if rng.end is None:
            return start, "math.huge"
        end_value = next(emitted)
        if rng.inclusive:
            return start, end_value.text
        end = rng.end
        if end.node_type == NodeType.LITERAL and end.kind == LiteralKind.INTEGER:
            return start, str(end.value - 1)
        return start, self._binary_text(end_value, "-", Emitted("1", PREC_ATOM), PREC_ADD).text

    def _while(self, stmt) -> None:
        if not self._needs_statements(stmt.condition):
            condition = self._expr(stmt.condition)
            self.out.add_line(f"while {condition.text} do")
            with self.out.indented(), self.scopes.scope(ScopeKind.LOOP):
                self._emit_block_body(stmt.body)
            self.out.add_line("end")
            return
        # The condition needs statements, so it is re-evaluated at the top of each iteration
        self.out.add_line("while true do")
        with self.out.indented(), self.scopes.scope(ScopeKind.LOOP):
            condition = self._expr(stmt.condition)
            self.out.add_line(f"if {self._negate(condition)} then break end")
            self._emit_block_body(stmt.body)
        self.out.add_line("end")

    def _loop(self, stmt) -> None:
        self.out.add_line("while true do")
        with self.out.indented(), self.scopes.scope(ScopeKind.LOOP):
            self._emit_block_body(stmt.body)
        self.out.add_line("end")

    # =========================================================================
    # Effect and value lowering of block-like expressions
    # =========================================================================

    def _emit_effect(self, expr: Expression) -> None:
        """Emit an expression evaluated only for its side effects."""
        kind = expr.node_type
        if kind == NodeType.IF_EXPR:
            self._emit_if(expr, None)
        elif kind == NodeType.MATCH_EXPR:
            self._emit_match(expr, None)
        elif kind == NodeType.BLOCK_EXPR:
            if not expr.statements and expr.tail is None:
                return
            self.out.add_line("do")
            with self.out.indented(), self.scopes.scope(ScopeKind.BLOCK):
                self._emit_block_body(expr)
            self.out.add_line("end")
        else:
            self._discard(expr, self._expr(expr))

    def _discard(self, expr: Expression, value: Emitted) -> None:
        """Evaluate a value whose result is unused."""
        if expr.node_type == NodeType.FUNCTION_CALL and value.text.endswith(")"):
            # A call is a valid Luau statement on its own
            self.out.add_line(value.text)
        elif expr.node_type == NodeType.LITERAL or value.text.isidentifier():
            logger.debug(f"Dropped expression statement `{value.text}` with no effect")
        else:
            self.out.add_line(f"local _ = {value.text}")

    def _hoist(self, expr: Expression) -> Emitted:
        if not expr.is_value:
            raise RsLuauImplementationError(f"{expr.node_type.value} in effect position reached value lowering")
        temp = self._new_temp()
        self._emit_into(expr, temp)
        return Emitted(temp, PREC_ATOM)

    def _emit_into(self, expr: Expression, target: str) -> None:
        """Emit statements that evaluate expr and assign the result to target."""
        kind = expr.node_type
        if kind == NodeType.IF_EXPR:
            self._emit_if(expr, target)
        elif kind == NodeType.MATCH_EXPR:
            self._emit_match(expr, target)
        elif kind == NodeType.BLOCK_EXPR:
            if not expr.statements:
                if expr.tail is None:
                    self.out.add_line(f"{target} = nil")
                else:
                    self._emit_into(expr.tail, target)
                return
            self.out.add_line("do")
            with self.out.indented(), self.scopes.scope(ScopeKind.BLOCK):
                self._emit_block_body(expr, target)
            self.out.add_line("end")
        else:
            value = self._expr(expr)
            self.out.add_line(f"{target} = {value.text}")

    def _emit_branch(self, block: BlockExpression, target: Optional[str]) -> None:
        with self.out.indented(), self.scopes.scope(ScopeKind.BRANCH):
            self._emit_block_body(block, target)

    def _emit_if(self, expr: IfExpression, target: Optional[str]) -> None:
        condition = self._expr(expr.condition)
        self.out.add_line(f"if {condition.text} then")
        self._emit_branch(expr.then_block, target)

        branch = expr.else_branch
        while branch is not None and branch.node_type == NodeType.IF_EXPR \
                and not self._needs_statements(branch.condition):
            condition = self._expr(branch.condition)
            self.out.add_line(f"elseif {condition.text} then")
            self._emit_branch(branch.then_block, target)
            branch = branch.else_branch

        if branch is not None:
            self.out.add_line("else")
            if branch.node_type == NodeType.IF_EXPR:
                with self.out.indented():
                    self._emit_if(branch, target)
            else:
                self._emit_branch(branch, target)
        elif target is not None:
            self.out.add_line("else")
            with self.out.indented():
                self.out.add_line(f"{target} = nil")
        self.out.add_line("end")

    # =========================================================================
    # Match lowering
    # =========================================================================

    def _emit_match(self, expr: MatchExpression, target: Optional[str]) -> None:
        coverage = self.coverage.coverage_for(expr)
        for arm in expr.arms:
            if arm.guard is not None:
                raise GenError("match guards are not supported", arm.guard.location, construct="match guard")

        scrutinee = self._expr(expr.scrutinee)
        if expr.scrutinee.node_type not in (NodeType.LITERAL, NodeType.IDENTIFIER):
            scrutinee = self._spill(scrutinee)

        for index in coverage.unreachable_arms:
            logger.warning(f"{expr.arms[index].location}: unreachable match arm not emitted")
        last = coverage.else_index if coverage.else_index is not None else len(expr.arms) - 1

        if coverage.else_index == 0:
            # First arm matches everything: no test at all
            self.out.add_line("do")
            self._emit_arm(expr.arms[0], scrutinee, target)
            self.out.add_line("end")
            return

        for index, arm in enumerate(expr.arms[:last + 1]):
            if index == coverage.else_index:
                self.out.add_line("else")
            else:
                keyword = "if" if index == 0 else "elseif"
                self.out.add_line(f"{keyword} {self._pattern_test(arm.pattern, scrutinee)} then")
            self._emit_arm(arm, scrutinee, target)

        if coverage.else_index is None:
            self.out.add_line("else")
            with self.out.indented():
                message = f"{UNHANDLED_MATCH_MARKER}: no match arm for value at {expr.location}"
                self.out.add_line(f"error({luau_string(message)})")
        self.out.add_line("end")

    def _emit_arm(self, arm: MatchArm, scrutinee: Emitted, target: Optional[str]) -> None:
        with self.out.indented(), self.scopes.scope(ScopeKind.ARM):
            pattern = arm.pattern
            if pattern.node_type == NodeType.OR_PATTERN:
                for alt in pattern.alternatives:
                    if alt.node_type == NodeType.IDENTIFIER_PATTERN:
                        raise GenError("bindings in or-patterns are not supported", alt.location,
                                       construct="binding in or-pattern")
            if pattern.node_type == NodeType.IDENTIFIER_PATTERN:
                name = self._declare(pattern.name, BindingType.PATTERN, pattern.location)
                self.out.add_line(f"local {name} = {scrutinee.text}")

            body = arm.body
            if body.node_type == NodeType.BLOCK_EXPR:
                self._emit_block_body(body, target)
            elif target is not None:
                self._emit_into(body, target)
            else:
                self._emit_effect(body)

    def _pattern_test(self, pattern: Pattern, scrutinee: Emitted) -> str:
        kind = pattern.node_type
        subject = scrutinee.text
        if kind == NodeType.LITERAL_PATTERN:
            return f"{subject} == {luau_literal(pattern.literal)}"
        if kind == NodeType.RANGE_PATTERN:
            upper = "<=" if pattern.inclusive else "<"
            return (f"{subject} >= {luau_literal(pattern.start)} and "
                    f"{subject} {upper} {luau_literal(pattern.end)}")
        if kind == NodeType.OR_PATTERN:
            tests = []
            for alt in pattern.alternatives:
                test = self._pattern_test(alt, scrutinee)
                tests.append(f"({test})" if alt.node_type == NodeType.RANGE_PATTERN else test)
            return " or ".join(tests)
        if kind == NodeType.IDENTIFIER_PATTERN:
            raise GenError("bindings in or-patterns are not supported", pattern.location,
                           construct="binding in or-pattern")
        raise RsLuauImplementationError(f"no test for pattern {kind}")

    # =========================================================================
    # Expressions
    # =========================================================================

    def _expr(self, expr: Expression) -> Emitted:
        handler = self._expression_handlers.get(expr.node_type)
        if handler is not None:
            return handler(expr)
        unsupported = _UNSUPPORTED_EXPRESSIONS.get(expr.node_type)
        if unsupported is not None:
            message, construct = unsupported
            raise GenError(message, expr.location, construct=construct)
        raise RsLuauImplementationError(f"no lowering for expression {expr.node_type}")

    def _needs_statements(self, expr: Expression) -> bool:
        """True when lowering expr emits statements before its value."""
        if expr.node_type in BLOCK_LIKE:
            return True
        return any(self._needs_statements(child) for child in iter_child_nodes(expr)
                   if isinstance(child, Expression))

    def _is_stable(self, expr: Expression, later: Sequence[Expression]) -> bool:
        """True when expr keeps its value while `later` expressions are lowered."""
        if expr.node_type == NodeType.LITERAL or expr.node_type in BLOCK_LIKE:
            # Hoisted values already live in their own temporary
            return True
        if expr.node_type != NodeType.IDENTIFIER:
            return False
        for other in later:
            for node in walk(other):
                if node.node_type == NodeType.ASSIGN_STMT and node.target.name == expr.name:
                    return False
        return True

    def _operands(self, exprs: Sequence[Expression]) -> List[Emitted]:
        """Lower expressions left to right, spilling earlier ones when a later one hoists."""
        results = []
        for index, expr in enumerate(exprs):
            value = self._expr(expr)
            later = exprs[index + 1:]
            if any(self._needs_statements(e) for e in later) and not self._is_stable(expr, later):
                value = self._spill(value)
            results.append(value)
        return results

    def _resolve(self, name: str, location) -> str:
        binding = self.scopes.lookup(name)
        if binding is None:
            raise GenError(f"cannot find value `{name}` in this scope", location,
                           help="only function parameters, `let` bindings and functions are in scope")
        return binding.emitted_name

    def _identifier(self, expr) -> Emitted:
        return Emitted(self._resolve(expr.name, expr.location), PREC_ATOM)

    def _binary_text(self, left: Emitted, op: str, right: Emitted, precedence: int,
                     right_assoc: bool = False) -> Emitted:
        left_text = left.text
        right_text = right.text
        if left.precedence < precedence or (right_assoc and left.precedence == precedence):
            left_text = f"({left_text})"
        if right.precedence < precedence or (not right_assoc and right.precedence == precedence):
            right_text = f"({right_text})"
        return Emitted(f"{left_text} {op} {right_text}", precedence)

    def _is_string_literal(self, expr: Expression) -> bool:
        return expr.node_type == NodeType.LITERAL and expr.kind in (LiteralKind.STRING, LiteralKind.CHAR)

    def _binary(self, expr) -> Emitted:
        op = expr.operator
        if op in (BinaryOp.AND, BinaryOp.OR) and self._needs_statements(expr.right):
            return self._short_circuit(expr)

        left, right = self._operands([expr.left, expr.right])
        if op == BinaryOp.ADD and (self._is_string_literal(expr.left) or self._is_string_literal(expr.right)):
            return self._binary_text(left, "..", right, PREC_CONCAT, right_assoc=True)
        luau_op, precedence = LUAU_BINARY_OPS[op]
        return self._binary_text(left, luau_op, right, precedence)

    def _short_circuit(self, expr) -> Emitted:
        """`a && b` / `a || b` where b needs statements: b runs only when a does not decide."""
        left = self._expr(expr.left)
        temp = self.names.temp()
        self.out.add_line(f"local {temp} = {left.text}")
        guard = temp if expr.operator == BinaryOp.AND else f"not {temp}"
        self.out.add_line(f"if {guard} then")
        with self.out.indented():
            self._emit_into(expr.right, temp)
        self.out.add_line("end")
        return Emitted(temp, PREC_ATOM)

    def _negate(self, value: Emitted) -> str:
        operand = value.text if value.precedence >= PREC_UNARY else f"({value.text})"
        return f"not {operand}"

    def _unary(self, expr) -> Emitted:
        op = expr.operator
        operand = self._expr(expr.operand)
        if op in (UnaryOp.REF, UnaryOp.REF_MUT, UnaryOp.DEREF):
            # Ownership syntax has no runtime meaning
            return operand
        if op == UnaryOp.NOT:
            return Emitted(self._negate(operand), PREC_UNARY)
        text = operand.text
        if operand.precedence < PREC_UNARY or text.startswith("-"):
            # `--` would start a comment
            text = f"({text})"
        return Emitted(f"-{text}", PREC_UNARY)

    def _call(self, expr: FunctionCall) -> Emitted:
        if expr.is_macro:
            return self._macro(expr)
        name = expr.callee_name
        if name is None:
            self._expr(expr.callee)  # raises for paths, closures, fields, ...
            raise GenError("only calls to named functions are supported", expr.callee.location,
                           construct="indirect call")
        binding = self.scopes.lookup(name)
        # Unresolved callees are host functions and keep their name
        callee = binding.emitted_name if binding is not None else name
        arguments = self._operands(expr.arguments)
        return Emitted(f"{callee}({', '.join(a.text for a in arguments)})", PREC_ATOM)

    def _macro(self, expr: FunctionCall) -> Emitted:
        name = expr.callee_name
        if name in PRINT_MACROS:
            message = self._format_arguments(expr)
            return Emitted(f"{HOST_PRINT_FUNCTION}({message.text if message else ''})", PREC_ATOM)
        if name == FORMAT_MACRO:
            message = self._format_arguments(expr)
            return message if message is not None else Emitted('""', PREC_ATOM)
        raise GenError(f"macro `{name}!` is not supported", expr.location, construct=f"`{name}!` macro")

    def _format_arguments(self, expr: FunctionCall) -> Optional[Emitted]:
        """Lower `"...{}...", args` to a Luau string expression."""
        if not expr.arguments:
            return None
        template = expr.arguments[0]
        if template.node_type != NodeType.LITERAL or template.kind != LiteralKind.STRING:
            raise GenError("format argument must be a string literal", template.location,
                           construct="non-literal format string")
        pieces = self._split_format(template)
        placeholders = sum(1 for piece in pieces if piece is None)
        values = expr.arguments[1:]
        if placeholders != len(values):
            raise GenError(f"{placeholders} positional arguments in format string, "
                           f"but there are {len(values)} arguments", template.location)
        if not values:
            return Emitted(luau_string("".join(pieces)), PREC_ATOM)
        emitted = self._operands(values)
        fmt = "".join("%s" if piece is None else piece.replace("%", "%%") for piece in pieces)
        args = ", ".join(f"tostring({value.text})" for value in emitted)
        return Emitted(f"string.format({luau_string(fmt)}, {args})", PREC_ATOM)

    def _split_format(self, template: Literal) -> List[Optional[str]]:
        """Text pieces of a format string; None marks a `{}` placeholder."""
        text = template.value
        pieces: List[Optional[str]] = []
        buf: List[str] = []
        i = 0
        while i < len(text):
            if text.startswith("{{", i) or text.startswith("}}", i):
                buf.append(text[i])
                i += 2
            elif text.startswith(FORMAT_PLACEHOLDER, i):
                pieces.append("".join(buf))
                pieces.append(None)
                buf = []
                i += len(FORMAT_PLACEHOLDER)
            elif text[i] in "{}":
                close = text.find("}", i)
                spec = text[i:close + 1] if text[i] == "{" and close >= 0 else text[i]
                raise GenError(f"format specifier `{spec}` is not supported", template.location,
                               construct="format specifier", help="only `{}` placeholders are supported")
            else:
                buf.append(text[i])
                i += 1
        pieces.append("".join(buf))
        return [piece for piece in pieces if piece != ""]
