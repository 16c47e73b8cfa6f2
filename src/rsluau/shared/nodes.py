"""
rsluau AST (Abstract Syntax Tree) Definitions

The AST is a closed set of tagged variants: every node carries a `node_type`
from NodeType, and passes consume nodes by case analysis on that tag
(dispatch tables keyed by NodeType), not by methods on the nodes.

Nodes are dataclasses whose compared fields are their children and payload
only, so two trees parsed from differently formatted text compare equal.
Source locations and the value-position flag are plain attributes outside
the comparison.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Iterator, List, Optional, Union

from typing_extensions import TypeAlias

from .source_location import SourceLocation
from .types import AssignOp, BinaryOp, SourceType, UnaryOp, lookup_source_type


class NodeType(Enum):
    """AST node types"""
    PROGRAM = "program"
    # Items
    FUNCTION_DEF = "function_def"
    UNSUPPORTED_ITEM = "unsupported_item"
    # Statements
    LET_STMT = "let_stmt"
    EXPR_STMT = "expr_stmt"  # Expression used as statement
    ASSIGN_STMT = "assign_stmt"
    FOR_STMT = "for_stmt"
    WHILE_STMT = "while_stmt"
    LOOP_STMT = "loop_stmt"
    RETURN_STMT = "return_stmt"
    BREAK_STMT = "break_stmt"
    CONTINUE_STMT = "continue_stmt"
    # Expressions
    LITERAL = "literal"
    IDENTIFIER = "identifier"
    BINARY_OP = "binary_op"
    UNARY_OP = "unary_op"
    FUNCTION_CALL = "function_call"
    BLOCK_EXPR = "block_expr"
    IF_EXPR = "if_expr"
    MATCH_EXPR = "match_expr"
    MATCH_ARM = "match_arm"
    RANGE = "range"
    # Parsed but outside the supported subset
    CLOSURE_EXPR = "closure_expr"
    PATH_EXPR = "path_expr"
    FIELD_ACCESS = "field_access"
    METHOD_CALL = "method_call"
    INDEX_EXPR = "index_expr"
    ARRAY_LITERAL = "array_literal"
    # Patterns
    LITERAL_PATTERN = "literal_pattern"
    IDENTIFIER_PATTERN = "identifier_pattern"
    WILDCARD_PATTERN = "wildcard_pattern"
    RANGE_PATTERN = "range_pattern"
    OR_PATTERN = "or_pattern"


class LiteralKind(Enum):
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    CHAR = "char"
    BOOL = "bool"
    UNIT = "unit"


class ASTNode:
    """
    Base class for all AST nodes

    - `node_type` is the variant tag used for dispatch
    - `location` is the originating source span, kept out of equality
    """
    __slots__ = ('node_type', 'location')

    def __init__(self, node_type: NodeType, location: Optional[SourceLocation] = None):
        self.node_type = node_type
        self.location = location


class Expression(ASTNode):
    """
    Base class for expressions

    `is_value` is the value-position flag: True when the expression's result
    is used (assignment RHS, return value, argument, operand, block tail in
    value position), False when it runs purely for effect. The parser sets it;
    the generator never hoists a temporary for an effect-only expression.
    """
    __slots__ = ('is_value',)

    def __init__(self, node_type: NodeType, location: Optional[SourceLocation] = None):
        super().__init__(node_type, location)
        self.is_value: bool = True


class Statement(ASTNode):
    """Base class for statements"""
    __slots__ = ()


class Pattern(ASTNode):
    """Base class for match patterns"""
    __slots__ = ()


# ============================================================================
# Type annotations and parameters (payload, not tagged nodes)
# ============================================================================

@dataclass
class TypeAnnotation:
    """
    Declared type as written. `name` is the primitive spelling ("i32",
    "String", "()") with references erased; names outside SourceType are
    kept so the generator can reject them with their span.
    """
    name: str
    location: Optional[SourceLocation] = field(default=None, compare=False)

    @property
    def primitive(self) -> Optional[SourceType]:
        return lookup_source_type(self.name)

    def __str__(self) -> str:
        return self.name


@dataclass
class Parameter:
    """Function or closure parameter"""
    name: str
    type_annotation: Optional[TypeAnnotation] = None
    location: Optional[SourceLocation] = field(default=None, compare=False)


# ============================================================================
# Program and items
# ============================================================================

@dataclass
class Program(ASTNode):
    """Program root node: items in declaration order"""
    items: List[Item]

    def __init__(self, items: List[Item], location: Optional[SourceLocation] = None):
        super().__init__(NodeType.PROGRAM, location)
        self.items = items


@dataclass
class FunctionDefinition(Statement):
    """Function definition"""
    name: str
    parameters: List[Parameter]
    return_type: Optional[TypeAnnotation]
    body: BlockExpression
    is_public: bool = False

    def __init__(self, name: str, parameters: List[Parameter], return_type: Optional[TypeAnnotation],
                 body: BlockExpression, is_public: bool = False, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.FUNCTION_DEF, location)
        self.name = name
        self.parameters = parameters
        self.return_type = return_type
        self.body = body
        self.is_public = is_public

    @property
    def returns_value(self) -> bool:
        """True when the signature declares a non-unit return type."""
        return self.return_type is not None and self.return_type.name != SourceType.UNIT.value


@dataclass
class UnsupportedItem(Statement):
    """struct / enum / mod / impl / trait / use / const / static / type item"""
    kind: str
    name: Optional[str] = None

    def __init__(self, kind: str, name: Optional[str] = None, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.UNSUPPORTED_ITEM, location)
        self.kind = kind
        self.name = name


Item: TypeAlias = Union[FunctionDefinition, UnsupportedItem]


# ============================================================================
# Statements
# ============================================================================

@dataclass
class LetStatement(Statement):
    """let [mut] name [: Type] = value;"""
    name: str
    value: Expression
    type_annotation: Optional[TypeAnnotation] = None
    is_mutable: bool = False

    def __init__(self, name: str, value: Expression, type_annotation: Optional[TypeAnnotation] = None,
                 is_mutable: bool = False, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.LET_STMT, location)
        self.name = name
        self.value = value
        self.type_annotation = type_annotation
        self.is_mutable = is_mutable


@dataclass
class ExpressionStatement(Statement):
    """
    Expression used as a statement (evaluates expression, discards result).

    Examples:
        print(x);            # FunctionCall wrapped in ExpressionStatement
        if x > 0 { f(); }    # IfExpression wrapped in ExpressionStatement
    """
    expr: Expression

    def __init__(self, expr: Expression, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.EXPR_STMT, location or (expr.location if expr else None))
        self.expr = expr


@dataclass
class AssignmentStatement(Statement):
    """target = value; or a compound form (target += value;)"""
    target: Identifier
    operator: AssignOp
    value: Expression

    def __init__(self, target: Identifier, operator: AssignOp, value: Expression,
                 location: Optional[SourceLocation] = None):
        super().__init__(NodeType.ASSIGN_STMT, location)
        self.target = target
        self.operator = operator
        self.value = value


@dataclass
class ForStatement(Statement):
    """for variable in iterable { body }"""
    variable: str
    iterable: Expression
    body: BlockExpression

    def __init__(self, variable: str, iterable: Expression, body: BlockExpression,
                 location: Optional[SourceLocation] = None):
        super().__init__(NodeType.FOR_STMT, location)
        self.variable = variable
        self.iterable = iterable
        self.body = body


@dataclass
class WhileStatement(Statement):
    """while condition { body }"""
    condition: Expression
    body: BlockExpression

    def __init__(self, condition: Expression, body: BlockExpression, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.WHILE_STMT, location)
        self.condition = condition
        self.body = body


@dataclass
class LoopStatement(Statement):
    """loop { body }"""
    body: BlockExpression

    def __init__(self, body: BlockExpression, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.LOOP_STMT, location)
        self.body = body


@dataclass
class ReturnStatement(Statement):
    """return [value];"""
    value: Optional[Expression] = None

    def __init__(self, value: Optional[Expression] = None, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.RETURN_STMT, location)
        self.value = value


@dataclass
class BreakStatement(Statement):
    def __init__(self, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.BREAK_STMT, location)


@dataclass
class ContinueStatement(Statement):
    def __init__(self, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.CONTINUE_STMT, location)


# ============================================================================
# Expressions
# ============================================================================

@dataclass
class Literal(Expression):
    """
    Literal value (number, string, char, boolean, or the unit value `()`).

    `raw` is the literal as written, `suffix` an explicit type suffix such
    as the `u8` in `255u8`.
    """
    value: Optional[Union[int, float, str, bool]]
    kind: LiteralKind
    suffix: Optional[str] = None
    raw: Optional[str] = field(default=None, compare=False)

    def __str__(self) -> str:
        if self.kind == LiteralKind.UNIT:
            return "()"
        return str(self.value)

    def __init__(self, value: Optional[Union[int, float, str, bool]], kind: LiteralKind, suffix: Optional[str] = None,
                 raw: Optional[str] = None, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.LITERAL, location)
        self.value = value
        self.kind = kind
        self.suffix = suffix
        self.raw = raw


@dataclass
class Identifier(Expression):
    """Identifier (variable or function name)"""
    name: str

    def __str__(self) -> str:
        return self.name

    def __init__(self, name: str, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.IDENTIFIER, location)
        self.name = name


@dataclass
class BinaryExpression(Expression):
    """Binary operation"""
    left: Expression
    operator: BinaryOp
    right: Expression

    def __str__(self) -> str:
        return f"({self.left} {self.operator.value} {self.right})"

    def __init__(self, left: Expression, operator: BinaryOp, right: Expression,
                 location: Optional[SourceLocation] = None):
        super().__init__(NodeType.BINARY_OP, location)
        self.left = left
        self.operator = operator
        self.right = right


@dataclass
class UnaryExpression(Expression):
    """Unary operation"""
    operator: UnaryOp
    operand: Expression

    def __init__(self, operator: UnaryOp, operand: Expression, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.UNARY_OP, location)
        self.operator = operator
        self.operand = operand


@dataclass
class FunctionCall(Expression):
    """Function call f(args), or macro call name!(args) when is_macro"""
    callee: Expression
    arguments: List[Expression]
    is_macro: bool = False

    def __init__(self, callee: Expression, arguments: List[Expression], is_macro: bool = False,
                 location: Optional[SourceLocation] = None):
        super().__init__(NodeType.FUNCTION_CALL, location)
        self.callee = callee
        self.arguments = arguments
        self.is_macro = is_macro

    @property
    def callee_name(self) -> Optional[str]:
        return self.callee.name if isinstance(self.callee, Identifier) else None


@dataclass
class BlockExpression(Expression):
    """{ statements; tail } - the tail, when present, is the block's value"""
    statements: List[Statement]
    tail: Optional[Expression] = None

    def __init__(self, statements: List[Statement], tail: Optional[Expression] = None,
                 location: Optional[SourceLocation] = None):
        super().__init__(NodeType.BLOCK_EXPR, location)
        self.statements = statements
        self.tail = tail


@dataclass
class IfExpression(Expression):
    """if condition { then } [else { .. } | else if ..]"""
    condition: Expression
    then_block: BlockExpression
    else_branch: Optional[Union[BlockExpression, IfExpression]] = None

    def __init__(self, condition: Expression, then_block: BlockExpression,
                 else_branch: Optional[Union[BlockExpression, IfExpression]] = None,
                 location: Optional[SourceLocation] = None):
        super().__init__(NodeType.IF_EXPR, location)
        self.condition = condition
        self.then_block = then_block
        self.else_branch = else_branch


@dataclass
class MatchArm(ASTNode):
    """pattern [if guard] => body"""
    pattern: Pattern
    body: Expression
    guard: Optional[Expression] = None

    def __init__(self, pattern: Pattern, body: Expression, guard: Optional[Expression] = None,
                 location: Optional[SourceLocation] = None):
        super().__init__(NodeType.MATCH_ARM, location)
        self.pattern = pattern
        self.body = body
        self.guard = guard


@dataclass
class MatchExpression(Expression):
    """match scrutinee { arms } - arms tested in source order, first match wins"""
    scrutinee: Expression
    arms: List[MatchArm]

    def __init__(self, scrutinee: Expression, arms: List[MatchArm], location: Optional[SourceLocation] = None):
        super().__init__(NodeType.MATCH_EXPR, location)
        self.scrutinee = scrutinee
        self.arms = arms


@dataclass
class RangeExpression(Expression):
    """start..end (end exclusive) or start..=end; either bound may be absent"""
    start: Optional[Expression]
    end: Optional[Expression]
    inclusive: bool = False

    def __init__(self, start: Optional[Expression], end: Optional[Expression], inclusive: bool = False,
                 location: Optional[SourceLocation] = None):
        super().__init__(NodeType.RANGE, location)
        self.start = start
        self.end = end
        self.inclusive = inclusive


@dataclass
class ClosureExpression(Expression):
    """|params| body"""
    parameters: List[Parameter]
    body: Expression

    def __init__(self, parameters: List[Parameter], body: Expression, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.CLOSURE_EXPR, location)
        self.parameters = parameters
        self.body = body


@dataclass
class PathExpression(Expression):
    """a::b::c"""
    segments: List[str]

    def __str__(self) -> str:
        return "::".join(self.segments)

    def __init__(self, segments: List[str], location: Optional[SourceLocation] = None):
        super().__init__(NodeType.PATH_EXPR, location)
        self.segments = segments


@dataclass
class FieldAccess(Expression):
    """object.field"""
    object: Expression
    field_name: str

    def __init__(self, object: Expression, field_name: str, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.FIELD_ACCESS, location)
        self.object = object
        self.field_name = field_name


@dataclass
class MethodCall(Expression):
    """receiver.method(args)"""
    receiver: Expression
    method: str
    arguments: List[Expression]

    def __init__(self, receiver: Expression, method: str, arguments: List[Expression],
                 location: Optional[SourceLocation] = None):
        super().__init__(NodeType.METHOD_CALL, location)
        self.receiver = receiver
        self.method = method
        self.arguments = arguments


@dataclass
class IndexExpression(Expression):
    """base[index]"""
    base: Expression
    index: Expression

    def __init__(self, base: Expression, index: Expression, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.INDEX_EXPR, location)
        self.base = base
        self.index = index


@dataclass
class ArrayLiteral(Expression):
    """[a, b, c]"""
    elements: List[Expression]

    def __init__(self, elements: List[Expression], location: Optional[SourceLocation] = None):
        super().__init__(NodeType.ARRAY_LITERAL, location)
        self.elements = elements


# ============================================================================
# Patterns
# ============================================================================

@dataclass
class LiteralPattern(Pattern):
    """Literal pattern; negative numbers are folded into the literal"""
    literal: Literal

    def __init__(self, literal: Literal, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.LITERAL_PATTERN, location)
        self.literal = literal


@dataclass
class IdentifierPattern(Pattern):
    """Binds the scrutinee to `name`; always matches"""
    name: str

    def __init__(self, name: str, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.IDENTIFIER_PATTERN, location)
        self.name = name


@dataclass
class WildcardPattern(Pattern):
    """_ - always matches, binds nothing"""
    def __init__(self, location: Optional[SourceLocation] = None):
        super().__init__(NodeType.WILDCARD_PATTERN, location)


@dataclass
class RangePattern(Pattern):
    """start..end or start..=end over literals"""
    start: Literal
    end: Literal
    inclusive: bool = False

    def __init__(self, start: Literal, end: Literal, inclusive: bool = False,
                 location: Optional[SourceLocation] = None):
        super().__init__(NodeType.RANGE_PATTERN, location)
        self.start = start
        self.end = end
        self.inclusive = inclusive


@dataclass
class OrPattern(Pattern):
    """p | q | r"""
    alternatives: List[Pattern]

    def __init__(self, alternatives: List[Pattern], location: Optional[SourceLocation] = None):
        super().__init__(NodeType.OR_PATTERN, location)
        self.alternatives = alternatives


def is_catch_all(pattern: Pattern) -> bool:
    """True if the pattern matches every value (wildcard, identifier, or an or-pattern containing `_`)."""
    if pattern.node_type in (NodeType.WILDCARD_PATTERN, NodeType.IDENTIFIER_PATTERN):
        return True
    if pattern.node_type == NodeType.OR_PATTERN:
        return any(is_catch_all(alt) for alt in pattern.alternatives)
    return False


BLOCK_LIKE = frozenset({NodeType.BLOCK_EXPR, NodeType.IF_EXPR, NodeType.MATCH_EXPR})


# ============================================================================
# Generic traversal
# ============================================================================

def iter_child_nodes(node: ASTNode) -> Iterator[ASTNode]:
    """Yield the direct child nodes of `node`, in field order."""
    for f in fields(node):
        value = getattr(node, f.name)
        if isinstance(value, ASTNode):
            yield value
        elif isinstance(value, list):
            for item in value:
                if isinstance(item, ASTNode):
                    yield item


def walk(node: ASTNode) -> Iterator[ASTNode]:
    """Pre-order walk over `node` and all of its descendants."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(list(iter_child_nodes(current))))
