"""
Shared components for the compiler pipeline.

Rust Pattern: Shared foundational types and utilities
"""

from .source_location import SourceLocation
from .errors import (
    Error, ErrorReporter, RsLuauError, CompileError, LexError, ParseError, GenError,
    RsLuauImplementationError,
)
from .types import SourceType, TargetKind, BinaryOp, UnaryOp, AssignOp, lookup_source_type
from .nodes import (
    ASTNode, Expression, Statement, Pattern, Program, NodeType, LiteralKind,
    TypeAnnotation, Parameter, FunctionDefinition, UnsupportedItem,
    LetStatement, ExpressionStatement, AssignmentStatement, ForStatement,
    WhileStatement, LoopStatement, ReturnStatement, BreakStatement, ContinueStatement,
    Literal, Identifier, BinaryExpression, UnaryExpression, FunctionCall,
    BlockExpression, IfExpression, MatchExpression, MatchArm, RangeExpression,
    ClosureExpression, PathExpression, FieldAccess, MethodCall, IndexExpression, ArrayLiteral,
    LiteralPattern, IdentifierPattern, WildcardPattern, RangePattern, OrPattern,
    is_catch_all, walk,
)
from .scope import Binding, BindingType, Scope, ScopeKind, ScopeManager
from .serialization import serialize_ast
