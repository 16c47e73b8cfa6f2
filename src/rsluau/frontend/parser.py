"""
Parser

Rust Pattern: rustc_parse

Recursive descent over the lexer's token stream with one token of lookahead.
Binary operators are parsed by precedence climbing over BINARY_PRECEDENCE.
The parser also sets the value-position flag on every expression and
enforces where `return`, `break` and `continue` may appear.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from .lexer import Lexer
from .tokens import Token, TokenKind
from ..shared.errors import ParseError
from ..shared.nodes import (
    BLOCK_LIKE,
    ArrayLiteral,
    AssignmentStatement,
    BinaryExpression,
    BlockExpression,
    BreakStatement,
    ClosureExpression,
    ContinueStatement,
    Expression,
    ExpressionStatement,
    FieldAccess,
    ForStatement,
    FunctionCall,
    FunctionDefinition,
    Identifier,
    IdentifierPattern,
    IfExpression,
    IndexExpression,
    Item,
    LetStatement,
    Literal,
    LiteralKind,
    LiteralPattern,
    LoopStatement,
    MatchArm,
    MatchExpression,
    MethodCall,
    NodeType,
    OrPattern,
    Parameter,
    PathExpression,
    Pattern,
    Program,
    RangeExpression,
    RangePattern,
    ReturnStatement,
    Statement,
    TypeAnnotation,
    UnaryExpression,
    UnsupportedItem,
    WhileStatement,
    WildcardPattern,
)
from ..shared.source_location import SourceLocation
from ..shared.types import AssignOp, BinaryOp, SourceType, UnaryOp
from ..utils.config import DEFAULT_SOURCE_FILE, MAX_NESTING_DEPTH

logger = logging.getLogger(__name__)

# Lowest to highest; all left-associative
BINARY_PRECEDENCE = {
    "||": 1,
    "&&": 2,
    "==": 3, "!=": 3,
    "<": 4, "<=": 4, ">": 4, ">=": 4,
    "+": 5, "-": 5,
    "*": 6, "/": 6, "%": 6,
}

ASSIGN_OPERATORS = {op.value: op for op in AssignOp}

UNARY_OPERATORS = {"-": UnaryOp.NEG, "!": UnaryOp.NOT, "*": UnaryOp.DEREF, "&": UnaryOp.REF}

UNSUPPORTED_ITEM_KEYWORDS = frozenset({"struct", "enum", "mod", "impl", "trait", "use", "const", "static", "type"})

EXPRESSION_START = ("literal", "identifier", "(", "{", "[", "if", "match", "-", "!")

_OPENERS = {"(": ")", "[": "]", "{": "}"}

JUMP_KEYWORDS = ("return", "break", "continue")

_LITERAL_KINDS = {
    TokenKind.INTEGER: LiteralKind.INTEGER,
    TokenKind.FLOAT: LiteralKind.FLOAT,
    TokenKind.STRING: LiteralKind.STRING,
    TokenKind.CHAR: LiteralKind.CHAR,
}


class Parser:
    """
    Parser (Rust naming: rustc_parse).

    Takes source text, returns the AST (Program). Parsing of the unit aborts
    on the first ParseError; there is no recovery.
    """

    def __init__(self, source: str, source_file: str = DEFAULT_SOURCE_FILE):
        self.source = source
        self.source_file = source_file
        self._tokens: Iterator[Token] = Lexer(source, source_file).tokens()
        self._current: Token = next(self._tokens)
        self._previous: Optional[Token] = None
        self._function_depth = 0
        self._loop_depth = 0
        self._nesting_depth = 0

    def parse(self) -> Program:
        """Parse the whole compilation unit."""
        start = self._current.location
        items: List[Item] = []
        while self._current.kind != TokenKind.EOF:
            items.append(self._parse_item())
        logger.debug(f"Parsed {len(items)} items from {self.source_file}")
        return Program(items, location=start.to(self._current.location))

    # =========================================================================
    # Token helpers
    # =========================================================================

    def _advance(self) -> Token:
        token = self._current
        if token.kind != TokenKind.EOF:
            self._previous = token
            self._current = next(self._tokens)
        return token

    def _check(self, symbol: str) -> bool:
        return self._current.is_symbol(symbol)

    def _check_keyword(self, word: str) -> bool:
        return self._current.is_keyword(word)

    def _match(self, symbol: str) -> bool:
        if self._check(symbol):
            self._advance()
            return True
        return False

    def _match_keyword(self, word: str) -> bool:
        if self._check_keyword(word):
            self._advance()
            return True
        return False

    def _error(self, message: str, expected: Sequence[str] = (), help: Optional[str] = None,
               token: Optional[Token] = None) -> ParseError:
        token = token or self._current
        return ParseError(message, token.location, expected=expected, found=token.describe(), help=help)

    def _expect(self, symbol: str) -> Token:
        if self._check(symbol):
            return self._advance()
        raise self._error(f"expected `{symbol}`, found {self._current.describe()}", expected=(symbol,))

    def _expect_keyword(self, word: str) -> Token:
        if self._check_keyword(word):
            return self._advance()
        raise self._error(f"expected `{word}`, found {self._current.describe()}", expected=(word,))

    def _expect_identifier(self) -> Token:
        if self._current.kind == TokenKind.IDENTIFIER:
            return self._advance()
        raise self._error(f"expected identifier, found {self._current.describe()}", expected=("identifier",))

    @contextmanager
    def _nested(self) -> Iterator[None]:
        """One level of expression or block nesting, bounded by MAX_NESTING_DEPTH."""
        if self._nesting_depth >= MAX_NESTING_DEPTH:
            raise self._error("expression nested too deeply",
                              help=f"nesting is limited to {MAX_NESTING_DEPTH} levels")
        self._nesting_depth += 1
        try:
            yield
        finally:
            self._nesting_depth -= 1

    def _span_from(self, start: SourceLocation) -> SourceLocation:
        end = self._previous.location if self._previous is not None else start
        return start.to(end)

    def _skip_balanced(self) -> None:
        """Consume an opener token and everything up to its matching closer."""
        stack = [_OPENERS[self._advance().text]]
        while stack:
            token = self._current
            if token.kind == TokenKind.EOF:
                raise self._error(f"expected `{stack[-1]}`, found end of input", expected=(stack[-1],))
            self._advance()
            if token.kind == TokenKind.PUNCTUATION and token.text in _OPENERS:
                stack.append(_OPENERS[token.text])
            elif token.kind == TokenKind.PUNCTUATION and token.text == stack[-1]:
                stack.pop()

    # =========================================================================
    # Value position
    # =========================================================================

    def _mark_effect(self, expr: Optional[Expression]) -> None:
        """Clear the value-position flag on expr and on whatever yields its value."""
        if expr is None:
            return
        expr.is_value = False
        if expr.node_type == NodeType.BLOCK_EXPR:
            self._mark_effect(expr.tail)
        elif expr.node_type == NodeType.IF_EXPR:
            self._mark_effect(expr.then_block)
            self._mark_effect(expr.else_branch)
        elif expr.node_type == NodeType.MATCH_EXPR:
            for arm in expr.arms:
                self._mark_effect(arm.body)

    # =========================================================================
    # Items
    # =========================================================================

    def _skip_attributes(self) -> None:
        while self._check("#"):
            self._advance()
            self._match("!")
            if not self._check("["):
                raise self._error(f"expected `[`, found {self._current.describe()}", expected=("[",))
            self._skip_balanced()
            logger.debug("Ignoring attribute")

    def _parse_item(self) -> Statement:
        self._skip_attributes()
        start = self._current.location
        is_public = self._match_keyword("pub")
        if is_public and self._check("("):
            # pub(crate), pub(super)
            self._skip_balanced()
        if self._check_keyword("fn"):
            return self._parse_function(start, is_public)
        if self._current.kind == TokenKind.KEYWORD and self._current.text in UNSUPPORTED_ITEM_KEYWORDS:
            return self._parse_unsupported_item(start)
        raise self._error(
            f"expected item, found {self._current.describe()}",
            expected=("fn",),
            help="only function definitions are allowed at the top level",
        )

    def _parse_function(self, start: SourceLocation, is_public: bool) -> FunctionDefinition:
        self._expect_keyword("fn")
        name = self._expect_identifier().text
        self._expect("(")
        parameters: List[Parameter] = []
        while not self._check(")"):
            self._match_keyword("mut")
            param_token = self._expect_identifier()
            self._expect(":")
            param_type = self._parse_type()
            parameters.append(Parameter(param_token.text, param_type, location=param_token.location))
            if not self._match(","):
                break
        self._expect(")")
        return_type = self._parse_type() if self._match("->") else None

        outer_loop_depth = self._loop_depth
        self._function_depth += 1
        self._loop_depth = 0
        try:
            body = self._parse_block()
        finally:
            self._function_depth -= 1
            self._loop_depth = outer_loop_depth

        function = FunctionDefinition(name, parameters, return_type, body, is_public=is_public,
                                      location=self._span_from(start))
        if not function.returns_value:
            self._mark_effect(body)
        return function

    def _parse_unsupported_item(self, start: SourceLocation) -> UnsupportedItem:
        kind = self._advance().text
        name = None
        if self._current.kind == TokenKind.IDENTIFIER:
            name = self._current.text
        while True:
            token = self._current
            if token.kind == TokenKind.EOF:
                raise self._error("expected `;` or `}`, found end of input", expected=(";", "}"))
            if token.kind == TokenKind.PUNCTUATION and token.text in _OPENERS:
                closer = _OPENERS[token.text]
                self._skip_balanced()
                if closer == "}":
                    break
                continue
            self._advance()
            if token.is_symbol(";"):
                break
        logger.debug(f"Parsed unsupported `{kind}` item {name or ''}")
        return UnsupportedItem(kind, name, location=self._span_from(start))

    # =========================================================================
    # Types
    # =========================================================================

    def _parse_type(self) -> TypeAnnotation:
        start = self._current.location
        if self._match("&"):
            self._match_keyword("mut")
            inner = self._parse_type()
            return TypeAnnotation(inner.name, location=self._span_from(start))
        if self._match("("):
            self._expect(")")
            return TypeAnnotation(SourceType.UNIT.value, location=self._span_from(start))
        if self._check("["):
            self._skip_balanced()
        elif self._current.kind == TokenKind.IDENTIFIER or self._check_keyword("Self"):
            self._advance()
            while self._match("::"):
                self._expect_identifier()
            if self._check("<"):
                self._skip_generic_arguments()
        else:
            raise self._error(f"expected type, found {self._current.describe()}", expected=("type",))
        location = self._span_from(start)
        return TypeAnnotation(self.source[location.start:location.end], location=location)

    def _skip_generic_arguments(self) -> None:
        depth = 0
        while True:
            token = self._current
            if token.kind == TokenKind.EOF:
                raise self._error("expected `>`, found end of input", expected=(">",))
            self._advance()
            if token.is_symbol("<"):
                depth += 1
            elif token.is_symbol(">"):
                depth -= 1
                if depth == 0:
                    return

    # =========================================================================
    # Blocks and statements
    # =========================================================================

    def _parse_block(self) -> BlockExpression:
        start = self._expect("{").location
        statements: List[Statement] = []
        tail: Optional[Expression] = None
        with self._nested():
            while not self._check("}"):
                if self._current.kind == TokenKind.EOF:
                    raise self._error("expected `}`, found end of input", expected=("}",))
                if self._match(";"):
                    continue
                statement, is_tail = self._parse_block_entry()
                if is_tail:
                    tail = statement
                    break
                statements.append(statement)
        self._expect("}")
        return BlockExpression(statements, tail, location=self._span_from(start))

    def _parse_block_entry(self) -> Tuple[Union[Statement, Expression], bool]:
        """Parse one statement, or the block's tail expression (flagged True)."""
        token = self._current
        if token.kind == TokenKind.KEYWORD:
            if token.text == "let":
                return self._parse_let(), False
            if token.text == "for":
                return self._parse_for(), False
            if token.text == "while":
                return self._parse_while(), False
            if token.text == "loop":
                return self._parse_loop(), False
            if token.text == "return":
                return self._parse_return(), False
            if token.text in ("break", "continue"):
                return self._parse_loop_control(), False
            if token.text in UNSUPPORTED_ITEM_KEYWORDS or token.text in ("fn", "pub"):
                return self._parse_item(), False

        if token.is_keyword("if") or token.is_keyword("match") or token.is_symbol("{"):
            expr = self._parse_block_like()
            if self._check("}"):
                return expr, True
            self._match(";")
            self._mark_effect(expr)
            return ExpressionStatement(expr), False

        start = token.location
        expr = self._parse_expression()
        if self._current.kind == TokenKind.OPERATOR and self._current.text in ASSIGN_OPERATORS:
            return self._parse_assignment(expr, start), False
        if self._check("}"):
            return expr, True
        if not self._match(";"):
            raise self._error(f"expected `;`, found {self._current.describe()}", expected=(";", "}"))
        self._mark_effect(expr)
        return ExpressionStatement(expr, location=self._span_from(start)), False

    def _end_statement(self) -> None:
        """Statements end with `;`; the last one in a block may omit it."""
        if self._check("}"):
            return
        self._expect(";")

    def _parse_let(self) -> LetStatement:
        start = self._expect_keyword("let").location
        is_mutable = self._match_keyword("mut")
        name = self._expect_identifier().text
        type_annotation = self._parse_type() if self._match(":") else None
        if not self._check("="):
            raise self._error(
                f"expected `=`, found {self._current.describe()}",
                expected=("=",),
                help="`let` bindings require an initializer",
            )
        self._advance()
        value = self._parse_expression()
        self._expect(";")
        return LetStatement(name, value, type_annotation, is_mutable, location=self._span_from(start))

    def _parse_assignment(self, target: Expression, start: SourceLocation) -> AssignmentStatement:
        operator_token = self._advance()
        if target.node_type != NodeType.IDENTIFIER:
            raise self._error("invalid left-hand side of assignment", expected=("identifier",),
                              token=operator_token)
        value = self._parse_expression()
        self._end_statement()
        return AssignmentStatement(target, ASSIGN_OPERATORS[operator_token.text], value,
                                   location=self._span_from(start))

    def _parse_loop_body(self) -> BlockExpression:
        self._loop_depth += 1
        try:
            body = self._parse_block()
        finally:
            self._loop_depth -= 1
        self._mark_effect(body)
        return body

    def _parse_for(self) -> ForStatement:
        start = self._expect_keyword("for").location
        variable = self._expect_identifier().text
        self._expect_keyword("in")
        iterable = self._parse_expression()
        body = self._parse_loop_body()
        return ForStatement(variable, iterable, body, location=self._span_from(start))

    def _parse_while(self) -> WhileStatement:
        start = self._expect_keyword("while").location
        condition = self._parse_expression()
        body = self._parse_loop_body()
        return WhileStatement(condition, body, location=self._span_from(start))

    def _parse_loop(self) -> LoopStatement:
        start = self._expect_keyword("loop").location
        body = self._parse_loop_body()
        return LoopStatement(body, location=self._span_from(start))

    def _at_jump_end(self) -> bool:
        """`return`/`break`/`continue` end at `;`, `}` or, as a match arm body, `,`."""
        return self._check(";") or self._check("}") or self._check(",")

    def _parse_return(self, terminated: bool = True) -> ReturnStatement:
        token = self._expect_keyword("return")
        if self._function_depth == 0:
            raise self._error("`return` outside of a function body", token=token)
        value = None
        if not self._at_jump_end():
            value = self._parse_expression()
        if terminated:
            self._end_statement()
        return ReturnStatement(value, location=self._span_from(token.location))

    def _parse_loop_control(self, terminated: bool = True) -> Statement:
        token = self._advance()
        if self._loop_depth == 0:
            raise self._error(f"`{token.text}` outside of a loop", token=token)
        if not self._at_jump_end():
            raise self._error(f"expected `;`, found {self._current.describe()}", expected=(";",),
                              help=f"`{token.text}` does not take a value")
        if terminated:
            self._end_statement()
        if token.text == "break":
            return BreakStatement(location=token.location)
        return ContinueStatement(location=token.location)

    # =========================================================================
    # Expressions
    # =========================================================================

    def _parse_expression(self) -> Expression:
        with self._nested():
            return self._parse_range()

    def _starts_expression(self) -> bool:
        token = self._current
        if token.kind == TokenKind.EOF:
            return False
        if token.kind == TokenKind.PUNCTUATION:
            return token.text in ("(", "[")
        if token.kind == TokenKind.OPERATOR:
            return token.text in UNARY_OPERATORS or token.text in ("|", "||")
        return True

    def _parse_range(self) -> Expression:
        start = self._current.location
        left: Optional[Expression] = None
        if not (self._check("..") or self._check("..=")):
            left = self._parse_binary(1)
            if not (self._check("..") or self._check("..=")):
                return left
        inclusive = self._advance().text == "..="
        right = self._parse_binary(1) if self._starts_expression() else None
        if inclusive and right is None:
            raise self._error("inclusive range with no end", expected=EXPRESSION_START)
        return RangeExpression(left, right, inclusive, location=self._span_from(start))

    def _parse_binary(self, min_precedence: int) -> Expression:
        """Precedence climbing; every level is left-associative."""
        left = self._parse_unary()
        while True:
            token = self._current
            if token.kind != TokenKind.OPERATOR:
                return left
            precedence = BINARY_PRECEDENCE.get(token.text)
            if precedence is None or precedence < min_precedence:
                return left
            self._advance()
            right = self._parse_binary(precedence + 1)
            left = BinaryExpression(left, BinaryOp(token.text), right,
                                    location=left.location.to(right.location))

    def _parse_unary(self) -> Expression:
        token = self._current
        if token.kind == TokenKind.OPERATOR and token.text in UNARY_OPERATORS:
            self._advance()
            operator = UNARY_OPERATORS[token.text]
            if operator == UnaryOp.REF and self._match_keyword("mut"):
                operator = UnaryOp.REF_MUT
            with self._nested():
                operand = self._parse_unary()
            return UnaryExpression(operator, operand, location=token.location.to(operand.location))
        return self._parse_postfix(self._parse_primary())

    def _parse_arguments(self, closer: str) -> List[Expression]:
        arguments: List[Expression] = []
        while not self._check(closer):
            arguments.append(self._parse_expression())
            if not self._match(","):
                break
        self._expect(closer)
        return arguments

    def _parse_postfix(self, expr: Expression) -> Expression:
        start = expr.location
        while True:
            if self._match("("):
                expr = FunctionCall(expr, self._parse_arguments(")"), location=self._span_from(start))
            elif self._match("["):
                index = self._parse_expression()
                self._expect("]")
                expr = IndexExpression(expr, index, location=self._span_from(start))
            elif self._match("."):
                token = self._current
                if token.kind not in (TokenKind.IDENTIFIER, TokenKind.INTEGER):
                    raise self._error(f"expected field or method name, found {token.describe()}",
                                      expected=("identifier",))
                self._advance()
                if self._match("("):
                    expr = MethodCall(expr, token.text, self._parse_arguments(")"), location=self._span_from(start))
                else:
                    expr = FieldAccess(expr, token.text, location=self._span_from(start))
            else:
                return expr

    def _parse_block_like(self) -> Expression:
        if self._check_keyword("if"):
            return self._parse_if()
        if self._check_keyword("match"):
            return self._parse_match()
        return self._parse_block()

    def _parse_primary(self) -> Expression:
        token = self._current

        if token.kind in _LITERAL_KINDS:
            self._advance()
            return self._literal(token)
        if token.is_keyword("true") or token.is_keyword("false"):
            self._advance()
            return Literal(token.text == "true", LiteralKind.BOOL, raw=token.text, location=token.location)

        if token.kind == TokenKind.IDENTIFIER:
            self._advance()
            if self._check("!"):
                return self._parse_macro_call(token)
            if self._check("::"):
                return self._parse_path(token)
            return Identifier(token.text, location=token.location)
        if token.is_keyword("self") or token.is_keyword("Self"):
            self._advance()
            return self._parse_path(token)

        if token.is_symbol("("):
            self._advance()
            if self._match(")"):
                return Literal(None, LiteralKind.UNIT, raw="()", location=self._span_from(token.location))
            expr = self._parse_expression()
            self._expect(")")
            return expr
        if token.is_symbol("{") or token.is_keyword("if") or token.is_keyword("match"):
            return self._parse_block_like()
        if token.is_symbol("["):
            self._advance()
            return ArrayLiteral(self._parse_arguments("]"), location=self._span_from(token.location))
        if token.is_symbol("|") or token.is_symbol("||") or token.is_keyword("move"):
            return self._parse_closure()

        if token.kind == TokenKind.KEYWORD and token.text in ("loop", "while", "for"):
            raise self._error(f"expected expression, found {token.describe()}", expected=EXPRESSION_START,
                              help="loops are statements; they cannot produce a value")
        raise self._error(f"expected expression, found {token.describe()}", expected=EXPRESSION_START)

    def _literal(self, token: Token, negate: bool = False) -> Literal:
        value = token.value
        raw = token.text
        if negate:
            value = -value
            raw = "-" + raw
        return Literal(value, _LITERAL_KINDS[token.kind], suffix=token.suffix, raw=raw, location=token.location)

    def _parse_macro_call(self, name_token: Token) -> FunctionCall:
        self._advance()  # `!`
        self._expect("(")
        arguments = self._parse_arguments(")")
        return FunctionCall(Identifier(name_token.text, location=name_token.location), arguments,
                            is_macro=True, location=self._span_from(name_token.location))

    def _parse_path(self, first: Token) -> PathExpression:
        segments = [first.text]
        while self._match("::"):
            segments.append(self._expect_identifier().text)
        return PathExpression(segments, location=self._span_from(first.location))

    def _parse_closure(self) -> ClosureExpression:
        start = self._current.location
        self._match_keyword("move")
        parameters: List[Parameter] = []
        if not self._match("||"):
            self._expect("|")
            while not self._check("|"):
                param_token = self._expect_identifier()
                param_type = self._parse_type() if self._match(":") else None
                parameters.append(Parameter(param_token.text, param_type, location=param_token.location))
                if not self._match(","):
                    break
            self._expect("|")
        outer_loop_depth = self._loop_depth
        self._function_depth += 1
        self._loop_depth = 0
        try:
            body = self._parse_expression()
        finally:
            self._function_depth -= 1
            self._loop_depth = outer_loop_depth
        return ClosureExpression(parameters, body, location=self._span_from(start))

    def _parse_if(self) -> IfExpression:
        start = self._expect_keyword("if").location
        if self._check_keyword("let"):
            raise self._error("expected expression, found `let`", expected=EXPRESSION_START,
                              help="`if let` is not supported; use `match`")
        condition = self._parse_expression()
        then_block = self._parse_block()
        else_branch = None
        if self._match_keyword("else"):
            if self._check_keyword("if"):
                else_branch = self._parse_if()
            else:
                else_branch = self._parse_block()
        return IfExpression(condition, then_block, else_branch, location=self._span_from(start))

    def _parse_match(self) -> MatchExpression:
        start = self._expect_keyword("match").location
        scrutinee = self._parse_expression()
        self._expect("{")
        arms: List[MatchArm] = []
        while not self._check("}"):
            arm_start = self._current.location
            pattern = self._parse_pattern()
            guard = self._parse_expression() if self._match_keyword("if") else None
            self._expect("=>")
            jump = any(self._check_keyword(word) for word in JUMP_KEYWORDS)
            body = self._parse_arm_body()
            arms.append(MatchArm(pattern, body, guard, location=self._span_from(arm_start)))
            if self._check("}"):
                break
            if body.node_type in BLOCK_LIKE and not jump and not self._check(","):
                continue
            self._expect(",")
        if not arms:
            raise self._error("match expression must have at least one arm", expected=("pattern",))
        self._expect("}")
        return MatchExpression(scrutinee, arms, location=self._span_from(start))

    def _parse_arm_body(self) -> Expression:
        """Arm body; `return`/`break`/`continue` become a one-statement block."""
        if self._check("{"):
            return self._parse_block()
        token = self._current
        if token.is_keyword("return"):
            statement = self._parse_return(terminated=False)
        elif token.is_keyword("break") or token.is_keyword("continue"):
            statement = self._parse_loop_control(terminated=False)
        else:
            return self._parse_expression()
        return BlockExpression([statement], None, location=statement.location)

    # =========================================================================
    # Patterns
    # =========================================================================

    def _parse_pattern(self) -> Pattern:
        start = self._current.location
        first = self._parse_pattern_atom()
        if not self._check("|"):
            return first
        alternatives = [first]
        while self._match("|"):
            alternatives.append(self._parse_pattern_atom())
        return OrPattern(alternatives, location=self._span_from(start))

    def _parse_pattern_literal(self) -> Optional[Literal]:
        token = self._current
        if token.is_symbol("-"):
            self._advance()
            number = self._current
            if number.kind not in (TokenKind.INTEGER, TokenKind.FLOAT):
                raise self._error(f"expected number, found {number.describe()}", expected=("number",))
            self._advance()
            literal = self._literal(number, negate=True)
            literal.location = token.location.to(number.location)
            return literal
        if token.kind in _LITERAL_KINDS:
            self._advance()
            return self._literal(token)
        if token.is_keyword("true") or token.is_keyword("false"):
            self._advance()
            return Literal(token.text == "true", LiteralKind.BOOL, raw=token.text, location=token.location)
        return None

    def _parse_pattern_atom(self) -> Pattern:
        token = self._current
        if token.kind == TokenKind.IDENTIFIER:
            self._advance()
            if token.text == "_":
                return WildcardPattern(location=token.location)
            return IdentifierPattern(token.text, location=token.location)

        literal = self._parse_pattern_literal()
        if literal is None:
            raise self._error(f"expected pattern, found {token.describe()}",
                              expected=("literal", "identifier", "_"))
        if self._check("..") or self._check("..="):
            inclusive = self._advance().text == "..="
            end = self._parse_pattern_literal()
            if end is None:
                raise self._error(f"expected range end, found {self._current.describe()}", expected=("literal",))
            return RangePattern(literal, end, inclusive, location=self._span_from(token.location))
        return LiteralPattern(literal, location=literal.location)


def parse_source(source: str, source_file: str = DEFAULT_SOURCE_FILE) -> Program:
    """Lex and parse one compilation unit."""
    return Parser(source, source_file).parse()
