"""Lexer and parser for calc source.

Grammar:
    program     = statement*
    statement   = function | print
    function    = "fn" IDENT "(" (IDENT ",")* IDENT? ")" "=" expr ";"
    print       = "print" expr ";"
    expr        = term (("+" | "-") term)*
    term        = atom (("*" | "/") atom)*
    atom        = INT | IDENT | call | "(" expr ")"
    call        = IDENT "(" (expr ",")* expr? ")"

Each precedence layer is a loop that folds to the left, so both `+`/`-` and
`*`/`/` are left-associative and the tighter layer is parsed first.
Parentheses and call arguments push a group on an explicit stack instead of
recursing.
"""

import logging
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from . import ast
from .config import ParserConfig
from .interner import Interner
from .spans import assign_definitions

logger = logging.getLogger(__name__)


@dataclass
class Token:
    type: str
    value: str
    start: int
    end: int


SUM_OPS = {"PLUS": ast.Operator.ADD, "MINUS": ast.Operator.SUBTRACT}
TERM_OPS = {"STAR": ast.Operator.MULTIPLY, "SLASH": ast.Operator.DIVIDE}


@dataclass
class _Group:
    """An expression under construction: the whole expression, a
    parenthesized group, or the current argument of a call."""

    kind: str  # "expr", "paren" or "call"
    start: int = 0  # offset of "(" or of the call name
    name: Token | None = None
    args: list = field(default_factory=list)
    sum: ast.Expr | None = None
    sum_start: int = 0
    sum_op: ast.Operator | None = None
    term: ast.Expr | None = None
    term_start: int = 0
    term_op: ast.Operator | None = None


class CalcSyntaxError(Exception):
    """Base for errors that abort parsing of a source unit."""

    def __init__(self, msg: str, at: int):
        super().__init__(f"offset {at}: {msg}")
        self.at = at


class LexError(CalcSyntaxError):
    def __init__(self, char: str, at: int, message: str | None = None):
        super().__init__(message or f"unexpected character {char!r}", at)
        self.char = char


class ParseError(CalcSyntaxError):
    def __init__(
        self,
        expected: frozenset[str],
        found: Token,
        at: int,
        message: str | None = None,
    ):
        if message is None:
            message = f"unexpected {found.type}"
            if expected:
                message += f", expected one of {', '.join(sorted(expected))}"
        super().__init__(message, at)
        self.expected = expected
        self.found = found
        self.message = message


class Lexer:
    """Lazy lexer. Each iteration rescans the source from the start."""

    KEYWORDS = {"fn", "print"}

    TOKEN_PATTERNS = [
        (re.compile(r"\s+"), "WS"),
        (re.compile(r"//[^\n]*"), "COMMENT"),
        (re.compile(r"/\*.*?\*/", re.DOTALL), "COMMENT"),
        (re.compile(r"/\*"), "UNTERMINATED"),
        (re.compile(r"[0-9]+"), "INT"),
        (re.compile(r"[a-zA-Z_][a-zA-Z_0-9]*"), "IDENT"),
        (re.compile(r"\+"), "PLUS"),
        (re.compile(r"-"), "MINUS"),
        (re.compile(r"\*"), "STAR"),
        (re.compile(r"/"), "SLASH"),
        (re.compile(r"\("), "LPAREN"),
        (re.compile(r"\)"), "RPAREN"),
        (re.compile(r";"), "SEMI"),
        (re.compile(r"="), "EQUALS"),
        (re.compile(r","), "COMMA"),
    ]

    def __init__(self, source: str):
        self.source = source

    def __iter__(self) -> Iterator[Token]:
        return self._scan()

    def _scan(self) -> Iterator[Token]:
        pos = 0
        while pos < len(self.source):
            for pattern, ttype in self.TOKEN_PATTERNS:
                m = pattern.match(self.source, pos)
                if m:
                    value = m.group(0)
                    if ttype == "UNTERMINATED":
                        raise LexError(value, pos, "unterminated block comment")
                    if ttype not in ("WS", "COMMENT"):
                        if ttype == "IDENT" and value in self.KEYWORDS:
                            ttype = value.upper()
                        yield Token(ttype, value, pos, m.end())
                    pos = m.end()
                    break
            else:
                raise LexError(self.source[pos], pos)

        yield Token("EOF", "", pos, pos)


class Parser:
    """Recursive descent parser with one token of lookahead.

    Nodes are built with absolute spans owned by the placeholder definition;
    ``parse_program`` rebases each statement once it is complete.
    """

    def __init__(
        self,
        tokens: Iterable[Token],
        interner: Interner,
        config: ParserConfig | None = None,
    ):
        self.interner = interner
        self.config = config or ParserConfig()
        self._tokens = iter(tokens)
        self._current = next(self._tokens)
        self._prev_end = 0
        # classes probed at the current position, reported on failure
        self._expected: set[str] = set()
        self._unknown = interner.unknown()

    def peek(self) -> Token:
        return self._current

    def at(self, *types: str) -> bool:
        self._expected.update(types)
        return self._current.type in types

    def advance(self) -> Token:
        tok = self._current
        if tok.type != "EOF":
            self._current = next(self._tokens)
        self._prev_end = tok.end
        self._expected.clear()
        return tok

    def expect(self, ttype: str) -> Token:
        if not self.at(ttype):
            raise self.error()
        return self.advance()

    def match(self, *types: str) -> Token | None:
        if self.at(*types):
            return self.advance()
        return None

    def error(self, message: str | None = None) -> ParseError:
        tok = self.peek()
        return ParseError(frozenset(self._expected), tok, tok.start, message)

    def span(self, start: int, end: int | None = None) -> ast.Span:
        """Placeholder-owned span from `start` to the last consumed token."""
        return ast.Span(
            owner=self._unknown,
            start=start,
            end=self._prev_end if end is None else end,
        )

    def parse_program(self) -> ast.Program:
        """Parse a complete source unit."""
        statements = []
        while not self.at("EOF"):
            statements.append(self.parse_statement())

        definitions = assign_definitions(
            statements, self.interner, workers=self.config.rebase_workers
        )
        logger.debug("parsed %d statements", len(statements))
        return ast.Program(statements=statements, definitions=definitions)

    def parse_statement(self) -> ast.Function | ast.Print:
        if self.at("FN"):
            return self.parse_function()
        if self.at("PRINT"):
            return self.parse_print()
        raise self.error()

    def parse_function(self) -> ast.Function:
        """Parse function definition."""
        start = self.expect("FN").start
        name_tok = self.expect("IDENT")
        name_span = self.span(name_tok.start, name_tok.end)
        self.expect("LPAREN")

        params = []
        while not self.at("RPAREN"):
            params.append(self.interner.variable(self.expect("IDENT").value))
            if not self.match("COMMA"):
                break
        self.expect("RPAREN")
        self.expect("EQUALS")
        body = self.parse_expr()
        self.expect("SEMI")

        return ast.Function(
            span=self.span(start),
            name=self.interner.function(name_tok.value),
            name_span=name_span,
            params=params,
            body=body,
        )

    def parse_print(self) -> ast.Print:
        start = self.expect("PRINT").start
        expression = self.parse_expr()
        self.expect("SEMI")
        return ast.Print(span=self.span(start), expression=expression)

    def parse_expr(self) -> ast.Expr:
        """Parse an expression.

        Open parentheses and call argument lists are kept on an explicit
        stack of groups, so nesting depth is not limited by the interpreter's
        recursion limit.
        """
        stack = [_Group("expr")]
        while True:
            if tok := self.match("INT"):
                operand = ast.Number(span=self.span(tok.start), value=self._int_value(tok))
                start = tok.start
            elif tok := self.match("IDENT"):
                if not self.match("LPAREN"):
                    operand = ast.Variable(
                        span=self.span(tok.start), id=self.interner.variable(tok.value)
                    )
                    start = tok.start
                elif self.at("RPAREN"):
                    self.advance()
                    operand = self._call(_Group("call", tok.start, tok))
                    start = tok.start
                else:
                    stack.append(_Group("call", tok.start, tok))
                    continue
            elif tok := self.match("LPAREN"):
                stack.append(_Group("paren", tok.start))
                continue
            else:
                raise self.error()

            # fold the operand in, closing every group it completes
            while True:
                group = stack[-1]
                self._fold_term(group, operand, start)
                if tok := self.match("STAR", "SLASH"):
                    group.term_op = TERM_OPS[tok.type]
                    break
                self._fold_sum(group)
                if tok := self.match("PLUS", "MINUS"):
                    group.sum_op = SUM_OPS[tok.type]
                    break

                expr, group.sum = group.sum, None
                if group.kind == "expr":
                    return expr
                if group.kind == "paren":
                    # the parenthesized expression keeps its own span
                    self.expect("RPAREN")
                    stack.pop()
                    operand, start = expr, group.start
                    continue

                group.args.append(expr)
                if self.match("COMMA") and not self.at("RPAREN"):
                    break
                self.expect("RPAREN")
                stack.pop()
                operand, start = self._call(group), group.start

    def _fold_term(self, group: _Group, operand: ast.Expr, start: int) -> None:
        if group.term is None:
            group.term, group.term_start = operand, start
        else:
            group.term = ast.Op(
                span=self.span(group.term_start),
                left=group.term,
                op=group.term_op,
                right=operand,
            )

    def _fold_sum(self, group: _Group) -> None:
        if group.sum is None:
            group.sum, group.sum_start = group.term, group.term_start
        else:
            group.sum = ast.Op(
                span=self.span(group.sum_start),
                left=group.sum,
                op=group.sum_op,
                right=group.term,
            )
        group.term = None

    def _call(self, group: _Group) -> ast.Call:
        return ast.Call(
            span=self.span(group.start),
            function=self.interner.function(group.name.value),
            args=group.args,
        )

    def _int_value(self, tok: Token) -> float:
        if self.config.overflow == "error" and _exceeds(tok.value, self.config.int_max):
            raise ParseError(
                frozenset(),
                tok,
                tok.start,
                f"integer literal out of range: {tok.value}",
            )
        return float(tok.value)


def _exceeds(digits: str, limit: int) -> bool:
    # compared as strings so arbitrarily long literals never reach int()
    digits = digits.lstrip("0") or "0"
    bound = str(limit)
    return len(digits) > len(bound) or (len(digits) == len(bound) and digits > bound)


def parse(
    source: str,
    interner: Interner | None = None,
    config: ParserConfig | None = None,
) -> ast.Program:
    """Parse calc source into a Program with definition-relative spans."""
    if interner is None:
        interner = Interner()
    parser = Parser(Lexer(source), interner, config)
    return parser.parse_program()


def parse_expression(
    source: str,
    interner: Interner | None = None,
    config: ParserConfig | None = None,
) -> ast.Expr:
    """Parse a standalone expression. Spans stay absolute and unowned."""
    if interner is None:
        interner = Interner()
    parser = Parser(Lexer(source), interner, config)
    expr = parser.parse_expr()
    parser.expect("EOF")
    return expr
