"""calc front end: lex and parse calc source into definition-scoped ASTs.

Pipeline: lex -> parse with placeholder spans -> rebase each statement onto
its own definition.

Example:
    from calc import Interner, parse

    interner = Interner()
    program = parse("fn f(x) = x * 2; print f(21);", interner)
    for def_id, statement in program.items():
        ...
"""

__version__ = "0.1.0"

from .ast import (
    Call,
    Definition,
    Expr,
    Function,
    Number,
    Op,
    Operator,
    Print,
    Program,
    Span,
    Statement,
    Variable,
)
from .config import ParserConfig, load_config
from .diagnostics import CheckResult, Diagnostic, check
from .interner import DefId, DefKind, FunctionId, Interner, Symbol, VariableId
from .parser import (
    CalcSyntaxError,
    LexError,
    Lexer,
    ParseError,
    Parser,
    Token,
    parse,
    parse_expression,
)
from .spans import assign_definitions, iter_spans, rebase, walk

__all__ = [
    # Lex / parse
    "parse",
    "parse_expression",
    "Lexer",
    "Parser",
    "Token",
    "CalcSyntaxError",
    "LexError",
    "ParseError",
    # AST
    "Program",
    "Definition",
    "Statement",
    "Function",
    "Print",
    "Expr",
    "Number",
    "Variable",
    "Call",
    "Op",
    "Operator",
    "Span",
    # Interning
    "Interner",
    "Symbol",
    "VariableId",
    "FunctionId",
    "DefId",
    "DefKind",
    # Spans
    "walk",
    "iter_spans",
    "rebase",
    "assign_definitions",
    # Diagnostics
    "check",
    "CheckResult",
    "Diagnostic",
    # Config
    "ParserConfig",
    "load_config",
]
