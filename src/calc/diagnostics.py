"""Report syntax errors as values instead of exceptions."""

import logging

from pydantic import BaseModel

from . import ast
from .config import ParserConfig
from .interner import Interner
from .parser import CalcSyntaxError, LexError, ParseError, parse

logger = logging.getLogger(__name__)


class Diagnostic(BaseModel):
    start: int
    end: int
    message: str


class CheckResult(BaseModel):
    program: ast.Program
    diagnostics: list[Diagnostic] = []

    @property
    def ok(self) -> bool:
        return not self.diagnostics


def to_diagnostic(err: CalcSyntaxError) -> Diagnostic:
    """Absolute range of the offending character or token."""
    if isinstance(err, LexError):
        end = err.at + len(err.char)
    elif isinstance(err, ParseError):
        end = err.found.end
    else:
        end = err.at
    return Diagnostic(start=err.at, end=end, message=str(err))


def check(
    source: str,
    interner: Interner | None = None,
    config: ParserConfig | None = None,
) -> CheckResult:
    """Parse `source`; on failure return an empty program and one diagnostic."""
    try:
        program = parse(source, interner, config)
    except CalcSyntaxError as e:
        logger.debug("parse failed: %s", e)
        return CheckResult(program=ast.Program(), diagnostics=[to_diagnostic(e)])
    return CheckResult(program=program)
