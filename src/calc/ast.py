"""AST nodes for calc programs."""

from collections.abc import Iterator
from enum import Enum
from typing import Annotated
from typing import Literal as TypingLiteral

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .interner import DefId, FunctionId, VariableId


class Span(BaseModel):
    """Source range of a node.

    Offsets are absolute while ``owner`` is the placeholder definition, and
    relative to the owner's start once the enclosing statement is rebased.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    owner: DefId
    start: int
    end: int

    @model_validator(mode="after")
    def check_order(self) -> "Span":
        if self.start > self.end:
            raise ValueError(f"span start {self.start} is after end {self.end}")
        return self


class Operator(str, Enum):
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"


# Expressions - discriminated on `type`
class Number(BaseModel):
    type: TypingLiteral["number"] = "number"
    span: Span
    value: float  # integer literals are widened at parse time


class Variable(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    type: TypingLiteral["variable"] = "variable"
    span: Span
    id: VariableId


class Call(BaseModel):
    """Function call (e.g., area(3, 4))."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    type: TypingLiteral["call"] = "call"
    span: Span
    function: FunctionId
    args: list["Expr"]


class Op(BaseModel):
    type: TypingLiteral["op"] = "op"
    span: Span
    left: "Expr"
    op: Operator
    right: "Expr"


Expr = Annotated[
    Number | Variable | Call | Op,
    Field(discriminator="type"),
]


# Statements
class Function(BaseModel):
    """Defines `fn <name>(<params>) = <body>;`."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    type: TypingLiteral["function"] = "function"
    span: Span
    name: FunctionId
    name_span: Span
    params: list[VariableId] = []  # duplicates are left to later passes
    body: Expr


class Print(BaseModel):
    """Defines `print <expr>;`."""

    type: TypingLiteral["print"] = "print"
    span: Span
    expression: Expr


Statement = Annotated[
    Function | Print,
    Field(discriminator="type"),
]


class Definition(BaseModel):
    """Absolute source range of one top-level definition."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: DefId
    start: int
    end: int


class Program(BaseModel):
    """A parsed source unit, statements in source order."""

    statements: list[Statement] = []
    definitions: list[Definition] = []  # parallel to statements; prints share the root id

    @property
    def functions(self) -> list[Function]:
        return [s for s in self.statements if isinstance(s, Function)]

    def items(self) -> Iterator[tuple[DefId, Function | Print]]:
        """(definition id, statement) pairs, the unit of memoization."""
        for definition, statement in zip(self.definitions, self.statements):
            yield definition.id, statement


# Rebuild models for forward references
Call.model_rebuild()
Op.model_rebuild()
Function.model_rebuild()
Print.model_rebuild()
