"""Span traversal and rebasing.

Spans are created with absolute offsets and a placeholder owner. Once a
statement is complete, every span in it is rewritten to be owned by the
statement's definition and measured from the statement's own start. An edit
inside one definition then leaves every other definition's subtree equal to
what it was before; only the ``Definition`` ranges on the program move.
"""

import logging
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor

from . import ast
from .interner import DefId, DefKind, Interner

logger = logging.getLogger(__name__)

Node = ast.Function | ast.Print | ast.Number | ast.Variable | ast.Call | ast.Op


def walk(node: Node) -> Iterator[Node]:
    """Pre-order traversal, without recursion."""
    stack = [node]
    while stack:
        node = stack.pop()
        yield node
        match node:
            case ast.Function(body=body):
                stack.append(body)
            case ast.Print(expression=expression):
                stack.append(expression)
            case ast.Op(left=left, right=right):
                stack.append(right)
                stack.append(left)
            case ast.Call(args=args):
                stack.extend(reversed(args))


def iter_spans(node: Node) -> Iterator[ast.Span]:
    for n in walk(node):
        yield n.span
        if isinstance(n, ast.Function):
            yield n.name_span


def rebase(statement: ast.Function | ast.Print, def_id: DefId) -> ast.Definition:
    """Make every span in `statement` relative to the statement's start.

    Returns the statement's absolute extent.
    """
    if statement.span.owner.kind is not DefKind.UNKNOWN:
        raise ValueError(f"statement already rebased to {statement.span.owner!r}")
    offset = statement.span.start
    definition = ast.Definition(id=def_id, start=offset, end=statement.span.end)
    for span in iter_spans(statement):
        span.owner = def_id
        span.start -= offset
        span.end -= offset
    return definition


def definition_id(statement: ast.Function | ast.Print, interner: Interner) -> DefId:
    if isinstance(statement, ast.Function):
        return interner.definition(DefKind.FUNCTION, function=statement.name)
    return interner.root()


def assign_definitions(
    statements: list[ast.Function | ast.Print],
    interner: Interner,
    workers: int = 1,
) -> list[ast.Definition]:
    """Allocate a DefId for each statement and rebase it.

    Statements share no nodes, so with ``workers > 1`` they are rebased
    concurrently.
    """
    ids = [definition_id(s, interner) for s in statements]

    if workers > 1 and len(statements) > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            definitions = list(executor.map(rebase, statements, ids))
    else:
        definitions = [rebase(s, d) for s, d in zip(statements, ids)]

    for definition in definitions:
        logger.debug(
            "rebased %r at [%d, %d)", definition.id, definition.start, definition.end
        )
    return definitions
