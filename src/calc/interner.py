"""Interned handles for identifiers and definitions.

Handles compare by identity: the same text interned twice through one
``Interner`` yields the same object, so ``==`` is a pointer comparison.
"""

import threading
from enum import Enum


class Symbol:
    """An interned identifier."""

    __slots__ = ("text",)

    def __init__(self, text: str):
        self.text = text

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.text!r})"


class VariableId(Symbol):
    __slots__ = ()


class FunctionId(Symbol):
    __slots__ = ()


class DefKind(Enum):
    UNKNOWN = "unknown"
    FUNCTION = "function"
    ROOT = "root"  # groups the top-level print statements


class DefId:
    """Identity of a top-level definition."""

    __slots__ = ("kind", "function")

    def __init__(self, kind: DefKind, function: FunctionId | None = None):
        self.kind = kind
        self.function = function

    def __repr__(self) -> str:
        if self.kind is DefKind.FUNCTION:
            return f"DefId(function={self.function.text!r})"
        return f"DefId({self.kind.value})"


class Interner:
    """Shared interning context.

    Variables and functions live in separate tables. Safe to share between
    threads parsing independent sources.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._variables: dict[str, VariableId] = {}
        self._functions: dict[str, FunctionId] = {}
        self._definitions: dict[tuple, DefId] = {}

    def variable(self, text: str) -> VariableId:
        with self._lock:
            if text not in self._variables:
                self._variables[text] = VariableId(text)
            return self._variables[text]

    def function(self, text: str) -> FunctionId:
        with self._lock:
            if text not in self._functions:
                self._functions[text] = FunctionId(text)
            return self._functions[text]

    def definition(self, kind: DefKind, function: FunctionId | None = None) -> DefId:
        """Intern a definition identity. Functions are keyed by name."""
        if (kind is DefKind.FUNCTION) != (function is not None):
            raise ValueError("only function definitions take a FunctionId")
        key = (kind, function)
        with self._lock:
            if key not in self._definitions:
                self._definitions[key] = DefId(kind, function)
            return self._definitions[key]

    def unknown(self) -> DefId:
        """Placeholder owner for spans created before rebasing."""
        return self.definition(DefKind.UNKNOWN)

    def root(self) -> DefId:
        """Owner of every top-level print statement."""
        return self.definition(DefKind.ROOT)
