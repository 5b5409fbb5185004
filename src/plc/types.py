"""Resolved type representations for the PLC type system.

Types are identity-compared: two types are interchangeable only when they are
the same object, except where the assignability lattice says otherwise.
"""

from __future__ import annotations

from plc.errors import (
    DuplicateDefinitionError,
    NotAssignableError,
    UndefinedNameError,
    UnknownTypeError,
)
from plc.symbols import Function, Scope, Variable


class Type:
    """A named type with a member scope holding its fields and methods."""

    def __init__(self, name: str, internal_name: str, scope: Scope | None = None) -> None:
        self.name = name
        self.internal_name = internal_name
        self.scope = scope if scope is not None else Scope()

    def field(self, name: str) -> Variable:
        try:
            return self.scope.lookup_variable(name)
        except UndefinedNameError:
            raise UndefinedNameError(
                f"type '{self.name}' has no field '{name}'",
                name=name,
                candidates=self.scope.visible_variable_names(),
            ) from None

    def method(self, name: str, arity: int) -> Function:
        """Look up a method by argument count.

        Methods are stored with the receiver as parameter 0, so the stored
        arity is one more than the number of call arguments.
        """
        try:
            return self.scope.lookup_function(name, arity + 1)
        except UndefinedNameError:
            raise UndefinedNameError(
                f"type '{self.name}' has no method '{name}/{arity}'",
                name=name,
                candidates=self.scope.visible_function_names(),
            ) from None

    def __repr__(self) -> str:
        return f"Type({self.name!r})"

    def __str__(self) -> str:
        return self.name


# ── Built-in type constants ─────────────────────────────────────

ANY = Type("Any", "object")
NIL = Type("Nil", "None")
COMPARABLE = Type("Comparable", "Comparable")
BOOLEAN = Type("Boolean", "bool")
INTEGER = Type("Integer", "int")
DECIMAL = Type("Decimal", "float")
CHARACTER = Type("Character", "str")
STRING = Type("String", "str")

BUILTINS: dict[str, Type] = {
    ty.name: ty
    for ty in (ANY, NIL, COMPARABLE, BOOLEAN, INTEGER, DECIMAL, CHARACTER, STRING)
}

_COMPARABLE_MEMBERS = frozenset({INTEGER, DECIMAL, CHARACTER, STRING})


class TypeCatalog:
    """The fixed built-in types plus any registered object types."""

    def __init__(self) -> None:
        self._types: dict[str, Type] = dict(BUILTINS)

    def register(self, ty: Type) -> Type:
        if ty.name in self._types:
            raise DuplicateDefinitionError(f"type '{ty.name}' is already defined")
        self._types[ty.name] = ty
        return ty

    def resolve(self, name: str) -> Type:
        ty = self._types.get(name)
        if ty is None:
            raise UnknownTypeError(name, candidates=self._types)
        return ty

    def __contains__(self, name: object) -> bool:
        return name in self._types


# ── Assignability ───────────────────────────────────────────────


def is_assignable(target: Type, source: Type) -> bool:
    """Whether a value of type *source* may flow into a slot of type *target*.

    Reflexive but not symmetric: Any accepts everything and Comparable accepts
    its four members, while neither flows back into a narrower type.
    """
    if target is source:
        return True
    if target is ANY:
        return True
    if target is COMPARABLE:
        return source in _COMPARABLE_MEMBERS
    return False


def require_assignable(target: Type, source: Type) -> None:
    if not is_assignable(target, source):
        raise NotAssignableError(target, source)
