"""Bindings and the lexically scoped binding table for the PLC analyzer."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from plc.errors import DuplicateDefinitionError, UndefinedNameError

if TYPE_CHECKING:
    from plc.types import Type


@dataclass(frozen=True)
class Variable:
    name: str
    internal_name: str
    type: Type
    constant: bool
    value: object = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Function:
    name: str
    internal_name: str
    parameter_types: tuple[Type, ...]
    return_type: Type
    behavior: Callable[..., object] | None = field(default=None, compare=False, repr=False)

    @property
    def arity(self) -> int:
        return len(self.parameter_types)


class Scope:
    """A single lexical scope level, chained to its parent.

    Variables are keyed by name and functions by (name, arity), so functions
    may be overloaded on argument count within one scope. Redefining either
    key in the same scope is rejected; inner scopes may shadow outer ones.
    """

    def __init__(self, parent: Scope | None = None) -> None:
        self.parent = parent
        self._variables: dict[str, Variable] = {}
        self._functions: dict[tuple[str, int], Function] = {}

    def define_variable(
        self,
        name: str,
        internal_name: str,
        type: Type,
        constant: bool,
        value: object = None,
    ) -> Variable:
        if name in self._variables:
            raise DuplicateDefinitionError(
                f"variable '{name}' is already defined in this scope"
            )
        variable = Variable(name, internal_name, type, constant, value)
        self._variables[name] = variable
        return variable

    def define_function(
        self,
        name: str,
        internal_name: str,
        parameter_types: Sequence[Type],
        return_type: Type,
        behavior: Callable[..., object] | None = None,
    ) -> Function:
        key = (name, len(parameter_types))
        if key in self._functions:
            raise DuplicateDefinitionError(
                f"function '{name}/{key[1]}' is already defined in this scope"
            )
        function = Function(name, internal_name, tuple(parameter_types), return_type, behavior)
        self._functions[key] = function
        return function

    def lookup_variable(self, name: str) -> Variable:
        scope: Scope | None = self
        while scope is not None:
            variable = scope._variables.get(name)
            if variable is not None:
                return variable
            scope = scope.parent
        raise UndefinedNameError(
            f"undefined variable '{name}'",
            name=name,
            candidates=self.visible_variable_names(),
        )

    def lookup_function(self, name: str, arity: int) -> Function:
        scope: Scope | None = self
        while scope is not None:
            function = scope._functions.get((name, arity))
            if function is not None:
                return function
            scope = scope.parent
        raise UndefinedNameError(
            f"undefined function '{name}/{arity}'",
            name=name,
            candidates=self.visible_function_names(),
        )

    def visible_variable_names(self) -> list[str]:
        """Names of all variables reachable from this scope, innermost first."""
        names: list[str] = []
        scope: Scope | None = self
        while scope is not None:
            for name in scope._variables:
                if name not in names:
                    names.append(name)
            scope = scope.parent
        return names

    def visible_function_names(self) -> list[str]:
        names: list[str] = []
        scope: Scope | None = self
        while scope is not None:
            for name, _ in scope._functions:
                if name not in names:
                    names.append(name)
            scope = scope.parent
        return names
