"""Side table of resolved types and bindings produced by the analyzer."""

from __future__ import annotations

from typing import TYPE_CHECKING

from plc.symbols import Function, Variable

if TYPE_CHECKING:
    from plc.ast_nodes import Expr, Node
    from plc.types import Type


class Resolutions:
    """Maps syntax tree nodes, by identity, to what the analyzer resolved.

    Each slot is written exactly once per run. Nodes are keyed by ``id`` and
    kept alive by the table itself, so structurally equal nodes in different
    positions get separate entries.
    """

    def __init__(self) -> None:
        self._types: dict[int, tuple[Expr, Type]] = {}
        self._bindings: dict[int, tuple[Node, Variable | Function]] = {}

    def set_type(self, expr: Expr, ty: Type) -> None:
        key = id(expr)
        if key in self._types:
            raise RuntimeError(f"type of {type(expr).__name__} resolved twice")
        self._types[key] = (expr, ty)

    def set_binding(self, node: Node, binding: Variable | Function) -> None:
        key = id(node)
        if key in self._bindings:
            raise RuntimeError(f"binding of {type(node).__name__} resolved twice")
        self._bindings[key] = (node, binding)

    def type_of(self, expr: Expr) -> Type:
        entry = self._types.get(id(expr))
        if entry is None or entry[0] is not expr:
            raise KeyError(f"no resolved type for {expr!r}")
        return entry[1]

    def binding_of(self, node: Node) -> Variable | Function:
        entry = self._bindings.get(id(node))
        if entry is None or entry[0] is not node:
            raise KeyError(f"no resolved binding for {node!r}")
        return entry[1]

    def variable_of(self, node: Node) -> Variable:
        binding = self.binding_of(node)
        if not isinstance(binding, Variable):
            raise TypeError(f"{type(node).__name__} is bound to a function")
        return binding

    def function_of(self, node: Node) -> Function:
        binding = self.binding_of(node)
        if not isinstance(binding, Function):
            raise TypeError(f"{type(node).__name__} is bound to a variable")
        return binding

    def has_type(self, expr: Expr) -> bool:
        entry = self._types.get(id(expr))
        return entry is not None and entry[0] is expr

    def has_binding(self, node: Node) -> bool:
        entry = self._bindings.get(id(node))
        return entry is not None and entry[0] is node

    def __len__(self) -> int:
        return len(self._types) + len(self._bindings)
