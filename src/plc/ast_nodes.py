"""Syntax tree node definitions for the PLC language.

Nodes are immutable. The analyzer never writes into them; resolved types and
bindings are recorded in a ``plc.resolutions.Resolutions`` side table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Union


@dataclass(frozen=True)
class Char:
    """A character literal payload, kept distinct from one-letter strings."""

    value: str


LiteralValue = Union[None, bool, Char, str, int, Decimal]


# ── Expressions ──────────────────────────────────────────────────


@dataclass(frozen=True)
class Literal:
    value: LiteralValue


@dataclass(frozen=True)
class GroupExpr:
    expr: Expr


@dataclass(frozen=True)
class BinaryExpr:
    op: str
    left: Expr
    right: Expr


@dataclass(frozen=True)
class AccessExpr:
    receiver: Expr | None
    name: str


@dataclass(frozen=True)
class CallExpr:
    receiver: Expr | None
    name: str
    args: list[Expr] = field(default_factory=list)


Expr = Union[Literal, GroupExpr, BinaryExpr, AccessExpr, CallExpr]


# ── Statements ───────────────────────────────────────────────────


@dataclass(frozen=True)
class ExprStmt:
    expr: Expr


@dataclass(frozen=True)
class Declaration:
    name: str
    type_name: str | None = None
    value: Expr | None = None


@dataclass(frozen=True)
class Assignment:
    receiver: Expr
    value: Expr


@dataclass(frozen=True)
class IfStmt:
    condition: Expr
    then_body: list[Stmt] = field(default_factory=list)
    else_body: list[Stmt] = field(default_factory=list)


@dataclass(frozen=True)
class ForStmt:
    initialization: Stmt | None
    condition: Expr
    increment: Stmt | None
    body: list[Stmt] = field(default_factory=list)


@dataclass(frozen=True)
class WhileStmt:
    condition: Expr
    body: list[Stmt] = field(default_factory=list)


@dataclass(frozen=True)
class ReturnStmt:
    value: Expr


Stmt = Union[
    ExprStmt, Declaration, Assignment, IfStmt, ForStmt, WhileStmt, ReturnStmt,
]


# ── Declarations ─────────────────────────────────────────────────


@dataclass(frozen=True)
class FieldDef:
    name: str
    type_name: str
    constant: bool = False
    value: Expr | None = None


@dataclass(frozen=True)
class MethodDef:
    name: str
    parameters: list[str] = field(default_factory=list)
    parameter_type_names: list[str] = field(default_factory=list)
    return_type_name: str | None = None
    body: list[Stmt] = field(default_factory=list)


@dataclass(frozen=True)
class Source:
    fields: list[FieldDef] = field(default_factory=list)
    methods: list[MethodDef] = field(default_factory=list)


Node = Union[Source, FieldDef, MethodDef, Stmt, Expr]
