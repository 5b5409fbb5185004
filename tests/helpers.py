"""Shared test helpers for the PLC analyzer test suite."""

from __future__ import annotations

from decimal import Decimal

from plc.analyzer import Analysis, Analyzer
from plc.ast_nodes import AccessExpr, BinaryExpr, CallExpr, ExprStmt, Literal, Node
from plc.errors import AnalysisError
from plc.symbols import Scope
from plc.types import TypeCatalog


def check(node: Node, scope: Scope | None = None, catalog: TypeCatalog | None = None) -> Analysis:
    """Analyze a node, asserting no errors. Returns the analysis."""
    analysis = Analyzer(scope, catalog).analyze(node)
    assert analysis.ok, f"Unexpected error: {analysis.error.code}: {analysis.error}"
    assert analysis.resolutions is not None
    return analysis


def check_fails(
    node: Node,
    error_type: type[AnalysisError],
    scope: Scope | None = None,
    catalog: TypeCatalog | None = None,
) -> AnalysisError:
    """Analyze a node, asserting it fails with the given error type."""
    analysis = Analyzer(scope, catalog).analyze(node)
    assert not analysis.ok, "Expected an error but analysis succeeded"
    assert analysis.resolutions is None
    assert isinstance(analysis.error, error_type), (
        f"Expected {error_type.__name__} but got "
        f"{type(analysis.error).__name__}: {analysis.error}"
    )
    return analysis.error


# ── Tree shorthands ─────────────────────────────────────────────


def lit(value: object) -> Literal:
    if isinstance(value, float):
        value = Decimal(str(value))
    return Literal(value)  # type: ignore[arg-type]


def var(name: str, receiver: object = None) -> AccessExpr:
    return AccessExpr(receiver, name)  # type: ignore[arg-type]


def call(name: str, *args: object, receiver: object = None) -> CallExpr:
    return CallExpr(receiver, name, list(args))  # type: ignore[arg-type]


def binary(op: str, left: object, right: object) -> BinaryExpr:
    return BinaryExpr(op, left, right)  # type: ignore[arg-type]


def print_stmt(value: object) -> ExprStmt:
    """``print(value);``"""
    return ExprStmt(call("print", value))
