"""JSON interchange for syntax trees handed over by the parser.

Every node is a JSON object whose ``"kind"`` names the node. Integers load as
``int`` and numbers with a fraction or exponent as ``Decimal``, so literal
values keep their full precision until the analyzer range-checks them.
"""

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path
from typing import Any

from plc.ast_nodes import (
    AccessExpr,
    Assignment,
    BinaryExpr,
    CallExpr,
    Char,
    Declaration,
    Expr,
    ExprStmt,
    FieldDef,
    ForStmt,
    GroupExpr,
    IfStmt,
    Literal,
    MethodDef,
    Node,
    ReturnStmt,
    Source,
    Stmt,
    WhileStmt,
)
from plc.resolutions import Resolutions
from plc.symbols import Function, Variable


class TreeFormatError(ValueError):
    """A tree document that does not describe a valid syntax tree."""


def load_file(path: Path) -> Node:
    try:
        text = path.read_text()
    except OSError as e:
        raise TreeFormatError(f"cannot read {path}: {e.strerror}") from None
    return loads(text)


def loads(text: str) -> Node:
    try:
        data = json.loads(text, parse_float=Decimal, parse_int=_parse_int)
    except json.JSONDecodeError as e:
        raise TreeFormatError(f"invalid JSON at line {e.lineno}: {e.msg}") from None
    except ValueError as e:
        raise TreeFormatError(f"invalid JSON: {e}") from None
    return load_node(data)


def _parse_int(text: str) -> int:
    # int() caps the digits of a decimal string; Decimal keeps the exact value.
    try:
        return int(text)
    except ValueError:
        return int(Decimal(text))


def load_node(data: Any) -> Node:
    """Build a node of any kind from its decoded JSON form."""
    kind = _kind(data)
    if kind == "Source":
        return Source(
            fields=[_load_field(f) for f in _list(data, "fields")],
            methods=[_load_method(m) for m in _list(data, "methods")],
        )
    if kind == "Field":
        return _load_field(data)
    if kind == "Method":
        return _load_method(data)
    if kind in _STMT_KINDS:
        return load_stmt(data)
    return load_expr(data)


# ── Declarations ─────────────────────────────────────────────────


def _load_field(data: Any) -> FieldDef:
    _expect(data, "Field")
    return FieldDef(
        name=_str(data, "name"),
        type_name=_str(data, "type"),
        constant=bool(data.get("constant", False)),
        value=_optional_expr(data, "value"),
    )


def _load_method(data: Any) -> MethodDef:
    _expect(data, "Method")
    return_type = data.get("return_type")
    if return_type is not None and not isinstance(return_type, str):
        raise TreeFormatError("Method 'return_type' must be a string")
    return MethodDef(
        name=_str(data, "name"),
        parameters=[_plain_str(p, "parameters") for p in _list(data, "parameters")],
        parameter_type_names=[
            _plain_str(p, "parameter_types") for p in _list(data, "parameter_types")
        ],
        return_type_name=return_type,
        body=[load_stmt(s) for s in _list(data, "statements")],
    )


# ── Statements ───────────────────────────────────────────────────

_STMT_KINDS = frozenset({
    "Expression", "Declaration", "Assignment", "If", "For", "While", "Return",
})


def load_stmt(data: Any) -> Stmt:
    kind = _kind(data)
    if kind == "Expression":
        return ExprStmt(load_expr(data.get("expression")))
    if kind == "Declaration":
        type_name = data.get("type")
        if type_name is not None and not isinstance(type_name, str):
            raise TreeFormatError("Declaration 'type' must be a string")
        return Declaration(
            name=_str(data, "name"),
            type_name=type_name,
            value=_optional_expr(data, "value"),
        )
    if kind == "Assignment":
        return Assignment(load_expr(data.get("receiver")), load_expr(data.get("value")))
    if kind == "If":
        return IfStmt(
            condition=load_expr(data.get("condition")),
            then_body=[load_stmt(s) for s in _list(data, "then")],
            else_body=[load_stmt(s) for s in _list(data, "else")],
        )
    if kind == "For":
        return ForStmt(
            initialization=_optional_stmt(data, "initialization"),
            condition=load_expr(data.get("condition")),
            increment=_optional_stmt(data, "increment"),
            body=[load_stmt(s) for s in _list(data, "statements")],
        )
    if kind == "While":
        return WhileStmt(
            condition=load_expr(data.get("condition")),
            body=[load_stmt(s) for s in _list(data, "statements")],
        )
    if kind == "Return":
        return ReturnStmt(load_expr(data.get("value")))
    raise TreeFormatError(f"unknown statement kind '{kind}'")


def _optional_stmt(data: dict[str, Any], key: str) -> Stmt | None:
    value = data.get(key)
    return load_stmt(value) if value is not None else None


# ── Expressions ──────────────────────────────────────────────────


def load_expr(data: Any) -> Expr:
    kind = _kind(data)
    if kind == "Literal":
        return Literal(_literal_value(data))
    if kind == "Group":
        return GroupExpr(load_expr(data.get("expression")))
    if kind == "Binary":
        return BinaryExpr(
            _str(data, "operator"),
            load_expr(data.get("left")),
            load_expr(data.get("right")),
        )
    if kind == "Access":
        return AccessExpr(_optional_expr(data, "receiver"), _str(data, "name"))
    if kind == "Call":
        return CallExpr(
            _optional_expr(data, "receiver"),
            _str(data, "name"),
            [load_expr(a) for a in _list(data, "arguments")],
        )
    raise TreeFormatError(f"unknown expression kind '{kind}'")


def _literal_value(data: dict[str, Any]) -> Any:
    value = data.get("value")
    if data.get("character", False):
        if not isinstance(value, str) or len(value) != 1:
            raise TreeFormatError("character literal must be a one-character string")
        return Char(value)
    if isinstance(value, (dict, list)):
        raise TreeFormatError("literal value must be a JSON scalar")
    return value


def _optional_expr(data: dict[str, Any], key: str) -> Expr | None:
    value = data.get(key)
    return load_expr(value) if value is not None else None


# ── Field helpers ────────────────────────────────────────────────


def _kind(data: Any) -> str:
    if not isinstance(data, dict):
        raise TreeFormatError(f"expected a node object, got {type(data).__name__}")
    kind = data.get("kind")
    if not isinstance(kind, str):
        raise TreeFormatError("node is missing its 'kind'")
    return kind


def _expect(data: Any, kind: str) -> None:
    actual = _kind(data)
    if actual != kind:
        raise TreeFormatError(f"expected a {kind} node, got '{actual}'")


def _str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise TreeFormatError(f"{data['kind']} '{key}' must be a string")
    return value


def _plain_str(value: Any, key: str) -> str:
    if not isinstance(value, str):
        raise TreeFormatError(f"'{key}' entries must be strings")
    return value


def _list(data: dict[str, Any], key: str) -> list[Any]:
    value = data.get(key, [])
    if not isinstance(value, list):
        raise TreeFormatError(f"{data['kind']} '{key}' must be a list")
    return value


# ── Annotated dump ───────────────────────────────────────────────


def dump_tree(node: object, resolutions: Resolutions | None = None) -> str:
    """Render a tree as indented text, with resolved types and bindings."""
    lines: list[str] = []
    _dump(node, 0, resolutions, lines)
    return "\n".join(lines)


def _dump(node: object, depth: int, res: Resolutions | None, lines: list[str]) -> None:
    indent = "  " * depth
    name = type(node).__name__

    if not hasattr(node, "__dataclass_fields__"):
        lines.append(f"{indent}{name}: {node!r}")
        return

    lines.append(f"{indent}{name}")
    if res is not None:
        if res.has_type(node):  # type: ignore[arg-type]
            lines.append(f"{indent}  : {res.type_of(node).name}")  # type: ignore[arg-type]
        if res.has_binding(node):  # type: ignore[arg-type]
            lines.append(f"{indent}  -> {_describe(res.binding_of(node))}")  # type: ignore[arg-type]

    for field_name in node.__dataclass_fields__:  # type: ignore[attr-defined]
        value = getattr(node, field_name)
        if isinstance(value, list):
            if value and hasattr(value[0], "__dataclass_fields__"):
                lines.append(f"{indent}  {field_name}:")
                for item in value:
                    _dump(item, depth + 2, res, lines)
            else:
                lines.append(f"{indent}  {field_name}: {value!r}")
        elif isinstance(value, Char):
            lines.append(f"{indent}  {field_name}: {value.value!r} (character)")
        elif hasattr(value, "__dataclass_fields__"):
            lines.append(f"{indent}  {field_name}:")
            _dump(value, depth + 2, res, lines)
        elif value is not None:
            lines.append(f"{indent}  {field_name}: {value!r}")


def _describe(binding: Variable | Function) -> str:
    if isinstance(binding, Function):
        params = ", ".join(t.name for t in binding.parameter_types)
        return f"function {binding.internal_name}({params}): {binding.return_type.name}"
    kind = "constant" if binding.constant else "variable"
    return f"{kind} {binding.internal_name}: {binding.type.name}"
