"""Single-pass semantic analyzer for PLC syntax trees.

The analyzer walks a tree depth-first, resolving every name to a binding and
every expression to a type. Fields are checked before methods, and each method
is registered in the enclosing scope before its body is checked so recursive
calls resolve. The first rule violation ends the run.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import assert_never

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
from plc.errors import (
    AnalysisError,
    ConstantAssignmentError,
    ConstantRequiresInitializerError,
    DecimalOutOfRangeError,
    EmptyBodyError,
    EntryPointSignatureError,
    IntegerOutOfRangeError,
    MissingEntryPointError,
    MissingTypeError,
    ReturnOutsideFunctionError,
    StructuralError,
    TypeMismatchError,
    UndefinedNameError,
    UnknownOperatorError,
)
from plc.resolutions import Resolutions
from plc.symbols import Scope
from plc.types import (
    ANY,
    BOOLEAN,
    CHARACTER,
    COMPARABLE,
    DECIMAL,
    INTEGER,
    NIL,
    STRING,
    Type,
    TypeCatalog,
    require_assignable,
)

_INT_MIN = -(2 ** 31)
_INT_MAX = 2 ** 31 - 1

_LOGICAL_OPS = frozenset({"AND", "OR"})
_COMPARISON_OPS = frozenset({"<", "<=", ">", ">=", "==", "!="})
_ARITHMETIC_OPS = frozenset({"-", "*", "/"})


@dataclass(frozen=True)
class Context:
    """Traversal state for one visit: the innermost scope and the return
    type expected by the enclosing method (None outside any method)."""

    scope: Scope
    return_type: Type | None = None

    def nested(self) -> Context:
        return replace(self, scope=Scope(self.scope))

    def returning(self, return_type: Type) -> Context:
        return replace(self, return_type=return_type)


@dataclass
class Analysis:
    """Outcome of an analysis run.

    ``resolutions`` is only present when the run succeeded; a failed run keeps
    nothing but the error.
    """

    ok: bool
    scope: Scope
    resolutions: Resolutions | None = None
    error: AnalysisError | None = None


class Analyzer:
    """Semantic analyzer for a single syntax tree.

    An instance performs exactly one run. Its top-level scope is a child of
    *parent* and predefines the built-in ``print(Any)`` function.
    """

    def __init__(
        self, parent: Scope | None = None, catalog: TypeCatalog | None = None,
    ) -> None:
        self.catalog = catalog if catalog is not None else TypeCatalog()
        self.scope = Scope(parent)
        self.scope.define_function("print", "print", [ANY], NIL, print)
        self._resolutions: Resolutions | None = None

    # ── Public API ──────────────────────────────────────────────

    def analyze(self, node: Node) -> Analysis:
        """Check *node* and everything beneath it. Raises nothing for
        program errors; inspect the returned ``Analysis``."""
        if self._resolutions is not None:
            raise RuntimeError("an Analyzer can only run once; create a new one")
        self._resolutions = Resolutions()
        ctx = Context(self.scope)
        try:
            self._visit(node, ctx)
        except AnalysisError as e:
            return Analysis(ok=False, scope=self.scope, error=e)
        return Analysis(ok=True, scope=self.scope, resolutions=self._resolutions)

    @property
    def _res(self) -> Resolutions:
        assert self._resolutions is not None
        return self._resolutions

    def _visit(self, node: Node, ctx: Context) -> None:
        if isinstance(node, Source):
            self._check_source(node, ctx)
        elif isinstance(node, FieldDef):
            self._check_field(node, ctx)
        elif isinstance(node, MethodDef):
            self._check_method(node, ctx)
        elif isinstance(node, (Literal, GroupExpr, BinaryExpr, AccessExpr, CallExpr)):
            self._infer_expr(node, ctx)
        else:
            self._check_stmt(node, ctx)

    # ── Declarations ────────────────────────────────────────────

    def _check_source(self, source: Source, ctx: Context) -> None:
        for fd in source.fields:
            self._check_field(fd, ctx)
        for md in source.methods:
            self._check_method(md, ctx)

        try:
            main = ctx.scope.lookup_function("main", 0)
        except UndefinedNameError:
            raise MissingEntryPointError("entry point 'main/0' is not defined") from None
        if main.return_type is not INTEGER:
            raise EntryPointSignatureError(
                f"entry point 'main/0' must return 'Integer', "
                f"not '{main.return_type.name}'"
            )

    def _check_field(self, fd: FieldDef, ctx: Context) -> None:
        field_type = self.catalog.resolve(fd.type_name)
        if fd.value is not None:
            require_assignable(field_type, self._infer_expr(fd.value, ctx))
        elif fd.constant:
            raise ConstantRequiresInitializerError(
                f"constant field '{fd.name}' must have an initial value"
            )
        variable = ctx.scope.define_variable(fd.name, fd.name, field_type, fd.constant)
        self._res.set_binding(fd, variable)

    def _check_method(self, md: MethodDef, ctx: Context) -> None:
        if len(md.parameters) != len(md.parameter_type_names):
            raise StructuralError(
                f"method '{md.name}' has {len(md.parameters)} parameters "
                f"but {len(md.parameter_type_names)} parameter types"
            )
        param_types = [self.catalog.resolve(name) for name in md.parameter_type_names]
        if md.return_type_name is not None:
            return_type = self.catalog.resolve(md.return_type_name)
        else:
            return_type = NIL

        function = ctx.scope.define_function(md.name, md.name, param_types, return_type)
        self._res.set_binding(md, function)

        body_ctx = ctx.nested().returning(return_type)
        for name, param_type in zip(md.parameters, param_types):
            body_ctx.scope.define_variable(name, name, param_type, False)
        self._check_block(md.body, body_ctx)

    # ── Statements ──────────────────────────────────────────────

    def _check_block(self, body: list[Stmt], ctx: Context) -> None:
        for stmt in body:
            self._check_stmt(stmt, ctx)

    def _check_stmt(self, stmt: Stmt, ctx: Context) -> None:
        if isinstance(stmt, ExprStmt):
            self._check_expr_stmt(stmt, ctx)
        elif isinstance(stmt, Declaration):
            self._check_declaration(stmt, ctx)
        elif isinstance(stmt, Assignment):
            self._check_assignment(stmt, ctx)
        elif isinstance(stmt, IfStmt):
            self._check_if(stmt, ctx)
        elif isinstance(stmt, ForStmt):
            self._check_for(stmt, ctx)
        elif isinstance(stmt, WhileStmt):
            self._check_while(stmt, ctx)
        elif isinstance(stmt, ReturnStmt):
            self._check_return(stmt, ctx)
        else:
            assert_never(stmt)

    def _check_expr_stmt(self, stmt: ExprStmt, ctx: Context) -> None:
        if not isinstance(stmt.expr, CallExpr):
            raise StructuralError("expression statement must be a function call")
        self._infer_expr(stmt.expr, ctx)

    def _check_declaration(self, decl: Declaration, ctx: Context) -> None:
        inferred = self._infer_expr(decl.value, ctx) if decl.value is not None else None

        if decl.type_name is not None:
            resolved = self.catalog.resolve(decl.type_name)
            if inferred is not None:
                require_assignable(resolved, inferred)
        elif inferred is not None:
            resolved = inferred
        else:
            raise MissingTypeError(
                f"declaration of '{decl.name}' needs a type or an initial value"
            )

        variable = ctx.scope.define_variable(decl.name, decl.name, resolved, False)
        self._res.set_binding(decl, variable)

    def _check_assignment(self, assign: Assignment, ctx: Context) -> None:
        if not isinstance(assign.receiver, AccessExpr):
            raise StructuralError("assignment target must be a variable or field access")

        target_type = self._infer_expr(assign.receiver, ctx)
        value_type = self._infer_expr(assign.value, ctx)

        variable = self._res.variable_of(assign.receiver)
        if variable.constant:
            raise ConstantAssignmentError(f"cannot assign to constant '{variable.name}'")
        require_assignable(target_type, value_type)

    def _check_if(self, stmt: IfStmt, ctx: Context) -> None:
        if not stmt.then_body:
            raise EmptyBodyError("if statement must have at least one statement")
        self._require_boolean(stmt.condition, ctx, "if")
        self._check_block(stmt.then_body, ctx.nested())
        self._check_block(stmt.else_body, ctx.nested())

    def _check_for(self, stmt: ForStmt, ctx: Context) -> None:
        if not stmt.body:
            raise EmptyBodyError("for statement must have at least one statement")

        control: Type | None = None
        if stmt.initialization is not None:
            self._check_stmt(stmt.initialization, ctx)
            control = self._control_type(stmt.initialization)
            if control is not None:
                require_assignable(COMPARABLE, control)

        self._require_boolean(stmt.condition, ctx, "for")

        if stmt.increment is not None:
            self._check_stmt(stmt.increment, ctx)
            if control is not None and isinstance(stmt.increment, Assignment):
                step = self._res.type_of(stmt.increment.receiver)
                if step is not control:
                    raise TypeMismatchError(
                        f"for increment assigns '{step.name}' but the loop "
                        f"variable is '{control.name}'"
                    )

        self._check_block(stmt.body, ctx.nested())

    def _control_type(self, init: Stmt) -> Type | None:
        """Type of the variable a for-loop initialization sets, if any."""
        if isinstance(init, Declaration):
            return self._res.variable_of(init).type
        if isinstance(init, Assignment):
            return self._res.type_of(init.receiver)
        return None

    def _check_while(self, stmt: WhileStmt, ctx: Context) -> None:
        self._require_boolean(stmt.condition, ctx, "while")
        self._check_block(stmt.body, ctx.nested())

    def _check_return(self, stmt: ReturnStmt, ctx: Context) -> None:
        value_type = self._infer_expr(stmt.value, ctx)
        if ctx.return_type is None:
            raise ReturnOutsideFunctionError("return statement outside of a method")
        require_assignable(ctx.return_type, value_type)

    def _require_boolean(self, condition: Expr, ctx: Context, construct: str) -> None:
        ty = self._infer_expr(condition, ctx)
        if ty is not BOOLEAN:
            raise TypeMismatchError(
                f"{construct} condition must be 'Boolean', not '{ty.name}'"
            )

    # ── Expression type inference ───────────────────────────────

    def _infer_expr(self, expr: Expr, ctx: Context) -> Type:
        """Infer the type of an expression and record it."""
        if isinstance(expr, Literal):
            ty = self._infer_literal(expr)
        elif isinstance(expr, GroupExpr):
            ty = self._infer_group(expr, ctx)
        elif isinstance(expr, BinaryExpr):
            ty = self._infer_binary(expr, ctx)
        elif isinstance(expr, AccessExpr):
            ty = self._infer_access(expr, ctx)
        elif isinstance(expr, CallExpr):
            ty = self._infer_call(expr, ctx)
        else:
            assert_never(expr)
        self._res.set_type(expr, ty)
        return ty

    def _infer_literal(self, lit: Literal) -> Type:
        value = lit.value
        if value is None:
            return NIL
        if isinstance(value, bool):
            return BOOLEAN
        if isinstance(value, Char):
            return CHARACTER
        if isinstance(value, str):
            return STRING
        if isinstance(value, int):
            if not _INT_MIN <= value <= _INT_MAX:
                raise IntegerOutOfRangeError(value)
            return INTEGER
        if isinstance(value, Decimal):
            if not value.is_finite() or math.isinf(float(value)):
                raise DecimalOutOfRangeError(value)
            return DECIMAL
        raise StructuralError(f"unsupported literal value {value!r}")

    def _infer_group(self, group: GroupExpr, ctx: Context) -> Type:
        if not isinstance(group.expr, BinaryExpr):
            raise StructuralError("only binary expressions may be grouped")
        return self._infer_expr(group.expr, ctx)

    def _infer_binary(self, expr: BinaryExpr, ctx: Context) -> Type:
        left = self._infer_expr(expr.left, ctx)
        right = self._infer_expr(expr.right, ctx)
        op = expr.op

        if op in _LOGICAL_OPS:
            if left is not BOOLEAN or right is not BOOLEAN:
                raise TypeMismatchError(
                    f"operator {op} requires 'Boolean' operands, "
                    f"got '{left.name}' and '{right.name}'"
                )
            return BOOLEAN

        if op in _COMPARISON_OPS:
            require_assignable(COMPARABLE, left)
            require_assignable(COMPARABLE, right)
            if left is not right:
                raise TypeMismatchError(
                    f"cannot compare '{left.name}' with '{right.name}'"
                )
            return BOOLEAN

        if op == "+" and (left is STRING or right is STRING):
            return STRING

        if op == "+" or op in _ARITHMETIC_OPS:
            if left is not INTEGER and left is not DECIMAL:
                raise TypeMismatchError(
                    f"operator {op} requires 'Integer' or 'Decimal' operands, "
                    f"got '{left.name}'"
                )
            if left is not right:
                raise TypeMismatchError(
                    f"operator {op} requires operands of the same type, "
                    f"got '{left.name}' and '{right.name}'"
                )
            return left

        raise UnknownOperatorError(f"unknown binary operator '{op}'")

    def _infer_access(self, expr: AccessExpr, ctx: Context) -> Type:
        if expr.receiver is not None:
            owner = self._infer_expr(expr.receiver, ctx)
            variable = owner.field(expr.name)
        else:
            variable = ctx.scope.lookup_variable(expr.name)
        self._res.set_binding(expr, variable)
        return variable.type

    def _infer_call(self, expr: CallExpr, ctx: Context) -> Type:
        arg_types = [self._infer_expr(arg, ctx) for arg in expr.args]

        if expr.receiver is not None:
            owner = self._infer_expr(expr.receiver, ctx)
            function = owner.method(expr.name, len(expr.args))
            # Parameter 0 is the implicit receiver.
            param_types = function.parameter_types[1:]
        else:
            function = ctx.scope.lookup_function(expr.name, len(expr.args))
            param_types = function.parameter_types

        for param_type, arg_type in zip(param_types, arg_types):
            require_assignable(param_type, arg_type)

        self._res.set_binding(expr, function)
        return function.return_type
