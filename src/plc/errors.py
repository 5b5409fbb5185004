"""Analysis errors and colored diagnostic rendering.

Every rule violation found by the analyzer is an ``AnalysisError`` subclass
carrying a stable diagnostic code. Analysis is fail-fast, so a run produces
at most one of these.
"""

from __future__ import annotations

import difflib
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from plc.types import Type


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"


# ANSI color codes
_COLORS = {
    Severity.ERROR: "\033[1;31m",    # bold red
    Severity.WARNING: "\033[1;33m",  # bold yellow
    Severity.NOTE: "\033[1;36m",     # bold cyan
}
_BOLD = "\033[1m"
_BLUE = "\033[1;34m"
_RESET = "\033[0m"


@dataclass
class Diagnostic:
    """A single diagnostic message with optional notes."""

    severity: Severity
    code: str
    message: str
    notes: list[str] = field(default_factory=list)
    origin: str | None = None


class DiagnosticRenderer:
    """Renders diagnostics in Rust-style format with colors."""

    def __init__(self, *, color: bool = True) -> None:
        self.color = color

    def _c(self, code: str) -> str:
        return code if self.color else ""

    def render(self, diag: Diagnostic) -> str:
        lines: list[str] = []
        color = _COLORS[diag.severity]

        # Header: error[E321]: message
        lines.append(
            f"{self._c(color)}{diag.severity.value}[{diag.code}]{self._c(_RESET)}"
            f"{self._c(_BOLD)}: {diag.message}{self._c(_RESET)}"
        )
        if diag.origin:
            lines.append(f"  {self._c(_BLUE)}-->{self._c(_RESET)} {diag.origin}")

        for note in diag.notes:
            lines.append(f"  {self._c(_BLUE)}={self._c(_RESET)} note: {note}")

        return "\n".join(lines)


# ── Analysis errors ─────────────────────────────────────────────


class AnalysisError(Exception):
    """Base class for all semantic analysis failures."""

    code = "E000"

    def __init__(self, message: str, *, notes: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.message = message
        self.notes = list(notes)

    def to_diagnostic(self, origin: str | None = None) -> Diagnostic:
        return Diagnostic(
            severity=Severity.ERROR,
            code=self.code,
            message=self.message,
            notes=list(self.notes),
            origin=origin,
        )


class UnknownTypeError(AnalysisError):
    code = "E300"

    def __init__(self, type_name: str, *, candidates: Iterable[str] = ()) -> None:
        close = difflib.get_close_matches(type_name, list(candidates), n=1)
        notes = [f"did you mean '{close[0]}'?"] if close else []
        super().__init__(f"unknown type '{type_name}'", notes=notes)
        self.type_name = type_name


class DuplicateDefinitionError(AnalysisError):
    code = "E301"


class UndefinedNameError(AnalysisError):
    """A variable, function, field or method that no scope defines."""

    code = "E310"

    def __init__(
        self, message: str, *, name: str, candidates: Iterable[str] = (),
    ) -> None:
        close = difflib.get_close_matches(name, list(candidates), n=1)
        notes = [f"did you mean '{close[0]}'?"] if close else []
        super().__init__(message, notes=notes)
        self.name = name


class TypeMismatchError(AnalysisError):
    code = "E320"


class NotAssignableError(TypeMismatchError):
    code = "E321"

    def __init__(self, target: Type, source: Type) -> None:
        super().__init__(
            f"type '{source.name}' is not assignable to '{target.name}'"
        )
        self.target = target
        self.source = source


class StructuralError(AnalysisError):
    """A node of the wrong shape where a specific shape is required."""

    code = "E330"


class EmptyBodyError(AnalysisError):
    code = "E331"


class IntegerOutOfRangeError(AnalysisError):
    code = "E340"

    def __init__(self, value: int) -> None:
        super().__init__(
            f"integer literal {_abbreviate(value)} is outside the 32-bit signed range",
        )
        self.value = value


def _abbreviate(value: int) -> str:
    # str() refuses ints past the interpreter's digit limit
    try:
        text = str(value)
    except ValueError:
        return f"{'-' if value < 0 else ''}<{value.bit_length()}-bit integer>"
    if len(text) > 40:
        return f"{text[:20]}...{text[-10:]} ({len(text.lstrip('-'))} digits)"
    return text


class DecimalOutOfRangeError(AnalysisError):
    code = "E341"

    def __init__(self, value: object) -> None:
        super().__init__(f"decimal literal {value} is not representable as a finite double")
        self.value = value


class ConstantAssignmentError(AnalysisError):
    code = "E350"


class ConstantRequiresInitializerError(AnalysisError):
    code = "E351"


class MissingTypeError(AnalysisError):
    code = "E352"


class MissingEntryPointError(AnalysisError):
    code = "E360"


class EntryPointSignatureError(AnalysisError):
    code = "E361"


class ReturnOutsideFunctionError(AnalysisError):
    code = "E370"


class UnknownOperatorError(AnalysisError):
    code = "E380"
