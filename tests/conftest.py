"""Shared pytest fixtures for the PLC analyzer test suite."""

from __future__ import annotations

import pytest

from plc.symbols import Scope
from plc.types import ANY, INTEGER, Type


@pytest.fixture
def object_type():
    """An object type with an Integer ``field`` and a no-argument ``method``."""
    members = Scope()
    members.define_variable("field", "field", INTEGER, False)
    members.define_function("method", "method", [ANY], INTEGER)
    return Type("ObjectType", "ObjectType", members)


@pytest.fixture
def scope(object_type):
    """A scope holding an Integer ``variable`` and an ``object``."""
    scope = Scope()
    scope.define_variable("variable", "variable", INTEGER, False)
    scope.define_variable("object", "object", object_type, False)
    return scope
