"""TOML config loading for plc.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from plc.symbols import Scope
from plc.types import NIL, Type, TypeCatalog


class ConfigError(ValueError):
    """A plc.toml that cannot be turned into a configuration."""


@dataclass
class PackageConfig:
    name: str = "untitled"
    version: str = "0.0.0"


@dataclass
class CheckConfig:
    color: bool = True
    sources: str = "src"


@dataclass
class MethodConfig:
    name: str
    parameters: list[str] = field(default_factory=list)
    returns: str | None = None


@dataclass
class ObjectTypeConfig:
    name: str
    fields: dict[str, str] = field(default_factory=dict)
    constants: list[str] = field(default_factory=list)
    methods: list[MethodConfig] = field(default_factory=list)


@dataclass
class PlcConfig:
    package: PackageConfig = field(default_factory=PackageConfig)
    check: CheckConfig = field(default_factory=CheckConfig)
    types: list[ObjectTypeConfig] = field(default_factory=list)

    def build_catalog(self) -> TypeCatalog:
        """A type catalog holding the built-ins plus the declared object types."""
        catalog = TypeCatalog()
        define_object_types(catalog, self.types)
        return catalog


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find plc.toml. Raises FileNotFoundError."""
    path = (start_path or Path.cwd()).resolve()
    if path.is_file():
        path = path.parent
    while True:
        candidate = path / "plc.toml"
        if candidate.exists():
            return candidate
        parent = path.parent
        if parent == path:
            raise FileNotFoundError("No plc.toml found in any parent directory")
        path = parent


def load_config(path: Path) -> PlcConfig:
    """Parse a plc.toml file into a PlcConfig."""
    with open(path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"{path}: {e}") from None

    config = PlcConfig()

    if "package" in data:
        pkg = _table(data, "package", "[package]")
        config.package = PackageConfig(
            name=_value(pkg, "name", str, "untitled", "[package]"),
            version=_value(pkg, "version", str, "0.0.0", "[package]"),
        )

    if "check" in data:
        chk = _table(data, "check", "[check]")
        config.check = CheckConfig(
            color=_value(chk, "color", bool, True, "[check]"),
            sources=_value(chk, "sources", str, "src", "[check]"),
        )

    for type_name, table in _table(data, "types", "[types]").items():
        config.types.append(_load_object_type(type_name, table))

    return config


def _table(data: dict[str, Any], key: str, where: str) -> dict[str, Any]:
    value = data.get(key, {})
    if not isinstance(value, dict):
        raise ConfigError(f"{where} must be a table")
    return value


def _value(data: dict[str, Any], key: str, kind: type, default: Any, where: str) -> Any:
    value = data.get(key, default)
    if not isinstance(value, kind):
        raise ConfigError(f"{where} {key} must be a {kind.__name__}")
    return value


def _strings(data: dict[str, Any], key: str, where: str) -> list[str]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{where} {key} must be a list of strings")
    return value


def _load_object_type(name: str, table: Any) -> ObjectTypeConfig:
    where = f"[types.{name}]"
    if not isinstance(table, dict):
        raise ConfigError(f"{where} must be a table")
    fields = table.get("fields", {})
    if not isinstance(fields, dict) or not all(isinstance(v, str) for v in fields.values()):
        raise ConfigError(f"{where} fields must map names to type names")
    constants = _strings(table, "constants", where)
    unknown = [c for c in constants if c not in fields]
    if unknown:
        raise ConfigError(f"{where} constants name unknown fields: {', '.join(unknown)}")

    entries = table.get("methods", [])
    if not isinstance(entries, list):
        raise ConfigError(f"{where} methods must be a list of tables")
    methods = []
    for entry in entries:
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
            raise ConfigError(f"{where} every method needs a name")
        returns = entry.get("returns")
        if returns is not None and not isinstance(returns, str):
            raise ConfigError(f"{where} method '{entry['name']}' returns must be a type name")
        methods.append(MethodConfig(
            name=entry["name"],
            parameters=list(_strings(entry, "parameters", f"{where} method '{entry['name']}'")),
            returns=returns,
        ))
    return ObjectTypeConfig(name, dict(fields), list(constants), methods)


def define_object_types(catalog: TypeCatalog, declared: list[ObjectTypeConfig]) -> list[Type]:
    """Register object types in two passes so members may name any of them.

    Method parameter lists exclude the receiver; the owning type is prepended
    as parameter 0. Raises UnknownTypeError for unresolved member types.
    """
    created = []
    for decl in declared:
        created.append(catalog.register(Type(decl.name, decl.name, Scope())))

    for ty, decl in zip(created, declared):
        for field_name, type_name in decl.fields.items():
            ty.scope.define_variable(
                field_name, field_name, catalog.resolve(type_name),
                field_name in decl.constants,
            )
        for method in decl.methods:
            params = [ty] + [catalog.resolve(p) for p in method.parameters]
            if method.returns is not None:
                return_type = catalog.resolve(method.returns)
            else:
                return_type = NIL
            ty.scope.define_function(
                method.name, f"{decl.name}.{method.name}", params, return_type,
            )
    return created
