from __future__ import annotations

import copy
import logging
import math
from dataclasses import dataclass, fields
from typing import Any, Iterable, Mapping

from .path import Path
from .validation import Error, Report

log = logging.getLogger(__name__)

INDEX_MAX = 0xFFFFFFFF


class StructuralError(RuntimeError):
    """The input does not have the shape a field requires."""

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path
        self.message = message


class ConfigError(RuntimeError):
    pass


@dataclass(frozen=True)
class DecodeOptions:
    # keep user-defined `name` fields
    names: bool = True
    # keep `extras` application data
    extras: bool = True
    # accept `_NAME` attribute semantics
    extra_semantics: bool = False

    @staticmethod
    def from_mapping(data: Mapping[str, Any]) -> "DecodeOptions":
        known = {f.name for f in fields(DecodeOptions)}
        values: dict[str, bool] = {}
        for key, value in data.items():
            if key not in known:
                raise ConfigError(f"Unsupported option: {key}")
            if not isinstance(value, bool):
                raise ConfigError(f"{key} must be a boolean")
            values[key] = value
        return DecodeOptions(**values)


DEFAULT_OPTIONS = DecodeOptions()


@dataclass(frozen=True)
class Extensions:
    """Extension data. No extensions are recognized yet, so every key is dropped."""


@dataclass(frozen=True)
class Index:
    """Opaque reference into a sibling table of the document."""

    table: str
    value: int

    def __int__(self) -> int:
        return self.value

    def validate(self, path: Path, report: Report, table_sizes: Mapping[str, int] | None = None) -> None:
        if table_sizes is None or self.table not in table_sizes:
            return
        if self.value >= table_sizes[self.table]:
            report(path, Error.INDEX_OUT_OF_BOUNDS)


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def expect_object(value: Any, path: Path) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise StructuralError(path, f"expected object, found {_type_name(value)}")
    return value


def expect_list(value: Any, path: Path) -> list[Any]:
    if not isinstance(value, list):
        raise StructuralError(path, f"expected array, found {_type_name(value)}")
    return value


def expect_str(value: Any, path: Path) -> str:
    if not isinstance(value, str):
        raise StructuralError(path, f"expected string, found {_type_name(value)}")
    return value


def expect_int(value: Any, path: Path) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise StructuralError(path, f"expected integer, found {_type_name(value)}")
    return value


def expect_float(value: Any, path: Path) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise StructuralError(path, f"expected number, found {_type_name(value)}")
    try:
        value = float(value)
    except OverflowError:
        raise StructuralError(path, "expected a finite number") from None
    if not math.isfinite(value):
        raise StructuralError(path, "expected a finite number")
    return value


def require(data: dict[str, Any], name: str, path: Path) -> Any:
    if name not in data:
        raise StructuralError(path.field(name), "missing required field")
    return data[name]


def optional(data: dict[str, Any], name: str) -> Any:
    """Absent and ``null`` are the same thing for optional fields."""
    return data.get(name)


def decode_index(value: Any, table: str, path: Path) -> Index:
    n = expect_int(value, path)
    if not (0 <= n <= INDEX_MAX):
        raise StructuralError(path, f"index out of range: {n}")
    return Index(table, n)


def decode_optional_index(data: dict[str, Any], name: str, table: str, path: Path) -> Index | None:
    value = optional(data, name)
    if value is None:
        return None
    return decode_index(value, table, path.field(name))


def decode_extensions(data: dict[str, Any], path: Path) -> Extensions:
    """Check that ``extensions`` is an object; its contents are not interpreted."""
    value = optional(data, "extensions")
    if value is None:
        return Extensions()
    extensions = expect_object(value, path.field("extensions"))
    if extensions:
        log.debug("%s: ignoring extensions %s", path, sorted(extensions))
    return Extensions()


def decode_extras(data: dict[str, Any], options: DecodeOptions) -> Any:
    if not options.extras:
        return None
    # copied so the decoded value never aliases the input
    return copy.deepcopy(data.get("extras"))


def decode_name(data: dict[str, Any], path: Path, options: DecodeOptions) -> str | None:
    if not options.names:
        return None
    value = optional(data, "name")
    if value is None:
        return None
    return expect_str(value, path.field("name"))


def log_unknown_fields(data: dict[str, Any], known: Iterable[str], path: Path) -> None:
    unknown = sorted(set(data) - set(known))
    if unknown:
        log.debug("%s: ignoring unknown fields %s", path, unknown)
