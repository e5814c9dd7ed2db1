from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Mapping, Optional, TypeVar, Union

from .path import Path

log = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Valid(Generic[T]):
    """A value that was recognized and typed."""

    value: T

    def is_valid(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value

    def value_or(self, default: T) -> T:
        return self.value


@dataclass(frozen=True)
class Invalid:
    """Marker for a structurally sound value that holds something unrecognized.

    It carries no payload. All instances compare equal, so ``INVALID`` can be
    used as a mapping key.
    """

    def is_valid(self) -> bool:
        return False

    def unwrap(self) -> Any:
        raise ValueError("unwrap() called on an invalid value")

    def value_or(self, default: T) -> T:
        return default

    def __repr__(self) -> str:
        return "INVALID"


INVALID = Invalid()

Checked = Union[Valid[T], Invalid]


def decode_checked(raw: Any, recognizer: Callable[[Any], Optional[T]]) -> Checked[T]:
    """Wrap ``recognizer(raw)`` as ``Valid`` or, when it yields ``None``, ``INVALID``.

    Shape checks belong to the caller; by the time a value reaches here it has
    the right JSON type and only its meaning is in question.
    """
    value = recognizer(raw)
    if value is None:
        log.debug("unrecognized value %r", raw)
        return INVALID
    return Valid(value)


class Error(enum.Enum):
    INVALID = "invalid value"
    INDEX_OUT_OF_BOUNDS = "index out of bounds"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Diagnostic:
    path: Path
    error: Error

    def __str__(self) -> str:
        return f"{self.path}: {self.error}"


Report = Callable[[Path, Error], None]


def validate_checked(value: Checked[Any], path: Path, report: Report) -> None:
    if not value.is_valid():
        report(path, Error.INVALID)


def collect_diagnostics(
    value: Any,
    path: Path | None = None,
    table_sizes: Mapping[str, int] | None = None,
) -> list[Diagnostic]:
    """Run ``value.validate`` and gather every report into a list.

    ``table_sizes`` maps sibling table names (``accessors``, ``materials``) to
    their lengths; references are only bounds-checked against tables named here.
    """
    diagnostics: list[Diagnostic] = []

    def report(p: Path, error: Error) -> None:
        diagnostics.append(Diagnostic(p, error))

    value.validate(path or Path.root(), report, table_sizes=table_sizes)
    return diagnostics
