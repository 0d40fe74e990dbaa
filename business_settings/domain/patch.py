"""
Tagged partial-update values.

A patch field is either UNSET (the caller omitted it, leave the stored value
alone) or SetTo(value). SetTo(None) is an explicit request to clear, which a
plain ``None`` default could not express.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


class _Unset:
    """Marker for an omitted field."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()


@dataclass(frozen=True)
class SetTo(Generic[T]):
    """Field explicitly provided by the caller."""

    value: T


Patch = Union[_Unset, SetTo[T]]


def is_set(field: Patch[Any]) -> bool:
    return isinstance(field, SetTo)


def value_or(field: Patch[T], current: T) -> T:
    """Return the patched value, or ``current`` when the field is unset."""
    if isinstance(field, SetTo):
        return field.value
    return current

