"""Stable structural hashing for query and input values."""

from __future__ import annotations

import dataclasses
import json
from typing import Any

from pydantic import BaseModel


def _default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=stable_hash)
    raise TypeError(f"Cannot hash {type(value).__name__} structurally")


def stable_hash(value: Any) -> str:
    """Serialize value so that mapping key order does not matter.

    Lists keep their order. Pydantic models and dataclasses hash by their
    fields.

    Raises:
        TypeError: for values with no structural form, such as plain objects.
    """
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=_default)
