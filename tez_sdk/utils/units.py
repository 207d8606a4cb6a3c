"""
Amount unit conversion (tez ⇄ mutez).

Every amount that reaches the node is an integer count of mutez rendered as a
decimal string. Conversion happens once, at the assembler boundary; callers
pick their input unit through `SDKConfig.use_mutez`.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Union

from ..errors import InvalidArgument

MUTEZ_PER_TEZ = 1_000_000

Number = Union[int, float, str, Decimal]


def _decimal(value: Number) -> Decimal:
    if isinstance(value, bool):
        raise InvalidArgument(f"amount must be numeric, got {value!r}")
    try:
        # str() first so floats like 0.00142 keep their short repr
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise InvalidArgument(f"amount must be numeric, got {value!r}") from e


def to_mutez(tez: Number) -> str:
    """Convert a tez amount into a mutez decimal string."""
    scaled = _decimal(tez) * MUTEZ_PER_TEZ
    if scaled != scaled.to_integral_value():
        raise InvalidArgument(f"amount {tez!r} tez is not a whole number of mutez")
    if scaled < 0:
        raise InvalidArgument(f"amount must be non-negative, got {tez!r}")
    return str(int(scaled))


def to_tez(mutez: Number) -> Decimal:
    """Convert a mutez amount into tez (exact Decimal)."""
    return _decimal(mutez) / MUTEZ_PER_TEZ


def to_canonical(value: Number, *, use_mutez: bool) -> str:
    """
    Normalize a caller-supplied amount to a mutez string.

    With `use_mutez` the value is already mutez and only validated; otherwise
    it is treated as tez and scaled.
    """
    if not use_mutez:
        return to_mutez(value)
    d = _decimal(value)
    if d != d.to_integral_value():
        raise InvalidArgument(f"mutez amount must be an integer, got {value!r}")
    if d < 0:
        raise InvalidArgument(f"amount must be non-negative, got {value!r}")
    return str(int(d))


__all__ = ["MUTEZ_PER_TEZ", "to_mutez", "to_tez", "to_canonical"]
