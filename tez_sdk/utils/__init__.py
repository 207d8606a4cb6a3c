"""
tez_sdk.utils
-------------

Small, dependency-free helpers shared across the SDK.
"""

from __future__ import annotations

from .units import MUTEZ_PER_TEZ, to_canonical, to_mutez, to_tez

__all__ = ["MUTEZ_PER_TEZ", "to_mutez", "to_tez", "to_canonical"]
