"""
Version helpers for the tez_sdk package.
We keep a static __version__ (PEP 440) and expose a tiny structured view so
callers can embed it in user agents and diagnostics.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

# Bump this when publishing
__version__ = "0.1.0"


@dataclass(frozen=True)
class VersionInfo:
    major: int
    minor: int
    patch: int

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.major}.{self.minor}.{self.patch}"


def _split(v: str) -> Tuple[int, int, int]:
    parts = (v.split("+", 1)[0].split(".") + ["0", "0", "0"])[:3]
    return tuple(int("".join(ch for ch in p if ch.isdigit()) or 0) for p in parts)  # type: ignore[return-value]


def version_info() -> VersionInfo:
    """Structured version info parsed from __version__."""
    return VersionInfo(*_split(__version__))


__all__ = ["__version__", "VersionInfo", "version_info"]
