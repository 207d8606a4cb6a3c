"""
SDK configuration: RPC endpoint, chain alias, fee/unit policy and forging mode.

- Loads sane defaults and supports overrides via environment variables (TEZ_*).
- Provides helpers for building HTTP headers and validating endpoints.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .version import __version__

_DEFAULT_RPC = "http://127.0.0.1:8732"

# Default fee in mutez for fee-bearing operations that do not set one.
DEFAULT_FEE_MUTEZ = 1420


class ForgeMode(str, Enum):
    """How operation groups are serialized before signing."""

    REMOTE = "remote"  # trust the node's helpers/forge/operations
    LOCAL = "local"  # in-process codec only, never ask the node
    VALIDATE = "validate"  # both, and require byte-for-byte equality


_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_bool(val: Optional[str], default: bool) -> bool:
    if val is None or val.strip() == "":
        return default
    s = val.strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    raise ValueError(f"not a boolean: {val!r}")


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    return v if v is not None else default


def _ensure_scheme(url: Optional[str], allowed: tuple[str, ...]) -> Optional[str]:
    if not url:
        return url
    lower = url.lower()
    if not any(lower.startswith(f"{sch}://") for sch in allowed):
        raise ValueError(f"URL must start with {allowed}, got: {url!r}")
    return url


@dataclass(slots=True)
class SDKConfig:
    # Node
    rpc_url: str = field(default_factory=lambda: _DEFAULT_RPC)
    chain: str = "main"
    request_timeout: float = 30.0
    # Operation policy
    use_mutez: bool = True
    default_fee: Optional[float] = None
    forge_mode: ForgeMode = ForgeMode.REMOTE
    dry_run_limiter: bool = False
    # Identity / diagnostics
    user_agent: str = field(default_factory=lambda: f"tez-sdk-py/{__version__}")
    log_level: str = "INFO"
    log_json: bool = False

    def __post_init__(self) -> None:
        self.forge_mode = ForgeMode(self.forge_mode)
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")

    @property
    def effective_default_fee(self) -> float:
        """
        Default fee expressed in the configured caller unit: mutez when
        `use_mutez` is set, tez otherwise.
        """
        if self.default_fee is not None:
            return self.default_fee
        return DEFAULT_FEE_MUTEZ if self.use_mutez else DEFAULT_FEE_MUTEZ / 1_000_000

    @classmethod
    def from_env(cls, prefix: str = "TEZ_") -> "SDKConfig":
        """
        Create config from environment variables:

        TEZ_RPC_URL            (http/https)
        TEZ_CHAIN              (chain alias or id, default "main")
        TEZ_TIMEOUT            (float seconds, HTTP)
        TEZ_USE_MUTEZ          (bool, default true)
        TEZ_DEFAULT_FEE        (number, caller unit)
        TEZ_FORGE_MODE         (remote|local|validate)
        TEZ_DRY_RUN_LIMITER    (bool, default false)
        TEZ_USER_AGENT         (str)
        TEZ_LOG_LEVEL          (str)
        TEZ_LOG_FORMAT         (json|text)
        """
        rpc = _env(f"{prefix}RPC_URL", _DEFAULT_RPC)
        _ensure_scheme(rpc, ("http", "https"))
        fee = _env(f"{prefix}DEFAULT_FEE")

        return cls(
            rpc_url=rpc or _DEFAULT_RPC,
            chain=_env(f"{prefix}CHAIN", "main") or "main",
            request_timeout=float(_env(f"{prefix}TIMEOUT", "30.0") or 30.0),
            use_mutez=_parse_bool(_env(f"{prefix}USE_MUTEZ"), True),
            default_fee=float(fee) if fee else None,
            forge_mode=ForgeMode((_env(f"{prefix}FORGE_MODE", "remote") or "remote").lower()),
            dry_run_limiter=_parse_bool(_env(f"{prefix}DRY_RUN_LIMITER"), False),
            user_agent=_env(f"{prefix}USER_AGENT", f"tez-sdk-py/{__version__}") or f"tez-sdk-py/{__version__}",
            log_level=_env(f"{prefix}LOG_LEVEL", "INFO") or "INFO",
            log_json=(_env(f"{prefix}LOG_FORMAT", "text") or "text").lower() == "json",
        )

    @classmethod
    def with_overrides(cls, base: Optional["SDKConfig"] = None, **overrides: Any) -> "SDKConfig":
        """
        Build from an existing config plus keyword overrides.
        Unknown keys are ignored.
        """
        base = base or cls()
        data = base.to_dict()
        data.update({k: v for k, v in overrides.items() if k in data})
        if "rpc_url" in overrides:
            _ensure_scheme(data["rpc_url"], ("http", "https"))
        return cls(**data)

    def http_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": self.user_agent,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rpc_url": self.rpc_url,
            "chain": self.chain,
            "request_timeout": float(self.request_timeout),
            "use_mutez": bool(self.use_mutez),
            "default_fee": self.default_fee,
            "forge_mode": self.forge_mode.value,
            "dry_run_limiter": bool(self.dry_run_limiter),
            "user_agent": self.user_agent,
            "log_level": self.log_level,
            "log_json": bool(self.log_json),
        }


__all__ = ["SDKConfig", "ForgeMode", "DEFAULT_FEE_MUTEZ"]
