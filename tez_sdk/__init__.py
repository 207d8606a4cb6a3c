"""
tez_sdk
=======

Async client for Tezos-compatible nodes built around one operation pipeline:

    prepare_operation → simulate_operation / send_operation → await_operation

Quick start
-----------
    from tez_sdk import SDKConfig, TezosClient

    cfg = SDKConfig.from_env()
    async with TezosClient(cfg, signer=my_signer) as tz:
        res = await tz.transfer("tz1...", 1_000_000)
        block = await tz.await_operation(res.hash, interval=5, timeout=120)
"""

from __future__ import annotations

from .client import TezosClient
from .config import DEFAULT_FEE_MUTEZ, ForgeMode, SDKConfig
from .errors import (
    ConfigError,
    ForgeValidationError,
    InjectionFailed,
    InvalidArgument,
    OperationTimeout,
    PrevalidationFailed,
    RpcError,
    TezSdkError,
    UnrecognizedProtocol,
)
from .operation.types import InjectionResult
from .version import __version__
from .wallet.signer import SignedBytes, Signer

__all__ = [
    "__version__",
    "TezosClient",
    "SDKConfig",
    "ForgeMode",
    "DEFAULT_FEE_MUTEZ",
    "Signer",
    "SignedBytes",
    "InjectionResult",
    "TezSdkError",
    "RpcError",
    "InvalidArgument",
    "ConfigError",
    "UnrecognizedProtocol",
    "ForgeValidationError",
    "PrevalidationFailed",
    "InjectionFailed",
    "OperationTimeout",
]
