"""
tez_sdk.rpc
-----------

Async HTTP transport for the node RPC.

    from tez_sdk.rpc import RpcClient
    rpc = RpcClient(url="http://127.0.0.1:8732")
"""

from __future__ import annotations

from .http import RpcClient

__all__ = ["RpcClient"]
