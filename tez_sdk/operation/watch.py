"""
tez_sdk.operation.watch
=======================

Wait for an injected operation to show up in a block.

The watcher polls the current head every `interval` seconds and scans its four
validation-pass buckets for the operation hash. The first head containing it
resolves the wait with that head's hash. When `timeout` elapses first,
`OperationTimeout` is raised; either way the polling task is cancelled, so no
poll outlives the call.

Only the head *read* is repeated; the watcher never resubmits anything.
"""

from __future__ import annotations

import asyncio
from typing import Any, Mapping, Optional, Protocol

from ..errors import InvalidArgument, OperationTimeout
from ..logging import get_logger

__all__ = ["InclusionWatcher", "find_in_head"]

log = get_logger(__name__)

VALIDATION_PASSES = 4


class _Rpc(Protocol):
    async def query(self, path: str, payload: Any = ...) -> Any: ...


def find_in_head(head: Mapping[str, Any], op_hash: str) -> bool:
    buckets = head.get("operations") or []
    for i in reversed(range(min(VALIDATION_PASSES, len(buckets)))):
        if any(isinstance(op, Mapping) and op.get("hash") == op_hash for op in buckets[i] or []):
            return True
    return False


class InclusionWatcher:
    def __init__(self, rpc: _Rpc, *, chain: str = "main") -> None:
        self.rpc = rpc
        self.chain = chain

    async def _poll(self, op_hash: str, interval: float) -> str:
        path = f"/chains/{self.chain}/blocks/head"
        last_seen: Optional[str] = None
        while True:
            head = await self.rpc.query(path)
            if find_in_head(head, op_hash):
                return head["hash"]
            if head.get("hash") != last_seen:
                last_seen = head.get("hash")
                log.debug("operation not in head yet", extra={"op_hash": op_hash, "head": last_seen})
            await asyncio.sleep(interval)

    async def await_inclusion(self, op_hash: str, interval: float = 10, timeout: float = 180) -> str:
        if not op_hash:
            raise InvalidArgument("no operation hash provided")
        if timeout <= 0:
            raise InvalidArgument("timeout must be more than 0")
        if interval <= 0:
            raise InvalidArgument("interval must be more than 0")

        try:
            block_hash = await asyncio.wait_for(self._poll(op_hash, interval), timeout)
        except asyncio.TimeoutError:
            raise OperationTimeout(op_hash=op_hash, timeout=timeout) from None
        log.info("operation included", extra={"op_hash": op_hash, "block": block_hash})
        return block_hash
