"""
tez_sdk.operation.counter
=========================

Per-account counter cache with per-address locking.

Design
------
- The store maps address -> last counter handed out by this client.
- `seed` only ever raises the cached value: a node that has not yet seen our
  in-flight operations reports a lower counter, and that value must not make
  us reuse counters already attached to pending operations.
- `reserve` hands out `count` consecutive counters starting at cache + 1.
  Callers hold `lock(address)` across the reservation so concurrent
  assemblies for the same account never interleave; different accounts have
  independent locks.
- `rollback` is the one downward move: after a failed submission the cache
  returns to the value it had before the group reserved its counters.

The store is owned by a single client instance and never persisted.
"""

from __future__ import annotations

import asyncio
from typing import Dict, Optional

from ..logging import get_logger

__all__ = ["CounterStore"]

log = get_logger(__name__)


class CounterStore:
    def __init__(self) -> None:
        self._counters: Dict[str, int] = {}
        # One lock per address; bounded by the accounts this client signs for, never evicted.
        self._locks: Dict[str, asyncio.Lock] = {}

    def __contains__(self, address: str) -> bool:
        return address in self._counters

    def lock(self, address: str) -> asyncio.Lock:
        lk = self._locks.get(address)
        if lk is None:
            lk = self._locks[address] = asyncio.Lock()
        return lk

    def peek(self, address: str) -> Optional[int]:
        return self._counters.get(address)

    def seed(self, address: str, node_counter: int) -> int:
        """Raise the cached counter to `node_counter` if it is behind; return the result."""
        node_counter = int(node_counter)
        cur = self._counters.get(address)
        if cur is None or cur < node_counter:
            self._counters[address] = node_counter
            return node_counter
        return cur

    def reserve(self, address: str, node_counter: Optional[int] = None, count: int = 1) -> int:
        """
        Seed from `node_counter` (when given), then reserve `count` consecutive
        counters. Returns the first reserved counter.
        """
        if count < 1:
            raise ValueError("count must be >= 1")
        if node_counter is not None:
            self.seed(address, node_counter)
        if address not in self._counters:
            raise KeyError(f"no counter known for {address}")
        first = self._counters[address] + 1
        self._counters[address] += count
        log.debug(
            "reserved counters",
            extra={"source": address, "first": first, "last": first + count - 1},
        )
        return first

    def rollback(self, address: str, counter_before_group: Optional[int]) -> None:
        """Reset the cache to the value it had before a failed group reserved counters."""
        if counter_before_group is None:
            return
        prev = self._counters.get(address)
        self._counters[address] = int(counter_before_group)
        log.warning(
            "counter rolled back",
            extra={"source": address, "from": prev, "to": int(counter_before_group)},
        )

    def snapshot(self) -> Dict[str, int]:
        return dict(self._counters)
