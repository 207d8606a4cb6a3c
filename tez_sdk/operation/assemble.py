"""
tez_sdk.operation.assemble
==========================

Turn intents into a protocol-conformant `OperationGroup`.

Steps
-----
1. Resolve the source: explicit override, else the signer's address.
2. Query header and head metadata; when the batch has fee-bearing contents
   also query the source's counter, and when any content needs a revealed key
   the source's manager key (all concurrently).
3. Prepend a reveal when the manager key is absent and the caller did not
   include one.
4. Seed the counter store from the node counter (upward only).
5. Optionally estimate gas/storage limits with a dry run.
6. Under the source's counter lock: normalize amounts to mutez, stamp
   `source`, assign consecutive counters, conform each content to the next
   protocol.
7. Emit ``{branch: header.hash, contents, protocol: next_protocol}``.

Counters are reserved only in step 6 so a failed query or a protocol the
table does not know aborts before anything is consumed.
"""

from __future__ import annotations

import asyncio
from typing import Any, List, Optional, Protocol, Sequence

from ..errors import InvalidArgument
from ..logging import get_logger
from ..utils.units import Number, to_canonical
from ..wallet.signer import Signer
from .counter import CounterStore
from .estimate import LimitEstimator
from .intents import AMOUNT_FIELDS, SOURCE_KINDS, Intent, Reveal, coerce_intents
from .protocols import ProtocolTable
from .types import AssembledGroup, Content, OperationGroup

__all__ = ["OperationAssembler", "REVEAL_GAS_LIMIT", "REVEAL_STORAGE_LIMIT"]

log = get_logger(__name__)

# Limits attached to a synthesized reveal
REVEAL_GAS_LIMIT = 10600
REVEAL_STORAGE_LIMIT = 300


class _Rpc(Protocol):
    async def query(self, path: str, payload: Any = ...) -> Any: ...


class OperationAssembler:
    def __init__(
        self,
        rpc: _Rpc,
        counters: CounterStore,
        protocols: ProtocolTable,
        *,
        chain: str = "main",
        signer: Optional[Signer] = None,
        use_mutez: bool = True,
        default_fee: Number = 1420,
        estimator: Optional[LimitEstimator] = None,
    ) -> None:
        self.rpc = rpc
        self.counters = counters
        self.protocols = protocols
        self.chain = chain
        self.signer = signer
        self.use_mutez = use_mutez
        self.default_fee = default_fee
        self.estimator = estimator

    # --- node queries ----------------------------------------------------

    def _head_path(self, suffix: str) -> str:
        return f"/chains/{self.chain}/blocks/head/{suffix}"

    async def _fetch_state(self, pkh: str, need_counter: bool, need_manager: bool) -> List[Any]:
        calls = [
            self.rpc.query(self._head_path("header")),
            self.rpc.query(self._head_path("metadata")),
            self.rpc.query(self._head_path(f"context/contracts/{pkh}/manager_key")) if need_manager else _none(),
            self.rpc.query(self._head_path(f"context/contracts/{pkh}/counter")) if need_counter else _none(),
        ]
        return list(await asyncio.gather(*calls))

    # --- assembly --------------------------------------------------------

    def _resolve_source(self, source: Optional[str]) -> str:
        if source:
            return source
        if self.signer is None:
            raise InvalidArgument("no source given and no signer configured")
        return self.signer.public_key_hash()

    def _default_reveal(self, pkh: str) -> Reveal:
        if self.signer is None:
            raise InvalidArgument(f"{pkh} is not revealed and no signer is configured to reveal it")
        return Reveal(
            public_key=self.signer.public_key(),
            source=pkh,
            fee=self.default_fee,
            gas_limit=REVEAL_GAS_LIMIT,
            storage_limit=REVEAL_STORAGE_LIMIT,
        )

    async def assemble(
        self,
        operation: Any,
        source: Optional[str] = None,
        *,
        skip_counter: bool = False,
        skip_estimate: bool = False,
    ) -> AssembledGroup:
        intents = coerce_intents(operation)
        pkh = self._resolve_source(source)

        need_manager = any(op.requires_reveal for op in intents)
        need_counter = any(op.fee_bearing for op in intents)
        header, metadata, manager, node_counter = await self._fetch_state(pkh, need_counter, need_manager)

        protocol = metadata["protocol"]
        next_protocol = metadata["next_protocol"]
        # Fail on unknown protocols before any counter is touched.
        self.protocols.generation_of(next_protocol)

        if need_manager:
            key = self.protocols.manager_key_of(manager, protocol)
            if not key and not any(isinstance(op, Reveal) for op in intents):
                log.debug("source not revealed; prepending reveal", extra={"source": pkh})
                intents.insert(0, self._default_reveal(pkh))

        if node_counter is not None:
            self.counters.seed(pkh, int(node_counter))

        if self.estimator is not None and not skip_estimate:
            intents = await self.estimator.estimate(intents, pkh)

        if skip_counter:
            base = self.counters.peek(pkh)
            contents = self._construct(intents, pkh, next_protocol, base, reserve=False)
        else:
            async with self.counters.lock(pkh):
                base = self.counters.peek(pkh)
                contents = self._construct(intents, pkh, next_protocol, base, reserve=True)

        group = OperationGroup(branch=header["hash"], contents=contents, protocol=next_protocol)
        return AssembledGroup(
            group=group,
            source=pkh,
            base_counter=base if any(op.fee_bearing for op in intents) else None,
            chain_id=header.get("chain_id", ""),
        )

    def _construct(
        self,
        intents: Sequence[Intent],
        pkh: str,
        protocol: str,
        base: Optional[int],
        *,
        reserve: bool,
    ) -> List[Content]:
        n_counters = sum(1 for op in intents if op.fee_bearing)
        if n_counters and base is None:
            raise InvalidArgument(f"no counter known for {pkh}")
        contents = [self._normalize(op, pkh) for op in intents]

        if n_counters:
            # Normalization above may raise; reserve only once it succeeded.
            nxt = self.counters.reserve(pkh, count=n_counters) if reserve else int(base) + 1  # type: ignore[arg-type]
            for op, content in zip(intents, contents):
                if op.fee_bearing:
                    content["counter"] = str(nxt)
                    nxt += 1

        return [self.protocols.conform(c, protocol) for c in contents]

    def _normalize(self, op: Intent, pkh: str) -> Content:
        content = op.to_content()
        if op.kind in SOURCE_KINDS and not content.get("source"):
            content["source"] = pkh
        if op.fee_bearing:
            fee = content.get("fee")
            content["fee"] = to_canonical(self.default_fee if fee is None else fee, use_mutez=self.use_mutez)
            content["gas_limit"] = str(int(content.get("gas_limit") or 0))
            content["storage_limit"] = str(int(content.get("storage_limit") or 0))
            for name in AMOUNT_FIELDS:
                if name in content:
                    content[name] = to_canonical(content[name], use_mutez=self.use_mutez)
        return content


async def _none() -> None:
    return None
