"""
tez_sdk.client
==============

`TezosClient` wires the operation pipeline to a node:

    intents → OperationAssembler → Forger → Submitter → (InclusionWatcher)

One client owns one `CounterStore`; share the client (not the store) between
tasks that submit for the same account.

Example
-------
    from tez_sdk import SDKConfig, TezosClient
    from tez_sdk.operation import Transaction

    async with TezosClient(SDKConfig(rpc_url="http://127.0.0.1:8732"), signer=my_signer) as tz:
        res = await tz.send_operation(Transaction(destination="tz1...", amount=1_000_000, gas_limit=10600, storage_limit=300))
        block = await tz.await_operation(res.hash)
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from .config import SDKConfig
from .errors import InvalidArgument
from .logging import get_logger, trace_scope
from .operation.assemble import OperationAssembler
from .operation.counter import CounterStore
from .operation.estimate import LimitEstimator
from .operation.forge import Forger, LocalCodec
from .operation.intents import (
    ActivateAccount,
    Delegation,
    Intent,
    Origination,
    Transaction,
)
from .operation.protocols import PROTOCOLS, ProtocolTable
from .operation.send import Submitter
from .operation.types import ForgedBytes, InjectionResult
from .operation.watch import InclusionWatcher
from .rpc.http import RpcClient
from .utils.units import Number, to_canonical
from .wallet.signer import Signer

__all__ = ["TezosClient"]

log = get_logger(__name__)

ExpressionParser = Callable[[str], Any]
OperationInput = Union[Intent, Mapping[str, Any], Sequence[Union[Intent, Mapping[str, Any]]]]

DEFAULT_GAS_LIMIT = 10600
DEFAULT_TRANSFER_STORAGE_LIMIT = 300
DEFAULT_ORIGINATION_STORAGE_LIMIT = 257


class TezosClient:
    def __init__(
        self,
        config: Optional[SDKConfig] = None,
        *,
        signer: Optional[Signer] = None,
        rpc: Any = None,
        codec: Optional[LocalCodec] = None,
        expression_parser: Optional[ExpressionParser] = None,
        counters: Optional[CounterStore] = None,
        protocols: Optional[ProtocolTable] = None,
    ) -> None:
        self.config = config or SDKConfig()
        cfg = self.config
        self.rpc = rpc or RpcClient(cfg.rpc_url, timeout=cfg.request_timeout, headers=cfg.http_headers())
        self.counters = counters or CounterStore()
        self.protocols = protocols or PROTOCOLS
        self.expression_parser = expression_parser

        self.estimator = LimitEstimator(self._simulate_intents)
        self.assembler = OperationAssembler(
            self.rpc,
            self.counters,
            self.protocols,
            chain=cfg.chain,
            signer=signer,
            use_mutez=cfg.use_mutez,
            default_fee=cfg.effective_default_fee,
            estimator=self.estimator if cfg.dry_run_limiter else None,
        )
        self.forger = Forger(self.rpc, chain=cfg.chain, mode=cfg.forge_mode, codec=codec)
        self.submitter = Submitter(self.rpc, self.counters, chain=cfg.chain, signer=signer)
        self.watcher = InclusionWatcher(self.rpc, chain=cfg.chain)

    # --- lifecycle -------------------------------------------------------

    async def __aenter__(self) -> "TezosClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.close()

    async def close(self) -> None:
        close = getattr(self.rpc, "close", None)
        if close is not None:
            await close()

    @property
    def signer(self) -> Optional[Signer]:
        return self.assembler.signer

    @signer.setter
    def signer(self, signer: Optional[Signer]) -> None:
        self.assembler.signer = signer
        self.submitter.signer = signer

    @property
    def chain(self) -> str:
        return self.config.chain

    # --- pipeline --------------------------------------------------------

    async def prepare_operation(
        self,
        operation: OperationInput,
        source: Optional[str] = None,
        *,
        skip_counter: bool = False,
        skip_estimate: bool = False,
    ) -> ForgedBytes:
        """Assemble and forge; counters reserved here are released if forging fails."""
        assembled = await self.assembler.assemble(
            operation, source, skip_counter=skip_counter, skip_estimate=skip_estimate
        )
        try:
            return await self.forger.forge(assembled)
        except Exception as e:
            log.debug("forge failed", extra={"source": assembled.source, "err": repr(e)})
            if not skip_counter:
                self.counters.rollback(assembled.source, assembled.base_counter)
            raise

    async def simulate_operation(
        self,
        operation: OperationInput,
        source: Optional[str] = None,
        *,
        skip_estimate: bool = False,
    ) -> Dict[str, Any]:
        forged = await self.prepare_operation(operation, source, skip_counter=True, skip_estimate=skip_estimate)
        return await self.submitter.simulate(forged)

    async def _simulate_intents(self, intents: List[Intent], source: Optional[str]) -> Dict[str, Any]:
        return await self.simulate_operation(intents, source, skip_estimate=True)

    async def send_operation(
        self,
        operation: OperationInput,
        source: Optional[str] = None,
        *,
        skip_prevalidation: bool = False,
        skip_signature: bool = False,
    ) -> InjectionResult:
        with trace_scope(chain=self.chain):
            forged = await self.prepare_operation(operation, source)
            return await self.submitter.submit(
                forged, skip_prevalidation=skip_prevalidation, skip_signature=skip_signature
            )

    async def await_operation(self, op_hash: str, interval: float = 10, timeout: float = 180) -> str:
        return await self.watcher.await_inclusion(op_hash, interval, timeout)

    # --- intent helpers --------------------------------------------------

    def _expr(self, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        if self.expression_parser is None:
            raise InvalidArgument("textual Michelson given but no expression_parser is configured")
        return self.expression_parser(value)

    def _require_pkh(self) -> str:
        if self.signer is None:
            raise InvalidArgument("this operation needs a signer")
        return self.signer.public_key_hash()

    async def transfer(
        self,
        to: str,
        amount: Number,
        *,
        source: Optional[str] = None,
        fee: Optional[Number] = None,
        gas_limit: Optional[int] = DEFAULT_GAS_LIMIT,
        storage_limit: Optional[int] = DEFAULT_TRANSFER_STORAGE_LIMIT,
        parameters: Any = None,
    ) -> InjectionResult:
        return await self.batch_transfer(
            [
                dict(
                    to=to,
                    amount=amount,
                    source=source,
                    fee=fee,
                    gas_limit=gas_limit,
                    storage_limit=storage_limit,
                    parameters=parameters,
                )
            ]
        )

    async def batch_transfer(self, transfers: Sequence[Mapping[str, Any]]) -> InjectionResult:
        """Send several transfers in one operation group (consecutive counters)."""
        if not transfers:
            raise InvalidArgument("no transfers given")
        ops: List[Intent] = []
        for t in transfers:
            params = t.get("parameters")
            ops.append(
                Transaction(
                    destination=t["to"],
                    amount=t["amount"],
                    source=t.get("source"),
                    fee=t.get("fee"),
                    gas_limit=t.get("gas_limit", DEFAULT_GAS_LIMIT),
                    storage_limit=t.get("storage_limit", DEFAULT_TRANSFER_STORAGE_LIMIT),
                    parameters=self._expr(params) if params is not None else None,
                )
            )
        return await self.send_operation(ops)

    async def activate(self, pkh: str, secret: str) -> InjectionResult:
        return await self.send_operation([ActivateAccount(pkh=pkh, secret=secret)], source=pkh, skip_signature=True)

    async def originate(
        self,
        *,
        balance: Number,
        code: Any,
        init: Any,
        spendable: bool = False,
        delegatable: bool = False,
        delegate: Optional[str] = None,
        fee: Optional[Number] = None,
        gas_limit: int = DEFAULT_GAS_LIMIT,
        storage_limit: int = DEFAULT_ORIGINATION_STORAGE_LIMIT,
    ) -> InjectionResult:
        op = Origination(
            balance=balance,
            script={"code": self._expr(code), "storage": self._expr(init)},
            manager_pubkey=self._require_pkh(),
            spendable=spendable,
            delegatable=delegatable,
            delegate=delegate,
            fee=fee,
            gas_limit=gas_limit,
            storage_limit=storage_limit,
        )
        return await self.send_operation(op)

    async def account(
        self,
        *,
        balance: Number,
        spendable: Optional[bool] = None,
        delegatable: Optional[bool] = None,
        delegate: Optional[str] = None,
        fee: Optional[Number] = None,
        gas_limit: int = DEFAULT_GAS_LIMIT,
        storage_limit: int = DEFAULT_ORIGINATION_STORAGE_LIMIT,
    ) -> InjectionResult:
        """Originate a scriptless account (legacy protocols)."""
        op = Origination(
            balance=balance,
            manager_pubkey=self._require_pkh(),
            spendable=spendable or None,
            delegatable=delegatable or None,
            delegate=delegate,
            fee=fee,
            gas_limit=gas_limit,
            storage_limit=storage_limit,
        )
        return await self.send_operation(op)

    async def set_delegate(
        self,
        delegate: Optional[str],
        *,
        source: Optional[str] = None,
        fee: Optional[Number] = None,
        gas_limit: int = DEFAULT_GAS_LIMIT,
        storage_limit: int = 0,
    ) -> InjectionResult:
        source = source or self._require_pkh()
        op = Delegation(delegate=delegate, source=source, fee=fee, gas_limit=gas_limit, storage_limit=storage_limit)
        return await self.send_operation(op, source=source)

    async def register_delegate(
        self,
        *,
        fee: Optional[Number] = None,
        gas_limit: int = DEFAULT_GAS_LIMIT,
        storage_limit: int = 0,
    ) -> InjectionResult:
        op = Delegation(delegate=self._require_pkh(), fee=fee, gas_limit=gas_limit, storage_limit=storage_limit)
        return await self.send_operation(op)

    # --- chain queries ---------------------------------------------------

    def _head(self, suffix: str = "") -> str:
        base = f"/chains/{self.chain}/blocks/head"
        return f"{base}/{suffix}" if suffix else base

    async def get_balance(self, address: str) -> str:
        return await self.rpc.query(self._head(f"context/contracts/{address}/balance"))

    async def get_delegate(self, address: str) -> str:
        delegate = await self.rpc.query(self._head(f"context/contracts/{address}/delegate"))
        return delegate or ""

    async def get_manager(self, address: str) -> Any:
        return await self.rpc.query(self._head(f"context/contracts/{address}/manager_key"))

    async def get_counter(self, address: str) -> str:
        return await self.rpc.query(self._head(f"context/contracts/{address}/counter"))

    async def get_baker(self, address: str) -> Dict[str, Any]:
        return await self.rpc.query(self._head(f"context/delegates/{address}"))

    async def get_header(self) -> Dict[str, Any]:
        return await self.rpc.query(self._head("header"))

    async def get_head_metadata(self) -> Dict[str, Any]:
        return await self.rpc.query(self._head("metadata"))

    async def get_head(self) -> Dict[str, Any]:
        return await self.rpc.query(self._head())

    async def get_head_hash(self) -> str:
        return await self.rpc.query(self._head("hash"))

    async def get_ballot_list(self) -> List[Any]:
        return await self.rpc.query(self._head("votes/ballot_list"))

    async def get_proposals(self) -> List[Any]:
        return await self.rpc.query(self._head("votes/proposals"))

    async def get_ballots(self) -> Dict[str, int]:
        return await self.rpc.query(self._head("votes/ballots"))

    async def get_listings(self) -> List[Any]:
        return await self.rpc.query(self._head("votes/listings"))

    async def get_current_proposal(self) -> Optional[str]:
        return await self.rpc.query(self._head("votes/current_proposal"))

    async def get_current_period(self) -> Any:
        return await self.rpc.query(self._head("votes/current_period_kind"))

    async def get_current_quorum(self) -> int:
        return await self.rpc.query(self._head("votes/current_quorum"))

    # --- script helpers --------------------------------------------------

    async def typecheck_code(self, code: Any, gas: int = 10000) -> Any:
        return await self.rpc.query(
            self._head("helpers/scripts/typecheck_code"),
            {"program": self._expr(code), "gas": str(gas)},
        )

    async def pack_data(self, data: Any, type_: Any) -> Any:
        return await self.rpc.query(
            self._head("helpers/scripts/pack_data"),
            {"data": self._expr(data), "type": self._expr(type_), "gas": "4000000"},
        )

    async def typecheck_data(self, data: Any, type_: Any) -> Any:
        return await self.rpc.query(
            self._head("helpers/scripts/typecheck_data"),
            {"data": self._expr(data), "type": self._expr(type_), "gas": "4000000"},
        )

    async def run_code(self, code: Any, amount: Number, input_: Any, storage: Any, *, trace: bool = False) -> Any:
        ep = "trace_code" if trace else "run_code"
        return await self.rpc.query(
            self._head(f"helpers/scripts/{ep}"),
            {
                "script": self._expr(code),
                "amount": to_canonical(amount, use_mutez=self.config.use_mutez),
                "input": self._expr(input_),
                "storage": self._expr(storage),
            },
        )
