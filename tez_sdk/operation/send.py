"""
tez_sdk.operation.send
======================

Sign, prevalidate and inject forged operation groups.

Primary entry points
--------------------
- Submitter.sign(forged, skip_signature=False) -> SignedOperation
    Signs the forged bytes with the generic-operation watermark, or attaches
    the placeholder signature (and 64 zero bytes) for operations the node
    accepts without a verified signature, such as account activation.

- Submitter.preapply(signed) -> list of contents
    Dry-applies the signed group. Any content whose operation_result status
    is ``failed`` aborts with `PrevalidationFailed` listing every failure;
    nothing is injected, so no fee or counter is burned.

- Submitter.submit(forged, skip_prevalidation=False, skip_signature=False)
    sign → (preapply) → inject. On *any* failure the source's counter is
    rolled back to the group's base counter before the error propagates.

- Submitter.simulate(forged) -> dict
    run_operation with the placeholder signature; nothing is committed.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from ..errors import InjectionFailed, InvalidArgument, PrevalidationFailed, RpcError
from ..logging import get_logger
from ..wallet.signer import WATERMARK_GENERIC, Signer
from .counter import CounterStore
from .types import Content, ForgedBytes, InjectionResult, SignedOperation

__all__ = ["Submitter", "PLACEHOLDER_SIGNATURE", "ZERO_SIGNATURE"]

log = get_logger(__name__)

# Well-formed signature accepted where the node does not check it
PLACEHOLDER_SIGNATURE = (
    "edsigtXomBKi5CTRf5cjATJWSyaRvhfYNHqSUGrn4SdbYRcGwQrUGjzEfQDTuqHhuA8b2d8NarZjz8TRf65WkpQmo423BtomS8Q"
)
ZERO_SIGNATURE = "00" * 64


class _Rpc(Protocol):
    async def query(self, path: str, payload: Any = ...) -> Any: ...


def _operation_result(content: Any) -> Dict[str, Any]:
    if not isinstance(content, dict):
        return {}
    metadata = content.get("metadata") or {}
    return metadata.get("operation_result") or {}


class Submitter:
    def __init__(
        self,
        rpc: _Rpc,
        counters: CounterStore,
        *,
        chain: str = "main",
        signer: Optional[Signer] = None,
    ) -> None:
        self.rpc = rpc
        self.counters = counters
        self.chain = chain
        self.signer = signer

    # --- signing ---------------------------------------------------------

    async def sign(self, forged: ForgedBytes, *, skip_signature: bool = False) -> SignedOperation:
        if skip_signature:
            return SignedOperation(
                forged=forged,
                signature_bytes=ZERO_SIGNATURE,
                prefixed_signature=PLACEHOLDER_SIGNATURE,
                signed_bytes=forged.wire_bytes + ZERO_SIGNATURE,
            )
        if self.signer is None:
            raise InvalidArgument("signing requested but no signer is configured")
        signed = await self.signer.sign(forged.wire_bytes, WATERMARK_GENERIC)
        return SignedOperation(
            forged=forged,
            signature_bytes=signed.signature_bytes,
            prefixed_signature=signed.prefixed_signature,
            signed_bytes=signed.signed_bytes,
        )

    # --- node calls ------------------------------------------------------

    async def preapply(self, signed: SignedOperation) -> List[Content]:
        forged = signed.forged
        path = f"/chains/{self.chain}/blocks/head/helpers/preapply/operations"
        try:
            results = await self.rpc.query(path, [signed.group.to_rpc_dict()])
        except RpcError as e:
            raise PrevalidationFailed(
                message="Preapply rejected by node",
                errors=[e.body] if e.body is not None else [],
                address=forged.source,
                counter=forged.base_counter,
                body=e.body,
            ) from e

        if not isinstance(results, list):
            raise PrevalidationFailed(
                message="RPC Fail",
                address=forged.source,
                counter=forged.base_counter,
                body=results,
            )

        operations: List[Content] = []
        errors: List[Any] = []
        for result in results:
            if not isinstance(result, dict):
                raise PrevalidationFailed(
                    message="RPC Fail",
                    address=forged.source,
                    counter=forged.base_counter,
                    body=results,
                )
            for content in result.get("contents") or []:
                operations.append(content)
                op_result = _operation_result(content)
                if op_result.get("status") == "failed":
                    errors.append(op_result.get("errors"))

        if errors:
            raise PrevalidationFailed(
                message="Operation Failed",
                errors=errors,
                address=forged.source,
                counter=forged.base_counter,
                body=results,
            )
        return operations

    async def inject(self, signed: SignedOperation) -> str:
        forged = signed.forged
        try:
            op_hash = await self.rpc.query("/injection/operation", signed.signed_bytes)
        except RpcError as e:
            raise InjectionFailed(
                message=e.message,
                address=forged.source,
                counter=forged.base_counter,
                body=e.body,
            ) from e
        return str(op_hash)

    async def simulate(self, forged: ForgedBytes) -> Dict[str, Any]:
        group = forged.group.with_signature(PLACEHOLDER_SIGNATURE)
        return await self.rpc.query(
            f"/chains/{self.chain}/blocks/head/helpers/scripts/run_operation",
            {
                "chain_id": forged.chain_id,
                "operation": group.to_rpc_dict(include_protocol=False),
            },
        )

    # --- submission ------------------------------------------------------

    async def submit(
        self,
        forged: ForgedBytes,
        *,
        skip_prevalidation: bool = False,
        skip_signature: bool = False,
    ) -> InjectionResult:
        try:
            signed = await self.sign(forged, skip_signature=skip_signature)
            operations: List[Content] = []
            if not skip_prevalidation:
                operations = await self.preapply(signed)
            op_hash = await self.inject(signed)
        except Exception as e:
            log.warning(
                "submission failed",
                extra={"source": forged.source, "counter": forged.base_counter, "err": repr(e)},
            )
            self.counters.rollback(forged.source, forged.base_counter)
            raise

        log.info("operation injected", extra={"op_hash": op_hash, "source": forged.source})
        return InjectionResult(hash=op_hash, operations=operations)
