"""
Shared pytest fixtures:
- FakeRpc: in-memory node answering the RPC paths the pipeline touches
- FakeSigner: deterministic signer recording what it was asked to sign
- FakeCodec: local forger producing the same bytes FakeRpc forges remotely
"""
from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, List, Optional, Tuple

import pytest

from tez_sdk.errors import RpcError
from tez_sdk.operation.types import OperationGroup
from tez_sdk.wallet.signer import SignedBytes

MODERN = "PsDELPH1Kxsxt8f9eWbxQeRxkjfbxoqM52jvs5Y5fBxWWh4ifpo"
LEGACY = "Pt24m4xiPbLDhVgVfABUjirbmda3yohdN82Sp9FeuAXJ4eV9otd"
BRANCH = "BLockGenesisGenesisGenesisGenesisGenesisf79b5d1CoW2"
CHAIN_ID = "NetXdQprcVkpaWU"
PKH = "tz1KqTpEZ7Yob7QbPE4Hy4Wo8fHG8LhKxZSx"
PUBKEY = "edpkuBknW28nW72KG6RoHtYW7p12T6GKc7nAbwYX5m8Wd9sDVC9yav"
OP_HASH = "ooYAkp5CTKgDuGpN6bVZ4ACMwjxuUgBpixs2Yw2GpRMo8cmKbBq"

_NO_PAYLOAD = object()


def forge_hex(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode().hex()


class FakeRpc:
    """
    Minimal in-memory node. Every query yields to the event loop first so
    concurrent pipelines actually interleave.
    """

    def __init__(
        self,
        *,
        protocol: str = MODERN,
        next_protocol: Optional[str] = None,
        manager_key: Any = PUBKEY,
        counter: int = 7,
        remote_bytes: Optional[str] = None,
        preapply: Any = None,
        inject: Any = OP_HASH,
        run_operation: Any = None,
        heads: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        self.protocol = protocol
        self.next_protocol = next_protocol or protocol
        self.manager_key = manager_key
        self.counter = counter
        self.remote_bytes = remote_bytes
        self.preapply = preapply
        self.inject = inject
        self.run_operation = run_operation
        self.heads = list(heads or [])
        self.responses: Dict[str, Any] = {}
        self.calls: List[Tuple[str, Any]] = []
        self.closed = False

    def paths(self, fragment: str) -> List[Tuple[str, Any]]:
        return [(p, body) for (p, body) in self.calls if fragment in p]

    async def close(self) -> None:
        self.closed = True

    async def query(self, path: str, payload: Any = _NO_PAYLOAD) -> Any:
        await asyncio.sleep(0)
        body = None if payload is _NO_PAYLOAD else payload
        self.calls.append((path, body))
        result = self._route(path, body)
        if isinstance(result, Exception):
            raise result
        return result

    def _route(self, path: str, payload: Any) -> Any:
        if path in self.responses:
            return self.responses[path]
        if path.endswith("/blocks/head/header"):
            return {"hash": BRANCH, "chain_id": CHAIN_ID, "level": 1200}
        if path.endswith("/blocks/head/metadata"):
            return {"protocol": self.protocol, "next_protocol": self.next_protocol}
        if path.endswith("/manager_key"):
            return self.manager_key
        if path.endswith("/counter"):
            return str(self.counter)
        if path.endswith("/helpers/forge/operations"):
            return self.remote_bytes if self.remote_bytes is not None else forge_hex(payload)
        if path.endswith("/helpers/preapply/operations"):
            if self.preapply is not None:
                return self.preapply
            return [
                {"contents": [dict(c, metadata={"operation_result": {"status": "applied"}}) for c in group["contents"]]}
                for group in payload
            ]
        if path == "/injection/operation":
            return self.inject
        if path.endswith("/helpers/scripts/run_operation"):
            if self.run_operation is not None:
                return self.run_operation
            return {
                "contents": [
                    dict(
                        c,
                        metadata={
                            "operation_result": {"status": "applied", "consumed_gas": "500", "storage_size": "0"}
                        },
                    )
                    for c in payload["operation"]["contents"]
                ]
            }
        if path.endswith("/blocks/head"):
            if not self.heads:
                return RpcError(path=path, message="no head configured", status=404)
            return self.heads.pop(0) if len(self.heads) > 1 else self.heads[0]
        return RpcError(path=path, message="unexpected path", status=404)


class FakeSigner:
    def __init__(self, pkh: str = PKH, pubkey: str = PUBKEY) -> None:
        self._pkh = pkh
        self._pubkey = pubkey
        self.signed: List[Tuple[str, str]] = []

    def public_key(self) -> str:
        return self._pubkey

    def public_key_hash(self) -> str:
        return self._pkh

    async def sign(self, data: str, watermark: str = "03") -> SignedBytes:
        self.signed.append((data, watermark))
        sig = "ab" * 64
        return SignedBytes(signature_bytes=sig, prefixed_signature="edsigFake", signed_bytes=data + sig)


class FakeCodec:
    def __init__(self) -> None:
        self.calls = 0

    def forge_locally(self, group: OperationGroup, protocol: str) -> str:
        self.calls += 1
        return forge_hex(group.to_rpc_dict(include_protocol=False, include_signature=False))


@pytest.fixture
def rpc() -> FakeRpc:
    return FakeRpc()


@pytest.fixture
def signer() -> FakeSigner:
    return FakeSigner()


@pytest.fixture
def codec() -> FakeCodec:
    return FakeCodec()
