"""
tez_sdk.operation.forge
=======================

Serialize an assembled group into wire bytes.

Modes (`tez_sdk.config.ForgeMode`)
----------------------------------
- REMOTE   : POST the group to the node's ``helpers/forge/operations`` and
             trust the answer.
- LOCAL    : serialize in-process through a `LocalCodec`; the node is never
             asked.
- VALIDATE : do both and require identical bytes. A mismatch raises
             `ForgeValidationError`, since the signature would otherwise cover
             bytes other than the ones the node will apply.

The byte-level encoding rules belong to the codec; this module only picks
which serializer runs and checks agreement.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable

from ..config import ForgeMode
from ..errors import ConfigError, ForgeValidationError
from ..logging import get_logger
from .types import AssembledGroup, ForgedBytes, OperationGroup

__all__ = ["Forger", "LocalCodec"]

log = get_logger(__name__)


@runtime_checkable
class LocalCodec(Protocol):
    """Deterministic, pure, protocol-aware serializer returning hex."""

    def forge_locally(self, group: OperationGroup, protocol: str) -> str: ...


class _Rpc(Protocol):
    async def query(self, path: str, payload: Any = ...) -> Any: ...


def _norm_hex(s: str) -> str:
    s = s.strip().lower()
    return s[2:] if s.startswith("0x") else s


class Forger:
    def __init__(
        self,
        rpc: _Rpc,
        *,
        chain: str = "main",
        mode: ForgeMode = ForgeMode.REMOTE,
        codec: Optional[LocalCodec] = None,
    ) -> None:
        mode = ForgeMode(mode)
        if mode is not ForgeMode.REMOTE and codec is None:
            raise ConfigError(f"forge mode {mode.value!r} requires a local codec")
        self.rpc = rpc
        self.chain = chain
        self.mode = mode
        self.codec = codec

    async def forge_remote(self, group: OperationGroup) -> str:
        payload = group.to_rpc_dict(include_protocol=False, include_signature=False)
        res = await self.rpc.query(
            f"/chains/{self.chain}/blocks/{group.branch}/helpers/forge/operations",
            payload,
        )
        return str(res)

    def forge_local(self, group: OperationGroup) -> str:
        if self.codec is None:
            raise ConfigError("local forging requires a codec")
        return self.codec.forge_locally(group, group.protocol or "")

    async def forge(self, assembled: AssembledGroup) -> ForgedBytes:
        group = assembled.group
        log.debug("forging", extra={"mode": self.mode.value, "contents": len(group.contents)})

        if self.mode is ForgeMode.REMOTE:
            wire = await self.forge_remote(group)
        elif self.mode is ForgeMode.LOCAL:
            wire = self.forge_local(group)
        else:
            remote = await self.forge_remote(group)
            wire = self.forge_local(group)
            if _norm_hex(wire) != _norm_hex(remote):
                raise ForgeValidationError(
                    local_bytes=wire,
                    remote_bytes=remote,
                    address=assembled.source,
                    counter=assembled.base_counter,
                )

        return ForgedBytes(
            wire_bytes=_norm_hex(wire),
            group=group,
            source=assembled.source,
            base_counter=assembled.base_counter,
            chain_id=assembled.chain_id,
        )
