from __future__ import annotations

"""
Pipeline data shapes: operation groups and the artifacts produced while an
operation group moves from assembly to injection.

Contents are plain dicts in the node's wire shape (amounts, fees, counters and
limits are decimal strings); these dataclasses only carry them between the
assembler, the forge adapter and the submitter.

Nothing here performs network I/O.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

Content = Dict[str, Any]


@dataclass(slots=True)
class OperationGroup:
    """`{branch, contents, protocol, signature}`; contents order is significant."""

    branch: str
    contents: List[Content] = field(default_factory=list)
    protocol: Optional[str] = None
    signature: Optional[str] = None

    def to_rpc_dict(self, *, include_protocol: bool = True, include_signature: bool = True) -> Dict[str, Any]:
        d: Dict[str, Any] = {"branch": self.branch, "contents": [dict(c) for c in self.contents]}
        if include_protocol and self.protocol is not None:
            d["protocol"] = self.protocol
        if include_signature and self.signature is not None:
            d["signature"] = self.signature
        return d

    def with_signature(self, signature: str) -> "OperationGroup":
        return OperationGroup(
            branch=self.branch,
            contents=[dict(c) for c in self.contents],
            protocol=self.protocol,
            signature=signature,
        )


@dataclass(slots=True)
class AssembledGroup:
    """
    Assembler output.

    `base_counter` is the account counter *before* this group's reservations
    (None when the group holds no fee-bearing contents); rolling the counter
    store back to it releases every counter the group used.
    """

    group: OperationGroup
    source: str
    base_counter: Optional[int]
    chain_id: str


@dataclass(slots=True)
class ForgedBytes:
    wire_bytes: str
    group: OperationGroup
    source: str
    base_counter: Optional[int]
    chain_id: str


@dataclass(slots=True)
class SignedOperation:
    forged: ForgedBytes
    signature_bytes: str
    prefixed_signature: str
    signed_bytes: str

    @property
    def group(self) -> OperationGroup:
        return self.forged.group.with_signature(self.prefixed_signature)


@dataclass(slots=True)
class InjectionResult:
    hash: str
    operations: List[Content] = field(default_factory=list)


__all__ = [
    "Content",
    "OperationGroup",
    "AssembledGroup",
    "ForgedBytes",
    "SignedOperation",
    "InjectionResult",
]
