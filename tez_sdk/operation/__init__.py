"""
tez_sdk.operation
=================

The operation pipeline: assemble, forge, sign/submit and watch.

Submodules
----------
- intents  : One dataclass per operation kind (Transaction, Origination, ...).
- counter  : Per-account counter cache with per-address locks.
- protocols: Protocol version table (legacy vs modern operation shape).
- estimate : Dry-run gas/storage limit estimation.
- assemble : Intents → protocol-conformant OperationGroup.
- forge    : OperationGroup → wire bytes (remote, local, or cross-validated).
- send     : Sign, preapply, inject; counter rollback on failure.
- watch    : Poll heads until an operation hash is included.

Typical usage goes through `tez_sdk.client.TezosClient`, which owns one
instance of each stage; the stages are usable on their own for tests and
custom flows.
"""

from __future__ import annotations

from .counter import CounterStore
from .intents import (
    ActivateAccount,
    Ballot,
    Delegation,
    Intent,
    Origination,
    Proposals,
    Reveal,
    Transaction,
    coerce_intents,
    intent_from_dict,
)
from .protocols import PROTOCOLS, Generation, ProtocolTable
from .types import AssembledGroup, ForgedBytes, InjectionResult, OperationGroup, SignedOperation

__all__ = [
    "CounterStore",
    "Intent",
    "Reveal",
    "Transaction",
    "Origination",
    "Delegation",
    "ActivateAccount",
    "Proposals",
    "Ballot",
    "coerce_intents",
    "intent_from_dict",
    "PROTOCOLS",
    "Generation",
    "ProtocolTable",
    "OperationGroup",
    "AssembledGroup",
    "ForgedBytes",
    "SignedOperation",
    "InjectionResult",
]
