"""
tez_sdk.operation.intents
=========================

Caller-facing intents: one frozen dataclass per operation kind, each carrying
only the fields that kind uses.

    Reveal           publish the account's public key (fee-bearing)
    Transaction      transfer / contract call (fee-bearing)
    Origination      new contract or account (fee-bearing)
    Delegation       set, change or withdraw a delegate (fee-bearing)
    ActivateAccount  fundraiser activation (no fee, no counter)
    Proposals        governance proposal upvote (source, no counter)
    Ballot           governance ballot (source, no counter)

`to_content()` renders the node-shaped mapping *before* unit normalization,
counter assignment and protocol conforming; those happen in the assembler.

Amounts (`fee`, `amount`, `balance`) are in the caller's unit as selected by
`SDKConfig.use_mutez`.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Sequence, Tuple, Type, Union

from ..errors import InvalidArgument

Number = Union[int, float, str, Decimal]
Expression = Any  # structured Michelson expression (dict / list)

# Kinds that pay a fee and consume an account counter.
FEE_BEARING_KINDS = frozenset({"reveal", "transaction", "origination", "delegation"})
# Kinds that need the source's manager key on-chain first.
REVEAL_REQUIRED_KINDS = frozenset({"transaction", "origination", "delegation", "baker_registration"})
# Kinds stamped with `source` when the caller left it empty.
SOURCE_KINDS = frozenset({"reveal", "transaction", "origination", "delegation", "proposals", "ballot"})
# Amount-carrying fields normalized to mutez.
AMOUNT_FIELDS = ("amount", "balance")

BALLOT_VOTES = ("yay", "nay", "pass")

__all__ = [
    "Intent",
    "ManagerIntent",
    "Reveal",
    "Transaction",
    "Origination",
    "Delegation",
    "ActivateAccount",
    "Proposals",
    "Ballot",
    "FEE_BEARING_KINDS",
    "REVEAL_REQUIRED_KINDS",
    "SOURCE_KINDS",
    "intent_from_dict",
    "coerce_intents",
]


@dataclass(frozen=True, kw_only=True)
class Intent:
    kind: ClassVar[str] = ""

    @property
    def fee_bearing(self) -> bool:
        return self.kind in FEE_BEARING_KINDS

    @property
    def requires_reveal(self) -> bool:
        return self.kind in REVEAL_REQUIRED_KINDS

    def to_content(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"kind": self.kind}
        for f in dataclasses.fields(self):
            v = getattr(self, f.name)
            if v is not None:
                d[f.name] = list(v) if isinstance(v, tuple) else v
        return d


@dataclass(frozen=True, kw_only=True)
class ManagerIntent(Intent):
    """Fields shared by fee-bearing (manager) operations."""

    source: Optional[str] = None
    fee: Optional[Number] = None
    gas_limit: Optional[int] = None
    storage_limit: Optional[int] = None

    def with_limits(self, *, gas_limit: Optional[int], storage_limit: Optional[int]) -> "ManagerIntent":
        return dataclasses.replace(self, gas_limit=gas_limit, storage_limit=storage_limit)


@dataclass(frozen=True, kw_only=True)
class Reveal(ManagerIntent):
    kind: ClassVar[str] = "reveal"

    public_key: str


@dataclass(frozen=True, kw_only=True)
class Transaction(ManagerIntent):
    kind: ClassVar[str] = "transaction"

    destination: str
    amount: Number = 0
    parameters: Optional[Expression] = None


@dataclass(frozen=True, kw_only=True)
class Origination(ManagerIntent):
    kind: ClassVar[str] = "origination"

    balance: Number = 0
    script: Optional[Dict[str, Expression]] = None
    delegate: Optional[str] = None
    # Only forged by legacy protocols; stripped by the modern rule.
    manager_pubkey: Optional[str] = None
    spendable: Optional[bool] = None
    delegatable: Optional[bool] = None


@dataclass(frozen=True, kw_only=True)
class Delegation(ManagerIntent):
    kind: ClassVar[str] = "delegation"

    # None withdraws the current delegate.
    delegate: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class ActivateAccount(Intent):
    kind: ClassVar[str] = "activate_account"

    pkh: str
    secret: str


@dataclass(frozen=True, kw_only=True)
class Proposals(Intent):
    kind: ClassVar[str] = "proposals"

    period: int
    proposals: Tuple[str, ...] = field(default_factory=tuple)
    source: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class Ballot(Intent):
    kind: ClassVar[str] = "ballot"

    period: int
    proposal: str
    ballot: str
    source: Optional[str] = None

    def __post_init__(self) -> None:
        if self.ballot not in BALLOT_VOTES:
            raise InvalidArgument(f"ballot must be one of {BALLOT_VOTES}, got {self.ballot!r}")


_BY_KIND: Dict[str, Type[Intent]] = {
    cls.kind: cls
    for cls in (Reveal, Transaction, Origination, Delegation, ActivateAccount, Proposals, Ballot)
}


def intent_from_dict(d: Mapping[str, Any]) -> Intent:
    """
    Build the matching intent from a node-shaped mapping such as
    ``{"kind": "transaction", "destination": "tz1...", "amount": 1000}``.
    """
    kind = d.get("kind")
    cls = _BY_KIND.get(str(kind))
    if cls is None:
        raise InvalidArgument(f"unsupported operation kind: {kind!r}")
    names = {f.name for f in dataclasses.fields(cls)}
    unknown = sorted(k for k in d if k != "kind" and k not in names)
    if unknown:
        raise InvalidArgument(f"unexpected fields for {kind}: {', '.join(unknown)}")
    kwargs = {k: v for k, v in d.items() if k != "kind"}
    if cls is Proposals and "proposals" in kwargs:
        kwargs["proposals"] = tuple(kwargs["proposals"])
    try:
        return cls(**kwargs)
    except TypeError as e:
        raise InvalidArgument(f"invalid {kind} operation: {e}") from e


def coerce_intents(operation: Union[Intent, Mapping[str, Any], Sequence[Union[Intent, Mapping[str, Any]]]]) -> List[Intent]:
    """Accept one intent/mapping or a sequence of them; returns a fresh list."""
    items: Sequence[Any]
    if isinstance(operation, (Intent, Mapping)):
        items = [operation]
    else:
        items = list(operation)
    if not items:
        raise InvalidArgument("no operation given")
    out: List[Intent] = []
    for item in items:
        if isinstance(item, Intent):
            out.append(item)
        elif isinstance(item, Mapping):
            out.append(intent_from_dict(item))
        else:
            raise InvalidArgument(f"not an operation: {item!r}")
    return out
