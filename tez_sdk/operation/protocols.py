"""
tez_sdk.operation.protocols
===========================

Protocol version table.

Operation shape depends on the protocol the next block will run. Exactly two
rule generations exist:

- ``Generation.LEGACY``  (protocols 001 to 004): the manager_key RPC returns
  ``{"manager": ..., "key": ...}``; originations keep ``manager_pubkey``,
  ``spendable`` and ``delegatable``.
- ``Generation.MODERN``  (Babylon onward): the manager_key RPC returns the key
  itself; those three origination fields are removed before forging.

The table maps protocol hashes to a generation. It only grows: supporting a
new protocol is a `register` call, not new conforming logic.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from ..errors import UnrecognizedProtocol

__all__ = [
    "Generation",
    "ProtocolTable",
    "KNOWN_PROTOCOLS",
    "PROTOCOLS",
    "LEGACY_ONLY_FIELDS",
]


class Generation(str, Enum):
    LEGACY = "legacy"
    MODERN = "modern"


LEGACY_ONLY_FIELDS: Tuple[str, ...] = ("manager_pubkey", "spendable", "delegatable")

# (name, hash, generation) in activation order
KNOWN_PROTOCOLS: Tuple[Tuple[str, str, Generation], ...] = (
    ("001", "PtCJ7pwoxe8JasnHY8YonnLYjcVHmhiARPJvqcC6VfHT5s8k8sY", Generation.LEGACY),
    ("002", "PsYLVpVvgbLhAhoqAkMFUo6gudkJ9weNXhUYCiLDzcUpFpkk8Wt", Generation.LEGACY),
    ("003", "PsddFKi32cMJ2qPjf43Qv5GDWLDPZb3T3bF6fLKiF5HtvHNU7aP", Generation.LEGACY),
    ("004", "Pt24m4xiPbLDhVgVfABUjirbmda3yohdN82Sp9FeuAXJ4eV9otd", Generation.LEGACY),
    ("005a", "PsBABY5HQTSkA4297zNHfsZNKtxULfL18y95qb3m53QJiXGmrbU", Generation.MODERN),
    ("005", "PsBabyM1eUXZseaJdmXFApDSBqj8YBfwELoxZHHW77EMcAbbwAS", Generation.MODERN),
    ("006", "PsCARTHAGazKbHtnKfLzQg3kms52kSRpgnDY982a9oYsSXRLQEb", Generation.MODERN),
    ("007", "PsDELPH1Kxsxt8f9eWbxQeRxkjfbxoqM52jvs5Y5fBxWWh4ifpo", Generation.MODERN),
    ("008a", "PtEdoTezd3RHSC31mpxxo1npxFjoWWcFgQtxapi51Z8TLu6v6Uq", Generation.MODERN),
    ("008", "PtEdo2ZkT9oKpimTah6x2embF25oss54njMuPzkJTEi5RqfdZFA", Generation.MODERN),
    ("009", "PsFLorenaUUuikDWvMDr6fGBRG8kt3e3D3fHoXK1j1BFRxeSH4i", Generation.MODERN),
)


class ProtocolTable:
    """Append-only map from protocol hash to `Generation`."""

    def __init__(self, entries: Optional[Mapping[str, Generation]] = None) -> None:
        self._table: Dict[str, Generation] = {}
        for proto, gen in (entries or {}).items():
            self.register(proto, gen)

    def __contains__(self, protocol: object) -> bool:
        return protocol in self._table

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def register(self, protocol: str, generation: Generation) -> None:
        generation = Generation(generation)
        existing = self._table.get(protocol)
        if existing is not None and existing is not generation:
            raise ValueError(f"protocol {protocol} already registered as {existing.value}")
        self._table[protocol] = generation

    def generation_of(self, protocol: str) -> Generation:
        gen = self._table.get(protocol)
        if gen is None:
            raise UnrecognizedProtocol(protocol=protocol)
        return gen

    def manager_key_of(self, manager: Any, protocol: str) -> Optional[str]:
        """Extract the revealed key from a manager_key query result, or None."""
        gen = self.generation_of(protocol)
        if not manager:
            return None
        if gen is Generation.LEGACY:
            return manager.get("key") if isinstance(manager, Mapping) else None
        return manager

    def conform(self, content: Mapping[str, Any], protocol: str) -> Dict[str, Any]:
        """Return a copy of `content` shaped for `protocol`."""
        gen = self.generation_of(protocol)
        out = dict(content)
        if gen is Generation.MODERN:
            for name in LEGACY_ONLY_FIELDS:
                out.pop(name, None)
        return out

    def supported(self) -> Tuple[str, ...]:
        return tuple(self._table)


PROTOCOLS = ProtocolTable({proto: gen for _name, proto, gen in KNOWN_PROTOCOLS})
