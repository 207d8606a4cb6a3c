"""
tez_sdk.wallet.signer
=====================

The signing seam of the pipeline.

A `Signer` exposes the account's public key, its public key hash (the
address used as operation `source`) and a `sign` coroutine. `sign` receives
the forged operation bytes as hex plus a one-byte watermark (domain prefix)
and returns `SignedBytes`:

- `signature_bytes`    raw signature, hex
- `prefixed_signature` base58check signature (``edsig...``) placed in the
                       operation group's `signature` field
- `signed_bytes`       forged bytes with the raw signature appended, hex;
                       this is what gets injected

Domain separation is the signer's job: the pipeline always passes
`WATERMARK_GENERIC` for manager operations.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

# Watermarks (domain prefixes) prepended before hashing, hex
WATERMARK_BLOCK = "01"
WATERMARK_ENDORSEMENT = "02"
WATERMARK_GENERIC = "03"

__all__ = [
    "Signer",
    "SignedBytes",
    "WATERMARK_BLOCK",
    "WATERMARK_ENDORSEMENT",
    "WATERMARK_GENERIC",
]


@dataclass(frozen=True)
class SignedBytes:
    signature_bytes: str
    prefixed_signature: str
    signed_bytes: str


@runtime_checkable
class Signer(Protocol):
    def public_key(self) -> str: ...

    def public_key_hash(self) -> str: ...

    async def sign(self, data: str, watermark: str = WATERMARK_GENERIC) -> SignedBytes: ...
