"""
tez_sdk.wallet
--------------

Signer interface consumed by the operation pipeline. Key management and the
signature primitive live with the signer implementation (software key,
hardware wallet, remote signer); the pipeline only needs the three calls
declared by `Signer`.
"""

from __future__ import annotations

from .signer import WATERMARK_GENERIC, SignedBytes, Signer

__all__ = ["Signer", "SignedBytes", "WATERMARK_GENERIC"]
