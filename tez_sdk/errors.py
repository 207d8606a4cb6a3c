"""
Typed error classes for the tez_sdk operation pipeline.

These are raised by rpc/http, the assembler, the forge adapter, the submitter
and the inclusion watcher so callers can catch specific failure modes while
still being able to catch the base `TezSdkError`.

Fatal pipeline errors carry the source address, the counter that was being
used and the raw node error body (when one exists) so a failed submission can
be diagnosed without re-running it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

__all__ = [
    "TezSdkError",
    "RpcError",
    "InvalidArgument",
    "ConfigError",
    "UnrecognizedProtocol",
    "ForgeValidationError",
    "PrevalidationFailed",
    "InjectionFailed",
    "OperationTimeout",
]


class TezSdkError(Exception):
    """Base class for all SDK errors."""

    def to_dict(self) -> Dict[str, Any]:
        return {"error": type(self).__name__, "message": str(self)}


@dataclass(eq=False)
class RpcError(TezSdkError):
    """
    Raised when a node RPC call fails.

    `status` is the HTTP status code (None for transport failures such as
    connection refused or timeouts); `body` is the node's error body verbatim,
    decoded from JSON when possible.
    """

    path: str
    message: str
    status: Optional[int] = None
    body: Any = None

    def __post_init__(self) -> None:
        super().__init__(str(self))

    def __str__(self) -> str:  # pragma: no cover - trivial
        parts = [f"RPC[{self.path}] {self.message}"]
        if self.status is not None:
            parts.append(f"http={self.status}")
        if self.body is not None:
            parts.append(f"body={self.body!r}")
        return " ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "RpcError",
            "path": self.path,
            "message": self.message,
            "status": self.status,
            "body": self.body,
        }


class InvalidArgument(TezSdkError, ValueError):
    """Caller misuse detected before any I/O was performed."""


class ConfigError(TezSdkError, ValueError):
    """Inconsistent SDK configuration (e.g. local forging without a codec)."""


@dataclass(eq=False)
class UnrecognizedProtocol(TezSdkError):
    """The node reported a protocol hash missing from the protocol table."""

    protocol: str

    def __post_init__(self) -> None:
        super().__init__(str(self))

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Unrecognized protocol: {self.protocol}"


@dataclass(eq=False)
class ForgeValidationError(TezSdkError):
    """Local and remote forging produced different bytes."""

    local_bytes: str
    remote_bytes: str
    address: Optional[str] = None
    counter: Optional[int] = None

    def __post_init__(self) -> None:
        super().__init__(str(self))

    def __str__(self) -> str:  # pragma: no cover - trivial
        return (
            "Forge validation error - local and remote bytes don't match"
            f" (source={self.address} counter={self.counter})"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "ForgeValidationError",
            "address": self.address,
            "counter": self.counter,
            "local": self.local_bytes,
            "remote": self.remote_bytes,
        }


@dataclass(eq=False)
class PrevalidationFailed(TezSdkError):
    """
    The node's preapply dry run rejected at least one content.

    `errors` aggregates the `operation_result.errors` of every failed content,
    in content order. Nothing was injected.
    """

    message: str
    errors: List[Any] = field(default_factory=list)
    address: Optional[str] = None
    counter: Optional[int] = None
    body: Any = None

    def __post_init__(self) -> None:
        super().__init__(str(self))

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.message} (source={self.address} counter={self.counter} errors={self.errors!r})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "Operation Failed",
            "errors": self.errors,
            "address": self.address,
            "counter": self.counter,
        }


@dataclass(eq=False)
class InjectionFailed(TezSdkError):
    """
    The node rejected signed bytes at injection time.

    The outcome is ambiguous: the operation may have propagated before the
    rejection surfaced. Confirm through the inclusion watcher before retrying
    with a fresh counter.
    """

    message: str
    address: Optional[str] = None
    counter: Optional[int] = None
    body: Any = None

    def __post_init__(self) -> None:
        super().__init__(str(self))

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.message} (source={self.address} counter={self.counter} body={self.body!r})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": "InjectionFailed",
            "message": self.message,
            "address": self.address,
            "counter": self.counter,
            "body": self.body,
        }


@dataclass(eq=False)
class OperationTimeout(TezSdkError):
    """No head containing the operation was seen before the deadline."""

    op_hash: str
    timeout: float

    def __post_init__(self) -> None:
        super().__init__(str(self))

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Timed out waiting for operation {self.op_hash} after {self.timeout} seconds"
