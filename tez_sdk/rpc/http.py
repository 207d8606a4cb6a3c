from __future__ import annotations

"""
HTTP RPC client (async) for a Tezos-compatible node.

- Uses httpx.AsyncClient; a custom `transport` may be injected (tests use
  httpx.MockTransport).
- GET when no payload is given, POST with a JSON body otherwise.
- Node error bodies are surfaced verbatim on RpcError.body.
- No automatic retries: resubmitting an operation is a caller decision.

Example:
    from tez_sdk.rpc.http import RpcClient

    async with RpcClient("http://127.0.0.1:8732") as rpc:
        head = await rpc.query("/chains/main/blocks/head/header")
        print(head["level"])
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

import httpx

from ..errors import RpcError
from ..logging import get_logger
from ..version import __version__ as SDK_VERSION

JSON = Union[dict, list, str, int, float, bool, None]

log = get_logger(__name__)

_NO_PAYLOAD = object()


def _decode_body(r: httpx.Response) -> Any:
    try:
        return r.json()
    except ValueError:
        return r.text


@dataclass
class RpcClient:
    """Asynchronous path-based RPC client over HTTP."""

    url: str
    timeout: float = 30.0
    headers: Optional[Mapping[str, str]] = None
    transport: Optional[httpx.AsyncBaseTransport] = None
    _client: Optional[httpx.AsyncClient] = field(init=False, default=None, repr=False)

    def __post_init__(self) -> None:
        merged_headers: Dict[str, str] = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"tez-sdk-py/{SDK_VERSION}",
        }
        if self.headers:
            merged_headers.update(dict(self.headers))
        self._client = httpx.AsyncClient(
            base_url=self.url.rstrip("/"),
            timeout=self.timeout,
            headers=merged_headers,
            transport=self.transport,
        )

    # --- context manager -------------------------------------------------

    async def __aenter__(self) -> "RpcClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.close()

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # --- public API ------------------------------------------------------

    async def query(self, path: str, payload: Any = _NO_PAYLOAD) -> JSON:
        """
        GET `path` when called without a payload, POST it as JSON otherwise.
        Returns the decoded JSON body or raises RpcError.
        """
        if self._client is None:
            raise RpcError(path=path, message="client is closed")
        if not path.startswith("/"):
            path = "/" + path

        try:
            if payload is _NO_PAYLOAD:
                r = await self._client.get(path)
            else:
                body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
                r = await self._client.post(path, content=body)
        except httpx.HTTPError as e:
            log.debug("rpc transport failure", extra={"path": path, "err": str(e)})
            raise RpcError(path=path, message=f"Network error: {e}") from e

        if r.status_code >= 400:
            raise RpcError(
                path=path,
                message="Node returned an error",
                status=r.status_code,
                body=_decode_body(r),
            )
        try:
            return r.json()
        except ValueError as e:
            raise RpcError(
                path=path,
                message="Non-JSON response from RPC",
                status=r.status_code,
                body=r.text[:256],
            ) from e


__all__ = ["RpcClient"]
