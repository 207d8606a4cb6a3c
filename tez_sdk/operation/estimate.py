"""
tez_sdk.operation.estimate
==========================

Dry-run limit estimation.

Fee-bearing intents are cloned with generous gas/storage ceilings and the
group is simulated (forged, placeholder-signed, sent to run_operation, which
commits nothing). Each content whose simulated result is ``applied`` gets:

    gas_limit     = consumed_gas + gas_margin
    storage_limit = storage_size + storage_margin   (0 when storage_size is 0)

Anything else keeps the caller's limits. Estimation is best effort: any error
is logged and the original intents are returned unchanged.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, List, Mapping, Optional, Sequence

from ..logging import get_logger
from .intents import Intent, ManagerIntent

__all__ = [
    "LimitEstimator",
    "SIMULATION_GAS_LIMIT",
    "SIMULATION_STORAGE_LIMIT",
    "GAS_MARGIN",
    "STORAGE_MARGIN",
]

log = get_logger(__name__)

SIMULATION_GAS_LIMIT = 1_040_000
SIMULATION_STORAGE_LIMIT = 60_000
GAS_MARGIN = 100
STORAGE_MARGIN = 20

Simulate = Callable[[List[Intent], Optional[str]], Awaitable[Mapping[str, Any]]]


def _as_int(v: Any) -> int:
    try:
        return int(v or 0)
    except (TypeError, ValueError):
        return 0


class LimitEstimator:
    def __init__(
        self,
        simulate: Simulate,
        *,
        gas_margin: int = GAS_MARGIN,
        storage_margin: int = STORAGE_MARGIN,
        gas_ceiling: int = SIMULATION_GAS_LIMIT,
        storage_ceiling: int = SIMULATION_STORAGE_LIMIT,
    ) -> None:
        self._simulate = simulate
        self.gas_margin = int(gas_margin)
        self.storage_margin = int(storage_margin)
        self.gas_ceiling = int(gas_ceiling)
        self.storage_ceiling = int(storage_ceiling)

    async def estimate(self, intents: Sequence[Intent], source: Optional[str] = None) -> List[Intent]:
        originals = list(intents)
        trials: List[Intent] = [
            op.with_limits(gas_limit=self.gas_ceiling, storage_limit=self.storage_ceiling)
            if isinstance(op, ManagerIntent)
            else op
            for op in originals
        ]
        try:
            simulated = await self._simulate(trials, source)
            contents = list(simulated.get("contents") or [])
        except Exception as e:
            log.warning("limit estimation failed; keeping caller limits", extra={"err": repr(e)})
            return originals

        out: List[Intent] = []
        for i, op in enumerate(originals):
            result = self._operation_result(contents, i)
            if isinstance(op, ManagerIntent) and result is not None and result.get("status") == "applied":
                consumed = _as_int(result.get("consumed_gas"))
                storage = _as_int(result.get("storage_size"))
                op = op.with_limits(
                    gas_limit=consumed + self.gas_margin,
                    storage_limit=storage + self.storage_margin if storage > 0 else 0,
                )
                log.debug(
                    "estimated limits",
                    extra={"kind": op.kind, "gas_limit": op.gas_limit, "storage_limit": op.storage_limit},
                )
            out.append(op)
        return out

    @staticmethod
    def _operation_result(contents: List[Any], index: int) -> Optional[Mapping[str, Any]]:
        if index >= len(contents) or not isinstance(contents[index], Mapping):
            return None
        metadata = contents[index].get("metadata")
        if not isinstance(metadata, Mapping):
            return None
        result = metadata.get("operation_result")
        return result if isinstance(result, Mapping) else None
