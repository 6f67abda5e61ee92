"""In-memory result cache owned by a query client.

Results are stored per root field (the operation name) and per variables.
Eviction only detaches a field; detached results are reclaimed by gc().
"""

from __future__ import annotations

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)


def variables_key(variables: dict[str, Any] | None) -> str:
    """Stable key for a variables mapping."""
    return json.dumps(variables or {}, sort_keys=True, default=str)


class NormalizedCache:
    """Query-client cache supporting coarse reset, evict and gc."""

    def __init__(self) -> None:
        self._fields: dict[str, dict[str, Any]] = {}
        self._detached: list[dict[str, Any]] = []

    def read(self, field: str, variables: dict[str, Any] | None = None) -> Any | None:
        return self._fields.get(field, {}).get(variables_key(variables))

    def write(self, field: str, variables: dict[str, Any] | None, data: Any) -> None:
        self._fields.setdefault(field, {})[variables_key(variables)] = data

    def evict(self, field: str) -> bool:
        """Forget every stored result for a field.

        Returns:
            True if the field had results
        """
        results = self._fields.pop(field, None)
        if results is None:
            return False
        self._detached.append(results)
        logger.debug(f"Evicted field {field} ({len(results)} results)")
        return True

    def gc(self) -> int:
        """Reclaim results detached by evict().

        Returns:
            Number of results reclaimed
        """
        reclaimed = sum(len(results) for results in self._detached)
        self._detached.clear()
        return reclaimed

    def reset_all(self) -> None:
        self._fields.clear()
        self._detached.clear()
        logger.debug("Reset normalized cache")

    def fields(self) -> list[str]:
        return list(self._fields)
