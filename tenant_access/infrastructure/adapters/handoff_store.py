"""Handoff stores carrying small values across a redirect."""

from __future__ import annotations

from typing import Dict, Optional

from tenant_access.domain.interfaces import IHandoffStore


class MemoryHandoffStore(IHandoffStore):
    """Process-local key/value handoff."""

    def __init__(self):
        self._values: Dict[str, str] = {}

    async def set(self, key: str, value: str) -> None:
        self._values[key] = value

    async def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    async def delete(self, key: str) -> bool:
        return self._values.pop(key, None) is not None


__all__ = ["MemoryHandoffStore"]
