"""Ports (interfaces) used by the story discovery pipeline.

The catalog and snapshot store are external collaborators; the core only
depends on these contracts so tests can swap in fakes.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol


class CatalogPort(Protocol):
    """Source of the raw story index document."""

    async def fetch_index(self, url: str) -> Mapping[str, Any]:
        ...


class SnapshotStorePort(Protocol):
    """Read-only existence checks for stored snapshots."""

    def exists(self, path: str) -> bool:
        ...
