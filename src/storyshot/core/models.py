"""Core domain models.

Story entries are built fresh from each catalog fetch and never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple


@dataclass(frozen=True)
class TestOptions:
    """Which snapshot categories apply to a story."""

    image: bool
    position: bool

    @property
    def any(self) -> bool:
        return self.image or self.position

    def to_dict(self) -> dict[str, bool]:
        return {"image": self.image, "position": self.position}


@dataclass(frozen=True)
class StoryEntry:
    """One story from the catalog, optionally annotated with test options."""

    id: str
    name: str = ""
    title: str = ""
    type: str = "story"
    tags: Tuple[str, ...] = ()
    import_path: Optional[str] = None
    parameters: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    test_options: Optional[TestOptions] = None

    @classmethod
    def from_catalog(cls, raw: Mapping[str, Any]) -> "StoryEntry":
        """Build an entry from one ``index.json`` record; unknown keys are ignored."""

        tags = raw.get("tags")
        parameters = raw.get("parameters")
        return cls(
            id=str(raw.get("id") or ""),
            name=str(raw.get("name") or ""),
            title=str(raw.get("title") or ""),
            type=str(raw.get("type") or ""),
            tags=tuple(str(tag) for tag in tags) if isinstance(tags, (list, tuple)) else (),
            import_path=raw.get("importPath"),
            parameters=MappingProxyType(dict(parameters)) if isinstance(parameters, Mapping) else MappingProxyType({}),
        )

    def to_dict(self) -> dict[str, Any]:
        """Shape consumed by the external test generator."""

        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "title": self.title,
            "type": self.type,
            "tags": list(self.tags),
            "importPath": self.import_path,
        }
        if self.test_options is not None:
            data["_testOptions"] = self.test_options.to_dict()
        return data
