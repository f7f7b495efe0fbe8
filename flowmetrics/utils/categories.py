from collections.abc import Iterable

from flowmetrics.schemas.workflow import StatusMapEntry


class CategoryMap:
    """Read-only lookup from a workflow status id to its category label."""

    def __init__(self, mapping: dict[str, str]):
        self._mapping = dict(mapping)

    @classmethod
    def from_entries(cls, entries: Iterable[StatusMapEntry]) -> "CategoryMap":
        """Build from ``[status_id, name, category]`` configuration rows; blank categories are ignored."""
        return cls({e.status_id: e.category for e in entries if e.category})

    def category_of(self, status_id: str | None) -> str | None:
        if status_id is None:
            return None
        return self._mapping.get(str(status_id))

    def __len__(self) -> int:
        return len(self._mapping)
