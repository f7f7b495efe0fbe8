from collections.abc import Mapping

from loguru import logger

from flowmetrics.core.constants import DEFAULT_ITEM_TYPE_ALIASES, DEFAULT_LEVEL_ALIASES
from flowmetrics.schemas.hierarchy import Ancestors, HierarchyNode


class TypeLabels:
    """Case-insensitive mapping of Jira issue type names to hierarchy levels and item types."""

    def __init__(
        self,
        level_aliases: Mapping[str, str] | None = None,
        item_type_aliases: Mapping[str, str] | None = None,
    ):
        self._levels = {**DEFAULT_LEVEL_ALIASES, **_lowered(level_aliases)}
        self._item_types = {**DEFAULT_ITEM_TYPE_ALIASES, **_lowered(item_type_aliases)}

    def level_of(self, type_label: str | None) -> str | None:
        if not type_label:
            return None
        return self._levels.get(type_label.strip().lower())

    def item_type_of(self, type_label: str | None) -> str | None:
        if not type_label:
            return None
        return self._item_types.get(type_label.strip().lower())


def _lowered(aliases: Mapping[str, str] | None) -> dict[str, str]:
    return {k.strip().lower(): v for k, v in (aliases or {}).items()}


def resolve_ancestors(
    nodes: Mapping[str, HierarchyNode],
    key: str,
    labels: TypeLabels,
) -> Ancestors:
    """Find the nearest ancestor of each organizational level above ``key``.

    The walk stops at a root, at a parent missing from ``nodes`` or when a key
    repeats. Whatever was found up to that point is returned.
    """
    found: dict[str, str] = {}
    visited = {key}

    node = nodes.get(key)
    parent_key = node.parent_key if node else None

    while parent_key:
        if parent_key in visited:
            logger.debug(f"Cycle in parent chain of {key} at {parent_key}")
            break
        visited.add(parent_key)

        parent = nodes.get(parent_key)
        if parent is None:
            logger.debug(f"Missing ancestor {parent_key} for {key}")
            break

        level = labels.level_of(parent.type_label)
        if level and level not in found:
            found[level] = parent.key

        parent_key = parent.parent_key

    return Ancestors(**found)
