"""Resolve work items up their parent chain to the owning root item.

A root is the nearest ancestor (or the item itself) whose type equals the
configured root type. Items that never reach one resolve to None:

- the item is not in the supplied collection,
- the chain ends at an item with no parent that is not itself a root,
- a parent id points outside the collection,
- the chain loops back onto itself.

Results are memoized per resolver instance. `resolve_all` builds a fresh
resolver on every call so no cache survives between item loads.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from workhours.config import get_settings
from workhours.models import RootRef, WorkItem

logger = logging.getLogger(__name__)


class HierarchyResolver:
    """Memoized parent-chain walker over one immutable item collection."""

    def __init__(self, items: Iterable[WorkItem], root_type: str) -> None:
        self._items = {item.id: item for item in items}
        self._root_type = root_type
        self._memo: dict[int, Optional[RootRef]] = {}

    def resolve_root(self, item_id: int) -> Optional[RootRef]:
        path: list[int] = []
        on_path: set[int] = set()
        current: Optional[int] = item_id
        result: Optional[RootRef] = None

        while current is not None:
            if current in self._memo:
                result = self._memo[current]
                break
            if current in on_path:
                logger.warning("Parent cycle detected at work item %s", current)
                result = None
                break
            item = self._items.get(current)
            if item is None:
                path.append(current)
                result = None
                break
            path.append(current)
            on_path.add(current)
            if item.type == self._root_type:
                result = RootRef(id=item.id, title=item.title)
                break
            current = item.parent_id

        for visited in path:
            self._memo[visited] = result
        return result


@dataclass
class HierarchyMap:
    """Resolution of one item batch.

    `roots` holds every resolved item (None included), `titles` only the
    items that reached a root, `group_ids` the id to group each item under:
    its root id, or its own id when it has none.
    """

    roots: dict[int, Optional[RootRef]] = field(default_factory=dict)
    titles: dict[int, str] = field(default_factory=dict)
    group_ids: dict[int, int] = field(default_factory=dict)

    def group_id(self, item_id: int) -> int:
        return self.group_ids.get(item_id, item_id)

    def root_title(self, item_id: int) -> Optional[str]:
        return self.titles.get(item_id)


def resolve_all(
    items: Iterable[WorkItem],
    root_type: str | None = None,
    context: Iterable[WorkItem] = (),
) -> HierarchyMap:
    """Resolve every item in `items`.

    `context` items are only used as ancestors, e.g. root items loaded apart
    from the filtered set.
    """
    items = list(items)
    root_type = root_type or get_settings().root_type
    resolver = HierarchyResolver([*items, *context], root_type)

    result = HierarchyMap()
    for item in items:
        root = resolver.resolve_root(item.id)
        result.roots[item.id] = root
        if root is not None:
            result.titles[item.id] = root.title
            result.group_ids[item.id] = root.id
        else:
            result.group_ids[item.id] = item.id
    logger.debug("Resolved %d items, %d reached a root", len(items), len(result.titles))
    return result


def resolve_root(items: Iterable[WorkItem], item_id: int, root_type: str | None = None) -> Optional[RootRef]:
    """Resolve a single item with its own throwaway cache."""
    return HierarchyResolver(items, root_type or get_settings().root_type).resolve_root(item_id)
