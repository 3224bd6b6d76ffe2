"""
Hierarchy search and flattening over the catalog tree.

All functions work on the nested dicts returned by
``CatalogStore.get_hierarchy()`` (categories with ``masterActivities``,
activities with ``masterSubTasks``) and never mutate their input.
"""

import asyncio
import copy
import logging
from typing import Any, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)

# child collection key per level, top-down
CHILD_KEYS = ('masterActivities', 'masterSubTasks')


def _children_key(node: Dict[str, Any]) -> Optional[str]:
    for key in CHILD_KEYS:
        if key in node:
            return key
    if 'children' in node:
        return 'children'
    return None


def _matches(node: Dict[str, Any], needle: str) -> bool:
    for key in ('name', 'code'):
        value = node.get(key)
        if isinstance(value, str) and needle in value.casefold():
            return True
    return False


def _filter_node(node: Dict[str, Any], needle: str) -> Optional[Dict[str, Any]]:
    if _matches(node, needle):
        return copy.deepcopy(node)

    key = _children_key(node)
    if key is None:
        return None
    kept = []
    for child in node.get(key) or []:
        filtered = _filter_node(child, needle)
        if filtered is not None:
            kept.append(filtered)
    if not kept:
        return None

    result = {k: copy.deepcopy(v) for k, v in node.items() if k != key}
    result[key] = kept
    return result


def filter_tree(tree: List[Dict[str, Any]], query: Optional[str]) -> List[Dict[str, Any]]:
    """
    Prune a catalog tree to the nodes matching ``query``.

    A node matches when its name or code contains the query, ignoring case.
    A matching node is kept with all of its children; a non-matching node is
    kept only when some descendant matches, and then only with the children
    leading to matches. A blank query returns the tree unchanged.
    """
    if query is None or not query.strip():
        return tree
    needle = query.strip().casefold()

    result = []
    for node in tree:
        filtered = _filter_node(node, needle)
        if filtered is not None:
            result.append(filtered)
    return result


def _flatten_category(category: Dict[str, Any]) -> List[Dict[str, Any]]:
    rows = []
    for activity in category.get('masterActivities') or []:
        for sub_task in activity.get('masterSubTasks') or []:
            row = dict(sub_task)
            row.update({
                'activityName': activity.get('name'),
                'activityCode': activity.get('code'),
                'categoryName': category.get('name'),
                'categoryCode': category.get('code'),
            })
            rows.append(row)
    return rows


def flatten_catalog(tree: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """One row per sub-task, carrying its activity and category names and codes"""
    rows = []
    for category in tree:
        rows.extend(_flatten_category(category))
    return rows


class ChunkedFlatten:
    """
    Incremental ``flatten_catalog`` that processes ``chunk_size`` categories
    per step.

    Iterating yields ``(done, total)`` after each chunk so a caller can hand
    control back to its scheduler in between. ``rows`` is only available
    once every chunk is processed; after ``cancel()`` no rows are exposed.
    """

    def __init__(self, tree: List[Dict[str, Any]], chunk_size: int = 50):
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self._tree = list(tree)
        self.chunk_size = chunk_size
        self._rows: List[Dict[str, Any]] = []
        self._position = 0
        self.cancelled = False

    @property
    def total(self) -> int:
        return len(self._tree)

    @property
    def done(self) -> bool:
        return not self.cancelled and self._position >= self.total

    @property
    def rows(self) -> List[Dict[str, Any]]:
        if self.cancelled:
            raise RuntimeError("Flatten was cancelled")
        if not self.done:
            raise RuntimeError("Flatten has not finished")
        return self._rows

    def cancel(self) -> None:
        self.cancelled = True
        self._rows = []

    def step(self) -> bool:
        """Process one chunk; returns False once there is nothing left to do"""
        if self.cancelled or self._position >= self.total:
            return False
        end = min(self._position + self.chunk_size, self.total)
        for category in self._tree[self._position:end]:
            self._rows.extend(_flatten_category(category))
        self._position = end
        return True

    def __iter__(self) -> Iterator[tuple]:
        while self.step():
            yield self._position, self.total


async def flatten_catalog_async(tree: List[Dict[str, Any]], chunk_size: int = 50) -> List[Dict[str, Any]]:
    """
    Flatten ``tree`` on the running event loop, yielding to it between chunks.

    Cancelling the awaiting task stops the traversal.
    """
    flattener = ChunkedFlatten(tree, chunk_size)
    try:
        for done, total in flattener:
            logger.debug("Flattened %s/%s categories", done, total)
            await asyncio.sleep(0)
    except asyncio.CancelledError:
        flattener.cancel()
        raise
    return flattener.rows
