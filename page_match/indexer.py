"""Index utilities: a BK-tree over page fingerprints plus a brute-force twin."""
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from page_match import config
from page_match.features import HashedImage, hash_distance

DistanceFn = Callable[[Any, Any], int]


def image_distance(a: HashedImage, b: HashedImage) -> int:
    return hash_distance(a.fingerprint, b.fingerprint)


class _Node:
    __slots__ = ("item", "children")

    def __init__(self, item: Any):
        self.item = item
        self.children: Dict[int, "_Node"] = {}


class BKTree:
    """Burkhard-Keller tree for radius queries under an integer metric.

    Each child edge is keyed by the child's distance to its parent. When a
    query sits at distance ``d`` from a node, the triangle inequality bounds
    every item below edge ``k`` to at least ``|d - k|`` away, so edges with
    ``|d - k| > radius`` are skipped without visiting them.

    ``distance_fn`` must be symmetric and satisfy the triangle inequality,
    otherwise ``find`` silently misses items.
    """

    def __init__(self, distance_fn: DistanceFn = image_distance):
        self.distance_fn = distance_fn
        self._root: Optional[_Node] = None
        self._size = 0

    def insert(self, item: Any) -> None:
        self._size += 1
        if self._root is None:
            self._root = _Node(item)
            return
        node = self._root
        while True:
            d = self.distance_fn(item, node.item)
            child = node.children.get(d)
            if child is None:
                node.children[d] = _Node(item)
                return
            node = child

    def insert_all(self, items: Iterable[Any]) -> None:
        for item in items:
            self.insert(item)

    def find(self, query: Any, radius: int) -> List[Tuple[Any, int]]:
        """Return every (item, distance) with distance <= radius, in no particular order."""
        found: List[Tuple[Any, int]] = []
        if self._root is None:
            return found
        stack = [self._root]
        while stack:
            node = stack.pop()
            d = self.distance_fn(query, node.item)
            if d <= radius:
                found.append((node.item, d))
            low, high = d - radius, d + radius
            for k, child in node.children.items():
                if low <= k <= high:
                    stack.append(child)
        return found

    def __iter__(self) -> Iterator[Any]:
        if self._root is None:
            return
        stack = [self._root]
        while stack:
            node = stack.pop()
            yield node.item
            stack.extend(node.children.values())

    def __len__(self) -> int:
        return self._size


class LinearScanIndex:
    """Same interface as BKTree, compares the query against every item."""

    def __init__(self, distance_fn: DistanceFn = image_distance):
        self.distance_fn = distance_fn
        self._items: List[Any] = []

    def insert(self, item: Any) -> None:
        self._items.append(item)

    def insert_all(self, items: Iterable[Any]) -> None:
        self._items.extend(items)

    def find(self, query: Any, radius: int) -> List[Tuple[Any, int]]:
        found = []
        for item in self._items:
            d = self.distance_fn(query, item)
            if d <= radius:
                found.append((item, d))
        return found

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)


INDEX_TYPES = {
    "bktree": BKTree,
    "linear": LinearScanIndex,
}


def build_index(images: Iterable[HashedImage], index_type: str = config.INDEX_TYPE):
    """Build an index of the selected kind and load every image into it."""
    try:
        index_cls = INDEX_TYPES[index_type]
    except KeyError:
        raise ValueError(
            f"unknown index type {index_type!r}, expected one of {sorted(INDEX_TYPES)}"
        ) from None
    index = index_cls(image_distance)
    index.insert_all(images)
    return index
