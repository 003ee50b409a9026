"""
B+ Tree index with duplicate keys and three-mode range search.

Keys live in the leaves, which are chained left to right (and right to
left) so range queries can walk neighbouring leaves without descending the
tree again. Internal nodes only hold separator keys used for routing.

Duplicate keys are allowed. Because a run of equal keys may straddle a
split, a child of an internal node covers the closed range between its two
neighbouring separators: keys[i-1] <= K <= keys[i].
"""

from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from typing import Any, Generator, List, Optional, Tuple, Union

from src.common.logger import get_logger

logger = get_logger(__name__)

# Comparators accepted by BPTree.range_search.
LESS_OR_EQUAL = "<="
EQUAL = "=="
GREATER_OR_EQUAL = ">="
COMPARATORS = (LESS_OR_EQUAL, EQUAL, GREATER_OR_EQUAL)


class LeafNode:
    """Leaf node storing sorted keys, parallel values and sibling links."""

    __slots__ = ("keys", "values", "next", "previous")

    def __init__(
        self,
        keys: Optional[List[Any]] = None,
        values: Optional[List[Any]] = None,
    ) -> None:
        self.keys: List[Any] = keys if keys is not None else []
        self.values: List[Any] = values if values is not None else []
        self.next: Optional["LeafNode"] = None
        self.previous: Optional["LeafNode"] = None

    def __str__(self) -> str:
        return str(self.keys)


class InternalNode:
    """Internal node storing separator keys and child pointers."""

    __slots__ = ("keys", "children")

    def __init__(
        self,
        keys: Optional[List[Any]] = None,
        children: Optional[List[Union["InternalNode", LeafNode]]] = None,
    ) -> None:
        self.keys: List[Any] = keys if keys is not None else []
        self.children: List[Union["InternalNode", LeafNode]] = (
            children if children is not None else []
        )

    def __str__(self) -> str:
        return str(self.keys)


Node = Union[InternalNode, LeafNode]


@dataclass(frozen=True)
class Promotion:
    """Result of a split: a separator and the two halves it divides."""

    separator: Any
    left: Node
    right: Node

    def as_root(self) -> InternalNode:
        return InternalNode([self.separator], [self.left, self.right])


class _NoSplit:
    """Result of an insert that left the node within capacity."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "NO_SPLIT"


NO_SPLIT = _NoSplit()

InsertOutcome = Union[_NoSplit, Promotion]


class BPTree:
    """
    B+ Tree supporting duplicate keys and range search.

    Args:
        branching_factor: Node capacity threshold. A node splits as soon as
                          it holds this many keys, so steady-state nodes
                          hold at most branching_factor - 1 keys. Must be > 2.
    """

    def __init__(self, branching_factor: int) -> None:
        if not isinstance(branching_factor, int) or branching_factor <= 2:
            raise ValueError(f"Illegal branching factor: {branching_factor}")
        self._branching_factor = branching_factor
        self._root: Optional[Node] = None
        self._size: int = 0

    @property
    def branching_factor(self) -> int:
        return self._branching_factor

    @property
    def height(self) -> int:
        """Number of levels, 0 for an empty tree and 1 for a lone leaf."""
        levels = 0
        node = self._root
        while node is not None:
            levels += 1
            node = node.children[0] if isinstance(node, InternalNode) else None
        return levels

    # =========================================================================
    # Core Operations
    # =========================================================================

    def insert(self, key: Any, value: Any) -> None:
        """Insert a key-value pair. Duplicate keys are kept side by side."""
        if key is None:
            raise ValueError("B+ tree keys must not be None")

        # Empty tree: the first leaf becomes the root.
        if self._root is None:
            self._root = LeafNode([key], [value])
            self._size = 1
            return

        outcome = self._insert(self._root, key, value)
        self._size += 1

        if isinstance(outcome, Promotion):
            self._root = outcome.as_root()
            logger.debug(
                f"Root split on separator {outcome.separator!r}, height now {self.height}"
            )

    def range_search(self, key: Any, comparator: Optional[str]) -> List[Any]:
        """
        Return the values whose keys satisfy ``stored_key <comparator> key``.

        comparator is one of "<=", "==", ">=". Any other comparator, a None
        key or an empty tree gives an empty list. Values come back in
        ascending key order; equal keys are in no particular order.
        """
        if key is None or comparator not in COMPARATORS or self._root is None:
            return []

        if comparator == LESS_OR_EQUAL:
            return self._search_at_most(key)
        if comparator == GREATER_OR_EQUAL:
            return self._search_at_least(key)
        return self._search_equal(key)

    # =========================================================================
    # Read-only Views
    # =========================================================================

    def __len__(self) -> int:
        return self._size

    def __bool__(self) -> bool:
        return self._size > 0

    def __repr__(self) -> str:
        return f"BPTree(branching_factor={self._branching_factor}, size={self._size})"

    def __str__(self) -> str:
        """Level-by-level dump of node keys, grouped by parent."""
        if self._root is None:
            return ""

        lines = []
        level: List[List[Node]] = [[self._root]]
        while level:
            next_level: List[List[Node]] = []
            groups = []
            for siblings in level:
                groups.append("{" + ", ".join(str(node) for node in siblings) + "}")
                for node in siblings:
                    if isinstance(node, InternalNode):
                        next_level.append(node.children)
            lines.append(", ".join(groups))
            level = next_level
        return "\n".join(lines) + "\n"

    def items(self) -> Generator[Tuple[Any, Any], None, None]:
        """Yield all (key, value) pairs in key order."""
        leaf = self._leftmost_leaf()
        while leaf is not None:
            yield from zip(leaf.keys, leaf.values)
            leaf = leaf.next

    def keys(self) -> Generator[Any, None, None]:
        """Yield all keys in non-decreasing order."""
        for key, _ in self.items():
            yield key

    def values(self) -> Generator[Any, None, None]:
        """Yield all values in key order."""
        for _, value in self.items():
            yield value

    def leaf_count(self) -> int:
        count = 0
        leaf = self._leftmost_leaf()
        while leaf is not None:
            count += 1
            leaf = leaf.next
        return count

    def internal_count(self) -> int:
        count = 0
        pending = [self._root] if isinstance(self._root, InternalNode) else []
        while pending:
            node = pending.pop()
            count += 1
            pending.extend(
                child for child in node.children if isinstance(child, InternalNode)
            )
        return count

    # =========================================================================
    # Private Helpers — Insertion and Splitting
    # =========================================================================

    def _insert(self, node: Node, key: Any, value: Any) -> InsertOutcome:
        """Insert below node and report whether node itself had to split."""
        if isinstance(node, LeafNode):
            # New duplicates go ahead of the equal keys already present.
            idx = bisect_left(node.keys, key)
            node.keys.insert(idx, key)
            node.values.insert(idx, value)
            if len(node.keys) >= self._branching_factor:
                return self._split_leaf(node)
            return NO_SPLIT

        idx = bisect_right(node.keys, key)
        outcome = self._insert(node.children[idx], key, value)
        if outcome is NO_SPLIT:
            return NO_SPLIT

        node.keys.insert(idx, outcome.separator)
        node.children[idx:idx + 1] = [outcome.left, outcome.right]
        if len(node.keys) >= self._branching_factor:
            return self._split_internal(node)
        return NO_SPLIT

    def _split_leaf(self, leaf: LeafNode) -> Promotion:
        """Replace an overflowing leaf by two halves in the leaf chain."""
        mid = len(leaf.keys) // 2
        left = LeafNode(leaf.keys[:mid], leaf.values[:mid])
        right = LeafNode(leaf.keys[mid:], leaf.values[mid:])

        left.previous = leaf.previous
        left.next = right
        right.previous = left
        right.next = leaf.next
        if leaf.previous is not None:
            leaf.previous.next = left
        if leaf.next is not None:
            leaf.next.previous = right
        leaf.previous = leaf.next = None

        logger.debug(f"Leaf split promotes {left.keys[-1]!r}")
        # The separator is a copy; the key itself stays in the left leaf.
        return Promotion(left.keys[-1], left, right)

    def _split_internal(self, node: InternalNode) -> Promotion:
        """Split an overflowing internal node around its middle key."""
        mid = len(node.keys) // 2
        left = InternalNode(node.keys[:mid], node.children[:mid + 1])
        right = InternalNode(node.keys[mid + 1:], node.children[mid + 1:])
        logger.debug(f"Internal split promotes {node.keys[mid]!r}")
        return Promotion(node.keys[mid], left, right)

    # =========================================================================
    # Private Helpers — Navigation and Range Search
    # =========================================================================

    def _leftmost_leaf(self) -> Optional[LeafNode]:
        node = self._root
        while isinstance(node, InternalNode):
            node = node.children[0]
        return node

    def _first_leaf_for(self, key: Any) -> LeafNode:
        """Leftmost leaf whose range can contain key."""
        node = self._root
        while isinstance(node, InternalNode):
            node = node.children[bisect_left(node.keys, key)]
        return node  # type: ignore[return-value]

    def _last_leaf_for(self, key: Any) -> LeafNode:
        """Rightmost leaf whose range can contain key."""
        node = self._root
        while isinstance(node, InternalNode):
            node = node.children[bisect_right(node.keys, key)]
        return node  # type: ignore[return-value]

    def _search_equal(self, key: Any) -> List[Any]:
        leaf = self._first_leaf_for(key)
        result = [v for k, v in zip(leaf.keys, leaf.values) if k == key]

        # Every later leaf starts at or above key; follow the run of equal keys.
        leaf = leaf.next
        while leaf is not None and leaf.keys[0] == key:
            for k, v in zip(leaf.keys, leaf.values):
                if k != key:
                    break
                result.append(v)
            leaf = leaf.next
        return result

    def _search_at_least(self, key: Any) -> List[Any]:
        leaf = self._first_leaf_for(key)
        result = [v for k, v in zip(leaf.keys, leaf.values) if k >= key]

        leaf = leaf.next
        while leaf is not None:
            result.extend(leaf.values)
            leaf = leaf.next
        return result

    def _search_at_most(self, key: Any) -> List[Any]:
        leaf = self._last_leaf_for(key)
        chunks = [[v for k, v in zip(leaf.keys, leaf.values) if k <= key]]

        leaf = leaf.previous
        while leaf is not None:
            chunks.append(leaf.values)
            leaf = leaf.previous

        result: List[Any] = []
        for chunk in reversed(chunks):
            result.extend(chunk)
        return result
