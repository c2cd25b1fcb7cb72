"""
Hierarchical grouping of transactions with running sums.

A tree is built from an ordered list of key functions. Every internal
``GroupNode`` maps the key produced by its first key function to a child one
level deeper; the last level holds ``TransactionList`` leaves. Each node and
leaf keeps a running aggregate computed by a reduction function.
"""

import logging
from collections.abc import Callable, Iterable, Iterator
from decimal import Decimal
from typing import Any

from .models import amount_of

logger = logging.getLogger(__name__)

KeyFunction = Callable[[Any], Any]
Reducer = Callable[[Any, Any, str | None], Any]


class GroupingError(Exception):
    """Exception raised when a grouping tree cannot be built."""


def sum_amounts(item, current: Decimal | None = None, bucket: str | None = None) -> Decimal:
    """Scalar running sum of transaction amounts."""
    return (current or Decimal(0)) + amount_of(item)


class GroupedSum(dict):
    """Running total plus partial sums per bucket (e.g. per month)."""

    def __init__(self):
        super().__init__()
        self.total = Decimal(0)

    def append(self, value: Decimal, bucket: str | None = None) -> "GroupedSum":
        self.total += value
        if bucket is not None:
            self[bucket] = self.get(bucket, Decimal(0)) + value
        return self

    def amount_for(self, bucket: str | None = None) -> Decimal:
        """Partial sum of a bucket, or the total when no bucket is given."""
        if bucket is None:
            return self.total
        return self.get(bucket, Decimal(0))

    @staticmethod
    def reduce(item, current: "GroupedSum | None" = None, bucket: str | None = None) -> "GroupedSum":
        if current is None:
            current = GroupedSum()
        return current.append(amount_of(item), bucket)


def total_of(value) -> Decimal:
    """Scalar total of a node value, whichever aggregate kind it is."""
    if value is None:
        return Decimal(0)
    if isinstance(value, GroupedSum):
        return value.total
    return value


class _Aggregate:
    value: Any = None
    reduce_value: Reducer
    bucket_key: KeyFunction | None

    def _reduce(self, item) -> None:
        bucket = str(self.bucket_key(item)) if self.bucket_key else None
        self.value = self.reduce_value(item, self.value, bucket)

    @property
    def total(self) -> Decimal:
        return total_of(self.value)

    def amount_for(self, bucket: str | None = None) -> Decimal:
        if isinstance(self.value, GroupedSum):
            return self.value.amount_for(bucket)
        if bucket is None:
            return self.total
        return Decimal(0)


class TransactionList(_Aggregate, list):
    """Leaf of a grouping tree: transactions in insertion order."""

    is_leaf = True

    def __init__(self, reduce_value: Reducer = sum_amounts, bucket_key: KeyFunction | None = None):
        super().__init__()
        self.value = None
        self.reduce_value = reduce_value
        self.bucket_key = bucket_key

    def append(self, item) -> None:
        self._reduce(item)
        super().append(item)


class GroupNode(_Aggregate, dict):
    """Internal node of a grouping tree, mapping keys to child nodes."""

    is_leaf = False

    def __init__(
        self,
        groups: list[KeyFunction],
        reduce_value: Reducer = sum_amounts,
        bucket_key: KeyFunction | None = None,
    ):
        super().__init__()
        if not groups:
            raise GroupingError("No groupings specified")

        self.groups = list(groups)
        self.value = None
        self.reduce_value = reduce_value
        self.bucket_key = bucket_key

    def append(self, item) -> "GroupNode":
        group_by = self.groups[0]
        group = str(group_by(item))
        current = self.get_with_fallback(group)

        self._reduce(item)
        current.append(item)

        return self

    def get_with_fallback(self, key: str) -> "GroupNode | TransactionList":
        """Return the child for ``key``, creating it on first access."""
        current = self.get(key)
        if current is None:
            current = self.get_fallback()
            self[key] = current
        return current

    def get_fallback(self) -> "GroupNode | TransactionList":
        child_groups = self.groups[1:]
        if child_groups:
            return GroupNode(child_groups, self.reduce_value, self.bucket_key)
        return TransactionList(self.reduce_value, self.bucket_key)

    def children(self, reverse: bool = False) -> list[tuple[str, "GroupNode | TransactionList"]]:
        """Child pairs sorted by total; ties keep insertion order."""
        return sorted(self.items(), key=lambda pair: pair[1].total, reverse=reverse)

    def walk(
        self,
        reverse: bool = False,
        path: tuple[str, ...] = (),
    ) -> Iterator[tuple[tuple[str, ...], "GroupNode | TransactionList"]]:
        """Depth-first ``(path, node)`` pairs, starting with this node."""
        yield path, self
        for key, child in self.children(reverse):
            if child.is_leaf:
                yield (*path, key), child
            else:
                yield from child.walk(reverse, (*path, key))


def build_tree(
    items: Iterable,
    groups: list[KeyFunction],
    reduce_value: Reducer = sum_amounts,
    bucket_key: KeyFunction | None = None,
) -> GroupNode:
    """
    Group items into a tree.

    Args:
        items: Items to group, appended in order
        groups: Key functions, outermost level first
        reduce_value: Reduction ``(item, current, bucket) -> value``
        bucket_key: Optional secondary key for bucketed aggregates

    Returns:
        Root GroupNode

    Raises:
        GroupingError: If no key functions are given
    """
    root = GroupNode(groups, reduce_value, bucket_key)
    count = 0
    for item in items:
        root.append(item)
        count += 1

    logger.debug(f"Grouped {count} items into {len(root)} top-level groups")
    return root
