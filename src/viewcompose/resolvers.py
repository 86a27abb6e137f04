"""Helpers for building batch resolvers from plain lookup functions.

Data stores usually answer "give me the rows for these keys" with a flat list,
while the joins in :mod:`viewcompose.compose` want a mapping from key to row.
These helpers do the reshaping.
"""

from collections import defaultdict
from typing import Callable, Iterable, Optional

__all__ = ["index_by", "group_by", "by_key", "grouped_by_key"]


def index_by(rows: Iterable, key: Callable) -> dict:
    """Map each row by ``key(row)``. A later row replaces an earlier one with the same key."""
    return {key(row): row for row in rows}


def group_by(rows: Iterable, key: Callable, value: Optional[Callable] = None) -> dict[object, list]:
    """Group rows into lists by ``key(row)``, keeping their order.

    Args:
        rows: The rows to group.
        key: Returns the grouping key of a row.
        value: Optional function applied to each row before it is added to its group.

    Example:
        >>> group_by(order_items, lambda oi: oi.order_id, lambda oi: oi.item_id)
        {1: [11, 22], 2: [11]}
    """
    grouped: dict[object, list] = defaultdict(list)
    for row in rows:
        grouped[key(row)].append(value(row) if value is not None else row)
    return dict(grouped)


def by_key(fetch: Callable[[list], Iterable], key: Callable) -> Callable[[list], dict]:
    """Wrap a function fetching rows for a list of keys into a batch resolver.

    Example:
        >>> resolve_users = by_key(user_store.find_all, lambda user: user.uid)
        >>> join_one(orders, lambda o: o.user_id, resolve_users, set_user)
    """
    def resolve(keys: list) -> dict:
        return index_by(fetch(keys), key)

    return resolve


def grouped_by_key(
    fetch: Callable[[list], Iterable], key: Callable, value: Optional[Callable] = None
) -> Callable[[list], dict]:
    """Wrap a function fetching rows for a list of keys into a resolver returning lists.

    Useful for the first lookup of :func:`~viewcompose.compose.join_many`, where
    bridge-table rows are grouped by primary key and reduced to secondary keys.
    """
    def resolve(keys: list) -> dict:
        return group_by(fetch(keys), key, value)

    return resolve
