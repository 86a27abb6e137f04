"""
Batch composition of related data onto base items.

Display objects often need data from related records: an order shows its user's
name, a list of orders shows each order's items. Looking the related records up
inside a loop issues one query per base item (the N+1 problem). The functions
in this module instead collect the keys of every base item, resolve all of them
with a single call to a caller-supplied resolver, and fan the results back out
to the items that reference them.

The operations form a 2x2 matrix of {single item, list} x {one-to-one, one-to-many},
each with a variant that first converts the base item into an output shape and
attaches onto that instead:

    attach_one / attach_one_transform      single item, one related item
    attach_many / attach_many_transform    single item, list of related items
    join_one / join_one_transform          list, one related item per base item
    join_many / join_many_transform        list, related items through secondary keys

Absence is never an error. A missing callable, an empty input, a None key or a
resolver with nothing to say for a key all leave the affected items unenriched.
Exceptions raised by the callables themselves propagate unchanged.
"""

import logging
from typing import Callable, Iterable, Mapping, Optional, Sequence

from viewcompose.domain import D, K, SD, SK, V

__all__ = [
    "attach_one",
    "attach_one_transform",
    "attach_many",
    "attach_many_transform",
    "join_one",
    "join_one_transform",
    "join_many",
    "join_many_transform",
    "distinct_keys",
    "secondary_keys_of",
    "resolve_related_lists",
    "attach_resolved",
    "attach_resolved_lists",
]

logger = logging.getLogger(__name__)


def attach_one(
    item: Optional[D],
    extract_key: Callable[[D], Optional[K]],
    resolve_one: Callable[[K], Optional[SD]],
    attach: Callable[[D, SD], None],
) -> Optional[D]:
    """Resolve the related item for a single base item and attach it in place.

    Args:
        item: The base item, or None.
        extract_key: Returns the key of the related item, or None.
        resolve_one: Looks up the related item for a key, returning None if absent.
        attach: Sets the related item on the base item.

    Returns:
        ``item`` itself, enriched if a related item was found.
    """
    if item is None or extract_key is None or resolve_one is None or attach is None:
        return item
    key = extract_key(item)
    if key is None:
        return item
    related = resolve_one(key)
    if related is None:
        return item
    attach(item, related)
    return item


def attach_one_transform(
    item: Optional[D],
    extract_key: Callable[[D], Optional[K]],
    resolve_one: Callable[[K], Optional[SD]],
    convert: Callable[[D], V],
    attach: Callable[[V, SD], None],
) -> Optional[V]:
    """Convert a single base item and attach its related item to the result.

    The item is always converted, whether or not the related item is found.

    Returns:
        The converted item, or None if ``item`` or any callable is None.

    Example:
        >>> view = attach_one_transform(
        ...     order,
        ...     lambda o: o.user_id,
        ...     users.get,
        ...     OrderView.from_order,
        ...     lambda v, user: setattr(v, "user_name", user.name),
        ... )
    """
    if (
        item is None
        or extract_key is None
        or resolve_one is None
        or convert is None
        or attach is None
    ):
        return None
    key = extract_key(item)
    view = convert(item)
    if key is None:
        return view
    related = resolve_one(key)
    if related is None:
        return view
    attach(view, related)
    return view


def attach_many(
    item: Optional[D],
    extract_key: Callable[[D], Optional[K]],
    resolve_many: Callable[[K], Optional[list[SD]]],
    attach_list: Callable[[D, list[SD]], None],
) -> Optional[D]:
    """Resolve the related items for a single base item and attach them in place.

    A resolver result of None means there is no data, so nothing is attached.
    Any other result, including an empty list, is passed to ``attach_list`` as is.
    """
    if item is None or extract_key is None or resolve_many is None or attach_list is None:
        return item
    key = extract_key(item)
    if key is None:
        return item
    related = resolve_many(key)
    if related is None:
        return item
    attach_list(item, related)
    return item


def attach_many_transform(
    item: Optional[D],
    extract_key: Callable[[D], Optional[K]],
    resolve_many: Callable[[K], Optional[list[SD]]],
    convert: Callable[[D], V],
    attach_list: Callable[[V, list[SD]], None],
) -> Optional[V]:
    """Convert a single base item and attach its related items to the result."""
    if (
        item is None
        or extract_key is None
        or resolve_many is None
        or convert is None
        or attach_list is None
    ):
        return None
    key = extract_key(item)
    view = convert(item)
    if key is None:
        return view
    related = resolve_many(key)
    if related is None:
        return view
    attach_list(view, related)
    return view


def join_one(
    items: Optional[Sequence[D]],
    extract_key: Callable[[D], Optional[K]],
    batch_resolve: Callable[[list[K]], Optional[Mapping[K, SD]]],
    attach: Callable[[D, SD], None],
) -> Optional[Sequence[D]]:
    """Attach a related item to every base item using a single batch lookup.

    Keys are extracted from every item, None keys are dropped and the rest are
    deduplicated. ``batch_resolve`` is then called exactly once with the
    distinct keys and must return a mapping from key to related item. Each item
    whose key appears in the mapping is passed to ``attach`` with its related
    item; items sharing a key all receive the same related item.

    Args:
        items: The base items, or None.
        extract_key: Returns the key of an item's related item, or None.
        batch_resolve: Maps a list of distinct keys to related items. Keys with
            no related item may simply be left out.
        attach: Sets the related item on a base item.

    Returns:
        ``items`` itself, in its original order.

    Example:
        >>> join_one(
        ...     orders,
        ...     lambda o: o.user_id,
        ...     lambda ids: {u.uid: u for u in user_store.find_all(ids)},
        ...     lambda o, user: setattr(o, "user", user),
        ... )
    """
    if not items or extract_key is None or batch_resolve is None or attach is None:
        return items
    keys = [extract_key(item) for item in items]
    unique_keys = distinct_keys(keys)
    if not unique_keys:
        logger.debug("No keys to resolve for %d items", len(items))
        return items

    logger.debug("Resolving %d distinct keys for %d items", len(unique_keys), len(items))
    related_by_key = batch_resolve(unique_keys)
    attach_resolved(items, keys, related_by_key, attach)
    return items


def join_one_transform(
    items: Optional[Sequence[D]],
    extract_key: Callable[[D], Optional[K]],
    batch_resolve: Callable[[list[K]], Optional[Mapping[K, SD]]],
    convert: Callable[[D], V],
    attach: Callable[[V, SD], None],
) -> list[V]:
    """Convert every base item and attach related items using a single batch lookup.

    Behaves as :func:`join_one`, but attaches onto ``convert(item)`` rather than
    the item. If no item has a key, the converted list is returned without
    calling ``batch_resolve``.

    Returns:
        One converted item per base item, in the original order. An empty list
        if ``items`` is empty or any callable is None.
    """
    if (
        not items
        or extract_key is None
        or batch_resolve is None
        or convert is None
        or attach is None
    ):
        return []
    keys = [extract_key(item) for item in items]
    views = [convert(item) for item in items]
    unique_keys = distinct_keys(keys)
    if not unique_keys:
        logger.debug("No keys to resolve for %d items", len(items))
        return views

    logger.debug("Resolving %d distinct keys for %d items", len(unique_keys), len(items))
    related_by_key = batch_resolve(unique_keys)
    attach_resolved(views, keys, related_by_key, attach)
    return views


def join_many(
    items: Optional[Sequence[D]],
    extract_id: Callable[[D], Optional[K]],
    resolve_secondary_keys: Callable[[list[K]], Optional[Mapping[K, list[SK]]]],
    resolve_data: Callable[[list[SK]], Optional[Mapping[SK, SD]]],
    attach_list: Callable[[D, list[SD]], None],
) -> Optional[Sequence[D]]:
    """Attach lists of related items reached through secondary keys.

    This covers relations held in a bridge table: each base item maps to a list
    of secondary keys, and each secondary key maps to a related item. Two batch
    lookups are made, each at most once:

    1. ``resolve_secondary_keys`` with the distinct primary keys of all items.
    2. ``resolve_data`` with the distinct secondary keys across all of the lists
       returned by the first call.

    Each item whose primary key has a secondary key list receives the related
    items in the order of that list. Secondary keys missing from the second
    lookup are skipped. Items whose primary key has no list are left alone.

    If either lookup returns nothing, no item is touched.

    Returns:
        ``items`` itself, in its original order.
    """
    if (
        not items
        or extract_id is None
        or resolve_secondary_keys is None
        or resolve_data is None
        or attach_list is None
    ):
        return items
    keys = [extract_id(item) for item in items]
    related_lists = resolve_related_lists(keys, resolve_secondary_keys, resolve_data)
    if related_lists is None:
        return items
    secondary_keys_by_key, related_by_secondary_key = related_lists
    attach_resolved_lists(
        items, keys, secondary_keys_by_key, related_by_secondary_key, attach_list
    )
    return items


def join_many_transform(
    items: Optional[Sequence[D]],
    extract_id: Callable[[D], Optional[K]],
    resolve_secondary_keys: Callable[[list[K]], Optional[Mapping[K, list[SK]]]],
    resolve_data: Callable[[list[SK]], Optional[Mapping[SK, SD]]],
    convert: Callable[[D], V],
    attach_list: Callable[[V, list[SD]], None],
) -> list[V]:
    """Convert every base item and attach lists of related items to the results.

    Behaves as :func:`join_many`, but attaches onto ``convert(item)``. Whenever
    the join stops early the fully converted list is still returned.
    """
    if (
        not items
        or extract_id is None
        or resolve_secondary_keys is None
        or resolve_data is None
        or convert is None
        or attach_list is None
    ):
        return []
    keys = [extract_id(item) for item in items]
    views = [convert(item) for item in items]
    related_lists = resolve_related_lists(keys, resolve_secondary_keys, resolve_data)
    if related_lists is None:
        return views
    secondary_keys_by_key, related_by_secondary_key = related_lists
    attach_resolved_lists(
        views, keys, secondary_keys_by_key, related_by_secondary_key, attach_list
    )
    return views


def resolve_related_lists(keys, resolve_secondary_keys, resolve_data):
    """Run both lookups of an indirect join.

    Returns:
        A ``(secondary_keys_by_key, related_by_secondary_key)`` pair, or None if
        there was nothing to look up or either lookup came back empty.
    """
    unique_keys = distinct_keys(keys)
    if not unique_keys:
        logger.debug("No keys to resolve for %d items", len(keys))
        return None

    logger.debug("Resolving secondary keys for %d distinct keys", len(unique_keys))
    secondary_keys_by_key = resolve_secondary_keys(unique_keys)
    if not secondary_keys_by_key:
        logger.debug("No secondary keys found")
        return None

    secondary_keys = secondary_keys_of(secondary_keys_by_key)
    if not secondary_keys:
        logger.debug("Secondary key lists are empty")
        return None

    logger.debug("Resolving %d distinct secondary keys", len(secondary_keys))
    related_by_secondary_key = resolve_data(secondary_keys)
    if not related_by_secondary_key:
        logger.debug("No related items found")
        return None

    return secondary_keys_by_key, related_by_secondary_key


def distinct_keys(keys: Iterable[Optional[K]]) -> list[K]:
    """Drop None keys and duplicates, keeping the first-seen order.

    Example:
        >>> distinct_keys([10, None, 20, 10])
        [10, 20]
    """
    return list(dict.fromkeys(key for key in keys if key is not None))


def secondary_keys_of(secondary_keys_by_key: Mapping[K, Optional[list[SK]]]) -> list[SK]:
    """Flatten secondary key lists into one list of distinct secondary keys."""
    return distinct_keys(
        secondary_key
        for secondary_keys in secondary_keys_by_key.values()
        if secondary_keys
        for secondary_key in secondary_keys
    )


def attach_resolved(
    targets: Iterable[V],
    keys: Iterable[Optional[K]],
    related_by_key: Optional[Mapping[K, SD]],
    attach: Callable[[V, SD], None],
) -> None:
    """Attach resolved items to targets, pairing each target with the key at the same position.

    Targets with a None key, or whose key is absent from ``related_by_key``
    (or maps to None), are skipped.
    """
    if not related_by_key:
        return
    for target, key in zip(targets, keys):
        if key is None:
            continue
        related = related_by_key.get(key)
        if related is not None:
            attach(target, related)


def attach_resolved_lists(
    targets: Iterable[V],
    keys: Iterable[Optional[K]],
    secondary_keys_by_key: Mapping[K, Optional[list[SK]]],
    related_by_secondary_key: Mapping[SK, SD],
    attach_list: Callable[[V, list[SD]], None],
) -> None:
    """Attach lists of resolved items to targets through their secondary keys."""
    for target, key in zip(targets, keys):
        if key is None:
            continue
        secondary_keys = secondary_keys_by_key.get(key)
        if secondary_keys is None:
            continue
        related_list = []
        for secondary_key in secondary_keys:
            related = related_by_secondary_key.get(secondary_key)
            if related is not None:
                related_list.append(related)
        attach_list(target, related_list)
