"""Coroutine variants of the list joins in :mod:`viewcompose.compose`.

The resolvers passed here are coroutine functions, so the lookups can go to an
async database driver or HTTP client. Each resolver is awaited at most once per
call; the two lookups of an indirect join run one after the other because the
second needs the result of the first. Key extraction, conversion and attachment
remain plain synchronous callables.
"""

import logging
from typing import Awaitable, Callable, Mapping, Optional, Sequence

from viewcompose.compose import (
    attach_resolved,
    attach_resolved_lists,
    distinct_keys,
    secondary_keys_of,
)
from viewcompose.domain import D, K, SD, SK, V

__all__ = ["join_one", "join_one_transform", "join_many", "join_many_transform"]

logger = logging.getLogger(__name__)


async def join_one(
    items: Optional[Sequence[D]],
    extract_key: Callable[[D], Optional[K]],
    batch_resolve: Callable[[list[K]], Awaitable[Optional[Mapping[K, SD]]]],
    attach: Callable[[D, SD], None],
) -> Optional[Sequence[D]]:
    """Await a single batch lookup and attach the results to ``items`` in place.

    See :func:`viewcompose.compose.join_one`.
    """
    if not items or extract_key is None or batch_resolve is None or attach is None:
        return items
    keys = [extract_key(item) for item in items]
    unique_keys = distinct_keys(keys)
    if not unique_keys:
        return items

    logger.debug("Awaiting %d distinct keys for %d items", len(unique_keys), len(items))
    related_by_key = await batch_resolve(unique_keys)
    attach_resolved(items, keys, related_by_key, attach)
    return items


async def join_one_transform(
    items: Optional[Sequence[D]],
    extract_key: Callable[[D], Optional[K]],
    batch_resolve: Callable[[list[K]], Awaitable[Optional[Mapping[K, SD]]]],
    convert: Callable[[D], V],
    attach: Callable[[V, SD], None],
) -> list[V]:
    """See :func:`viewcompose.compose.join_one_transform`."""
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
        return views

    logger.debug("Awaiting %d distinct keys for %d items", len(unique_keys), len(items))
    related_by_key = await batch_resolve(unique_keys)
    attach_resolved(views, keys, related_by_key, attach)
    return views


async def join_many(
    items: Optional[Sequence[D]],
    extract_id: Callable[[D], Optional[K]],
    resolve_secondary_keys: Callable[[list[K]], Awaitable[Optional[Mapping[K, list[SK]]]]],
    resolve_data: Callable[[list[SK]], Awaitable[Optional[Mapping[SK, SD]]]],
    attach_list: Callable[[D, list[SD]], None],
) -> Optional[Sequence[D]]:
    """See :func:`viewcompose.compose.join_many`."""
    if (
        not items
        or extract_id is None
        or resolve_secondary_keys is None
        or resolve_data is None
        or attach_list is None
    ):
        return items
    keys = [extract_id(item) for item in items]
    related_lists = await _resolve_lists(keys, resolve_secondary_keys, resolve_data)
    if related_lists is not None:
        attach_resolved_lists(items, keys, *related_lists, attach_list)
    return items


async def join_many_transform(
    items: Optional[Sequence[D]],
    extract_id: Callable[[D], Optional[K]],
    resolve_secondary_keys: Callable[[list[K]], Awaitable[Optional[Mapping[K, list[SK]]]]],
    resolve_data: Callable[[list[SK]], Awaitable[Optional[Mapping[SK, SD]]]],
    convert: Callable[[D], V],
    attach_list: Callable[[V, list[SD]], None],
) -> list[V]:
    """See :func:`viewcompose.compose.join_many_transform`."""
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
    related_lists = await _resolve_lists(keys, resolve_secondary_keys, resolve_data)
    if related_lists is not None:
        attach_resolved_lists(views, keys, *related_lists, attach_list)
    return views


async def _resolve_lists(keys, resolve_secondary_keys, resolve_data):
    unique_keys = distinct_keys(keys)
    if not unique_keys:
        return None

    logger.debug("Awaiting secondary keys for %d distinct keys", len(unique_keys))
    secondary_keys_by_key = await resolve_secondary_keys(unique_keys)
    if not secondary_keys_by_key:
        return None

    secondary_keys = secondary_keys_of(secondary_keys_by_key)
    if not secondary_keys:
        return None

    logger.debug("Awaiting %d distinct secondary keys", len(secondary_keys))
    related_by_secondary_key = await resolve_data(secondary_keys)
    if not related_by_secondary_key:
        return None

    return secondary_keys_by_key, related_by_secondary_key
