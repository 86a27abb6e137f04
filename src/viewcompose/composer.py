"""
Applying registered relations to base items.

A :class:`Composer` takes the relations active in a :class:`RelationRegistry`
for a set of profiles and applies each of them, in registration order, to a
list of base items. Every relation is joined with its own batch lookups, so
composing N items across R relations calls each resolver at most once rather
than N times.

When a convert function is given, each base item is converted once up front.
Keys are still read from the base items, and related data is attached to the
converted items.
"""

import logging
from typing import Callable, Optional, Sequence

from viewcompose.compose import (
    attach_resolved,
    attach_resolved_lists,
    distinct_keys,
    resolve_related_lists,
)
from viewcompose.domain import D, OneToMany, OneToOne, Relation, V
from viewcompose.registry import RelationRegistry

__all__ = ["Composer"]

logger = logging.getLogger(__name__)


class Composer:
    """Compose base items with every relation active for the selected profiles.

    Example:
        >>> composer = Composer(registry, {"detail"})
        >>> views = composer.compose(orders, OrderView.from_order)
    """

    def __init__(self, registry: RelationRegistry, profiles: Optional[set[str]] = None):
        self._relations: list[Relation] = registry.registered_relations(profiles)

    @property
    def relations(self) -> list[Relation]:
        return list(self._relations)

    def compose(
        self,
        items: Optional[Sequence[D]],
        convert: Optional[Callable[[D], V]] = None,
    ) -> Optional[Sequence]:
        """Apply every active relation to ``items``.

        Args:
            items: The base items, or None.
            convert: Optional function converting each base item into the
                object that related data is attached to.

        Returns:
            ``items`` itself when no convert function is given, otherwise the
            list of converted items in the original order. An empty input is
            returned unchanged, or as an empty list when converting.
        """
        if not items:
            return [] if convert is not None else items

        targets = [convert(item) for item in items] if convert is not None else items
        for relation in self._relations:
            self._apply(relation, items, targets)
        return targets

    def compose_one(
        self,
        item: Optional[D],
        convert: Optional[Callable[[D], V]] = None,
    ):
        """Apply every active relation to a single item.

        Returns:
            ``item`` or its converted form, or None if ``item`` is None.
        """
        if item is None:
            return None
        return self.compose([item], convert)[0]

    def _apply(self, relation: Relation, items: Sequence, targets: Sequence):
        keys = [relation.extract_key(item) for item in items]
        unique_keys = distinct_keys(keys)
        if not unique_keys:
            logger.debug("Relation '%s': no keys to resolve", relation.name)
            return

        logger.debug(
            "Relation '%s': resolving %d distinct keys for %d items",
            relation.name,
            len(unique_keys),
            len(items),
        )
        if isinstance(relation, OneToOne):
            attach_resolved(targets, keys, relation.resolve(unique_keys), relation.attach)
        elif isinstance(relation, OneToMany):
            related_lists = resolve_related_lists(
                keys, relation.resolve_secondary_keys, relation.resolve_data
            )
            if related_lists is not None:
                attach_resolved_lists(targets, keys, *related_lists, relation.attach)
