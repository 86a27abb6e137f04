"""Domain models used throughout the toolkit."""

from dataclasses import dataclass, field
from typing import Any, Callable, Hashable, Mapping, Optional, TypeVar, Union

D = TypeVar("D")
"""A base item being enriched."""

V = TypeVar("V")
"""The converted shape of a base item."""

SD = TypeVar("SD")
"""A related item attached to base items."""

K = TypeVar("K", bound=Hashable)
"""A key correlating base items with related items."""

SK = TypeVar("SK", bound=Hashable)
"""A secondary key used by indirect one-to-many joins."""


KeyExtractor = Callable[[Any], Optional[Hashable]]
BatchResolver = Callable[[list], Optional[Mapping[Any, Any]]]
SecondaryKeyResolver = Callable[[list], Optional[Mapping[Any, list]]]
Attach = Callable[[Any, Any], None]


@dataclass(frozen=True)
class OneToOne:
    """A registered relation where each base item references one related item.

    Attributes:
        name: Unique name of the relation within its registry.
        extract_key: Returns the key of the related item for a base item, or None.
        resolve: Batch resolver mapping a list of distinct keys to related items.
        attach: Called with the target item and its related item.
        profiles: Profiles under which the relation is active. Empty means always.
    """

    name: str
    extract_key: KeyExtractor
    resolve: BatchResolver
    attach: Attach
    profiles: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class OneToMany:
    """A registered relation joined through a set of secondary keys.

    Attributes:
        name: Unique name of the relation within its registry.
        extract_key: Returns the primary key of a base item, or None.
        resolve_secondary_keys: Maps distinct primary keys to their secondary key lists.
        resolve_data: Maps distinct secondary keys to related items.
        attach: Called with the target item and its list of related items.
        profiles: Profiles under which the relation is active. Empty means always.
    """

    name: str
    extract_key: KeyExtractor
    resolve_secondary_keys: SecondaryKeyResolver
    resolve_data: BatchResolver
    attach: Attach
    profiles: list[str] = field(default_factory=list)


Relation = Union[OneToOne, OneToMany]
