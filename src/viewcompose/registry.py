"""Registration of named relations, with profile-based filtering."""

import inspect
from typing import Callable, Optional

from viewcompose.domain import Attach, KeyExtractor, OneToMany, OneToOne, Relation, SecondaryKeyResolver
from viewcompose.errors import CompositionError

__all__ = [
    "OneToOne",
    "OneToMany",
    "RelationRegistry",
]

_RESOLVER_PREFIXES = ("resolve_", "load_", "fetch_")


def inferred_name(func: Callable) -> str:
    """Derive a relation name from a resolver function's name.

    Example:
        >>> inferred_name(load_users)      # Returns "users"
        >>> inferred_name(fetch_items)     # Returns "items"
        >>> inferred_name(user_lookup)     # Returns "user_lookup"
    """
    for prefix in _RESOLVER_PREFIXES:
        if func.__name__.startswith(prefix):
            return func.__name__[len(prefix):]
    return func.__name__


class RelationRegistry:
    """Registry of relations, supporting registration and profile-based filtering.

    Example:
        >>> registry = RelationRegistry()
        >>>
        >>> @registry.one_to_one(
        ...     extract_key=lambda order: order.user_id,
        ...     attach=lambda view, user: setattr(view, "user_name", user.name),
        ... )
        >>> def load_users(user_ids):
        ...     return {user.uid: user for user in user_store.find_all(user_ids)}
    """

    def __init__(self):
        self._relations: list[Relation] = []

    def register(self, relation: Relation):
        """Register a relation explicitly.

        Raises:
            CompositionError: If a relation with the same name is already
                registered, or a member of the relation is not callable.
        """
        _validate(relation)
        if any(r.name == relation.name for r in self._relations):
            raise CompositionError(f"Duplicate relation name '{relation.name}'")
        self._relations.append(relation)

    def registered_relations(self, profiles: Optional[set[str]] = None) -> list[Relation]:
        """Retrieve relations in registration order, optionally filtered by active profiles.

        Args:
            profiles: A set of active profile names. If None, returns all relations.
        """
        if profiles is None:
            return list(self._relations)
        return [r for r in self._relations if _profiles_match(r.profiles, profiles)]

    def one_to_one(
        self,
        name: Optional[str] = None,
        *,
        extract_key: KeyExtractor,
        attach: Attach,
        profiles: Optional[list[str]] = None,
    ) -> Callable:
        """Decorator registering a batch resolver as a one-to-one relation.

        Args:
            name: Optional relation name; defaults to the function name with a
                'resolve_', 'load_' or 'fetch_' prefix removed.
            extract_key: Returns the related item's key for a base item.
            attach: Sets a related item on its target.
            profiles: Optional list of profiles for which the relation is active.
        """
        def decorator(func):
            _require_function(func)
            self.register(
                OneToOne(name or inferred_name(func), extract_key, func, attach, profiles or [])
            )
            return func

        return decorator

    def one_to_many(
        self,
        name: Optional[str] = None,
        *,
        extract_key: KeyExtractor,
        resolve_secondary_keys: SecondaryKeyResolver,
        attach: Attach,
        profiles: Optional[list[str]] = None,
    ) -> Callable:
        """Decorator registering the data lookup of an indirect one-to-many relation.

        The decorated function receives the distinct secondary keys returned by
        ``resolve_secondary_keys`` and maps them to related items.

        Example:
            @registry.one_to_many(
                extract_key=lambda order: order.oid,
                resolve_secondary_keys=order_item_ids,
                attach=lambda view, items: setattr(view, "items", items),
                profiles=["detail"],
            )
            def load_items(item_ids):
                return index_by(item_store.find_all(item_ids), lambda item: item.item_id)
        """
        def decorator(func):
            _require_function(func)
            self.register(
                OneToMany(
                    name or inferred_name(func),
                    extract_key,
                    resolve_secondary_keys,
                    func,
                    attach,
                    profiles or [],
                )
            )
            return func

        return decorator


def _require_function(obj):
    if not (inspect.isfunction(obj) or inspect.ismethod(obj) or inspect.isbuiltin(obj)):
        raise CompositionError(f"{obj} is not a function")


def _validate(relation: Relation):
    """Check that every member a relation needs is present and callable.

    Raises:
        CompositionError: On the first missing or non-callable member.
    """
    if isinstance(relation, OneToOne):
        members = ("extract_key", "resolve", "attach")
    elif isinstance(relation, OneToMany):
        members = ("extract_key", "resolve_secondary_keys", "resolve_data", "attach")
    else:
        raise CompositionError(f"{relation} is not a relation")

    if not relation.name:
        raise CompositionError(f"Relation {relation} has no name")

    for member in members:
        if not callable(getattr(relation, member)):
            raise CompositionError(
                f"Relation '{relation.name}' has no callable {member}"
            )


def _profiles_match(stated: list[str], selected: set[str]) -> bool:
    """Check if a relation's profile requirements match the selected profiles.

    - Normal profiles ("list", "detail") must be in the selected set
    - Exclusion profiles ("!list") must NOT be in the selected set
    - Empty stated profiles match all selected profiles

    Example:
        >>> _profiles_match(["detail"], {"detail"})    # True
        >>> _profiles_match(["!list"], {"detail"})     # True
        >>> _profiles_match(["!list"], {"list"})       # False
        >>> _profiles_match(["detail"], {"list"})      # False
    """
    provided = [p for p in stated if not p.startswith("!")]
    excluded = [p[1:] for p in stated if p.startswith("!")]

    return not any(e in selected for e in excluded) and (
        not provided or any(p in selected for p in provided)
    )
