"""Viewcompose: batched composition of view objects from related data.

Viewcompose assembles display objects from a list of base records and the
records they reference, without querying once per base record. Keys are
collected across the whole list, each relation is resolved with one call to a
caller-supplied resolver, and the results are attached back to every record
that references them, optionally after converting each record into a view.

Key Features:
    - One-to-one and one-to-many joins for single items and lists
    - Indirect one-to-many joins through bridge-table keys
    - In-place enrichment or conversion into a separate view shape
    - At most one resolver call per relation, never with an empty key list
    - Async variants for coroutine resolvers
    - Declarative relations selected by profile

Basic Usage:
    >>> from viewcompose.compose import join_one
    >>>
    >>> join_one(
    ...     orders,
    ...     lambda order: order.user_id,
    ...     lambda user_ids: {u.uid: u for u in user_store.find_all(user_ids)},
    ...     lambda order, user: setattr(order, "user", user),
    ... )

The toolkit consists of several modules:
    - compose: The core join and attach operations
    - aio: Coroutine variants of the list joins
    - registry: Relation registration and profile filtering
    - composer: Applying registered relations to items
    - resolvers: Helpers shaping fetched rows into resolver results
    - domain: Type variables and relation models
    - errors: Toolkit-specific exceptions
"""
