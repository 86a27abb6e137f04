import pytest

from orders import (
    OrderView,
    Store,
    make_items,
    make_order_items,
    make_orders,
    make_users,
)
from viewcompose.composer import Composer
from viewcompose.registry import RelationRegistry
from viewcompose.resolvers import by_key, grouped_by_key


@pytest.fixture
def user_store():
    return Store(make_users(), lambda user: user.uid)


@pytest.fixture
def item_store():
    return Store(make_items(), lambda item: item.item_id)


@pytest.fixture
def order_item_store():
    return Store(make_order_items(), lambda order_item: order_item.order_id)


@pytest.fixture
def registry(user_store, item_store, order_item_store) -> RelationRegistry:
    registry = RelationRegistry()

    def set_user_name(view, user):
        view.user_name = user.name

    def set_items(view, items):
        view.items = items

    @registry.one_to_one(extract_key=lambda order: order.user_id, attach=set_user_name)
    def load_users(user_ids):
        return by_key(user_store.find_all, lambda user: user.uid)(user_ids)

    @registry.one_to_many(
        extract_key=lambda order: order.oid,
        resolve_secondary_keys=grouped_by_key(
            order_item_store.find_all,
            lambda order_item: order_item.order_id,
            lambda order_item: order_item.item_id,
        ),
        attach=set_items,
        profiles=["detail"],
    )
    def load_items(item_ids):
        return by_key(item_store.find_all, lambda item: item.item_id)(item_ids)

    return registry


def item_names(view):
    return [item.name for item in view.items] if view.items is not None else None


def test_compose_converts_and_applies_every_relation(registry, user_store, item_store):
    orders = make_orders()

    views = Composer(registry, {"detail"}).compose(orders, OrderView.from_order)

    assert [v.oid for v in views] == [1, 2, 3, 4]
    assert [v.user_name for v in views] == ["zhangsan", "lisi", "wangwu", "zhangsan"]
    assert [item_names(v) for v in views] == [
        ["item_11", "item_22"],
        ["item_11"],
        ["item_11", "item_22", "item_33"],
        ["item_22"],
    ]
    assert len(user_store.calls) == 1
    assert len(item_store.calls) == 1


def test_profiles_select_relations(registry, item_store, order_item_store):
    composer = Composer(registry, {"list"})

    views = composer.compose(make_orders(), OrderView.from_order)

    assert [r.name for r in composer.relations] == ["users"]
    assert all(v.items is None for v in views)
    assert item_store.calls == []
    assert order_item_store.calls == []


def test_compose_in_place(registry):
    views = [OrderView.from_order(order) for order in make_orders()]

    result = Composer(registry).compose(views)

    assert result is views
    assert views[3].user_name == "zhangsan"
    assert item_names(views[3]) == ["item_22"]


def test_compose_one(registry, user_store):
    order = make_orders()[2]

    view = Composer(registry, {"detail"}).compose_one(order, OrderView.from_order)

    assert view.user_name == "wangwu"
    assert item_names(view) == ["item_11", "item_22", "item_33"]
    assert user_store.calls == [[3]]


def test_compose_one_without_item(registry):
    assert Composer(registry).compose_one(None, OrderView.from_order) is None


def test_compose_empty_input_calls_no_resolver(registry, user_store, item_store, order_item_store):
    composer = Composer(registry)

    assert composer.compose([]) == []
    assert composer.compose([], OrderView.from_order) == []
    assert composer.compose(None) is None
    assert user_store.calls == item_store.calls == order_item_store.calls == []


def test_items_without_keys_are_not_resolved(registry, user_store):
    orders = make_orders()
    for order in orders:
        order.user_id = None

    views = Composer(registry, {"list"}).compose(orders, OrderView.from_order)

    assert [v.user_name for v in views] == [None, None, None, None]
    assert user_store.calls == []
