from orders import Store, make_items, make_order_items
from viewcompose.resolvers import by_key, group_by, grouped_by_key, index_by


def test_index_by_keeps_last_row_per_key():
    rows = [("a", 1), ("b", 2), ("a", 3)]

    assert index_by(rows, lambda row: row[0]) == {"a": ("a", 3), "b": ("b", 2)}


def test_group_by_keeps_row_order():
    grouped = group_by(make_order_items(), lambda oi: oi.order_id, lambda oi: oi.item_id)

    assert grouped == {1: [11, 22], 2: [11], 3: [11, 22, 33], 4: [22]}


def test_group_by_without_value_keeps_rows():
    rows = [("a", 1), ("b", 2), ("a", 3)]

    assert group_by(rows, lambda row: row[0]) == {"a": [("a", 1), ("a", 3)], "b": [("b", 2)]}


def test_by_key_wraps_fetch():
    store = Store(make_items(), lambda item: item.item_id)
    resolve = by_key(store.find_all, lambda item: item.item_id)

    resolved = resolve([22, 99])

    assert {k: v.name for k, v in resolved.items()} == {22: "item_22"}
    assert store.calls == [[22, 99]]


def test_grouped_by_key_wraps_fetch():
    store = Store(make_order_items(), lambda oi: oi.order_id)
    resolve = grouped_by_key(store.find_all, lambda oi: oi.order_id, lambda oi: oi.item_id)

    assert resolve([3, 4]) == {3: [11, 22, 33], 4: [22]}
