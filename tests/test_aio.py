import asyncio

import pytest

from orders import OrderView, Row, make_orders
from viewcompose import aio


class AsyncRecorder:
    def __init__(self, result):
        self.result = result
        self.calls = []

    async def __call__(self, keys):
        self.calls.append(list(keys))
        await asyncio.sleep(0)
        return self.result


def set_val(row, val):
    row.val = val


def set_vals(row, vals):
    row.vals = vals


def test_join_one_awaits_resolver_once():
    rows = [Row(1, 10), Row(2, 20), Row(3, 10)]
    resolve = AsyncRecorder({10: "A", 20: "B"})

    result = asyncio.run(aio.join_one(rows, lambda r: r.fk, resolve, set_val))

    assert result is rows
    assert [r.val for r in rows] == ["A", "B", "A"]
    assert len(resolve.calls) == 1
    assert sorted(resolve.calls[0]) == [10, 20]


def test_join_one_transform_skips_resolver_without_keys():
    orders = make_orders()
    for order in orders:
        order.user_id = None
    resolve = AsyncRecorder({})

    views = asyncio.run(
        aio.join_one_transform(
            orders, lambda o: o.user_id, resolve, OrderView.from_order, lambda v, u: None
        )
    )

    assert [v.oid for v in views] == [1, 2, 3, 4]
    assert resolve.calls == []


def test_join_many_chains_both_lookups():
    rows = [Row(1), Row(2)]
    secondary = AsyncRecorder({1: [11, 22], 2: [22]})
    data = AsyncRecorder({11: "x", 22: "y"})

    asyncio.run(aio.join_many(rows, lambda r: r.id, secondary, data, set_vals))

    assert [r.vals for r in rows] == [["x", "y"], ["y"]]
    assert secondary.calls == [[1, 2]]
    assert len(data.calls) == 1
    assert sorted(data.calls[0]) == [11, 22]


def test_join_many_transform_drops_missing_data():
    rows = [Row(1)]

    views = asyncio.run(
        aio.join_many_transform(
            rows,
            lambda r: r.id,
            AsyncRecorder({1: [11, 22]}),
            AsyncRecorder({11: "x"}),
            lambda r: Row(r.id),
            set_vals,
        )
    )

    assert views[0].vals == ["x"]
    assert rows[0].vals is None


def test_join_many_transform_converts_when_nothing_resolves():
    rows = [Row(1), Row(2)]
    data = AsyncRecorder({})

    views = asyncio.run(
        aio.join_many_transform(
            rows, lambda r: r.id, AsyncRecorder(None), data, lambda r: Row(r.id), set_vals
        )
    )

    assert [(v.id, v.vals) for v in views] == [(1, None), (2, None)]
    assert data.calls == []


@pytest.mark.parametrize(
    "join",
    [
        lambda items, resolve: aio.join_one(items, lambda r: r.fk, resolve, set_val),
        lambda items, resolve: aio.join_many(items, lambda r: r.id, resolve, resolve, set_vals),
    ],
)
def test_empty_input_awaits_nothing(join):
    resolve = AsyncRecorder({1: "never"})

    assert asyncio.run(join([], resolve)) == []
    assert resolve.calls == []
