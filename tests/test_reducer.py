from __future__ import annotations

import unittest
from datetime import date
from decimal import Decimal

from application.actions import (
    AddEntity,
    DeleteEntity,
    SetCollection,
    SetCurrentPeriod,
    SetError,
    SetFilterState,
    ResetState,
    SetLoading,
    UpdateEntity,
)
from application.reducer import initial_state, reduce
from domain.models import PeriodKind, Resource
from domain.schemas import Category, Transaction


def _txn(txn_id: str, amount: str = "10") -> Transaction:
    return Transaction(id=txn_id, amount=Decimal(amount), type="expense", category="Food", account="Cash", date=date(2024, 3, 5))


class InitialStateTests(unittest.TestCase):
    def test_defaults_to_current_month(self) -> None:
        state = initial_state(date(2024, 3, 15))

        self.assertEqual(state.filter_state.period, PeriodKind.MONTHLY)
        self.assertEqual(state.filter_state.start_date, date(2024, 3, 1))
        self.assertEqual(state.filter_state.end_date, date(2024, 3, 31))
        self.assertTrue(state.filter_state.show_total)
        self.assertEqual(state.filter_state.search_query, "")
        self.assertEqual(state.transactions, ())
        self.assertTrue(all(v is False for v in state.loading.values()))
        self.assertTrue(all(v is None for v in state.errors.values()))


class ReduceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.state = initial_state(date(2024, 3, 15))

    def test_new_transactions_go_first(self) -> None:
        state = reduce(self.state, AddEntity(Resource.TRANSACTIONS, _txn("t1")))
        state = reduce(state, AddEntity(Resource.TRANSACTIONS, _txn("t2")))
        self.assertEqual([t.id for t in state.transactions], ["t2", "t1"])

    def test_other_collections_append(self) -> None:
        food = Category(id="c1", name="Food", type="expense")
        rent = Category(id="c2", name="Rent", type="expense")
        state = reduce(self.state, AddEntity(Resource.CATEGORIES, food))
        state = reduce(state, AddEntity(Resource.CATEGORIES, rent))
        self.assertEqual([c.id for c in state.categories], ["c1", "c2"])

    def test_update_replaces_by_id_in_place(self) -> None:
        state = reduce(self.state, SetCollection(Resource.TRANSACTIONS, (_txn("t1"), _txn("t2"))))
        state = reduce(state, UpdateEntity(Resource.TRANSACTIONS, _txn("t2", "99")))
        self.assertEqual([t.id for t in state.transactions], ["t1", "t2"])
        self.assertEqual(state.transactions[1].amount, Decimal("99"))

    def test_update_or_delete_of_unknown_id_is_a_no_op(self) -> None:
        state = reduce(self.state, SetCollection(Resource.TRANSACTIONS, (_txn("t1"),)))
        self.assertEqual(reduce(state, UpdateEntity(Resource.TRANSACTIONS, _txn("missing"))), state)
        self.assertEqual(reduce(state, DeleteEntity(Resource.TRANSACTIONS, "missing")), state)

    def test_delete_removes_by_id(self) -> None:
        state = reduce(self.state, SetCollection(Resource.TRANSACTIONS, (_txn("t1"), _txn("t2"))))
        state = reduce(state, DeleteEntity(Resource.TRANSACTIONS, "t1"))
        self.assertEqual([t.id for t in state.transactions], ["t2"])

    def test_replacing_a_collection_twice_is_idempotent(self) -> None:
        items = (_txn("t1"), _txn("t2"))
        once = reduce(self.state, SetCollection(Resource.TRANSACTIONS, items))
        twice = reduce(once, SetCollection(Resource.TRANSACTIONS, items))
        self.assertEqual(once, twice)

    def test_add_then_delete_restores_the_collection(self) -> None:
        food = Category(id="c1", name="Food", type="expense")
        cases = (
            (Resource.TRANSACTIONS, (_txn("t1"), _txn("t2")), _txn("new")),
            (Resource.CATEGORIES, (food,), Category(id="new", name="Gifts", type="income")),
        )
        for resource, existing, item in cases:
            with self.subTest(resource=resource):
                state = reduce(self.state, SetCollection(resource, existing))
                added = reduce(state, AddEntity(resource, item))
                self.assertEqual(reduce(added, DeleteEntity(resource, "new")), state)

    def test_reduce_does_not_touch_its_input(self) -> None:
        before = self.state
        reduce(before, AddEntity(Resource.TRANSACTIONS, _txn("t1")))
        reduce(before, SetError(Resource.BUDGETS, "boom"))
        self.assertEqual(before.transactions, ())
        self.assertIsNone(before.errors[Resource.BUDGETS])

    def test_filter_patch_merges_fields(self) -> None:
        state = reduce(self.state, SetFilterState({"search_query": "coffee"}))
        self.assertEqual(state.filter_state.search_query, "coffee")
        self.assertEqual(state.filter_state.period, PeriodKind.MONTHLY)
        self.assertEqual(state.filter_state.start_date, date(2024, 3, 1))

    def test_changing_period_recomputes_range(self) -> None:
        state = reduce(self.state, SetFilterState({"period": "weekly"}))
        self.assertEqual(state.filter_state.start_date, date(2024, 3, 10))
        self.assertEqual(state.filter_state.end_date, date(2024, 3, 16))

    def test_moving_reference_date_recomputes_range(self) -> None:
        state = reduce(self.state, SetCurrentPeriod(date(2024, 2, 10)))
        self.assertEqual(state.current_period, date(2024, 2, 10))
        self.assertEqual(state.filter_state.start_date, date(2024, 2, 1))
        self.assertEqual(state.filter_state.end_date, date(2024, 2, 29))

    def test_reset_returns_a_fresh_state_for_the_day(self) -> None:
        state = reduce(self.state, SetCollection(Resource.TRANSACTIONS, (_txn("t1"),)))
        state = reduce(state, SetError(Resource.BUDGETS, "boom"))
        self.assertEqual(reduce(state, ResetState(date(2024, 5, 2))), initial_state(date(2024, 5, 2)))

    def test_flags_are_per_resource(self) -> None:
        state = reduce(self.state, SetLoading(Resource.ACCOUNTS, True))
        state = reduce(state, SetError(Resource.BUDGETS, "Failed to create budget"))
        self.assertTrue(state.loading[Resource.ACCOUNTS])
        self.assertFalse(state.loading[Resource.BUDGETS])
        self.assertEqual(state.errors[Resource.BUDGETS], "Failed to create budget")
        self.assertIsNone(state.errors[Resource.ACCOUNTS])


if __name__ == "__main__":
    unittest.main()
