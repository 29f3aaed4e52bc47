from __future__ import annotations

import unittest
from datetime import date
from decimal import Decimal

from application.aggregation import (
    account_balances,
    balance,
    budget_spent,
    budget_statuses,
    total_balance,
    total_expense,
    total_income,
    unbudgeted_categories,
)
from domain.schemas import Account, Budget, Category, Transaction


def _txn(txn_id: str, amount: str, kind: str, *, category: str = "Food", account: str = "Checking", day: date = date(2024, 3, 5)) -> Transaction:
    return Transaction(id=txn_id, amount=Decimal(amount), type=kind, category=category, account=account, date=day)


class TotalsTests(unittest.TestCase):
    def test_income_minus_expense(self) -> None:
        rows = [
            _txn("t1", "2000", "income", category="Salary"),
            _txn("t2", "50", "expense"),
        ]
        self.assertEqual(total_income(rows), Decimal("2000"))
        self.assertEqual(total_expense(rows), Decimal("50"))
        self.assertEqual(balance(rows), Decimal("1950"))

    def test_transfers_count_for_neither_side(self) -> None:
        transfer = Transaction(
            id="t3", amount=Decimal("300"), type="transfer", from_account="Checking", to_account="Savings", date=date(2024, 3, 6)
        )
        rows = [_txn("t1", "100", "income"), transfer]
        self.assertEqual(total_expense(rows), Decimal("0"))
        self.assertEqual(balance(rows), Decimal("100"))

    def test_totals_ignore_order(self) -> None:
        rows = [
            _txn("t1", "2000", "income", category="Salary"),
            _txn("t2", "50.25", "expense"),
            _txn("t3", "10.10", "expense"),
            _txn("t4", "5", "income", category="Gift"),
        ]
        for ordering in (rows, rows[::-1], rows[1:] + rows[:1], [rows[2], rows[0], rows[3], rows[1]]):
            self.assertEqual(total_income(ordering), Decimal("2005"))
            self.assertEqual(total_expense(ordering), Decimal("60.35"))
            self.assertEqual(balance(ordering), Decimal("1944.65"))

    def test_empty_is_zero(self) -> None:
        self.assertEqual(balance([]), Decimal("0"))


class AccountBalanceTests(unittest.TestCase):
    def test_balance_starts_from_initial(self) -> None:
        accounts = [
            Account(id="a1", name="Checking", initial_balance=Decimal("100")),
            Account(id="a2", name="Savings", initial_balance=Decimal("500")),
        ]
        rows = [
            _txn("t1", "2000", "income", category="Salary"),
            _txn("t2", "50", "expense"),
            _txn("t3", "10", "expense", account="Savings"),
        ]

        balances = account_balances(accounts, rows)

        self.assertEqual([b.current_balance for b in balances], [Decimal("2050"), Decimal("490")])
        self.assertEqual(total_balance(balances), Decimal("2540"))


class BudgetTests(unittest.TestCase):
    def setUp(self) -> None:
        self.categories = [
            Category(id="c1", name="Food", type="expense"),
            Category(id="c2", name="Rent", type="expense"),
            Category(id="c3", name="Salary", type="income"),
        ]
        self.rows = [
            _txn("t1", "50", "expense"),
            _txn("t2", "30", "expense", day=date(2024, 4, 2)),
            _txn("t3", "20", "income"),
        ]

    def test_spent_counts_only_month_expenses_of_the_category(self) -> None:
        self.assertEqual(budget_spent("Food", self.rows, "2024-03"), Decimal("50"))

    def test_status_derives_remaining(self) -> None:
        budgets = [
            Budget(id="b1", category_id="c1", limit=Decimal("200"), month="2024-03"),
            Budget(id="b2", category_id="c1", limit=Decimal("200"), month="2024-04"),
        ]

        statuses = budget_statuses(budgets, self.categories, self.rows, "2024-03")

        self.assertEqual(len(statuses), 1)
        status = statuses[0]
        self.assertEqual(status.category_name, "Food")
        self.assertEqual(status.spent, Decimal("50"))
        self.assertEqual(status.remaining, Decimal("150"))
        self.assertEqual(status.percent_used, 25.0)
        self.assertFalse(status.over_budget)

    def test_unbudgeted_categories_are_expense_only(self) -> None:
        budgets = [Budget(id="b1", category_id="c1", limit=Decimal("200"), month="2024-03")]
        names = [c.name for c in unbudgeted_categories(self.categories, budgets, "2024-03")]
        self.assertEqual(names, ["Rent"])


if __name__ == "__main__":
    unittest.main()
