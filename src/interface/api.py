from __future__ import annotations

import datetime as dt
from contextlib import asynccontextmanager
from dataclasses import asdict
from decimal import Decimal
from typing import Any, AsyncIterator, Optional

from fastapi import FastAPI, HTTPException, Response
from pydantic import BaseModel

from application.actions import AddEntity, DeleteEntity, SetCurrentPeriod, SetFilterState, UpdateEntity
from application.aggregation import total_balance, unbudgeted_categories
from application.charts import (
    account_activity,
    calendar_cells,
    category_breakdown,
    category_slices,
    category_totals,
    flow_series,
    income_expense_overview,
)
from application.forms import BudgetCategoryError, DuplicateBudgetError, build_account, build_budget, build_category, build_transaction
from application.periods import format_currency, format_percentage
from application.selectors import (
    accounts_with_balances,
    budgets_for_current_month,
    categories_of_kind,
    filtered_transactions,
    period_summary,
    selected_month,
)
from application.store import AppStore
from domain.models import BudgetStatus, CategoryKind, Resource, TransactionKind
from domain.schemas import AccountForm, BudgetForm, CategoryForm, FilterPatch, TransactionForm
from interface.cli import build_store


class PeriodUpdate(BaseModel):
    date: dt.date


def _find(store: AppStore, resource: Resource, entity_id: str) -> Any:
    for item in store.state.collection(resource):
        if item.id == entity_id:
            return item
    raise HTTPException(status_code=404, detail=f"{resource.value} item not found: {entity_id}")


def _budget_progress(status: BudgetStatus) -> dict[str, Any]:
    # Properties are not part of the dataclass fields, so they are added by hand.
    return {
        **asdict(status),
        "percent_used": status.percent_used,
        "percent_label": format_percentage(status.percent_used),
        "over_budget": status.over_budget,
    }


def _session_status(store: AppStore) -> dict[str, Any]:
    state = store.state
    return {
        "filter_state": state.filter_state.model_dump(mode="json"),
        "current_period": state.current_period.isoformat(),
        "loading": {r.value: v for r, v in state.loading.items()},
        "errors": {r.value: v for r, v in state.errors.items()},
        "pending_writes": store.pending,
    }


def create_app(store: AppStore) -> FastAPI:
    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        # Background writes still in flight finish before the loop goes away.
        await store.drain()

    app = FastAPI(title="Wallet Ledger API", lifespan=lifespan)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    # ---- session / filters ----
    @app.post("/session/load")
    async def load() -> dict[str, Any]:
        await store.load_all()
        return _session_status(store)

    @app.post("/session/sign-out")
    async def sign_out() -> dict[str, Any]:
        await store.sign_out()
        return _session_status(store)

    @app.get("/state")
    async def state() -> dict[str, Any]:
        return _session_status(store)

    @app.patch("/filters")
    async def patch_filters(patch: FilterPatch) -> dict[str, Any]:
        store.dispatch(SetFilterState(patch.as_patch()))
        return _session_status(store)

    @app.put("/period")
    async def set_period(update: PeriodUpdate) -> dict[str, Any]:
        store.dispatch(SetCurrentPeriod(update.date))
        return _session_status(store)

    @app.get("/summary")
    async def summary() -> dict[str, Any]:
        result = period_summary(store.state)
        return {
            "summary": result,
            "formatted": {
                "income": format_currency(result.total_income),
                "expense": format_currency(result.total_expense),
                "balance": format_currency(result.balance),
            },
        }

    # ---- transactions ----
    @app.get("/transactions")
    async def list_transactions() -> list[Any]:
        return filtered_transactions(store.state)

    @app.post("/transactions", status_code=201)
    async def create_transaction(form: TransactionForm) -> Any:
        transaction = build_transaction(form)
        store.submit(AddEntity(Resource.TRANSACTIONS, transaction))
        return transaction

    @app.put("/transactions/{transaction_id}")
    async def update_transaction(transaction_id: str, form: TransactionForm) -> Any:
        transaction = build_transaction(form, _find(store, Resource.TRANSACTIONS, transaction_id))
        store.submit(UpdateEntity(Resource.TRANSACTIONS, transaction))
        return transaction

    @app.delete("/transactions/{transaction_id}", status_code=204)
    async def delete_transaction(transaction_id: str) -> Response:
        store.submit(DeleteEntity(Resource.TRANSACTIONS, transaction_id))
        return Response(status_code=204)

    # ---- categories ----
    @app.get("/categories")
    async def list_categories(type: Optional[CategoryKind] = None) -> list[Any]:
        if type is None:
            return list(store.state.categories)
        return categories_of_kind(store.state, type)

    @app.post("/categories", status_code=201)
    async def create_category(form: CategoryForm) -> Any:
        category = build_category(form)
        store.submit(AddEntity(Resource.CATEGORIES, category))
        return category

    @app.put("/categories/{category_id}")
    async def update_category(category_id: str, form: CategoryForm) -> Any:
        category = build_category(form, _find(store, Resource.CATEGORIES, category_id))
        store.submit(UpdateEntity(Resource.CATEGORIES, category))
        return category

    @app.delete("/categories/{category_id}", status_code=204)
    async def delete_category(category_id: str) -> Response:
        store.submit(DeleteEntity(Resource.CATEGORIES, category_id))
        return Response(status_code=204)

    # ---- accounts ----
    @app.get("/accounts")
    async def list_accounts() -> dict[str, Any]:
        rows = accounts_with_balances(store.state)
        return {"accounts": rows, "total_balance": total_balance(rows)}

    @app.post("/accounts", status_code=201)
    async def create_account(form: AccountForm) -> Any:
        account = build_account(form)
        store.submit(AddEntity(Resource.ACCOUNTS, account))
        return account

    @app.put("/accounts/{account_id}")
    async def update_account(account_id: str, form: AccountForm) -> Any:
        account = build_account(form, _find(store, Resource.ACCOUNTS, account_id))
        store.submit(UpdateEntity(Resource.ACCOUNTS, account))
        return account

    @app.delete("/accounts/{account_id}", status_code=204)
    async def delete_account(account_id: str) -> Response:
        store.submit(DeleteEntity(Resource.ACCOUNTS, account_id))
        return Response(status_code=204)

    # ---- budgets (written remotely before they appear locally) ----
    def _budget_overview() -> dict[str, Any]:
        state = store.state
        month = selected_month(state)
        rows = budgets_for_current_month(state)
        return {
            "month": month,
            "budgets": [_budget_progress(b) for b in rows],
            "total_budget": sum((b.limit for b in rows), Decimal("0")),
            "total_spent": sum((b.spent for b in rows), Decimal("0")),
            "unbudgeted_categories": unbudgeted_categories(state.categories, state.budgets, month),
        }

    @app.get("/budgets")
    async def list_budgets() -> dict[str, Any]:
        return _budget_overview()

    def _draft_budget(form: BudgetForm, existing: Any = None) -> Any:
        try:
            return build_budget(form, store.state, existing)
        except DuplicateBudgetError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except BudgetCategoryError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    async def _write_budget(action: Any) -> None:
        if not await store.dispatch_async(action):
            raise HTTPException(status_code=502, detail=store.state.errors[Resource.BUDGETS])

    @app.post("/budgets", status_code=201)
    async def create_budget(form: BudgetForm) -> dict[str, Any]:
        budget = _draft_budget(form)
        await _write_budget(AddEntity(Resource.BUDGETS, budget))
        return _budget_overview()

    @app.put("/budgets/{budget_id}")
    async def update_budget(budget_id: str, form: BudgetForm) -> dict[str, Any]:
        budget = _draft_budget(form, _find(store, Resource.BUDGETS, budget_id))
        await _write_budget(UpdateEntity(Resource.BUDGETS, budget))
        return _budget_overview()

    @app.delete("/budgets/{budget_id}", status_code=204)
    async def delete_budget(budget_id: str) -> Response:
        await _write_budget(DeleteEntity(Resource.BUDGETS, budget_id))
        return Response(status_code=204)

    # ---- analysis ----
    @app.get("/analysis/overview")
    async def overview() -> list[Any]:
        return income_expense_overview(filtered_transactions(store.state))

    @app.get("/analysis/categories")
    async def categories_analysis(type: TransactionKind = TransactionKind.EXPENSE) -> dict[str, Any]:
        rows = filtered_transactions(store.state)
        return {"totals": category_totals(rows, type), "slices": category_slices(rows, type)}

    @app.get("/analysis/categories/{name}")
    async def category_detail(name: str, type: TransactionKind = TransactionKind.EXPENSE) -> dict[str, Any]:
        rows, total = category_breakdown(filtered_transactions(store.state), name, type)
        return {"category": name, "transactions": rows, "total": total}

    @app.get("/analysis/accounts")
    async def accounts_analysis() -> list[Any]:
        return account_activity(filtered_transactions(store.state))

    @app.get("/analysis/flow")
    async def flow(type: TransactionKind = TransactionKind.EXPENSE) -> list[Any]:
        state = store.state
        return flow_series(filtered_transactions(state), state.filter_state.period, state.current_period, type)

    @app.get("/analysis/calendar")
    async def calendar(type: TransactionKind = TransactionKind.EXPENSE) -> list[Any]:
        state = store.state
        return calendar_cells(filtered_transactions(state), state.filter_state.period, state.current_period, type)

    return app


store = build_store()
app = create_app(store)
