from __future__ import annotations

import argparse
import asyncio
import json
import os
from datetime import date
from typing import Any

from application.actions import SetCurrentPeriod, SetFilterState
from application.periods import format_currency
from application.selectors import accounts_with_balances, budgets_for_current_month, period_summary
from application.store import AppStore
from domain.models import PeriodKind
from infrastructure.auth.provider import StaticAuth
from infrastructure.supabase.auth import SupabaseAuth
from infrastructure.supabase.client import json_default
from infrastructure.sync.adapter import RemoteSyncAdapter
from infrastructure.sync.memory_adapter import InMemorySyncAdapter
from infrastructure.sync.supabase_adapter import SupabaseSyncAdapter


def build_adapter() -> RemoteSyncAdapter:
    backend = os.getenv("SYNC_BACKEND", "supabase").strip().lower()
    if backend == "memory":
        return InMemorySyncAdapter(StaticAuth(os.getenv("LOCAL_USER_ID", "local-user")))
    return SupabaseSyncAdapter(SupabaseAuth())


def build_store(adapter: RemoteSyncAdapter | None = None) -> AppStore:
    return AppStore(adapter or build_adapter())


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="wallet-ledger", description="Print the period summary for the signed-in user.")
    parser.add_argument("--period", choices=[p.value for p in PeriodKind], default=PeriodKind.MONTHLY.value)
    parser.add_argument("--date", type=date.fromisoformat, default=None, help="Reference date (YYYY-MM-DD); defaults to today.")
    parser.add_argument("--search", default="", help="Match against transaction notes and category names.")
    return parser.parse_args(argv)


async def _summarize(store: AppStore, args: argparse.Namespace) -> dict[str, Any]:
    await store.load_all()
    if args.date:
        store.dispatch(SetCurrentPeriod(args.date))
    store.dispatch(SetFilterState({"period": args.period, "search_query": args.search}))

    state = store.state
    summary = period_summary(state)
    return {
        "summary": summary,
        "formatted": {
            "income": format_currency(summary.total_income),
            "expense": format_currency(summary.total_expense),
            "balance": format_currency(summary.balance),
        },
        "accounts": accounts_with_balances(state),
        "budgets": budgets_for_current_month(state),
        "errors": {r.value: msg for r, msg in state.errors.items() if msg},
    }


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    store = build_store()
    payload = asyncio.run(_summarize(store, args))
    print(json.dumps(payload, indent=2, default=json_default))
    return 1 if payload["errors"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
