from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from domain.schemas import Budget

# Persisted budget rows keep the limit under a different column name.
BUDGET_LIMIT_COLUMN = "budget_limit"


class BudgetRow(BaseModel):
    """Budget record as the remote store returns it."""

    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: Optional[str] = None
    category_id: str
    budget_limit: Decimal = Decimal("0")
    month: str
    spent: Optional[Decimal] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_budget(self) -> Budget:
        spent = self.spent or Decimal("0")
        return Budget(
            id=self.id,
            category_id=self.category_id,
            category_name="",
            limit=self.budget_limit,
            spent=spent,
            remaining=self.budget_limit - spent,
            month=self.month,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class BudgetWrite(BaseModel):
    """Outgoing budget fields, renamed for the remote store."""

    category_id: Optional[str] = None
    limit: Optional[Decimal] = Field(default=None, serialization_alias=BUDGET_LIMIT_COLUMN)
    month: Optional[str] = None

    def to_row(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
