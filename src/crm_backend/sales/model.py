from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import PaymentMethod


@dataclass(frozen=True)
class Sale:
    """Domain entity: one payment against a project for a client.

    `amount` is always stored rounded to 2 decimals.
    """

    sale_id: str
    project: str
    client: str
    amount: float
    sale_date: datetime
    payment_method: PaymentMethod
    salesperson: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class SalesStats:
    total_sales: float
    avg_sale: float
    min_sale: float
    max_sale: float
    count: int
