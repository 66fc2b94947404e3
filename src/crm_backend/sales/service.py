from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Mapping, Optional, Sequence

from ..auth.policy import Action, Resource, ensure_owner
from ..clients.repository import ClientRepository
from ..common.datetime_utils import now_local, parse_iso_datetime
from ..common.validators import optional_text, require_enum, require_non_negative, round_currency
from ..core.enums import PaymentMethod
from ..core.exceptions import NotFoundError, ValidationError
from ..projects.repository import ProjectRepository
from ..users.model import User
from ..users.repository import UserRepository
from .model import Sale, SalesStats
from .repository import SaleRepository

logger = logging.getLogger(__name__)

# Fixed at creation; updates silently ignore them.
IMMUTABLE_FIELDS = ("salesperson", "project", "client")


def _clean(data: Mapping[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    if "amount" in data:
        if data["amount"] is None or data["amount"] == "":
            raise ValidationError("Please provide an amount")
        out["amount"] = round_currency(require_non_negative(data["amount"], "Amount"))
    if "sale_date" in data:
        out["sale_date"] = parse_iso_datetime(data["sale_date"], "sale date") or now_local()
    if "payment_method" in data:
        if not data["payment_method"]:
            raise ValidationError("Please provide a payment method")
        out["payment_method"] = require_enum(PaymentMethod, data["payment_method"], "payment method")
    if "description" in data:
        out["description"] = optional_text(data["description"], "Description", 1000)
    return out


class SaleService:
    def __init__(
        self,
        sales: SaleRepository,
        users: UserRepository,
        projects: ProjectRepository,
        clients: ClientRepository,
    ):
        self._sales = sales
        self._users = users
        self._projects = projects
        self._clients = clients

    def create_sale(self, caller: User, data: Mapping[str, Any]) -> Sale:
        if not self._users.get_by_id(caller.user_id):
            raise NotFoundError("Salesperson not found")

        project_id, client_id = data.get("project"), data.get("client")
        if not project_id:
            raise ValidationError("Please provide a project")
        if not client_id:
            raise ValidationError("Please provide a client")
        if not self._projects.get_by_id(str(project_id)):
            raise NotFoundError("Project not found")
        if not self._clients.get_by_id(str(client_id)):
            raise NotFoundError("Client not found")

        fields = _clean(
            {
                "amount": data.get("amount"),
                "payment_method": data.get("payment_method"),
                "sale_date": data.get("sale_date"),
                **{k: v for k, v in data.items() if k not in IMMUTABLE_FIELDS},
            }
        )
        fields.update(project=str(project_id), client=str(client_id), salesperson=caller.user_id)
        sale = self._sales.create_sale(fields)
        logger.info("Sale %s recorded by %s for %.2f", sale.sale_id, caller.user_id, sale.amount)
        return sale

    def list_sales(self) -> Sequence[Sale]:
        return self._sales.list_all()

    def stats(self) -> Optional[SalesStats]:
        summary = self._sales.summarize()
        if summary is None:
            return None
        return replace(summary, avg_sale=round_currency(summary.avg_sale))

    def sales_between(self, start_raw: Optional[str], end_raw: Optional[str]) -> Sequence[Sale]:
        if not start_raw or not end_raw:
            raise ValidationError("Please provide both startDate and endDate")
        start = parse_iso_datetime(start_raw, "startDate")
        end = parse_iso_datetime(end_raw, "endDate")
        return self._sales.list_between(start, end)

    def my_sales(self, caller: User) -> Sequence[Sale]:
        return self._sales.list_by_salesperson(caller.user_id)

    def sales_for_project(self, project_id: str) -> Sequence[Sale]:
        return self._sales.list_by_project(project_id)

    def sales_for_client(self, client_id: str) -> Sequence[Sale]:
        return self._sales.list_by_client(client_id)

    def _load(self, sale_id: str) -> Sale:
        sale = self._sales.get_by_id(sale_id)
        if not sale:
            raise NotFoundError("Sale not found")
        return sale

    def get_sale(self, caller: User, sale_id: str) -> Sale:
        sale = self._load(sale_id)
        ensure_owner(caller.user_id, caller.role, Resource.SALE, Action.READ, sale)
        return sale

    def update_sale(self, caller: User, sale_id: str, data: Mapping[str, Any]) -> Sale:
        sale = self._load(sale_id)
        ensure_owner(caller.user_id, caller.role, Resource.SALE, Action.UPDATE, sale)
        changes = _clean({k: v for k, v in data.items() if k not in IMMUTABLE_FIELDS})
        updated = self._sales.update_sale(sale_id, changes)
        if not updated:
            raise NotFoundError("Sale not found")
        return updated

    def delete_sale(self, sale_id: str) -> None:
        if not self._sales.delete_by_id(sale_id):
            raise NotFoundError("Sale not found")
