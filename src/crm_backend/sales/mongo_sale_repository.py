from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from pymongo import DESCENDING, ReturnDocument

from ..common.datetime_utils import now_local
from ..core.enums import PaymentMethod
from ..database.connection import DatabaseConnection
from ..database.mongo_base import id_str, stamp_new, to_object_id
from .model import Sale, SalesStats
from .repository import SaleRepository

_FIELD_MAP = {
    "project": "project",
    "client": "client",
    "amount": "amount",
    "sale_date": "saleDate",
    "payment_method": "paymentMethod",
    "salesperson": "salesperson",
    "description": "description",
}
_REFERENCES = ("project", "client", "salesperson")


def _to_sale(doc: Mapping[str, Any]) -> Sale:
    return Sale(
        sale_id=str(doc["_id"]),
        project=id_str(doc.get("project")),
        client=id_str(doc.get("client")),
        amount=float(doc.get("amount", 0)),
        sale_date=doc["saleDate"],
        payment_method=PaymentMethod(doc["paymentMethod"]),
        salesperson=id_str(doc.get("salesperson")),
        description=doc.get("description"),
        created_at=doc.get("createdAt"),
        updated_at=doc.get("updatedAt"),
    )


def _to_doc(fields: Mapping[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for k, v in fields.items():
        if k not in _FIELD_MAP:
            continue
        if k in _REFERENCES:
            v = to_object_id(v)
        elif isinstance(v, Enum):
            v = v.value
        out[_FIELD_MAP[k]] = v
    return out


class MongoSaleRepository(SaleRepository):
    def __init__(self, conn: DatabaseConnection):
        self._sales = conn.db.sales

    def _find(self, query: Mapping[str, Any]) -> Sequence[Sale]:
        return [_to_sale(d) for d in self._sales.find(query).sort("saleDate", DESCENDING)]

    def get_by_id(self, sale_id: str) -> Optional[Sale]:
        oid = to_object_id(sale_id)
        if oid is None:
            return None
        doc = self._sales.find_one({"_id": oid})
        return _to_sale(doc) if doc else None

    def list_all(self) -> Sequence[Sale]:
        return self._find({})

    def list_between(self, start: datetime, end: datetime) -> Sequence[Sale]:
        return self._find({"saleDate": {"$gte": start, "$lte": end}})

    def list_by_salesperson(self, user_id: str) -> Sequence[Sale]:
        return self._find({"salesperson": to_object_id(user_id)})

    def list_by_project(self, project_id: str) -> Sequence[Sale]:
        return self._find({"project": to_object_id(project_id)})

    def list_by_client(self, client_id: str) -> Sequence[Sale]:
        return self._find({"client": to_object_id(client_id)})

    def summarize(self) -> Optional[SalesStats]:
        pipeline = [
            {
                "$group": {
                    "_id": None,
                    "total": {"$sum": "$amount"},
                    "avg": {"$avg": "$amount"},
                    "min": {"$min": "$amount"},
                    "max": {"$max": "$amount"},
                    "count": {"$sum": 1},
                }
            }
        ]
        rows = list(self._sales.aggregate(pipeline))
        if not rows:
            return None
        row = rows[0]
        return SalesStats(
            total_sales=float(row["total"]),
            avg_sale=float(row["avg"]),
            min_sale=float(row["min"]),
            max_sale=float(row["max"]),
            count=int(row["count"]),
        )

    def create_sale(self, fields: Mapping[str, Any]) -> Sale:
        doc = stamp_new(_to_doc(fields), now_local())
        res = self._sales.insert_one(doc)
        doc["_id"] = res.inserted_id
        return _to_sale(doc)

    def update_sale(self, sale_id: str, changes: Mapping[str, Any]) -> Optional[Sale]:
        oid = to_object_id(sale_id)
        if oid is None:
            return None
        update = _to_doc(changes)
        update["updatedAt"] = now_local()
        doc = self._sales.find_one_and_update(
            {"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER
        )
        return _to_sale(doc) if doc else None

    def delete_by_id(self, sale_id: str) -> bool:
        oid = to_object_id(sale_id)
        if oid is None:
            return False
        return self._sales.delete_one({"_id": oid}).deleted_count == 1
