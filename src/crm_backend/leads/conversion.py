"""Lead -> client conversion.

The client insert and the lead update must land together. Where the store
offers transactions both writes share one session; otherwise the lead update
is conditional on the lead still having no client, and a lost race deletes the
client that was just created.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional, Protocol, TypeVar

from ..auth.policy import Action, Resource, ensure_owner
from ..clients.model import Client
from ..clients.repository import ClientRepository
from ..common.datetime_utils import now_local
from ..core.exceptions import ConflictError, NotFoundError
from ..users.model import User
from .model import Lead
from .repository import LeadRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")

ALREADY_CONVERTED = "Lead already converted to client"


class TransactionRunner(Protocol):
    def run(self, work: Callable[[Optional[Any]], T]) -> T:
        raise NotImplementedError


@dataclass(frozen=True)
class ConversionResult:
    lead: Lead
    client: Client


def conversion_note(when: datetime) -> str:
    return f"Converted from lead on {when.month}/{when.day}/{when.year}"


class LeadConversionService:
    def __init__(self, leads: LeadRepository, clients: ClientRepository, transactions: TransactionRunner):
        self._leads = leads
        self._clients = clients
        self._transactions = transactions

    def convert(self, caller: User, lead_id: str) -> ConversionResult:
        lead = self._leads.get_by_id(lead_id)
        if not lead:
            raise NotFoundError("Lead not found")
        if lead.is_converted:
            raise ConflictError(ALREADY_CONVERTED)
        ensure_owner(caller.user_id, caller.role, Resource.LEAD, Action.CONVERT, lead)

        converted_at = now_local()

        def work(session: Optional[Any]) -> ConversionResult:
            client = self._clients.create_client(
                name=lead.name,
                email=lead.email,
                phone=lead.phone,
                description=conversion_note(converted_at),
                session=session,
            )
            updated = self._leads.mark_converted(lead.lead_id, client.client_id, converted_at, session=session)
            if updated is None:
                if session is None:
                    # No transaction to roll back.
                    self._clients.delete_by_id(client.client_id)
                    logger.info("Removed client %s after losing conversion race on lead %s", client.client_id, lead.lead_id)
                raise ConflictError(ALREADY_CONVERTED)
            return ConversionResult(lead=updated, client=client)

        result = self._transactions.run(work)
        logger.info("Lead %s converted to client %s by %s", lead.lead_id, result.client.client_id, caller.user_id)
        return result
