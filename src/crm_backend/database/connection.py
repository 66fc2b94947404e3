from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from pymongo import MongoClient
from pymongo.client_session import ClientSession
from pymongo.database import Database

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class MongoConfig:
    uri: str
    database: str
    server_selection_timeout_ms: int = 5000


class DatabaseConnection:
    """Singleton-like MongoDB client holder.

    Note: MongoClient is thread-safe and pools connections, so one instance is
    shared by every request.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: MongoConfig):
        self._config = config
        self._client: Optional[MongoClient] = None
        self._supports_transactions: Optional[bool] = None

    @classmethod
    def get_instance(cls, config: MongoConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    @property
    def client(self) -> MongoClient:
        if self._client is None:
            self._client = MongoClient(
                self._config.uri,
                serverSelectionTimeoutMS=int(self._config.server_selection_timeout_ms),
                tz_aware=False,
            )
        return self._client

    @property
    def db(self) -> Database:
        return self.client[self._config.database]

    def supports_transactions(self) -> bool:
        """Multi-document transactions need a replica set or a sharded cluster."""

        if self._supports_transactions is None:
            hello = self.client.admin.command("hello")
            self._supports_transactions = bool(hello.get("setName")) or hello.get("msg") == "isdbgrid"
            if not self._supports_transactions:
                logger.warning("MongoDB deployment is standalone; multi-document transactions are unavailable")
        return self._supports_transactions

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None


class MongoTransactionRunner:
    """Run a unit of work inside one transaction when the deployment allows it.

    The callback receives the session to thread through repository calls, or
    None on a standalone server where callers rely on conditional writes and
    compensating actions instead.
    """

    def __init__(self, conn: DatabaseConnection):
        self._conn = conn

    def run(self, work: Callable[[Optional[ClientSession]], T]) -> T:
        if not self._conn.supports_transactions():
            return work(None)
        with self._conn.client.start_session() as session:
            return session.with_transaction(work)
