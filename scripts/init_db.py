from __future__ import annotations

import importlib

from dotenv import load_dotenv

from config import get_settings_module

from crm_backend.database.bootstrap import apply_indexes, list_collections
from crm_backend.database.connection import DatabaseConnection, MongoConfig


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    mongo = dict(settings.MONGO_CONFIG)

    conn = DatabaseConnection.get_instance(MongoConfig(**mongo))
    try:
        apply_indexes(conn.db)
        collections = list_collections(conn.db)
    finally:
        conn.close()
    print(f"OK: Indexes applied -> {mongo['uri']}/{mongo['database']} (collections={len(collections)})")


if __name__ == "__main__":
    main()
