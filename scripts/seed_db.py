from __future__ import annotations

import importlib

from dotenv import load_dotenv

from config import get_settings_module

from crm_backend.database.bootstrap import ensure_admin_user
from crm_backend.database.connection import DatabaseConnection, MongoConfig


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    mongo = dict(settings.MONGO_CONFIG)

    conn = DatabaseConnection.get_instance(MongoConfig(**mongo))
    try:
        admin_id = ensure_admin_user(
            conn.db,
            name=settings.SEED_ADMIN_NAME,
            email=settings.SEED_ADMIN_EMAIL,
            phone=settings.SEED_ADMIN_PHONE,
            password=settings.SEED_ADMIN_PASSWORD,
        )
    finally:
        conn.close()

    if admin_id:
        print(f"OK: Seeded admin {settings.SEED_ADMIN_EMAIL} ({admin_id})")
    else:
        print("OK: An admin account already exists; nothing to seed")


if __name__ == "__main__":
    main()
