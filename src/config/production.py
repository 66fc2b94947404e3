import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

MONGO_CONFIG = {
    "uri": os.getenv("MONGO_URI", "mongodb://localhost:27017"),
    "database": os.getenv("MONGO_DB", "crm"),
    "server_selection_timeout_ms": int(os.getenv("MONGO_TIMEOUT_MS", "5000")),
}

TOKEN_EXPIRES_DAYS = int(os.getenv("TOKEN_EXPIRES_DAYS", "30"))
COOKIE_SECURE = True

AVATAR_STORAGE = {
    "bucket": os.getenv("AVATAR_BUCKET", ""),
    "region": os.getenv("AVATAR_REGION", "us-east-1"),
    "endpoint_url": os.getenv("AVATAR_ENDPOINT_URL"),
    "public_base_url": os.getenv("AVATAR_PUBLIC_BASE_URL"),
}

CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

DEBUG = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

SEED_ADMIN_NAME = os.getenv("SEED_ADMIN_NAME", "Administrator")
SEED_ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "")
SEED_ADMIN_PHONE = os.getenv("SEED_ADMIN_PHONE", "")
SEED_ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "")
