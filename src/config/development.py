import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

MONGO_CONFIG = {
    "uri": os.getenv("MONGO_URI", "mongodb://localhost:27017"),
    "database": os.getenv("MONGO_DB", "crm_dev"),
    "server_selection_timeout_ms": int(os.getenv("MONGO_TIMEOUT_MS", "5000")),
}

TOKEN_EXPIRES_DAYS = int(os.getenv("TOKEN_EXPIRES_DAYS", "30"))
COOKIE_SECURE = False

AVATAR_STORAGE = {
    "bucket": os.getenv("AVATAR_BUCKET", ""),
    "region": os.getenv("AVATAR_REGION", "us-east-1"),
    "endpoint_url": os.getenv("AVATAR_ENDPOINT_URL"),
    "public_base_url": os.getenv("AVATAR_PUBLIC_BASE_URL"),
}

CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

DEBUG = True

# If enabled, app will create collection indexes on startup (idempotent)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also create the first admin account on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

SEED_ADMIN_NAME = os.getenv("SEED_ADMIN_NAME", "Administrator")
SEED_ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@example.com")
SEED_ADMIN_PHONE = os.getenv("SEED_ADMIN_PHONE", "+10000000000")
SEED_ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "admin123")
