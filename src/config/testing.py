import os

SECRET_KEY = "test-secret"

MONGO_CONFIG = {
    "uri": os.getenv("MONGO_URI", "mongodb://localhost:27017"),
    "database": os.getenv("MONGO_DB", "crm_test"),
    "server_selection_timeout_ms": 1000,
}

TOKEN_EXPIRES_DAYS = 1
COOKIE_SECURE = False

AVATAR_STORAGE = {"bucket": ""}

CORS_ORIGINS = ""
LOG_LEVEL = "WARNING"

DEBUG = False
TESTING = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
