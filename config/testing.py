import os

SECRET_KEY = "test-secret"
JWT_SECRET_KEY = "test-jwt-secret-key-with-enough-length"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "training_center_test"),
}

DEBUG = False
TESTING = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

CORS_ORIGINS = ["http://localhost"]

RATELIMIT_ENABLED = False
RATELIMIT_DEFAULT = "100 per 15 minutes"
RATELIMIT_LOGIN = "5 per 15 minutes"
RATELIMIT_STORAGE_URI = "memory://"

SESSION_COOKIE_SECURE = False

LOG_LEVEL = "WARNING"
LOG_FILE = ""
