import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_test_db"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

STORAGE = os.getenv("STORAGE", "memory")
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

MAX_BULK_SIZE = 50
REASON_MIN_LENGTH = 10
REASON_MAX_LENGTH = 500
NOTE_MAX_LENGTH = 500
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
