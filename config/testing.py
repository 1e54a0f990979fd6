import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timekeeping_test"),
}

DEBUG = False
TESTING = True

LOG_LEVEL = "WARNING"
LOG_JSON = False

EXPECTED_TIME_IN = "08:00"
DEFAULT_BREAK_MINUTES = 60
STANDARD_WORK_MINUTES = 480
LEAVE_BANK_YEAR_WINDOW = (5, 2)

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
