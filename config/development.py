import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timekeeping_db"),
}

DEBUG = True

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
LOG_JSON = bool(int(os.getenv("LOG_JSON", "0")))

# Attendance classifier knobs
EXPECTED_TIME_IN = os.getenv("EXPECTED_TIME_IN", "08:00")
DEFAULT_BREAK_MINUTES = int(os.getenv("DEFAULT_BREAK_MINUTES", "60"))
STANDARD_WORK_MINUTES = int(os.getenv("STANDARD_WORK_MINUTES", "480"))

# Years (back, forward) a leave request may target
LEAVE_BANK_YEAR_WINDOW = (
    int(os.getenv("LEAVE_BANK_YEARS_BACK", "5")),
    int(os.getenv("LEAVE_BANK_YEARS_FORWARD", "2")),
)

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
