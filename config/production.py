import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timekeeping_db"),
}

DEBUG = False

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON = bool(int(os.getenv("LOG_JSON", "1")))

EXPECTED_TIME_IN = os.getenv("EXPECTED_TIME_IN", "08:00")
DEFAULT_BREAK_MINUTES = int(os.getenv("DEFAULT_BREAK_MINUTES", "60"))
STANDARD_WORK_MINUTES = int(os.getenv("STANDARD_WORK_MINUTES", "480"))

LEAVE_BANK_YEAR_WINDOW = (
    int(os.getenv("LEAVE_BANK_YEARS_BACK", "5")),
    int(os.getenv("LEAVE_BANK_YEARS_FORWARD", "2")),
)

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
