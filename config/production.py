import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "site_attendance"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

CIVIL_TIMEZONE = os.getenv("CIVIL_TIMEZONE", "Europe/Prague")
REPAIR_WINDOW_DAYS = int(os.getenv("REPAIR_WINDOW_DAYS", "30"))
REPORT_DEFAULT_DAYS = int(os.getenv("REPORT_DEFAULT_DAYS", "30"))
