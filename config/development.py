import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "site_attendance"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

CIVIL_TIMEZONE = os.getenv("CIVIL_TIMEZONE", "Europe/Prague")
REPAIR_WINDOW_DAYS = int(os.getenv("REPAIR_WINDOW_DAYS", "30"))
REPORT_DEFAULT_DAYS = int(os.getenv("REPORT_DEFAULT_DAYS", "30"))
