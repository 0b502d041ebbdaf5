"""Settings shared by every environment.

Environment modules start from these values and override what differs.
"""

import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "eduride"),
    # Seconds; a lookup that times out is treated as a persistence failure.
    "connection_timeout": int(os.getenv("DB_CONNECT_TIMEOUT", "5")),
}

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Shared secret for the dashboard read endpoints (header X-API-Key). Empty disables them.
ADMIN_API_KEY = os.getenv("ADMIN_API_KEY", "")

SESSION_RESOLVE_ATTEMPTS = int(os.getenv("SESSION_RESOLVE_ATTEMPTS", "3"))
NOTIFY_WORKERS = int(os.getenv("NOTIFY_WORKERS", "4"))
NOTIFY_MAX_ATTEMPTS = int(os.getenv("NOTIFY_MAX_ATTEMPTS", "5"))
# Pending notifications older than this are treated as lost by a crashed worker.
NOTIFY_STALE_PENDING_MINUTES = int(os.getenv("NOTIFY_STALE_PENDING_MINUTES", "10"))

TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID", "")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN", "")
TWILIO_PHONE_NUMBER = os.getenv("TWILIO_PHONE_NUMBER", "")

SMTP_HOST = os.getenv("EMAIL_HOST", "")
SMTP_PORT = int(os.getenv("EMAIL_PORT", "587"))
SMTP_USER = os.getenv("EMAIL_USER", "")
SMTP_PASSWORD = os.getenv("EMAIL_PASS", "")
SMTP_SSL = os.getenv("EMAIL_SECURE", "false").lower() == "true"
EMAIL_FROM = os.getenv("EMAIL_FROM", "noreply@eduride.com")

DEBUG = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
