"""
Application configuration, read from the environment once at startup.
"""

import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./bookstore.db")
SQL_ECHO = os.getenv("SQL_ECHO", "0") == "1"

SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")
TOKEN_EXPIRY_MINUTES = int(os.getenv("TOKEN_EXPIRY_MINUTES", "1440"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

SEED_DATA = os.getenv("SEED_DATA", "0") == "1"
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

DEFAULT_REVENUE_DAYS = int(os.getenv("DEFAULT_REVENUE_DAYS", "30"))
