import os

# Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./inventory.db")
DB_BUSY_TIMEOUT = float(os.getenv("DB_BUSY_TIMEOUT", "30"))
DB_BUSY_RETRIES = int(os.getenv("DB_BUSY_RETRIES", "2"))
DB_BUSY_BACKOFF = float(os.getenv("DB_BUSY_BACKOFF", "0.1"))

# HTTP
PORT = int(os.getenv("PORT", "3001"))
CORS_ORIGIN = os.getenv("CORS_ORIGIN", "http://localhost:5173")
DEBUG = os.getenv("DEBUG", "false").lower() in ("1", "true", "yes")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Restock lifecycle
RESTOCK_STRICT_TRANSITIONS = os.getenv("RESTOCK_STRICT_TRANSITIONS", "false").lower() in ("1", "true", "yes")

# Audit windows are day counts; anything outside this range is rejected
MAX_WINDOW_DAYS = 365
