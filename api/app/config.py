import os

from dotenv import load_dotenv

# .env is optional; real environment variables always win
load_dotenv(override=False)

# DATABASE_URL is what most hosts inject; DB_URL kept for local overrides
DB_URL = os.getenv("DATABASE_URL") or os.getenv("DB_URL", "sqlite:///./creditsea.db")

# PostgreSQL schema for the report tables (SQLite has no schemas)
CREDITSEA_SCHEMA = os.getenv("CREDITSEA_SCHEMA", "creditsea")

# Format: comma-separated list of origins, e.g. "http://localhost:3000,https://yourdomain.com"
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]

LOG_FORMAT = os.getenv("LOG_FORMAT", "json").lower()
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

MAX_BATCH_FILES = int(os.getenv("MAX_BATCH_FILES", "10"))

ENV = os.getenv("ENV", "development").lower()
