import os
from dotenv import load_dotenv
from pathlib import Path

# Go up one level from newsdesk/ to root/
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# Generation service (the client itself is built lazily by llm.GenerationService)
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

# Storage
DB_URL = os.getenv("DB_URL", "sqlite:///newsdesk.db")

# Ingestion / retention
TIMEZONE = os.getenv("TIMEZONE", "America/Lima")
FEED_TIMEOUT_SECONDS = float(os.getenv("FEED_TIMEOUT_SECONDS", "30"))
RETENTION_HOURS = int(os.getenv("RETENTION_HOURS", "24"))
MORNING_INGEST_HOUR = int(os.getenv("MORNING_INGEST_HOUR", "8"))
EVENING_INGEST_HOUR = int(os.getenv("EVENING_INGEST_HOUR", "17"))
SWEEP_INTERVAL_MINUTES = int(os.getenv("SWEEP_INTERVAL_MINUTES", "60"))

# Admin endpoints (ingest/sweep)
ADMIN_API_KEY = os.getenv("ADMIN_API_KEY", "")
