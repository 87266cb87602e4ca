import os


class Config:
    # Security
    SECRET_KEY = os.getenv("SECRET_KEY", "dev_secret_key_change_in_production")

    # Database
    DATABASE_URL = os.getenv("DATABASE_URL")

    # Scheduler (cron endpoint + worker)
    CRON_SECRET = os.getenv("CRON_SECRET")
    GENERATOR_INTERVAL_SECONDS = int(os.getenv("GENERATOR_INTERVAL_SECONDS", "300"))

    # Operator-side API client
    API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8080")
    API_TIMEOUT_SECONDS = float(os.getenv("API_TIMEOUT_SECONDS", "15"))

    # Rate limiting
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")


config = Config()
