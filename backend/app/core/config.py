"""
Pydantic Settings — centralized configuration loaded from environment variables.

Business settings (allow-lists, cutoff times, caps, recipients) live in the
``reconciliation_settings`` table and are read once per run.  Everything
here is deployment configuration.
"""

from pydantic_settings import BaseSettings

from app.core.constants import PipelineVariant, FlowType


class Settings(BaseSettings):
    # ── Database ──────────────────────────────
    POSTGRES_USER: str = "reconciliation_user"
    POSTGRES_PASSWORD: str = "reconciliation_pass"
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "reconciliation_db"

    @property
    def DATABASE_URL(self) -> str:
        """Async URL for app runtime (asyncpg)."""
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def DATABASE_URL_SYNC(self) -> str:
        """Sync URL for Alembic migrations (psycopg2)."""
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # ── Redis / Celery ────────────────────────
    REDIS_URL: str = "redis://localhost:6379/0"
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/1"

    # ── Logistics platform API ────────────────
    LOGISTICS_DAILY_SHIPMENTS_URL: str = "https://logistics.example.com/api/daily-shipments"
    LOGISTICS_SHIPMENT_URL: str = "https://logistics.example.com/api/shipment"
    LOGISTICS_CUSTOMER_URL: str = "https://logistics.example.com/api/customer"
    LOGISTICS_BEARER_TOKEN: str = ""
    LOGISTICS_TIMEOUT_SECONDS: float = 30.0

    # ── Underwriting partner API ──────────────
    UNDERWRITING_API_URL: str = "https://api.underwriting-partner.com/v1/policies"
    UNDERWRITING_BEARER_TOKEN: str = ""
    UNDERWRITING_TIMEOUT_SECONDS: float = 30.0

    # ── SMTP ──────────────────────────────────
    MAIL_HOST: str = ""
    MAIL_PORT: int = 587
    MAIL_USERNAME: str = ""
    MAIL_PASSWORD: str = ""
    MAIL_ENCRYPTION: str = "tls"          # tls | ssl
    MAIL_FROM_ADDRESS: str = ""

    # ── Reconciliation job ────────────────────
    RECONCILIATION_JOB_NAME: str = "shipment_daily_reconciliation"
    RECONCILIATION_VARIANT: PipelineVariant = PipelineVariant.CIP_WINDOW
    MANUAL_RUN_FLOW: FlowType = FlowType.TWO_PHASE
    RECONCILIATION_TIMEZONE: str = "Asia/Kolkata"
    RECONCILIATION_SCHEDULE_HOUR: int = 11
    RECONCILIATION_SCHEDULE_MINUTE: int = 0
    # Also the Celery hard time limit, so the lock outlives any run
    RUN_LOCK_TIMEOUT_SECONDS: int = 3 * 3600 + 60

    # Partner rate limits: pause after every lookup / submission
    LOOKUP_PACING_SECONDS: float = 0.5
    SUBMISSION_PACING_SECONDS: float = 1.0

    # Shipments originate in India and are insured in INR
    SOURCE_COUNTRY: str = "IN"
    LOCAL_CURRENCY: str = "INR"
    SUCCESS_SUMMARY_THRESHOLD: float = 80.0

    # ── Application ───────────────────────────
    APP_ENV: str = "development"
    # Comma-separated origins allowed by the policy viewer
    CORS_ORIGINS: str = "*"

    model_config = {"env_file": ["../.env", ".env"], "extra": "ignore"}


settings = Settings()
