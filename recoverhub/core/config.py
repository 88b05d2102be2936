from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "RecoverHub"
    version: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    APP_URL: str = "http://localhost:3000"
    APP_DATABASE_DSN: str = "sqlite:////tmp/recoverhub.db"
    REDIS_URL: str = "redis://localhost:6379"

    # Credential vault (any string; the AES key is derived from it)
    ENCRYPTION_KEY: str = ""

    # Stripe webhooks: platform account and connected accounts are signed separately
    STRIPE_WEBHOOK_SECRET: str = ""
    STRIPE_CONNECT_WEBHOOK_SECRET: str = ""
    WEBHOOK_TOLERANCE_SECONDS: int = 300

    # Comma-separated price ids per platform tier
    STRIPE_PRICE_STARTER: str = ""
    STRIPE_PRICE_PRO: str = ""

    # Resend
    RESEND_API_KEY: str = ""
    RESEND_FROM_EMAIL: str = "RecoverHub <noreply@recoverhub.threestack.io>"
    RESEND_WEBHOOK_SECRET: str = ""

    # Worker
    WORKER_CONCURRENCY: int = 5
    SCAN_BATCH_SIZE: int = 50
    JOB_MAX_TRIES: int = 3
    RETRY_JOB_BACKOFF_SECONDS: int = 5
    DUNNING_JOB_BACKOFF_SECONDS: int = 10

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @property
    def starter_price_ids(self) -> set[str]:
        return {p.strip() for p in self.STRIPE_PRICE_STARTER.split(",") if p.strip()}

    @property
    def pro_price_ids(self) -> set[str]:
        return {p.strip() for p in self.STRIPE_PRICE_PRO.split(",") if p.strip()}


settings = Settings()
