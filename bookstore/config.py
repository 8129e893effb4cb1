from typing import Optional
from pydantic_settings import BaseSettings
from urllib.parse import quote_plus

class Settings(BaseSettings):
    postgres_user: str = "bookstore"
    postgres_password: str = "bookstore"
    postgres_db: str = "bookstore"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    # full URL override, used by tests and local sqlite runs
    database_url_override: Optional[str] = None

    secret_key: str = "change-me"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    ENV: str = "local"

    # checkout
    order_number_prefix: str = "BL"
    order_number_max_retries: int = 5
    default_exchange_rate_eur_to_all: float = 100.0
    payment_expiry_days: int = 7

    # rentals
    late_fee_daily_rate: float = 0.1
    single_read_access_limit: Optional[int] = None

    # shared secret the payment processor sends on status callbacks
    payment_webhook_secret: str = ""

    cors_origins: str = "http://localhost:3000,http://localhost:5173"
    log_level: str = "INFO"

    @property
    def database_url(self):
        if self.database_url_override:
            return self.database_url_override
        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"

settings = Settings()
