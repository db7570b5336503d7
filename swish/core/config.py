# swish/core/config.py

from decimal import Decimal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # --- JWT Config ---
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # --- Database Config ---
    DB_HOST: str
    DB_PORT: int
    DB_NAME: str
    DB_USER: str
    DB_PASS: str
    DB_ECHO: bool = False

    # --- Payment Vault ---
    # 32 bytes, hex encoded (64 characters)
    AES_ENC_SECRET: str

    # --- Settlement ---
    ENVIRONMENT: str = "development"
    ENABLE_RANDOM_PAYMENT_FAILURES: bool = False
    PAYMENT_DELAY_SECONDS: float = 0.1
    PAYMENT_MAX_AMOUNT: Decimal = Decimal("10000")
    SETTLEMENT_TIMEOUT_SECONDS: float = 10.0

    # --- Orders / Mail ---
    SHIPPING_COST: Decimal = Decimal("24.00")
    PUBLIC_BASE_URL: str = "http://localhost:8000"
    SMTP_HOST: str | None = None
    SMTP_PORT: int | None = None
    SMTP_USER: str | None = None
    SMTP_PASS: str | None = None
    SMTP_SECURE: bool = False
    SMTP_FROM: str | None = None

    @property
    def database_url(self) -> str:
        return (
            f"postgresql+asyncpg://"
            f"{self.DB_USER}:{self.DB_PASS}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    @property
    def sync_database_url(self) -> str:
        return (
            f"postgresql://"
            f"{self.DB_USER}:{self.DB_PASS}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
