from pathlib import Path
from typing import List, Literal

from pydantic import SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Yard Parking'
    VERSION: str = '0.1.0'
    DEBUG: bool = True  # Set to False in production

    # Logging
    LOG_LEVEL: str = ''  # Empty: DEBUG when DEBUG is on, INFO otherwise
    LOG_JSON: bool = False
    LOG_DIR: str = str(_PROJECT_ROOT / 'logs')  # DEBUG-only hourly files

    # Tracing
    OTEL_EXPORTER_OTLP_ENDPOINT: str = ''
    OTEL_CONSOLE_EXPORT: bool = False
    TRACE_SAMPLE_RATIO: float = 1.0

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = []  # add your frontend URL here

    @field_validator('BACKEND_CORS_ORIGINS', mode='before')
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and not v.startswith('['):
            return [i.strip() for i in v.split(',')]
        elif isinstance(v, list):
            return v
        return []

    # PostgreSQL
    POSTGRES_SERVER: str = 'localhost'
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = 'postgres'
    POSTGRES_PASSWORD: SecretStr = SecretStr('postgres')
    POSTGRES_DB: str = 'yard_parking'
    DATABASE_URL: str = ''  # Full async URL, overrides the POSTGRES_* parts when set

    DB_POOL_SIZE: int = 10
    DB_POOL_MAX_OVERFLOW: int = 5
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600
    DB_POOL_PRE_PING: bool = True

    @property
    def DATABASE_URL_ASYNC(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f'postgresql+asyncpg://{self.POSTGRES_USER}:'
            f'{self.POSTGRES_PASSWORD.get_secret_value()}@'
            f'{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}'
        )

    # Booking rules
    DEFAULT_TIMEZONE: str = 'America/New_York'
    MAX_SPOTS_PER_ORDER: int = 10
    HOLD_TTL_MINUTES: int = 45  # Must outlive CHECKOUT_SESSION_TTL_MINUTES
    CHECKOUT_SESSION_TTL_MINUTES: int = 35  # Stripe minimum is 30
    HOLD_SWEEP_INTERVAL_SECONDS: int = 60
    ENABLE_HOLD_SWEEPER: bool = True
    LEDGER_BACKEND: Literal['sql', 'memory'] = 'sql'

    # Payment gateway
    PAYMENT_GATEWAY: Literal['mock', 'stripe'] = 'mock'
    PAYMENT_CURRENCY: str = 'usd'
    STRIPE_SECRET_KEY: SecretStr = SecretStr('')
    STRIPE_WEBHOOK_SECRET: SecretStr = SecretStr('')
    MOCK_WEBHOOK_SECRET: SecretStr = SecretStr('whsec_mock')
    PUBLIC_BASE_URL: str = 'http://localhost:8000'

    # Notifications
    EMAIL_ENABLED: bool = False
    EMAIL_FROM: str = 'Yard Parking <tickets@yardparking.local>'
    SMS_ENABLED: bool = False
    SMS_FROM_NUMBER: str = ''

    @model_validator(mode='after')
    def hold_outlives_checkout(self) -> 'Settings':
        if self.HOLD_TTL_MINUTES <= self.CHECKOUT_SESSION_TTL_MINUTES:
            raise ValueError('HOLD_TTL_MINUTES must be greater than CHECKOUT_SESSION_TTL_MINUTES')
        return self


settings = Settings()  # type: ignore
