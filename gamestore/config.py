from functools import lru_cache
from typing import Optional
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    ENV: str = "local"
    LOG_LEVEL: str = "INFO"

    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    postgres_db: str = "gamestore"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    secret_key: str = "change-me"
    algorithm: str = "HS256"

    # card processor
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_API_VERSION: str = "2023-10-16"
    STRIPE_CURRENCY: str = "ars"

    # regional wallet
    MERCADOPAGO_ACCESS_TOKEN: Optional[str] = None
    MERCADOPAGO_API_URL: str = "https://api.mercadopago.com"
    MERCADOPAGO_MAX_INSTALLMENTS: int = 12

    FRONTEND_URL: str = "http://localhost:3000"

    BREVO_API_KEY: Optional[str] = None
    MAIL_FROM: str = "ventas@gamestore.local"
    STORE_NAME: str = "Gamestore"

    @property
    def database_url(self):
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


@lru_cache
def get_settings() -> Settings:
    return Settings()
