from pydantic import Field
from pydantic_settings import BaseSettings
from typing import Optional
from urllib.parse import quote_plus

class Settings(BaseSettings):
    ENV: str = "production"

    database_url_override: Optional[str] = Field(default=None, validation_alias="DATABASE_URL")
    postgres_user: str = "postgres"
    postgres_password: str = ""
    postgres_db: str = "ebookstore"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"


    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7


    google_client_id: Optional[str] = None
    owner_open_id: Optional[str] = None

    # Stripe
    stripe_secret_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None
    stripe_currency: str = "eur"
    frontend_url: str = "http://localhost:3000"

    # Storage: "r2" (presigned S3 URLs) or "proxy" (storage proxy API)
    storage_backend: str = "r2"
    r2_account_id: Optional[str] = None
    r2_access_key_id: Optional[str] = None
    r2_secret_access_key: Optional[str] = None
    r2_bucket_name: Optional[str] = None
    storage_proxy_url: Optional[str] = None
    storage_proxy_key: Optional[str] = None
    download_url_ttl: int = 900  # 15 minutes

    external_max_retries: int = 3
    external_retry_base_delay: float = 0.5

    default_site_name: str = "ViraliTime"
    default_site_description: str = "Plateforme de vente d'ebooks"

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
