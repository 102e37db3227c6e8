from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")

    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")
    refresh_token_expire_days: int = Field(7, alias="REFRESH_TOKEN_EXPIRE_DAYS")

    # Bucket files are stored under <storage_root>/<bucket_id>/<path>
    storage_root: str = Field("./storage", alias="STORAGE_ROOT")
    public_base_url: str = Field("http://localhost:8000", alias="PUBLIC_BASE_URL")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    environment: str = Field("local", alias="ENVIRONMENT")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
