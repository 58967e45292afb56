import os
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Always load .env from root
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(__file__)))
load_dotenv(os.path.join(BASE_DIR, ".env"))


class Settings(BaseSettings):
    JWT_SECRET: str = os.getenv("JWT_SECRET", "change-me")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRE_MINUTES: int = int(os.getenv("JWT_EXPIRE_MINUTES", 1440))  # 24 hours default

    # Full URL wins over the individual DB_* parts (tests use sqlite://)
    DATABASE_URL: str | None = os.getenv("DATABASE_URL")
    DB_USER: str | None = os.getenv("DB_USER")
    DB_PASS: str | None = os.getenv("DB_PASS")
    DB_HOST: str = os.getenv("DB_HOST", "localhost")
    DB_PORT: str = os.getenv("DB_PORT", "5432")
    RENTAL_DB_NAME: str = os.getenv("RENTAL_DB_NAME", "rental")

    # Shared secret for cron jobs and the settlement webhook
    CRON_SECRET: str | None = os.getenv("CRON_SECRET")

    # Who receives operational notifications (overdue payments etc.)
    ADMIN_USER_ID: str | None = os.getenv("ADMIN_USER_ID")
    ADMIN_EMAIL: str | None = os.getenv("ADMIN_EMAIL")

    # Email
    SMTP_HOST: str | None = os.getenv("SMTP_HOST")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", 587))
    SMTP_USERNAME: str | None = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD: str | None = os.getenv("SMTP_PASSWORD")
    SMTP_USE_SSL: bool = os.getenv("SMTP_USE_SSL", "False").lower() == "true"
    EMAIL_SENDER: str = os.getenv("EMAIL_SENDER", "noreply@rental.local")

    CORS_ORIGINS: str = os.getenv(
        "CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:8002")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()

RENTAL_DATABASE_URL = settings.DATABASE_URL or (
    f"postgresql+psycopg2://{settings.DB_USER}:{settings.DB_PASS}@{settings.DB_HOST}:{settings.DB_PORT}/{settings.RENTAL_DB_NAME}"
)
