# freelance_music/core/config.py
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    PROJECT_NAME: str = "Freelance Music"

    # Database
    # SQLite for local runs, PostgreSQL in production
    DATABASE_URL: str = "sqlite:///./freelance_music.db"

    # Redis (billing queue)
    REDIS_URL: str = "redis://localhost:6379/0"
    BILLING_QUEUE_NAME: str = "billing"

    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
