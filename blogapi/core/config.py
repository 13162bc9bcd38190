import secrets
from typing import List, Literal
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

_GENERATED_SECRET_KEY = secrets.token_urlsafe(32)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

    # Environment
    ENVIRONMENT: Literal["development", "testing", "production"] = "development"
    DEBUG: bool = False

    # API
    API_PREFIX: str = "/api"
    PROJECT_NAME: str = "blogapi"
    VERSION: str = "1.0.0"

    # Website
    WEBSITE_NAME: str = "My Blog"
    WEBSITE_DESCRIPTION: str = "Articles, notes and tutorials"

    # Database
    DATABASE_URL: str = "sqlite:///blog.db"
    TEST_DATABASE_URL: str = "sqlite://"

    # Database pool settings
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30

    # Security
    SECRET_KEY: str = _GENERATED_SECRET_KEY
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Bootstrap admin account, created on first start when both are set
    ADMIN_EMAIL: str | None = None
    ADMIN_PASSWORD: str | None = None

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_POOL_SIZE: int = 10

    # Feed
    # host used for feed links, the request Host header when unset
    SITE_DOMAIN: str | None = None
    FEED_CACHE_KEY: str = "cached_rss"
    FEED_CACHE_TTL: int = 3600
    FEED_MAX_ITEMS: int = 20

    # Pagination
    DEFAULT_PAGE_SIZE: int = 10

    # Cover images
    MAX_IMAGE_BYTES: int = 5 * 1024 * 1024

    # MeiliSearch
    MEILISEARCH_URL: str = "http://localhost:7700"
    MEILISEARCH_MASTER_KEY: str = ""
    MEILISEARCH_INDEX_NAME: str = "articles"

    # Celery
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/0"
    CELERY_TASK_TIMEOUT: int = 60
    CELERY_RESULT_EXPIRES: int = 1800
    CELERY_BROKER_CONNECTION_TIMEOUT: int = 5
    CELERY_TASK_MAX_RETRIES: int = 3

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str | None = "logs/api_log.log"
    LOG_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8080"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: List[str] = ["GET", "POST", "OPTIONS"]
    CORS_ALLOW_HEADERS: List[str] = ["Content-Type", "Authorization", "Accept"]

    def __init__(self, **kwargs):
        super().__init__(**kwargs)

        if self.ENVIRONMENT == "development":
            self.DEBUG = True
            self.LOG_LEVEL = "DEBUG"

        elif self.ENVIRONMENT == "testing":
            self.DEBUG = True
            self.LOG_LEVEL = "ERROR"
            self.LOG_FILE = None
            self.DATABASE_URL = self.TEST_DATABASE_URL
            self.REDIS_URL = "redis://localhost:6379/1"

        elif self.ENVIRONMENT == "production":
            self.DEBUG = False
            self.LOG_LEVEL = "WARNING"
            if self.SECRET_KEY == _GENERATED_SECRET_KEY:
                raise ValueError(
                    "SECRET_KEY must be explicitly set in production environment"
                )

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def is_testing(self) -> bool:
        return self.ENVIRONMENT == "testing"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
