import os
from dotenv import load_dotenv
from urllib.parse import quote_plus

load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    # Environment setting
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

    # Clerk Configuration
    CLERK_SECRET_KEY = os.getenv("CLERK_SECRET_KEY")

    # Backing store: "database" (durable, per user) or "local" (offline, single user)
    STORE_BACKEND = os.getenv("STORE_BACKEND", "database")
    LOCAL_STORE_PATH = os.getenv("LOCAL_STORE_PATH", "data/breathing_store.json")
    LOCAL_USER_ID = os.getenv("LOCAL_USER_ID", "local")

    # Adaptation / analytics behaviour
    ADAPTATION_STRATEGY = os.getenv("ADAPTATION_STRATEGY", "auto")  # auto | windowed | single_rating
    ANALYTICS_REFRESH_ON_READ = _env_flag("ANALYTICS_REFRESH_ON_READ")
    DERIVE_METRICS_FROM_RATING = _env_flag("DERIVE_METRICS_FROM_RATING")

    # Logging
    LOG_DIR = os.getenv("LOG_DIR", "logs")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

    # db creds
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_USER = os.getenv("DB_USER", "postgres")
    DB_PASSWORD = os.getenv("DB_PASSWORD", "")
    DB_NAME = os.getenv("DB_NAME", "breathpace")
    DB_PORT = os.getenv("DB_PORT", "5432")

    # Build URL with SSL requirement based on environment
    def _build_database_url(self):
        override = os.getenv("DATABASE_URL")
        if override:
            return override
        base_url = f"postgresql+asyncpg://{self.DB_USER}:{quote_plus(self.DB_PASSWORD)}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        if self.ENVIRONMENT == "development":
            return base_url
        return f"{base_url}?ssl=require"

    @property
    def DATABASE_URL(self):
        return self._build_database_url()

    @property
    def IS_DEVELOPMENT(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def USES_LOCAL_STORE(self) -> bool:
        return self.STORE_BACKEND == "local"


settings = Settings()
