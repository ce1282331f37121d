import os
from dotenv import load_dotenv
from pathlib import Path

from datetime import timedelta
from typing import Type

from flask import Flask

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "%(asctime)s | %(name)-20s | %(levelname)-8s | %(message)s"
DEFAULT_LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LOG_FILE = None

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=BASE_DIR / ".env")


class Config:
    """Settings shared by every environment, read from the environment or .env."""
    SECRET_KEY: str | None = os.getenv("APP_SECRET", "")
    ENCRYPTION_KEY: str | None = os.getenv("ENCRYPTION_KEY")

    SESSION_COOKIE_SAMESITE = "Strict"
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SECURE = False   # overridden in prod
    PERMANENT_SESSION_LIFETIME = timedelta(minutes=60)

    LOG_LEVEL = os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL)
    LOG_FORMAT = os.getenv("LOG_FORMAT", DEFAULT_LOG_FORMAT)
    LOG_DATEFMT = os.getenv("LOG_DATEFMT", DEFAULT_LOG_DATEFMT)
    LOG_FILE = os.getenv("LOG_FILE", DEFAULT_LOG_FILE)

    # REST backend
    API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8083/api")
    API_TIMEOUT = float(os.getenv("API_TIMEOUT", 10))

    # Empty REDIS_URL keeps list snapshots in process memory
    REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    SNAPSHOT_TTL = int(os.getenv("SNAPSHOT_TTL", 15 * 60))

    NOTIFICATION_POLL_SECONDS = int(os.getenv("NOTIFICATION_POLL_SECONDS", 30))
    LOW_STOCK_THRESHOLD = int(os.getenv("LOW_STOCK_THRESHOLD", 10))

    TAX_RATE = float(os.getenv("TAX_RATE", 0.10))
    FREE_SHIPPING_THRESHOLD = float(os.getenv("FREE_SHIPPING_THRESHOLD", 5000))
    SHIPPING_FEE = float(os.getenv("SHIPPING_FEE", 500))
    CURRENCY = os.getenv("CURRENCY", "Rs.")

    @staticmethod
    def init_app(app: Flask) -> None:
        pass


class DevelopmentConfig(Config):
    DEBUG = True
    HOST = "127.0.0.1"
    PORT = int(os.getenv("PORT", 5000))

    @staticmethod
    def init_app(app: Flask) -> None:
        print(f"→ Wardrobe development server, backend at {app.config['API_BASE_URL']}")
        missing = [key for key in ("SECRET_KEY", "ENCRYPTION_KEY") if not app.config.get(key)]
        if missing:
            print(
                f"\033[93mWARNING: {', '.join(missing)} not set. "
                "Sessions and stored tokens will not survive a restart.\033[0m"
            )


class ProductionConfig(Config):
    SESSION_COOKIE_SECURE = True
    PERMANENT_SESSION_LIFETIME = timedelta(hours=8)
    HOST = "0.0.0.0"
    PORT = int(os.getenv("PORT", 8000))

    @staticmethod
    def init_app(app: Flask) -> None:
        if not app.secret_key or len(app.secret_key) < 32:
            raise ValueError(
                "APP_SECRET must be a strong 32+ byte value in production. "
                "Set it in .env or environment variables."
            )
        if not app.config.get("ENCRYPTION_KEY"):
            raise ValueError("ENCRYPTION_KEY must be set in production, tokens are stored encrypted.")
        if not app.config.get("API_BASE_URL", "").startswith("https://"):
            app.logger.warning("API_BASE_URL is not https, bearer tokens travel in clear text")


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "testing-secret-key"
    ENCRYPTION_KEY = "fHkZ9a8Y2oZb3m1JQ0mBvQyWmzXo0pSg1H4kP3zXy1o="
    WTF_CSRF_ENABLED = False
    API_BASE_URL = "http://backend.test/api"
    REDIS_URL = ""
    SERVER_NAME = "localhost.localdomain"  # allows url_for in tests
    HOST = "127.0.0.1"
    PORT = 5000


config_by_name: dict[str, Type[Config]] = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}
