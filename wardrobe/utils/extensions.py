from wardrobe.utils.logging import get_logger

from flask import Flask
from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect
import redis
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from redis import Redis

logger = get_logger(__name__)

login_manager = LoginManager()
csrf = CSRFProtect()


class RedisClient:
    def __init__(self) -> None:
        self._client: "Redis[str] | None" = None

    def init_app(self, app: Flask) -> None:
        url = app.config.get("REDIS_URL")
        if url:
            self._client = redis.from_url(url, decode_responses=True)
        else:
            logger.info("REDIS_URL not set, list snapshots kept in memory")
        app.extensions["redis"] = self

    @property
    def enabled(self) -> bool:
        return self._client is not None

    @property
    def client(self) -> "Redis[str]":
        if self._client is None:
            raise RuntimeError("Redis not initialized")
        return self._client


redis_client = RedisClient()
