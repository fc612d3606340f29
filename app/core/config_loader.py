"""Cached access to the schedule and delivery configuration documents"""

from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import Optional, Dict, Tuple, Any
import logging
import time

from app.config import settings
from app.models.schedule import ScheduleConfig, default_schedule_config
from app.models.delivery import DeliveryConfig

logger = logging.getLogger(__name__)

SCHEDULE_KEY = "schedule"
DELIVERY_KEY = "delivery"


class ConfigLoader:
    """
    Loads ScheduleConfig and DeliveryConfig from the `config` collection.

    Documents are cached for `ttl_seconds`; saving through the loader (or
    calling `invalidate`) drops the cached copy so the next read reloads it.
    """

    def __init__(self, ttl_seconds: Optional[int] = None):
        self.ttl_seconds = settings.config_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._cache: Dict[str, Tuple[float, Any]] = {}

    def invalidate(self, key: Optional[str] = None):
        """Drop one cached document, or all of them"""
        if key:
            self._cache.pop(key, None)
        else:
            self._cache.clear()
        logger.debug(f"Config cache invalidated: {key or 'all'}")

    def _cached(self, key: str):
        entry = self._cache.get(key)
        if entry is None:
            return None
        loaded_at, value = entry
        if time.monotonic() - loaded_at > self.ttl_seconds:
            self._cache.pop(key, None)
            return None
        return value

    async def _load(self, db: AsyncIOMotorDatabase, key: str, model, default_factory):
        cached = self._cached(key)
        if cached is not None:
            return cached

        doc = await db.config.find_one({"key": key})
        if doc:
            doc.pop("_id", None)
            value = model(**doc)
        else:
            logger.info(f"No '{key}' configuration stored, using defaults")
            value = default_factory()

        self._cache[key] = (time.monotonic(), value)
        return value

    async def get_schedule_config(self, db: AsyncIOMotorDatabase) -> ScheduleConfig:
        return await self._load(db, SCHEDULE_KEY, ScheduleConfig, default_schedule_config)

    async def get_delivery_config(self, db: AsyncIOMotorDatabase) -> DeliveryConfig:
        return await self._load(db, DELIVERY_KEY, DeliveryConfig, DeliveryConfig)

    async def _save(self, db: AsyncIOMotorDatabase, key: str, data: dict, actor: str):
        now = datetime.utcnow()
        await db.config.update_one(
            {"key": key},
            {
                "$set": {**data, "updatedAt": now, "updatedBy": actor},
                "$setOnInsert": {"key": key, "createdAt": now},
            },
            upsert=True,
        )
        self.invalidate(key)
        logger.info(f"Configuration '{key}' updated by {actor}")

    async def save_schedule_config(
        self, db: AsyncIOMotorDatabase, config: ScheduleConfig, actor: str
    ) -> ScheduleConfig:
        await self._save(db, SCHEDULE_KEY, config.model_dump(mode="json"), actor)
        return await self.get_schedule_config(db)

    async def save_delivery_config(
        self, db: AsyncIOMotorDatabase, config: DeliveryConfig, actor: str
    ) -> DeliveryConfig:
        await self._save(db, DELIVERY_KEY, config.model_dump(mode="json"), actor)
        return await self.get_delivery_config(db)


config_loader = ConfigLoader()


def get_config_loader() -> ConfigLoader:
    """Dependency to get the configuration loader"""
    return config_loader
