from __future__ import annotations

import socket

from celery import Celery
from redis import Redis
from redis.exceptions import ConnectionError as RedisConnectionError

from app.core.config import settings


def _choose_broker_url() -> str:
    """
    Broker from settings first (usually redis://redis:6379/0 in docker),
    falling back to a local Redis when that host is unreachable.
    """
    primary = settings.celery_broker_url

    try:
        client = Redis.from_url(primary)
        client.ping()
        return primary
    except (RedisConnectionError, socket.gaierror):
        pass

    fallback = "redis://localhost:6379/0"
    client = Redis.from_url(fallback)
    client.ping()
    return fallback


broker_url = _choose_broker_url()

celery_app = Celery(
    "hireoo_bg_worker",
    broker=broker_url,
)

celery_app.autodiscover_tasks(
    packages=["hireoo_bg_worker"],
)


__all__ = ["celery_app"]
