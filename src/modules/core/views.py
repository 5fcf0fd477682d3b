"""Liveness endpoint reporting database and cache reachability."""

import time
from typing import Callable, Dict

import structlog
from django.core.cache import cache
from django.db import connection
from django.http import HttpRequest, JsonResponse
from django.utils import timezone

logger = structlog.get_logger(__name__)


def _probe_database() -> None:
    with connection.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()


def _probe_cache() -> None:
    token = str(time.time_ns())
    cache.set("health:probe", token, 10)
    if cache.get("health:probe") != token:
        raise ConnectionError("cache did not return the value just written")


PROBES: Dict[str, Callable[[], None]] = {
    "database": _probe_database,
    "cache": _probe_cache,
}


def _run(name: str, probe: Callable[[], None]) -> dict:
    started = time.perf_counter()
    try:
        probe()
    except Exception:
        logger.error("health_check.probe_failed", service=name, exc_info=True)
        return {"status": "down"}
    return {
        "status": "up",
        "response_time_ms": round((time.perf_counter() - started) * 1000, 2),
    }


def health_check(request: HttpRequest) -> JsonResponse:
    services = {name: _run(name, probe) for name, probe in PROBES.items()}
    healthy = all(s["status"] == "up" for s in services.values())
    overall = "healthy" if healthy else "unhealthy"

    logger.info("health_check.completed", status=overall)
    return JsonResponse(
        {"status": overall, "timestamp": timezone.now().isoformat(), "services": services},
        status=200 if healthy else 503,
    )
