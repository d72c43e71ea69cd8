"""Indian states list proxied from the location hub API, cached in process."""

import logging
import threading
import time
from typing import Any, Optional
import requests
import config
from errors import UpstreamError

logger = logging.getLogger(__name__)

REQUEST_HEADERS = {
    "accept": "application/json",
    "user-agent": "Mozilla/5.0 (compatible; YatraSevaBackend/1.0)",
}

_cache = {"data": None, "fetched_at": 0.0}
_lock = threading.Lock()


def clear_cache():
    with _lock:
        _cache["data"] = None
        _cache["fetched_at"] = 0.0


def get_states(now: Optional[float] = None) -> Any:
    """Upstream payload, refetched at most once per ``LOCATION_CACHE_SECONDS``."""
    now = time.monotonic() if now is None else now
    with _lock:
        if _cache["data"] is not None and now - _cache["fetched_at"] < config.LOCATION_CACHE_SECONDS:
            return _cache["data"]

    try:
        response = requests.get(config.LOCATION_API_URL, headers=REQUEST_HEADERS, timeout=config.HTTP_TIMEOUT)
    except requests.RequestException as e:
        logger.error(f"Location API unreachable: {e}")
        raise UpstreamError("Internal server error", status_code=500)

    if not response.ok:
        logger.warning(f"Location API error: {response.status_code} {response.reason}")
        raise UpstreamError("Failed to fetch from external API", status_code=response.status_code)

    data = response.json()
    with _lock:
        _cache["data"] = data
        _cache["fetched_at"] = now
    logger.info("Refreshed states list from location API")
    return data
