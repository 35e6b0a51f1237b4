# Per-endpoint rate limits in one place
from fastapi_limiter.depends import RateLimiter
from guestbook.core.config import settings

# path: limit
API_RATE_LIMITS = {
    "/guestbook": {"times": 100, "seconds": 10},
    "/guestbook/count": {"times": 100, "seconds": 10},
    "/guestbook/{entry_id}": {"times": 100, "seconds": 10},
    "/guestbook/validate": {"times": 60, "seconds": 10},

    # writes
    "/guestbook/submit": {"times": 5, "seconds": 60},
    "/guestbook/{entry_id}/update": {"times": 20, "seconds": 60},
    "/guestbook/{entry_id}/delete": {"times": 20, "seconds": 60},
    "/guestbook/media/{bundle}": {"times": 10, "seconds": 60},
}

def get_rate_limiter(path: str):
    conf = API_RATE_LIMITS.get(path)
    if not settings.RATE_LIMIT_ENABLED or not conf:
        # FastAPI still needs a dependency, so hand back a no-op
        async def _noop_dep():
            return None
        return _noop_dep
    return RateLimiter(times=conf["times"], seconds=conf["seconds"])
