from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from app.config import settings


def get_client_key(request: Request) -> str:
    """Rate-limit key for a request.

    Behind a reverse proxy every request arrives from the proxy address, so
    when TRUST_FORWARDED_FOR is set the first X-Forwarded-For entry (the
    original client) is used instead.
    """
    if settings.trust_forwarded_for:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return get_remote_address(request)


limiter = Limiter(key_func=get_client_key)
