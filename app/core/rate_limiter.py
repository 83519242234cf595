from slowapi import Limiter
from slowapi.util import get_remote_address
from app.core.config import settings
from loguru import logger

# ----------------------------------------------------------------
# 1. CLIENT IP IDENTIFICATION
# ----------------------------------------------------------------
def get_real_ip(request):
    """
    Identifies the client behind a proxy / load balancer.
    Checks X-Forwarded-For, then X-Real-IP, then the socket peer.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # Leftmost entry is the original client
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return get_remote_address(request)

# ----------------------------------------------------------------
# 2. LIMITER (Redis when configured, memory otherwise)
# ----------------------------------------------------------------
try:
    if settings.REDIS_URL:
        logger.info("Initializing rate limiter with Redis storage")
        limiter = Limiter(
            key_func=get_real_ip,
            storage_uri=settings.REDIS_URL,
            strategy="fixed-window",
            enabled=settings.RATE_LIMIT_ENABLED,
        )
    else:
        limiter = Limiter(key_func=get_real_ip, enabled=settings.RATE_LIMIT_ENABLED)

except Exception as e:
    logger.error(f"Failed to configure Redis rate limiting: {e}")
    # Keep the API up on an in-memory limiter
    limiter = Limiter(key_func=get_real_ip, enabled=settings.RATE_LIMIT_ENABLED)
