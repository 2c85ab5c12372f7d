# ==============================================
# STORAGE: REDIS ACCESS
# ==============================================
#
# This package is the only place that talks to Redis.
#
# Modules:
# --------
# - redis_client.py  → RedisClient (connection pool, connect/borrow)
#                      RedisConnection (one borrowed connection plus
#                      the per-type fetches the samplers need)
#
# ==============================================

from .redis_client import RedisClient, RedisConnection

__all__ = [
    "RedisClient",
    "RedisConnection",
]
