# ==============================================
# RedisClient / RedisConnection
# ==============================================
#
# PURPOSE:
#   Wrap the `redis` library behind the handful of operations the
#   sampler needs, and translate library errors into reckon errors.
#
# CLASS: RedisClient
# ------------------
#   Stateful: owns one redis.ConnectionPool for one instance.
#   The pool is safe to share between threads; the connections it
#   hands out are not.
#
#   - connect() -> None
#       Create the pool and PING the server.
#       Raises StoreConnectionError (with host:port) on failure.
#   - borrow() -> RedisConnection
#       Check out a dedicated connection, PING it (liveness check).
#   - disconnect() -> None
#       Drop every pooled connection.
#
# CLASS: RedisConnection
# ----------------------
#   One exclusively held connection. Every method issues the minimal
#   set of commands for its purpose, one after the other on that
#   connection. Pipelines are not used: redis-py checks a pipeline
#   out of the pool separately from a single_connection_client.
#
#   - key_count(db)                 INFO keyspace
#   - random_key()                  RANDOMKEY
#   - key_type(key)                 TYPE
#   - scan(cursor, match, count)    SCAN cursor MATCH glob
#   - get_string(key)               GET
#   - list_head(key)                LLEN + LRANGE key 0 0
#   - set_member(key)               SCARD + SRANDMEMBER
#   - sorted_set_head(key)          ZCARD + ZRANGE key 0 0
#   - hash_head(key)                HLEN + HKEYS, then HGET first field
#   - close()                       return the connection to the pool
#
# ==============================================

from typing import Any, Callable, List, Optional, Tuple

import redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError, TimeoutError as RedisTimeoutError

from reckon.analysis.value_type import ValueType
from reckon.errors import (
    NoKeysError,
    ProtocolError,
    StoreConnectionError,
    StoreOperationError,
)

# Keys are decoded with surrogateescape so a str key encodes back to the
# exact bytes Redis gave us.
KEY_ENCODING = "utf-8"
KEY_ERRORS = "surrogateescape"


def decode_key(raw: Any) -> str:
    if isinstance(raw, bytes):
        return raw.decode(KEY_ENCODING, errors=KEY_ERRORS)
    return raw


class RedisConnection:
    """A single borrowed connection and the commands the samplers need."""

    def __init__(self, client: "redis.Redis", address: str):
        self._redis = client
        self.address = address

    def _call(self, command: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run one client call, turning library errors into StoreOperationError."""
        try:
            return fn(*args, **kwargs)
        except RedisError as e:
            raise StoreOperationError(f"{command} failed on redis at {self.address}: {e}") from e

    # ======================================
    # Liveness / keyspace
    # ======================================
    def ping(self) -> None:
        try:
            self._redis.ping()
        except (RedisConnectionError, RedisTimeoutError) as e:
            raise StoreConnectionError(
                f"Error connecting to the redis instance at: {self.address}: {e}", self.address
            ) from e
        except RedisError as e:
            raise StoreConnectionError(
                f"redis at {self.address} rejected PING: {e}", self.address
            ) from e

    def key_count(self, db: int = 0) -> int:
        """
        Number of keys in database `db`, from INFO keyspace.

        Raises:
            NoKeysError: if the database is missing from INFO or holds no keys
        """
        info = self._call("INFO", self._redis.info, "keyspace")
        entry = info.get(f"db{db}") if isinstance(info, dict) else None
        count = 0
        if isinstance(entry, dict):
            try:
                count = int(entry.get("keys", 0))
            except (TypeError, ValueError) as e:
                raise ProtocolError(f"unreadable key count for db{db} at {self.address}: {entry!r}") from e
        if count <= 0:
            raise NoKeysError(f"No keys are present in db{db} of the redis instance at {self.address}")
        return count

    def random_key(self) -> str:
        key = self._call("RANDOMKEY", self._redis.randomkey)
        if key is None:
            raise ProtocolError(f"RANDOMKEY returned nothing; redis at {self.address} is empty")
        return decode_key(key)

    def key_type(self, key: str) -> ValueType:
        return ValueType.from_reply(self._call("TYPE", self._redis.type, key))

    def scan(self, cursor: int, match: str, count: Optional[int] = None) -> Tuple[int, List[str]]:
        """
        One page of a SCAN enumeration.

        Returns:
            (next_cursor, keys); a next_cursor of 0 means the pass is complete
        """
        reply = self._call("SCAN", self._redis.scan, cursor=cursor, match=match, count=count)
        try:
            next_cursor, keys = reply
            return int(next_cursor), [decode_key(k) for k in keys]
        except (TypeError, ValueError) as e:
            raise ProtocolError(f"unexpected SCAN reply from {self.address}: {reply!r}") from e

    # ======================================
    # Per-type fetches
    # ======================================
    def get_string(self, key: str) -> bytes:
        value = self._call("GET", self._redis.get, key)
        if value is None:
            raise ProtocolError(f"GET {key!r}: key disappeared from redis at {self.address}")
        return value

    def list_head(self, key: str) -> Tuple[int, bytes]:
        length = self._call("LLEN", self._redis.llen, key)
        head = self._call("LRANGE", self._redis.lrange, key, 0, 0)
        return self._with_head(key, length, head)

    def set_member(self, key: str) -> Tuple[int, bytes]:
        length = self._call("SCARD", self._redis.scard, key)
        member = self._call("SRANDMEMBER", self._redis.srandmember, key)
        if member is None:
            raise ProtocolError(f"SRANDMEMBER {key!r}: set is empty on redis at {self.address}")
        return int(length), member

    def sorted_set_head(self, key: str) -> Tuple[int, bytes]:
        length = self._call("ZCARD", self._redis.zcard, key)
        head = self._call("ZRANGE", self._redis.zrange, key, 0, 0)
        return self._with_head(key, length, head)

    def hash_head(self, key: str) -> Tuple[int, bytes, bytes]:
        """
        Field count, first field name and that field's value.

        Returns:
            (field_count, field, value)
        """
        length = self._call("HLEN", self._redis.hlen, key)
        fields = self._call("HKEYS", self._redis.hkeys, key)
        if not fields:
            raise ProtocolError(f"HKEYS {key!r}: hash is empty on redis at {self.address}")
        first = fields[0]
        value = self._call("HGET", self._redis.hget, key, first)
        if value is None:
            raise ProtocolError(f"HGET {key!r}: field vanished on redis at {self.address}")
        return int(length), first, value

    def _with_head(self, key: str, length: Any, head: Any) -> Tuple[int, bytes]:
        if not head:
            raise ProtocolError(f"{key!r}: no representative element on redis at {self.address}")
        return int(length), head[0]

    def close(self) -> None:
        """Give the connection back to the pool."""
        self._redis.close()


class RedisClient:
    """
    Connection pool for one Redis instance.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        socket_timeout: float = 5.0,
        max_connections: int = 8,
        health_check_interval: int = 30,
    ):
        # Store connection params. Don't connect yet.
        self.host = host
        self.port = port
        self.db = db
        self.socket_timeout = socket_timeout
        self.max_connections = max_connections
        self.health_check_interval = health_check_interval
        self.pool: Optional[redis.ConnectionPool] = None

    @classmethod
    def from_run_config(cls, run_config, redis_config=None) -> "RedisClient":
        """
        Build a client for the instance named by a RunConfig.

        Pool tuning comes from `redis_config` (a config.RedisConfig), or
        from the environment if it is not given.
        """
        if redis_config is None:
            from reckon.config import get_config
            redis_config = get_config().redis
        return cls(
            host=run_config.host,
            port=run_config.port,
            db=run_config.db,
            socket_timeout=redis_config.socket_timeout,
            max_connections=redis_config.max_connections,
            health_check_interval=redis_config.health_check_interval,
        )

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    def connect(self) -> None:
        """
        Create the connection pool and make sure the server answers.

        Raises:
            StoreConnectionError: if the server cannot be reached
        """
        if self.pool is None:
            self.pool = redis.ConnectionPool(
                host=self.host,
                port=self.port,
                db=self.db,
                socket_timeout=self.socket_timeout,
                socket_connect_timeout=self.socket_timeout,
                max_connections=self.max_connections,
                health_check_interval=self.health_check_interval,
                decode_responses=False,
                encoding=KEY_ENCODING,
                encoding_errors=KEY_ERRORS,
            )
        conn = self.borrow()
        conn.close()

    def borrow(self) -> RedisConnection:
        """
        Check out a connection for exclusive use by the calling thread.

        The caller must close() it when done.
        """
        if self.pool is None:
            raise StoreConnectionError(f"Not connected to redis at {self.address}.", self.address)
        try:
            client = redis.Redis(connection_pool=self.pool, single_connection_client=True)
        except RedisError as e:
            raise StoreConnectionError(
                f"Error connecting to the redis instance at: {self.address}: {e}", self.address
            ) from e
        conn = RedisConnection(client, self.address)
        try:
            conn.ping()
        except StoreConnectionError:
            conn.close()
            raise
        return conn

    def disconnect(self) -> None:
        if self.pool is not None:
            self.pool.disconnect()
            self.pool = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
