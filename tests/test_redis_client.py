# ==============================================
# Tests for RedisClient / RedisConnection
# ==============================================
#
# The redis library is replaced with MagicMocks; no server is needed.
#
# ==============================================

from unittest.mock import MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError

from reckon.analysis.value_type import ValueType
from reckon.config import RedisConfig
from reckon.errors import (
    NoKeysError,
    ProtocolError,
    StoreConnectionError,
    StoreOperationError,
)
from reckon.sampling.run_config import RunConfig
from reckon.storage.redis_client import RedisClient, RedisConnection, decode_key


@pytest.fixture
def redis_mock():
    return MagicMock()


@pytest.fixture
def conn(redis_mock):
    return RedisConnection(redis_mock, "cache:6379")


class TestKeyspace:

    def test_key_count(self, conn, redis_mock):
        redis_mock.info.return_value = {"db0": {"keys": 42, "expires": 3}}
        assert conn.key_count(0) == 42
        redis_mock.info.assert_called_once_with("keyspace")

    @pytest.mark.parametrize("info", [{}, {"db0": {"keys": 0}}, {"db1": {"keys": 9}}])
    def test_no_keys(self, conn, redis_mock, info):
        redis_mock.info.return_value = info
        with pytest.raises(NoKeysError):
            conn.key_count(0)

    def test_random_key_decodes(self, conn, redis_mock):
        redis_mock.randomkey.return_value = b"user:\xff"
        key = conn.random_key()
        assert key.encode("utf-8", "surrogateescape") == b"user:\xff"

    def test_random_key_empty(self, conn, redis_mock):
        redis_mock.randomkey.return_value = None
        with pytest.raises(ProtocolError):
            conn.random_key()

    def test_key_type(self, conn, redis_mock):
        redis_mock.type.return_value = b"zset"
        assert conn.key_type("k") is ValueType.SORTED_SET

    def test_scan(self, conn, redis_mock):
        redis_mock.scan.return_value = (17, [b"a", b"b"])
        assert conn.scan(0, "*") == (17, ["a", "b"])
        redis_mock.scan.assert_called_once_with(cursor=0, match="*", count=None)

    def test_decode_key_passthrough(self):
        assert decode_key("plain") == "plain"


class TestFetches:

    def test_get_string(self, conn, redis_mock):
        redis_mock.get.return_value = b"hello"
        assert conn.get_string("k") == b"hello"

    def test_vanished_string(self, conn, redis_mock):
        redis_mock.get.return_value = None
        with pytest.raises(ProtocolError):
            conn.get_string("k")

    def test_list_head(self, conn, redis_mock):
        redis_mock.llen.return_value = 3
        redis_mock.lrange.return_value = [b"first"]
        assert conn.list_head("q") == (3, b"first")
        redis_mock.lrange.assert_called_once_with("q", 0, 0)

    def test_set_member(self, conn, redis_mock):
        redis_mock.scard.return_value = 2
        redis_mock.srandmember.return_value = b"redis"
        assert conn.set_member("tags") == (2, b"redis")

    def test_sorted_set_head(self, conn, redis_mock):
        redis_mock.zcard.return_value = 4
        redis_mock.zrange.return_value = [b"bob"]
        assert conn.sorted_set_head("z") == (4, b"bob")
        redis_mock.zrange.assert_called_once_with("z", 0, 0)

    def test_empty_collection(self, conn, redis_mock):
        redis_mock.zcard.return_value = 0
        redis_mock.zrange.return_value = []
        with pytest.raises(ProtocolError):
            conn.sorted_set_head("z")

    def test_collections_stay_on_held_connection(self, conn, redis_mock):
        redis_mock.llen.return_value = 1
        redis_mock.lrange.return_value = [b"x"]
        redis_mock.hlen.return_value = 1
        redis_mock.hkeys.return_value = [b"f"]
        redis_mock.hget.return_value = b"v"
        conn.list_head("q")
        conn.hash_head("h")
        redis_mock.pipeline.assert_not_called()

    def test_hash_head(self, conn, redis_mock):
        redis_mock.hlen.return_value = 2
        redis_mock.hkeys.return_value = [b"email", b"age"]
        redis_mock.hget.return_value = b"a@b.c"
        assert conn.hash_head("user:1") == (2, b"email", b"a@b.c")
        redis_mock.hget.assert_called_once_with("user:1", b"email")

    def test_command_error_translated(self, conn, redis_mock):
        redis_mock.get.side_effect = ResponseError("WRONGTYPE")
        with pytest.raises(StoreOperationError, match="GET failed on redis at cache:6379"):
            conn.get_string("k")

    def test_ping_failure(self, conn, redis_mock):
        redis_mock.ping.side_effect = RedisConnectionError("refused")
        with pytest.raises(StoreConnectionError) as exc:
            conn.ping()
        assert exc.value.address == "cache:6379"


class TestRedisClient:

    def test_from_run_config(self):
        config = RunConfig.sample("10.0.0.5", 6380, min_samples=1, db=2)
        client = RedisClient.from_run_config(config, RedisConfig(socket_timeout=1.5, max_connections=3))
        assert client.address == "10.0.0.5:6380"
        assert client.db == 2
        assert client.socket_timeout == 1.5
        assert client.max_connections == 3

    def test_borrow_before_connect(self):
        with pytest.raises(StoreConnectionError):
            RedisClient().borrow()

    @patch("reckon.storage.redis_client.redis.Redis")
    @patch("reckon.storage.redis_client.redis.ConnectionPool")
    def test_connect_and_disconnect(self, pool_cls, redis_cls):
        client = RedisClient("cache", 6379)
        client.connect()

        pool_cls.assert_called_once()
        assert pool_cls.call_args.kwargs["decode_responses"] is False
        redis_cls.return_value.ping.assert_called_once()
        redis_cls.return_value.close.assert_called_once()

        client.disconnect()
        pool_cls.return_value.disconnect.assert_called_once()
        assert client.pool is None

    @patch("reckon.storage.redis_client.redis.Redis")
    @patch("reckon.storage.redis_client.redis.ConnectionPool")
    def test_connect_failure(self, pool_cls, redis_cls):
        redis_cls.return_value.ping.side_effect = RedisConnectionError("refused")
        with pytest.raises(StoreConnectionError, match="cache:6379"):
            RedisClient("cache", 6379).connect()
        redis_cls.return_value.close.assert_called_once()

    @patch("reckon.storage.redis_client.redis.Redis")
    @patch("reckon.storage.redis_client.redis.ConnectionPool")
    def test_borrow_is_exclusive(self, pool_cls, redis_cls):
        client = RedisClient("cache", 6379)
        client.connect()
        client.borrow()
        redis_cls.assert_called_with(connection_pool=pool_cls.return_value, single_connection_client=True)
