# ==============================================
# Pytest Configuration and Fixtures
# ==============================================
#
# Shared fixtures and in-memory stand-ins for the Redis boundary.
#
# - FakeStore       → dict-backed keyspace: key → (type, value)
# - FakeConnection  → implements the RedisConnection methods against
#                     a FakeStore and records every command it runs
# - FakeClient      → implements the RedisClient methods (connect,
#                     borrow, disconnect) and tracks borrowed connections
#
# ==============================================

import fnmatch
import threading
import time

import pytest

from reckon.analysis.value_type import ValueType
from reckon.errors import NoKeysError, ProtocolError, StoreConnectionError, StoreOperationError


class FakeStore:
    """Keyspace held in a dict, in insertion order."""

    def __init__(self, data=None):
        self.data = dict(data or {})

    def set_string(self, key, value):
        self.data[key] = ("string", value)

    def add_list(self, key, items):
        self.data[key] = ("list", list(items))

    def add_set(self, key, members):
        self.data[key] = ("set", list(members))

    def add_sorted_set(self, key, members):
        self.data[key] = ("zset", sorted(members))

    def add_hash(self, key, mapping):
        self.data[key] = ("hash", dict(mapping))


class FakeConnection:
    """RedisConnection double. SCAN pages hold `page_size` keys."""

    def __init__(self, store, address="fake:6379", fail_on=None, page_size=2, type_delay=0.0):
        self.store = store
        self.address = address
        self.fail_on = set(fail_on or ())
        self.type_delay = type_delay
        self.page_size = page_size
        self.calls = []
        self.closed = False
        self._next_random = 0
        self._lock = threading.Lock()

    def _record(self, command):
        with self._lock:
            self.calls.append(command)
        if command in self.fail_on:
            raise StoreOperationError(f"{command} failed on redis at {self.address}: boom")

    def _entry(self, key, expected):
        kind, value = self.store.data[key]
        assert kind == expected
        return value

    def ping(self):
        self._record("PING")

    def key_count(self, db=0):
        self._record("INFO")
        if not self.store.data:
            raise NoKeysError(f"No keys are present in db{db}")
        return len(self.store.data)

    def random_key(self):
        self._record("RANDOMKEY")
        keys = list(self.store.data)
        if not keys:
            raise ProtocolError("RANDOMKEY returned nothing")
        key = keys[self._next_random % len(keys)]
        self._next_random += 1
        return key

    def key_type(self, key):
        self._record("TYPE")
        if self.type_delay:
            time.sleep(self.type_delay)
        if key not in self.store.data:
            return ValueType.UNKNOWN
        return ValueType.from_reply(self.store.data[key][0])

    def scan(self, cursor, match, count=None):
        self._record("SCAN")
        keys = list(self.store.data)
        page = keys[cursor:cursor + self.page_size]
        next_cursor = cursor + self.page_size
        if next_cursor >= len(keys):
            next_cursor = 0
        return next_cursor, [k for k in page if fnmatch.fnmatchcase(k, match)]

    def get_string(self, key):
        self._record("GET")
        return self._entry(key, "string")

    def list_head(self, key):
        self._record("LLEN/LRANGE")
        items = self._entry(key, "list")
        return len(items), items[0]

    def set_member(self, key):
        self._record("SCARD/SRANDMEMBER")
        members = self._entry(key, "set")
        return len(members), members[0]

    def sorted_set_head(self, key):
        self._record("ZCARD/ZRANGE")
        members = self._entry(key, "zset")
        return len(members), members[0]

    def hash_head(self, key):
        self._record("HLEN/HKEYS")
        mapping = self._entry(key, "hash")
        first = next(iter(mapping))
        self._record("HGET")
        return len(mapping), first, mapping[first]

    def close(self):
        self.closed = True


class FakeClient:
    """RedisClient double handing out FakeConnections over one FakeStore."""

    def __init__(self, store, address="fake:6379", fail_connect=False, fail_on=None, type_delay=0.0):
        self.store = store
        self.address = address
        self.fail_connect = fail_connect
        self.fail_on = fail_on
        self.type_delay = type_delay
        self.connections = []
        self.connected = False
        self.disconnected = False

    def connect(self):
        if self.fail_connect:
            raise StoreConnectionError(
                f"Error connecting to the redis instance at: {self.address}: refused", self.address
            )
        self.connected = True

    def borrow(self):
        if not self.connected:
            raise StoreConnectionError(f"Not connected to redis at {self.address}.", self.address)
        conn = FakeConnection(self.store, self.address, fail_on=self.fail_on, type_delay=self.type_delay)
        self.connections.append(conn)
        return conn

    def disconnect(self):
        self.disconnected = True

    @property
    def calls(self):
        return [call for conn in self.connections for call in conn.calls]


def wait_until(predicate, timeout=2.0):
    """Poll `predicate` until it is true or `timeout` seconds pass."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


# ==============================================
# Fixtures
# ==============================================

@pytest.fixture
def store():
    """A small keyspace with one key of every supported type."""
    s = FakeStore()
    s.set_string("user:1:name", "alice")
    s.add_list("queue:jobs", ["job-1", "job-22", "job-333"])
    s.add_set("tags:post:7", ["redis", "python"])
    s.add_sorted_set("scores:daily", ["bob", "carol", "dave", "erin"])
    s.add_hash("user:1", {"email": "alice@example.com", "age": "31"})
    return s


@pytest.fixture
def client(store):
    return FakeClient(store)


@pytest.fixture
def connection(store):
    return FakeConnection(store)


@pytest.fixture
def big_store():
    """300 string keys, enough for a scan that takes a while with a TYPE delay."""
    s = FakeStore()
    for i in range(300):
        s.set_string(f"item:{i}", f"value-{i}")
    return s
