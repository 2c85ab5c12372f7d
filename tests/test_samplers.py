# ==============================================
# Tests for Type Samplers
# ==============================================

import pytest

from reckon.analysis.aggregator import any_key, by_value_type, combine
from reckon.analysis.results import Accumulator
from reckon.analysis.value_type import ValueType
from reckon.errors import ProtocolError, StoreOperationError
from reckon.sampling.key_source import Observation
from reckon.sampling.samplers import (
    sample_hash,
    sample_key,
    sample_list,
    sample_sorted_set,
    sample_string,
)

from conftest import FakeConnection


class TestSamplers:

    def test_string(self, connection):
        sample = sample_string("user:1:name", connection)
        assert sample.value == "alice"
        assert connection.calls == ["GET"]

    def test_list(self, connection):
        sample = sample_list("queue:jobs", connection)
        assert (sample.length, sample.element) == (3, "job-1")

    def test_sorted_set_lowest_rank(self, connection):
        sample = sample_sorted_set("scores:daily", connection)
        assert (sample.length, sample.element) == (4, "bob")

    def test_hash(self, connection):
        sample = sample_hash("user:1", connection)
        assert (sample.length, sample.element, sample.value) == (2, "email", "alice@example.com")
        assert connection.calls == ["HLEN/HKEYS", "HGET"]


class TestSampleKey:

    def test_records_into_bucket(self, connection):
        acc = Accumulator()
        sample_key(Observation("queue:jobs", ValueType.LIST), connection, any_key, acc)

        results = acc["any-key"]
        assert results.key_count == 1
        assert results.list_sizes == {3: 1}
        assert results.list_element_sizes == {5: 1}
        assert results.list_keys.to_list() == ["queue:jobs"]

    def test_fan_out_samples_once(self, connection):
        acc = Accumulator()
        policy = combine(any_key, by_value_type)
        sample_key(Observation("user:1", ValueType.HASH), connection, policy, acc)

        assert set(acc) == {"any-key", "hash"}
        assert acc["hash"].hash_value_sizes == {17: 1}
        assert acc["any-key"].hash_sizes == {2: 1}
        assert connection.calls.count("HGET") == 1

    def test_no_buckets_discards(self, connection):
        acc = Accumulator()
        sample_key(Observation("user:1:name", ValueType.STRING), connection, lambda k, t: [], acc)
        assert len(acc) == 0
        assert connection.calls == ["GET"]

    def test_unknown_type(self, connection):
        with pytest.raises(ProtocolError, match="unknown type"):
            sample_key(Observation("events", ValueType.UNKNOWN), connection, any_key, Accumulator())
        assert connection.calls == []

    def test_fetch_error_propagates(self, store):
        conn = FakeConnection(store, fail_on={"GET"})
        acc = Accumulator()
        with pytest.raises(StoreOperationError):
            sample_key(Observation("user:1:name", ValueType.STRING), conn, any_key, acc)
        assert len(acc) == 0
