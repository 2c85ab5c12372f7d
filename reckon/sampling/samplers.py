# ==============================================
# Type Samplers
# ==============================================
#
# PURPOSE:
#   For one observed key, fetch just enough to characterize its value,
#   ask the aggregator which buckets it belongs to, and record it there.
#
#   | Type      | Fetched                          | Recorded                         |
#   |-----------|----------------------------------|----------------------------------|
#   | string    | value                            | value size, example value        |
#   | list      | length + element at index 0      | length, element size             |
#   | set       | cardinality + random member      | cardinality, member size         |
#   | zset      | cardinality + lowest-ranked item | cardinality, member size         |
#   | hash      | field count, fields, first value | count, field size, value size    |
#
#   A single representative element stands in for the whole collection,
#   so collections with very uneven element sizes are approximated.
#
#   Any failure propagates and ends the run. Nothing is retried.
#
# ==============================================

from typing import Callable, Dict

from reckon.analysis.aggregator import Aggregator, bucket_names
from reckon.analysis.results import Accumulator, ValueSample
from reckon.analysis.value_type import ValueType
from reckon.errors import ProtocolError

from .key_source import Observation

Sampler = Callable[[str, object], ValueSample]


def sample_string(key: str, conn) -> ValueSample:
    return ValueSample(key, ValueType.STRING, value=conn.get_string(key))


def sample_list(key: str, conn) -> ValueSample:
    length, element = conn.list_head(key)
    return ValueSample(key, ValueType.LIST, length=length, element=element)


def sample_set(key: str, conn) -> ValueSample:
    length, member = conn.set_member(key)
    return ValueSample(key, ValueType.SET, length=length, element=member)


def sample_sorted_set(key: str, conn) -> ValueSample:
    length, member = conn.sorted_set_head(key)
    return ValueSample(key, ValueType.SORTED_SET, length=length, element=member)


def sample_hash(key: str, conn) -> ValueSample:
    length, field_name, value = conn.hash_head(key)
    return ValueSample(key, ValueType.HASH, length=length, element=field_name, value=value)


SAMPLERS: Dict[ValueType, Sampler] = {
    ValueType.STRING: sample_string,
    ValueType.LIST: sample_list,
    ValueType.SET: sample_set,
    ValueType.SORTED_SET: sample_sorted_set,
    ValueType.HASH: sample_hash,
}


def sample_key(observation: Observation, conn, aggregator: Aggregator, accumulator: Accumulator) -> ValueSample:
    """
    Sample one observed key and fan it out to its buckets.

    Args:
        observation: Key and type from a KeySource
        conn: Borrowed RedisConnection used for the follow-up requests
        aggregator: Bucketing policy
        accumulator: Where the sample is recorded

    Returns:
        The ValueSample that was recorded

    Raises:
        ProtocolError: if the key's type is not one we can sample
        StoreOperationError: if a follow-up request fails
    """
    sampler = SAMPLERS.get(observation.value_type)
    if sampler is None:
        raise ProtocolError(f"unknown type for redis key: {observation.key!r}")

    sample = sampler(observation.key, conn)
    for bucket in bucket_names(aggregator, observation.key, observation.value_type):
        accumulator.observe(bucket, sample)
    return sample
