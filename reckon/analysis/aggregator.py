# ==============================================
# Aggregator Policies
# ==============================================
#
# PURPOSE:
#   Decide which bucket(s) a sampled key belongs to.
#
#   An Aggregator is any callable:
#       (key: str, value_type: ValueType) -> Iterable[str]
#   Returning no names discards the key for that policy; returning
#   several fans the key out into every named bucket. Policies must be
#   deterministic and must not have side effects.
#
# BUILT-INS:
# ----------
# - any_key          → every key goes to "any-key"
# - by_value_type    → one bucket per Redis type ("string", "zset", ...)
# - key_prefix(sep)  → bucket by the first key segment ("user:42" → "user");
#                      keys without the separator are discarded
# - combine(*aggs)   → union of the buckets from several policies
#
# ==============================================

from typing import Callable, Dict, Iterable, List

from .value_type import ValueType

Aggregator = Callable[[str, ValueType], Iterable[str]]

ANY_KEY_BUCKET = "any-key"


def any_key(key: str, value_type: ValueType) -> List[str]:
    """Put every key, regardless of name or type, into a single bucket."""
    return [ANY_KEY_BUCKET]


def by_value_type(key: str, value_type: ValueType) -> List[str]:
    """Bucket keys by their Redis data type."""
    return [value_type.value]


def key_prefix(separator: str = ":") -> Aggregator:
    """
    Build a policy that buckets keys by their first segment.

    Keys that do not contain `separator` are discarded.
    """
    if not separator:
        raise ValueError("separator cannot be empty")

    def _prefix(key: str, value_type: ValueType) -> List[str]:
        if separator not in key:
            return []
        return [key.split(separator, 1)[0]]

    return _prefix


def combine(*aggregators: Aggregator) -> Aggregator:
    """Build a policy that emits every bucket any of `aggregators` emits."""

    def _combined(key: str, value_type: ValueType) -> List[str]:
        names: List[str] = []
        for aggregator in aggregators:
            names.extend(aggregator(key, value_type))
        return names

    return _combined


def bucket_names(aggregator: Aggregator, key: str, value_type: ValueType) -> List[str]:
    """
    Call `aggregator` once and return its buckets without duplicates.

    Order of first appearance is preserved.
    """
    return list(dict.fromkeys(aggregator(key, value_type) or ()))


AGGREGATORS: Dict[str, Aggregator] = {
    "any-key": any_key,
    "value-type": by_value_type,
    "key-prefix": key_prefix(":"),
}


def get_aggregator(name: str) -> Aggregator:
    """
    Look up a built-in policy by name.

    Raises:
        KeyError: if no policy has that name
    """
    try:
        return AGGREGATORS[name]
    except KeyError:
        raise KeyError(
            f"unknown aggregator {name!r}; choose one of: {', '.join(sorted(AGGREGATORS))}"
        ) from None
