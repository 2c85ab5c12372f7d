# ==============================================
# Results + Accumulator
# ==============================================
#
# PURPOSE:
#   Hold everything observed about the keys that landed in one
#   bucket, and combine buckets collected from different runs.
#
# CLASS: ValueSample (dataclass)
# ------------------------------
#   What a type sampler learned about a single key:
#   - key: str
#   - value_type: ValueType
#   - length: int | None     → list/set/zset/hash size (None for strings)
#   - element: str|bytes|None → representative element / member / hash field
#   - value: str|bytes|None   → string value / value of the hash field
#
# CLASS: Results (dataclass)
# --------------------------
#   One instance per bucket. Histograms map a size (in bytes, or number
#   of members) to the number of times that size was seen. Example sets
#   are capped at 10 members each and filled first-come.
#
#   Methods:
#   --------
#   - observe(sample) / observe_string / observe_list / observe_set /
#     observe_sorted_set / observe_hash
#   - merge(other)     → sum histograms, union example sets (no cap!),
#                        sum key_count. Associative and commutative.
#   - trimmed()        → copy with every example set cut back to its cap
#   - copy()
#   - to_dict() / from_dict()
#
# CLASS: Accumulator
# ------------------
#   bucket name → Results, with lazily created entries.
#
# ==============================================

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Mapping, Optional, Union

from .example_set import BoundedExampleSet
from .statistics import Histogram, merge_histograms
from .value_type import ValueType

MAX_EXAMPLE_KEYS = 10
MAX_EXAMPLE_ELEMENTS = 10
MAX_EXAMPLE_VALUES = 10

Raw = Union[str, bytes]


def byte_length(value: Raw) -> int:
    """Size of a stored value in bytes."""
    if isinstance(value, bytes):
        return len(value)
    return len(value.encode("utf-8", errors="surrogateescape"))


def as_text(value: Raw) -> str:
    """Printable form of a stored value, for example sets."""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def _count(histogram: Histogram, size: int) -> None:
    histogram[size] = histogram.get(size, 0) + 1


def _keys() -> BoundedExampleSet:
    return BoundedExampleSet(MAX_EXAMPLE_KEYS)


def _elements() -> BoundedExampleSet:
    return BoundedExampleSet(MAX_EXAMPLE_ELEMENTS)


def _values() -> BoundedExampleSet:
    return BoundedExampleSet(MAX_EXAMPLE_VALUES)


@dataclass
class ValueSample:
    """What a type sampler learned about one key."""
    key: str
    value_type: ValueType
    length: Optional[int] = None
    element: Optional[Raw] = None
    value: Optional[Raw] = None


@dataclass
class Results:
    """
    Sampled size distributions and example data for one bucket.
    """

    name: str = ""
    key_count: int = 0

    # --- Strings ---
    string_sizes: Histogram = field(default_factory=dict)
    string_keys: BoundedExampleSet = field(default_factory=_keys)
    string_values: BoundedExampleSet = field(default_factory=_values)

    # --- Sets ---
    set_sizes: Histogram = field(default_factory=dict)
    set_element_sizes: Histogram = field(default_factory=dict)
    set_keys: BoundedExampleSet = field(default_factory=_keys)
    set_elements: BoundedExampleSet = field(default_factory=_elements)

    # --- Sorted sets ---
    sorted_set_sizes: Histogram = field(default_factory=dict)
    sorted_set_element_sizes: Histogram = field(default_factory=dict)
    sorted_set_keys: BoundedExampleSet = field(default_factory=_keys)
    sorted_set_elements: BoundedExampleSet = field(default_factory=_elements)

    # --- Hashes ---
    hash_sizes: Histogram = field(default_factory=dict)
    hash_element_sizes: Histogram = field(default_factory=dict)
    hash_value_sizes: Histogram = field(default_factory=dict)
    hash_keys: BoundedExampleSet = field(default_factory=_keys)
    hash_elements: BoundedExampleSet = field(default_factory=_elements)
    hash_values: BoundedExampleSet = field(default_factory=_values)

    # --- Lists ---
    list_sizes: Histogram = field(default_factory=dict)
    list_element_sizes: Histogram = field(default_factory=dict)
    list_keys: BoundedExampleSet = field(default_factory=_keys)
    list_elements: BoundedExampleSet = field(default_factory=_elements)

    HISTOGRAMS = (
        "string_sizes",
        "set_sizes", "set_element_sizes",
        "sorted_set_sizes", "sorted_set_element_sizes",
        "hash_sizes", "hash_element_sizes", "hash_value_sizes",
        "list_sizes", "list_element_sizes",
    )
    EXAMPLE_SETS = (
        "string_keys", "string_values",
        "set_keys", "set_elements",
        "sorted_set_keys", "sorted_set_elements",
        "hash_keys", "hash_elements", "hash_values",
        "list_keys", "list_elements",
    )

    # ======================================
    # Observation
    # ======================================
    def observe(self, sample: ValueSample) -> None:
        """
        Fold one sampled key into this bucket.

        Args:
            sample: The enriched observation produced by a type sampler

        Raises:
            ValueError: if the sample's type is UNKNOWN
        """
        vt = sample.value_type
        if vt is ValueType.STRING:
            self.observe_string(sample.key, sample.value)
        elif vt is ValueType.LIST:
            self.observe_list(sample.key, sample.length, sample.element)
        elif vt is ValueType.SET:
            self.observe_set(sample.key, sample.length, sample.element)
        elif vt is ValueType.SORTED_SET:
            self.observe_sorted_set(sample.key, sample.length, sample.element)
        elif vt is ValueType.HASH:
            self.observe_hash(sample.key, sample.length, sample.element, sample.value)
        else:
            raise ValueError(f"cannot observe value type {vt.value!r} for key {sample.key!r}")

    def observe_string(self, key: str, value: Raw) -> None:
        self.key_count += 1
        _count(self.string_sizes, byte_length(value))
        self.string_keys.add(key)
        self.string_values.add(as_text(value))

    def observe_list(self, key: str, length: int, element: Raw) -> None:
        self.key_count += 1
        _count(self.list_sizes, length)
        _count(self.list_element_sizes, byte_length(element))
        self.list_keys.add(key)
        self.list_elements.add(as_text(element))

    def observe_set(self, key: str, length: int, member: Raw) -> None:
        self.key_count += 1
        _count(self.set_sizes, length)
        _count(self.set_element_sizes, byte_length(member))
        self.set_keys.add(key)
        self.set_elements.add(as_text(member))

    def observe_sorted_set(self, key: str, length: int, member: Raw) -> None:
        self.key_count += 1
        _count(self.sorted_set_sizes, length)
        _count(self.sorted_set_element_sizes, byte_length(member))
        self.sorted_set_keys.add(key)
        self.sorted_set_elements.add(as_text(member))

    def observe_hash(self, key: str, length: int, field_name: Raw, value: Raw) -> None:
        self.key_count += 1
        _count(self.hash_sizes, length)
        _count(self.hash_element_sizes, byte_length(field_name))
        _count(self.hash_value_sizes, byte_length(value))
        self.hash_keys.add(key)
        self.hash_elements.add(as_text(field_name))
        self.hash_values.add(as_text(value))

    # ======================================
    # Combination
    # ======================================
    def merge(self, other: "Results") -> "Results":
        """
        Add the results from `other` into this instance.

        Histograms are summed key by key, example sets are unioned and
        key counts are summed. Example sets are NOT trimmed back to their
        cap here; call trimmed() before reporting.

        Merging the same non-empty `other` twice counts it twice.

        Returns:
            self, for chaining
        """
        self.key_count += other.key_count
        for name in self.HISTOGRAMS:
            merge_histograms(getattr(self, name), getattr(other, name))
        for name in self.EXAMPLE_SETS:
            getattr(self, name).union(getattr(other, name))
        return self

    def trimmed(self) -> "Results":
        """Return a copy whose example sets hold at most their cap."""
        clone = self.copy()
        for name in self.EXAMPLE_SETS:
            setattr(clone, name, getattr(self, name).trim())
        return clone

    def copy(self) -> "Results":
        clone = Results(name=self.name, key_count=self.key_count)
        for name in self.HISTOGRAMS:
            setattr(clone, name, dict(getattr(self, name)))
        for name in self.EXAMPLE_SETS:
            setattr(clone, name, getattr(self, name).copy())
        return clone

    # ======================================
    # Serialization
    # ======================================
    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to a JSON-friendly dictionary.

        Histogram keys stay ints here; json.dumps turns them into strings,
        which from_dict() accepts.
        """
        data: Dict[str, Any] = {"name": self.name, "key_count": self.key_count}
        for name in self.HISTOGRAMS:
            data[name] = dict(getattr(self, name))
        for name in self.EXAMPLE_SETS:
            data[name] = getattr(self, name).to_list()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Results":
        """
        Rebuild Results from to_dict() output (possibly after a JSON round trip).

        Example sets are restored without applying the cap, the same way
        merge() treats them.
        """
        results = cls(name=data.get("name", ""), key_count=data.get("key_count", 0))
        for name in cls.HISTOGRAMS:
            setattr(results, name, {int(k): int(v) for k, v in data.get(name, {}).items()})
        for name in cls.EXAMPLE_SETS:
            getattr(results, name).union(data.get(name, []))
        return results


class Accumulator:
    """
    Per-run mapping of bucket name → Results.

    Only the thread running the sampling loop writes to it.
    """

    def __init__(self):
        self.results: Dict[str, Results] = {}

    def ensure(self, bucket: str) -> Results:
        """Return the Results for `bucket`, creating it on first use."""
        results = self.results.get(bucket)
        if results is None:
            results = Results(name=bucket)
            self.results[bucket] = results
        return results

    def observe(self, bucket: str, sample: ValueSample) -> None:
        self.ensure(bucket).observe(sample)

    def merge(self, other: Mapping[str, Results]) -> "Accumulator":
        merge_results_maps(self.results, other)
        return self

    def __getitem__(self, bucket: str) -> Results:
        return self.results[bucket]

    def __contains__(self, bucket: object) -> bool:
        return bucket in self.results

    def __iter__(self) -> Iterator[str]:
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)


def merge_results_maps(totals: Dict[str, Results], other: Mapping[str, Results]) -> Dict[str, Results]:
    """
    Fold a bucket → Results map into `totals`.

    Buckets missing from `totals` are copied in, so `other` is never
    aliased by the running total.

    Returns:
        totals
    """
    for bucket, results in other.items():
        existing = totals.get(bucket)
        if existing is None:
            totals[bucket] = results.copy()
        else:
            existing.merge(results)
    return totals
