# ==============================================
# RunConfig
# ==============================================
#
# PURPOSE:
#   Immutable description of one sampling run against one Redis
#   instance: where it is, and which of the two modes to use.
#
# MODES:
# ------
# - RandomSample(min_samples, sample_rate)
#     Draw random keys (with replacement) until
#     max(min_samples, sample_rate * key_count, 1) keys were sampled.
#     At least one of min_samples / sample_rate must be > 0.
#
# - PatternScan(glob)
#     Walk the whole keyspace with SCAN MATCH glob. An empty glob
#     matches nothing and is rejected.
#
# validate() raises ConfigurationError; the orchestrator calls it
# before opening any connection.
#
# ==============================================

from dataclasses import dataclass
from typing import Union

from reckon.errors import ConfigurationError


@dataclass(frozen=True)
class RandomSample:
    """Sample random keys, with replacement."""
    min_samples: int = 0
    sample_rate: float = 0.0

    def validate(self) -> None:
        if self.min_samples < 0:
            raise ConfigurationError("min_samples cannot be negative")
        if not 0.0 <= self.sample_rate <= 1.0:
            raise ConfigurationError("sample rate must be between 0.0 and 1.0")
        if self.min_samples == 0 and self.sample_rate == 0.0:
            raise ConfigurationError("either min_samples or sample_rate must be greater than zero")

    def target_samples(self, key_count: int) -> int:
        """
        Number of keys to sample from an instance holding `key_count` keys.

        Never less than 1.
        """
        return max(self.min_samples, int(key_count * self.sample_rate), 1)


@dataclass(frozen=True)
class PatternScan:
    """Enumerate every key matching a glob with SCAN."""
    glob: str = "*"

    def validate(self) -> None:
        if not self.glob:
            raise ConfigurationError("glob expression is empty; no keys will ever match")


Mode = Union[RandomSample, PatternScan]


@dataclass(frozen=True)
class RunConfig:
    """Configuration for a single run against a single Redis instance."""
    host: str
    port: int = 6379
    mode: Mode = RandomSample(min_samples=100)
    db: int = 0

    @classmethod
    def sample(cls, host: str, port: int = 6379, min_samples: int = 0,
               sample_rate: float = 0.0, db: int = 0) -> "RunConfig":
        return cls(host=host, port=port, mode=RandomSample(min_samples, sample_rate), db=db)

    @classmethod
    def scan(cls, host: str, port: int = 6379, glob: str = "*", db: int = 0) -> "RunConfig":
        return cls(host=host, port=port, mode=PatternScan(glob), db=db)

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def scan_mode(self) -> bool:
        return isinstance(self.mode, PatternScan)

    def validate(self) -> None:
        """
        Check every constraint of the configuration.

        Raises:
            ConfigurationError: describing the first problem found
        """
        if not self.host:
            raise ConfigurationError("host cannot be empty")
        if not 0 < self.port < 65536:
            raise ConfigurationError(f"invalid port: {self.port}")
        if self.db < 0:
            raise ConfigurationError(f"invalid db index: {self.db}")
        if not isinstance(self.mode, (RandomSample, PatternScan)):
            raise ConfigurationError(f"unsupported sampling mode: {self.mode!r}")
        self.mode.validate()
