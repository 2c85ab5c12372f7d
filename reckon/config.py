# ==============================================
# Configuration Management
# ==============================================
#
# PURPOSE:
#   Load all process-level defaults from environment variables /
#   .env file. The engine itself only ever sees a validated RunConfig;
#   this module supplies the values the CLI and RedisClient fall back on.
#
# CLASSES:
# --------
# - RedisConfig (dataclass)
#     host: str                   (default "localhost")
#     port: int                   (default 6379)
#     db: int                     (default 0)
#     socket_timeout: float       (default 5.0)
#     max_connections: int        (default 8)
#     health_check_interval: int  (default 30)
#
# - SamplingConfig (dataclass)
#     min_samples: int    (default 100)
#     sample_rate: float  (default 0.1)
#     glob: str           (default "*")
#
# - AppConfig (dataclass)
#     redis: RedisConfig
#     sampling: SamplingConfig
#     aggregator: str     (default "any-key")
#     report_dir: str     (default "reports/")
#
# FUNCTIONS:
# ----------
# - get_config() -> AppConfig
#     Load .env using python-dotenv, construct AppConfig.
#     Returns the same singleton on repeated calls.
# - reset_config() -> None
#     Forget the singleton (used by tests).
#
# USAGE:
# ------
#   from reckon.config import get_config
#   config = get_config()
#   print(config.redis.host)
#   print(config.sampling.min_samples)
#
# ==============================================

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


@dataclass
class RedisConfig:
    """Redis connection defaults."""
    host: str = "localhost"
    port: int = 6379
    db: int = 0
    socket_timeout: float = 5.0
    max_connections: int = 8
    health_check_interval: int = 30


@dataclass
class SamplingConfig:
    """Default sampling parameters."""
    min_samples: int = 100
    sample_rate: float = 0.1
    glob: str = "*"


@dataclass
class AppConfig:
    """Main application configuration."""
    redis: RedisConfig = field(default_factory=RedisConfig)
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    aggregator: str = "any-key"
    report_dir: str = "reports/"


# Singleton instance
_config_instance: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Load configuration from environment variables / .env file.
    Returns the same singleton instance on repeated calls.

    Returns:
        AppConfig: Application configuration
    """
    global _config_instance

    if _config_instance is not None:
        return _config_instance

    # Load .env file from project root
    env_path = Path(__file__).parent.parent / ".env"
    load_dotenv(dotenv_path=env_path)

    redis_config = RedisConfig(
        host=os.getenv("REDIS_HOST", "localhost"),
        port=int(os.getenv("REDIS_PORT", "6379")),
        db=int(os.getenv("REDIS_DB", "0")),
        socket_timeout=float(os.getenv("REDIS_SOCKET_TIMEOUT", "5.0")),
        max_connections=int(os.getenv("REDIS_MAX_CONNECTIONS", "8")),
        health_check_interval=int(os.getenv("REDIS_HEALTH_CHECK_INTERVAL", "30")),
    )

    sampling_config = SamplingConfig(
        min_samples=int(os.getenv("RECKON_MIN_SAMPLES", "100")),
        sample_rate=float(os.getenv("RECKON_SAMPLE_RATE", "0.1")),
        glob=os.getenv("RECKON_GLOB", "*"),
    )

    _config_instance = AppConfig(
        redis=redis_config,
        sampling=sampling_config,
        aggregator=os.getenv("RECKON_AGGREGATOR", "any-key"),
        report_dir=os.getenv("RECKON_REPORT_DIR", "reports/"),
    )

    return _config_instance


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() reloads it."""
    global _config_instance
    _config_instance = None
