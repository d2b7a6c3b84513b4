"""Configuration module for pipeline settings and environment variables.

Module-level constants are read from the environment once; the
``PipelineConfig`` structure built from them is what the orchestrator
receives, so tests and callers can override any option explicitly.
"""

import os
from dataclasses import dataclass, replace
from typing import Callable, Optional, Union

from sdg_pipeline.exceptions import ConfigurationError
from sdg_pipeline.logging_config import create_logger

logger = create_logger(__name__)

# get the local root directory
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))

DATALAKE_DIR = os.path.join(ROOT_DIR, "data")

# Staging directory populated by the acquisition agent
STAGING_DATA_DIR = os.getenv("SDG_STAGING_DIR", DATALAKE_DIR)

# Ingestion API
INGESTION_ENDPOINT = os.getenv(
    "SDG_INGESTION_ENDPOINT", "http://localhost:5000/api/sdg/upload"
)
DEFAULT_BATCH_SIZE = 1000

# Provenance tags stamped on every record
SOURCE_URL = os.getenv("SDG_SOURCE_URL", "https://ik.imagekit.io/sdg/")
DATA_SOURCE = os.getenv("SDG_DATA_SOURCE", "NITI Aayog")

# Relational store behind the ingestion API
DB_PATH = os.getenv("DB_PATH", os.path.join(DATALAKE_DIR, "sdg.duckdb"))
API_HOST = os.getenv("SDG_API_HOST", "0.0.0.0")
DEFAULT_API_PORT = 5000

FAIL_FAST = os.getenv("SDG_FAIL_FAST", "false").lower() == "true"
CLEANUP_STAGING = os.getenv("SDG_CLEANUP_STAGING", "true").lower() == "true"


def env_number(
    name: str, cast: Callable[[str], Union[int, float]], default: Optional[Union[int, float]]
) -> Optional[Union[int, float]]:
    """
    Read a numeric environment variable.

    Parsed on use, not at import; a malformed value raises
    ``ConfigurationError``.

    :param name: Environment variable name
    :param cast: ``int`` or ``float``
    :param default: Value used when the variable is unset or blank
    :raises ConfigurationError: If the value cannot be parsed
    """
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{name} is not a valid {cast.__name__}: {raw!r}"
        ) from e


@dataclass(frozen=True)
class PipelineConfig:
    """Options for one pipeline run.

    Attributes:
        ingestion_endpoint: URL of the ingestion API upload endpoint
        staging_dir: Directory holding the raw files to process
        batch_size: Number of records per upload request
        timeout: Seconds before an upload request is abandoned (None waits)
        fail_fast: Abort the run on the first file-level failure
        cleanup_staging: Drain the staging directory after the run
        source_url: Provenance URL stamped on every record
        data_source: Provenance label stamped on every record
    """

    ingestion_endpoint: str = INGESTION_ENDPOINT
    staging_dir: str = STAGING_DATA_DIR
    batch_size: int = DEFAULT_BATCH_SIZE
    timeout: Optional[float] = None
    fail_fast: bool = FAIL_FAST
    cleanup_staging: bool = CLEANUP_STAGING
    source_url: str = SOURCE_URL
    data_source: str = DATA_SOURCE

    @classmethod
    def from_env(cls, **overrides) -> "PipelineConfig":
        """Build a config from environment defaults, ignoring ``None`` overrides.

        :raises ConfigurationError: If a numeric environment variable is malformed
        """
        options = {
            "batch_size": env_number("SDG_BATCH_SIZE", int, DEFAULT_BATCH_SIZE),
            "timeout": env_number("SDG_INGESTION_TIMEOUT", float, None),
        }
        options.update({k: v for k, v in overrides.items() if v is not None})
        return replace(cls(), **options)


def validate_config(config: PipelineConfig) -> None:
    """
    Validate critical configuration parameters.

    :param config: Configuration to validate
    :raises ConfigurationError: If any required option is missing or invalid
    """
    if not config.ingestion_endpoint:
        raise ConfigurationError("Ingestion endpoint (SDG_INGESTION_ENDPOINT) is not configured")

    if not config.staging_dir:
        raise ConfigurationError("Staging directory (SDG_STAGING_DIR) is not configured")

    if config.batch_size <= 0:
        raise ConfigurationError(
            f"Batch size must be a positive integer, got {config.batch_size}"
        )

    if config.timeout is not None and config.timeout <= 0:
        raise ConfigurationError(f"Timeout must be positive, got {config.timeout}")

    logger.debug("Configuration validation successful")
