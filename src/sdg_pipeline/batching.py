"""Validation and batching of normalized records."""

from typing import Iterator, List, Sequence, Tuple, TypeVar

from sdg_pipeline.logging_config import create_logger
from sdg_pipeline.models import IndicatorRecord

logger = create_logger(__name__)

T = TypeVar("T")


def filter_valid(records: Sequence[IndicatorRecord]) -> Tuple[List[IndicatorRecord], int]:
    """Drop records without an indicator name.

    :param records: Normalized records in file order
    :return: Valid records (order preserved) and the number dropped
    """
    valid = [record for record in records if record.indicator_name]
    dropped = len(records) - len(valid)
    if dropped:
        logger.warning(f"Skipped {dropped} rows (missing indicator_name)")
    return valid, dropped


def chunk(items: Sequence[T], size: int) -> Iterator[List[T]]:
    """Yield consecutive slices of at most ``size`` items."""
    if size <= 0:
        raise ValueError(f"Batch size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])
