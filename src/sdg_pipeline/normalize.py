"""Layout classification and record normalization.

Narrow tables carry one row per state and indicator. Wide tables carry
one row per state with one column per indicator and are pivoted here.
"""

import math
import re
from typing import Dict, Iterable, List, Optional, Sequence

from sdg_pipeline.logging_config import create_logger
from sdg_pipeline.models import FileIdentity, IndicatorRecord, Layout

logger = create_logger(__name__)

INDICATOR_NAME_KEYS = (
    "indicator",
    "indicator name",
    "indicator_name",
    "name of indicator",
    "indicators",
)
STATE_KEYS = ("area", "state", "ut")
VALUE_KEYS = ("value", "indicator value")
DEFAULT_VALUE = "0"

# Wide tables read the state from these exact column names
WIDE_STATE_COLUMNS = ("Area", "State", "UT")
STRUCTURAL_COLUMNS = frozenset({"sno", "area", "state", "ut", "district"})

WIDE_MIN_HEADERS = 3

_LEADING_NUMBER = re.compile(
    r"\s*([+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))"
)


def parse_number(text: Optional[str]) -> float:
    """Parse the leading number of ``text``.

    ``"12.5"`` and ``"12.5%"`` both give 12.5; text without a leading
    number gives NaN.
    """
    if text is None:
        return math.nan
    match = _LEADING_NUMBER.match(str(text))
    if not match:
        return math.nan
    return float(match.group(1))


def classify_layout(headers: Sequence[str]) -> Layout:
    """Wide when no header mentions "indicator" and there are more than 3."""
    lowered = [header.lower() for header in headers]
    has_indicator_column = any("indicator" in header for header in lowered)
    if not has_indicator_column and len(lowered) > WIDE_MIN_HEADERS:
        return Layout.WIDE
    return Layout.NARROW


def _first_present(row: Dict[str, str], keys: Iterable[str]) -> Optional[str]:
    for key in keys:
        value = row.get(key)
        if value:
            return value
    return None


def normalize_narrow(row: Dict[str, str], identity: FileIdentity) -> IndicatorRecord:
    """Build exactly one record from a narrow row.

    A missing or non-numeric value becomes 0.0.
    """
    lower_row = {key.lower().strip(): value for key, value in row.items() if key is not None}

    value = parse_number(_first_present(lower_row, VALUE_KEYS) or DEFAULT_VALUE)
    if not math.isfinite(value):
        value = 0.0

    return identity.make_record(
        state=_first_present(lower_row, STATE_KEYS),
        indicator_name=_first_present(lower_row, INDICATOR_NAME_KEYS),
        value=value,
    )


def indicator_columns(headers: Sequence[str]) -> List[str]:
    """Headers of a wide table that hold indicator values."""
    return [header for header in headers if header.lower() not in STRUCTURAL_COLUMNS]


def normalize_wide(
    row: Dict[str, str], columns: Sequence[str], identity: FileIdentity
) -> List[IndicatorRecord]:
    """Pivot one wide row into a record per numeric indicator cell.

    Cells that do not hold a finite number are skipped.
    """
    state = _first_present(row, WIDE_STATE_COLUMNS)
    records = []
    for column in columns:
        value = parse_number(row.get(column))
        if not math.isfinite(value):
            continue
        records.append(identity.make_record(state, column.strip(), value))
    return records


def normalize_rows(
    rows: Iterable[Dict[str, str]], headers: Sequence[str], identity: FileIdentity
) -> List[IndicatorRecord]:
    """Convert every row of a file into canonical records."""
    records: List[IndicatorRecord] = []

    if identity.layout is Layout.WIDE:
        logger.info("Wide-format detected, pivoting columns -> rows...")
        columns = indicator_columns(headers)
        for row in rows:
            records.extend(normalize_wide(row, columns, identity))
    else:
        for row in rows:
            records.append(normalize_narrow(row, identity))

    return records
