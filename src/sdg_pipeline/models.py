"""Data model for the SDG pipeline.

``IndicatorRecord`` is the canonical row delivered to the ingestion API.
``FileIdentity`` is derived once per staged file and discarded after the
file is normalized. ``FileReport`` and ``RunReport`` summarize a run.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

UNKNOWN_GOAL_NAME = "Unknown Goal"


class Layout(str, Enum):
    """Shape of a parsed table."""

    NARROW = "narrow"  # one row per state + indicator
    WIDE = "wide"  # one row per state, one column per indicator


@dataclass
class IndicatorRecord:
    """One indicator measurement for one state and year."""

    sdg_goal: Optional[int]
    sdg_name: str
    state: Optional[str]
    indicator_name: Optional[str]
    indicator_value: float
    year: int
    source_url: str
    data_source: str

    def to_dict(self) -> Dict[str, Any]:
        """Return the JSON object sent to the ingestion API."""
        return asdict(self)


@dataclass(frozen=True)
class FileIdentity:
    """Everything derived about a staged file before its rows are read."""

    path: str
    delimiter: str
    year: int
    sdg_goal: Optional[int]
    sdg_name: str
    layout: Layout
    source_url: str
    data_source: str

    def make_record(
        self, state: Optional[str], indicator_name: Optional[str], value: float
    ) -> IndicatorRecord:
        """Stamp file-level fields onto a single measurement."""
        return IndicatorRecord(
            sdg_goal=self.sdg_goal,
            sdg_name=self.sdg_name,
            state=state,
            indicator_name=indicator_name,
            indicator_value=value,
            year=self.year,
            source_url=self.source_url,
            data_source=self.data_source,
        )


@dataclass
class UploadResult:
    """Outcome of sending one file's records to the ingestion API."""

    inserted: int = 0
    batches_sent: int = 0
    batches_failed: int = 0
    errors: List[str] = field(default_factory=list)


@dataclass
class FileReport:
    """Outcome of processing one staged file."""

    file_name: str
    identity: Optional[FileIdentity] = None
    records_prepared: int = 0
    records_dropped: int = 0
    records_inserted: int = 0
    batches_sent: int = 0
    batches_failed: int = 0
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class RunReport:
    """Outcome of a full pipeline run."""

    files: List[FileReport] = field(default_factory=list)
    cleanup_failures: List[str] = field(default_factory=list)
    files_deleted: int = 0

    @property
    def files_processed(self) -> int:
        return len(self.files)

    @property
    def files_failed(self) -> int:
        return sum(1 for report in self.files if not report.succeeded)

    @property
    def records_inserted(self) -> int:
        return sum(report.records_inserted for report in self.files)

    @property
    def records_dropped(self) -> int:
        return sum(report.records_dropped for report in self.files)

    @property
    def batches_failed(self) -> int:
        return sum(report.batches_failed for report in self.files)
