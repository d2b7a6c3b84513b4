"""DuckDB-backed relational store for indicator values.

Rows are keyed by (sdg_goal, state, indicator_name, year). Writing the
same key again overwrites ``indicator_value`` and ``data_source``.

An unknown goal or state is part of the key like any other value: it is
stored as a sentinel (``NULL_GOAL`` / ``NULL_STATE``) so the unique
constraint matches it, and read back as ``None``.
"""

import threading
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import duckdb

from sdg_pipeline.batching import chunk
from sdg_pipeline.config import DB_PATH
from sdg_pipeline.exceptions import StoreError
from sdg_pipeline.logging_config import create_logger

logger = create_logger(__name__)

TABLE_NAME = "sdg_data"
COLUMNS = (
    "sdg_goal",
    "sdg_name",
    "state",
    "indicator_name",
    "indicator_value",
    "year",
    "source_url",
    "data_source",
)
KEY_COLUMNS = ("sdg_goal", "state", "indicator_name", "year")
FILTER_COLUMNS = frozenset({"sdg_goal", "sdg_name", "indicator_name", "state", "year"})
UPSERT_CHUNK_SIZE = 1000

# SQL UNIQUE treats NULLs as distinct, so missing key parts are stored as these
NULL_GOAL = -1
NULL_STATE = ""
_SENTINELS = {"sdg_goal": NULL_GOAL, "state": NULL_STATE}

_CREATE_TABLE_SQL = f"""
    CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
        sdg_goal INTEGER NOT NULL,
        sdg_name VARCHAR,
        state VARCHAR NOT NULL,
        indicator_name VARCHAR NOT NULL,
        indicator_value DOUBLE,
        year INTEGER NOT NULL,
        source_url VARCHAR,
        data_source VARCHAR,
        UNIQUE ({", ".join(KEY_COLUMNS)})
    )
"""

_UPSERT_SQL = f"""
    INSERT INTO {TABLE_NAME} ({", ".join(COLUMNS)})
    VALUES ({", ".join("?" for _ in COLUMNS)})
    ON CONFLICT ({", ".join(KEY_COLUMNS)})
    DO UPDATE SET
        indicator_value = EXCLUDED.indicator_value,
        data_source = EXCLUDED.data_source
"""


def _to_row(record: Mapping[str, Any]) -> Tuple[Any, ...]:
    values = {column: record.get(column) for column in COLUMNS}
    for column, sentinel in _SENTINELS.items():
        if values[column] is None:
            values[column] = sentinel
    return tuple(values[column] for column in COLUMNS)


def _from_row(row: Tuple[Any, ...]) -> Dict[str, Any]:
    record = dict(zip(COLUMNS, row))
    for column, sentinel in _SENTINELS.items():
        if record[column] == sentinel:
            record[column] = None
    return record


class IndicatorValueStore:
    """Upsert and read indicator values in a DuckDB database.

    Attributes:
        db_path: Path to the DuckDB file, or ``":memory:"``
        con: Open DuckDB connection
    """

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or DB_PATH
        self.con = duckdb.connect(self.db_path)
        self._lock = threading.Lock()
        logger.debug(f"Connected to database: {self.db_path}")

    def initialize(self) -> None:
        """Create the indicator value table if it does not exist."""
        with self._lock:
            self.con.execute(_CREATE_TABLE_SQL)

    def upsert(self, records: Iterable[Mapping[str, Any]]) -> int:
        """
        Insert or update records, one transaction per chunk of 1000.

        Records repeating a key within one call collapse to the last one.

        :param records: Mappings carrying every column in ``COLUMNS``
        :return: Number of rows inserted or updated
        :raises StoreError: If DuckDB rejects a chunk
        """
        # Later duplicates of a key replace earlier ones
        by_key: Dict[tuple, tuple] = {}
        for record in records:
            row = _to_row(record)
            by_key[tuple(row[COLUMNS.index(column)] for column in KEY_COLUMNS)] = row
        rows = list(by_key.values())
        affected = 0

        with self._lock:
            for batch in chunk(rows, UPSERT_CHUNK_SIZE):
                try:
                    self.con.execute("BEGIN TRANSACTION")
                    self.con.executemany(_UPSERT_SQL, batch)
                    self.con.execute("COMMIT")
                except duckdb.Error as e:
                    self.con.execute("ROLLBACK")
                    raise StoreError(f"Bulk insert failed: {e}") from e
                affected += len(batch)

        logger.info(f"Upserted {affected} rows into {TABLE_NAME}")
        return affected

    def fetch(self, **filters: Any) -> List[Dict[str, Any]]:
        """Return rows matching every non-None filter, ordered by key."""
        unknown = set(filters) - FILTER_COLUMNS
        if unknown:
            raise ValueError(f"Unsupported filters: {sorted(unknown)}")

        clauses = []
        params = []
        for column, value in filters.items():
            if value is not None:
                clauses.append(f"{column} = ?")
                params.append(value)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        query = (
            f"SELECT {', '.join(COLUMNS)} FROM {TABLE_NAME} {where} "
            f"ORDER BY {', '.join(KEY_COLUMNS)}"
        )
        with self._lock:
            result = self.con.execute(query, params).fetchall()
        return [_from_row(row) for row in result]

    def count(self) -> int:
        with self._lock:
            return self.con.execute(f"SELECT COUNT(*) FROM {TABLE_NAME}").fetchone()[0]

    def close(self) -> None:
        """Close the database connection."""
        if self.con:
            self.con.close()
            self.con = None
