"""Pytest configuration and shared fixtures for SDG pipeline tests.

This module provides fixtures for:
- Temporary staging directories and sample exports
- Pipeline configuration
- File identities for normalizer tests
- In-memory DuckDB stores and the ingestion API test client
"""

import tempfile
from pathlib import Path
from typing import Callable, Generator
from unittest.mock import MagicMock

import pandas as pd
import pytest
from fastapi.testclient import TestClient

from sdg_pipeline.api.app import create_app
from sdg_pipeline.config import PipelineConfig
from sdg_pipeline.models import FileIdentity, IndicatorRecord, Layout, UploadResult
from sdg_pipeline.store import IndicatorValueStore
from sdg_pipeline.upload.run import Upload

TEST_ENDPOINT = "http://ingest.test/api/sdg/upload"


# ============================================================================
# Temporary File Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(scope="function")
def staging_dir(temp_dir: Path) -> Path:
    """Provide an empty staging directory."""
    path = temp_dir / "staging"
    path.mkdir()
    return path


@pytest.fixture(scope="function")
def write_file(staging_dir: Path) -> Callable[[str, str], Path]:
    """Return a helper writing text files into the staging directory."""

    def _write(name: str, content: str) -> Path:
        path = staging_dir / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture(scope="function")
def narrow_csv(write_file) -> Path:
    """Narrow export: one row per state and indicator."""
    return write_file(
        "sdg_goal_4_2023-24.csv",
        "Area,Indicator,Value\n"
        "Bihar,Dropout Rate,12.5\n"
        "Kerala,Dropout Rate,\n",
    )


@pytest.fixture(scope="function")
def wide_csv(write_file) -> Path:
    """Wide export: one column per indicator."""
    return write_file(
        "state_profile_2022-23.csv",
        "SNo,Area,Literacy Rate,Sex Ratio,LPG Access\n"
        "1,Bihar,61.8,918,NA\n"
        "2,Kerala,94.0,1084,72.5\n",
    )


@pytest.fixture(scope="function")
def sample_excel(staging_dir: Path) -> Path:
    """Excel export with a narrow layout on its first sheet."""
    path = staging_dir / "sdg_5_gender_equality.xlsx"
    frame = pd.DataFrame({
        "State": ["Goa", "Punjab"],
        "Indicator Name": ["Sex ratio at birth", "Female LFPR"],
        "Value": [924, 19.3],
    })
    with pd.ExcelWriter(path) as writer:
        frame.to_excel(writer, sheet_name="Data", index=False)
        pd.DataFrame({"ignored": [1]}).to_excel(writer, sheet_name="Notes", index=False)
    return path


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def pipeline_config(staging_dir: Path) -> PipelineConfig:
    """Configuration pointing at the temporary staging directory."""
    return PipelineConfig(
        ingestion_endpoint=TEST_ENDPOINT,
        staging_dir=str(staging_dir),
        batch_size=1000,
        timeout=None,
        fail_fast=False,
        cleanup_staging=True,
    )


# ============================================================================
# Model Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def make_identity() -> Callable[..., FileIdentity]:
    """Return a factory for file identities with test defaults."""

    def _make(layout: Layout = Layout.NARROW, **overrides) -> FileIdentity:
        values = dict(
            path="data.csv",
            delimiter=",",
            year=2023,
            sdg_goal=4,
            sdg_name="Quality Education",
            layout=layout,
            source_url="https://ik.imagekit.io/sdg/",
            data_source="NITI Aayog",
        )
        values.update(overrides)
        return FileIdentity(**values)

    return _make


@pytest.fixture(scope="function")
def make_record() -> Callable[..., IndicatorRecord]:
    """Return a factory for canonical records."""

    def _make(indicator_name="Dropout Rate", state="Bihar", value=1.0, **overrides) -> IndicatorRecord:
        values = dict(
            sdg_goal=4,
            sdg_name="Quality Education",
            state=state,
            indicator_name=indicator_name,
            indicator_value=value,
            year=2023,
            source_url="https://ik.imagekit.io/sdg/",
            data_source="NITI Aayog",
        )
        values.update(overrides)
        return IndicatorRecord(**values)

    return _make


# ============================================================================
# Sink and Store Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def mock_uploader() -> MagicMock:
    """Upload sink double acknowledging every record it receives."""
    uploader = MagicMock(spec=Upload)

    def _send(records, batch_size):
        batches = -(-len(records) // batch_size) if records else 0
        return UploadResult(inserted=len(records), batches_sent=batches)

    uploader.send.side_effect = _send
    return uploader


@pytest.fixture(scope="function")
def store() -> Generator[IndicatorValueStore, None, None]:
    """Provide an initialized in-memory indicator value store."""
    value_store = IndicatorValueStore(":memory:")
    value_store.initialize()
    yield value_store
    value_store.close()


@pytest.fixture(scope="function")
def api_client(store: IndicatorValueStore) -> TestClient:
    """Ingestion API test client backed by the in-memory store."""
    return TestClient(create_app(store))
