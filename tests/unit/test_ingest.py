"""Unit tests for the run orchestrator.

Tests cover:
- Staged file discovery
- File identity derivation
- Per-file processing and reporting
- Failure isolation and fail-fast mode
- Staging cleanup
"""

import os
from dataclasses import replace
from unittest.mock import patch

import pytest

from sdg_pipeline.config import PipelineConfig
from sdg_pipeline.exceptions import ConfigurationError, FileConversionError, IngestError
from sdg_pipeline.ingest.run import Ingest, main
from sdg_pipeline.models import Layout, RunReport


# ============================================================================
# Initialization Tests
# ============================================================================

@pytest.mark.unit
class TestIngestInitialization:
    """Test Ingest construction."""

    def test_builds_uploader_from_config(self, pipeline_config):
        ingest = Ingest(replace(pipeline_config, timeout=3.0))

        assert ingest.uploader.endpoint == pipeline_config.ingestion_endpoint
        assert ingest.uploader.timeout == 3.0

    def test_invalid_config_is_rejected(self, pipeline_config):
        with pytest.raises(ConfigurationError, match="Batch size"):
            Ingest(replace(pipeline_config, batch_size=0))


# ============================================================================
# File Discovery Tests
# ============================================================================

@pytest.mark.unit
class TestListStagedFiles:
    """Test extension-based discovery in the staging directory."""

    def test_lists_csv_and_excel_sorted(self, pipeline_config, mock_uploader, write_file, staging_dir):
        write_file("b.csv", "x")
        write_file("a.XLSX", "x")
        write_file("notes.txt", "x")
        (staging_dir / "nested.csv").mkdir()

        files = Ingest(pipeline_config, mock_uploader).list_staged_files()

        assert [os.path.basename(f) for f in files] == ["a.XLSX", "b.csv"]

    def test_missing_staging_dir(self, pipeline_config, mock_uploader, temp_dir):
        config = replace(pipeline_config, staging_dir=str(temp_dir / "missing"))
        with pytest.raises(ConfigurationError, match="does not exist"):
            Ingest(config, mock_uploader).list_staged_files()


# ============================================================================
# File Processing Tests
# ============================================================================

@pytest.mark.unit
class TestProcessFile:
    """Test one file through detection, normalization and upload."""

    def test_narrow_file(self, pipeline_config, mock_uploader, narrow_csv):
        report = Ingest(pipeline_config, mock_uploader).process_file(str(narrow_csv))

        identity = report.identity
        assert identity.layout is Layout.NARROW
        assert identity.year == 2023
        assert identity.sdg_goal is None
        assert identity.sdg_name == "Unknown Goal"
        assert identity.delimiter == ","

        records, batch_size = mock_uploader.send.call_args.args
        assert batch_size == 1000
        assert [(r.state, r.indicator_value) for r in records] == [("Bihar", 12.5), ("Kerala", 0.0)]
        assert report.records_prepared == 2
        assert report.records_dropped == 0
        assert report.records_inserted == 2
        assert report.succeeded

    def test_wide_file(self, pipeline_config, mock_uploader, wide_csv):
        report = Ingest(pipeline_config, mock_uploader).process_file(str(wide_csv))

        assert report.identity.layout is Layout.WIDE
        assert report.identity.sdg_goal == 5
        assert report.identity.year == 2022
        assert report.records_prepared == 5

    def test_records_without_indicator_are_not_sent(self, pipeline_config, mock_uploader, write_file):
        path = write_file(
            "data_export_2021-22.csv",
            "State\tIndicator Name\tValue\nGoa\t\t5\nGoa\tLiteracy\t7\n",
        )

        report = Ingest(pipeline_config, mock_uploader).process_file(str(path))

        records, _ = mock_uploader.send.call_args.args
        assert [r.indicator_name for r in records] == ["Literacy"]
        assert report.identity.delimiter == "\t"
        assert report.records_prepared == 2
        assert report.records_dropped == 1

    def test_excel_file_is_converted(self, pipeline_config, mock_uploader, sample_excel):
        report = Ingest(pipeline_config, mock_uploader).process_file(str(sample_excel))

        assert report.identity.path.endswith("sdg_5_gender_equality.csv")
        assert report.identity.sdg_goal == 5
        assert report.identity.sdg_name == "Gender Equality"
        records, _ = mock_uploader.send.call_args.args
        assert [(r.state, r.indicator_value) for r in records] == [
            ("Goa", 924.0),
            ("Punjab", 19.3),
        ]

    def test_empty_file_sends_nothing(self, pipeline_config, mock_uploader, write_file):
        report = Ingest(pipeline_config, mock_uploader).process_file(str(write_file("empty.csv", "")))

        assert report.records_prepared == 0
        assert report.identity.sdg_name == "Unknown Goal"
        assert mock_uploader.send.call_args.args[0] == []

    def test_provenance_from_config(self, pipeline_config, mock_uploader, narrow_csv):
        config = replace(pipeline_config, source_url="https://example.org/", data_source="Test Portal")
        Ingest(config, mock_uploader).process_file(str(narrow_csv))

        records, _ = mock_uploader.send.call_args.args
        assert {(r.source_url, r.data_source) for r in records} == {("https://example.org/", "Test Portal")}


# ============================================================================
# Run Tests
# ============================================================================

@pytest.mark.unit
class TestIngestRun:
    """Test the full run over the staging directory."""

    def test_processes_all_files_then_cleans_up(
        self, pipeline_config, mock_uploader, narrow_csv, wide_csv, staging_dir
    ):
        (staging_dir / "readme.txt").write_text("left by the acquisition agent")

        report = Ingest(pipeline_config, mock_uploader).run()

        assert [f.file_name for f in report.files] == [narrow_csv.name, wide_csv.name]
        assert report.records_inserted == 7
        assert report.files_failed == 0
        assert report.files_deleted == 3
        assert list(staging_dir.iterdir()) == []

    def test_bad_file_is_isolated(self, pipeline_config, mock_uploader, narrow_csv, staging_dir):
        (staging_dir / "broken.xlsx").write_bytes(b"not a workbook")

        report = Ingest(pipeline_config, mock_uploader).run()

        assert report.files_processed == 2
        assert report.files_failed == 1
        failed = report.files[0]
        assert failed.file_name == "broken.xlsx"
        assert "broken.xlsx" in failed.error
        assert report.files[1].records_inserted == 2
        assert list(staging_dir.iterdir()) == []

    def test_fail_fast_aborts_without_cleanup(self, pipeline_config, mock_uploader, narrow_csv, staging_dir):
        (staging_dir / "broken.xlsx").write_bytes(b"not a workbook")
        config = replace(pipeline_config, fail_fast=True)

        with pytest.raises(IngestError, match="broken.xlsx") as excinfo:
            Ingest(config, mock_uploader).run()

        assert isinstance(excinfo.value.__cause__, FileConversionError)
        mock_uploader.send.assert_not_called()
        assert narrow_csv.exists()

    def test_cleanup_can_be_disabled(self, pipeline_config, mock_uploader, narrow_csv):
        Ingest(replace(pipeline_config, cleanup_staging=False), mock_uploader).run()
        assert narrow_csv.exists()

    def test_empty_staging_dir(self, pipeline_config, mock_uploader):
        report = Ingest(pipeline_config, mock_uploader).run()

        assert report.files == []
        mock_uploader.send.assert_not_called()

    def test_owned_uploader_is_closed_after_run(self, pipeline_config):
        with patch("sdg_pipeline.ingest.run.Upload") as mock_upload:
            Ingest(pipeline_config).run()

        mock_upload.return_value.close.assert_called_once()

    def test_owned_uploader_is_closed_on_abort(self, pipeline_config, staging_dir):
        (staging_dir / "broken.xlsx").write_bytes(b"not a workbook")

        with patch("sdg_pipeline.ingest.run.Upload") as mock_upload:
            with pytest.raises(IngestError):
                Ingest(replace(pipeline_config, fail_fast=True)).run()

        mock_upload.return_value.close.assert_called_once()

    def test_injected_uploader_is_left_open(self, pipeline_config, mock_uploader, narrow_csv):
        Ingest(pipeline_config, mock_uploader).run()

        mock_uploader.close.assert_not_called()


# ============================================================================
# Cleanup Tests
# ============================================================================

@pytest.mark.unit
class TestCleanupStaging:
    """Test terminal cleanup tolerance."""

    def test_deletion_errors_are_logged_and_skipped(self, pipeline_config, mock_uploader, write_file):
        write_file("a.csv", "x")
        write_file("b.csv", "x")
        real_remove = os.remove

        def flaky_remove(path):
            if path.endswith("a.csv"):
                raise PermissionError("locked")
            real_remove(path)

        report = RunReport()
        with patch("sdg_pipeline.ingest.run.os.remove", side_effect=flaky_remove):
            Ingest(pipeline_config, mock_uploader).cleanup_staging(report)

        assert report.files_deleted == 1
        assert report.cleanup_failures == ["a.csv: locked"]

    def test_subdirectories_are_reported(self, pipeline_config, mock_uploader, staging_dir):
        (staging_dir / "archive").mkdir()
        report = RunReport()

        Ingest(pipeline_config, mock_uploader).cleanup_staging(report)

        assert len(report.cleanup_failures) == 1
        assert report.cleanup_failures[0].startswith("archive:")


# ============================================================================
# Command Line Tests
# ============================================================================

@pytest.mark.unit
class TestMain:
    """Test the command line entry point."""

    def test_arguments_override_config(self, staging_dir):
        with patch("sdg_pipeline.ingest.run.Ingest") as mock_ingest:
            mock_ingest.return_value.run.return_value = RunReport()

            exit_code = main([
                "--staging-dir", str(staging_dir),
                "--endpoint", "http://api.test/upload",
                "--batch-size", "250",
                "--keep-files",
            ])

        assert exit_code == 0
        config = mock_ingest.call_args.args[0]
        assert isinstance(config, PipelineConfig)
        assert config.staging_dir == str(staging_dir)
        assert config.ingestion_endpoint == "http://api.test/upload"
        assert config.batch_size == 250
        assert config.cleanup_staging is False

    def test_aborted_run_exits_with_one(self, temp_dir):
        assert main(["--staging-dir", str(temp_dir / "missing")]) == 1

    def test_malformed_environment_exits_with_one(self, staging_dir, monkeypatch):
        monkeypatch.setenv("SDG_BATCH_SIZE", "lots")

        assert main(["--staging-dir", str(staging_dir)]) == 1
