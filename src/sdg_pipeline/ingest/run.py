"""Run orchestrator for staged SDG exports.

Every CSV or Excel file in the staging directory goes through format
detection, goal and year resolution, layout classification,
normalization, validation and upload, one file at a time. The staging
directory is drained once all files have been attempted.
"""

import argparse
import os
import sys
import time
from typing import List, Optional, Tuple

from sdg_pipeline.batching import filter_valid
from sdg_pipeline.config import PipelineConfig, validate_config
from sdg_pipeline.exceptions import ConfigurationError, IngestError, PipelineBaseError
from sdg_pipeline.formats import detect_delimiter, is_supported_file, iter_rows, prepare_file, read_headers
from sdg_pipeline.logging_config import create_logger, log_exception
from sdg_pipeline.models import FileIdentity, FileReport, RunReport
from sdg_pipeline.normalize import classify_layout, normalize_rows
from sdg_pipeline.resolver import resolve_goal, resolve_year
from sdg_pipeline.upload.run import Upload

logger = create_logger(__name__)


class Ingest:
    """Manage one pipeline run over the staging directory.

    Files are processed sequentially. A file-level failure is recorded in
    that file's report and the run moves on, unless ``fail_fast`` is set.
    """

    def __init__(self, config: PipelineConfig, uploader: Optional[Upload] = None) -> None:
        """
        :param config: Run options (endpoint, staging directory, batch size, ...)
        :param uploader: Sink adapter; built from the config when omitted
        """
        validate_config(config)
        self.config = config
        self._owns_uploader = uploader is None
        self.uploader = uploader or Upload(config.ingestion_endpoint, timeout=config.timeout)

    def list_staged_files(self) -> List[str]:
        """Return the CSV and Excel files in the staging directory, by name."""
        staging_dir = self.config.staging_dir
        if not os.path.isdir(staging_dir):
            raise ConfigurationError(f"Staging directory does not exist: {staging_dir}")

        return [
            os.path.join(staging_dir, name)
            for name in sorted(os.listdir(staging_dir))
            if is_supported_file(name) and os.path.isfile(os.path.join(staging_dir, name))
        ]

    def identify(self, file_path: str) -> Tuple[FileIdentity, List[str]]:
        """Convert if needed and derive everything known about a file before its rows.

        :return: The file identity and the header row of the text file
        """
        year = resolve_year(file_path)

        text_path = prepare_file(file_path)
        delimiter = detect_delimiter(text_path)
        logger.info(f"Using detected delimiter: {delimiter!r}")

        goal, name = resolve_goal(text_path, delimiter)
        headers = read_headers(text_path, delimiter)

        identity = FileIdentity(
            path=text_path,
            delimiter=delimiter,
            year=year,
            sdg_goal=goal,
            sdg_name=name,
            layout=classify_layout(headers),
            source_url=self.config.source_url,
            data_source=self.config.data_source,
        )
        return identity, headers

    def process_file(self, file_path: str) -> FileReport:
        """Normalize one staged file and upload its valid records.

        :raises PipelineBaseError: On conversion or read failures
        """
        report = FileReport(file_name=os.path.basename(file_path))
        logger.info(f"Processing file: {report.file_name}")

        identity, headers = self.identify(file_path)
        report.identity = identity

        records = normalize_rows(iter_rows(identity.path, identity.delimiter), headers, identity)
        report.records_prepared = len(records)
        logger.info(f"Prepared {len(records)} records for upload")

        valid, report.records_dropped = filter_valid(records)

        result = self.uploader.send(valid, self.config.batch_size)
        report.records_inserted = result.inserted
        report.batches_sent = result.batches_sent
        report.batches_failed = result.batches_failed
        return report

    def cleanup_staging(self, report: RunReport) -> None:
        """Delete every entry in the staging directory, logging failures."""
        staging_dir = self.config.staging_dir
        try:
            entries = sorted(os.listdir(staging_dir))
        except OSError as e:
            logger.error(f"Error cleaning staging directory: {e}")
            report.cleanup_failures.append(f"{staging_dir}: {e}")
            return

        for name in entries:
            path = os.path.join(staging_dir, name)
            try:
                os.remove(path)
                report.files_deleted += 1
            except OSError as e:
                logger.error(f"Could not delete {path}: {e}")
                report.cleanup_failures.append(f"{name}: {e}")

        if not report.cleanup_failures:
            logger.info("All staging files deleted successfully.")

    def _process_all(self, report: RunReport) -> None:
        files = self.list_staged_files()
        logger.info(f"Found {len(files)} staged files in {self.config.staging_dir}")

        for file_path in files:
            try:
                file_report = self.process_file(file_path)
            except (PipelineBaseError, OSError) as e:
                log_exception(logger, e, {"file": file_path})
                if self.config.fail_fast:
                    raise IngestError(f"Ingestion aborted at {file_path}: {e}") from e
                file_report = FileReport(file_name=os.path.basename(file_path), error=str(e))
            report.files.append(file_report)

    def run(self) -> RunReport:
        """
        Process every staged file, then drain the staging directory.

        :return: Per-file outcomes and cleanup failures
        :raises ConfigurationError: If the staging directory is missing
        :raises IngestError: On the first file failure when ``fail_fast`` is set
        """
        start_time = time.time()
        report = RunReport()

        try:
            self._process_all(report)
        finally:
            if self._owns_uploader:
                self.uploader.close()

        duration = time.time() - start_time
        logger.info(
            f"All files processed: {report.files_processed} files "
            f"({report.files_failed} failed), {report.records_inserted} rows inserted "
            f"in {duration:.2f}s"
        )

        if self.config.cleanup_staging:
            self.cleanup_staging(report)
        else:
            logger.info("Staging cleanup disabled, leaving files in place")

        return report


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Normalize staged SDG exports and send them to the ingestion API."
    )
    parser.add_argument("--staging-dir", help="Directory holding the staged files")
    parser.add_argument("--endpoint", help="Ingestion API upload URL")
    parser.add_argument("--batch-size", type=int, help="Records per upload request")
    parser.add_argument("--timeout", type=float, help="Seconds to wait for each upload request")
    parser.add_argument(
        "--fail-fast", action="store_true", default=None,
        help="Abort the run on the first file that cannot be processed",
    )
    parser.add_argument(
        "--keep-files", action="store_true",
        help="Do not delete staged files after the run",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        config = PipelineConfig.from_env(
            staging_dir=args.staging_dir,
            ingestion_endpoint=args.endpoint,
            batch_size=args.batch_size,
            timeout=args.timeout,
            fail_fast=args.fail_fast,
            cleanup_staging=False if args.keep_files else None,
        )
        report = Ingest(config).run()
    except PipelineBaseError as e:
        logger.error(f"Parser failed: {e}")
        return 1

    logger.info(
        f"Run complete: {report.records_inserted} rows inserted, "
        f"{report.records_dropped} rows skipped, {report.batches_failed} batches failed"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
