"""Upload sink adapter for the ingestion API.

Each batch is one POST with a JSON array body. Batches are sent one
after another; a failed batch is logged and the next one is still sent.
"""

from typing import Any, Dict, List, Optional, Sequence

import requests

from sdg_pipeline.batching import chunk
from sdg_pipeline.error_handler import PartialFailureCollector
from sdg_pipeline.exceptions import UploadError
from sdg_pipeline.logging_config import create_logger
from sdg_pipeline.models import IndicatorRecord, UploadResult

logger = create_logger(__name__)


class Upload:
    """Send canonical records to the ingestion API in fixed-size batches.

    No retry is attempted; the caller sees failed batches through the
    returned ``UploadResult``.
    """

    def __init__(
        self,
        endpoint: str,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """
        :param endpoint: URL of the upload endpoint
        :param timeout: Seconds to wait for each request, None waits forever
        :param session: Optional session to reuse connections across batches
        """
        self.endpoint = endpoint
        self.timeout = timeout
        self.session = session or requests.Session()

    def post_batch(self, batch: Sequence[IndicatorRecord]) -> int:
        """
        Send one batch and return the server-reported inserted count.

        :raises UploadError: On transport failure, non-2xx status or a
            response without an ``inserted`` count
        """
        payload: List[Dict[str, Any]] = [record.to_dict() for record in batch]
        try:
            response = self.session.post(self.endpoint, json=payload, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            raise UploadError(str(e)) from e
        except ValueError as e:
            raise UploadError(f"Response is not valid JSON: {e}") from e

        if not isinstance(body, dict) or "inserted" not in body:
            raise UploadError(f"Response has no inserted count: {body!r}")

        try:
            return int(body["inserted"])
        except (TypeError, ValueError) as e:
            raise UploadError(f"Invalid inserted count: {body['inserted']!r}") from e

    def send(self, records: Sequence[IndicatorRecord], batch_size: int) -> UploadResult:
        """
        Upload records batch by batch and aggregate the results.

        :param records: Validated records in file order
        :param batch_size: Maximum records per request
        :return: Inserted total and per-batch failure details
        """
        result = UploadResult()
        collector = PartialFailureCollector("upload batch")

        for number, batch in enumerate(chunk(records, batch_size), start=1):
            result.batches_sent += 1
            try:
                inserted = self.post_batch(batch)
            except UploadError as e:
                collector.add_failure(number, e)
                continue

            collector.add_success(number)
            result.inserted += inserted
            logger.info(f"Uploaded batch {number}: {inserted} rows")

        result.batches_failed = collector.get_failure_count()
        result.errors = collector.failure_messages()
        if result.batches_sent:
            collector.log_summary()
        return result

    def close(self) -> None:
        self.session.close()
