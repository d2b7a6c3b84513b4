"""
Partial failure collection for the SDG pipeline.

Upload batches and staged files fail independently: a failed batch or
file is recorded here and processing moves on to the next one.
"""

from typing import Any, List, Tuple

from sdg_pipeline.logging_config import create_logger

logger = create_logger(__name__)


class PartialFailureCollector:
    """Collects errors during batch processing for partial failure handling.

    Example:
        collector = PartialFailureCollector("upload batch")
        for number, batch in enumerate(batches, start=1):
            try:
                send(batch)
                collector.add_success(number)
            except UploadError as e:
                collector.add_failure(number, e)

        collector.log_summary()
    """

    def __init__(self, label: str = "item"):
        self.label = label
        self.failures: List[Tuple[Any, Exception]] = []
        self.successes: List[Any] = []

    def add_failure(self, item: Any, exception: Exception) -> None:
        """Record a failed item.

        Args:
            item: The item that failed
            exception: The exception that occurred
        """
        self.failures.append((item, exception))
        logger.error(f"Failed {self.label} {item}: {str(exception)[:200]}")

    def add_success(self, item: Any) -> None:
        """Record a successful item."""
        self.successes.append(item)

    def has_failures(self) -> bool:
        return len(self.failures) > 0

    def get_failure_count(self) -> int:
        return len(self.failures)

    def get_success_count(self) -> int:
        return len(self.successes)

    def get_total_count(self) -> int:
        return len(self.failures) + len(self.successes)

    def failure_messages(self) -> List[str]:
        """Return one ``"<item>: <error>"`` line per failure."""
        return [f"{item}: {exc}" for item, exc in self.failures]

    def log_summary(self) -> None:
        """Log a summary of successes and failures."""
        total = self.get_total_count()
        if total == 0:
            logger.info(f"No {self.label}s processed")
            return

        logger.info(
            f"{self.label.capitalize()} summary: {self.get_success_count()}/{total} succeeded"
        )

        if self.has_failures():
            logger.warning(f"Failed {self.label}s: {self.get_failure_count()}/{total}")
            for item, exc in self.failures[:5]:
                logger.warning(f"  - {item}: {str(exc)[:100]}")
