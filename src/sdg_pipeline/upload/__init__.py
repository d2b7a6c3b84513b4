"""Upload package for delivering normalized records.

This package sends batches of canonical indicator records to the
ingestion API and tallies the rows it acknowledges.
"""

import logging

logger = logging.getLogger(__name__)


def init_upload_package() -> None:
    """Initialize the upload package and log package details."""
    logger.debug("Initializing SDG Upload Package")
    logger.debug("   Package responsible for sending record batches to the ingestion API")


init_upload_package()
