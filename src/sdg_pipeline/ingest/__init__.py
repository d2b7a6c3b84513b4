"""Ingest package for staged SDG exports.

This package drives every staged file through detection, normalization,
validation and upload, then drains the staging directory.
"""

import logging

logger = logging.getLogger(__name__)


def init_ingest_package() -> None:
    """Initialize the ingest package and log package details."""
    logger.debug("Initializing SDG Ingest Package")
    logger.debug("   Package responsible for staged file processing")


init_ingest_package()
