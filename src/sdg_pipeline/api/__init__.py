"""API package for the SDG ingestion service.

This package exposes the HTTP endpoint that receives normalized record
batches and upserts them into the relational store.
"""

import logging

logger = logging.getLogger(__name__)


def init_api_package() -> None:
    """Initialize the api package and log package details."""
    logger.debug("Initializing SDG Ingestion API Package")
    logger.debug("   Package responsible for receiving record batches")


init_api_package()
