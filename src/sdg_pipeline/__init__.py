"""SDG indicator pipeline package.

This package normalizes SDG India Index exports (CSV and Excel) into
canonical indicator records and delivers them to the ingestion API.
"""

import logging
import os
import sys

__version__ = "0.1.0"


# Configure logging for the entire package
def setup_package_logging() -> logging.Logger:
    """Set up the package-level logger."""
    logger = logging.getLogger(__name__)
    logger.setLevel(logging.INFO)

    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


# Initialize package logging
logger = setup_package_logging()


def init_pipeline_package() -> None:
    """Log package details at debug level."""
    logger.debug("Initializing SDG Indicator Pipeline Package")
    logger.debug("   Modules: formats, resolver, normalize, batching, upload, ingest, api")

    package_path = os.path.dirname(os.path.abspath(__file__))
    logger.debug(f"   Package Path: {package_path}")


init_pipeline_package()
