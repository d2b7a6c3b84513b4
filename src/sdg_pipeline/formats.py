"""Delimiter and format detection for staged files.

Excel workbooks are converted to a comma-delimited sibling file first;
every later step reads delimited text only.
"""

import csv
import os
from typing import Dict, Iterator, List

import pandas as pd

from sdg_pipeline.exceptions import FileConversionError, FileReadError
from sdg_pipeline.logging_config import create_logger

logger = create_logger(__name__)

EXCEL_EXTENSIONS = (".xlsx",)
SUPPORTED_EXTENSIONS = (".csv",) + EXCEL_EXTENSIONS

# Checked in order, first hit wins
DELIMITER_PRECEDENCE = ("\t", ";")
DEFAULT_DELIMITER = ","

ENCODING = "utf-8-sig"


def is_supported_file(file_name: str) -> bool:
    """Return True for files the pipeline knows how to read."""
    return file_name.lower().endswith(SUPPORTED_EXTENSIONS)


def is_excel_file(file_path: str) -> bool:
    return file_path.lower().endswith(EXCEL_EXTENSIONS)


def convert_excel_to_csv(file_path: str) -> str:
    """Convert the first sheet of a workbook to a sibling CSV file.

    :param file_path: Path to the ``.xlsx`` file
    :return: Path of the written ``.csv`` file
    :raises FileConversionError: If the workbook cannot be read or written
    """
    csv_path = os.path.splitext(file_path)[0] + ".csv"
    try:
        sheet = pd.read_excel(file_path, sheet_name=0, header=None, dtype=str)
        sheet.to_csv(csv_path, header=False, index=False)
    except Exception as e:
        raise FileConversionError(f"Could not convert {file_path} to CSV: {e}") from e

    logger.info(f"Converted {os.path.basename(file_path)} -> {os.path.basename(csv_path)}")
    return csv_path


def prepare_file(file_path: str) -> str:
    """Return the delimited-text path to read for ``file_path``."""
    if is_excel_file(file_path):
        return convert_excel_to_csv(file_path)
    return file_path


def detect_delimiter(file_path: str) -> str:
    """Infer the field separator from the first line of a text file.

    Tab wins over semicolon, which wins over comma. An empty file
    falls back to comma.
    """
    try:
        with open(file_path, encoding=ENCODING, newline="") as handle:
            first_line = handle.readline()
    except (OSError, UnicodeDecodeError) as e:
        raise FileReadError(f"Could not read {file_path}: {e}") from e

    for candidate in DELIMITER_PRECEDENCE:
        if candidate in first_line:
            return candidate
    return DEFAULT_DELIMITER


def read_headers(file_path: str, delimiter: str = DEFAULT_DELIMITER) -> List[str]:
    """Return the header row of a delimited file, ``[]`` when it is empty."""
    try:
        with open(file_path, encoding=ENCODING, newline="") as handle:
            return next(csv.reader(handle, delimiter=delimiter), [])
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise FileReadError(f"Could not read headers of {file_path}: {e}") from e


def iter_rows(file_path: str, delimiter: str = DEFAULT_DELIMITER) -> Iterator[Dict[str, str]]:
    """Lazily yield one mapping per data row, keyed by header.

    Missing trailing cells read as ``""``; surplus cells are dropped.
    The file handle is closed once the sequence is exhausted.

    :raises FileReadError: If the file cannot be opened, decoded or parsed
    """
    try:
        with open(file_path, encoding=ENCODING, newline="") as handle:
            reader = csv.DictReader(handle, delimiter=delimiter, restval="")
            for row in reader:
                row.pop(None, None)
                yield row
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise FileReadError(f"Could not read rows of {file_path}: {e}") from e
