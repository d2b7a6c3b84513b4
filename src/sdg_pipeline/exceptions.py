"""
Custom exceptions for the SDG pipeline.

This module defines a hierarchy of exceptions to provide more
precise error handling across normalization, upload and storage.
"""


class PipelineBaseError(Exception):
    """
    Base exception for all pipeline-related errors.

    All custom exceptions in the pipeline inherit from this class, so a
    single ``except PipelineBaseError`` isolates one file's failure.
    """

    pass


class ConfigurationError(PipelineBaseError):
    """
    Raised when there are configuration-related issues.

    This exception is used when:
    - Required configuration parameters are missing
    - Configuration values are invalid
    - The staging directory does not exist
    """

    pass


class IngestError(PipelineBaseError):
    """
    Raised during the ingestion of a staged file or a whole run.

    Covers errors specific to data ingestion, including:
    - File conversion problems
    - Unreadable source files
    - Runs aborted in fail-fast mode
    """

    pass


class FileConversionError(IngestError):
    """
    Raised when an Excel workbook cannot be converted to delimited text.
    """

    pass


class FileReadError(IngestError):
    """
    Raised when a delimited file cannot be read or decoded.
    """

    pass


class UploadError(PipelineBaseError):
    """
    Raised when a batch cannot be delivered to the ingestion API.

    Covers issues such as:
    - Connection problems and timeouts
    - Non-2xx responses
    - Responses without an ``inserted`` count
    """

    pass


class StoreError(PipelineBaseError):
    """
    Raised when the relational store rejects an upsert.
    """

    pass
