"""Test suite for the SDG indicator pipeline.

This package contains tests for the pipeline including:
- Unit tests for individual modules
- Integration tests running staged files through the ingestion API
"""
