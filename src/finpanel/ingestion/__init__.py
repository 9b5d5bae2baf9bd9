"""
Data ingestion layer.

Loads local research-data extracts and validates them against schemas.
"""
