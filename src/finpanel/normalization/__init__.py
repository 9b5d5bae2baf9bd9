"""
Data normalization layer for standardizing data formats.

Handles column naming, date alignment and panel ordering
to ensure consistent data representation across jobs.
"""
