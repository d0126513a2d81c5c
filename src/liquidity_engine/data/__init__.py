"""Data ingestion for the Liquidity Engine."""

from .loader import (
    IngestionError,
    data_rows_from_frame,
    line_items_from_frame,
    line_items_from_records,
    read_line_items_csv,
)

__all__ = [
    "IngestionError",
    "data_rows_from_frame",
    "line_items_from_frame",
    "line_items_from_records",
    "read_line_items_csv",
]
