"""
Data Ingestion Module
"""
from .fact_loader import (
    FACT_SCHEMA,
    RAW_COLUMNS,
    FactLoadResult,
    ParseError,
    SalesFactLoader,
    SalesLine,
    SchemaError,
    SourceReadError,
    drop_header_rows,
    iter_sales_lines,
    lines_to_frame,
    raw_frame_from_records,
    type_sales_lines,
)

__all__ = [
    "FACT_SCHEMA",
    "RAW_COLUMNS",
    "FactLoadResult",
    "ParseError",
    "SalesFactLoader",
    "SalesLine",
    "SchemaError",
    "SourceReadError",
    "drop_header_rows",
    "iter_sales_lines",
    "lines_to_frame",
    "raw_frame_from_records",
    "type_sales_lines",
]
