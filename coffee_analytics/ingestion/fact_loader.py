"""
Typed Fact Loader

Turns the all-text sales export into the typed sales-line fact table.

Supports:
- CSV and Parquet exports, or the raw landing table in a SQL database
- Removal of header rows that were re-imported as data
- Strict per-column casting with row-level error reporting
- Quality validation of the typed snapshot
"""

import time
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

import polars as pl
import structlog
from pydantic import BaseModel, Field
from sqlalchemy import MetaData, Table, create_engine, select
from sqlalchemy.exc import SQLAlchemyError

from coffee_analytics.config.settings import DatasetSettings
from coffee_analytics.quality.validators import (
    DataQualityError,
    ValidationStatus,
    create_sales_lines_validator,
)

logger = structlog.get_logger(__name__)


RAW_COLUMNS: List[str] = [
    "row_id",
    "order_id",
    "created_at",
    "order_date",
    "order_hour",
    "shift_bucket",
    "day_of_week",
    "cust_name",
    "in_or_out",
    "item_id",
    "sku",
    "item_name",
    "item_cat",
    "item_size",
    "quantity",
    "item_price",
    "revenue",
    "unit_cost",
    "total_cost",
    "contribution",
    "margin_pct",
]

# Columns whose value equals their own name when the CSV header was imported as a row
HEADER_SENTINEL_COLUMNS = ["quantity", "item_price", "revenue"]


class ParseError(ValueError):
    """A raw field could not be cast to its declared type."""

    def __init__(
        self,
        row_id: Optional[str],
        column: str,
        value: Optional[str],
        reason: str,
        failed_rows: int = 1,
    ):
        self.row_id = row_id
        self.column = column
        self.value = value
        self.reason = reason
        self.failed_rows = failed_rows
        super().__init__(
            f"Row {row_id!r}: cannot parse column '{column}' value {value!r} ({reason}); "
            f"{failed_rows} row(s) failed"
        )


class SchemaError(ValueError):
    """The raw input does not carry the expected columns."""

    def __init__(self, missing: Sequence[str]):
        self.missing = list(missing)
        super().__init__(f"Raw sales data is missing columns: {', '.join(self.missing)}")


class SourceReadError(Exception):
    """The configured source could not be read."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Cannot read sales source '{source}': {reason}")


class ColumnKind(str, Enum):
    """Declared type of a typed fact column"""
    TEXT = "text"
    INTEGER = "integer"
    DECIMAL = "decimal"
    DATE = "date"
    PERCENT = "percent"


@dataclass(frozen=True)
class ColumnSpec:
    """Mapping of one raw text column onto a typed fact column"""
    source: str
    target: str
    kind: ColumnKind
    required: bool = False

    def cast(self, date_format: str) -> pl.Expr:
        """Expression producing the typed value, null where the cast fails"""
        raw = pl.col(self.source).str.strip_chars()
        if self.kind == ColumnKind.TEXT:
            return raw
        if self.kind == ColumnKind.INTEGER:
            return raw.cast(pl.Int64, strict=False)
        if self.kind == ColumnKind.DECIMAL:
            return raw.cast(pl.Float64, strict=False)
        if self.kind == ColumnKind.DATE:
            return raw.str.to_date(date_format, strict=False)
        # PERCENT: "64.5%" -> 0.645, blank -> null
        number = raw.str.strip_suffix("%").str.strip_chars()
        return (
            pl.when(number == "")
            .then(None)
            .otherwise(number)
            .cast(pl.Float64, strict=False)
            / 100.0
        )

    def failed(self, date_format: str) -> pl.Expr:
        """Boolean expression flagging rows where this column did not parse"""
        raw = pl.col(self.source).str.strip_chars()
        blank = raw.is_null() | (raw == "")
        if self.kind == ColumnKind.PERCENT:
            blank = blank | (raw.str.strip_suffix("%").str.strip_chars() == "")
        typed = self.cast(date_format)
        if self.kind == ColumnKind.TEXT:
            bad = blank if self.required else pl.lit(False)
        elif self.required:
            bad = typed.is_null()
        else:
            bad = ~blank & typed.is_null()
        return bad.fill_null(False)

    def reason(self) -> str:
        if self.kind == ColumnKind.TEXT:
            return "required value is blank"
        return f"expected {self.kind.value}"


FACT_COLUMNS: List[ColumnSpec] = [
    ColumnSpec("row_id", "row_id", ColumnKind.TEXT, required=True),
    ColumnSpec("order_id", "order_id", ColumnKind.TEXT, required=True),
    ColumnSpec("order_date", "order_date", ColumnKind.DATE, required=True),
    ColumnSpec("order_hour", "order_hour", ColumnKind.INTEGER, required=True),
    ColumnSpec("shift_bucket", "shift", ColumnKind.TEXT),
    ColumnSpec("day_of_week", "day_of_week", ColumnKind.TEXT),
    ColumnSpec("cust_name", "customer_name", ColumnKind.TEXT),
    ColumnSpec("in_or_out", "channel", ColumnKind.TEXT),
    ColumnSpec("item_id", "item_id", ColumnKind.TEXT),
    ColumnSpec("sku", "sku", ColumnKind.TEXT),
    ColumnSpec("item_name", "item_name", ColumnKind.TEXT),
    ColumnSpec("item_cat", "category", ColumnKind.TEXT),
    ColumnSpec("item_size", "size", ColumnKind.TEXT),
    ColumnSpec("quantity", "quantity", ColumnKind.INTEGER, required=True),
    ColumnSpec("item_price", "unit_price", ColumnKind.DECIMAL, required=True),
    ColumnSpec("revenue", "revenue", ColumnKind.DECIMAL, required=True),
    ColumnSpec("unit_cost", "unit_cost", ColumnKind.DECIMAL, required=True),
    ColumnSpec("total_cost", "total_cost", ColumnKind.DECIMAL, required=True),
    ColumnSpec("contribution", "contribution", ColumnKind.DECIMAL, required=True),
    ColumnSpec("margin_pct", "margin", ColumnKind.PERCENT),
]

_DTYPES = {
    ColumnKind.TEXT: pl.Utf8,
    ColumnKind.INTEGER: pl.Int64,
    ColumnKind.DECIMAL: pl.Float64,
    ColumnKind.DATE: pl.Date,
    ColumnKind.PERCENT: pl.Float64,
}

FACT_SCHEMA: Dict[str, pl.DataType] = {spec.target: _DTYPES[spec.kind] for spec in FACT_COLUMNS}


class SalesLine(BaseModel):
    """One typed order line"""
    row_id: str
    order_id: str
    order_date: date
    order_hour: int = Field(ge=0, le=23)
    shift: Optional[str] = None
    day_of_week: Optional[str] = None
    customer_name: Optional[str] = None
    channel: Optional[str] = None
    item_id: Optional[str] = None
    sku: Optional[str] = None
    item_name: Optional[str] = None
    category: Optional[str] = None
    size: Optional[str] = None
    quantity: int = Field(gt=0)
    unit_price: float
    revenue: float
    unit_cost: float
    total_cost: float
    contribution: float
    margin: Optional[float] = Field(default=None, description="Contribution over revenue, 0-1 fraction")


def raw_frame_from_records(records: Iterable[Mapping[str, Any]]) -> pl.DataFrame:
    """Build an all-text raw frame from a sequence of mappings."""
    rows = [
        {col: None if record.get(col) is None else str(record.get(col)) for col in RAW_COLUMNS}
        for record in records
    ]
    return pl.DataFrame(rows, schema={col: pl.Utf8 for col in RAW_COLUMNS})


def _check_columns(raw: pl.DataFrame) -> None:
    required = [spec.source for spec in FACT_COLUMNS]
    missing = [col for col in required if col not in raw.columns]
    if missing:
        raise SchemaError(missing)


def drop_header_rows(raw: pl.DataFrame) -> pl.DataFrame:
    """Remove rows where a measure column holds its own column name."""
    is_header = pl.lit(False)
    for col in HEADER_SENTINEL_COLUMNS:
        is_header = is_header | (pl.col(col) == col).fill_null(False)
    return raw.filter(~is_header)


def type_sales_lines(raw: pl.DataFrame, date_format: str = "%d-%m-%Y") -> pl.DataFrame:
    """
    Cast raw text columns into the typed fact schema.

    Raises:
        SchemaError: when source columns are missing
        ParseError: on the first row holding a value that cannot be cast
    """
    _check_columns(raw)

    flags = [spec.failed(date_format).alias(f"__bad_{spec.target}") for spec in FACT_COLUMNS]
    checked = raw.with_columns(flags)
    bad_rows = checked.filter(pl.any_horizontal(pl.col("^__bad_.*$")))

    if bad_rows.height:
        first = bad_rows.row(0, named=True)
        spec = next(s for s in FACT_COLUMNS if first[f"__bad_{s.target}"])
        error = ParseError(
            row_id=first["row_id"],
            column=spec.source,
            value=first[spec.source],
            reason=spec.reason(),
            failed_rows=bad_rows.height,
        )
        logger.error(
            "Failed to type sales lines",
            row_id=error.row_id,
            column=error.column,
            value=error.value,
            failed_rows=error.failed_rows,
        )
        raise error

    return raw.select([spec.cast(date_format).alias(spec.target) for spec in FACT_COLUMNS])


def lines_to_frame(lines: Iterable[SalesLine]) -> pl.DataFrame:
    """Build a typed fact frame from SalesLine records."""
    return pl.DataFrame([line.model_dump() for line in lines], schema=FACT_SCHEMA)


def iter_sales_lines(facts: pl.DataFrame) -> Iterator[SalesLine]:
    """Yield the rows of a typed fact frame as SalesLine records."""
    for row in facts.iter_rows(named=True):
        yield SalesLine(**row)


@dataclass
class FactLoadResult:
    """Result of loading one analysis snapshot"""
    source: str
    facts: pl.DataFrame
    raw_rows: int
    header_rows_dropped: int
    started_at: datetime
    completed_at: datetime
    duration_seconds: float
    warnings: List[str] = field(default_factory=list)

    @property
    def rows_loaded(self) -> int:
        return self.facts.height


class SalesFactLoader:
    """
    Loader for one snapshot of the enriched sales export.

    The dataset source is always passed in; the loader never falls back to
    process-wide configuration.

    Example:
        loader = SalesFactLoader(DatasetSettings(source_path="data/sales_enriched.csv"))
        result = loader.load()
        facts = result.facts
    """

    def __init__(self, source: DatasetSettings):
        self.source = source

    def _read_csv(self, path: Path) -> pl.DataFrame:
        return pl.read_csv(
            path,
            separator=self.source.delimiter,
            encoding=self.source.encoding,
            infer_schema_length=0,
        )

    def _read_parquet(self, path: Path) -> pl.DataFrame:
        return pl.read_parquet(path).with_columns(pl.all().cast(pl.Utf8))

    def _read_database(self) -> pl.DataFrame:
        engine = create_engine(self.source.database_url)
        try:
            table = Table(
                self.source.table_name,
                MetaData(),
                schema=self.source.schema_name,
                autoload_with=engine,
            )
            with engine.connect() as conn:
                result = conn.execute(select(table))
                columns = list(result.keys())
                rows = [
                    {k: None if v is None else str(v) for k, v in row.items()}
                    for row in result.mappings()
                ]
        finally:
            engine.dispose()
        return pl.DataFrame(rows, schema={col: pl.Utf8 for col in columns})

    def _read_source(self) -> pl.DataFrame:
        if self.source.is_database:
            logger.info("Reading raw sales table", table=self.source.source_name)
            return self._read_database()

        path = Path(self.source.source_path)
        logger.info("Reading raw sales file", path=str(path))
        if path.suffix.lower() == ".parquet":
            return self._read_parquet(path)
        return self._read_csv(path)

    def read_raw(self) -> pl.DataFrame:
        """
        Read the untyped source table with every column as text.

        Raises:
            SourceReadError: when the file or table is missing or unreadable
        """
        if not self.source.is_database and not self.source.source_path:
            raise SourceReadError("<unset>", "neither a file path nor a database URL is configured")

        try:
            return self._read_source()
        except (OSError, SQLAlchemyError, pl.exceptions.PolarsError) as e:
            logger.error("Failed to read sales source", source=self.source.source_name, error=str(e))
            raise SourceReadError(self.source.source_name, str(e)) from e

    def load_frame(self, raw: pl.DataFrame) -> FactLoadResult:
        """Type an already-read raw frame."""
        started = time.perf_counter()
        started_at = datetime.now()
        raw_rows = raw.height

        _check_columns(raw)
        cleaned = drop_header_rows(raw)
        header_rows = raw_rows - cleaned.height
        if header_rows:
            logger.info("Dropped header rows imported as data", rows=header_rows)

        facts = type_sales_lines(cleaned, self.source.date_format)

        # Line invariants always hold; validate_quality adds the advisory checks
        validator = create_sales_lines_validator(include_warnings=self.source.validate_quality)
        validation = validator.validate(facts)
        if validation.status == ValidationStatus.FAILED:
            raise DataQualityError(validation)
        warnings = [check.message for check in validation.failures]

        completed_at = datetime.now()
        result = FactLoadResult(
            source=self.source.source_name,
            facts=facts,
            raw_rows=raw_rows,
            header_rows_dropped=header_rows,
            started_at=started_at,
            completed_at=completed_at,
            duration_seconds=time.perf_counter() - started,
            warnings=warnings,
        )

        logger.info(
            "Sales facts loaded",
            source=result.source,
            raw_rows=raw_rows,
            rows_loaded=result.rows_loaded,
            duration_seconds=round(result.duration_seconds, 3),
        )
        return result

    def load(self) -> FactLoadResult:
        """Read and type the configured source."""
        return self.load_frame(self.read_raw())
