"""
Aggregation Engine

Groups typed sales lines by one or more dimensions and derives the revenue,
cost, profit and ratio metrics used across the report catalog.

Ratios with a zero or missing denominator are null, never zero. Sums are
accumulated unrounded; rounding happens only in `present`.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

import polars as pl
import structlog
from pydantic import BaseModel, Field

logger = structlog.get_logger(__name__)


class Dimension(str, Enum):
    """Grouping dimensions of the sales-line fact"""
    DAY_OF_WEEK = "day_of_week"
    SHIFT = "shift"
    ITEM = "item"
    CATEGORY = "category"
    SIZE = "size"
    HOUR = "hour"
    CHANNEL = "channel"


DIMENSION_COLUMNS: Dict[Dimension, List[str]] = {
    Dimension.DAY_OF_WEEK: ["day_of_week"],
    Dimension.SHIFT: ["shift"],
    Dimension.ITEM: ["item_name", "category", "size"],
    Dimension.CATEGORY: ["category"],
    Dimension.SIZE: ["size"],
    Dimension.HOUR: ["order_hour"],
    Dimension.CHANNEL: ["channel"],
}

METRIC_COLUMNS = [
    "orders",
    "items_sold",
    "revenue",
    "cost",
    "profit",
    "margin_pct",
    "avg_order_value",
    "avg_items_per_order",
    "avg_price_per_item",
    "profit_per_unit",
]


def ratio(numerator: Union[str, pl.Expr], denominator: Union[str, pl.Expr], scale: float = 1.0) -> pl.Expr:
    """numerator * scale / denominator, null when the denominator is zero or null"""
    num = pl.col(numerator) if isinstance(numerator, str) else numerator
    den = pl.col(denominator) if isinstance(denominator, str) else denominator
    return pl.when(den != 0).then(num * scale / den).otherwise(None)


def group_columns(dimensions: Sequence[Union[Dimension, str]]) -> List[str]:
    """Expand dimensions into fact columns, keeping order and dropping repeats"""
    columns: List[str] = []
    for dimension in dimensions:
        for col in DIMENSION_COLUMNS[Dimension(dimension)]:
            if col not in columns:
                columns.append(col)
    return columns


def _sums() -> List[pl.Expr]:
    return [
        pl.col("order_id").n_unique().alias("orders"),
        pl.col("quantity").sum().alias("items_sold"),
        pl.col("revenue").sum().alias("revenue"),
        pl.col("total_cost").sum().alias("cost"),
        pl.col("contribution").sum().alias("profit"),
    ]


def _derived() -> List[pl.Expr]:
    return [
        ratio("profit", "revenue", 100.0).alias("margin_pct"),
        ratio("revenue", "orders").alias("avg_order_value"),
        ratio("items_sold", "orders").alias("avg_items_per_order"),
        ratio("revenue", "items_sold").alias("avg_price_per_item"),
        ratio("profit", "items_sold").alias("profit_per_unit"),
    ]


def aggregate_frame(
    facts: pl.DataFrame,
    dimensions: Sequence[Union[Dimension, str]] = (),
) -> pl.DataFrame:
    """
    Aggregate sales lines by the cross-product of dimension values.

    Groups appear in order of first appearance in `facts`. With no
    dimensions a single overall row is returned.

    Args:
        facts: Typed sales-line frame
        dimensions: Dimensions to group by

    Returns:
        DataFrame with the group key columns followed by METRIC_COLUMNS
    """
    keys = group_columns(dimensions)

    if keys:
        grouped = facts.group_by(keys, maintain_order=True).agg(_sums())
    else:
        grouped = facts.select(_sums())

    result = grouped.with_columns(_derived()).select(keys + METRIC_COLUMNS)

    logger.debug(
        "Aggregated sales lines",
        dimensions=[Dimension(d).value for d in dimensions],
        lines=facts.height,
        groups=result.height,
    )
    return result


class GroupAggregate(BaseModel):
    """Metrics of one group of sales lines"""
    key: Dict[str, Any] = Field(default_factory=dict)
    orders: int
    items_sold: int
    revenue: float
    cost: float
    profit: float
    margin_pct: Optional[float] = None
    avg_order_value: Optional[float] = None
    avg_items_per_order: Optional[float] = None
    avg_price_per_item: Optional[float] = None
    profit_per_unit: Optional[float] = None


def aggregate(
    facts: pl.DataFrame,
    dimensions: Sequence[Union[Dimension, str]] = (),
) -> List[GroupAggregate]:
    """Aggregate sales lines and return one GroupAggregate per group."""
    keys = group_columns(dimensions)
    frame = aggregate_frame(facts, dimensions)
    return [
        GroupAggregate(
            key={k: row[k] for k in keys},
            **{m: row[m] for m in METRIC_COLUMNS},
        )
        for row in frame.iter_rows(named=True)
    ]


def order_by(
    frame: pl.DataFrame,
    column: Union[str, Sequence[str]],
    descending: Union[bool, Sequence[bool]] = True,
    tie_breakers: Sequence[str] = (),
) -> pl.DataFrame:
    """
    Sort by the caller's metric(s), then ascending tie-breaker columns.

    Nulls sort last.
    """
    columns = [column] if isinstance(column, str) else list(column)
    if isinstance(descending, bool):
        flags = [descending] * len(columns)
    else:
        flags = list(descending)
    extra = [c for c in tie_breakers if c not in columns]
    return frame.sort(
        columns + extra,
        descending=flags + [False] * len(extra),
        nulls_last=True,
    )


def present(frame: pl.DataFrame, decimals: int = 2) -> pl.DataFrame:
    """Round every float column for display."""
    float_columns = [name for name, dtype in frame.schema.items() if dtype in (pl.Float32, pl.Float64)]
    if not float_columns:
        return frame
    return frame.with_columns([pl.col(c).round(decimals) for c in float_columns])
