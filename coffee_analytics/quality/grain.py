"""
Grain Verification

Confirms the fact table is one row per order line: row ids are distinct and
orders group several lines.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict

import polars as pl
import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class GrainProfile:
    """Row, line and order counts of a sales-line snapshot"""
    rows: int
    distinct_row_ids: int
    distinct_orders: int
    order_item_pairs: int
    items_sold: int

    @property
    def is_line_grain(self) -> bool:
        """True when every row carries its own row id"""
        return self.rows == self.distinct_row_ids

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def profile_grain(facts: pl.DataFrame) -> GrainProfile:
    """Count rows, distinct row ids, orders and (order, item) pairs."""
    if facts.is_empty():
        return GrainProfile(0, 0, 0, 0, 0)

    stats = facts.select(
        pl.len().alias("rows"),
        pl.col("row_id").n_unique().alias("distinct_row_ids"),
        pl.col("order_id").n_unique().alias("distinct_orders"),
        pl.struct("order_id", "item_id").n_unique().alias("order_item_pairs"),
        pl.col("quantity").sum().alias("items_sold"),
    ).row(0, named=True)

    profile = GrainProfile(**{k: int(v) for k, v in stats.items()})
    if not profile.is_line_grain:
        logger.warning(
            "Fact table is not at line grain",
            rows=profile.rows,
            distinct_row_ids=profile.distinct_row_ids,
        )
    return profile


def order_sizes(facts: pl.DataFrame) -> pl.DataFrame:
    """Number of lines per order, largest orders first."""
    return (
        facts.group_by("order_id")
        .agg(pl.len().alias("items_in_order"))
        .sort(["items_in_order", "order_id"], descending=[True, False])
    )
