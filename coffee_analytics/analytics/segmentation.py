"""
Pareto / Segmentation Engine

Ranks items by profit, measures how concentrated profit is, and places each
item in a strategy quadrant relative to the catalog-wide averages.
"""

from dataclasses import dataclass
from typing import List, Optional

import polars as pl
import structlog
from pydantic import BaseModel

from .aggregation import Dimension, aggregate_frame, ratio

logger = structlog.get_logger(__name__)

ITEM_KEY = ["item_name", "category", "size"]

CORE_PROFIT_DRIVERS = "Core Profit Drivers"
LONG_TAIL = "Long Tail"

STAR = "Star"
VOLUME_DRIVER = "Volume Driver"
HIGH_MARGIN_NICHE = "High Margin Niche"
WEAK_PERFORMER = "Weak Performer"

# Float sums of cent values drift by an ulp; thresholds compare at this precision
COMPARISON_DECIMALS = 9


@dataclass(frozen=True)
class Benchmarks:
    """Unweighted catalog averages used by the strategy matrix"""
    avg_units: Optional[float]
    avg_margin_pct: Optional[float]


class SegmentedItem(BaseModel):
    """Item aggregate with its Pareto segment and strategy quadrant"""
    item_name: Optional[str]
    category: Optional[str]
    size: Optional[str]
    units_sold: int
    revenue: float
    profit: float
    margin_pct: Optional[float] = None
    profit_per_unit: Optional[float] = None
    pct_of_total_profit: Optional[float] = None
    cumulative_profit_pct: Optional[float] = None
    profit_segment: Optional[str] = None
    item_strategy: str


def item_aggregates(facts: pl.DataFrame) -> pl.DataFrame:
    """Units, revenue, profit, margin and profit per unit for each item."""
    return (
        aggregate_frame(facts, [Dimension.ITEM])
        .rename({"items_sold": "units_sold"})
        .select(ITEM_KEY + ["units_sold", "revenue", "profit", "margin_pct", "profit_per_unit"])
    )


def rank_by_profit(items: pl.DataFrame) -> pl.DataFrame:
    """Profit descending; ties resolved by item name, category, then size."""
    return items.sort(
        ["profit"] + ITEM_KEY,
        descending=[True, False, False, False],
        nulls_last=True,
    )


def profit_concentration(items: pl.DataFrame, core_threshold_pct: float = 80.0) -> pl.DataFrame:
    """
    Pareto view of item profit.

    Adds pct_of_total_profit, cumulative_profit_pct and profit_segment. The
    segment is "Core Profit Drivers" while the running share is at or below
    the threshold. When total profit is zero or negative the shares and the
    segment are null.
    """
    ranked = rank_by_profit(items)
    total_profit = ranked.get_column("profit").sum() if ranked.height else 0.0

    if total_profit is None or total_profit <= 0:
        logger.warning("Total profit is not positive; profit shares are undefined", total_profit=total_profit)
        return ranked.with_columns(
            pl.lit(None, dtype=pl.Float64).alias("pct_of_total_profit"),
            pl.lit(None, dtype=pl.Float64).alias("cumulative_profit_pct"),
            pl.lit(None, dtype=pl.Utf8).alias("profit_segment"),
        )

    total = pl.lit(total_profit)
    return (
        ranked.with_columns(pl.col("profit").cum_sum().alias("running_profit"))
        .with_columns(
            ratio("profit", total, 100.0).alias("pct_of_total_profit"),
            ratio("running_profit", total, 100.0).alias("cumulative_profit_pct"),
        )
        .with_columns(
            pl.when(pl.col("cumulative_profit_pct").round(COMPARISON_DECIMALS) <= core_threshold_pct)
            .then(pl.lit(CORE_PROFIT_DRIVERS))
            .otherwise(pl.lit(LONG_TAIL))
            .alias("profit_segment")
        )
        .drop("running_profit")
    )


def compute_benchmarks(items: pl.DataFrame) -> Benchmarks:
    """Simple means of units sold and margin % across items (null margins skipped)."""
    if items.is_empty():
        return Benchmarks(avg_units=None, avg_margin_pct=None)
    stats = items.select(
        pl.col("units_sold").mean().alias("avg_units"),
        pl.col("margin_pct").mean().alias("avg_margin_pct"),
    ).row(0, named=True)
    return Benchmarks(avg_units=stats["avg_units"], avg_margin_pct=stats["avg_margin_pct"])


def strategy_expr(benchmarks: Benchmarks) -> pl.Expr:
    """2x2 classification on units and margin against the benchmarks"""
    avg_units = pl.lit(benchmarks.avg_units, dtype=pl.Float64).round(COMPARISON_DECIMALS)
    avg_margin = pl.lit(benchmarks.avg_margin_pct, dtype=pl.Float64).round(COMPARISON_DECIMALS)
    units = pl.col("units_sold").cast(pl.Float64).round(COMPARISON_DECIMALS)
    margin = pl.col("margin_pct").round(COMPARISON_DECIMALS)
    high_units = units >= avg_units
    high_margin = margin >= avg_margin
    # A null comparison (missing margin) falls through to Weak Performer
    return (
        pl.when(high_units & high_margin).then(pl.lit(STAR))
        .when(high_units & (margin < avg_margin)).then(pl.lit(VOLUME_DRIVER))
        .when((units < avg_units) & high_margin).then(pl.lit(HIGH_MARGIN_NICHE))
        .otherwise(pl.lit(WEAK_PERFORMER))
    )


def strategy_matrix(items: pl.DataFrame, benchmarks: Optional[Benchmarks] = None) -> pl.DataFrame:
    """Items ranked by profit with their item_strategy quadrant."""
    benchmarks = benchmarks or compute_benchmarks(items)
    return rank_by_profit(items).with_columns(strategy_expr(benchmarks).alias("item_strategy"))


def segment_frame(
    items: pl.DataFrame,
    core_threshold_pct: float = 80.0,
    benchmarks: Optional[Benchmarks] = None,
) -> pl.DataFrame:
    """Profit concentration and strategy quadrant in one frame, ranked by profit."""
    benchmarks = benchmarks or compute_benchmarks(items)
    segmented = profit_concentration(items, core_threshold_pct).with_columns(
        strategy_expr(benchmarks).alias("item_strategy")
    )
    logger.debug(
        "Segmented items",
        items=segmented.height,
        avg_units=benchmarks.avg_units,
        avg_margin_pct=benchmarks.avg_margin_pct,
    )
    return segmented


def segment(
    items: pl.DataFrame,
    core_threshold_pct: float = 80.0,
    benchmarks: Optional[Benchmarks] = None,
) -> List[SegmentedItem]:
    """Segment item aggregates and return one SegmentedItem per item."""
    frame = segment_frame(items, core_threshold_pct, benchmarks)
    return [SegmentedItem(**row) for row in frame.iter_rows(named=True)]


def profitability_risk(items: pl.DataFrame, margin_threshold_pct: float = 80.0) -> pl.DataFrame:
    """Items with margin below the threshold or negative profit, worst margin first."""
    return items.filter(
        (pl.col("margin_pct").round(COMPARISON_DECIMALS) < margin_threshold_pct) | (pl.col("profit") < 0)
    ).sort(
        ["margin_pct", "profit"] + ITEM_KEY,
        descending=False,
        nulls_last=True,
    )
