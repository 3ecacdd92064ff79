"""
Report Catalog

Named result tables built from one loaded sales snapshot: headline KPIs,
breakdowns by dimension, and the executive profit views. Every report is
recomputed on request from the fact frame.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional

import polars as pl
import structlog

from coffee_analytics.analytics.aggregation import Dimension, aggregate_frame, order_by, present
from coffee_analytics.analytics.segmentation import (
    ITEM_KEY,
    item_aggregates,
    profit_concentration,
    profitability_risk,
    strategy_matrix,
)
from coffee_analytics.config.settings import ReportSettings
from coffee_analytics.quality.grain import order_sizes, profile_grain

logger = structlog.get_logger(__name__)

ReportBuilder = Callable[[pl.DataFrame, ReportSettings], pl.DataFrame]


class UnknownReportError(KeyError):
    """Requested report is not registered in the catalog."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"Unknown report: {self.name}"


@dataclass
class ReportDefinition:
    """A registered report"""
    name: str
    description: str
    builder: ReportBuilder


@dataclass
class ReportResult:
    """Result of exporting one report"""
    name: str
    rows: int
    output_path: str
    exported_at: datetime


_BREAKDOWN = ["orders", "items_sold", "revenue", "profit", "margin_pct"]


def _kpi_summary(facts: pl.DataFrame, settings: ReportSettings) -> pl.DataFrame:
    return aggregate_frame(facts).select(
        pl.col("orders").alias("total_orders"),
        pl.col("items_sold").alias("total_items_sold"),
        pl.col("revenue").alias("total_revenue"),
        pl.col("cost").alias("total_cost"),
        pl.col("profit").alias("total_profit"),
        pl.col("margin_pct").alias("gross_margin_pct"),
        pl.col("avg_order_value"),
        pl.col("avg_items_per_order"),
    )


def _grain(facts: pl.DataFrame, settings: ReportSettings) -> pl.DataFrame:
    return pl.DataFrame([profile_grain(facts).to_dict()])


def _order_sizes(facts: pl.DataFrame, settings: ReportSettings) -> pl.DataFrame:
    return order_sizes(facts)


def _breakdown(dimension: Dimension, column: str, sort_by: str = "revenue", extra: Optional[List[str]] = None) -> ReportBuilder:
    metrics = _BREAKDOWN + (extra or [])

    def build(facts: pl.DataFrame, settings: ReportSettings) -> pl.DataFrame:
        frame = aggregate_frame(facts, [dimension]).select([column] + metrics)
        return order_by(frame, sort_by, tie_breakers=[column])

    return build


def _top_items_by_revenue(facts: pl.DataFrame, settings: ReportSettings) -> pl.DataFrame:
    items = item_aggregates(facts).select(ITEM_KEY + ["units_sold", "revenue", "profit", "margin_pct"])
    return order_by(items, "revenue", tie_breakers=ITEM_KEY).head(settings.top_items_limit)


def _category_by_shift(facts: pl.DataFrame, settings: ReportSettings) -> pl.DataFrame:
    frame = aggregate_frame(facts, [Dimension.SHIFT, Dimension.CATEGORY]).select(
        ["shift", "category"] + _BREAKDOWN + ["avg_order_value"]
    )
    return order_by(frame, ["shift", "revenue"], descending=[False, True], tie_breakers=["category"])


def _product_profitability(facts: pl.DataFrame, settings: ReportSettings) -> pl.DataFrame:
    return order_by(item_aggregates(facts), "profit", tie_breakers=ITEM_KEY)


def _profitability_risk(facts: pl.DataFrame, settings: ReportSettings) -> pl.DataFrame:
    return profitability_risk(item_aggregates(facts), settings.low_margin_threshold_pct)


def _profit_concentration(facts: pl.DataFrame, settings: ReportSettings) -> pl.DataFrame:
    return profit_concentration(item_aggregates(facts), settings.core_profit_threshold_pct).select(
        ITEM_KEY + ["profit", "pct_of_total_profit", "cumulative_profit_pct", "profit_segment"]
    )


def _item_strategy_matrix(facts: pl.DataFrame, settings: ReportSettings) -> pl.DataFrame:
    return strategy_matrix(item_aggregates(facts)).select(
        ITEM_KEY + ["units_sold", "revenue", "profit", "margin_pct", "item_strategy"]
    )


def _profit_by_hour(facts: pl.DataFrame, settings: ReportSettings) -> pl.DataFrame:
    frame = aggregate_frame(facts, [Dimension.HOUR]).select(
        ["order_hour", "orders", "revenue", "profit", "margin_pct"]
    )
    return order_by(frame, "profit", tie_breakers=["order_hour"])


def _category_investment_map(facts: pl.DataFrame, settings: ReportSettings) -> pl.DataFrame:
    frame = aggregate_frame(facts, [Dimension.CATEGORY]).select(
        "category",
        "orders",
        pl.col("items_sold").alias("units"),
        "revenue",
        "profit",
        "margin_pct",
    )
    return order_by(frame, "profit", tie_breakers=["category"])


def _size_strategy(facts: pl.DataFrame, settings: ReportSettings) -> pl.DataFrame:
    frame = aggregate_frame(facts, [Dimension.SIZE]).select(
        "size",
        "orders",
        pl.col("items_sold").alias("units"),
        "revenue",
        "profit",
        "margin_pct",
        pl.col("avg_price_per_item").alias("avg_price"),
    )
    return order_by(frame, "profit", tie_breakers=["size"])


def _category_summary(facts: pl.DataFrame, settings: ReportSettings) -> pl.DataFrame:
    frame = aggregate_frame(facts, [Dimension.CATEGORY]).select(
        "category",
        "orders",
        pl.col("items_sold").alias("units_sold"),
        "revenue",
        pl.col("cost").alias("total_cost"),
        "profit",
        "margin_pct",
        "avg_order_value",
    )
    return order_by(frame, "profit", tie_breakers=["category"])


class ReportCatalog:
    """
    Catalog of named reports over one sales snapshot.

    Example:
        catalog = ReportCatalog(result.facts, settings.report)
        frame = catalog.build("profit_concentration")
        catalog.export()
    """

    def __init__(self, facts: pl.DataFrame, settings: Optional[ReportSettings] = None):
        self.facts = facts
        self.settings = settings or ReportSettings()
        self._reports: Dict[str, ReportDefinition] = {}
        self._register_default_reports()

    def _register_default_reports(self) -> None:
        """Register the standard report set"""
        defaults = [
            ("kpi_summary", "Headline orders, items, revenue, cost, profit, margin and AOV", _kpi_summary),
            ("grain", "Row, line and order counts of the snapshot", _grain),
            ("order_sizes", "Lines per order, largest first", _order_sizes),
            ("sales_by_day_of_week", "Sales by day of week", _breakdown(Dimension.DAY_OF_WEEK, "day_of_week")),
            ("sales_by_shift", "Sales by shift", _breakdown(Dimension.SHIFT, "shift")),
            ("top_items_by_revenue", "Highest revenue items", _top_items_by_revenue),
            ("sales_by_category", "Sales by category", _breakdown(Dimension.CATEGORY, "category")),
            ("category_by_shift", "Category performance within each shift", _category_by_shift),
            (
                "size_pricing",
                "Sales and average price per item by size",
                _breakdown(Dimension.SIZE, "size", extra=["avg_price_per_item"]),
            ),
            ("product_profitability", "Item profit, margin and profit per unit", _product_profitability),
            (
                "channel_behavior",
                "Dine-in versus take-away",
                _breakdown(Dimension.CHANNEL, "channel", extra=["avg_order_value", "avg_items_per_order"]),
            ),
            (
                "peak_hours",
                "Operational load by hour",
                _breakdown(Dimension.HOUR, "order_hour", sort_by="orders", extra=["avg_order_value"]),
            ),
            ("profitability_risk", "Low margin and loss-making items", _profitability_risk),
            ("profit_concentration", "Pareto profit concentration by item", _profit_concentration),
            ("item_strategy_matrix", "Star / Volume Driver / High Margin Niche / Weak Performer", _item_strategy_matrix),
            ("profit_by_hour", "Profit by hour of day", _profit_by_hour),
            ("category_investment_map", "Category units, revenue and profit", _category_investment_map),
            ("size_strategy", "Size units, profit and average price", _size_strategy),
            ("category_summary", "Category summary including cost and AOV", _category_summary),
        ]
        for name, description, builder in defaults:
            self.register_report(name, builder, description)

    def register_report(self, name: str, builder: ReportBuilder, description: str = "") -> None:
        """Register a custom report"""
        self._reports[name] = ReportDefinition(name=name, description=description, builder=builder)

    @property
    def names(self) -> List[str]:
        return list(self._reports)

    def describe(self) -> Dict[str, str]:
        """Report names and descriptions"""
        return {name: report.description for name, report in self._reports.items()}

    def build(self, name: str, rounded: bool = True) -> pl.DataFrame:
        """
        Build a report by name.

        Args:
            name: Registered report name
            rounded: Round float columns for presentation

        Raises:
            UnknownReportError: if no report has that name
        """
        report = self._reports.get(name)
        if report is None:
            raise UnknownReportError(name)

        frame = report.builder(self.facts, self.settings)
        logger.debug("Built report", report=name, rows=frame.height)
        return present(frame, self.settings.decimals) if rounded else frame

    def build_all(self) -> Dict[str, pl.DataFrame]:
        """Build every registered report"""
        return {name: self.build(name) for name in self._reports}

    def _write_output(self, df: pl.DataFrame, name: str, output_dir: Path, fmt: str) -> str:
        """Write one report to the output directory"""
        output_file = output_dir / f"{name}.{fmt}"
        if fmt == "parquet":
            df.write_parquet(output_file)
        else:
            df.write_csv(output_file)
        return str(output_file)

    def export(
        self,
        output_dir: Optional[str] = None,
        fmt: Optional[str] = None,
        names: Optional[List[str]] = None,
    ) -> List[ReportResult]:
        """
        Write reports to disk.

        Args:
            output_dir: Target directory (defaults to settings.output_dir)
            fmt: "csv" or "parquet" (defaults to settings.output_format)
            names: Subset of reports to write (defaults to all)

        Returns:
            One ReportResult per written file
        """
        path = Path(output_dir or self.settings.output_dir)
        fmt = (fmt or self.settings.output_format).lower()
        if fmt not in ("csv", "parquet"):
            raise ValueError(f"Unsupported export format: {fmt}")
        path.mkdir(parents=True, exist_ok=True)

        results = []
        for name in names or self.names:
            frame = self.build(name)
            output_file = self._write_output(frame, name, path, fmt)
            results.append(
                ReportResult(name=name, rows=frame.height, output_path=output_file, exported_at=datetime.now())
            )

        logger.info("Reports exported", reports=len(results), output_dir=str(path), format=fmt)
        return results
