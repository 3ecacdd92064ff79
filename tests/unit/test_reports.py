"""
Unit Tests - Report Catalog
"""
from pathlib import Path

import pytest
import polars as pl

from coffee_analytics.config import ReportSettings
from coffee_analytics.reporting.catalog import ReportCatalog, UnknownReportError

EXPECTED_REPORTS = [
    "kpi_summary",
    "grain",
    "order_sizes",
    "sales_by_day_of_week",
    "sales_by_shift",
    "top_items_by_revenue",
    "sales_by_category",
    "category_by_shift",
    "size_pricing",
    "product_profitability",
    "channel_behavior",
    "peak_hours",
    "profitability_risk",
    "profit_concentration",
    "item_strategy_matrix",
    "profit_by_hour",
    "category_investment_map",
    "size_strategy",
    "category_summary",
]


class TestReportCatalog:
    """Tests for ReportCatalog"""

    def test_default_reports(self, sample_catalog):
        assert sample_catalog.names == EXPECTED_REPORTS
        assert all(sample_catalog.describe().values())

    def test_kpi_summary(self, sample_catalog):
        row = sample_catalog.build("kpi_summary").row(0, named=True)

        assert row == {
            "total_orders": 3,
            "total_items_sold": 8,
            "total_revenue": 33.5,
            "total_cost": 15.5,
            "total_profit": 18.0,
            "gross_margin_pct": 53.73,
            "avg_order_value": 11.17,
            "avg_items_per_order": 2.67,
        }

    def test_unrounded_build(self, sample_catalog):
        row = sample_catalog.build("kpi_summary", rounded=False).row(0, named=True)

        assert row["gross_margin_pct"] == pytest.approx(1800 / 33.5)

    def test_unknown_report(self, sample_catalog):
        with pytest.raises(UnknownReportError) as exc_info:
            sample_catalog.build("weather")

        assert "weather" in str(exc_info.value)

    def test_grain_report(self, sample_catalog):
        row = sample_catalog.build("grain").row(0, named=True)

        assert row["rows"] == 5
        assert row["distinct_orders"] == 3
        assert row["order_item_pairs"] == 5

    def test_sales_by_category_sorted_by_revenue(self, sample_catalog):
        frame = sample_catalog.build("sales_by_category")

        assert frame["category"].to_list() == ["Hot Drinks", "Bakery", "Tea"]
        assert frame["revenue"].to_list() == [21.0, 7.5, 5.0]

    def test_category_by_shift_order(self, sample_catalog):
        frame = sample_catalog.build("category_by_shift")

        assert frame.select("shift", "category").rows() == [
            ("Midday", "Hot Drinks"),
            ("Morning", "Hot Drinks"),
            ("Morning", "Bakery"),
            ("Morning", "Tea"),
        ]

    def test_top_items_limit(self, sample_facts):
        catalog = ReportCatalog(sample_facts, ReportSettings(top_items_limit=2))

        frame = catalog.build("top_items_by_revenue")

        assert frame.height == 2
        assert frame["item_name"].to_list() == ["Latte", "Croissant"]

    def test_profit_concentration_report(self, sample_catalog):
        frame = sample_catalog.build("profit_concentration")

        assert frame["cumulative_profit_pct"].to_list() == [50.0, 75.0, 94.44, 100.0]
        assert frame["profit_segment"].to_list()[:2] == ["Core Profit Drivers"] * 2

    def test_core_threshold_from_settings(self, sample_facts):
        catalog = ReportCatalog(sample_facts, ReportSettings(core_profit_threshold_pct=95))

        frame = catalog.build("profit_concentration")

        assert frame["profit_segment"].to_list() == ["Core Profit Drivers"] * 3 + ["Long Tail"]

    def test_peak_hours_sorted_by_orders(self, sample_catalog):
        frame = sample_catalog.build("peak_hours")

        assert frame["order_hour"].to_list() == [8, 13]
        assert frame["orders"].to_list() == [2, 1]

    def test_channel_behavior(self, sample_catalog):
        frame = sample_catalog.build("channel_behavior")
        rows = {r["channel"]: r for r in frame.iter_rows(named=True)}

        assert rows["in"]["avg_order_value"] == 15.0
        assert rows["out"]["avg_items_per_order"] == 2.5

    def test_register_custom_report(self, sample_catalog):
        sample_catalog.register_report(
            "line_count",
            lambda facts, settings: pl.DataFrame({"lines": [facts.height]}),
            "Number of lines",
        )

        assert sample_catalog.build("line_count")["lines"][0] == 5
        assert "line_count" in sample_catalog.names

    def test_build_all(self, sample_catalog):
        reports = sample_catalog.build_all()

        assert list(reports) == EXPECTED_REPORTS
        assert all(frame.height > 0 for frame in reports.values())


class TestReportExport:
    """Tests for writing reports to disk"""

    def test_export_csv(self, sample_catalog, report_settings):
        results = sample_catalog.export()

        assert len(results) == len(EXPECTED_REPORTS)
        kpi = Path(report_settings.output_dir) / "kpi_summary.csv"
        assert kpi.exists()
        assert pl.read_csv(kpi)["total_orders"][0] == 3

    def test_export_parquet_subset(self, sample_catalog, tmp_path):
        out = tmp_path / "pq"

        results = sample_catalog.export(str(out), "parquet", ["profit_concentration"])

        assert [r.name for r in results] == ["profit_concentration"]
        assert results[0].rows == 4
        frame = pl.read_parquet(out / "profit_concentration.parquet")
        assert frame.height == 4

    def test_export_unknown_format(self, sample_catalog):
        with pytest.raises(ValueError):
            sample_catalog.export(fmt="xlsx")

    def test_export_unknown_report(self, sample_catalog):
        with pytest.raises(UnknownReportError):
            sample_catalog.export(names=["weather"])
