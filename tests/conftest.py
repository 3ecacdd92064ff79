"""
Test Suite Configuration
"""
from datetime import date, datetime
from typing import Any, Callable, Dict, List

import polars as pl
import pytest

from coffee_analytics.config import DatasetSettings, ReportSettings, Settings
from coffee_analytics.ingestion.fact_loader import (
    SalesFactLoader,
    SalesLine,
    lines_to_frame,
    raw_frame_from_records,
)
from coffee_analytics.reporting.catalog import ReportCatalog
from coffee_analytics.serving.snapshot import Snapshot


def raw_record(**overrides: Any) -> Dict[str, str]:
    """One raw export row with sensible defaults"""
    record = {
        "row_id": "1",
        "order_id": "ORD-1",
        "created_at": "2025-01-05 08:15:00",
        "order_date": "05-01-2025",
        "order_hour": "8",
        "shift_bucket": "Morning",
        "day_of_week": "Sunday",
        "cust_name": "Ana",
        "in_or_out": "in",
        "item_id": "IT001",
        "sku": "HOT-LAT-M",
        "item_name": "Latte",
        "item_cat": "Hot Drinks",
        "item_size": "Medium",
        "quantity": "2",
        "item_price": "5.00",
        "revenue": "10.00",
        "unit_cost": "2.00",
        "total_cost": "4.00",
        "contribution": "6.00",
        "margin_pct": "60.00%",
    }
    record.update(overrides)
    return record


HEADER_ROW = {col: col for col in raw_record()}


def sample_records() -> List[Dict[str, str]]:
    """Five order lines across three orders, plus one re-imported header row"""
    return [
        raw_record(),
        raw_record(
            row_id="2", item_id="IT002", sku="TEA-TEA-M", item_name="Tea", item_cat="Tea",
            quantity="1", item_price="5.00", revenue="5.00", unit_cost="4.00",
            total_cost="4.00", contribution="1.00", margin_pct="20.00%",
        ),
        HEADER_ROW,
        raw_record(
            row_id="3", order_id="ORD-2", order_hour="13", shift_bucket="Midday",
            cust_name="Ben", in_or_out="out", quantity="1", revenue="5.00",
            total_cost="2.00", contribution="3.00",
        ),
        raw_record(
            row_id="4", order_id="ORD-3", order_date="06-01-2025", day_of_week="Monday",
            cust_name="Cy", in_or_out="out", item_id="IT003", sku="BAK-CRO-R",
            item_name="Croissant", item_cat="Bakery", item_size="Regular", quantity="3",
            item_price="2.50", revenue="7.50", unit_cost="1.00", total_cost="3.00",
            contribution="4.50", margin_pct="60.00%",
        ),
        raw_record(
            row_id="5", order_id="ORD-3", order_date="06-01-2025", day_of_week="Monday",
            cust_name="Cy", in_or_out="out", item_id="IT004", sku="HOT-LAT-L",
            item_size="Large", quantity="1", item_price="6.00", revenue="6.00",
            unit_cost="2.50", total_cost="2.50", contribution="3.50", margin_pct="58.33%",
        ),
    ]


@pytest.fixture
def sample_raw_df() -> pl.DataFrame:
    """Raw all-text frame including a header artifact row"""
    return raw_frame_from_records(sample_records())


@pytest.fixture
def dataset_settings() -> DatasetSettings:
    return DatasetSettings(source_path=None, database_url=None)


@pytest.fixture
def sample_facts(sample_raw_df, dataset_settings) -> pl.DataFrame:
    """Typed facts of the sample export"""
    return SalesFactLoader(dataset_settings).load_frame(sample_raw_df).facts


@pytest.fixture
def make_facts() -> Callable[[List[Dict[str, Any]]], pl.DataFrame]:
    """Factory building typed facts from partial line dicts"""
    def build(lines: List[Dict[str, Any]]) -> pl.DataFrame:
        records = []
        for i, line in enumerate(lines, start=1):
            quantity = line.get("quantity", 1)
            revenue = line.get("revenue", 0.0)
            contribution = line.get("contribution", 0.0)
            defaults = {
                "row_id": str(i),
                "order_id": f"ORD-{i}",
                "order_date": date(2025, 1, 5),
                "order_hour": 9,
                "shift": "Morning",
                "day_of_week": "Sunday",
                "channel": "in",
                "item_id": line.get("item_name", "item"),
                "item_name": "item",
                "category": "Hot Drinks",
                "size": "Medium",
                "quantity": quantity,
                "unit_price": revenue / quantity,
                "revenue": revenue,
                "unit_cost": (revenue - contribution) / quantity,
                "total_cost": revenue - contribution,
                "contribution": contribution,
                "margin": contribution / revenue if revenue else None,
            }
            defaults.update(line)
            records.append(SalesLine(**defaults))
        return lines_to_frame(records)

    return build


@pytest.fixture
def report_settings(tmp_path) -> ReportSettings:
    return ReportSettings(output_dir=str(tmp_path / "reports"))


@pytest.fixture
def test_settings(tmp_path, dataset_settings, report_settings) -> Settings:
    """Create test settings"""
    return Settings(
        app_env="testing",
        debug=True,
        dataset=dataset_settings,
        report=report_settings,
    )


@pytest.fixture
def sample_catalog(sample_facts, report_settings) -> ReportCatalog:
    return ReportCatalog(sample_facts, report_settings)


@pytest.fixture
def sample_snapshot(sample_raw_df, dataset_settings, report_settings) -> Snapshot:
    result = SalesFactLoader(dataset_settings).load_frame(sample_raw_df)
    return Snapshot(
        load_result=result,
        catalog=ReportCatalog(result.facts, report_settings),
        loaded_at=datetime.now(),
    )


@pytest.fixture
def sample_csv(tmp_path, sample_raw_df):
    """Sample export written to a CSV file"""
    path = tmp_path / "sales_enriched.csv"
    sample_raw_df.write_csv(path)
    return path
