"""
Loaded analysis snapshot shared by the API and the command line.
"""

from dataclasses import dataclass
from datetime import datetime

import structlog

from coffee_analytics.config.settings import Settings
from coffee_analytics.ingestion.fact_loader import (
    FactLoadResult,
    ParseError,
    SalesFactLoader,
    SchemaError,
    SourceReadError,
)
from coffee_analytics.quality.validators import DataQualityError
from coffee_analytics.reporting.catalog import ReportCatalog

logger = structlog.get_logger(__name__)

# Failures of one load attempt; the data must be fixed upstream
SNAPSHOT_LOAD_ERRORS = (SourceReadError, ParseError, SchemaError, DataQualityError)


@dataclass
class Snapshot:
    """Typed facts of one load together with their report catalog"""
    load_result: FactLoadResult
    catalog: ReportCatalog
    loaded_at: datetime

    @property
    def rows(self) -> int:
        return self.load_result.rows_loaded


def load_snapshot(settings: Settings) -> Snapshot:
    """Load the configured dataset once and wrap it in a report catalog."""
    result = SalesFactLoader(settings.dataset).load()
    snapshot = Snapshot(
        load_result=result,
        catalog=ReportCatalog(result.facts, settings.report),
        loaded_at=datetime.now(),
    )
    logger.info("Snapshot ready", source=result.source, rows=snapshot.rows, reports=len(snapshot.catalog.names))
    return snapshot
