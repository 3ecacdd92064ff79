"""
Report API Endpoints

Read-only access to the report catalog and the typed sales lines.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
import structlog

from coffee_analytics.ingestion.fact_loader import SalesLine, iter_sales_lines
from coffee_analytics.reporting.catalog import UnknownReportError
from coffee_analytics.serving.api.dependencies import get_snapshot
from coffee_analytics.serving.snapshot import Snapshot

router = APIRouter()
logger = structlog.get_logger(__name__)


class ReportSummary(BaseModel):
    """Catalog entry"""
    name: str
    description: str


class ReportTable(BaseModel):
    """Rows of one report"""
    name: str
    description: str
    row_count: int
    rows: List[Dict[str, Any]]


@router.get("/reports", response_model=List[ReportSummary])
async def list_reports(snapshot: Snapshot = Depends(get_snapshot)) -> List[ReportSummary]:
    """List the available reports."""
    return [
        ReportSummary(name=name, description=description)
        for name, description in snapshot.catalog.describe().items()
    ]


@router.get("/reports/{name}", response_model=ReportTable)
async def get_report(name: str, snapshot: Snapshot = Depends(get_snapshot)) -> ReportTable:
    """Build one report from the loaded snapshot."""
    try:
        frame = snapshot.catalog.build(name)
    except UnknownReportError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return ReportTable(
        name=name,
        description=snapshot.catalog.describe()[name],
        row_count=frame.height,
        rows=frame.to_dicts(),
    )


@router.get("/facts", response_model=List[SalesLine])
async def list_sales_lines(
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    snapshot: Snapshot = Depends(get_snapshot),
) -> List[SalesLine]:
    """Page through the typed sales lines in load order."""
    page = snapshot.load_result.facts.slice(offset, limit)
    logger.debug("Serving sales lines", offset=offset, limit=limit, rows=page.height)
    return list(iter_sales_lines(page))
