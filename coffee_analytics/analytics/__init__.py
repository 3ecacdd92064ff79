"""
Sales Analytics Module
"""
from .aggregation import (
    DIMENSION_COLUMNS,
    METRIC_COLUMNS,
    Dimension,
    GroupAggregate,
    aggregate,
    aggregate_frame,
    order_by,
    present,
)
from .segmentation import (
    Benchmarks,
    SegmentedItem,
    compute_benchmarks,
    item_aggregates,
    profit_concentration,
    profitability_risk,
    segment,
    segment_frame,
    strategy_matrix,
)

__all__ = [
    "DIMENSION_COLUMNS",
    "METRIC_COLUMNS",
    "Benchmarks",
    "Dimension",
    "GroupAggregate",
    "SegmentedItem",
    "aggregate",
    "aggregate_frame",
    "compute_benchmarks",
    "item_aggregates",
    "order_by",
    "present",
    "profit_concentration",
    "profitability_risk",
    "segment",
    "segment_frame",
    "strategy_matrix",
]
