"""
Data Quality Module
"""
from .grain import GrainProfile, order_sizes, profile_grain
from .validators import (
    DataQualityError,
    DataValidator,
    ValidationResult,
    ValidationSeverity,
    ValidationStatus,
    create_sales_lines_validator,
)

__all__ = [
    "DataQualityError",
    "DataValidator",
    "GrainProfile",
    "ValidationResult",
    "ValidationSeverity",
    "ValidationStatus",
    "create_sales_lines_validator",
    "order_sizes",
    "profile_grain",
]
