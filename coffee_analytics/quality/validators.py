"""
Data Validation Module

Rule-based quality checks over the typed sales-line fact table.

Every column check is expressed as a polars predicate that flags offending
rows; the validator counts them and reports one ValidationCheck per rule.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import polars as pl
import structlog

logger = structlog.get_logger(__name__)

CheckFn = Callable[[pl.DataFrame], "ValidationCheck"]

CHANNELS = ["in", "out"]

# Contribution is rounded to cents in the export
CONTRIBUTION_TOLERANCE = 0.011


class ValidationSeverity(str, Enum):
    """Severity levels for validation failures"""
    ERROR = "error"  # Blocks the load
    WARNING = "warning"  # Reported on the load result
    INFO = "info"


class ValidationStatus(str, Enum):
    """Overall validation status"""
    PASSED = "passed"
    FAILED = "failed"
    PARTIAL = "partial"


@dataclass
class ValidationCheck:
    """Single validation check result"""
    name: str
    passed: bool
    severity: ValidationSeverity
    message: str
    details: Optional[Dict[str, Any]] = None
    failed_rows: int = 0
    total_rows: int = 0


@dataclass
class ValidationResult:
    """Complete validation suite result"""
    status: ValidationStatus
    total_checks: int
    passed_checks: int
    failed_checks: int
    warning_count: int
    checks: List[ValidationCheck] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @property
    def success_rate(self) -> float:
        """Percentage of passed checks"""
        if self.total_checks == 0:
            return 100.0
        return (self.passed_checks / self.total_checks) * 100

    @property
    def failures(self) -> List[ValidationCheck]:
        """Checks that did not pass"""
        return [c for c in self.checks if not c.passed]


class DataQualityError(Exception):
    """Raised when error-severity checks fail on a loaded snapshot."""

    def __init__(self, result: ValidationResult):
        self.result = result
        failed = [c.message for c in result.failures if c.severity == ValidationSeverity.ERROR]
        super().__init__("Data quality checks failed: " + "; ".join(failed))


class DataValidator:
    """
    Data validator with a chainable check suite.

    Example:
        validator = DataValidator()
        validator.add_not_null_check("row_id")
        validator.add_positive_check("quantity", allow_zero=False)
        result = validator.validate(df)
    """

    def __init__(self, strict_mode: bool = False):
        self.strict_mode = strict_mode  # Fail on any warning
        self._checks: List[CheckFn] = []

    def reset(self) -> None:
        """Reset validator state"""
        self._checks = []

    def _add_row_check(
        self,
        name: str,
        column: str,
        offending: Callable[[pl.DataFrame], pl.Series],
        severity: ValidationSeverity,
        problem: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> "DataValidator":
        """Register a check that fails on every row flagged by `offending`."""
        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return ValidationCheck(
                    name=name,
                    passed=False,
                    severity=severity,
                    message=f"Column '{column}' not found",
                )

            flagged = offending(df)
            failing = int(flagged.sum()) if len(flagged) else 0
            info = dict(details or {})
            if failing:
                info["sample"] = df.filter(flagged).get_column(column).head(10).to_list()

            return ValidationCheck(
                name=name,
                passed=failing == 0,
                severity=severity,
                message=f"Column '{column}' has {failing} {problem}" if failing else f"Column '{column}' OK",
                details=info,
                failed_rows=failing,
                total_rows=len(df),
            )

        self._checks.append(check)
        return self

    def add_not_null_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for null values in column"""
        return self._add_row_check(
            f"not_null_{column}",
            column,
            lambda df: df.get_column(column).is_null(),
            severity,
            "null values",
        )

    def add_unique_check(
        self,
        column: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check that no value appears twice; every repeat after the first counts"""
        return self._add_row_check(
            f"unique_{column}",
            column,
            lambda df: df.get_column(column).is_duplicated() & ~df.get_column(column).is_first_distinct(),
            severity,
            "duplicate values",
        )

    def add_range_check(
        self,
        column: str,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for values within [min_value, max_value]; nulls are not checked"""
        def outside(df: pl.DataFrame) -> pl.Series:
            values = df.get_column(column)
            flagged = pl.Series("flagged", [False] * len(df), dtype=pl.Boolean)
            if min_value is not None:
                flagged = flagged | (values < min_value).fill_null(False)
            if max_value is not None:
                flagged = flagged | (values > max_value).fill_null(False)
            return flagged

        return self._add_row_check(
            f"range_{column}",
            column,
            outside,
            severity,
            f"values outside range [{min_value}, {max_value}]",
            {"min": min_value, "max": max_value},
        )

    def add_positive_check(
        self,
        column: str,
        allow_zero: bool = True,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for positive values"""
        def non_positive(df: pl.DataFrame) -> pl.Series:
            values = df.get_column(column)
            return ((values < 0) if allow_zero else (values <= 0)).fill_null(False)

        return self._add_row_check(
            f"positive_{column}",
            column,
            non_positive,
            severity,
            "non-positive values",
            {"allow_zero": allow_zero},
        )

    def add_enum_check(
        self,
        column: str,
        allowed_values: List[Any],
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check for values in allowed set"""
        return self._add_row_check(
            f"enum_{column}",
            column,
            lambda df: (~df.get_column(column).is_in(allowed_values)).fill_null(False),
            severity,
            "values outside the allowed set",
            {"allowed_values": allowed_values},
        )

    def add_custom_check(
        self,
        name: str,
        check_func: Callable[[pl.DataFrame], bool],
        message_on_fail: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add custom validation check over the whole frame"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            passed = bool(check_func(df))
            return ValidationCheck(
                name=name,
                passed=passed,
                severity=severity,
                message="Check passed" if passed else message_on_fail,
                total_rows=len(df),
            )

        self._checks.append(check)
        return self

    def validate(self, df: pl.DataFrame) -> ValidationResult:
        """
        Run all validation checks on DataFrame.

        Args:
            df: DataFrame to validate

        Returns:
            ValidationResult with all check results
        """
        started_at = datetime.now()
        logger.debug("Running validation checks", checks=len(self._checks), rows=len(df))

        results = [check(df) for check in self._checks]
        for result in results:
            if not result.passed:
                logger.warning(
                    f"Validation failed: {result.name}",
                    message=result.message,
                    severity=result.severity.value,
                )

        passed_checks = sum(1 for r in results if r.passed)
        failed_checks = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.ERROR)
        warning_count = sum(1 for r in results if not r.passed and r.severity == ValidationSeverity.WARNING)

        if failed_checks or (warning_count and self.strict_mode):
            status = ValidationStatus.FAILED
        elif warning_count:
            status = ValidationStatus.PARTIAL
        else:
            status = ValidationStatus.PASSED

        logger.info(
            f"Validation complete: {status.value}",
            passed=passed_checks,
            failed=failed_checks,
            warnings=warning_count,
        )

        return ValidationResult(
            status=status,
            total_checks=len(results),
            passed_checks=passed_checks,
            failed_checks=failed_checks,
            warning_count=warning_count,
            checks=results,
            started_at=started_at,
            completed_at=datetime.now(),
        )


def contribution_matches(df: pl.DataFrame) -> bool:
    """contribution == revenue - total_cost, to the cent"""
    gap = (pl.col("revenue") - pl.col("total_cost") - pl.col("contribution")).abs()
    return df.filter(gap > CONTRIBUTION_TOLERANCE).is_empty()


def create_sales_lines_validator(include_warnings: bool = True) -> DataValidator:
    """
    Create the validator for typed sales-line facts.

    Error checks hold the line invariants (keys present, unique row id,
    positive quantity, hour of day) and always run. Warning checks flag
    suspicious but loadable data.
    """
    validator = (
        DataValidator()
        .add_not_null_check("row_id")
        .add_not_null_check("order_id")
        .add_not_null_check("order_date")
        .add_unique_check("row_id")
        .add_positive_check("quantity", allow_zero=False)
        .add_range_check("order_hour", min_value=0, max_value=23)
    )
    if include_warnings:
        warn = ValidationSeverity.WARNING
        (
            validator
            .add_range_check("margin", min_value=-1, max_value=1, severity=warn)
            .add_positive_check("unit_price", severity=warn)
            .add_positive_check("total_cost", severity=warn)
            .add_enum_check("channel", CHANNELS, severity=warn)
            .add_custom_check(
                "contribution_matches",
                contribution_matches,
                "Contribution differs from revenue minus total cost",
                severity=warn,
            )
        )
    return validator
