"""
Unit Tests - Data Quality
"""
import pytest
import polars as pl

from coffee_analytics.quality.grain import profile_grain, order_sizes
from coffee_analytics.quality.validators import (
    DataValidator,
    ValidationSeverity,
    ValidationStatus,
    create_sales_lines_validator,
)


class TestDataValidator:
    """Tests for DataValidator"""

    def test_not_null_check_passes(self):
        """Test not null check with valid data"""
        df = pl.DataFrame({"id": [1, 2, 3], "name": ["a", "b", "c"]})

        result = DataValidator().add_not_null_check("id").validate(df)

        assert result.status == ValidationStatus.PASSED
        assert result.passed_checks == 1

    def test_not_null_check_fails(self):
        """Test not null check with null values"""
        df = pl.DataFrame({"id": [1, None, 3]})

        result = DataValidator().add_not_null_check("id").validate(df)

        assert result.status == ValidationStatus.FAILED
        assert result.failed_checks == 1
        assert result.failures[0].failed_rows == 1

    def test_unique_check_reports_sample(self):
        """Duplicated values are listed in the check details"""
        df = pl.DataFrame({"id": ["a", "b", "a", "c", "b"]})

        result = DataValidator().add_unique_check("id").validate(df)

        check = result.checks[0]
        assert not check.passed
        assert check.failed_rows == 2
        assert check.details["sample"] == ["a", "b"]

    def test_range_check(self):
        """Test range check"""
        df = pl.DataFrame({"hour": [0, 12, 23, 24]})

        result = DataValidator().add_range_check("hour", min_value=0, max_value=23).validate(df)

        assert result.status == ValidationStatus.FAILED
        assert result.checks[0].failed_rows == 1

    @pytest.mark.parametrize("allow_zero, expected", [(True, ValidationStatus.PASSED), (False, ValidationStatus.FAILED)])
    def test_positive_check_zero(self, allow_zero, expected):
        """Zero passes only when allowed"""
        df = pl.DataFrame({"quantity": [0, 1, 2]})

        result = DataValidator().add_positive_check("quantity", allow_zero=allow_zero).validate(df)

        assert result.status == expected

    def test_enum_check_ignores_nulls(self):
        """Test enum check"""
        df = pl.DataFrame({"channel": ["in", "out", None, "drive"]})

        result = DataValidator().add_enum_check("channel", ["in", "out"]).validate(df)

        assert result.checks[0].failed_rows == 1

    def test_warning_gives_partial_status(self):
        """Warning-severity failures do not fail the suite"""
        df = pl.DataFrame({"price": [-1.0, 2.0]})

        result = (
            DataValidator()
            .add_positive_check("price", severity=ValidationSeverity.WARNING)
            .validate(df)
        )

        assert result.status == ValidationStatus.PARTIAL
        assert result.warning_count == 1

    def test_strict_mode_fails_on_warning(self):
        df = pl.DataFrame({"price": [-1.0]})

        result = (
            DataValidator(strict_mode=True)
            .add_positive_check("price", severity=ValidationSeverity.WARNING)
            .validate(df)
        )

        assert result.status == ValidationStatus.FAILED

    def test_missing_column_fails(self):
        result = DataValidator().add_not_null_check("missing").validate(pl.DataFrame({"a": [1]}))

        assert result.status == ValidationStatus.FAILED
        assert "not found" in result.checks[0].message

    def test_custom_check(self):
        """Test custom validation check"""
        df = pl.DataFrame({"revenue": [10.0, 5.0], "cost": [4.0, 6.0]})

        result = DataValidator().add_custom_check(
            "cost_below_revenue",
            lambda d: (d["cost"] <= d["revenue"]).all(),
            "Some lines cost more than they earn",
            severity=ValidationSeverity.WARNING,
        ).validate(df)

        assert result.checks[0].message == "Some lines cost more than they earn"
        assert result.success_rate == 0.0

    def test_reset(self):
        validator = DataValidator().add_not_null_check("id")
        validator.reset()

        result = validator.validate(pl.DataFrame({"id": [None]}))

        assert result.total_checks == 0
        assert result.success_rate == 100.0

    def test_sales_lines_validator(self, sample_facts):
        """The bundled suite passes on the sample snapshot"""
        result = create_sales_lines_validator().validate(sample_facts)

        assert result.status == ValidationStatus.PASSED
        assert result.failed_checks == 0

    def test_sales_lines_validator_warnings(self, sample_facts):
        """Unknown channels and contribution drift are reported, not fatal"""
        facts = sample_facts.with_columns(
            pl.lit("drive-thru").alias("channel"),
            (pl.col("contribution") + 0.5).alias("contribution"),
        )

        result = create_sales_lines_validator().validate(facts)

        assert result.status == ValidationStatus.PARTIAL
        assert {c.name for c in result.failures} == {"enum_channel", "contribution_matches"}
        assert result.failures[0].details["sample"][0] == "drive-thru"

    def test_invariants_without_warnings(self, sample_facts):
        """include_warnings=False keeps the error checks only"""
        facts = sample_facts.with_columns(
            pl.lit(0).cast(sample_facts["quantity"].dtype).alias("quantity"),
            pl.lit("x").alias("channel"),
        )

        result = create_sales_lines_validator(include_warnings=False).validate(facts)

        assert result.status == ValidationStatus.FAILED
        assert [c.name for c in result.failures] == ["positive_quantity"]
        assert all(c.severity == ValidationSeverity.ERROR for c in result.checks)


class TestGrain:
    """Tests for the line-grain profile"""

    def test_profile_sample(self, sample_facts):
        profile = profile_grain(sample_facts)

        assert profile.rows == 5
        assert profile.distinct_row_ids == 5
        assert profile.distinct_orders == 3
        assert profile.order_item_pairs == 5
        assert profile.items_sold == 8
        assert profile.is_line_grain

    def test_orders_have_several_lines(self, sample_facts):
        profile = profile_grain(sample_facts)

        assert profile.distinct_orders < profile.rows

    def test_duplicate_row_ids_break_grain(self, make_facts):
        facts = make_facts([{"revenue": 5.0}, {"revenue": 5.0}]).with_columns(pl.lit("1").alias("row_id"))

        profile = profile_grain(facts)

        assert not profile.is_line_grain
        assert profile.to_dict()["distinct_row_ids"] == 1

    def test_empty_facts(self, sample_facts):
        profile = profile_grain(sample_facts.head(0))

        assert profile.rows == 0
        assert profile.is_line_grain

    def test_order_sizes(self, sample_facts):
        sizes = order_sizes(sample_facts)

        assert sizes["order_id"].to_list() == ["ORD-1", "ORD-3", "ORD-2"]
        assert sizes["items_in_order"].to_list() == [2, 2, 1]
