"""
Unit Tests - Data Quality
"""
import polars as pl

from sales_kpi.quality.validators import (
    INT32_MAX,
    REJECT_REASON_COLUMN,
    SalesValidator,
    ValidationSeverity,
    ValidationStatus,
    create_sales_validator,
)


class TestSalesValidator:
    """Tests for SalesValidator"""

    def test_not_null_rule_passes(self):
        df = pl.DataFrame({"id": [1, 2, 3]})

        result = SalesValidator().add_not_null_rule("id").validate(df)

        assert result.status == ValidationStatus.PASSED
        assert result.passed_checks == 1

    def test_not_null_rule_fails(self):
        df = pl.DataFrame({"id": [1, None, 3]})

        result = SalesValidator().add_not_null_rule("id").validate(df)

        assert result.status == ValidationStatus.FAILED
        assert result.checks[0].failed_rows == 1

    def test_unique_rule_flags_repeats_only(self):
        df = pl.DataFrame({"id": [1, 2, 1, 1]})

        valid, rejected = SalesValidator().add_unique_rule("id").split(df)

        assert valid["id"].to_list() == [1, 2]
        assert rejected.height == 2

    def test_non_negative_rule(self):
        df = pl.DataFrame({"amount": [10.0, 0.0, -5.0, None]})

        result = SalesValidator().add_non_negative_rule("amount").validate(df)

        # null is not negative
        assert result.checks[0].failed_rows == 1

    def test_not_empty_rule(self):
        df = pl.DataFrame({"category": ["Beauty", "  ", ""]})

        result = SalesValidator().add_not_empty_rule("category").validate(df)

        assert result.checks[0].failed_rows == 2

    def test_range_rule(self):
        df = pl.DataFrame({"quantity": [0, 10, 11, None]})

        valid, rejected = SalesValidator().add_range_rule("quantity", min_value=1, max_value=10).split(df)

        assert valid["quantity"].to_list() == [10, None]
        assert rejected["quantity"].to_list() == [0, 11]
        assert rejected[REJECT_REASON_COLUMN].to_list() == ["range_quantity", "range_quantity"]

    def test_warning_rules_do_not_reject(self):
        df = pl.DataFrame({"amount": [1.0, -1.0]})
        validator = SalesValidator().add_rule(
            "positive", pl.col("amount") <= 0, "not positive", ValidationSeverity.WARNING
        )

        result = validator.validate(df)
        valid, rejected = validator.split(df)

        assert result.status == ValidationStatus.PARTIAL
        assert valid.height == 2
        assert rejected.height == 0

    def test_split_lists_every_failed_rule(self):
        df = pl.DataFrame({"id": [1, None], "amount": [5.0, -1.0]})
        validator = SalesValidator().add_not_null_rule("id").add_non_negative_rule("amount")

        valid, rejected = validator.split(df)

        assert valid.columns == ["id", "amount"]
        assert valid.height == 1
        assert rejected[REJECT_REASON_COLUMN].to_list() == ["not_null_id;non_negative_amount"]

    def test_no_rules(self):
        df = pl.DataFrame({"id": [1]})
        validator = SalesValidator()

        assert validator.validate(df).status == ValidationStatus.PASSED
        valid, rejected = validator.split(df)
        assert valid.height == 1
        assert rejected.height == 0


class TestSalesRules:
    """Tests for the fact table rule set"""

    def test_clean_rows_pass(self):
        df = pl.DataFrame({
            "transaction_id": [1, 2],
            "txn_date": ["2023-12-29", "2023-12-29"],
            "age": [34, 26],
            "product_category": ["Windows", "Doors"],
            "quantity": [2, 1],
            "price_per_unit": [50.0, 120.0],
            "total_amount": [100.0, 120.0],
        })

        result = create_sales_validator().validate(df)

        assert result.status == ValidationStatus.PASSED
        assert result.success_rate == 100.0

    def test_mismatched_total_is_a_warning(self):
        df = pl.DataFrame({
            "transaction_id": [1],
            "txn_date": ["2023-12-29"],
            "age": [34],
            "product_category": ["Windows"],
            "quantity": [2],
            "price_per_unit": [50.0],
            "total_amount": [90.0],
        })

        result = create_sales_validator().validate(df)

        assert result.status == ValidationStatus.PARTIAL
        assert result.warning_count == 1

    def test_values_beyond_column_range_are_rejected(self):
        df = pl.DataFrame({
            "transaction_id": [1, 2, 3],
            "txn_date": ["2023-12-29", "2023-12-29", "2023-12-29"],
            "age": [34, INT32_MAX + 1, 40],
            "product_category": ["Windows", "Doors", "Siding"],
            "quantity": [1, 1, INT32_MAX + 1],
            "price_per_unit": [10.0, 10.0, 0.0],
            "total_amount": [10.0, 10.0, 0.0],
        })

        valid, rejected = create_sales_validator().split(df)

        assert valid["transaction_id"].to_list() == [1]
        assert rejected[REJECT_REASON_COLUMN].to_list() == ["range_age", "range_quantity"]
