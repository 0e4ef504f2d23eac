"""
Data Validation Module

Row-level data quality rules for sales files before they reach the fact table.

Each rule is a Polars expression that is True on failing rows, so the same
rule set both reports on a batch and splits it into loadable and rejected rows.
Rules with ERROR severity reject rows; WARNING rules are only reported.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import polars as pl
import structlog

logger = structlog.get_logger(__name__)

REJECT_REASON_COLUMN = "_error_message"

# Upper bounds of the fact table columns: INTEGER and NUMERIC(12,2) / NUMERIC(14,2)
INT32_MAX = 2**31 - 1
MAX_UNIT_PRICE = 9_999_999_999.99
MAX_TOTAL_AMOUNT = 999_999_999_999.99


class ValidationSeverity(str, Enum):
    """Severity levels for validation failures"""
    ERROR = "error"  # row is rejected
    WARNING = "warning"  # logged, row is kept


class ValidationStatus(str, Enum):
    """Overall validation status"""
    PASSED = "passed"
    FAILED = "failed"
    PARTIAL = "partial"


@dataclass
class ValidationRule:
    """A named failing-row predicate"""
    name: str
    expr: pl.Expr
    severity: ValidationSeverity
    message: str


@dataclass
class ValidationCheck:
    """Single rule result over a batch"""
    name: str
    passed: bool
    severity: ValidationSeverity
    message: str
    failed_rows: int = 0
    total_rows: int = 0
    details: Optional[Dict[str, Any]] = None


@dataclass
class ValidationResult:
    """Complete validation result"""
    status: ValidationStatus
    total_checks: int
    passed_checks: int
    failed_checks: int
    warning_count: int
    checks: List[ValidationCheck] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None

    @property
    def success_rate(self) -> float:
        """Percentage of passed checks"""
        if self.total_checks == 0:
            return 100.0
        return (self.passed_checks / self.total_checks) * 100


class SalesValidator:
    """
    Rule-based validator for tabular batches.

    Example:
        validator = (
            SalesValidator()
            .add_not_null_rule("transaction_id")
            .add_non_negative_rule("total_amount")
            .add_range_rule("quantity", max_value=1000)
        )
        result = validator.validate(df)
        valid_df, rejected_df = validator.split(df)
    """

    def __init__(self):
        self._rules: List[ValidationRule] = []

    @property
    def rules(self) -> List[ValidationRule]:
        return list(self._rules)

    def add_rule(
        self,
        name: str,
        expr: pl.Expr,
        message: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "SalesValidator":
        """Add a custom rule; expr must evaluate True on failing rows"""
        self._rules.append(ValidationRule(name=name, expr=expr, severity=severity, message=message))
        return self

    def add_not_null_rule(self, column: str, severity: ValidationSeverity = ValidationSeverity.ERROR) -> "SalesValidator":
        return self.add_rule(
            f"not_null_{column}",
            pl.col(column).is_null(),
            f"Column '{column}' is missing or could not be parsed",
            severity,
        )

    def add_not_empty_rule(self, column: str, severity: ValidationSeverity = ValidationSeverity.ERROR) -> "SalesValidator":
        return self.add_rule(
            f"not_empty_{column}",
            pl.col(column).str.strip_chars() == "",
            f"Column '{column}' is blank",
            severity,
        )

    def add_unique_rule(self, column: str, severity: ValidationSeverity = ValidationSeverity.ERROR) -> "SalesValidator":
        """Later repeats of a value fail; the first occurrence is kept"""
        return self.add_rule(
            f"unique_{column}",
            pl.col(column).is_not_null() & ~pl.col(column).is_first_distinct(),
            f"Column '{column}' repeats an earlier value",
            severity,
        )

    def add_non_negative_rule(self, column: str, severity: ValidationSeverity = ValidationSeverity.ERROR) -> "SalesValidator":
        return self.add_rule(
            f"non_negative_{column}",
            pl.col(column) < 0,
            f"Column '{column}' is negative",
            severity,
        )

    def add_range_rule(
        self,
        column: str,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "SalesValidator":
        """Values outside [min_value, max_value] fail; nulls pass"""
        expr = pl.lit(False)
        if min_value is not None:
            expr = expr | (pl.col(column) < min_value)
        if max_value is not None:
            expr = expr | (pl.col(column) > max_value)
        return self.add_rule(
            f"range_{column}",
            expr,
            f"Column '{column}' is outside [{min_value}, {max_value}]",
            severity,
        )

    def _failing(self, rule: ValidationRule) -> pl.Expr:
        # null comparisons count as passing; not-null rules cover those rows
        return rule.expr.fill_null(False)

    def validate(self, df: pl.DataFrame) -> ValidationResult:
        """Evaluate every rule over the batch"""
        started_at = datetime.now(timezone.utc)
        total = df.height
        checks: List[ValidationCheck] = []

        if self._rules:
            counts = df.select(
                [self._failing(rule).sum().alias(rule.name) for rule in self._rules]
            ).row(0, named=True)
        else:
            counts = {}

        for rule in self._rules:
            failed = int(counts[rule.name] or 0)
            checks.append(
                ValidationCheck(
                    name=rule.name,
                    passed=failed == 0,
                    severity=rule.severity,
                    message=rule.message if failed else f"{rule.name} passed",
                    failed_rows=failed,
                    total_rows=total,
                    details={"failed_percentage": (failed / total) * 100 if total > 0 else 0},
                )
            )

        failed_checks = sum(1 for c in checks if not c.passed and c.severity == ValidationSeverity.ERROR)
        warning_count = sum(1 for c in checks if not c.passed and c.severity == ValidationSeverity.WARNING)

        if failed_checks > 0:
            status = ValidationStatus.FAILED
        elif warning_count > 0:
            status = ValidationStatus.PARTIAL
        else:
            status = ValidationStatus.PASSED

        result = ValidationResult(
            status=status,
            total_checks=len(checks),
            passed_checks=sum(1 for c in checks if c.passed),
            failed_checks=failed_checks,
            warning_count=warning_count,
            checks=checks,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc),
        )

        logger.info(
            f"Validation complete: {status.value}",
            rows=total,
            failed=failed_checks,
            warnings=warning_count,
            success_rate=round(result.success_rate, 2),
        )
        for check in checks:
            if not check.passed:
                log = logger.warning if check.severity == ValidationSeverity.ERROR else logger.info
                log("Validation rule failed", rule=check.name, failed_rows=check.failed_rows)

        return result

    def split(self, df: pl.DataFrame) -> Tuple[pl.DataFrame, pl.DataFrame]:
        """
        Separate rows that pass every ERROR rule from those that do not.

        Returns:
            (valid rows, rejected rows with a ";"-joined list of failed rule
            names in the _error_message column)
        """
        error_rules = [r for r in self._rules if r.severity == ValidationSeverity.ERROR]
        if not error_rules:
            return df, df.clear().with_columns(pl.lit(None, dtype=pl.Utf8).alias(REJECT_REASON_COLUMN))

        reason = pl.concat_str(
            [
                pl.when(self._failing(rule)).then(pl.lit(rule.name)).otherwise(pl.lit(None, dtype=pl.Utf8))
                for rule in error_rules
            ],
            separator=";",
            ignore_nulls=True,
        )
        flagged = df.with_columns(reason.alias(REJECT_REASON_COLUMN))
        is_rejected = pl.col(REJECT_REASON_COLUMN).is_not_null() & (pl.col(REJECT_REASON_COLUMN) != "")

        valid = flagged.filter(~is_rejected).drop(REJECT_REASON_COLUMN)
        rejected = flagged.filter(is_rejected)
        return valid, rejected


def create_sales_validator() -> SalesValidator:
    """Validator matching the sales fact table constraints"""
    return (
        SalesValidator()
        .add_not_null_rule("transaction_id")
        .add_unique_rule("transaction_id")
        .add_not_null_rule("txn_date")
        .add_not_null_rule("product_category")
        .add_not_empty_rule("product_category")
        .add_not_null_rule("quantity")
        .add_non_negative_rule("quantity")
        .add_range_rule("quantity", max_value=INT32_MAX)
        .add_not_null_rule("price_per_unit")
        .add_non_negative_rule("price_per_unit")
        .add_range_rule("price_per_unit", max_value=MAX_UNIT_PRICE)
        .add_not_null_rule("total_amount")
        .add_non_negative_rule("total_amount")
        .add_range_rule("total_amount", max_value=MAX_TOTAL_AMOUNT)
        .add_range_rule("age", min_value=0, max_value=INT32_MAX)
        .add_rule(
            "total_matches_quantity_price",
            (pl.col("total_amount") - pl.col("quantity") * pl.col("price_per_unit")).abs() > 0.005,
            "Total amount differs from quantity x unit price",
            ValidationSeverity.WARNING,
        )
    )
