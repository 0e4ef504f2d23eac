"""
Data Quality Module
"""
from .validators import SalesValidator, ValidationResult, ValidationSeverity, ValidationStatus, create_sales_validator

__all__ = [
    "SalesValidator",
    "ValidationResult",
    "ValidationSeverity",
    "ValidationStatus",
    "create_sales_validator",
]
