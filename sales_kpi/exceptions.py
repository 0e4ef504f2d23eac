"""
Domain Exceptions

All service-specific errors inherit from SalesKpiError. Database and IO
failures are not wrapped and propagate as raised by SQLAlchemy / polars.
"""


class SalesKpiError(Exception):
    """Base exception for the Daily Sales KPI service"""
    pass


class MissingConfigError(SalesKpiError, LookupError):
    """
    Raised when a required Config Store parameter is absent.

    Only raised when strict margin handling is enabled; by default a missing
    margin rate degrades to a zero estimated margin.
    """

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Config parameter '{key}' is not set")


class IngestionError(SalesKpiError):
    """Raised when a sales file cannot be read or does not have the expected layout"""
    pass
