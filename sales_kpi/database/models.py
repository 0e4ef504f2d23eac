"""
Database Models - Sales Fact Store

This module defines the storage model for the daily KPI pipeline:

Fact Tables:
- Sale: One row per retail transaction, append-only

Configuration Tables:
- KpiConfig: Named decimal business parameters (e.g. MarginRate)

The per-date and per-category aggregates are not tables; they are
recomputed on read by the query builders in sales_kpi.kpi.aggregates.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


# =============================================================================
# FACT TABLES
# =============================================================================

class Sale(Base):
    """
    Sales Fact Table

    Immutable transaction records written by bulk ingestion. Quantity, unit
    price and total amount are non-negative and the product category is
    required; the database enforces both.
    """
    __tablename__ = "sales"

    transaction_id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=False
    )
    txn_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Customer attributes (not used by KPI logic)
    customer_id: Mapped[Optional[str]] = mapped_column(String(50))
    gender: Mapped[Optional[str]] = mapped_column(String(20))
    age: Mapped[Optional[int]] = mapped_column(Integer)

    product_category: Mapped[str] = mapped_column(String(100), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price_per_unit: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_sales_quantity_non_negative"),
        CheckConstraint("price_per_unit >= 0", name="ck_sales_price_non_negative"),
        CheckConstraint("total_amount >= 0", name="ck_sales_total_non_negative"),
        CheckConstraint("length(product_category) > 0", name="ck_sales_category_not_empty"),
        Index("ix_sales_txn_date", "txn_date"),
        Index("ix_sales_product_category", "product_category"),
    )

    def __repr__(self) -> str:
        return (
            f"Sale(transaction_id={self.transaction_id}, txn_date={self.txn_date}, "
            f"category={self.product_category!r}, total_amount={self.total_amount})"
        )


# =============================================================================
# CONFIGURATION TABLES
# =============================================================================

class KpiConfig(Base):
    """
    KPI Configuration Table

    Key/value store of decimal business parameters. Written by setup and
    administrative updates only; the KPI summary reads it.
    """
    __tablename__ = "kpi_config"

    config_key: Mapped[str] = mapped_column(String(128), primary_key=True)
    config_value: Mapped[Decimal] = mapped_column(Numeric(10, 4), nullable=False)
