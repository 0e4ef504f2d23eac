"""
Test data builders
"""
from datetime import date
from decimal import Decimal
from itertools import count
from typing import Optional

from sales_kpi.database.models import Sale

EXAMPLE_DAY = date(2023, 12, 29)

_ids = count(1)


def make_sale(
    txn_date: date,
    category: str,
    total_amount: str,
    quantity: int = 1,
    transaction_id: Optional[int] = None,
) -> Sale:
    """Build a Sale row; unit price is derived from the total"""
    total = Decimal(total_amount)
    return Sale(
        transaction_id=transaction_id if transaction_id is not None else next(_ids),
        txn_date=txn_date,
        customer_id="CUST001",
        gender="Female",
        age=30,
        product_category=category,
        quantity=quantity,
        price_per_unit=(total / quantity).quantize(Decimal("0.01")) if quantity else Decimal("0.00"),
        total_amount=total,
    )
