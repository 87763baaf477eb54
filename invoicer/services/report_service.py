"""
Report service - sales and receivables reporting.

Every function here is a pure projection over already-loaded bills and
customers: no state, no side effects, recomputed on every call.
"""
from collections import OrderedDict
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional
import json
import logging

from invoicer.models import Bill, Customer, CustomerType
from invoicer.utils.formatters import month_label

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')

# (label, inclusive upper bound in days); None means open-ended
AGING_BUCKETS = (
    ('0-30', 30),
    ('31-60', 60),
    ('61-90', 90),
    ('90+', None),
)


def get_sales_totals(bills: Iterable[Bill]) -> Dict[str, Decimal]:
    """
    Sum grand totals, split by the customer type snapshot on each bill.

    Returns:
        Dict with keys: total_sales, retail_sales, wholesale_sales
    """
    total_sales = ZERO
    retail_sales = ZERO
    wholesale_sales = ZERO

    for bill in bills:
        total_sales += bill.grand_total
        if bill.customer_type == CustomerType.RETAIL:
            retail_sales += bill.grand_total
        elif bill.customer_type == CustomerType.WHOLESALE:
            wholesale_sales += bill.grand_total

    return {
        'total_sales': total_sales,
        'retail_sales': retail_sales,
        'wholesale_sales': wholesale_sales,
    }


def get_total_outstanding(customers: Iterable[Customer]) -> Decimal:
    """Current ledger state: sum of every customer's outstanding balance."""
    return sum((customer.outstanding_balance or ZERO for customer in customers), ZERO)


def get_sales_by_type(bills: Iterable[Bill]) -> List[Dict[str, Any]]:
    """Retail vs wholesale sales, for the pie chart."""
    totals = get_sales_totals(bills)
    return [
        {'name': CustomerType.RETAIL.value, 'value': totals['retail_sales']},
        {'name': CustomerType.WHOLESALE.value, 'value': totals['wholesale_sales']},
    ]


def get_monthly_sales(bills: Iterable[Bill]) -> List[Dict[str, Any]]:
    """
    Group bills by (year, month) of their date and sum grand totals.

    Returns:
        List of dicts ordered chronologically with keys:
        - period: "YYYY-MM"
        - period_label: "Oct 26"
        - sales: Decimal
    """
    grouped = {}
    for bill in bills:
        key = (bill.date.year, bill.date.month)
        grouped[key] = grouped.get(key, ZERO) + bill.grand_total

    return [
        {
            'period': f"{year:04d}-{month:02d}",
            'period_label': month_label(year, month),
            'sales': sales,
        }
        for (year, month), sales in sorted(grouped.items())
    ]


def bill_age_days(bill: Bill, now: datetime) -> float:
    """Age of a bill in fractional days since its date."""
    return (now - bill.date).total_seconds() / 86400


def get_aging_buckets(bills: Iterable[Bill], now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """
    Aged receivables: unpaid amounts bucketed by days since the bill date.

    Ages by bill date at query time, so a bill moves to older buckets as
    time passes. All four buckets are always present, in order.
    """
    now = now or datetime.now()
    bands = OrderedDict((label, ZERO) for label, _ in AGING_BUCKETS)

    for bill in bills:
        if bill.amount_due <= 0:
            continue
        age = bill_age_days(bill, now)
        for label, upper in AGING_BUCKETS:
            if upper is None or age <= upper:
                bands[label] += bill.amount_due
                break

    return [{'name': label, 'value': value} for label, value in bands.items()]


def build_sales_summary(bills: Iterable[Bill]) -> str:
    """Serialize bills as the compact JSON text sent to the insights model."""
    summary = [
        {
            'date': bill.date.isoformat(),
            'total': float(bill.grand_total),
            'type': bill.customer_type.value,
            'items': ', '.join(f"{item.name} (x{item.quantity})" for item in bill.items),
        }
        for bill in bills
    ]
    return json.dumps(summary)


def get_report_data(session, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Load bills and customers and build every report.

    Returns:
        Dict with keys: totals, total_outstanding, sales_by_type,
        monthly_sales, aging, bill_count
    """
    bills = session.query(Bill).order_by(Bill.date.asc(), Bill.id.asc()).all()
    customers = session.query(Customer).all()

    return {
        'totals': get_sales_totals(bills),
        'total_outstanding': get_total_outstanding(customers),
        'sales_by_type': get_sales_by_type(bills),
        'monthly_sales': get_monthly_sales(bills),
        'aging': get_aging_buckets(bills, now),
        'bill_count': len(bills),
    }


def generate_sales_insights(session) -> str:
    """Send the sales summary to the AI collaborator (fallback text on failure)."""
    from invoicer.services.ai_service import get_sales_insights

    bills = session.query(Bill).order_by(Bill.date.asc(), Bill.id.asc()).all()
    logger.info(f"Requesting sales insights for {len(bills)} bills")
    return get_sales_insights(build_sales_summary(bills))
