"""
Billing service with transactional logic.
Turns a draft into a finalized bill and applies its stock and credit side effects.
"""
from decimal import Decimal, ROUND_HALF_UP
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple
import logging

from sqlalchemy.orm import Session

from invoicer.models import (
    Bill, BillItem, BillDraft, Product, Customer, PaymentMethod, normalize_payment_method
)
from invoicer.exceptions import (
    InvoicerError, InvalidBillRequestError, InsufficientStockError, CreditLimitExceededError, NotFoundError
)
from invoicer.services.bill_draft_service import compute_totals, line_total
from invoicer.services.catalog_service import decrement_stock
from invoicer.services.customer_service import raise_balance
from invoicer.utils.number_format import parse_decimal, to_money

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')
DEFAULT_BILL_NUMBER_PREFIX = 'INV'
DEFAULT_MAX_DISCOUNT = Decimal('100')


def _config_value(key: str, default):
    """Read a config value when running inside an app context."""
    try:
        from flask import current_app
        return current_app.config.get(key, default)
    except RuntimeError:
        return default


def validate_discount(discount_percentage) -> Decimal:
    """
    Parse the discount percentage and keep it within [0, MAX_DISCOUNT_PERCENTAGE].

    Rounded to the two decimals the bill stores, so the discount amount is
    computed from the same percentage that is saved.
    """
    try:
        discount = parse_decimal(discount_percentage, 'discount_percentage', default=0)
    except ValueError as e:
        raise InvalidBillRequestError(str(e))
    discount = discount.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)

    max_discount = Decimal(str(_config_value('MAX_DISCOUNT_PERCENTAGE', DEFAULT_MAX_DISCOUNT)))
    if discount < 0 or discount > max_discount:
        raise InvalidBillRequestError(f'Discount must be between 0 and {max_discount}%.')
    return discount


def parse_payment_method(payment_method) -> PaymentMethod:
    try:
        return normalize_payment_method(payment_method)
    except ValueError as e:
        raise InvalidBillRequestError(str(e))


def derive_payment_split(grand_total: Decimal, payment_method, amount_paid=None) -> Tuple[Decimal, Decimal]:
    """
    Split the grand total into (amount_paid, amount_due).

    Cash always settles the full grand total, whatever was typed in.
    Credit takes the amount paid as given (0 allowed); paying more than the
    grand total is rejected instead of producing a negative amount due.
    """
    method = parse_payment_method(payment_method)
    grand_total = to_money(grand_total)

    if method == PaymentMethod.CASH:
        return grand_total, ZERO

    try:
        paid = to_money(parse_decimal(amount_paid, 'amount_paid', default=0))
    except ValueError as e:
        raise InvalidBillRequestError(str(e))

    if paid < 0:
        raise InvalidBillRequestError('Amount paid cannot be negative.')
    if paid > grand_total:
        raise InvalidBillRequestError('Amount paid cannot exceed the grand total.')

    return paid, grand_total - paid


def exceeds_credit_limit(customer: Customer, amount_due: Decimal) -> bool:
    """True when adding amount_due would push the balance past the credit limit."""
    if amount_due <= 0:
        return False
    return (customer.outstanding_balance or ZERO) + amount_due > (customer.credit_limit or ZERO)


def check_credit_limit(customer: Customer, amount_due: Decimal, override: bool = False) -> bool:
    """
    Enforce the soft credit limit.

    Returns True when the limit was exceeded and the caller overrode it.

    Raises:
        CreditLimitExceededError: limit exceeded and no override given
    """
    if not exceeds_credit_limit(customer, amount_due):
        return False

    if not override:
        raise CreditLimitExceededError(
            customer.name,
            customer.outstanding_balance or ZERO,
            amount_due,
            customer.credit_limit or ZERO,
        )
    return True


def generate_bill_number(session: Session, now: Optional[datetime] = None) -> str:
    """
    Generate a unique bill number: <prefix>-<YYYYMMDD>-<NNNNN>.

    NNNNN counts the bills already issued that day, so numbers grow with the
    append-only history instead of depending on clock resolution.
    """
    now = now or datetime.now()
    prefix = _config_value('BILL_NUMBER_PREFIX', DEFAULT_BILL_NUMBER_PREFIX)
    day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    day_end = day_start + timedelta(days=1)

    sequence = session.query(Bill).filter(Bill.date >= day_start, Bill.date < day_end).count() + 1
    bill_number = f"{prefix}-{now.strftime('%Y%m%d')}-{str(sequence).zfill(5)}"

    # Imported snapshots may already hold the next number
    while session.query(Bill.id).filter(Bill.bill_number == bill_number).first():
        sequence += 1
        bill_number = f"{prefix}-{now.strftime('%Y%m%d')}-{str(sequence).zfill(5)}"

    return bill_number


def _require_billable(draft: BillDraft) -> Customer:
    if draft is None or draft.customer is None or not draft.lines:
        raise InvalidBillRequestError('Please select a customer and add items to the bill.')
    return draft.customer


def preview_bill(
    draft: BillDraft,
    discount_percentage=0,
    payment_method=PaymentMethod.CASH,
    amount_paid=None
) -> Dict[str, Any]:
    """Compute the bill the draft would produce, without touching any state."""
    customer = _require_billable(draft)
    discount = validate_discount(discount_percentage)

    totals = compute_totals(draft.lines, discount)
    method = parse_payment_method(payment_method)
    paid, due = derive_payment_split(totals['grand_total'], method, amount_paid)

    return {
        'customer': customer.to_dict(),
        'lines': [line.to_dict() for line in draft.lines],
        'sub_total': f"{totals['sub_total']:.2f}",
        'discount_percentage': f"{discount:.2f}",
        'discount_amount': f"{totals['discount_amount']:.2f}",
        'grand_total': f"{totals['grand_total']:.2f}",
        'payment_method': method.value,
        'amount_paid': f"{paid:.2f}",
        'amount_due': f"{due:.2f}",
        'projected_balance': f"{(customer.outstanding_balance or ZERO) + due:.2f}",
        'exceeds_credit_limit': exceeds_credit_limit(customer, due),
    }


def finalize_bill(
    session: Session,
    draft: BillDraft,
    discount_percentage=0,
    payment_method=PaymentMethod.CASH,
    amount_paid=None,
    override_credit_limit: bool = False,
    issued_by_id: Optional[int] = None,
    now: Optional[datetime] = None
) -> Bill:
    """
    Finalize the draft into a Bill with full transactional processing.

    Appending the bill, decrementing stock and raising the customer's balance
    are committed together or not at all. The draft is emptied on success.
    """
    try:
        customer = _require_billable(draft)
        discount = validate_discount(discount_percentage)
        method = parse_payment_method(payment_method)

        # 1. Lock products and re-validate stock
        product_ids = [line.product_id for line in draft.lines]
        products = {
            p.id: p for p in session.query(Product)
            .filter(Product.id.in_(product_ids))
            .with_for_update()
            .all()
        }

        for line in draft.lines:
            product = products.get(line.product_id)
            available = product.stock if product else 0
            if line.quantity > available:
                raise InsufficientStockError(line.name, line.quantity, available)

        # 2. Totals, payment split and credit policy
        totals = compute_totals(draft.lines, discount)
        paid, due = derive_payment_split(totals['grand_total'], method, amount_paid)
        overridden = check_credit_limit(customer, due, override_credit_limit)

        # 3. Build the bill with snapshots
        now = now or datetime.now()
        bill = Bill(
            bill_number=generate_bill_number(session, now),
            date=now,
            customer=customer,
            customer_name=customer.name,
            customer_type=customer.customer_type,
            sub_total=totals['sub_total'],
            discount_percentage=discount,
            discount_amount=totals['discount_amount'],
            grand_total=totals['grand_total'],
            payment_method=method,
            amount_paid=paid,
            amount_due=due,
            issued_by_id=issued_by_id
        )

        for position, line in enumerate(draft.lines, start=1):
            bill.items.append(BillItem(
                position=position,
                product_id=line.product_id,
                name=line.name,
                quantity=line.quantity,
                rate=line.rate,
                total=line_total(line.rate, line.quantity)
            ))
            # 4. Stock out
            decrement_stock(products[line.product_id], line.quantity)

        # 5. Credit
        if due > 0:
            raise_balance(customer, due)

        session.add(bill)

        # 6. Clean up
        draft.lines.clear()
        draft.customer = None
        session.commit()

    except InvoicerError:
        session.rollback()
        raise
    except Exception as e:
        session.rollback()
        logger.exception("Unexpected error finalizing bill")
        raise InvoicerError(f'Error finalizing bill: {str(e)}') from e

    if overridden:
        logger.warning(
            f"Credit limit overridden for customer {customer.id}: "
            f"balance {customer.outstanding_balance} > limit {customer.credit_limit} (bill {bill.bill_number})"
        )
    logger.info(f"Bill {bill.bill_number} finalized: total={bill.grand_total} due={bill.amount_due} method={method.value}")
    _record_bill_metrics(method, overridden)

    return bill


def list_bills(session: Session, customer_id: Optional[int] = None) -> List[Bill]:
    """Bill history, oldest first."""
    query = session.query(Bill)
    if customer_id is not None:
        query = query.filter(Bill.customer_id == customer_id)
    return query.order_by(Bill.date.asc(), Bill.id.asc()).all()


def get_bill(session: Session, bill_id: int) -> Bill:
    bill = session.query(Bill).filter(Bill.id == bill_id).first()
    if not bill:
        raise NotFoundError('Bill not found.')
    return bill


def _record_bill_metrics(method: PaymentMethod, overridden: bool):
    """Gracefully attempt to record billing metrics."""
    try:
        from invoicer.blueprints.metrics import bills_finalized_total, credit_limit_overrides_total
        bills_finalized_total.labels(payment_method=method.value).inc()
        if overridden:
            credit_limit_overrides_total.inc()
    except Exception as e:
        logger.debug(f"Could not record billing metrics: {e}")
