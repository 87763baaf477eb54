"""Customer service - customer master records, credit balances and payments."""
from decimal import Decimal
from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import or_, func
from sqlalchemy.orm import Session

from invoicer.models import Customer, Bill, Payment, normalize_customer_type
from invoicer.exceptions import InvoicerError, BusinessLogicError, NotFoundError
from invoicer.utils.number_format import parse_decimal, to_money

logger = logging.getLogger(__name__)


def get_customer_data(data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """
    Extract and sanitize customer fields from a request payload.

    The outstanding balance is never part of this: it only moves through
    bills and payments.
    """
    customer_data = {}

    if not partial or 'name' in data:
        name = str(data.get('name') or '').strip()
        if not name:
            raise BusinessLogicError('Customer Name is required.')
        customer_data['name'] = name

    try:
        if not partial or 'type' in data:
            customer_data['customer_type'] = normalize_customer_type(data.get('type'))
        if not partial or 'credit_limit' in data:
            customer_data['credit_limit'] = to_money(parse_decimal(data.get('credit_limit'), 'credit_limit', default=0))
    except ValueError as e:
        raise BusinessLogicError(str(e))

    if customer_data.get('credit_limit', 0) < 0:
        raise BusinessLogicError('Credit limit cannot be negative.')

    if not partial or 'phone' in data:
        customer_data['phone'] = str(data.get('phone') or '').strip() or None

    return customer_data


def list_customers(session: Session, q: Optional[str] = None) -> List[Customer]:
    """List customers, optionally filtered by name or phone."""
    query = session.query(Customer)
    if q:
        pattern = f'%{q.strip().lower()}%'
        query = query.filter(or_(
            func.lower(Customer.name).like(pattern),
            func.lower(Customer.phone).like(pattern)
        ))
    return query.order_by(Customer.name).all()


def get_customer(session: Session, customer_id: int) -> Customer:
    customer = session.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise NotFoundError('Customer not found.')
    return customer


def create_customer(session: Session, data: Dict[str, Any]) -> Customer:
    """Create a customer, optionally carrying an opening balance."""
    customer_data = get_customer_data(data)

    try:
        opening_balance = to_money(parse_decimal(data.get('outstanding_balance'), 'outstanding_balance', default=0))
    except ValueError as e:
        raise BusinessLogicError(str(e))
    if opening_balance < 0:
        raise BusinessLogicError('Opening balance cannot be negative.')

    try:
        customer = Customer(outstanding_balance=opening_balance, **customer_data)
        session.add(customer)
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"Error creating customer: {e}")
        raise BusinessLogicError(f'Error creating customer: {str(e)}')

    logger.info(f"Customer {customer.id} ({customer.name}) created")
    return customer


def update_customer(session: Session, customer_id: int, data: Dict[str, Any]) -> Customer:
    """Update name, type, phone or credit limit."""
    customer = get_customer(session, customer_id)
    customer_data = get_customer_data(data, partial=True)

    try:
        for key, value in customer_data.items():
            setattr(customer, key, value)
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"Error updating customer {customer_id}: {e}")
        raise BusinessLogicError(f'Error updating customer: {str(e)}')

    return customer


def raise_balance(customer: Customer, amount_due: Decimal) -> None:
    """Add the unpaid part of a bill to the balance. Caller owns the transaction."""
    customer.outstanding_balance = (customer.outstanding_balance or Decimal('0')) + amount_due


def record_payment(
    session: Session,
    customer_id: int,
    amount,
    bill_id: Optional[int] = None,
    now: Optional[datetime] = None
) -> Payment:
    """
    Record a payment and lower the customer's outstanding balance by exactly amount.

    Overpayment is not rejected here; the HTTP layer clamps the amount to the
    current balance before calling.
    """
    try:
        amount = to_money(parse_decimal(amount, 'amount'))
    except ValueError as e:
        raise BusinessLogicError(str(e))

    if amount <= 0:
        raise BusinessLogicError('Payment amount must be greater than 0.')

    customer = get_customer(session, customer_id)

    if bill_id is not None:
        bill = session.query(Bill).filter(Bill.id == bill_id).first()
        if not bill:
            raise NotFoundError('Bill not found.')
        if bill.customer_id != customer.id:
            raise BusinessLogicError('The bill does not belong to this customer.')

    try:
        payment = Payment(
            customer_id=customer.id,
            bill_id=bill_id,
            date=now or datetime.now(),
            amount=amount
        )
        session.add(payment)
        customer.outstanding_balance = (customer.outstanding_balance or Decimal('0')) - amount
        session.commit()
    except Exception as e:
        session.rollback()
        logger.exception(f"Error recording payment for customer {customer_id}")
        raise InvoicerError(f'Error recording payment: {str(e)}') from e

    if customer.outstanding_balance < 0:
        logger.warning(f"Customer {customer.id} overpaid: balance is now {customer.outstanding_balance}")
    logger.info(f"Payment {payment.id} of {amount} recorded for customer {customer.id}")
    _record_payment_metric()

    return payment


def get_customer_history(session: Session, customer_id: int) -> Dict[str, Any]:
    """Bills and payments of a customer, oldest first."""
    customer = get_customer(session, customer_id)

    bills = session.query(Bill).filter(Bill.customer_id == customer.id).order_by(Bill.date.asc(), Bill.id.asc()).all()
    payments = (session.query(Payment)
                .filter(Payment.customer_id == customer.id)
                .order_by(Payment.date.asc(), Payment.id.asc())
                .all())

    return {
        'customer': customer,
        'bills': bills,
        'payments': payments,
    }


def _record_payment_metric():
    try:
        from invoicer.blueprints.metrics import payments_recorded_total
        payments_recorded_total.inc()
    except Exception as e:
        logger.debug(f"Could not record payment metric: {e}")
