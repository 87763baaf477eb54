"""Bill Draft Service - Persistent cart operations and bill arithmetic."""

from decimal import Decimal, ROUND_HALF_UP
from datetime import datetime
from typing import Any, Dict, Iterable, Optional
from sqlalchemy.orm import Session
from invoicer.models import BillDraft, BillDraftLine, Product, Customer
from invoicer.exceptions import (
    BusinessLogicError, NotFoundError, InsufficientStockError, InvalidBillRequestError
)

CENT = Decimal('0.01')


def line_total(rate, quantity) -> Decimal:
    """Total of a single line: rate x quantity, in cents."""
    return (Decimal(str(rate)) * int(quantity)).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_totals(lines: Iterable[Any], discount_percentage) -> Dict[str, Decimal]:
    """
    Pure bill arithmetic over lines exposing .rate and .quantity.

    subTotal is the sum of line totals, discountAmount is
    subTotal * discount / 100 rounded to cents and grandTotal is the difference.
    """
    discount_percentage = Decimal(str(discount_percentage or 0))
    sub_total = sum((line_total(line.rate, line.quantity) for line in lines), Decimal('0.00'))
    discount_amount = (sub_total * discount_percentage / Decimal('100')).quantize(CENT, rounding=ROUND_HALF_UP)

    return {
        'sub_total': sub_total.quantize(CENT),
        'discount_amount': discount_amount,
        'grand_total': (sub_total - discount_amount).quantize(CENT),
    }


def get_or_create_draft(session: Session, user_id: int) -> BillDraft:
    """
    Get existing draft or create new one for user.
    One draft per user.
    """
    draft = session.query(BillDraft).filter(BillDraft.user_id == user_id).first()

    if not draft:
        draft = BillDraft(user_id=user_id)
        session.add(draft)
        session.flush()

    return draft


def select_customer(session: Session, draft: BillDraft, customer_id: Optional[int]) -> BillDraft:
    """
    Attach a customer to the draft (None clears the selection).

    Rates of lines already in the cart stay as they were priced.
    """
    if customer_id is None:
        draft.customer = None
    else:
        customer = session.query(Customer).filter(Customer.id == customer_id).first()
        if not customer:
            raise NotFoundError('Customer not found.')
        draft.customer = customer

    draft.updated_at = datetime.now()
    session.flush()
    return draft


def add_line(session: Session, draft: BillDraft, product_id: int, quantity: int = 1) -> BillDraftLine:
    """
    Add product to draft or increase its quantity if it is already there.

    The rate follows the selected customer's type and is frozen from now on.
    """
    if draft.customer is None:
        raise InvalidBillRequestError('Please select a customer before adding items.')

    if quantity < 1:
        raise BusinessLogicError('Quantity must be at least 1.')

    product = session.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError('Product not found.')

    line = draft.find_line(product.id)

    if line:
        new_quantity = line.quantity + quantity
        if new_quantity > product.stock:
            raise InsufficientStockError(product.name, new_quantity, product.stock)
        line.quantity = new_quantity
    else:
        if quantity > product.stock:
            raise InsufficientStockError(product.name, quantity, product.stock)
        line = BillDraftLine(
            product_id=product.id,
            name=product.name,
            quantity=quantity,
            rate=product.price_for(draft.customer.customer_type),
        )
        draft.lines.append(line)

    draft.updated_at = datetime.now()
    session.flush()
    return line


def set_quantity(session: Session, draft: BillDraft, product_id: int, quantity: int) -> BillDraftLine:
    """Set the quantity of a line already in the draft."""
    line = draft.find_line(product_id)
    if not line:
        raise NotFoundError('The product is not in the bill.')

    if quantity < 1:
        raise BusinessLogicError('Quantity must be at least 1.')

    product = session.query(Product).filter(Product.id == product_id).first()
    available = product.stock if product else 0
    if quantity > available:
        raise InsufficientStockError(line.name, quantity, available)

    line.quantity = quantity
    draft.updated_at = datetime.now()
    session.flush()
    return line


def remove_line(session: Session, draft: BillDraft, product_id: int) -> None:
    """Remove line from draft."""
    line = draft.find_line(product_id)
    if line:
        draft.lines.remove(line)
        draft.updated_at = datetime.now()
        session.flush()


def clear_draft(session: Session, draft: BillDraft) -> None:
    """Clear all lines and the customer selection."""
    draft.lines.clear()
    draft.customer = None
    draft.updated_at = datetime.now()
    session.flush()


def draft_to_dict(draft: BillDraft) -> Dict[str, Any]:
    """Serialize the draft with its totals (no discount applied)."""
    totals = compute_totals(draft.lines, 0)
    return {
        'id': draft.id,
        'customer': draft.customer.to_dict() if draft.customer else None,
        'lines': [line.to_dict() for line in draft.lines],
        'sub_total': f"{totals['sub_total']:.2f}",
    }
