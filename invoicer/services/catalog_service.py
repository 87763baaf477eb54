"""Catalog service - product master records and stock."""
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import or_, func
from sqlalchemy.orm import Session

from invoicer.models import Product, BillDraftLine
from invoicer.exceptions import BusinessLogicError, NotFoundError
from invoicer.utils.number_format import parse_decimal, parse_quantity, to_money

logger = logging.getLogger(__name__)

PICKER_LIMIT = 5


def get_product_data(data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """
    Extract and validate product fields from a request payload.

    With partial=True only the keys present in data are returned (PUT with a
    subset of fields).
    """
    product_data = {}

    if not partial or 'item_code' in data:
        item_code = str(data.get('item_code') or '').strip()
        if not item_code:
            raise BusinessLogicError('Item Code and Name are required.')
        product_data['item_code'] = item_code

    if not partial or 'name' in data:
        name = str(data.get('name') or '').strip()
        if not name:
            raise BusinessLogicError('Item Code and Name are required.')
        product_data['name'] = name

    try:
        if not partial or 'stock' in data:
            product_data['stock'] = parse_quantity(data.get('stock'), 'stock', default=0)
        for field in ('retail_price', 'wholesale_price'):
            if not partial or field in data:
                product_data[field] = to_money(parse_decimal(data.get(field), field, default=0))
    except ValueError as e:
        raise BusinessLogicError(str(e))

    if product_data.get('stock', 0) < 0:
        raise BusinessLogicError('Stock cannot be negative.')
    for field in ('retail_price', 'wholesale_price'):
        if product_data.get(field, 0) < 0:
            raise BusinessLogicError('Prices cannot be negative.')

    if not partial or 'description' in data:
        product_data['description'] = str(data.get('description') or '').strip() or None

    return product_data


def _validate_item_code(session: Session, item_code: str, exclude_id: Optional[int] = None) -> Optional[str]:
    """Centralized item code validation (unique, case-insensitive)."""
    query = session.query(Product).filter(func.lower(Product.item_code) == item_code.lower())
    if exclude_id:
        query = query.filter(Product.id != exclude_id)

    if query.first():
        return f"A product with item code '{item_code}' already exists"
    return None


def list_products(session: Session, q: Optional[str] = None) -> List[Product]:
    """List products, optionally filtered by name or item code."""
    query = session.query(Product)
    if q:
        pattern = f'%{q.strip().lower()}%'
        query = query.filter(or_(
            func.lower(Product.name).like(pattern),
            func.lower(Product.item_code).like(pattern)
        ))
    return query.order_by(Product.name).all()


def search_products(session: Session, q: str, limit: int = PICKER_LIMIT) -> List[Product]:
    """Product picker for the billing screen: empty query returns nothing."""
    if not q or not q.strip():
        return []
    pattern = f'%{q.strip()[:100].lower()}%'
    return (session.query(Product)
            .filter(or_(
                func.lower(Product.name).like(pattern),
                func.lower(Product.item_code).like(pattern)
            ))
            .order_by(Product.id)
            .limit(limit)
            .all())


def get_product(session: Session, product_id: int) -> Product:
    product = session.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError('Product not found.')
    return product


def create_product(session: Session, data: Dict[str, Any]) -> Product:
    """Create a product."""
    product_data = get_product_data(data)

    error = _validate_item_code(session, product_data['item_code'])
    if error:
        raise BusinessLogicError(error)

    try:
        product = Product(**product_data)
        session.add(product)
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"Error creating product: {e}")
        raise BusinessLogicError(f'Error creating product: {str(e)}')

    logger.info(f"Product {product.item_code} created")
    return product


def update_product(session: Session, product_id: int, data: Dict[str, Any]) -> Product:
    """
    Update a product.

    Rates already captured by open drafts and finalized bills are snapshots
    and do not follow price changes.
    """
    product = get_product(session, product_id)
    product_data = get_product_data(data, partial=True)

    if 'item_code' in product_data:
        error = _validate_item_code(session, product_data['item_code'], exclude_id=product.id)
        if error:
            raise BusinessLogicError(error)

    try:
        for key, value in product_data.items():
            setattr(product, key, value)
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"Error updating product {product_id}: {e}")
        raise BusinessLogicError(f'Error updating product: {str(e)}')

    return product


def delete_product(session: Session, product_id: int) -> None:
    """
    Delete a product.

    Historical bills keep their item snapshots; open carts lose the line.
    """
    product = get_product(session, product_id)
    item_code = product.item_code

    try:
        session.query(BillDraftLine).filter(BillDraftLine.product_id == product.id).delete(
            synchronize_session='fetch'
        )
        session.delete(product)
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"Error deleting product {product_id}: {e}")
        raise BusinessLogicError(f'Error deleting product: {str(e)}')

    logger.info(f"Product {item_code} deleted")


def decrement_stock(product: Product, quantity: int) -> None:
    """Stock out for a finalized bill line. Caller owns the transaction."""
    if quantity > product.stock:
        # Guarded by the per-line checks; the database check constraint is the backstop
        logger.error(f"Stock for {product.item_code} would go negative ({product.stock} - {quantity})")
    product.stock = product.stock - quantity


def generate_description(product_name: str) -> str:
    """Ask the AI collaborator for a catalog description."""
    if not product_name or not product_name.strip():
        raise BusinessLogicError('Please enter a product name first.')

    from invoicer.services.ai_service import generate_product_description
    return generate_product_description(product_name.strip())
