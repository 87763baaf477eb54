"""
Data service - default data, JSON snapshot export and import.

A snapshot is a JSON object with the keys products, customers, bills
(each bill carrying its items) and payments. Users are never exported.
"""
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional
import json
import logging

from sqlalchemy.orm import Session

from invoicer.models import (
    AppUser, UserRole, Product, Customer, Bill, BillItem, BillDraft, Payment,
    normalize_customer_type, normalize_payment_method
)

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1

DEFAULT_PRODUCTS = [
    {'item_code': 'KB001', 'name': 'Wireless Keyboard', 'stock': 50, 'retail_price': '45.00', 'wholesale_price': '35.00'},
    {'item_code': 'MS002', 'name': 'Ergonomic Mouse', 'stock': 75, 'retail_price': '30.00', 'wholesale_price': '22.00'},
    {'item_code': 'MN003', 'name': '27-inch 4K Monitor', 'stock': 20, 'retail_price': '350.00', 'wholesale_price': '300.00'},
    {'item_code': 'WC004', 'name': '1080p Webcam', 'stock': 40, 'retail_price': '60.00', 'wholesale_price': '48.00'},
    {'item_code': 'HS005', 'name': 'Noise-Cancelling Headphones', 'stock': 30, 'retail_price': '120.00', 'wholesale_price': '95.00'},
    {'item_code': 'LP006', 'name': 'Laptop Stand', 'stock': 100, 'retail_price': '25.00', 'wholesale_price': '18.00'},
]

DEFAULT_CUSTOMERS = [
    {'name': 'John Doe', 'type': 'Retail', 'credit_limit': '0.00', 'outstanding_balance': '0.00'},
    {'name': 'Tech Solutions Inc', 'type': 'Wholesale', 'credit_limit': '5000.00', 'outstanding_balance': '1250.50'},
    {'name': 'Jane Smith', 'type': 'Retail', 'credit_limit': '500.00', 'outstanding_balance': '75.20'},
    {'name': 'Gadget World', 'type': 'Wholesale', 'credit_limit': '10000.00', 'outstanding_balance': '0.00'},
]

DEFAULT_USERS = [
    {'username': 'admin', 'password': 'admin123', 'role': UserRole.ADMIN},
    {'username': 'staff', 'password': 'staff123', 'role': UserRole.STAFF},
]


def _parse_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _product_from_dict(data: Dict[str, Any]) -> Product:
    return Product(
        id=data.get('id'),
        item_code=data['item_code'],
        name=data['name'],
        stock=int(data.get('stock') or 0),
        retail_price=Decimal(str(data.get('retail_price') or 0)),
        wholesale_price=Decimal(str(data.get('wholesale_price') or 0)),
        description=data.get('description'),
    )


def _customer_from_dict(data: Dict[str, Any]) -> Customer:
    return Customer(
        id=data.get('id'),
        name=data['name'],
        customer_type=normalize_customer_type(data.get('type')),
        phone=data.get('phone'),
        credit_limit=Decimal(str(data.get('credit_limit') or 0)),
        outstanding_balance=Decimal(str(data.get('outstanding_balance') or 0)),
    )


def _bill_from_dict(data: Dict[str, Any]) -> Bill:
    bill = Bill(
        id=data.get('id'),
        bill_number=data['bill_number'],
        date=_parse_datetime(data['date']),
        customer_id=data['customer_id'],
        customer_name=data['customer_name'],
        customer_type=normalize_customer_type(data.get('customer_type')),
        sub_total=Decimal(str(data['sub_total'])),
        discount_percentage=Decimal(str(data.get('discount_percentage') or 0)),
        discount_amount=Decimal(str(data.get('discount_amount') or 0)),
        grand_total=Decimal(str(data['grand_total'])),
        payment_method=normalize_payment_method(data.get('payment_method')),
        amount_paid=Decimal(str(data['amount_paid'])),
        amount_due=Decimal(str(data['amount_due'])),
    )
    for position, item in enumerate(data.get('items') or [], start=1):
        bill.items.append(BillItem(
            position=position,
            product_id=item['product_id'],
            name=item['name'],
            quantity=int(item['quantity']),
            rate=Decimal(str(item['rate'])),
            total=Decimal(str(item['total'])),
        ))
    return bill


def _payment_from_dict(data: Dict[str, Any]) -> Payment:
    return Payment(
        id=data.get('id'),
        customer_id=data['customer_id'],
        bill_id=data.get('bill_id'),
        date=_parse_datetime(data['date']),
        amount=Decimal(str(data['amount'])),
    )


def seed_defaults(session: Session, include_users: bool = True) -> Dict[str, int]:
    """
    Load the default catalog, customers and users into empty tables.

    Tables that already hold rows are left alone. Bills and payments are
    never touched.

    Returns:
        Number of rows created per collection
    """
    created = {'products': 0, 'customers': 0, 'users': 0}

    if session.query(Product).count() == 0:
        for data in DEFAULT_PRODUCTS:
            session.add(_product_from_dict(data))
            created['products'] += 1

    if session.query(Customer).count() == 0:
        for data in DEFAULT_CUSTOMERS:
            session.add(_customer_from_dict(data))
            created['customers'] += 1

    if include_users and session.query(AppUser).count() == 0:
        for data in DEFAULT_USERS:
            user = AppUser(username=data['username'], role=data['role'])
            user.set_password(data['password'])
            session.add(user)
            created['users'] += 1

    try:
        session.commit()
    except Exception:
        session.rollback()
        logger.exception("Error seeding default data")
        raise

    logger.info(f"Default data seeded: {created}")
    return created


def export_data(session: Session) -> Dict[str, Any]:
    """Snapshot every business collection as JSON-ready dicts."""
    products = session.query(Product).order_by(Product.id).all()
    customers = session.query(Customer).order_by(Customer.id).all()
    bills = session.query(Bill).order_by(Bill.id).all()
    payments = session.query(Payment).order_by(Payment.id).all()

    return {
        'version': SNAPSHOT_VERSION,
        'exported_at': datetime.now().isoformat(),
        'products': [p.to_dict() for p in products],
        'customers': [c.to_dict() for c in customers],
        'bills': [b.to_dict() for b in bills],
        'payments': [p.to_dict() for p in payments],
    }


def export_to_file(session: Session, path: str) -> Dict[str, int]:
    """Write a snapshot to path. Returns the number of rows per collection."""
    snapshot = export_data(session)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(snapshot, f, indent=2)

    counts = {key: len(snapshot[key]) for key in ('products', 'customers', 'bills', 'payments')}
    logger.info(f"Data exported to {path}: {counts}")
    return counts


def load_snapshot(session: Session, snapshot: Dict[str, Any]) -> Dict[str, int]:
    """
    Replace products, customers, bills and payments with a snapshot.

    Open drafts are discarded. Users are kept. Everything is written in one
    transaction.
    """
    if not isinstance(snapshot, dict):
        raise ValueError('Snapshot must be a JSON object')

    try:
        session.query(BillDraft).delete(synchronize_session='fetch')
        session.query(Payment).delete(synchronize_session='fetch')
        session.query(BillItem).delete(synchronize_session='fetch')
        session.query(Bill).delete(synchronize_session='fetch')
        session.query(Customer).delete(synchronize_session='fetch')
        session.query(Product).delete(synchronize_session='fetch')
        session.flush()

        for data in snapshot.get('products') or []:
            session.add(_product_from_dict(data))
        for data in snapshot.get('customers') or []:
            session.add(_customer_from_dict(data))
        session.flush()
        for data in snapshot.get('bills') or []:
            session.add(_bill_from_dict(data))
        session.flush()
        for data in snapshot.get('payments') or []:
            session.add(_payment_from_dict(data))

        session.commit()
    except Exception:
        session.rollback()
        raise

    return {key: len(snapshot.get(key) or []) for key in ('products', 'customers', 'bills', 'payments')}


def import_from_file(session: Session, path: Optional[str]) -> Dict[str, int]:
    """
    Load a snapshot file, falling back to the default catalog and customers.

    A missing, unreadable or corrupt file is not an error: it is logged as a
    warning and the defaults are seeded into empty tables only, so existing
    bills and payments survive a bad path.
    """
    try:
        with open(path, encoding='utf-8') as f:
            snapshot = json.load(f)
        counts = load_snapshot(session, snapshot)
    except (OSError, TypeError, ValueError, KeyError, InvalidOperation) as e:
        logger.warning(f"Could not load data from {path} ({e}); seeding default data into empty tables")
        return seed_defaults(session, include_users=False)

    logger.info(f"Data imported: {counts}")
    return counts
