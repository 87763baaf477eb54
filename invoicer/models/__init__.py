"""Models package - exports all SQLAlchemy models."""
from invoicer.models.app_user import AppUser, UserRole, normalize_user_role
from invoicer.models.product import Product
from invoicer.models.customer import Customer, CustomerType, normalize_customer_type
from invoicer.models.bill import Bill, PaymentMethod, normalize_payment_method
from invoicer.models.bill_item import BillItem
from invoicer.models.bill_draft import BillDraft
from invoicer.models.bill_draft_line import BillDraftLine
from invoicer.models.payment import Payment

__all__ = [
    'AppUser', 'UserRole', 'normalize_user_role',
    'Product',
    'Customer', 'CustomerType', 'normalize_customer_type',
    'Bill', 'PaymentMethod', 'normalize_payment_method', 'BillItem',
    'BillDraft', 'BillDraftLine',
    'Payment',
]
