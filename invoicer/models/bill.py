"""Bill model."""
from sqlalchemy import Column, BigInteger, Integer, String, Numeric, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from invoicer.database import Base
from invoicer.models.customer import CustomerType
from invoicer.utils.formatters import money_str, iso_datetime
import enum


class PaymentMethod(enum.Enum):
    """Payment method enum."""
    CASH = "Cash"
    CREDIT = "Credit"


def normalize_payment_method(value) -> PaymentMethod:
    """
    Normalize payment method value coming from a request.

    Args:
        value: Can be None, PaymentMethod enum, or string ("Cash", "CREDIT", ...)

    Returns:
        PaymentMethod (None defaults to CASH)

    Raises:
        ValueError: If value is invalid
    """
    if value is None:
        return PaymentMethod.CASH

    if isinstance(value, PaymentMethod):
        return value

    normalized = str(value).strip().upper()
    for member in PaymentMethod:
        if normalized in (member.name, member.value.upper()):
            return member

    raise ValueError(f"Invalid payment method: {value}. Must be 'Cash' or 'Credit'.")


class Bill(Base):
    """
    Bill (finalized invoice).

    Append-only: written once by the billing service and never updated.
    Customer name and type are snapshots taken at finalization time.
    """

    __tablename__ = 'bill'

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    bill_number = Column(String(40), nullable=False, unique=True, index=True)
    date = Column(DateTime, nullable=False, index=True)
    customer_id = Column(BigInteger().with_variant(Integer, 'sqlite'), ForeignKey('customer.id'), nullable=False, index=True)
    customer_name = Column(String(200), nullable=False)
    customer_type = Column(Enum(CustomerType, name='customer_type'), nullable=False)
    sub_total = Column(Numeric(12, 2), nullable=False)
    discount_percentage = Column(Numeric(5, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    grand_total = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(Enum(PaymentMethod, name='payment_method'), nullable=False)
    amount_paid = Column(Numeric(12, 2), nullable=False)
    amount_due = Column(Numeric(12, 2), nullable=False)
    issued_by_id = Column(BigInteger().with_variant(Integer, 'sqlite'), ForeignKey('app_user.id'), nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    # Relationships
    customer = relationship('Customer', back_populates='bills')
    issued_by = relationship('AppUser')
    items = relationship('BillItem', back_populates='bill', order_by='BillItem.position',
                         cascade='all, delete-orphan')
    payments = relationship('Payment', back_populates='bill')

    def __repr__(self):
        return f"<Bill(id={self.id}, bill_number='{self.bill_number}', grand_total={self.grand_total})>"

    @property
    def is_retail(self):
        return self.customer_type == CustomerType.RETAIL

    def to_dict(self, include_items=True):
        data = {
            'id': self.id,
            'bill_number': self.bill_number,
            'date': iso_datetime(self.date),
            'customer_id': self.customer_id,
            'customer_name': self.customer_name,
            'customer_type': self.customer_type.value,
            'sub_total': money_str(self.sub_total),
            'discount_percentage': money_str(self.discount_percentage),
            'discount_amount': money_str(self.discount_amount),
            'grand_total': money_str(self.grand_total),
            'payment_method': self.payment_method.value,
            'amount_paid': money_str(self.amount_paid),
            'amount_due': money_str(self.amount_due),
        }
        if include_items:
            data['items'] = [item.to_dict() for item in self.items]
        return data
