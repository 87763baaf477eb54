"""Customer model."""
from sqlalchemy import Column, BigInteger, Integer, String, Numeric, DateTime, Enum, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from invoicer.database import Base
from invoicer.utils.formatters import money_str
import enum


class CustomerType(enum.Enum):
    """Customer type enum. Selects the price list used when billing."""
    RETAIL = "Retail"
    WHOLESALE = "Wholesale"


def normalize_customer_type(value) -> CustomerType:
    """
    Normalize a customer type coming from a request or a JSON snapshot.

    Accepts the enum itself, its value ("Retail") or its name ("WHOLESALE"),
    case-insensitively. None defaults to Retail.

    Raises:
        ValueError: If value is not a known customer type
    """
    if value is None:
        return CustomerType.RETAIL

    if isinstance(value, CustomerType):
        return value

    normalized = str(value).strip().upper()
    for member in CustomerType:
        if normalized in (member.name, member.value.upper()):
            return member

    raise ValueError(f"Invalid customer type: {value}. Must be 'Retail' or 'Wholesale'.")


class Customer(Base):
    """Customer with a credit account and a soft credit limit."""

    __tablename__ = 'customer'
    __table_args__ = (
        CheckConstraint('credit_limit >= 0', name='ck_customer_credit_limit_non_negative'),
    )

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    customer_type = Column(Enum(CustomerType, name='customer_type'), nullable=False, default=CustomerType.RETAIL)
    phone = Column(String(50), nullable=True)
    credit_limit = Column(Numeric(12, 2), nullable=False, default=0)
    # Mutated only by bill finalization (+amount due) and payments (-amount)
    outstanding_balance = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    bills = relationship('Bill', back_populates='customer', order_by='Bill.date')
    payments = relationship('Payment', back_populates='customer', order_by='Payment.date')

    def __repr__(self):
        return f"<Customer(id={self.id}, name='{self.name}', balance={self.outstanding_balance})>"

    @property
    def is_wholesale(self):
        return self.customer_type == CustomerType.WHOLESALE

    @property
    def available_credit(self):
        """Credit left before the soft limit is reached (never below zero)."""
        remaining = (self.credit_limit or 0) - (self.outstanding_balance or 0)
        return remaining if remaining > 0 else 0

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'type': self.customer_type.value,
            'phone': self.phone,
            'credit_limit': money_str(self.credit_limit),
            'outstanding_balance': money_str(self.outstanding_balance),
            'available_credit': money_str(self.available_credit),
        }
