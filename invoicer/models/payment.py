"""Payment model."""
from sqlalchemy import Column, BigInteger, Integer, Numeric, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from invoicer.database import Base
from invoicer.utils.formatters import money_str, iso_datetime


class Payment(Base):
    """Payment received against a customer's outstanding balance (append-only)."""

    __tablename__ = 'payment'
    __table_args__ = (
        CheckConstraint('amount > 0', name='ck_payment_amount_positive'),
    )

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    customer_id = Column(BigInteger().with_variant(Integer, 'sqlite'), ForeignKey('customer.id'), nullable=False, index=True)
    bill_id = Column(BigInteger().with_variant(Integer, 'sqlite'), ForeignKey('bill.id'), nullable=True)
    date = Column(DateTime, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    # Relationships
    customer = relationship('Customer', back_populates='payments')
    bill = relationship('Bill', back_populates='payments')

    def __repr__(self):
        return f"<Payment(id={self.id}, customer_id={self.customer_id}, amount={self.amount})>"

    def to_dict(self):
        return {
            'id': self.id,
            'customer_id': self.customer_id,
            'bill_id': self.bill_id,
            'date': iso_datetime(self.date),
            'amount': money_str(self.amount),
        }
