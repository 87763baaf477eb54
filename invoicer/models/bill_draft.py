"""Bill Draft model for persistent cart."""
from sqlalchemy import Column, BigInteger, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from invoicer.database import Base


class BillDraft(Base):
    """
    Bill Draft - Persistent cart for the billing screen.

    Allows the cart to survive page refreshes. One draft per user
    (enforced by UNIQUE constraint). Holds the selected customer and the
    lines; totals are always derived, never stored.
    """

    __tablename__ = 'bill_draft'

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    user_id = Column(BigInteger().with_variant(Integer, 'sqlite'), ForeignKey('app_user.id'), nullable=False, unique=True)
    customer_id = Column(BigInteger().with_variant(Integer, 'sqlite'), ForeignKey('customer.id'), nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    # Relationships
    user = relationship('AppUser')
    customer = relationship('Customer')
    lines = relationship('BillDraftLine', back_populates='draft', order_by='BillDraftLine.id',
                         cascade='all, delete-orphan')

    def __repr__(self):
        return f"<BillDraft(id={self.id}, user_id={self.user_id}, customer_id={self.customer_id})>"

    def find_line(self, product_id):
        for line in self.lines:
            if line.product_id == product_id:
                return line
        return None
