"""Bill Draft Line model for cart items."""
from sqlalchemy import Column, BigInteger, Integer, String, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from invoicer.database import Base
from invoicer.utils.formatters import money_str


class BillDraftLine(Base):
    """
    Bill Draft Line - Individual items in the cart.

    The rate is frozen when the product is first added: later catalog price
    changes do not reprice an open cart.
    """

    __tablename__ = 'bill_draft_line'

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    draft_id = Column(BigInteger().with_variant(Integer, 'sqlite'), ForeignKey('bill_draft.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = Column(BigInteger().with_variant(Integer, 'sqlite'), ForeignKey('product.id', ondelete='CASCADE'), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    quantity = Column(Integer, nullable=False)
    rate = Column(Numeric(12, 2), nullable=False)

    # Relationships
    draft = relationship('BillDraft', back_populates='lines')
    product = relationship('Product')

    def __repr__(self):
        return f"<BillDraftLine(id={self.id}, product_id={self.product_id}, quantity={self.quantity})>"

    @property
    def total(self):
        from invoicer.services.bill_draft_service import line_total
        return line_total(self.rate, self.quantity)

    def to_dict(self):
        return {
            'product_id': self.product_id,
            'name': self.name,
            'quantity': self.quantity,
            'rate': money_str(self.rate),
            'total': money_str(self.total),
        }
