"""Bill Item model."""
from sqlalchemy import Column, BigInteger, Integer, String, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from invoicer.database import Base
from invoicer.utils.formatters import money_str


class BillItem(Base):
    """
    Bill Item (line of a finalized bill).

    name and rate are snapshots of the product at the time the line was added
    to the draft. product_id is a weak reference: the product may be deleted
    later and the item keeps its snapshot.
    """

    __tablename__ = 'bill_item'
    __table_args__ = (
        CheckConstraint('quantity >= 1', name='ck_bill_item_quantity_positive'),
    )

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    bill_id = Column(BigInteger().with_variant(Integer, 'sqlite'), ForeignKey('bill.id', ondelete='CASCADE'), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    product_id = Column(BigInteger, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    quantity = Column(Integer, nullable=False)
    rate = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)

    # Relationships
    bill = relationship('Bill', back_populates='items')

    def __repr__(self):
        return f"<BillItem(id={self.id}, product_id={self.product_id}, quantity={self.quantity})>"

    def to_dict(self):
        return {
            'product_id': self.product_id,
            'name': self.name,
            'quantity': self.quantity,
            'rate': money_str(self.rate),
            'total': money_str(self.total),
        }
