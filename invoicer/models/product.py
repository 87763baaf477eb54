"""Product model."""
from sqlalchemy import Column, BigInteger, Integer, String, Text, Numeric, DateTime, CheckConstraint
from sqlalchemy.sql import func
from invoicer.database import Base
from invoicer.utils.formatters import money_str, iso_datetime


class Product(Base):
    """Product (catalog item with stock and two price lists)."""

    __tablename__ = 'product'
    __table_args__ = (
        CheckConstraint('stock >= 0', name='ck_product_stock_non_negative'),
        CheckConstraint('retail_price >= 0', name='ck_product_retail_price_non_negative'),
        CheckConstraint('wholesale_price >= 0', name='ck_product_wholesale_price_non_negative'),
    )

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    item_code = Column(String(50), nullable=False, unique=True)
    name = Column(String(200), nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    retail_price = Column(Numeric(12, 2), nullable=False, default=0)
    wholesale_price = Column(Numeric(12, 2), nullable=False, default=0)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Product(id={self.id}, item_code='{self.item_code}', stock={self.stock})>"

    def price_for(self, customer_type):
        """Rate charged to a customer of the given type."""
        from invoicer.models.customer import CustomerType
        if customer_type == CustomerType.WHOLESALE:
            return self.wholesale_price
        return self.retail_price

    def to_dict(self):
        return {
            'id': self.id,
            'item_code': self.item_code,
            'name': self.name,
            'stock': self.stock,
            'retail_price': money_str(self.retail_price),
            'wholesale_price': money_str(self.wholesale_price),
            'description': self.description,
            'updated_at': iso_datetime(self.updated_at),
        }
