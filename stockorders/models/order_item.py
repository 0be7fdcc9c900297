"""Order Item model."""
from decimal import Decimal
from sqlalchemy import Column, BigInteger, Integer, String, Text, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from stockorders.database import Base, BigIntegerPK


class OrderItem(Base):
    """
    Order line with a snapshot of the product taken when the draft was saved.

    product_id is a plain reference: the product may be edited or deleted
    later without changing what the invoice shows.
    """

    __tablename__ = 'order_item'
    __table_args__ = (
        CheckConstraint('quantity >= 1', name='ck_order_item_quantity_positive'),
        {'sqlite_autoincrement': True},
    )

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    order_id = Column(BigInteger, ForeignKey('client_order.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = Column(BigInteger, nullable=False, index=True)

    # Snapshot
    product_title = Column(String(100), nullable=False)
    product_image = Column(Text, nullable=True)
    unit_price = Column(Numeric(10, 2), nullable=False)

    quantity = Column(Integer, nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)

    # Relationships
    order = relationship('Order', back_populates='items')

    @classmethod
    def from_product(cls, product, quantity):
        """Build a line copying the product's current title, image and price."""
        unit_price = Decimal(str(product.price))
        return cls(
            product_id=product.id,
            product_title=product.title,
            product_image=product.image,
            unit_price=unit_price,
            quantity=quantity,
            subtotal=(unit_price * quantity).quantize(Decimal('0.01'))
        )

    def __repr__(self):
        return f"<OrderItem(id={self.id}, product_id={self.product_id}, quantity={self.quantity})>"
