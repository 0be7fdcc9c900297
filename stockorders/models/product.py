"""Product model."""
from sqlalchemy import Column, BigInteger, Integer, String, Text, Numeric, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from stockorders.database import Base, BigIntegerPK


class Product(Base):
    """
    Catalog item. The owning tenant is reached through the category.

    stock_count is changed only by order finalization and restock.
    """

    __tablename__ = 'product'
    __table_args__ = (
        CheckConstraint('stock_count >= 0', name='ck_product_stock_non_negative'),
        CheckConstraint('price > 0', name='ck_product_price_positive'),
        {'sqlite_autoincrement': True},
    )

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    category_id = Column(BigInteger, ForeignKey('category.id', ondelete='CASCADE'), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    image = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    stock_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    category = relationship('Category', back_populates='products')

    def __repr__(self):
        return f"<Product(id={self.id}, title='{self.title}', stock_count={self.stock_count})>"

    @property
    def tenant_id(self):
        """Owning tenant, derived from the category."""
        return self.category.tenant_id if self.category else None
