"""Category model."""
from sqlalchemy import Column, BigInteger, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from stockorders.database import Base, BigIntegerPK


class Category(Base):
    """Product Category. Owns its products."""

    __tablename__ = 'category'
    __table_args__ = {'sqlite_autoincrement': True}

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    tenant_id = Column(BigInteger, ForeignKey('tenant.id', ondelete='CASCADE'), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    image = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    tenant = relationship('Tenant', back_populates='categories')
    # Deleting a category deletes its products
    products = relationship(
        'Product',
        back_populates='category',
        cascade='all, delete-orphan',
        passive_deletes=True
    )

    def __repr__(self):
        return f"<Category(id={self.id}, title='{self.title}')>"
