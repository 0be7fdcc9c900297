"""Tenant model - represents each company using the platform."""
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from stockorders.database import Base, BigIntegerPK


class Tenant(Base):
    """Tenant model - each company/organization."""

    __tablename__ = 'tenant'
    __table_args__ = {'sqlite_autoincrement': True}

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    slug = Column(String(80), nullable=False, unique=True)  # URL-safe identifier
    name = Column(String(200), nullable=False)  # Display name
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    categories = relationship('Category', back_populates='tenant', cascade='all, delete-orphan')

    def __repr__(self):
        return f"<Tenant(id={self.id}, slug='{self.slug}', name='{self.name}')>"
