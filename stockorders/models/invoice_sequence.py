"""Invoice Sequence model - per-tenant invoice counter."""
from sqlalchemy import Column, BigInteger, Integer, DateTime, ForeignKey
from sqlalchemy.sql import func
from stockorders.database import Base


class InvoiceSequence(Base):
    """
    Last invoice number issued for a tenant.

    The row is locked FOR UPDATE while a finalization holds it, so two
    finalizations of the same tenant can never read the same value.
    """

    __tablename__ = 'invoice_sequence'

    tenant_id = Column(BigInteger, ForeignKey('tenant.id', ondelete='CASCADE'), primary_key=True, autoincrement=False)
    last_number = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<InvoiceSequence(tenant_id={self.tenant_id}, last_number={self.last_number})>"
