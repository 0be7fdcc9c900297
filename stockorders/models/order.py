"""Order model (client order: PENDING draft or FINALIZED sale)."""
from decimal import Decimal
from sqlalchemy import (
    Column, BigInteger, Integer, String, Numeric, DateTime, Enum, ForeignKey,
    CheckConstraint, UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from stockorders.database import Base, BigIntegerPK
import enum


class OrderStatus(enum.Enum):
    """Order status enum. FINALIZED is terminal."""
    PENDING = "PENDING"
    FINALIZED = "FINALIZED"


class Order(Base):
    """
    Client order.

    While PENDING it is a freely editable quote that does not touch stock.
    Finalization deducts stock, assigns the invoice number and sets
    finalized_at in one transaction; the CHECK constraint below keeps those
    three fields consistent with the status.
    """

    __tablename__ = 'client_order'
    __table_args__ = (
        UniqueConstraint('tenant_id', 'invoice_number', name='uq_client_order_tenant_invoice'),
        CheckConstraint(
            "(status = 'PENDING' AND invoice_number IS NULL AND finalized_at IS NULL) OR "
            "(status = 'FINALIZED' AND invoice_number IS NOT NULL AND finalized_at IS NOT NULL)",
            name='ck_client_order_invoice_matches_status'
        ),
        {'sqlite_autoincrement': True},
    )

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    tenant_id = Column(BigInteger, ForeignKey('tenant.id'), nullable=False, index=True)

    # Client contact
    client_name = Column(String(100), nullable=False)
    client_company = Column(String(100), nullable=True)
    client_address = Column(String(255), nullable=True)
    client_city = Column(String(100), nullable=True)
    client_postal_code = Column(String(20), nullable=True)
    client_phone = Column(String(30), nullable=True)
    client_email = Column(String(100), nullable=True)
    notes = Column(String(500), nullable=True)

    status = Column(Enum(OrderStatus, name='order_status'), nullable=False, default=OrderStatus.PENDING)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    finalized_at = Column(DateTime(timezone=True), nullable=True)

    total_items = Column(Integer, nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    invoice_number = Column(String(20), nullable=True)

    # Relationships
    tenant = relationship('Tenant')
    items = relationship(
        'OrderItem',
        back_populates='order',
        cascade='all, delete-orphan',
        order_by='OrderItem.id'
    )

    CLIENT_FIELDS = (
        'client_name', 'client_company', 'client_address', 'client_city',
        'client_postal_code', 'client_phone', 'client_email', 'notes',
    )

    @property
    def is_editable(self):
        return self.status == OrderStatus.PENDING

    def calculate_totals(self):
        """Recompute totals from the current lines."""
        self.total_items = sum(item.quantity for item in self.items)
        self.total_amount = sum((item.subtotal for item in self.items), Decimal('0.00')).quantize(Decimal('0.01'))

    def __repr__(self):
        return f"<Order(id={self.id}, status={self.status.value}, invoice_number={self.invoice_number})>"
