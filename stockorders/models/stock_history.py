"""Stock History model - append-only ledger of stock count changes."""
from datetime import datetime
from sqlalchemy import Column, BigInteger, Integer, String, DateTime, Enum, Index
from stockorders.database import Base, BigIntegerPK
import enum


class ChangeType(enum.Enum):
    """Cause of a stock count change."""
    INITIAL = "INITIAL"        # Product created
    SALE = "SALE"              # Count decreased
    RESTOCK = "RESTOCK"        # Count increased
    ADJUSTMENT = "ADJUSTMENT"  # Explicit record with no net change


def classify_change(old_count, new_count):
    """Classify a change from the sign of new_count - old_count."""
    if new_count < old_count:
        return ChangeType.SALE
    if new_count > old_count:
        return ChangeType.RESTOCK
    return ChangeType.ADJUSTMENT


class StockHistoryEntry(Base):
    """
    One stock count change.

    Rows are never updated or deleted (see models/immutability.py).
    product_id is a plain reference so deleting a product leaves its
    history in place.
    """

    __tablename__ = 'stock_history'
    __table_args__ = (
        Index('idx_stock_history_product_changed', 'product_id', 'changed_at'),
        {'sqlite_autoincrement': True},
    )

    id = Column(BigIntegerPK, primary_key=True, autoincrement=True)
    product_id = Column(BigInteger, nullable=False, index=True)
    old_count = Column(Integer, nullable=False)
    new_count = Column(Integer, nullable=False)
    change_amount = Column(Integer, nullable=False)
    change_type = Column(Enum(ChangeType, name='stock_change_type'), nullable=False)
    changed_at = Column(DateTime, nullable=False, default=datetime.now, index=True)
    notes = Column(String(255), nullable=True)

    @classmethod
    def create(cls, product_id, old_count, new_count, change_type, notes=None):
        return cls(
            product_id=product_id,
            old_count=old_count,
            new_count=new_count,
            change_amount=new_count - old_count,
            change_type=change_type,
            changed_at=datetime.now(),
            notes=notes
        )

    def __repr__(self):
        return (
            f"<StockHistoryEntry(id={self.id}, product_id={self.product_id}, "
            f"{self.old_count}->{self.new_count}, type={self.change_type.value})>"
        )
