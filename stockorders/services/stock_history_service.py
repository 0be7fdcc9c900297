"""
Stock History Service - append-only audit ledger of stock count changes.

Writers add rows inside the caller's transaction and never commit.
There is no update or delete operation.
"""
import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from stockorders.models import Category, Product, StockHistoryEntry, ChangeType, classify_change

logger = logging.getLogger(__name__)


def record(
    session: Session,
    product_id: int,
    old_count: int,
    new_count: int,
    notes: Optional[str] = None,
    change_type: Optional[ChangeType] = None
) -> StockHistoryEntry:
    """
    Append one ledger entry.

    When change_type is omitted it is derived from the direction of the
    change: decrease is SALE, increase is RESTOCK, no change is ADJUSTMENT.
    """
    if change_type is None:
        change_type = classify_change(old_count, new_count)

    entry = StockHistoryEntry.create(product_id, old_count, new_count, change_type, notes)
    session.add(entry)
    logger.debug(
        f"Stock history: product {product_id} {old_count}->{new_count} ({change_type.value}) {notes or ''}"
    )
    return entry


def record_initial(session: Session, product_id: int, initial_count: int) -> StockHistoryEntry:
    """Record the count a product was created with."""
    return record(session, product_id, 0, initial_count, 'Product created', ChangeType.INITIAL)


def history_for(session: Session, product_id: int) -> List[StockHistoryEntry]:
    """All entries for one product, newest first."""
    return session.query(StockHistoryEntry).filter(
        StockHistoryEntry.product_id == product_id
    ).order_by(
        StockHistoryEntry.changed_at.desc(),
        StockHistoryEntry.id.desc()
    ).all()


def history_for_tenant(session: Session, tenant_id: int, since: datetime) -> List[StockHistoryEntry]:
    """Entries for every product of the tenant changed at or after `since`, newest first."""
    return session.query(StockHistoryEntry).join(
        Product, Product.id == StockHistoryEntry.product_id
    ).join(
        Category, Category.id == Product.category_id
    ).filter(
        Category.tenant_id == tenant_id,
        StockHistoryEntry.changed_at >= since
    ).order_by(
        StockHistoryEntry.changed_at.desc(),
        StockHistoryEntry.id.desc()
    ).all()


def history_for_tenant_last_months(session: Session, tenant_id: int, months: int = 6) -> List[StockHistoryEntry]:
    """Tenant history for the last N months (30-day months)."""
    since = datetime.now() - timedelta(days=30 * months)
    return history_for_tenant(session, tenant_id, since)


def total_sold_by_products(session: Session, product_ids: Iterable[int], since: datetime) -> Dict[int, int]:
    """Units sold per product since `since`, from SALE entries."""
    product_ids = list(product_ids)
    if not product_ids:
        return {}

    rows = session.query(
        StockHistoryEntry.product_id,
        func.sum(-StockHistoryEntry.change_amount)
    ).filter(
        StockHistoryEntry.product_id.in_(product_ids),
        StockHistoryEntry.changed_at >= since,
        StockHistoryEntry.change_type == ChangeType.SALE
    ).group_by(StockHistoryEntry.product_id).all()

    totals = {pid: 0 for pid in product_ids}
    for product_id, sold in rows:
        totals[product_id] = int(sold or 0)
    return totals
