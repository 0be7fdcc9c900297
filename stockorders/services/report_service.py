"""
Report service for multi-tenant reporting and analysis collaborators.
Provides order statistics and the inventory snapshot fed to analytics.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Optional

from flask import current_app, has_app_context
from sqlalchemy import func, case
from sqlalchemy.orm import Session

from stockorders.models import Order, OrderStatus
from stockorders.services import catalog_service, stock_history_service
from stockorders.services.cache_service import get_cache, ORDERS_MODULE


def _load_order_stats(session: Session, tenant_id: int) -> Dict[str, Any]:
    row = session.query(
        func.count(Order.id).label('total'),
        func.coalesce(
            func.sum(case((Order.status == OrderStatus.PENDING, 1), else_=0)), 0
        ).label('pending'),
        func.coalesce(
            func.sum(case((Order.status == OrderStatus.FINALIZED, 1), else_=0)), 0
        ).label('finalized'),
        func.coalesce(
            func.sum(case((Order.status == OrderStatus.FINALIZED, Order.total_amount), else_=0)), 0
        ).label('total_revenue'),
    ).filter(Order.tenant_id == tenant_id).one()

    return {
        'total': int(row.total or 0),
        'pending': int(row.pending or 0),
        'finalized': int(row.finalized or 0),
        'total_revenue': Decimal(str(row.total_revenue or 0)).quantize(Decimal('0.01')),
    }


def order_stats(session: Session, tenant_id: int) -> Dict[str, Any]:
    """
    Order counts and revenue for a tenant.

    Returns:
        dict with keys total, pending, finalized, total_revenue (Decimal,
        sum of finalized order totals).
    """
    cache = get_cache()
    if cache is None:
        return _load_order_stats(session, tenant_id)
    ttl = current_app.config.get('CACHE_STATS_TTL') if has_app_context() else None
    return cache.memoize(
        tenant_id, ORDERS_MODULE, 'stats',
        lambda: _load_order_stats(session, tenant_id),
        ttl=ttl
    )


def inventory_snapshot(session: Session, tenant_id: int, months: Optional[int] = None) -> Dict[str, Any]:
    """
    Products and their stock history over the window, for analysis.

    History entries are ordered oldest first so a reader can replay them.
    The window defaults to HISTORY_WINDOW_MONTHS (6 outside an app).
    """
    if months is None:
        months = current_app.config.get('HISTORY_WINDOW_MONTHS', 6) if has_app_context() else 6
    since = datetime.now() - timedelta(days=30 * months)
    products = catalog_service.list_products(session, tenant_id)
    history = stock_history_service.history_for_tenant(session, tenant_id, since)
    sold = stock_history_service.total_sold_by_products(session, [p.id for p in products], since)

    return {
        'since': since,
        'products': [
            {
                'id': p.id,
                'title': p.title,
                'category_id': p.category_id,
                'price': Decimal(p.price),
                'stock_count': p.stock_count,
                'units_sold': sold.get(p.id, 0),
            }
            for p in products
        ],
        'history': [
            {
                'product_id': h.product_id,
                'old_count': h.old_count,
                'new_count': h.new_count,
                'change_amount': h.change_amount,
                'change_type': h.change_type.value,
                'changed_at': h.changed_at,
                'notes': h.notes,
            }
            for h in reversed(history)
        ],
    }
