"""
Order Finalization Service - PENDING order -> FINALIZED sale (multi-tenant).

The whole operation is one transaction:
    1. Lock the order row and check it is PENDING and not empty
    2. Lock every referenced product row (ascending id)
    3. Validation pass: collect every stock shortfall, mutate nothing
    4. Deduction pass: guarded stock decrement + one SALE ledger entry per line
    5. Allocate the tenant's next invoice number (locked counter row)
    6. Flip status to FINALIZED and stamp finalized_at
    7. Commit; any failure rolls back all of the above

Locks are taken in the order order -> products -> invoice counter, and only
on rows the order actually touches, so finalizations of other tenants or of
disjoint products do not wait on each other.

No retries happen here. TransactionFailedError means nothing was committed
and the order is still PENDING, so the caller may simply try again.
"""
import logging
import time
from collections import OrderedDict
from datetime import datetime
from typing import Optional

from flask import current_app, has_app_context
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stockorders.database import apply_lock_timeout
from stockorders.models import Order, OrderStatus, ChangeType
from stockorders.exceptions import (
    SaasError, OrderNotFoundError, AlreadyFinalizedError, EmptyOrderError,
    ProductNotFoundError, InsufficientStockError, StockShortfall, TransactionFailedError
)
from stockorders.services import catalog_service, stock_history_service
from stockorders.services.invoice_sequence_service import next_invoice_number
from stockorders.services.cache_service import invalidate_order_stats
from stockorders import metrics

logger = logging.getLogger(__name__)


def finalize_order(
    session: Session,
    tenant_id: int,
    order_id: int,
    lock_timeout_ms: Optional[int] = None
) -> Order:
    """
    Finalize a PENDING order: deduct stock, write the ledger, assign the invoice number.

    Args:
        session: SQLAlchemy session. It is committed on success and rolled
            back on any failure.
        tenant_id: Authenticated tenant (REQUIRED for multi-tenant enforcement)
        order_id: Order to finalize
        lock_timeout_ms: Max wait on row locks (Postgres). Defaults to
            DB_LOCK_TIMEOUT_MS from the app config when an app is active.

    Returns:
        The finalized order.

    Raises:
        OrderNotFoundError: Order missing or owned by another tenant
        AlreadyFinalizedError: Order is not PENDING
        EmptyOrderError: Order has no lines
        ProductNotFoundError: A referenced product was deleted after drafting
        InsufficientStockError: One or more products are short; lists all of them
        TransactionFailedError: Store failure (lock timeout, deadlock, lost
            connection). Safe to retry.
    """
    if lock_timeout_ms is None and has_app_context():
        lock_timeout_ms = current_app.config.get('DB_LOCK_TIMEOUT_MS')

    started = time.perf_counter()
    try:
        apply_lock_timeout(session, lock_timeout_ms)

        # Step 1: Lock order and check state
        order = session.query(Order).filter(
            Order.id == order_id,
            Order.tenant_id == tenant_id
        ).with_for_update().populate_existing().first()

        if not order:
            raise OrderNotFoundError(order_id)
        if order.status != OrderStatus.PENDING:
            raise AlreadyFinalizedError(order_id, order.invoice_number)

        items = list(order.items)
        if not items:
            raise EmptyOrderError(order_id)

        # Step 2: Lock products and validate (no writes before this passes)
        products = _validate_stock(session, tenant_id, items)

        # Step 3: Deduct stock and write the ledger
        units_sold = 0
        notes = f'Sale - Order #{order_id}'
        for item in items:
            product = products[item.product_id]
            old_count = product.stock_count
            new_count = catalog_service.decrement_stock(session, item.product_id, item.quantity)
            stock_history_service.record(
                session, item.product_id, old_count, new_count, notes, ChangeType.SALE
            )
            units_sold += item.quantity

        # Step 4: Invoice number, same transaction as the deduction
        invoice_number = next_invoice_number(session, tenant_id)

        # Step 5: Transition
        order.invoice_number = invoice_number
        order.status = OrderStatus.FINALIZED
        order.finalized_at = datetime.now()
        session.flush()

        session.commit()

    except SaasError as e:
        session.rollback()
        metrics.order_finalize_failures_total.labels(reason=type(e).__name__).inc()
        logger.warning(f"Finalize rejected: order {order_id} tenant {tenant_id}: {e.message}")
        raise
    except SQLAlchemyError as e:
        session.rollback()
        metrics.order_finalize_failures_total.labels(reason='TransactionFailedError').inc()
        logger.exception(f"Finalize rolled back: order {order_id} tenant {tenant_id}")
        raise TransactionFailedError(
            f'Order {order_id} could not be finalized, please retry',
            payload={'order_id': order_id}
        ) from e
    except Exception:
        session.rollback()
        metrics.order_finalize_failures_total.labels(reason='unexpected').inc()
        logger.exception(f"Finalize failed: order {order_id} tenant {tenant_id}")
        raise

    metrics.orders_finalized_total.inc()
    metrics.stock_units_sold_total.inc(units_sold)
    metrics.order_finalize_duration_seconds.observe(time.perf_counter() - started)
    logger.info(
        f"Order {order_id} finalized for tenant {tenant_id}: invoice {invoice_number}, "
        f"{len(items)} lines, {units_sold} units"
    )
    invalidate_order_stats(tenant_id)
    return order


# =====================================================
# PRIVATE HELPERS
# =====================================================

def _validate_stock(session: Session, tenant_id: int, items) -> dict:
    """
    Lock the products of the order and check stock for all of them.

    Quantities of lines that share a product are added up. Raises with the
    complete list of shortfalls; has no side effects besides the locks.
    """
    required = OrderedDict()
    titles = {}
    for item in items:
        required[item.product_id] = required.get(item.product_id, 0) + item.quantity
        titles.setdefault(item.product_id, item.product_title)

    products = catalog_service.lock_products(session, tenant_id, required.keys())

    for product_id in required:
        if product_id not in products:
            raise ProductNotFoundError(product_id, titles[product_id])

    shortfalls = [
        StockShortfall(product_id, products[product_id].title, qty, products[product_id].stock_count)
        for product_id, qty in required.items()
        if products[product_id].stock_count < qty
    ]
    if shortfalls:
        raise InsufficientStockError(shortfalls)

    return products
