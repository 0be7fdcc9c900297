"""
Order Draft Service - PENDING order operations (multi-tenant).

Drafts are quotes: they snapshot product data and compute totals but never
read or reserve stock. Overselling at draft time is allowed and is caught
when the order is finalized.
"""
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy.orm import Session

from stockorders.models import Order, OrderItem, OrderStatus
from stockorders.exceptions import (
    InvalidInputError, InvalidQuantityError, OrderNotFoundError, OrderNotEditableError
)
from stockorders.services import catalog_service
from stockorders.services.cache_service import invalidate_order_stats

logger = logging.getLogger(__name__)


def get_order(session: Session, tenant_id: int, order_id: int) -> Order:
    """Get an order owned by the tenant."""
    order = session.query(Order).filter(
        Order.id == order_id,
        Order.tenant_id == tenant_id
    ).first()
    if not order:
        raise OrderNotFoundError(order_id)
    return order


def list_orders(session: Session, tenant_id: int, status: Optional[OrderStatus] = None) -> List[Order]:
    """Orders of the tenant, newest first, optionally filtered by status."""
    query = session.query(Order).filter(Order.tenant_id == tenant_id)
    if status is not None:
        query = query.filter(Order.status == status)
    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


def create_draft(
    session: Session,
    tenant_id: int,
    client_info: Mapping[str, Any],
    line_requests: Iterable[Mapping[str, Any]]
) -> Order:
    """
    Create a PENDING order.

    Args:
        client_info: Mapping with the client_* fields and notes.
            client_name is required.
        line_requests: Iterable of {'product_id': int, 'quantity': int}.

    Raises:
        InvalidInputError, InvalidQuantityError, ProductNotFoundError
    """
    try:
        lines = _build_lines(session, tenant_id, line_requests)
        order = Order(tenant_id=tenant_id, status=OrderStatus.PENDING)
        _apply_client_info(order, client_info)
        order.items = lines
        order.calculate_totals()

        session.add(order)
        session.flush()
        summary = f"Order {order.id} drafted for tenant {tenant_id}: {order.total_items} items, total {order.total_amount}"
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(summary)
    invalidate_order_stats(tenant_id)
    return order


def update_draft(
    session: Session,
    tenant_id: int,
    order_id: int,
    client_info: Mapping[str, Any],
    line_requests: Iterable[Mapping[str, Any]]
) -> Order:
    """
    Replace client data and lines of a PENDING order.

    Existing lines are dropped and rebuilt from line_requests (fresh
    snapshots), then totals are recomputed.

    Raises:
        OrderNotFoundError, OrderNotEditableError, InvalidInputError,
        InvalidQuantityError, ProductNotFoundError
    """
    try:
        order = _get_editable_order(session, tenant_id, order_id)
        lines = _build_lines(session, tenant_id, line_requests)

        _apply_client_info(order, client_info)
        order.items = lines
        order.calculate_totals()
        summary = f"Order {order_id} updated for tenant {tenant_id}: {order.total_items} items, total {order.total_amount}"
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(summary)
    invalidate_order_stats(tenant_id)
    return order


def delete_draft(session: Session, tenant_id: int, order_id: int) -> None:
    """
    Delete a PENDING order and its lines.

    Raises:
        OrderNotFoundError, OrderNotEditableError
    """
    try:
        order = _get_editable_order(session, tenant_id, order_id)
        session.delete(order)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(f"Order {order_id} deleted for tenant {tenant_id}")
    invalidate_order_stats(tenant_id)


# =====================================================
# PRIVATE HELPERS
# =====================================================

def _get_editable_order(session: Session, tenant_id: int, order_id: int) -> Order:
    """Lock the order row and check it is still PENDING in the database."""
    order = session.query(Order).filter(
        Order.id == order_id,
        Order.tenant_id == tenant_id
    ).with_for_update().populate_existing().first()
    if not order:
        raise OrderNotFoundError(order_id)
    if order.status != OrderStatus.PENDING:
        logger.warning(f"Rejected change to order {order_id} in status {order.status.value}")
        raise OrderNotEditableError(order_id, order.status.value)
    return order


def _apply_client_info(order: Order, client_info: Mapping[str, Any]) -> None:
    client_info = client_info or {}
    client_name = (client_info.get('client_name') or '').strip()
    if not client_name:
        raise InvalidInputError('Client name is required')

    for field in Order.CLIENT_FIELDS:
        value = client_info.get(field)
        if isinstance(value, str):
            value = value.strip() or None
        setattr(order, field, value)
    order.client_name = client_name


def _parse_quantity(product_id, raw) -> int:
    quantity = catalog_service.parse_whole_number(raw)
    if quantity is None or quantity < 1:
        raise InvalidQuantityError(product_id, raw)
    return quantity


def _build_lines(session: Session, tenant_id: int, line_requests: Iterable[Mapping[str, Any]]) -> List[OrderItem]:
    """Validate line requests and build snapshot lines. Touches no stock."""
    requests: List[Dict[str, Any]] = []
    for line in line_requests or []:
        try:
            product_id = int(line.get('product_id'))
        except (TypeError, ValueError):
            raise InvalidInputError(f"Invalid product_id: {line.get('product_id')!r}")
        requests.append({
            'product_id': product_id,
            'quantity': _parse_quantity(product_id, line.get('quantity'))
        })

    if not requests:
        raise InvalidInputError('Order must have at least one item')

    products = catalog_service.get_products(session, tenant_id, [r['product_id'] for r in requests])
    return [OrderItem.from_product(products[r['product_id']], r['quantity']) for r in requests]
