"""Invoice data for finalized orders - Multi-Tenant.

Builds the document content handed to the invoice renderer. Everything
comes from the order's own snapshot fields, so the invoice of a finalized
order never changes when products are edited or deleted.
"""
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from stockorders.models import OrderStatus
from stockorders.exceptions import OrderNotFinalizedError
from stockorders.services.order_draft_service import get_order


def build_invoice_data(
    session: Session,
    tenant_id: int,
    order_id: int,
    business_info: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Get invoice content for a FINALIZED order.

    Raises:
        OrderNotFoundError: Order missing or owned by another tenant
        OrderNotFinalizedError: Order is still PENDING
    """
    order = get_order(session, tenant_id, order_id)
    if order.status != OrderStatus.FINALIZED:
        raise OrderNotFinalizedError(order_id)

    lines = [
        {
            'product_id': item.product_id,
            'title': item.product_title,
            'image': item.product_image,
            'quantity': item.quantity,
            'unit_price': Decimal(item.unit_price),
            'subtotal': Decimal(item.subtotal),
        }
        for item in order.items
    ]

    info = dict(business_info or {})
    info.update({
        'order_id': order.id,
        'invoice_number': order.invoice_number,
        'finalized_at': order.finalized_at,
        'created_at': order.created_at,
        'client': {field: getattr(order, field) for field in order.CLIENT_FIELDS},
        'lines': lines,
        'total_items': order.total_items,
        'total_amount': Decimal(order.total_amount),
    })
    return info
