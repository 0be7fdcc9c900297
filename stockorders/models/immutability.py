"""
ORM guards for records that must not change once written.

- StockHistoryEntry: never updated, never deleted.
- Order: frozen once FINALIZED (no update, no delete).
- OrderItem: frozen while its order is FINALIZED.

Bulk UPDATE/DELETE statements bypass mapper events; services never issue
them against these tables.
"""
from sqlalchemy import event, inspect, select

from stockorders.exceptions import ImmutableRecordError
from stockorders.models.order import Order, OrderStatus
from stockorders.models.order_item import OrderItem
from stockorders.models.stock_history import StockHistoryEntry


def _stored_status(connection, order_id):
    if order_id is None:
        return None
    orders = Order.__table__
    return connection.execute(select(orders.c.status).where(orders.c.id == order_id)).scalar()


def _persisted_status(connection, order):
    """Status as stored in the database, ignoring pending changes."""
    history = inspect(order).attrs.status.history
    if history.deleted:
        return history.deleted[0]
    if history.unchanged:
        return history.unchanged[0]
    # Expired after a commit: read it back
    return _stored_status(connection, order.id)


def _check_ledger_update(mapper, connection, target):
    raise ImmutableRecordError(f'Stock history entry {target.id} is append-only and cannot be modified')


def _check_ledger_delete(mapper, connection, target):
    raise ImmutableRecordError(f'Stock history entry {target.id} is append-only and cannot be deleted')


def _check_order_update(mapper, connection, target):
    if _persisted_status(connection, target) == OrderStatus.FINALIZED:
        raise ImmutableRecordError(f'Order {target.id} is finalized and cannot be modified')


def _check_order_delete(mapper, connection, target):
    # Read the row itself: the loaded status may predate a concurrent finalize
    if _stored_status(connection, target.id) == OrderStatus.FINALIZED:
        raise ImmutableRecordError(f'Order {target.id} is finalized and cannot be deleted')


def _check_order_item_change(mapper, connection, target):
    order_id = inspect(target).committed_state.get('order_id', target.order_id)
    if _stored_status(connection, order_id) == OrderStatus.FINALIZED:
        raise ImmutableRecordError(f'Lines of finalized order {order_id} cannot be changed')


def register_immutability_listeners():
    """Attach the guards. Safe to call more than once."""
    listeners = (
        (StockHistoryEntry, 'before_update', _check_ledger_update),
        (StockHistoryEntry, 'before_delete', _check_ledger_delete),
        (Order, 'before_update', _check_order_update),
        (Order, 'before_delete', _check_order_delete),
        (OrderItem, 'before_update', _check_order_item_change),
        (OrderItem, 'before_delete', _check_order_item_change),
    )
    for target, identifier, fn in listeners:
        if not event.contains(target, identifier, fn):
            event.listen(target, identifier, fn)
