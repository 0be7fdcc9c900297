"""Custom exceptions for the order management backend."""
from collections import namedtuple


StockShortfall = namedtuple('StockShortfall', ['product_id', 'title', 'required', 'available'])


class SaasError(Exception):
    """Base exception for all application errors."""
    retryable = False

    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv


class BusinessLogicError(SaasError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)


# =====================================================
# NOT FOUND
# =====================================================

class NotFoundError(SaasError):
    """Exception raised when a resource is not found (or belongs to another tenant)."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class TenantNotFoundError(NotFoundError):
    def __init__(self, tenant_id):
        super().__init__(f'Tenant {tenant_id} not found')


class CategoryNotFoundError(NotFoundError):
    def __init__(self, category_id):
        super().__init__(f'Category {category_id} not found', payload={'category_id': category_id})


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id, title=None):
        label = f'"{title}"' if title else str(product_id)
        super().__init__(f'Product not found: {label}', payload={'product_id': product_id})


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id):
        super().__init__(f'Order {order_id} not found', payload={'order_id': order_id})


# =====================================================
# INVALID INPUT
# =====================================================

class InvalidInputError(BusinessLogicError):
    """Raised when caller-supplied data cannot be accepted."""
    def __init__(self, message, payload=None):
        super().__init__(message, 400, payload)


class InvalidQuantityError(InvalidInputError):
    def __init__(self, product_id, quantity):
        super().__init__(
            f'Quantity must be a whole number of at least 1 (product {product_id}, got {quantity!r})',
            payload={'product_id': product_id, 'quantity': str(quantity)}
        )


class EmptyOrderError(InvalidInputError):
    def __init__(self, order_id=None):
        message = 'Order has no items' if order_id is None else f'Cannot finalize order {order_id} - order has no items'
        super().__init__(message, payload={'order_id': order_id} if order_id is not None else None)


# =====================================================
# PRECONDITION FAILED
# =====================================================

class PreconditionFailedError(BusinessLogicError):
    """Raised when the order is not in the state the operation requires."""
    def __init__(self, message, payload=None):
        super().__init__(message, 409, payload)


class OrderNotEditableError(PreconditionFailedError):
    def __init__(self, order_id, status):
        super().__init__(
            f'Order {order_id} cannot be modified - only PENDING orders can be changed (status: {status})',
            payload={'order_id': order_id, 'order_status': status}
        )


class AlreadyFinalizedError(PreconditionFailedError):
    def __init__(self, order_id, invoice_number=None):
        super().__init__(
            f'Cannot finalize order {order_id} - order is already finalized',
            payload={'order_id': order_id, 'invoice_number': invoice_number}
        )


class OrderNotFinalizedError(PreconditionFailedError):
    def __init__(self, order_id):
        super().__init__(
            f'Order {order_id} has no invoice - only FINALIZED orders can be invoiced',
            payload={'order_id': order_id}
        )


# =====================================================
# STOCK / STORE
# =====================================================

class InsufficientStockError(BusinessLogicError):
    """Raised when an operation fails due to lack of stock.

    Carries every shortfall found, never just the first one.
    """
    def __init__(self, shortfalls):
        self.shortfalls = list(shortfalls)
        details = '\n'.join(
            f"Product '{s.title}' has insufficient stock. Required: {s.required}, Available: {s.available}"
            for s in self.shortfalls
        )
        payload = {'shortfalls': [s._asdict() for s in self.shortfalls]}
        super().__init__(f'Cannot finalize order - insufficient stock:\n{details}', status_code=409, payload=payload)


class ImmutableRecordError(SaasError):
    """Raised when code tries to change a ledger entry or a finalized order."""
    def __init__(self, message):
        super().__init__(message, 500)


class TransactionFailedError(SaasError):
    """Store-level failure (contention, lock timeout, lost connection). Nothing was committed."""
    retryable = True

    def __init__(self, message="The operation could not be completed, please retry", payload=None):
        payload = dict(payload or ())
        payload['retryable'] = True
        super().__init__(message, 503, payload)
