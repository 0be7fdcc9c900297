"""
Unit tests for error payloads.
"""

from stockorders.exceptions import (
    SaasError, NotFoundError, PreconditionFailedError, InvalidInputError,
    InsufficientStockError, StockShortfall, AlreadyFinalizedError, OrderNotEditableError,
    ProductNotFoundError, InvalidQuantityError, TransactionFailedError
)


class TestInsufficientStockError:

    def test_lists_every_shortfall(self):
        error = InsufficientStockError([
            StockShortfall(1, 'Widget', 5, 2),
            StockShortfall(2, 'Gadget', 3, 0),
        ])

        assert error.status_code == 409
        assert len(error.shortfalls) == 2
        assert "Product 'Widget' has insufficient stock. Required: 5, Available: 2" in error.message
        assert "Product 'Gadget' has insufficient stock. Required: 3, Available: 0" in error.message

    def test_payload_carries_shortfalls(self):
        error = InsufficientStockError([StockShortfall(1, 'Widget', 5, 2)])
        data = error.to_dict()

        assert data['status'] == 'error'
        assert data['shortfalls'] == [
            {'product_id': 1, 'title': 'Widget', 'required': 5, 'available': 2}
        ]


class TestErrorCategories:

    def test_not_found(self):
        error = ProductNotFoundError(7, 'Widget')
        assert isinstance(error, NotFoundError)
        assert error.status_code == 404
        assert 'Widget' in error.message
        assert error.to_dict()['product_id'] == 7

    def test_precondition_failed(self):
        assert isinstance(AlreadyFinalizedError(3, 'INV-00001'), PreconditionFailedError)
        assert isinstance(OrderNotEditableError(3, 'FINALIZED'), PreconditionFailedError)
        assert AlreadyFinalizedError(3).status_code == 409

    def test_invalid_input(self):
        error = InvalidQuantityError(1, 0)
        assert isinstance(error, InvalidInputError)
        assert error.status_code == 400

    def test_transaction_failed_is_retryable(self):
        error = TransactionFailedError(payload={'order_id': 4})
        assert error.retryable is True
        assert error.status_code == 503
        assert error.to_dict()['retryable'] is True
        assert error.to_dict()['order_id'] == 4

    def test_business_errors_are_not_retryable(self):
        assert SaasError().retryable is False
        assert InsufficientStockError([]).retryable is False
