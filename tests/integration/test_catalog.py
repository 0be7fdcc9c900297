"""
Integration tests for catalog operations and the stock history ledger.
"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from stockorders.models import Product, ChangeType
from stockorders.exceptions import InvalidInputError, InsufficientStockError, ProductNotFoundError
from stockorders.services import catalog_service, stock_history_service


class TestProducts:

    def test_create_product_records_initial_count(self, session, product_tenant1):
        entries = stock_history_service.history_for(session, product_tenant1.id)

        assert len(entries) == 1
        assert entries[0].change_type == ChangeType.INITIAL
        assert (entries[0].old_count, entries[0].new_count) == (0, 5)
        assert entries[0].notes == 'Product created'

    @pytest.mark.parametrize('title, price, stock_count', [
        ('X', '10.00', 1),
        ('Widget', '0', 1),
        ('Widget', '-1', 1),
        ('Widget', 'abc', 1),
        ('Widget', '10.00', -1),
        ('Widget', '10.00', 1.5),
        ('Widget', '10.00', '-2'),
        ('Widget', '10.00', 'ten'),
    ])
    def test_create_product_validation(self, session, tenant1, category_tenant1, title, price, stock_count):
        with pytest.raises(InvalidInputError):
            catalog_service.create_product(
                session, tenant1.id, category_tenant1.id, title, price, stock_count
            )

    def test_update_product_does_not_touch_stock(self, session, tenant1, product_tenant1):
        product = catalog_service.update_product(
            session, tenant1.id, product_tenant1.id, title='Widget XL', price=Decimal('11.50')
        )
        session.commit()

        assert product.title == 'Widget XL'
        assert product.price == Decimal('11.50')
        assert product.stock_count == 5
        assert len(stock_history_service.history_for(session, product.id)) == 1


class TestRestock:

    @pytest.mark.parametrize('new_count, expected', [
        (12, ChangeType.RESTOCK),
        (1, ChangeType.SALE),
        (5, ChangeType.ADJUSTMENT),
    ])
    def test_restock_is_classified(self, session, tenant1, product_tenant1, new_count, expected):
        catalog_service.restock(session, tenant1.id, product_tenant1.id, new_count)
        session.commit()

        latest = stock_history_service.history_for(session, product_tenant1.id)[0]
        assert latest.change_type == expected
        assert (latest.old_count, latest.new_count) == (5, new_count)
        assert latest.change_amount == new_count - 5
        assert latest.notes == 'Stock updated'
        assert product_tenant1.stock_count == new_count

    def test_restock_custom_note(self, session, tenant1, product_tenant1):
        catalog_service.restock(session, tenant1.id, product_tenant1.id, 9, 'Supplier delivery')
        session.commit()

        assert stock_history_service.history_for(session, product_tenant1.id)[0].notes == 'Supplier delivery'

    def test_counts_accept_digit_strings(self, session, tenant1, category_tenant1):
        product = catalog_service.create_product(
            session, tenant1.id, category_tenant1.id, 'Widget', '4.00', ' 3 '
        )
        catalog_service.restock(session, tenant1.id, product.id, '7')
        session.commit()

        assert product.stock_count == 7
        assert stock_history_service.history_for(session, product.id)[0].old_count == 3

    def test_restock_rejects_negative(self, session, tenant1, product_tenant1):
        with pytest.raises(InvalidInputError):
            catalog_service.restock(session, tenant1.id, product_tenant1.id, -3)

    def test_restock_unknown_product(self, session, tenant1):
        with pytest.raises(ProductNotFoundError):
            catalog_service.restock(session, tenant1.id, 999999, 3)


class TestDecrementStock:

    def test_guarded_decrement(self, session, product_tenant1):
        assert catalog_service.decrement_stock(session, product_tenant1.id, 5) == 0

        with pytest.raises(InsufficientStockError) as exc_info:
            catalog_service.decrement_stock(session, product_tenant1.id, 1)

        assert exc_info.value.shortfalls[0].available == 0
        session.rollback()
        assert product_tenant1.stock_count == 5


class TestDeletes:

    def test_delete_category_removes_products_keeps_history(self, session, tenant1, category_tenant1, make_product):
        product = make_product('Widget', stock_count=4)
        product_id = product.id

        catalog_service.delete_category(session, tenant1.id, category_tenant1.id)
        session.commit()

        assert session.query(Product).filter(Product.id == product_id).first() is None
        assert len(stock_history_service.history_for(session, product_id)) == 1

    def test_new_product_history_starts_clean(self, session, tenant1, make_product):
        """History of a deleted product never shows up under a new product."""
        product = make_product('Widget', stock_count=7)
        old_id = product.id
        catalog_service.restock(session, tenant1.id, old_id, 3)
        catalog_service.delete_product(session, tenant1.id, old_id)
        session.commit()

        newcomer = make_product('Gizmo', stock_count=1)
        entries = stock_history_service.history_for(session, newcomer.id)

        assert newcomer.id != old_id
        assert [(e.change_type, e.old_count, e.new_count) for e in entries] == [(ChangeType.INITIAL, 0, 1)]
        assert len(stock_history_service.history_for(session, old_id)) == 2


class TestTenantHistory:

    def test_history_for_tenant(self, session, tenant1, product_tenant1, product_tenant2):
        catalog_service.restock(session, tenant1.id, product_tenant1.id, 8)
        session.commit()

        since = datetime.now() - timedelta(days=1)
        entries = stock_history_service.history_for_tenant(session, tenant1.id, since)

        assert {e.product_id for e in entries} == {product_tenant1.id}
        assert [e.change_type for e in entries] == [ChangeType.RESTOCK, ChangeType.INITIAL]

    def test_window_excludes_older_entries(self, session, tenant1, product_tenant1):
        since = datetime.now() + timedelta(minutes=1)
        assert stock_history_service.history_for_tenant(session, tenant1.id, since) == []
        assert len(stock_history_service.history_for_tenant_last_months(session, tenant1.id, 6)) == 1

    def test_total_sold_zero_filled(self, session, product_tenant1):
        since = datetime.now() - timedelta(days=1)
        assert stock_history_service.total_sold_by_products(session, [product_tenant1.id], since) == {
            product_tenant1.id: 0
        }
