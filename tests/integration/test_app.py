"""
Tests for the application wiring: error handler, metrics endpoint, CLI.
"""

from stockorders.exceptions import InsufficientStockError, StockShortfall
from stockorders.models import Product
from stockorders.services import report_service


class TestErrorHandler:

    def test_saas_error_rendered_as_json(self, app):
        error = InsufficientStockError([StockShortfall(1, 'Widget', 5, 2)])

        with app.test_request_context():
            response = app.make_response(app.handle_user_exception(error))

        assert response.status_code == 409
        body = response.get_json()
        assert body['status'] == 'error'
        assert body['shortfalls'][0]['available'] == 2


class TestMetricsEndpoint:

    def test_metrics_exposed(self, client):
        response = client.get('/metrics')

        assert response.status_code == 200
        assert b'orders_finalized_total' in response.data


class TestCliCommands:

    def test_restock_command(self, app, session, tenant1, product_tenant1):
        tenant_id, product_id = tenant1.id, product_tenant1.id
        runner = app.test_cli_runner()

        result = runner.invoke(args=[
            'restock', '--tenant', str(tenant_id), '--product', str(product_id), '--count', '9'
        ])

        assert result.exit_code == 0
        assert 'stock is now 9' in result.output
        assert session.get(Product, product_id).stock_count == 9

    def test_restock_command_unknown_product(self, app, session, tenant1):
        runner = app.test_cli_runner()

        result = runner.invoke(args=[
            'restock', '--tenant', str(tenant1.id), '--product', '999999', '--count', '1'
        ])

        assert result.exit_code == 1

    def test_order_stats_command(self, app, session, tenant1, product_tenant1, make_order):
        make_order((product_tenant1, 2))
        tenant_id = tenant1.id
        runner = app.test_cli_runner()

        result = runner.invoke(args=['order-stats', '--tenant', str(tenant_id)])

        assert result.exit_code == 0
        assert 'Pending:   1' in result.output
        assert report_service.order_stats(session, tenant_id)['pending'] == 1
