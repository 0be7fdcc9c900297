"""
Flask CLI commands for store management.

Commands:
- flask init-db: Create the schema
- flask restock: Set a product's stock count (recorded in the stock history)
- flask order-stats: Print order counts and revenue for a tenant
"""

import click
from stockorders.database import get_session, create_all
from stockorders.exceptions import SaasError


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create all tables."""
        create_all()
        click.echo(click.style('Schema created.', fg='green'))

    @app.cli.command('restock')
    @click.option('--tenant', 'tenant_id', type=int, required=True, help='Tenant id')
    @click.option('--product', 'product_id', type=int, required=True, help='Product id')
    @click.option('--count', type=int, required=True, help='New stock count')
    @click.option('--note', default=None, help='Note stored with the stock history entry')
    def restock_command(tenant_id, product_id, count, note):
        """Set the stock count of a product."""
        from stockorders.services import catalog_service

        session = get_session()
        try:
            product = catalog_service.restock(session, tenant_id, product_id, count, note)
            summary = f'{product.title}: stock is now {product.stock_count}'
            session.commit()
        except SaasError as e:
            session.rollback()
            click.echo(click.style(f'Error: {e.message}', fg='red'), err=True)
            raise SystemExit(1)

        click.echo(click.style(summary, fg='green'))

    @app.cli.command('order-stats')
    @click.option('--tenant', 'tenant_id', type=int, required=True, help='Tenant id')
    def order_stats_command(tenant_id):
        """Show order counts and revenue for a tenant."""
        from stockorders.services import report_service

        stats = report_service.order_stats(get_session(), tenant_id)
        click.echo(f"Orders:    {stats['total']}")
        click.echo(f"Pending:   {stats['pending']}")
        click.echo(f"Finalized: {stats['finalized']}")
        click.echo(f"Revenue:   {stats['total_revenue']}")
