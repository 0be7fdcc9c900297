import pytest
import uuid
from decimal import Decimal

from stockorders import create_app
from stockorders.database import get_session, create_all, drop_all
from stockorders.services import catalog_service, order_draft_service


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing."""
    app = create_app('config.TestConfig')
    with app.app_context():
        drop_all()
        create_all()
    yield app
    get_session().remove()
    drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Create database session for testing."""
    session = get_session()
    yield session
    session.rollback()
    session.remove()


def _make_tenant(session, label):
    suffix = str(uuid.uuid4())[:8]
    tenant = catalog_service.create_tenant(
        session,
        slug=f'test-{label}-{suffix}',
        name=f'Test {label} {suffix}'
    )
    session.commit()
    return tenant


@pytest.fixture(scope='function')
def tenant1(session):
    """Create first test tenant."""
    return _make_tenant(session, 'tenant-1')


@pytest.fixture(scope='function')
def tenant2(session):
    """Create second test tenant for isolation tests."""
    return _make_tenant(session, 'tenant-2')


@pytest.fixture(scope='function')
def category_tenant1(session, tenant1):
    """Create test category for tenant1."""
    category = catalog_service.create_category(session, tenant1.id, 'Test Category T1')
    session.commit()
    return category


@pytest.fixture(scope='function')
def make_product(session, tenant1, category_tenant1):
    """Factory for tenant1 products with a given stock count."""
    def _make(title='Product T1', stock_count=5, price='10.00'):
        product = catalog_service.create_product(
            session, tenant1.id, category_tenant1.id, title, Decimal(price), stock_count
        )
        session.commit()
        return product
    return _make


@pytest.fixture(scope='function')
def product_tenant1(make_product):
    """Test product for tenant1 with 5 units in stock."""
    return make_product('Widget', stock_count=5, price='10.00')


@pytest.fixture(scope='function')
def product_tenant2(session, tenant2):
    """Create test product for tenant2."""
    category = catalog_service.create_category(session, tenant2.id, 'Test Category T2')
    product = catalog_service.create_product(
        session, tenant2.id, category.id, 'Product T2', Decimal('20.00'), 20
    )
    session.commit()
    return product


@pytest.fixture(scope='function')
def make_order(session, tenant1):
    """Factory for tenant1 PENDING orders from (product, quantity) pairs."""
    def _make(*lines, client_name='Jane Client'):
        return order_draft_service.create_draft(
            session,
            tenant1.id,
            {'client_name': client_name, 'client_email': 'jane@example.com'},
            [{'product_id': product.id, 'quantity': qty} for product, qty in lines]
        )
    return _make
