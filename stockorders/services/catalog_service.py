"""
Catalog Service - tenants, categories and products (multi-tenant).

Every lookup is scoped by tenant: a product of another tenant is reported
as not found. Functions flush but never commit; the caller owns the
transaction boundary.
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from stockorders.models import Tenant, Category, Product
from stockorders.exceptions import (
    BusinessLogicError, InvalidInputError, InsufficientStockError, StockShortfall,
    TenantNotFoundError, CategoryNotFoundError, ProductNotFoundError
)
from stockorders.services import stock_history_service

logger = logging.getLogger(__name__)


# =====================================================
# TENANTS
# =====================================================

def create_tenant(session: Session, slug: str, name: str) -> Tenant:
    tenant = Tenant(slug=slug, name=name, active=True)
    session.add(tenant)
    session.flush()
    logger.info(f"Tenant created: {tenant.id} ({slug})")
    return tenant


def get_tenant(session: Session, tenant_id: int) -> Tenant:
    tenant = session.query(Tenant).filter(Tenant.id == tenant_id).first()
    if not tenant:
        raise TenantNotFoundError(tenant_id)
    return tenant


# =====================================================
# CATEGORIES
# =====================================================

def get_category(session: Session, tenant_id: int, category_id: int) -> Category:
    category = session.query(Category).filter(
        Category.id == category_id,
        Category.tenant_id == tenant_id
    ).first()
    if not category:
        raise CategoryNotFoundError(category_id)
    return category


def list_categories(session: Session, tenant_id: int) -> List[Category]:
    return session.query(Category).filter(
        Category.tenant_id == tenant_id
    ).order_by(Category.title).all()


def create_category(session: Session, tenant_id: int, title: str, image: Optional[str] = None) -> Category:
    title = _clean_title(title)
    get_tenant(session, tenant_id)

    category = Category(tenant_id=tenant_id, title=title, image=image)
    session.add(category)
    session.flush()
    return category


def update_category(
    session: Session,
    tenant_id: int,
    category_id: int,
    title: str,
    image: Optional[str] = None
) -> Category:
    category = get_category(session, tenant_id, category_id)
    category.title = _clean_title(title)
    category.image = image
    session.flush()
    return category


def delete_category(session: Session, tenant_id: int, category_id: int) -> None:
    """Delete a category and, with it, all of its products. Stock history is kept."""
    category = get_category(session, tenant_id, category_id)
    product_count = len(category.products)
    session.delete(category)
    session.flush()
    logger.info(f"Category {category_id} deleted for tenant {tenant_id} ({product_count} products removed)")


# =====================================================
# PRODUCTS
# =====================================================

def _product_query(session: Session, tenant_id: int):
    return session.query(Product).join(
        Category, Category.id == Product.category_id
    ).filter(Category.tenant_id == tenant_id)


def get_product(session: Session, tenant_id: int, product_id: int) -> Product:
    """Resolve a product inside the tenant's catalog."""
    product = _product_query(session, tenant_id).filter(Product.id == product_id).first()
    if not product:
        raise ProductNotFoundError(product_id)
    return product


def get_products(session: Session, tenant_id: int, product_ids: Iterable[int]) -> Dict[int, Product]:
    """Resolve several products at once. Fails on the first id that does not resolve."""
    product_ids = list(dict.fromkeys(product_ids))
    if not product_ids:
        return {}
    products = _product_query(session, tenant_id).filter(Product.id.in_(product_ids)).all()
    found = {p.id: p for p in products}
    for pid in product_ids:
        if pid not in found:
            raise ProductNotFoundError(pid)
    return found


def lock_products(session: Session, tenant_id: int, product_ids: Iterable[int]) -> Dict[int, Product]:
    """
    Lock the tenant's product rows FOR UPDATE and return them by id.

    Rows are locked in ascending id order so concurrent finalizations that
    share products cannot deadlock. Missing ids are simply absent from the
    result. populate_existing refreshes objects already in the identity map.
    """
    product_ids = sorted(set(product_ids))
    if not product_ids:
        return {}

    products = _product_query(session, tenant_id).filter(
        Product.id.in_(product_ids)
    ).order_by(Product.id).with_for_update(of=Product).populate_existing().all()
    return {p.id: p for p in products}


def list_products(session: Session, tenant_id: int, category_id: Optional[int] = None) -> List[Product]:
    query = _product_query(session, tenant_id)
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    return query.order_by(Product.title).all()


def create_product(
    session: Session,
    tenant_id: int,
    category_id: int,
    title: str,
    price,
    stock_count: int,
    image: Optional[str] = None
) -> Product:
    """Create a product in one of the tenant's categories and log its INITIAL count."""
    category = get_category(session, tenant_id, category_id)
    price = _clean_price(price)
    stock_count = _clean_count(stock_count)

    product = Product(
        category_id=category.id,
        title=_clean_title(title),
        image=image,
        price=price,
        stock_count=stock_count
    )
    session.add(product)
    session.flush()

    stock_history_service.record_initial(session, product.id, stock_count)
    logger.info(f"Product created: {product.id} '{product.title}' stock={stock_count} (tenant {tenant_id})")
    return product


def update_product(
    session: Session,
    tenant_id: int,
    product_id: int,
    title: Optional[str] = None,
    price=None,
    image: Optional[str] = None,
    category_id: Optional[int] = None
) -> Product:
    """
    Update descriptive fields. Stock counts change only through restock().

    Existing order lines keep their snapshot of the old values.
    """
    product = get_product(session, tenant_id, product_id)

    if category_id is not None and category_id != product.category_id:
        product.category_id = get_category(session, tenant_id, category_id).id
    if title is not None:
        product.title = _clean_title(title)
    if price is not None:
        product.price = _clean_price(price)
    if image is not None:
        product.image = image

    session.flush()
    return product


def restock(
    session: Session,
    tenant_id: int,
    product_id: int,
    new_count: int,
    notes: Optional[str] = None
) -> Product:
    """
    Set a product's stock count and record the change in the ledger.

    The row is locked so a concurrent finalization sees either the old or
    the new count, never a lost update.
    """
    new_count = _clean_count(new_count)
    locked = lock_products(session, tenant_id, [product_id])
    product = locked.get(product_id)
    if not product:
        raise ProductNotFoundError(product_id)

    old_count = product.stock_count
    product.stock_count = new_count
    stock_history_service.record(session, product.id, old_count, new_count, notes or 'Stock updated')
    session.flush()

    logger.info(f"Stock set for product {product_id}: {old_count} -> {new_count} (tenant {tenant_id})")
    return product


def decrement_stock(session: Session, product_id: int, amount: int) -> int:
    """
    Subtract `amount` from the product's stock and return the new count.

    The UPDATE only matches while stock_count >= amount, so the count can
    never go negative even if the caller's earlier read is stale.
    """
    if amount < 1:
        raise BusinessLogicError(f'Stock decrement must be positive (product {product_id}, got {amount})')

    result = session.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock_count >= amount)
        .values(stock_count=Product.stock_count - amount)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        current = session.query(Product).filter(Product.id == product_id).populate_existing().first()
        if current is None:
            raise ProductNotFoundError(product_id)
        raise InsufficientStockError([
            StockShortfall(product_id, current.title, amount, current.stock_count)
        ])

    product = session.query(Product).filter(Product.id == product_id).populate_existing().one()
    return product.stock_count


def delete_product(session: Session, tenant_id: int, product_id: int) -> None:
    """Delete a product. Order lines keep their snapshots and the ledger is kept."""
    product = get_product(session, tenant_id, product_id)
    session.delete(product)
    session.flush()
    logger.info(f"Product {product_id} deleted (tenant {tenant_id})")


def parse_whole_number(raw) -> Optional[int]:
    """
    Integer value of an int or a digit string (" 3 " counts), else None.

    Shared by stock counts and order quantities. Bools, floats and signed
    strings are not whole numbers here.
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.strip().isdecimal():
        return int(raw.strip())
    return None


# =====================================================
# PRIVATE HELPERS
# =====================================================

def _clean_title(title: Optional[str]) -> str:
    title = (title or '').strip()
    if len(title) < 2 or len(title) > 100:
        raise InvalidInputError('Title must be between 2 and 100 characters')
    return title


def _clean_price(price) -> Decimal:
    try:
        value = Decimal(str(price))
    except (InvalidOperation, ValueError):
        raise InvalidInputError(f'Invalid price: {price!r}')
    if not value.is_finite() or value <= 0:
        raise InvalidInputError('Price must be greater than 0')
    return value.quantize(Decimal('0.01'))


def _clean_count(count) -> int:
    value = parse_whole_number(count)
    if value is None:
        raise InvalidInputError(f'Stock count must be a whole number, got {count!r}')
    if value < 0:
        raise InvalidInputError('Stock count must be 0 or greater')
    return value
