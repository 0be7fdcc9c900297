"""
Invoice Sequence Service - per-tenant invoice numbers.

Format: INV-00001, INV-00002, ... (zero padded to 5 digits, wider once past
99999). Numbers come from a counter row per tenant locked FOR UPDATE, so the
read-increment-write happens inside the caller's transaction and a rollback
gives the number back.
"""
import logging
import re
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stockorders.models import InvoiceSequence, Order

logger = logging.getLogger(__name__)

INVOICE_PREFIX = 'INV-'
INVOICE_PAD = 5

_INVOICE_RE = re.compile(r'^INV-(\d+)$')


def format_invoice_number(number: int) -> str:
    return f"{INVOICE_PREFIX}{number:0{INVOICE_PAD}d}"


def parse_invoice_number(value: Optional[str]) -> Optional[int]:
    """Numeric part of an invoice number, or None if it is not one of ours."""
    if not value:
        return None
    match = _INVOICE_RE.match(value.strip())
    if not match:
        return None
    return int(match.group(1))


def max_issued_number(session: Session, tenant_id: int) -> int:
    """
    Highest invoice number already stored on the tenant's orders.

    Compared numerically: INV-00099 < INV-00100 < INV-100000.
    """
    values = session.execute(
        select(Order.invoice_number).where(
            Order.tenant_id == tenant_id,
            Order.invoice_number.isnot(None)
        )
    ).scalars().all()
    numbers = [n for n in (parse_invoice_number(v) for v in values) if n is not None]
    return max(numbers, default=0)


def _lock_sequence(session: Session, tenant_id: int) -> Optional[InvoiceSequence]:
    return session.execute(
        select(InvoiceSequence)
        .where(InvoiceSequence.tenant_id == tenant_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()


def next_invoice_number(session: Session, tenant_id: int) -> str:
    """
    Allocate the next invoice number for the tenant.

    Must run inside the transaction that stores the number on the order.
    Does not commit.
    """
    sequence = _lock_sequence(session, tenant_id)

    if sequence is None:
        # First invoice of this tenant: seed from any numbers already issued
        savepoint = session.begin_nested()
        try:
            sequence = InvoiceSequence(tenant_id=tenant_id, last_number=max_issued_number(session, tenant_id))
            session.add(sequence)
            session.flush()
            savepoint.commit()
        except IntegrityError:
            # Another transaction created the row first
            logger.debug(f"Invoice sequence creation race for tenant {tenant_id}, re-locking")
            savepoint.rollback()
            sequence = _lock_sequence(session, tenant_id)
            if sequence is None:
                raise

    sequence.last_number += 1
    session.flush()

    invoice_number = format_invoice_number(sequence.last_number)
    logger.debug(f"Invoice number allocated: tenant {tenant_id} -> {invoice_number}")
    return invoice_number
