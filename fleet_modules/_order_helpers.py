"""
Shared order helpers (``fleet_modules._order_helpers``).

Responsibility
--------------
Building blocks used identically by the purchasing and sales services:
line normalization and validation, reference resolution (branch,
counterparty, products), display-name lookup, listing filters and paging.

Architecture position
---------------------
**Modules layer** -- utility.  Imported by ``fleet_modules.purchasing`` and
``fleet_modules.sales`` only.  Reads kernel reference models; never writes.

Invariants enforced
-------------------
* Every quantity and price is normalized (``round_quantity`` /
  ``round_currency``) before it is compared or persisted.
* A normalized quantity must be > 0 and a price, when given, >= 0.
* Referenced records must be active, not soft-deleted, and belong to the
  order's branch (and company, for branches and products).

Failure modes
-------------
* ``EmptyOrderError``, ``InvalidQuantityError``, ``InvalidAmountError``.
* ``BranchNotFoundError``, ``CounterpartyNotFoundError``,
  ``ProductNotFoundError``.
* ``ValidationError`` for an out-of-range page or limit.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from fleet_kernel.db.types import ZERO, line_total, round_currency, round_quantity
from fleet_kernel.domain.dtos import OrderLineInput
from fleet_kernel.exceptions import (
    BranchNotFoundError,
    CounterpartyNotFoundError,
    EmptyOrderError,
    InvalidAmountError,
    InvalidQuantityError,
    ProductNotFoundError,
    ValidationError,
)
from fleet_kernel.models import Branch, Party, PartyType, Product

E = TypeVar("E", bound=Enum)


@dataclass(frozen=True)
class NormalizedLine:
    """An order line after normalization, ready to persist."""
    product_id: UUID
    quantity: Decimal
    unit_price: Decimal | None
    line_total: Decimal | None


# -----------------------------------------------------------------------------
# Lines
# -----------------------------------------------------------------------------


def normalize_lines(
    lines: Sequence[OrderLineInput] | None,
    order_kind: str,
) -> list[NormalizedLine]:
    """
    Normalize and validate caller-supplied lines.

    Raises:
        EmptyOrderError: ``lines`` is None or empty.
        InvalidQuantityError: quantity not numeric or <= 0 after rounding.
        InvalidAmountError: price not numeric or negative after rounding.
    """
    if not lines:
        raise EmptyOrderError(order_kind)

    normalized: list[NormalizedLine] = []
    for line in lines:
        try:
            qty = round_quantity(line.quantity)
        except ValueError as exc:
            raise InvalidQuantityError(str(line.product_id), str(line.quantity)) from exc
        if qty <= ZERO:
            raise InvalidQuantityError(str(line.product_id), qty)

        price: Decimal | None = None
        if line.unit_price is not None:
            try:
                price = round_currency(line.unit_price)
            except ValueError as exc:
                raise InvalidAmountError("unit_price", str(line.unit_price), "not numeric") from exc
            if price < ZERO:
                raise InvalidAmountError("unit_price", price, "must not be negative")

        normalized.append(
            NormalizedLine(
                product_id=line.product_id,
                quantity=qty,
                unit_price=price,
                line_total=line_total(qty, price),
            )
        )
    return normalized


def order_total(line_totals: Iterable[Decimal | None]) -> Decimal:
    """Sum of line totals; unpriced lines count as zero."""
    return round_currency(sum((t for t in line_totals if t is not None), ZERO))


# -----------------------------------------------------------------------------
# Reference resolution
# -----------------------------------------------------------------------------


def resolve_branch(session: Session, branch_id: UUID, company_id: UUID) -> Branch:
    branch = session.scalars(
        select(Branch).where(
            Branch.id == branch_id,
            Branch.company_id == company_id,
            Branch.deleted_at.is_(None),
        )
    ).first()
    if branch is None:
        raise BranchNotFoundError(str(branch_id))
    return branch


def resolve_counterparty(
    session: Session,
    party_type: PartyType,
    party_id: UUID,
    branch_id: UUID,
) -> Party:
    party = session.scalars(
        select(Party).where(
            Party.id == party_id,
            Party.party_type == party_type.value,
            Party.branch_id == branch_id,
            Party.is_active.is_(True),
            Party.deleted_at.is_(None),
        )
    ).first()
    if party is None:
        raise CounterpartyNotFoundError(party_type.value.lower(), str(party_id), str(branch_id))
    return party


def resolve_products(
    session: Session,
    product_ids: Iterable[UUID],
    company_id: UUID,
    branch_id: UUID,
) -> dict[UUID, Product]:
    """
    Resolve every distinct product id or raise naming the missing ones.
    """
    wanted = list(dict.fromkeys(product_ids))
    rows = session.scalars(
        select(Product).where(
            Product.id.in_(wanted),
            Product.company_id == company_id,
            Product.branch_id == branch_id,
            Product.is_active.is_(True),
            Product.deleted_at.is_(None),
        )
    ).all()
    found = {p.id: p for p in rows}
    missing = [pid for pid in wanted if pid not in found]
    if missing:
        raise ProductNotFoundError([str(m) for m in missing], str(branch_id))
    return found


def party_names(session: Session, party_ids: Iterable[UUID]) -> dict[UUID, str]:
    ids = set(party_ids)
    if not ids:
        return {}
    rows = session.execute(select(Party.id, Party.name).where(Party.id.in_(ids))).tuples()
    return {pid: name for pid, name in rows}


def product_labels(session: Session, product_ids: Iterable[UUID]) -> dict[UUID, tuple[str, str]]:
    """Map product id to ``(name, code)``; deleted products are included."""
    ids = set(product_ids)
    if not ids:
        return {}
    rows = session.execute(
        select(Product.id, Product.name, Product.code).where(Product.id.in_(ids))
    ).tuples()
    return {pid: (name, code) for pid, name, code in rows}


# -----------------------------------------------------------------------------
# Listing
# -----------------------------------------------------------------------------


def parse_status(status_enum: type[E], value: E | str) -> E:
    """Coerce a status filter or target to ``status_enum``."""
    try:
        return status_enum(value)
    except ValueError:
        allowed = ", ".join(s.value for s in status_enum)
        raise ValidationError(f"Unknown status {value!r}; expected one of: {allowed}") from None


def validate_paging(page: int, limit: int | None, default_limit: int, max_limit: int) -> tuple[int, int]:
    effective_limit = default_limit if limit is None else limit
    if page < 1:
        raise ValidationError(f"page must be >= 1, got {page}")
    if not 1 <= effective_limit <= max_limit:
        raise ValidationError(f"limit must be between 1 and {max_limit}, got {effective_limit}")
    return page, effective_limit


def creation_date_bounds(
    start_date: date | None,
    end_date: date | None,
) -> tuple[datetime | None, datetime | None]:
    """
    Half-open UTC bounds ``[start 00:00, (end + 1 day) 00:00)`` so that the
    whole end day is included.
    """
    lower = datetime.combine(start_date, time.min, tzinfo=timezone.utc) if start_date else None
    upper = (
        datetime.combine(end_date + timedelta(days=1), time.min, tzinfo=timezone.utc)
        if end_date
        else None
    )
    return lower, upper
