"""Catalog service for saved services and products."""
import logging
from typing import Any, Dict, Optional

from sqlalchemy import String, cast, func, or_
from sqlalchemy.orm import Session

from app.exceptions import BusinessLogicError, NotFoundError
from app.models import CatalogItem, DEFAULT_UNIT, ItemKind
from app.services.totals_service import round_money

logger = logging.getLogger(__name__)

ITEM_FIELDS = ('kind', 'description', 'default_price', 'default_cost', 'unit')

# Starter catalog loaded by `flask seed-catalog`
STARTER_ITEMS = (
    (ItemKind.SERVICE.value, 'Visita técnica', '150.00', '40.00', 'un'),
    (ItemKind.SERVICE.value, 'Mão de obra', '85.00', '35.00', 'hr'),
    (ItemKind.SERVICE.value, 'Instalação', '250.00', '90.00', 'un'),
    (ItemKind.SERVICE.value, 'Manutenção preventiva', '180.00', '60.00', 'un'),
    (ItemKind.PRODUCT.value, 'Cabo flexível 2,5mm', '4.90', '2.80', 'm'),
    (ItemKind.PRODUCT.value, 'Tomada 10A', '12.50', '6.90', 'un'),
    (ItemKind.PRODUCT.value, 'Disjuntor 20A', '32.00', '18.50', 'un'),
)


def _clean(data: Dict[str, Any]) -> Dict[str, Any]:
    values = {}
    for field in ITEM_FIELDS:
        if field not in data:
            continue
        value = data[field]
        if field in ('default_price', 'default_cost'):
            value = round_money(value)
        elif field == 'description':
            value = (value or '').strip()
            if not value:
                raise BusinessLogicError('A descrição é obrigatória.')
        elif field == 'kind':
            value = value or ItemKind.SERVICE.value
        elif field == 'unit':
            value = value or DEFAULT_UNIT
        values[field] = value
    return values


def get_item(session: Session, item_id: int, owner_id: int) -> CatalogItem:
    item = session.query(CatalogItem).filter(
        CatalogItem.id == item_id, CatalogItem.owner_id == owner_id
    ).first()
    if not item:
        raise NotFoundError(f'Item de catálogo {item_id} não encontrado.')
    return item


def list_items(session: Session, owner_id: int, page: int = 1, per_page: int = 10,
               search: str = '', kind: Optional[str] = None) -> Dict[str, Any]:
    """Paginated catalog, sorted by description. Search matches description or id."""
    query = session.query(CatalogItem).filter(CatalogItem.owner_id == owner_id)

    if kind:
        query = query.filter(CatalogItem.kind == kind)

    search = (search or '').strip()
    if search:
        query = query.filter(
            or_(
                func.lower(CatalogItem.description).like(f'%{search.lower()}%'),
                cast(CatalogItem.id, String).like(f'%{search}%'),
            )
        )

    page = max(int(page or 1), 1)
    per_page = max(int(per_page or 10), 1)
    total = query.count()
    items = query.order_by(func.lower(CatalogItem.description), CatalogItem.id) \
        .offset((page - 1) * per_page).limit(per_page).all()

    return {
        'data': items,
        'total': total,
        'page': page,
        'total_pages': (total + per_page - 1) // per_page,
    }


def create_item(session: Session, owner_id: int, data: Dict[str, Any]) -> CatalogItem:
    try:
        values = _clean(data)
        if 'description' not in values:
            raise BusinessLogicError('A descrição é obrigatória.')
        item = CatalogItem(owner_id=owner_id, **values)
        session.add(item)
        session.commit()
        logger.info(f"Catalog item {item.id} created for owner {owner_id}")
        return item
    except Exception:
        session.rollback()
        raise


def update_item(session: Session, item: CatalogItem, data: Dict[str, Any]) -> CatalogItem:
    """Quotes keep their own copy of the line, so editing here never changes them."""
    try:
        for field, value in _clean(data).items():
            setattr(item, field, value)
        session.commit()
        return item
    except Exception:
        session.rollback()
        raise


def delete_item(session: Session, item: CatalogItem) -> None:
    try:
        session.delete(item)
        session.commit()
    except Exception:
        session.rollback()
        raise


def seed_catalog(session: Session, owner_id: int) -> int:
    """
    Load the starter catalog for an owner.

    Items whose description already exists are skipped. Returns the number
    of items created.
    """
    existing = {
        description.lower()
        for (description,) in session.query(CatalogItem.description).filter(CatalogItem.owner_id == owner_id)
    }
    created = 0
    try:
        for kind, description, price, cost, unit in STARTER_ITEMS:
            if description.lower() in existing:
                continue
            session.add(CatalogItem(
                owner_id=owner_id,
                kind=kind,
                description=description,
                default_price=round_money(price),
                default_cost=round_money(cost),
                unit=unit,
            ))
            created += 1
        session.commit()
    except Exception:
        session.rollback()
        raise
    logger.info(f"Seeded {created} catalog items for owner {owner_id}")
    return created
