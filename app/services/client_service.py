"""Client service (address book)."""
import logging
from typing import Any, Dict

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.exceptions import BusinessLogicError, NotFoundError
from app.models import Client, PersonType, Quote
from app.utils.validation import only_digits

logger = logging.getLogger(__name__)

CLIENT_FIELDS = ('name', 'person_type', 'document', 'email', 'phone', 'address', 'notes')


def _clean(data: Dict[str, Any]) -> Dict[str, Any]:
    values = {}
    for field in CLIENT_FIELDS:
        if field not in data:
            continue
        value = data[field]
        if isinstance(value, str):
            value = value.strip() or None
        if field == 'name' and not value:
            raise BusinessLogicError('O nome do cliente é obrigatório.')
        if field == 'person_type':
            value = value or PersonType.PJ.value
        if field == 'document' and value:
            value = only_digits(value)
        values[field] = value
    return values


def get_client(session: Session, client_id: int, owner_id: int) -> Client:
    client = session.query(Client).filter(Client.id == client_id, Client.owner_id == owner_id).first()
    if not client:
        raise NotFoundError(f'Cliente {client_id} não encontrado.')
    return client


def list_clients(session: Session, owner_id: int, page: int = 1, per_page: int = 10,
                 search: str = '') -> Dict[str, Any]:
    """Paginated address book sorted by name. Search matches name, document, email or phone."""
    query = session.query(Client).filter(Client.owner_id == owner_id)

    search = (search or '').strip()
    if search:
        term = f'%{search.lower()}%'
        digits = only_digits(search)
        conditions = [
            func.lower(Client.name).like(term),
            func.lower(Client.email).like(term),
            Client.phone.like(f'%{search}%'),
        ]
        if digits:
            conditions.append(Client.document.like(f'%{digits}%'))
        query = query.filter(or_(*conditions))

    page = max(int(page or 1), 1)
    per_page = max(int(per_page or 10), 1)
    total = query.count()
    clients = query.order_by(func.lower(Client.name), Client.id) \
        .offset((page - 1) * per_page).limit(per_page).all()

    return {
        'data': clients,
        'total': total,
        'page': page,
        'total_pages': (total + per_page - 1) // per_page,
    }


def create_client(session: Session, owner_id: int, data: Dict[str, Any]) -> Client:
    try:
        values = _clean(data)
        if not values.get('name'):
            raise BusinessLogicError('O nome do cliente é obrigatório.')
        client = Client(owner_id=owner_id, **values)
        session.add(client)
        session.commit()
        logger.info(f"Client {client.id} created for owner {owner_id}")
        return client
    except Exception:
        session.rollback()
        raise


def update_client(session: Session, client: Client, data: Dict[str, Any]) -> Client:
    try:
        for field, value in _clean(data).items():
            setattr(client, field, value)
        session.commit()
        return client
    except Exception:
        session.rollback()
        raise


def delete_client(session: Session, client: Client) -> None:
    """Quotes keep their snapshot of the client; only the link is cleared."""
    try:
        session.query(Quote).filter(Quote.client_id == client.id).update(
            {Quote.client_id: None}, synchronize_session=False
        )
        session.delete(client)
        session.commit()
    except Exception:
        session.rollback()
        raise


def client_snapshot(client: Client) -> Dict[str, Any]:
    """Fields copied onto a quote when a saved client is chosen."""
    return {
        'client_id': client.id,
        'client_name': client.name,
        'client_person_type': client.person_type,
        'client_document': client.document,
        'client_email': client.email,
        'client_phone': client.phone,
        'client_address': client.address,
    }
