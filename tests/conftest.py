import pytest
import os
import uuid

# Tests run against an in-memory SQLite database unless told otherwise
os.environ['DATABASE_URL'] = os.environ.get('TEST_DATABASE_URL', 'sqlite://')

from app import create_app
from app.database import get_session, init_schema, drop_schema
from app.models import AppUser, CompanyProfile, Client, CatalogItem
from app.services import quote_service


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing."""
    app = create_app('config.Config')
    app.config['TESTING'] = True
    app.config['WTF_CSRF_ENABLED'] = False
    return app


@pytest.fixture(autouse=True)
def _schema(app):
    """Fresh tables for every test."""
    get_session().remove()
    drop_schema()
    init_schema()
    yield
    get_session().remove()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session():
    """Create database session for testing."""
    session = get_session()
    yield session
    session.rollback()
    session.close()


def _make_owner(session, name):
    suffix = str(uuid.uuid4())[:8]
    user = AppUser(
        email=f'{name}-{suffix}@test.com',
        full_name=name.title(),
        active=True
    )
    user.set_password('password123')
    session.add(user)
    session.flush()

    company = CompanyProfile(
        owner_id=user.id,
        razao_social=f'{name.title()} Serviços LTDA',
        nome_fantasia=f'{name.title()} Serviços',
        document='11222333000181',
        email=f'contato-{suffix}@test.com',
        phone='11987654321',
        address='Rua das Flores, 100 - São Paulo/SP',
        brand_color='#2563eb',
        company_type='pessoa_juridica',
        show_signature=True
    )
    session.add(company)
    session.commit()
    return user


@pytest.fixture(scope='function')
def owner(session):
    """Owner account with a completed company profile."""
    return _make_owner(session, 'owner')


@pytest.fixture(scope='function')
def other_owner(session):
    """Second owner for isolation tests."""
    return _make_owner(session, 'other')


@pytest.fixture(scope='function')
def saved_client(session, owner):
    client = Client(
        owner_id=owner.id,
        name='Maria Souza',
        person_type='PF',
        document='12345678909',
        email='maria@example.com',
        phone='11912345678',
        address='Av. Paulista, 1000'
    )
    session.add(client)
    session.commit()
    return client


@pytest.fixture(scope='function')
def catalog_item(session, owner):
    item = CatalogItem(
        owner_id=owner.id,
        kind='service',
        description='Instalação elétrica',
        default_price=200,
        default_cost=80,
        unit='un'
    )
    session.add(item)
    session.commit()
    return item


@pytest.fixture(scope='function')
def make_quote(session, owner):
    """
    Factory: persisted quote with the given lines.

    Each line is (description, quantity, unit_price, cost[, kind]).
    """
    def _make(lines=(), owner_id=None, **details):
        if not details.get('client_id'):
            details.setdefault('client_name', 'Cliente Teste')
        quote = quote_service.create_quote(session, owner_id or owner.id, **details)
        for line in lines:
            description, quantity, unit_price, cost = line[:4]
            kind = line[4] if len(line) > 4 else 'service'
            quote_service.add_line(session, quote, description, quantity=quantity,
                                   unit_price=unit_price, cost=cost, kind=kind)
        return quote
    return _make


@pytest.fixture(scope='function')
def quote(make_quote):
    """Pending quote: 2 x 50.00 + 1 x 150.00 (subtotal 250.00)."""
    return make_quote([
        ('Pintura', 2, '50.00', '20.00'),
        ('Reparo', 1, '150.00', '60.00'),
    ])


@pytest.fixture(scope='function')
def authenticated_client(client, owner):
    """Create authenticated client for owner."""
    owner_id = owner.id
    with client.session_transaction() as sess:
        sess['user_id'] = owner_id
    return client
