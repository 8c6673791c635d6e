"""
Unit tests for SQLAlchemy models.
"""

import pytest
import uuid
from datetime import date, timedelta
from decimal import Decimal
from app.models import AppUser, CatalogItem, Quote, QuoteLine


class TestAppUserModel:
    """Tests for AppUser model."""

    def test_create_user(self, session):
        """Test creating a user."""
        suffix = str(uuid.uuid4())[:8]
        email = f'test_{suffix}@example.com'
        user = AppUser(
            email=email,
            full_name='Test User',
            active=True
        )
        user.set_password('securepassword')
        session.add(user)
        session.commit()

        assert user.id is not None
        assert user.email == email
        assert user.check_password('securepassword')
        assert not user.check_password('wrongpassword')

    def test_user_email_unique(self, session, owner):
        """Test that email must be unique."""
        duplicate = AppUser(email=owner.email, full_name='Duplicate')
        session.add(duplicate)

        with pytest.raises(Exception):  # IntegrityError
            session.commit()

    def test_user_without_password_cannot_log_in(self):
        assert AppUser(email='x@test.com').check_password('anything') is False


class TestCatalogItemModel:
    def test_code_prefix_by_kind(self, session, owner):
        service = CatalogItem(owner_id=owner.id, kind='service', description='Visita', default_price=100)
        product = CatalogItem(owner_id=owner.id, kind='product', description='Cabo', default_price=5)
        session.add_all([service, product])
        session.commit()

        assert service.code == f'SVC{service.id}'
        assert product.code == f'PDT{product.id}'
        assert product.to_dict()['default_price'] == '5.00'


class TestQuoteModel:
    """Tests for Quote model."""

    def test_lines_keep_print_order(self, session, owner):
        quote = Quote(owner_id=owner.id, quote_number='ORC1', public_token=uuid.uuid4().hex)
        quote.lines.append(QuoteLine(description='Primeiro', quantity=1, unit_price=10))
        quote.lines.append(QuoteLine(description='Segundo', quantity=1, unit_price=20))
        quote.lines.insert(0, QuoteLine(description='Topo', quantity=1, unit_price=5))
        session.add(quote)
        session.commit()

        session.expire_all()
        stored = session.query(Quote).filter_by(id=quote.id).one()

        assert [line.description for line in stored.lines] == ['Topo', 'Primeiro', 'Segundo']
        assert [line.position for line in stored.lines] == [0, 1, 2]

    def test_totals_and_profit_properties(self, session, owner):
        quote = Quote(owner_id=owner.id, quote_number='ORC1', public_token=uuid.uuid4().hex,
                      discount_value=Decimal('10.00'))
        quote.lines.append(QuoteLine(description='Item', quantity=Decimal('2'), unit_price=Decimal('30.00'),
                                     cost=Decimal('12.00')))
        session.add(quote)
        session.commit()

        assert quote.totals.subtotal == Decimal('60.00')
        assert quote.totals.total == Decimal('50.00')
        assert quote.profit.total_cost == Decimal('24.00')
        assert quote.profit.net_profit == Decimal('26.00')

    def test_defaults(self, session, owner):
        quote = Quote(owner_id=owner.id, quote_number='ORC1', public_token=uuid.uuid4().hex)
        session.add(quote)
        session.commit()

        assert quote.status == 'pending'
        assert quote.issued_on == date.today()
        assert quote.discount_value == 0
        assert quote.lines == []

    @pytest.mark.parametrize('status, finalized', [
        ('pending', False), ('negotiating', False), ('approved', True), ('rejected', True)
    ])
    def test_is_finalized(self, status, finalized):
        assert Quote(status=status).is_finalized is finalized

    def test_is_expired_only_for_pending(self):
        yesterday = date.today() - timedelta(days=1)

        assert Quote(status='pending', due_date=yesterday).is_expired is True
        assert Quote(status='approved', due_date=yesterday).is_expired is False
        assert Quote(status='pending', due_date=None).is_expired is False
