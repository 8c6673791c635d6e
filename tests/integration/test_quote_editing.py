"""
Integration tests for quote editing and persistence (service layer + SQLite).
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from app.exceptions import BusinessLogicError, InvalidTransitionError, NotFoundError
from app.models import Quote
from app.services import quote_service
from app.services.quote_workflow import QuoteAction


class TestCreateQuote:
    """Numbering, token and defaults."""

    def test_numbers_follow_highest_existing(self, session, owner, make_quote):
        first = make_quote()
        second = make_quote()
        assert first.quote_number == 'ORC1'
        assert second.quote_number == 'ORC2'

        first.quote_number = 'ORC41'
        session.commit()

        assert make_quote().quote_number == 'ORC42'

    def test_numbers_are_per_owner(self, make_quote, other_owner):
        make_quote()

        assert make_quote(owner_id=other_owner.id).quote_number == 'ORC1'

    def test_defaults(self, session, owner):
        quote = quote_service.create_quote(session, owner.id, valid_days=15, client_name='  Ana  ')

        assert quote.status == 'pending'
        assert quote.issued_on == date.today()
        assert quote.due_date == date.today() + timedelta(days=15)
        assert quote.client_name == 'Ana'
        assert len(quote.public_token) >= 20

    def test_client_snapshot_copied(self, session, owner, saved_client):
        quote = quote_service.create_quote(session, owner.id, client_id=saved_client.id)

        assert quote.client_id == saved_client.id
        assert quote.client_name == 'Maria Souza'
        assert quote.client_person_type == 'PF'
        assert quote.client_document == '12345678909'

    def test_blank_client_fields_keep_snapshot(self, session, owner, saved_client):
        quote = quote_service.create_quote(session, owner.id, client_id=saved_client.id,
                                           client_name='', client_email='  ')

        assert quote.client_name == 'Maria Souza'
        assert quote.client_email == 'maria@example.com'

    def test_explicit_client_name_overrides_snapshot(self, session, owner, saved_client):
        quote = quote_service.create_quote(session, owner.id, client_id=saved_client.id,
                                           client_name='Maria S. (obra)')

        assert quote.client_name == 'Maria S. (obra)'
        assert quote.client_document == '12345678909'

    def test_client_of_other_owner_is_rejected(self, session, other_owner, saved_client):
        with pytest.raises(NotFoundError):
            quote_service.create_quote(session, other_owner.id, client_id=saved_client.id)


class TestLineItems:
    """Adding, editing, removing and moving lines."""

    def test_add_line_normalizes_numbers(self, session, quote):
        line = quote_service.add_line(session, quote, 'Cabo', quantity=2.5, unit_price=1.1, cost=0.333)

        assert line.quantity == Decimal('2.500')
        assert line.unit_price == Decimal('1.10')
        assert line.cost == Decimal('0.33')
        assert line.position == 2
        assert quote.totals.subtotal == Decimal('252.75')

    def test_add_line_requires_description(self, session, quote):
        with pytest.raises(BusinessLogicError):
            quote_service.add_line(session, quote, '   ')

    def test_add_line_from_catalog_copies_entry(self, session, quote, catalog_item):
        line = quote_service.add_line_from_catalog(session, quote, catalog_item.id, quantity=3)

        assert line.description == 'Instalação elétrica'
        assert line.unit_price == Decimal('200.00')
        assert line.cost == Decimal('80.00')
        assert line.kind == 'service'
        assert line.quantity == Decimal('3.000')

    def test_catalog_edit_does_not_touch_quote_line(self, session, quote, catalog_item):
        line = quote_service.add_line_from_catalog(session, quote, catalog_item.id)
        catalog_item.default_price = Decimal('999.00')
        session.commit()

        assert line.unit_price == Decimal('200.00')

    def test_update_line(self, session, quote):
        line_id = quote.lines[0].id

        quote_service.update_line(session, quote, line_id, quantity=4, unit_price='55.5')

        assert quote.lines[0].quantity == Decimal('4.000')
        assert quote.lines[0].unit_price == Decimal('55.50')
        assert quote.totals.subtotal == Decimal('372.00')

    def test_update_unknown_line(self, session, quote):
        with pytest.raises(NotFoundError):
            quote_service.update_line(session, quote, 9999, quantity=1)

    def test_move_up_and_down(self, session, make_quote):
        quote = make_quote([('A', 1, 1, 0), ('B', 1, 1, 0), ('C', 1, 1, 0)])
        b_id = quote.lines[1].id

        quote_service.move_line(session, quote, b_id, 'up')
        assert [line.description for line in quote.lines] == ['B', 'A', 'C']

        quote_service.move_line(session, quote, b_id, 'down')
        quote_service.move_line(session, quote, b_id, 'down')
        assert [line.description for line in quote.lines] == ['A', 'C', 'B']

        session.expire_all()
        stored = session.query(Quote).filter_by(id=quote.id).one()
        assert [(line.description, line.position) for line in stored.lines] == [('A', 0), ('C', 1), ('B', 2)]

    def test_move_past_the_ends_is_a_no_op(self, session, make_quote):
        quote = make_quote([('A', 1, 1, 0), ('B', 1, 1, 0)])

        quote_service.move_line(session, quote, quote.lines[0].id, 'up')
        quote_service.move_line(session, quote, quote.lines[1].id, 'down')

        assert [line.description for line in quote.lines] == ['A', 'B']

    def test_invalid_direction(self, session, quote):
        with pytest.raises(BusinessLogicError):
            quote_service.move_line(session, quote, quote.lines[0].id, 'left')

    def test_remove_line(self, session, quote):
        quote_service.remove_line(session, quote, quote.lines[0].id)

        assert [line.description for line in quote.lines] == ['Reparo']
        assert quote.lines[0].position == 0


class TestDiscount:
    """Discount value/percent editing and re-sync."""

    def test_percent_discount_follows_subtotal(self, session, quote):
        quote_service.set_discount_percent(session, quote, 10)

        assert quote.discount_value == Decimal('25.00')
        assert quote.totals.total == Decimal('225.00')

        quote_service.remove_line(session, quote, quote.lines[0].id)

        assert quote.totals.subtotal == Decimal('150.00')
        assert quote.discount_value == Decimal('15.00')
        assert quote.totals.total == Decimal('135.00')

    def test_value_discount_derives_percent(self, session, quote):
        quote_service.set_discount_value(session, quote, 50)

        assert quote.discount_value == Decimal('50.00')
        assert quote.discount_percent == Decimal('20.00')

    def test_over_discount_is_clamped(self, session, make_quote):
        quote = make_quote([('Serviço', 1, 80, 0)])

        quote_service.set_discount_value(session, quote, 200)

        assert quote.discount_value == Decimal('80.00')
        assert quote.totals.total == Decimal('0.00')

    def test_percent_is_clamped_to_100(self, session, quote):
        quote_service.set_discount_percent(session, quote, 150)

        assert quote.discount_percent == Decimal('100.00')
        assert quote.discount_value == Decimal('250.00')

    def test_negative_value_is_clamped_to_zero(self, session, quote):
        quote_service.set_discount_value(session, quote, -10)

        assert quote.discount_value == Decimal('0.00')
        assert quote.discount_percent == Decimal('0.00')

    def test_removing_all_items_zeroes_discount(self, session, quote):
        quote_service.set_discount_percent(session, quote, 10)
        for line_id in [line.id for line in quote.lines]:
            quote_service.remove_line(session, quote, line_id)

        assert quote.discount_value == 0
        assert quote.discount_percent == 0

    def test_value_discount_survives_edits_that_keep_subtotal(self, session, make_quote):
        quote = make_quote([('Obra', 1, '10000.00', 0)])
        quote_service.set_discount_value(session, quote, '1234.56')
        line_id = quote.lines[0].id

        quote_service.update_line(session, quote, line_id, description='Obra completa', unit='m²')
        quote_service.add_line(session, quote, 'Brinde', quantity=1, unit_price=0)

        assert quote.discount_value == Decimal('1234.56')
        assert quote.totals.total == Decimal('8765.44')

    def test_subtotal_change_rederives_from_percent(self, session, make_quote):
        quote = make_quote([('Obra', 1, '10000.00', 0)])
        quote_service.set_discount_value(session, quote, '1234.56')

        quote_service.update_line(session, quote, quote.lines[0].id, unit_price='20000.00')

        assert quote.discount_percent == Decimal('12.35')
        assert quote.discount_value == Decimal('2470.00')

    def test_discount_never_exceeds_subtotal_after_edit(self, session, quote):
        quote_service.set_discount_value(session, quote, 240)

        quote_service.update_line(session, quote, quote.lines[1].id, unit_price=10)

        assert quote.totals.subtotal == Decimal('110.00')
        assert quote.discount_value <= quote.totals.subtotal
        assert quote.totals.total >= 0


class TestEditingLock:
    """Approved and rejected quotes are read-only."""

    @pytest.mark.parametrize('action', [QuoteAction.MARK_APPROVED, QuoteAction.MARK_REJECTED])
    def test_finalized_quote_refuses_edits(self, session, quote, action):
        quote_service.change_status(session, quote, action)

        with pytest.raises(BusinessLogicError) as exc:
            quote_service.add_line(session, quote, 'Extra', quantity=1, unit_price=1)
        assert exc.value.status_code == 409

        with pytest.raises(BusinessLogicError):
            quote_service.set_discount_percent(session, quote, 5)
        with pytest.raises(BusinessLogicError):
            quote_service.update_quote_details(session, quote, notes='novo')

    def test_negotiating_quote_is_editable(self, session, quote):
        quote_service.change_status(session, quote, 'requestAdjustment', feedback='reduzir preço')

        quote_service.set_discount_value(session, quote, 20)

        assert quote.discount_value == Decimal('20.00')


class TestStatusPersistence:
    def test_negotiation_round_trip_is_persisted(self, session, quote):
        quote_service.change_status(session, quote, 'requestAdjustment', feedback='reduce price')
        session.expire_all()
        stored = session.query(Quote).filter_by(id=quote.id).one()
        assert stored.status == 'negotiating'
        assert stored.client_feedback == 'reduce price'

        quote_service.change_status(session, stored, QuoteAction.RESEND)
        session.expire_all()
        stored = session.query(Quote).filter_by(id=quote.id).one()
        assert stored.status == 'pending'
        assert stored.client_feedback is None

    def test_invalid_transition_leaves_row_untouched(self, session, quote):
        quote_service.change_status(session, quote, QuoteAction.SIGN, signature='sig')

        with pytest.raises(InvalidTransitionError):
            quote_service.change_status(session, quote, 'reject', feedback='tarde demais')

        session.expire_all()
        stored = session.query(Quote).filter_by(id=quote.id).one()
        assert stored.status == 'approved'
        assert stored.client_feedback is None


class TestDuplicateAndDelete:
    def test_duplicate_resets_workflow(self, session, quote):
        quote_service.set_discount_percent(session, quote, 10)
        quote_service.change_status(session, quote, QuoteAction.SIGN, signature='sig')

        clone = quote_service.duplicate_quote(session, quote)

        assert clone.id != quote.id
        assert clone.quote_number == 'ORC2'
        assert clone.status == 'pending'
        assert clone.signature is None
        assert clone.client_feedback is None
        assert clone.due_date is None
        assert clone.public_token != quote.public_token
        assert [line.description for line in clone.lines] == ['Pintura', 'Reparo']
        assert clone.totals.total == Decimal('225.00')

    def test_delete_removes_lines(self, session, quote):
        quote_id = quote.id

        quote_service.delete_quote(session, quote)

        assert session.query(Quote).filter_by(id=quote_id).first() is None


class TestListQuotes:
    def test_search_and_status_filter(self, session, make_quote):
        make_quote(client_name='Padaria Central')
        second = make_quote(client_name='Oficina do Zé')
        quote_service.change_status(session, second, QuoteAction.MARK_REJECTED)

        by_name = quote_service.list_quotes(session, second.owner_id, search='padaria')
        by_number = quote_service.list_quotes(session, second.owner_id, search='ORC2')
        rejected = quote_service.list_quotes(session, second.owner_id, status='rejected')

        assert [q.client_name for q in by_name['data']] == ['Padaria Central']
        assert [q.quote_number for q in by_number['data']] == ['ORC2']
        assert rejected['total'] == 1

    def test_pagination(self, session, owner, make_quote):
        for _ in range(5):
            make_quote()

        page = quote_service.list_quotes(session, owner.id, page=2, per_page=2)

        assert page['total'] == 5
        assert page['total_pages'] == 3
        assert len(page['data']) == 2


class TestQuoteToDict:
    def test_public_dict_has_no_cost_or_profit(self, quote):
        data = quote_service.quote_to_dict(quote)

        assert 'profit' not in data
        assert 'public_token' not in data
        assert all('cost' not in item for item in data['items'])
        assert data['totals'] == {'subtotal': '250.00', 'discount': '0.00', 'total': '250.00'}
        assert data['allowed_actions'] == ['approve', 'reject', 'requestAdjustment']

    def test_owner_dict_has_profit(self, quote):
        data = quote_service.quote_to_dict(quote, include_profit=True)

        assert data['profit']['total_cost'] == '100.00'
        assert data['profit']['net_profit'] == '150.00'
        assert data['profit']['margin_percent'] == '60.00'
        assert data['items'][0]['cost'] == '20.00'
        assert 'sign' in data['allowed_actions']
