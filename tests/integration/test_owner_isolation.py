"""
Critical integration tests for owner isolation.
These tests ensure one business owner never reaches another owner's data.
"""

from app.models import Client, CatalogItem


class TestQuoteIsolation:
    """Quotes are scoped to their owner."""

    def test_cannot_read_other_owner_quote(self, authenticated_client, make_quote, other_owner):
        foreign_id = make_quote(owner_id=other_owner.id).id

        assert authenticated_client.get(f'/quotes/{foreign_id}').status_code == 404
        assert authenticated_client.get(f'/quotes/{foreign_id}/summary').status_code == 404
        assert authenticated_client.get(f'/quotes/{foreign_id}/pdf').status_code == 404

    def test_cannot_edit_other_owner_quote(self, authenticated_client, make_quote, other_owner):
        foreign = make_quote([('Serviço', 1, 100, 0)], owner_id=other_owner.id)
        foreign_id = foreign.id
        line_id = foreign.lines[0].id

        assert authenticated_client.post(f'/quotes/{foreign_id}/items',
                                         json={'description': 'x'}).status_code == 404
        assert authenticated_client.delete(f'/quotes/{foreign_id}/items/{line_id}').status_code == 404
        assert authenticated_client.post(f'/quotes/{foreign_id}/status/mark_approved').status_code == 404
        assert authenticated_client.delete(f'/quotes/{foreign_id}').status_code == 404

    def test_list_only_shows_own_quotes(self, authenticated_client, make_quote, other_owner):
        make_quote()
        make_quote(owner_id=other_owner.id)

        data = authenticated_client.get('/quotes').get_json()

        assert data['total'] == 1


class TestClientAndCatalogIsolation:
    def test_clients_are_scoped(self, authenticated_client, session, other_owner):
        session.add(Client(owner_id=other_owner.id, name='Cliente Alheio'))
        session.commit()

        data = authenticated_client.get('/clients').get_json()

        assert data['total'] == 0

    def test_cannot_copy_other_owner_catalog_item(self, authenticated_client, make_quote, session, other_owner):
        item = CatalogItem(owner_id=other_owner.id, description='Item alheio', default_price=10)
        session.add(item)
        session.commit()
        item_id = item.id
        quote_id = make_quote().id

        response = authenticated_client.post(f'/quotes/{quote_id}/items/from-catalog',
                                             json={'catalog_item_id': item_id})

        assert response.status_code == 404

    def test_cannot_use_other_owner_client_on_quote(self, authenticated_client, make_quote, session, other_owner):
        foreign = Client(owner_id=other_owner.id, name='Cliente Alheio')
        session.add(foreign)
        session.commit()
        foreign_id = foreign.id
        quote_id = make_quote().id

        response = authenticated_client.put(f'/quotes/{quote_id}', json={'client_id': foreign_id})

        assert response.status_code == 404
