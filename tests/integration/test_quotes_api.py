"""
Integration tests for the owner-facing quotes API.
"""

from app.models import Quote


class TestAuthRequired:
    def test_requires_login(self, client):
        response = client.get('/quotes')

        assert response.status_code == 401
        assert response.get_json()['status'] == 'error'

    def test_requires_company(self, client, session):
        response = client.post('/auth/register', json={
            'email': 'novo@test.com', 'password': 'segredo123', 'full_name': 'Novo Dono'
        })
        assert response.status_code == 201
        assert response.get_json()['onboarding_required'] is True

        response = client.get('/quotes')

        assert response.status_code == 403
        assert response.get_json()['onboarding_required'] is True


class TestQuoteLifecycleApi:
    """Create, edit and price a quote through the API."""

    def test_create_and_edit(self, authenticated_client, saved_client):
        client_id = saved_client.id

        response = authenticated_client.post('/quotes', json={'client_id': client_id})
        assert response.status_code == 201
        data = response.get_json()
        assert data['number'] == 'ORC1'
        assert data['status'] == 'pending'
        assert data['client']['name'] == 'Maria Souza'
        assert data['notes']
        quote_id = data['id']

        response = authenticated_client.post(f'/quotes/{quote_id}/items', json={
            'description': 'Pintura', 'quantity': 2, 'unit_price': 100, 'cost': 40
        })
        assert response.status_code == 201
        response = authenticated_client.post(f'/quotes/{quote_id}/items', json={
            'description': 'Material', 'quantity': 1, 'unit_price': 50, 'kind': 'product', 'unit': 'cx'
        })
        data = response.get_json()
        assert data['totals'] == {'subtotal': '250.00', 'discount': '0.00', 'total': '250.00'}
        assert [item['description'] for item in data['items']] == ['Pintura', 'Material']

        response = authenticated_client.put(f'/quotes/{quote_id}/discount', json={'percent': 10})
        data = response.get_json()
        assert data['discount_value'] == '25.00'
        assert data['totals']['total'] == '225.00'

        material_id = data['items'][1]['id']
        response = authenticated_client.post(f'/quotes/{quote_id}/items/{material_id}/move/up')
        data = response.get_json()
        assert [item['description'] for item in data['items']] == ['Material', 'Pintura']

        response = authenticated_client.delete(f'/quotes/{quote_id}/items/{material_id}')
        data = response.get_json()
        assert data['totals']['subtotal'] == '200.00'
        assert data['discount_value'] == '20.00'
        assert data['totals']['total'] == '180.00'

    def test_update_item_partial(self, authenticated_client, quote):
        quote_id = quote.id
        line_id = quote.lines[0].id

        response = authenticated_client.patch(f'/quotes/{quote_id}/items/{line_id}', json={'quantity': 3})

        data = response.get_json()
        assert response.status_code == 200
        assert data['items'][0]['description'] == 'Pintura'
        assert data['items'][0]['quantity'] == '3'
        assert data['totals']['subtotal'] == '300.00'

    def test_add_from_catalog(self, authenticated_client, quote, catalog_item):
        quote_id = quote.id
        item_id = catalog_item.id

        response = authenticated_client.post(f'/quotes/{quote_id}/items/from-catalog',
                                             json={'catalog_item_id': item_id, 'quantity': 2})

        data = response.get_json()
        assert response.status_code == 201
        assert data['items'][-1]['description'] == 'Instalação elétrica'
        assert data['totals']['subtotal'] == '650.00'

    def test_over_discount_is_clamped(self, authenticated_client, quote):
        quote_id = quote.id

        response = authenticated_client.put(f'/quotes/{quote_id}/discount', json={'value': 999})

        data = response.get_json()
        assert response.status_code == 200
        assert data['discount_value'] == '250.00'
        assert data['totals']['total'] == '0.00'

    def test_discount_needs_value_or_percent(self, authenticated_client, quote):
        quote_id = quote.id

        response = authenticated_client.put(f'/quotes/{quote_id}/discount', json={})

        assert response.status_code == 400
        assert 'errors' in response.get_json()

    def test_discount_rejects_value_and_percent_together(self, authenticated_client, quote):
        quote_id = quote.id

        response = authenticated_client.put(f'/quotes/{quote_id}/discount', json={'value': 10, 'percent': 5})

        assert response.status_code == 400
        assert 'value' in response.get_json()['errors']

    def test_blank_client_name_keeps_selected_client(self, authenticated_client, quote, saved_client):
        quote_id = quote.id
        client_id = saved_client.id

        response = authenticated_client.put(f'/quotes/{quote_id}', json={'client_id': client_id, 'client_name': ''})

        data = response.get_json()
        assert response.status_code == 200
        assert data['client']['name'] == 'Maria Souza'

    def test_item_validation(self, authenticated_client, quote):
        quote_id = quote.id

        response = authenticated_client.post(f'/quotes/{quote_id}/items', json={'quantity': 1})

        assert response.status_code == 400
        assert 'description' in response.get_json()['errors']

    def test_summary_has_profit(self, authenticated_client, quote):
        quote_id = quote.id

        response = authenticated_client.get(f'/quotes/{quote_id}/summary')

        data = response.get_json()
        assert response.status_code == 200
        assert data['profit'] == {
            'total_cost': '100.00',
            'gross_profit': '150.00',
            'net_profit': '150.00',
            'margin_percent': '60.00',
        }

    def test_pdf(self, authenticated_client, quote):
        quote_id = quote.id

        response = authenticated_client.get(f'/quotes/{quote_id}/pdf')

        assert response.status_code == 200
        assert response.mimetype == 'application/pdf'
        assert response.data.startswith(b'%PDF')

    def test_list_and_search(self, authenticated_client, make_quote):
        make_quote(client_name='Padaria Central')
        make_quote(client_name='Oficina')

        response = authenticated_client.get('/quotes?q=padaria')

        data = response.get_json()
        assert data['total'] == 1
        assert data['data'][0]['client']['name'] == 'Padaria Central'

    def test_duplicate(self, authenticated_client, quote):
        quote_id = quote.id

        response = authenticated_client.post(f'/quotes/{quote_id}/duplicate')

        data = response.get_json()
        assert response.status_code == 201
        assert data['number'] == 'ORC2'
        assert len(data['items']) == 2

    def test_delete(self, authenticated_client, quote, session):
        quote_id = quote.id

        response = authenticated_client.delete(f'/quotes/{quote_id}')

        assert response.status_code == 200
        assert session.query(Quote).filter_by(id=quote_id).first() is None


class TestOwnerStatusActions:
    def test_sign_approves_and_locks(self, authenticated_client, quote):
        quote_id = quote.id

        response = authenticated_client.post(f'/quotes/{quote_id}/sign', json={'signature': 'data:image/png;base64,AA'})
        data = response.get_json()
        assert data['status'] == 'approved'
        assert data['signature'] == 'data:image/png;base64,AA'
        assert data['allowed_actions'] == []

        response = authenticated_client.post(f'/quotes/{quote_id}/items', json={'description': 'Extra'})
        assert response.status_code == 409

        response = authenticated_client.post(f'/quotes/{quote_id}/status/resend')
        assert response.status_code == 409
        assert response.get_json()['current_status'] == 'approved'

    def test_sign_requires_signature(self, authenticated_client, quote):
        quote_id = quote.id

        response = authenticated_client.post(f'/quotes/{quote_id}/sign', json={})

        assert response.status_code == 400

    def test_reject_then_resend(self, authenticated_client, quote):
        quote_id = quote.id

        response = authenticated_client.post(f'/quotes/{quote_id}/status/mark_rejected',
                                             json={'feedback': 'Cliente desistiu'})
        data = response.get_json()
        assert data['status'] == 'rejected'
        assert data['client_feedback'] == 'Cliente desistiu'

        response = authenticated_client.post(f'/quotes/{quote_id}/status/resend')
        data = response.get_json()
        assert data['status'] == 'pending'
        assert data['client_feedback'] is None

    def test_owner_cannot_use_client_actions(self, authenticated_client, quote):
        quote_id = quote.id

        response = authenticated_client.post(f'/quotes/{quote_id}/status/approve')

        assert response.status_code == 400

    def test_unknown_action(self, authenticated_client, quote):
        quote_id = quote.id

        response = authenticated_client.post(f'/quotes/{quote_id}/status/archive')

        assert response.status_code == 409
