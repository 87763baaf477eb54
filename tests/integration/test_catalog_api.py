"""
Integration tests for the catalog endpoints.
"""

import requests

from invoicer.models import Product
from invoicer.services import ai_service


class TestProductCrud:

    def test_create_and_list(self, admin_client):
        response = admin_client.post('/catalog/products', json={
            'item_code': 'HS005',
            'name': 'Noise-Cancelling Headphones',
            'stock': 30,
            'retail_price': '120',
            'wholesale_price': '95',
        })

        assert response.status_code == 201
        product = response.get_json()['product']
        assert product['retail_price'] == '120.00'

        listed = admin_client.get('/catalog/products?q=noise').get_json()['products']
        assert [p['item_code'] for p in listed] == ['HS005']

    def test_create_validation_error(self, admin_client):
        response = admin_client.post('/catalog/products', json={'item_code': 'X1'})

        assert response.status_code == 400
        assert response.get_json()['message'] == 'Item Code and Name are required.'

    def test_duplicate_item_code(self, admin_client, keyboard):
        response = admin_client.post('/catalog/products', json={'item_code': 'KB001', 'name': 'Dup'})
        assert response.status_code == 400

    def test_update(self, admin_client, session, keyboard):
        keyboard_id = keyboard.id

        response = admin_client.put(f'/catalog/products/{keyboard_id}', json={'stock': 60, 'description': 'Quiet keys'})

        assert response.status_code == 200
        assert session.get(Product, keyboard_id).stock == 60
        assert admin_client.get(f'/catalog/products/{keyboard_id}').get_json()['product']['description'] == 'Quiet keys'

    def test_delete(self, admin_client, session, keyboard):
        keyboard_id = keyboard.id

        assert admin_client.delete(f'/catalog/products/{keyboard_id}').status_code == 200
        assert admin_client.get(f'/catalog/products/{keyboard_id}').status_code == 404
        assert session.query(Product).count() == 0

    def test_search_is_limited(self, staff_client, session):
        for i in range(8):
            session.add(Product(item_code=f'LP{i:03d}', name=f'Laptop Stand {i}', stock=1,
                                retail_price=25, wholesale_price=18))
        session.commit()

        products = staff_client.get('/catalog/products/search?q=stand').get_json()['products']
        assert len(products) == 5
        assert staff_client.get('/catalog/products/search').get_json()['products'] == []


class TestDescribe:

    def test_fallback_without_key(self, admin_client):
        response = admin_client.post('/catalog/products/describe', json={'name': 'Laptop Stand'})

        assert response.status_code == 200
        assert response.get_json()['description'] == 'AI service is not available.'

    def test_empty_name(self, admin_client):
        assert admin_client.post('/catalog/products/describe', json={'name': ''}).status_code == 400

    def test_failure_is_not_an_http_error(self, app, admin_client, monkeypatch):
        def fake_post(*args, **kwargs):
            raise requests.Timeout('slow')

        monkeypatch.setattr(ai_service.requests, 'post', fake_post)
        monkeypatch.setitem(app.config, 'GEMINI_API_KEY', 'test-key')

        response = admin_client.post('/catalog/products/describe', json={'name': 'Laptop Stand'})

        assert response.status_code == 200
        assert response.get_json()['description'] == 'Failed to generate description.'
