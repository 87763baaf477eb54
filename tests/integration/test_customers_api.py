"""
Integration tests for the customer endpoints.
"""

from decimal import Decimal

from invoicer.models import Customer, Payment


class TestCustomerCrud:

    def test_create_and_get(self, admin_client):
        response = admin_client.post('/customers/', json={
            'name': 'Gadget World', 'type': 'Wholesale', 'credit_limit': '10000', 'phone': '555-0110',
        })

        assert response.status_code == 201
        customer = response.get_json()['customer']
        assert customer['type'] == 'Wholesale'
        assert customer['outstanding_balance'] == '0.00'

        fetched = admin_client.get(f"/customers/{customer['id']}").get_json()['customer']
        assert fetched['phone'] == '555-0110'

    def test_name_required(self, admin_client):
        response = admin_client.post('/customers/', json={'type': 'Retail'})

        assert response.status_code == 400
        assert response.get_json()['message'] == 'Customer Name is required.'

    def test_update_ignores_balance(self, admin_client, session, retail_customer):
        customer_id = retail_customer.id

        response = admin_client.put(f'/customers/{customer_id}', json={'name': 'Jane S.', 'outstanding_balance': 0})

        assert response.status_code == 200
        customer = session.get(Customer, customer_id)
        assert customer.name == 'Jane S.'
        assert customer.outstanding_balance == Decimal('75.20')

    def test_missing_customer(self, admin_client):
        assert admin_client.get('/customers/404').status_code == 404


class TestPayments:

    def test_payment_settles_balance(self, admin_client, session, retail_customer):
        customer_id = retail_customer.id

        response = admin_client.post(f'/customers/{customer_id}/payments', json={'amount': '75.20'})

        assert response.status_code == 201
        body = response.get_json()
        assert body['payment']['amount'] == '75.20'
        assert body['customer']['outstanding_balance'] == '0.00'
        assert session.query(Payment).count() == 1

    def test_payment_is_capped_at_balance(self, admin_client, session, retail_customer):
        customer_id = retail_customer.id

        response = admin_client.post(f'/customers/{customer_id}/payments', json={'amount': 500})

        assert response.status_code == 201
        assert response.get_json()['payment']['amount'] == '75.20'
        assert session.get(Customer, customer_id).outstanding_balance == Decimal('0.00')

    def test_no_balance_to_pay(self, admin_client, session):
        customer = Customer(name='John Doe', credit_limit=0, outstanding_balance=0)
        session.add(customer)
        session.commit()

        response = admin_client.post(f'/customers/{customer.id}/payments', json={'amount': 10})
        assert response.status_code == 400

    def test_invalid_amount(self, admin_client, retail_customer):
        customer_id = retail_customer.id

        assert admin_client.post(f'/customers/{customer_id}/payments', json={'amount': 0}).status_code == 400
        assert admin_client.post(f'/customers/{customer_id}/payments', json={'amount': 'ten'}).status_code == 400

    def test_invalid_bill_id(self, admin_client, session, retail_customer):
        customer_id = retail_customer.id

        response = admin_client.post(f'/customers/{customer_id}/payments', json={'amount': 10, 'bill_id': 'abc'})

        assert response.status_code == 400
        assert response.get_json()['message'] == 'Invalid bill id.'
        assert session.query(Payment).count() == 0
        assert session.get(Customer, customer_id).outstanding_balance == Decimal('75.20')

    def test_history(self, admin_client, retail_customer, keyboard):
        customer_id, keyboard_id = retail_customer.id, keyboard.id
        admin_client.post('/billing/draft/customer', json={'customer_id': customer_id})
        admin_client.post('/billing/draft/lines', json={'product_id': keyboard_id, 'quantity': 1})
        bill = admin_client.post('/billing/finalize', json={'payment_method': 'Credit'}).get_json()['bill']
        admin_client.post(f'/customers/{customer_id}/payments', json={'amount': '45', 'bill_id': bill['id']})

        history = admin_client.get(f'/customers/{customer_id}/history').get_json()

        assert history['customer']['outstanding_balance'] == '75.20'
        assert [b['bill_number'] for b in history['bills']] == [bill['bill_number']]
        assert history['payments'][0]['bill_id'] == bill['id']
