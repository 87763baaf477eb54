"""
Integration tests for reports, health and metrics endpoints.
"""


class TestReports:

    def test_summary(self, admin_client, keyboard, retail_customer, wholesale_customer):
        customer_id, keyboard_id = retail_customer.id, keyboard.id
        admin_client.post('/billing/draft/customer', json={'customer_id': customer_id})
        admin_client.post('/billing/draft/lines', json={'product_id': keyboard_id, 'quantity': 2})
        admin_client.post('/billing/finalize', json={'discount_percentage': 10, 'payment_method': 'Credit', 'amount_paid': 31})

        summary = admin_client.get('/reports/summary').get_json()

        assert summary['total_sales'] == '81.00'
        assert summary['retail_sales'] == '81.00'
        assert summary['wholesale_sales'] == '0.00'
        assert summary['total_outstanding'] == '5025.20'
        assert summary['bill_count'] == 1
        assert summary['sales_by_type'] == [
            {'name': 'Retail', 'value': '81.00'},
            {'name': 'Wholesale', 'value': '0.00'},
        ]
        assert len(summary['monthly_sales']) == 1
        assert summary['monthly_sales'][0]['sales'] == '81.00'
        assert summary['aging'][0] == {'name': '0-30', 'value': '50.00'}
        assert [row['name'] for row in summary['aging']] == ['0-30', '31-60', '61-90', '90+']

    def test_summary_is_stable(self, admin_client):
        assert admin_client.get('/reports/summary').get_json() == admin_client.get('/reports/summary').get_json()

    def test_insights_fallback(self, admin_client):
        response = admin_client.post('/reports/insights')

        assert response.status_code == 200
        assert response.get_json()['insights'] == 'AI service is not available.'


class TestOperations:

    def test_health(self, client):
        response = client.get('/health')

        assert response.status_code == 200
        assert response.get_json()['database'] == 'connected'

    def test_metrics(self, client, staff_client, keyboard, retail_customer):
        customer_id, keyboard_id = retail_customer.id, keyboard.id
        staff_client.post('/billing/draft/customer', json={'customer_id': customer_id})
        staff_client.post('/billing/draft/lines', json={'product_id': keyboard_id, 'quantity': 1})
        staff_client.post('/billing/finalize', json={'payment_method': 'Cash'})

        response = client.get('/metrics')
        body = response.get_data(as_text=True)

        assert response.status_code == 200
        assert 'invoicer_http_requests_total' in body
        assert 'invoicer_bills_finalized_total{payment_method="Cash"}' in body

    def test_unknown_route_is_json(self, client):
        response = client.get('/nowhere')

        assert response.status_code == 404
        assert response.get_json() == {'status': 'error', 'message': 'Not Found'}
