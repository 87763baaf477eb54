"""
Unit tests for default data, export and import.
"""

import json
from decimal import Decimal

from invoicer.models import AppUser, Product, Customer, Bill, Payment
from invoicer.services import data_service, bill_draft_service, billing_service, customer_service


class TestSeedDefaults:

    def test_seed_empty_database(self, session):
        created = data_service.seed_defaults(session)

        assert created == {'products': 6, 'customers': 4, 'users': 2}
        assert session.query(Product).filter_by(item_code='KB001').one().stock == 50
        jane = session.query(Customer).filter_by(name='Jane Smith').one()
        assert jane.outstanding_balance == Decimal('75.20')
        admin = session.query(AppUser).filter_by(username='admin').one()
        assert admin.check_password('admin123')

    def test_seed_leaves_existing_rows_alone(self, session, keyboard, admin_user):
        created = data_service.seed_defaults(session)

        assert created == {'products': 0, 'customers': 4, 'users': 0}
        assert session.query(Product).count() == 1


class TestExportImport:

    def test_export_then_import_restores_ledger(self, session, staff_user, keyboard, retail_customer, tmp_path):
        draft = bill_draft_service.get_or_create_draft(session, staff_user.id)
        bill_draft_service.select_customer(session, draft, retail_customer.id)
        bill_draft_service.add_line(session, draft, keyboard.id, 2)
        bill = billing_service.finalize_bill(session, draft, payment_method='Credit', amount_paid='10')
        customer_service.record_payment(session, retail_customer.id, '30', bill_id=bill.id)
        bill_number = bill.bill_number

        path = tmp_path / 'snapshot.json'
        counts = data_service.export_to_file(session, str(path))
        assert counts == {'products': 1, 'customers': 1, 'bills': 1, 'payments': 1}

        snapshot = json.loads(path.read_text())
        assert snapshot['bills'][0]['items'][0]['rate'] == '45.00'

        # Mutate, then restore
        catalog_product = session.get(Product, keyboard.id)
        catalog_product.stock = 0
        session.commit()

        data_service.import_from_file(session, str(path))

        assert session.query(Product).one().stock == 48
        assert session.query(Customer).one().outstanding_balance == Decimal('125.20')
        restored = session.query(Bill).one()
        assert restored.bill_number == bill_number
        assert restored.items[0].quantity == 2
        assert session.query(Payment).one().amount == Decimal('30.00')
        assert session.query(AppUser).count() == 1

    def test_missing_file_seeds_empty_database(self, session, tmp_path):
        counts = data_service.import_from_file(session, str(tmp_path / 'nope.json'))

        assert counts['products'] == 6
        assert counts['customers'] == 4
        assert session.query(Product).count() == 6
        assert session.query(AppUser).count() == 0

    def test_missing_file_keeps_existing_ledger(self, session, staff_user, keyboard, retail_customer, tmp_path):
        draft = bill_draft_service.get_or_create_draft(session, staff_user.id)
        bill_draft_service.select_customer(session, draft, retail_customer.id)
        bill_draft_service.add_line(session, draft, keyboard.id, 1)
        billing_service.finalize_bill(session, draft, payment_method='Cash')

        counts = data_service.import_from_file(session, str(tmp_path / 'bakup.json'))

        assert counts == {'products': 0, 'customers': 0, 'users': 0}
        assert session.query(Bill).count() == 1
        assert session.query(Product).one().stock == 49
        assert session.query(Customer).one().name == 'Jane Smith'

    def test_corrupt_file_only_fills_empty_tables(self, session, keyboard, tmp_path):
        path = tmp_path / 'broken.json'
        path.write_text('{"products": [')

        data_service.import_from_file(session, str(path))

        assert session.query(Customer).filter_by(name='Gadget World').count() == 1
        assert session.query(Product).one().item_code == 'KB001'

    def test_invalid_record_rolls_back_and_keeps_data(self, session, keyboard, tmp_path):
        path = tmp_path / 'bad.json'
        path.write_text(json.dumps({'products': [{'name': 'No code'}]}))

        data_service.import_from_file(session, str(path))

        assert session.query(Product).one().item_code == 'KB001'
