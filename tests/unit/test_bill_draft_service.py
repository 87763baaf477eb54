"""
Unit tests for the persistent draft (cart) and the bill arithmetic.
"""

import pytest
from decimal import Decimal
from types import SimpleNamespace

from invoicer.services import bill_draft_service
from invoicer.exceptions import (
    BusinessLogicError, NotFoundError, InsufficientStockError, InvalidBillRequestError
)


def _line(rate, quantity):
    return SimpleNamespace(rate=Decimal(rate), quantity=quantity)


class TestBillArithmetic:
    """Pure totals."""

    def test_line_total(self):
        assert bill_draft_service.line_total(Decimal('45.00'), 2) == Decimal('90.00')

    def test_compute_totals_with_discount(self):
        totals = bill_draft_service.compute_totals([_line('45.00', 2)], 10)

        assert totals['sub_total'] == Decimal('90.00')
        assert totals['discount_amount'] == Decimal('9.00')
        assert totals['grand_total'] == Decimal('81.00')

    def test_sub_total_is_sum_of_line_totals(self):
        lines = [_line('45.00', 2), _line('30.00', 3), _line('12.35', 1)]
        totals = bill_draft_service.compute_totals(lines, 0)

        assert totals['sub_total'] == Decimal('192.35')
        assert totals['discount_amount'] == Decimal('0.00')
        assert totals['grand_total'] == totals['sub_total']

    def test_discount_amount_rounds_half_up_to_cents(self):
        # 10.05 * 5% = 0.5025 -> 0.50; 10.10 * 5% = 0.505 -> 0.51
        assert bill_draft_service.compute_totals([_line('10.05', 1)], 5)['discount_amount'] == Decimal('0.50')
        assert bill_draft_service.compute_totals([_line('10.10', 1)], 5)['discount_amount'] == Decimal('0.51')

    def test_empty_cart_totals_are_zero(self):
        totals = bill_draft_service.compute_totals([], 10)
        assert totals == {
            'sub_total': Decimal('0.00'),
            'discount_amount': Decimal('0.00'),
            'grand_total': Decimal('0.00'),
        }


class TestDraftLifecycle:
    """Cart mutations."""

    def test_get_or_create_draft_is_one_per_user(self, session, staff_user):
        first = bill_draft_service.get_or_create_draft(session, staff_user.id)
        second = bill_draft_service.get_or_create_draft(session, staff_user.id)

        assert first.id == second.id

    def test_add_line_requires_customer(self, session, staff_user, keyboard):
        draft = bill_draft_service.get_or_create_draft(session, staff_user.id)

        with pytest.raises(InvalidBillRequestError):
            bill_draft_service.add_line(session, draft, keyboard.id, 1)

    def test_select_unknown_customer(self, session, staff_user):
        draft = bill_draft_service.get_or_create_draft(session, staff_user.id)

        with pytest.raises(NotFoundError):
            bill_draft_service.select_customer(session, draft, 9999)

    def test_rate_follows_customer_type(self, session, staff_user, keyboard, wholesale_customer):
        draft = bill_draft_service.get_or_create_draft(session, staff_user.id)
        bill_draft_service.select_customer(session, draft, wholesale_customer.id)

        line = bill_draft_service.add_line(session, draft, keyboard.id, 2)

        assert line.rate == Decimal('35.00')
        assert line.total == Decimal('70.00')

    def test_add_existing_product_increments_quantity(self, session, staff_user, keyboard, retail_customer):
        draft = bill_draft_service.get_or_create_draft(session, staff_user.id)
        bill_draft_service.select_customer(session, draft, retail_customer.id)

        bill_draft_service.add_line(session, draft, keyboard.id, 1)
        line = bill_draft_service.add_line(session, draft, keyboard.id, 2)

        assert len(draft.lines) == 1
        assert line.quantity == 3
        assert line.total == Decimal('135.00')

    def test_add_line_over_stock_is_rejected_without_mutation(self, session, staff_user, keyboard, retail_customer):
        draft = bill_draft_service.get_or_create_draft(session, staff_user.id)
        bill_draft_service.select_customer(session, draft, retail_customer.id)
        bill_draft_service.add_line(session, draft, keyboard.id, 49)

        with pytest.raises(InsufficientStockError) as exc_info:
            bill_draft_service.add_line(session, draft, keyboard.id, 2)

        assert exc_info.value.status_code == 409
        assert exc_info.value.available == 50
        assert draft.find_line(keyboard.id).quantity == 49

    def test_add_line_rejects_zero_quantity(self, session, staff_user, keyboard, retail_customer):
        draft = bill_draft_service.get_or_create_draft(session, staff_user.id)
        bill_draft_service.select_customer(session, draft, retail_customer.id)

        with pytest.raises(BusinessLogicError):
            bill_draft_service.add_line(session, draft, keyboard.id, 0)

    def test_rate_is_frozen_after_price_change(self, session, staff_user, keyboard, retail_customer):
        draft = bill_draft_service.get_or_create_draft(session, staff_user.id)
        bill_draft_service.select_customer(session, draft, retail_customer.id)
        bill_draft_service.add_line(session, draft, keyboard.id, 1)

        keyboard.retail_price = Decimal('99.00')
        session.flush()
        line = bill_draft_service.add_line(session, draft, keyboard.id, 1)

        assert line.rate == Decimal('45.00')

    def test_set_quantity(self, session, staff_user, keyboard, retail_customer):
        draft = bill_draft_service.get_or_create_draft(session, staff_user.id)
        bill_draft_service.select_customer(session, draft, retail_customer.id)
        bill_draft_service.add_line(session, draft, keyboard.id, 1)

        line = bill_draft_service.set_quantity(session, draft, keyboard.id, 4)
        assert line.total == Decimal('180.00')

        with pytest.raises(BusinessLogicError):
            bill_draft_service.set_quantity(session, draft, keyboard.id, 0)
        with pytest.raises(InsufficientStockError):
            bill_draft_service.set_quantity(session, draft, keyboard.id, 51)
        assert line.quantity == 4

    def test_set_quantity_of_missing_line(self, session, staff_user, keyboard):
        draft = bill_draft_service.get_or_create_draft(session, staff_user.id)

        with pytest.raises(NotFoundError):
            bill_draft_service.set_quantity(session, draft, keyboard.id, 1)

    def test_remove_line_and_clear(self, session, staff_user, keyboard, monitor, retail_customer):
        draft = bill_draft_service.get_or_create_draft(session, staff_user.id)
        bill_draft_service.select_customer(session, draft, retail_customer.id)
        bill_draft_service.add_line(session, draft, keyboard.id, 1)
        bill_draft_service.add_line(session, draft, monitor.id, 1)

        bill_draft_service.remove_line(session, draft, keyboard.id)
        assert [line.product_id for line in draft.lines] == [monitor.id]

        bill_draft_service.clear_draft(session, draft)
        assert draft.lines == []
        assert draft.customer is None

    def test_draft_to_dict(self, session, staff_user, keyboard, retail_customer):
        draft = bill_draft_service.get_or_create_draft(session, staff_user.id)
        bill_draft_service.select_customer(session, draft, retail_customer.id)
        bill_draft_service.add_line(session, draft, keyboard.id, 2)

        data = bill_draft_service.draft_to_dict(draft)

        assert data['customer']['name'] == 'Jane Smith'
        assert data['lines'][0]['rate'] == '45.00'
        assert data['sub_total'] == '90.00'
