"""Billing blueprint - persistent draft, preview, finalize and bill documents."""
from typing import Any, Dict
from flask import Blueprint, request, jsonify, g, send_file, current_app
from invoicer.database import get_session
from invoicer.middleware import require_admin, require_billing
from invoicer.services import bill_draft_service, billing_service
from invoicer.services.bill_pdf_service import render_bill_pdf, bill_pdf_filename, business_info_from_config
from invoicer.exceptions import InvoicerError, BusinessLogicError
from invoicer.utils.number_format import parse_quantity

billing_bp = Blueprint('billing', __name__, url_prefix='/billing')


def _payload() -> Dict[str, Any]:
    return request.get_json(silent=True) or {}


def _parse_id(value, field: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BusinessLogicError(f'Invalid {field}.')


def _parse_quantity(value, default=None) -> int:
    try:
        return parse_quantity(value, 'quantity', default=default)
    except ValueError as e:
        raise BusinessLogicError(str(e))


def _parse_flag(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


def _bill_options(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'discount_percentage': payload.get('discount_percentage', 0),
        'payment_method': payload.get('payment_method'),
        'amount_paid': payload.get('amount_paid'),
    }


def _draft_response(draft, status=200):
    return jsonify({'draft': bill_draft_service.draft_to_dict(draft)}), status


def _apply(change):
    """Run a draft mutation and commit it, rolling back on domain errors."""
    db_session = get_session()
    try:
        draft = bill_draft_service.get_or_create_draft(db_session, g.user.id)
        change(db_session, draft)
        db_session.commit()
    except InvoicerError:
        db_session.rollback()
        raise
    return draft


@billing_bp.route('/draft', methods=['GET'])
@require_billing
def get_draft():
    draft = _apply(lambda db_session, draft: None)
    return _draft_response(draft)


@billing_bp.route('/draft', methods=['DELETE'])
@require_billing
def clear_draft():
    draft = _apply(bill_draft_service.clear_draft)
    return _draft_response(draft)


@billing_bp.route('/draft/customer', methods=['POST'])
@require_billing
def select_customer():
    """Select (or clear, with null) the customer being billed."""
    customer_id = _payload().get('customer_id')
    if customer_id is not None:
        customer_id = _parse_id(customer_id, 'customer id')

    draft = _apply(lambda db_session, draft: bill_draft_service.select_customer(db_session, draft, customer_id))
    return _draft_response(draft)


@billing_bp.route('/draft/lines', methods=['POST'])
@require_billing
def add_line():
    payload = _payload()
    product_id = _parse_id(payload.get('product_id'), 'product id')
    quantity = _parse_quantity(payload.get('quantity'), default=1)

    draft = _apply(lambda db_session, draft: bill_draft_service.add_line(db_session, draft, product_id, quantity))
    return _draft_response(draft)


@billing_bp.route('/draft/lines/<int:product_id>', methods=['PUT'])
@require_billing
def update_line(product_id):
    quantity = _parse_quantity(_payload().get('quantity'))

    draft = _apply(lambda db_session, draft: bill_draft_service.set_quantity(db_session, draft, product_id, quantity))
    return _draft_response(draft)


@billing_bp.route('/draft/lines/<int:product_id>', methods=['DELETE'])
@require_billing
def remove_line(product_id):
    draft = _apply(lambda db_session, draft: bill_draft_service.remove_line(db_session, draft, product_id))
    return _draft_response(draft)


@billing_bp.route('/draft/preview', methods=['POST'])
@require_billing
def preview():
    """Totals, payment split and credit check of the draft, nothing saved."""
    draft = _apply(lambda db_session, draft: None)
    preview_data = billing_service.preview_bill(draft, **_bill_options(_payload()))
    return jsonify({'preview': preview_data})


@billing_bp.route('/finalize', methods=['POST'])
@require_billing
def finalize():
    """
    Finalize the draft into a bill.

    Returns 409 with CreditLimitExceeded details when the bill would pass the
    customer's credit limit; resend with override_credit_limit=true to
    proceed.
    """
    payload = _payload()
    db_session = get_session()
    draft = bill_draft_service.get_or_create_draft(db_session, g.user.id)

    bill = billing_service.finalize_bill(
        db_session,
        draft,
        override_credit_limit=_parse_flag(payload.get('override_credit_limit')),
        issued_by_id=g.user.id,
        **_bill_options(payload)
    )

    current_app.logger.info(f"Bill {bill.bill_number} issued by {g.user.username}")
    return jsonify({'status': 'success', 'bill': bill.to_dict()}), 201


@billing_bp.route('/bills', methods=['GET'])
@require_admin
def list_bills():
    customer_id = request.args.get('customer_id', type=int)
    bills = billing_service.list_bills(get_session(), customer_id)
    return jsonify({'bills': [b.to_dict(include_items=False) for b in bills]})


@billing_bp.route('/bills/<int:bill_id>', methods=['GET'])
@require_billing
def get_bill(bill_id):
    bill = billing_service.get_bill(get_session(), bill_id)
    return jsonify({'bill': bill.to_dict()})


@billing_bp.route('/bills/<int:bill_id>/pdf', methods=['GET'])
@require_billing
def bill_pdf(bill_id):
    """Download the bill document."""
    bill = billing_service.get_bill(get_session(), bill_id)
    pdf_buffer = render_bill_pdf(bill, business_info_from_config(current_app.config))

    return send_file(
        pdf_buffer,
        mimetype='application/pdf',
        as_attachment=True,
        download_name=bill_pdf_filename(bill)
    )
