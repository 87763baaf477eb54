"""Customers blueprint - customer records, payments and history."""
from decimal import Decimal
from flask import Blueprint, request, jsonify, current_app
from invoicer.database import get_session
from invoicer.middleware import require_admin, require_billing
from invoicer.services import customer_service
from invoicer.exceptions import BusinessLogicError
from invoicer.utils.number_format import parse_decimal, to_money

customers_bp = Blueprint('customers', __name__, url_prefix='/customers')


@customers_bp.route('/', methods=['GET'])
@require_billing
def list_customers():
    """Customer list; also feeds the customer picker of the billing screen."""
    q = request.args.get('q', '').strip() or None
    customers = customer_service.list_customers(get_session(), q)
    return jsonify({'customers': [c.to_dict() for c in customers]})


@customers_bp.route('/', methods=['POST'])
@require_admin
def create_customer():
    data = request.get_json(silent=True) or {}
    customer = customer_service.create_customer(get_session(), data)
    return jsonify({'status': 'success', 'customer': customer.to_dict()}), 201


@customers_bp.route('/<int:customer_id>', methods=['GET'])
@require_admin
def get_customer(customer_id):
    customer = customer_service.get_customer(get_session(), customer_id)
    return jsonify({'customer': customer.to_dict()})


@customers_bp.route('/<int:customer_id>', methods=['PUT'])
@require_admin
def update_customer(customer_id):
    data = request.get_json(silent=True) or {}
    customer = customer_service.update_customer(get_session(), customer_id, data)
    return jsonify({'status': 'success', 'customer': customer.to_dict()})


@customers_bp.route('/<int:customer_id>/payments', methods=['POST'])
@require_admin
def record_payment(customer_id):
    """Apply a payment to the customer's outstanding balance."""
    session = get_session()
    customer = customer_service.get_customer(session, customer_id)
    data = request.get_json(silent=True) or {}

    try:
        amount = to_money(parse_decimal(data.get('amount'), 'amount'))
    except ValueError:
        raise BusinessLogicError('Invalid amount.')

    if amount <= 0:
        raise BusinessLogicError('Payment amount must be greater than 0.')

    bill_id = data.get('bill_id')
    if bill_id is not None:
        try:
            bill_id = int(bill_id)
        except (TypeError, ValueError):
            raise BusinessLogicError('Invalid bill id.')

    current_due = customer.outstanding_balance or Decimal('0')
    if amount > current_due:
        if current_due <= 0:
            raise BusinessLogicError('This customer has no outstanding balance.')
        current_app.logger.info(f"Payment of {amount} capped at balance {current_due} for customer {customer_id}")
        amount = current_due  # Cap at remaining balance

    payment = customer_service.record_payment(session, customer_id, amount, bill_id=bill_id)

    return jsonify({
        'status': 'success',
        'payment': payment.to_dict(),
        'customer': customer.to_dict(),
    }), 201


@customers_bp.route('/<int:customer_id>/history', methods=['GET'])
@require_admin
def customer_history(customer_id):
    history = customer_service.get_customer_history(get_session(), customer_id)
    return jsonify({
        'customer': history['customer'].to_dict(),
        'bills': [b.to_dict(include_items=False) for b in history['bills']],
        'payments': [p.to_dict() for p in history['payments']],
    })
