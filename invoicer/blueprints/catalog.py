"""Catalog blueprint - product CRUD, billing picker and AI descriptions."""
from flask import Blueprint, request, jsonify, current_app
from invoicer.database import get_session
from invoicer.middleware import require_admin, require_billing
from invoicer.services import catalog_service

catalog_bp = Blueprint('catalog', __name__, url_prefix='/catalog')


@catalog_bp.route('/products', methods=['GET'])
@require_admin
def list_products():
    q = request.args.get('q', '').strip() or None
    products = catalog_service.list_products(get_session(), q)
    return jsonify({'products': [p.to_dict() for p in products]})


@catalog_bp.route('/products/search', methods=['GET'])
@require_billing
def search_products():
    """Product picker of the billing screen (at most 5 matches)."""
    q = request.args.get('q', '')
    products = catalog_service.search_products(get_session(), q)
    return jsonify({'products': [p.to_dict() for p in products]})


@catalog_bp.route('/products', methods=['POST'])
@require_admin
def create_product():
    data = request.get_json(silent=True) or {}
    product = catalog_service.create_product(get_session(), data)
    current_app.logger.info(f"Product {product.item_code} created via API")
    return jsonify({'status': 'success', 'product': product.to_dict()}), 201


@catalog_bp.route('/products/<int:product_id>', methods=['GET'])
@require_admin
def get_product(product_id):
    product = catalog_service.get_product(get_session(), product_id)
    return jsonify({'product': product.to_dict()})


@catalog_bp.route('/products/<int:product_id>', methods=['PUT'])
@require_admin
def update_product(product_id):
    data = request.get_json(silent=True) or {}
    product = catalog_service.update_product(get_session(), product_id, data)
    return jsonify({'status': 'success', 'product': product.to_dict()})


@catalog_bp.route('/products/<int:product_id>', methods=['DELETE'])
@require_admin
def delete_product(product_id):
    catalog_service.delete_product(get_session(), product_id)
    return jsonify({'status': 'success'})


@catalog_bp.route('/products/describe', methods=['POST'])
@require_admin
def describe_product():
    """Suggest a catalog description for a product name."""
    data = request.get_json(silent=True) or {}
    description = catalog_service.generate_description(str(data.get('name') or ''))
    return jsonify({'description': description})
