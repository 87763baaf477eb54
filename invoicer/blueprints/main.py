"""Main blueprint with the health check endpoint."""
from flask import Blueprint, jsonify, current_app
from sqlalchemy import text
from invoicer.database import get_session

main_bp = Blueprint('main', __name__)


@main_bp.route('/health')
def health():
    """
    Health check endpoint that validates the database connection.

    Returns:
        200: Healthy (DB connected)
        500: Unhealthy (DB error)
    """
    try:
        session = get_session()
        row = session.execute(text("SELECT 1 AS health_check")).fetchone()
    except Exception as e:
        current_app.logger.error(f"Health check failed: {e}")
        return jsonify({
            'status': 'unhealthy',
            'database': 'disconnected',
            'error': str(e),
        }), 500

    if not row or row[0] != 1:
        return jsonify({
            'status': 'unhealthy',
            'database': 'error',
            'message': 'Unexpected query result'
        }), 500

    return jsonify({
        'status': 'healthy',
        'database': 'connected',
        'business': current_app.config.get('BUSINESS_NAME'),
    }), 200
