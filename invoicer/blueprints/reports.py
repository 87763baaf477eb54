"""Reports blueprint - sales, receivables and AI insights."""
from flask import Blueprint, jsonify
from invoicer.database import get_session
from invoicer.middleware import require_admin
from invoicer.services import report_service
from invoicer.utils.formatters import money_str

reports_bp = Blueprint('reports', __name__, url_prefix='/reports')


def _named_values(rows):
    return [{'name': row['name'], 'value': money_str(row['value'])} for row in rows]


@reports_bp.route('/summary', methods=['GET'])
@require_admin
def summary():
    data = report_service.get_report_data(get_session())
    totals = data['totals']

    return jsonify({
        'total_sales': money_str(totals['total_sales']),
        'retail_sales': money_str(totals['retail_sales']),
        'wholesale_sales': money_str(totals['wholesale_sales']),
        'total_outstanding': money_str(data['total_outstanding']),
        'bill_count': data['bill_count'],
        'sales_by_type': _named_values(data['sales_by_type']),
        'monthly_sales': [
            {
                'period': row['period'],
                'period_label': row['period_label'],
                'sales': money_str(row['sales']),
            }
            for row in data['monthly_sales']
        ],
        'aging': _named_values(data['aging']),
    })


@reports_bp.route('/insights', methods=['POST'])
@require_admin
def insights():
    """Ask the AI collaborator for sales insights (fallback text on failure)."""
    return jsonify({'insights': report_service.generate_sales_insights(get_session())})
