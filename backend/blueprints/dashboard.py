"""Public reporting dashboard endpoints."""
import logging
from flask import Blueprint, request, jsonify
from shared.schemas import DashboardFilters
from ..services.dashboard_service import dashboard_service
from ..utils import validate_payload

bp = Blueprint('dashboard', __name__, url_prefix='/api/dashboard')
logger = logging.getLogger(__name__)


def _filters():
    return validate_payload(DashboardFilters, request.args.to_dict())


def _envelope(producer, success_message, failure_message):
    try:
        data = producer(_filters())
    except Exception as e:
        logger.error(f"{failure_message}: {e}", exc_info=True)
        return jsonify({'success': False, 'message': failure_message, 'error': str(e)})
    return jsonify({'success': True, 'message': success_message, 'data': data})


@bp.route('/stats', methods=['GET'])
def get_stats():
    return _envelope(
        dashboard_service.get_dashboard_stats,
        'Dashboard statistics retrieved successfully',
        'Failed to retrieve dashboard statistics'
    )


@bp.route('/insights', methods=['GET'])
def get_insights():
    return _envelope(
        dashboard_service.get_dashboard_insights,
        'Dashboard insights retrieved successfully',
        'Failed to retrieve dashboard insights'
    )


@bp.route('/states', methods=['GET'])
def get_states():
    return _envelope(
        dashboard_service.get_states,
        'States list retrieved successfully',
        'Failed to retrieve states list'
    )
