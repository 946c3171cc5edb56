"""Communities blueprint: coverage analytics and the community register."""
import logging
from flask import Blueprint, jsonify, g
from shared.schemas import CommunityCreate
from shared.validation import ValidationError
from ..base.crud_base import serialize_model
from ..services.communities_service import communities_service
from ..utils import api_error, get_json_body, validate_payload
from .auth import require_permissions

bp = Blueprint('communities', __name__, url_prefix='/api/communities')
logger = logging.getLogger(__name__)


@bp.route('/data', methods=['GET'])
def get_communities_data():
    try:
        data = communities_service.get_communities_data()
    except Exception as e:
        logger.error(f"Failed to retrieve communities data: {e}", exc_info=True)
        return jsonify({
            'success': False,
            'message': 'Failed to retrieve communities data',
            'error': str(e),
        })
    return jsonify({
        'success': True,
        'message': 'Communities data retrieved successfully',
        'data': data,
    })


@bp.route('', methods=['GET'])
@require_permissions('collections:read')
def list_communities():
    return jsonify([serialize_model(c) for c in communities_service.list_communities()])


@bp.route('', methods=['POST'])
@require_permissions('collections:create')
def create_community():
    try:
        payload = validate_payload(CommunityCreate, get_json_body())
    except ValidationError as e:
        return api_error(str(e), 400)

    community = communities_service.create_community(payload, g.user.id)
    return jsonify(serialize_model(community)), 201
