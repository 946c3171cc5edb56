"""Storage blueprint exposing public URLs for stored media."""
from flask import Blueprint, request, jsonify
from shared.validation import ValidationError
from ..services.storage import get_storage
from ..utils import api_error

bp = Blueprint('storage', __name__)


@bp.route('/storage/public-url', methods=['GET'])
def public_url():
    path = request.args.get('path')
    if not path:
        return api_error('path query parameter is required', 400)
    try:
        url = get_storage().public_url(path)
    except ValidationError as e:
        return api_error(str(e), 400)
    return jsonify({'url': url})
