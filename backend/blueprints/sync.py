"""Sync blueprint for offline collected survey records."""
import json
import logging
from flask import Blueprint, request, jsonify, g
from ..services.sync_service import Attachment, get_sync_service
from ..utils import api_error

bp = Blueprint('sync', __name__)
logger = logging.getLogger(__name__)


def _read_transaction():
    """Return the transaction from a multipart form or a JSON body.

    ``transaction`` may be a JSON string, an object, or absent, in which case
    the body itself is the transaction.
    """
    if request.form or request.files:
        transaction = request.form.get('transaction')
    else:
        body = request.get_json(silent=True)
        transaction = body.get('transaction', body) if isinstance(body, dict) else body

    if isinstance(transaction, str):
        transaction = json.loads(transaction)
    return transaction


@bp.route('/sync', methods=['POST'])
def sync_data():
    """Apply a batch of PUT/PATCH operations and report per-record outcomes."""
    try:
        transaction = _read_transaction()
    except json.JSONDecodeError as e:
        return api_error('Invalid transaction payload', 400, details={'error': str(e)})

    files = {name: Attachment.from_upload(upload) for name, upload in request.files.items(multi=True)}
    service = get_sync_service()

    logger.info(f"Sync request from user {g.user.id if g.user else None} with {len(files)} files")
    report = service.handle_sync(transaction, g.user, files)

    if report.message == service.no_data_report().message and report.total_processed == 0:
        return jsonify(report.to_response()), 400
    return jsonify(report.to_response())
