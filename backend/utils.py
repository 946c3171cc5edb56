"""Backend utility functions for the survey API."""
import math
from flask import jsonify, request
from pydantic import ValidationError as PydanticValidationError
from shared.validation import ValidationError, format_validation_error
from .models import db, SkillsSurveySubmission, SECTION_MODELS
import logging


logger = logging.getLogger(__name__)


def api_error(message, status_code=400, log_level='warning', details=None):
    """
    Standardized API error response with consistent logging.

    Args:
        message (str): Error message for the client
        status_code (int): HTTP status code
        log_level (str): Logging level ('debug', 'info', 'warning', 'error', 'critical')
        details (dict, optional): Additional details for logging

    Returns:
        Flask response: JSON error response
    """
    log_func = getattr(logger, log_level, logger.warning)
    if details:
        log_func(f"API Error ({status_code}): {message} - Details: {details}")
    else:
        log_func(f"API Error ({status_code}): {message}")

    return jsonify({'status': status_code, 'message': message}), status_code


def handle_api_exception(e, operation="operation", status_code=500):
    """
    Handle exceptions in API endpoints with consistent logging and responses.

    Args:
        e (Exception): The exception that occurred
        operation (str): Description of the operation being performed
        status_code (int): HTTP status code to return

    Returns:
        Flask response: JSON error response
    """
    logger.error(f"Exception during {operation}: {str(e)}", exc_info=True)
    return api_error(f"Failed to {operation}", status_code, 'error')


def responder(status, data=None, message=None):
    """Success envelope used by the auth, user manager and survey endpoints."""
    return jsonify({'status': status, 'data': data, 'message': message}), status


def get_json_body():
    """Return the request JSON object or raise ValidationError."""
    data = request.get_json(silent=True)
    if data is None:
        raise ValidationError('Request body must contain valid JSON')
    if not isinstance(data, dict):
        raise ValidationError('Request data must be a JSON object')
    return data


def validate_payload(schema, data):
    """Validate ``data`` against a pydantic schema, raising ValidationError on failure."""
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(format_validation_error(e))


def pagination_meta(page, limit, total_items):
    total_pages = math.ceil(total_items / limit) if limit else 0
    return {
        'page': page,
        'limit': limit,
        'totalItems': total_items,
        'totalPages': total_pages,
        'hasNextPage': page < total_pages,
        'hasPreviousPage': page > 1,
    }


def cascade_delete_submission(submission_id):
    """
    Delete a submission and all of its questionnaire sections.

    Args:
        submission_id (str): ID of the submission to delete

    Returns:
        dict: Summary of deleted records
    """
    summary = {'submissions': 0}
    summary.update({name: 0 for name in SECTION_MODELS})

    try:
        submission = db.session.get(SkillsSurveySubmission, submission_id)
        if not submission:
            return summary

        # Sections are removed explicitly so rows the relationship does not
        # track (duplicates written by sync) go too
        for name, model in SECTION_MODELS.items():
            deleted = db.session.query(model).filter(
                model.submission_id == submission_id
            ).delete(synchronize_session=False)
            summary[name] = deleted

        db.session.expire(submission)
        db.session.delete(submission)
        summary['submissions'] = 1

        logger.info(f"Cascading delete completed for submission {submission_id}: {summary}")

    except Exception as e:
        logger.error(f"Error in cascade delete of submission {submission_id}: {e}")
        raise

    return summary
