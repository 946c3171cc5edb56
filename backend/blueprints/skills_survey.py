"""Skills survey blueprint: questionnaire submissions and their sections."""
import logging
from flask import Blueprint, request, g, abort
from sqlalchemy import func, distinct
from shared.models import (
    SkillsSurveySubmission, BasicInformation, DemographicInformation, DesiredSkills,
    SECTION_MODELS, now
)
from shared.schemas import SkillsSurveyCreate, SkillsSurveyUpdate, SkillsSurveyQuery
from shared.validation import ValidationError
from pydantic.alias_generators import to_camel
from ..base.crud_base import serialize_model
from ..models import db
from ..services.public_stats_service import grouped_counts
from ..utils import (
    api_error, handle_api_exception, responder, get_json_body, validate_payload, cascade_delete_submission
)
from .auth import require_permissions

bp = Blueprint('skills_survey', __name__, url_prefix='/api/skills-survey')
logger = logging.getLogger(__name__)


def serialize_submission(submission):
    """Submission with every section keyed by its camelCase name."""
    data = serialize_model(submission)
    for name in SECTION_MODELS:
        section = getattr(submission, name)
        data[to_camel(name)] = serialize_model(section) if section is not None else None

    submitter = submission.submitter
    data['submitter'] = {
        'id': submitter.id,
        'fullName': submitter.full_name,
        'email': submitter.email,
    } if submitter else None
    return data


def get_submission_or_404(submission_id):
    submission = db.session.get(SkillsSurveySubmission, submission_id)
    if submission is None:
        abort(404, description='Survey not found')
    return submission


@bp.errorhandler(ValidationError)
def handle_validation_error(e):
    return api_error(str(e), 400)


@bp.route('', methods=['POST'])
@require_permissions('collections:create')
def create_survey():
    """Create a submission and all supplied sections in one transaction."""
    payload = validate_payload(SkillsSurveyCreate, get_json_body())

    try:
        submission = SkillsSurveySubmission(submitted_by=g.user.id, is_complete=False)
        db.session.add(submission)
        db.session.flush()

        for name, model in SECTION_MODELS.items():
            section = getattr(payload, name)
            if section is None:
                continue
            db.session.add(model(
                submission_id=submission.id,
                entered_by=g.user.id,
                **section.model_dump(exclude_none=True)
            ))

        db.session.commit()
    except Exception as e:
        db.session.rollback()
        return handle_api_exception(e, "create survey")

    logger.info(f"Created survey submission {submission.id}")
    return responder(201, serialize_submission(submission), 'Survey created successfully')


@bp.route('', methods=['GET'])
@require_permissions('collections:read')
def list_surveys():
    """List submissions, newest first, filtered by location and respondent."""
    params = validate_payload(SkillsSurveyQuery, request.args.to_dict())

    query = db.session.query(SkillsSurveySubmission) \
        .outerjoin(BasicInformation, BasicInformation.submission_id == SkillsSurveySubmission.id) \
        .outerjoin(DemographicInformation, DemographicInformation.submission_id == SkillsSurveySubmission.id)

    if params.state:
        query = query.filter(BasicInformation.state.ilike(f'%{params.state}%'))
    if params.lga:
        query = query.filter(BasicInformation.local_government_area.ilike(f'%{params.lga}%'))
    if params.type_of_nomadism:
        query = query.filter(DemographicInformation.type_of_nomadism == params.type_of_nomadism)
    if params.sex:
        query = query.filter(DemographicInformation.sex == params.sex)

    total = query.with_entities(func.count(distinct(SkillsSurveySubmission.id))).scalar() or 0
    submissions = query.distinct() \
        .order_by(SkillsSurveySubmission.created_at.desc()) \
        .offset((params.page - 1) * params.limit) \
        .limit(params.limit) \
        .all()

    return responder(200, {
        'data': [serialize_submission(submission) for submission in submissions],
        'meta': {
            'page': params.page,
            'limit': params.limit,
            'total': total,
            'totalPages': -(-total // params.limit),
        },
    }, 'Surveys retrieved successfully')


@bp.route('/stats', methods=['GET'])
@require_permissions('collections:read')
def survey_stats():
    total_surveys = db.session.query(func.count(SkillsSurveySubmission.id)).scalar()
    completed_surveys = db.session.query(func.count(SkillsSurveySubmission.id)) \
        .filter(SkillsSurveySubmission.is_complete.is_(True)).scalar()

    return responder(200, {
        'totalSurveys': total_surveys,
        'completedSurveys': completed_surveys,
        'genderDistribution': grouped_counts(DemographicInformation.sex, 'sex'),
        'ageDistribution': grouped_counts(DemographicInformation.age_range, 'ageRange'),
        'nomadismDistribution': grouped_counts(DemographicInformation.type_of_nomadism, 'typeOfNomadism'),
        'skillInterests': grouped_counts(DesiredSkills.most_preferred_skill, 'mostPreferredSkill'),
    }, 'Survey statistics retrieved successfully')


@bp.route('/<submission_id>', methods=['GET'])
@require_permissions('collections:read')
def get_survey(submission_id):
    submission = get_submission_or_404(submission_id)
    return responder(200, serialize_submission(submission), 'Survey retrieved successfully')


@bp.route('/<submission_id>', methods=['PATCH'])
@require_permissions('collections:update')
def update_survey(submission_id):
    """Update the completion flag and upsert any supplied sections."""
    submission = get_submission_or_404(submission_id)
    payload = validate_payload(SkillsSurveyUpdate, get_json_body())

    try:
        if payload.is_complete is not None:
            submission.is_complete = payload.is_complete
            submission.submitted_at = now() if payload.is_complete else None

        for name, model in SECTION_MODELS.items():
            section = getattr(payload, name)
            if section is None:
                continue
            existing = getattr(submission, name)
            if existing is None:
                setattr(submission, name, model(
                    entered_by=g.user.id,
                    **section.model_dump(exclude_none=True)
                ))
            else:
                for key, value in section.model_dump(exclude_unset=True).items():
                    setattr(existing, key, value)

        db.session.commit()
    except Exception as e:
        db.session.rollback()
        return handle_api_exception(e, "update survey")

    logger.info(f"Updated survey submission {submission_id}")
    return responder(200, serialize_submission(submission), 'Survey updated successfully')


@bp.route('/<submission_id>', methods=['DELETE'])
@require_permissions('collections:delete')
def delete_survey(submission_id):
    get_submission_or_404(submission_id)
    try:
        summary = cascade_delete_submission(submission_id)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        return handle_api_exception(e, "delete survey")
    return responder(200, summary, 'Survey deleted successfully')
