"""Anonymous headline figures published on the public site."""
import logging
from sqlalchemy import func, distinct, case
from shared.models import (
    SkillsSurveySubmission, BasicInformation, DemographicInformation, CurrentSkills,
    DesiredSkills, Community
)
from ..models import db
from .dashboard_service import percentage, count_true

logger = logging.getLogger(__name__)

OCCUPATION_FIELDS = (
    'occupation_herding',
    'occupation_farming',
    'occupation_fishing',
    'occupation_trading',
    'occupation_artisan',
    'occupation_others',
)

BARRIER_FIELDS = (
    'barrier_financial_cost',
    'barrier_time_constraint',
    'barrier_lack_of_information',
    'barrier_inaccessibility',
    'barrier_insecurity',
    'barrier_health_challenges',
    'barrier_others',
)


def humanize(field, prefix):
    """``barrier_lack_of_information`` -> ``Lack Of Information``."""
    return field[len(prefix):].replace('_', ' ').strip().title()


def grouped_counts(column, key, order_by_count=False, limit=None):
    query = db.session.query(column, func.count()).group_by(column)
    if order_by_count:
        query = query.order_by(func.count().desc())
    if limit:
        query = query.limit(limit)
    return [{key: value, 'count': total} for value, total in query.all()]


class PublicStatsService:

    def get_summary(self):
        return {
            'submissions': db.session.query(func.count(SkillsSurveySubmission.id)).scalar() or 0,
            'completed': db.session.query(func.count(SkillsSurveySubmission.id))
                           .filter(SkillsSurveySubmission.is_complete.is_(True)).scalar() or 0,
            'states': db.session.query(func.count(distinct(BasicInformation.state))).scalar() or 0,
            'communities': db.session.query(func.count(Community.id)).scalar() or 0,
        }

    def get_occupation_counts(self):
        counts = db.session.query(*[
            count_true(getattr(DemographicInformation, field)) for field in OCCUPATION_FIELDS
        ]).one()
        return [
            {'occupation': humanize(field, 'occupation_'), 'count': count or 0}
            for field, count in zip(OCCUPATION_FIELDS, counts)
        ]

    def get_demographics(self):
        return {
            'gender': grouped_counts(DemographicInformation.sex, 'sex'),
            'ageRanges': grouped_counts(DemographicInformation.age_range, 'ageRange'),
            'nomadism': grouped_counts(DemographicInformation.type_of_nomadism, 'type'),
            'education': grouped_counts(DemographicInformation.level_of_education, 'level'),
            'occupations': self.get_occupation_counts(),
        }

    def get_skills(self):
        return {
            'mostPreferred': grouped_counts(
                DesiredSkills.most_preferred_skill, 'skill', order_by_count=True, limit=10
            ),
            'confidenceLevels': grouped_counts(CurrentSkills.confidence_level, 'level'),
            'learningMethod': grouped_counts(DesiredSkills.learning_method, 'value'),
        }

    def get_barriers(self):
        total = db.session.query(func.count(SkillsSurveySubmission.id)).scalar() or 1
        counts = db.session.query(*[
            func.count(case((getattr(DesiredSkills, field).is_(True), 1))) for field in BARRIER_FIELDS
        ]).select_from(SkillsSurveySubmission) \
            .outerjoin(DesiredSkills, DesiredSkills.submission_id == SkillsSurveySubmission.id) \
            .one()

        barriers = [
            {'barrier': humanize(field, 'barrier_'), 'count': count, 'percentage': percentage(count, total)}
            for field, count in zip(BARRIER_FIELDS, counts)
            if count > 0
        ]
        return sorted(barriers, key=lambda item: item['count'], reverse=True)


public_stats_service = PublicStatsService()
