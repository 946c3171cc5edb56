"""Aggregate statistics for the reporting dashboard."""
import logging
import math
from concurrent.futures import ThreadPoolExecutor
from flask import current_app
from sqlalchemy import func, case
from shared.models import (
    SkillsSurveySubmission, BasicInformation, DemographicInformation, DesiredSkills,
    now, APP_TIMEZONE
)
from ..models import db

logger = logging.getLogger(__name__)

# Placeholder heuristics. Figures derived from them are listed in
# overallStats.estimatedFields so clients can label them as estimates.
PEOPLE_PER_SURVEY = 180
SURVEYS_PER_COMMUNITY = 15
COMMUNITIES_WITH_CENTERS = 0.3
ACTIVE_CENTER_SHARE = 0.8
SKILLS_TRAINING_RATE = 25

ESTIMATED_FIELDS = [
    'totalNomadicPopulation',
    'totalCommunities',
    'skillsCenters',
    'activeCenters',
    'skillsTrainingRate',
]

SKILL_INTEREST_LABELS = {
    'interested_livestock_dairy_beef': 'Livestock Production',
    'interested_crop_production': 'Crop Farming',
    'interested_irrigation': 'Irrigation',
    'interested_welding': 'Welding',
    'interested_auto_mechanic': 'Auto Mechanic',
    'interested_ict': 'ICT Skills',
    'interested_poultry': 'Poultry',
    'interested_fashion_design': 'Fashion Design',
}

BARRIER_LABELS = {
    'barrier_financial_cost': 'Financial Cost',
    'barrier_time_constraint': 'Time Constraints',
    'barrier_lack_of_information': 'Lack of Information',
    'barrier_inaccessibility': 'Distance/Accessibility',
    'barrier_insecurity': 'Insecurity',
    'barrier_health_challenges': 'Health Challenges',
    'barrier_others': 'Other Barriers',
}

NOMADISM_LABELS = {
    'settled': 'Settled',
    'semi_settled': 'Semi-Settled',
    'mobile': 'Mobile',
}

TOP_SKILL_LABELS = {
    'livestock_dairy_beef': 'Livestock (Dairy & Beef)',
    'crop_production': 'Crop Production',
    'irrigation': 'Irrigation Farming',
    'poultry': 'Poultry Farming',
    'welding': 'Welding & Fabrication',
    'ict': 'ICT Skills',
    'auto_mechanic': 'Auto Mechanic',
    'fashion_design': 'Fashion Design',
}

# Fixed until proficiency is collected by the questionnaire
SKILL_PROFICIENCY = [
    {'skill': 'Livestock Skills', 'noSkills': 25, 'basic': 35, 'intermediate': 28, 'advanced': 12},
    {'skill': 'Agricultural Skills', 'noSkills': 35, 'basic': 28, 'intermediate': 25, 'advanced': 12},
    {'skill': 'Technical Skills', 'noSkills': 65, 'basic': 22, 'intermediate': 10, 'advanced': 3},
]

STATE_CODES = {
    'Sokoto': 'SK',
    'Kebbi': 'KB',
    'Zamfara': 'ZF',
    'Katsina': 'KT',
    'Kano': 'KN',
    'Yobe': 'YB',
    'Bauchi': 'BC',
    'Niger': 'NG',
    'Borno': 'BO',
    'Adamawa': 'AD',
    'Taraba': 'TB',
    'Plateau': 'PL',
    'Kaduna': 'KD',
    'Kwara': 'KW',
    'Oyo': 'OY',
}


def round_half_up(value):
    return int(math.floor(value + 0.5))


def percentage(part, total):
    return round_half_up(part / total * 100) if total else 0


def get_state_code(state_name):
    if state_name in STATE_CODES:
        return STATE_CODES[state_name]
    return state_name[:2].upper() if state_name else 'UK'


def count_true(column):
    return func.count(case((column.is_(True), 1)))


def _naive_app_time(value):
    """Stored timestamps are naive application time."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(APP_TIMEZONE).replace(tzinfo=None)
    return value


def _submissions(*columns):
    """Query over submissions joined to basic information, which the filters target."""
    return db.session.query(*columns).select_from(SkillsSurveySubmission).outerjoin(
        BasicInformation, BasicInformation.submission_id == SkillsSurveySubmission.id
    )


class DashboardService:
    """Runs the dashboard aggregations and assembles their results."""

    @staticmethod
    def build_conditions(filters):
        conditions = []
        if filters is None:
            return conditions
        if filters.state and filters.state.upper() != 'ALL':
            conditions.append(BasicInformation.state == filters.state)
        if filters.zone:
            conditions.append(BasicInformation.zone == filters.zone)
        if filters.date_from:
            conditions.append(SkillsSurveySubmission.submitted_at >= _naive_app_time(filters.date_from))
        if filters.date_to:
            conditions.append(SkillsSurveySubmission.submitted_at <= _naive_app_time(filters.date_to))
        return conditions

    def get_overall_stats(self, conditions):
        total_surveys, completed_surveys = _submissions(
            func.count(SkillsSurveySubmission.id),
            count_true(SkillsSurveySubmission.is_complete)
        ).filter(*conditions).one()
        total_surveys = total_surveys or 0
        completed_surveys = completed_surveys or 0

        estimated_communities = total_surveys // SURVEYS_PER_COMMUNITY
        estimated_centers = math.floor(estimated_communities * COMMUNITIES_WITH_CENTERS)

        return {
            'totalNomadicPopulation': total_surveys * PEOPLE_PER_SURVEY,
            'totalSurveys': total_surveys,
            'completedSurveys': completed_surveys,
            'totalCommunities': estimated_communities,
            'skillsCenters': estimated_centers,
            'completionRate': percentage(completed_surveys, total_surveys),
            'skillsTrainingRate': SKILLS_TRAINING_RATE,
            'activeCenters': math.floor(estimated_centers * ACTIVE_CENTER_SHARE),
            'estimatedFields': list(ESTIMATED_FIELDS),
        }

    def get_state_stats(self, conditions):
        rows = _submissions(
            BasicInformation.state,
            BasicInformation.zone,
            func.count(SkillsSurveySubmission.id),
            count_true(SkillsSurveySubmission.is_complete)
        ).filter(*conditions).group_by(BasicInformation.state, BasicInformation.zone).all()

        results = []
        for state, zone, total, completed in rows:
            if not state:
                continue
            results.append({
                'state': state,
                'code': get_state_code(state),
                'nomadicPopulation': total * PEOPLE_PER_SURVEY,
                'skillsCenters': math.floor(total / SURVEYS_PER_COMMUNITY * COMMUNITIES_WITH_CENTERS),
                'skillsTrainingRate': SKILLS_TRAINING_RATE,
                'totalSurveys': total,
                'completedSurveys': completed,
                'zone': zone or 'unknown',
            })
        return results

    def get_skill_interest_by_gender(self, conditions):
        columns = [count_true(getattr(DesiredSkills, field)) for field in SKILL_INTEREST_LABELS]
        rows = _submissions(DemographicInformation.sex, *columns) \
            .outerjoin(DemographicInformation, DemographicInformation.submission_id == SkillsSurveySubmission.id) \
            .outerjoin(DesiredSkills, DesiredSkills.submission_id == SkillsSurveySubmission.id) \
            .filter(*conditions) \
            .group_by(DemographicInformation.sex).all()
        by_sex = {row[0]: row[1:] for row in rows}

        results = []
        for index, label in enumerate(SKILL_INTEREST_LABELS.values()):
            male = by_sex['male'][index] if 'male' in by_sex else 0
            female = by_sex['female'][index] if 'female' in by_sex else 0
            if male + female > 0:
                results.append({
                    'skill': label,
                    'maleCount': male,
                    'femaleCount': female,
                    'totalCount': male + female,
                })
        return results

    def get_skill_barriers(self, conditions):
        columns = [count_true(getattr(DesiredSkills, field)) for field in BARRIER_LABELS]
        row = _submissions(func.count(SkillsSurveySubmission.id), *columns) \
            .outerjoin(DesiredSkills, DesiredSkills.submission_id == SkillsSurveySubmission.id) \
            .filter(*conditions).one()
        total = row[0] or 1

        results = [
            {'barrier': label, 'count': count, 'percentage': percentage(count, total)}
            for label, count in zip(BARRIER_LABELS.values(), row[1:])
            if count > 0
        ]
        return sorted(results, key=lambda item: item['count'], reverse=True)

    def get_skill_proficiency(self, conditions):
        return [dict(entry, isEstimate=True) for entry in SKILL_PROFICIENCY]

    def get_nomadism_types(self, conditions):
        rows = _submissions(DemographicInformation.type_of_nomadism, func.count(SkillsSurveySubmission.id)) \
            .outerjoin(DemographicInformation, DemographicInformation.submission_id == SkillsSurveySubmission.id) \
            .filter(*conditions) \
            .group_by(DemographicInformation.type_of_nomadism).all()
        total = sum(count for _, count in rows)

        return [
            {
                'type': NOMADISM_LABELS.get(nomadism_type, nomadism_type),
                'count': count,
                'percentage': percentage(count, total),
            }
            for nomadism_type, count in rows
            if nomadism_type
        ]

    def get_top_skills(self, conditions):
        skill_count = func.count(SkillsSurveySubmission.id)
        rows = _submissions(DesiredSkills.most_preferred_skill, skill_count) \
            .outerjoin(DesiredSkills, DesiredSkills.submission_id == SkillsSurveySubmission.id) \
            .filter(*conditions) \
            .group_by(DesiredSkills.most_preferred_skill) \
            .order_by(skill_count.desc()) \
            .limit(10).all()
        total = sum(count for _, count in rows)

        skills = [(skill, count) for skill, count in rows if skill]
        mean_share = sum(count for _, count in skills) / len(skills) if skills else 0

        return [
            {
                'skill': TOP_SKILL_LABELS.get(skill, skill),
                'count': count,
                # Skills at or above the average share are trending up
                'trend': 'up' if count >= mean_share else 'down',
                'percentage': percentage(count, total),
            }
            for skill, count in skills
        ]

    @staticmethod
    def _in_app_context(app, task, conditions):
        with app.app_context():
            return task(conditions)

    def get_dashboard_stats(self, filters=None):
        """Run every aggregation concurrently and assemble the dashboard payload."""
        conditions = self.build_conditions(filters)
        tasks = {
            'overallStats': self.get_overall_stats,
            'stateStats': self.get_state_stats,
            'skillInterestByGender': self.get_skill_interest_by_gender,
            'skillBarriers': self.get_skill_barriers,
            'skillProficiency': self.get_skill_proficiency,
            'nomadismTypes': self.get_nomadism_types,
            'topSkills': self.get_top_skills,
        }

        app = current_app._get_current_object()
        with ThreadPoolExecutor(max_workers=len(tasks)) as executor:
            futures = {
                key: executor.submit(self._in_app_context, app, task, conditions)
                for key, task in tasks.items()
            }
            stats = {key: future.result() for key, future in futures.items()}

        stats['lastUpdated'] = now().isoformat()
        logger.debug(f"Dashboard stats computed for {len(conditions)} filter conditions")
        return stats

    def generate_insights(self, stats):
        insights = []
        key_findings = []
        recommendations = []

        completion_rate = stats['overallStats']['completionRate']
        if completion_rate < 70:
            insights.append({
                'title': 'Low Survey Completion Rate',
                'description': (f'Only {completion_rate}% of surveys are being completed, indicating '
                                'potential issues with survey length or accessibility.'),
                'impact': 'high',
                'category': 'barrier',
                'metrics': {'value': completion_rate, 'unit': '%'},
            })
            recommendations.append(
                'Consider simplifying survey process and providing offline completion options'
            )

        top_barrier = stats['skillBarriers'][0] if stats['skillBarriers'] else None
        if top_barrier and top_barrier['percentage'] > 30:
            barrier = top_barrier['barrier']
            insights.append({
                'title': f'High Impact Barrier: {barrier}',
                'description': (f"{top_barrier['percentage']}% of respondents cite {barrier.lower()} "
                                'as a major barrier to skills training.'),
                'impact': 'high',
                'category': 'barrier',
                'metrics': {'value': top_barrier['percentage'], 'unit': '%'},
            })
            recommendations.append(
                f'Address {barrier.lower()} through targeted interventions and policy measures'
            )

        top_skill = stats['topSkills'][0] if stats['topSkills'] else None
        if top_skill:
            key_findings.append(
                f"{top_skill['skill']} is the most in-demand skill with {top_skill['count']} "
                'respondents showing interest'
            )
            insights.append({
                'title': 'High Demand Skill Identified',
                'description': (f"{top_skill['skill']} shows highest demand with "
                                f"{top_skill['percentage']}% of skill preferences."),
                'impact': 'medium',
                'category': 'opportunity',
                'metrics': {'value': top_skill['percentage'], 'unit': '%'},
            })

        settled = next((t for t in stats['nomadismTypes'] if t['type'] == 'Settled'), None)
        if settled and settled['percentage'] > 40:
            key_findings.append(
                f"{settled['percentage']}% of nomads are settled, indicating potential for "
                'permanent training centers'
            )
            recommendations.append(
                'Establish permanent skills training centers in areas with high settled nomad populations'
            )

        return {'insights': insights, 'keyFindings': key_findings, 'recommendations': recommendations}

    def get_dashboard_insights(self, filters=None):
        return self.generate_insights(self.get_dashboard_stats(filters))

    def get_states(self, filters=None):
        stats = self.get_dashboard_stats(filters)
        return [{'state': 'All States', 'code': 'ALL'}] + [
            {'state': state['state'], 'code': state['code']} for state in stats['stateStats']
        ]


dashboard_service = DashboardService()
