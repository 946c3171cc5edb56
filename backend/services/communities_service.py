"""Community coverage analytics and community records."""
import logging
import math
from sqlalchemy import func, case, distinct
from shared.models import SkillsSurveySubmission, BasicInformation, DesiredSkills, Community
from ..models import db
from .dashboard_service import percentage

logger = logging.getLogger(__name__)

# Placeholder until communities carry travel distances
AVERAGE_DISTANCE_KM = 3.2

ZONE_LABELS = {
    'north-west': 'Northern Zone',
    'north-east': 'North East',
    'north-central': 'Middle Belt',
    'south-west': 'South West',
    'south-east': 'South East',
    'south-south': 'South South',
}

ENGAGEMENT_BANDS = [
    (80, 'Very High'),
    (60, 'High'),
    (40, 'Moderate'),
    (20, 'Low'),
]

PRIORITY_BANDS = [
    (2000, 'Critical'),
    (1000, 'High'),
    (500, 'Moderate'),
]

CHALLENGE_LABELS = {
    'barrier_financial_cost': 'Lack of infrastructure',
    'barrier_time_constraint': 'Poor road access',
    'barrier_lack_of_information': 'Limited funding',
    'barrier_inaccessibility': 'Teacher shortage',
    'barrier_insecurity': 'Cultural resistance',
    'barrier_health_challenges': 'Language barriers',
}

DISTANCE_LABELS = ['Less than 1km', '1-2km', '2-5km', '5-10km', 'More than 10km']


def engagement_band(total, completed):
    rate = completed / total * 100 if total else 0
    for threshold, label in ENGAGEMENT_BANDS:
        if rate >= threshold:
            return label
    return 'Very Low'


def priority_band(communities):
    for threshold, label in PRIORITY_BANDS:
        if communities > threshold:
            return label
    return 'Low'


def _completed_community():
    return case((SkillsSurveySubmission.is_complete.is_(True), BasicInformation.name_of_community))


def _chart_dataset(label, data, color):
    return {
        'label': label,
        'data': data,
        'backgroundColor': f'rgba({color}, 0.9)',
        'borderColor': f'rgba({color}, 1)',
        'borderWidth': 1,
    }


class CommunitiesService:

    def get_community_stats(self):
        total_communities = db.session.query(func.count(distinct(BasicInformation.name_of_community))) \
            .filter(BasicInformation.name_of_community.isnot(None)).scalar() or 0

        engaged_communities = db.session.query(func.count(distinct(BasicInformation.name_of_community))) \
            .select_from(SkillsSurveySubmission) \
            .outerjoin(BasicInformation, BasicInformation.submission_id == SkillsSurveySubmission.id) \
            .filter(SkillsSurveySubmission.is_complete.is_(True),
                    BasicInformation.name_of_community.isnot(None)) \
            .scalar() or 0

        estimated_centers = math.floor(total_communities * 0.3)
        return {
            'totalCommunities': total_communities,
            'engagedCommunities': engaged_communities,
            'activeCenters': math.floor(estimated_centers * 0.8),
            'averageDistance': AVERAGE_DISTANCE_KM,
            'estimatedFields': ['activeCenters', 'averageDistance'],
        }

    def _zone_rows(self):
        rows = db.session.query(
            BasicInformation.zone,
            func.count(distinct(BasicInformation.name_of_community)),
            func.count(distinct(_completed_community())),
            func.count(SkillsSurveySubmission.id),
            func.count(case((SkillsSurveySubmission.is_complete.is_(True), 1)))
        ).select_from(SkillsSurveySubmission) \
            .outerjoin(BasicInformation, BasicInformation.submission_id == SkillsSurveySubmission.id) \
            .filter(BasicInformation.zone.isnot(None)) \
            .group_by(BasicInformation.zone).all()
        return rows

    def get_geographic_distribution(self):
        by_zone = {zone: (communities, centers) for zone, communities, centers, _, _ in self._zone_rows()}
        return {
            'labels': list(ZONE_LABELS.values()),
            'datasets': [
                _chart_dataset('Communities', [by_zone.get(z, (0, 0))[0] for z in ZONE_LABELS], '15, 23, 42'),
                _chart_dataset('ANFE Centers', [by_zone.get(z, (0, 0))[1] for z in ZONE_LABELS], '15, 118, 110'),
            ],
        }

    def get_community_engagement(self):
        rows = db.session.query(
            BasicInformation.name_of_community,
            func.count(SkillsSurveySubmission.id),
            func.count(case((SkillsSurveySubmission.is_complete.is_(True), 1)))
        ).select_from(SkillsSurveySubmission) \
            .outerjoin(BasicInformation, BasicInformation.submission_id == SkillsSurveySubmission.id) \
            .filter(BasicInformation.name_of_community.isnot(None)) \
            .group_by(BasicInformation.name_of_community).all()

        labels = [label for _, label in ENGAGEMENT_BANDS] + ['Very Low']
        counts = dict.fromkeys(labels, 0)
        for _, total, completed in rows:
            counts[engagement_band(total, completed)] += 1

        return {
            'labels': labels,
            'datasets': [{
                'data': [counts[label] for label in labels],
                'backgroundColor': [
                    'rgba(15, 118, 110, 0.9)',
                    'rgba(34, 197, 94, 0.9)',
                    'rgba(161, 98, 7, 0.9)',
                    'rgba(220, 38, 38, 0.9)',
                    'rgba(185, 28, 28, 0.9)',
                ],
                'borderWidth': 2,
                'borderColor': '#1f2937',
            }],
        }

    def get_distance_analysis(self):
        # No distance data is collected yet
        return {
            'labels': DISTANCE_LABELS,
            'datasets': [
                _chart_dataset('Percentage of Communities', [0] * len(DISTANCE_LABELS), '29, 78, 216'),
            ],
            'isEstimate': True,
        }

    @staticmethod
    def _named_communities(*columns):
        return db.session.query(*columns).select_from(SkillsSurveySubmission) \
            .outerjoin(BasicInformation, BasicInformation.submission_id == SkillsSurveySubmission.id) \
            .outerjoin(DesiredSkills, DesiredSkills.submission_id == SkillsSurveySubmission.id) \
            .filter(BasicInformation.name_of_community.isnot(None))

    def get_challenges(self):
        total_communities = self._named_communities(
            func.count(distinct(BasicInformation.name_of_community))
        ).scalar() or 0
        if total_communities == 0:
            return []

        counts = self._named_communities(*[
            func.count(distinct(case((getattr(DesiredSkills, field).is_(True),
                                      BasicInformation.name_of_community))))
            for field in CHALLENGE_LABELS
        ]).one()

        challenges = [
            {
                'challenge': label,
                'percentage': percentage(affected, total_communities),
                'communities': affected,
            }
            for label, affected in zip(CHALLENGE_LABELS.values(), counts)
            if affected > 0
        ]
        return sorted(challenges, key=lambda item: item['percentage'], reverse=True)

    def get_zone_data(self):
        return [
            {
                'zone': ZONE_LABELS.get(zone, zone or 'Unknown'),
                'communities': communities,
                'centers': centers,
                'engagement': engagement_band(total, completed),
                'priority': priority_band(communities),
            }
            for zone, communities, centers, total, completed in self._zone_rows()
        ]

    def get_communities_data(self):
        return {
            'communityStats': self.get_community_stats(),
            'geographicDistribution': self.get_geographic_distribution(),
            'communityEngagement': self.get_community_engagement(),
            'distanceAnalysis': self.get_distance_analysis(),
            'challenges': self.get_challenges(),
            'zoneData': self.get_zone_data(),
        }

    def list_communities(self):
        return Community.query.order_by(Community.created_at.desc()).all()

    def create_community(self, payload, user_id=None):
        community = Community(
            name_of_community=payload.name_of_community,
            state=payload.state,
            local_government_area=payload.local_government_area,
            zone=payload.zone,
            latitude=payload.latitude,
            longitude=payload.longitude,
            created_by=user_id
        )
        try:
            db.session.add(community)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        logger.info(f"Created community {community.id} ({community.name_of_community})")
        return community


communities_service = CommunitiesService()
