from datetime import datetime
import uuid
from sqlalchemy import Column, String, Float, Boolean, Text, DateTime, ForeignKey, Index, JSON
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()

# Global timezone configuration - West Africa Time
# Uses zoneinfo so the offset stays correct if the zone ever changes
from zoneinfo import ZoneInfo
APP_TIMEZONE = ZoneInfo('Africa/Lagos')


def now():
    """Return current datetime in application timezone (timezone-aware).

    Note: When stored in SQLite, timezone info is stripped (SQLite limitation).
    All stored datetimes should be treated as application time, even though they're stored naive.
    """
    return datetime.now(APP_TIMEZONE)


def as_aware(value):
    """Attach the application timezone to a naive datetime read back from SQLite."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=APP_TIMEZONE)
    return value


def new_id():
    return str(uuid.uuid4())


class TimestampMixin:
    """Mixin providing creation and update timestamps."""

    created_at = Column(DateTime, default=now, nullable=False)
    updated_at = Column(DateTime, default=now, onupdate=now, nullable=False)


class Role(Base, TimestampMixin):
    __tablename__ = 'roles'
    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(Text, nullable=False, unique=True)
    permissions = Column(JSON, nullable=False, default=list)
    role_type = Column(String(20), nullable=False)
    # Plain column: a users.id reference here would make roles and users mutually dependent
    created_by = Column(String(36))
    users = relationship('User', back_populates='role', lazy='select')


class User(Base, TimestampMixin):
    __tablename__ = 'users'
    id = Column(String(36), primary_key=True, default=new_id)
    full_name = Column(Text)
    email = Column(String(256), nullable=False, unique=True)
    role_id = Column(String(36), ForeignKey('roles.id'))
    password = Column(String(256))
    status = Column(String(20), nullable=False, default='invited')
    is_email_verified = Column(Boolean, nullable=False, default=False)
    invitation_token = Column(String(36), index=True)
    invitation_expires_at = Column(DateTime)
    invited_by = Column(String(36), ForeignKey('users.id'))
    role = relationship('Role', back_populates='users', lazy='joined')


class Community(Base, TimestampMixin):
    __tablename__ = 'communities'
    id = Column(String(36), primary_key=True, default=new_id)
    state = Column(Text)
    zone = Column(String(20))
    local_government_area = Column(Text)
    name_of_community = Column(Text)
    latitude = Column(Float)
    longitude = Column(Float)
    created_by = Column(String(36))


class SkillsSurveySubmission(Base, TimestampMixin):
    """Root record of one questionnaire response."""
    __tablename__ = 'skills_survey_submissions'
    id = Column(String(36), primary_key=True, default=new_id)
    submitted_by = Column(String(36), ForeignKey('users.id'))
    is_complete = Column(Boolean, nullable=False, default=False)
    submitted_at = Column(DateTime)

    basic_information = relationship('BasicInformation', uselist=False, cascade='all, delete-orphan', lazy='select')
    demographic_information = relationship('DemographicInformation', uselist=False, cascade='all, delete-orphan', lazy='select')
    current_skills = relationship('CurrentSkills', uselist=False, cascade='all, delete-orphan', lazy='select')
    skills_need = relationship('SkillsNeed', uselist=False, cascade='all, delete-orphan', lazy='select')
    desired_skills = relationship('DesiredSkills', uselist=False, cascade='all, delete-orphan', lazy='select')
    perception_of_skills = relationship('PerceptionOfSkills', uselist=False, cascade='all, delete-orphan', lazy='select')
    submitter = relationship('User', lazy='select')


class SectionMixin(TimestampMixin):
    """Columns shared by every questionnaire section."""

    id = Column(String(36), primary_key=True, default=new_id)
    entered_by = Column(String(36))


class BasicInformation(Base, SectionMixin):
    __tablename__ = 'basic_information'
    submission_id = Column(String(36), ForeignKey('skills_survey_submissions.id'), nullable=False)
    image_url = Column(Text)
    nin = Column(String(20))
    community_id = Column(String(36), ForeignKey('communities.id'))
    date_of_survey = Column(DateTime)
    state = Column(Text)
    local_government_area = Column(Text)
    name_of_community = Column(Text)
    zone = Column(String(20))
    latitude = Column(Float)
    longitude = Column(Float)

    __table_args__ = (
        Index('basic_state_idx', 'state'),
        Index('basic_lga_idx', 'local_government_area'),
    )


class DemographicInformation(Base, SectionMixin):
    __tablename__ = 'demographic_information'
    submission_id = Column(String(36), ForeignKey('skills_survey_submissions.id'), nullable=False)
    first_name = Column(Text, nullable=False)
    middle_name = Column(Text)
    last_name = Column(Text, nullable=False)
    sex = Column(String(10))
    age_range = Column(String(20))
    phone_number = Column(String(20))
    email = Column(String(256))
    level_of_education = Column(String(30))
    type_of_nomadism = Column(String(20))
    occupation_herding = Column(Boolean, default=False)
    occupation_farming = Column(Boolean, default=False)
    occupation_fishing = Column(Boolean, default=False)
    occupation_trading = Column(Boolean, default=False)
    occupation_artisan = Column(Boolean, default=False)
    occupation_others = Column(Boolean, default=False)
    facial_capture_file_path = Column(Text)
    thumb_print_file_path = Column(Text)

    __table_args__ = (
        Index('demographic_age_range_idx', 'age_range'),
        Index('demographic_sex_idx', 'sex'),
        Index('demographic_nomadism_type_idx', 'type_of_nomadism'),
    )


class CurrentSkills(Base, SectionMixin):
    __tablename__ = 'current_skills'
    submission_id = Column(String(36), ForeignKey('skills_survey_submissions.id'), nullable=False)
    has_skills = Column(String(3))
    skills_description = Column(Text)
    confidence_level = Column(String(1))
    reason_for_no_skills = Column(Text)


class SkillsNeed(Base, SectionMixin):
    __tablename__ = 'skills_need'
    submission_id = Column(String(36), ForeignKey('skills_survey_submissions.id'), nullable=False)
    want_training = Column(String(3))
    skills_to_learn = Column(Text)
    skills_relevance = Column(String(1))


class DesiredSkills(Base, SectionMixin):
    __tablename__ = 'desired_skills'
    submission_id = Column(String(36), ForeignKey('skills_survey_submissions.id'), nullable=False)
    community_skills_needed = Column(Text)
    # Interest checkboxes
    interested_livestock_dairy_beef = Column(Boolean, default=False)
    interested_livestock_small_ruminants = Column(Boolean, default=False)
    interested_livestock_feeds = Column(Boolean, default=False)
    interested_poultry = Column(Boolean, default=False)
    interested_rabbitary = Column(Boolean, default=False)
    interested_fish_production = Column(Boolean, default=False)
    interested_snailery = Column(Boolean, default=False)
    interested_bee_keeping = Column(Boolean, default=False)
    interested_crop_production = Column(Boolean, default=False)
    interested_irrigation = Column(Boolean, default=False)
    interested_gardening = Column(Boolean, default=False)
    interested_ict = Column(Boolean, default=False)
    interested_phone_repairs = Column(Boolean, default=False)
    interested_fashion_design = Column(Boolean, default=False)
    interested_knitting = Column(Boolean, default=False)
    interested_hair_dressing = Column(Boolean, default=False)
    interested_beads_raffia = Column(Boolean, default=False)
    interested_shoe_bag_making = Column(Boolean, default=False)
    interested_auto_mechanic = Column(Boolean, default=False)
    interested_carpentry = Column(Boolean, default=False)
    interested_masonry = Column(Boolean, default=False)
    interested_pomade_soap_making = Column(Boolean, default=False)
    interested_pottery_ceramics = Column(Boolean, default=False)
    interested_solar_power = Column(Boolean, default=False)
    interested_welding = Column(Boolean, default=False)
    interested_catering = Column(Boolean, default=False)
    interested_others = Column(Boolean, default=False)
    most_preferred_skill = Column(String(40))
    learning_method = Column(String(30))
    available_resources = Column(String(30))
    preferred_learning_time = Column(String(20))
    # Barrier checkboxes
    barrier_financial_cost = Column(Boolean, default=False)
    barrier_time_constraint = Column(Boolean, default=False)
    barrier_lack_of_information = Column(Boolean, default=False)
    barrier_inaccessibility = Column(Boolean, default=False)
    barrier_insecurity = Column(Boolean, default=False)
    barrier_health_challenges = Column(Boolean, default=False)
    barrier_others = Column(Boolean, default=False)
    available_for_external_training = Column(String(3))
    external_training_timeline = Column(Text)

    __table_args__ = (
        Index('desired_preferred_skill_idx', 'most_preferred_skill'),
    )


class PerceptionOfSkills(Base, SectionMixin):
    __tablename__ = 'perception_of_skills'
    submission_id = Column(String(36), ForeignKey('skills_survey_submissions.id'), nullable=False)
    skills_importance_for_development = Column(String(1))
    community_skills_support_level = Column(String(1))
    skills_effective_for_financial_security = Column(String(1))
    experiences_with_skills_acquisition = Column(Text)
    suggestions_for_improvement = Column(Text)


# Section models keyed by the relationship name on SkillsSurveySubmission
SECTION_MODELS = {
    'basic_information': BasicInformation,
    'demographic_information': DemographicInformation,
    'current_skills': CurrentSkills,
    'skills_need': SkillsNeed,
    'desired_skills': DesiredSkills,
    'perception_of_skills': PerceptionOfSkills,
}
