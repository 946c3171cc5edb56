"""Pydantic schemas for validation and serialization."""
from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict
from pydantic.alias_generators import to_camel
from shared.enums import (
    RoleType, UserStatus, Zone, Sex, AgeRange, EducationLevel, NomadismType,
    YesNo, Rating, LearningMethod, AvailableResources, LearningTime, SyncErrorType,
    SKILL_CODES
)
from shared.validation import Validator, ValidationError
from shared.models import as_aware


class CamelModel(BaseModel):
    """Base for payloads exchanged with the web and mobile clients.

    Clients speak camelCase; Python code reads snake_case attributes.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


def _sanitize(value):
    if isinstance(value, str):
        return Validator.sanitize_html(value.strip())
    return value


def _email(value):
    if value is None:
        return value
    try:
        return Validator.validate_email(value)
    except ValidationError as e:
        raise ValueError(str(e))


# Sync Schemas
class SyncOperation(BaseModel):
    """One entry of the ``crud`` list sent by an offline client.

    ``data`` is deliberately loose: the per-table handlers map known keys and
    ignore the rest. Whether ``data`` was sent at all is read from
    ``model_fields_set``.
    """
    type: Optional[str] = None
    op: Optional[str] = None
    id: Optional[Any] = None
    data: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra='ignore')

    @property
    def has_data(self) -> bool:
        return 'data' in self.model_fields_set


class SyncTransaction(BaseModel):
    crud: List[Any]


class SyncError(CamelModel):
    type: SyncErrorType
    message: str
    code: Optional[str] = None


class RejectedRecord(CamelModel):
    table: Optional[str] = None
    record_id: str
    error: SyncError


class SyncReport(CamelModel):
    success: bool
    message: str
    rejected_records: Optional[List[RejectedRecord]] = None
    total_processed: int = 0
    successful_records: int = 0

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)


# Auth Schemas
class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=256)
    password: str = Field(..., min_length=1, max_length=256)

    @field_validator('email')
    @classmethod
    def normalise_email(cls, v):
        return v.strip().lower()


# User Manager Schemas
class PaginationQuery(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


class UserCreate(CamelModel):
    full_name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., max_length=256)
    password: str = Field(..., min_length=6, max_length=128)
    role_id: str = Field(..., min_length=1, max_length=36)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        return _email(v)

    @field_validator('full_name')
    @classmethod
    def sanitize_name(cls, v):
        return _sanitize(v)


class UserUpdate(CamelModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[str] = Field(None, max_length=256)
    password: Optional[str] = Field(None, min_length=6, max_length=128)
    role_id: Optional[str] = Field(None, min_length=1, max_length=36)
    status: Optional[UserStatus] = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        return _email(v)

    @field_validator('full_name')
    @classmethod
    def sanitize_name(cls, v):
        return _sanitize(v)


class UserInvite(CamelModel):
    full_name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., max_length=256)
    role_id: str = Field(..., min_length=1, max_length=36)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        return _email(v)

    @field_validator('full_name')
    @classmethod
    def sanitize_name(cls, v):
        return _sanitize(v)


class AcceptInvitation(CamelModel):
    invitation_token: str = Field(..., min_length=1, max_length=36)
    password: str = Field(..., min_length=6, max_length=128)


class RoleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    permissions: List[str] = Field(..., min_length=1)
    type: RoleType

    model_config = ConfigDict(use_enum_values=True)


class RoleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    permissions: Optional[List[str]] = Field(None, min_length=1)
    type: Optional[RoleType] = None

    model_config = ConfigDict(use_enum_values=True)


# Community Schemas
class CommunityCreate(CamelModel):
    name_of_community: str = Field(..., min_length=1, max_length=200)
    state: str = Field(..., min_length=1, max_length=100)
    local_government_area: str = Field(..., min_length=1, max_length=100)
    zone: Zone
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @field_validator('name_of_community', 'state', 'local_government_area')
    @classmethod
    def sanitize_text_fields(cls, v):
        return _sanitize(v)

    @model_validator(mode='after')
    def validate_coords(self):
        if self.latitude is not None or self.longitude is not None:
            if self.latitude is None or self.longitude is None:
                raise ValueError('latitude and longitude must be supplied together')
            try:
                self.latitude, self.longitude = Validator.validate_coordinates(self.latitude, self.longitude)
            except ValidationError as e:
                raise ValueError(str(e))
        return self


# Skills Survey Schemas
class BasicInformationIn(CamelModel):
    date_of_survey: Optional[datetime] = None
    state: Optional[str] = Field(None, max_length=100)
    local_government_area: Optional[str] = Field(None, max_length=100)
    name_of_community: Optional[str] = Field(None, max_length=200)
    zone: Optional[Zone] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    @field_validator('state', 'local_government_area', 'name_of_community')
    @classmethod
    def sanitize_text_fields(cls, v):
        return _sanitize(v)


class DemographicInformationIn(CamelModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    middle_name: Optional[str] = Field(None, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    sex: Optional[Sex] = None
    age_range: Optional[AgeRange] = None
    phone_number: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, max_length=256)
    level_of_education: Optional[EducationLevel] = None
    type_of_nomadism: Optional[NomadismType] = None
    occupation_herding: Optional[bool] = None
    occupation_farming: Optional[bool] = None
    occupation_fishing: Optional[bool] = None
    occupation_trading: Optional[bool] = None
    occupation_artisan: Optional[bool] = None
    occupation_others: Optional[bool] = None
    facial_capture_file_path: Optional[str] = None
    thumb_print_file_path: Optional[str] = None

    @field_validator('first_name', 'middle_name', 'last_name')
    @classmethod
    def sanitize_names(cls, v):
        return _sanitize(v)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        if not v:
            return None
        return _email(v)

    @field_validator('phone_number')
    @classmethod
    def validate_phone(cls, v):
        if not v:
            return None
        try:
            return Validator.validate_phone(v)
        except ValidationError as e:
            raise ValueError(str(e))


class CurrentSkillsIn(CamelModel):
    has_skills: Optional[YesNo] = None
    skills_description: Optional[str] = Field(None, max_length=2000)
    confidence_level: Optional[Rating] = None
    reason_for_no_skills: Optional[str] = Field(None, max_length=2000)

    @field_validator('skills_description', 'reason_for_no_skills')
    @classmethod
    def sanitize_text_fields(cls, v):
        return _sanitize(v)


class SkillsNeedIn(CamelModel):
    want_training: Optional[YesNo] = None
    skills_to_learn: Optional[str] = Field(None, max_length=2000)
    skills_relevance: Optional[Rating] = None

    @field_validator('skills_to_learn')
    @classmethod
    def sanitize_text_fields(cls, v):
        return _sanitize(v)


class DesiredSkillsIn(CamelModel):
    community_skills_needed: Optional[str] = Field(None, max_length=2000)
    interested_livestock_dairy_beef: Optional[bool] = None
    interested_livestock_small_ruminants: Optional[bool] = None
    interested_livestock_feeds: Optional[bool] = None
    interested_poultry: Optional[bool] = None
    interested_rabbitary: Optional[bool] = None
    interested_fish_production: Optional[bool] = None
    interested_snailery: Optional[bool] = None
    interested_bee_keeping: Optional[bool] = None
    interested_crop_production: Optional[bool] = None
    interested_irrigation: Optional[bool] = None
    interested_gardening: Optional[bool] = None
    interested_ict: Optional[bool] = None
    interested_phone_repairs: Optional[bool] = None
    interested_fashion_design: Optional[bool] = None
    interested_knitting: Optional[bool] = None
    interested_hair_dressing: Optional[bool] = None
    interested_beads_raffia: Optional[bool] = None
    interested_shoe_bag_making: Optional[bool] = None
    interested_auto_mechanic: Optional[bool] = None
    interested_carpentry: Optional[bool] = None
    interested_masonry: Optional[bool] = None
    interested_pomade_soap_making: Optional[bool] = None
    interested_pottery_ceramics: Optional[bool] = None
    interested_solar_power: Optional[bool] = None
    interested_welding: Optional[bool] = None
    interested_catering: Optional[bool] = None
    interested_others: Optional[bool] = None
    most_preferred_skill: Optional[str] = Field(None, max_length=40)
    learning_method: Optional[LearningMethod] = None
    available_resources: Optional[AvailableResources] = None
    preferred_learning_time: Optional[LearningTime] = None
    barrier_financial_cost: Optional[bool] = None
    barrier_time_constraint: Optional[bool] = None
    barrier_lack_of_information: Optional[bool] = None
    barrier_inaccessibility: Optional[bool] = None
    barrier_insecurity: Optional[bool] = None
    barrier_health_challenges: Optional[bool] = None
    barrier_others: Optional[bool] = None
    available_for_external_training: Optional[YesNo] = None
    external_training_timeline: Optional[str] = Field(None, max_length=500)

    @field_validator('most_preferred_skill')
    @classmethod
    def validate_skill(cls, v):
        if v is None:
            return v
        try:
            return Validator.validate_choice(v, 'mostPreferredSkill', SKILL_CODES)
        except ValidationError as e:
            raise ValueError(str(e))

    @field_validator('community_skills_needed', 'external_training_timeline')
    @classmethod
    def sanitize_text_fields(cls, v):
        return _sanitize(v)


class PerceptionOfSkillsIn(CamelModel):
    skills_importance_for_development: Optional[Rating] = None
    community_skills_support_level: Optional[Rating] = None
    skills_effective_for_financial_security: Optional[Rating] = None
    experiences_with_skills_acquisition: Optional[str] = Field(None, max_length=2000)
    suggestions_for_improvement: Optional[str] = Field(None, max_length=2000)

    @field_validator('experiences_with_skills_acquisition', 'suggestions_for_improvement')
    @classmethod
    def sanitize_text_fields(cls, v):
        return _sanitize(v)


class SkillsSurveyCreate(CamelModel):
    basic_information: Optional[BasicInformationIn] = None
    demographic_information: DemographicInformationIn
    current_skills: Optional[CurrentSkillsIn] = None
    skills_need: Optional[SkillsNeedIn] = None
    desired_skills: Optional[DesiredSkillsIn] = None
    perception_of_skills: Optional[PerceptionOfSkillsIn] = None


class SkillsSurveyUpdate(CamelModel):
    basic_information: Optional[BasicInformationIn] = None
    demographic_information: Optional[DemographicInformationIn] = None
    current_skills: Optional[CurrentSkillsIn] = None
    skills_need: Optional[SkillsNeedIn] = None
    desired_skills: Optional[DesiredSkillsIn] = None
    perception_of_skills: Optional[PerceptionOfSkillsIn] = None
    is_complete: Optional[bool] = None


class SkillsSurveyQuery(CamelModel):
    state: Optional[str] = Field(None, max_length=100)
    lga: Optional[str] = Field(None, max_length=100)
    type_of_nomadism: Optional[NomadismType] = None
    sex: Optional[Sex] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)


# Dashboard Schemas
class DashboardFilters(CamelModel):
    state: Optional[str] = Field(None, max_length=100)
    zone: Optional[Zone] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None

    @model_validator(mode='after')
    def validate_range(self):
        if self.date_from and self.date_to and as_aware(self.date_from) > as_aware(self.date_to):
            raise ValueError('dateFrom must not be after dateTo')
        return self
