import enum


class RoleType(str, enum.Enum):
    """Role families used for coarse access checks.

    Fine grained access is carried by the role's permission list.
    """
    ADMIN = "admin"
    COLLECTOR = "collector"


class UserStatus(str, enum.Enum):
    """Lifecycle of a user account."""
    ACTIVE = "active"
    INVITED = "invited"
    SUSPENDED = "suspended"


class Zone(str, enum.Enum):
    """Geopolitical zones a community can belong to."""
    NORTH_CENTRAL = "north-central"
    NORTH_EAST = "north-east"
    NORTH_WEST = "north-west"
    SOUTH_EAST = "south-east"
    SOUTH_SOUTH = "south-south"
    SOUTH_WEST = "south-west"


class Sex(str, enum.Enum):
    FEMALE = "female"
    MALE = "male"


class AgeRange(str, enum.Enum):
    AGE_16_20 = "16-20"
    AGE_21_25 = "21-25"
    AGE_26_30 = "26-30"
    AGE_31_35 = "31-35"
    AGE_36_AND_ABOVE = "36_and_above"


class EducationLevel(str, enum.Enum):
    ADULT_LITERACY = "adult_literacy"
    AISSCE = "aissce"
    FSLC = "fslc"
    JSSCE = "jssce"
    NON_LITERATE = "non_literate"
    QURANIC = "quranic"
    SSCE = "ssce"
    TERTIARY = "tertiary"


class NomadismType(str, enum.Enum):
    """How settled a respondent's household is."""
    MOBILE = "mobile"
    SEMI_SETTLED = "semi_settled"
    SETTLED = "settled"


class YesNo(str, enum.Enum):
    NO = "no"
    YES = "yes"


class Rating(str, enum.Enum):
    """Five point scale, stored as text."""
    ONE = "1"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"


class LearningMethod(str, enum.Enum):
    APPRENTICESHIP = "apprenticeship"
    FORMAL_TRAINING = "formal_training"
    INFORMAL_TRAINING = "informal_training"
    OTHERS = "others"


class AvailableResources(str, enum.Enum):
    APPRENTICESHIP_WORKSHOPS = "apprenticeship_workshops"
    COMMUNITY_PROGRAMMES = "community_programmes"
    LOCAL_CENTRES = "local_centres"
    NONE = "none"
    VOCATIONAL_CENTRES = "vocational_centres"


class LearningTime(str, enum.Enum):
    AFTERNOON = "afternoon"
    EVENING = "evening"
    MORNING = "morning"


class UpdateType(str, enum.Enum):
    """Operation kinds a sync client can send."""
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class SyncErrorType(str, enum.Enum):
    """Classification attached to every rejected sync record.

    UNIQUE_VIOLATION means the record already exists, FOREIGN_KEY_VIOLATION
    means a parent must be synced first, and OTHER covers the rest.
    """
    FOREIGN_KEY_VIOLATION = "FOREIGN_KEY_VIOLATION"
    OTHER = "OTHER"
    UNIQUE_VIOLATION = "UNIQUE_VIOLATION"


# Skill codes offered on the desired skills section, in questionnaire order.
SKILL_CODES = (
    'livestock_dairy_beef',
    'livestock_small_ruminants',
    'livestock_feeds',
    'poultry',
    'rabbitary',
    'fish_production',
    'snailery',
    'bee_keeping',
    'crop_production',
    'irrigation',
    'gardening',
    'ict',
    'phone_repairs',
    'fashion_design',
    'knitting',
    'hair_dressing',
    'beads_raffia',
    'shoe_bag_making',
    'auto_mechanic',
    'carpentry',
    'masonry',
    'pomade_soap_making',
    'pottery_ceramics',
    'solar_power',
    'welding',
    'catering',
    'others',
)

BARRIER_CODES = (
    'financial_cost',
    'time_constraint',
    'lack_of_information',
    'inaccessibility',
    'insecurity',
    'health_challenges',
    'others',
)

OCCUPATION_CODES = (
    'herding',
    'farming',
    'fishing',
    'trading',
    'artisan',
    'others',
)
