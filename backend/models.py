from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import Engine
import logging
import sqlite3
from shared.models import (
    Base, Role, User, Community, SkillsSurveySubmission, BasicInformation,
    DemographicInformation, CurrentSkills, SkillsNeed, DesiredSkills, PerceptionOfSkills,
    SECTION_MODELS
)

logger = logging.getLogger(__name__)
db = SQLAlchemy(model_class=Base)


def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """Turn on FK enforcement for SQLite connections.

    Postgres enforces references natively; SQLite only does so per connection
    once the pragma is set, and sync error classification depends on it.
    """
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


if not event.contains(Engine, 'connect', enable_sqlite_foreign_keys):
    event.listen(Engine, 'connect', enable_sqlite_foreign_keys)
