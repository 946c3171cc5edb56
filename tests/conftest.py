"""Pytest configuration and fixtures for the survey backend tests."""
import pytest
import tempfile
import os
from backend.app import create_app
from backend.blueprints.auth import create_access_token
from backend.cli import seed_defaults
from backend.models import (
    db, User, SkillsSurveySubmission, BasicInformation, DemographicInformation, CurrentSkills, DesiredSkills
)
from shared.models import now


@pytest.fixture
def app(tmp_path):
    """Create and configure a test app instance."""
    # Create temporary database for testing
    db_fd, db_path = tempfile.mkstemp(suffix='.db')

    test_config = {
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f'sqlite:///{db_path}',
        'STORAGE_LOCATION': 'LOCAL',
        'LOCAL_STORAGE_PATH': str(tmp_path / 'storage'),
        'JWT_SECRET': 'test-secret',
        'JWT_EXPIRES_IN_SECONDS': 3600,
        'RESEND_API_KEY': None,
        'INVITATION_URL': 'http://localhost:5173/accept-invitation',
        'CORS_ORIGINS': ['http://localhost:5173'],
    }

    app = create_app(test_config)

    with app.app_context():
        db.create_all()

    yield app

    # Cleanup
    with app.app_context():
        db.session.remove()
        db.engine.dispose()
    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """A test runner for the app's Click commands."""
    return app.test_cli_runner()


@pytest.fixture
def roles(app):
    """Seed the default roles and accounts; returns role name -> role id."""
    with app.app_context():
        return {name: role.id for name, role in seed_defaults().items()}


def _headers_for(app, email):
    with app.app_context():
        user = User.query.filter_by(email=email).first()
        return {'Authorization': f'Bearer {create_access_token(user)}'}


@pytest.fixture
def admin_headers(app, roles):
    return _headers_for(app, 'superadmin@yopmail.com')


@pytest.fixture
def collector_headers(app, roles):
    return _headers_for(app, 'collector@yopmail.com')


@pytest.fixture
def admin_id(app, roles):
    with app.app_context():
        return User.query.filter_by(email='superadmin@yopmail.com').first().id


@pytest.fixture
def make_survey(app):
    """Factory inserting a submission with basic, demographic and skills sections."""
    def _make(state='Kano', zone='north-west', community='Dawaki', sex='male', nomadism='settled',
              complete=True, preferred='poultry', interests=(), barriers=(), occupations=(),
              confidence='3', submitted_at=None):
        with app.app_context():
            submission = SkillsSurveySubmission(
                is_complete=complete,
                submitted_at=submitted_at or (now() if complete else None)
            )
            db.session.add(submission)
            db.session.flush()

            db.session.add(BasicInformation(
                submission_id=submission.id, state=state, zone=zone,
                local_government_area='Dala', name_of_community=community
            ))
            db.session.add(DemographicInformation(
                submission_id=submission.id, first_name='Test', last_name='Respondent',
                sex=sex, age_range='21-25', type_of_nomadism=nomadism, level_of_education='quranic',
                **{f'occupation_{code}': True for code in occupations}
            ))
            db.session.add(CurrentSkills(submission_id=submission.id, has_skills='yes', confidence_level=confidence))
            db.session.add(DesiredSkills(
                submission_id=submission.id, most_preferred_skill=preferred, learning_method='apprenticeship',
                **{f'interested_{code}': True for code in interests},
                **{f'barrier_{code}': True for code in barriers}
            ))
            db.session.commit()
            return submission.id
    return _make
