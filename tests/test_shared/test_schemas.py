"""Tests for the pydantic request and report schemas."""
import pytest
from pydantic import ValidationError
from shared.schemas import (
    SyncOperation, SyncReport, RejectedRecord, SyncError, SkillsSurveyCreate, CommunityCreate,
    DashboardFilters, PaginationQuery, UserCreate, RoleCreate
)


def test_sync_operation_tracks_presence_of_data():
    assert SyncOperation.model_validate({'type': 't', 'op': 'PUT', 'data': {}}).has_data
    assert SyncOperation.model_validate({'type': 't', 'op': 'PUT', 'data': None}).has_data
    assert not SyncOperation.model_validate({'type': 't', 'op': 'PUT'}).has_data


def test_sync_report_omits_empty_rejections():
    report = SyncReport(success=True, message='ok', total_processed=1, successful_records=1)
    assert report.to_response() == {
        'success': True, 'message': 'ok', 'totalProcessed': 1, 'successfulRecords': 1,
    }


def test_sync_report_serializes_rejections_in_camel_case():
    report = SyncReport(
        success=False,
        message='failed',
        rejected_records=[RejectedRecord(
            table='communities',
            record_id='c1',
            error=SyncError(type='UNIQUE_VIOLATION', message='Unique constraint violation', code='23505')
        )],
        total_processed=1,
        successful_records=0
    )

    assert report.to_response()['rejectedRecords'] == [{
        'table': 'communities',
        'recordId': 'c1',
        'error': {'type': 'UNIQUE_VIOLATION', 'message': 'Unique constraint violation', 'code': '23505'},
    }]


def test_survey_payload_accepts_camel_case_and_sanitizes():
    payload = SkillsSurveyCreate.model_validate({
        'demographicInformation': {'firstName': '<b>Amina</b>', 'lastName': 'Bello', 'email': ''},
        'desiredSkills': {'mostPreferredSkill': 'ict'},
    })

    assert payload.demographic_information.first_name == 'Amina'
    assert payload.demographic_information.email is None
    assert payload.desired_skills.most_preferred_skill == 'ict'
    assert payload.basic_information is None


def test_survey_payload_rejects_unknown_skill_and_rating():
    with pytest.raises(ValidationError):
        SkillsSurveyCreate.model_validate({
            'demographicInformation': {'firstName': 'A', 'lastName': 'B'},
            'desiredSkills': {'mostPreferredSkill': 'astronaut'},
        })
    with pytest.raises(ValidationError):
        SkillsSurveyCreate.model_validate({
            'demographicInformation': {'firstName': 'A', 'lastName': 'B'},
            'currentSkills': {'confidenceLevel': '9'},
        })


def test_community_requires_both_coordinates():
    base = {'nameOfCommunity': 'Dawaki', 'state': 'Kano', 'localGovernmentArea': 'Dala', 'zone': 'north-west'}

    assert CommunityCreate.model_validate(base).latitude is None
    assert CommunityCreate.model_validate({**base, 'latitude': '12', 'longitude': 8}).latitude == 12.0
    with pytest.raises(ValidationError):
        CommunityCreate.model_validate({**base, 'longitude': 8})
    with pytest.raises(ValidationError):
        CommunityCreate.model_validate({**base, 'zone': 'atlantis'})


def test_dashboard_filters_date_range():
    filters = DashboardFilters.model_validate({'state': 'Kano', 'dateFrom': '2024-01-01', 'dateTo': '2024-02-01'})
    assert filters.date_from.year == 2024

    with pytest.raises(ValidationError):
        DashboardFilters.model_validate({'dateFrom': '2024-03-01', 'dateTo': '2024-02-01'})


def test_pagination_bounds():
    assert PaginationQuery.model_validate({'page': '3', 'limit': '20'}).skip == 40
    with pytest.raises(ValidationError):
        PaginationQuery.model_validate({'page': 0})
    with pytest.raises(ValidationError):
        PaginationQuery.model_validate({'limit': 101})


def test_user_create_normalises_email():
    user = UserCreate.model_validate({
        'fullName': 'Field Worker', 'email': 'Field@Example.com', 'password': 'secret123', 'roleId': 'r1',
    })
    assert user.email == 'field@example.com'

    with pytest.raises(ValidationError):
        UserCreate.model_validate({'fullName': 'F', 'email': 'f@example.com', 'password': '123', 'roleId': 'r1'})


def test_role_type_is_validated():
    assert RoleCreate.model_validate({'name': 'r', 'permissions': ['a'], 'type': 'admin'}).type == 'admin'
    with pytest.raises(ValidationError):
        RoleCreate.model_validate({'name': 'r', 'permissions': ['a'], 'type': 'owner'})
