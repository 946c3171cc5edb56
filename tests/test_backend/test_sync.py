"""Tests for the /sync endpoint."""
import io
import json
from pathlib import Path
from backend.models import db, SkillsSurveySubmission, BasicInformation, DemographicInformation
from backend.services.storage import get_storage


def sync(client, headers, crud):
    return client.post('/sync', json={'transaction': {'crud': crud}}, headers=headers)


def submission_op(record_id, **data):
    return {'type': 'skills_survey_submissions', 'op': 'PUT', 'id': record_id, 'data': {'id': record_id, **data}}


def test_sync_requires_authentication(client):
    response = client.post('/sync', json={'crud': []})
    assert response.status_code == 401


def test_sync_without_transaction_returns_no_data(client, collector_headers):
    response = client.post('/sync', json={}, headers=collector_headers)
    assert response.status_code == 400
    assert response.get_json() == {
        'success': False,
        'message': 'No data to sync',
        'totalProcessed': 0,
        'successfulRecords': 0,
    }


def test_sync_with_invalid_transaction_json(client, collector_headers):
    response = client.post(
        '/sync',
        data={'transaction': '{not json'},
        content_type='multipart/form-data',
        headers=collector_headers
    )
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Invalid transaction payload'


def test_sync_creates_submission(client, app, collector_headers):
    response = sync(client, collector_headers, [submission_op('sub-1')])

    assert response.status_code == 200
    body = response.get_json()
    assert body == {
        'success': True,
        'message': 'All 1 records synced successfully',
        'totalProcessed': 1,
        'successfulRecords': 1,
    }

    with app.app_context():
        submission = db.session.get(SkillsSurveySubmission, 'sub-1')
        assert submission is not None
        assert submission.is_complete is False
        assert submission.submitter.email == 'collector@yopmail.com'


def test_duplicate_create_is_reported_not_raised(client, app, collector_headers):
    response = sync(client, collector_headers, [submission_op('dup-1'), submission_op('dup-1')])

    body = response.get_json()
    assert response.status_code == 200
    assert body['success'] is False
    assert body['message'] == '1 of 2 records synced successfully. 1 records rejected.'
    assert body['totalProcessed'] == 2
    assert body['successfulRecords'] == 1

    rejected = body['rejectedRecords']
    assert len(rejected) == 1
    assert rejected[0]['table'] == 'skills_survey_submissions'
    assert rejected[0]['recordId'] == 'dup-1'
    assert rejected[0]['error']['type'] == 'UNIQUE_VIOLATION'
    assert rejected[0]['error']['message'] == 'Unique constraint violation'

    with app.app_context():
        assert SkillsSurveySubmission.query.filter_by(id='dup-1').count() == 1


def test_missing_parent_is_foreign_key_violation(client, collector_headers):
    response = sync(client, collector_headers, [{
        'type': 'basic_information',
        'op': 'PUT',
        'id': 'bi-1',
        'data': {'id': 'bi-1', 'submission_id': 'does-not-exist', 'state': 'Kano'},
    }])

    body = response.get_json()
    assert body['message'] == 'Sync failed. All 1 records rejected.'
    error = body['rejectedRecords'][0]['error']
    assert error['type'] == 'FOREIGN_KEY_VIOLATION'
    assert error['message'] == 'Referenced data missing or invalid'


def test_failure_does_not_roll_back_earlier_records(client, app, collector_headers):
    response = sync(client, collector_headers, [
        submission_op('keep-1'),
        {'type': 'basic_information', 'op': 'PUT', 'data': {'id': 'bi-x', 'submission_id': 'missing'}},
        submission_op('keep-2'),
    ])

    body = response.get_json()
    assert body['successfulRecords'] == 2
    assert len(body['rejectedRecords']) == 1

    with app.app_context():
        assert db.session.get(SkillsSurveySubmission, 'keep-1') is not None
        assert db.session.get(SkillsSurveySubmission, 'keep-2') is not None


def test_rejected_operation_kinds(client, collector_headers):
    response = sync(client, collector_headers, [
        {'type': 'skills_survey_submissions', 'op': 'DELETE', 'id': 'a', 'data': {'id': 'a'}},
        {'type': 'skills_survey_submissions', 'op': 'MERGE', 'id': 'b', 'data': {'id': 'b'}},
        {'type': 'surveys', 'op': 'PUT', 'id': 'c', 'data': {'id': 'c'}},
        {'type': 'skills_survey_submissions', 'op': 'PUT', 'id': 'd'},
    ])

    rejected = response.get_json()['rejectedRecords']
    messages = [record['error']['message'] for record in rejected]
    assert messages == [
        'DELETE operations not supported',
        'Unknown operation: MERGE',
        'Unsupported table: surveys',
        'No data provided for sync operation',
    ]
    assert all(record['error']['type'] == 'OTHER' for record in rejected)
    assert rejected[3]['recordId'] == 'unknown'


def test_patch_missing_record_is_not_found(client, collector_headers):
    response = sync(client, collector_headers, [
        {'type': 'skills_survey_submissions', 'op': 'PATCH', 'id': 'ghost', 'data': {'is_complete': 1}},
    ])

    rejected = response.get_json()['rejectedRecords'][0]
    assert rejected['recordId'] == 'ghost'
    assert rejected['error'] == {'type': 'OTHER', 'message': 'Submission not found'}


def test_patch_without_id_is_rejected(client, collector_headers):
    response = sync(client, collector_headers, [
        {'type': 'skills_survey_submissions', 'op': 'PATCH', 'data': {'is_complete': 1}},
    ])

    rejected = response.get_json()['rejectedRecords'][0]
    assert rejected['error']['message'] == 'No ID provided for update'


def test_patch_updates_only_supplied_columns(client, app, collector_headers):
    sync(client, collector_headers, [
        submission_op('sub-p'),
        {
            'type': 'basic_information', 'op': 'PUT',
            'data': {'id': 'bi-p', 'submission_id': 'sub-p', 'state': 'Kano', 'zone': 'north-west'},
        },
    ])

    response = sync(client, collector_headers, [
        {'type': 'skills_survey_submissions', 'op': 'PATCH', 'id': 'sub-p', 'data': {'is_complete': 1}},
        {'type': 'basic_information', 'op': 'PATCH', 'id': 'bi-p', 'data': {'state': 'Kebbi'}},
    ])
    assert response.get_json()['success'] is True

    with app.app_context():
        assert db.session.get(SkillsSurveySubmission, 'sub-p').is_complete is True
        basic = db.session.get(BasicInformation, 'bi-p')
        assert basic.state == 'Kebbi'
        assert basic.zone == 'north-west'


def test_numeric_flags_become_booleans(client, app, collector_headers):
    sync(client, collector_headers, [
        submission_op('sub-f'),
        {
            'type': 'demographic_information', 'op': 'PUT',
            'data': {
                'id': 'demo-f', 'submission_id': 'sub-f',
                'first_name': 'Amina', 'last_name': 'Bello',
                'occupation_herding': 1, 'occupation_farming': '0',
            },
        },
    ])

    with app.app_context():
        demographics = db.session.get(DemographicInformation, 'demo-f')
        assert demographics.occupation_herding is True
        assert demographics.occupation_farming is False


def test_multipart_sync_stores_basic_information_photo(client, app, collector_headers):
    transaction = {'crud': [
        submission_op('sub-m'),
        {
            'type': 'basic_information', 'op': 'PUT', 'id': 'bi-m',
            'data': {'id': 'bi-m', 'submission_id': 'sub-m', 'image_uri': 'photo-1'},
        },
    ]}

    response = client.post(
        '/sync',
        data={
            'transaction': json.dumps(transaction),
            'photo-1': (io.BytesIO(b'\x89PNG fake image'), 'photo.png', 'image/png'),
        },
        content_type='multipart/form-data',
        headers=collector_headers
    )

    assert response.status_code == 200
    assert response.get_json()['success'] is True

    with app.app_context():
        basic = db.session.get(BasicInformation, 'bi-m')
        assert basic.image_url == 'nomadic/basic-information/bi-m.png'

    public_dir = Path(app.config['LOCAL_STORAGE_PATH']) / 'public' / 'nomadic' / 'basic-information'
    assert (public_dir / 'bi-m.png').read_bytes() == b'\x89PNG fake image'
    sidecar = json.loads((public_dir / 'bi-m.png.metadata.json').read_text())
    assert sidecar['ownerId'] == 'bi-m'
    assert sidecar['ownerType'] == 'basic_information'
    assert sidecar['syncSource'] == 'mobile-app-multipart'
    assert sidecar['contentType'] == 'image/png'


def test_bare_transaction_body_is_accepted(client, app, collector_headers):
    response = client.post('/sync', json={'crud': [submission_op('sub-bare')]}, headers=collector_headers)

    assert response.get_json()['successfulRecords'] == 1


def test_one_upload_shared_by_two_operations(client, app, collector_headers):
    basic = {'id': 'bi-s', 'submission_id': 'sub-s', 'image_uri': 'photo'}
    transaction = {'crud': [
        submission_op('sub-s'),
        {'type': 'basic_information', 'op': 'PUT', 'id': 'bi-s', 'data': basic},
        {'type': 'basic_information', 'op': 'PATCH', 'id': 'bi-s', 'data': {**basic, 'state': 'Kano'}},
    ]}

    response = client.post(
        '/sync',
        data={
            'transaction': json.dumps(transaction),
            'photo': (io.BytesIO(b'JPEGDATA'), 'photo.jpg', 'image/jpeg'),
        },
        content_type='multipart/form-data',
        headers=collector_headers
    )

    assert response.get_json()['successfulRecords'] == 3
    with app.app_context():
        stored = get_storage().get('nomadic/basic-information/bi-s.jpeg', is_private=False)
        assert stored.data == b'JPEGDATA'
        assert db.session.get(BasicInformation, 'bi-s').state == 'Kano'


def test_non_string_type_does_not_abort_the_batch(client, app, collector_headers):
    response = sync(client, collector_headers, [
        {'type': 123, 'op': 'PUT', 'data': {'id': 'x'}},
        submission_op('sub-after'),
    ])

    assert response.status_code == 200
    body = response.get_json()
    assert body['totalProcessed'] == 2
    assert body['successfulRecords'] == 1
    assert body['rejectedRecords'][0]['recordId'] == 'x'
    assert 'table' not in body['rejectedRecords'][0]
    with app.app_context():
        assert db.session.get(SkillsSurveySubmission, 'sub-after') is not None


def test_blank_coordinates_are_stored_as_null(client, app, collector_headers):
    response = sync(client, collector_headers, [
        submission_op('sub-blank'),
        {
            'type': 'basic_information', 'op': 'PUT', 'id': 'bi-blank',
            'data': {'id': 'bi-blank', 'submission_id': 'sub-blank', 'latitude': '', 'longitude': ''},
        },
    ])

    assert response.get_json()['success'] is True
    with app.app_context():
        basic = db.session.get(BasicInformation, 'bi-blank')
        assert basic.latitude is None
        assert basic.longitude is None
