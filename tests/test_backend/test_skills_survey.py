"""Tests for the skills survey API."""
from backend.models import db, SkillsSurveySubmission, BasicInformation, DesiredSkills

BASE = '/api/skills-survey'

SURVEY = {
    'basicInformation': {
        'state': 'Kano',
        'localGovernmentArea': 'Dala',
        'nameOfCommunity': 'Dawaki',
        'zone': 'north-west',
        'latitude': 12.0,
        'longitude': 8.5,
    },
    'demographicInformation': {
        'firstName': 'Amina',
        'lastName': 'Bello',
        'sex': 'female',
        'ageRange': '21-25',
        'typeOfNomadism': 'settled',
        'phoneNumber': '0803 123 4567',
        'occupationHerding': True,
    },
    'desiredSkills': {
        'interestedPoultry': True,
        'mostPreferredSkill': 'poultry',
        'barrierFinancialCost': True,
    },
}


def create(client, headers, payload=SURVEY):
    return client.post(BASE, json=payload, headers=headers)


def test_create_survey(client, app, collector_headers):
    response = create(client, collector_headers)

    assert response.status_code == 201
    body = response.get_json()
    assert body['message'] == 'Survey created successfully'
    data = body['data']
    assert data['isComplete'] is False
    assert data['basicInformation']['state'] == 'Kano'
    assert data['demographicInformation']['phoneNumber'] == '08031234567'
    assert data['desiredSkills']['interestedPoultry'] is True
    assert data['currentSkills'] is None
    assert data['submitter']['email'] == 'collector@yopmail.com'


def test_create_survey_requires_names(client, collector_headers):
    response = create(client, collector_headers, {'demographicInformation': {'firstName': 'Amina'}})

    assert response.status_code == 400
    assert 'lastName' in response.get_json()['message']


def test_create_survey_requires_permission(client):
    assert create(client, {}).status_code == 401


def test_list_and_filter_surveys(client, collector_headers, make_survey):
    create(client, collector_headers)
    make_survey(state='Kebbi', sex='male', nomadism='mobile')

    listing = client.get(BASE, headers=collector_headers).get_json()['data']
    assert listing['meta'] == {'page': 1, 'limit': 10, 'total': 2, 'totalPages': 1}

    kano = client.get(f'{BASE}?state=kan', headers=collector_headers).get_json()['data']
    assert [row['basicInformation']['state'] for row in kano['data']] == ['Kano']

    mobile = client.get(f'{BASE}?typeOfNomadism=mobile', headers=collector_headers).get_json()['data']
    assert mobile['meta']['total'] == 1

    paged = client.get(f'{BASE}?limit=1&page=2', headers=collector_headers).get_json()['data']
    assert len(paged['data']) == 1
    assert paged['meta']['totalPages'] == 2


def test_survey_stats(client, collector_headers, make_survey):
    make_survey(sex='male')
    make_survey(sex='female', complete=False)

    data = client.get(f'{BASE}/stats', headers=collector_headers).get_json()['data']

    assert data['totalSurveys'] == 2
    assert data['completedSurveys'] == 1
    assert {row['sex']: row['count'] for row in data['genderDistribution']} == {'male': 1, 'female': 1}


def test_get_missing_survey(client, collector_headers):
    response = client.get(f'{BASE}/missing', headers=collector_headers)
    assert response.status_code == 404
    assert response.get_json()['message'] == 'Survey not found'


def test_update_survey(client, app, collector_headers):
    survey_id = create(client, collector_headers).get_json()['data']['id']

    response = client.patch(f'{BASE}/{survey_id}', json={
        'isComplete': True,
        'basicInformation': {'state': 'Kebbi'},
        'currentSkills': {'hasSkills': 'yes', 'confidenceLevel': '4'},
    }, headers=collector_headers)

    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['isComplete'] is True
    assert data['submittedAt'] is not None
    assert data['basicInformation']['state'] == 'Kebbi'
    assert data['basicInformation']['localGovernmentArea'] == 'Dala'
    assert data['currentSkills']['confidenceLevel'] == '4'

    response = client.patch(f'{BASE}/{survey_id}', json={'isComplete': False}, headers=collector_headers)
    assert response.get_json()['data']['submittedAt'] is None


def test_delete_survey_requires_admin(client, app, collector_headers, admin_headers):
    survey_id = create(client, collector_headers).get_json()['data']['id']

    assert client.delete(f'{BASE}/{survey_id}', headers=collector_headers).status_code == 403

    response = client.delete(f'{BASE}/{survey_id}', headers=admin_headers)
    assert response.status_code == 200
    summary = response.get_json()['data']
    assert summary['submissions'] == 1
    assert summary['basic_information'] == 1
    assert summary['desired_skills'] == 1
    assert summary['current_skills'] == 0

    with app.app_context():
        assert db.session.get(SkillsSurveySubmission, survey_id) is None
        assert BasicInformation.query.filter_by(submission_id=survey_id).count() == 0
        assert DesiredSkills.query.filter_by(submission_id=survey_id).count() == 0
