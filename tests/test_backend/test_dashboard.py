"""Tests for the reporting dashboard aggregations."""
from datetime import datetime
import pytest
from backend.services.dashboard_service import get_state_code, round_half_up


@pytest.fixture
def surveys(make_survey):
    """Two completed Kano surveys and one incomplete Kebbi survey."""
    make_survey(interests=('poultry',), barriers=('financial_cost',),
                submitted_at=datetime(2024, 3, 1, 12, 0))
    make_survey(interests=('poultry',), barriers=('financial_cost',),
                submitted_at=datetime(2024, 6, 1, 12, 0))
    make_survey(state='Kebbi', zone='north-west', community='Argungu', sex='female', nomadism='mobile',
                complete=False, preferred='welding', interests=('welding',), barriers=('insecurity',))


def stats(client, query=''):
    response = client.get(f'/api/dashboard/stats{query}')
    assert response.status_code == 200
    body = response.get_json()
    assert body['success'] is True, body
    return body['data']


def test_stats_on_empty_database(client):
    data = stats(client)

    overall = data['overallStats']
    assert overall['totalSurveys'] == 0
    assert overall['completionRate'] == 0
    assert overall['skillsTrainingRate'] == 25
    assert 'totalNomadicPopulation' in overall['estimatedFields']
    assert data['stateStats'] == []
    assert data['topSkills'] == []
    assert [row['skill'] for row in data['skillProficiency']] == [
        'Livestock Skills', 'Agricultural Skills', 'Technical Skills'
    ]
    assert all(row['isEstimate'] for row in data['skillProficiency'])
    assert 'lastUpdated' in data


def test_overall_stats(client, surveys):
    overall = stats(client)['overallStats']

    assert overall['totalSurveys'] == 3
    assert overall['completedSurveys'] == 2
    assert overall['totalNomadicPopulation'] == 540
    assert overall['totalCommunities'] == 0
    assert overall['completionRate'] == 67


def test_state_stats(client, surveys):
    by_state = {row['state']: row for row in stats(client)['stateStats']}

    assert by_state['Kano']['code'] == 'KN'
    assert by_state['Kano']['totalSurveys'] == 2
    assert by_state['Kano']['completedSurveys'] == 2
    assert by_state['Kano']['nomadicPopulation'] == 360
    assert by_state['Kano']['zone'] == 'north-west'
    assert by_state['Kebbi']['code'] == 'KB'
    assert by_state['Kebbi']['skillsTrainingRate'] == 25


def test_skill_interest_by_gender(client, surveys):
    rows = {row['skill']: row for row in stats(client)['skillInterestByGender']}

    assert rows['Poultry'] == {'skill': 'Poultry', 'maleCount': 2, 'femaleCount': 0, 'totalCount': 2}
    assert rows['Welding'] == {'skill': 'Welding', 'maleCount': 0, 'femaleCount': 1, 'totalCount': 1}
    assert 'Livestock Production' not in rows


def test_barriers_nomadism_and_top_skills(client, surveys):
    data = stats(client)

    assert data['skillBarriers'] == [
        {'barrier': 'Financial Cost', 'count': 2, 'percentage': 67},
        {'barrier': 'Insecurity', 'count': 1, 'percentage': 33},
    ]
    nomadism = {row['type']: row for row in data['nomadismTypes']}
    assert nomadism['Settled'] == {'type': 'Settled', 'count': 2, 'percentage': 67}
    assert nomadism['Mobile']['percentage'] == 33

    assert data['topSkills'] == [
        {'skill': 'Poultry Farming', 'count': 2, 'trend': 'up', 'percentage': 67},
        {'skill': 'Welding & Fabrication', 'count': 1, 'trend': 'down', 'percentage': 33},
    ]


def test_state_filter(client, surveys):
    assert stats(client, '?state=Kebbi')['overallStats']['totalSurveys'] == 1
    assert stats(client, '?state=ALL')['overallStats']['totalSurveys'] == 3
    assert stats(client, '?zone=south-south')['overallStats']['totalSurveys'] == 0


def test_date_filters_apply_to_submission_time(client, surveys):
    data = stats(client, '?dateFrom=2024-05-01T00:00:00&dateTo=2024-12-31T00:00:00')
    assert data['overallStats']['totalSurveys'] == 1
    assert data['overallStats']['completedSurveys'] == 1


def test_invalid_filters_return_failure_envelope(client):
    response = client.get('/api/dashboard/stats?zone=atlantis')

    assert response.status_code == 200
    body = response.get_json()
    assert body['success'] is False
    assert body['message'] == 'Failed to retrieve dashboard statistics'
    assert 'zone' in body['error']


def test_insights(client, surveys):
    response = client.get('/api/dashboard/insights')
    body = response.get_json()
    assert body['message'] == 'Dashboard insights retrieved successfully'
    data = body['data']

    titles = [insight['title'] for insight in data['insights']]
    assert titles == [
        'Low Survey Completion Rate',
        'High Impact Barrier: Financial Cost',
        'High Demand Skill Identified',
    ]
    assert data['insights'][1]['description'] == (
        '67% of respondents cite financial cost as a major barrier to skills training.'
    )
    assert data['keyFindings'] == [
        'Poultry Farming is the most in-demand skill with 2 respondents showing interest',
        '67% of nomads are settled, indicating potential for permanent training centers',
    ]
    assert len(data['recommendations']) == 3


def test_states_list(client, surveys):
    response = client.get('/api/dashboard/states')
    data = response.get_json()['data']

    assert data[0] == {'state': 'All States', 'code': 'ALL'}
    assert {row['code'] for row in data[1:]} == {'KN', 'KB'}


def test_state_codes():
    assert get_state_code('Sokoto') == 'SK'
    assert get_state_code('Lagos') == 'LA'
    assert get_state_code('') == 'UK'
    assert get_state_code(None) == 'UK'


def test_percentages_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(66.5) == 67
