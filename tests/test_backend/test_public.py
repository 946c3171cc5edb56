"""Tests for the public nomadic statistics endpoints."""
from backend.services.public_stats_service import humanize


def test_summary(client, make_survey):
    make_survey(state='Kano')
    make_survey(state='Kebbi', complete=False)

    response = client.get('/api/public/nomadic/summary')

    assert response.status_code == 200
    assert response.get_json() == {
        'success': True,
        'data': {'submissions': 2, 'completed': 1, 'states': 2, 'communities': 0},
    }


def test_demographics(client, make_survey):
    make_survey(sex='male', occupations=('herding',))
    make_survey(sex='female', nomadism='mobile', occupations=('herding', 'trading'))

    data = client.get('/api/public/nomadic/demographics').get_json()['data']

    assert sorted(data['gender'], key=lambda row: row['sex']) == [
        {'sex': 'female', 'count': 1},
        {'sex': 'male', 'count': 1},
    ]
    assert data['ageRanges'] == [{'ageRange': '21-25', 'count': 2}]
    assert {row['type'] for row in data['nomadism']} == {'settled', 'mobile'}
    assert data['education'] == [{'level': 'quranic', 'count': 2}]

    occupations = {row['occupation']: row['count'] for row in data['occupations']}
    assert occupations['Herding'] == 2
    assert occupations['Trading'] == 1
    assert occupations['Fishing'] == 0


def test_skills(client, make_survey):
    make_survey(preferred='poultry', confidence='4')
    make_survey(preferred='poultry', confidence='2')
    make_survey(preferred='welding', confidence='4')

    data = client.get('/api/public/nomadic/skills').get_json()['data']

    assert data['mostPreferred'][0] == {'skill': 'poultry', 'count': 2}
    assert {row['level']: row['count'] for row in data['confidenceLevels']} == {'4': 2, '2': 1}
    assert data['learningMethod'] == [{'value': 'apprenticeship', 'count': 3}]


def test_barriers(client, make_survey):
    make_survey(barriers=('financial_cost', 'lack_of_information'))
    make_survey(barriers=('financial_cost',))
    make_survey()
    make_survey()

    data = client.get('/api/public/nomadic/barriers').get_json()['data']

    assert data == [
        {'barrier': 'Financial Cost', 'count': 2, 'percentage': 50},
        {'barrier': 'Lack Of Information', 'count': 1, 'percentage': 25},
    ]


def test_humanize():
    assert humanize('occupation_artisan', 'occupation_') == 'Artisan'
    assert humanize('barrier_health_challenges', 'barrier_') == 'Health Challenges'
