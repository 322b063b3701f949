"""Tests for Assessment Service HTTP handler."""
import json

import pytest

from wellpath.shared.utils import configure_pii_salt


@pytest.fixture(autouse=True)
def setup_pii_salt():
    configure_pii_salt("test_salt_that_is_at_least_32_characters_long")


@pytest.fixture
def client():
    from wellpath.services.assessment_service.http_handler import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


def _phq9(value):
    return {f"phq9_{i}": value for i in range(1, 10)}


class TestHealthEndpoint:
    def test_health_returns_200(self, client):
        response = client.get('/health')
        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['status'] == 'healthy'
        assert data['service'] == 'assessment-service'
        assert data['instrument_count'] == 7


class TestInstrumentEndpoints:
    def test_subject_without_assignments_sees_all(self, client):
        response = client.get('/instruments')
        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['count'] == 7

    def test_subject_sees_assigned_only(self, client):
        response = client.get('/instruments?role=subject&assigned=gad7,phq9')
        data = json.loads(response.data)
        assert [i['id'] for i in data['instruments']] == ['phq9', 'gad7']

    def test_clinician_ignores_assignment_filter(self, client):
        response = client.get('/instruments?role=clinician&assigned=gad7')
        assert json.loads(response.data)['count'] == 7

    def test_unknown_role(self, client):
        response = client.get('/instruments?role=admin')
        assert response.status_code == 400

    def test_get_instrument(self, client):
        response = client.get('/instruments/phq9')
        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['id'] == 'phq9'
        assert len(data['questions']) == 9

    def test_get_unknown_instrument(self, client):
        response = client.get('/instruments/nope')
        assert response.status_code == 404


class TestEvaluateEndpoint:
    def test_evaluate_phq9(self, client):
        response = client.post(
            '/assessments/evaluate',
            json={'instrument_id': 'phq9', 'answers': _phq9(2)},
            content_type='application/json',
        )

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['total_score'] == 18
        assert data['severity_label'] == 'Moderately Severe'
        assert data['warning'] is None

    def test_missing_body(self, client):
        response = client.post('/assessments/evaluate')
        assert response.status_code == 400

    def test_non_object_body(self, client):
        response = client.post(
            '/assessments/evaluate',
            json=[1, 2],
            content_type='application/json',
        )
        assert response.status_code == 400

    def test_missing_fields(self, client):
        response = client.post(
            '/assessments/evaluate',
            json={'instrument_id': 'phq9'},
            content_type='application/json',
        )
        assert response.status_code == 400

    def test_unknown_instrument(self, client):
        response = client.post(
            '/assessments/evaluate',
            json={'instrument_id': 'nope', 'answers': {}},
            content_type='application/json',
        )
        assert response.status_code == 404

    def test_incomplete_answers(self, client):
        answers = _phq9(1)
        del answers['phq9_9']
        response = client.post(
            '/assessments/evaluate',
            json={'instrument_id': 'phq9', 'answers': answers},
            content_type='application/json',
        )

        assert response.status_code == 422
        assert json.loads(response.data)['missing_ids'] == ['phq9_9']

    def test_invalid_value(self, client):
        answers = _phq9(1)
        answers['phq9_4'] = 7
        response = client.post(
            '/assessments/evaluate',
            json={'instrument_id': 'phq9', 'answers': answers},
            content_type='application/json',
        )

        assert response.status_code == 422
        assert json.loads(response.data)['question_id'] == 'phq9_4'


class TestAssignmentEndpoint:
    def test_clinician_assigns(self, client):
        response = client.post(
            '/assignments',
            json={
                'actor_role': 'clinician',
                'actor_id': 'clin_001',
                'subject_id': 'subj_001',
                'current_ids': ['phq9'],
                'add': ['gad7'],
                'remove': ['phq9'],
            },
            content_type='application/json',
        )

        assert response.status_code == 200
        assert json.loads(response.data)['assigned_ids'] == ['gad7']

    def test_subject_cannot_assign(self, client):
        response = client.post(
            '/assignments',
            json={
                'actor_role': 'subject',
                'actor_id': 'subj_001',
                'subject_id': 'subj_001',
                'add': ['gad7'],
            },
            content_type='application/json',
        )
        assert response.status_code == 403

    def test_unknown_instrument(self, client):
        response = client.post(
            '/assignments',
            json={
                'actor_role': 'clinician',
                'actor_id': 'clin_001',
                'subject_id': 'subj_001',
                'add': ['nope'],
            },
            content_type='application/json',
        )
        assert response.status_code == 404

    def test_missing_actor(self, client):
        response = client.post(
            '/assignments',
            json={'subject_id': 'subj_001'},
            content_type='application/json',
        )
        assert response.status_code == 400

    def test_ids_must_be_lists(self, client):
        response = client.post(
            '/assignments',
            json={
                'subject_id': 'subj_001',
                'actor_id': 'clin_001',
                'actor_role': 'clinician',
                'current_ids': 'phq9',
                'add': ['gad7'],
            },
            content_type='application/json',
        )

        assert response.status_code == 400
        assert 'current_ids' in json.loads(response.data)['error']

    def test_ids_must_be_strings(self, client):
        response = client.post(
            '/assignments',
            json={
                'subject_id': 'subj_001',
                'actor_id': 'clin_001',
                'actor_role': 'clinician',
                'add': ['gad7', 7],
            },
            content_type='application/json',
        )

        assert response.status_code == 400
        assert 'add' in json.loads(response.data)['error']

    def test_non_object_body(self, client):
        response = client.post(
            '/assignments',
            json=[1, 2],
            content_type='application/json',
        )
        assert response.status_code == 400
