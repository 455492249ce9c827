import inspect
import re
from datetime import datetime

from fastapi.testclient import TestClient

from exercise_tracker.database import get_repositories
from exercise_tracker.main import add_exercise, app, create_user, get_log_order, get_logs, list_users
from exercise_tracker.repositories import LogOrder
from exercise_tracker.utils.dates import format_calendar_date

CALENDAR = re.compile(r"^[A-Z][a-z]{2} [A-Z][a-z]{2} \d{2} \d{4}$")


def _user(client, name):
    r = client.post('/api/users', json={'username': name})
    assert r.status_code == 200
    return r.json()['_id']


def test_users_get_sequential_ids_and_list_in_order(client):
    assert client.post('/api/users', json={'username': 'bob'}).json() == {'username': 'bob', '_id': '1'}
    assert client.post('/api/users', json={'username': 'carol'}).json() == {'username': 'carol', '_id': '2'}
    r = client.get('/api/users')
    assert r.status_code == 200
    assert r.json() == [{'username': 'bob', '_id': '1'}, {'username': 'carol', '_id': '2'}]


def test_register_same_username_twice(client):
    first = client.post('/api/users', json={'username': 'alice'}).json()
    second = client.post('/api/users', json={'username': 'alice'}).json()
    assert first == second
    assert len(client.get('/api/users').json()) == 1


def test_register_accepts_form_body(client):
    r = client.post('/api/users', data={'username': 'formuser'})
    assert r.status_code == 200
    assert r.json()['username'] == 'formuser'


def test_register_requires_username(client):
    r = client.post('/api/users', json={})
    assert r.status_code == 400
    assert r.json() == {'error': 'Username is required'}


def test_malformed_json_is_400(client):
    r = client.post('/api/users', content=b'{not json', headers={'Content-Type': 'application/json'})
    assert r.status_code == 400
    assert 'error' in r.json()


def test_add_exercise_with_date(client):
    uid = _user(client, 'runner')
    r = client.post(f'/api/users/{uid}/exercises', json={'description': 'run', 'duration': '30.9', 'date': '2024-01-01'})
    assert r.status_code == 200
    assert r.json() == {'_id': uid, 'username': 'runner', 'description': 'run', 'duration': 30, 'date': 'Mon Jan 01 2024'}


def test_add_exercise_defaults_to_today(client):
    uid = _user(client, 'alice')
    before = format_calendar_date(datetime.now())
    r = client.post(f'/api/users/{uid}/exercises', json={'description': 'run', 'duration': '30'})
    after = format_calendar_date(datetime.now())
    assert r.status_code == 200
    log = client.get(f'/api/users/{uid}/logs').json()
    assert log['log'][0]['date'] in (before, after)
    assert log['log'][0]['duration'] == 30


def test_add_exercise_form_body(client):
    uid = _user(client, 'former')
    r = client.post(f'/api/users/{uid}/exercises', data={'description': 'bike', 'duration': '45', 'date': ''})
    assert r.status_code == 200
    assert r.json()['duration'] == 45


def test_add_exercise_unknown_user(client):
    r = client.post('/api/users/999/exercises', json={'description': 'run', 'duration': 10})
    assert r.status_code == 404
    assert r.json() == {'error': 'User not found'}


def test_add_exercise_validation_errors(client):
    uid = _user(client, 'val')
    r = client.post(f'/api/users/{uid}/exercises', json={'duration': 10})
    assert r.status_code == 400
    assert r.json() == {'error': 'Description and duration are required'}
    r = client.post(f'/api/users/{uid}/exercises', json={'description': 'run', 'duration': 'lots'})
    assert r.status_code == 400
    assert r.json() == {'error': 'Invalid duration'}
    r = client.post(f'/api/users/{uid}/exercises', json={'description': 'run', 'duration': 5, 'date': 'someday'})
    assert r.status_code == 400
    assert r.json() == {'error': 'Invalid date format'}
    assert client.get(f'/api/users/{uid}/logs').json()['count'] == 0


def test_logs_limit_and_count(client):
    uid = _user(client, 'five')
    for i in range(5):
        client.post(f'/api/users/{uid}/exercises', json={'description': f'ex{i}', 'duration': i + 1, 'date': f'2024-01-0{i + 1}'})
    r = client.get(f'/api/users/{uid}/logs', params={'limit': '2'})
    assert r.status_code == 200
    body = r.json()
    assert body['_id'] == uid and body['username'] == 'five'
    assert body['count'] == len(body['log']) == 2
    assert [e['description'] for e in body['log']] == ['ex0', 'ex1']
    assert all(CALENDAR.match(e['date']) for e in body['log'])


def test_logs_non_numeric_limit_means_unlimited(client):
    uid = _user(client, 'nolimit')
    for i in range(3):
        client.post(f'/api/users/{uid}/exercises', json={'description': 'x', 'duration': 1, 'date': '2024-02-01'})
    assert client.get(f'/api/users/{uid}/logs', params={'limit': 'many'}).json()['count'] == 3


def test_logs_date_range(client):
    uid = _user(client, 'ranger')
    for day in ('2024-01-01', '2024-01-15', '2024-02-01'):
        client.post(f'/api/users/{uid}/exercises', json={'description': day, 'duration': 10, 'date': day})
    body = client.get(f'/api/users/{uid}/logs', params={'from': '2024-01-10', 'to': '2024-01-31'}).json()
    assert body['count'] == 1
    assert body['log'][0]['date'] == 'Mon Jan 15 2024'
    late = client.get(f'/api/users/{uid}/logs', params={'from': '2030-01-01'}).json()
    assert late['count'] == 0 and late['log'] == []


def test_logs_invalid_bounds_and_unknown_user(client):
    uid = _user(client, 'bounds')
    r = client.get(f'/api/users/{uid}/logs', params={'from': 'garbage'})
    assert r.status_code == 400
    assert r.json() == {'error': 'Invalid date format'}
    r = client.get('/api/users/999/logs')
    assert r.status_code == 404
    assert r.json() == {'error': 'User not found'}


def test_logs_date_desc_order(client):
    uid = _user(client, 'sorted')
    for day in ('2024-01-01', '2024-03-01', '2024-02-01'):
        client.post(f'/api/users/{uid}/exercises', json={'description': day, 'duration': 1, 'date': day})
    app.dependency_overrides[get_log_order] = lambda: LogOrder.DATE_DESC
    body = client.get(f'/api/users/{uid}/logs').json()
    assert [e['description'] for e in body['log']] == ['2024-03-01', '2024-02-01', '2024-01-01']


def test_unknown_route_uses_error_shape(client):
    r = client.get('/api/nope')
    assert r.status_code == 404
    assert 'error' in r.json()


def test_internal_error_hides_details():
    class Broken:
        def list_all(self):
            raise RuntimeError("db password is hunter2")

    class Repos:
        users = Broken()
        exercises = None

    app.dependency_overrides[get_repositories] = lambda: Repos()
    try:
        r = TestClient(app, raise_server_exceptions=False).get('/api/users')
    finally:
        app.dependency_overrides.clear()
    assert r.status_code == 500
    assert r.json() == {'error': 'Internal server error'}


def test_health_and_request_id(client):
    r = client.get('/health')
    assert r.status_code == 200
    assert r.json() == {'status': 'ok'}
    assert 'X-Request-ID' in r.headers
    r = client.get('/health', headers={'X-Request-ID': 'abc123'})
    assert r.headers['X-Request-ID'] == 'abc123'


def test_home_page(client):
    r = client.get('/')
    assert r.status_code == 200
    assert '/api/users' in r.text


def test_huge_duration_is_rejected_on_every_backend(client):
    uid = _user(client, 'bignum')
    r = client.post(f'/api/users/{uid}/exercises', json={'description': 'run', 'duration': '1e19'})
    assert r.status_code == 400
    assert r.json() == {'error': 'Invalid duration'}
    assert client.get(f'/api/users/{uid}/logs').json()['count'] == 0


def test_write_endpoints_run_in_threadpool():
    # plain def endpoints keep blocking store calls off the event loop
    for endpoint in (create_user, add_exercise, list_users, get_logs):
        assert not inspect.iscoroutinefunction(endpoint)


def test_internal_error_keeps_request_id():
    class Broken:
        def list_all(self):
            raise RuntimeError("boom")

    class Repos:
        users = Broken()
        exercises = None

    app.dependency_overrides[get_repositories] = lambda: Repos()
    try:
        r = TestClient(app, raise_server_exceptions=False).get('/api/users', headers={'X-Request-ID': 'req-500'})
    finally:
        app.dependency_overrides.clear()
    assert r.status_code == 500
    assert r.headers['X-Request-ID'] == 'req-500'


def test_add_exercise_accepts_month_name_and_slash_dates(client):
    uid = _user(client, 'formats')
    r = client.post(f'/api/users/{uid}/exercises', json={'description': 'a', 'duration': 5, 'date': 'January 15, 2024'})
    assert r.status_code == 200
    assert r.json()['date'] == 'Mon Jan 15 2024'
    r = client.post(f'/api/users/{uid}/exercises', json={'description': 'b', 'duration': 5, 'date': '2024/01/16'})
    assert r.json()['date'] == 'Tue Jan 16 2024'
    body = client.get(f'/api/users/{uid}/logs', params={'from': '01/16/2024'}).json()
    assert [e['description'] for e in body['log']] == ['b']
