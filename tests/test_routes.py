from momfit.models import db, AdminNotification, CommunityEvent

from conftest import login

EVENT = {
    'title': 'Sunrise stroller walk',
    'description': 'Easy 5k loop with strollers, coffee afterwards.',
    'date': '2026-03-20',
    'time': '07:30',
    'location': 'Riverside Park',
}


def test_login_and_logout(client, make_user):
    make_user('jane')

    response = client.post('/login', json={'username': 'jane', 'password': 'wrong'})
    assert response.status_code == 401

    response = client.post('/login', json={'username': 'jane@example.com', 'password': 'password'})
    assert response.status_code == 200
    assert response.get_json()['user']['username'] == 'jane'
    assert client.get('/me').status_code == 200

    assert client.post('/logout').status_code == 200
    assert client.get('/me').status_code == 401


def test_inactive_user_cannot_login(client, make_user):
    make_user('gone', status='inactive')
    response = client.post('/login', data={'username': 'gone', 'password': 'password'})
    assert response.status_code == 403


def test_anonymous_create_event_is_401(client, community):
    response = client.post(f'/communities/{community.id}/events', json=EVENT)
    assert response.status_code == 401


def test_member_cannot_create_event_directly(client, member, community):
    login(client, member)
    response = client.post(f'/communities/{community.id}/events', json=EVENT)

    assert response.status_code == 403
    assert response.get_json() == {'success': False, 'error': 'You are not allowed to do that.'}


def test_admin_creates_event(app, client, community_admin, community):
    login(client, community_admin)
    response = client.post(f'/communities/{community.id}/events', json=EVENT)

    assert response.status_code == 201
    body = response.get_json()
    assert body['success'] is True
    assert body['event']['start_time'].startswith('2026-03-20T07:30:00')
    assert 'Setting a capacity limit helps with planning' in body['suggestions']

    listing = client.get(f'/communities/{community.id}/events').get_json()
    assert [e['title'] for e in listing['events']] == ['Sunrise stroller walk']


def test_create_event_validation_errors_are_400(client, community_admin, community):
    login(client, community_admin)
    response = client.post(f'/communities/{community.id}/events',
                           json={'title': 'Yo', 'description': 'short'})

    assert response.status_code == 400
    body = response.get_json()
    assert body['error_code'] == 'validation_failed'
    assert len(body['errors']) == 2


def test_validate_endpoint_never_saves(app, client, member, community):
    login(client, member)
    response = client.post(f'/communities/{community.id}/events/validate', json=dict(EVENT, capacity=5000))

    assert response.status_code == 200
    assert response.get_json()['warnings'] == ['Large capacity event detected. Consider logistics.']
    with app.app_context():
        assert CommunityEvent.query.count() == 0


def test_delete_event_permissions(app, client, member, community_admin, community):
    login(client, community_admin)
    event_id = client.post(f'/communities/{community.id}/events', json=EVENT).get_json()['event']['id']

    login(client, member)
    assert client.delete(f'/events/{event_id}').status_code == 403
    assert client.patch(f'/events/{event_id}', json={'title': 'Mine now'}).status_code == 403

    login(client, community_admin)
    assert client.patch(f'/events/{event_id}', json={'time': '08:00'}).status_code == 200
    assert client.delete(f'/events/{event_id}').status_code == 200
    assert client.delete(f'/events/{event_id}').status_code == 404


def test_chat_message_flow(app, client, member, community_admin, community):
    login(client, member)
    response = client.post(f'/communities/{community.id}/messages',
                           json={'content': "Let's schedule a yoga session tomorrow at 7pm at Central Park"})

    assert response.status_code == 201
    body = response.get_json()
    assert body['intent']['intent'] == 'create_event'
    notification_id = body['notification']['id']

    # members cannot see or approve the queue
    assert client.get(f'/communities/{community.id}/notifications').status_code == 403
    assert client.post(f'/notifications/{notification_id}/approve').status_code == 403

    login(client, community_admin)
    queue = client.get(f'/communities/{community.id}/notifications').get_json()
    assert [n['id'] for n in queue['notifications']] == [notification_id]

    response = client.post(f'/notifications/{notification_id}/approve', json={})
    assert response.status_code == 201
    assert response.get_json()['event']['ai_generated'] is True

    with app.app_context():
        assert db.session.get(AdminNotification, notification_id).status == 'approved'

    messages = client.get(f'/communities/{community.id}/messages').get_json()['messages']
    assert messages[0]['author'] == 'member'


def test_empty_message_rejected(client, member, community):
    login(client, member)
    assert client.post(f'/communities/{community.id}/messages', json={'content': '  '}).status_code == 400


def test_only_owner_creates_roles(client, community_admin, owner):
    payload = {'name': 'Coach', 'access_level': 'MEMBER',
               'permissions': [{'scope': 'community', 'action': 'create', 'resource': 'events'}]}

    login(client, community_admin)
    assert client.post('/roles', json=payload).status_code == 403

    login(client, owner)
    response = client.post('/roles', json=payload)
    assert response.status_code == 201
    assert response.get_json()['role']['permissions'] == [payload['permissions'][0]]
    assert client.post('/roles', json=payload).status_code == 409
    assert client.post('/roles', json=dict(payload, name='Bad', access_level='GOD')).status_code == 400


def test_community_admin_assigns_roles_in_own_community(client, make_user, community_admin, community,
                                                        other_community, default_roles):
    newcomer = make_user('newcomer')
    login(client, community_admin)

    response = client.post(f'/communities/{community.id}/members/{newcomer.id}/roles',
                           json={'role_id': default_roles['Community Co-Admin']})
    assert response.status_code == 201
    assert response.get_json()['assignment']['community_id'] == community.id

    response = client.post(f'/communities/{other_community.id}/members/{newcomer.id}/roles',
                           json={'role_id': default_roles['Community Co-Admin']})
    assert response.status_code == 403

    login(client, newcomer)
    check = client.get('/permissions/check', query_string={
        'scope': 'community', 'action': 'delete', 'resource': 'events', 'community_id': community.id})
    assert check.get_json()['allowed'] is True

    roles = client.get(f'/users/{newcomer.id}/roles').get_json()['assignments']
    assert [a['role']['name'] for a in roles] == ['Community Co-Admin']
    assert client.get(f'/users/{community_admin.id}/roles').status_code == 403


def test_revoke_assignment(client, owner, member, community):
    login(client, member)
    assignment_id = client.get(f'/users/{member.id}/roles').get_json()['assignments'][0]['id']
    assert client.delete(f'/role-assignments/{assignment_id}').status_code == 403

    login(client, owner)
    assert client.delete(f'/role-assignments/{assignment_id}').status_code == 200

    login(client, member)
    assert client.get(f'/users/{member.id}/roles').get_json()['assignments'] == []


def test_assign_with_bad_expiry(client, owner, make_user, default_roles):
    user = make_user('temp')
    login(client, owner)
    response = client.post(f'/users/{user.id}/roles',
                           json={'role_id': default_roles['Platform User'], 'expires_at': 'next week'})
    assert response.status_code == 400


def test_unknown_event_looks_like_a_denied_one(client, make_user, community_admin, community):
    login(client, community_admin)
    event_id = client.post(f'/communities/{community.id}/events', json=EVENT).get_json()['event']['id']

    login(client, make_user('stranger'))
    assert client.delete(f'/events/{event_id}').status_code == 403
    assert client.delete('/events/99999').status_code == 403

    login(client, community_admin)
    assert client.delete('/events/99999').status_code == 404


def test_non_object_json_bodies_are_400(app, client, member, community_admin, owner, community, default_roles):
    login(client, member)
    response = client.post(f'/communities/{community.id}/messages',
                           json={'content': "Let's schedule a yoga session tomorrow at 7pm at Central Park"})
    notification_id = response.get_json()['notification']['id']
    assert client.post(f'/communities/{community.id}/messages', json=['hi']).status_code == 400
    assert client.post(f'/communities/{community.id}/messages', json={'content': 42}).status_code == 400

    login(client, community_admin)
    response = client.post(f'/notifications/{notification_id}/approve', json=['x'])
    assert response.status_code == 400
    assert response.get_json()['success'] is False
    assert client.post(f'/communities/{community.id}/events', json=['x']).status_code == 400
    assert client.post(f'/communities/{community.id}/members/{member.id}/roles', json=[1]).status_code == 400

    login(client, owner)
    assert client.post('/roles', json=['Coach']).status_code == 400
    assert client.post('/roles', json={'name': 7}).status_code == 400
    assert client.patch(f"/roles/{default_roles['Community Member']}", json=[]).status_code == 400
    assert client.post(f'/users/{member.id}/roles', json='role').status_code == 400
    assert client.post(f'/users/{member.id}/roles', json={'role_id': '1'}).status_code == 400
    assert client.post(f'/users/{member.id}/roles',
                       json={'role_id': default_roles['Platform User'], 'expires_at': 5}).status_code == 400

    with app.app_context():
        assert db.session.get(AdminNotification, notification_id).status == 'pending'


def test_login_rejects_non_object_json(client, make_user):
    make_user('walker')
    assert client.post('/login', json=['walker', 'secret']).status_code == 400
    assert client.post('/login', json={'username': 'walker', 'password': 123}).status_code == 400
