from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app import models, repositories
from app.database import engine
from app.main import app
from app.registration import RegistrationForm
from app.services import AuthService, JoinOutcome, MembershipService, issue_token

client = TestClient(app)


def _login(signup_payload):
    body = client.post('/auth/register', json=signup_payload()).json()
    return body['user']['id'], {'Authorization': f"Bearer {body['token']}"}


def test_list_communities(make_community):
    community = make_community(description='Green roofs', image_url='https://example.com/roof.png')
    r = client.get('/communities')
    assert r.status_code == 200
    listed = {c['id']: c for c in r.json()}
    assert listed[community.id]['name'] == community.name
    assert listed[community.id]['description'] == 'Green roofs'


def test_join_is_idempotent(make_community, signup_payload, membership_count):
    community = make_community()
    user_id, headers = _login(signup_payload)

    first = client.post('/communities/join', json={'community_id': community.id}, headers=headers)
    assert first.status_code == 200
    assert first.json() == {'message': 'Successfully joined community', 'status': 'joined'}

    second = client.post('/communities/join', json={'community_id': community.id}, headers=headers)
    assert second.status_code == 200
    assert second.json() == {'message': 'User already in the community', 'status': 'already joined'}

    assert membership_count(user_id, community.id) == 1


def test_join_unknown_community_creates_nothing(signup_payload, membership_count):
    user_id, headers = _login(signup_payload)
    r = client.post('/communities/join', json={'community_id': 999999}, headers=headers)
    assert r.status_code == 404
    assert r.json() == {'message': 'Community not found'}
    assert membership_count(user_id, 999999) == 0


def test_join_requires_authentication(make_community):
    community = make_community()
    r = client.post('/communities/join', json={'community_id': community.id})
    assert r.status_code in (401, 403)
    r = client.post('/communities/join', json={'community_id': community.id},
                    headers={'Authorization': 'Bearer not-a-token'})
    assert r.status_code == 401


def test_join_persistence_failure_is_generic_500(make_community, signup_payload, monkeypatch):
    community = make_community()
    _, headers = _login(signup_payload)

    def broken_add(self, user_id, community_id):
        raise SQLAlchemyError('disk I/O error')

    monkeypatch.setattr(repositories.MembershipRepository, 'add', broken_add)
    r = client.post('/communities/join', json={'community_id': community.id}, headers=headers)
    assert r.status_code == 500
    assert r.json() == {'message': 'Unable to join community'}


def test_membership_status_covers_every_community(make_community, signup_payload):
    joined = make_community()
    other = make_community()
    _, headers = _login(signup_payload)
    client.post('/communities/join', json={'community_id': joined.id}, headers=headers)

    r = client.get('/communities/membership', headers=headers)
    assert r.status_code == 200
    status = r.json()
    all_ids = {c['id'] for c in client.get('/communities').json()}
    assert {int(k) for k in status} == all_ids
    assert status[str(joined.id)] is True
    assert status[str(other.id)] is False
    assert all(isinstance(v, bool) for v in status.values())


def _make_user(session, username):
    form = RegistrationForm(first_name='Grace', last_name='Hopper', email=f'{username}@example.com',
                            username=username, age='40', gender='Female', password='cobol59')
    return AuthService(session).register(form)


def test_concurrent_join_resolved_by_primary_key(session, make_community, membership_count, monkeypatch):
    user = _make_user(session, 'grace.race')
    community = make_community()

    # another request commits the membership between our check and insert
    with Session(engine) as other:
        other.add(models.CommunityUser(user_id=user.id, community_id=community.id))
        other.commit()

    monkeypatch.setattr(repositories.MembershipRepository, 'exists', lambda self, u, c: False)
    outcome = MembershipService(session).join(user, community.id)
    assert outcome is JoinOutcome.ALREADY_MEMBER
    assert membership_count(user.id, community.id) == 1


def test_membership_service_direct(session, make_community):
    user = _make_user(session, 'grace.direct')
    community = make_community()
    service = MembershipService(session)
    assert service.membership_status(user)[community.id] is False
    assert service.join(user, community.id) is JoinOutcome.JOINED
    assert service.join(user, community.id) is JoinOutcome.ALREADY_MEMBER
    assert service.membership_status(user)[community.id] is True


def test_join_with_unusable_community_id_is_not_found(signup_payload):
    _, headers = _login(signup_payload)
    for body in ({'community_id': 'abc'}, {'community_id': None}, {}, {'community_id': 1.5}):
        r = client.post('/communities/join', json=body, headers=headers)
        assert r.status_code == 404, body
        assert r.json() == {'message': 'Community not found'}


def test_join_accepts_numeric_string_id(make_community, signup_payload):
    community = make_community()
    _, headers = _login(signup_payload)
    r = client.post('/communities/join', json={'community_id': str(community.id)}, headers=headers)
    assert r.status_code == 200
    assert r.json()['status'] == 'joined'


def test_token_for_unknown_user_is_rejected():
    ghost = models.User(id=987654, username='ghost.user', email='ghost@example.com', first_name='G',
                        last_name='H', age='30', gender='Other', password_hash='x')
    headers = {'Authorization': f'Bearer {issue_token(ghost)}'}
    r = client.get('/communities/membership', headers=headers)
    assert r.status_code == 401
    assert r.json()['detail'] == 'user not found'
