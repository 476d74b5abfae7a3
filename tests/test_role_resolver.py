import itertools
import warnings
from datetime import timedelta

import pytest
from sqlalchemy import event
from sqlalchemy.exc import OperationalError, SAWarning

from momfit.constants import OWNER_ROLE_NAME
from momfit.errors import PersistenceError
from momfit.models import db, UserRole
from momfit.schemas import Grant
from momfit.services.role_resolver import as_grant, grant_matches

SCOPES = ['global', 'community', 'content']
ACTIONS = ['create', 'read', 'update', 'delete', 'write', 'manage']
RESOURCES = ['events', 'members', 'profile', '*']


class QueryCounter:
    def __init__(self, engine):
        self.engine = engine
        self.count = 0

    def __enter__(self):
        event.listen(self.engine, 'before_cursor_execute', self._count)
        return self

    def __exit__(self, *exc):
        event.remove(self.engine, 'before_cursor_execute', self._count)

    def _count(self, *args, **kwargs):
        self.count += 1


def test_grant_matches_agrees_with_predicate_for_every_pair():
    triples = list(itertools.product(SCOPES, ACTIONS, RESOURCES))
    for g, r in itertools.product(triples, repeat=2):
        grant = Grant(scope=g[0], action=g[1], resource=g[2])
        requested = Grant(scope=r[0], action=r[1], resource=r[2])
        expected = ((g[0] == 'global' or g[0] == r[0])
                    and (g[1] == 'manage' or g[1] == r[1])
                    and (g[2] == '*' or g[2] == r[2]))
        assert grant_matches(grant, requested) is expected, (g, r)


def test_scope_rule_is_asymmetric():
    global_grant = as_grant(('global', 'read', 'events'))
    community_grant = as_grant(('community', 'read', 'events'))

    assert grant_matches(global_grant, as_grant(('community', 'read', 'events')))
    assert not grant_matches(community_grant, as_grant(('global', 'read', 'events')))


def test_as_grant_accepts_tuples_and_mappings():
    assert as_grant(('community', 'manage', 'events')) == Grant(scope='community', action='manage', resource='events')
    assert as_grant({'scope': 'content', 'action': 'read', 'resource': 'public'}).resource == 'public'


def test_owner_bypasses_every_check(resolver, owner, community):
    for scope, action, resource in [('global', 'delete', 'platform'),
                                    ('community', 'manage', 'events'),
                                    ('content', 'write', 'anything')]:
        assert resolver.has_permission(owner.id, (scope, action, resource))
        assert resolver.has_permission(owner.id, (scope, action, resource), community.id)


def test_owner_role_held_in_a_community_is_not_a_bypass(resolver, make_user, community, default_roles):
    user = make_user('scoped_owner')
    resolver.assign_role(user.id, default_roles[OWNER_ROLE_NAME], community_id=community.id)

    # the owner role carries global/manage/*, so its grant still matches in that community
    assert resolver.has_permission(user.id, ('community', 'read', 'events'), community.id)
    # but it does nothing outside a community context
    assert not resolver.has_permission(user.id, ('community', 'read', 'events'))


def test_expired_owner_assignment_is_inert(resolver, make_user, default_roles, clock):
    user = make_user('former_owner')
    resolver.assign_role(user.id, default_roles[OWNER_ROLE_NAME], expires_at=clock() - timedelta(minutes=1))

    assert not resolver.has_permission(user.id, ('global', 'read', 'events'))


def test_expired_assignment_does_not_match(resolver, make_user, community, default_roles, clock):
    user = make_user('temp_admin')
    resolver.assign_role(user.id, default_roles['Community Admin'], community_id=community.id,
                         expires_at=clock() + timedelta(days=1))
    assert resolver.has_permission(user.id, ('community', 'manage', 'events'), community.id)

    clock.advance(days=2)
    assert not resolver.has_permission(user.id, ('community', 'manage', 'events'), community.id)

    # an identical assignment without expiry still matches
    resolver.assign_role(user.id, default_roles['Community Admin'], community_id=community.id)
    assert resolver.has_permission(user.id, ('community', 'manage', 'events'), community.id)


def test_community_assignments_ignored_without_community(resolver, make_user, community):
    role = resolver.create_role('Community Everything', 'ADMIN', [('community', 'manage', '*')])
    user = make_user('local_hero')
    resolver.assign_role(user.id, role.id, community_id=community.id)

    assert not resolver.has_permission(user.id, ('community', 'manage', 'events'))
    assert resolver.has_permission(user.id, ('community', 'manage', 'events'), community.id)


def test_community_assignment_only_applies_to_its_community(resolver, member, community, other_community):
    assert resolver.has_permission(member.id, ('community', 'create', 'content'), community.id)
    assert not resolver.has_permission(member.id, ('community', 'create', 'content'), other_community.id)


def test_community_grant_never_satisfies_global_request(resolver, community_admin, community):
    assert not resolver.has_permission(community_admin.id, ('global', 'manage', 'members'), community.id)


def test_user_without_assignments_is_denied(resolver, make_user, community):
    user = make_user('nobody')
    assert not resolver.has_permission(user.id, ('community', 'read', 'events'), community.id)


def test_get_user_roles_second_call_is_a_cache_hit(resolver, member):
    first = resolver.get_user_roles(member.id)

    with QueryCounter(db.engine) as counter:
        second = resolver.get_user_roles(member.id)

    assert counter.count == 0
    assert first == second
    assert first[0].role.name == 'Community Member'


def test_assign_role_invalidates_only_that_user(resolver, member, community_admin, community, default_roles):
    resolver.get_user_roles(member.id)
    resolver.get_user_roles(community_admin.id)

    resolver.assign_role(member.id, default_roles['Community Co-Admin'], community_id=community.id)

    assert member.id not in resolver.user_role_cache
    assert community_admin.id in resolver.user_role_cache
    assert len(resolver.get_user_roles(member.id)) == 2


def test_cache_is_not_refreshed_by_writes_outside_the_resolver(resolver, member, community):
    assert resolver.has_permission(member.id, ('community', 'create', 'content'), community.id)

    UserRole.query.filter_by(user_id=member.id).delete()
    db.session.commit()

    # still served from the cache until it is cleared
    assert resolver.has_permission(member.id, ('community', 'create', 'content'), community.id)
    resolver.clear_cache()
    assert not resolver.has_permission(member.id, ('community', 'create', 'content'), community.id)


def test_revoke_role(resolver, member, community):
    assignment = resolver.get_user_roles(member.id)[0]

    assert resolver.revoke_role(assignment.id) is True
    assert resolver.revoke_role(assignment.id) is False
    assert not resolver.has_permission(member.id, ('community', 'create', 'content'), community.id)


def test_assigned_by_defaults_to_user(resolver, make_user, default_roles):
    user = make_user('self_assigned')
    assignment = resolver.assign_role(user.id, default_roles['Platform User'])
    assert assignment.assigned_by == user.id
    assert assignment.is_global


def test_get_role_uses_cache_and_returns_none_for_unknown(resolver, default_roles):
    role_id = default_roles['Community Admin']
    resolver.clear_cache()

    role = resolver.get_role(role_id)
    with QueryCounter(db.engine) as counter:
        assert resolver.get_role(role_id) == role
    assert counter.count == 0
    assert Grant(scope='community', action='manage', resource='events') in role.permissions

    assert resolver.get_role(9999) is None


def test_create_role_rejects_unknown_access_level(resolver):
    with pytest.raises(ValueError):
        resolver.create_role('Weird', 'GOD_MODE', [])


def test_create_role_adds_role_before_grant_lookups(resolver):
    with warnings.catch_warnings():
        warnings.simplefilter('error', SAWarning)
        role = resolver.create_role('Coach', 'MEMBER',
                                    [('community', 'create', 'events'), ('community', 'read', 'events')])

    assert [(g.action, g.resource) for g in role.permissions] == [('create', 'events'), ('read', 'events')]


def test_create_role_with_bad_grant_stores_nothing(resolver):
    with pytest.raises(ValueError):
        resolver.create_role('Coach', 'MEMBER', [('community', 'create', 'events'), {'scope': 'galaxy'}])
    db.session.commit()

    assert resolver.get_role_by_name('Coach') is None


def test_update_role_changes_grants_and_drops_cached_assignments(resolver, member, community, default_roles):
    assert not resolver.has_permission(member.id, ('community', 'create', 'events'), community.id)

    resolver.update_role(default_roles['Community Member'],
                         permissions=[('community', 'create', 'content'), ('community', 'create', 'events')])

    assert resolver.user_role_cache == {}
    assert resolver.has_permission(member.id, ('community', 'create', 'events'), community.id)


def test_store_failure_raises_persistence_error(resolver, make_user, default_roles, monkeypatch):
    user = make_user('unlucky')

    def broken_commit():
        raise OperationalError('INSERT', {}, Exception('database is locked'))

    monkeypatch.setattr(db.session, 'commit', broken_commit)
    with pytest.raises(PersistenceError):
        resolver.assign_role(user.id, default_roles['Platform User'])
