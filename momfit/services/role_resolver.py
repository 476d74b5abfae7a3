"""
Role and permission resolution.

``RoleResolver`` answers "may user U do action A on resource R in scope S
(optionally inside community C)?" It keeps two process-local maps:

* ``role_cache``: role id -> RoleDefinition
* ``user_role_cache``: user id -> tuple of RoleAssignment

Writes made through the resolver invalidate the affected entries. Nothing is
shared across processes; another worker sees a new assignment on its next
cold read or after ``clear_cache()``.
"""
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload, selectinload

from ..constants import OWNER_ROLE_NAME, AccessLevel, Action, Scope, WILDCARD_RESOURCE
from ..errors import PersistenceError
from ..models import db, Permission, Role, UserRole
from ..schemas import Grant, RoleAssignment, RoleDefinition
from ..utils import as_utc, utcnow


def as_grant(value):
    """Accept a Grant, a (scope, action, resource) tuple or a mapping."""
    if isinstance(value, Grant):
        return value
    if isinstance(value, dict):
        return Grant(**value)
    if isinstance(value, (tuple, list)) and len(value) == 3:
        scope, action, resource = value
        return Grant(scope=scope, action=action, resource=resource)
    return Grant.model_validate(value)


def grant_matches(grant, requested):
    """
    True when ``grant`` satisfies the ``requested`` permission.

    A global-scope grant satisfies any requested scope; a scoped grant never
    satisfies a global request. ``manage`` covers every action and ``*``
    covers every resource.
    """
    return (
        (grant.scope == Scope.GLOBAL or grant.scope == requested.scope)
        and (grant.action == Action.MANAGE or grant.action == requested.action)
        and (grant.resource == WILDCARD_RESOURCE or grant.resource == requested.resource)
    )


class RoleResolver:
    def __init__(self, clock=utcnow, owner_role_name=OWNER_ROLE_NAME):
        self.clock = clock
        self.owner_role_name = owner_role_name
        self.role_cache = {}
        self.user_role_cache = {}

    # Writes

    def assign_role(self, user_id, role_id, community_id=None, assigned_by=None, expires_at=None):
        """
        Insert an assignment row. Neither the role nor the assigner's authority
        is checked here; that policy belongs to the caller.
        """
        if expires_at is not None:
            expires_at = as_utc(expires_at)
        assignment = UserRole(
            user_id=user_id,
            role_id=role_id,
            community_id=community_id,
            assigned_by=assigned_by or user_id,
            assigned_at=self.clock(),
            expires_at=expires_at
        )
        self._commit(assignment, 'assigning role')

        # Drop the whole entry rather than patching it
        self.user_role_cache.pop(user_id, None)
        current_app.logger.info(
            f"Assigned role {role_id} to user {user_id} (community={community_id}, expires={expires_at})")
        return self._assignment_snapshot(assignment)

    def revoke_role(self, assignment_id):
        """Delete one assignment row. Returns False if it did not exist."""
        try:
            assignment = db.session.get(UserRole, assignment_id)
            if assignment is None:
                return False
            user_id = assignment.user_id
            db.session.delete(assignment)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Error revoking role assignment {assignment_id}: {e}")
            raise PersistenceError(f'Could not revoke assignment {assignment_id}') from e

        self.user_role_cache.pop(user_id, None)
        return True

    def create_role(self, name, access_level, permissions, description=None):
        if access_level not in AccessLevel.ALL:
            raise ValueError(f'Unknown access level: {access_level}')

        grants = [as_grant(g) for g in permissions]
        role = Role(name=name, access_level=access_level, description=description)
        try:
            # In the session before the grant lookups autoflush
            db.session.add(role)
            for grant in grants:
                role.add_permission(Permission.get_or_create(grant.scope, grant.action, grant.resource))
        except SQLAlchemyError as e:
            db.session.rollback()
            raise PersistenceError(f'Could not create role {name}') from e
        self._commit(role, 'creating role')

        definition = self._role_snapshot(role)
        self.role_cache[definition.id] = definition
        return definition

    def update_role(self, role_id, permissions=None, access_level=None, description=None):
        """Replace a role's grants and/or metadata. Returns None for an unknown role."""
        if access_level is not None and access_level not in AccessLevel.ALL:
            raise ValueError(f'Unknown access level: {access_level}')
        try:
            role = db.session.get(Role, role_id)
            if role is None:
                return None
            if access_level is not None:
                role.access_level = access_level
            if description is not None:
                role.description = description
            if permissions is not None:
                grants = [as_grant(g) for g in permissions]
                role.permissions = []
                for grant in grants:
                    role.add_permission(Permission.get_or_create(grant.scope, grant.action, grant.resource))
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Error updating role {role_id}: {e}")
            raise PersistenceError(f'Could not update role {role_id}') from e

        definition = self._role_snapshot(role)
        self.role_cache[role_id] = definition
        # Cached assignments embed the old definition
        self.user_role_cache.clear()
        return definition

    # Reads

    def get_role(self, role_id):
        if role_id in self.role_cache:
            return self.role_cache[role_id]
        try:
            role = db.session.get(Role, role_id)
        except SQLAlchemyError as e:
            raise PersistenceError(f'Could not load role {role_id}') from e
        if role is None:
            return None
        definition = self._role_snapshot(role)
        self.role_cache[role_id] = definition
        return definition

    def get_role_by_name(self, name):
        try:
            role = Role.query.filter_by(name=name).first()
        except SQLAlchemyError as e:
            raise PersistenceError(f'Could not load role {name}') from e
        if role is None:
            return None
        definition = self._role_snapshot(role)
        self.role_cache[definition.id] = definition
        return definition

    def get_user_roles(self, user_id):
        """
        All assignments for ``user_id`` joined with their roles, expired ones
        included. Served from cache when present.
        """
        if user_id in self.user_role_cache:
            return list(self.user_role_cache[user_id])

        try:
            rows = (
                UserRole.query
                .options(joinedload(UserRole.role).selectinload(Role.permissions))
                .filter(UserRole.user_id == user_id)
                .order_by(UserRole.id)
                .all()
            )
        except SQLAlchemyError as e:
            current_app.logger.error(f"Error getting roles for user {user_id}: {e}")
            raise PersistenceError(f'Could not load roles for user {user_id}') from e

        assignments = tuple(self._assignment_snapshot(row) for row in rows)
        self.user_role_cache[user_id] = assignments
        return list(assignments)

    def has_permission(self, user_id, permission, community_id=None):
        """
        Global assignments are checked first (the owner role short-circuits);
        community assignments only when ``community_id`` is given. Returns
        False for "no permission"; raises only when the store fails.
        """
        requested = as_grant(permission)
        now = self.clock()
        assignments = self.get_user_roles(user_id)

        for assignment in assignments:
            if not assignment.is_global or assignment.role is None or assignment.is_expired(now):
                continue
            if assignment.role.name == self.owner_role_name:
                return True
            if any(grant_matches(g, requested) for g in assignment.role.permissions):
                return True

        if community_id is None:
            return False

        for assignment in assignments:
            if assignment.community_id != community_id or assignment.role is None:
                continue
            if assignment.is_expired(now):
                continue
            if any(grant_matches(g, requested) for g in assignment.role.permissions):
                return True

        return False

    def clear_cache(self):
        self.role_cache.clear()
        self.user_role_cache.clear()

    # Helpers

    def _commit(self, obj, what):
        try:
            db.session.add(obj)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Error {what}: {e}")
            raise PersistenceError(f'Store rejected write while {what}') from e

    @staticmethod
    def _role_snapshot(role):
        return RoleDefinition(
            id=role.id,
            name=role.name,
            access_level=role.access_level,
            description=role.description,
            permissions=[Grant.model_validate(p) for p in role.permissions]
        )

    def _assignment_snapshot(self, row):
        return RoleAssignment(
            id=row.id,
            user_id=row.user_id,
            role_id=row.role_id,
            community_id=row.community_id,
            assigned_by=row.assigned_by,
            assigned_at=row.assigned_at,
            expires_at=row.expires_at,
            role=self._role_snapshot(row.role) if row.role is not None else None
        )
