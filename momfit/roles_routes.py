from datetime import datetime

from flask import Blueprint, request, jsonify
from flask_login import current_user

from .auth.permissions import json_login_required, permission_required
from .constants import Action, Permissions, Scope
from .errors import GENERIC_DENIED_MESSAGE
from .models import db, Community, Role, User, UserRole
from .services import get_role_resolver
from .utils import json_body, text_field

roles_bp = Blueprint('roles_bp', __name__)


def _parse_expiry(value):
    if not value:
        return None
    if not isinstance(value, str):
        raise TypeError(value)
    return datetime.fromisoformat(value.replace('Z', '+00:00'))


def _assign(user_id, community_id=None):
    data = json_body()
    db.get_or_404(User, user_id)
    role_id = data.get('role_id')
    role = db.session.get(Role, role_id) if type(role_id) is int else None
    if role is None:
        return jsonify(success=False, error='Unknown role'), 400
    try:
        expires_at = _parse_expiry(data.get('expires_at'))
    except (TypeError, ValueError):
        return jsonify(success=False, error='expires_at must be an ISO 8601 timestamp'), 400

    assignment = get_role_resolver().assign_role(
        user_id, role.id,
        community_id=community_id,
        assigned_by=current_user.id,
        expires_at=expires_at
    )
    return jsonify(success=True, assignment=assignment.model_dump(mode='json')), 201


@roles_bp.route('/roles', methods=['POST'])
@permission_required(Scope.GLOBAL, Action.MANAGE, 'roles')
def create_role():
    data = json_body()
    name = text_field(data, 'name')
    if not name:
        return jsonify(success=False, error='Role name is required'), 400

    resolver = get_role_resolver()
    if resolver.get_role_by_name(name):
        return jsonify(success=False, error=f"Role '{name}' already exists"), 409

    try:
        role = resolver.create_role(
            name,
            data.get('access_level', 'USER'),
            data.get('permissions') or [],
            description=data.get('description')
        )
    except (TypeError, ValueError) as e:
        return jsonify(success=False, error=str(e)), 400
    return jsonify(success=True, role=role.model_dump()), 201


@roles_bp.route('/roles/<int:role_id>', methods=['GET'])
@json_login_required
def get_role(role_id):
    role = get_role_resolver().get_role(role_id)
    if role is None:
        return jsonify(success=False, error='Role not found'), 404
    return jsonify(success=True, role=role.model_dump())


@roles_bp.route('/roles/<int:role_id>', methods=['PATCH'])
@permission_required(Scope.GLOBAL, Action.MANAGE, 'roles')
def update_role(role_id):
    data = json_body()
    try:
        role = get_role_resolver().update_role(
            role_id,
            permissions=data.get('permissions'),
            access_level=data.get('access_level'),
            description=data.get('description')
        )
    except (TypeError, ValueError) as e:
        return jsonify(success=False, error=str(e)), 400
    if role is None:
        return jsonify(success=False, error='Role not found'), 404
    return jsonify(success=True, role=role.model_dump())


@roles_bp.route('/users/<int:user_id>/roles', methods=['GET'])
@json_login_required
def list_user_roles(user_id):
    resolver = get_role_resolver()
    if user_id != current_user.id and not resolver.has_permission(current_user.id, Permissions.MANAGE_ROLES):
        return jsonify(success=False, error=GENERIC_DENIED_MESSAGE), 403
    assignments = resolver.get_user_roles(user_id)
    return jsonify(success=True, assignments=[a.model_dump(mode='json') for a in assignments])


@roles_bp.route('/users/<int:user_id>/roles', methods=['POST'])
@permission_required(Scope.GLOBAL, Action.MANAGE, 'roles')
def assign_global_role(user_id):
    return _assign(user_id)


@roles_bp.route('/communities/<int:community_id>/members/<int:user_id>/roles', methods=['POST'])
@permission_required(Scope.COMMUNITY, Action.MANAGE, 'members')
def assign_community_role(community_id, user_id):
    db.get_or_404(Community, community_id)
    return _assign(user_id, community_id=community_id)


@roles_bp.route('/role-assignments/<int:assignment_id>', methods=['DELETE'])
@json_login_required
def revoke_role(assignment_id):
    assignment = db.get_or_404(UserRole, assignment_id)
    resolver = get_role_resolver()
    if assignment.community_id is None:
        allowed = resolver.has_permission(current_user.id, Permissions.MANAGE_ROLES)
    else:
        allowed = resolver.has_permission(current_user.id, Permissions.MANAGE_MEMBERS, assignment.community_id)
    if not allowed:
        return jsonify(success=False, error=GENERIC_DENIED_MESSAGE), 403

    resolver.revoke_role(assignment_id)
    return jsonify(success=True)


@roles_bp.route('/permissions/check', methods=['GET'])
@json_login_required
def check_permission():
    """Ask whether the current user holds ?scope=&action=&resource=[&community_id=]."""
    scope = request.args.get('scope')
    action = request.args.get('action')
    resource = request.args.get('resource')
    if not (scope and action and resource):
        return jsonify(success=False, error='scope, action and resource are required'), 400
    community_id = request.args.get('community_id', type=int)
    allowed = get_role_resolver().has_permission(current_user.id, (scope, action, resource), community_id)
    return jsonify(success=True, allowed=allowed)
