"""Route decorators backed by the role resolver."""
from functools import wraps

from flask import jsonify
from flask_login import current_user

from ..errors import GENERIC_DENIED_MESSAGE
from ..services import get_role_resolver


def permission_required(scope, action, resource):
    """
    Decorator to require a {scope, action, resource} permission for a route.

    The community comes from the route's ``community_id`` argument when it
    has one; otherwise only global assignments are considered.

    Usage:
        @events_bp.route('/communities/<int:community_id>/events', methods=['POST'])
        @permission_required('community', 'create', 'events')
        def create_event(community_id):
            ...
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                return jsonify(success=False, error='Login required'), 401
            community_id = kwargs.get('community_id')
            if not get_role_resolver().has_permission(current_user.id, (scope, action, resource), community_id):
                return jsonify(success=False, error=GENERIC_DENIED_MESSAGE), 403
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def json_login_required(f):
    """Like flask_login.login_required, but answers 401 JSON instead of redirecting."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return jsonify(success=False, error='Login required'), 401
        return f(*args, **kwargs)
    return decorated_function
