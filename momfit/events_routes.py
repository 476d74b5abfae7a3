from flask import Blueprint, request, jsonify
from flask_login import current_user

from .auth.permissions import json_login_required, permission_required
from .constants import Action, ErrorCode, Scope
from .models import db, Community
from .services import get_event_scheduler
from .utils import json_body

events_bp = Blueprint('events_bp', __name__)

STATUS_FOR_ERROR = {
    ErrorCode.VALIDATION_FAILED: 400,
    ErrorCode.PERMISSION_DENIED: 403,
    ErrorCode.NOT_FOUND: 404,
}


def result_response(result, success_status=200):
    """Serialise an EventResult with the matching HTTP status."""
    status = success_status if result.success else STATUS_FOR_ERROR.get(result.error_code, 400)
    return jsonify(result.model_dump(mode='json')), status


@events_bp.route('/communities/<int:community_id>/events', methods=['GET'])
@json_login_required
def list_upcoming_events(community_id):
    db.get_or_404(Community, community_id)
    limit = request.args.get('limit', 10, type=int)
    events = get_event_scheduler().get_upcoming_events(community_id, limit=min(limit, 100))
    return jsonify(success=True, events=[e.model_dump(mode='json') for e in events])


@events_bp.route('/communities/<int:community_id>/events', methods=['POST'])
@permission_required(Scope.COMMUNITY, Action.CREATE, 'events')
def create_event(community_id):
    db.get_or_404(Community, community_id)
    data = json_body()
    result = get_event_scheduler().create_event(data, current_user.id, community_id)
    return result_response(result, success_status=201)


@events_bp.route('/communities/<int:community_id>/events/validate', methods=['POST'])
@json_login_required
def validate_event(community_id):
    """Dry run: report errors, warnings and suggestions without saving."""
    data = json_body()
    validation = get_event_scheduler().validate_event(data)
    return jsonify(validation.model_dump())


@events_bp.route('/events/<int:event_id>', methods=['PATCH'])
@json_login_required
def update_event(event_id):
    data = json_body()
    result = get_event_scheduler().update_event(event_id, data, current_user.id)
    return result_response(result)


@events_bp.route('/events/<int:event_id>', methods=['DELETE'])
@json_login_required
def delete_event(event_id):
    result = get_event_scheduler().delete_event(event_id, current_user.id)
    return result_response(result)
