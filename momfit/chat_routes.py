from flask import Blueprint, request, jsonify
from flask_login import current_user

from .auth.permissions import json_login_required, permission_required
from .constants import Action, Scope
from .events_routes import result_response
from .models import db, Community, CommunityMessage
from .services import get_chat_pipeline
from .utils import json_body, text_field

chat_bp = Blueprint('chat_bp', __name__)


@chat_bp.route('/communities/<int:community_id>/messages', methods=['GET'])
@json_login_required
def list_messages(community_id):
    db.get_or_404(Community, community_id)
    limit = request.args.get('limit', 50, type=int)
    messages = (
        CommunityMessage.query
        .filter_by(community_id=community_id)
        .order_by(CommunityMessage.created_at.desc(), CommunityMessage.id.desc())
        .limit(min(max(limit, 1), 200))
        .all()
    )
    return jsonify(success=True, messages=[m.to_dict() for m in reversed(messages)])


@chat_bp.route('/communities/<int:community_id>/messages', methods=['POST'])
@json_login_required
def post_message(community_id):
    db.get_or_404(Community, community_id)
    data = json_body()
    content = text_field(data, 'content')
    if not content:
        return jsonify(success=False, error='Message cannot be empty'), 400

    message, detection, notification = get_chat_pipeline().post_message(community_id, current_user.id, content)
    return jsonify(
        success=True,
        message=message.to_dict(),
        intent=detection.model_dump(mode='json', exclude_none=True),
        notification=notification.to_dict() if notification else None
    ), 201


@chat_bp.route('/communities/<int:community_id>/notifications', methods=['GET'])
@permission_required(Scope.COMMUNITY, Action.MANAGE, 'events')
def list_notifications(community_id):
    notifications = get_chat_pipeline().pending_notifications(community_id)
    return jsonify(success=True, notifications=[n.to_dict() for n in notifications])


@chat_bp.route('/notifications/<int:notification_id>/approve', methods=['POST'])
@json_login_required
def approve_notification(notification_id):
    overrides = json_body()
    result = get_chat_pipeline().approve_notification(notification_id, current_user.id, overrides)
    if result is None:
        return jsonify(success=False, error='Notification not found'), 404
    return result_response(result, success_status=201)


@chat_bp.route('/notifications/<int:notification_id>/dismiss', methods=['POST'])
@json_login_required
def dismiss_notification(notification_id):
    notification = get_chat_pipeline().dismiss_notification(notification_id, current_user.id)
    if notification is None:
        return jsonify(success=False, error='Notification not found'), 404
    return jsonify(success=True, notification=notification.to_dict())
