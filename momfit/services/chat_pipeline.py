"""
Chat -> intent -> admin notification -> scheduled event.

A message that reads as an actionable event request from an ordinary member
raises a pending ``AdminNotification``. An events manager then approves it
(which creates the event through the scheduler) or dismisses it.
"""
from sqlalchemy.exc import SQLAlchemyError
from flask import current_app

from ..constants import ErrorCode, NotificationStatus, Permissions
from ..errors import GENERIC_DENIED_MESSAGE, PersistenceError, PermissionDenied
from ..models import db, AdminNotification, CommunityMessage
from ..schemas import EventDetails, EventResult
from ..utils import utcnow


def _summarise(entities):
    title = entities.get('title') or 'an event'
    when = ' '.join(v for v in (entities.get('date'), entities.get('time')) if v)
    return f'Event request: {title}' + (f' ({when})' if when else '')


class ChatIntentPipeline:
    def __init__(self, detector, scheduler, resolver, clock=utcnow):
        self.detector = detector
        self.scheduler = scheduler
        self.resolver = resolver
        self.clock = clock

    def post_message(self, community_id, user_id, content):
        """
        Store a chat message and run intent detection on it.

        Returns ``(message, detection, notification)``; ``notification`` is
        None unless one was raised.
        """
        message = CommunityMessage(community_id=community_id, user_id=user_id, content=content)
        try:
            db.session.add(message)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Error saving chat message in community {community_id}: {e}")
            raise PersistenceError('Could not save message') from e

        detection = self.detector.detect_intent(content, {'community_id': community_id, 'user_id': user_id})
        if not self.detector.is_actionable(detection):
            return message, detection, None

        # Managers can create the event directly
        if self.resolver.has_permission(user_id, Permissions.MANAGE_EVENTS, community_id):
            return message, detection, None

        entities = detection.entities.provided()
        notification = AdminNotification(
            community_id=community_id,
            message_id=message.id,
            intent_type=detection.intent,
            confidence=detection.confidence,
            intent_details={
                'summary': _summarise(entities),
                'original_message': content,
                'entities': entities,
                'source': detection.source,
            },
            status=NotificationStatus.PENDING,
            created_by=user_id,
            created_at=self.clock()
        )
        try:
            db.session.add(notification)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Error creating admin notification for message {message.id}: {e}")
            raise PersistenceError('Could not notify community admins') from e

        current_app.logger.info(
            f"Admin notification {notification.id} raised for message {message.id} "
            f"({detection.intent}, {detection.confidence:.2f})")
        return message, detection, notification

    def pending_notifications(self, community_id):
        return (
            AdminNotification.query
            .filter_by(community_id=community_id, status=NotificationStatus.PENDING)
            .order_by(AdminNotification.created_at.desc(), AdminNotification.id.desc())
            .all()
        )

    def approve_notification(self, notification_id, admin_id, overrides=None):
        """
        Create the event described by a pending notification. ``overrides``
        holds fields the admin corrected; they win over extracted ones.
        Returns an EventResult, or None for an unknown notification.
        """
        notification = self._load_for_admin(notification_id, admin_id)
        if notification is None:
            return None
        if notification.status != NotificationStatus.PENDING:
            return EventResult(success=False, errors=['Notification has already been processed'],
                               error_code=ErrorCode.VALIDATION_FAILED)

        details = dict((notification.intent_details or {}).get('entities') or {})
        if isinstance(overrides, dict):
            details.update({k: v for k, v in overrides.items() if v is not None})
        details = EventDetails.from_loose(details)

        original = (notification.intent_details or {}).get('original_message') or ''
        if not details.title:
            details.title = original[:60].strip() or None
        if not details.description:
            details.description = original or None

        result = self.scheduler.create_event(details, notification.created_by or admin_id,
                                             notification.community_id, ai_generated=True)
        if not result.success:
            return result

        notification.status = NotificationStatus.APPROVED
        notification.processed_by = admin_id
        notification.processed_at = self.clock()
        notification.event_id = result.event.id
        self._commit(notification)
        return result

    def dismiss_notification(self, notification_id, admin_id):
        notification = self._load_for_admin(notification_id, admin_id)
        if notification is None:
            return None
        if notification.status == NotificationStatus.PENDING:
            notification.status = NotificationStatus.DISMISSED
            notification.processed_by = admin_id
            notification.processed_at = self.clock()
            self._commit(notification)
        return notification

    def _load_for_admin(self, notification_id, admin_id):
        notification = db.session.get(AdminNotification, notification_id)
        if notification is None:
            return None
        if not self.resolver.has_permission(admin_id, Permissions.MANAGE_EVENTS, notification.community_id):
            current_app.logger.warning(f"User {admin_id} denied access to notification {notification_id}")
            raise PermissionDenied(GENERIC_DENIED_MESSAGE)
        return notification

    def _commit(self, notification):
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Error updating admin notification {notification.id}: {e}")
            raise PersistenceError('Could not update notification') from e
