"""Admin notification raised when a chat message looks like an event request."""
from datetime import datetime, timezone
from .base import db
from ..utils import isoformat


class AdminNotification(db.Model):
    __tablename__ = 'admin_notifications'

    id = db.Column(db.Integer, primary_key=True)
    community_id = db.Column(db.Integer, db.ForeignKey('communities.id', ondelete='CASCADE'),
                             nullable=False, index=True)
    message_id = db.Column(db.Integer, db.ForeignKey('community_messages.id', ondelete='SET NULL'),
                           nullable=True)
    intent_type = db.Column(db.String(50), nullable=False)
    confidence = db.Column(db.Float, nullable=False, default=0.0)
    # {"summary": ..., "original_message": ..., "entities": {...}}
    intent_details = db.Column(db.JSON, nullable=False)
    status = db.Column(db.Enum('pending', 'approved', 'dismissed', name='admin_notification_status'),
                       default='pending', nullable=False)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    processed_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    processed_at = db.Column(db.DateTime, nullable=True)
    event_id = db.Column(db.Integer, db.ForeignKey('community_events.id', ondelete='SET NULL'), nullable=True)

    message = db.relationship('CommunityMessage')

    def __repr__(self):
        return f'<AdminNotification {self.id} {self.intent_type} status={self.status}>'

    def to_dict(self):
        return {
            'id': self.id,
            'community_id': self.community_id,
            'message_id': self.message_id,
            'intent_type': self.intent_type,
            'confidence': self.confidence,
            'intent_details': self.intent_details,
            'status': self.status,
            'created_by': self.created_by,
            'created_at': isoformat(self.created_at),
            'processed_by': self.processed_by,
            'processed_at': isoformat(self.processed_at),
            'event_id': self.event_id,
        }
