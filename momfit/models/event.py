"""Scheduled community event model."""
from datetime import datetime, timezone
from .base import db
from ..utils import isoformat


class CommunityEvent(db.Model):
    __tablename__ = 'community_events'

    id = db.Column(db.Integer, primary_key=True)
    community_id = db.Column(db.Integer, db.ForeignKey('communities.id', ondelete='CASCADE'),
                             nullable=False, index=True)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    start_time = db.Column(db.DateTime, nullable=False, index=True)
    end_time = db.Column(db.DateTime, nullable=False)
    location = db.Column(db.String(255), nullable=True)
    capacity = db.Column(db.Integer, nullable=True)
    tags = db.Column(db.JSON, nullable=True)
    is_online = db.Column(db.Boolean, default=False, nullable=False)
    meeting_url = db.Column(db.String(500), nullable=True)
    ai_generated = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    community = db.relationship('Community', back_populates='events')
    creator = db.relationship('User', foreign_keys=[created_by])

    def __repr__(self):
        return f'<CommunityEvent {self.id} {self.title!r} community_id={self.community_id}>'

    def to_dict(self):
        """Convert event to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'community_id': self.community_id,
            'created_by': self.created_by,
            'title': self.title,
            'description': self.description,
            'start_time': isoformat(self.start_time),
            'end_time': isoformat(self.end_time),
            'location': self.location,
            'capacity': self.capacity,
            'tags': self.tags or [],
            'is_online': self.is_online,
            'meeting_url': self.meeting_url,
            'ai_generated': self.ai_generated,
            'created_at': isoformat(self.created_at),
        }
