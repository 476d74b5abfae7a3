"""Community model."""
from datetime import datetime, timezone
from .base import db


class Community(db.Model):
    __tablename__ = 'communities'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False, unique=True, index=True)
    description = db.Column(db.Text, nullable=True)
    tags = db.Column(db.JSON, nullable=True)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    events = db.relationship('CommunityEvent', back_populates='community',
                             cascade='all, delete-orphan', lazy='dynamic')

    def __repr__(self):
        return f'<Community {self.id}: {self.name}>'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'tags': self.tags or [],
            'created_by': self.created_by,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
