from datetime import datetime, timezone
from .base import db
from ..utils import isoformat


class CommunityMessage(db.Model):
    __tablename__ = 'community_messages'

    id = db.Column(db.Integer, primary_key=True)
    community_id = db.Column(db.Integer, db.ForeignKey('communities.id', ondelete='CASCADE'),
                             nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, index=True, default=lambda: datetime.now(timezone.utc))

    author = db.relationship('User', foreign_keys=[user_id])

    def __repr__(self):
        return f'<CommunityMessage {self.id} from {self.user_id} in {self.community_id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'community_id': self.community_id,
            'user_id': self.user_id,
            'author': self.author.display_name if self.author else 'System',
            'content': self.content,
            'created_at': isoformat(self.created_at),
        }
