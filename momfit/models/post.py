from datetime import datetime, timezone
from .base import db


class CommunityPost(db.Model):
    """A post in a community's stream. Event announcements land here."""
    __tablename__ = 'community_posts'

    id = db.Column(db.Integer, primary_key=True)
    community_id = db.Column(db.Integer, db.ForeignKey('communities.id', ondelete='CASCADE'),
                             nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, index=True, default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f'<CommunityPost {self.id} community_id={self.community_id}>'
