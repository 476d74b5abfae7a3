"""Role assignments: a role bound to a user, optionally per community and time-limited."""
from datetime import datetime, timezone
from .base import db


class UserRole(db.Model):
    """
    One assignment row. ``community_id`` NULL means the assignment is global.

    Rows past ``expires_at`` are kept; the resolver ignores them. A user may
    hold any number of rows, including overlapping ones.
    """
    __tablename__ = 'user_roles'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    role_id = db.Column(db.Integer, db.ForeignKey('roles.id', ondelete='CASCADE'), nullable=False)
    community_id = db.Column(db.Integer, db.ForeignKey('communities.id', ondelete='CASCADE'), nullable=True)
    assigned_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    assigned_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))
    expires_at = db.Column(db.DateTime, nullable=True)

    user = db.relationship('User', foreign_keys=[user_id], back_populates='role_assignments')
    role = db.relationship('Role')
    community = db.relationship('Community')

    __table_args__ = (
        db.Index('ix_user_roles_user', 'user_id'),
    )

    def __repr__(self):
        return f'<UserRole user_id={self.user_id} role_id={self.role_id} community_id={self.community_id}>'
