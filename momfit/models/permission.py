"""Permission grant model for the authorization system."""
from datetime import datetime, timezone
from .base import db


class Permission(db.Model):
    """A single {scope, action, resource} grant that roles can carry."""
    __tablename__ = 'permissions'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, index=True)
    description = db.Column(db.Text)
    scope = db.Column(db.String(50), nullable=False)     # 'global', 'community', 'content'
    action = db.Column(db.String(50), nullable=False)    # 'read', 'create', ..., 'manage'
    resource = db.Column(db.String(50), nullable=False)  # e.g. 'events', 'members' or '*'
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    roles = db.relationship('Role', secondary='role_permissions', back_populates='permissions')

    __table_args__ = (
        db.UniqueConstraint('scope', 'action', 'resource', name='unique_permission_grant'),
    )

    def __repr__(self):
        return f'<Permission {self.scope}:{self.action}:{self.resource}>'

    @staticmethod
    def get_or_create(scope, action, resource, name=None, description=None):
        """Find the grant row for a triple, adding it to the session if missing."""
        perm = Permission.query.filter_by(scope=scope, action=action, resource=resource).first()
        if perm is None:
            perm = Permission(
                scope=scope,
                action=action,
                resource=resource,
                name=name or f'{action}_{resource}',
                description=description
            )
            db.session.add(perm)
        return perm
