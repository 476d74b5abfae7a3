"""Role model for authorization system."""
from datetime import datetime, timezone
from .base import db


class Role(db.Model):
    """Represents a role that can be assigned to users, globally or per community."""
    __tablename__ = 'roles'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), unique=True, nullable=False, index=True)
    description = db.Column(db.Text)
    access_level = db.Column(db.String(20), nullable=False, default='USER')
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    permissions = db.relationship(
        'Permission',
        secondary='role_permissions',
        back_populates='roles',
        order_by='RolePermission.id'
    )

    def __repr__(self):
        return f'<Role {self.name}>'

    def add_permission(self, permission):
        """Add a permission to this role."""
        if permission not in self.permissions:
            self.permissions.append(permission)

