"""
Models package for the MomFit application.
"""
from .base import db

from .user import User
from .community import Community

# Permission system models
from .permission import Permission
from .role import Role
from .role_permission import RolePermission
from .user_role import UserRole

# Community content
from .event import CommunityEvent
from .message import CommunityMessage
from .post import CommunityPost
from .admin_notification import AdminNotification

# Import Flask-Login user loader
from .. import login_manager


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


__all__ = [
    'db',
    'User',
    'Community',
    'load_user',
    # Permission system models
    'Permission',
    'Role',
    'RolePermission',
    'UserRole',
    # Community content
    'CommunityEvent',
    'CommunityMessage',
    'CommunityPost',
    'AdminNotification',
]
