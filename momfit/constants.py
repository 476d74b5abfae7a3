
# Held as a *global* assignment, this role passes every permission check.
OWNER_ROLE_NAME = 'Platform Owner'

DEFAULT_CONFIDENCE_THRESHOLD = 0.6

# Events with no time of day start at 09:00 UTC
DEFAULT_START_HOUR = 9
DEFAULT_DURATION_MINUTES = 60


class AccessLevel:
    SUPREME_ADMIN = 'SUPREME_ADMIN'
    ADMIN = 'ADMIN'
    SECONDARY_ADMIN = 'SECONDARY_ADMIN'
    MEMBER = 'MEMBER'
    USER = 'USER'

    ALL = (SUPREME_ADMIN, ADMIN, SECONDARY_ADMIN, MEMBER, USER)


class Scope:
    GLOBAL = 'global'
    COMMUNITY = 'community'
    CONTENT = 'content'


class Action:
    CREATE = 'create'
    READ = 'read'
    UPDATE = 'update'
    DELETE = 'delete'
    WRITE = 'write'
    MANAGE = 'manage'


WILDCARD_RESOURCE = '*'


class Intent:
    CREATE_EVENT = 'create_event'
    SCHEDULE_POLL = 'schedule_poll'
    ADMIN_ALERT = 'admin_alert'
    GENERAL_CHAT = 'general_chat'

    ALL = (CREATE_EVENT, SCHEDULE_POLL, ADMIN_ALERT, GENERAL_CHAT)


class NotificationStatus:
    PENDING = 'pending'
    APPROVED = 'approved'
    DISMISSED = 'dismissed'


class ErrorCode:
    VALIDATION_FAILED = 'validation_failed'
    PERMISSION_DENIED = 'permission_denied'
    NOT_FOUND = 'not_found'


class Permissions:
    """(scope, action, resource) triples checked by the services and routes."""
    CREATE_EVENTS = (Scope.COMMUNITY, Action.CREATE, 'events')
    MANAGE_EVENTS = (Scope.COMMUNITY, Action.MANAGE, 'events')
    MANAGE_MEMBERS = (Scope.COMMUNITY, Action.MANAGE, 'members')
    MANAGE_ROLES = (Scope.GLOBAL, Action.MANAGE, 'roles')
