"""Small helpers shared by models, services and views."""
from datetime import datetime, timezone

from flask import request

from .errors import InvalidRequest


def utcnow():
    """Timezone-aware current time in UTC. Services take this as their default clock."""
    return datetime.now(timezone.utc)


def as_utc(value):
    """
    Normalise a datetime read back from the database.

    SQLite drops tzinfo on the way out, so naive values are treated as UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def isoformat(value):
    value = as_utc(value)
    return value.isoformat() if value else None


def json_body():
    """The request's JSON object, {} when there is none. Any other JSON value is a 400."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidRequest('Request body must be a JSON object')
    return data


def text_field(data, key):
    """A stripped string field; missing or non-string values read as ''."""
    value = data.get(key)
    return value.strip() if isinstance(value, str) else ''
