"""
Event scheduling.

Turns ``EventDetails`` into a persisted ``CommunityEvent`` with the same
rules whether the details came from a form or from intent extraction:

1. validate (errors block, warnings and suggestions do not)
2. compute start/end in UTC
3. persist
4. post an announcement (best effort; a failure is logged only)
"""
import re
from datetime import datetime, time, timedelta, timezone

from flask import current_app
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from ..constants import DEFAULT_DURATION_MINUTES, DEFAULT_START_HOUR, ErrorCode, Permissions
from ..errors import GENERIC_DENIED_MESSAGE, PersistenceError
from ..models import db, CommunityEvent
from ..schemas import EventDetails, EventResult, ScheduledEvent, ValidationResult
from ..utils import as_utc, utcnow
from .announcements import format_event_announcement, post_announcement

TIME_PATTERN = re.compile(r'^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$')

MIN_TITLE_LENGTH = 3
MIN_DESCRIPTION_LENGTH = 10
MIN_DURATION_MINUTES = 15
LONG_DURATION_MINUTES = 480
LARGE_CAPACITY = 1000


def parse_event_date(value):
    """``YYYY-MM-DD`` to a date, or None if it does not parse."""
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except (TypeError, ValueError):
        return None


def parse_event_time(value):
    if not value or not TIME_PATTERN.match(value):
        return None
    hours, minutes = value.split(':')
    return time(int(hours), int(minutes))


def compute_start_time(details, now):
    """
    date + time -> that instant in UTC
    date only   -> 09:00 UTC on that date
    no date     -> 09:00 UTC tomorrow, relative to ``now``
    """
    event_date = parse_event_date(details.date) if details.date else None
    if event_date is not None:
        start = parse_event_time(details.time) if details.time else None
        if start is None:
            start = time(DEFAULT_START_HOUR, 0)
        return datetime.combine(event_date, start, tzinfo=timezone.utc)

    tomorrow = as_utc(now).date() + timedelta(days=1)
    return datetime.combine(tomorrow, time(DEFAULT_START_HOUR, 0), tzinfo=timezone.utc)


def compute_end_time(start_time, duration=None):
    return start_time + timedelta(minutes=duration or DEFAULT_DURATION_MINUTES)


def _field_errors(exc):
    names = {field.alias: name for name, field in EventDetails.model_fields.items() if field.alias}
    fields = sorted({names.get(err['loc'][0], str(err['loc'][0])) for err in exc.errors() if err.get('loc')})
    return [f'Invalid value for {field}' for field in fields] or ['Invalid event details']


class EventScheduler:
    def __init__(self, resolver, clock=utcnow, announcer=post_announcement):
        self.resolver = resolver
        self.clock = clock
        self.announcer = announcer

    def validate_event(self, details, partial=False):
        """
        Check ``details`` against the event rules. With ``partial=True`` only
        the supplied fields are checked, as for an update.
        """
        if not isinstance(details, EventDetails):
            try:
                details = EventDetails.model_validate(details or {})
            except ValidationError as e:
                return ValidationResult(is_valid=False, errors=_field_errors(e))

        errors = []
        warnings = []
        suggestions = []

        if details.title is not None or not partial:
            if not details.title or len(details.title) < MIN_TITLE_LENGTH:
                errors.append('Event title must be at least 3 characters long')

        if details.description is not None or not partial:
            if not details.description or len(details.description) < MIN_DESCRIPTION_LENGTH:
                errors.append('Event description must be at least 10 characters long')

        if details.date is not None:
            event_date = parse_event_date(details.date)
            if event_date is None:
                errors.append('Invalid date format. Use YYYY-MM-DD format')
            elif event_date < as_utc(self.clock()).date():
                errors.append('Event date cannot be in the past')

        if details.time is not None and not TIME_PATTERN.match(details.time):
            errors.append('Invalid time format. Use HH:MM format')

        if details.duration is not None:
            if details.duration < MIN_DURATION_MINUTES:
                errors.append('Event duration must be at least 15 minutes')
            elif details.duration > LONG_DURATION_MINUTES:
                warnings.append('Event duration is quite long (8+ hours). Is this intentional?')

        if details.capacity is not None:
            if details.capacity < 1:
                errors.append('Event capacity must be at least 1')
            elif details.capacity > LARGE_CAPACITY:
                warnings.append('Large capacity event detected. Consider logistics.')

        if not partial:
            if not details.location and not details.is_online:
                suggestions.append('Consider adding a location or marking as online event')
            if not details.tags:
                suggestions.append('Adding tags helps others find your event')
            if details.capacity is None:
                suggestions.append('Setting a capacity limit helps with planning')

        return ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            suggestions=suggestions
        )

    def create_event(self, details, user_id, community_id, ai_generated=False):
        if not isinstance(details, EventDetails):
            try:
                details = EventDetails.model_validate(details or {})
            except ValidationError as e:
                return EventResult(success=False, errors=_field_errors(e),
                                   error_code=ErrorCode.VALIDATION_FAILED)

        validation = self.validate_event(details)
        if not validation.is_valid:
            return EventResult(
                success=False,
                errors=validation.errors,
                warnings=validation.warnings,
                suggestions=validation.suggestions,
                error_code=ErrorCode.VALIDATION_FAILED
            )

        start_time = compute_start_time(details, self.clock())
        end_time = compute_end_time(start_time, details.duration)

        event = CommunityEvent(
            community_id=community_id,
            created_by=user_id,
            title=details.title,
            description=details.description,
            start_time=start_time,
            end_time=end_time,
            location=details.location,
            capacity=details.capacity,
            tags=details.tags or [],
            is_online=bool(details.is_online),
            meeting_url=details.meeting_url,
            ai_generated=ai_generated
        )
        try:
            db.session.add(event)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Error creating event in community {community_id}: {e}")
            raise PersistenceError(f'Could not create event in community {community_id}') from e

        scheduled = ScheduledEvent.model_validate(event)
        current_app.logger.info(
            f"Event {scheduled.id} created in community {community_id} by user {user_id} "
            f"(ai_generated={ai_generated})")

        # The event is committed; the announcement must not change the outcome
        try:
            self.announcer(community_id, format_event_announcement(scheduled.title, scheduled.start_time),
                           user_id=user_id)
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Failed to announce event {scheduled.id}: {e}")

        return EventResult(
            success=True,
            event=scheduled,
            warnings=validation.warnings,
            suggestions=validation.suggestions
        )

    def update_event(self, event_id, updates, user_id):
        """
        Apply the supplied fields. Date, time and duration are merged with the
        current schedule, so changing only the time keeps the date.
        """
        event = db.session.get(CommunityEvent, event_id)
        if event is None:
            return self._missing(event_id, user_id)
        if not self._can_manage(event, user_id):
            current_app.logger.warning(f"User {user_id} denied update of event {event_id}")
            return EventResult(success=False, errors=[GENERIC_DENIED_MESSAGE],
                               error_code=ErrorCode.PERMISSION_DENIED)

        if not isinstance(updates, EventDetails):
            try:
                updates = EventDetails.model_validate(updates or {})
            except ValidationError as e:
                return EventResult(success=False, errors=_field_errors(e),
                                   error_code=ErrorCode.VALIDATION_FAILED)

        validation = self.validate_event(updates, partial=True)
        if not validation.is_valid:
            return EventResult(success=False, errors=validation.errors, warnings=validation.warnings,
                               error_code=ErrorCode.VALIDATION_FAILED)

        for field in ('title', 'description', 'location', 'capacity', 'tags', 'is_online', 'meeting_url'):
            value = getattr(updates, field)
            if value is not None:
                setattr(event, field, value)

        if updates.date is not None or updates.time is not None or updates.duration is not None:
            current_start = as_utc(event.start_time)
            current_minutes = int((as_utc(event.end_time) - current_start).total_seconds() // 60)
            schedule = EventDetails(
                date=updates.date or current_start.date().isoformat(),
                time=updates.time or current_start.strftime('%H:%M')
            )
            event.start_time = compute_start_time(schedule, self.clock())
            event.end_time = compute_end_time(event.start_time, updates.duration or current_minutes)

        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Error updating event {event_id}: {e}")
            raise PersistenceError(f'Could not update event {event_id}') from e

        return EventResult(success=True, event=ScheduledEvent.model_validate(event),
                           warnings=validation.warnings)

    def delete_event(self, event_id, user_id):
        """Hard delete. Only the creator or an events manager of the community may do it."""
        event = db.session.get(CommunityEvent, event_id)
        if event is None:
            return self._missing(event_id, user_id)
        if not self._can_manage(event, user_id):
            current_app.logger.warning(f"User {user_id} denied deletion of event {event_id}")
            return EventResult(success=False, errors=[GENERIC_DENIED_MESSAGE],
                               error_code=ErrorCode.PERMISSION_DENIED)

        snapshot = ScheduledEvent.model_validate(event)
        try:
            db.session.delete(event)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Error deleting event {event_id}: {e}")
            raise PersistenceError(f'Could not delete event {event_id}') from e

        current_app.logger.info(f"Event {event_id} deleted by user {user_id}")
        return EventResult(success=True, event=snapshot)

    def get_upcoming_events(self, community_id, limit=10):
        if limit is None or limit < 1:
            return []
        try:
            rows = (
                CommunityEvent.query
                .filter(CommunityEvent.community_id == community_id,
                        CommunityEvent.start_time >= self.clock())
                .order_by(CommunityEvent.start_time.asc(), CommunityEvent.id.asc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            raise PersistenceError(f'Could not load events for community {community_id}') from e
        return [ScheduledEvent.model_validate(row) for row in rows]

    def _can_manage(self, event, user_id):
        if event.created_by is not None and event.created_by == user_id:
            return True
        return self.resolver.has_permission(user_id, Permissions.MANAGE_EVENTS, event.community_id)

    def _missing(self, event_id, user_id):
        """
        Unknown ids read as "not found" only to events managers; anyone else
        gets the same denial an existing event would give them.
        """
        if self._manages_events_anywhere(user_id):
            return EventResult(success=False, errors=['Event not found'], error_code=ErrorCode.NOT_FOUND)
        current_app.logger.warning(f"User {user_id} denied access to unknown event {event_id}")
        return EventResult(success=False, errors=[GENERIC_DENIED_MESSAGE],
                           error_code=ErrorCode.PERMISSION_DENIED)

    def _manages_events_anywhere(self, user_id):
        if self.resolver.has_permission(user_id, Permissions.MANAGE_EVENTS):
            return True
        communities = {a.community_id for a in self.resolver.get_user_roles(user_id) if a.community_id is not None}
        return any(self.resolver.has_permission(user_id, Permissions.MANAGE_EVENTS, community_id)
                   for community_id in communities)
