"""
Typed records passed between the services.

The ORM models stay inside the services; callers get these pydantic
snapshots, which are safe to cache, compare and serialise.
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .constants import Intent
from .utils import as_utc


class Grant(BaseModel):
    """One {scope, action, resource} permission unit."""
    model_config = ConfigDict(frozen=True, from_attributes=True)

    scope: str
    action: str
    resource: str

    def __str__(self):
        return f'{self.scope}:{self.action}:{self.resource}'


class RoleDefinition(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    name: str
    access_level: str
    description: Optional[str] = None
    permissions: List[Grant] = Field(default_factory=list)


class RoleAssignment(BaseModel):
    """A user-role assignment joined with its role definition."""
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    user_id: int
    role_id: int
    community_id: Optional[int] = None
    assigned_by: Optional[int] = None
    assigned_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    role: Optional[RoleDefinition] = None

    @field_validator('assigned_at', 'expires_at')
    @classmethod
    def _utc(cls, value):
        return as_utc(value)

    @property
    def is_global(self):
        return self.community_id is None

    def is_expired(self, now):
        return self.expires_at is not None and self.expires_at < now


class EventDetails(BaseModel):
    """
    Event fields as typed by a user or extracted from a chat message.

    Every field is optional; ``None`` means "not provided". The camelCase
    aliases match the shape LLM providers are asked to return.
    """
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = None        # YYYY-MM-DD
    time: Optional[str] = None        # HH:MM, 24-hour
    location: Optional[str] = None
    duration: Optional[int] = Field(default=None, alias='suggestedDuration')
    capacity: Optional[int] = Field(default=None, alias='suggestedCapacity')
    tags: Optional[List[str]] = None
    is_online: Optional[bool] = Field(default=None, alias='isOnline')
    meeting_url: Optional[str] = Field(default=None, alias='meetingUrl')
    created_by: Optional[int] = None
    community_id: Optional[int] = None

    @field_validator('title', 'description', 'date', 'time', 'location', 'meeting_url', mode='before')
    @classmethod
    def _blank_is_absent(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator('tags', mode='before')
    @classmethod
    def _clean_tags(cls, value):
        if value is None:
            return None
        if isinstance(value, str):
            value = value.split(',')
        if not isinstance(value, (list, tuple)):
            raise ValueError('tags must be a list of strings')
        return [str(t).strip().lstrip('#') for t in value if str(t).strip()]

    @classmethod
    def from_loose(cls, data):
        """
        Build from an untrusted mapping, dropping individual fields that do not
        validate instead of rejecting the whole record.
        """
        if not isinstance(data, dict):
            return cls()
        data = dict(data)
        # error locations use the alias; inputs may use either spelling
        spellings = {}
        for name, field in cls.model_fields.items():
            keys = {name, field.alias or name}
            for key in keys:
                spellings[key] = keys
        while True:
            try:
                return cls.model_validate(data)
            except ValidationError as e:
                bad_keys = set()
                for err in e.errors():
                    if err.get('loc'):
                        bad_keys |= spellings.get(err['loc'][0], {err['loc'][0]})
                bad_keys &= set(data)
                if not bad_keys:
                    return cls()
                for key in bad_keys:
                    data.pop(key, None)

    def provided(self):
        """Only the fields that were actually supplied."""
        return self.model_dump(exclude_none=True)


class ValidationResult(BaseModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


class ScheduledEvent(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    community_id: int
    created_by: Optional[int] = None
    title: str
    description: str
    start_time: datetime
    end_time: datetime
    location: Optional[str] = None
    capacity: Optional[int] = None
    tags: List[str] = Field(default_factory=list)
    is_online: bool = False
    meeting_url: Optional[str] = None
    ai_generated: bool = False
    created_at: Optional[datetime] = None

    @field_validator('start_time', 'end_time', 'created_at')
    @classmethod
    def _utc(cls, value):
        return as_utc(value)

    @field_validator('tags', mode='before')
    @classmethod
    def _none_tags(cls, value):
        return value or []


class EventResult(BaseModel):
    """Outcome of a scheduler operation. Expected failures are values, not exceptions."""
    success: bool
    event: Optional[ScheduledEvent] = None
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)
    error_code: Optional[str] = None


class IntentContext(BaseModel):
    community_id: Optional[int] = None
    user_id: Optional[int] = None


class IntentDetectionResult(BaseModel):
    intent: Literal['create_event', 'schedule_poll', 'admin_alert', 'general_chat'] = Intent.GENERAL_CHAT
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    entities: EventDetails = Field(default_factory=EventDetails)
    source: Literal['provider', 'fallback'] = 'fallback'
    context: Optional[IntentContext] = None
