"""
Keyword/regex intent classifier.

Used when no LLM provider is configured or when the provider call fails. It
is deterministic for a given text and reference date.
"""
import re
from datetime import date, timedelta

from ..constants import Intent

EVENT_PATTERNS = [
    re.compile(r'\b(schedule|plan|organi[sz]e|create|host|arrange|set\s+up|put\s+together)\b', re.I),
    re.compile(r'\b(event|meeting|meetup|session|workshop|class|gathering|get\s+together|hangout|playdate)\b', re.I),
    re.compile(r'\b(yoga|pilates|fitness|workout|exercise|training|run|walk|hike|stroller|bootcamp|coaching|study)\b', re.I),
    re.compile(r'\b(party|celebration|birthday|anniversary|holiday|festival|picnic|brunch)\b', re.I),
]

POLL_PATTERN = re.compile(
    r'\b(poll|survey|vote\s+on|which\s+(day|time|date)\s+works|'
    r'when\s+(is|are)\s+(everyone|you\s+all|people)\s+(free|available)|availability)\b', re.I)

ADMIN_ALERT_PATTERN = re.compile(
    r'\b(report(ing|ed)?|harass\w*|spam\w*|abus\w*|inappropriate|offensive|scam\w*|'
    r'need\s+(an\s+)?(admin|moderator)|contact\s+(the\s+)?(admin|moderator)s?)\b', re.I)

WEEKDAYS = ['monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday']
MONTHS = ['january', 'february', 'march', 'april', 'may', 'june', 'july',
          'august', 'september', 'october', 'november', 'december']

_WEEKDAY = '|'.join(WEEKDAYS)
_MONTH = '|'.join(MONTHS)

ISO_DATE = re.compile(r'\b(\d{4})-(\d{2})-(\d{2})\b')
RELATIVE_DAY = re.compile(r'\b(today|tonight|tomorrow)\b', re.I)
NEXT_WEEKDAY = re.compile(rf'\bnext\s+({_WEEKDAY})\b', re.I)
THIS_WEEKDAY = re.compile(rf'\b(?:this|on)\s+({_WEEKDAY})\b', re.I)
MONTH_DAY = re.compile(rf'\b({_MONTH})\s+(\d{{1,2}})(?:st|nd|rd|th)?\b', re.I)

TIME_12H = re.compile(r'\b(\d{1,2})(?::([0-5]\d))?\s*(am|pm)\b', re.I)
TIME_24H = re.compile(r'\b([01]?\d|2[0-3]):([0-5]\d)\b(?!\s*(?:am|pm))', re.I)

_PLACE_WORDS = r'park|center|centre|studio|gym|room|hall|building|place|cafe|library|pool|playground|beach|track'
_NOT_PREPOSITION = r"(?:(?!\b(?:at|in|on)\b)[\w' -])"
LOCATION_PATTERNS = [
    re.compile(rf"\b(?:at|in)\s+((?:the\s+)?[A-Za-z]{_NOT_PREPOSITION}*?\b(?:{_PLACE_WORDS}))\b", re.I),
    re.compile(r'\blocation\s*:\s*([^.!?,\n]+)', re.I),
    re.compile(r'\bvenue\s*:\s*([^.!?,\n]+)', re.I),
]

DURATION_PATTERNS = [
    re.compile(r'\b(\d+)\s*(?:hours?|hrs?)\s*(?:and\s*)?(\d+)\s*(?:minutes?|mins?)\b', re.I),
    re.compile(r'\b(\d+(?:\.\d+)?)\s*(?:hours?|hrs?)\b', re.I),
    re.compile(r'\b(\d+)\s*(?:minutes?|mins?)\b', re.I),
]

CAPACITY_PATTERNS = [
    re.compile(r'\b(\d+)\s*(?:people|persons?|participants?|attendees?|moms|mums|spots|guests)\b', re.I),
    re.compile(r'\bcapacity\s*(?:of|:)?\s*(\d+)\b', re.I),
    re.compile(r'\bup\s*to\s*(\d+)\b', re.I),
    re.compile(r'\bmax(?:imum)?\s*(?:of\s*)?(\d+)\b', re.I),
]

HASHTAG = re.compile(r'#(\w+)')
TAG_LIST = re.compile(r'\btags?\s*:\s*([^.!?\n]+)', re.I)
MEETING_URL = re.compile(r'(https?://[^\s]+)', re.I)
ONLINE_WORDS = re.compile(r'\b(online|virtual|zoom|google\s+meet|teams\s+call|livestream)\b', re.I)

TITLE_PATTERNS = [
    re.compile(r'\b(?:plan|schedule|organi[sz]e|have|host|create|arrange)\s+(?:a|an|our)\s+'
               r'([^.!?]+?)(?=\s+(?:on|for|at|in|tomorrow|today|tonight|next|this|with)\b|[.!?]|$)', re.I),
    re.compile(r'\b(?:event|meeting|session|workshop|class)\s+(?:on|about)\s+'
               r'([^.!?]+?)(?=\s+(?:on|for|at|in|tomorrow|today|tonight|next|this)\b|[.!?]|$)', re.I),
]


def _has_event_signal(text):
    return any(p.search(text) for p in EVENT_PATTERNS)


def _has_date_or_time(text):
    return any(p.search(text) for p in (ISO_DATE, RELATIVE_DAY, NEXT_WEEKDAY, THIS_WEEKDAY,
                                        MONTH_DAY, TIME_12H, TIME_24H))


def extract_title(text):
    for pattern in TITLE_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1).strip():
            title = match.group(1).strip()
            return title[:1].upper() + title[1:]

    first_sentence = re.split(r'[.!?]', text)[0].strip()
    if 10 < len(first_sentence) < 50:
        return first_sentence
    return None


def extract_date(text, today):
    """Resolve the first date phrase against ``today``. Returns YYYY-MM-DD or None."""
    match = ISO_DATE.search(text)
    if match:
        try:
            return date(int(match.group(1)), int(match.group(2)), int(match.group(3))).isoformat()
        except ValueError:
            pass

    match = RELATIVE_DAY.search(text)
    if match:
        offset = 1 if match.group(1).lower() == 'tomorrow' else 0
        return (today + timedelta(days=offset)).isoformat()

    match = NEXT_WEEKDAY.search(text)
    if match:
        target = WEEKDAYS.index(match.group(1).lower())
        days_ahead = (target - today.weekday()) % 7 or 7
        return (today + timedelta(days=days_ahead)).isoformat()

    match = THIS_WEEKDAY.search(text)
    if match:
        target = WEEKDAYS.index(match.group(1).lower())
        return (today + timedelta(days=(target - today.weekday()) % 7)).isoformat()

    match = MONTH_DAY.search(text)
    if match:
        month = MONTHS.index(match.group(1).lower()) + 1
        try:
            candidate = date(today.year, month, int(match.group(2)))
            if candidate < today:
                candidate = candidate.replace(year=today.year + 1)
        except ValueError:
            return None
        return candidate.isoformat()

    return None


def extract_time(text):
    """First time phrase as 24-hour HH:MM, or None."""
    match = TIME_12H.search(text)
    if match:
        hour = int(match.group(1))
        minutes = match.group(2) or '00'
        period = match.group(3).lower()
        if hour < 1 or hour > 12:
            return None
        if period == 'pm' and hour < 12:
            hour += 12
        elif period == 'am' and hour == 12:
            hour = 0
        return f'{hour:02d}:{minutes}'

    match = TIME_24H.search(text)
    if match:
        return f'{int(match.group(1)):02d}:{match.group(2)}'
    return None


def extract_location(text):
    for pattern in LOCATION_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1).strip()
    return None


def extract_duration(text):
    """Duration in whole minutes."""
    match = DURATION_PATTERNS[0].search(text)
    if match:
        return int(match.group(1)) * 60 + int(match.group(2))
    match = DURATION_PATTERNS[1].search(text)
    if match:
        return int(round(float(match.group(1)) * 60))
    match = DURATION_PATTERNS[2].search(text)
    if match:
        return int(match.group(1))
    return None


def extract_capacity(text):
    for pattern in CAPACITY_PATTERNS:
        match = pattern.search(text)
        if match:
            return int(match.group(1))
    return None


def extract_tags(text):
    tags = [t.lower() for t in HASHTAG.findall(text)]
    match = TAG_LIST.search(text)
    if match:
        tags.extend(t.strip().lower() for t in match.group(1).split(',') if t.strip())
    # keep first occurrence order
    return list(dict.fromkeys(tags))


def extract_meeting_url(text):
    match = MEETING_URL.search(text)
    return match.group(1).rstrip(').,!?') if match else None


def extract_event_entities(text, today):
    """
    Best-effort event fields. Only fields actually found are returned; missing
    ones are left out rather than defaulted.
    """
    meeting_url = extract_meeting_url(text)
    found = {
        'title': extract_title(text),
        'description': text.strip(),
        'date': extract_date(text, today),
        'time': extract_time(text),
        'location': extract_location(text),
        'suggestedDuration': extract_duration(text),
        'suggestedCapacity': extract_capacity(text),
        'tags': extract_tags(text) or None,
        'meetingUrl': meeting_url,
        'isOnline': True if (meeting_url or ONLINE_WORDS.search(text)) else None,
    }
    return {key: value for key, value in found.items() if value is not None}


def classify_locally(text, today):
    """
    Returns ``(intent, confidence, entities)``.

    Event wording without any date or time is reported as a weak
    create_event (0.5) so it stays below the action threshold.
    """
    if not text or not text.strip():
        return Intent.GENERAL_CHAT, 0.0, {}

    if ADMIN_ALERT_PATTERN.search(text):
        return Intent.ADMIN_ALERT, 0.7, {}

    if POLL_PATTERN.search(text):
        return Intent.SCHEDULE_POLL, 0.7, {}

    if _has_event_signal(text):
        entities = extract_event_entities(text, today)
        if _has_date_or_time(text):
            return Intent.CREATE_EVENT, 0.8, entities
        return Intent.CREATE_EVENT, 0.5, entities

    return Intent.GENERAL_CHAT, 0.1, {}
