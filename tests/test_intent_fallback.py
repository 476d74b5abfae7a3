from datetime import date

import pytest

from momfit.services.intent_fallback import (
    classify_locally, extract_capacity, extract_date, extract_duration, extract_event_entities,
    extract_location, extract_tags, extract_time, extract_title
)

# Tuesday
TODAY = date(2026, 3, 10)


@pytest.mark.parametrize('text,expected', [
    ('yoga tomorrow', '2026-03-11'),
    ('walk today', '2026-03-10'),
    ('brunch next friday', '2026-03-13'),
    ('hike next tuesday', '2026-03-17'),
    ('run this thursday', '2026-03-12'),
    ('picnic on Sunday', '2026-03-15'),
    ('party on June 1st', '2026-06-01'),
    ('festival March 5', '2027-03-05'),
    ('class on 2026-04-02', '2026-04-02'),
    ('see you soon', None),
])
def test_extract_date(text, expected):
    assert extract_date(text, TODAY) == expected


@pytest.mark.parametrize('text,expected', [
    ('at 7pm', '19:00'),
    ('at 7:30 am', '07:30'),
    ('12am sharp', '00:00'),
    ('12pm lunch', '12:00'),
    ('starts 19:45', '19:45'),
    ('at 9:05', '09:05'),
    ('no time here', None),
])
def test_extract_time(text, expected):
    assert extract_time(text) == expected


def test_extract_location_skips_times():
    assert extract_location("tomorrow at 7pm at Central Park") == 'Central Park'
    assert extract_location("meet in the community center") == 'the community center'
    assert extract_location("Venue: Maple Street 12, back door") == 'Maple Street 12'
    assert extract_location("somewhere nice") is None


@pytest.mark.parametrize('text,expected', [
    ('for 1 hour 30 minutes', 90),
    ('about 45 min', 45),
    ('2 hours', 120),
    ('1.5 hours', 90),
    ('a while', None),
])
def test_extract_duration(text, expected):
    assert extract_duration(text) == expected


def test_extract_capacity_and_tags():
    assert extract_capacity('room for up to 20') == 20
    assert extract_capacity('15 moms max') == 15
    assert extract_capacity('capacity: 8') == 8
    assert extract_tags('#Yoga #outdoors and #yoga') == ['yoga', 'outdoors']


def test_extract_title():
    assert extract_title("Let's plan a stroller walk next Monday") == 'Stroller walk'
    assert extract_title("ok") is None


def test_entities_leave_missing_fields_out():
    entities = extract_event_entities("Let's schedule a yoga session tomorrow", TODAY)

    assert entities['title'] == 'Yoga session'
    assert entities['date'] == '2026-03-11'
    assert 'time' not in entities
    assert 'suggestedCapacity' not in entities
    assert 'isOnline' not in entities


def test_online_event_entities():
    entities = extract_event_entities(
        "Host a pilates class online this friday at 8pm https://zoom.us/j/123 #pilates", TODAY)

    assert entities['isOnline'] is True
    assert entities['meetingUrl'] == 'https://zoom.us/j/123'
    assert entities['tags'] == ['pilates']
    assert entities['time'] == '20:00'


@pytest.mark.parametrize('text,intent,confidence', [
    ("Let's schedule a yoga session tomorrow at 7pm", 'create_event', 0.8),
    ("We should organize a picnic sometime", 'create_event', 0.5),
    ("Can we run a poll on which day works?", 'schedule_poll', 0.7),
    ("Someone keeps posting spam links in here", 'admin_alert', 0.7),
    ("Good morning everyone!", 'general_chat', 0.1),
    ("", 'general_chat', 0.0),
])
def test_classify_locally(text, intent, confidence):
    got_intent, got_confidence, _ = classify_locally(text, TODAY)
    assert (got_intent, got_confidence) == (intent, confidence)
