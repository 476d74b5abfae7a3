"""
Chat intent detection.

``IntentDetector`` asks the configured LLM provider first and falls back to
the keyword classifier in ``intent_fallback`` when there is no provider or
the call fails. It never raises for "no intent found".
"""
from flask import current_app

from ..constants import DEFAULT_CONFIDENCE_THRESHOLD, Intent
from ..schemas import EventDetails, IntentContext, IntentDetectionResult
from ..utils import utcnow
from .intent_fallback import classify_locally

INTENT_SCHEMA = """{
  "intent": "create_event" | "schedule_poll" | "admin_alert" | "general_chat",
  "confidence": number between 0 and 1,
  "entities": {
    "title": string, "description": string,
    "date": "YYYY-MM-DD", "time": "HH:MM" (24-hour),
    "location": string, "suggestedDuration": minutes, "suggestedCapacity": integer,
    "tags": [string], "isOnline": boolean, "meetingUrl": string
  }
}
Omit any entity that is not mentioned."""


def _clamp_confidence(value):
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if value != value:  # NaN
        return 0.0
    return max(0.0, min(1.0, value))


class IntentDetector:
    def __init__(self, provider=None, threshold=DEFAULT_CONFIDENCE_THRESHOLD, clock=utcnow):
        self.provider = provider
        self.threshold = threshold
        self.clock = clock

    def detect_intent(self, text, context=None):
        """
        Classify ``text``. ``context`` may be an IntentContext or a mapping
        with ``community_id``/``user_id``; it is echoed back on the result.
        """
        if context is not None and not isinstance(context, IntentContext):
            context = IntentContext.model_validate(context)

        if not text or not text.strip():
            return IntentDetectionResult(intent=Intent.GENERAL_CHAT, confidence=0.0, context=context)

        if self.provider is None:
            return self._fallback(text, context)

        today = self.clock().date()
        try:
            raw = self.provider.classify(f"Today is {today.isoformat()}.\n\n{text}", INTENT_SCHEMA)
            result = self._normalise(raw, context)
        except Exception as e:
            # Whatever the provider raised, chat keeps working
            current_app.logger.warning(
                f"Intent provider failed ({type(e).__name__}), using keyword fallback: {e}")
            return self._fallback(text, context)

        current_app.logger.debug(
            f"Intent {result.intent} ({result.confidence:.2f}) from provider for context {context}")
        return result

    def is_actionable(self, result):
        """Only a create_event at or above the threshold triggers an action."""
        return result.intent == Intent.CREATE_EVENT and result.confidence >= self.threshold

    def _normalise(self, raw, context):
        if not isinstance(raw, dict):
            raw = {}
        intent = raw.get('intent')
        if intent not in Intent.ALL:
            intent = Intent.GENERAL_CHAT
        return IntentDetectionResult(
            intent=intent,
            confidence=_clamp_confidence(raw.get('confidence')),
            entities=EventDetails.from_loose(raw.get('entities')),
            source='provider',
            context=context
        )

    def _fallback(self, text, context):
        intent, confidence, entities = classify_locally(text, self.clock().date())
        return IntentDetectionResult(
            intent=intent,
            confidence=confidence,
            entities=EventDetails.from_loose(entities),
            source='fallback',
            context=context
        )
