"""
Service objects, built once per app in ``create_app`` and kept on
``app.extensions['momfit']``.
"""
from flask import current_app

from ..constants import DEFAULT_CONFIDENCE_THRESHOLD
from ..utils import utcnow
from .chat_pipeline import ChatIntentPipeline
from .event_scheduler import EventScheduler
from .intent_detector import IntentDetector
from .llm_client import OpenAIChatProvider
from .role_resolver import RoleResolver


def init_services(app, llm_provider=None, clock=None):
    clock = clock or utcnow
    if llm_provider is None:
        llm_provider = OpenAIChatProvider.from_config(app.config)
    if llm_provider is None:
        app.logger.info("No LLM provider configured; intent detection uses the keyword classifier")

    resolver = RoleResolver(clock=clock)
    detector = IntentDetector(
        provider=llm_provider,
        threshold=app.config.get('INTENT_CONFIDENCE_THRESHOLD', DEFAULT_CONFIDENCE_THRESHOLD),
        clock=clock
    )
    scheduler = EventScheduler(resolver, clock=clock)
    pipeline = ChatIntentPipeline(detector, scheduler, resolver, clock=clock)

    app.extensions['momfit'] = {
        'role_resolver': resolver,
        'intent_detector': detector,
        'event_scheduler': scheduler,
        'chat_pipeline': pipeline,
    }


def get_role_resolver():
    return current_app.extensions['momfit']['role_resolver']


def get_intent_detector():
    return current_app.extensions['momfit']['intent_detector']


def get_event_scheduler():
    return current_app.extensions['momfit']['event_scheduler']


def get_chat_pipeline():
    return current_app.extensions['momfit']['chat_pipeline']
