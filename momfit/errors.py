"""Exception types shared by the services and the JSON error handlers."""
from flask import jsonify, current_app


class MomFitError(Exception):
    """Base class for errors raised by MomFit services."""


class PersistenceError(MomFitError):
    """The store was unreachable or rejected a write."""


class PermissionDenied(MomFitError):
    """The caller may not perform the requested action."""


class ProviderError(MomFitError):
    """The LLM provider call failed (transport, auth, rate limit, bad payload)."""


class InvalidRequest(MomFitError):
    """The request body is not the JSON object the view expects."""


GENERIC_DENIED_MESSAGE = 'You are not allowed to do that.'
GENERIC_RETRY_MESSAGE = 'Something went wrong. Please try again.'


def register_error_handlers(app):
    @app.errorhandler(InvalidRequest)
    def handle_invalid_request(e):
        return jsonify({'success': False, 'error': str(e)}), 400

    @app.errorhandler(PermissionDenied)
    def handle_permission_denied(e):
        return jsonify({'success': False, 'error': GENERIC_DENIED_MESSAGE}), 403

    @app.errorhandler(PersistenceError)
    def handle_persistence_error(e):
        current_app.logger.error(f"Store failure: {e}")
        return jsonify({'success': False, 'error': GENERIC_RETRY_MESSAGE}), 503
