"""
Error taxonomy for the session engine.

Parse fallbacks are never raised: the response parser absorbs malformed
LLM output and returns defaults instead.
"""


class SessionEngineError(Exception):
    """Base class for failures scoped to one session or request."""

    # Message safe to show the user; None means "use the generic failure text"
    user_message = None


class UpstreamUnavailable(SessionEngineError):
    """The LLM gateway call failed, timed out, or returned undecodable text."""


class PersistenceFailure(SessionEngineError):
    """A record store operation failed."""


class NoActiveSession(SessionEngineError):
    """An event arrived for a connection with no matching session."""

    user_message = "No active session"


class ValidationFailure(SessionEngineError):
    """An inbound payload is missing required fields or has invalid values."""

    def __init__(self, message: str):
        super().__init__(message)
        self.user_message = message


class Unauthorized(SessionEngineError):
    """A bearer credential could not be validated."""

    user_message = "Could not validate credentials"


class RecordNotFound(SessionEngineError):
    """A record addressed by id does not exist."""

    def __init__(self, message: str):
        super().__init__(message)
        self.user_message = message
