"""Error taxonomy for a review run.

Everything except action-loop failures is fatal: the CLI prints the message
and exits non-zero. GatewayError subclasses each carry their own remediation
hint so the operator knows what to fix.
"""

from __future__ import annotations


class PRPilotError(Exception):
    """Base class for all errors raised by prpilot."""


class InvalidReferenceError(PRPilotError, ValueError):
    """The PR reference string does not match any supported shape."""


class ConfigError(PRPilotError):
    """Missing or placeholder credentials, or an unreadable config file."""


class GatewayError(PRPilotError):
    """A GitHub read or write failed.

    ``original`` keeps the underlying exception message for troubleshooting.
    """

    def __init__(self, message: str, original: str | None = None):
        super().__init__(message)
        self.original = original


class NotFoundError(GatewayError):
    pass


class AuthenticationError(GatewayError):
    pass


class RateLimitedError(GatewayError):
    pass


class OrchestratorError(PRPilotError):
    """The agent stream failed or reported an error result."""
