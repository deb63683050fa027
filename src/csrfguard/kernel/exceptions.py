"""Unified exception hierarchy for csrfguard.

All library exceptions inherit from CsrfGuardException, enabling unified
error handling across modules.

Categories:
- BusinessException: configuration and input errors raised at setup time
- SecurityException: CSRF validation failures (the closed denial taxonomy)
- InfrastructureException: failures of the platform underneath (entropy)
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class CsrfGuardException(Exception):
    """Base exception for all csrfguard errors.

    Carries an optional error code and context dict for structured error data.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "CSRF_NO_TOKEN").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Business Exceptions
# =============================================================================


class BusinessException(CsrfGuardException):
    """Rule violations detected before any request is served."""


class ConfigurationException(BusinessException):
    """Invalid or conflicting configuration, raised at construction time."""


# =============================================================================
# Security Exceptions
# =============================================================================


class SecurityException(CsrfGuardException):
    """Authentication and authorization errors."""


class ForbiddenException(SecurityException):
    """Caller is not allowed to perform the operation."""


class CsrfError(ForbiddenException):
    """Base class for every CSRF denial reason.

    Subclasses form a closed set; each carries a fixed ``default_code`` and
    ``default_message``.  Instances are attached to the request context and
    never raised out of the filter.
    """

    default_code: str = "CSRF_FAILED"
    default_message: str = "CSRF validation failed"

    def __init__(self, message: str | None = None, context: dict | None = None) -> None:
        super().__init__(message or self.default_message, code=self.default_code, context=context)


class NoCookieError(CsrfError):
    """The secret cookie is missing on an unsafe request."""

    default_code = "CSRF_NO_COOKIE"
    default_message = "CSRF cookie not found in request"


class BadCookieError(CsrfError):
    """The secret cookie failed authentication, decoding or expiry checks."""

    default_code = "CSRF_BAD_COOKIE"
    default_message = "CSRF cookie could not be authenticated"


class NoRefererError(CsrfError):
    """The unsafe request carries no Referer header."""

    default_code = "CSRF_NO_REFERER"
    default_message = "Referer header not supplied"


class BadRefererError(CsrfError):
    """The Referer is neither same-origin nor trusted."""

    default_code = "CSRF_BAD_REFERER"
    default_message = "Referer is not a trusted origin"


class NoTokenError(CsrfError):
    """No token was found in the configured header or form field."""

    default_code = "CSRF_NO_TOKEN"
    default_message = "CSRF token not found in request"


class BadTokenError(CsrfError):
    """The submitted token does not unmask to the stored secret."""

    default_code = "CSRF_BAD_TOKEN"
    default_message = "CSRF token invalid"


CSRF_ERRORS: tuple[type[CsrfError], ...] = (
    NoCookieError,
    BadCookieError,
    NoRefererError,
    BadRefererError,
    NoTokenError,
    BadTokenError,
)
"""The closed set of denial reasons."""


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(CsrfGuardException):
    """Failures of the platform underneath the filter."""


class EntropyException(InfrastructureException):
    """The operating system could not supply secure random bytes."""
