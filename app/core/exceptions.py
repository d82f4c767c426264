"""
Domain errors of the storefront core.

Validation errors are surfaced as field errors, transport errors are either
recovered (pricing fallback) or turned into a retryable checkout error, and
logic errors are treated as no-ops by the checkout flow.
"""
from __future__ import annotations


class StorefrontError(Exception):
    """Base class for every error raised by the core."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class TransportError(StorefrontError):
    """An external provider did not answer or answered garbage."""


class PricingUnavailableError(TransportError):
    pass


class OtpProviderUnavailableError(TransportError):
    pass


class OtpRejectedError(StorefrontError):
    """The OTP provider answered but refused the request (bad code, blocked number...)."""


class OrderNotFoundError(StorefrontError):
    pass


class InvalidStatusTransitionError(StorefrontError):
    pass
