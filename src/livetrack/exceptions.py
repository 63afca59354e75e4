"""Custom exception hierarchy for livetrack."""

from __future__ import annotations


class TrackerError(Exception):
    """Base exception for all livetrack errors."""


class TrackerConfigError(TrackerError):
    """Invalid or missing configuration."""


class TrackerAuthenticationError(TrackerError):
    """Inbound webhook call failed bearer authentication."""


class TrackerSignatureError(TrackerAuthenticationError):
    """Inbound webhook HMAC signature did not match the request body."""


class SubscriberDeliveryError(TrackerError):
    """A live update could not be handed to a subscriber channel.

    The broadcast hub catches this (and any other exception raised by a
    channel), logs it and removes the subscriber.
    """

    def __init__(self, message: str, *, order: str = "") -> None:
        self.order = order
        super().__init__(message)


class SubscriberClosedError(SubscriberDeliveryError):
    """The subscriber channel was already closed."""


class SubscriberOverflowError(SubscriberDeliveryError):
    """The subscriber channel buffer is full (consumer is not draining it)."""
