"""Failure types surfaced to the presentation shell."""

from __future__ import annotations


class HydraError(Exception):
    """Base class for every failure the tracker reports to its caller."""


class ValidationError(HydraError, ValueError):
    """Input rejected before any state was touched."""


class PermissionDenied(HydraError):
    """Notification permission was refused; reminders stay disarmed."""


class OSIntegrationError(HydraError):
    """Autostart registration could not be changed."""


class StoreError(HydraError):
    """The record store failed to read or write."""
