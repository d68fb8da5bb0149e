"""
Exception types raised by the inspection core.
"""


class InspectionError(Exception):
    """Base class for inspection failures."""


class InputError(InspectionError, ValueError):
    """A template, point set or detector output that cannot be processed."""


class ConfigurationError(InspectionError, ValueError):
    """Configuration rejected at load time (unknown strategy, operator, etc)."""
