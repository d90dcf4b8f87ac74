"""Typed exception hierarchy for the NIFTY paper desk.

Callers catch the specific type for the failure mode they can handle;
anything else propagates.
"""


class PaperDeskError(Exception):
    """Root exception for all paper desk errors."""


class IdeaProviderError(PaperDeskError):
    """An idea provider call failed. The message is shown to the user as-is."""


class DataValidationError(PaperDeskError):
    """Data is present but invalid (e.g. a non-positive session opening price)."""


class ConfigError(PaperDeskError):
    """Configuration file invalid or missing required keys."""
