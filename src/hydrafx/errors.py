"""Error types raised by hydrafx.

Fetch failures are not errors at this level: they are captured on the cell
that produced them. Only programming mistakes and corrupt documents raise.
"""


class HydrafxError(Exception):
    """Base class for hydrafx errors."""


class UsageError(HydrafxError, RuntimeError):
    """A hook was called outside component setup or without a render context."""


class SsrDataError(HydrafxError, ValueError):
    """The embedded data fragment could not be decoded."""
