"""
Service-level exceptions.

Upstream quote failures are never raised: adapters return None and the
orchestrator reports exhaustion as None. These cover local failures only.
"""


class PortfolioTrackerError(Exception):
    """Base class for errors raised by this service."""


class ConfigError(PortfolioTrackerError):
    """Configuration file missing or malformed."""


class SnapshotLoadError(PortfolioTrackerError):
    """Static holdings snapshot could not be read."""
