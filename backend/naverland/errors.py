class NaverLandError(Exception):
    """Base class for scraper errors."""


class SessionAcquireError(NaverLandError):
    """The HTTP client or browser could not be started. Fatal to a search."""


class UpstreamError(NaverLandError):
    """Transport failure, timeout or a payload we could not make sense of."""


class ResolutionError(NaverLandError):
    """Unknown area name or malformed bounding box."""


class RecordError(NaverLandError):
    """A single raw listing could not be normalized."""
