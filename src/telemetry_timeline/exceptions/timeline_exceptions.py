"""Custom exceptions for the telemetry timeline service."""


class TimelineException(Exception):
    """Base exception for the telemetry timeline."""
    pass


class MalformedPayloadError(TimelineException):
    """Raised when a telemetry payload is not an object or violates the expected shape."""
    pass


class DegenerateDomainError(TimelineException):
    """Raised when loaded data spans no time at all."""
    pass


class DataNotLoadedError(TimelineException):
    """Raised when a window is requested before any dataset was processed."""
    pass


class SessionNotFoundError(TimelineException):
    """Raised when no timeline session exists for a vehicle."""
    pass


class ChannelNotFoundError(TimelineException):
    """Raised when channel is not found."""
    pass
