class TiltpadError(Exception):
    """Base class for tiltpad errors."""
    pass


class SensorAccessError(TiltpadError):
    """Raised when orientation data cannot be obtained."""
    pass


class PermissionDeniedError(SensorAccessError):
    """Orientation access was refused by the platform or the user."""
    pass


class UnsupportedPlatformError(SensorAccessError):
    """The platform has no orientation capability."""
    pass


class ChannelConnectionError(TiltpadError):
    """Raised when the duplex channel fails to open or drops."""
    def __init__(self, message, endpoint=None, cause=None):
        super().__init__(message)
        self.endpoint = endpoint
        self.cause = cause


class ExhaustedRetriesError(TiltpadError):
    """Raised when automatic reconnection gave up."""
    def __init__(self, message, attempts):
        super().__init__(message)
        self.attempts = attempts
