"""
Chartstream exceptions.

Input errors (ProtocolError and subclasses) are answered with an error
envelope on the requesting connection. ChannelClosed ends one session only.
"""


class ChartStreamError(Exception):
    """Base class for chartstream errors"""
    pass


class ProtocolError(ChartStreamError):
    """Raised when an inbound control message cannot be honoured"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnknownSeriesTypeError(ProtocolError):
    """Raised when no generator is registered for a series type"""

    def __init__(self, series_type: str):
        super().__init__(f"Unknown series type: {series_type}")
        self.series_type = series_type


class ChannelClosed(ChartStreamError):
    """Raised by a message channel once the peer has gone away"""
    pass
