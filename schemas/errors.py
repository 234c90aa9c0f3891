"""
Chart Errors

Error taxonomy shared by the price providers, the gateway and the chart.
"""


class ChartError(Exception):
    """Base exception for chart service errors"""
    pass


class ProviderError(ChartError):
    """A single provider failed (network error, bad status, timeout)"""

    def __init__(self, message: str, provider: str = "unknown"):
        super().__init__(message)
        self.provider = provider


class InvalidData(ProviderError):
    """A provider answered successfully but the payload is empty or malformed"""
    pass


class DataUnavailable(ChartError):
    """Every provider in the fallback chain failed"""

    def __init__(self, message: str, errors: list = None):
        super().__init__(message)
        self.errors = errors or []


class InvalidTimeframe(ChartError, ValueError):
    """Unknown timeframe identifier"""

    def __init__(self, timeframe: str, known: list = None):
        self.timeframe = timeframe
        self.known = known or []
        super().__init__(
            f"Invalid timeframe '{timeframe}'. Must be one of: {self.known}"
        )
