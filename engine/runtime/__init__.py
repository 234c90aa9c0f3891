"""
Runtime Module

Live chart coordinator and its view adapters.
"""

from .chart import LiveChart
from .view import ChartView, LoggingChartView, NatsChartView, StatusKind

__all__ = [
    "LiveChart",
    "ChartView",
    "LoggingChartView",
    "NatsChartView",
    "StatusKind",
]
